"""Tests for host OpenCode configuration discovery."""

from __future__ import annotations

import logging

from opencode_box.core.config_discovery import discover_configs


class TestDiscoverConfigs:
    """Tests for discover_configs."""

    def test_nothing_found_warns(self, fake_home, caplog):
        """An empty home yields no configs and a warning, not an error."""
        with caplog.at_level(logging.WARNING, logger="opencode_box"):
            configs = discover_configs(fake_home)

        assert configs.local_share is None
        assert configs.config is None
        assert configs.all == ()
        assert "No OpenCode configuration directories found" in caplog.text

    def test_canonical_paths_surfaced(self, populated_home):
        """Both canonical directories are reported individually."""
        configs = discover_configs(populated_home)

        assert configs.local_share == str(populated_home / ".local" / "share" / "opencode")
        assert configs.config == str(populated_home / ".config" / "opencode")
        assert configs.all == (configs.local_share, configs.config)

    def test_legacy_aliases_reported_but_not_mounted(self, fake_home):
        """Legacy paths appear in `all` only."""
        (fake_home / ".opencode").mkdir()
        (fake_home / ".config" / "opencode-ai").mkdir(parents=True)

        configs = discover_configs(fake_home)

        assert configs.local_share is None
        assert configs.config is None
        assert configs.all == (
            str(fake_home / ".opencode"),
            str(fake_home / ".config" / "opencode-ai"),
        )

    def test_probe_order(self, fake_home):
        """Results follow the fixed candidate order, not creation order."""
        (fake_home / ".shared" / "opencode").mkdir(parents=True)
        (fake_home / ".config" / "opencode").mkdir(parents=True)

        configs = discover_configs(fake_home)

        assert configs.all == (
            str(fake_home / ".config" / "opencode"),
            str(fake_home / ".shared" / "opencode"),
        )

    def test_found_paths_logged(self, populated_home, caplog):
        with caplog.at_level(logging.INFO, logger="opencode_box"):
            discover_configs(populated_home)

        assert "Found OpenCode config at:" in caplog.text
