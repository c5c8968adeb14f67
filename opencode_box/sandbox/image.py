"""Provisioning of the sandbox Docker image.

The image name is shared by every invocation on the host. Concurrent
rebuilds are not coordinated; the last build wins.
"""

import logging
import subprocess

from opencode_box.config import BoxConfig
from opencode_box.core.errors import BuildError

logger = logging.getLogger(__name__)


class ImageProvisioner:
    """Ensure the sandbox image exists, rebuilding on demand."""

    def __init__(self, config: BoxConfig | None = None):
        self.config = config or BoxConfig()

    @property
    def image_name(self) -> str:
        return self.config.image_name

    def image_exists(self) -> bool:
        """Inspect the image by its full reference. Any failure counts as absent."""
        try:
            result = subprocess.run(
                ["docker", "image", "inspect", self.image_name],
                capture_output=True,
                text=True,
                timeout=self.config.command_timeout * 2,
            )
        except (OSError, subprocess.TimeoutExpired):
            return False
        return result.returncode == 0

    def remove_image(self) -> bool:
        """Remove the existing image. Never raises; failures are warnings.

        Returns:
            True if an image was removed.
        """
        try:
            if not self.image_exists():
                logger.info(
                    f"No existing Docker image '{self.image_name}' found, proceeding with fresh build"
                )
                return False

            logger.info(f"Removing existing Docker image '{self.image_name}'...")
            result = subprocess.run(["docker", "rmi", self.image_name, "--force"])
            if result.returncode != 0:
                logger.warning("Failed to remove existing Docker image, proceeding with build anyway")
                return False
        except OSError:
            logger.warning("Failed to remove existing Docker image, proceeding with build anyway")
            return False

        logger.info("Existing Docker image removed")
        return True

    def build(self) -> None:
        """Build the image from the packaged build context.

        Raises:
            BuildError: If the build cannot start or exits non-zero.
        """
        context = self.config.build_context
        if not (context / "Dockerfile").exists():
            raise BuildError(f"Dockerfile not found in build context: {context}")

        logger.info("Building Docker image...")
        try:
            result = subprocess.run(
                ["docker", "build", "-t", self.image_name, str(context)],
                cwd=context,
            )
        except OSError as e:
            raise BuildError(f"Failed to build Docker image: {e}") from e
        if result.returncode != 0:
            raise BuildError(f"Failed to build Docker image (exit code {result.returncode})")
        logger.info("Docker image built successfully")

    def ensure(self, force_rebuild: bool = False) -> bool:
        """Make sure the image exists.

        Returns:
            True if a build ran.
        """
        if force_rebuild:
            logger.info("Force rebuild requested, removing existing Docker image...")
            self.remove_image()
        elif self.image_exists():
            logger.info(
                f"Docker image '{self.image_name}' already exists, "
                "skipping build (use --rebuild to force rebuild)"
            )
            return False

        self.build()
        return True
