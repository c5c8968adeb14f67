"""Container process lifecycle: spawn, stop on cancellation, volume cleanup.

Cancellation is explicit. A CancellationToken is passed into the run and is
only honored while a container is active; forward_signals() maps SIGINT and
SIGTERM onto the token for the duration of a `with` block and restores the
previous handlers afterwards, so no handler state leaks between sessions.

A cancelled run asks Docker to stop the container (bounded by stop_timeout).
It never force-kills. Volume removal after the container exits is
best-effort: each failure is a warning and never changes the outcome.
"""

import logging
import signal
import subprocess
import threading
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

from opencode_box.config import BoxConfig
from opencode_box.core.errors import LaunchError
from opencode_box.core.models import ContainerSpec, RunResult, VolumeSet

logger = logging.getLogger(__name__)

FORWARDED_SIGNALS = (signal.SIGINT, signal.SIGTERM)
STOP_RETRY_DELAY = 1.0


class CancellationToken:
    """Thread-safe, one-shot cancellation request.

    Callbacks registered while the token is live fire once on cancel().
    Registering on an already cancelled token fires the callback immediately.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._cancelled = False
        self._callbacks: list[Callable[[], None]] = []

    @property
    def cancelled(self) -> bool:
        with self._lock:
            return self._cancelled

    def cancel(self) -> None:
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            callbacks = list(self._callbacks)
        for callback in callbacks:
            callback()

    def register(self, callback: Callable[[], None]) -> Callable[[], None]:
        """Register a callback. Returns a function that unregisters it."""
        with self._lock:
            fire_now = self._cancelled
            if not fire_now:
                self._callbacks.append(callback)
        if fire_now:
            callback()

        def unregister() -> None:
            with self._lock:
                if callback in self._callbacks:
                    self._callbacks.remove(callback)

        return unregister


@contextmanager
def forward_signals(token: CancellationToken) -> Iterator[CancellationToken]:
    """Translate SIGINT/SIGTERM into token.cancel() within the block.

    Signal handlers can only be installed from the main thread; elsewhere the
    token is yielded unchanged and must be cancelled by the caller.
    """
    if threading.current_thread() is not threading.main_thread():
        yield token
        return

    def handler(signum: int, frame: Any) -> None:
        logger.info(f"Received {signal.Signals(signum).name}, stopping container...")
        token.cancel()

    previous = {sig: signal.signal(sig, handler) for sig in FORWARDED_SIGNALS}
    try:
        yield token
    finally:
        for sig, old in previous.items():
            signal.signal(sig, old)


class LifecycleManager:
    """Run one container session in the foreground and clean up after it."""

    def __init__(self, config: BoxConfig | None = None):
        self.config = config or BoxConfig()

    def stop_container(self, name: str) -> bool:
        """Ask Docker to stop the container gracefully. Failures are warnings."""
        timeout = self.config.stop_timeout
        try:
            result = subprocess.run(
                ["docker", "stop", "-t", str(timeout), name],
                capture_output=True,
                text=True,
                # Docker's own grace period plus headroom for the CLI round trip
                timeout=timeout + 5,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Failed to stop container gracefully: {e}")
            return False
        if result.returncode != 0:
            logger.warning(f"Failed to stop container gracefully: {result.stderr.strip()}")
            return False
        return True

    def remove_volume(self, name: str) -> bool:
        """Delete one ephemeral volume. Failures are warnings."""
        try:
            result = subprocess.run(
                ["docker", "volume", "rm", name],
                capture_output=True,
                text=True,
                timeout=self.config.volume_rm_timeout,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            logger.warning(f"Failed to clean up volume {name}: {e}")
            return False
        if result.returncode != 0:
            logger.warning(f"Failed to clean up volume {name}: {result.stderr.strip()}")
            return False
        logger.info(f"Cleaned up temporary volume: {name}")
        return True

    def cleanup_volumes(self, volumes: VolumeSet, result: RunResult) -> None:
        for name in volumes.names():
            if self.remove_volume(name):
                result.cleaned_volumes.append(name)
            else:
                result.failed_volumes.append(name)

    def run(
        self,
        spec: ContainerSpec,
        volumes: VolumeSet,
        token: CancellationToken | None = None,
    ) -> RunResult:
        """Run the container attached to the terminal until it exits.

        A stop that fails while the container is still being created is
        retried once after STOP_RETRY_DELAY seconds.

        Returns:
            RunResult with the container's exit code and cleanup outcome.

        Raises:
            LaunchError: If the token is already cancelled or the docker
                process cannot be spawned.
        """
        token = token or CancellationToken()
        cmd = ["docker", *spec.to_docker_args()]
        stopped = False

        def on_cancel() -> None:
            nonlocal stopped
            stopped = True
            if not self.stop_container(spec.name):
                # docker run may not have created the container yet
                time.sleep(STOP_RETRY_DELAY)
                self.stop_container(spec.name)

        logger.info("Starting OpenCode environment...")
        result = RunResult(exit_code=-1)
        try:
            if token.cancelled:
                raise LaunchError("Cancelled before the container started")
            try:
                proc = subprocess.Popen(cmd)
            except OSError as e:
                raise LaunchError(f"Failed to run container: {e}") from e

            unregister = token.register(on_cancel)
            try:
                result.exit_code = proc.wait()
            finally:
                unregister()
            result.stopped = stopped

            if result.exit_code == 0:
                logger.info("OpenCode Box session completed successfully")
            else:
                logger.error(f"OpenCode Box session ended with exit code {result.exit_code}")
        finally:
            self.cleanup_volumes(volumes, result)
        return result
