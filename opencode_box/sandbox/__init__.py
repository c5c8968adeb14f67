"""Sandbox module: container specification, image provisioning and lifecycle."""

from opencode_box.sandbox.image import ImageProvisioner
from opencode_box.sandbox.lifecycle import CancellationToken, LifecycleManager, forward_signals
from opencode_box.sandbox.spec_builder import ContainerSpecBuilder

__all__ = [
    "CancellationToken",
    "ContainerSpecBuilder",
    "ImageProvisioner",
    "LifecycleManager",
    "forward_signals",
]
