"""dockerdev deployment engine.

This package provides the resource manager, the network and container
resources, and the :class:`Platform` entry points that deploy an image as a
container, report its health, and tear it down.
"""

from dockerdev.deploy.context import OperationContext
from dockerdev.deploy.platform import PLATFORM_NAME, Platform
from dockerdev.deploy.progress import (
    NullStepGroup,
    Step,
    StepGroup,
    StepStatus,
    TerminalStepGroup,
)
from dockerdev.deploy.resources import ResourceManager

__all__ = [
    "PLATFORM_NAME",
    "NullStepGroup",
    "OperationContext",
    "Platform",
    "ResourceManager",
    "Step",
    "StepGroup",
    "StepStatus",
    "TerminalStepGroup",
]
