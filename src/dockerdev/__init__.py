"""dockerdev - deploy application images as containers on a local Docker engine.

The core is a small resource manager that creates a shared network and an
application container in order, snapshots their state for later processes,
and aggregates their health into a single report.
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
