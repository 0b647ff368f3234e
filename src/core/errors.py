"""Harvest exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Each subsystem raises a specific error type for debuggability.
"""

from __future__ import annotations


class HarvestError(Exception):
    """Base exception for all harvest failures."""


class HarvestConfigError(HarvestError):
    """Raised for invalid runtime configuration."""


class HarvestPeriodError(HarvestError):
    """Raised for malformed or out-of-range reporting periods."""


class HarvestDownloadError(HarvestError):
    """Raised by connectors when a source document cannot be fetched."""


class HarvestTransformError(HarvestError):
    """Raised when a downloaded document cannot be turned into records."""


class HarvestStructureError(HarvestTransformError):
    """Raised when a document no longer has the layout a connector expects."""


class HarvestValidationError(HarvestTransformError):
    """Raised when a record fails strict schema validation."""


class HarvestStoreError(HarvestError):
    """Raised for artifact archive, state, and output table failures."""


class HarvestRegistryError(HarvestError):
    """Raised for invalid source registry files or connector factories."""


class HarvestDependencyError(HarvestError):
    """Raised when an optional runtime dependency is missing."""
