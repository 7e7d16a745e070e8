"""Exceptions raised while generating dev bundles."""

from __future__ import annotations


class DevBundleError(Exception):
    """Base class for dev bundle failures."""


class CoordinateError(DevBundleError, ValueError):
    """Raised when a dependency declaration cannot be turned into coordinates."""


class VcsError(DevBundleError, RuntimeError):
    """Raised when build-data provenance cannot be read from git."""


class DiffError(DevBundleError, RuntimeError):
    """Raised when a file pair cannot be compared."""


class ManifestError(DevBundleError, ValueError):
    """Raised when a bundle archive carries no readable manifest."""


class RelocationError(DevBundleError, ValueError):
    """Raised when a source file cannot be rewritten."""


__all__ = ["DevBundleError", "CoordinateError", "VcsError", "DiffError", "ManifestError", "RelocationError"]
