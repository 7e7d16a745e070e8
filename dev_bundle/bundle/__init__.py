"""Bundle assembly utilities."""

from .builder import BundleConfig, BundleResult, DevBundleBuilder, StagingArea, staging_area
from .manifest import ManifestBuilder, load_manifest

__all__ = [
    "BundleConfig",
    "BundleResult",
    "DevBundleBuilder",
    "ManifestBuilder",
    "StagingArea",
    "load_manifest",
    "staging_area",
]
