"""Dev bundle generation: patches plus replay metadata for a relocated source tree."""

from .bundle.builder import BundleConfig, BundleResult, DevBundleBuilder
from .bundle.differ import DiffReport, FileClassification, TreeDiffer
from .bundle.manifest import ManifestBuilder, verify_archive
from .relocation import RelocationRewriter
from .schemas.bundle import BundleManifest, Relocation, parse_relocations
from .settings import BundleSettings, load_bundle_config, load_settings

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "BundleConfig",
    "BundleManifest",
    "BundleResult",
    "BundleSettings",
    "DevBundleBuilder",
    "DiffReport",
    "FileClassification",
    "ManifestBuilder",
    "Relocation",
    "RelocationRewriter",
    "TreeDiffer",
    "load_bundle_config",
    "load_settings",
    "parse_relocations",
    "verify_archive",
]
