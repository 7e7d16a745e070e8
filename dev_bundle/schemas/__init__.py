"""Schema definitions for dev bundle metadata."""

from .bundle import (
    BuildData,
    BundleManifest,
    DependencyDeclaration,
    MavenDep,
    Relocation,
    Runner,
    SpigotData,
    VersionConstraint,
    dump_relocations,
    parse_relocations,
)

__all__ = [
    "BuildData",
    "BundleManifest",
    "DependencyDeclaration",
    "MavenDep",
    "Relocation",
    "Runner",
    "SpigotData",
    "VersionConstraint",
    "dump_relocations",
    "parse_relocations",
]
