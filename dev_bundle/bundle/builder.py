"""Dev bundle assembly orchestration."""

from __future__ import annotations

import logging
import os
import tempfile
import zipfile
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional, Sequence

from ..relocation import DEFAULT_SUFFIXES, RelocationRewriter
from ..schemas.bundle import BundleManifest, DependencyDeclaration, Relocation
from .differ import DiffReport, TreeDiffer, open_baseline
from .manifest import (
    CONFIG_FILE_NAME,
    DATA_DIR,
    DECOMPILER_ARGS,
    PATCHES_DIR,
    REMAPPER_ARGS,
    ManifestBuilder,
    collect_data_files,
    serialize_manifest,
)
from .utils import add_tree_to_zip, compute_sha256, copy_tree, write_zip_entry

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class BundleConfig:
    """Configuration describing one dev bundle run."""

    decompiled_jar: Path
    source_dir: Path
    dev_bundle_file: Path
    minecraft_version: str
    server_url: str
    mojang_mapped_paperclip_file: Path
    mapped_server_coordinates: str
    api_coordinates: str
    mojang_api_coordinates: str
    project_version: str
    build_data_dir: Path
    spigot_class_mappings_file: Path
    spigot_member_mappings_file: Path
    spigot_at_file: Path
    reobf_mappings_file: Path
    param_mappings_url: str
    decompiler_url: str
    remapper_url: str
    param_mappings: Sequence[DependencyDeclaration] = field(default_factory=list)
    decompiler: Sequence[DependencyDeclaration] = field(default_factory=list)
    remapper: Sequence[DependencyDeclaration] = field(default_factory=list)
    decompiler_args: Sequence[str] = field(default_factory=lambda: list(DECOMPILER_ARGS))
    remapper_args: Sequence[str] = field(default_factory=lambda: list(REMAPPER_ARGS))
    vanilla_jar_includes: Sequence[str] = field(default_factory=list)
    vanilla_server_libraries: Sequence[str] = field(default_factory=list)
    library_repositories: Sequence[str] = field(default_factory=list)
    implementation_dependencies: Sequence[DependencyDeclaration] = field(default_factory=list)
    relocations: Sequence[Relocation] = field(default_factory=list)
    additional_spigot_class_mappings_file: Optional[Path] = None
    additional_spigot_member_mappings_file: Optional[Path] = None
    mappings_patch_file: Optional[Path] = None
    relocation_suffixes: Sequence[str] = DEFAULT_SUFFIXES
    max_workers: Optional[int] = None


@dataclass(slots=True)
class StagingArea:
    """Scratch directories owned by a single bundle run."""

    root: Path
    work_dir: Path
    patches_dir: Path


@contextmanager
def staging_area(prefix: str = "dev-bundle-") -> Iterator[StagingArea]:
    """Create the scratch tree for one run; removed on exit even when the run fails."""

    with tempfile.TemporaryDirectory(prefix=prefix) as tmp_dir:
        root = Path(tmp_dir)
        area = StagingArea(root=root, work_dir=root / "work", patches_dir=root / "patches")
        area.work_dir.mkdir()
        area.patches_dir.mkdir()
        yield area


@dataclass(slots=True)
class BundleResult:
    archive_path: Path
    manifest: BundleManifest
    report: DiffReport
    sha256: str


class DevBundleBuilder:
    """Coordinates patch generation and archive creation."""

    def __init__(self, *, differ: Optional[TreeDiffer] = None) -> None:
        self.differ = differ

    def build(self, config: BundleConfig) -> BundleResult:
        """Build the dev bundle and return where it was written."""

        # Configuration problems surface before the existing archive is touched.
        manifest = ManifestBuilder(config).build(DATA_DIR, PATCHES_DIR)
        data_files = collect_data_files(config)

        target = config.dev_bundle_file
        target.unlink(missing_ok=True)
        target.parent.mkdir(parents=True, exist_ok=True)

        with staging_area() as staging:
            report = self.generate_patches(config, staging)
            tmp_archive = target.with_name(f".{target.name}.tmp")
            try:
                with zipfile.ZipFile(tmp_archive, "w") as archive:
                    write_zip_entry(archive, CONFIG_FILE_NAME, serialize_manifest(manifest).encode("utf-8"))
                    archive.writestr(zipfile.ZipInfo(f"{DATA_DIR}/"), b"")
                    for data_file in data_files:
                        if not data_file.present:
                            continue
                        write_zip_entry(archive, f"{DATA_DIR}/{data_file.name}", data_file.source.read_bytes())
                    archive.writestr(zipfile.ZipInfo(f"{PATCHES_DIR}/"), b"")
                    written = add_tree_to_zip(archive, staging.patches_dir, PATCHES_DIR)
                os.replace(tmp_archive, target)
            except BaseException:
                tmp_archive.unlink(missing_ok=True)
                raise

        logger.info("Wrote dev bundle %s with %d patch entries", target, written)
        return BundleResult(
            archive_path=target,
            manifest=manifest,
            report=report,
            sha256=compute_sha256(target),
        )

    def generate_patches(self, config: BundleConfig, staging: StagingArea) -> DiffReport:
        copy_tree(config.source_dir, staging.work_dir)
        RelocationRewriter(config.relocations, suffixes=config.relocation_suffixes).apply(staging.work_dir)
        differ = self.differ or TreeDiffer(max_workers=config.max_workers)
        with open_baseline(config.decompiled_jar) as baseline:
            return differ.diff(staging.work_dir, baseline, staging.patches_dir)
