"""Manifest assembly and helpers for dev bundles."""

from __future__ import annotations

import logging
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, List, Optional

from ..errors import ManifestError
from ..schemas.bundle import BuildData, BundleManifest, Runner
from .coordinates import determine_maven_dep, resolve_libraries
from .vcs import read_spigot_data

if TYPE_CHECKING:
    from .builder import BundleConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = "config.json"
DATA_DIR = "data"
PATCHES_DIR = "patches"

ADDITIONAL_SPIGOT_CLASS_MAPPINGS_FILE_NAME = "additional-spigot-class-mappings.csrg"
ADDITIONAL_SPIGOT_MEMBER_MAPPINGS_FILE_NAME = "additional-spigot-member-mappings.csrg"
MAPPINGS_PATCH_FILE_NAME = "mappings-patch.tiny"
REOBF_MAPPINGS_FILE_NAME = "mojang+yarn-spigot-reobf-patched.tiny"
MOJANG_MAPPED_PAPERCLIP_FILE_NAME = "paperclip-mojang-mapped.jar"

DECOMPILER_ARGS = [
    "-ind=    ",
    "-din=1",
    "-rbr=1",
    "-dgs=1",
    "-asc=1",
    "-rsy=1",
    "-iec=1",
    "-jvn=0",
    "-isl=0",
    "-iib=1",
    "-bsm=1",
    "-dcl=1",
    "-log=TRACE",
    "-cfg",
    "{libraries}",
    "{input}",
    "{output}",
]

REMAPPER_ARGS = [
    "{input}",
    "{output}",
    "{mappings}",
    "{from}",
    "{to}",
    "{classpath}",
    "--fixpackageaccess",
    "--renameinvalidlocals",
    "--threads=1",
    "--rebuildsourcefilenames",
]


@dataclass(slots=True)
class DataFile:
    """A mapping/AT/jar input copied into the bundle under a fixed name."""

    source: Optional[Path]
    name: str
    required: bool = False

    @property
    def present(self) -> bool:
        return self.source is not None and self.source.exists()

    def archive_path(self, data_dir: str) -> Optional[str]:
        if not self.present:
            return None
        return f"{data_dir}/{self.name}"


def collect_data_files(config: "BundleConfig") -> List[DataFile]:
    files = [
        DataFile(config.additional_spigot_class_mappings_file, ADDITIONAL_SPIGOT_CLASS_MAPPINGS_FILE_NAME),
        DataFile(config.additional_spigot_member_mappings_file, ADDITIONAL_SPIGOT_MEMBER_MAPPINGS_FILE_NAME),
        DataFile(config.mappings_patch_file, MAPPINGS_PATCH_FILE_NAME),
        DataFile(config.reobf_mappings_file, REOBF_MAPPINGS_FILE_NAME, required=True),
        DataFile(config.mojang_mapped_paperclip_file, MOJANG_MAPPED_PAPERCLIP_FILE_NAME, required=True),
    ]
    for data_file in files:
        if data_file.required and not data_file.present:
            raise FileNotFoundError(f"Required bundle input not found: {data_file.source}")
    return files


class ManifestBuilder:
    """Builds the ``config.json`` document from a bundle configuration."""

    def __init__(self, config: "BundleConfig") -> None:
        self.config = config

    def build(self, data_dir: str = DATA_DIR, patch_dir: str = PATCHES_DIR) -> BundleManifest:
        config = self.config
        manifest = BundleManifest(
            minecraft_version=config.minecraft_version,
            mapped_server_coordinates=config.mapped_server_coordinates,
            spigot_data=read_spigot_data(
                config.build_data_dir,
                class_mappings_file=config.spigot_class_mappings_file,
                member_mappings_file=config.spigot_member_mappings_file,
                at_file=config.spigot_at_file,
            ),
            build_data=self._build_data(data_dir),
            decompile=Runner(
                dep=determine_maven_dep(config.decompiler_url, config.decompiler),
                args=list(config.decompiler_args),
            ),
            remap=Runner(
                dep=determine_maven_dep(config.remapper_url, config.remapper),
                args=list(config.remapper_args),
            ),
            patch_dir=patch_dir,
        )
        logger.info("Built manifest for %s", config.minecraft_version)
        return manifest

    def _build_data(self, data_dir: str) -> BuildData:
        config = self.config
        class_mappings, member_mappings, mappings_patch, reobf, paperclip = collect_data_files(config)
        return BuildData(
            param_mappings=determine_maven_dep(config.param_mappings_url, config.param_mappings),
            additional_spigot_class_mappings_file=class_mappings.archive_path(data_dir),
            additional_spigot_member_mappings_file=member_mappings.archive_path(data_dir),
            mappings_patch_file=mappings_patch.archive_path(data_dir),
            reobf_mappings_file=f"{data_dir}/{reobf.name}",
            server_url=config.server_url,
            mojang_mapped_paperclip_file=f"{data_dir}/{paperclip.name}",
            vanilla_jar_includes=list(config.vanilla_jar_includes),
            library_dependencies=resolve_libraries(
                config.vanilla_server_libraries,
                config.implementation_dependencies,
                config.relocations,
            ),
            library_repositories=list(config.library_repositories),
            api_coordinates=f"{config.api_coordinates}:{config.project_version}",
            mojang_api_coordinates=f"{config.mojang_api_coordinates}:{config.project_version}",
            relocations=list(config.relocations),
        )


def serialize_manifest(manifest: BundleManifest) -> str:
    return manifest.model_dump_json(by_alias=True, exclude_none=True, indent=2) + "\n"


def load_manifest(path: Path) -> BundleManifest:
    """Read a manifest from a bundle archive or from an extracted ``config.json``."""

    if zipfile.is_zipfile(path):
        return read_archive_manifest(path)
    return BundleManifest.model_validate_json(path.read_text(encoding="utf-8"))


def read_archive_manifest(archive_path: Path) -> BundleManifest:
    with zipfile.ZipFile(archive_path) as archive:
        try:
            payload = archive.read(CONFIG_FILE_NAME)
        except KeyError as exc:
            raise ManifestError(f"{CONFIG_FILE_NAME} missing from {archive_path}") from exc
    return BundleManifest.model_validate_json(payload)


def verify_archive(archive_path: Path) -> List[str]:
    """Return problems with the bundle at ``archive_path``; empty when consistent."""

    errors: List[str] = []
    with zipfile.ZipFile(archive_path) as archive:
        names = set(archive.namelist())
        if CONFIG_FILE_NAME not in names:
            return [f"{CONFIG_FILE_NAME} missing from {archive_path}"]
        try:
            manifest = BundleManifest.model_validate_json(archive.read(CONFIG_FILE_NAME))
        except ValueError as exc:
            return [f"Invalid {CONFIG_FILE_NAME}: {exc}"]

    for reference in manifest.local_references():
        if reference not in names:
            errors.append(f"Manifest references {reference} but the archive does not contain it")
    patch_prefix = manifest.patch_dir.rstrip("/") + "/"
    if not any(name.startswith(patch_prefix) for name in names):
        errors.append(f"Patch directory {manifest.patch_dir} missing from archive")
    return errors


__all__ = [
    "ADDITIONAL_SPIGOT_CLASS_MAPPINGS_FILE_NAME",
    "ADDITIONAL_SPIGOT_MEMBER_MAPPINGS_FILE_NAME",
    "CONFIG_FILE_NAME",
    "DATA_DIR",
    "DECOMPILER_ARGS",
    "DataFile",
    "MAPPINGS_PATCH_FILE_NAME",
    "MOJANG_MAPPED_PAPERCLIP_FILE_NAME",
    "ManifestBuilder",
    "PATCHES_DIR",
    "REMAPPER_ARGS",
    "REOBF_MAPPINGS_FILE_NAME",
    "collect_data_files",
    "load_manifest",
    "read_archive_manifest",
    "serialize_manifest",
    "verify_archive",
]
