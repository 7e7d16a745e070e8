"""Settings files describing a dev bundle run."""

from __future__ import annotations

import json
from pathlib import Path
from typing import List, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .bundle.builder import BundleConfig
from .bundle.manifest import DECOMPILER_ARGS, REMAPPER_ARGS
from .relocation import DEFAULT_SUFFIXES
from .schemas.bundle import DependencyDeclaration, Relocation, parse_relocations


class MavenSettings(BaseModel):
    url: str
    dependencies: List[DependencyDeclaration] = Field(default_factory=list)
    args: Optional[List[str]] = None

    model_config = ConfigDict(extra="forbid")


class BundleSettings(BaseModel):
    """Inputs for one bundle run as written in a YAML or JSON settings file."""

    decompiled_jar: Path
    source_dir: Path
    output: Path
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
    param_mappings: MavenSettings
    decompiler: MavenSettings
    remapper: MavenSettings
    additional_spigot_class_mappings_file: Optional[Path] = None
    additional_spigot_member_mappings_file: Optional[Path] = None
    mappings_patch_file: Optional[Path] = None
    vanilla_jar_includes: List[str] = Field(default_factory=list)
    vanilla_server_libraries: List[str] = Field(default_factory=list)
    library_repositories: List[str] = Field(default_factory=list)
    implementation_dependencies: List[DependencyDeclaration] = Field(default_factory=list)
    relocations: List[Relocation] = Field(default_factory=list)
    relocation_suffixes: List[str] = Field(default_factory=lambda: list(DEFAULT_SUFFIXES))
    max_workers: Optional[int] = Field(default=None, ge=1)

    model_config = ConfigDict(extra="forbid")

    @field_validator("relocations", mode="before")
    @classmethod
    def _parse_relocation_string(cls, value: Union[str, list, None]) -> object:
        if value is None:
            return []
        if isinstance(value, str):
            return parse_relocations(value)
        return value

    def to_config(self, base_dir: Optional[Path] = None) -> BundleConfig:
        """Build a :class:`BundleConfig`, resolving relative paths against ``base_dir``."""

        base = base_dir or Path.cwd()

        def resolve(path: Optional[Path]) -> Optional[Path]:
            if path is None:
                return None
            return path if path.is_absolute() else (base / path).resolve()

        return BundleConfig(
            decompiled_jar=resolve(self.decompiled_jar),
            source_dir=resolve(self.source_dir),
            dev_bundle_file=resolve(self.output),
            minecraft_version=self.minecraft_version,
            server_url=self.server_url,
            mojang_mapped_paperclip_file=resolve(self.mojang_mapped_paperclip_file),
            mapped_server_coordinates=self.mapped_server_coordinates,
            api_coordinates=self.api_coordinates,
            mojang_api_coordinates=self.mojang_api_coordinates,
            project_version=self.project_version,
            build_data_dir=resolve(self.build_data_dir),
            spigot_class_mappings_file=resolve(self.spigot_class_mappings_file),
            spigot_member_mappings_file=resolve(self.spigot_member_mappings_file),
            spigot_at_file=resolve(self.spigot_at_file),
            reobf_mappings_file=resolve(self.reobf_mappings_file),
            param_mappings_url=self.param_mappings.url,
            param_mappings=list(self.param_mappings.dependencies),
            decompiler_url=self.decompiler.url,
            decompiler=list(self.decompiler.dependencies),
            decompiler_args=list(self.decompiler.args if self.decompiler.args is not None else DECOMPILER_ARGS),
            remapper_url=self.remapper.url,
            remapper=list(self.remapper.dependencies),
            remapper_args=list(self.remapper.args if self.remapper.args is not None else REMAPPER_ARGS),
            vanilla_jar_includes=list(self.vanilla_jar_includes),
            vanilla_server_libraries=list(self.vanilla_server_libraries),
            library_repositories=list(self.library_repositories),
            implementation_dependencies=list(self.implementation_dependencies),
            relocations=list(self.relocations),
            additional_spigot_class_mappings_file=resolve(self.additional_spigot_class_mappings_file),
            additional_spigot_member_mappings_file=resolve(self.additional_spigot_member_mappings_file),
            mappings_patch_file=resolve(self.mappings_patch_file),
            relocation_suffixes=tuple(self.relocation_suffixes),
            max_workers=self.max_workers,
        )


def load_settings(path: Path) -> BundleSettings:
    """Load bundle settings from YAML (``.yaml``/``.yml``) or JSON."""

    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() in {".yaml", ".yml"}:
        payload = yaml.safe_load(text) or {}
    else:
        payload = json.loads(text)
    return BundleSettings.model_validate(payload)


def load_bundle_config(path: Path) -> BundleConfig:
    path = path.resolve()
    return load_settings(path).to_config(path.parent)


__all__ = ["BundleSettings", "MavenSettings", "load_bundle_config", "load_settings"]
