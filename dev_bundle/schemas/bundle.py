"""Pydantic models describing dev bundle metadata."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel


class _BundleModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="forbid")


class Relocation(_BundleModel):
    """A package relocation applied to the server sources."""

    owning_library_coordinates: Optional[str] = Field(
        default=None,
        description="Library absorbed into the sources by this relocation.",
    )
    from_package: str = Field(..., min_length=1)
    to_package: str = Field(..., min_length=1)
    excludes: List[str] = Field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return self.from_package, self.to_package

    @property
    def from_dot(self) -> str:
        return self.from_package.replace("/", ".")

    @property
    def from_slash(self) -> str:
        return self.from_package.replace(".", "/")

    @property
    def to_dot(self) -> str:
        return self.to_package.replace("/", ".")

    @property
    def to_slash(self) -> str:
        return self.to_package.replace(".", "/")


_RELOCATIONS = TypeAdapter(List[Relocation])


def parse_relocations(text: str) -> List[Relocation]:
    """Parse the JSON list form relocations are passed around in."""

    if not text.strip():
        return []
    return _RELOCATIONS.validate_json(text)


def dump_relocations(relocations: List[Relocation]) -> str:
    return _RELOCATIONS.dump_json(relocations, by_alias=True, exclude_none=True).decode("utf-8")


class MavenDep(_BundleModel):
    url: str
    coordinates: List[str] = Field(default_factory=list)


class Runner(_BundleModel):
    dep: MavenDep
    args: List[str] = Field(default_factory=list)


class SpigotData(_BundleModel):
    ref: str = Field(..., description="Commit hash of the build-data checkout.")
    checkout_url: str
    class_mappings_file: str
    member_mappings_file: str
    at_file: str


class BuildData(_BundleModel):
    param_mappings: MavenDep
    additional_spigot_class_mappings_file: Optional[str] = None
    additional_spigot_member_mappings_file: Optional[str] = None
    mappings_patch_file: Optional[str] = None
    reobf_mappings_file: str
    server_url: str
    mojang_mapped_paperclip_file: str
    vanilla_jar_includes: List[str] = Field(default_factory=list)
    library_dependencies: List[str] = Field(default_factory=list)
    library_repositories: List[str] = Field(default_factory=list)
    api_coordinates: str
    mojang_api_coordinates: str
    relocations: List[Relocation] = Field(default_factory=list)


class BundleManifest(_BundleModel):
    """The ``config.json`` document stored at the root of a dev bundle."""

    minecraft_version: str
    mapped_server_coordinates: str
    spigot_data: SpigotData
    build_data: BuildData
    decompile: Runner
    remap: Runner
    patch_dir: str

    def local_references(self) -> List[str]:
        """Archive-relative paths this manifest expects to find in the bundle."""

        build_data = self.build_data
        candidates = [
            build_data.additional_spigot_class_mappings_file,
            build_data.additional_spigot_member_mappings_file,
            build_data.mappings_patch_file,
            build_data.reobf_mappings_file,
            build_data.mojang_mapped_paperclip_file,
        ]
        return [path for path in candidates if path is not None]


class VersionConstraint(_BundleModel):
    strict: Optional[str] = None
    required: Optional[str] = None
    preferred: Optional[str] = None


class DependencyDeclaration(_BundleModel):
    """A declared dependency as the build tool reports it."""

    group: Optional[str] = None
    name: Optional[str] = None
    version: Optional[str] = None
    classifier: Optional[str] = None
    version_constraint: VersionConstraint = Field(default_factory=VersionConstraint)
    project: bool = Field(default=False, description="True for dependencies on other modules of the same build.")

    @property
    def external(self) -> bool:
        return not self.project
