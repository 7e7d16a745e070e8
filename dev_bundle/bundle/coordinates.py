"""Maven coordinate helpers for dependency declarations."""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence

from ..errors import CoordinateError
from ..schemas.bundle import DependencyDeclaration, MavenDep, Relocation

logger = logging.getLogger(__name__)


def select_version(*candidates: Optional[str]) -> str:
    """Return the first non-blank version among ``candidates``."""

    for candidate in candidates:
        if candidate is not None and candidate.strip():
            return candidate
    raise CoordinateError("No usable version among candidates")


def declared_version(dependency: DependencyDeclaration) -> str:
    constraint = dependency.version_constraint
    try:
        return select_version(constraint.strict, constraint.required, constraint.preferred, dependency.version)
    except CoordinateError as exc:
        raise CoordinateError(f"No version declared for {dependency.group}:{dependency.name}") from exc


def format_coordinates(dependency: DependencyDeclaration) -> str:
    """Join ``group:name:version[:classifier]``; empty parts are dropped."""

    parts = (
        ("group", dependency.group),
        ("name", dependency.name),
        ("version", dependency.version),
        ("classifier", dependency.classifier or ""),
    )
    for label, value in parts:
        if value is None:
            raise CoordinateError(f"No {label}: {dependency.model_dump(exclude_none=True)}")
    return ":".join(value for _, value in parts if value)


def determine_maven_dep(url: str, configuration: Iterable[DependencyDeclaration]) -> MavenDep:
    return MavenDep(url=url, coordinates=[format_coordinates(dep) for dep in configuration])


def resolve_libraries(
    vanilla_libraries: Sequence[str],
    dependencies: Iterable[DependencyDeclaration],
    relocations: Iterable[Relocation],
) -> List[str]:
    """Libraries the bundle consumer must resolve externally.

    Combines the vanilla server libraries with the project's external
    implementation dependencies, then drops libraries whose classes were
    relocated into the server sources.
    """

    result = dict.fromkeys(vanilla_libraries)
    for dependency in dependencies:
        if not dependency.external:
            continue
        if dependency.group is None or dependency.name is None:
            raise CoordinateError(f"Incomplete coordinates: {dependency.model_dump(exclude_none=True)}")
        version = declared_version(dependency)
        result[f"{dependency.group}:{dependency.name}:{version}"] = None

    owned = [relocation.owning_library_coordinates for relocation in relocations if relocation.owning_library_coordinates]
    libraries = []
    for coordinates in result:
        if any(coordinates.startswith(prefix) for prefix in owned):
            logger.debug("Dropping relocated library %s", coordinates)
            continue
        libraries.append(coordinates)
    return libraries


__all__ = [
    "declared_version",
    "determine_maven_dep",
    "format_coordinates",
    "resolve_libraries",
    "select_version",
]
