"""Reverse package relocations in a staged source tree."""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass, field
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .errors import RelocationError
from .schemas.bundle import Relocation

logger = logging.getLogger(__name__)

DEFAULT_SUFFIXES = (".java",)

# Private-use code points never occur in package names, so a placeholder
# cannot be matched by any rule's "to" text.
_OPEN = "\ue000"
_CLOSE = "\ue001"


@dataclass(slots=True)
class RelocationReport:
    """Relative paths touched by a relocation pass."""

    rewritten: List[str] = field(default_factory=list)
    moved: List[tuple[str, str]] = field(default_factory=list)


@dataclass(frozen=True)
class _Placeholders:
    relocation: Relocation
    dot: str
    slash: str


def _placeholders(relocations: Sequence[Relocation]) -> List[_Placeholders]:
    tokens = []
    for index, relocation in enumerate(relocations):
        digest = hashlib.sha1(f"{relocation.from_package}\0{relocation.to_package}".encode("utf-8")).hexdigest()
        token = f"{index}:{int(digest[:12], 16)}"
        tokens.append(
            _Placeholders(
                relocation=relocation,
                dot=f"{_OPEN}.{token}{_CLOSE}",
                slash=f"{_OPEN}/{token}{_CLOSE}",
            )
        )
    return tokens


def match_path(pattern: str, path: str) -> bool:
    """Ant-style path match: ``**`` spans directories, ``*``/``?`` stay in one segment."""

    if pattern.endswith("/"):
        pattern += "**"
    pattern_parts = [part for part in pattern.split("/") if part]
    path_parts = [part for part in path.split("/") if part]
    if pattern.startswith("/") != path.startswith("/"):
        return False
    return _match_segments(pattern_parts, path_parts)


def _match_segments(pattern: Sequence[str], path: Sequence[str]) -> bool:
    if not pattern:
        return not path
    head = pattern[0]
    if head == "**":
        rest = pattern[1:]
        return any(_match_segments(rest, path[skip:]) for skip in range(len(path) + 1))
    if not path:
        return False
    return fnmatchcase(path[0], head) and _match_segments(pattern[1:], path[1:])


def is_excluded(relocation: Relocation, relative_path: str) -> bool:
    return any(match_path(exclude.replace(".", "/"), relative_path) for exclude in relocation.excludes)


class RelocationRewriter:
    """Rewrites relocated namespaces back to their original form.

    Text is rewritten in two passes: every rule's relocated form is first
    swapped for a placeholder unique to that rule, and only once all rules
    have been neutralised are the placeholders replaced with the original
    namespaces. Rules whose targets overlap therefore never rewrite each
    other's output.
    """

    def __init__(self, relocations: Iterable[Relocation], *, suffixes: Sequence[str] = DEFAULT_SUFFIXES) -> None:
        self.relocations = list(relocations)
        self.suffixes = tuple(suffixes)
        placeholders = _placeholders(self.relocations)
        # Longest target first so a nested target is not swallowed by its parent.
        self._neutralise_order = sorted(placeholders, key=lambda item: -len(item.relocation.to_dot))
        self._restore_order = placeholders

    def rewrite_text(self, content: str) -> str:
        for item in self._neutralise_order:
            content = content.replace(item.relocation.to_dot, item.dot)
            content = content.replace(item.relocation.to_slash, item.slash)
        for item in self._restore_order:
            content = content.replace(item.dot, item.relocation.from_dot)
            content = content.replace(item.slash, item.relocation.from_slash)
        return content

    def rewrite_file(self, path: Path) -> bool:
        try:
            original = path.read_bytes().decode("utf-8")
        except UnicodeDecodeError as exc:
            raise RelocationError(f"Cannot rewrite {path}: content is not valid UTF-8") from exc
        updated = self.rewrite_text(original)
        if updated == original:
            return False
        path.write_bytes(updated.encode("utf-8"))
        return True

    def destination_for(self, relative_path: str) -> Optional[str]:
        """Return the restored relative path, or ``None`` when the file stays put."""

        for relocation in self.relocations:
            prefix = relocation.to_slash
            if not relative_path.startswith(prefix):
                continue
            if is_excluded(relocation, relative_path):
                return None
            return relocation.from_slash + relative_path[len(prefix):]
        return None

    def apply(self, root: Path) -> RelocationReport:
        """Rewrite file contents and move relocated files under ``root`` in place."""

        if not self.relocations:
            return RelocationReport()

        files = self._candidate_files(root)
        rewritten = [path for path in files if self.rewrite_file(path)]
        moved = self._move_files(root, files)
        logger.info(
            "Reversed %d relocations under %s: %d files rewritten, %d moved",
            len(self.relocations),
            root,
            len(rewritten),
            len(moved),
        )
        return RelocationReport(
            rewritten=[path.relative_to(root).as_posix() for path in rewritten],
            moved=moved,
        )

    def _candidate_files(self, root: Path) -> List[Path]:
        return sorted(
            (path for path in root.rglob("*") if path.is_file() and path.name.endswith(self.suffixes)),
            key=lambda path: path.relative_to(root).as_posix(),
        )

    def _move_files(self, root: Path, files: Sequence[Path]) -> List[tuple[str, str]]:
        moved: List[tuple[str, str]] = []
        for path in files:
            relative = path.relative_to(root).as_posix()
            target = self.destination_for(relative)
            if target is None or target == relative:
                continue
            destination = root / target
            if destination.exists():
                logger.warning("Relocated file %s overwrites existing %s", relative, target)
            destination.parent.mkdir(parents=True, exist_ok=True)
            path.replace(destination)
            logger.debug("Moved %s -> %s", relative, target)
            moved.append((relative, target))
        return moved


__all__ = ["DEFAULT_SUFFIXES", "RelocationReport", "RelocationRewriter", "is_excluded", "match_path"]
