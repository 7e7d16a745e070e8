"""Classify staged files against the decompiled baseline and emit patches."""

from __future__ import annotations

import logging
import shutil
import zipfile
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from dataclasses import dataclass, field
from difflib import unified_diff
from enum import Enum
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Protocol

from ..errors import DiffError
from .utils import write_text

logger = logging.getLogger(__name__)

CONTEXT_LINES = 3
PATCH_SUFFIX = ".patch"
_NO_NEWLINE = "\\ No newline at end of file\n"


class FileClassification(str, Enum):
    NEW = "new"
    PATCHED = "patched"
    UNCHANGED = "unchanged"


@dataclass(slots=True)
class DiffEntry:
    relative_path: str
    classification: FileClassification
    output_path: Optional[str] = None


@dataclass(slots=True)
class DiffReport:
    entries: List[DiffEntry] = field(default_factory=list)

    def by_classification(self, classification: FileClassification) -> List[DiffEntry]:
        return [entry for entry in self.entries if entry.classification is classification]

    def counts(self) -> Dict[str, int]:
        counts = {classification.value: 0 for classification in FileClassification}
        for entry in self.entries:
            counts[entry.classification.value] += 1
        return counts


class BaselineTree(Protocol):
    """Read-only view over the decompiled sources."""

    def read(self, relative_path: str) -> Optional[bytes]:  # pragma: no cover - interface
        ...


class DirectoryBaseline:
    def __init__(self, root: Path) -> None:
        self.root = root

    def read(self, relative_path: str) -> Optional[bytes]:
        candidate = self.root / relative_path
        if not candidate.is_file():
            return None
        return candidate.read_bytes()


class ArchiveBaseline:
    def __init__(self, archive: zipfile.ZipFile) -> None:
        self.archive = archive
        self._names = {name for name in archive.namelist() if not name.endswith("/")}

    def read(self, relative_path: str) -> Optional[bytes]:
        if relative_path not in self._names:
            return None
        return self.archive.read(relative_path)


@contextmanager
def open_baseline(path: Path) -> Iterator[BaselineTree]:
    """Open the decompiled baseline, either an extracted directory or a jar/zip."""

    if path.is_dir():
        yield DirectoryBaseline(path)
        return
    if not path.exists():
        raise FileNotFoundError(f"Baseline not found: {path}")
    with zipfile.ZipFile(path) as archive:
        yield ArchiveBaseline(archive)


def _decode(data: bytes, label: str) -> str:
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DiffError(f"Cannot diff {label}: content is not valid UTF-8") from exc
    return text.replace("\r\n", "\n")


def unified_diff_text(original: str, modified: str, relative_path: str) -> str:
    """Return ``diff -u`` output between two texts, or an empty string when equal.

    Line endings are normalised to LF and a missing trailing newline is marked
    the way GNU diff marks it, so the result applies with ``patch``/``git apply``.
    """

    original = original.replace("\r\n", "\n")
    modified = modified.replace("\r\n", "\n")
    if original == modified:
        return ""

    lines = []
    for line in unified_diff(
        original.splitlines(keepends=True),
        modified.splitlines(keepends=True),
        fromfile=f"a/{relative_path}",
        tofile=f"b/{relative_path}",
        n=CONTEXT_LINES,
    ):
        if line.endswith("\n"):
            lines.append(line)
        else:
            lines.append(line + "\n")
            lines.append(_NO_NEWLINE)
    return "".join(lines)


class TreeDiffer:
    """Diffs a staged source tree against the baseline.

    Every regular file ends up in exactly one classification: files missing
    from the baseline are copied verbatim, files that differ produce a
    ``.patch`` next to their relative path, identical files produce nothing.
    """

    def __init__(self, *, max_workers: Optional[int] = None) -> None:
        self.max_workers = max_workers

    def diff(self, source_root: Path, baseline: BaselineTree, output_root: Path) -> DiffReport:
        if not source_root.is_dir():
            raise FileNotFoundError(f"Source tree not found: {source_root}")

        files = sorted(
            (path for path in source_root.rglob("*") if path.is_file()),
            key=lambda path: path.relative_to(source_root).as_posix(),
        )

        def compute(path: Path) -> tuple[Path, str, Optional[str]]:
            relative = path.relative_to(source_root).as_posix()
            original = baseline.read(relative)
            if original is None:
                return path, relative, None
            return path, relative, unified_diff_text(
                _decode(original, f"a/{relative}"),
                _decode(path.read_bytes(), f"b/{relative}"),
                relative,
            )

        if self.max_workers and self.max_workers > 1:
            with ThreadPoolExecutor(max_workers=self.max_workers) as pool:
                results = list(pool.map(compute, files))
        else:
            results = [compute(path) for path in files]

        report = DiffReport()
        for path, relative, diff_text in results:
            report.entries.append(self._emit(path, relative, diff_text, output_root))

        counts = report.counts()
        logger.info(
            "Diffed %d files: %d new, %d patched, %d unchanged",
            len(report.entries),
            counts[FileClassification.NEW.value],
            counts[FileClassification.PATCHED.value],
            counts[FileClassification.UNCHANGED.value],
        )
        return report

    def _emit(self, path: Path, relative: str, diff_text: Optional[str], output_root: Path) -> DiffEntry:
        if diff_text is None:
            target = output_root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(path, target)
            logger.debug("New file %s", relative)
            return DiffEntry(relative, FileClassification.NEW, relative)

        if not diff_text.strip():
            logger.debug("Unchanged file %s", relative)
            return DiffEntry(relative, FileClassification.UNCHANGED)

        patch_name = relative + PATCH_SUFFIX
        write_text(output_root / patch_name, diff_text, newline="\n")
        logger.debug("Patched file %s", relative)
        return DiffEntry(relative, FileClassification.PATCHED, patch_name)


__all__ = [
    "ArchiveBaseline",
    "BaselineTree",
    "DiffEntry",
    "DiffReport",
    "DirectoryBaseline",
    "FileClassification",
    "TreeDiffer",
    "open_baseline",
    "unified_diff_text",
]
