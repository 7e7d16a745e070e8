"""Shared helpers used by bundle tooling."""

from __future__ import annotations

import hashlib
import shutil
import zipfile
from pathlib import Path
from typing import Optional


def compute_sha256(path: Path) -> str:
    """Return the SHA-256 checksum for a file."""

    digest = hashlib.sha256()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(1024 * 1024), b""):
            digest.update(chunk)
    return digest.hexdigest()


def write_text(path: Path, content: str, *, newline: Optional[str] = None) -> None:
    """Write text to file ensuring parent directories exist."""

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8", newline=newline)


def copy_tree(source: Path, destination: Path) -> None:
    """Copy the contents of ``source`` into ``destination``."""

    if not source.is_dir():
        raise FileNotFoundError(f"Source directory not found: {source}")
    shutil.copytree(source, destination, dirs_exist_ok=True)


# Fixed entry timestamps keep archives byte-identical across runs.
ZIP_TIMESTAMP = (1980, 1, 1, 0, 0, 0)


def write_zip_entry(archive: zipfile.ZipFile, arcname: str, data: bytes) -> None:
    info = zipfile.ZipInfo(arcname, date_time=ZIP_TIMESTAMP)
    info.compress_type = zipfile.ZIP_DEFLATED
    info.external_attr = 0o644 << 16
    archive.writestr(info, data)


def add_tree_to_zip(archive: zipfile.ZipFile, root: Path, prefix: str) -> int:
    """Add every file below ``root`` to ``archive`` under ``prefix``; returns the file count."""

    count = 0
    for path in sorted(root.rglob("*"), key=lambda item: item.relative_to(root).as_posix()):
        if not path.is_file():
            continue
        write_zip_entry(archive, f"{prefix}/{path.relative_to(root).as_posix()}", path.read_bytes())
        count += 1
    return count
