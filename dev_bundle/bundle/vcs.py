"""Read build-data provenance from its git checkout."""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import List

from ..errors import VcsError
from ..schemas.bundle import SpigotData


def _run_git_command(args: List[str], *, cwd: Path) -> subprocess.CompletedProcess:
    return subprocess.run(
        args,
        cwd=str(cwd),
        check=True,
        text=True,
        capture_output=True,
    )


def git_output(directory: Path, *args: str) -> str:
    command = ["git", *args]
    try:
        proc = _run_git_command(command, cwd=directory)
    except FileNotFoundError as exc:
        raise VcsError(f"Unable to run git in {directory}: {exc}") from exc
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip()
        raise VcsError(f"'{' '.join(command)}' failed in {directory}: {detail}") from exc
    return proc.stdout.strip()


def _relative(path: Path, root: Path) -> str:
    return Path(path).relative_to(root).as_posix()


def read_spigot_data(
    build_data_dir: Path,
    *,
    class_mappings_file: Path,
    member_mappings_file: Path,
    at_file: Path,
) -> SpigotData:
    """Describe the build-data checkout the bundle was produced from."""

    if not build_data_dir.is_dir():
        raise VcsError(f"Build data directory not found: {build_data_dir}")
    return SpigotData(
        ref=git_output(build_data_dir, "rev-parse", "HEAD"),
        checkout_url=git_output(build_data_dir, "remote", "get-url", "origin"),
        class_mappings_file=_relative(class_mappings_file, build_data_dir),
        member_mappings_file=_relative(member_mappings_file, build_data_dir),
        at_file=_relative(at_file, build_data_dir),
    )


__all__ = ["git_output", "read_spigot_data"]
