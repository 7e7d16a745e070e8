"""Command-line entry point for dev bundle generation."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Mapping, Optional, Sequence

from pydantic import ValidationError

from dev_bundle.bundle.builder import DevBundleBuilder
from dev_bundle.bundle.manifest import load_manifest, verify_archive
from dev_bundle.errors import DevBundleError
from dev_bundle.relocation import DEFAULT_SUFFIXES, RelocationRewriter
from dev_bundle.schemas.bundle import parse_relocations
from dev_bundle.settings import load_settings


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    try:
        if args.command == "generate":
            return _handle_generate(args)
        if args.command == "manifest":
            if args.manifest_command == "show":
                return _handle_manifest_show(args)
            if args.manifest_command == "validate":
                return _handle_manifest_validate(args)
            parser.error("manifest command requires a subcommand")
        if args.command == "relocate":
            return _handle_relocate(args)
    except (DevBundleError, ValidationError, OSError) as exc:
        _print_json({"status": "error", "error": str(exc)})
        return 2

    parser.error(f"Unknown command '{args.command}'")
    return 1


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="dev-bundle", description="Dev bundle generation helpers.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate", help="Generate a dev bundle archive.")
    generate.add_argument("--config", required=True, help="YAML or JSON settings file.")
    generate.add_argument("--output", help="Override the archive path from the settings file.")
    generate.add_argument("--workers", type=int, help="Threads used for diffing.")
    generate.add_argument("--workspace-root")

    manifest = subparsers.add_parser("manifest", help="Manifest utilities.")
    manifest_sub = manifest.add_subparsers(dest="manifest_command", required=True)
    manifest_show = manifest_sub.add_parser("show", help="Print config.json from a bundle or an extracted manifest.")
    manifest_show.add_argument("--archive", required=True)
    manifest_show.add_argument("--workspace-root")
    manifest_validate = manifest_sub.add_parser("validate", help="Check manifest references against the archive.")
    manifest_validate.add_argument("--archive", required=True)
    manifest_validate.add_argument("--workspace-root")

    relocate = subparsers.add_parser("relocate", help="Reverse relocations in a source tree in place.")
    relocate.add_argument("--relocations", required=True, help="JSON file or inline JSON list of relocations.")
    relocate.add_argument("--dir", required=True)
    relocate.add_argument("--suffix", action="append", help="Rewritten file suffix (repeatable).")
    relocate.add_argument("--workspace-root")

    return parser


def _handle_generate(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    settings_path = _resolve_path(args.config, workspace)
    config = load_settings(settings_path).to_config(settings_path.parent)
    if args.output:
        config.dev_bundle_file = _resolve_path(args.output, workspace)
    if args.workers:
        config.max_workers = args.workers

    result = DevBundleBuilder().build(config)
    payload = {
        "status": "ok",
        "archive_path": str(result.archive_path),
        "checksum": {"sha256": result.sha256},
        "files": result.report.counts(),
        "manifest": json.loads(result.manifest.model_dump_json(by_alias=True, exclude_none=True)),
        "logs": [f"Archive written to {result.archive_path}"],
    }
    _print_json(payload)
    return 0


def _handle_manifest_show(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    archive_path = _resolve_path(args.archive, workspace)
    manifest = load_manifest(archive_path)
    _print_json(json.loads(manifest.model_dump_json(by_alias=True, exclude_none=True)))
    return 0


def _handle_manifest_validate(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    archive_path = _resolve_path(args.archive, workspace)

    errors: List[str] = []
    if not archive_path.exists():
        errors.append(f"Archive not found: {archive_path}")
    else:
        errors.extend(verify_archive(archive_path))

    payload = {
        "archive_path": str(archive_path),
        "valid": not errors,
        "errors": errors,
    }
    _print_json(payload)
    return 0


def _handle_relocate(args: argparse.Namespace) -> int:
    workspace = _resolve_workspace(args.workspace_root)
    if args.relocations.lstrip().startswith("["):
        relocations = parse_relocations(args.relocations)
    else:
        relocations_path = _resolve_path(args.relocations, workspace)
        relocations = parse_relocations(relocations_path.read_text(encoding="utf-8"))

    root = _resolve_path(args.dir, workspace)
    if not root.is_dir():
        raise FileNotFoundError(f"Source directory not found: {root}")
    rewriter = RelocationRewriter(relocations, suffixes=tuple(args.suffix or DEFAULT_SUFFIXES))
    report = rewriter.apply(root)
    _print_json(
        {
            "status": "ok",
            "root": str(root),
            "rewritten": report.rewritten,
            "moved": [{"from": source, "to": target} for source, target in report.moved],
        }
    )
    return 0


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _resolve_workspace(value: Optional[str]) -> Path:
    return Path(value).resolve() if value else Path.cwd()


def _resolve_path(value: str, workspace: Path) -> Path:
    path = Path(value)
    if not path.is_absolute():
        path = workspace / path
    return path.resolve()


def _print_json(payload: Mapping[str, object]) -> None:
    print(json.dumps(payload, indent=2, default=str))


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
