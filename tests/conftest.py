from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace
from typing import Callable, Dict

import pytest

from dev_bundle.bundle.builder import BundleConfig
from dev_bundle.schemas.bundle import DependencyDeclaration

REMOTE_URL = "https://hub.spigotmc.org/stash/scm/spigot/builddata.git"
COMMIT = "a1b2c3d4e5f60718293a4b5c6d7e8f9012345678"


@pytest.fixture
def fake_git(monkeypatch: pytest.MonkeyPatch) -> list:
    """Answer the two git queries used for provenance without a real checkout."""

    calls: list = []

    def _fake(args, *, cwd):
        calls.append((tuple(args), Path(cwd)))
        if "rev-parse" in args:
            return SimpleNamespace(stdout=f"{COMMIT}\n")
        if "get-url" in args:
            return SimpleNamespace(stdout=f"  {REMOTE_URL}\n")
        return SimpleNamespace(stdout="")

    import dev_bundle.bundle.vcs as vcs_mod

    monkeypatch.setattr(vcs_mod, "_run_git_command", _fake)
    return calls


def write_files(root: Path, files: Dict[str, str]) -> None:
    for relative, content in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content.encode("utf-8"))


@pytest.fixture
def make_config(tmp_path: Path) -> Callable[..., BundleConfig]:
    """Build a BundleConfig with every required input present on disk."""

    def _make(
        *,
        baseline: Dict[str, str] | None = None,
        sources: Dict[str, str] | None = None,
        **overrides: object,
    ) -> BundleConfig:
        baseline_dir = tmp_path / "decompiled"
        source_dir = tmp_path / "src"
        baseline_dir.mkdir(exist_ok=True)
        source_dir.mkdir(exist_ok=True)
        write_files(baseline_dir, baseline or {})
        write_files(source_dir, sources or {})

        build_data = tmp_path / "BuildData"
        write_files(
            build_data,
            {
                "mappings/bukkit-cl.csrg": "a net/minecraft/A\n",
                "mappings/bukkit-members.csrg": "a b c\n",
                "mappings/bukkit.at": "public net/minecraft/A\n",
            },
        )
        reobf = tmp_path / "reobf.tiny"
        reobf.write_text("tiny\t2\t0\tmojang+yarn\tspigot\n", encoding="utf-8")
        paperclip = tmp_path / "paperclip.jar"
        paperclip.write_bytes(b"PK\x05\x06" + b"\x00" * 18)

        values: Dict[str, object] = dict(
            decompiled_jar=baseline_dir,
            source_dir=source_dir,
            dev_bundle_file=tmp_path / "out" / "dev-bundle.zip",
            minecraft_version="1.17.1",
            server_url="https://launcher.mojang.com/v1/objects/abc/server.jar",
            mojang_mapped_paperclip_file=paperclip,
            mapped_server_coordinates="io.papermc.paper:paper-server:userdev-1.17.1-R0.1-SNAPSHOT",
            api_coordinates="io.papermc.paper:paper-api",
            mojang_api_coordinates="io.papermc.paper:paper-mojangapi",
            project_version="1.17.1-R0.1-SNAPSHOT",
            build_data_dir=build_data,
            spigot_class_mappings_file=build_data / "mappings" / "bukkit-cl.csrg",
            spigot_member_mappings_file=build_data / "mappings" / "bukkit-members.csrg",
            spigot_at_file=build_data / "mappings" / "bukkit.at",
            reobf_mappings_file=reobf,
            param_mappings_url="https://maven.fabricmc.net/",
            param_mappings=[
                DependencyDeclaration(group="net.fabricmc", name="yarn", version="1.17.1+build.29", classifier="mergedv2")
            ],
            decompiler_url="https://files.minecraftforge.net/maven/",
            decompiler=[DependencyDeclaration(group="net.minecraftforge", name="forgeflower", version="1.5.498.12")],
            remapper_url="https://maven.fabricmc.net/",
            remapper=[
                DependencyDeclaration(group="net.fabricmc", name="tiny-remapper", version="0.6.0", classifier="fat")
            ],
            vanilla_jar_includes=["/*.class", "/net/minecraft/**"],
            vanilla_server_libraries=["com.mojang:brigadier:1.0.18", "com.google.guava:guava:21.0"],
            library_repositories=["https://repo.maven.apache.org/maven2/", "https://libraries.minecraft.net/"],
        )
        values.update(overrides)
        return BundleConfig(**values)  # type: ignore[arg-type]

    return _make
