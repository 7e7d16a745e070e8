from __future__ import annotations

import re
import zipfile
from pathlib import Path

import pytest

from dev_bundle.bundle.differ import (
    DirectoryBaseline,
    FileClassification,
    TreeDiffer,
    open_baseline,
    unified_diff_text,
)
from dev_bundle.errors import DiffError

from .conftest import write_files

_HUNK = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")


def _apply_patch(original: str, patch: str) -> str:
    """Minimal unified-diff applier used to check generated patches."""

    source = original.splitlines(keepends=True)
    lines = patch.splitlines(keepends=True)
    assert lines[0].startswith("--- a/") and lines[1].startswith("+++ b/")
    result: list[str] = []
    position = 0
    last_tag = ""
    for line in lines[2:]:
        match = _HUNK.match(line)
        if match:
            start, length = int(match.group(1)), int(match.group(2) or "1")
            hunk_start = start - 1 if length else start
            result.extend(source[position:hunk_start])
            position = hunk_start
            continue
        if line.startswith("\\"):
            if last_tag == "+":
                result[-1] = result[-1].rstrip("\n")
            continue
        last_tag, body = line[0], line[1:]
        if last_tag == " ":
            assert source[position].rstrip("\n") == body.rstrip("\n")
            result.append(source[position])
            position += 1
        elif last_tag == "-":
            assert source[position].rstrip("\n") == body.rstrip("\n")
            position += 1
        else:
            result.append(body)
    result.extend(source[position:])
    return "".join(result)


def test_unified_diff_text_format() -> None:
    diff = unified_diff_text("class Foo {\n}\n", "class Foo {\n    int x;\n}\n", "net/minecraft/Foo.java")

    assert diff == (
        "--- a/net/minecraft/Foo.java\n"
        "+++ b/net/minecraft/Foo.java\n"
        "@@ -1,2 +1,3 @@\n"
        " class Foo {\n"
        "+    int x;\n"
        " }\n"
    )


def test_identical_and_line_ending_only_changes_are_empty() -> None:
    assert unified_diff_text("a\nb\n", "a\nb\n", "f.java") == ""
    assert unified_diff_text("a\r\nb\r\n", "a\nb\n", "f.java") == ""


def test_missing_trailing_newline_is_marked() -> None:
    diff = unified_diff_text("a\nb", "a\nc\n", "f.java")

    assert diff.endswith("-b\n\\ No newline at end of file\n+c\n")
    assert _apply_patch("a\nb", diff) == "a\nc\n"


@pytest.mark.parametrize(
    ("original", "modified"),
    [
        ("class Foo {}\n", "class Foo { int x; }\n"),
        ("".join(f"line {i}\n" for i in range(40)), "".join(f"line {i}\n" for i in range(40) if i not in (3, 30)) + "tail\n"),
        ("head\n" + "same\n" * 10 + "end\n", "head\n" + "same\n" * 10 + "end"),
        ("only\n", ""),
    ],
)
def test_generated_patch_reproduces_modified_text(original: str, modified: str) -> None:
    diff = unified_diff_text(original, modified, "Foo.java")

    assert diff.count("@@ -") >= 1
    assert _apply_patch(original, diff) == modified


def test_tree_differ_classifies_every_file(tmp_path: Path) -> None:
    baseline = tmp_path / "baseline"
    source = tmp_path / "source"
    output = tmp_path / "patches"
    write_files(
        baseline,
        {
            "Foo.java": "class Foo {}\n",
            "pkg/Same.java": "class Same {}\n",
            "pkg/sub/Deep.java": "class Deep {\n}\n",
            "Unused.java": "class Unused {}\n",
        },
    )
    write_files(
        source,
        {
            "Foo.java": "class Foo {}\nclass FooExtra {}\n",
            "Bar.java": "class Bar {}\n",
            "pkg/Same.java": "class Same {}\n",
            "pkg/sub/Deep.java": "class Deep {\n    int depth;\n}\n",
        },
    )

    report = TreeDiffer().diff(source, DirectoryBaseline(baseline), output)

    classes = {entry.relative_path: entry.classification for entry in report.entries}
    assert classes == {
        "Bar.java": FileClassification.NEW,
        "Foo.java": FileClassification.PATCHED,
        "pkg/Same.java": FileClassification.UNCHANGED,
        "pkg/sub/Deep.java": FileClassification.PATCHED,
    }
    written = {path.relative_to(output).as_posix() for path in output.rglob("*") if path.is_file()}
    assert written == {entry.output_path for entry in report.entries if entry.output_path}
    assert written == {"Bar.java", "Foo.java.patch", "pkg/sub/Deep.java.patch"}
    assert not (output / "pkg" / "Same.java.patch").exists()
    assert (output / "Bar.java").read_text(encoding="utf-8") == "class Bar {}\n"
    assert report.counts() == {"new": 1, "patched": 2, "unchanged": 1}


def test_patch_files_use_lf_and_apply_cleanly(tmp_path: Path) -> None:
    write_files(tmp_path / "baseline", {"Foo.java": "class Foo {\r\n}\r\n"})
    write_files(tmp_path / "source", {"Foo.java": "class Foo {\r\n    int x;\r\n}\r\n"})

    TreeDiffer().diff(tmp_path / "source", DirectoryBaseline(tmp_path / "baseline"), tmp_path / "out")

    patch = (tmp_path / "out" / "Foo.java.patch").read_bytes().decode("utf-8")
    assert "\r" not in patch
    assert "+    int x;\n" in patch
    assert _apply_patch("class Foo {\n}\n", patch) == "class Foo {\n    int x;\n}\n"


def test_tree_differ_reads_zip_baseline(tmp_path: Path) -> None:
    jar = tmp_path / "decompiled.jar"
    with zipfile.ZipFile(jar, "w") as archive:
        archive.writestr("net/minecraft/", "")
        archive.writestr("net/minecraft/Foo.java", "class Foo {}\n")
    write_files(
        tmp_path / "source",
        {"net/minecraft/Foo.java": "class Foo { int x; }\n", "io/papermc/Bar.java": "class Bar {}\n"},
    )

    with open_baseline(jar) as baseline:
        report = TreeDiffer().diff(tmp_path / "source", baseline, tmp_path / "out")

    assert [entry.classification for entry in report.entries] == [
        FileClassification.NEW,
        FileClassification.PATCHED,
    ]
    assert (tmp_path / "out" / "net/minecraft/Foo.java.patch").exists()
    assert (tmp_path / "out" / "io/papermc/Bar.java").exists()


def test_parallel_diff_matches_sequential(tmp_path: Path) -> None:
    baseline = {f"p/F{i}.java": f"class F{i} {{}}\n" for i in range(12)}
    sources = {f"p/F{i}.java": f"class F{i} {{ int v{i % 3}; }}\n" if i % 2 else baseline[f"p/F{i}.java"] for i in range(12)}
    write_files(tmp_path / "baseline", baseline)
    write_files(tmp_path / "source", sources)

    sequential = TreeDiffer().diff(tmp_path / "source", DirectoryBaseline(tmp_path / "baseline"), tmp_path / "seq")
    parallel = TreeDiffer(max_workers=4).diff(tmp_path / "source", DirectoryBaseline(tmp_path / "baseline"), tmp_path / "par")

    assert sequential.entries == parallel.entries
    for entry in sequential.by_classification(FileClassification.PATCHED):
        assert (tmp_path / "seq" / entry.output_path).read_bytes() == (tmp_path / "par" / entry.output_path).read_bytes()


def test_undecodable_content_aborts(tmp_path: Path) -> None:
    (tmp_path / "baseline").mkdir()
    (tmp_path / "baseline" / "Foo.java").write_bytes(b"\xff\xfe\x00")
    write_files(tmp_path / "source", {"Foo.java": "class Foo {}\n"})

    with pytest.raises(DiffError, match="a/Foo.java"):
        TreeDiffer().diff(tmp_path / "source", DirectoryBaseline(tmp_path / "baseline"), tmp_path / "out")


def test_missing_inputs_raise(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        TreeDiffer().diff(tmp_path / "missing", DirectoryBaseline(tmp_path), tmp_path / "out")
    with pytest.raises(FileNotFoundError):
        with open_baseline(tmp_path / "missing.jar"):
            pass
