from __future__ import annotations

from pathlib import Path

import pytest
from typer.testing import CliRunner

from docsmith.ui.cli import app


@pytest.fixture(autouse=True)
def _chdir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.chdir(tmp_path)


def _doc(tmp_path: Path, name: str = "doc.md", front: str = "title: Doc\n") -> Path:
    path = tmp_path / name
    path.write_text(f"---\n{front}---\n\n# Heading\n", encoding="utf-8")
    return path


def test_render_reports_output(fake_converter, tmp_path: Path) -> None:
    fake_converter()
    doc = _doc(tmp_path)

    result = CliRunner().invoke(app, ["render", str(doc)])

    assert result.exit_code == 0, result.output
    assert "Output created" in result.output
    assert (tmp_path / "doc.html").is_file()


def test_render_passes_flags(fake_converter, tmp_path: Path) -> None:
    converter = fake_converter()
    doc = _doc(tmp_path, front="format: [html, docx]\n")

    result = CliRunner().invoke(
        app,
        ["render", str(doc), "--to", "docx", "-M", "subtitle=Flagged", "--self-contained", "--quiet"],
    )

    assert result.exit_code == 0, result.output
    assert "Output created" not in result.output
    assert len(converter.calls) == 1
    assert "--to=docx" in converter.calls[0]
    assert "subtitle: Flagged" in converter.inputs[0]
    assert (tmp_path / "doc.docx").is_file()


def test_render_failure_exits_with_error(fake_converter, tmp_path: Path) -> None:
    fake_converter(fail_for=["doc.html"])
    doc = _doc(tmp_path)

    result = CliRunner().invoke(app, ["render", str(doc)])

    assert result.exit_code == 1
    assert "pandoc failed" in result.output


def test_invalid_yaml_exits_with_error(fake_converter, tmp_path: Path) -> None:
    fake_converter()
    doc = _doc(tmp_path, front="title: [broken\n")

    result = CliRunner().invoke(app, ["render", str(doc)])

    assert result.exit_code == 1
    assert "invalid YAML" in result.output


def test_malformed_metadata_is_a_usage_error(tmp_path: Path) -> None:
    doc = _doc(tmp_path)

    result = CliRunner().invoke(app, ["render", str(doc), "-M", "novalue"])

    assert result.exit_code == 2


def test_output_requires_single_input(tmp_path: Path) -> None:
    first = _doc(tmp_path, "a.md")
    second = _doc(tmp_path, "b.md")

    result = CliRunner().invoke(app, ["render", str(first), str(second), "--output", "x.html"])

    assert result.exit_code == 2


def test_missing_input_is_rejected(tmp_path: Path) -> None:
    result = CliRunner().invoke(app, ["render", str(tmp_path / "missing.md")])

    assert result.exit_code == 2


def test_debug_reraises_errors(fake_converter, tmp_path: Path) -> None:
    fake_converter(fail_for=["doc.html"])
    doc = _doc(tmp_path)

    result = CliRunner().invoke(app, ["render", str(doc), "--debug"])

    assert result.exit_code == 1
    assert result.exception is not None
    assert type(result.exception).__name__ == "ConverterInvocationError"
