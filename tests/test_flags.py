from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from docsmith.render import RenderFlags, RenderOptions, remove_pandoc_to
from docsmith.render.flags import parse_key_value, parse_key_values, remove_pandoc_to_arg, resolve_params


@pytest.mark.parametrize(
    ("args", "expected"),
    [
        (["--to", "html", "--toc"], ["--toc"]),
        (["-t", "pdf", "-s"], ["-s"]),
        (["--to=docx", "--write=docx", "--toc"], ["--toc"]),
        (["-thtml", "-wpdf", "--wrap=none"], ["--wrap=none"]),
        (["--write", "html"], []),
        (["--toc-depth=2"], ["--toc-depth=2"]),
    ],
)
def test_remove_pandoc_to_arg(args: list[str], expected: list[str]) -> None:
    assert remove_pandoc_to_arg(args) == expected


def test_parse_key_value_reads_yaml_values() -> None:
    assert parse_key_value("toc=true") == ("toc", True)
    assert parse_key_value("depth=3") == ("depth", 3)
    assert parse_key_value("title:My Doc") == ("title", "My Doc")
    assert parse_key_value("empty=") == ("empty", "")
    assert parse_key_value("list=[a, b]") == ("list", ["a", "b"])


@pytest.mark.parametrize("entry", ["novalue", "=orphan"])
def test_parse_key_value_rejects_malformed_entries(entry: str) -> None:
    with pytest.raises(ValueError):
        parse_key_value(entry)


def test_parse_key_values_last_wins() -> None:
    assert parse_key_values(["a=1", "b=x", "a=2"]) == {"a": 2, "b": "x"}


def test_resolve_params_merges_file_and_flags(tmp_path: Path) -> None:
    params_file = tmp_path / "params.yml"
    params_file.write_text(yaml.safe_dump({"alpha": 1, "beta": {"x": 1}}), encoding="utf-8")

    assert resolve_params({}, None) is None
    assert resolve_params({"alpha": 2}) == {"alpha": 2}
    assert resolve_params({"alpha": 3, "beta": {"y": 2}}, params_file) == {"alpha": 3, "beta": {"x": 1, "y": 2}}


def test_remove_pandoc_to_clears_selection() -> None:
    options = RenderOptions(flags=RenderFlags(to="pdf"), pandoc_args=["--to", "pdf", "--toc"])

    cleaned = remove_pandoc_to(options)

    assert cleaned.flags.to is None
    assert cleaned.pandoc_args == ["--toc"]
    assert options.flags.to == "pdf"
