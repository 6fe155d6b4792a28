from __future__ import annotations

from pathlib import Path

from docsmith.render.validate import FrontMatter, validate_document_from_source, validate_front_matter


def test_valid_front_matter() -> None:
    markdown = "---\ntitle: Doc\ndate: 2024-03-05\nformat:\n  html:\n    toc: true\n  pdf: default\n---\n\nBody\n"

    assert validate_front_matter(markdown) == []


def test_unknown_keys_are_accepted() -> None:
    metadata = FrontMatter.model_validate({"title": "x", "custom-key": {"deep": [1, 2]}})

    assert metadata.model_extra == {"custom-key": {"deep": [1, 2]}}


def test_aliases_are_populated() -> None:
    metadata = FrontMatter.model_validate({"date-format": "long", "metadata-files": ["a.yml"]})

    assert metadata.date_format == "long"
    assert metadata.metadata_files == ["a.yml"]


def test_wrong_types_are_reported_with_location(tmp_path: Path) -> None:
    errors = validate_front_matter("---\nexecute: yes please\n---\n", tmp_path / "doc.md")

    assert errors
    assert all(message.startswith(f"{tmp_path / 'doc.md'}: execute") for message in errors)


def test_broken_yaml_is_reported() -> None:
    errors = validate_front_matter("---\ntitle: [oops\n---\n")

    assert len(errors) == 1
    assert errors[0].startswith("invalid YAML front matter")


def test_validation_opt_out() -> None:
    assert validate_front_matter("---\nvalidate-yaml: false\ntitle: {a: 1}\n---\n") == []


def test_documents_without_front_matter_are_valid() -> None:
    assert validate_front_matter("# Just text\n") == []


def test_revalidation_after_failure() -> None:
    error = RuntimeError("boom")

    assert validate_document_from_source("# ok\n", "markdown", error) == []
    assert validate_document_from_source("---\nlang: [1]\n---\n", "markdown", error)
