from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from docsmith.core.exceptions import ProjectConfigError
from docsmith.core.project import (
    directory_metadata_for_input_file,
    find_project_dir,
    project_context,
    project_offset,
    project_type,
    project_type_is_website,
)


def test_project_discovery_from_nested_file(make_project, tmp_path: Path) -> None:
    make_project({"project": {"type": "website"}, "toc": True})
    nested = tmp_path / "posts" / "one"
    nested.mkdir(parents=True)
    source = nested / "doc.qmd"
    source.write_text("# Hi\n", encoding="utf-8")

    project = project_context(source)

    assert project is not None
    assert project.dir == tmp_path.resolve()
    assert project.type == "website"
    assert project.lib_dir == "site_libs"
    assert project.metadata() == {"toc": True}
    assert project_offset(project, source) == "../.."


def test_outside_project_returns_none(tmp_path: Path) -> None:
    source = tmp_path / "doc.qmd"
    source.write_text("# Hi\n", encoding="utf-8")

    assert find_project_dir(source) is None
    assert project_context(source) is None


def test_directory_metadata_merges_top_down(make_project, tmp_path: Path) -> None:
    project = project_context(make_project())
    nested = tmp_path / "chapters"
    nested.mkdir()
    (tmp_path / "_metadata.yml").write_text(yaml.safe_dump({"toc": True, "css": ["a.css"]}), encoding="utf-8")
    (nested / "_metadata.yml").write_text(yaml.safe_dump({"toc": False, "css": ["b.css"]}), encoding="utf-8")

    metadata = directory_metadata_for_input_file(project, nested)

    assert metadata == {"toc": False, "css": ["a.css", "b.css"]}


def test_book_projects_are_websites() -> None:
    assert project_type_is_website("book")
    assert project_type_is_website("website")
    assert not project_type_is_website("default")
    assert project_type("unknown").type == "default"


def test_invalid_project_section_is_rejected(tmp_path: Path) -> None:
    (tmp_path / "_docsmith.yml").write_text("project: [1, 2]\n", encoding="utf-8")

    with pytest.raises(ProjectConfigError):
        project_context(tmp_path)
