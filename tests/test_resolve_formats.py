from __future__ import annotations

import logging
from pathlib import Path

import yaml

from docsmith.core.project import project_context
from docsmith.render import RenderFile, RenderFlags, RenderOptions, render_contexts, render_formats


def _write_doc(path: Path, metadata: dict | None = None, body: str = "# Heading\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    front = f"---\n{yaml.safe_dump(metadata)}---\n\n" if metadata else ""
    path.write_text(front + body, encoding="utf-8")
    return path


def _formats(path: Path, flags: RenderFlags | None = None, project=None, formats=None):
    options = RenderOptions(flags=flags or RenderFlags())
    contexts = render_contexts(RenderFile(path=path, formats=formats), options, project=project)
    return {name: context.format for name, context in contexts.items()}


def test_document_without_format_renders_html(tmp_path: Path) -> None:
    formats = _formats(_write_doc(tmp_path / "doc.md"))

    assert list(formats) == ["html"]
    assert formats["html"].output_ext == "html"
    assert formats["html"].pandoc["to"] == "html"


def test_to_flag_selects_declared_format(tmp_path: Path) -> None:
    doc = _write_doc(tmp_path / "doc.md", {"format": {"pdf": {}, "html": {}}})

    formats = _formats(doc, RenderFlags(to="pdf"))

    assert list(formats) == ["pdf"]
    assert formats["pdf"].pandoc["to"] == "latex"


def test_format_list_resolves_every_entry(tmp_path: Path) -> None:
    doc = _write_doc(tmp_path / "doc.md", {"format": ["html", "docx"]})

    assert list(_formats(doc)) == ["html", "docx"]


def test_file_formats_intersect_and_ignore_to(tmp_path: Path) -> None:
    doc = _write_doc(tmp_path / "doc.md", {"format": ["html", "docx", "pdf"]})

    formats = _formats(doc, RenderFlags(to="pdf"), formats=["docx"])

    assert list(formats) == ["docx"]


def test_input_overrides_directory_and_project(make_project, tmp_path: Path) -> None:
    make_project({"project": {"type": "default"}, "toc": False, "format": {"html": {"number-sections": True}}})
    (tmp_path / "_metadata.yml").write_text(yaml.safe_dump({"toc-depth": 2}), encoding="utf-8")
    doc = _write_doc(tmp_path / "doc.md", {"toc": True})
    project = project_context(doc)

    formats = _formats(doc, project=project)

    html = formats["html"]
    assert html.pandoc["toc"] is True
    assert html.pandoc["toc-depth"] == 2
    assert html.pandoc["number-sections"] is True


def test_flag_metadata_and_execute_overrides(tmp_path: Path) -> None:
    doc = _write_doc(tmp_path / "doc.md", {"title": "Doc"})

    formats = _formats(doc, RenderFlags(metadata={"title": "Flag"}, execute=False, execute_cache=True))

    html = formats["html"]
    assert html.metadata["title"] == "Flag"
    assert html.execute["enabled"] is False
    assert html.execute["cache"] is True


def test_mergeable_scalars_append_across_layers(make_project, tmp_path: Path) -> None:
    make_project({"project": {"type": "default"}, "css": "site.css"})
    doc = _write_doc(tmp_path / "doc.md", {"css": "page.css"})

    formats = _formats(doc, project=project_context(doc))

    assert formats["html"].metadata["css"] == ["site.css", "page.css"]


def test_book_projects_use_project_formats_only(make_project, tmp_path: Path, caplog) -> None:
    make_project({"project": {"type": "book"}, "format": {"html": {}, "revealjs": {}}})
    doc = _write_doc(tmp_path / "chapter.md", {"format": {"docx": {}}})

    with caplog.at_level(logging.WARNING):
        formats = _formats(doc, project=project_context(doc))

    assert list(formats) == ["html"]
    assert "The revealjs format is not supported by book projects" in caplog.text


def test_website_project_theme_wins(make_project, tmp_path: Path) -> None:
    make_project({"project": {"type": "website"}, "format": {"html": {"theme": "cosmo"}}})
    doc = _write_doc(tmp_path / "page.md", {"format": {"html": {"theme": "darkly"}}})

    formats = _formats(doc, project=project_context(doc))

    assert formats["html"].metadata["theme"] == "cosmo"


def test_input_theme_kept_outside_websites(make_project, tmp_path: Path) -> None:
    make_project({"project": {"type": "default"}, "format": {"html": {"theme": "cosmo"}}})
    doc = _write_doc(tmp_path / "page.md", {"format": {"html": {"theme": "darkly"}}})

    formats = _formats(doc, project=project_context(doc))

    assert formats["html"].metadata["theme"] == "darkly"


def test_server_documents_hide_code(tmp_path: Path) -> None:
    doc = _write_doc(tmp_path / "app.md", {"server": "shiny"})
    explicit = _write_doc(tmp_path / "explicit.md", {"server": "shiny", "echo": True})

    assert _formats(doc)["html"].execute["echo"] is False
    assert _formats(explicit)["html"].execute["echo"] is True


def test_date_formatted_uses_date_format(tmp_path: Path) -> None:
    doc = _write_doc(tmp_path / "doc.md", {"date": "2024-03-05", "date-format": "long"})
    plain = _write_doc(tmp_path / "plain.md", {"date": "2024-03-05"})

    assert _formats(doc)["html"].metadata["date-formatted"] == "March 5, 2024"
    assert _formats(plain)["html"].metadata["date-formatted"] == "Tuesday, March 5, 2024"


def test_metadata_files_are_included(tmp_path: Path) -> None:
    (tmp_path / "shared.yml").write_text(yaml.safe_dump({"subtitle": "Shared"}), encoding="utf-8")
    doc = _write_doc(tmp_path / "doc.md", {"metadata-files": ["shared.yml"]})

    assert _formats(doc)["html"].metadata["subtitle"] == "Shared"


def test_render_formats_reports_output_file_and_engine(tmp_path: Path) -> None:
    doc = _write_doc(tmp_path / "report.md", {"format": {"pdf": {}, "html": {}}})

    formats = render_formats(doc)

    assert formats["pdf"].pandoc["output-file"] == "report.pdf"
    assert formats["html"].pandoc["output-file"] == "report.html"
    assert formats["html"].execute["engine"] == "markdown"
    assert "format" not in formats["html"].metadata


def test_implicit_format_follows_document_target(tmp_path: Path) -> None:
    doc = _write_doc(tmp_path / "doc.md", {"to": "docx"})

    formats = _formats(doc)

    assert list(formats) == ["docx"]
    assert formats["docx"].output_ext == "docx"


def test_implicit_format_from_directory_metadata(make_project, tmp_path: Path) -> None:
    make_project({"project": {"type": "default"}, "to": "pdf"})
    (tmp_path / "notes" / "_metadata.yml").parent.mkdir()
    (tmp_path / "notes" / "_metadata.yml").write_text(yaml.safe_dump({"to": "docx"}), encoding="utf-8")
    doc = _write_doc(tmp_path / "notes" / "doc.md")

    assert list(_formats(doc, project=project_context(doc))) == ["docx"]


def test_engine_filters_resolved_formats(fake_engine, tmp_path: Path) -> None:
    def drop_echo(format):
        format.execute["echo"] = False
        return format

    fake_engine.format_filter = drop_echo
    doc = _write_doc(tmp_path / "doc.qmd", {"engine": "fake", "format": ["html", "docx"]})

    formats = _formats(doc)

    assert [fmt.execute["echo"] for fmt in formats.values()] == [False, False]


class _EventLog:
    debug_enabled = False

    def __init__(self) -> None:
        self.events: list[tuple[str, dict]] = []

    def warning(self, message, exc=None) -> None:
        return

    def error(self, message, exc=None) -> None:
        return

    def event(self, name, payload) -> None:
        self.events.append((name, dict(payload)))


def test_unsupported_format_is_reported_as_event(make_project, tmp_path: Path) -> None:
    make_project({"project": {"type": "book"}, "format": {"html": {}, "revealjs": {}}})
    doc = _write_doc(tmp_path / "chapter.md")
    emitter = _EventLog()

    options = RenderOptions(emitter=emitter)
    contexts = render_contexts(RenderFile(path=doc), options, project=project_context(doc))

    assert list(contexts) == ["html"]
    assert emitter.events == [("format_unsupported", {"format": "revealjs", "project_type": "book"})]
