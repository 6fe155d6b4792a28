from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
import subprocess
from typing import Any

import yaml

from docsmith.core.exceptions import (
    ConverterInvocationError,
    PostprocessContractError,
    RenderInvalidYAMLError,
)
from docsmith.core.project import project_context
import docsmith.formats as formats_module
from docsmith.formats import Format, FormatExtras
from docsmith.render import (
    RenderFile,
    RenderFlags,
    RenderOptions,
    RenderedFile,
    RenderResult,
    render_files,
    render_result_final_output,
    render_result_url_path,
)


class RecordingEmitter:
    debug_enabled = False

    def __init__(self) -> None:
        self.warnings: list[str] = []
        self.errors: list[str] = []
        self.events: list[tuple[str, dict[str, Any]]] = []

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        self.warnings.append(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        self.errors.append(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        self.events.append((name, dict(payload)))


def _doc(path: Path, metadata: dict | None = None, body: str = "# Title\n\nText.\n") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    front = f"---\n{yaml.safe_dump(metadata)}---\n\n" if metadata else ""
    path.write_text(front + body, encoding="utf-8")
    return path


def _render(*paths: Path, flags: RenderFlags | None = None, project=None, **kwargs):
    options = RenderOptions(flags=flags or RenderFlags(), **kwargs)
    return render_files([RenderFile(path=path) for path in paths], options, project=project)


def test_html_render_writes_postprocessed_output(fake_converter, tmp_path: Path) -> None:
    converter = fake_converter()
    doc = _doc(tmp_path / "doc.md", {"title": "Doc"})

    result = _render(doc)

    assert result.error is None
    [rendered] = result.files
    assert rendered.input == str(doc)
    assert rendered.file == "doc.html"
    assert rendered.self_contained is False
    output = tmp_path / "doc.html"
    html = output.read_text(encoding="utf-8")
    assert html.startswith("<!DOCTYPE html>\n<html>")
    assert '<p id="x">converted</p>' in html
    argv = converter.calls[0]
    assert "--to=html" in argv
    assert f"--output={output.resolve()}" in argv
    assert f"--resource-path={tmp_path}" in argv
    assert "title: Doc" in converter.inputs[0]


def test_docx_output_is_self_contained(fake_converter, tmp_path: Path) -> None:
    fake_converter()
    doc = _doc(tmp_path / "doc.md", {"format": "docx"})
    figures = tmp_path / "doc_files" / "figure-docx"
    figures.mkdir(parents=True)
    (figures / "plot.png").write_bytes(b"png")

    result = _render(doc)

    assert result.error is None
    [rendered] = result.files
    assert rendered.file == "doc.docx"
    assert rendered.self_contained is True
    assert rendered.supporting is None
    assert not (tmp_path / "doc_files").exists()


def test_html_keeps_supporting_files(fake_converter, tmp_path: Path) -> None:
    fake_converter()
    doc = _doc(tmp_path / "doc.md")
    figures = tmp_path / "doc_files" / "figure-html"
    figures.mkdir(parents=True)
    (figures / "plot.png").write_bytes(b"png")

    [rendered] = _render(doc).files

    assert rendered.supporting == ["doc_files"]
    assert (figures / "plot.png").is_file()


def test_self_contained_flag_removes_supporting_files(fake_converter, tmp_path: Path) -> None:
    converter = fake_converter()
    doc = _doc(tmp_path / "doc.md")
    (tmp_path / "doc_files" / "figure-html").mkdir(parents=True)

    [rendered] = _render(doc, flags=RenderFlags(self_contained=True)).files

    assert rendered.self_contained is True
    assert "--embed-resources" in converter.calls[0]
    assert not (tmp_path / "doc_files").exists()


def test_output_flag_and_pandoc_args(fake_converter, tmp_path: Path) -> None:
    converter = fake_converter()
    doc = _doc(tmp_path / "doc.md")

    result = _render(doc, flags=RenderFlags(output="custom.html"), pandoc_args=["--wrap=none"])

    assert result.files[0].file == "custom.html"
    assert (tmp_path / "custom.html").is_file()
    assert converter.calls[0][-1] == "--wrap=none"


def test_html_postprocessors_on_non_html_output_fail(fake_converter, monkeypatch, tmp_path: Path) -> None:
    fake_converter()

    def extras(**_: Any) -> FormatExtras:
        return FormatExtras(html_postprocessors=[lambda soup, metadata: None])

    def factory() -> Format:
        return Format(render={"output-ext": "docx"}, pandoc={"to": "docx"}, format_extras=extras)

    monkeypatch.setitem(formats_module._WRITER_FORMATS, "postdocx", factory)
    doc = _doc(tmp_path / "doc.md", {"format": "postdocx"})

    result = _render(doc)

    assert isinstance(result.error, PostprocessContractError)
    assert result.files == []


def test_converter_failure_is_reported(fake_converter, tmp_path: Path) -> None:
    fake_converter(fail_for=["doc.html"])
    doc = _doc(tmp_path / "doc.md")

    result = _render(doc)

    assert isinstance(result.error, ConverterInvocationError)
    assert result.files == []


def test_missing_converter_is_reported(monkeypatch, tmp_path: Path) -> None:
    import docsmith.render.pandoc as pandoc_module

    monkeypatch.setattr(pandoc_module, "pandoc_binary", lambda: None)
    doc = _doc(tmp_path / "doc.md")

    result = _render(doc)

    assert isinstance(result.error, ConverterInvocationError)


def test_failure_keeps_earlier_outputs(fake_converter, tmp_path: Path) -> None:
    fake_converter(fail_for=["b.html"])
    first = _doc(tmp_path / "a.md")
    second = _doc(tmp_path / "b.md")

    result = _render(first, second)

    assert [rendered.file for rendered in result.files] == ["a.html"]
    assert isinstance(result.error, ConverterInvocationError)


def test_invalid_front_matter_aborts(fake_converter, tmp_path: Path) -> None:
    converter = fake_converter()
    emitter = RecordingEmitter()
    doc = tmp_path / "doc.md"
    doc.write_text("---\ntitle: [unclosed\n---\n\nBody\n", encoding="utf-8")

    result = _render(doc, emitter=emitter)

    assert isinstance(result.error, RenderInvalidYAMLError)
    assert converter.calls == []
    assert any("invalid YAML front matter" in message for message in emitter.errors)


def test_front_matter_with_wrong_types_aborts(fake_converter, tmp_path: Path) -> None:
    fake_converter()
    emitter = RecordingEmitter()
    doc = _doc(tmp_path / "doc.md", {"title": {"nested": True}})

    result = _render(doc, emitter=emitter)

    assert isinstance(result.error, RenderInvalidYAMLError)
    assert any("title" in message for message in emitter.errors)


def test_validation_can_be_disabled(fake_converter, tmp_path: Path) -> None:
    fake_converter()
    doc = _doc(tmp_path / "doc.md", {"title": {"nested": True}, "validate-yaml": False})

    result = _render(doc)

    assert result.error is None


def test_progress_events_for_multiple_files(fake_converter, tmp_path: Path) -> None:
    fake_converter()
    emitter = RecordingEmitter()
    docs = [_doc(tmp_path / "a.md"), _doc(tmp_path / "b.md")]

    _render(*docs, emitter=emitter, progress=True)

    progress = [payload for name, payload in emitter.events if name == "render_progress"]
    assert [(entry["index"], entry["total"]) for entry in progress] == [(1, 2), (2, 2)]


def test_project_outputs_are_project_relative(fake_converter, make_project, tmp_path: Path) -> None:
    fake_converter()
    make_project()
    doc = _doc(tmp_path / "posts" / "doc.md")

    result = _render(doc, project=project_context(doc))

    [rendered] = result.files
    assert rendered.input == "posts/doc.md"
    assert rendered.file == "posts/doc.html"
    final = render_result_final_output(RenderResult(files=result.files, base_dir=tmp_path))
    assert final == str(tmp_path / "posts" / "doc.html")


def test_final_output_outside_projects(fake_converter, tmp_path: Path) -> None:
    fake_converter()
    doc = _doc(tmp_path / "doc.md", {"format": ["docx", "html"]})

    result = _render(doc)

    assert [rendered.file for rendered in result.files] == ["doc.docx", "doc.html"]
    final = render_result_final_output(RenderResult(files=result.files), relative_to_input_dir=tmp_path)
    assert final == "doc.docx"


def test_always_execute_files(fake_converter, fake_engine, make_project, tmp_path: Path) -> None:
    fake_converter()
    make_project()
    doc = _doc(tmp_path / "doc.qmd", {"engine": "fake", "freeze": True})
    project = project_context(doc)

    _render(doc, project=project)
    _render(doc, project=project)
    assert fake_engine.calls == 1

    options = RenderOptions()
    render_files([RenderFile(path=doc)], options, always_execute_files=[doc], project=project)

    assert fake_engine.calls == 2


def test_ojs_blocks_are_annotated(fake_converter, tmp_path: Path) -> None:
    converter = fake_converter()
    (tmp_path / "data.csv").write_text("a,b\n1,2\n", encoding="utf-8")
    body = "Intro\n\n```{ojs}\ndata = FileAttachment(\"data.csv\").csv()\n```\n"
    doc = _doc(tmp_path / "doc.md", body=body)

    [rendered] = _render(doc).files

    assert "```{.ojs source-line=3}" in converter.inputs[0]
    assert rendered.resource_files.files == ["data.csv"]


def test_url_path_of_site_outputs(tmp_path: Path) -> None:
    page = tmp_path / "_site" / "posts" / "index.html"
    page.parent.mkdir(parents=True)
    page.write_text("<html></html>", encoding="utf-8")
    rendered = RenderedFile(input="posts/index.md", markdown="", format=Format(), file="posts/index.html")

    result = RenderResult(files=[rendered], base_dir=tmp_path, output_dir="_site")

    assert render_result_url_path(result) == "posts/"
    assert render_result_url_path(RenderResult(files=[rendered], base_dir=tmp_path)) is None


def test_deferred_engine_dependencies_are_resolved(fake_converter, fake_engine, tmp_path: Path) -> None:
    converter = fake_converter()
    fake_engine.result_options = {"engine_dependencies": {"fake": ["widgets"]}}
    fake_engine.dependency_includes = {"include-in-header": "<script>widgets()</script>"}
    doc = _doc(tmp_path / "doc.qmd", {"engine": "fake"})

    result = _render(doc)

    assert result.error is None
    [options] = fake_engine.dependency_calls
    assert options.dependencies == ["widgets"]
    [header] = [arg for arg in converter.calls[0] if arg.startswith("--include-in-header=")]
    assert Path(header.split("=", 1)[1]).name == "include-in-header.html"


def test_engine_postprocess_runs_after_conversion(fake_converter, fake_engine, tmp_path: Path) -> None:
    fake_converter()
    fake_engine.result_options = {"post_process": True, "preserve": {"raw-1": "<div>raw</div>"}}
    doc = _doc(tmp_path / "doc.qmd", {"engine": "fake"})

    _render(doc)

    [options] = fake_engine.postprocess_calls
    assert options.output == (tmp_path / "doc.html").resolve()
    assert options.output.is_file()
    assert options.preserve == {"raw-1": "<div>raw</div>"}


def test_engine_postprocess_is_opt_in(fake_converter, fake_engine, tmp_path: Path) -> None:
    fake_converter()
    doc = _doc(tmp_path / "doc.qmd", {"engine": "fake"})

    _render(doc)

    assert fake_engine.postprocess_calls == []


def test_file_postprocessors_run_after_html_pipeline(fake_converter, monkeypatch, tmp_path: Path) -> None:
    fake_converter()
    calls: list[str] = []

    def extras(**_: Any) -> FormatExtras:
        return FormatExtras(
            html_postprocessors=[lambda soup, metadata: calls.append("html")],
            postprocessors=[
                lambda output: calls.append(f"first:{Path(output).name}"),
                lambda output: calls.append(f"second:{Path(output).name}"),
            ],
        )

    def factory() -> Format:
        return Format(render={"output-ext": "html"}, pandoc={"to": "html"}, format_extras=extras)

    monkeypatch.setitem(formats_module._WRITER_FORMATS, "posthtml", factory)
    doc = _doc(tmp_path / "doc.md", {"format": "posthtml"})

    result = _render(doc)

    assert result.error is None
    assert calls == ["html", "first:doc.html", "second:doc.html"]


def test_completion_hook_provides_final_output(fake_converter, monkeypatch, tmp_path: Path) -> None:
    import docsmith.render.output as output_module

    converter = fake_converter()

    def fake_latexmk(command, **kwargs):
        (Path(kwargs["cwd"]) / "doc.pdf").write_bytes(b"%PDF")
        return subprocess.CompletedProcess(command, 0, "", "")

    monkeypatch.setenv("DOCSMITH_LATEXMK", "latexmk")
    monkeypatch.setattr(output_module.subprocess, "run", fake_latexmk)
    doc = _doc(tmp_path / "doc.md", {"format": {"pdf": {"pdf-engine": "latexmk"}}})

    result = _render(doc)

    assert result.error is None
    [rendered] = result.files
    assert rendered.file == "doc.pdf"
    assert rendered.self_contained is True
    assert f"--output={(tmp_path / 'doc.tex').resolve()}" in converter.calls[0]
    assert (tmp_path / "doc.pdf").is_file()
    assert not (tmp_path / "doc.tex").exists()


def test_final_output_extension_marks_self_contained(fake_converter, tmp_path: Path) -> None:
    fake_converter()
    doc = _doc(tmp_path / "doc.md")
    (tmp_path / "doc_files" / "figure-html").mkdir(parents=True)

    [rendered] = _render(doc, flags=RenderFlags(output="report.docx")).files

    assert rendered.file == "report.docx"
    assert rendered.self_contained is True
    assert not (tmp_path / "doc_files").exists()
