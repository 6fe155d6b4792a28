"""Render driver: contexts, execution and conversion of a list of files."""

from __future__ import annotations

from collections.abc import Iterable
import dataclasses
import logging
import os
from pathlib import Path

from ..core.constants import KEY_ENGINE, KEY_FORMAT, KEY_LANG, KEY_OUTPUT_FILE
from ..core.dates import set_date_locale
from ..core.debug import record_event
from ..core.exceptions import RenderInvalidYAMLError, YAMLValidationError
from ..core.html import init_html_parser
from ..core.paths import files_dir_lib_dir
from ..core.project import ProjectContext, delete_project_metadata
from ..core.temp import TempContext
from ..execute.registry import file_execution_engine_and_target
from ..formats import Format, is_html_output
from .convert import render_pandoc
from .execute import render_execute
from .flags import remove_pandoc_to_arg
from .output import output_file_name, output_recipe
from .resolve import resolve_formats
from .scripts import annotate_ojs_line_numbers, script_execute_result
from .types import (
    ExecutedFile,
    PandocRenderer,
    RenderContext,
    RenderedFile,
    RenderExecuteOptions,
    RenderFile,
    RenderFilesResult,
    RenderFlags,
    RenderOptions,
    RenderResult,
)
from .validate import validate_document, validate_document_from_source


logger = logging.getLogger(__name__)


def _lib_dir(source: Path, project: ProjectContext | None) -> str:
    if project is not None and project.lib_dir:
        return Path(os.path.relpath(project.dir / project.lib_dir, source.parent)).as_posix()
    return files_dir_lib_dir(source)


def render_contexts(
    file: RenderFile,
    options: RenderOptions,
    for_execute: bool = True,
    project: ProjectContext | None = None,
) -> dict[str, RenderContext]:
    """Build one render context per resolved format of a file."""
    engine, target = file_execution_engine_and_target(file.path, quiet=options.flags.quiet)
    formats = resolve_formats(file, target, engine, options, project)

    lib_dir = _lib_dir(target.source, project)
    contexts: dict[str, RenderContext] = {}
    for name, format in formats.items():
        if not for_execute:
            format.execute.setdefault(KEY_ENGINE, engine.name)
        contexts[name] = RenderContext(
            target=target,
            options=options,
            engine=engine,
            format=format,
            project=project,
            lib_dir=lib_dir,
        )
    return contexts


def render_formats(
    file: Path | str,
    to: str = "all",
    project: ProjectContext | None = None,
) -> dict[str, Format]:
    """Return the resolved formats of a file, ready to be shown to a user."""
    options = RenderOptions(flags=RenderFlags(to=to, quiet=True))
    contexts = render_contexts(RenderFile(path=Path(file)), options, for_execute=False, project=project)
    formats: dict[str, Format] = {}
    for name, context in contexts.items():
        format = context.format
        delete_project_metadata(format.metadata)
        format.metadata.pop(KEY_FORMAT, None)
        if not format.pandoc.get(KEY_OUTPUT_FILE):
            format.pandoc[KEY_OUTPUT_FILE] = Path(output_file_name(context)).name
        format.execute[KEY_ENGINE] = context.engine.name
        formats[name] = format
    return formats


def remove_pandoc_to(options: RenderOptions) -> RenderOptions:
    """Return options without any ``--to`` selection."""
    return dataclasses.replace(
        options,
        flags=dataclasses.replace(options.flags, to=None),
        pandoc_args=remove_pandoc_to_arg(list(options.pandoc_args)),
    )


class DefaultPandocRenderer:
    """Renderer converting each executed file as soon as it is available."""

    def __init__(self) -> None:
        self.files: list[RenderedFile] = []

    def on_before_execute(self, format: Format) -> dict[str, object]:
        return {}

    def on_render(self, format: str, executed_file: ExecutedFile, quiet: bool) -> None:
        self.files.append(render_pandoc(executed_file, quiet))

    def on_complete(self, partial: bool = False, quiet: bool = False) -> RenderFilesResult:
        return RenderFilesResult(files=list(self.files))


def default_pandoc_renderer() -> PandocRenderer:
    return DefaultPandocRenderer()


def _same_file(path: Path, candidates: Iterable[Path | str]) -> bool:
    resolved = path.resolve()
    return any(Path(candidate).resolve() == resolved for candidate in candidates)


def _report_invalid_yaml(options: RenderOptions, errors: list[str]) -> None:
    for message in errors:
        if options.emitter is not None:
            options.emitter.error(message)
        else:
            logger.error(message)


def _file_contexts(
    file: RenderFile,
    options: RenderOptions,
    project: ProjectContext | None,
) -> dict[str, RenderContext]:
    try:
        return render_contexts(file, options, True, project)
    except YAMLValidationError as exc:
        # Broken YAML can fail before validation runs: validate the source
        # directly to tell a front matter problem from any other one.
        engine, target = file_execution_engine_and_target(file.path, quiet=True)
        errors = validate_document_from_source(target.markdown, engine.name, exc, target.source)
        if errors:
            _report_invalid_yaml(options, errors)
            raise RenderInvalidYAMLError() from exc
        raise


def render_files(
    files: list[RenderFile],
    options: RenderOptions,
    always_execute_files: Iterable[Path | str] | None = None,
    renderer: PandocRenderer | None = None,
    project: ProjectContext | None = None,
) -> RenderFilesResult:
    """Render every (file, format) pair in order.

    A failure stops the run; the files converted before it are still
    returned together with the error.
    """
    always_execute = list(always_execute_files or [])
    renderer = renderer or default_pandoc_renderer()

    owns_temp = options.temp is None
    if owns_temp:
        options = dataclasses.replace(options, temp=TempContext())

    try:
        total = len(files)
        for index, file in enumerate(files, start=1):
            if options.progress and total > 1:
                path = os.path.relpath(file.path, project.dir) if project is not None else str(file.path)
                record_event(options.emitter, "render_progress", {"index": index, "total": total, "path": path})

            contexts = _file_contexts(file, options, project)
            for name, context in contexts.items():
                set_date_locale(context.format.metadata.get(KEY_LANG))
                if is_html_output(context.format.pandoc, exclusive=True):
                    init_html_parser()

                errors = validate_document(context)
                if errors:
                    _report_invalid_yaml(options, errors)
                    raise RenderInvalidYAMLError()

                recipe = output_recipe(context)
                before = renderer.on_before_execute(recipe.format)
                line_numbers = annotate_ojs_line_numbers(context)
                execute_result = render_execute(
                    context,
                    recipe.output,
                    RenderExecuteOptions(
                        resolve_dependencies=bool(before.get("resolve_dependencies", True)),
                        always_execute=_same_file(file.path, always_execute),
                    ),
                )
                execute_result, script_resources = script_execute_result(context, execute_result, line_numbers)

                renderer.on_render(
                    name,
                    ExecutedFile(
                        context=context,
                        recipe=recipe,
                        execute_result=execute_result,
                        resource_files=[*execute_result.resource_files, *script_resources],
                    ),
                    options.flags.quiet,
                )

        return renderer.on_complete(False, options.flags.quiet)
    except Exception as exc:
        logger.debug("Render stopped after an error: %s", exc)
        partial = renderer.on_complete(True, options.flags.quiet)
        return RenderFilesResult(files=partial.files, error=exc)
    finally:
        if owns_temp and options.temp is not None:
            options.temp.cleanup()


def render_result_final_output(result: RenderResult, relative_to_input_dir: Path | str | None = None) -> str | None:
    """Return the path of the main output of a render, or None if it does not exist."""
    final = next((file for file in result.files if not file.supplemental), None)
    if final is None:
        return None
    for file in result.files:
        if file.file == "index.html" and not file.supplemental:
            final = file
            break

    final_input = Path(final.input)
    if result.base_dir is not None:
        final_input = result.base_dir / final_input
        if result.output_dir:
            final_output = result.base_dir / result.output_dir / final.file
        else:
            final_output = result.base_dir / final.file
    else:
        final_output = final_input.parent / final.file

    if not final_output.exists():
        return None
    if relative_to_input_dir is not None:
        return os.path.relpath(final_output, relative_to_input_dir)
    return str(final_output)


def render_result_url_path(result: RenderResult) -> str | None:
    """Return the site-relative URL path of the main output of a project render."""
    if result.base_dir is None or not result.output_dir:
        return None
    final_output = render_result_final_output(result)
    if final_output is None:
        return None
    target = Path(os.path.relpath(final_output, result.base_dir / result.output_dir)).as_posix()
    if target == "index.html":
        return ""
    if target.endswith("/index.html"):
        return target[: -len("index.html")]
    return target


__all__ = [
    "DefaultPandocRenderer",
    "default_pandoc_renderer",
    "remove_pandoc_to",
    "render_contexts",
    "render_files",
    "render_formats",
    "render_result_final_output",
    "render_result_url_path",
]
