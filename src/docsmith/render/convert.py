"""Conversion of an executed document into its final output."""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

from ..core.constants import KEY_SELF_CONTAINED, KEY_TO
from ..core.exceptions import ConverterInvocationError, PostprocessContractError
from ..core.html import HtmlPostProcessResult
from ..core.merge import merge_configs
from ..core.paths import input_files_dir
from ..core.project import ProjectContext, project_offset
from ..execute.registry import execution_engine, execution_engine_keep_md
from ..execute.types import DependenciesOptions, PandocIncludes, PostProcessOptions
from ..formats import Format, is_html_file_output, is_html_output
from .cleanup import render_cleanup
from .execute import resource_path
from .output import is_self_contained, is_self_contained_output, is_standalone_format
from .pandoc import run_pandoc
from .postprocess import run_html_postprocessors
from .types import ExecutedFile, PandocOptions, RenderedFile, RenderResourceFiles


logger = logging.getLogger(__name__)


def _as_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(entry) for entry in value]
    return [str(value)]


def merge_pandoc_includes(format: Format, includes: PandocIncludes | None) -> None:
    """Append include files to the converter options of a format."""
    for kind, files in (includes or {}).items():
        existing = _as_list(format.pandoc.get(kind))
        format.pandoc[kind] = [*existing, *(path for path in files if path not in existing)]


def _project_path(project: ProjectContext, path: Path) -> str:
    return Path(os.path.relpath(os.path.realpath(path), os.path.realpath(project.dir))).as_posix()


def _input_path(input_dir: Path, path: Path) -> str:
    return Path(os.path.relpath(path, input_dir)).as_posix()


def render_pandoc(executed_file: ExecutedFile, quiet: bool = False) -> RenderedFile:
    """Convert an executed file and return the record of what was produced."""
    context = executed_file.context
    recipe = executed_file.recipe
    execute_result = executed_file.execute_result
    temp = context.options.temp
    assert temp is not None, "render_pandoc requires a temp context"

    source = context.target.source
    input_dir = source.parent
    format = recipe.format.copy()

    merge_pandoc_includes(format, execute_result.includes)
    if execute_result.pandoc:
        format.pandoc = merge_configs(format.pandoc, execute_result.pandoc)
    if context.options.flags.self_contained:
        format.pandoc[KEY_SELF_CONTAINED] = True

    for engine_name, dependencies in (execute_result.engine_dependencies or {}).items():
        engine = execution_engine(engine_name)
        resolved = engine.dependencies(
            DependenciesOptions(
                target=context.target,
                format=format,
                output=recipe.output,
                resource_dir=resource_path(),
                temp_dir=temp.create_dir(),
                lib_dir=context.lib_dir,
                dependencies=list(dependencies),
                quiet=quiet,
            )
        )
        merge_pandoc_includes(format, resolved.includes)

    project = context.project
    pandoc_options = PandocOptions(
        markdown=execute_result.markdown,
        source=source,
        output=recipe.output,
        format=format,
        lib_dir=context.lib_dir,
        temp=temp,
        flags=context.options.flags,
        project=project,
        args=list(recipe.args),
        metadata=execute_result.metadata,
        offset=project_offset(project, source) if project is not None else None,
        quiet=quiet,
    )
    pandoc_result = run_pandoc(pandoc_options, execute_result.filters)
    if pandoc_result is None:
        raise ConverterInvocationError(
            f"pandoc failed to render {source.name} to {format.pandoc.get(KEY_TO) or 'html'}."
        )

    if execute_result.post_process:
        context.engine.postprocess(
            PostProcessOptions(
                target=context.target,
                format=format,
                output=recipe.output,
                temp_dir=temp.create_dir(),
                preserve=execute_result.preserve,
                quiet=quiet,
            )
        )

    html_result = HtmlPostProcessResult()
    if pandoc_result.html_postprocessors or pandoc_result.html_finalizers:
        if not is_html_file_output(format.pandoc):
            raise PostprocessContractError(
                f"HTML postprocessors were registered for non-HTML output {recipe.output.name}."
            )
        html_result = run_html_postprocessors(
            recipe.output,
            context.target.metadata,
            pandoc_result.html_postprocessors,
            pandoc_result.html_finalizers,
        )

    for postprocessor in pandoc_result.postprocessors:
        postprocessor(recipe.output)

    final_output = recipe.complete(pandoc_options) if recipe.complete is not None else None
    output_file = Path(final_output or recipe.output)

    self_contained = is_self_contained_output(format, output_file)

    supporting = [str(Path(path) if Path(path).is_absolute() else input_dir / path) for path in execute_result.supporting]
    files_dir = input_dir / input_files_dir(source)
    if files_dir.is_dir() and str(files_dir) not in supporting:
        supporting.append(str(files_dir))
    supporting.extend(str(input_dir / path) for path in html_result.supporting)
    if is_html_output(format.pandoc, exclusive=True) and context.lib_dir:
        lib_dir = (input_dir / context.lib_dir).resolve()
        covered = any(lib_dir == Path(path).resolve() or Path(path).resolve() in lib_dir.parents for path in supporting)
        if lib_dir.is_dir() and not covered:
            supporting.append(str(lib_dir))

    render_cleanup(
        context.target.input,
        output_file,
        format,
        supporting if self_contained else None,
        execution_engine_keep_md(context),
    )
    remaining = [path for path in dict.fromkeys(supporting) if Path(path).exists()]

    if project is not None:
        def relative(path: Path) -> str:
            return _project_path(project, path)
    else:
        def relative(path: Path) -> str:
            return _input_path(input_dir, path)

    return RenderedFile(
        input=relative(source) if project is not None else str(source),
        markdown=execute_result.markdown,
        format=format,
        file=relative(output_file),
        supporting=[relative(Path(path)) for path in remaining] or None,
        resource_files=RenderResourceFiles(
            globs=list(pandoc_result.resources),
            files=[*executed_file.resource_files, *html_result.resources],
        ),
        self_contained=self_contained,
    )


__all__ = [
    "is_self_contained",
    "is_self_contained_output",
    "is_standalone_format",
    "merge_pandoc_includes",
    "render_pandoc",
]
