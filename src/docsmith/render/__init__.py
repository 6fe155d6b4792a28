"""Render pipeline: format resolution, execution, freezing and conversion."""

from __future__ import annotations

from .convert import (
    is_self_contained,
    is_self_contained_output,
    is_standalone_format,
    merge_pandoc_includes,
    render_pandoc,
)
from .execute import render_execute
from .freeze import FreezeCache
from .postprocess import run_html_postprocessors
from .render import (
    default_pandoc_renderer,
    remove_pandoc_to,
    render_contexts,
    render_files,
    render_formats,
    render_result_final_output,
    render_result_url_path,
)
from .resolve import resolve_formats
from .types import (
    ExecutedFile,
    OutputRecipe,
    PandocOptions,
    PandocRenderer,
    PandocResult,
    RenderContext,
    RenderedFile,
    RenderExecuteOptions,
    RenderFile,
    RenderFilesResult,
    RenderFlags,
    RenderOptions,
    RenderResourceFiles,
    RenderResult,
)


__all__ = [
    "ExecutedFile",
    "FreezeCache",
    "OutputRecipe",
    "PandocOptions",
    "PandocRenderer",
    "PandocResult",
    "RenderContext",
    "RenderExecuteOptions",
    "RenderFile",
    "RenderFilesResult",
    "RenderFlags",
    "RenderOptions",
    "RenderResourceFiles",
    "RenderResult",
    "RenderedFile",
    "default_pandoc_renderer",
    "is_self_contained",
    "is_self_contained_output",
    "is_standalone_format",
    "merge_pandoc_includes",
    "remove_pandoc_to",
    "render_contexts",
    "render_execute",
    "render_files",
    "render_formats",
    "render_pandoc",
    "render_result_final_output",
    "render_result_url_path",
    "resolve_formats",
    "run_html_postprocessors",
]
