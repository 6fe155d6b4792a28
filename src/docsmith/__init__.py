"""Primary public API for docsmith."""

from __future__ import annotations

from docsmith.core import (
    ConverterInvocationError,
    DocsmithError,
    PostprocessContractError,
    ProjectContext,
    RenderInvalidYAMLError,
    TempContext,
    YAMLValidationError,
    merge_configs,
    project_context,
    warn_once,
)
from docsmith.execute import ExecuteResult, ExecutionEngine, ExecutionTarget, register_engine
from docsmith.formats import Format, FormatExtras, default_writer_format, register_writer_format
from docsmith.render import (
    RenderedFile,
    RenderFile,
    RenderFilesResult,
    RenderFlags,
    RenderOptions,
    RenderResult,
    render_files,
    render_formats,
    render_result_final_output,
)
from docsmith.version import get_version


__version__ = get_version()

__all__ = [
    "ConverterInvocationError",
    "DocsmithError",
    "ExecuteResult",
    "ExecutionEngine",
    "ExecutionTarget",
    "Format",
    "FormatExtras",
    "PostprocessContractError",
    "ProjectContext",
    "RenderFile",
    "RenderFilesResult",
    "RenderFlags",
    "RenderInvalidYAMLError",
    "RenderOptions",
    "RenderResult",
    "RenderedFile",
    "TempContext",
    "YAMLValidationError",
    "__version__",
    "default_writer_format",
    "get_version",
    "merge_configs",
    "project_context",
    "register_engine",
    "register_writer_format",
    "render_files",
    "render_formats",
    "render_result_final_output",
    "warn_once",
]
