"""Data structures exchanged between the stages of a render."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from ..core.diagnostics import DiagnosticEmitter
from ..core.html import HtmlPostProcessResult
from ..core.project import ProjectContext
from ..core.temp import TempContext
from ..execute.types import ExecuteResult, ExecutionEngine, ExecutionTarget
from ..formats import Format, HtmlFinalizer, HtmlPostprocessor
from ..formats.format import FilePostprocessor


@dataclass(slots=True)
class RenderFlags:
    """Command-line level overrides for a render."""

    to: str | None = None
    output: str | None = None
    execute: bool | None = None
    execute_cache: bool | str | None = None
    execute_daemon: bool | int | None = None
    execute_daemon_restart: bool | None = None
    execute_debug: bool | None = None
    execute_dir: Path | None = None
    params: dict[str, Any] = field(default_factory=dict)
    params_file: Path | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    self_contained: bool | None = None
    debug: bool = False
    quiet: bool = False


@dataclass(slots=True)
class RenderOptions:
    """Options shared by every file of a ``render_files`` call."""

    flags: RenderFlags = field(default_factory=RenderFlags)
    pandoc_args: list[str] = field(default_factory=list)
    use_freezer: bool = False
    progress: bool = False
    temp: TempContext | None = None
    emitter: DiagnosticEmitter | None = None


@dataclass(slots=True)
class RenderFile:
    """A file to render, optionally restricted to a set of format names."""

    path: Path
    formats: list[str] | None = None


@dataclass(slots=True)
class RenderContext:
    """Unit of work for one (input, format) pair."""

    target: ExecutionTarget
    options: RenderOptions
    engine: ExecutionEngine
    format: Format
    project: ProjectContext | None
    lib_dir: str


@dataclass(slots=True)
class RenderExecuteOptions:
    resolve_dependencies: bool = True
    always_execute: bool = False


@dataclass(slots=True)
class PandocOptions:
    """Everything the converter invocation needs."""

    markdown: str
    source: Path
    output: Path
    format: Format
    lib_dir: str | None
    temp: TempContext
    flags: RenderFlags = field(default_factory=RenderFlags)
    project: ProjectContext | None = None
    args: list[str] = field(default_factory=list)
    metadata: dict[str, Any] | None = None
    offset: str | None = None
    quiet: bool = False


@dataclass(slots=True)
class PandocResult:
    """Artifacts reported by a successful converter run."""

    resources: list[str] = field(default_factory=list)
    html_postprocessors: list[HtmlPostprocessor] = field(default_factory=list)
    html_finalizers: list[HtmlFinalizer] = field(default_factory=list)
    postprocessors: list[FilePostprocessor] = field(default_factory=list)


CompleteHook = Callable[[PandocOptions], Path | None]


@dataclass(slots=True)
class OutputRecipe:
    """Where and how the converter writes its output."""

    output: Path
    format: Format
    args: list[str] = field(default_factory=list)
    keep_yaml: bool = False
    complete: CompleteHook | None = None


@dataclass(slots=True)
class ExecutedFile:
    context: RenderContext
    recipe: OutputRecipe
    execute_result: ExecuteResult
    resource_files: list[str] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class RenderResourceFiles:
    globs: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)


@dataclass(slots=True, frozen=True)
class RenderedFile:
    """Final record of one rendered (input, format) pair."""

    input: str
    markdown: str
    format: Format
    file: str
    supporting: list[str] | None = None
    resource_files: RenderResourceFiles = field(default_factory=RenderResourceFiles)
    self_contained: bool = False
    supplemental: bool = False


@dataclass(slots=True)
class RenderFilesResult:
    files: list[RenderedFile] = field(default_factory=list)
    error: BaseException | None = None


@dataclass(slots=True)
class RenderResult:
    """Outcome of a render, with the locations needed to find its outputs."""

    files: list[RenderedFile] = field(default_factory=list)
    error: BaseException | None = None
    base_dir: Path | None = None
    output_dir: str | None = None


class PandocRenderer(Protocol):
    """Callbacks that receive executed files and produce rendered files."""

    def on_before_execute(self, format: Format) -> dict[str, Any]: ...

    def on_render(self, format: str, executed_file: ExecutedFile, quiet: bool) -> None: ...

    def on_complete(self, partial: bool = False, quiet: bool = False) -> RenderFilesResult: ...


__all__ = [
    "ExecutedFile",
    "HtmlPostProcessResult",
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
]
