"""Contracts shared by execution engines and the render pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from ..formats import Format


PandocIncludes = dict[str, list[str]]


@dataclass(slots=True, frozen=True)
class ExecutionTarget:
    """A source document bound to the engine that executes it."""

    source: Path
    input: Path
    markdown: str
    metadata: Mapping[str, Any] = field(default_factory=dict)
    data: Any = None


@dataclass(slots=True)
class ExecuteResult:
    """Markdown and artifacts produced by running a document's computations."""

    markdown: str
    supporting: list[str] = field(default_factory=list)
    filters: list[str] = field(default_factory=list)
    metadata: dict[str, Any] | None = None
    pandoc: dict[str, Any] | None = None
    includes: PandocIncludes | None = None
    engine_dependencies: dict[str, list[Any]] | None = None
    preserve: dict[str, str] | None = None
    post_process: bool = False
    resource_files: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ExecuteOptions:
    """Arguments handed to ``ExecutionEngine.execute``."""

    target: ExecutionTarget
    format: Format
    resource_dir: Path
    temp_dir: Path
    dependencies: bool = True
    lib_dir: str | None = None
    cwd: Path | None = None
    params: dict[str, Any] | None = None
    quiet: bool = False
    project_dir: Path | None = None


@dataclass(slots=True)
class DependenciesOptions:
    """Arguments handed to ``ExecutionEngine.dependencies``."""

    target: ExecutionTarget
    format: Format
    output: Path
    resource_dir: Path
    temp_dir: Path
    lib_dir: str | None = None
    dependencies: list[Any] = field(default_factory=list)
    quiet: bool = False


@dataclass(slots=True)
class DependenciesResult:
    includes: PandocIncludes = field(default_factory=dict)


@dataclass(slots=True)
class PostProcessOptions:
    """Arguments handed to ``ExecutionEngine.postprocess`` after conversion."""

    target: ExecutionTarget
    format: Format
    output: Path
    temp_dir: Path
    preserve: dict[str, str] | None = None
    quiet: bool = False


@runtime_checkable
class ExecutionEngine(Protocol):
    """Protocol implemented by execution engines.

    Engines may additionally define ``execute_target_skipped(target, format)``
    (called when frozen results are reused) and
    ``filter_format(source, options, format) -> Format`` (called once per
    resolved format).
    """

    name: str
    can_freeze: bool

    def claims_file(self, path: Path) -> bool: ...

    def claims_language(self, language: str) -> bool: ...

    def target(self, path: Path, *, quiet: bool = False) -> ExecutionTarget | None: ...

    def execute(self, options: ExecuteOptions) -> ExecuteResult: ...

    def dependencies(self, options: DependenciesOptions) -> DependenciesResult: ...

    def postprocess(self, options: PostProcessOptions) -> None: ...

    def keep_md(self, input: Path) -> Path | None: ...


__all__ = [
    "DependenciesOptions",
    "DependenciesResult",
    "ExecuteOptions",
    "ExecuteResult",
    "ExecutionEngine",
    "ExecutionTarget",
    "PandocIncludes",
    "PostProcessOptions",
]
