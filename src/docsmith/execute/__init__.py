"""Execution engines: contracts, registry and the built-in markdown engine."""

from __future__ import annotations

from .markdown import MarkdownEngine
from .registry import (
    EngineRegistry,
    execution_engine,
    execution_engine_keep_md,
    file_execution_engine,
    file_execution_engine_and_target,
    register_engine,
    registry,
)
from .types import (
    DependenciesOptions,
    DependenciesResult,
    ExecuteOptions,
    ExecuteResult,
    ExecutionEngine,
    ExecutionTarget,
    PandocIncludes,
    PostProcessOptions,
)


__all__ = [
    "DependenciesOptions",
    "DependenciesResult",
    "EngineRegistry",
    "ExecuteOptions",
    "ExecuteResult",
    "ExecutionEngine",
    "ExecutionTarget",
    "MarkdownEngine",
    "PandocIncludes",
    "PostProcessOptions",
    "execution_engine",
    "execution_engine_keep_md",
    "file_execution_engine",
    "file_execution_engine_and_target",
    "register_engine",
    "registry",
]
