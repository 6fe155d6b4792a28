"""Core building blocks shared by the render pipeline."""

from __future__ import annotations

from .diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter, warn_once
from .exceptions import (
    ConverterInvocationError,
    DocsmithError,
    EngineNotFoundError,
    PostprocessContractError,
    ProjectConfigError,
    RenderInvalidYAMLError,
    YAMLValidationError,
)
from .merge import merge_configs
from .project import ProjectContext, project_context
from .temp import TempContext


__all__ = [
    "ConverterInvocationError",
    "DiagnosticEmitter",
    "DocsmithError",
    "EngineNotFoundError",
    "LoggingEmitter",
    "NullEmitter",
    "PostprocessContractError",
    "ProjectConfigError",
    "ProjectContext",
    "RenderInvalidYAMLError",
    "TempContext",
    "YAMLValidationError",
    "merge_configs",
    "project_context",
    "warn_once",
]
