"""Custom exception hierarchy for the rendering pipeline."""

from __future__ import annotations


class DocsmithError(RuntimeError):
    """Base exception for rendering failures."""


class YAMLValidationError(DocsmithError):
    """Raised when document or project YAML does not validate."""


class RenderInvalidYAMLError(YAMLValidationError):
    """Raised when a render aborts because of invalid front matter."""

    def __init__(self, message: str = "Render failed due to invalid YAML.") -> None:
        super().__init__(message)


class ConverterInvocationError(DocsmithError):
    """Raised when the external document converter rejects a render."""


class PostprocessContractError(DocsmithError):
    """Raised when HTML postprocessors are registered for non-HTML output."""


class EngineNotFoundError(DocsmithError):
    """Raised when no execution engine is registered under a name."""


class ProjectConfigError(YAMLValidationError):
    """Raised when a project configuration file cannot be loaded."""


def exception_messages(exc: BaseException) -> list[str]:
    """Return the collected message chain for an exception and its causes."""
    messages: list[str] = []
    visited: set[int] = set()
    current: BaseException | None = exc
    while current is not None and id(current) not in visited:
        visited.add(id(current))
        text = str(current).strip()
        if text:
            first_line = text.splitlines()[0].strip()
            if first_line:
                messages.append(first_line)
        current = current.__cause__ or current.__context__
    return messages


def exception_hint(exc: BaseException) -> str | None:
    """Return the most specific message available for an exception chain."""
    messages = exception_messages(exc)
    return messages[-1] if messages else None


__all__ = [
    "ConverterInvocationError",
    "DocsmithError",
    "EngineNotFoundError",
    "PostprocessContractError",
    "ProjectConfigError",
    "RenderInvalidYAMLError",
    "YAMLValidationError",
    "exception_hint",
    "exception_messages",
]
