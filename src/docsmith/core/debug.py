"""Debug and diagnostic helpers used throughout the rendering pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .diagnostics import DiagnosticEmitter, LoggingEmitter, NullEmitter
from .exceptions import DocsmithError, exception_hint


def ensure_emitter(emitter: DiagnosticEmitter | None) -> DiagnosticEmitter:
    """Return a usable emitter, defaulting to the null implementation."""
    return emitter if emitter is not None else NullEmitter()


def debug_enabled(emitter: DiagnosticEmitter | None) -> bool:
    """Return whether debug mode is active for the given emitter."""
    return bool(emitter and getattr(emitter, "debug_enabled", False))


def record_event(
    emitter: DiagnosticEmitter | None,
    event: str,
    payload: Mapping[str, Any],
) -> None:
    """Forward a structured diagnostic event."""
    ensure_emitter(emitter).event(event, payload)


def mark_logged(error: BaseException) -> BaseException:
    """Flag an exception as already reported so presenters skip it."""
    error._docsmith_logged = True  # noqa: SLF001
    return error


def format_user_friendly_render_error(error: BaseException) -> str:
    """Return a concise rendering failure summary suitable for end users."""
    summary = "Render failed"
    hint_source = error.__cause__ or error
    hint = exception_hint(hint_source)
    if hint:
        summary = f"{summary}: {hint}"
    if summary.endswith("."):
        summary = summary.rstrip(".")
    if isinstance(error, DocsmithError):
        return f"{summary}. Re-run with --debug for technical details."
    return f"{summary}."


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "debug_enabled",
    "ensure_emitter",
    "format_user_friendly_render_error",
    "mark_logged",
    "record_event",
]
