"""Diagnostic abstractions shared across the rendering pipeline."""

from __future__ import annotations

from collections.abc import Mapping
import logging
from threading import RLock
from typing import Any, Protocol, runtime_checkable


logger = logging.getLogger(__name__)

_WARNED: set[str] = set()
_WARNED_LOCK = RLock()


@runtime_checkable
class DiagnosticEmitter(Protocol):
    """Interface used to surface warnings, errors, and structured events."""

    debug_enabled: bool

    def warning(self, message: str, exc: BaseException | None = None) -> None: ...

    def error(self, message: str, exc: BaseException | None = None) -> None: ...

    def event(self, name: str, payload: Mapping[str, Any]) -> None: ...


class NullEmitter:
    """Emitter that ignores every diagnostic."""

    debug_enabled: bool = False

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        return

    def error(self, message: str, exc: BaseException | None = None) -> None:
        return

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        return


class LoggingEmitter:
    """Emitter that forwards diagnostics to the standard logging module."""

    def __init__(
        self, *, logger_obj: logging.Logger | None = None, debug_enabled: bool = False
    ) -> None:
        self._logger = logger_obj or logger
        self.debug_enabled = debug_enabled

    def warning(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.warning(message, exc_info=exc)
        else:
            self._logger.warning(message)

    def error(self, message: str, exc: BaseException | None = None) -> None:
        if exc is not None:
            self._logger.error(message, exc_info=exc)
        else:
            self._logger.error(message)

    def event(self, name: str, payload: Mapping[str, Any]) -> None:
        message = format_event_message(name, payload)
        if message:
            self._logger.info(message)
            return
        self._logger.debug("diagnostic event %s: %s", name, dict(payload))


def format_event_message(name: str, payload: Mapping[str, Any]) -> str | None:
    """Return a human-friendly summary for selected diagnostic events."""
    data = dict(payload)

    if name == "render_progress":
        index = data.get("index")
        total = data.get("total")
        path = data.get("path") or "<unknown>"
        if index is None or total is None:
            return f"Rendering {path}"
        width = len(str(total))
        return f"[{str(index).rjust(width)}/{total}] {path}"

    if name == "freeze_reuse":
        source = data.get("source") or "<unknown>"
        output = data.get("output") or "<unknown>"
        return f"Using frozen results for {source} ({output})"

    if name == "freeze_store":
        source = data.get("source") or "<unknown>"
        visible = "visible" if data.get("visible") else "hidden"
        return f"Froze execution results for {source} ({visible} freezer)"

    if name == "format_unsupported":
        fmt = data.get("format") or "<unknown>"
        project_type = data.get("project_type") or "default"
        return f"The {fmt} format is not supported by {project_type} projects"

    return None


def warn_once(message: str, *, emitter: DiagnosticEmitter | None = None) -> bool:
    """Emit a warning the first time a message is seen in this process."""
    with _WARNED_LOCK:
        if message in _WARNED:
            return False
        _WARNED.add(message)
    if emitter is not None:
        emitter.warning(message)
    else:
        logger.warning(message)
    return True


def reset_warn_once() -> None:
    """Forget previously emitted one-time warnings."""
    with _WARNED_LOCK:
        _WARNED.clear()


__all__ = [
    "DiagnosticEmitter",
    "LoggingEmitter",
    "NullEmitter",
    "format_event_message",
    "reset_warn_once",
    "warn_once",
]
