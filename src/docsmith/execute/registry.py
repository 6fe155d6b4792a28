"""Execution engine registry and per-file engine selection."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
import re
from typing import TYPE_CHECKING

from ..core.constants import KEY_ENGINE, KEY_EXECUTE
from ..core.exceptions import EngineNotFoundError
from ..core.frontmatter import split_front_matter
from .markdown import MARKDOWN_EXTENSIONS, MarkdownEngine
from .types import ExecutionEngine, ExecutionTarget


if TYPE_CHECKING:  # pragma: no cover - typing only
    from ..render.types import RenderContext


_CODE_LANGUAGE_RE = re.compile(r"^\s*```+\s*\{([A-Za-z0-9_-]+)", re.MULTILINE)


class EngineRegistry:
    """Registry storing execution engines by name, in registration order."""

    def __init__(self) -> None:
        self._engines: dict[str, ExecutionEngine] = {}

    def register(self, engine: ExecutionEngine, *, overwrite: bool = False) -> None:
        """Register an engine under its ``name``."""
        if engine.name in self._engines and not overwrite:
            raise ValueError(f"Execution engine '{engine.name}' is already registered.")
        self._engines[engine.name] = engine

    def unregister(self, name: str) -> None:
        self._engines.pop(name, None)

    def get(self, name: str) -> ExecutionEngine:
        """Return a registered engine or raise ``EngineNotFoundError``."""
        try:
            return self._engines[name]
        except KeyError as exc:
            raise EngineNotFoundError(f"No execution engine registered for '{name}'") from exc

    def is_registered(self, name: str) -> bool:
        return name in self._engines

    def __iter__(self) -> Iterator[ExecutionEngine]:
        return iter(list(self._engines.values()))

    def engine_for_file(self, path: Path) -> ExecutionEngine | None:
        """Select the engine responsible for a source file."""
        if path.suffix.lower() in MARKDOWN_EXTENSIONS:
            return self._markdown_engine(path)
        for engine in self:
            if engine.claims_file(path):
                return engine
        return None

    def _markdown_engine(self, path: Path) -> ExecutionEngine:
        source = path.read_text(encoding="utf-8")
        metadata, body = split_front_matter(source)

        requested = metadata.get(KEY_ENGINE)
        execute = metadata.get(KEY_EXECUTE)
        if requested is None and isinstance(execute, dict):
            requested = execute.get(KEY_ENGINE)
        if isinstance(requested, str) and self.is_registered(requested):
            return self.get(requested)

        for language in _CODE_LANGUAGE_RE.findall(body):
            for engine in self:
                if engine.name != "markdown" and engine.claims_language(language.lower()):
                    return engine
        return self.get("markdown")


registry = EngineRegistry()
registry.register(MarkdownEngine())


def register_engine(engine: ExecutionEngine, *, overwrite: bool = False) -> None:
    """Expose a helper to register external engines."""
    registry.register(engine, overwrite=overwrite)


def execution_engine(name: str) -> ExecutionEngine:
    return registry.get(name)


def file_execution_engine(path: Path | str) -> ExecutionEngine | None:
    return registry.engine_for_file(Path(path))


def file_execution_engine_and_target(
    path: Path | str, *, quiet: bool = False
) -> tuple[ExecutionEngine, ExecutionTarget]:
    """Return the engine for a file together with its execution target."""
    source = Path(path)
    engine = registry.engine_for_file(source)
    if engine is None:
        raise EngineNotFoundError(f"Unable to render {source}: no execution engine claims this file.")
    target = engine.target(source, quiet=quiet)
    if target is None:
        raise EngineNotFoundError(f"Unable to render {source}: engine '{engine.name}' produced no target.")
    return engine, target


def execution_engine_keep_md(context: RenderContext) -> Path | None:
    """Return the path where the engine keeps intermediate markdown, if any."""
    return context.engine.keep_md(context.target.input)


__all__ = [
    "EngineRegistry",
    "execution_engine",
    "execution_engine_keep_md",
    "file_execution_engine",
    "file_execution_engine_and_target",
    "register_engine",
    "registry",
]
