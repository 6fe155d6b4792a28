"""Scoped temporary files and directories for a render invocation."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
import os
from pathlib import Path
import shutil
import tempfile


class TempContext:
    """Track temporary paths created during a render so they can be released together."""

    def __init__(self, root: Path | None = None) -> None:
        self._root = root
        self._paths: list[Path] = []
        self._base: Path | None = None

    @property
    def base(self) -> Path:
        """Return the directory holding every temporary path of this context."""
        if self._base is None:
            if self._root is not None:
                self._root.mkdir(parents=True, exist_ok=True)
            self._base = Path(tempfile.mkdtemp(prefix="docsmith-", dir=self._root))
        return self._base

    def create_dir(self, prefix: str = "dir-") -> Path:
        """Create and return a fresh temporary directory."""
        path = Path(tempfile.mkdtemp(prefix=prefix, dir=self.base))
        self._paths.append(path)
        return path

    def create_file(self, *, suffix: str = "", prefix: str = "file-") -> Path:
        """Create an empty temporary file and return its path."""
        handle, name = tempfile.mkstemp(suffix=suffix, prefix=prefix, dir=self.base)
        os.close(handle)
        path = Path(name)
        self._paths.append(path)
        return path

    def cleanup(self) -> None:
        """Remove every path created by this context."""
        if self._base is not None and self._base.exists():
            shutil.rmtree(self._base, ignore_errors=True)
        self._base = None
        self._paths.clear()


@contextmanager
def temp_context(root: Path | None = None) -> Iterator[TempContext]:
    """Provide a temp context that is always cleaned up."""
    context = TempContext(root)
    try:
        yield context
    finally:
        context.cleanup()


__all__ = ["TempContext", "temp_context"]
