"""Filesystem helpers shared by the render pipeline."""

from __future__ import annotations

from pathlib import Path
import shutil


def dir_and_stem(path: Path | str) -> tuple[Path, str]:
    """Return the parent directory and stem of a path."""
    candidate = Path(path)
    return candidate.parent, candidate.stem


def input_files_dir(source: Path | str) -> str:
    """Return the name of the supporting files directory for an input."""
    return f"{Path(source).stem}_files"


def figures_dir(to: str | None) -> str:
    """Return the figures directory name used for a converter target."""
    return f"figure-{to or 'html'}"


def files_dir_lib_dir(source: Path | str) -> str:
    """Return the input-relative library directory used outside projects."""
    return f"{input_files_dir(source)}/libs"


def remove_if_exists(path: Path | str) -> bool:
    """Remove a file or directory tree, returning True when something was removed."""
    target = Path(path)
    if target.is_dir() and not target.is_symlink():
        shutil.rmtree(target)
        return True
    if target.exists() or target.is_symlink():
        target.unlink()
        return True
    return False


def remove_if_empty_dir(path: Path | str) -> bool:
    """Remove a directory when it exists and contains nothing."""
    target = Path(path)
    if target.is_dir() and not any(target.iterdir()):
        target.rmdir()
        return True
    return False


def copy_minimal(source: Path, destination: Path) -> None:
    """Copy a tree, overwriting files that already exist at the destination."""
    destination.mkdir(parents=True, exist_ok=True)
    for entry in source.iterdir():
        target = destination / entry.name
        if entry.is_dir():
            copy_minimal(entry, target)
        else:
            shutil.copy2(entry, target)


def resolve_output_path(source: Path, output: Path | str) -> Path:
    """Resolve an output path relative to the directory of its source."""
    candidate = Path(output)
    return candidate if candidate.is_absolute() else source.parent / candidate


__all__ = [
    "copy_minimal",
    "dir_and_stem",
    "figures_dir",
    "files_dir_lib_dir",
    "input_files_dir",
    "remove_if_empty_dir",
    "remove_if_exists",
    "resolve_output_path",
]
