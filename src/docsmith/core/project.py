"""Project discovery, project-level metadata and the project type registry."""

from __future__ import annotations

from collections.abc import Callable, Iterable
import copy
from dataclasses import dataclass, field
import os
from pathlib import Path
from threading import RLock
from typing import Any

from .config import ProjectConfig, load_project_config, load_yaml_mapping
from .constants import (
    DIRECTORY_METADATA_FILES,
    KEY_OUTPUT_EXT,
    KEY_PROJECT,
    PROJECT_CONFIG_FILES,
    PROJECT_SCRATCH_DIR,
)
from .merge import merge_configs


@dataclass(slots=True)
class ProjectType:
    """Behaviour shared by every project of a given type."""

    type: str
    lib_dir: str | None = None
    project_formats_only: bool = False
    is_supported_format: Callable[[Any], bool] | None = None
    inherits_type: str | None = None


@dataclass(slots=True)
class ProjectContext:
    """A project directory together with its validated configuration."""

    dir: Path
    config: ProjectConfig = field(default_factory=ProjectConfig)
    config_file: Path | None = None

    @property
    def type(self) -> str:
        return self.config.project.type

    @property
    def lib_dir(self) -> str | None:
        """Return the configured or type-default library directory."""
        if self.config.project.lib_dir:
            return self.config.project.lib_dir
        return project_type(self.type).lib_dir

    @property
    def output_dir(self) -> Path:
        configured = self.config.project.output_dir
        return self.dir / configured if configured else self.dir

    def metadata(self) -> dict[str, Any]:
        return copy.deepcopy(self.config.metadata())


_PROJECT_TYPES: dict[str, ProjectType] = {}
_PROJECT_TYPES_LOCK = RLock()


def register_project_type(project_type_: ProjectType, *, overwrite: bool = False) -> ProjectType:
    """Register a project type under its name."""
    with _PROJECT_TYPES_LOCK:
        if project_type_.type in _PROJECT_TYPES and not overwrite:
            raise ValueError(f"Project type '{project_type_.type}' is already registered.")
        _PROJECT_TYPES[project_type_.type] = project_type_
    return project_type_


def project_type(name: str | None) -> ProjectType:
    """Return the registered project type, falling back to ``default``."""
    with _PROJECT_TYPES_LOCK:
        return _PROJECT_TYPES.get(name or "default") or _PROJECT_TYPES["default"]


def project_type_is_website(project_type_: ProjectType | str | None) -> bool:
    """Return True when a project type is, or inherits from, ``website``."""
    current = project_type(project_type_) if not isinstance(project_type_, ProjectType) else project_type_
    seen: set[str] = set()
    while current is not None and current.type not in seen:
        if current.type == "website":
            return True
        seen.add(current.type)
        if not current.inherits_type:
            break
        current = project_type(current.inherits_type)
    return False


_SLIDE_EXTENSIONS = frozenset({"pptx"})


def _book_supports(format: Any) -> bool:
    render = getattr(format, "render", {}) or {}
    pandoc = getattr(format, "pandoc", {}) or {}
    if pandoc.get("to") in {"revealjs", "beamer"}:
        return False
    return render.get(KEY_OUTPUT_EXT) not in _SLIDE_EXTENSIONS


register_project_type(ProjectType(type="default"))
register_project_type(ProjectType(type="website", lib_dir="site_libs"))
register_project_type(
    ProjectType(
        type="book",
        lib_dir="site_libs",
        project_formats_only=True,
        is_supported_format=_book_supports,
        inherits_type="website",
    )
)


def _first_existing(directory: Path, names: Iterable[str]) -> Path | None:
    for name in names:
        candidate = directory / name
        if candidate.is_file():
            return candidate
    return None


def find_project_dir(path: Path | str) -> Path | None:
    """Return the closest ancestor directory holding a project configuration file."""
    start = Path(path).resolve()
    directory = start if start.is_dir() else start.parent
    for candidate in (directory, *directory.parents):
        if _first_existing(candidate, PROJECT_CONFIG_FILES):
            return candidate
    return None


def project_context(path: Path | str) -> ProjectContext | None:
    """Load the project enclosing ``path`` or return None outside a project."""
    project_dir = find_project_dir(path)
    if project_dir is None:
        return None
    config_file = _first_existing(project_dir, PROJECT_CONFIG_FILES)
    assert config_file is not None
    return ProjectContext(
        dir=project_dir,
        config=load_project_config(config_file),
        config_file=config_file,
    )


def project_metadata_for_input_file(project: ProjectContext | None) -> dict[str, Any]:
    """Return the project-level metadata applying to inputs of the project."""
    if project is None:
        return {}
    return project.metadata()


def directory_metadata_for_input_file(project: ProjectContext | None, input_dir: Path) -> dict[str, Any]:
    """Merge every ``_metadata.yml`` from the project root down to ``input_dir``."""
    if project is None:
        return {}
    root = project.dir.resolve()
    target = input_dir.resolve()
    try:
        relative = target.relative_to(root)
    except ValueError:
        return {}

    directories = [root]
    for part in relative.parts:
        directories.append(directories[-1] / part)

    metadata: dict[str, Any] = {}
    for directory in directories:
        metadata_file = _first_existing(directory, DIRECTORY_METADATA_FILES)
        if metadata_file is not None:
            metadata = merge_configs(metadata, load_yaml_mapping(metadata_file))
    return metadata


def delete_project_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Remove project-only keys from a metadata mapping in place."""
    metadata.pop(KEY_PROJECT, None)
    return metadata


def project_offset(project: ProjectContext, input_path: Path | str) -> str:
    """Return the relative path from an input's directory back to the project root."""
    directory = Path(input_path).resolve().parent
    offset = os.path.relpath(project.dir.resolve(), directory)
    return Path(offset).as_posix()


def project_scratch_path(project_dir: Path, *parts: str) -> Path:
    """Return (and create) a path inside the project's scratch directory."""
    path = project_dir / PROJECT_SCRATCH_DIR
    path = path.joinpath(*parts) if parts else path
    path.mkdir(parents=True, exist_ok=True)
    return path


__all__ = [
    "ProjectContext",
    "ProjectType",
    "delete_project_metadata",
    "directory_metadata_for_input_file",
    "find_project_dir",
    "project_context",
    "project_metadata_for_input_file",
    "project_offset",
    "project_scratch_path",
    "project_type",
    "project_type_is_website",
    "register_project_type",
]
