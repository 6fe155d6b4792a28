"""Configuration models for project files.

ProjectSection

`type` (`str`)
: Project type name resolved through the project type registry. Built-in
  types are `default`, `website` and `book`.

`lib_dir` (`str | None`)
: Project-relative directory receiving shared HTML libraries. When omitted
  the project type default applies; standalone renders fall back to the
  input's `<stem>_files/libs` directory.

`output_dir` (`str | None`)
: Project-relative directory receiving rendered outputs.

ProjectConfig

`project` (`ProjectSection`)
: Project description under the `project:` key of `_docsmith.yml`.

Any other top-level key is project-level document metadata (formats,
execution options, bibliography...) and is kept verbatim.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
import yaml

from .constants import KEY_PROJECT
from .exceptions import ProjectConfigError


class ProjectSection(BaseModel):
    """Project description block."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    type: str = Field(default="default", description="Project type name")
    lib_dir: str | None = Field(default=None, alias="lib-dir")
    output_dir: str | None = Field(default=None, alias="output-dir")


class ProjectConfig(BaseModel):
    """Validated content of a project configuration file."""

    model_config = ConfigDict(extra="allow")

    project: ProjectSection = Field(default_factory=ProjectSection)

    def metadata(self) -> dict[str, Any]:
        """Return the project-level metadata (every key but ``project``)."""
        extra = self.model_extra or {}
        return {key: value for key, value in extra.items() if key != KEY_PROJECT}


def load_yaml_mapping(path: Path) -> dict[str, Any]:
    """Load a YAML file that must contain a mapping (empty files yield ``{}``)."""
    try:
        payload = yaml.safe_load(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise ProjectConfigError(f"Unable to read '{path}': {exc}") from exc
    except yaml.YAMLError as exc:
        raise ProjectConfigError(f"Invalid YAML in '{path}': {exc}") from exc
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ProjectConfigError(f"Expected a mapping at the top of '{path}'.")
    return payload


def load_project_config(path: Path) -> ProjectConfig:
    """Load and validate a project configuration file."""
    payload = load_yaml_mapping(path)
    section = payload.get(KEY_PROJECT)
    if section is not None and not isinstance(section, dict):
        raise ProjectConfigError(f"The 'project' key of '{path}' must be a mapping.")
    try:
        return ProjectConfig.model_validate(payload)
    except ValidationError as exc:
        raise ProjectConfigError(f"Invalid project configuration in '{path}': {exc}") from exc


__all__ = [
    "ProjectConfig",
    "ProjectSection",
    "load_project_config",
    "load_yaml_mapping",
]
