"""Front matter validation.

Documents opt out with ``validate-yaml: false``. Validation re-parses the
front matter strictly (the execution target reads it leniently) and checks
the keys the pipeline itself consumes; unknown keys are document metadata
and are accepted as-is.
"""

from __future__ import annotations

import datetime as dt
import logging
from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError
import yaml

from ..core.constants import KEY_VALIDATE_YAML
from ..core.frontmatter import split_front_matter
from .types import RenderContext


logger = logging.getLogger(__name__)


class FrontMatter(BaseModel):
    """Keys of a document's front matter with a structural meaning."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    title: str | int | float | None = None
    subtitle: str | int | float | None = None
    author: str | list[Any] | dict[str, Any] | None = None
    date: str | dt.date | dt.datetime | None = None
    date_format: str | None = Field(default=None, alias="date-format")
    lang: str | None = None
    format: str | list[str] | dict[str, dict[str, Any] | str | bool | None] | None = None
    engine: str | None = None
    execute: dict[str, Any] | None = None
    metadata_files: str | list[str] | None = Field(default=None, alias="metadata-files")
    validate_yaml: bool | None = Field(default=None, alias="validate-yaml")


def _format_errors(exc: ValidationError, path: Path | None) -> list[str]:
    prefix = f"{path}: " if path is not None else ""
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        messages.append(f"{prefix}{location or 'front matter'}: {error.get('msg', 'invalid value')}")
    return messages


def validate_front_matter(markdown: str, path: Path | None = None) -> list[str]:
    """Return the validation errors of a document's front matter."""
    try:
        metadata, _ = split_front_matter(markdown, strict=True)
    except yaml.YAMLError as exc:
        prefix = f"{path}: " if path is not None else ""
        return [f"{prefix}invalid YAML front matter: {exc}"]

    if metadata.get(KEY_VALIDATE_YAML) is False:
        return []
    try:
        FrontMatter.model_validate(metadata)
    except ValidationError as exc:
        return _format_errors(exc, path)
    return []


def validate_document(context: RenderContext) -> list[str]:
    if context.target.metadata.get(KEY_VALIDATE_YAML) is False:
        return []
    return validate_front_matter(context.target.markdown, context.target.source)


def validate_document_from_source(
    markdown: str,
    engine_name: str,
    error: BaseException,
    path: Path | None = None,
) -> list[str]:
    """Re-validate a source whose contexts could not be built.

    An empty result means the front matter is valid and ``error`` had
    another cause.
    """
    errors = validate_front_matter(markdown, path)
    if errors:
        logger.debug("Front matter of %s (engine %s) failed validation after: %s", path, engine_name, error)
    return errors


__all__ = [
    "FrontMatter",
    "validate_document",
    "validate_document_from_source",
    "validate_front_matter",
]
