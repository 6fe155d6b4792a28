"""Typed format configuration and its layered merge.

A ``Format`` splits user metadata into five disjoint sections:

`render`
: options consumed by the render pipeline itself (``output-ext``,
  ``keep-tex``, ...).

`execute`
: directives for the execution engine (``freeze``, ``cache``, ``echo``,
  ``enabled``, ...).

`pandoc`
: options forwarded to the converter (``to``, ``output-file``,
  ``self-contained``, includes, ...).

`language`
: localisation strings (``toc-title``, ``crossref-*``, ...).

`metadata`
: every remaining key, passed to the converter as document metadata.

Formats merge section by section with ``merge_format_metadata`` using the
rules documented in :mod:`docsmith.core.merge`; format hooks are taken from
the last layer that defines them.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
import copy
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup

from ..core.constants import (
    KEY_EXECUTE,
    KEY_FORMAT,
    KEY_KEEP_MD,
    KEY_KEEP_TEX,
    KEY_OUTPUT_EXT,
    KEY_TO,
    KEY_WRITER,
)
from ..core.html import HtmlPostProcessResult
from ..core.merge import merge_configs


RENDER_KEYS = frozenset(
    {
        "keep-tex",
        "keep-yaml",
        "keep-source",
        "keep-hidden",
        "prefer-html",
        "output-divs",
        "output-ext",
        "fig-align",
        "code-fold",
        "code-summary",
        "code-overflow",
        "code-link",
        "code-line-numbers",
        "code-tools",
        "tbl-colwidths",
        "merge-includes",
        "inline-includes",
        "link-external-icon",
        "link-external-newwindow",
        "self-contained-math",
        "format-resources",
    }
)

EXECUTE_KEYS = frozenset(
    {
        "fig-width",
        "fig-height",
        "fig-format",
        "fig-dpi",
        "df-print",
        "error",
        "eval",
        "engine",
        "cache",
        "freeze",
        "echo",
        "output",
        "warning",
        "include",
        "keep-md",
        "keep-ipynb",
        "ipynb",
        "enabled",
        "daemon",
        "daemon-restart",
        "debug",
        "ipynb-filters",
    }
)

PANDOC_KEYS = frozenset(
    {
        "to",
        "from",
        "writer",
        "output-file",
        "self-contained",
        "embed-resources",
        "standalone",
        "template",
        "template-partials",
        "filters",
        "pdf-engine",
        "pdf-engine-opts",
        "include-in-header",
        "include-before-body",
        "include-after-body",
        "toc",
        "toc-depth",
        "number-sections",
        "number-offset",
        "shift-heading-level-by",
        "html-math-method",
        "section-divs",
        "highlight-style",
        "slide-level",
        "reference-location",
        "top-level-division",
        "variables",
        "wrap",
        "columns",
        "citeproc",
        "cite-method",
        "reference-doc",
        "epub-cover-image",
    }
)

LANGUAGE_PREFIXES = (
    "toc-title",
    "section-title-",
    "callout-",
    "crossref-",
    "code-summary",
    "title-block-",
)


HtmlPostprocessor = Callable[[BeautifulSoup, Mapping[str, Any]], HtmlPostProcessResult | None]
HtmlFinalizer = Callable[[BeautifulSoup], None]
FilePostprocessor = Callable[[Any], None]


@dataclass(slots=True)
class FormatExtras:
    """Additional converter inputs contributed by a format at conversion time."""

    args: list[str] = field(default_factory=list)
    pandoc: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    metadata_override: dict[str, Any] = field(default_factory=dict)
    include_in_header: list[str] = field(default_factory=list)
    include_before_body: list[str] = field(default_factory=list)
    include_after_body: list[str] = field(default_factory=list)
    resources: list[str] = field(default_factory=list)
    html_postprocessors: list[HtmlPostprocessor] = field(default_factory=list)
    html_finalizers: list[HtmlFinalizer] = field(default_factory=list)
    postprocessors: list[FilePostprocessor] = field(default_factory=list)

    def merge(self, other: FormatExtras) -> FormatExtras:
        """Return extras combining this instance with another (other wins)."""
        return FormatExtras(
            args=[*self.args, *other.args],
            pandoc=merge_configs(self.pandoc, other.pandoc),
            metadata=merge_configs(self.metadata, other.metadata),
            metadata_override=merge_configs(self.metadata_override, other.metadata_override),
            include_in_header=[*self.include_in_header, *other.include_in_header],
            include_before_body=[*self.include_before_body, *other.include_before_body],
            include_after_body=[*self.include_after_body, *other.include_after_body],
            resources=[*self.resources, *other.resources],
            html_postprocessors=[*self.html_postprocessors, *other.html_postprocessors],
            html_finalizers=[*self.html_finalizers, *other.html_finalizers],
            postprocessors=[*self.postprocessors, *other.postprocessors],
        )


FormatExtrasHook = Callable[..., FormatExtras]
ResolveFormatHook = Callable[[Any], None]


@dataclass(slots=True)
class Format:
    """Fully sectioned configuration for one named output target."""

    render: dict[str, Any] = field(default_factory=dict)
    execute: dict[str, Any] = field(default_factory=dict)
    pandoc: dict[str, Any] = field(default_factory=dict)
    language: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)
    resolve_format: ResolveFormatHook | None = field(default=None, compare=False, repr=False)
    format_extras: FormatExtrasHook | None = field(default=None, compare=False, repr=False)

    @property
    def output_ext(self) -> str | None:
        value = self.render.get(KEY_OUTPUT_EXT)
        return str(value) if value is not None else None

    def copy(self) -> Format:
        """Return a deep copy that shares the (immutable) hooks."""
        return Format(
            render=copy.deepcopy(self.render),
            execute=copy.deepcopy(self.execute),
            pandoc=copy.deepcopy(self.pandoc),
            language=copy.deepcopy(self.language),
            metadata=copy.deepcopy(self.metadata),
            resolve_format=self.resolve_format,
            format_extras=self.format_extras,
        )


def merge_format_metadata(*formats: Format | None) -> Format:
    """Merge formats left to right; later formats take precedence section by section."""
    merged = Format()
    for current in formats:
        if current is None:
            continue
        merged.render = merge_configs(merged.render, current.render)
        merged.execute = merge_configs(merged.execute, current.execute)
        merged.pandoc = merge_configs(merged.pandoc, current.pandoc)
        merged.language = merge_configs(merged.language, current.language)
        merged.metadata = merge_configs(merged.metadata, current.metadata)
        if current.resolve_format is not None:
            merged.resolve_format = current.resolve_format
        if current.format_extras is not None:
            merged.format_extras = current.format_extras
    return merged


def metadata_as_format(metadata: Mapping[str, Any]) -> Format:
    """Split a flat metadata mapping into format sections."""
    result = Format()
    for key, value in metadata.items():
        if key == KEY_EXECUTE and isinstance(value, Mapping):
            result.execute = merge_configs(result.execute, value)
        elif key in RENDER_KEYS:
            result.render[key] = copy.deepcopy(value)
        elif key in EXECUTE_KEYS:
            result.execute[key] = copy.deepcopy(value)
        elif key in PANDOC_KEYS:
            result.pandoc[key] = copy.deepcopy(value)
        elif isinstance(key, str) and key.startswith(LANGUAGE_PREFIXES):
            result.language[key] = copy.deepcopy(value)
        else:
            result.metadata[key] = copy.deepcopy(value)
    return result


def format_keys(metadata: Mapping[str, Any]) -> list[str]:
    """Return the format names declared by a metadata mapping."""
    declared = metadata.get(KEY_FORMAT)
    if isinstance(declared, str):
        return [declared]
    if isinstance(declared, Mapping):
        return [str(key) for key in declared]
    if isinstance(declared, Sequence) and not isinstance(declared, (str, bytes)):
        return [str(entry) for entry in declared]
    return []


def format_from_metadata(base_format: Format, to: str, debug: bool | None = None) -> Format:
    """Overlay the per-format block for ``to`` on top of the base format."""
    user_format = Format()
    configured = base_format.metadata.get(KEY_FORMAT)
    if isinstance(configured, Mapping):
        entry = configured.get(to)
        if entry == "default" or entry is True:
            user_format = metadata_as_format({})
        elif isinstance(entry, Mapping):
            user_format = metadata_as_format(entry)

    merged = merge_format_metadata(base_format, user_format)
    if debug:
        merged.execute[KEY_KEEP_MD] = True
        merged.render[KEY_KEEP_TEX] = True
    return merged


def default_target(format: Format) -> str:
    """Return the converter target of a base format (``to``, ``writer`` or html)."""
    return str(format.pandoc.get(KEY_TO) or format.pandoc.get(KEY_WRITER) or "html")


__all__ = [
    "EXECUTE_KEYS",
    "LANGUAGE_PREFIXES",
    "PANDOC_KEYS",
    "RENDER_KEYS",
    "Format",
    "FormatExtras",
    "FormatExtrasHook",
    "HtmlFinalizer",
    "HtmlPostprocessor",
    "ResolveFormatHook",
    "default_target",
    "format_from_metadata",
    "format_keys",
    "merge_format_metadata",
    "metadata_as_format",
]
