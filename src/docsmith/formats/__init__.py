"""Output formats: the ``Format`` model and the built-in writer defaults."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from threading import RLock
from typing import Any

from ..core.constants import KEY_TO
from .format import (
    EXECUTE_KEYS,
    LANGUAGE_PREFIXES,
    PANDOC_KEYS,
    RENDER_KEYS,
    Format,
    FormatExtras,
    FormatExtrasHook,
    HtmlFinalizer,
    HtmlPostprocessor,
    ResolveFormatHook,
    default_target,
    format_from_metadata,
    format_keys,
    merge_format_metadata,
    metadata_as_format,
)
from .html import (
    HTML_DOC_WRITERS,
    HTML_EPUB_WRITERS,
    HTML_PRESENTATION_WRITERS,
    format_has_bootstrap,
    html_format,
)
from .reveal import revealjs_format


FormatFactory = Callable[[], Format]

_WRITER_FORMATS: dict[str, FormatFactory] = {}
_WRITER_FORMATS_LOCK = RLock()

_UNKNOWN_WRITER_EXTENSIONS = {
    "asciidoc": "adoc",
    "mediawiki": "wiki",
    "plain": "txt",
    "jats": "xml",
    "docbook": "xml",
    "icml": "icml",
}


def register_writer_format(name: str, factory: FormatFactory, *, overwrite: bool = False) -> None:
    """Register the factory producing the built-in defaults of a writer."""
    with _WRITER_FORMATS_LOCK:
        if name in _WRITER_FORMATS and not overwrite:
            raise ValueError(f"Writer format '{name}' is already registered.")
        _WRITER_FORMATS[name] = factory


def registered_writer_formats() -> list[str]:
    with _WRITER_FORMATS_LOCK:
        return sorted(_WRITER_FORMATS)


def base_writer(name: str) -> str:
    """Return the built-in writer behind a format name.

    Pandoc extensions are stripped (``html+smart`` is ``html``,
    ``markdown-smart`` is ``markdown``) and extension formats resolve to their
    base writer (``acm-pdf`` is ``pdf``).
    """
    head = name.split("+", 1)[0]
    with _WRITER_FORMATS_LOCK:
        known = set(_WRITER_FORMATS)
    if head in known or "-" not in head:
        return head
    prefix, _, _ = head.partition("-")
    _, _, suffix = head.rpartition("-")
    if suffix in known:
        return suffix
    if prefix in known:
        return prefix
    return head


def default_writer_format(name: str) -> Format:
    """Return a fresh copy of the built-in defaults for a format name."""
    writer = base_writer(name)
    with _WRITER_FORMATS_LOCK:
        factory = _WRITER_FORMATS.get(writer)
    if factory is not None:
        return factory()
    return Format(
        render={"output-ext": _UNKNOWN_WRITER_EXTENSIONS.get(writer, writer)},
        pandoc={"to": writer},
    )


def is_html_output(to: str | Mapping[str, Any] | None, exclusive: bool = False) -> bool:
    """Return True when a writer produces HTML (epub counts unless ``exclusive``)."""
    if isinstance(to, Mapping):
        to = to.get(KEY_TO)
    if not to:
        return False
    writer = base_writer(str(to))
    if writer in HTML_DOC_WRITERS or writer in HTML_PRESENTATION_WRITERS:
        return True
    return not exclusive and writer in HTML_EPUB_WRITERS


def is_html_file_output(pandoc: Mapping[str, Any]) -> bool:
    """Return True when the converter writes an HTML file for these options."""
    return is_html_output(pandoc, exclusive=True)


def is_html_compatible(format: Format) -> bool:
    """Return True when the output can embed raw HTML."""
    if is_html_output(format.pandoc):
        return True
    writer = base_writer(str(format.pandoc.get(KEY_TO) or ""))
    return writer in {"markdown", "gfm", "commonmark"} and bool(format.render.get("prefer-html"))


def _simple(to: str, ext: str, **sections: dict[str, Any]) -> FormatFactory:
    def _factory() -> Format:
        return Format(
            render={"output-ext": ext, **sections.get("render", {})},
            execute=dict(sections.get("execute", {})),
            pandoc={"to": to, **sections.get("pandoc", {})},
            metadata=dict(sections.get("metadata", {})),
        )

    return _factory


_PRINT_FIGURES = {"fig-width": 5.5, "fig-height": 3.5, "fig-format": "pdf", "fig-dpi": 300}
_OFFICE_FIGURES = {"fig-width": 5, "fig-height": 4, "fig-format": "png", "fig-dpi": 96}

register_writer_format("html", html_format)
register_writer_format("html4", lambda: html_format("html4"))
register_writer_format("html5", lambda: html_format("html5"))
register_writer_format("revealjs", revealjs_format)
register_writer_format(
    "pdf",
    _simple(
        "latex",
        "pdf",
        execute=_PRINT_FIGURES,
        pandoc={"standalone": True, "pdf-engine": "xelatex"},
    ),
)
register_writer_format("latex", _simple("latex", "tex", execute=_PRINT_FIGURES, pandoc={"standalone": True}))
register_writer_format("beamer", _simple("beamer", "pdf", execute=_PRINT_FIGURES, pandoc={"standalone": True}))
register_writer_format("docx", _simple("docx", "docx", execute=_OFFICE_FIGURES))
register_writer_format("odt", _simple("odt", "odt", execute=_OFFICE_FIGURES))
register_writer_format("pptx", _simple("pptx", "pptx", execute=_OFFICE_FIGURES))
register_writer_format("rtf", _simple("rtf", "rtf", pandoc={"standalone": True}))
register_writer_format("epub", _simple("epub", "epub", execute=_OFFICE_FIGURES))
register_writer_format("epub3", _simple("epub3", "epub", execute=_OFFICE_FIGURES))
register_writer_format("gfm", _simple("gfm", "md"))
register_writer_format("commonmark", _simple("commonmark", "md"))
register_writer_format("markdown", _simple("markdown", "md"))
register_writer_format("ipynb", _simple("ipynb", "ipynb"))


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
    "base_writer",
    "default_target",
    "default_writer_format",
    "format_from_metadata",
    "format_has_bootstrap",
    "format_keys",
    "is_html_compatible",
    "is_html_file_output",
    "is_html_output",
    "merge_format_metadata",
    "metadata_as_format",
    "register_writer_format",
    "registered_writer_formats",
]
