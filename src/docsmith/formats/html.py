"""HTML document format: defaults, theme detection and built-in postprocessors."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from bs4 import BeautifulSoup
from bs4.element import Tag

from ..core.constants import KEY_LINK_EXTERNAL_NEWWINDOW, KEY_THEME, KEY_TO
from ..core.html import HtmlPostProcessResult
from .format import Format, FormatExtras


HTML_DOC_WRITERS = frozenset({"html", "html4", "html5"})
HTML_PRESENTATION_WRITERS = frozenset({"revealjs", "slidy", "slideous", "s5", "dzslides"})
HTML_EPUB_WRITERS = frozenset({"epub", "epub2", "epub3"})

_RESOURCE_ATTRIBUTES = (
    ("img", "src"),
    ("script", "src"),
    ("source", "src"),
    ("video", "src"),
    ("audio", "src"),
    ("video", "poster"),
    ("link", "href"),
)


def format_has_bootstrap(format: Format | None, to: str | None = None) -> bool:
    """Return True when an HTML document format uses the Bootstrap theme system."""
    if format is None:
        return False
    target = (to or format.pandoc.get(KEY_TO) or "html").split("+")[0]
    if target not in HTML_DOC_WRITERS:
        return False
    theme = format.metadata.get(KEY_THEME)
    return theme not in ("none", "pandoc")


def is_local_reference(reference: str) -> bool:
    """Return True for relative references that point inside the output tree."""
    if not reference or reference.startswith(("#", "/", "//")):
        return False
    parsed = urlparse(reference)
    return not parsed.scheme and not parsed.netloc


def discover_resources(input_dir: Path):
    """Build a postprocessor reporting local files referenced by the document."""

    def _discover(soup: BeautifulSoup, input_metadata: Mapping[str, Any]) -> HtmlPostProcessResult:
        resources: list[str] = []
        for tag_name, attribute in _RESOURCE_ATTRIBUTES:
            for element in soup.find_all(tag_name):
                reference = element.get(attribute)
                if not isinstance(reference, str) or not is_local_reference(reference):
                    continue
                path = unquote(urlparse(reference).path)
                if path and (input_dir / path).is_file() and path not in resources:
                    resources.append(path)
        return HtmlPostProcessResult(resources=resources)

    return _discover


def external_links(soup: BeautifulSoup, input_metadata: Mapping[str, Any]) -> HtmlPostProcessResult:
    """Open absolute http(s) links in a new window."""
    for anchor in soup.find_all("a", href=True):
        scheme = urlparse(anchor["href"]).scheme
        if scheme not in ("http", "https"):
            continue
        anchor["target"] = "_blank"
        rel = list(anchor.get("rel") or [])
        if "noopener" not in rel:
            rel.append("noopener")
        anchor["rel"] = rel
    return HtmlPostProcessResult()


def prune_dangling_anchors(soup: BeautifulSoup) -> None:
    """Unwrap in-page links whose target id no longer exists."""
    ids = {element["id"] for element in soup.find_all(id=True)}
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"]
        if not href.startswith("#") or len(href) == 1:
            continue
        if href[1:] not in ids and isinstance(anchor, Tag):
            anchor.unwrap()


def html_format_extras(
    *,
    input: Path,
    format: Format,
    **_: Any,
) -> FormatExtras:
    """Register the postprocessors shared by every HTML document."""
    postprocessors = [discover_resources(input.parent)]
    if format.render.get(KEY_LINK_EXTERNAL_NEWWINDOW):
        postprocessors.append(external_links)
    return FormatExtras(
        html_postprocessors=postprocessors,
        html_finalizers=[prune_dangling_anchors],
    )


def html_format(to: str = "html") -> Format:
    """Return the built-in defaults of an HTML document writer."""
    return Format(
        render={"output-ext": "html"},
        execute={"fig-width": 7, "fig-height": 5, "fig-format": "retina", "fig-dpi": 96},
        pandoc={"to": to, "standalone": True, "section-divs": True, "html-math-method": "mathjax"},
        format_extras=html_format_extras,
    )


__all__ = [
    "HTML_DOC_WRITERS",
    "HTML_EPUB_WRITERS",
    "HTML_PRESENTATION_WRITERS",
    "discover_resources",
    "external_links",
    "format_has_bootstrap",
    "html_format",
    "html_format_extras",
    "is_local_reference",
    "prune_dangling_anchors",
]
