"""BeautifulSoup helpers used by HTML postprocessors."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from threading import RLock

from bs4 import BeautifulSoup, FeatureNotFound
from bs4.element import Tag


@dataclass(slots=True)
class HtmlPostProcessResult:
    """Files discovered by HTML postprocessors.

    `resources` are copied next to the output, `supporting` survive cleanup.
    Results combine with `+`, preserving order and duplicates.
    """

    resources: list[str] = field(default_factory=list)
    supporting: list[str] = field(default_factory=list)

    def __add__(self, other: HtmlPostProcessResult) -> HtmlPostProcessResult:
        return HtmlPostProcessResult(
            resources=[*self.resources, *other.resources],
            supporting=[*self.supporting, *other.supporting],
        )


_PARSER_BACKEND: str | None = None
_PARSER_LOCK = RLock()


def init_html_parser() -> str:
    """Select the HTML parser backend once per process and return its name."""
    global _PARSER_BACKEND
    with _PARSER_LOCK:
        if _PARSER_BACKEND is None:
            try:
                BeautifulSoup("<p></p>", "lxml")
                _PARSER_BACKEND = "lxml"
            except FeatureNotFound:
                _PARSER_BACKEND = "html.parser"
        return _PARSER_BACKEND


def html_parser_backend() -> str:
    """Return the selected parser backend, initialising it on first use."""
    return _PARSER_BACKEND or init_html_parser()


def reset_html_parser() -> None:
    """Forget the selected backend so the next call re-probes it."""
    global _PARSER_BACKEND
    with _PARSER_LOCK:
        _PARSER_BACKEND = None


def parse_html(markup: str) -> BeautifulSoup:
    """Parse markup with the selected backend."""
    return BeautifulSoup(markup, html_parser_backend())


def serialize_html(soup: BeautifulSoup) -> str:
    """Serialise a parsed document starting at its root element."""
    root = soup.find("html")
    if isinstance(root, Tag):
        return str(root)
    return str(soup)


def find_parent(element: Tag, predicate: Callable[[Tag], bool]) -> Tag | None:
    """Return the closest ancestor matching the predicate."""
    for parent in element.parents:
        if isinstance(parent, Tag) and parent.name != "[document]" and predicate(parent):
            return parent
    return None


def has_class(element: Tag, name: str) -> bool:
    """Return True when the element carries the CSS class."""
    return name in (element.get("class") or [])


def add_class(element: Tag, *names: str) -> None:
    """Append CSS classes to an element without duplicating them."""
    classes = list(element.get("class") or [])
    for name in names:
        if name not in classes:
            classes.append(name)
    element["class"] = classes


def remove_class(element: Tag, *names: str) -> None:
    """Remove CSS classes from an element, dropping the attribute when empty."""
    classes = [entry for entry in element.get("class") or [] if entry not in names]
    if classes:
        element["class"] = classes
    elif element.has_attr("class"):
        del element["class"]


__all__ = [
    "HtmlPostProcessResult",
    "add_class",
    "find_parent",
    "has_class",
    "html_parser_backend",
    "init_html_parser",
    "parse_html",
    "remove_class",
    "reset_html_parser",
    "serialize_html",
]
