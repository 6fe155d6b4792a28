"""reveal.js presentation format.

The format accepts reveal.js options in kebab case (``slide-number``) and
forwards them in the camel case reveal.js expects (``slideNumber``). After
conversion an HTML postprocessor reshapes the slide deck:

- output blocks marked ``.output-location-slide`` move to a new slide that
  repeats the parent heading;
- slides with ``data-visibility="hidden"`` disappear together with their
  table of contents entries;
- slide headings lose the attributes pandoc already copied to the section;
- asides and footnotes are collected into a single aside per slide;
- a lone image on a slide is stretched to fill the slide.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
import json
import re
from typing import Any

from bs4 import BeautifulSoup
from bs4.element import Tag

from ..core.constants import KEY_FROM, KEY_REFERENCE_LOCATION, KEY_SLIDE_LEVEL
from ..core.html import HtmlPostProcessResult, add_class, find_parent, has_class, remove_class
from .format import Format, FormatExtras
from .html import html_format_extras


REVEAL_OPTIONS = (
    "controls",
    "controlsTutorial",
    "controlsLayout",
    "controlsBackArrows",
    "progress",
    "slideNumber",
    "showSlideNumber",
    "hash",
    "hashOneBasedIndex",
    "respondToHashChanges",
    "history",
    "keyboard",
    "overview",
    "disableLayout",
    "center",
    "touch",
    "loop",
    "rtl",
    "navigationMode",
    "shuffle",
    "fragments",
    "fragmentInURL",
    "embedded",
    "help",
    "pause",
    "showNotes",
    "autoPlayMedia",
    "preloadIframes",
    "autoAnimate",
    "autoAnimateMatcher",
    "autoAnimateEasing",
    "autoAnimateDuration",
    "autoAnimateUnmatched",
    "autoAnimateStyles",
    "autoSlide",
    "autoSlideStoppable",
    "autoSlideMethod",
    "defaultTiming",
    "mouseWheel",
    "display",
    "hideInactiveCursor",
    "hideCursorTime",
    "previewLinks",
    "transition",
    "transitionSpeed",
    "backgroundTransition",
    "viewDistance",
    "mobileViewDistance",
    "parallaxBackgroundImage",
    "parallaxBackgroundSize",
    "parallaxBackgroundHorizontal",
    "parallaxBackgroundVertical",
    "width",
    "height",
    "margin",
    "minScale",
    "maxScale",
    "mathjax",
    "pdfSeparateFragments",
    "pdfPageHeightOffset",
)

KEY_HASH_TYPE = "hash-type"
KEY_CENTER_TITLE_SLIDE = "center-title-slide"
KEY_AUTO_STRETCH = "auto-stretch"
KEY_REVEALJS_CONFIG = "revealjs-config"
KEY_SMALLER = "smaller"

OUTPUT_LOCATION_SLIDE = "output-location-slide"

_MATHJAX_URL = "https://cdnjs.cloudflare.com/ajax/libs/mathjax/2.7.0/MathJax.js?config=TeX-AMS_HTML-full"
_SLIDE_NUMBER_RE = re.compile(r"slideNumber: (h[./]v|c(?:/t)?)")
_PANEL_CLASS_RE = re.compile(r"panel-")


def camel_to_kebab(name: str) -> str:
    return re.sub(r"([A-Z])", lambda match: "-" + match.group(1).lower(), name)


def kebab_to_camel(name: str) -> str:
    return re.sub(r"-([a-z])", lambda match: match.group(1).upper(), name)


def options_to_kebab(options: tuple[str, ...] | list[str]) -> list[str]:
    """Return the kebab-case spelling of every option that differs from its camel form."""
    return [camel_to_kebab(option) for option in options if camel_to_kebab(option) != option]


REVEAL_KEBAB_OPTIONS = tuple(options_to_kebab(REVEAL_OPTIONS))


def reveal_metadata_filter(
    metadata: Mapping[str, Any],
    kebab_options: tuple[str, ...] = REVEAL_KEBAB_OPTIONS,
) -> dict[str, Any]:
    """Rename kebab-case reveal.js options to camel case, leaving other keys alone."""
    return {
        (kebab_to_camel(key) if key in kebab_options else key): value
        for key, value in metadata.items()
    }


def reveal_resolve_format(format: Format) -> None:
    """Normalise reveal.js metadata of a resolved format in place."""
    format.metadata = reveal_metadata_filter(format.metadata)
    if format.metadata.get("navigationMode") == "vertical":
        format.metadata["navigationMode"] = "default"


def reveal_format_extras(*, format: Format, **kwargs: Any) -> FormatExtras:
    """Combine the HTML extras with reveal.js configuration and postprocessing."""
    metadata = format.metadata
    metadata_override: dict[str, Any] = {}

    controls_auto = not isinstance(metadata.get("controls"), bool)
    if controls_auto:
        metadata_override["controls"] = False
    preview_links_auto = metadata.get("previewLinks") == "auto"
    if preview_links_auto:
        metadata_override["previewLinks"] = False

    extra_config = {
        "controlsAuto": controls_auto,
        "previewLinksAuto": preview_links_auto,
        "smaller": bool(metadata.get(KEY_SMALLER)),
        "pdfSeparateFragments": bool(metadata.get("pdfSeparateFragments")),
        "autoAnimateEasing": metadata.get("autoAnimateEasing") or "ease",
        "autoAnimateDuration": metadata.get("autoAnimateDuration") or 1.0,
        "autoAnimateUnmatched": metadata.get("autoAnimateUnmatched", True),
    }

    extras = html_format_extras(format=format, **kwargs).merge(
        FormatExtras(
            metadata={"link-citations": True},
            metadata_override=metadata_override,
            html_postprocessors=[reveal_html_postprocessor(format, extra_config)],
        )
    )

    if metadata.get(KEY_REVEALJS_CONFIG) != "default":
        navigation_mode = metadata.get("navigationMode")
        vertical_slides = navigation_mode in ("default", "grid")
        if metadata.get("slideNumber") is True:
            extras.metadata_override["slideNumber"] = "h.v" if vertical_slides else "c/t"
        extras.metadata.update(
            {
                "width": 1050,
                "height": 700,
                "margin": 0.1,
                "center": False,
                "navigationMode": "linear",
                "controlsLayout": "edges",
                "controlsTutorial": False,
                "hash": True,
                "history": True,
                "hashOneBasedIndex": False,
                "fragmentInURL": False,
                "transition": "none",
                "backgroundTransition": "none",
                "pdfSeparateFragments": False,
            }
        )

    if metadata.get(KEY_HASH_TYPE) == "number":
        reader = str(format.pandoc.get(KEY_FROM) or "markdown")
        extras.pandoc[KEY_FROM] = f"{reader}-auto_identifiers"

    return extras


def _first_element_child(element: Tag) -> Tag | None:
    return next((child for child in element.children if isinstance(child, Tag)), None)


def _find_parent_slide(element: Tag, slide_class: str = "slide") -> Tag | None:
    return find_parent(element, lambda parent: has_class(parent, slide_class))


def reveal_html_postprocessor(format: Format, extra_config: Mapping[str, Any]):
    """Build the postprocessor that reshapes a rendered reveal.js deck."""
    slide_footnotes = format.pandoc.get(KEY_REFERENCE_LOCATION) != "document"
    slide_level = int(format.pandoc.get(KEY_SLIDE_LEVEL) or 2)
    heading_tags = {f"h{level}" for level in range(1, slide_level + 1)}

    def _postprocess(soup: BeautifulSoup, input_metadata: Mapping[str, Any]) -> HtmlPostProcessResult:
        _move_output_location_slides(soup, heading_tags)

        if format.metadata.get(KEY_HASH_TYPE) == "number":
            title_slide = soup.find(id="title-slide")
            if isinstance(title_slide, Tag):
                del title_slide["id"]

        _configure_initialize(soup, extra_config)
        _remove_hidden_slides(soup)
        _strip_slide_heading_attributes(soup, heading_tags)

        if format.metadata.get(KEY_CENTER_TITLE_SLIDE) is not False:
            title_slide = soup.find(id="title-slide")
            if isinstance(title_slide, Tag):
                add_class(title_slide, "center")
            for slide in soup.select(".title-slide"):
                add_class(slide, "center")

        _collect_asides(soup, slide_footnotes)
        _arrange_footnotes(soup, format, slide_footnotes, slide_level)

        for cite in soup.select('a[role="doc-biblioref"]'):
            cite["onclick"] = "return false;"

        refs = soup.find(id="refs")
        if isinstance(refs, Tag):
            slide = _find_parent_slide(refs)
            if slide is not None:
                add_class(slide, "smaller", "scrollable")
                remove_class(slide, "center")

        apply_stretch(soup, format.metadata.get(KEY_AUTO_STRETCH) is True)
        return HtmlPostProcessResult()

    return _postprocess


def _move_output_location_slides(soup: BeautifulSoup, heading_tags: set[str]) -> None:
    for slide_output in soup.select(f".{OUTPUT_LOCATION_SLIDE}"):
        parent_slide = _find_parent_slide(slide_output)
        if parent_slide is None or parent_slide.parent is None:
            continue
        new_slide = soup.new_tag("section")
        slide_id = parent_slide.get("id")
        new_slide["id"] = f"{slide_id}-output" if slide_id else ""
        add_class(new_slide, *(parent_slide.get("class") or []), OUTPUT_LOCATION_SLIDE)
        heading = _first_element_child(parent_slide)
        if heading is not None and heading.name in heading_tags:
            repeated = soup.new_tag(heading.name)
            for child in heading.contents:
                repeated.append(copy.copy(child))
            new_slide.append(repeated)
        new_slide.append(slide_output.extract())
        parent_slide.parent.append(new_slide)


def _configure_initialize(soup: BeautifulSoup, extra_config: Mapping[str, Any]) -> None:
    config = ",\n".join(f"'{key}': {json.dumps(value)}" for key, value in extra_config.items())
    for script in soup.find_all("script"):
        text = script.string
        if not text or "Reveal.initialize({" not in text:
            continue
        text = _SLIDE_NUMBER_RE.sub(r"slideNumber: '\1'", text)
        script.string = text.replace("Reveal.initialize({", f"Reveal.initialize({{\n{config},\n", 1)


def _remove_hidden_slides(soup: BeautifulSoup) -> None:
    for slide in reversed(soup.select('section.slide[data-visibility="hidden"]')):
        slide_id = slide.get("id")
        if slide_id:
            entry = soup.select_one(f'nav[role="doc-toc"] a[href="#/{slide_id}"]')
            if entry is not None and entry.parent is not None:
                entry.parent.decompose()
        slide.decompose()


def _strip_slide_heading_attributes(soup: BeautifulSoup, heading_tags: set[str]) -> None:
    for slide in soup.select("section.slide"):
        heading = _first_element_child(slide)
        if heading is None or heading.name not in heading_tags:
            continue
        auto_animate = heading.has_attr("data-auto-animate")
        heading.attrs = {}
        if not auto_animate:
            continue
        heading["data-id"] = "docsmith-animate-title"
        code_blocks = slide.select("div.sourceCode > pre > code")
        if len(code_blocks) == 1:
            code = code_blocks[0]
            if code.parent is not None:
                code.parent["data-id"] = "docsmith-animate-code"
            add_class(code, "hljs")
            for span in code.children:
                if isinstance(span, Tag):
                    add_class(span, "hljs-ln-code")


def _collect_asides(soup: BeautifulSoup, slide_footnotes: bool) -> None:
    for slide in soup.select("section.slide"):
        asides = slide.select("aside:not(.notes)")
        aside_divs = slide.select("div.aside")
        footnotes = slide.select('a[role="doc-noteref"]')
        if not (asides or aside_divs or footnotes):
            continue

        collected = soup.new_tag("aside")
        for source in (*asides, *aside_divs):
            wrapper = soup.new_tag("div")
            for child in list(source.contents):
                wrapper.append(child.extract())
            collected.append(wrapper)
            source.decompose()

        if slide_footnotes and footnotes:
            notes = soup.new_tag("ol")
            add_class(notes, "aside-footnotes")
            for index, note in enumerate(footnotes, start=1):
                href = note.get("href") or ""
                target_id = re.sub(r"^#/?", "", href)
                entry = soup.find(id=target_id) if target_id else None
                if isinstance(entry, Tag):
                    for back in entry.select(".footnote-back"):
                        back.decompose()
                    notes.append(entry.extract())
                sup = soup.new_tag("sup")
                sup.string = str(index)
                note.replace_with(sup)
            collected.append(notes)

        slide.append(collected)


def _arrange_footnotes(soup: BeautifulSoup, format: Format, slide_footnotes: bool, slide_level: int) -> None:
    sections = soup.select('section[role="doc-endnotes"]')
    if slide_footnotes:
        for section in sections:
            section.decompose()
        return

    for note in soup.select('a[role="doc-noteref"]'):
        note["onclick"] = "return false;"
    if len(sections) != 1:
        return
    section = sections[0]
    title = soup.new_tag(f"h{slide_level}")
    title.string = str(format.language.get("section-title-footnotes") or "Footnotes")
    section.insert(0, title)
    add_class(section, "smaller", "scrollable")
    remove_class(section, "center")
    for back in section.select(".footnote-back"):
        back.decompose()


def _blocks_stretch(element: Tag) -> bool:
    classes = element.get("class") or []
    return (
        "column" in classes
        or "docsmith-layout-panel" in classes
        or "fragment" in classes
        or OUTPUT_LOCATION_SLIDE in classes
        or any(_PANEL_CLASS_RE.match(name) for name in classes)
    )


def _has_stretch_class(image: Tag) -> bool:
    return has_class(image, "stretch") or has_class(image, "r-stretch")


def _remove_empty(element: Tag) -> None:
    parent = element.parent
    element.extract()
    if isinstance(parent, Tag) and parent.name != "section" and not parent.get_text().strip():
        _remove_empty(parent)


def apply_stretch(soup: BeautifulSoup, auto_stretch: bool) -> None:
    """Stretch the only image of a slide so it fills the available space."""
    for slide in soup.select("section.slide"):
        if has_class(slide, "nostretch"):
            continue
        images = slide.find_all("img")
        if len(images) != 1:
            continue
        image = images[0]
        if find_parent(image, _blocks_stretch) is not None:
            continue

        container = next(
            (
                child
                for child in slide.children
                if child is image or (isinstance(child, Tag) and any(node is image for node in child.descendants))
            ),
            None,
        )
        if not isinstance(container, Tag):
            continue
        if container.name == "p" and len(container.contents) > 1:
            continue

        style = image.get("style") or ""
        if auto_stretch and not _has_stretch_class(image) and "height:" not in style and not image.has_attr("height"):
            add_class(image, "r-stretch")

        if not _has_stretch_class(image) or image.parent is slide:
            continue

        figure = slide.select_one("div.docsmith-figure")
        caption = None
        if figure is not None:
            for name in figure.get("class") or []:
                if re.fullmatch(r"docsmith-figure-(center|left|right)", name):
                    add_class(image, name)
            figcaption = container.find("figcaption")
            if isinstance(figcaption, Tag):
                caption = soup.new_tag("p")
                add_class(caption, "caption")
                for child in list(figcaption.contents):
                    caption.append(copy.copy(child))

        anchor = container.find_next_sibling()
        _remove_empty(image)
        if anchor is not None and anchor.parent is slide:
            anchor.insert_before(image)
        else:
            slide.append(image)
        if caption is not None:
            image.insert_after(caption)
        if figure is not None and figure.parent is not None:
            _remove_empty(figure)


def revealjs_format() -> Format:
    """Return the built-in defaults of the reveal.js writer."""
    return Format(
        render={"output-ext": "html", "code-line-numbers": True},
        execute={"fig-width": 10, "fig-height": 5, "fig-format": "retina", "fig-dpi": 96},
        pandoc={
            "to": "revealjs",
            "standalone": True,
            "section-divs": True,
            "slide-level": 2,
            "html-math-method": {"method": "mathjax", "url": _MATHJAX_URL},
        },
        metadata={KEY_AUTO_STRETCH: True},
        resolve_format=reveal_resolve_format,
        format_extras=reveal_format_extras,
    )


__all__ = [
    "OUTPUT_LOCATION_SLIDE",
    "REVEAL_KEBAB_OPTIONS",
    "REVEAL_OPTIONS",
    "apply_stretch",
    "camel_to_kebab",
    "kebab_to_camel",
    "options_to_kebab",
    "reveal_format_extras",
    "reveal_html_postprocessor",
    "reveal_metadata_filter",
    "reveal_resolve_format",
    "revealjs_format",
]
