"""Ordered HTML postprocessing of a rendered output file."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
from pathlib import Path
import re
from typing import Any

from ..core.html import HtmlPostProcessResult, parse_html, serialize_html
from ..formats import HtmlFinalizer, HtmlPostprocessor


logger = logging.getLogger(__name__)

_DOCTYPE_RE = re.compile(r"^<!DOCTYPE.*?>", re.IGNORECASE | re.DOTALL)


def run_html_postprocessors(
    output_file: Path,
    input_metadata: Mapping[str, Any],
    postprocessors: Sequence[HtmlPostprocessor],
    finalizers: Sequence[HtmlFinalizer] = (),
) -> HtmlPostProcessResult:
    """Run postprocessors then finalizers over an HTML file, rewriting it in place.

    Postprocessors run in registration order and report the resources and
    supporting files they discover. Finalizers run afterwards so that they
    see the tree every postprocessor produced. The tree never outlives this
    call. Without postprocessors or finalizers the file is left untouched.
    """
    result = HtmlPostProcessResult()
    if not postprocessors and not finalizers:
        return result

    markup = output_file.read_text(encoding="utf-8")
    doctype_match = _DOCTYPE_RE.match(markup)
    doctype = doctype_match.group(0) if doctype_match else None

    soup = parse_html(markup)
    for postprocessor in postprocessors:
        partial = postprocessor(soup, input_metadata)
        if partial is not None:
            result = result + partial

    for finalizer in finalizers:
        finalizer(soup)

    rendered = serialize_html(soup)
    if doctype:
        rendered = f"{doctype}\n{rendered}"
    output_file.write_text(rendered, encoding="utf-8")
    logger.debug(
        "Postprocessed %s (%d postprocessors, %d finalizers)",
        output_file,
        len(postprocessors),
        len(finalizers),
    )
    return result


__all__ = ["run_html_postprocessors"]
