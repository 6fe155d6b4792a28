"""Invocation of the external pandoc converter."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
import logging
import os
from pathlib import Path
import shutil
import subprocess
from typing import Any

from ..core.constants import (
    KEY_EMBED_RESOURCES,
    KEY_FILTERS,
    KEY_FORMAT,
    KEY_FROM,
    KEY_INCLUDE_AFTER_BODY,
    KEY_INCLUDE_BEFORE_BODY,
    KEY_INCLUDE_IN_HEADER,
    KEY_PDF_ENGINE,
    KEY_RESOURCES,
    KEY_SELF_CONTAINED,
    KEY_STANDALONE,
    KEY_TO,
)
from ..core.frontmatter import dump_front_matter, partition_front_matter
from ..core.merge import merge_configs
from ..formats import FormatExtras
from .flags import remove_pandoc_to_arg
from .types import PandocOptions, PandocResult


logger = logging.getLogger(__name__)

PANDOC_ENV = "DOCSMITH_PANDOC"

_BOOLEAN_FLAGS = {
    "toc": "--toc",
    "number-sections": "--number-sections",
    "section-divs": "--section-divs",
    "citeproc": "--citeproc",
}

_VALUE_FLAGS = {
    "toc-depth": "--toc-depth",
    "template": "--template",
    "highlight-style": "--highlight-style",
    "slide-level": "--slide-level",
    "reference-location": "--reference-location",
    "top-level-division": "--top-level-division",
    "shift-heading-level-by": "--shift-heading-level-by",
    "wrap": "--wrap",
    "columns": "--columns",
    "reference-doc": "--reference-doc",
    "epub-cover-image": "--epub-cover-image",
}

_MATH_METHODS = {"mathjax", "katex", "mathml", "webtex", "gladtex", "plain"}


def pandoc_binary() -> str | None:
    """Return the converter executable (``$DOCSMITH_PANDOC`` or ``pandoc`` on PATH)."""
    configured = os.environ.get(PANDOC_ENV)
    if configured:
        return configured
    return shutil.which("pandoc")


def _run_converter(argv: Sequence[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    return subprocess.run(
        list(argv),
        check=False,
        capture_output=True,
        text=True,
        cwd=cwd,
    )


def _as_list(value: Any) -> list[str]:
    if value is None or value is False:
        return []
    if isinstance(value, (list, tuple)):
        return [str(entry) for entry in value]
    return [str(value)]


def _format_extras(options: PandocOptions) -> FormatExtras:
    hook = options.format.format_extras
    if hook is None:
        return FormatExtras()
    return hook(
        input=options.source,
        format=options.format,
        flags=options.flags,
        temp=options.temp,
        offset=options.offset,
        project=options.project,
        lib_dir=options.lib_dir,
    )


def document_metadata(options: PandocOptions, extras: FormatExtras) -> dict[str, Any]:
    """Return the metadata written into the converter's input document."""
    format = options.format
    metadata = merge_configs(
        extras.metadata,
        format.language,
        format.metadata,
        options.metadata or {},
        extras.metadata_override,
    )
    metadata.pop(KEY_FORMAT, None)
    return metadata


def pandoc_arguments(
    pandoc: Mapping[str, Any],
    includes: Mapping[str, list[str]],
    filters: Sequence[str],
) -> list[str]:
    """Translate converter options into command-line arguments."""
    args: list[str] = []
    if pandoc.get(KEY_STANDALONE) or pandoc.get(KEY_SELF_CONTAINED) or pandoc.get(KEY_EMBED_RESOURCES):
        args.append("--standalone")
    if pandoc.get(KEY_SELF_CONTAINED) or pandoc.get(KEY_EMBED_RESOURCES):
        args.append("--embed-resources")

    for key, flag in _BOOLEAN_FLAGS.items():
        if pandoc.get(key):
            args.append(flag)
    for key, flag in _VALUE_FLAGS.items():
        value = pandoc.get(key)
        if value is not None and value is not False:
            args.append(f"{flag}={value}")

    number_offset = pandoc.get("number-offset")
    if number_offset is not None:
        args.append(f"--number-offset={','.join(_as_list(number_offset))}")

    math_method = pandoc.get("html-math-method")
    if isinstance(math_method, Mapping):
        math_method = math_method.get("method")
    if isinstance(math_method, str) and math_method in _MATH_METHODS:
        args.append(f"--{math_method}")

    pdf_engine = pandoc.get(KEY_PDF_ENGINE)
    if pdf_engine:
        args.append(f"--pdf-engine={pdf_engine}")
    for option in _as_list(pandoc.get("pdf-engine-opts")):
        args.append(f"--pdf-engine-opt={option}")

    variables = pandoc.get("variables")
    if isinstance(variables, Mapping):
        for key, value in variables.items():
            args.extend(["--variable", f"{key}={value}"])

    for kind in (KEY_INCLUDE_IN_HEADER, KEY_INCLUDE_BEFORE_BODY, KEY_INCLUDE_AFTER_BODY):
        for path in includes.get(kind, []):
            args.append(f"--{kind}={path}")

    for entry in filters:
        if entry.endswith(".lua"):
            args.append(f"--lua-filter={entry}")
        else:
            args.append(f"--filter={entry}")
    return args


def run_pandoc(options: PandocOptions, filters: Sequence[str] | None = None) -> PandocResult | None:
    """Run the converter for one executed document.

    Returns ``None`` when the converter is missing or exits with a non-zero
    status; the caller treats that as a rejection of the render.
    """
    format = options.format
    extras = _format_extras(options)
    pandoc = merge_configs(format.pandoc, extras.pandoc)

    includes = {
        KEY_INCLUDE_IN_HEADER: [*_as_list(pandoc.get(KEY_INCLUDE_IN_HEADER)), *extras.include_in_header],
        KEY_INCLUDE_BEFORE_BODY: [*_as_list(pandoc.get(KEY_INCLUDE_BEFORE_BODY)), *extras.include_before_body],
        KEY_INCLUDE_AFTER_BODY: [*_as_list(pandoc.get(KEY_INCLUDE_AFTER_BODY)), *extras.include_after_body],
    }
    all_filters = [*_as_list(pandoc.get(KEY_FILTERS)), *(filters or [])]

    _, body = partition_front_matter(options.markdown)
    document = dump_front_matter(document_metadata(options, extras), body)
    input_file = options.temp.create_file(suffix=".md", prefix=f"{options.source.stem}-")
    input_file.write_text(document, encoding="utf-8")

    binary = pandoc_binary()
    if binary is None:
        logger.error("pandoc was not found; install it or set %s.", PANDOC_ENV)
        return None

    input_dir = options.source.parent
    argv = [
        binary,
        str(input_file),
        f"--from={pandoc.get(KEY_FROM) or 'markdown'}",
        f"--to={pandoc.get(KEY_TO) or 'html'}",
        f"--output={options.output}",
        f"--resource-path={input_dir}",
        *pandoc_arguments(pandoc, includes, all_filters),
        *remove_pandoc_to_arg([*extras.args, *options.args]),
    ]
    logger.debug("Running converter: %s", " ".join(argv))

    try:
        process = _run_converter(argv, input_dir)
    except OSError as exc:
        logger.error("Failed to execute pandoc: %s", exc)
        return None

    if process.returncode != 0:
        logger.error(
            "pandoc exited with status %s: %s",
            process.returncode,
            (process.stderr or "").strip(),
        )
        return None
    if process.stderr and not options.quiet:
        logger.warning("%s", process.stderr.rstrip())

    return PandocResult(
        resources=[*extras.resources, *_as_list(format.metadata.get(KEY_RESOURCES))],
        html_postprocessors=list(extras.html_postprocessors),
        html_finalizers=list(extras.html_finalizers),
        postprocessors=list(extras.postprocessors),
    )


__all__ = [
    "PANDOC_ENV",
    "document_metadata",
    "pandoc_arguments",
    "pandoc_binary",
    "run_pandoc",
]
