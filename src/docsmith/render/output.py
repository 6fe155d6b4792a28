"""Output file naming and multi-pass completion hooks."""

from __future__ import annotations

import logging
import os
from pathlib import Path
import shutil
import subprocess

from rich.console import Console

from ..core.constants import (
    KEY_EMBED_RESOURCES,
    KEY_KEEP_TEX,
    KEY_OUTPUT_FILE,
    KEY_PDF_ENGINE,
    KEY_SELF_CONTAINED,
    KEY_TO,
)
from ..core.exceptions import ConverterInvocationError
from ..core.paths import remove_if_exists, resolve_output_path
from ..formats import Format
from .types import OutputRecipe, PandocOptions, RenderContext


logger = logging.getLogger(__name__)

LATEXMK_ENV = "DOCSMITH_LATEXMK"


def latexmk_binary() -> str | None:
    configured = os.environ.get(LATEXMK_ENV)
    if configured:
        return configured
    return shutil.which("latexmk")


STANDALONE_EXTENSIONS = frozenset({"pdf", "epub", "fb2", "docx", "rtf", "pptx", "odt", "ipynb"})


def is_standalone_format(format: Format) -> bool:
    """Return True when the output extension always packages its resources."""
    return (format.output_ext or "") in STANDALONE_EXTENSIONS


def is_self_contained(format: Format) -> bool:
    """Return True when the format asks the converter to embed its resources."""
    return bool(format.pandoc.get(KEY_SELF_CONTAINED) or format.pandoc.get(KEY_EMBED_RESOURCES))


def is_self_contained_output(format: Format, output: Path | str | None = None) -> bool:
    """Return True when the output embeds its resources, by flag, format or final extension."""
    if is_self_contained(format) or is_standalone_format(format):
        return True
    return output is not None and Path(output).suffix.lstrip(".") in STANDALONE_EXTENSIONS


def output_file_name(context: RenderContext) -> str:
    """Return the output file name of a context (``--output``, ``output-file`` or ``<stem>.<ext>``)."""
    format = context.format
    flags_output = context.options.flags.output
    if flags_output and flags_output != "-":
        return flags_output

    ext = format.output_ext or "html"
    configured = format.pandoc.get(KEY_OUTPUT_FILE)
    if configured:
        name = str(configured)
        return name if Path(name).suffix else f"{name}.{ext}"
    return f"{context.target.source.stem}.{ext}"


def _uses_latexmk(format: Format) -> bool:
    return (
        format.output_ext == "pdf"
        and format.pandoc.get(KEY_TO) == "latex"
        and format.pandoc.get(KEY_PDF_ENGINE) == "latexmk"
    )


def latexmk_complete(pdf_output: Path, keep_tex: bool, console: Console | None = None):
    """Return a completion hook compiling the converter's ``.tex`` output into ``pdf_output``."""

    def _complete(options: PandocOptions) -> Path | None:
        tex_file = Path(options.output)
        binary = latexmk_binary()
        if binary is None:
            raise ConverterInvocationError(f"latexmk was not found; install it or set {LATEXMK_ENV}.")

        command = [
            binary,
            "-pdf",
            "-interaction=nonstopmode",
            "-halt-on-error",
            f"-jobname={pdf_output.stem}",
            tex_file.name,
        ]
        if console is not None and not options.quiet:
            console.print(f"[bold cyan]Running latexmk[/] {tex_file.name}")
        try:
            process = subprocess.run(
                command,
                check=False,
                capture_output=True,
                text=True,
                cwd=tex_file.parent,
            )
        except OSError as exc:
            raise ConverterInvocationError(f"Failed to execute latexmk: {exc}") from exc

        if process.returncode != 0:
            logger.error("latexmk output:\n%s", (process.stdout or "").rstrip())
            raise ConverterInvocationError(f"latexmk exited with status {process.returncode}")

        if not keep_tex:
            remove_if_exists(tex_file)
        return tex_file.with_name(f"{pdf_output.stem}.pdf")

    return _complete


def output_recipe(context: RenderContext, console: Console | None = None) -> OutputRecipe:
    """Describe where the converter writes and how the output is completed."""
    source = context.target.source
    output = resolve_output_path(source, output_file_name(context)).resolve()
    format = context.format

    if _uses_latexmk(format):
        tex_format = format.copy()
        tex_format.pandoc.pop(KEY_PDF_ENGINE, None)
        return OutputRecipe(
            output=output.with_suffix(".tex"),
            format=tex_format,
            args=list(context.options.pandoc_args),
            complete=latexmk_complete(output, bool(format.render.get(KEY_KEEP_TEX)), console),
        )

    return OutputRecipe(
        output=output,
        format=format,
        args=list(context.options.pandoc_args),
    )


__all__ = [
    "LATEXMK_ENV",
    "STANDALONE_EXTENSIONS",
    "is_self_contained",
    "is_self_contained_output",
    "is_standalone_format",
    "latexmk_binary",
    "latexmk_complete",
    "output_file_name",
    "output_recipe",
]
