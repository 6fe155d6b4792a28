"""Removal of intermediates once an output has been produced."""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.constants import KEY_KEEP_MD, KEY_TO
from ..core.paths import figures_dir, input_files_dir, remove_if_empty_dir, remove_if_exists
from ..formats import Format
from .output import is_self_contained_output


logger = logging.getLogger(__name__)


def render_cleanup(
    input: Path,
    output: Path,
    format: Format,
    supporting: list[str] | None = None,
    keep_md: Path | None = None,
) -> None:
    """Remove what a render leaves behind but its output no longer needs.

    The keep-md intermediate goes unless ``keep-md`` is set, supporting files
    go when the output embeds them, and an emptied ``<stem>_files`` directory
    is pruned.
    """
    if keep_md is not None and keep_md != output and not format.execute.get(KEY_KEEP_MD):
        remove_if_exists(keep_md)

    files_dir = input.parent / input_files_dir(input)
    if is_self_contained_output(format, output):
        for path in supporting or []:
            if Path(path).resolve() == output.resolve():
                continue
            if remove_if_exists(path):
                logger.debug("Removed supporting path %s", path)
        remove_if_exists(files_dir / figures_dir(format.pandoc.get(KEY_TO)))

    if files_dir.is_dir():
        remove_if_empty_dir(files_dir)


__all__ = ["render_cleanup"]
