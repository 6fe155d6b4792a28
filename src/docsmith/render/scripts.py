"""Secondary processing of reactive ``{ojs}`` script blocks.

Before execution the source line of every ``{ojs}`` block is recorded. After
execution the matching blocks of the executed markdown are tagged with
those line numbers so runtime errors can point back at the source, and any
``FileAttachment("...")`` that names an existing file is reported as a
resource of the render.
"""

from __future__ import annotations

import dataclasses
import re

from ..execute.types import ExecuteResult
from .types import RenderContext


_OJS_FENCE_RE = re.compile(r"^(?P<indent>[ \t]*)(?P<fence>`{3,})\s*\{ojs(?P<attrs>[^}]*)\}\s*$")
_FILE_ATTACHMENT_RE = re.compile(r"""FileAttachment\(\s*(["'])(?P<path>[^"']+)\1\s*\)""")


def _ojs_blocks(markdown: str) -> list[tuple[int, int, str]]:
    """Return ``(start_line, end_line, body)`` for every ``{ojs}`` block (0-based lines)."""
    lines = markdown.splitlines()
    blocks: list[tuple[int, int, str]] = []
    index = 0
    while index < len(lines):
        match = _OJS_FENCE_RE.match(lines[index])
        if match is None:
            index += 1
            continue
        fence = match.group("fence")
        end = index + 1
        while end < len(lines) and not lines[end].strip().startswith(fence):
            end += 1
        blocks.append((index, end, "\n".join(lines[index + 1 : end])))
        index = end + 1
    return blocks


def annotate_ojs_line_numbers(context: RenderContext) -> list[int]:
    """Return the 1-based source line of each ``{ojs}`` block of the target."""
    return [start + 1 for start, _, _ in _ojs_blocks(context.target.markdown)]


def script_execute_result(
    context: RenderContext,
    execute_result: ExecuteResult,
    line_numbers: list[int],
) -> tuple[ExecuteResult, list[str]]:
    """Tag executed ``{ojs}`` blocks with source lines and collect their attachments."""
    blocks = _ojs_blocks(execute_result.markdown)
    if not blocks:
        return execute_result, []

    input_dir = context.target.input.parent
    resource_files: list[str] = []
    lines = execute_result.markdown.splitlines()
    for position, (start, _, body) in enumerate(blocks):
        match = _OJS_FENCE_RE.match(lines[start])
        assert match is not None
        attrs = match.group("attrs").strip()
        if position < len(line_numbers):
            attrs = f"{attrs} source-line={line_numbers[position]}".strip()
        lines[start] = f"{match.group('indent')}{match.group('fence')}{{.ojs{' ' + attrs if attrs else ''}}}"

        for attachment in _FILE_ATTACHMENT_RE.finditer(body):
            path = attachment.group("path")
            if (input_dir / path).is_file() and path not in resource_files:
                resource_files.append(path)

    markdown = "\n".join(lines)
    if execute_result.markdown.endswith("\n"):
        markdown += "\n"
    return dataclasses.replace(execute_result, markdown=markdown), resource_files


__all__ = ["annotate_ojs_line_numbers", "script_execute_result"]
