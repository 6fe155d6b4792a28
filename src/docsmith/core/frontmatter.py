"""YAML front matter extraction."""

from __future__ import annotations

from typing import Any

import yaml


def partition_front_matter(source: str) -> tuple[str | None, str]:
    """Split raw front matter text from the document body.

    Returns ``(None, source)`` when the document does not open with a
    ``---`` block closed by ``---`` or ``...``.
    """
    candidate = source.lstrip("\ufeff")
    prefix_len = len(source) - len(candidate)
    lines = candidate.splitlines()
    if not lines or lines[0].strip() != "---":
        return None, source

    closing_index: int | None = None
    for idx, line in enumerate(lines[1:], start=1):
        if line.strip() in {"---", "..."}:
            closing_index = idx
            break
    if closing_index is None:
        return None, source

    raw_block = "\n".join(lines[1:closing_index])
    body = "\n".join(lines[closing_index + 1 :])
    if source.endswith("\n") and body:
        body += "\n"
    return raw_block, source[:prefix_len] + body


def split_front_matter(source: str, *, strict: bool = False) -> tuple[dict[str, Any], str]:
    """Split YAML front matter from Markdown content, returning metadata and body.

    Malformed YAML yields empty metadata unless ``strict`` is set, in which
    case the ``yaml.YAMLError`` propagates.
    """
    raw_block, body = partition_front_matter(source)
    if raw_block is None:
        return {}, source
    try:
        metadata = yaml.safe_load(raw_block) or {}
    except yaml.YAMLError:
        if strict:
            raise
        return {}, source
    if not isinstance(metadata, dict):
        if strict:
            raise yaml.YAMLError("Front matter must be a YAML mapping.")
        metadata = {}
    return metadata, body


def dump_front_matter(metadata: dict[str, Any], body: str) -> str:
    """Serialise metadata as a YAML front matter block followed by the body."""
    if not metadata:
        return body
    block = yaml.safe_dump(metadata, sort_keys=False, allow_unicode=True, default_flow_style=False)
    return f"---\n{block}---\n\n{body}"


__all__ = ["dump_front_matter", "partition_front_matter", "split_front_matter"]
