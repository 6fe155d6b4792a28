"""Helpers for command-line render flags."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from pathlib import Path
from typing import Any

import yaml

from ..core.config import load_yaml_mapping
from ..core.merge import merge_configs


_TO_ARGS = ("-t", "--to", "-w", "--write")


def parse_key_value(entry: str) -> tuple[str, Any]:
    """Parse ``key=value`` (or ``key:value``) with the value read as YAML."""
    separator = "=" if "=" in entry else ":"
    key, found, raw = entry.partition(separator)
    key = key.strip()
    if not found or not key:
        raise ValueError(f"Expected KEY=VALUE, got '{entry}'.")
    try:
        value = yaml.safe_load(raw) if raw.strip() else ""
    except yaml.YAMLError:
        value = raw
    return key, value


def parse_key_values(entries: Iterable[str]) -> dict[str, Any]:
    values: dict[str, Any] = {}
    for entry in entries:
        key, value = parse_key_value(entry)
        values[key] = value
    return values


def resolve_params(params: Mapping[str, Any] | None, params_file: Path | None = None) -> dict[str, Any] | None:
    """Merge parameters from a YAML file with those given on the command line."""
    from_file = load_yaml_mapping(params_file) if params_file is not None else {}
    if not params and not from_file:
        return None
    return merge_configs(from_file, params or {})


def remove_pandoc_to_arg(args: list[str]) -> list[str]:
    """Remove any writer selection (``--to html``, ``-thtml``...) from converter args."""
    cleaned: list[str] = []
    skip_next = False
    for arg in args:
        if skip_next:
            skip_next = False
            continue
        if arg in _TO_ARGS:
            skip_next = True
            continue
        if arg.startswith(("--to=", "--write=")):
            continue
        if arg.startswith(("-t", "-w")) and not arg.startswith("--") and len(arg) > 2:
            continue
        cleaned.append(arg)
    return cleaned


__all__ = ["parse_key_value", "parse_key_values", "remove_pandoc_to_arg", "resolve_params"]
