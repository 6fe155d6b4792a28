"""Layered configuration merging.

Architecture
: Configuration reaches the renderer as several layers (built-in format
  defaults, project, directory, input front matter, command-line flags).
  ``merge_configs`` folds any number of layers left to right so that later
  layers take precedence.

Merge rules
: Scalars from a later layer replace earlier values.
: ``None`` in a later layer never replaces an existing value.
: Mappings merge recursively.
: Lists concatenate, keeping the first occurrence of duplicate entries.
: Keys listed in ``UNMERGEABLE_KEYS`` are replaced wholesale even when both
  sides are lists or mappings.

Usage Example
:
    >>> merge_configs({"css": ["a.css"], "toc": False}, {"css": ["b.css"], "toc": True})
    {'css': ['a.css', 'b.css'], 'toc': True}
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
import copy
import json
from typing import Any

from .constants import KEY_TBL_COLWIDTHS


UNMERGEABLE_KEYS: frozenset[str] = frozenset({KEY_TBL_COLWIDTHS})


def merge_configs(
    base: Mapping[str, Any] | None,
    *layers: Mapping[str, Any] | None,
    unmergeable: Iterable[str] = UNMERGEABLE_KEYS,
) -> dict[str, Any]:
    """Merge configuration layers into a new mapping without mutating inputs."""
    replace_keys = frozenset(unmergeable)
    merged: dict[str, Any] = copy.deepcopy(dict(base)) if base else {}
    for layer in layers:
        if not layer:
            continue
        _merge_into(merged, layer, replace_keys)
    return merged


def _merge_into(target: dict[str, Any], source: Mapping[str, Any], replace_keys: frozenset[str]) -> None:
    for key, value in source.items():
        if value is None and key in target:
            continue
        existing = target.get(key)
        if key in replace_keys:
            target[key] = copy.deepcopy(value)
        elif isinstance(existing, Mapping) and isinstance(value, Mapping):
            nested = dict(existing)
            _merge_into(nested, value, replace_keys)
            target[key] = nested
        elif isinstance(existing, list) and isinstance(value, list):
            target[key] = _merge_lists(existing, value)
        else:
            target[key] = copy.deepcopy(value)


def _merge_lists(first: list[Any], second: list[Any]) -> list[Any]:
    merged: list[Any] = []
    seen: set[str] = set()
    for item in [*first, *second]:
        marker = _identity(item)
        if marker in seen:
            continue
        seen.add(marker)
        merged.append(copy.deepcopy(item))
    return merged


def _identity(value: Any) -> str:
    try:
        return json.dumps(value, sort_keys=True, default=str)
    except (TypeError, ValueError):
        return repr(value)


__all__ = ["UNMERGEABLE_KEYS", "merge_configs"]
