"""Resolve the effective configuration of every output format of an input.

Metadata reaches a render through three layers: the project configuration
(``_docsmith.yml``), directory metadata (``_metadata.yml`` files between the
project root and the input) and the input's front matter. Each layer is
resolved into per-format ``Format`` objects on its own, then the layers are
merged (input over directory over project) and finally merged over the
built-in defaults of each writer.
"""

from __future__ import annotations

from collections.abc import Mapping
import copy
import dataclasses
from pathlib import Path
from typing import Any

from ..core.config import load_yaml_mapping
from ..core.constants import (
    KEY_BIBLIOGRAPHY,
    KEY_CACHE,
    KEY_CSS,
    KEY_DATE,
    KEY_DATE_FORMAT,
    KEY_DATE_FORMATTED,
    KEY_ECHO,
    KEY_EXECUTE_DAEMON,
    KEY_EXECUTE_DAEMON_RESTART,
    KEY_EXECUTE_DEBUG,
    KEY_EXECUTE_ENABLED,
    KEY_FORMAT,
    KEY_HEADER_INCLUDES,
    KEY_INCLUDE_AFTER,
    KEY_INCLUDE_AFTER_BODY,
    KEY_INCLUDE_BEFORE,
    KEY_INCLUDE_BEFORE_BODY,
    KEY_INCLUDE_IN_HEADER,
    KEY_METADATA_FILES,
    KEY_SERVER,
    KEY_THEME,
)
from ..core.dates import format_date, is_special_date, parse_pandoc_date, parse_special_date
from ..core.debug import record_event
from ..core.diagnostics import warn_once
from ..core.merge import merge_configs
from ..core.project import (
    ProjectContext,
    directory_metadata_for_input_file,
    project_metadata_for_input_file,
    project_type,
    project_type_is_website,
)
from ..execute.types import ExecutionEngine, ExecutionTarget
from ..formats import (
    Format,
    default_target,
    default_writer_format,
    format_from_metadata,
    format_has_bootstrap,
    format_keys,
    is_html_output,
    merge_format_metadata,
    metadata_as_format,
)
from .types import RenderFile, RenderFlags, RenderOptions


MERGEABLE_SCALARS = (
    KEY_BIBLIOGRAPHY,
    KEY_CSS,
    KEY_HEADER_INCLUDES,
    KEY_INCLUDE_BEFORE,
    KEY_INCLUDE_AFTER,
    KEY_INCLUDE_IN_HEADER,
    KEY_INCLUDE_BEFORE_BODY,
    KEY_INCLUDE_AFTER_BODY,
)


def _fixup_mergeable_scalars(metadata: dict[str, Any]) -> None:
    for key in MERGEABLE_SCALARS:
        if isinstance(metadata.get(key), str):
            metadata[key] = [metadata[key]]


def _fixup_format(config: dict[str, Any]) -> dict[str, Any]:
    declared = config.get(KEY_FORMAT)
    if isinstance(declared, str):
        config[KEY_FORMAT] = {declared: {}}
    elif isinstance(declared, list):
        config[KEY_FORMAT] = {str(name): {} for name in declared}
    if isinstance(config.get(KEY_FORMAT), dict):
        formats = config[KEY_FORMAT]
        for name, value in list(formats.items()):
            if not isinstance(value, dict):
                formats[name] = {}
            _fixup_mergeable_scalars(formats[name])
    _fixup_mergeable_scalars(config)
    return config


def merge_user_configs(config: Mapping[str, Any] | None, *configs: Mapping[str, Any] | None) -> dict[str, Any]:
    """Merge user metadata layers after normalising their shape.

    Mergeable scalars (``css: a.css``) become lists so later layers append to
    them, and ``format`` always becomes a mapping of format name to options.
    """
    layers = [_fixup_format(copy.deepcopy(dict(layer or {}))) for layer in (config, *configs)]
    return merge_configs(layers[0], *layers[1:])


def included_metadata(include_dir: Path, metadata: Mapping[str, Any]) -> dict[str, Any]:
    """Merge the YAML files listed under ``metadata-files``."""
    files = metadata.get(KEY_METADATA_FILES)
    if isinstance(files, str):
        files = [files]
    included: dict[str, Any] = {}
    for name in files or []:
        path = Path(name)
        if not path.is_absolute():
            path = include_dir / path
        included = merge_user_configs(included, load_yaml_mapping(path))
    return included


def _apply_flags(config: Format, flags: RenderFlags | None) -> None:
    if flags is None:
        return
    overrides = {
        KEY_EXECUTE_ENABLED: flags.execute,
        KEY_CACHE: flags.execute_cache,
        KEY_EXECUTE_DAEMON: flags.execute_daemon,
        KEY_EXECUTE_DAEMON_RESTART: flags.execute_daemon_restart,
        KEY_EXECUTE_DEBUG: flags.execute_debug,
    }
    for key, value in overrides.items():
        if value is not None:
            config.execute[key] = value


def _formatted_date(metadata: Mapping[str, Any], style: str | None) -> str | None:
    parsed = parse_pandoc_date(metadata.get(KEY_DATE))
    if parsed is None:
        return None
    return format_date(parsed, style or "full")


def select_render_formats(formats: list[str], to: str | None) -> list[str]:
    """Apply a ``--to`` selection (``all``, ``default`` or a comma list)."""
    if to is None or to == "all":
        return list(formats)
    if to == "default":
        return formats[:1]
    return [name.strip() for name in to.split(",") if name.strip()]


def resolve_formats_from_metadata(
    metadata: Mapping[str, Any],
    input: Path,
    formats: list[str] | None,
    flags: RenderFlags | None = None,
) -> dict[str, Format]:
    """Resolve one metadata layer into a ``Format`` per requested format name."""
    include_dir = input.parent
    included = included_metadata(include_dir, metadata)
    all_metadata = merge_user_configs(metadata, included, flags.metadata if flags else None)

    if is_special_date(all_metadata.get(KEY_DATE)):
        all_metadata[KEY_DATE] = parse_special_date(input, all_metadata[KEY_DATE])
    if all_metadata.get(KEY_DATE):
        formatted = _formatted_date(all_metadata, "full")
        if formatted is not None:
            all_metadata[KEY_DATE_FORMATTED] = formatted

    base_format = metadata_as_format(all_metadata)

    candidates = list(formats) if formats is not None else format_keys(all_metadata)
    if not candidates:
        candidates.append(default_target(base_format))

    resolved: dict[str, Format] = {}
    for to in select_render_formats(candidates, flags.to if flags else None):
        config = format_from_metadata(base_format, to, flags.debug if flags else None)

        resolve_hook = default_writer_format(to).resolve_format
        if resolve_hook is not None:
            resolve_hook(config)

        if config.metadata.get(KEY_DATE):
            formatted = _formatted_date(config.metadata, config.metadata.get(KEY_DATE_FORMAT))
            if formatted is not None:
                config.metadata[KEY_DATE_FORMATTED] = formatted

        _apply_flags(config, flags)
        resolved[to] = config
    return resolved


def _unique(names: list[str]) -> list[str]:
    return list(dict.fromkeys(names))


def _implicit_format(*layers: Mapping[str, Any]) -> str:
    """Return the converter target implied by metadata layers without format keys."""
    return default_target(metadata_as_format(merge_user_configs(*layers)))


def resolve_formats(
    file: RenderFile,
    target: ExecutionTarget,
    engine: ExecutionEngine,
    options: RenderOptions,
    project: ProjectContext | None = None,
) -> dict[str, Format]:
    """Return the fully resolved formats of an input, keyed by format name."""
    input_metadata = dict(target.metadata)
    directory_metadata = directory_metadata_for_input_file(project, target.input.parent)
    project_metadata = project_metadata_for_input_file(project)

    project_format_keys = format_keys(project_metadata)
    input_format_keys = _unique(format_keys(input_metadata) + format_keys(directory_metadata))
    project_type_ = project_type(project.type if project else None)
    if project_type_.project_formats_only:
        formats = project_format_keys
    elif input_format_keys:
        formats = input_format_keys
    else:
        formats = project_format_keys

    flags = options.flags
    if file.formats is not None:
        formats = [name for name in formats if name in file.formats]
        flags = dataclasses.replace(flags, to=None)

    # One implicit format shared by every layer.
    if not formats:
        formats = [_implicit_format(project_metadata, directory_metadata, input_metadata, flags.metadata)]

    project_formats = resolve_formats_from_metadata(project_metadata, target.input, formats, flags)
    directory_formats = resolve_formats_from_metadata(directory_metadata, target.input, formats, flags)
    input_formats = resolve_formats_from_metadata(input_metadata, target.input, formats, flags)

    merged: dict[str, Format] = {}
    for name in _unique([*project_formats, *directory_formats, *input_formats]):
        project_format = project_formats.get(name)
        directory_format = directory_formats.get(name)
        input_format = input_formats.get(name)

        if (
            project is not None
            and is_html_output(name, exclusive=True)
            and format_has_bootstrap(project_format, name)
            and project_type_is_website(project_type_)
        ):
            for layer in (input_format, directory_format):
                if layer is not None and format_has_bootstrap(layer, name):
                    layer.metadata.pop(KEY_THEME, None)

        user_format = merge_format_metadata(project_format, directory_format, input_format)
        if KEY_ECHO not in user_format.execute and user_format.metadata.get(KEY_SERVER) is not None:
            user_format.execute[KEY_ECHO] = False

        merged[name] = merge_format_metadata(default_writer_format(name), user_format)

    if project_type_.is_supported_format is not None:
        for name in list(merged):
            if not project_type_.is_supported_format(merged[name]):
                del merged[name]
                warn_once(
                    f"The {name} format is not supported by {project_type_.type} projects",
                    emitter=options.emitter,
                )
                record_event(
                    options.emitter,
                    "format_unsupported",
                    {"format": name, "project_type": project_type_.type},
                )

    filter_format = getattr(engine, "filter_format", None)
    if callable(filter_format):
        for name in list(merged):
            merged[name] = filter_format(target.source, options, merged[name])

    return merged


__all__ = [
    "MERGEABLE_SCALARS",
    "included_metadata",
    "merge_user_configs",
    "resolve_formats",
    "resolve_formats_from_metadata",
    "select_render_formats",
]
