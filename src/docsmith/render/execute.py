"""Freeze-aware execution of a render context."""

from __future__ import annotations

import logging
from pathlib import Path

from ..core.constants import KEY_KEEP_MD
from ..execute.registry import execution_engine_keep_md
from ..execute.types import ExecuteOptions, ExecuteResult
from .flags import resolve_params
from .freeze import FreezeCache
from .types import RenderContext, RenderExecuteOptions


logger = logging.getLogger(__name__)


def resource_path() -> Path:
    """Return the directory holding resources shipped with the package."""
    return Path(__file__).resolve().parent.parent


def render_execute(
    context: RenderContext,
    output: Path | str,
    options: RenderExecuteOptions | None = None,
) -> ExecuteResult:
    """Run (or thaw) the computations of a context and return their result."""
    options = options or RenderExecuteOptions()
    flags = context.options.flags
    temp = context.options.temp
    assert temp is not None, "render_execute requires a temp context"

    freezer = FreezeCache(context.project) if context.project is not None else None

    if freezer is not None and not options.always_execute:
        thawed = freezer.try_reuse(context, output, use_freezer=context.options.use_freezer)
        if thawed is not None:
            logger.debug("Reusing frozen results for %s", context.target.source)
            return thawed

    logger.debug("Executing %s", context.target.source)

    result = context.engine.execute(
        ExecuteOptions(
            target=context.target,
            format=context.format,
            resource_dir=resource_path(),
            temp_dir=temp.create_dir(),
            dependencies=options.resolve_dependencies,
            lib_dir=context.lib_dir,
            cwd=flags.execute_dir,
            params=resolve_params(flags.params, flags.params_file),
            quiet=flags.quiet,
            project_dir=context.project.dir if context.project else None,
        )
    )

    keep_md = execution_engine_keep_md(context)
    if keep_md is not None and context.format.execute.get(KEY_KEEP_MD):
        keep_md.write_text(result.markdown, encoding="utf-8")

    if freezer is not None:
        freezer.store(context, output, result)

    return result


__all__ = ["render_execute", "resource_path"]
