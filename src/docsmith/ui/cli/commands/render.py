"""Implementation of the ``docsmith render`` command."""

from __future__ import annotations

import click
import typer

from docsmith.core.debug import format_user_friendly_render_error, mark_logged
from docsmith.core.exceptions import DocsmithError
from docsmith.core.project import project_context
from docsmith.render import (
    RenderFile,
    RenderFlags,
    RenderOptions,
    RenderResult,
    render_files,
    render_result_final_output,
)
from docsmith.render.flags import parse_key_values

from .._options import (
    CacheOption,
    DebugOption,
    ExecuteDirOption,
    ExecuteOption,
    FreezeOption,
    InputPathArgument,
    MetadataOption,
    OutputOption,
    ParamOption,
    ParamsFileOption,
    QuietOption,
    SelfContainedOption,
    ToOption,
    VerboseOption,
)
from ..diagnostics import CliEmitter
from ..state import debug_enabled, emit_error, set_cli_state


def _report_error(error: BaseException) -> None:
    message = str(error).strip() if isinstance(error, DocsmithError) else ""
    emit_error(message or format_user_friendly_render_error(error), exception=error)
    mark_logged(error)


def render(
    inputs: InputPathArgument = None,
    to: ToOption = None,
    output: OutputOption = None,
    metadata: MetadataOption = None,
    self_contained: SelfContainedOption = None,
    execute: ExecuteOption = None,
    cache: CacheOption = None,
    freeze: FreezeOption = False,
    params: ParamOption = None,
    params_file: ParamsFileOption = None,
    execute_dir: ExecuteDirOption = None,
    quiet: QuietOption = False,
    verbose: VerboseOption = 0,
    debug: DebugOption = False,
) -> None:
    """Render documents to every requested output format."""

    ctx = click.get_current_context(silent=True)
    typer_ctx = ctx if isinstance(ctx, typer.Context) else None
    state = set_cli_state(ctx=typer_ctx, verbosity=verbose, debug=debug, quiet=quiet)

    document_paths = list(inputs or [])
    if not document_paths:
        raise typer.BadParameter("Provide at least one input document.")
    if output and len(document_paths) > 1:
        raise typer.BadParameter("--output can only be used with a single input.")

    try:
        flags = RenderFlags(
            to=to,
            output=output,
            execute=execute,
            execute_cache=cache,
            execute_dir=execute_dir,
            params=parse_key_values(params or []),
            params_file=params_file,
            metadata=parse_key_values(metadata or []),
            self_contained=self_contained,
            debug=debug,
            quiet=quiet,
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc

    try:
        project = project_context(document_paths[0])
    except DocsmithError as exc:
        if debug_enabled():
            raise
        _report_error(exc)
        raise typer.Exit(code=1) from exc

    emitter = CliEmitter(state=state, debug_enabled=debug_enabled())
    options = RenderOptions(
        flags=flags,
        use_freezer=freeze,
        progress=not quiet,
        emitter=emitter,
    )
    files_result = render_files(
        [RenderFile(path=path) for path in document_paths],
        options,
        project=project,
    )
    result = RenderResult(
        files=files_result.files,
        error=files_result.error,
        base_dir=project.dir if project is not None else None,
    )

    if state.verbosity > 0:
        for rendered in result.files:
            state.console.print(f"[dim]{rendered.input}[/] -> {rendered.file}", highlight=False)

    if result.error is not None:
        if debug_enabled():
            raise result.error
        _report_error(result.error)
        raise typer.Exit(code=1) from result.error

    final_output = render_result_final_output(result)
    if final_output and not quiet:
        state.console.print(f"[bold green]Output created:[/] {final_output}", highlight=False)


__all__ = ["render"]
