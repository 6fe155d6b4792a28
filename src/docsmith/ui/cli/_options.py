"""Shared Typer option definitions for CLI commands."""

from __future__ import annotations

from pathlib import Path
from typing import Annotated

import typer


INPUTS_PANEL = "Input Handling"
FORMAT_PANEL = "Formats"
EXECUTION_PANEL = "Execution"
OUTPUT_PANEL = "Output"
DIAGNOSTICS_PANEL = "Diagnostics"

InputPathArgument = Annotated[
    list[Path] | None,
    typer.Argument(
        metavar="INPUT...",
        help="Source documents to render (Markdown or any file claimed by an execution engine).",
        exists=True,
        file_okay=True,
        dir_okay=False,
        readable=True,
        resolve_path=True,
        rich_help_panel=INPUTS_PANEL,
    ),
]

ToOption = Annotated[
    str | None,
    typer.Option(
        "--to",
        "-t",
        help="Formats to render: 'all', 'default' or a comma separated list of names.",
        rich_help_panel=FORMAT_PANEL,
    ),
]

OutputOption = Annotated[
    str | None,
    typer.Option(
        "--output",
        "-o",
        help="Output file name (relative to the input directory).",
        rich_help_panel=OUTPUT_PANEL,
    ),
]

MetadataOption = Annotated[
    list[str] | None,
    typer.Option(
        "--metadata",
        "-M",
        metavar="KEY=VALUE",
        help="Document metadata override; the value is read as YAML. Repeatable.",
        show_default=False,
        rich_help_panel=FORMAT_PANEL,
    ),
]

SelfContainedOption = Annotated[
    bool | None,
    typer.Option(
        "--self-contained/--no-self-contained",
        help="Embed resources in the output.",
        show_default=False,
        rich_help_panel=OUTPUT_PANEL,
    ),
]

ExecuteOption = Annotated[
    bool | None,
    typer.Option(
        "--execute/--no-execute",
        help="Force or disable execution of embedded computations.",
        show_default=False,
        rich_help_panel=EXECUTION_PANEL,
    ),
]

CacheOption = Annotated[
    bool | None,
    typer.Option(
        "--cache/--no-cache",
        help="Force or disable the engine's execution cache.",
        show_default=False,
        rich_help_panel=EXECUTION_PANEL,
    ),
]

FreezeOption = Annotated[
    bool,
    typer.Option(
        "--freeze",
        help="Reuse frozen execution results when the source has not changed.",
        rich_help_panel=EXECUTION_PANEL,
    ),
]

ParamOption = Annotated[
    list[str] | None,
    typer.Option(
        "--execute-param",
        "-P",
        metavar="KEY=VALUE",
        help="Execution parameter; the value is read as YAML. Repeatable.",
        show_default=False,
        rich_help_panel=EXECUTION_PANEL,
    ),
]

ParamsFileOption = Annotated[
    Path | None,
    typer.Option(
        "--execute-params",
        help="YAML file of execution parameters.",
        exists=True,
        dir_okay=False,
        rich_help_panel=EXECUTION_PANEL,
    ),
]

ExecuteDirOption = Annotated[
    Path | None,
    typer.Option(
        "--execute-dir",
        help="Working directory for execution.",
        file_okay=False,
        rich_help_panel=EXECUTION_PANEL,
    ),
]

QuietOption = Annotated[
    bool,
    typer.Option(
        "--quiet",
        "-q",
        help="Suppress progress and warnings.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

VerboseOption = Annotated[
    int,
    typer.Option(
        "--verbose",
        "-v",
        count=True,
        help="Increase CLI verbosity. Combine multiple times for additional diagnostics.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]

DebugOption = Annotated[
    bool,
    typer.Option(
        "--debug",
        help="Keep intermediates and show full tracebacks when an error occurs.",
        rich_help_panel=DIAGNOSTICS_PANEL,
    ),
]
