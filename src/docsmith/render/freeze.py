"""Freezer: persisted execution results reused across renders.

Layout
: While a document renders, its execution snapshot is written to
  ``<dir>/<stem>_files/execute-results/<output-name>.json`` as
  ``{"hash": <sha256 of the source>, "result": <ExecuteResult>}``.
: Inside a project the whole ``<stem>_files`` directory is then copied to
  the hidden freezer ``<project>/.docsmith/_freeze/<dir>/<stem>/`` and,
  unless ``freeze: false``, to the visible freezer
  ``<project>/_freeze/<dir>/<stem>/`` that users may commit.

Reuse
: ``freeze: true`` reuses a snapshot unconditionally. ``freeze: auto`` (and
  the implicit auto mode of project renders) reuses it only while the
  source hash matches. ``freeze: false`` never mirrors into the visible
  freezer and prunes what an earlier render left there.
"""

from __future__ import annotations

import dataclasses
from hashlib import sha256
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..core.constants import (
    FREEZE_EXECUTE_RESULTS,
    KEY_EXECUTE_ENABLED,
    KEY_FREEZE,
    PROJECT_FREEZE_DIR,
    PROJECT_SCRATCH_DIR,
)
from ..core.debug import record_event
from ..core.paths import (
    copy_minimal,
    figures_dir,
    input_files_dir,
    remove_if_empty_dir,
    remove_if_exists,
)
from ..core.project import ProjectContext
from ..core.temp import TempContext
from ..execute.types import ExecuteResult
from .types import RenderContext


logger = logging.getLogger(__name__)

_FILES_SUFFIX = "_files"
_RESULT_FIELDS = {item.name for item in dataclasses.fields(ExecuteResult)}


def freeze_input_hash(source: Path) -> str:
    return sha256(source.read_bytes()).hexdigest()


def freeze_result_file(source: Path, output: Path | str, *, ensure_dir: bool = False) -> Path:
    """Return the snapshot path of a (source, output) pair."""
    freeze_dir = source.parent / input_files_dir(source) / FREEZE_EXECUTE_RESULTS
    if ensure_dir:
        freeze_dir.mkdir(parents=True, exist_ok=True)
    return freeze_dir / f"{Path(output).name}.json"


def freeze_execute_result(source: Path, output: Path | str, result: ExecuteResult) -> Path:
    """Write the snapshot of an execution result next to its source."""
    payload = dataclasses.asdict(result)

    if result.includes:
        payload["includes"] = {
            key: [Path(path).read_text(encoding="utf-8") for path in paths]
            for key, paths in result.includes.items()
        }

    payload["supporting"] = [
        os.path.relpath(path, source.parent) if Path(path).is_absolute() else path
        for path in result.supporting
    ]

    freeze_file = freeze_result_file(source, output, ensure_dir=True)
    freeze_file.write_text(
        json.dumps({"hash": freeze_input_hash(source), "result": payload}, indent=2),
        encoding="utf-8",
    )
    return freeze_file


def defrost_execute_result(
    source: Path,
    output: Path | str,
    temp: TempContext,
    force: bool = False,
) -> ExecuteResult | None:
    """Return a previously frozen result, or None when none applies."""
    result_file = freeze_result_file(source, output)
    if not result_file.is_file():
        return None
    try:
        snapshot = json.loads(result_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        logger.debug("Ignoring unreadable freeze file %s: %s", result_file, exc)
        return None
    if not force and snapshot.get("hash") != freeze_input_hash(source):
        return None

    payload: dict[str, Any] = {
        key: value for key, value in (snapshot.get("result") or {}).items() if key in _RESULT_FIELDS
    }
    if "markdown" not in payload:
        return None

    includes = payload.get("includes")
    if includes:
        restored: dict[str, list[str]] = {}
        for key, contents in includes.items():
            restored[key] = []
            for content in contents:
                include_file = temp.create_file(suffix=".include", prefix=f"{key}-")
                include_file.write_text(content, encoding="utf-8")
                restored[key].append(str(include_file))
        payload["includes"] = restored

    payload["supporting"] = [
        str(source.parent / path) for path in payload.get("supporting") or []
    ]
    return ExecuteResult(**payload)


def project_freezer_dir(project_dir: Path, hidden: bool) -> Path:
    """Return the hidden or visible freezer root of a project."""
    if hidden:
        return project_dir / PROJECT_SCRATCH_DIR / PROJECT_FREEZE_DIR
    return project_dir / PROJECT_FREEZE_DIR


def _as_freezer_path(relative: str | Path) -> Path:
    path = Path(relative)
    if path.name.endswith(_FILES_SUFFIX):
        return path.with_name(path.name[: -len(_FILES_SUFFIX)])
    return path


def freezer_files_dir(project: ProjectContext, files_dir: str | Path, hidden: bool) -> Path:
    """Return the freezer directory mirroring a project-relative files directory."""
    return project_freezer_dir(project.dir, hidden) / _as_freezer_path(files_dir)


def freezer_figs_dir(project: ProjectContext, files_dir: str | Path, figs_dir: str) -> Path:
    return freezer_files_dir(project, files_dir, hidden=False) / figs_dir


def freezer_freeze_file(project: ProjectContext, freeze_file: str | Path) -> Path:
    """Map a project-relative snapshot path to its location in the visible freezer."""
    relative = Path(freeze_file)
    files_dir = relative.parent.parent
    return freezer_files_dir(project, files_dir, hidden=False) / FREEZE_EXECUTE_RESULTS / relative.name


def copy_to_project_freezer(
    project: ProjectContext,
    files_dir: str | Path,
    hidden: bool,
    incremental: bool = True,
) -> None:
    """Copy a project-relative files directory into a freezer."""
    source = project.dir / files_dir
    if not source.is_dir():
        return
    destination = freezer_files_dir(project, files_dir, hidden)
    if not incremental:
        remove_if_exists(destination)
    copy_minimal(source, destination)


def copy_from_project_freezer(project: ProjectContext, files_dir: str | Path, hidden: bool) -> None:
    """Restore a project-relative files directory from a freezer."""
    source = freezer_files_dir(project, files_dir, hidden)
    if source.is_dir():
        copy_minimal(source, project.dir / files_dir)


def remove_freeze_results(files_dir: Path) -> None:
    """Drop the transient snapshot directory and the files directory if it became empty."""
    remove_if_exists(files_dir / FREEZE_EXECUTE_RESULTS)
    if files_dir.exists():
        remove_if_empty_dir(files_dir)


def clean_project_freezer(project: ProjectContext, hidden: bool = False) -> None:
    remove_if_exists(project_freezer_dir(project.dir, hidden))


class FreezeCache:
    """Reuse and persistence of execution results for the inputs of one project."""

    def __init__(self, project: ProjectContext) -> None:
        self.project = project

    def relative_source(self, context: RenderContext) -> str:
        return Path(os.path.relpath(context.target.source.resolve(), self.project.dir.resolve())).as_posix()

    def files_dir(self, context: RenderContext) -> Path:
        """Return the project-relative files directory of a context's source."""
        source = context.target.source
        input_dir = Path(os.path.relpath(source.resolve().parent, self.project.dir.resolve()))
        return Path(os.path.normpath(input_dir / input_files_dir(source)))

    def try_reuse(self, context: RenderContext, output: Path | str, use_freezer: bool = False) -> ExecuteResult | None:
        """Return frozen results for a context when they may stand in for execution."""
        execute = context.format.execute
        can_freeze = bool(context.engine.can_freeze) and execute.get(KEY_EXECUTE_ENABLED) is not False
        if not can_freeze:
            return None

        freeze = execute.get(KEY_FREEZE)
        thaw = freeze or ("auto" if use_freezer else False)
        if not thaw:
            return None

        hidden = freeze is False
        files_dir = self.files_dir(context)
        copy_from_project_freezer(self.project, files_dir, hidden)

        temp = context.options.temp
        assert temp is not None
        result = defrost_execute_result(context.target.source, output, temp, force=thaw is True)
        if result is None:
            return None

        lib_dir = self.project.lib_dir
        if lib_dir:
            copy_from_project_freezer(self.project, lib_dir, hidden)
        remove_freeze_results(self.project.dir / files_dir)

        skipped = getattr(context.engine, "execute_target_skipped", None)
        if callable(skipped):
            skipped(context.target, context.format)

        record_event(
            context.options.emitter,
            "freeze_reuse",
            {"source": self.relative_source(context), "output": Path(output).name},
        )
        return result

    def store(self, context: RenderContext, output: Path | str, result: ExecuteResult) -> None:
        """Persist an execution result to the freezers after a real execution."""
        if not context.engine.can_freeze or context.format.execute.get(KEY_EXECUTE_ENABLED) is False:
            return

        files_dir = self.files_dir(context)
        freeze_file = freeze_execute_result(context.target.source, output, result)

        copy_to_project_freezer(self.project, files_dir, hidden=True)

        visible = context.format.execute.get(KEY_FREEZE) is not False
        if visible:
            copy_to_project_freezer(self.project, files_dir, hidden=False)
        else:
            figs_dir = freezer_figs_dir(
                self.project, files_dir, figures_dir(context.format.pandoc.get("to"))
            )
            remove_if_exists(figs_dir)

            relative_freeze_file = Path(os.path.relpath(freeze_file.resolve(), self.project.dir.resolve()))
            freezer_file = freezer_freeze_file(self.project, relative_freeze_file)
            remove_if_exists(freezer_file)

            remove_if_empty_dir(freezer_file.parent)
            _remove_empty_parents(figs_dir.parent, project_freezer_dir(self.project.dir, hidden=False))

        remove_freeze_results(self.project.dir / files_dir)

        record_event(
            context.options.emitter,
            "freeze_store",
            {"source": self.relative_source(context), "visible": visible},
        )


def _remove_empty_parents(directory: Path, root: Path) -> None:
    """Remove ``directory`` and its ancestors up to ``root`` while they are empty."""
    current = directory
    while True:
        if not remove_if_empty_dir(current) or current == root:
            break
        if root not in current.parents:
            break
        current = current.parent
    remove_if_empty_dir(root)


__all__ = [
    "FreezeCache",
    "clean_project_freezer",
    "copy_from_project_freezer",
    "copy_to_project_freezer",
    "defrost_execute_result",
    "freeze_execute_result",
    "freeze_input_hash",
    "freeze_result_file",
    "freezer_figs_dir",
    "freezer_files_dir",
    "freezer_freeze_file",
    "project_freezer_dir",
    "remove_freeze_results",
]
