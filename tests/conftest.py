from __future__ import annotations

from collections.abc import Callable, Iterator, Sequence
from pathlib import Path
import subprocess
from typing import Any

import pytest
import yaml

from docsmith.core.dates import set_date_locale
from docsmith.core.diagnostics import reset_warn_once
from docsmith.execute.registry import registry
from docsmith.execute.types import (
    DependenciesOptions,
    DependenciesResult,
    ExecuteOptions,
    ExecuteResult,
    ExecutionTarget,
    PostProcessOptions,
)
from docsmith.core.frontmatter import split_front_matter
import docsmith.render.pandoc as pandoc_module


HTML_PAGE = "<!DOCTYPE html>\n<html><head><title>t</title></head><body><p id=\"x\">converted</p></body></html>\n"


class FakeEngine:
    """Freezable engine counting its executions."""

    name = "fake"
    can_freeze = True

    def __init__(self) -> None:
        self.calls = 0
        self.includes: dict[str, str] = {}
        self.result_options: dict[str, Any] = {}
        self.dependency_includes: dict[str, str] = {}
        self.dependency_calls: list[DependenciesOptions] = []
        self.postprocess_calls: list[PostProcessOptions] = []
        self.skipped: list[tuple[ExecutionTarget, Any]] = []
        self.format_filter: Callable[[Any], Any] | None = None

    def claims_file(self, path: Path) -> bool:
        return False

    def claims_language(self, language: str) -> bool:
        return language == "fake"

    def target(self, path: Path, *, quiet: bool = False) -> ExecutionTarget | None:
        markdown = path.read_text(encoding="utf-8")
        metadata, _ = split_front_matter(markdown)
        return ExecutionTarget(source=path, input=path, markdown=markdown, metadata=metadata)

    def execute(self, options: ExecuteOptions) -> ExecuteResult:
        self.calls += 1
        includes = _write_includes(options.temp_dir, self.includes)
        return ExecuteResult(
            markdown=f"{options.target.markdown}\nexecuted {self.calls} for {options.format.pandoc.get('to')}\n",
            includes=includes or None,
            **self.result_options,
        )

    def dependencies(self, options: DependenciesOptions) -> DependenciesResult:
        self.dependency_calls.append(options)
        return DependenciesResult(includes=_write_includes(options.temp_dir, self.dependency_includes))

    def postprocess(self, options: PostProcessOptions) -> None:
        self.postprocess_calls.append(options)

    def execute_target_skipped(self, target: ExecutionTarget, format: Any) -> None:
        self.skipped.append((target, format))

    def filter_format(self, source: Path, options: Any, format: Any) -> Any:
        return self.format_filter(format) if self.format_filter is not None else format

    def keep_md(self, input: Path) -> Path | None:
        return None


def _write_includes(directory: Path, contents: dict[str, str]) -> dict[str, list[str]]:
    includes: dict[str, list[str]] = {}
    for kind, content in contents.items():
        include_file = directory / f"{kind}.html"
        include_file.write_text(content, encoding="utf-8")
        includes[kind] = [str(include_file)]
    return includes


@pytest.fixture(autouse=True)
def _reset_process_state() -> None:
    reset_warn_once()
    set_date_locale("en")


@pytest.fixture
def fake_engine() -> Iterator[FakeEngine]:
    engine = FakeEngine()
    registry.register(engine, overwrite=True)
    yield engine
    registry.unregister(engine.name)


@pytest.fixture
def make_project(tmp_path: Path) -> Callable[..., Path]:
    def _make(config: dict | None = None, directory: Path | None = None) -> Path:
        root = directory or tmp_path
        root.mkdir(parents=True, exist_ok=True)
        payload = config if config is not None else {"project": {"type": "default"}}
        (root / "_docsmith.yml").write_text(yaml.safe_dump(payload), encoding="utf-8")
        return root

    return _make


class FakeConverter:
    """Stand-in for the pandoc subprocess writing a small output file."""

    def __init__(self, fail_for: Sequence[str] = ()) -> None:
        self.fail_for = tuple(fail_for)
        self.calls: list[list[str]] = []
        self.inputs: list[str] = []

    @staticmethod
    def option(argv: Sequence[str], name: str) -> str | None:
        prefix = f"--{name}="
        return next((arg[len(prefix) :] for arg in argv if arg.startswith(prefix)), None)

    def __call__(self, argv: Sequence[str], cwd: Path) -> subprocess.CompletedProcess[str]:
        self.calls.append(list(argv))
        self.inputs.append(Path(argv[1]).read_text(encoding="utf-8"))
        output = Path(self.option(argv, "output") or "")
        if output.name in self.fail_for:
            return subprocess.CompletedProcess(list(argv), 1, "", "conversion failed")
        if (self.option(argv, "to") or "").startswith(("html", "revealjs")):
            output.write_text(HTML_PAGE, encoding="utf-8")
        else:
            output.write_bytes(b"binary output")
        return subprocess.CompletedProcess(list(argv), 0, "", "")


@pytest.fixture
def fake_converter(monkeypatch: pytest.MonkeyPatch) -> Callable[..., FakeConverter]:
    def _install(fail_for: Sequence[str] = ()) -> FakeConverter:
        converter = FakeConverter(fail_for)
        monkeypatch.setattr(pandoc_module, "pandoc_binary", lambda: "pandoc")
        monkeypatch.setattr(pandoc_module, "_run_converter", converter)
        return converter

    return _install
