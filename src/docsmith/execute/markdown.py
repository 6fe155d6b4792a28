"""Engine for plain Markdown documents, which carry nothing to execute."""

from __future__ import annotations

from pathlib import Path

from ..core.frontmatter import split_front_matter
from .types import (
    DependenciesOptions,
    DependenciesResult,
    ExecuteOptions,
    ExecuteResult,
    ExecutionTarget,
    PostProcessOptions,
)


MARKDOWN_EXTENSIONS = frozenset({".md", ".markdown", ".qmd", ".dmd", ".txt"})


class MarkdownEngine:
    """Pass Markdown through unchanged."""

    name = "markdown"
    can_freeze = False

    def claims_file(self, path: Path) -> bool:
        return path.suffix.lower() in MARKDOWN_EXTENSIONS

    def claims_language(self, language: str) -> bool:
        return False

    def target(self, path: Path, *, quiet: bool = False) -> ExecutionTarget | None:
        markdown = path.read_text(encoding="utf-8")
        metadata, _ = split_front_matter(markdown)
        return ExecutionTarget(source=path, input=path, markdown=markdown, metadata=metadata)

    def execute(self, options: ExecuteOptions) -> ExecuteResult:
        return ExecuteResult(markdown=options.target.markdown)

    def dependencies(self, options: DependenciesOptions) -> DependenciesResult:
        return DependenciesResult()

    def postprocess(self, options: PostProcessOptions) -> None:
        return None

    def keep_md(self, input: Path) -> Path | None:
        return None


__all__ = ["MARKDOWN_EXTENSIONS", "MarkdownEngine"]
