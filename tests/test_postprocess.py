from __future__ import annotations

from pathlib import Path

from bs4 import BeautifulSoup

from docsmith.core.html import HtmlPostProcessResult
from docsmith.formats.html import discover_resources, external_links, prune_dangling_anchors
from docsmith.render import run_html_postprocessors


PAGE = "<!DOCTYPE html>\n<html><head></head><body><p id=\"target\">Hi</p></body></html>\n"


def _write(tmp_path: Path, markup: str = PAGE) -> Path:
    output = tmp_path / "doc.html"
    output.write_text(markup, encoding="utf-8")
    return output


def test_without_postprocessors_file_is_untouched(tmp_path: Path) -> None:
    output = _write(tmp_path, "<!doctype html><html><body>  odd   spacing</body></html>")
    before = output.read_bytes()

    result = run_html_postprocessors(output, {}, [], [])

    assert output.read_bytes() == before
    assert result == HtmlPostProcessResult()


def test_postprocessors_run_in_order_and_accumulate(tmp_path: Path) -> None:
    output = _write(tmp_path)
    seen: list[str] = []

    def first(soup: BeautifulSoup, metadata) -> HtmlPostProcessResult:
        seen.append("first")
        soup.find(id="target")["class"] = ["one"]
        return HtmlPostProcessResult(resources=["a.png"], supporting=["a_files"])

    def second(soup: BeautifulSoup, metadata) -> None:
        seen.append(f"second:{metadata['title']}")
        soup.find(id="target")["class"].append("two")

    def third(soup: BeautifulSoup, metadata) -> HtmlPostProcessResult:
        seen.append("third")
        return HtmlPostProcessResult(resources=["b.png", "a.png"])

    def finalizer(soup: BeautifulSoup) -> None:
        seen.append("final:" + " ".join(soup.find(id="target")["class"]))

    result = run_html_postprocessors(output, {"title": "Doc"}, [first, second, third], [finalizer])

    assert seen == ["first", "second:Doc", "third", "final:one two"]
    assert result.resources == ["a.png", "b.png", "a.png"]
    assert result.supporting == ["a_files"]
    assert 'class="one two"' in output.read_text(encoding="utf-8")


def test_doctype_is_preserved(tmp_path: Path) -> None:
    output = _write(tmp_path)

    run_html_postprocessors(output, {}, [lambda soup, metadata: None])

    text = output.read_text(encoding="utf-8")
    assert text.startswith("<!DOCTYPE html>\n<html>")
    assert text.count("<!DOCTYPE") == 1


def test_discover_resources_reports_local_files(tmp_path: Path) -> None:
    (tmp_path / "img").mkdir()
    (tmp_path / "img" / "plot.png").write_bytes(b"png")
    soup = BeautifulSoup(
        '<img src="img/plot.png"><img src="https://x.org/a.png"><img src="missing.png">'
        '<link href="#anchor"><img src="img/plot.png">',
        "html.parser",
    )

    result = discover_resources(tmp_path)(soup, {})

    assert result.resources == ["img/plot.png"]


def test_external_links_open_new_window() -> None:
    soup = BeautifulSoup('<a href="https://example.org">x</a><a href="local.html">y</a>', "html.parser")

    external_links(soup, {})

    external, local = soup.find_all("a")
    assert external["target"] == "_blank"
    assert external["rel"] == ["noopener"]
    assert not local.has_attr("target")


def test_prune_dangling_anchors() -> None:
    soup = BeautifulSoup('<p id="here"></p><a href="#here">ok</a><a href="#gone">lost</a>', "html.parser")

    prune_dangling_anchors(soup)

    assert [a["href"] for a in soup.find_all("a")] == ["#here"]
    assert "lost" in soup.get_text()
