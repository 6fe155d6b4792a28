from __future__ import annotations

from docsmith.core.merge import merge_configs


def test_later_layers_take_precedence() -> None:
    merged = merge_configs({"toc": False, "title": "a"}, {"toc": True}, {"title": "b"})

    assert merged == {"toc": True, "title": "b"}


def test_none_never_overwrites() -> None:
    merged = merge_configs({"title": "kept"}, {"title": None, "subtitle": None})

    assert merged["title"] == "kept"
    assert merged["subtitle"] is None


def test_mappings_merge_recursively() -> None:
    merged = merge_configs(
        {"execute": {"echo": True, "cache": False}},
        {"execute": {"cache": True}},
    )

    assert merged == {"execute": {"echo": True, "cache": True}}


def test_lists_concatenate_without_duplicates() -> None:
    merged = merge_configs(
        {"css": ["a.css", "b.css"], "filters": [{"path": "x.lua"}]},
        {"css": ["b.css", "c.css"], "filters": [{"path": "x.lua"}, {"path": "y.lua"}]},
    )

    assert merged["css"] == ["a.css", "b.css", "c.css"]
    assert merged["filters"] == [{"path": "x.lua"}, {"path": "y.lua"}]


def test_table_column_widths_are_replaced() -> None:
    merged = merge_configs({"tbl-colwidths": [10, 90]}, {"tbl-colwidths": [50, 50]})

    assert merged["tbl-colwidths"] == [50, 50]


def test_inputs_are_not_mutated() -> None:
    base = {"execute": {"echo": True}, "css": ["a.css"]}
    layer = {"execute": {"echo": False}, "css": ["b.css"]}

    merge_configs(base, layer)

    assert base == {"execute": {"echo": True}, "css": ["a.css"]}
    assert layer == {"execute": {"echo": False}, "css": ["b.css"]}


def test_empty_layers_yield_empty_mapping() -> None:
    assert merge_configs(None, None, {}) == {}
