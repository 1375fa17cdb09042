"""Tests for doc text processing."""

from cargo_doc_md.doc_text import rewrite_intra_doc_links, summary_line

HREFS = {"1": "shapes/index.md#struct-point", "2": "index.md#function-origin"}


def _href(item_id: str) -> str | None:
    return HREFS.get(item_id)


def test_summary_line_is_first_line_of_first_paragraph() -> None:
    """Verify listings only take the opening line."""
    assert summary_line("\n  Makes a point.\nMore text.\n\nSecond.") == "Makes a point."
    assert summary_line("") == ""


def test_shortcut_links_are_rewritten() -> None:
    """Verify `[Name]` style links point at the item's document."""
    docs = "See [`Point`] and [origin]."
    links = {"`Point`": "1", "origin": "2"}
    assert rewrite_intra_doc_links(docs, links, _href) == (
        "See [`Point`](shapes/index.md#struct-point) and [origin](index.md#function-origin)."
    )


def test_inline_links_with_paths_are_rewritten() -> None:
    """Verify `[text](crate::path)` links resolve through the links map."""
    docs = "Build a [point](crate::shapes::Point) or read [the book](https://doc.rust-lang.org)."
    links = {"crate::shapes::Point": "1"}
    assert rewrite_intra_doc_links(docs, links, _href) == (
        "Build a [point](shapes/index.md#struct-point) or read [the book](https://doc.rust-lang.org)."
    )


def test_reference_definitions_are_rewritten() -> None:
    """Verify reference-style definitions get the relative target."""
    docs = "Uses [a point][p].\n\n[p]: crate::shapes::Point"
    links = {"crate::shapes::Point": "1"}
    out = rewrite_intra_doc_links(docs, links, _href)
    assert out.endswith("[p]: shapes/index.md#struct-point")
    assert out.startswith("Uses [a point][p].")


def test_unresolvable_links_degrade_to_text() -> None:
    """Verify links to items without a document keep their text and drop the brackets."""
    docs = "Implements [`Clone`] via [copy](core::marker::Copy)."
    links = {"`Clone`": "900", "core::marker::Copy": "901"}
    assert rewrite_intra_doc_links(docs, links, _href) == "Implements `Clone` via copy."


def test_code_blocks_are_untouched() -> None:
    """Verify brackets inside fenced code are not treated as links."""
    docs = "Text [`Point`].\n\n```\nlet v = [Point];\n```"
    links = {"`Point`": "1", "Point": "1"}
    out = rewrite_intra_doc_links(docs, links, _href)
    assert "let v = [Point];" in out
    assert "Text [`Point`](shapes/index.md#struct-point)." in out


def test_no_links_returns_docs_unchanged() -> None:
    """Verify plain brackets survive when the item has no links."""
    docs = "An array like [1, 2] stays."
    assert rewrite_intra_doc_links(docs, {}, _href) == docs
