"""Utilities for document paths and relative links inside a unit subtree."""

import posixpath

from cargo_doc_md.normalize_name import normalize_name

INDEX_FILE = "index.md"


def module_doc_path(path: tuple[str, ...]) -> str:
    """Return the document path of a module relative to its unit subtree.

    The unit root is ``index.md``; ``a::b`` is ``a/b/index.md``. Giving each
    module its own directory keeps names collision-free.
    """
    return "/".join([*(normalize_name(p) for p in path), INDEX_FILE])


def unit_entry_path(unit_name: str) -> str:
    """Return a unit's root document relative to the output base."""
    return f"{normalize_name(unit_name)}/{INDEX_FILE}"


def relative_link(from_doc: str, to_doc: str, anchor: str | None = None) -> str:
    """Return a relative link from one document to another (and an anchor)."""
    if from_doc == to_doc and anchor:
        return f"#{anchor}"
    start = posixpath.dirname(from_doc) or "."
    rel = posixpath.relpath(to_doc, start)
    return f"{rel}#{anchor}" if anchor else rel
