"""Tests for reconstructing the module tree and resolving re-exports."""

import pytest

from cargo_doc_md.build_item_graph import build_item_graph
from cargo_doc_md.errors import ModuleTreeError
from cargo_doc_md.module_tree import build_module_tree, canonicalize


def _tree(ir, **kw):
    graph = build_item_graph(ir.to_dict())
    return graph, build_module_tree(graph, **kw)


def _node(tree, *path):
    return next(n for n in tree.nodes if n.path == tuple(path))


def test_items_are_ordered_by_kind_then_name(ir) -> None:
    """Verify the documented ordering of items within a module."""
    f = ir.function("f")
    b = ir.struct("b")
    e = ir.enum("E")
    a = ir.struct("A")
    m = ir.macro("m", "macro_rules! m { () => {} }")
    _, tree = _tree(ir)
    assert tree.root.items == [str(m), str(a), str(b), str(e), str(f)]


def test_child_modules_are_sorted(ir) -> None:
    """Verify child modules sort case-insensitively by name."""
    ir.module("zeta")
    ir.module("Alpha")
    ir.module("beta")
    _, tree = _tree(ir)
    names = [tree.nodes[i].name for i in tree.root.children]
    assert names == ["Alpha", "beta", "zeta"]


def test_breadcrumb(ir) -> None:
    """Verify the ancestor chain runs from the unit root down."""
    outer = ir.module("outer")
    ir.module("inner", outer)
    _, tree = _tree(ir)
    node = _node(tree, "outer", "inner")
    assert [n.name for n in tree.breadcrumb(node.index)] == ["demo", "outer", "inner"]


def test_reexport_from_private_module_is_rendered_at_reexport(ir) -> None:
    """Verify an item only reachable through `pub use` lives where it is re-exported."""
    hidden_mod = ir.module("imp", visibility="crate")
    thing = ir.struct("Thing", hidden_mod)
    ir.use("Thing", "imp::Thing", thing)
    _, tree = _tree(ir)

    assert all(n.path != ("imp",) for n in tree.nodes)
    assert tree.root.items == [str(thing)]
    assert tree.root.reexports == []


def test_item_reachable_twice_is_rendered_once(ir) -> None:
    """Verify a re-exported item stays at its definition and is linked from the alias."""
    shapes = ir.module("shapes")
    point = ir.struct("Point", shapes)
    ir.use("Point", "shapes::Point", point)
    _, tree = _tree(ir)

    shapes_node = _node(tree, "shapes")
    assert tree.placements[str(point)].node == shapes_node.index
    assert shapes_node.items == [str(point)]
    assert tree.root.items == []
    assert [(e.name, e.target) for e in tree.root.reexports] == [("Point", str(point))]


def test_renamed_reexport_keeps_its_display_name(ir) -> None:
    """Verify `pub use a::Long as Short` renders under the new name."""
    imp = ir.module("imp", visibility="crate")
    long = ir.struct("Long", imp)
    ir.use("Short", "imp::Long", long)
    _, tree = _tree(ir)
    assert tree.placements[str(long)].name == "Short"


def test_cyclic_glob_reexports_terminate(ir) -> None:
    """Verify `pub use b::*` in a and `pub use a::*` in b resolve without looping."""
    a = ir.module("a")
    b = ir.module("b")
    x = ir.struct("X", a)
    y = ir.struct("Y", b)
    ir.use("b", "crate::b", b, a, glob=True)
    ir.use("a", "crate::a", a, b, glob=True)
    _, tree = _tree(ir)

    a_node, b_node = _node(tree, "a"), _node(tree, "b")
    assert a_node.items == [str(x)]
    assert b_node.items == [str(y)]
    assert [e.target for e in a_node.reexports] == [str(y)]
    assert [e.target for e in b_node.reexports] == [str(x)]
    assert sum(1 for n in tree.nodes for i in n.items if i == str(x)) == 1


def test_cyclic_use_edges_canonicalize_to_none(ir) -> None:
    """Verify a cycle of `use` edges has no definition and does not loop."""
    first = ir.use("A", "b::B", None)
    second = ir.use("B", "a::A", first)
    ir.index[str(first)]["inner"]["use"]["id"] = second
    graph, tree = _tree(ir)

    assert canonicalize(graph, str(first)) is None
    assert {e.name for e in tree.root.reexports} == {"A", "B"}
    assert all(e.target is None for e in tree.root.reexports)


def test_glob_over_private_module_lists_items(ir) -> None:
    """Verify a glob re-export of a hidden module brings its public items in."""
    prelude = ir.module("prelude_impl", visibility="crate")
    s = ir.struct("S", prelude)
    ir.use("prelude_impl", "prelude_impl", prelude, glob=True)
    _, tree = _tree(ir)
    assert tree.root.items == [str(s)]


def test_explicit_names_shadow_glob_imports(ir) -> None:
    """Verify a module's own item wins over a glob-imported one with the same name."""
    m = ir.module("m")
    inner_s = ir.struct("S", m)
    ir.use("m", "m", m, glob=True)
    own_s = ir.struct("S")
    _, tree = _tree(ir)
    assert tree.root.items == [str(own_s)]
    assert _node(tree, "m").items == [str(inner_s)]


def test_glob_over_external_crate_is_listed(ir) -> None:
    """Verify globs over things outside the crate stay as plain re-exports."""
    ir.use("serde", "serde", None, glob=True)
    _, tree = _tree(ir)
    assert [(e.source, e.target) for e in tree.root.reexports] == [("serde::*", None)]


def test_private_items_referenced_by_public_api_are_kept_hidden(ir) -> None:
    """Verify filtered items stay as link targets when public items refer to them."""
    hidden = ir.struct("Hidden", visibility="crate")
    make = ir.function("make", output=ir.path("Hidden", hidden))
    _, tree = _tree(ir)

    assert tree.root.items == [str(make)]
    assert tree.root.hidden_items == [str(hidden)]
    assert tree.placements[str(hidden)].hidden


def test_include_private_lists_everything(ir) -> None:
    """Verify private items are listed normally when requested."""
    hidden = ir.struct("Hidden", visibility="crate")
    ir.function("make", output=ir.path("Hidden", hidden))
    _, tree = _tree(ir, include_private=True)
    assert str(hidden) in tree.root.items
    assert tree.root.hidden_items == []


def test_root_must_be_a_module(ir) -> None:
    """Verify a graph whose root is not a module cannot be laid out."""
    graph = build_item_graph(ir.to_dict())
    graph.root = str(ir.struct("NotAModule"))
    with pytest.raises(ModuleTreeError):
        build_module_tree(graph)


def test_private_method_types_are_not_kept(ir) -> None:
    """Verify types used only by unrendered private methods stay out of the tree."""
    secret = ir.struct("Secret", visibility="crate")
    shown = ir.struct("Shown", visibility="crate")
    point = ir.struct("Point")
    helper = ir.add("helper", ir.fn_inner((), ir.path("Secret", secret)), visibility="crate")
    public = ir.add("public", ir.fn_inner((), ir.path("Shown", shown)))
    ir.impl(point, "Point", items=[helper, public])
    _, tree = _tree(ir)
    assert tree.root.hidden_items == [str(shown)]

    _, tree = _tree(ir, include_private=True)
    assert str(secret) in tree.root.items
