"""Tests for rendering module documents."""

from cargo_doc_md.build_item_graph import build_item_graph
from cargo_doc_md.build_link_targets import build_link_targets
from cargo_doc_md.models import RenderOptions
from cargo_doc_md.module_tree import build_module_tree
from cargo_doc_md.render_module_page import contents_summary, render_unit_pages


def _pages(ir, **options):
    graph = build_item_graph(ir.to_dict())
    tree = build_module_tree(graph, include_private=options.get("include_private", False))
    return render_unit_pages(graph, tree, RenderOptions(**options))


def _shapes(ir):
    """Build `demo::shapes::Point` with an inherent and a trait impl."""
    shapes = ir.module("shapes", docs="Geometry.")
    point = ir.struct(
        "Point",
        shapes,
        fields=[("x", ir.prim("f64")), ("y", ir.prim("f64"))],
        docs="A point.\n\nSecond paragraph.",
    )
    new = ir.add("new", ir.fn_inner((), {"generic": "Self"}), docs="Makes one.")
    ir.impl(point, "Point", items=[new])
    ir.impl(point, "Point", trait={"path": "Clone", "id": 900, "args": None})
    ir.impl(point, "Point", trait={"path": "Send", "id": 901, "args": None}, synthetic=True)
    ir.impl(point, "Point", trait={"path": "Into", "id": 902, "args": None}, blanket={"generic": "T"})
    return shapes, point, new


def test_summary_counts_are_pluralized(ir) -> None:
    """Verify a module with one struct and two enums reads "1 struct, 2 enums"."""
    ir.struct("S")
    ir.enum("A", variants=["X"])
    ir.enum("B", variants=["Y"])
    page = _pages(ir)["index.md"]
    assert "**Contents:** 1 struct, 2 enums" in page
    assert "## Structs" in page
    assert "## Enums" in page


def test_contents_summary_counts_modules_and_labels(ir) -> None:
    """Verify modules and proc macro subkinds are counted under their own labels."""
    ir.module("a")
    ir.module("b")
    ir.proc_macro("Builder", "derive")
    graph = build_item_graph(ir.to_dict())
    tree = build_module_tree(graph)
    assert contents_summary(graph, tree.root) == "2 modules, 1 derive macro"


def test_empty_module_summary(ir) -> None:
    """Verify an empty crate still renders a summary line."""
    page = _pages(ir)["index.md"]
    assert page.startswith("[`demo`](index.md)\n\n# Crate `demo`\n")
    assert "**Version:** 0.1.0" in page
    assert "**Contents:** none" in page


def test_one_document_per_module(ir) -> None:
    """Verify every module node becomes one document at its normalized path."""
    outer = ir.module("outer")
    ir.module("inner", outer)
    pages = _pages(ir)
    assert sorted(pages) == ["index.md", "outer/index.md", "outer/inner/index.md"]
    assert "# Module `outer::inner`" in pages["outer/inner/index.md"]


def test_breadcrumb_links_every_ancestor(ir) -> None:
    """Verify the breadcrumb links from the root down to the current module."""
    outer = ir.module("outer")
    ir.module("inner", outer)
    page = _pages(ir)["outer/inner/index.md"]
    first_line = page.splitlines()[0]
    assert first_line == "[`demo`](../../index.md) / [`outer`](../index.md) / [`inner`](index.md)"


def test_module_listing_links_children(ir) -> None:
    """Verify child modules are listed with links and their summary line."""
    _shapes(ir)
    page = _pages(ir)["index.md"]
    assert "## Modules" in page
    assert "- [`shapes`](shapes/index.md): Geometry." in page


def test_struct_section(ir) -> None:
    """Verify declaration, docs, fields and impl groups of a struct."""
    _shapes(ir)
    page = _pages(ir)["shapes/index.md"]
    assert "### Struct `Point`" in page
    assert "```rust\npub struct Point {\n    pub x: f64,\n    pub y: f64,\n}\n```" in page
    assert "A point.\n\nSecond paragraph." in page
    assert "| `x` | `f64` |  |" in page
    assert "#### Implementations" in page
    assert "- `pub fn new() -> Self`" in page
    assert "  Makes one." in page
    assert "#### Trait Implementations" in page
    assert "impl Clone for" in page
    assert "#### Auto Trait Implementations" in page
    assert "impl Send for" in page
    assert "Blanket Implementations" not in page


def test_blanket_impls_can_be_enabled(ir) -> None:
    """Verify blanket impls are listed when the option is on."""
    _shapes(ir)
    page = _pages(ir, blanket_impls=True, auto_trait_impls=False)["shapes/index.md"]
    assert "#### Blanket Implementations" in page
    assert "Auto Trait Implementations" not in page


def test_cross_module_links_are_relative(ir) -> None:
    """Verify types in signatures link to the module document of their definition."""
    _, point, _ = _shapes(ir)
    ir.function("origin", output=ir.path("Point", point), docs="The [`Point`] at zero.", links={"`Point`": point})
    page = _pages(ir)["index.md"]
    assert "**Returns:** [`Point`](shapes/index.md#struct-point)" in page
    assert "The [`Point`](shapes/index.md#struct-point) at zero." in page


def test_members_link_to_their_parent(ir) -> None:
    """Verify methods resolve to the anchor of the type that owns them."""
    _, point, new = _shapes(ir)
    graph = build_item_graph(ir.to_dict())
    targets = build_link_targets(graph, build_module_tree(graph))
    assert targets[str(point)].doc_path == "shapes/index.md"
    assert targets[str(point)].anchor == "struct-point"
    assert targets[str(new)].anchor == "struct-point"


def test_function_parameters_table(ir) -> None:
    """Verify function parameters get a table with their types."""
    ir.function("area", inputs=[("w", ir.prim("u32")), ("h", ir.prim("u32"))], output=ir.prim("u64"))
    page = _pages(ir)["index.md"]
    assert "```rust\npub fn area(w: u32, h: u32) -> u64\n```" in page
    assert "#### Parameters" in page
    assert "| `w` | `u32` |" in page


def test_enum_variants(ir) -> None:
    """Verify enums show their variants in the declaration and a table."""
    ir.enum("Color", variants=["Red", "Green"])
    page = _pages(ir)["index.md"]
    assert "pub enum Color {\n    Red,\n    Green,\n}" in page
    assert "| `Red` |  |" in page


def test_macros(ir) -> None:
    """Verify declarative macros show their body and proc macros an invocation."""
    ir.macro("square", "macro_rules! square {\n    ($x:expr) => { $x * $x };\n}")
    ir.proc_macro("Builder", "derive")
    ir.proc_macro("route", "attr")
    ir.proc_macro("sql", "bang")
    page = _pages(ir)["index.md"]
    assert "## Macros" in page
    assert "macro_rules! square {\n    ($x:expr) => { $x * $x };\n}" in page
    assert "## Procedural Macros" in page
    assert "### Derive macro `Builder`" in page
    assert "#[derive(Builder)]\nstruct MyStruct;" in page
    assert "#[route]\nfn my_function() {}" in page
    assert "sql!(/* input */);" in page


def test_trait_items_and_implementors(ir) -> None:
    """Verify traits split required and provided items and list implementors."""
    required = ir.add("area", ir.fn_inner((["self", {"borrowed_ref": {"lifetime": None, "is_mutable": False, "type": {"generic": "Self"}}}],), ir.prim("f64"), has_body=False), visibility="default")
    provided = ir.add("describe", ir.fn_inner(), visibility="default")
    shape = ir.trait("Shape", items=[required, provided])
    square = ir.struct("Square")
    ir.impl(square, "Square", trait={"path": "Shape", "id": shape, "args": None})
    page = _pages(ir)["index.md"]
    assert "pub trait Shape {\n    fn area(&self) -> f64;\n    fn describe() { ... }\n}" in page
    assert "#### Required Items" in page
    assert "#### Provided Items" in page
    assert "#### Implementors" in page
    assert "- `impl` [`Shape`](#trait-shape) `for` [`Square`](#struct-square)" in page


def test_reexport_links(ir) -> None:
    """Verify re-exports link to the item's canonical section."""
    _, point, _ = _shapes(ir)
    ir.use("Pt", "shapes::Point", point)
    page = _pages(ir)["index.md"]
    assert "## Re-exports" in page
    assert "- [`Pt`](shapes/index.md#struct-point): `pub use shapes::Point as Pt;`" in page


def test_hidden_items_are_rendered_as_private(ir) -> None:
    """Verify referenced private items get a section so links resolve."""
    hidden = ir.struct("Hidden", visibility="crate")
    ir.function("make", output=ir.path("Hidden", hidden))
    page = _pages(ir)["index.md"]
    assert "## Private Items" in page
    assert "### Struct `Hidden`" in page
    assert "**Returns:** [`Hidden`](#struct-hidden)" in page
    assert "**Contents:** 1 function" in page


def test_deprecation_notice(ir) -> None:
    """Verify deprecated items carry a notice under the heading."""
    ir.function("old", deprecation={"since": "1.2.0", "note": "use `new`"})
    page = _pages(ir)["index.md"]
    assert "> **Deprecated** since 1.2.0: use `new`" in page


def test_rendering_is_deterministic(ir) -> None:
    """Verify rendering the same input twice gives byte-identical output."""
    _, point, _ = _shapes(ir)
    ir.enum("Kind", variants=["A", "B"])
    ir.use("Point", "shapes::Point", point)
    first = _pages(ir)
    second = _pages(ir)
    assert first == second


def test_trait_impl_members_are_rendered(ir) -> None:
    """Verify methods of a trait implementation are listed under its header."""
    point = ir.struct("Point")
    receiver = {"borrowed_ref": {"lifetime": None, "is_mutable": False, "type": {"generic": "Self"}}}
    fmt = ir.add("fmt", ir.fn_inner((("self", receiver),)), visibility="default", docs="Formats the point.")
    ir.impl(point, "Point", trait={"path": "Display", "id": 903, "args": None}, items=[fmt])
    page = _pages(ir)["index.md"]
    section = page[page.index("#### Trait Implementations"):]
    assert section.startswith("#### Trait Implementations\n\n`impl Display for` [`Point`](#struct-point)\n\n")
    assert "- `fn fmt(&self)`\n\n  Formats the point." in section


def test_case_variant_names_get_distinct_anchors(ir) -> None:
    """Verify items whose anchors collide are numbered in heading order."""
    foo = ir.struct("Foo")
    upper = ir.struct("FOO")
    ir.function("make", output=ir.path("FOO", upper))
    ir.function("make_foo", output=ir.path("Foo", foo))
    graph = build_item_graph(ir.to_dict())
    targets = build_link_targets(graph, build_module_tree(graph))
    assert targets[str(upper)].anchor == "struct-foo"
    assert targets[str(foo)].anchor == "struct-foo-1"

    page = _pages(ir)["index.md"]
    assert page.index("### Struct `FOO`") < page.index("### Struct `Foo`")
    assert "**Returns:** [`FOO`](#struct-foo)" in page
    assert "**Returns:** [`Foo`](#struct-foo-1)" in page
