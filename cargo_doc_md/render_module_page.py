"""Logic for rendering module documents."""

from cargo_doc_md.build_link_targets import build_link_targets
from cargo_doc_md.doc_paths import module_doc_path, relative_link
from cargo_doc_md.item_kinds import (
    CONSTANT,
    ENUM,
    FUNCTION,
    MACRO,
    PROC_MACRO,
    STATIC,
    STRUCT,
    TRAIT,
    TRAIT_ALIAS,
    TYPE_ALIAS,
    UNION,
    kind_label,
    pluralize,
)
from cargo_doc_md.md_codeblock import md_code_span
from cargo_doc_md.models import Entry, ItemGraph, ModuleNode, ModuleTree, RenderOptions
from cargo_doc_md.render_item import RenderContext, render_item, render_listing_entry

SECTION_TITLES = {
    MACRO: "Macros",
    PROC_MACRO: "Procedural Macros",
    STRUCT: "Structs",
    ENUM: "Enums",
    UNION: "Unions",
    TRAIT: "Traits",
    TRAIT_ALIAS: "Trait Aliases",
    TYPE_ALIAS: "Type Aliases",
    FUNCTION: "Functions",
    CONSTANT: "Constants",
    STATIC: "Statics",
}


def render_unit_pages(
    graph: ItemGraph,
    tree: ModuleTree,
    options: RenderOptions | None = None,
) -> dict[str, str]:
    """Render every module of a unit; keys are paths relative to the unit subtree."""
    options = options or RenderOptions()
    targets = build_link_targets(graph, tree)
    pages: dict[str, str] = {}
    for node in tree.nodes:
        doc_path = module_doc_path(node.path)
        ctx = RenderContext(graph, tree, targets, doc_path, options)
        pages[doc_path] = render_module_page(ctx, node)
    return pages


def module_title(graph: ItemGraph, node: ModuleNode) -> str:
    """Return the page title: the crate for the unit root, else the module path."""
    if node.parent is None:
        return f"Crate {md_code_span(graph.crate_name)}"
    return f"Module {md_code_span('::'.join(node.path))}"


def render_breadcrumb(ctx: RenderContext, node: ModuleNode) -> str:
    """Render links to every module from the unit root down to ``node``."""
    links = [
        f"[{md_code_span(n.name)}]({relative_link(ctx.doc_path, module_doc_path(n.path))})"
        for n in ctx.tree.breadcrumb(node.index)
    ]
    return " / ".join(links)


def contents_summary(graph: ItemGraph, node: ModuleNode) -> str:
    """Count child modules and items per kind, e.g. "1 struct, 2 enums"."""
    counts: dict[str, int] = {}
    if node.children:
        counts["module"] = len(node.children)
    for item_id in node.items:
        label = kind_label(graph.items[item_id])
        counts[label] = counts.get(label, 0) + 1
    if not counts:
        return "none"
    return ", ".join(pluralize(label, count) for label, count in counts.items())


def render_module_page(ctx: RenderContext, node: ModuleNode) -> str:
    """Render one module document in Markdown."""
    graph = ctx.graph
    parts = [render_breadcrumb(ctx, node), "", f"# {module_title(graph, node)}", ""]
    if node.parent is None and graph.crate_version:
        parts += [f"**Version:** {graph.crate_version}", ""]

    module = graph.items[node.module_id]
    docs = ctx.docs(module)
    if docs:
        parts += [docs, ""]

    parts += [f"**Contents:** {contents_summary(graph, node)}", ""]

    if node.children:
        parts += ["## Modules", ""]
        for child_index in node.children:
            child = ctx.tree.nodes[child_index]
            parts.append(render_listing_entry(ctx, graph.items[child.module_id], child.name))
        parts.append("")

    parts.extend(_render_item_sections(ctx, node.items))
    parts.extend(_render_reexports(ctx, node.reexports))

    if node.hidden_items:
        parts += [
            "## Private Items",
            "",
            "Not part of the public API; shown because public items refer to them.",
            "",
        ]
        for item_id in node.hidden_items:
            parts.extend(_render_placed_item(ctx, item_id))

    return "\n".join(parts).rstrip() + "\n"


def _render_placed_item(ctx: RenderContext, item_id: str) -> list[str]:
    item = ctx.graph.items[item_id]
    return render_item(ctx, item, ctx.tree.placements[item_id].name)


def _render_item_sections(ctx: RenderContext, item_ids: list[str]) -> list[str]:
    """Render one section per kind; ``item_ids`` are already in kind order."""
    parts: list[str] = []
    current_kind: str | None = None
    for item_id in item_ids:
        kind = ctx.graph.items[item_id].kind
        if kind != current_kind:
            parts += [f"## {SECTION_TITLES[kind]}", ""]
            current_kind = kind
        parts.extend(_render_placed_item(ctx, item_id))
    return parts


def _render_reexports(ctx: RenderContext, entries: list[Entry]) -> list[str]:
    """Render names this module re-exports from elsewhere."""
    if not entries:
        return []
    parts = ["## Re-exports", ""]
    for entry in entries:
        use = f"pub use {entry.source or entry.name}"
        if entry.source and entry.source.rsplit("::", 1)[-1] not in {entry.name, "*"}:
            use += f" as {entry.name}"
        href = ctx.href(entry.target)
        if href:
            parts.append(f"- [{md_code_span(entry.name)}]({href}): {md_code_span(use + ';')}")
        else:
            parts.append(f"- {md_code_span(use + ';')}")
    parts.append("")
    return parts
