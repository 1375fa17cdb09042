"""Logic for rendering one item section of a module document."""

from dataclasses import dataclass

from cargo_doc_md.doc_paths import relative_link
from cargo_doc_md.doc_text import rewrite_intra_doc_links, summary_line
from cargo_doc_md.item_kinds import (
    ASSOC_CONST,
    ASSOC_TYPE,
    CONSTANT,
    ENUM,
    FUNCTION,
    IMPL,
    PROC_MACRO,
    STATIC,
    STRUCT,
    TRAIT,
    TRAIT_ALIAS,
    TYPE_ALIAS,
    UNION,
    is_type_kind,
    kind_label,
)
from cargo_doc_md.item_signature import declaration, member_signature, variant_signature
from cargo_doc_md.md_codeblock import md_code_span, md_codeblock
from cargo_doc_md.md_table import md_table
from cargo_doc_md.models import Item, ItemGraph, LinkTarget, ModuleTree, RenderOptions
from cargo_doc_md.rust_types import (
    Fragment,
    fn_output,
    fn_params,
    format_bounds,
    format_impl_header,
    format_type,
    has_body,
    is_blanket_impl,
    is_synthetic_impl,
    plain,
)


@dataclass
class RenderContext:
    """What a renderer needs to resolve links from one document."""

    graph: ItemGraph
    tree: ModuleTree
    targets: dict[str, LinkTarget]
    doc_path: str
    options: RenderOptions

    def href(self, item_id: str | None) -> str | None:
        """Return a relative link to an item, or None if it has no target."""
        if item_id is None:
            return None
        target = self.targets.get(item_id)
        if target is None:
            return None
        return relative_link(self.doc_path, target.doc_path, target.anchor)

    def code(self, frags: list[Fragment]) -> str:
        """Render fragments as inline code, linking every known item."""
        out: list[str] = []
        pending = ""
        for value, target in frags:
            href = self.href(target)
            if href is None:
                pending += value
                continue
            if pending:
                out.append(md_code_span(pending))
                pending = ""
            out.append(f"[{md_code_span(value)}]({href})")
        if pending:
            out.append(md_code_span(pending))
        return "".join(out)

    def docs(self, item: Item) -> str:
        """Return an item's docs with intra-doc links rewritten."""
        return rewrite_intra_doc_links(item.docs.strip(), item.links, self.href)

    def shown(self, item: Item | None) -> bool:
        return item is not None and (self.options.include_private or item.is_public)


def item_heading(item: Item, name: str) -> str:
    """Return the heading of an item section, e.g. ``Struct `Foo` ``."""
    label = kind_label(item)
    return f"{label[0].upper()}{label[1:]} {md_code_span(name)}"


def render_item(ctx: RenderContext, item: Item, name: str) -> list[str]:
    """Render the section of one item: declaration, docs, members and impls."""
    parts = [f"### {item_heading(item, name)}", ""]
    parts.extend(_render_deprecation(item))

    decl = plain(declaration(ctx.graph, item, name, include_private=ctx.options.include_private))
    parts += [md_codeblock(ctx.options.code_lang, decl), ""]

    docs = ctx.docs(item)
    if docs:
        parts += [docs, ""]

    if item.kind in {STRUCT, UNION}:
        parts.extend(_render_fields(ctx, item))
    elif item.kind == ENUM:
        parts.extend(_render_variants(ctx, item))
    elif item.kind == TRAIT:
        parts.extend(_render_trait_items(ctx, item))
    elif item.kind == FUNCTION:
        parts.extend(_render_fn_types(ctx, item))
    elif item.kind == PROC_MACRO:
        parts.extend(_render_proc_macro(item))
    elif item.kind == TYPE_ALIAS:
        parts.extend(_render_type_line(ctx, "Aliased type", format_type(item.inner.get("type"))))
    elif item.kind in {CONSTANT, STATIC}:
        parts.extend(_render_type_line(ctx, "Type", format_type(item.inner.get("type"))))
    elif item.kind == TRAIT_ALIAS:
        bounds = item.inner.get("params") or item.inner.get("bounds")
        parts.extend(_render_type_line(ctx, "Bounds", format_bounds(bounds)))

    if is_type_kind(item.kind):
        parts.extend(_render_impls(ctx, item))
    return parts


def _render_deprecation(item: Item) -> list[str]:
    """Render a deprecation notice under the heading."""
    if not item.deprecation:
        return []
    since = item.deprecation.get("since")
    note = item.deprecation.get("note")
    line = "> **Deprecated**"
    if since:
        line += f" since {since}"
    if note:
        line += f": {' '.join(str(note).split())}"
    return [line, ""]


def _render_type_line(ctx: RenderContext, label: str, frags: list[Fragment]) -> list[str]:
    # Plain types are already in the code block; only repeat linkable ones.
    if not any(ctx.href(target) for _, target in frags):
        return []
    return [f"**{label}:** {ctx.code(frags)}", ""]


def _render_fields(ctx: RenderContext, item: Item) -> list[str]:
    """Render the fields table of a struct or union."""
    rows: list[list[str]] = []
    for field_id in item.children:
        field = ctx.graph.items.get(field_id)
        if not ctx.shown(field):
            continue
        rows.append([md_code_span(field.name), ctx.code(format_type(field.inner)), ctx.docs(field)])
    if not rows:
        return []
    return ["#### Fields", "", md_table(["Name", "Type", "Description"], rows), ""]


def _render_variants(ctx: RenderContext, item: Item) -> list[str]:
    """Render the variants table of an enum."""
    rows: list[list[str]] = []
    for variant_id in item.children:
        variant = ctx.graph.items.get(variant_id)
        if variant is None:
            continue
        sig = variant_signature(ctx.graph, variant, include_private=ctx.options.include_private)
        rows.append([ctx.code(sig), ctx.docs(variant)])
    if not rows:
        return []
    return ["#### Variants", "", md_table(["Variant", "Description"], rows), ""]


def _render_fn_types(ctx: RenderContext, item: Item) -> list[str]:
    """Render the parameters table and return type of a function."""
    parts = []
    params = fn_params(item.inner)
    if params:
        rows = [[md_code_span(pname), ctx.code(ptype)] for pname, ptype in params]
        parts += ["#### Parameters", "", md_table(["Name", "Type"], rows), ""]
    output = fn_output(item.inner)
    if output:
        parts += [f"**Returns:** {ctx.code(output)}", ""]
    return parts


def _render_proc_macro(item: Item) -> list[str]:
    """Render helper attributes of a derive macro."""
    helpers = item.inner.get("helpers") or []
    if not helpers:
        return []
    attrs = ", ".join(md_code_span(f"#[{h}]") for h in helpers)
    return [f"**Helper attributes:** {attrs}", ""]


def _render_member(ctx: RenderContext, member: Item) -> list[str]:
    """Render a member as a list entry with its docs indented below it."""
    parts = [f"- {ctx.code(member_signature(ctx.graph, member))}"]
    docs = ctx.docs(member)
    if docs:
        parts += [""] + [f"  {line}" if line else "" for line in docs.splitlines()]
        parts.append("")
    return parts


def _render_member_list(ctx: RenderContext, title: str, members: list[Item]) -> list[str]:
    if not members:
        return []
    parts = [f"#### {title}", ""]
    for member in members:
        parts.extend(_render_member(ctx, member))
    if parts[-1]:
        parts.append("")
    return parts


def _render_trait_items(ctx: RenderContext, item: Item) -> list[str]:
    """Render required and provided trait items, then implementors."""
    required: list[Item] = []
    provided: list[Item] = []
    for member_id in item.children:
        member = ctx.graph.items.get(member_id)
        if member is None:
            continue
        if member.kind == FUNCTION:
            (provided if has_body(member.inner) else required).append(member)
        elif member.kind == ASSOC_TYPE:
            default = member.inner.get("type", member.inner.get("default"))
            (required if default is None else provided).append(member)
        elif member.kind == ASSOC_CONST:
            value = member.inner.get("value", member.inner.get("default"))
            (required if value is None else provided).append(member)

    parts = _render_member_list(ctx, "Required Items", required)
    parts.extend(_render_member_list(ctx, "Provided Items", provided))

    implementors = []
    for impl_id in item.impls:
        impl = ctx.graph.items.get(impl_id)
        if impl is None or impl.kind != IMPL or is_synthetic_impl(impl.inner):
            continue
        implementors.append(f"- {ctx.code(format_impl_header(impl.inner))}")
    if implementors:
        parts += ["#### Implementors", "", *sorted(implementors), ""]
    return parts


def _impl_groups(ctx: RenderContext, item: Item) -> dict[str, list[Item]]:
    """Split implementation blocks into inherent, trait, auto-trait and blanket."""
    groups: dict[str, list[Item]] = {"inherent": [], "trait": [], "auto": [], "blanket": []}
    for impl_id in item.impls:
        impl = ctx.graph.items.get(impl_id)
        if impl is None or impl.kind != IMPL:
            continue
        if not impl.inner.get("trait"):
            groups["inherent"].append(impl)
        elif is_synthetic_impl(impl.inner):
            groups["auto"].append(impl)
        elif is_blanket_impl(impl.inner):
            groups["blanket"].append(impl)
        else:
            groups["trait"].append(impl)
    return groups


def _render_impl_blocks(ctx: RenderContext, title: str, impls: list[Item]) -> list[str]:
    """Render impl blocks as a header line followed by their members."""
    parts: list[str] = []
    for impl in impls:
        members = [m for m in (ctx.graph.items.get(i) for i in impl.children) if ctx.shown(m)]
        parts += [ctx.code(format_impl_header(impl.inner)), ""]
        for member in members:
            parts.extend(_render_member(ctx, member))
        if parts[-1]:
            parts.append("")
    if not parts:
        return []
    return [f"#### {title}", "", *parts]


def _by_header(impls: list[Item]) -> list[Item]:
    return sorted(impls, key=lambda impl: (plain(format_impl_header(impl.inner)), impl.id))


def _render_impls(ctx: RenderContext, item: Item) -> list[str]:
    """Render the implementation blocks attached to a type."""
    groups = _impl_groups(ctx, item)
    # Inherent blocks with nothing visible in them are left out.
    inherent = [
        impl
        for impl in groups["inherent"]
        if any(ctx.shown(ctx.graph.items.get(i)) for i in impl.children)
    ]
    parts = _render_impl_blocks(ctx, "Implementations", inherent)
    parts.extend(_render_impl_blocks(ctx, "Trait Implementations", _by_header(groups["trait"])))

    sections = []
    if ctx.options.auto_trait_impls:
        sections.append(("Auto Trait Implementations", groups["auto"]))
    if ctx.options.blanket_impls:
        sections.append(("Blanket Implementations", groups["blanket"]))
    for title, impls in sections:
        if not impls:
            continue
        headers = [ctx.code(format_impl_header(impl.inner)) for impl in _by_header(impls)]
        parts += [f"#### {title}", "", *(f"- {line}" for line in headers), ""]
    return parts


def render_listing_entry(ctx: RenderContext, item: Item, name: str) -> str:
    """Return a one-line link to an item with its summary, for listings."""
    link = md_code_span(name)
    href = ctx.href(item.id)
    if href:
        link = f"[{link}]({href})"
    summary = summary_line(ctx.docs(item))
    return f"- {link}: {summary}" if summary else f"- {link}"


