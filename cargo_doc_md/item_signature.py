"""Source-like declarations for items, as fragments.

``declaration`` gives the multi-line form shown in code blocks;
``member_signature`` gives the one-line form used in listings and tables.
"""

from typing import Any

from cargo_doc_md.item_kinds import (
    ASSOC_CONST,
    ASSOC_TYPE,
    CONSTANT,
    ENUM,
    FIELD,
    FUNCTION,
    MACRO,
    PROC_MACRO,
    STATIC,
    STRUCT,
    TRAIT,
    TRAIT_ALIAS,
    TYPE_ALIAS,
    UNION,
    VARIANT,
)
from cargo_doc_md.models import Item, ItemGraph
from cargo_doc_md.rust_types import (
    Fragment,
    format_bounds,
    format_fn_signature,
    format_generic_params,
    format_type,
    format_where_clause,
    has_body,
    join,
    text,
)

PRIVATE_FIELDS = "/* private fields */"
PRIVATE_FIELD = "/* private field */"


def _shown(item: Item | None, include_private: bool) -> bool:
    return item is not None and (include_private or item.is_public)


def _expr(value: Any) -> str | None:
    """Return the source expression of a const value, old or new layout."""
    if isinstance(value, dict):
        return value.get("expr") or value.get("value")
    return None if value is None else str(value)


def _flag(payload: dict[str, Any], *keys: str) -> bool:
    return any(bool(payload.get(k)) for k in keys)


def _struct_shape(payload: dict[str, Any]) -> tuple[str, list[str | None], bool]:
    """Return (shape, field ids, fields stripped) for a struct or variant."""
    shape = payload.get("kind")
    if isinstance(shape, dict) and "tuple" in shape:
        return "tuple", [None if f is None else str(f) for f in shape["tuple"] or []], False
    if isinstance(shape, dict):
        body = shape.get("plain") or shape.get("struct") or {}
        stripped = _flag(body, "has_stripped_fields", "fields_stripped")
        return "plain", [str(f) for f in body.get("fields") or []], stripped
    return "unit", [], False


def _tuple_fields(
    graph: ItemGraph,
    ids: list[str | None],
    include_private: bool,
) -> list[list[Fragment]]:
    out = []
    for field_id in ids:
        field = graph.items.get(field_id) if field_id else None
        if _shown(field, include_private):
            out.append(text(field.visibility_text) + format_type(field.inner))
        else:
            out.append(text(PRIVATE_FIELD))
    return out


def _named_fields(
    graph: ItemGraph,
    ids: list[str],
    stripped: bool,
    include_private: bool,
    indent: str,
) -> list[Fragment]:
    """Format `{ a: T, ... }` with one field per line."""
    lines: list[Fragment] = []
    hidden = stripped
    for field_id in ids:
        field = graph.items.get(field_id)
        if not _shown(field, include_private):
            hidden = True
            continue
        lines += text(f"\n{indent}    {field.visibility_text}{field.name}: ")
        lines += format_type(field.inner) + text(",")
    if hidden:
        lines += text(f"\n{indent}    {PRIVATE_FIELDS}")
    if not lines:
        return text(" {}")
    return text(" {") + lines + text(f"\n{indent}}}")


def variant_signature(graph: ItemGraph, item: Item, *, include_private: bool = False) -> list[Fragment]:
    """Format an enum variant: `A`, `B(T)`, `C { x: T }`, `D = 4`."""
    shape, ids, stripped = _struct_shape(item.inner)
    out = text(item.name)
    if shape == "tuple":
        out += text("(") + join(_tuple_fields(graph, ids, include_private), ", ") + text(")")
    elif shape == "plain":
        names = []
        for field_id in ids:
            field = graph.items.get(field_id)
            if _shown(field, include_private):
                names.append(text(f"{field.name}: ") + format_type(field.inner))
        if stripped or len(names) < len(ids):
            names.append(text(PRIVATE_FIELDS))
        out += text(" { ") + join(names, ", ") + text(" }") if names else text(" {}")
    discriminant = _expr(item.inner.get("discriminant"))
    if discriminant:
        out += text(f" = {discriminant}")
    return out


def _struct_declaration(graph: ItemGraph, item: Item, name: str, include_private: bool) -> list[Fragment]:
    generics = item.inner.get("generics") or {}
    out = text(f"{item.visibility_text}struct {name}") + format_generic_params(generics)
    shape, ids, stripped = _struct_shape(item.inner)
    where = format_where_clause(generics, multiline=True)
    if shape == "tuple":
        fields = _tuple_fields(graph, ids, include_private)
        return out + text("(") + join(fields, ", ") + text(")") + where + text(";")
    if shape == "unit":
        return out + where + text(";")
    return out + where + _named_fields(graph, ids, stripped, include_private, "")


def _union_declaration(graph: ItemGraph, item: Item, name: str, include_private: bool) -> list[Fragment]:
    generics = item.inner.get("generics") or {}
    out = text(f"{item.visibility_text}union {name}") + format_generic_params(generics)
    out += format_where_clause(generics, multiline=True)
    ids = [str(f) for f in item.inner.get("fields") or []]
    stripped = _flag(item.inner, "has_stripped_fields", "fields_stripped")
    return out + _named_fields(graph, ids, stripped, include_private, "")


def _enum_declaration(graph: ItemGraph, item: Item, name: str, include_private: bool) -> list[Fragment]:
    generics = item.inner.get("generics") or {}
    out = text(f"{item.visibility_text}enum {name}") + format_generic_params(generics)
    out += format_where_clause(generics, multiline=True)
    lines: list[Fragment] = []
    for variant_id in item.children:
        variant = graph.items.get(variant_id)
        if variant is None:
            continue
        lines += text("\n    ") + variant_signature(graph, variant, include_private=include_private)
        lines += text(",")
    if _flag(item.inner, "has_stripped_variants", "variants_stripped"):
        lines += text("\n    // some variants omitted")
    if not lines:
        return out + text(" {}")
    return out + text(" {") + lines + text("\n}")


def _trait_declaration(graph: ItemGraph, item: Item, name: str) -> list[Fragment]:
    payload = item.inner
    generics = payload.get("generics") or {}
    quals = ("unsafe " if _flag(payload, "is_unsafe") else "") + (
        "auto " if _flag(payload, "is_auto") else ""
    )
    out = text(f"{item.visibility_text}{quals}trait {name}") + format_generic_params(generics)
    if payload.get("bounds"):
        out += text(": ") + format_bounds(payload["bounds"])
    out += format_where_clause(generics, multiline=True)
    lines: list[Fragment] = []
    for member_id in item.children:
        member = graph.items.get(member_id)
        if member is None:
            continue
        sig = member_signature(graph, member)
        body = " { ... }" if member.kind == FUNCTION and has_body(member.inner) else ";"
        lines += text("\n    ") + [(t.replace("\n", "\n    "), target) for t, target in sig]
        lines += text(body)
    if not lines:
        return out + text(" {}")
    return out + text(" {") + lines + text("\n}")


def member_signature(graph: ItemGraph, item: Item, *, name: str | None = None) -> list[Fragment]:
    """Format one-line signatures for members and small items."""
    name = name or item.name
    payload = item.inner
    if item.kind == FUNCTION:
        return format_fn_signature(name, payload, prefix=item.visibility_text)
    if item.kind == FIELD:
        return text(f"{item.visibility_text}{name}: ") + format_type(payload)
    if item.kind == VARIANT:
        return variant_signature(graph, item)
    if item.kind == ASSOC_CONST:
        out = text(f"const {name}: ") + format_type(payload.get("type"))
        value = _expr(payload.get("value") if "value" in payload else payload.get("default"))
        return out + text(f" = {value}") if value else out
    if item.kind == ASSOC_TYPE:
        generics = payload.get("generics") or {}
        out = text(f"type {name}") + format_generic_params(generics)
        if payload.get("bounds"):
            out += text(": ") + format_bounds(payload["bounds"])
        default = payload.get("type", payload.get("default"))
        if default is not None:
            out += text(" = ") + format_type(default)
        return out + format_where_clause(generics)
    if item.kind == CONSTANT:
        out = text(f"{item.visibility_text}const {name}: ") + format_type(payload.get("type"))
        value = _expr(payload.get("const") or payload.get("expr"))
        return out + text(f" = {value}") if value else out
    if item.kind == STATIC:
        mut = "mut " if _flag(payload, "is_mutable", "mutable") else ""
        return text(f"{item.visibility_text}static {mut}{name}: ") + format_type(payload.get("type"))
    if item.kind == TYPE_ALIAS:
        generics = payload.get("generics") or {}
        out = text(f"{item.visibility_text}type {name}") + format_generic_params(generics)
        return out + format_where_clause(generics) + text(" = ") + format_type(payload.get("type"))
    if item.kind == TRAIT_ALIAS:
        generics = payload.get("generics") or {}
        out = text(f"{item.visibility_text}trait {name}") + format_generic_params(generics)
        return out + text(" = ") + format_bounds(payload.get("params") or payload.get("bounds"))
    return text(f"{item.visibility_text}{name}")


def declaration(
    graph: ItemGraph,
    item: Item,
    name: str,
    *,
    include_private: bool = False,
) -> list[Fragment]:
    """Format the full declaration of an item, as shown in its code block."""
    if item.kind == STRUCT:
        return _struct_declaration(graph, item, name, include_private)
    if item.kind == UNION:
        return _union_declaration(graph, item, name, include_private)
    if item.kind == ENUM:
        return _enum_declaration(graph, item, name, include_private)
    if item.kind == TRAIT:
        return _trait_declaration(graph, item, name)
    if item.kind == FUNCTION:
        return format_fn_signature(name, item.inner, prefix=item.visibility_text, multiline=True)
    if item.kind == MACRO:
        return text(str(item.inner.get("value") or f"macro_rules! {name} {{ ... }}"))
    if item.kind == PROC_MACRO:
        return text(invocation_example(item, name))
    sig = member_signature(graph, item, name=name)
    return sig + text(";") if item.kind in {CONSTANT, STATIC, TYPE_ALIAS, TRAIT_ALIAS} else sig


def invocation_example(item: Item, name: str) -> str:
    """Return how a procedural macro is used, by subkind."""
    if item.macro_kind == "derive":
        return f"#[derive({name})]\nstruct MyStruct;"
    if item.macro_kind == "attribute":
        return f"#[{name}]\nfn my_function() {{}}"
    return f"{name}!(/* input */);"
