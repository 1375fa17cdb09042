"""Logic for building the item graph of one unit from its rustdoc JSON."""

import logging
from typing import Any

from cargo_doc_md.errors import IRFormatError, MalformedIRError
from cargo_doc_md.item_kinds import (
    ENUM,
    IMPL,
    IR_KIND_ALIASES,
    KNOWN_KINDS,
    MODULE,
    PROC_MACRO,
    PROC_MACRO_KINDS,
    STRUCT,
    TRAIT,
    UNION,
    VARIANT,
)
from cargo_doc_md.models import (
    PRIVATE,
    PUBLIC,
    RESTRICTED,
    Item,
    ItemGraph,
    ReExport,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_FORMAT_VERSION = 35
DEFAULT_MAX_FORMAT_VERSION = 99


def build_item_graph(
    doc: dict[str, Any],
    *,
    min_format_version: int = DEFAULT_MIN_FORMAT_VERSION,
    max_format_version: int = DEFAULT_MAX_FORMAT_VERSION,
) -> ItemGraph:
    """Index a rustdoc JSON document into an arena of items and re-exports.

    Unknown item kinds are dropped with a note instead of failing, so newer
    IR schemas with extra kinds still convert. Re-export edges are recorded
    unresolved; the module tree resolves them with the whole graph in view.
    """
    version = doc.get("format_version")
    if not isinstance(version, int) or isinstance(version, bool):
        msg = "IR has no integer 'format_version'"
        raise MalformedIRError(msg)
    if not min_format_version <= version <= max_format_version:
        msg = (
            f"Unsupported rustdoc JSON format_version {version} "
            f"(supported: {min_format_version}..{max_format_version})"
        )
        raise IRFormatError(msg)

    index = doc.get("index")
    root = _id(doc.get("root"))
    if not isinstance(index, dict) or root is None:
        msg = "IR is missing 'index' or 'root'"
        raise MalformedIRError(msg)

    items: dict[str, Item] = {}
    reexports: dict[str, ReExport] = {}
    notes: list[str] = []
    for raw_id, raw in index.items():
        if not isinstance(raw, dict):
            msg = f"IR item {raw_id} is not an object"
            raise MalformedIRError(msg)
        item_id = str(raw_id)
        kind, payload = _split_inner(item_id, raw.get("inner"))
        if kind == "use":
            reexports[item_id] = _build_reexport(item_id, raw, payload)
            continue
        if kind not in KNOWN_KINDS:
            note = f"dropped item {item_id} of unknown kind '{kind}'"
            logger.debug(note)
            notes.append(note)
            continue
        items[item_id] = _build_item(item_id, kind, raw, payload)

    if root not in items or items[root].kind != MODULE:
        msg = f"IR root {root} is not a module"
        raise MalformedIRError(msg)

    _assign_parents(items)
    crate_name = items[root].name
    return ItemGraph(
        crate_name=crate_name,
        crate_version=doc.get("crate_version"),
        root=root,
        format_version=version,
        includes_private=bool(doc.get("includes_private")),
        items=items,
        reexports=reexports,
        notes=notes,
    )


def _id(value: Any) -> str | None:
    """Normalize an IR id (int in new formats, str in old ones)."""
    if value is None or isinstance(value, bool):
        return None
    return str(value)


def _ids(values: Any) -> list[str]:
    """Normalize a list of ids, dropping stripped (null) entries."""
    if not isinstance(values, list):
        return []
    return [i for i in (_id(v) for v in values) if i is not None]


def _split_inner(item_id: str, inner: Any) -> tuple[str, Any]:
    """Return (kind, payload) from an item's externally tagged 'inner'."""
    if isinstance(inner, str):
        return IR_KIND_ALIASES.get(inner, inner), {}
    if not isinstance(inner, dict) or len(inner) != 1:
        msg = f"IR item {item_id} has a malformed 'inner'"
        raise MalformedIRError(msg)
    kind, payload = next(iter(inner.items()))
    return IR_KIND_ALIASES.get(kind, kind), payload


def _visibility(raw: dict[str, Any]) -> tuple[str, str]:
    """Map IR visibility to (visibility class, source prefix)."""
    vis = raw.get("visibility")
    if vis == "public":
        return PUBLIC, "pub "
    if vis == "default":
        # Trait items, trait impl items and variants inherit their parent's.
        return PUBLIC, ""
    if vis == "crate":
        return RESTRICTED, "pub(crate) "
    if isinstance(vis, dict) and isinstance(vis.get("restricted"), dict):
        path = str(vis["restricted"].get("path") or "")
        if path in {"", "self"}:
            return PRIVATE, ""
        return RESTRICTED, f"pub(in {path}) "
    return PRIVATE, ""


def _children(kind: str, payload: Any) -> list[str]:
    """Return member ids for container kinds, in declaration order."""
    if not isinstance(payload, dict):
        return []
    if kind in {MODULE, TRAIT, IMPL}:
        return _ids(payload.get("items"))
    if kind == ENUM:
        return _ids(payload.get("variants"))
    if kind == UNION:
        return _ids(payload.get("fields"))
    if kind in {STRUCT, VARIANT}:
        shape = payload.get("kind")
        if isinstance(shape, dict):
            if "tuple" in shape:
                return _ids(shape["tuple"])
            body = shape.get("plain") or shape.get("struct") or {}
            return _ids(body.get("fields"))
    return []


def _impls(kind: str, payload: Any) -> list[str]:
    """Return implementation block ids attached to a type or trait."""
    if not isinstance(payload, dict):
        return []
    if kind == TRAIT:
        return _ids(payload.get("implementations") or payload.get("implementors"))
    if kind in {STRUCT, ENUM, UNION}:
        return _ids(payload.get("impls"))
    return []


def _build_item(item_id: str, kind: str, raw: dict[str, Any], payload: Any) -> Item:
    """Create an Item from one IR index entry."""
    visibility, visibility_text = _visibility(raw)
    macro_kind = None
    if kind == PROC_MACRO and isinstance(payload, dict):
        macro_kind = PROC_MACRO_KINDS.get(str(payload.get("kind")), "function-like")
    links = raw.get("links") or {}
    return Item(
        id=item_id,
        kind=kind,
        name=str(raw.get("name") or ""),
        visibility=visibility,
        visibility_text=visibility_text,
        docs=raw.get("docs") or "",
        inner=payload if isinstance(payload, dict) else {"value": payload},
        children=_children(kind, payload),
        impls=_impls(kind, payload),
        macro_kind=macro_kind,
        deprecation=raw.get("deprecation"),
        links={str(k): str(v) for k, v in links.items() if v is not None},
    )


def _build_reexport(item_id: str, raw: dict[str, Any], payload: Any) -> ReExport:
    """Create a ReExport edge from a `use` item."""
    if not isinstance(payload, dict):
        msg = f"IR use item {item_id} has no payload"
        raise MalformedIRError(msg)
    visibility, _ = _visibility(raw)
    source = str(payload.get("source") or "")
    name = payload.get("name") or source.rsplit("::", 1)[-1]
    return ReExport(
        id=item_id,
        name=str(name),
        source=source,
        target=_id(payload.get("id")),
        is_glob=bool(payload.get("is_glob") or payload.get("glob")),
        visibility=visibility,
    )


def _assign_parents(items: dict[str, Item]) -> None:
    """Record each member's owner; the first module listing an item owns it."""
    for item in items.values():
        for child_id in item.children:
            child = items.get(child_id)
            if child is not None and child.parent is None:
                child.parent = item.id
