"""Item kind constants, predicates and labels."""

from cargo_doc_md.models import Item

MODULE = "module"
STRUCT = "struct"
ENUM = "enum"
UNION = "union"
TRAIT = "trait"
TRAIT_ALIAS = "trait_alias"
TYPE_ALIAS = "type_alias"
FUNCTION = "function"
CONSTANT = "constant"
STATIC = "static"
MACRO = "macro"
PROC_MACRO = "proc_macro"
IMPL = "impl"

# Members only ever appear inside a container.
FIELD = "struct_field"
VARIANT = "variant"
ASSOC_CONST = "assoc_const"
ASSOC_TYPE = "assoc_type"

# Render order inside a module document.
ITEM_KIND_ORDER: tuple[str, ...] = (
    MACRO,
    PROC_MACRO,
    STRUCT,
    ENUM,
    UNION,
    TRAIT,
    TRAIT_ALIAS,
    TYPE_ALIAS,
    FUNCTION,
    CONSTANT,
    STATIC,
)

TOP_LEVEL_KINDS = frozenset((MODULE, IMPL, *ITEM_KIND_ORDER))
MEMBER_KINDS = frozenset((FIELD, VARIANT, ASSOC_CONST, ASSOC_TYPE))
KNOWN_KINDS = TOP_LEVEL_KINDS | MEMBER_KINDS

# Older format versions spell some kinds differently.
IR_KIND_ALIASES = {
    "typedef": TYPE_ALIAS,
    "associated_const": ASSOC_CONST,
    "associated_type": ASSOC_TYPE,
}

PROC_MACRO_KINDS = {
    "derive": "derive",
    "attr": "attribute",
    "bang": "function-like",
}

_LABELS = {
    MODULE: "module",
    STRUCT: "struct",
    ENUM: "enum",
    UNION: "union",
    TRAIT: "trait",
    TRAIT_ALIAS: "trait alias",
    TYPE_ALIAS: "type alias",
    FUNCTION: "function",
    CONSTANT: "constant",
    STATIC: "static",
    MACRO: "macro",
}

# Name lookups in Rust happen per namespace.
_NAMESPACES = {
    MODULE: "type",
    STRUCT: "type",
    ENUM: "type",
    UNION: "type",
    TRAIT: "type",
    TRAIT_ALIAS: "type",
    TYPE_ALIAS: "type",
    FUNCTION: "value",
    CONSTANT: "value",
    STATIC: "value",
    MACRO: "macro",
    PROC_MACRO: "macro",
}


def is_type_kind(kind: str) -> bool:
    """Check if the kind can carry implementation blocks."""
    return kind in {STRUCT, ENUM, UNION}


def is_listed_kind(kind: str) -> bool:
    """Check if the kind gets its own section in a module document."""
    return kind in ITEM_KIND_ORDER


def namespace_of(kind: str) -> str:
    """Return the Rust namespace ('type', 'value', 'macro') of a kind."""
    return _NAMESPACES.get(kind, "?")


def kind_label(item: Item) -> str:
    """Return the lowercase human label, e.g. 'struct' or 'derive macro'."""
    if item.kind == PROC_MACRO:
        return f"{item.macro_kind or 'function-like'} macro"
    return _LABELS.get(item.kind, item.kind.replace("_", " "))


def plural_of(label: str) -> str:
    """Return the plural form of a kind label."""
    suffix = "es" if label.endswith(("s", "x", "z", "ch", "sh")) else "s"
    return label + suffix


def pluralize(label: str, count: int) -> str:
    """Return '<count> <label>' with the label in the matching number."""
    if count == 1:
        return f"{count} {label}"
    return f"{count} {plural_of(label)}"
