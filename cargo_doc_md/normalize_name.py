"""Utility for turning unit and module names into path segments."""

import re

# Anything that is not an identifier character becomes an underscore.
NON_IDENT_RE = re.compile(r"[^A-Za-z0-9_]")


def normalize_name(name: str) -> str:
    """Make a stable directory token from a crate or module name.

    Hyphens (``my-crate``) and raw identifier markers (``r#type``) map to
    underscores, so ``my-crate`` and ``my_crate`` share one subtree, exactly
    as the compiler treats them.
    """
    return NON_IDENT_RE.sub("_", name) or "_"
