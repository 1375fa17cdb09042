"""Formatting of rustdoc JSON types, generics and signatures.

Everything here produces *fragments*: ``(text, target_id)`` pairs. A target
id marks text that names another item, so the renderer can turn it into a
link, while ``plain`` flattens the same fragments for code blocks.
"""

from typing import Any

Fragment = tuple[str, str | None]


def plain(frags: list[Fragment]) -> str:
    """Flatten fragments to source text."""
    return "".join(text for text, _ in frags)


def text(value: str) -> list[Fragment]:
    """Wrap literal text as a fragment list."""
    return [(value, None)]


def join(parts: list[list[Fragment]], sep: str) -> list[Fragment]:
    """Join fragment lists with a literal separator."""
    out: list[Fragment] = []
    for i, part in enumerate(parts):
        if i:
            out.append((sep, None))
        out.extend(part)
    return out


def _first(d: dict[str, Any], *keys: str) -> Any:
    """Return the first present key; field names moved between IR versions."""
    for key in keys:
        if key in d:
            return d[key]
    return None


def _target(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    return str(value)


def format_type(ty: Any) -> list[Fragment]:
    """Format a Type node."""
    if isinstance(ty, str):
        return text("_" if ty == "infer" else ty)
    if not isinstance(ty, dict) or len(ty) != 1:
        return text("_")
    kind, val = next(iter(ty.items()))
    if kind == "resolved_path":
        return format_path(val)
    if kind in {"generic", "primitive"}:
        return text(str(val))
    if kind == "tuple":
        items = [format_type(t) for t in val]
        close = ",)" if len(items) == 1 else ")"
        return text("(") + join(items, ", ") + text(close)
    if kind == "slice":
        return text("[") + format_type(val) + text("]")
    if kind == "array":
        return text("[") + format_type(val.get("type")) + text(f"; {val.get('len', '_')}]")
    if kind == "borrowed_ref":
        lifetime = val.get("lifetime")
        prefix = "&" + (f"{lifetime} " if lifetime else "")
        if _first(val, "is_mutable", "mutable"):
            prefix += "mut "
        return text(prefix) + format_type(val.get("type"))
    if kind == "raw_pointer":
        prefix = "*mut " if _first(val, "is_mutable", "mutable") else "*const "
        return text(prefix) + format_type(val.get("type"))
    if kind == "impl_trait":
        return text("impl ") + format_bounds(val)
    if kind == "dyn_trait":
        return _format_dyn(val)
    if kind == "function_pointer":
        return _format_fn_pointer(val)
    if kind == "qualified_path":
        return _format_qualified(val)
    if kind == "pat":
        return format_type(val.get("type"))
    return text("_")


def format_path(path: Any) -> list[Fragment]:
    """Format a resolved path, linking its last segment to the item id."""
    if not isinstance(path, dict):
        return text("_")
    name = str(_first(path, "path", "name") or "_")
    display = name.rsplit("::", 1)[-1]
    return [(display, _target(path.get("id")))] + format_generic_args(path.get("args"))


def format_generic_args(args: Any) -> list[Fragment]:
    """Format `<...>` or `(...) -> ...` generic arguments."""
    if not args:
        return []
    if isinstance(args, str):
        return text("(..)") if args == "return_type_notation" else []
    if "angle_bracketed" in args:
        ab = args["angle_bracketed"] or {}
        parts = [_format_generic_arg(a) for a in ab.get("args") or []]
        parts += [_format_constraint(c) for c in _first(ab, "constraints", "bindings") or []]
        if not parts:
            return []
        return text("<") + join(parts, ", ") + text(">")
    if "parenthesized" in args:
        p = args["parenthesized"] or {}
        out = text("(") + join([format_type(t) for t in p.get("inputs") or []], ", ")
        out += text(")")
        if p.get("output") is not None:
            out += text(" -> ") + format_type(p["output"])
        return out
    return []


def _format_generic_arg(arg: Any) -> list[Fragment]:
    if isinstance(arg, str):
        return text("_" if arg == "infer" else arg)
    if "lifetime" in arg:
        return text(str(arg["lifetime"]))
    if "type" in arg:
        return format_type(arg["type"])
    if "const" in arg:
        const = arg["const"] or {}
        return text(str(const.get("expr") or const.get("value") or "_"))
    return text("_")


def _format_constraint(constraint: dict[str, Any]) -> list[Fragment]:
    out = text(str(constraint.get("name", "_")))
    out += format_generic_args(constraint.get("args"))
    binding = constraint.get("binding") or {}
    if "equality" in binding:
        term = binding["equality"] or {}
        if "type" in term:
            return out + text(" = ") + format_type(term["type"])
        const = term.get("constant") or {}
        return out + text(f" = {const.get('expr', '_')}")
    if "constraint" in binding:
        return out + text(": ") + format_bounds(binding["constraint"])
    return out


def format_bounds(bounds: Any) -> list[Fragment]:
    """Format `A + B + 'a` bound lists."""
    return join([format_bound(b) for b in bounds or []], " + ")


def format_bound(bound: Any) -> list[Fragment]:
    """Format a single generic bound."""
    if not isinstance(bound, dict):
        return text("_")
    if "trait_bound" in bound:
        tb = bound["trait_bound"]
        modifier = {"maybe": "?", "maybe_const": "~const "}.get(tb.get("modifier"), "")
        return text(_hrtb(tb.get("generic_params")) + modifier) + format_path(tb.get("trait"))
    if "outlives" in bound:
        return text(str(bound["outlives"]))
    if "use" in bound:
        names = []
        for arg in bound["use"] or []:
            if isinstance(arg, dict):
                names.append(str(next(iter(arg.values()))))
            else:
                names.append(str(arg))
        return text(f"use<{', '.join(names)}>")
    return text("_")


def _hrtb(params: Any) -> str:
    """Format a `for<'a> ` prefix for higher-ranked bounds."""
    names = [str(p.get("name")) for p in params or [] if isinstance(p, dict)]
    return f"for<{', '.join(names)}> " if names else ""


def _format_dyn(val: dict[str, Any]) -> list[Fragment]:
    parts = [
        text(_hrtb(poly.get("generic_params"))) + format_path(poly.get("trait"))
        for poly in val.get("traits") or []
    ]
    if val.get("lifetime"):
        parts.append(text(str(val["lifetime"])))
    return text("dyn ") + join(parts, " + ")


def _format_fn_pointer(val: dict[str, Any]) -> list[Fragment]:
    sig = _first(val, "sig", "decl") or {}
    prefix = _hrtb(val.get("generic_params")) + _header_qualifiers(val.get("header") or {})
    inputs = [format_type(pair[1]) for pair in sig.get("inputs") or []]
    out = text(prefix + "fn(") + join(inputs, ", ") + text(")")
    return out + _format_output(sig.get("output"))


def _format_qualified(val: dict[str, Any]) -> list[Fragment]:
    self_type = format_type(val.get("self_type"))
    name = str(val.get("name", "_"))
    trait = val.get("trait")
    if trait:
        out = text("<") + self_type + text(" as ") + format_path(trait) + text(f">::{name}")
    else:
        out = self_type + text(f"::{name}")
    return out + format_generic_args(val.get("args"))


def _format_output(output: Any) -> list[Fragment]:
    if output is None or output == {"tuple": []}:
        return []
    return text(" -> ") + format_type(output)


def _header_qualifiers(header: dict[str, Any]) -> str:
    """Return `const async unsafe extern "C" ` style qualifiers."""
    quals = ""
    if _first(header, "is_const", "const_"):
        quals += "const "
    if _first(header, "is_async", "async_"):
        quals += "async "
    if _first(header, "is_unsafe", "unsafe_"):
        quals += "unsafe "
    abi = header.get("abi")
    if isinstance(abi, dict):
        abi = next(iter(abi), "Rust")
    if abi and abi != "Rust":
        quals += f'extern "{abi}" '
    return quals


def format_generic_params(generics: Any) -> list[Fragment]:
    """Format `<'a, T: Bound = Default, const N: usize>`."""
    params = []
    for param in (generics or {}).get("params") or []:
        name = str(param.get("name", "_"))
        kind = param.get("kind") or {}
        if "lifetime" in kind:
            outlives = (kind["lifetime"] or {}).get("outlives") or []
            params.append(text(name + (f": {' + '.join(outlives)}" if outlives else "")))
        elif "type" in kind:
            spec = kind["type"] or {}
            if _first(spec, "is_synthetic", "synthetic"):
                continue
            out = text(name)
            if spec.get("bounds"):
                out += text(": ") + format_bounds(spec["bounds"])
            if spec.get("default") is not None:
                out += text(" = ") + format_type(spec["default"])
            params.append(out)
        elif "const" in kind:
            spec = kind["const"] or {}
            out = text(f"const {name}: ") + format_type(spec.get("type"))
            if spec.get("default") is not None:
                out += text(f" = {spec['default']}")
            params.append(out)
    if not params:
        return []
    return text("<") + join(params, ", ") + text(">")


def format_where_clause(generics: Any, *, multiline: bool = False) -> list[Fragment]:
    """Format the where clause, on its own lines for code blocks."""
    preds = []
    for pred in (generics or {}).get("where_predicates") or []:
        if "bound_predicate" in pred:
            bp = pred["bound_predicate"]
            if not bp.get("bounds"):
                continue
            preds.append(
                text(_hrtb(bp.get("generic_params")))
                + format_type(bp.get("type"))
                + text(": ")
                + format_bounds(bp["bounds"])
            )
        elif "lifetime_predicate" in pred:
            lp = pred["lifetime_predicate"]
            outlives = " + ".join(lp.get("outlives") or [])
            preds.append(text(f"{lp.get('lifetime')}: {outlives}"))
        elif "eq_predicate" in pred:
            ep = pred["eq_predicate"]
            rhs = ep.get("rhs") or {}
            rhs_frags = (
                format_type(rhs["type"])
                if "type" in rhs
                else text(str((rhs.get("constant") or {}).get("expr", "_")))
            )
            preds.append(format_type(ep.get("lhs")) + text(" = ") + rhs_frags)
    if not preds:
        return []
    if multiline:
        return text("\nwhere\n    ") + join(preds, ",\n    ") + text(",")
    return text(" where ") + join(preds, ", ")


def _format_param(name: str, ty: Any) -> list[Fragment]:
    """Format one function parameter, folding `self` receivers."""
    if name == "self":
        if ty == {"generic": "Self"}:
            return text("self")
        ref = ty.get("borrowed_ref") if isinstance(ty, dict) else None
        if ref and ref.get("type") == {"generic": "Self"}:
            lifetime = ref.get("lifetime")
            prefix = "&" + (f"{lifetime} " if lifetime else "")
            if _first(ref, "is_mutable", "mutable"):
                prefix += "mut "
            return text(prefix + "self")
        return text("self: ") + format_type(ty)
    return text(f"{name}: ") + format_type(ty)


def format_fn_signature(
    name: str,
    payload: dict[str, Any],
    *,
    prefix: str = "",
    multiline: bool = False,
) -> list[Fragment]:
    """Format a function or method declaration without a body."""
    generics = payload.get("generics") or {}
    sig = _first(payload, "sig", "decl") or {}
    quals = _header_qualifiers(payload.get("header") or {})
    out = text(f"{prefix}{quals}fn {name}") + format_generic_params(generics)
    params = [_format_param(str(pair[0]), pair[1]) for pair in sig.get("inputs") or []]
    if sig.get("is_c_variadic") or sig.get("c_variadic"):
        params.append(text("..."))
    out += text("(") + join(params, ", ") + text(")")
    out += _format_output(sig.get("output"))
    return out + format_where_clause(generics, multiline=multiline)


def fn_params(payload: dict[str, Any]) -> list[tuple[str, list[Fragment]]]:
    """Return (name, type fragments) for each non-receiver parameter."""
    sig = _first(payload, "sig", "decl") or {}
    return [
        (str(pair[0]), format_type(pair[1]))
        for pair in sig.get("inputs") or []
        if pair[0] != "self"
    ]


def fn_output(payload: dict[str, Any]) -> list[Fragment]:
    """Return the return type fragments, empty for `()`."""
    sig = _first(payload, "sig", "decl") or {}
    output = sig.get("output")
    if output is None or output == {"tuple": []}:
        return []
    return format_type(output)


def collect_path_ids(obj: Any) -> set[str]:
    """Collect the ids of every path mentioned anywhere inside an IR payload."""
    found: set[str] = set()
    stack = [obj]
    while stack:
        current = stack.pop()
        if isinstance(current, dict):
            if "args" in current and ("path" in current or "name" in current):
                target = _target(current.get("id"))
                if target is not None:
                    found.add(target)
            stack.extend(current.values())
        elif isinstance(current, list):
            stack.extend(current)
    return found


def format_impl_header(payload: dict[str, Any]) -> list[Fragment]:
    """Format `impl<T> Trait for Type where ...` for an implementation block."""
    generics = payload.get("generics") or {}
    prefix = "unsafe impl" if _first(payload, "is_unsafe", "unsafe_") else "impl"
    out = text(prefix) + format_generic_params(generics) + text(" ")
    trait = payload.get("trait")
    if trait:
        if _first(payload, "is_negative", "negative"):
            out += text("!")
        out += format_path(trait) + text(" for ")
    out += format_type(payload.get("for"))
    return out + format_where_clause(generics)


def is_synthetic_impl(payload: dict[str, Any]) -> bool:
    """Check if rustdoc generated the impl (auto traits like Send, Sync)."""
    return bool(_first(payload, "is_synthetic", "synthetic"))


def is_blanket_impl(payload: dict[str, Any]) -> bool:
    """Check if the impl comes from a blanket `impl<T> Trait for T`."""
    return payload.get("blanket_impl") is not None


def has_body(payload: dict[str, Any]) -> bool:
    """Check if a trait function has a default body."""
    return bool(payload.get("has_body"))
