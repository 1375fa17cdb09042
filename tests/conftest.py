"""Shared fixtures: a small builder for rustdoc JSON documents."""

import json
from typing import Any

import pytest

EMPTY_GENERICS: dict[str, Any] = {"params": [], "where_predicates": []}
RUST_HEADER: dict[str, Any] = {
    "is_const": False,
    "is_unsafe": False,
    "is_async": False,
    "abi": "Rust",
}


class IRBuilder:
    """Builds rustdoc JSON the way `cargo rustdoc --output-format=json` lays it out."""

    def __init__(
        self,
        crate_name: str = "demo",
        crate_version: str | None = "0.1.0",
        format_version: int = 39,
    ) -> None:
        self.crate_version = crate_version
        self.format_version = format_version
        self.index: dict[str, dict[str, Any]] = {}
        self._next = 0
        self.root = self.add(crate_name, {"module": {"is_crate": True, "items": [], "is_stripped": False}})

    @staticmethod
    def prim(name: str) -> dict[str, Any]:
        return {"primitive": name}

    @staticmethod
    def path(name: str, item_id: int | None, args: Any = None) -> dict[str, Any]:
        return {"resolved_path": {"path": name, "id": item_id, "args": args}}

    def add(
        self,
        name: str | None,
        inner: dict[str, Any],
        *,
        visibility: Any = "public",
        docs: str | None = None,
        links: dict[str, int] | None = None,
        deprecation: dict[str, Any] | None = None,
    ) -> int:
        item_id = self._next
        self._next += 1
        self.index[str(item_id)] = {
            "id": item_id,
            "crate_id": 0,
            "name": name,
            "span": None,
            "visibility": visibility,
            "docs": docs,
            "links": links or {},
            "attrs": [],
            "deprecation": deprecation,
            "inner": inner,
        }
        return item_id

    def attach(self, parent: int | None, item_id: int) -> int:
        module = self.index[str(self.root if parent is None else parent)]["inner"]["module"]
        module["items"].append(item_id)
        return item_id

    def module(self, name: str, parent: int | None = None, **kw: Any) -> int:
        inner = {"module": {"is_crate": False, "items": [], "is_stripped": False}}
        return self.attach(parent, self.add(name, inner, **kw))

    def struct(
        self,
        name: str,
        parent: int | None = None,
        fields: list[tuple[str, dict[str, Any]]] | tuple = (),
        *,
        field_visibility: Any = "public",
        **kw: Any,
    ) -> int:
        field_ids = [
            self.add(fname, {"struct_field": ty}, visibility=field_visibility)
            for fname, ty in fields
        ]
        inner = {
            "struct": {
                "kind": {"plain": {"fields": field_ids, "has_stripped_fields": False}},
                "generics": EMPTY_GENERICS,
                "impls": [],
            }
        }
        return self.attach(parent, self.add(name, inner, **kw))

    def enum(self, name: str, parent: int | None = None, variants: tuple | list = (), **kw: Any) -> int:
        variant_ids = [
            self.add(v, {"variant": {"kind": "plain", "discriminant": None}}, visibility="default")
            for v in variants
        ]
        inner = {
            "enum": {
                "generics": EMPTY_GENERICS,
                "variants": variant_ids,
                "has_stripped_variants": False,
                "impls": [],
            }
        }
        return self.attach(parent, self.add(name, inner, **kw))

    def fn_inner(
        self,
        inputs: list[tuple[str, Any]] | tuple = (),
        output: Any = None,
        *,
        has_body: bool = True,
    ) -> dict[str, Any]:
        return {
            "function": {
                "sig": {"inputs": [[n, t] for n, t in inputs], "output": output, "is_c_variadic": False},
                "generics": EMPTY_GENERICS,
                "header": RUST_HEADER,
                "has_body": has_body,
            }
        }

    def function(
        self,
        name: str,
        parent: int | None = None,
        inputs: list[tuple[str, Any]] | tuple = (),
        output: Any = None,
        **kw: Any,
    ) -> int:
        return self.attach(parent, self.add(name, self.fn_inner(inputs, output), **kw))

    def constant(self, name: str, ty: Any, expr: str, parent: int | None = None, **kw: Any) -> int:
        inner = {"constant": {"type": ty, "const": {"expr": expr, "value": None, "is_literal": True}}}
        return self.attach(parent, self.add(name, inner, **kw))

    def trait(self, name: str, parent: int | None = None, items: list[int] | tuple = (), **kw: Any) -> int:
        inner = {
            "trait": {
                "is_auto": False,
                "is_unsafe": False,
                "is_dyn_compatible": True,
                "items": list(items),
                "generics": EMPTY_GENERICS,
                "bounds": [],
                "implementations": [],
            }
        }
        return self.attach(parent, self.add(name, inner, **kw))

    def impl(
        self,
        for_id: int,
        for_name: str,
        *,
        trait: dict[str, Any] | None = None,
        items: list[int] | tuple = (),
        synthetic: bool = False,
        blanket: Any = None,
    ) -> int:
        inner = {
            "impl": {
                "is_unsafe": False,
                "generics": EMPTY_GENERICS,
                "provided_trait_methods": [],
                "trait": trait,
                "for": self.path(for_name, for_id),
                "items": list(items),
                "is_negative": False,
                "is_synthetic": synthetic,
                "blanket_impl": blanket,
            }
        }
        impl_id = self.add(None, inner, visibility="default")
        owner = self.index[str(for_id)]["inner"]
        next(iter(owner.values()))["impls"].append(impl_id)
        if trait and trait.get("id") is not None and str(trait["id"]) in self.index:
            self.index[str(trait["id"])]["inner"]["trait"]["implementations"].append(impl_id)
        return impl_id

    def macro(self, name: str, body: str, parent: int | None = None, **kw: Any) -> int:
        return self.attach(parent, self.add(name, {"macro": body}, **kw))

    def proc_macro(self, name: str, kind: str, parent: int | None = None, **kw: Any) -> int:
        inner = {"proc_macro": {"kind": kind, "helpers": []}}
        return self.attach(parent, self.add(name, inner, **kw))

    def use(
        self,
        name: str,
        source: str,
        target: int | None,
        parent: int | None = None,
        *,
        glob: bool = False,
        **kw: Any,
    ) -> int:
        inner = {"use": {"source": source, "name": name, "id": target, "is_glob": glob}}
        return self.attach(parent, self.add(None, inner, **kw))

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "crate_version": self.crate_version,
            "includes_private": False,
            "index": self.index,
            "paths": {},
            "external_crates": {},
            "format_version": self.format_version,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict())


@pytest.fixture
def ir() -> IRBuilder:
    """Return a builder for a crate named `demo`."""
    return IRBuilder()


@pytest.fixture
def make_ir() -> type[IRBuilder]:
    """Return the builder class, for tests that need several crates."""
    return IRBuilder
