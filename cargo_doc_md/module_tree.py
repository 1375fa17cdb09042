"""Reconstruction of the module hierarchy from an item graph.

Modules, items and re-export edges live in arenas keyed by IR id; module
nodes reference each other by index. Re-exports are canonicalized by a
bounded walk, and glob re-exports are expanded as a fixed point over all
modules, so cyclic ``pub use a::*`` / ``pub use b::*`` pairs terminate.

Ordering, fixed so output is reproducible:

- child modules sort by ``(name.lower(), name)``;
- items sort by kind (``ITEM_KIND_ORDER``), then ``(name.lower(), name, id)``;
- re-export links sort by ``(name.lower(), name, source)``.
"""

import logging
from collections.abc import Callable

from cargo_doc_md.errors import ModuleTreeError
from cargo_doc_md.item_kinds import (
    IMPL,
    ITEM_KIND_ORDER,
    MEMBER_KINDS,
    MODULE,
    is_listed_kind,
    namespace_of,
)
from cargo_doc_md.models import (
    Entry,
    Item,
    ItemGraph,
    ModuleNode,
    ModuleTree,
    Placement,
    ReExport,
)
from cargo_doc_md.rust_types import collect_path_ids

logger = logging.getLogger(__name__)

EntryTable = dict[tuple[str, str], Entry]


def canonicalize(graph: ItemGraph, start: str | None) -> str | None:
    """Follow re-export edges from ``start`` to the defining item.

    The walk is bounded by the size of the graph and stops at the first
    revisited edge, so a cycle of re-exports resolves to None rather than
    looping.
    """
    seen: set[str] = set()
    current = start
    for _ in range(len(graph.items) + len(graph.reexports) + 1):
        if current is None:
            return None
        if current in graph.items:
            return current
        edge = graph.reexports.get(current)
        if edge is None or current in seen:
            return None
        seen.add(current)
        current = edge.target
    return None


def build_module_tree(graph: ItemGraph, *, include_private: bool = False) -> ModuleTree:
    """Build the module node arena for one unit, rooted at the unit root."""
    root = graph.items.get(graph.root)
    if root is None or root.kind != MODULE:
        msg = f"unit root {graph.root} is not a module"
        raise ModuleTreeError(msg)

    def visible(entity: Item | ReExport) -> bool:
        return include_private or entity.is_public

    tables = _collect_entries(graph, visible)
    tree = ModuleTree(
        nodes=[ModuleNode(0, root.id, root.name, (), None)],
        placements={},
        node_of_module={root.id: 0},
    )
    _assign_nodes(graph, tree, tables)
    _place_items(graph, tree, tables)
    _place_hidden_items(graph, tree, include_private=include_private)
    _fill_nodes(graph, tree, tables)
    return tree


def _key(graph: ItemGraph, entry: Entry) -> tuple[str, str]:
    """Key entries by (name, namespace); a name may exist once per namespace."""
    if entry.target is None:
        return entry.name, "?"
    return entry.name, namespace_of(graph.items[entry.target].kind)


def _collect_entries(
    graph: ItemGraph,
    visible: Callable[[Item | ReExport], bool],
) -> dict[str, EntryTable]:
    """Compute the names visible in every module, expanding glob re-exports."""
    modules = [item for item in graph.items.values() if item.kind == MODULE]
    tables: dict[str, EntryTable] = {}
    globs: dict[str, list[str]] = {}
    for module in modules:
        table: EntryTable = {}
        module_globs: list[str] = []
        for child_id in module.children:
            edge = graph.reexports.get(child_id)
            if edge is not None:
                if not visible(edge):
                    continue
                target = canonicalize(graph, edge.target)
                if edge.is_glob and target is not None and graph.items[target].kind == MODULE:
                    module_globs.append(target)
                    continue
                source = edge.source
                if edge.is_glob:
                    # Globs over enums or external crates are listed as-is.
                    target = None
                    source = f"{edge.source}::*"
                entry = Entry(edge.name, target, source, reexport=True)
                table.setdefault(_key(graph, entry), entry)
                continue
            item = graph.items.get(child_id)
            if item is None or item.kind == IMPL or item.kind in MEMBER_KINDS:
                continue
            if not visible(item):
                continue
            entry = Entry(item.name, child_id, "", reexport=False)
            table.setdefault(_key(graph, entry), entry)
        tables[module.id] = table
        globs[module.id] = module_globs

    # Tables only grow and every key is finite, so this reaches a fixed point;
    # the iteration cap keeps the walk bounded by the item count regardless.
    for _ in range(len(graph.items) + 1):
        changed = False
        for module in modules:
            table = tables[module.id]
            for glob_target in globs[module.id]:
                for key, entry in list(tables.get(glob_target, {}).items()):
                    if key in table:
                        # Explicit names shadow glob imports.
                        continue
                    table[key] = Entry(
                        entry.name,
                        entry.target,
                        entry.source or entry.name,
                        reexport=True,
                    )
                    changed = True
        if not changed:
            break
    return tables


def _sorted_entries(entries: list[Entry]) -> list[Entry]:
    return sorted(entries, key=lambda e: (e.name.lower(), e.name, e.source))


def _add_node(tree: ModuleTree, parent: ModuleNode, module_id: str, name: str) -> ModuleNode:
    node = ModuleNode(
        index=len(tree.nodes),
        module_id=module_id,
        name=name,
        path=(*parent.path, name),
        parent=parent.index,
    )
    tree.nodes.append(node)
    tree.node_of_module[module_id] = node.index
    parent.children.append(node.index)
    return node


def _module_entries(graph: ItemGraph, table: EntryTable, *, reexport: bool) -> list[Entry]:
    return _sorted_entries(
        [
            e
            for e in table.values()
            if e.reexport == reexport
            and e.target is not None
            and graph.items[e.target].kind == MODULE
        ]
    )


def _assign_nodes(graph: ItemGraph, tree: ModuleTree, tables: dict[str, EntryTable]) -> None:
    """Give every documented module exactly one node.

    Modules defined in a documented parent come first (breadth-first), so a
    module re-exported elsewhere still lives where it is defined. Modules
    only reachable through a re-export are then adopted under the first
    node, in arena order, that re-exports them.
    """
    i = 0
    while i < len(tree.nodes):
        node = tree.nodes[i]
        for entry in _module_entries(graph, tables[node.module_id], reexport=False):
            if entry.target not in tree.node_of_module:
                _add_node(tree, node, entry.target, entry.name)
        i += 1

    i = 0
    while i < len(tree.nodes):
        node = tree.nodes[i]
        table = tables[node.module_id]
        for reexport in (False, True):
            for entry in _module_entries(graph, table, reexport=reexport):
                if entry.target not in tree.node_of_module:
                    _add_node(tree, node, entry.target, entry.name)
        i += 1


def _place_items(graph: ItemGraph, tree: ModuleTree, tables: dict[str, EntryTable]) -> None:
    """Pick one rendering location per item: its definition, else first re-export."""
    for node in tree.nodes:
        tree.placements.setdefault(node.module_id, Placement(node.index, node.name))
    for reexport in (False, True):
        for node in tree.nodes:
            for entry in _sorted_entries(list(tables[node.module_id].values())):
                if entry.reexport != reexport or entry.target is None:
                    continue
                if not is_listed_kind(graph.items[entry.target].kind):
                    continue
                if entry.target not in tree.placements:
                    tree.placements[entry.target] = Placement(node.index, entry.name)


def referenced_ids(graph: ItemGraph, item_id: str, *, include_private: bool = False) -> set[str]:
    """Return ids referenced by an item's signature, members, impls and docs.

    Members that are not rendered (private fields and methods) are not walked.
    """
    found: set[str] = set()
    pending = [item_id]
    visited: set[str] = set()
    while pending:
        current = pending.pop()
        if current in visited:
            continue
        visited.add(current)
        item = graph.items.get(current)
        if item is None:
            continue
        found |= collect_path_ids(item.inner)
        found |= set(item.links.values())
        if item.kind != MODULE:
            pending.extend(
                child_id
                for child_id in item.children
                if include_private or _is_public_member(graph, child_id)
            )
            pending.extend(item.impls)
    return found


def _is_public_member(graph: ItemGraph, item_id: str) -> bool:
    child = graph.items.get(item_id)
    return child is not None and child.is_public


def _place_hidden_items(graph: ItemGraph, tree: ModuleTree, *, include_private: bool = False) -> None:
    """Keep filtered-out items that the public surface refers to as link targets.

    They get a placement (so links resolve) flagged hidden, near their owner.
    """
    pending = [i for i in tree.placements if graph.items[i].kind != MODULE]
    checked: set[str] = set()
    while pending:
        current = pending.pop()
        if current in checked:
            continue
        checked.add(current)
        for ref in sorted(referenced_ids(graph, current, include_private=include_private)):
            item = graph.items.get(ref)
            if item is None or ref in tree.placements or not is_listed_kind(item.kind):
                continue
            tree.placements[ref] = Placement(_owner_node(graph, tree, item), item.name, hidden=True)
            logger.debug("keeping hidden item %s (%s) as a link target", item.name, ref)
            pending.append(ref)


def _owner_node(graph: ItemGraph, tree: ModuleTree, item: Item) -> int:
    """Return the nearest documented module enclosing ``item``."""
    current = item.parent
    for _ in range(len(graph.items) + 1):
        if current is None:
            break
        if current in tree.node_of_module:
            return tree.node_of_module[current]
        owner = graph.items.get(current)
        current = owner.parent if owner else None
    return 0


def _item_sort_key(graph: ItemGraph, tree: ModuleTree, item_id: str) -> tuple:
    item = graph.items[item_id]
    name = tree.placements[item_id].name
    return ITEM_KIND_ORDER.index(item.kind), name.lower(), name, item_id


def _fill_nodes(graph: ItemGraph, tree: ModuleTree, tables: dict[str, EntryTable]) -> None:
    """Order each node's children, items and re-export links."""
    for node in tree.nodes:
        node.children.sort(key=lambda i: (tree.nodes[i].name.lower(), tree.nodes[i].name))
    for item_id, placement in tree.placements.items():
        if graph.items[item_id].kind == MODULE:
            continue
        node = tree.nodes[placement.node]
        (node.hidden_items if placement.hidden else node.items).append(item_id)
    for node in tree.nodes:
        node.items.sort(key=lambda i: _item_sort_key(graph, tree, i))
        node.hidden_items.sort(key=lambda i: _item_sort_key(graph, tree, i))
        child_modules = {(tree.nodes[c].module_id, tree.nodes[c].name) for c in node.children}
        links = []
        for entry in tables[node.module_id].values():
            if (entry.target, entry.name) in child_modules:
                continue
            placement = tree.placements.get(entry.target) if entry.target else None
            if placement and placement.node == node.index and placement.name == entry.name:
                continue
            links.append(entry)
        node.reexports = _sorted_entries(links)
