"""Logic for mapping item ids to their documents and anchors."""

from cargo_doc_md.doc_paths import module_doc_path
from cargo_doc_md.header_slug import header_slug
from cargo_doc_md.item_kinds import IMPL, MODULE, kind_label
from cargo_doc_md.models import Item, ItemGraph, LinkTarget, ModuleNode, ModuleTree


def item_anchor(item: Item, display_name: str) -> str:
    """Return the anchor of an item section, e.g. ``struct-foo``."""
    return header_slug(f"{kind_label(item)} {display_name}")


def build_link_targets(graph: ItemGraph, tree: ModuleTree) -> dict[str, LinkTarget]:
    """Build a map of item ids to link targets."""
    targets: dict[str, LinkTarget] = {}
    _add_placed_targets(targets, graph, tree)
    _add_member_targets(targets, graph)
    return targets


def document_anchors(graph: ItemGraph, tree: ModuleTree, node: ModuleNode) -> dict[str, str]:
    """Return the anchor of every item section in one module document.

    Sections are numbered in the order they are rendered: a slug seen
    before gets `-1`, `-2`, ... the way GitHub numbers repeated headings,
    so `struct Foo` and `struct FOO` link to different sections.
    """
    anchors: dict[str, str] = {}
    seen: dict[str, int] = {}
    for item_id in [*node.items, *node.hidden_items]:
        slug = item_anchor(graph.items[item_id], tree.placements[item_id].name)
        count = seen.get(slug, 0)
        seen[slug] = count + 1
        anchors[item_id] = f"{slug}-{count}" if count else slug
    return anchors


def _add_placed_targets(
    targets: dict[str, LinkTarget],
    graph: ItemGraph,
    tree: ModuleTree,
) -> None:
    """Add targets for modules (documents) and items (anchors in documents)."""
    for node in tree.nodes:
        doc_path = module_doc_path(node.path)
        targets[node.module_id] = LinkTarget(node.name, doc_path)
        for item_id, anchor in document_anchors(graph, tree, node).items():
            targets[item_id] = LinkTarget(tree.placements[item_id].name, doc_path, anchor)


def impl_self_id(impl: Item) -> str | None:
    """Return the id of the type an implementation block is for, if local."""
    for_type = impl.inner.get("for")
    if isinstance(for_type, dict) and isinstance(for_type.get("resolved_path"), dict):
        target = for_type["resolved_path"].get("id")
        return None if target is None else str(target)
    return None


def _add_member_targets(targets: dict[str, LinkTarget], graph: ItemGraph) -> None:
    """Add targets for members (anchors of the item that contains them)."""
    for item_id, item in graph.items.items():
        if item_id in targets or item.parent is None:
            continue
        parent = graph.items.get(item.parent)
        if parent is None or parent.kind == MODULE:
            continue
        container = _container_target(graph, targets, item)
        if container is not None:
            targets[item_id] = LinkTarget(item.name, container.doc_path, container.anchor)


def _container_target(
    graph: ItemGraph,
    targets: dict[str, LinkTarget],
    item: Item,
) -> LinkTarget | None:
    """Walk up from a member to the nearest container that has a target."""
    current = item.parent
    for _ in range(len(graph.items) + 1):
        if current is None:
            return None
        if current in targets:
            return targets[current]
        owner = graph.items.get(current)
        if owner is None:
            return None
        current = impl_self_id(owner) if owner.kind == IMPL else owner.parent
    return None
