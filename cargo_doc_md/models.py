"""Data models for the item graph, the module tree, units and run outcomes."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

PUBLIC = "public"
RESTRICTED = "restricted"
PRIVATE = "private"


@dataclass
class Item:
    """One documented entity from a unit's IR."""

    id: str
    kind: str  # see item_kinds
    name: str
    visibility: str  # public/restricted/private
    visibility_text: str  # "pub ", "pub(crate) ", "" ...
    docs: str
    inner: dict[str, Any]  # kind-specific IR payload
    children: list[str] = field(default_factory=list)
    impls: list[str] = field(default_factory=list)
    parent: str | None = None
    macro_kind: str | None = None  # derive/attribute/function-like
    deprecation: dict[str, Any] | None = None
    links: dict[str, str] = field(default_factory=dict)

    @property
    def is_public(self) -> bool:
        """Return True when the item is part of the public surface."""
        return self.visibility == PUBLIC


@dataclass(frozen=True)
class ReExport:
    """A `use` edge from a display name to an item defined elsewhere."""

    id: str
    name: str
    source: str
    target: str | None
    is_glob: bool
    visibility: str

    @property
    def is_public(self) -> bool:
        """Return True when the re-export is visible outside its module."""
        return self.visibility == PUBLIC


@dataclass
class ItemGraph:
    """Arena of items and re-export edges for one unit, keyed by IR id."""

    crate_name: str
    crate_version: str | None
    root: str
    format_version: int
    includes_private: bool
    items: dict[str, Item]
    reexports: dict[str, ReExport]
    notes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class Entry:
    """A name visible in a module: a definition or a re-export of one."""

    name: str
    target: str | None  # canonical defining item, None if unresolved
    source: str  # re-export source path, "" for definitions
    reexport: bool


@dataclass(frozen=True)
class Placement:
    """Where an item is rendered: its module node and display name."""

    node: int
    name: str
    hidden: bool = False


@dataclass
class ModuleNode:
    """A module in the reconstructed hierarchy. Children are arena indexes."""

    index: int
    module_id: str
    name: str
    path: tuple[str, ...]
    parent: int | None
    children: list[int] = field(default_factory=list)
    items: list[str] = field(default_factory=list)
    hidden_items: list[str] = field(default_factory=list)
    reexports: list[Entry] = field(default_factory=list)


@dataclass
class ModuleTree:
    """Arena of module nodes rooted at index 0."""

    nodes: list[ModuleNode]
    placements: dict[str, Placement]
    node_of_module: dict[str, int]

    @property
    def root(self) -> ModuleNode:
        """Return the unit root node."""
        return self.nodes[0]

    def breadcrumb(self, index: int) -> list[ModuleNode]:
        """Return the ancestor chain from the unit root down to ``index``."""
        chain: list[ModuleNode] = []
        current: int | None = index
        while current is not None:
            node = self.nodes[current]
            chain.append(node)
            current = node.parent
        chain.reverse()
        return chain


@dataclass(frozen=True)
class Unit:
    """One package scheduled for documentation."""

    name: str
    version: str = ""
    package_id: str = ""
    lib_name: str | None = None
    role: str = "dependency"  # root/member/selected/dependency
    has_library: bool = True
    dependencies: tuple[str, ...] = ()

    @property
    def spec(self) -> str:
        """Return the cargo package spec, ``name@version`` when versioned."""
        return f"{self.name}@{self.version}" if self.version else self.name


@dataclass
class BuildPlan:
    """Ordered, de-duplicated units to document in one run."""

    units: list[Unit]
    target_directory: Path
    excluded: list["Excluded"] = field(default_factory=list)  # dropped at plan time


@dataclass(frozen=True)
class SelectionConfig:
    """Which units to document and where to put them."""

    packages: tuple[str, ...] = ()
    workspace: bool = False
    no_deps: bool = False
    include_private: bool = False
    output_dir: Path = Path("target/doc-md")
    json_path: Path | None = None


@dataclass(frozen=True)
class RenderOptions:
    """Knobs for the markdown renderer."""

    include_private: bool = False
    code_lang: str = "rust"
    auto_trait_impls: bool = True
    blanket_impls: bool = False


@dataclass(frozen=True)
class LinkTarget:
    """A cross-link destination inside one unit's output subtree."""

    title: str
    doc_path: str  # relative to the unit subtree, e.g. a/b/index.md
    anchor: str | None = None


@dataclass(frozen=True)
class Documented:
    """A unit whose documents were written."""

    unit: Unit
    resolved_name: str
    entry_path: str  # relative to the output base, e.g. my_crate/index.md
    pages: int


@dataclass(frozen=True)
class Skipped:
    """A unit that failed at some stage; the reason ends up in the index."""

    unit: Unit
    reason: str


@dataclass(frozen=True)
class Excluded:
    """A unit with nothing to document; never reported as a failure."""

    unit: Unit
    reason: str


UnitOutcome = Documented | Skipped | Excluded
