"""Logic for resolving which units a run documents, and in what order."""

import logging
from collections import deque

from cargo_doc_md.cargo_metadata import DependencyEdge, PackageInfo, WorkspaceMetadata
from cargo_doc_md.cfg_expr import CfgSyntaxError, Platform, matches_platform
from cargo_doc_md.errors import PlanError
from cargo_doc_md.models import BuildPlan, Excluded, SelectionConfig, Unit
from cargo_doc_md.normalize_name import normalize_name

logger = logging.getLogger(__name__)

ROLE_ROOT = "root"
ROLE_MEMBER = "member"
ROLE_SELECTED = "selected"
ROLE_DEPENDENCY = "dependency"

# Pairs of selection flags that cannot be combined.
CONFLICTING_FLAGS = (
    ("json", "package"),
    ("json", "workspace"),
    ("json", "no-deps"),
    ("workspace", "package"),
)

NO_ROOT_MESSAGE = (
    "No root package to document: this is a virtual workspace.\n"
    "Virtual workspaces have no root package.\n"
    "Use: cargo doc-md --workspace  (to document all workspace members)\n"
    "Or:  cargo doc-md -p <package>  (to document a specific package)"
)

NO_MEMBERS_MESSAGE = (
    "Not in a workspace or workspace has no members.\n"
    "The --workspace flag requires a Cargo workspace.\n"
    "For single-crate projects, use: cargo doc-md (without --workspace)"
)


def validate_selection(selection: SelectionConfig) -> None:
    """Reject conflicting selection flags before any work begins."""
    given = {
        "json": selection.json_path is not None,
        "package": bool(selection.packages),
        "workspace": selection.workspace,
        "no-deps": selection.no_deps,
    }
    for a, b in CONFLICTING_FLAGS:
        if given[a] and given[b]:
            msg = f"--{a} cannot be used with --{b}"
            raise PlanError(msg)


def find_package(metadata: WorkspaceMetadata, selector: str) -> PackageInfo:
    """Find a package by `name` or `name@version`, preferring workspace members."""
    name, _, version = selector.partition("@")
    candidates = [
        p
        for p in metadata.packages.values()
        if p.name == name and (not version or p.version == version)
    ]
    if not candidates:
        available = ", ".join(sorted({p.name for p in metadata.packages.values()}))
        msg = f"package '{selector}' not found; available packages: {available}"
        raise PlanError(msg)
    members = set(metadata.workspace_members)
    candidates.sort(key=lambda p: (p.id not in members, p.version, p.id))
    return candidates[0]


def _applies(edge: DependencyEdge, platform: Platform | None) -> bool:
    """Check if an edge is a normal dependency on the active platform."""
    for kind, target in edge.kinds:
        if kind not in (None, "normal"):
            continue
        try:
            if matches_platform(target, platform):
                return True
        except CfgSyntaxError as e:
            logger.warning("Keeping %s: cannot evaluate %r (%s)", edge.name, target, e)
            return True
    return False


def _seeds(metadata: WorkspaceMetadata, selection: SelectionConfig) -> list[tuple[PackageInfo, str]]:
    if selection.packages:
        return [(find_package(metadata, s), ROLE_SELECTED) for s in selection.packages]
    if selection.workspace:
        if not metadata.workspace_members:
            raise PlanError(NO_MEMBERS_MESSAGE)
        members = sorted(
            (metadata.packages[m] for m in metadata.workspace_members),
            key=lambda p: (p.name, p.version),
        )
        return [(p, ROLE_MEMBER) for p in members]
    if metadata.root and metadata.root in metadata.packages:
        return [(metadata.packages[metadata.root], ROLE_ROOT)]
    raise PlanError(NO_ROOT_MESSAGE)


def resolve_build_plan(
    metadata: WorkspaceMetadata,
    selection: SelectionConfig,
    platform: Platform | None = None,
) -> BuildPlan:
    """Turn metadata plus selection flags into an ordered, de-duplicated plan.

    Seeds come first, then dependencies in breadth-first discovery order
    (each package's dependencies visited by name). A package is planned at
    most once; a workspace member reached as a dependency keeps its member
    role. Packages without a library target are excluded, not failed.
    """
    validate_selection(selection)
    members = set(metadata.workspace_members)

    normal_deps: dict[str, list[str]] = {}
    for pkg_id, edges in metadata.dependencies.items():
        kept = sorted(
            (e for e in edges if _applies(e, platform)),
            key=lambda e: (metadata.packages[e.package_id].name, e.package_id),
        )
        normal_deps[pkg_id] = [e.package_id for e in kept]

    units: list[Unit] = []
    excluded: list[Excluded] = []
    seen: set[str] = set()
    claimed: dict[str, Unit] = {}
    queue: deque[str] = deque()

    def add(pkg: PackageInfo, role: str) -> None:
        if pkg.id in seen:
            return
        seen.add(pkg.id)
        queue.append(pkg.id)
        unit = Unit(
            name=pkg.name,
            version=pkg.version,
            package_id=pkg.id,
            lib_name=pkg.lib_name,
            role=role,
            has_library=pkg.has_library,
            dependencies=tuple(
                metadata.packages[d].name for d in normal_deps.get(pkg.id, [])
            ),
        )
        if not pkg.has_library:
            logger.info("Excluding %s: no library target", unit.spec)
            excluded.append(Excluded(unit, "no library target"))
            return
        key = normalize_name(pkg.name)
        if key in claimed:
            # One subtree per crate name; the first version found wins.
            reason = f"{claimed[key].spec} already planned"
            logger.info("Excluding %s: %s", unit.spec, reason)
            excluded.append(Excluded(unit, reason))
            return
        claimed[key] = unit
        units.append(unit)

    for pkg, role in _seeds(metadata, selection):
        add(pkg, role)

    if not selection.no_deps:
        while queue:
            for dep_id in normal_deps.get(queue.popleft(), []):
                role = ROLE_MEMBER if dep_id in members else ROLE_DEPENDENCY
                add(metadata.packages[dep_id], role)

    return BuildPlan(units=units, target_directory=metadata.target_directory, excluded=excluded)
