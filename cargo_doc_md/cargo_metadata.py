"""Querying and parsing `cargo metadata` for the build plan."""

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from cargo_doc_md.cfg_expr import Platform, parse_cfg_lines
from cargo_doc_md.errors import PlanError
from cargo_doc_md.run_command import run_command

logger = logging.getLogger(__name__)

# Target kinds `cargo rustdoc --lib` can document.
LIB_KINDS = frozenset({"lib", "rlib", "dylib", "cdylib", "staticlib", "proc-macro"})


@dataclass(frozen=True)
class DependencyEdge:
    """A resolved dependency of a package, with its kinds and platforms."""

    package_id: str
    name: str
    kinds: tuple[tuple[str | None, str | None], ...] = ((None, None),)


@dataclass(frozen=True)
class PackageInfo:
    """The parts of a package's metadata the plan needs."""

    id: str
    name: str
    version: str
    lib_name: str | None = None

    @property
    def has_library(self) -> bool:
        """Return True when the package has a documentable library target."""
        return self.lib_name is not None


@dataclass
class WorkspaceMetadata:
    """Parsed `cargo metadata` output."""

    packages: dict[str, PackageInfo]
    workspace_members: list[str]
    root: str | None
    target_directory: Path
    dependencies: dict[str, list[DependencyEdge]] = field(default_factory=dict)


def detect_host_triple() -> str:
    """Return the target triple: $CARGO_BUILD_TARGET, else the rustc host."""
    env_target = os.environ.get("CARGO_BUILD_TARGET")
    if env_target:
        return env_target
    try:
        result = run_command(["rustc", "-vV"])
    except OSError as e:
        msg = f"Failed to run rustc: {e}"
        raise PlanError(msg) from e
    for line in result.stdout.splitlines():
        if line.startswith("host:"):
            parts = line.split()
            if len(parts) > 1:
                return parts[1]
    msg = "Failed to parse host triple from rustc"
    raise PlanError(msg)


def query_platform_cfg(triple: str) -> Platform:
    """Return the cfg set rustc reports for a target triple.

    Without it, cfg() predicates cannot be evaluated and only literal
    triples are filtered.
    """
    try:
        result = run_command(["rustc", "--print", "cfg", "--target", triple])
    except OSError as e:
        logger.warning("Could not query cfg for %s: %s", triple, e)
        return Platform(triple)
    if result.returncode != 0:
        logger.warning("rustc --print cfg failed for %s: %s", triple, result.stderr.strip())
        return Platform(triple)
    return Platform(triple, parse_cfg_lines(result.stdout))


def query_metadata(
    manifest_path: Path | None = None,
    platform: Platform | None = None,
) -> dict[str, Any]:
    """Run `cargo metadata` and return its decoded JSON."""
    cmd: list[str | Path] = ["cargo", "metadata", "--format-version=1"]
    if platform is not None:
        cmd += ["--filter-platform", platform.triple]
    if manifest_path is not None:
        cmd += ["--manifest-path", manifest_path]
    try:
        result = run_command(cmd)
    except OSError as e:
        msg = f"Failed to run 'cargo metadata': {e}"
        raise PlanError(msg) from e
    if result.returncode != 0:
        msg = f"cargo metadata failed: {result.stderr.strip()}"
        raise PlanError(msg)
    try:
        return json.loads(result.stdout)
    except json.JSONDecodeError as e:
        msg = f"Failed to parse cargo metadata: {e}"
        raise PlanError(msg) from e


def lib_target_name(package: dict[str, Any]) -> str | None:
    """Return the name of the package's library target, if it has one."""
    for target in package.get("targets") or []:
        kinds = set(target.get("kind") or [])
        if kinds & LIB_KINDS:
            return str(target.get("name") or package.get("name", "")).replace("-", "_")
    return None


def parse_metadata(raw: dict[str, Any]) -> WorkspaceMetadata:
    """Parse `cargo metadata` JSON into typed records."""
    if not isinstance(raw, dict) or not isinstance(raw.get("packages"), list):
        msg = "Missing 'packages' in metadata"
        raise PlanError(msg)

    packages: dict[str, PackageInfo] = {}
    declared: dict[str, list[dict[str, Any]]] = {}
    for pkg in raw["packages"]:
        pkg_id = pkg.get("id")
        if not pkg_id:
            continue
        packages[pkg_id] = PackageInfo(
            id=pkg_id,
            name=str(pkg.get("name", "")),
            version=str(pkg.get("version", "")),
            lib_name=lib_target_name(pkg),
        )
        declared[pkg_id] = pkg.get("dependencies") or []

    resolve = raw.get("resolve") or {}
    dependencies: dict[str, list[DependencyEdge]] = {}
    for node in resolve.get("nodes") or []:
        node_id = node.get("id")
        if node_id not in packages:
            continue
        if "deps" in node:
            edges = [_edge_from_dep(dep) for dep in node["deps"] if dep.get("pkg") in packages]
        else:
            edges = _edges_from_declared(node, packages, declared.get(node_id, []))
        dependencies[node_id] = edges

    return WorkspaceMetadata(
        packages=packages,
        workspace_members=[m for m in raw.get("workspace_members") or [] if m in packages],
        root=resolve.get("root"),
        target_directory=Path(raw.get("target_directory") or "target"),
        dependencies=dependencies,
    )


def _edge_from_dep(dep: dict[str, Any]) -> DependencyEdge:
    kinds = tuple((k.get("kind"), k.get("target")) for k in dep.get("dep_kinds") or [])
    return DependencyEdge(dep["pkg"], str(dep.get("name", "")), kinds or ((None, None),))


def _edges_from_declared(
    node: dict[str, Any],
    packages: dict[str, PackageInfo],
    declared: list[dict[str, Any]],
) -> list[DependencyEdge]:
    """Build edges for old cargo versions without `deps`, from declared dependencies."""
    edges = []
    for dep_id in node.get("dependencies") or []:
        pkg = packages.get(dep_id)
        if pkg is None:
            continue
        kinds = tuple(
            (d.get("kind"), d.get("target")) for d in declared if d.get("name") == pkg.name
        )
        if kinds:
            edges.append(DependencyEdge(dep_id, pkg.name, kinds))
    return edges
