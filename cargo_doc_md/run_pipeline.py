"""Orchestration of a documentation run over a build plan."""

import dataclasses
import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from cargo_doc_md.build_item_graph import build_item_graph
from cargo_doc_md.build_plan import ROLE_SELECTED
from cargo_doc_md.doc_paths import unit_entry_path
from cargo_doc_md.errors import ExtractionError, NoLibraryTarget, PlanError, UnitError
from cargo_doc_md.load_ir import load_ir
from cargo_doc_md.models import (
    BuildPlan,
    Documented,
    Excluded,
    ItemGraph,
    RenderOptions,
    Skipped,
    Unit,
    UnitOutcome,
)
from cargo_doc_md.module_tree import build_module_tree
from cargo_doc_md.output_assembler import OutputAssembler
from cargo_doc_md.render_module_page import render_unit_pages

logger = logging.getLogger(__name__)


class Extractor(Protocol):
    """Anything that can produce rustdoc JSON for a unit."""

    def extract(self, unit: Unit) -> bytes: ...


@dataclass(frozen=True)
class PipelineOptions:
    """Knobs for one run, built from config and CLI flags."""

    jobs: int = 4
    min_format_version: int = 35
    max_format_version: int = 99
    index_title: str = "Documentation Index"
    render: RenderOptions = field(default_factory=RenderOptions)

    @classmethod
    def from_config(cls, config: dict[str, Any], *, include_private: bool = False) -> "PipelineOptions":
        """Build options from a merged configuration dictionary."""
        ir = config.get("ir") or {}
        render = config.get("render") or {}
        return cls(
            jobs=max(1, int(config.get("jobs") or 1)),
            min_format_version=int(ir.get("min_format_version", 35)),
            max_format_version=int(ir.get("max_format_version", 99)),
            index_title=str((config.get("index") or {}).get("title") or "Documentation Index"),
            render=RenderOptions(
                include_private=include_private,
                code_lang=str(render.get("code_lang", "rust")),
                auto_trait_impls=bool(render.get("auto_trait_impls", True)),
                blanket_impls=bool(render.get("blanket_impls", False)),
            ),
        )


@dataclass
class Converted:
    """A unit rendered in memory, waiting to be written."""

    unit: Unit
    graph: ItemGraph
    pages: dict[str, str]


def convert_ir(raw: bytes | str, options: PipelineOptions) -> tuple[ItemGraph, dict[str, str]]:
    """Turn raw rustdoc JSON into rendered pages keyed by subtree path."""
    graph = build_item_graph(
        load_ir(raw),
        min_format_version=options.min_format_version,
        max_format_version=options.max_format_version,
    )
    tree = build_module_tree(graph, include_private=options.render.include_private)
    return graph, render_unit_pages(graph, tree, options.render)


def extract_and_convert(unit: Unit, extractor: Extractor, options: PipelineOptions) -> Converted | UnitOutcome:
    """Run every in-memory stage for one unit, turning failures into outcomes."""
    try:
        raw = extractor.extract(unit)
        graph, pages = convert_ir(raw, options)
    except NoLibraryTarget as e:
        logger.info("Excluding %s: %s", unit.spec, e)
        return Excluded(unit, str(e))
    except ExtractionError as e:
        logger.warning("Skipping %s: %s", unit.spec, e)
        if e.diagnostics:
            logger.debug("rustdoc output for %s:\n%s", unit.spec, e.diagnostics)
        return Skipped(unit, str(e))
    except UnitError as e:
        logger.warning("Skipping %s: %s", unit.spec, e)
        return Skipped(unit, str(e))
    except Exception as e:
        logger.exception("Unexpected error while documenting %s", unit.spec)
        return Skipped(unit, f"internal error: {e}")
    for note in graph.notes:
        logger.debug("%s: %s", unit.spec, note)
    return Converted(unit, graph, pages)


def write_converted(converted: Converted, assembler: OutputAssembler) -> UnitOutcome:
    """Write a converted unit into its own subtree."""
    unit, name = converted.unit, converted.graph.crate_name
    reason = assembler.claim(name, unit)
    if reason:
        logger.warning("Skipping %s: %s", unit.spec, reason)
        return Skipped(unit, reason)
    try:
        assembler.write_unit(name, converted.pages)
    except OSError as e:
        logger.warning("Skipping %s: could not write output: %s", unit.spec, e)
        return Skipped(unit, f"could not write output: {e}")
    return Documented(unit, name, unit_entry_path(name), len(converted.pages))


def _print_outcome(outcome: UnitOutcome, base_dir: Path) -> None:
    if isinstance(outcome, Documented):
        print(f"  ✓ {outcome.unit.name} → {base_dir / outcome.entry_path}")
    elif isinstance(outcome, Skipped):
        print(f"  ✗ {outcome.unit.name} - {outcome.reason}")
    else:
        print(f"  ⊘ {outcome.unit.name} skipped ({outcome.reason})")


def print_summary(outcomes: list[UnitOutcome], excluded: list[Excluded] | None = None) -> None:
    """Print documented and skipped counts, and units dropped while planning."""
    documented = [o for o in outcomes if isinstance(o, Documented)]
    skipped = [o for o in outcomes if isinstance(o, Skipped)]
    print("\nSummary:")
    print(f"  ✓ Documented: {len(documented)}")
    if skipped:
        names = ", ".join(o.unit.name for o in skipped)
        print(f"  ✗ Skipped: {len(skipped)} ({names})")
    for e in excluded or []:
        print(f"  ⊘ {e.unit.spec} excluded: {e.reason}")


def run_pipeline(
    plan: BuildPlan,
    extractor: Extractor,
    assembler: OutputAssembler,
    options: PipelineOptions | None = None,
) -> list[UnitOutcome]:
    """Document every unit of a plan, then write the master index.

    Extraction and rendering run in a bounded thread pool. Writing happens
    on the calling thread in plan order as units finish, so the subtree
    claimed by two units always goes to the one planned first. The index is
    written only after every unit has an outcome.
    """
    options = options or PipelineOptions()
    assembler.prepare()
    print(f"Documenting {len(plan.units)} units...")

    outcomes: dict[int, UnitOutcome] = {}
    ready: dict[int, Converted | UnitOutcome] = {}
    next_index = 0
    with ThreadPoolExecutor(max_workers=max(1, options.jobs)) as executor:
        futures = {
            executor.submit(extract_and_convert, unit, extractor, options): i
            for i, unit in enumerate(plan.units)
        }
        for future in as_completed(futures):
            i = futures[future]
            try:
                ready[i] = future.result()
            except Exception as e:
                logger.exception("Worker failed for %s", plan.units[i].spec)
                ready[i] = Skipped(plan.units[i], f"internal error: {e}")
            while next_index in ready:
                result = ready.pop(next_index)
                if isinstance(result, Converted):
                    result = write_converted(result, assembler)
                outcomes[next_index] = result
                _print_outcome(result, assembler.base_dir)
                next_index += 1

    ordered = [outcomes[i] for i in range(len(plan.units))]
    index_path = assembler.write_master_index(ordered, options.index_title)
    print(f"\n✓ Master index: {index_path}")
    print_summary(ordered, plan.excluded)
    return ordered


def run_json_file(
    json_path: Path,
    assembler: OutputAssembler,
    options: PipelineOptions | None = None,
) -> list[UnitOutcome]:
    """Convert one existing rustdoc JSON file, bypassing planning and extraction."""
    options = options or PipelineOptions()
    json_path = Path(json_path)
    if not json_path.exists():
        msg = f"JSON file not found: {json_path}"
        raise PlanError(msg)
    if not json_path.is_file():
        msg = f"Path is not a file: {json_path}"
        raise PlanError(msg)
    assembler.prepare()

    unit = Unit(name=json_path.stem, role=ROLE_SELECTED)
    try:
        graph, pages = convert_ir(json_path.read_bytes(), options)
    except UnitError as e:
        logger.warning("Skipping %s: %s", json_path, e)
        outcome: UnitOutcome = Skipped(unit, str(e))
    else:
        unit = dataclasses.replace(unit, name=graph.crate_name, version=graph.crate_version or "")
        outcome = write_converted(Converted(unit, graph, pages), assembler)
    _print_outcome(outcome, assembler.base_dir)

    outcomes = [outcome]
    index_path = assembler.write_master_index(outcomes, options.index_title)
    print(f"\n✓ Master index: {index_path}")
    print_summary(outcomes)
    return outcomes
