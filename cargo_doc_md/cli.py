"""Command-line entry point: `cargo doc-md` / `cargo-doc-md`."""

import argparse
import logging
import sys
from collections.abc import Sequence
from pathlib import Path

from cargo_doc_md.build_plan import resolve_build_plan, validate_selection
from cargo_doc_md.cargo_metadata import (
    detect_host_triple,
    parse_metadata,
    query_metadata,
    query_platform_cfg,
)
from cargo_doc_md.errors import DocMdError
from cargo_doc_md.load_config import load_config
from cargo_doc_md.models import SelectionConfig
from cargo_doc_md.output_assembler import OutputAssembler
from cargo_doc_md.run_pipeline import PipelineOptions, run_json_file, run_pipeline
from cargo_doc_md.rustdoc_extractor import RustdocExtractor, check_toolchain

logger = logging.getLogger(__name__)

EPILOG = """examples:
  cargo doc-md                    Document the current crate and its dependencies
  cargo doc-md --workspace        Document every workspace member
  cargo doc-md -p tokio -p serde  Document packages and their dependencies
  cargo doc-md --json file.json   Convert an existing rustdoc JSON file"""


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    ap = argparse.ArgumentParser(
        prog="cargo doc-md",
        description="Generate cross-linked markdown documentation from rustdoc JSON.",
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    ap.add_argument(
        "-p",
        "--package",
        action="append",
        default=[],
        help="Package to document with its dependencies, `name` or `name@version` (repeatable)",
    )
    ap.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output directory (default: target/doc-md)",
    )
    ap.add_argument(
        "--include-private",
        action="store_true",
        help="Include private items in documentation",
    )
    ap.add_argument(
        "--json",
        type=Path,
        help="Convert an existing rustdoc JSON file",
    )
    ap.add_argument(
        "--workspace",
        action="store_true",
        help="Document all workspace members",
    )
    ap.add_argument(
        "--no-deps",
        action="store_true",
        help="Don't document dependencies",
    )
    ap.add_argument(
        "--manifest-path",
        type=Path,
        help="Path to Cargo.toml",
    )
    ap.add_argument(
        "-j",
        "--jobs",
        type=int,
        help="Number of units documented in parallel (default: 4)",
    )
    ap.add_argument(
        "--config",
        help="Path to configuration file",
    )
    ap.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return ap


def run(args: argparse.Namespace) -> int:
    """Run a documentation pass for parsed arguments."""
    config = load_config(args.config)
    if args.jobs:
        config["jobs"] = args.jobs
    output = Path(args.output or config["output_dir"])

    selection = SelectionConfig(
        packages=tuple(args.package),
        workspace=args.workspace,
        no_deps=args.no_deps,
        include_private=args.include_private,
        output_dir=output,
        json_path=args.json,
    )
    validate_selection(selection)

    options = PipelineOptions.from_config(config, include_private=selection.include_private)
    assembler = OutputAssembler(output)
    assembler.prepare()

    if selection.json_path is not None:
        run_json_file(selection.json_path, assembler, options)
        return 0

    toolchain = str(config["toolchain"])
    check_toolchain(toolchain)
    platform = query_platform_cfg(detect_host_triple())
    metadata = parse_metadata(query_metadata(args.manifest_path, platform))
    plan = resolve_build_plan(metadata, selection, platform)
    logger.debug("Plan: %s", ", ".join(u.spec for u in plan.units))

    extractor = RustdocExtractor(
        plan.target_directory,
        include_private=selection.include_private,
        toolchain=toolchain,
        extra_args=config.get("rustdoc_args") or [],
        cwd=args.manifest_path.parent if args.manifest_path else None,
    )
    run_pipeline(plan, extractor, assembler, options)
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    """Parse arguments and run; plan and output errors exit with status 1."""
    args_list = list(sys.argv[1:] if argv is None else argv)
    # `cargo doc-md` passes the subcommand name as the first argument.
    if args_list[:1] == ["doc-md"]:
        args_list = args_list[1:]
    args = build_parser().parse_args(args_list)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        return run(args)
    except DocMdError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
