"""Running `cargo rustdoc` to produce a unit's JSON IR."""

import logging
from pathlib import Path

from cargo_doc_md.errors import DocMdError, ExtractionError, NoLibraryTarget
from cargo_doc_md.models import Unit
from cargo_doc_md.run_command import run_command

logger = logging.getLogger(__name__)

NO_LIB_MARKER = "no library targets found"
MAX_ERROR_LINES = 2


def check_toolchain(toolchain: str = "+nightly") -> None:
    """Verify the toolchain that emits rustdoc JSON is installed."""
    try:
        result = run_command(["cargo", toolchain, "--version"])
    except OSError as e:
        msg = f"Failed to run cargo {toolchain}: {e}"
        raise DocMdError(msg) from e
    if result.returncode != 0:
        msg = (
            "Nightly toolchain not installed or not available.\n"
            "This tool requires Rust nightly for unstable rustdoc features.\n"
            "Install with: rustup install nightly"
        )
        raise DocMdError(msg)


def summarize_failure(unit: Unit, stderr: str, returncode: int) -> str:
    """Keep the first diagnostic lines that mention an error."""
    error_lines = [
        line for line in stderr.splitlines() if "error" in line or "failed" in line
    ][:MAX_ERROR_LINES]
    if error_lines:
        return (
            f"Failed to build '{unit.name}':\n"
            + "\n".join(error_lines)
            + f"\n\nRun 'cargo build -p {unit.spec}' for full details"
        )
    return (
        f"Failed to build '{unit.name}' (exit code: {returncode})\n"
        f"Run 'cargo build -p {unit.spec}' for details"
    )


class RustdocExtractor:
    """Produces rustdoc JSON for units of one cargo workspace."""

    def __init__(
        self,
        target_directory: Path,
        *,
        include_private: bool = False,
        toolchain: str = "+nightly",
        extra_args: list[str] | None = None,
        cwd: Path | None = None,
    ) -> None:
        """Initialize with the workspace target directory and rustdoc options."""
        self.target_directory = Path(target_directory)
        self.include_private = include_private
        self.toolchain = toolchain
        self.extra_args = list(extra_args or [])
        self.cwd = cwd

    def command(self, unit: Unit) -> list[str]:
        """Return the cargo invocation for a unit."""
        cmd = [
            "cargo",
            self.toolchain,
            "rustdoc",
            "-p",
            unit.spec,
            "--lib",
            "--",
            "--output-format=json",
            "-Z",
            "unstable-options",
        ]
        if self.include_private:
            cmd.append("--document-private-items")
        return cmd + self.extra_args

    def json_path(self, unit: Unit) -> Path:
        """Return where rustdoc writes the unit's JSON."""
        lib_name = unit.lib_name or unit.name.replace("-", "_")
        return self.target_directory / "doc" / f"{lib_name}.json"

    def extract(self, unit: Unit) -> bytes:
        """Run rustdoc for a unit and return the raw JSON bytes.

        Raises NoLibraryTarget when cargo reports there is nothing to
        document, and ExtractionError (with the diagnostics) on failure.
        """
        try:
            result = run_command(self.command(unit), cwd=self.cwd)
        except OSError as e:
            msg = f"Failed to run cargo rustdoc for '{unit.name}': {e}"
            raise ExtractionError(msg) from e

        if result.returncode != 0:
            if NO_LIB_MARKER in result.stderr:
                msg = f"{unit.name} has no library target"
                raise NoLibraryTarget(msg)
            raise ExtractionError(
                summarize_failure(unit, result.stderr, result.returncode),
                diagnostics=result.stderr,
            )

        path = self.json_path(unit)
        if not path.is_file():
            msg = f"Generated JSON file not found at {path}"
            raise ExtractionError(msg, diagnostics=result.stderr)
        logger.debug("rustdoc JSON for %s at %s", unit.spec, path)
        return path.read_bytes()
