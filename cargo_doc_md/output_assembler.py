"""Logic for writing unit subtrees and the master index to disk."""

import logging
import shutil
from pathlib import Path

from cargo_doc_md.build_plan import ROLE_DEPENDENCY, ROLE_MEMBER, ROLE_ROOT, ROLE_SELECTED
from cargo_doc_md.doc_paths import INDEX_FILE
from cargo_doc_md.errors import OutputError
from cargo_doc_md.md_codeblock import md_code_span
from cargo_doc_md.models import Documented, Skipped, Unit, UnitOutcome
from cargo_doc_md.normalize_name import normalize_name

logger = logging.getLogger(__name__)

INDEX_SECTIONS = (
    (ROLE_ROOT, "Current Crate"),
    (ROLE_MEMBER, "Workspace Members"),
    (ROLE_SELECTED, "Packages"),
    (ROLE_DEPENDENCY, "Dependencies"),
)


class OutputAssembler:
    """Owns the output base directory: one subtree per unit plus the index."""

    def __init__(self, base_dir: str | Path) -> None:
        """Initialize with the output base directory."""
        self.base_dir = Path(base_dir)
        self._claimed: dict[str, str] = {}

    def prepare(self) -> None:
        """Create the base directory; fail the run if it cannot exist."""
        if self.base_dir.exists() and not self.base_dir.is_dir():
            msg = (
                f"Output path exists but is a file, not a directory: {self.base_dir}\n"
                "Please specify a directory path or remove the file."
            )
            raise OutputError(msg)
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            msg = f"Failed to create output directory: {self.base_dir} ({e})"
            raise OutputError(msg) from e

    def claim(self, resolved_name: str, unit: Unit) -> str | None:
        """Reserve a unit's subtree; return why not if another unit has it."""
        key = normalize_name(resolved_name)
        owner = self._claimed.get(key)
        if owner is not None and owner != unit.spec:
            return f"output directory '{key}' is already used by {owner}"
        self._claimed[key] = unit.spec
        return None

    def unit_dir(self, resolved_name: str) -> Path:
        """Return a unit's subtree, refusing anything outside the base directory."""
        subtree = self.base_dir / normalize_name(resolved_name)
        try:
            subtree.resolve().relative_to(self.base_dir.resolve())
        except ValueError as e:
            msg = f"Refusing to write outside the output directory: {subtree}"
            raise OutputError(msg) from e
        return subtree

    def write_unit(self, resolved_name: str, pages: dict[str, str]) -> Path:
        """Replace a unit's subtree with freshly rendered pages.

        The old subtree is removed first, so modules dropped since the last
        run leave no stale files behind.
        """
        subtree = self.unit_dir(resolved_name)
        if subtree.exists() or subtree.is_symlink():
            logger.debug("Removing previous output %s", subtree)
            try:
                if subtree.is_dir() and not subtree.is_symlink():
                    shutil.rmtree(subtree)
                else:
                    subtree.unlink()
            except OSError as e:
                msg = f"Failed to clean output directory: {subtree} ({e})"
                raise OutputError(msg) from e
        print(f"Writing {len(pages)} pages for {resolved_name}...")
        for rel_path, content in sorted(pages.items()):
            out_file = subtree / rel_path
            out_file.parent.mkdir(parents=True, exist_ok=True)
            out_file.write_text(content, encoding="utf-8")
        return subtree / INDEX_FILE

    def write_master_index(self, outcomes: list[UnitOutcome], title: str = "Documentation Index") -> Path:
        """Write the index of every documented and skipped unit."""
        index_path = self.base_dir / INDEX_FILE
        try:
            self.base_dir.mkdir(parents=True, exist_ok=True)
            index_path.write_text(render_master_index(outcomes, title), encoding="utf-8")
        except OSError as e:
            msg = f"Failed to write master index: {index_path} ({e})"
            raise OutputError(msg) from e
        return index_path


def _one_line(text: str) -> str:
    return " ".join(line.strip() for line in text.splitlines() if line.strip())


def render_master_index(outcomes: list[UnitOutcome], title: str = "Documentation Index") -> str:
    """Render the master index in Markdown; an empty run gives a valid page."""
    parts = [f"# {title}", "", "Generated markdown documentation for this project.", ""]
    documented = [o for o in outcomes if isinstance(o, Documented)]
    skipped = [o for o in outcomes if isinstance(o, Skipped)]

    for role, heading in INDEX_SECTIONS:
        entries = [o for o in documented if o.unit.role == role]
        if not entries:
            continue
        parts += [f"## {heading} ({len(entries)})", ""]
        for o in entries:
            version = f" {o.unit.version}" if o.unit.version else ""
            parts.append(f"- [{md_code_span(o.unit.name)}]({o.entry_path}){version}")
        parts.append("")

    if not documented:
        parts += ["No units were documented.", ""]

    if skipped:
        parts += [f"## Skipped ({len(skipped)})", ""]
        for o in skipped:
            parts.append(f"- {md_code_span(o.unit.name)}: {_one_line(o.reason)}")
        parts.append("")

    parts += ["---", "", "Generated with cargo-doc-md"]
    return "\n".join(parts) + "\n"
