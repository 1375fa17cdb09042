"""Utility for running external tools."""

import logging
import subprocess
from collections.abc import Sequence
from pathlib import Path

logger = logging.getLogger(__name__)


def run_command(
    cmd_list: Sequence[str | Path],
    cwd: Path | str | None = None,
) -> subprocess.CompletedProcess[str]:
    """Run a command and capture its output; a non-zero exit is not raised.

    OSError (e.g. the tool is not installed) propagates to the caller.
    """
    cmd_str = " ".join(str(x) for x in cmd_list)
    logger.debug("Running: %s", cmd_str)
    return subprocess.run(
        [str(x) for x in cmd_list],
        cwd=cwd,
        capture_output=True,
        text=True,
        check=False,
    )
