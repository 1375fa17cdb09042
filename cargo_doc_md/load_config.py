"""Logic for loading and merging configuration files."""

import copy
from pathlib import Path
from typing import Any

import yaml

from cargo_doc_md.deep_merge import deep_merge
from cargo_doc_md.errors import PlanError

DEFAULT_CONFIG: dict[str, Any] = {
    "output_dir": "target/doc-md",
    "jobs": 4,
    "toolchain": "+nightly",
    "rustdoc_args": [],
    "ir": {
        "min_format_version": 35,
        "max_format_version": 99,
    },
    "render": {
        "code_lang": "rust",
        "auto_trait_impls": True,
        "blanket_impls": False,
    },
    "index": {
        "title": "Documentation Index",
    },
}


def load_config(path: str | Path | None = None) -> dict[str, Any]:
    """Load configuration from a YAML file and merge it with defaults."""
    config = copy.deepcopy(DEFAULT_CONFIG)
    if path:
        p = Path(path)
        if p.exists():
            try:
                user_config = yaml.safe_load(p.read_text(encoding="utf-8")) or {}
            except yaml.YAMLError as e:
                msg = f"Invalid config file {p}: {e}"
                raise PlanError(msg) from e
            if not isinstance(user_config, dict):
                msg = f"Config file {p} must contain a mapping"
                raise PlanError(msg)
            config = deep_merge(config, user_config)
    return config
