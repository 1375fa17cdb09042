"""Logic for decoding rustdoc JSON documents."""

import json
from typing import Any

from cargo_doc_md.errors import MalformedIRError


def load_ir(data: bytes | str) -> dict[str, Any]:
    """Decode raw rustdoc JSON into a dictionary."""
    try:
        doc = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        msg = f"IR is not valid JSON: {exc}"
        raise MalformedIRError(msg) from exc
    if not isinstance(doc, dict):
        msg = "IR top level must be a JSON object"
        raise MalformedIRError(msg)
    return doc
