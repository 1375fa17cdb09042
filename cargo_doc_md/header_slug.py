"""Utility for generating slugs for Markdown headers."""

import re


def header_slug(s: str) -> str:
    """Generate a GitHub-style anchor slug.

    Lowercase, drop punctuation except ``-`` and ``_``, turn spaces into
    hyphens. ``Function `my_fn``` becomes ``function-my_fn``.
    """
    s = s.strip().lower()
    s = re.sub(r"[^a-z0-9 _-]", "", s)
    s = s.replace(" ", "-")
    return s or "section"
