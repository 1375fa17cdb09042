"""Logic for processing documentation text from the IR."""

import re
from collections.abc import Callable

INLINE_LINK_RE = re.compile(r"\[([^\[\]]+)\]\(([^()\s]+)\)")
REF_DEF_RE = re.compile(r"^(\s*\[[^\]]+\]:\s*)(\S+)(.*)$")
SHORTCUT_LINK_RE = re.compile(r"\[([^\[\]]+)\](?![\[(:])")
FENCE_RE = re.compile(r"^\s*(```|~~~)")


def summary_line(docs: str) -> str:
    """Return the first line of the first paragraph, for listings."""
    for line in docs.strip().splitlines():
        stripped = line.strip()
        if not stripped:
            break
        return stripped
    return ""


def rewrite_intra_doc_links(
    docs: str,
    links: dict[str, str],
    href_for: Callable[[str], str | None],
) -> str:
    """Rewrite rustdoc intra-doc links to relative Markdown links.

    ``links`` maps the link text as written (e.g. ``"`Foo`"`` or
    ``"crate::Foo"``) to an item id. Links that cannot be resolved keep their
    text but lose the brackets, so nothing dangles. Code blocks are left
    untouched.
    """
    if not docs or not links:
        return docs

    def resolve(key: str) -> str | None:
        target = links.get(key)
        return href_for(target) if target is not None else None

    def inline(m: re.Match) -> str:
        label, dest = m.group(1), m.group(2)
        if dest not in links:
            return m.group(0)
        href = resolve(dest)
        return f"[{label}]({href})" if href else label

    def ref_def(m: re.Match) -> str:
        href = resolve(m.group(2))
        return f"{m.group(1)}{href}{m.group(3)}" if href else m.group(0)

    def shortcut(m: re.Match) -> str:
        key = m.group(1)
        if key not in links:
            return m.group(0)
        href = resolve(key)
        return f"[{key}]({href})" if href else key

    out: list[str] = []
    in_fence = False
    for line in docs.split("\n"):
        if FENCE_RE.match(line):
            in_fence = not in_fence
            out.append(line)
            continue
        if in_fence:
            out.append(line)
            continue
        if REF_DEF_RE.match(line):
            out.append(REF_DEF_RE.sub(ref_def, line))
            continue
        line = INLINE_LINK_RE.sub(inline, line)
        out.append(SHORTCUT_LINK_RE.sub(shortcut, line))
    return "\n".join(out)
