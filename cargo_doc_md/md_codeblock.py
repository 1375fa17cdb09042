"""Utilities for generating Markdown code blocks and code spans."""


def md_codeblock(lang: str, code: str) -> str:
    """Generate a Markdown code block, widening the fence if the code has one."""
    fence = "```"
    while fence in code:
        fence += "`"
    return f"""{fence}{lang}
{code.rstrip()}
{fence}"""


def md_code_span(text: str) -> str:
    """Wrap text in a code span, keeping outer whitespace outside the ticks."""
    core = text.strip()
    if not core:
        return text
    lead = text[: len(text) - len(text.lstrip())]
    trail = text[len(text.rstrip()) :]
    if "`" in core:
        return f"{lead}`` {core} ``{trail}"
    return f"{lead}`{core}`{trail}"
