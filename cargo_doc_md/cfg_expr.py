"""Logic for evaluating cargo platform predicates against a target.

Dependency edges in cargo metadata carry an optional ``target``: either a
literal target triple or a ``cfg(...)`` predicate such as
``cfg(all(unix, not(target_os = "macos")))``.
"""

import re
from dataclasses import dataclass, field

TOKEN_RE = re.compile(r'\s*(?:([(),=])|"((?:[^"\\]|\\.)*)"|([A-Za-z_][A-Za-z0-9_]*))')


class CfgSyntaxError(ValueError):
    """Raised for predicates that cannot be parsed."""


@dataclass(frozen=True)
class Platform:
    """The target the plan is resolved for: its triple and its cfg set."""

    triple: str
    cfg: frozenset[tuple[str, str | None]] = field(default_factory=frozenset)


def parse_cfg_lines(output: str) -> frozenset[tuple[str, str | None]]:
    """Parse `rustc --print cfg` output (`unix`, `target_os="linux"`, ...)."""
    entries: set[tuple[str, str | None]] = set()
    for line in output.splitlines():
        line = line.strip()
        if not line:
            continue
        if "=" in line:
            key, _, value = line.partition("=")
            entries.add((key.strip(), value.strip().strip('"')))
        else:
            entries.add((line, None))
    return frozenset(entries)


class CfgParser:
    """Recursive-descent parser for one cfg predicate."""

    def __init__(self, source: str) -> None:
        """Tokenize the predicate source."""
        self.source = source
        self.tokens = self._tokenize(source)
        self.pos = 0

    def _tokenize(self, source: str) -> list[tuple[str, str]]:
        tokens = []
        i = 0
        while i < len(source):
            if source[i:].strip() == "":
                break
            m = TOKEN_RE.match(source, i)
            if not m or m.end() == i:
                msg = f"unexpected character at {i} in {source!r}"
                raise CfgSyntaxError(msg)
            if m.group(1):
                tokens.append(("punct", m.group(1)))
            elif m.group(2) is not None:
                tokens.append(("string", m.group(2)))
            else:
                tokens.append(("ident", m.group(3)))
            i = m.end()
        return tokens

    def _peek(self) -> tuple[str, str] | None:
        return self.tokens[self.pos] if self.pos < len(self.tokens) else None

    def _next(self) -> tuple[str, str]:
        token = self._peek()
        if token is None:
            msg = f"unexpected end of {self.source!r}"
            raise CfgSyntaxError(msg)
        self.pos += 1
        return token

    def _expect(self, value: str) -> None:
        token = self._next()
        if token != ("punct", value):
            msg = f"expected '{value}' in {self.source!r}"
            raise CfgSyntaxError(msg)

    def parse(self) -> tuple:
        """Parse the whole source into a nested tuple tree."""
        expr = self._predicate()
        if self._peek() is not None:
            msg = f"trailing input in {self.source!r}"
            raise CfgSyntaxError(msg)
        return expr

    def _predicate(self) -> tuple:
        kind, value = self._next()
        if kind != "ident":
            msg = f"expected a name in {self.source!r}"
            raise CfgSyntaxError(msg)
        nxt = self._peek()
        if value in {"all", "any", "not"} and nxt == ("punct", "("):
            self._next()
            args = []
            while self._peek() != ("punct", ")"):
                args.append(self._predicate())
                if self._peek() == ("punct", ","):
                    self._next()
                elif self._peek() != ("punct", ")"):
                    msg = f"expected ',' or ')' in {self.source!r}"
                    raise CfgSyntaxError(msg)
            self._expect(")")
            if value == "not" and len(args) != 1:
                msg = f"not() takes exactly one predicate in {self.source!r}"
                raise CfgSyntaxError(msg)
            return (value, tuple(args))
        if nxt == ("punct", "="):
            self._next()
            kind, string = self._next()
            if kind != "string":
                msg = f"expected a string after '=' in {self.source!r}"
                raise CfgSyntaxError(msg)
            return ("key", value, string)
        return ("name", value)


def evaluate(expr: tuple, cfg: frozenset[tuple[str, str | None]]) -> bool:
    """Evaluate a parsed predicate against a cfg set."""
    op = expr[0]
    if op == "all":
        return all(evaluate(e, cfg) for e in expr[1])
    if op == "any":
        return any(evaluate(e, cfg) for e in expr[1])
    if op == "not":
        return not evaluate(expr[1][0], cfg)
    if op == "key":
        return (expr[1], expr[2]) in cfg
    return (expr[1], None) in cfg


def matches_platform(target: str | None, platform: Platform | None) -> bool:
    """Check whether a dependency's platform annotation applies.

    No annotation, or no platform to check against, always applies.
    """
    if not target or platform is None:
        return True
    target = target.strip()
    if target.startswith("cfg(") and target.endswith(")"):
        return evaluate(CfgParser(target[4:-1]).parse(), platform.cfg)
    return target == platform.triple
