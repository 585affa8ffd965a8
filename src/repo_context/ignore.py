"""Ignore-file and extra-pattern matching.

Patterns follow a small, predictable subset of gitignore syntax:

- blank lines and `#` comments are skipped;
- `!pattern` lines are recognised but dropped, they never re-include a path;
- a leading `/` anchors the pattern to the root, otherwise it may match at
  any path-segment boundary;
- a trailing `/` restricts the pattern to directories (and their contents);
- `**/` matches zero or more leading segments, `**` any run of characters,
  `*` any run of non-separator characters and `?` one non-separator character.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence
    from pathlib import Path

IGNORE_FILE = ".gitignore"


@dataclass(frozen=True)
class IgnoreRule:
    """A compiled ignore pattern."""

    pattern: str
    anchored: bool
    dir_only: bool
    regex: re.Pattern[str]

    def matches(self, rel: str, *, is_dir: bool = False) -> bool:
        """Check whether a relative path is matched by this rule.

        Args:
            rel (str): path relative to the root, with POSIX separators
            is_dir (bool): whether `rel` is a directory

        Returns:
            bool: True if the rule matches `rel`
        """
        for m in self.regex.finditer(rel):
            if not self.dir_only or is_dir or m.end() < len(rel):
                return True
        return False


def translate_glob(pattern: str) -> str:
    """Translate a glob body (no anchoring, no trailing slash) to a regex fragment.

    Args:
        pattern (str): the glob pattern

    Returns:
        str: an uncompiled regular expression matching the same paths
    """
    out: list[str] = []
    i = 0
    n = len(pattern)
    while i < n:
        if pattern.startswith("**/", i):
            out.append("(?:.*/)?")
            i += 3
        elif pattern.startswith("**", i):
            out.append(".*")
            i += 2
        elif pattern[i] == "*":
            out.append("[^/]*")
            i += 1
        elif pattern[i] == "?":
            out.append("[^/]")
            i += 1
        else:
            out.append(re.escape(pattern[i]))
            i += 1
    return "".join(out)


def compile_rule(line: str) -> IgnoreRule | None:
    """Compile one ignore-file line into a rule.

    Args:
        line (str): a raw pattern line

    Returns:
        IgnoreRule | None: the compiled rule, or None for blank, comment and
            negated lines
    """
    pat = line.strip()
    if not pat or pat.startswith("#") or pat.startswith("!"):
        return None
    pat = pat.removeprefix("./")

    anchored = pat.startswith("/")
    body = pat.lstrip("/")
    dir_only = body.endswith("/")
    body = body.rstrip("/")
    if not body:
        return None

    prefix = "^" if anchored else "(?:^|/)"
    # Matches must stop at a segment boundary; "*.log" never matches "a.logger".
    regex = re.compile(f"{prefix}{translate_glob(body)}(?=/|$)")
    return IgnoreRule(pattern=pat, anchored=anchored, dir_only=dir_only, regex=regex)


def compile_rules(lines: Iterable[str]) -> list[IgnoreRule]:
    """Compile pattern lines in order, skipping those that yield no rule."""
    rules: list[IgnoreRule] = []
    for line in lines:
        rule = compile_rule(line)
        if rule is not None:
            rules.append(rule)
    return rules


def build_ignore_rules(root: Path, extra_patterns: Sequence[str] = ()) -> list[IgnoreRule]:
    """Build the ordered rule list for a repository.

    Lines from the root ignore file come first, followed by `extra_patterns`.

    Args:
        root (Path): the analysis root
        extra_patterns (Sequence[str]): caller supplied glob patterns

    Returns:
        list[IgnoreRule]: the combined, ordered rules
    """
    lines: list[str] = []
    ignore_file = root / IGNORE_FILE
    if ignore_file.is_file():
        lines.extend(ignore_file.read_text(encoding="utf-8", errors="replace").splitlines())
    lines.extend(extra_patterns)
    return compile_rules(lines)


def is_ignored(rel: str, rules: Sequence[IgnoreRule], *, is_dir: bool = False) -> bool:
    """Check if a relative path is matched by any rule.

    Args:
        rel (str): the relative path to check
        rules (Sequence[IgnoreRule]): the compiled rules
        is_dir (bool): whether `rel` is a directory

    Returns:
        bool: True if any rule matches
    """
    return any(rule.matches(rel, is_dir=is_dir) for rule in rules)
