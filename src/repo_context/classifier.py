"""Per-file language, role and flag classification.

Both the language cascade and the role assignment are explicit ordered tables
(`LANGUAGE_RESOLVERS` and `ROLE_RULES`) evaluated first-match-wins, so the
precedence can be read, and tested, one entry at a time.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from repo_context.config import (
    CONFIG_FILENAMES,
    DOC_STEMS,
    DOCS_DIR_EXTENSIONS,
    EXT2LANG,
    FILENAME2LANG,
    PROSE_EXTENSIONS,
    SHEBANG2LANG,
    FileRecord,
    Role,
    lang_display_name,
)
from repo_context.file_manipulation import file_extension, read_first_line, sniff_text
from repo_context.logging import logger

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence
    from pathlib import Path


@dataclass(frozen=True)
class PathFacts:
    """What the classifier knows about a path before resolving anything."""

    rel: str
    lower: str
    name: str
    ext: str
    full: Path
    is_text: bool

    @classmethod
    def of(cls, root: Path, rel: str, *, is_text: bool) -> PathFacts:
        lower = rel.lower()
        return cls(
            rel=rel,
            lower=lower,
            name=lower.rsplit("/", 1)[-1],
            ext=file_extension(rel),
            full=root / rel,
            is_text=is_text,
        )


# ------------------------------ Language ------------------------------------

_ENV_SHEBANG = re.compile(r"^#!\s*/usr/bin/env\s+(?:-\S+\s+)*(\S+)")
_PATH_SHEBANG = re.compile(r"^#!\s*\S*/([\w.+-]+)")
_VERSION_SUFFIX = re.compile(r"[\d.]+$")


def interpreter_language(first_line: str) -> str:
    """Map an interpreter directive to a language id.

    Args:
        first_line (str): the first line of a file

    Returns:
        str: the language id, or "" when the line is not a known shebang
    """
    m = _ENV_SHEBANG.match(first_line) or _PATH_SHEBANG.match(first_line)
    if not m:
        return ""
    cmd = m.group(1).lower()
    return SHEBANG2LANG.get(cmd) or SHEBANG2LANG.get(_VERSION_SUFFIX.sub("", cmd), "")


def _by_extension(facts: PathFacts) -> str:
    return EXT2LANG.get(facts.ext, "")


def _by_filename(facts: PathFacts) -> str:
    return FILENAME2LANG.get(facts.name, "")


def _by_shebang(facts: PathFacts) -> str:
    if not facts.is_text:
        return ""
    return interpreter_language(read_first_line(facts.full))


LANGUAGE_RESOLVERS: tuple[Callable[[PathFacts], str], ...] = (
    _by_extension,
    _by_filename,
    _by_shebang,
)


def resolve_language(facts: PathFacts) -> str:
    """Run the language cascade, returning "" when no resolver succeeds."""
    for resolver in LANGUAGE_RESOLVERS:
        lang = resolver(facts)
        if lang:
            return lang
    return ""


# ------------------------------ Roles ---------------------------------------

_TEST_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"(^|/)(test|tests|spec|specs|__tests__|t)/"),
    re.compile(r"(^|/)test_"),
    re.compile(r"_test\.[a-z0-9_]+$"),
    re.compile(r"\.spec\.[a-z0-9_]+$"),
    re.compile(r"\.test\.[a-z0-9_]+$"),
    re.compile(r"\.t$"),
)
_DOCS_DIR = re.compile(r"(^|/)(docs?|documentation)/")
_DOC_NAME = re.compile(r"^([^.]+)(\.|$)")


def is_test_path(facts: PathFacts, _lang: str) -> bool:
    return any(p.search(facts.lower) for p in _TEST_PATTERNS)


def is_config_path(facts: PathFacts, _lang: str = "") -> bool:
    return facts.name in CONFIG_FILENAMES or ".github/workflows/" in facts.lower


def is_docs_dir_file(facts: PathFacts, _lang: str) -> bool:
    return bool(_DOCS_DIR.search(facts.lower)) and facts.ext in DOCS_DIR_EXTENSIONS


def is_named_doc(facts: PathFacts, _lang: str) -> bool:
    m = _DOC_NAME.match(facts.name)
    return bool(m) and m.group(1) in DOC_STEMS


def is_source(facts: PathFacts, lang: str) -> bool:
    return bool(lang) and facts.ext not in PROSE_EXTENSIONS


ROLE_RULES: tuple[tuple[Callable[[PathFacts, str], bool], Role], ...] = (
    (is_test_path, Role.TEST),
    (is_config_path, Role.CONFIG),
    (is_docs_dir_file, Role.DOCS),
    (is_named_doc, Role.DOCS),
    (is_source, Role.SOURCE),
)


def assign_role(facts: PathFacts, lang: str) -> Role:
    """Apply `ROLE_RULES` in order; files matching none are `Role.OTHER`."""
    for predicate, role in ROLE_RULES:
        if predicate(facts, lang):
            return role
    return Role.OTHER


# ------------------------------ Entrypoints ---------------------------------

_JS_FAMILY = ("javascript", "typescript", "tsx", "jsx")

ENTRY_PATTERNS: dict[str, tuple[re.Pattern[str], ...]] = {
    "python": (re.compile(r"(^|/)(main|app|wsgi|asgi|manage|cli|__main__)\.py$"),),
    **dict.fromkeys(
        _JS_FAMILY,
        (re.compile(r"(^|/)(src/)?(index|main|app|server|cli)\.(js|jsx|ts|tsx)$"),),
    ),
    "go": (re.compile(r"(^|/)cmd/[^/]+/main\.go$"), re.compile(r"(^|/)main\.go$")),
    "rust": (re.compile(r"(^|/)src/main\.rs$"), re.compile(r"(^|/)src/bin/[^/]+\.rs$")),
    "java": (re.compile(r"(^|/)src/main/java/.+/(main|application)\.java$"),),
    "perl": (re.compile(r"(^|/)(script|bin)/[^/]+\.pl$"), re.compile(r"^[^/]+\.pl$")),
}


def is_entrypoint(facts: PathFacts, lang: str) -> bool:
    """Check the lowercased path against the entrypoint conventions of its language."""
    return any(p.search(facts.lower) for p in ENTRY_PATTERNS.get(lang, ()))


# ------------------------------ Hints ---------------------------------------

_TEST_HINTS: dict[str, str] = {
    "python": "Python tests (pytest/unittest style)",
    **dict.fromkeys(_JS_FAMILY, "JS/TS tests (Jest/Vitest/Mocha style)"),
    "go": "Go tests (*_test.go)",
    "rust": "Rust tests",
    "perl": "Perl tests (Test::More style)",
}

_MANIFEST_HINTS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"package\.json$"), "Node.js package manifest"),
    (re.compile(r"pyproject\.toml$"), "Python project configuration (PEP 621)"),
    (re.compile(r"requirements\.txt$"), "Python dependencies list"),
    (re.compile(r"cargo\.toml$"), "Rust crate manifest"),
    (re.compile(r"go\.mod$"), "Go module definition"),
    (re.compile(r"pom\.xml$"), "Maven build configuration"),
    (re.compile(r"docker-compose"), "Docker Compose configuration"),
    (re.compile(r"dockerfile"), "Docker container definition"),
    (re.compile(r"\.github/workflows"), "GitHub Actions workflow"),
)


def role_hint(rec: FileRecord) -> str:
    """Build the free-text hint shown in a file's metadata header.

    Args:
        rec (FileRecord): the classified file

    Returns:
        str: comma separated hints, or "" when there is nothing to say
    """
    bits: list[str] = []
    if rec.is_entry:
        bits.append("probable application entrypoint")
    if rec.role is Role.TEST:
        bits.append(_TEST_HINTS.get(rec.lang_key, "Test code"))
    if rec.role is Role.DOCS:
        bits.append("Documentation / README-style content")
    if rec.role is Role.CONFIG and rec.is_config:
        lower = rec.rel.lower()
        for pattern, hint in _MANIFEST_HINTS:
            if pattern.search(lower):
                bits.append(hint)
                break
    return ", ".join(bits)


# ------------------------------ Records -------------------------------------


def classify(root: Path, rel: str) -> FileRecord:
    """Classify one retained file.

    A file that cannot be stat'ed is logged and recorded with size 0; it is
    never fatal to the scan.

    Args:
        root (Path): the analysis root
        rel (str): the file path relative to `root`

    Returns:
        FileRecord: the immutable classification of the file
    """
    full = root / rel
    try:
        size = full.stat().st_size
    except OSError as e:
        logger.warning("file_stat_failed", path=rel, error=str(e))
        size = 0
    facts = PathFacts.of(root, rel, is_text=sniff_text(full))
    lang_key = resolve_language(facts)
    lang_id = lang_key or facts.ext or "text"
    return FileRecord(
        rel=rel,
        path=full,
        size=size,
        is_text=facts.is_text,
        ext=facts.ext,
        lang_key=lang_key,
        lang_id=lang_id,
        lang_name=lang_display_name(lang_id),
        role=assign_role(facts, lang_key),
        is_config=is_config_path(facts),
        is_entry=is_entrypoint(facts, lang_key),
    )


def classify_all(root: Path, files: Sequence[str]) -> list[FileRecord]:
    """Classify every file of a walk, preserving its order."""
    return [classify(root, rel) for rel in files]
