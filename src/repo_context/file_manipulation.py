from __future__ import annotations

import codecs
import os
import re
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, TextIO

from repo_context.config import PRUNE_DIRS
from repo_context.ignore import is_ignored
from repo_context.logging import logger

if TYPE_CHECKING:
    from collections.abc import Collection, Sequence

    from repo_context.ignore import IgnoreRule

_EXT_PATTERN = re.compile(r"\.([A-Za-z0-9_]+)$")


@dataclass(frozen=True)
class WalkResult:
    """Retained paths of a repository walk.

    Attributes:
        paths: every retained relative path (files and directories), sorted.
        files: retained files that also pass the extension allow-list, sorted.
        dirs: the subset of `paths` that are directories.
    """

    paths: tuple[str, ...] = ()
    files: tuple[str, ...] = ()
    dirs: frozenset[str] = field(default_factory=frozenset)

    def is_dir(self, rel: str) -> bool:
        """Check whether a retained path is a directory."""
        return rel in self.dirs


def relpath(path: Path, root: Path) -> str:
    """Send the relative path of path from root.

    Args:
        path (Path): the path to "relativise"
        root (Path): the root to relativise from

    Returns:
        str: the relative path from root to path, with POSIX separators.
            If path is not under root, returns the original path as a string.
    """
    try:
        return path.relative_to(root).as_posix()
    except ValueError:
        return str(path)


def file_extension(rel: str) -> str:
    """Return the lowercased extension of a path, without the dot.

    Only the last path segment is considered, so `pkg.d/run` has no extension
    while `.gitignore` has the extension `gitignore`.

    Args:
        rel (str): a relative path

    Returns:
        str: the extension, or "" if there is none
    """
    m = _EXT_PATTERN.search(rel.rsplit("/", 1)[-1])
    return m.group(1).lower() if m else ""


def is_regular_file(path: Path) -> bool:
    """Check if a file is regular.

    Args:
        path (Path): path to test.

    Returns:
        bool: True if the file is regular, False otherwise.
    """
    try:
        st = path.stat()
    except OSError:
        return False
    return stat.S_ISREG(st.st_mode)


_TEXT_CONTROLS = frozenset(b"\t\n\r\f\b\x1b")


def _mostly_printable(chunk: bytes) -> bool:
    """Less than a third of the bytes are control or high (non-ASCII) bytes."""
    odd = sum(1 for b in chunk if b >= 0x80 or (b < 0x20 and b not in _TEXT_CONTROLS) or b == 0x7F)
    return odd * 3 < len(chunk)


def sniff_text(path: Path, nbytes: int = 4096) -> bool:
    """Check if path points to a text file.

    The first `nbytes` must contain no NUL byte. They are text when they
    decode as UTF-8 (a multi-byte sequence cut by the read boundary is
    accepted) or, for legacy 8-bit encodings, when less than a third of them
    are control or high bytes. Empty files are text. Unreadable files are
    logged and reported as binary.

    Args:
        path (Path): path to test.
        nbytes (int, optional): number of bytes to read for testing. Defaults to 4096.

    Returns:
        bool: True if the file is probably text, False otherwise.
    """
    if not is_regular_file(path):
        return False
    try:
        with path.open("rb") as f:
            chunk = f.read(nbytes)
    except OSError as e:
        logger.warning("file_open_failed", path=str(path), error=str(e))
        return False
    if b"\x00" in chunk:
        return False
    try:
        codecs.getincrementaldecoder("utf-8")().decode(chunk, final=False)
    except UnicodeDecodeError:
        return _mostly_printable(chunk)
    return True


def open_text(path: Path) -> TextIO:
    """Open a text file for line streaming, preserving its line endings.

    Lines end at a line feed only; a lone carriage return stays inside its line.

    Args:
        path (Path): the file to open

    Returns:
        TextIO: the open file handle
    """
    return path.open(encoding="utf-8", errors="replace", newline="\n")


def read_first_line(path: Path) -> str:
    """Read the first line of a text file, or "" if it cannot be read."""
    try:
        with open_text(path) as f:
            return f.readline()
    except OSError:
        return ""


def walk_repo(
    root: Path,
    rules: Sequence[IgnoreRule],
    only_ext: Collection[str] = (),
) -> WalkResult:
    """Walk the directory tree rooted at `root`.

    Directories named in `PRUNE_DIRS` are skipped with everything beneath
    them. Other entries are dropped when an ignore rule matches them, and
    ignored directories are not descended. When `only_ext` is non-empty,
    files with another extension stay in `paths` but are left out of `files`.

    Args:
        root (Path): the root directory to walk
        rules (Sequence[IgnoreRule]): compiled ignore rules
        only_ext (Collection[str]): extension allow-list (lowercase, no dot)

    Returns:
        WalkResult: the sorted retained paths
    """
    paths: list[str] = []
    files: list[str] = []
    dirs: set[str] = set()

    for cur, dirnames, filenames in os.walk(root):
        base = Path(cur)
        kept: list[str] = []
        for d in dirnames:
            if d in PRUNE_DIRS:
                continue
            rel = relpath(base / d, root)
            if is_ignored(rel, rules, is_dir=True):
                continue
            paths.append(rel)
            dirs.add(rel)
            kept.append(d)
        dirnames[:] = kept

        for f in filenames:
            full = base / f
            rel = relpath(full, root)
            if is_ignored(rel, rules):
                continue
            paths.append(rel)
            if not is_regular_file(full):
                continue
            if only_ext and file_extension(rel) not in only_ext:
                continue
            files.append(rel)

    result = WalkResult(paths=tuple(sorted(paths)), files=tuple(sorted(files)), dirs=frozenset(dirs))
    logger.info("walk_complete", root=str(root), paths=len(result.paths), files=len(result.files))
    return result
