from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from repo_context.config import CHARS_PER_TOKEN, ROLE_ORDER, Role

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_context.config import FileRecord
    from repo_context.file_manipulation import WalkResult


def approx_tokens(nbytes: int) -> int:
    """Rough language-model token estimate for a byte count."""
    return nbytes // CHARS_PER_TOKEN


@dataclass
class LanguageAggregate:
    """Running statistics for one language id."""

    name: str
    count: int = 0
    bytes: int = 0
    by_role: Counter[Role] = field(default_factory=Counter)
    entries: list[str] = field(default_factory=list)
    configs: list[str] = field(default_factory=list)

    def add(self, rec: FileRecord) -> None:
        self.count += 1
        self.bytes += rec.size
        self.by_role[rec.role] += 1
        if rec.is_entry:
            self.entries.append(rec.rel)
        if rec.is_config:
            self.configs.append(rec.rel)

    def role_counts(self) -> dict[str, int]:
        """Non-zero role counts in display order."""
        return {str(r): self.by_role[r] for r in ROLE_ORDER if self.by_role[r]}


@dataclass
class RepoStats:
    """Aggregated view of a classified walk."""

    records: dict[str, FileRecord] = field(default_factory=dict)
    languages: dict[str, LanguageAggregate] = field(default_factory=dict)
    ext_count: Counter[str] = field(default_factory=Counter)
    total_bytes: int = 0
    dir_count: int = 0
    file_count: int = 0
    key_files: list[str] = field(default_factory=list)

    @property
    def approx_tokens(self) -> int:
        return approx_tokens(self.total_bytes)


def select_key_files(records: Sequence[FileRecord]) -> list[str]:
    """Pick the curated highlights: docs, entrypoints and manifests.

    Args:
        records (Sequence[FileRecord]): classified files in walk order

    Returns:
        list[str]: relative paths of the key files, in the same order
    """
    return [r.rel for r in records if r.role is Role.DOCS or r.is_entry or r.is_config]


def aggregate(walk: WalkResult, records: Sequence[FileRecord]) -> RepoStats:
    """Fold classified files into repository statistics in a single pass.

    Args:
        walk (WalkResult): the walk the records were classified from
        records (Sequence[FileRecord]): classified files, in walk order

    Returns:
        RepoStats: per-language aggregates, totals and key files
    """
    stats = RepoStats(dir_count=len(walk.dirs), file_count=len(records))
    for rec in records:
        stats.records[rec.rel] = rec
        stats.total_bytes += rec.size
        if rec.ext:
            stats.ext_count[rec.ext] += 1
        lang = stats.languages.get(rec.lang_id)
        if lang is None:
            lang = stats.languages[rec.lang_id] = LanguageAggregate(name=rec.lang_name)
        lang.add(rec)
    stats.key_files = select_key_files(records)
    return stats


def sorted_languages(stats: RepoStats) -> list[tuple[str, LanguageAggregate]]:
    """Languages by total bytes desc, then file count desc, then name."""
    return sorted(
        stats.languages.items(),
        key=lambda item: (-item[1].bytes, -item[1].count, item[1].name),
    )


def sorted_extensions(stats: RepoStats) -> list[tuple[str, int]]:
    """Extension histogram by count desc, then extension."""
    return sorted(stats.ext_count.items(), key=lambda item: (-item[1], item[0]))
