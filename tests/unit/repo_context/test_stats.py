from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from repo_context.classifier import classify_all
from repo_context.config import Role
from repo_context.file_manipulation import walk_repo
from repo_context.stats import aggregate, approx_tokens, select_key_files, sorted_extensions, sorted_languages

if TYPE_CHECKING:
    from conftest import RepoBuilder
    from repo_context.stats import RepoStats


def stats_for(repo_builder: RepoBuilder, files: dict[str, str | bytes]) -> RepoStats:
    root = repo_builder.write(files)
    walk = walk_repo(root, [])
    return aggregate(walk, classify_all(root, walk.files))


@pytest.mark.unit
def test_approx_tokens_is_bytes_over_four() -> None:
    assert approx_tokens(0) == 0
    assert approx_tokens(7) == 1
    assert approx_tokens(400) == 100


@pytest.mark.unit
def test_aggregate_counts_languages_roles_and_totals(repo_builder: RepoBuilder) -> None:
    stats = stats_for(
        repo_builder,
        {
            "src/main.py": "print(1)\n",
            "src/util.py": "x = 1\n",
            "tests/test_util.py": "def test(): ...\n",
            "pyproject.toml": "[project]\n",
            "README.md": "# Hi\n",
        },
    )

    python = stats.languages["python"]
    assert python.count == 3
    assert python.bytes == len("print(1)\n") + len("x = 1\n") + len("def test(): ...\n")
    assert python.role_counts() == {"source": 2, "test": 1}
    assert python.entries == ["src/main.py"]
    assert stats.languages["toml"].configs == ["pyproject.toml"]
    assert stats.languages["markdown"].by_role[Role.DOCS] == 1

    assert stats.file_count == 5
    assert stats.dir_count == 2
    assert stats.total_bytes == sum(r.size for r in stats.records.values())
    assert stats.approx_tokens == stats.total_bytes // 4


@pytest.mark.unit
def test_key_files_are_docs_entries_and_configs(repo_builder: RepoBuilder) -> None:
    stats = stats_for(
        repo_builder,
        {
            "README.md": "# Hi\n",
            "src/main.py": "",
            "src/util.py": "",
            "Makefile": "all:\n",
            "tests/package.json": "{}",
        },
    )

    assert stats.key_files == ["Makefile", "README.md", "src/main.py", "tests/package.json"]
    assert select_key_files(list(stats.records.values())) == stats.key_files


@pytest.mark.unit
def test_languages_sorted_by_bytes_then_count_then_name(repo_builder: RepoBuilder) -> None:
    stats = stats_for(
        repo_builder,
        {
            "a.go": "x" * 10,
            "b.rs": "y" * 10,
            "c.rs": "",
            "big.py": "z" * 50,
        },
    )

    assert [lang_id for lang_id, _ in sorted_languages(stats)] == ["python", "rust", "go"]


@pytest.mark.unit
def test_extension_histogram_sorted_by_count_then_name(repo_builder: RepoBuilder) -> None:
    stats = stats_for(repo_builder, {"a.py": "", "b.py": "", "c.js": "", "d.css": "", "Makefile": ""})

    assert sorted_extensions(stats) == [("py", 2), ("css", 1), ("js", 1)]
