from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from repo_context.classifier import (
    LANGUAGE_RESOLVERS,
    ROLE_RULES,
    PathFacts,
    assign_role,
    classify,
    interpreter_language,
    is_entrypoint,
    resolve_language,
    role_hint,
)
from repo_context.config import Role

if TYPE_CHECKING:
    from conftest import RepoBuilder


def facts(rel: str, *, is_text: bool = True) -> PathFacts:
    return PathFacts.of(Path("/nonexistent"), rel, is_text=is_text)


@pytest.mark.unit
def test_precedence_tables_are_ordered() -> None:
    assert [fn.__name__ for fn in LANGUAGE_RESOLVERS] == ["_by_extension", "_by_filename", "_by_shebang"]
    assert [role for _, role in ROLE_RULES] == [Role.TEST, Role.CONFIG, Role.DOCS, Role.DOCS, Role.SOURCE]


@pytest.mark.unit
@pytest.mark.parametrize(
    ("line", "expected"),
    [
        ("#!/usr/bin/env python3\n", "python"),
        ("#!/usr/bin/env python3.12\n", "python"),
        ("#!/usr/bin/env -S node --harmony\n", "javascript"),
        ("#!/bin/bash\n", "bash"),
        ("#! /usr/bin/perl -w\n", "perl"),
        ("#!/usr/local/bin/Rscript\n", "r"),
        ("#!/usr/bin/env unknown-thing\n", ""),
        ("print('no shebang')\n", ""),
        ("", ""),
    ],
)
def test_interpreter_language(line: str, expected: str) -> None:
    assert interpreter_language(line) == expected


@pytest.mark.unit
def test_language_cascade_prefers_extension_then_filename() -> None:
    assert resolve_language(facts("lib/util.rb")) == "ruby"
    assert resolve_language(facts("Makefile")) == "makefile"
    assert resolve_language(facts("infra/Dockerfile")) == "dockerfile"
    assert resolve_language(facts("CMakeLists.txt")) == "cmake"


@pytest.mark.unit
def test_language_cascade_falls_back_to_shebang(repo_builder: RepoBuilder) -> None:
    root = repo_builder.write({"bin/tool": "#!/usr/bin/env python3\nprint('x')\n"})

    rec = classify(root, "bin/tool")

    assert rec.lang_key == "python"
    assert rec.lang_id == "python"
    assert rec.lang_name == "Python"


@pytest.mark.unit
def test_shebang_is_not_read_from_binary_files(repo_builder: RepoBuilder) -> None:
    root = repo_builder.write({"blob": b"#!/bin/sh\n\x00\x00"})

    rec = classify(root, "blob")

    assert not rec.is_text
    assert rec.lang_key == ""
    assert rec.lang_id == "text"
    assert rec.lang_name == "Text / other"


@pytest.mark.unit
def test_unknown_extension_becomes_language_id(repo_builder: RepoBuilder) -> None:
    root = repo_builder.write({"data/table.csv": "a,b\n"})

    rec = classify(root, "data/table.csv")

    assert rec.lang_key == ""
    assert rec.lang_id == "csv"
    assert rec.lang_name == "Csv"
    assert rec.role is Role.OTHER


@pytest.mark.unit
@pytest.mark.parametrize(
    ("rel", "lang", "expected"),
    [
        ("tests/test_app.py", "python", Role.TEST),
        ("pkg/test_util.py", "python", Role.TEST),
        ("web/button.spec.ts", "typescript", Role.TEST),
        ("web/button.test.js", "javascript", Role.TEST),
        ("server/handler_test.go", "go", Role.TEST),
        ("t/basic.t", "perl", Role.TEST),
        ("__tests__/x.js", "javascript", Role.TEST),
        ("tests/package.json", "json", Role.TEST),
        ("package.json", "json", Role.CONFIG),
        ("Cargo.toml", "toml", Role.CONFIG),
        ("sub/pyproject.toml", "toml", Role.CONFIG),
        (".github/workflows/ci.yml", "yaml", Role.CONFIG),
        ("docs/guide.md", "markdown", Role.DOCS),
        ("documentation/index.html", "html", Role.DOCS),
        ("README.md", "markdown", Role.DOCS),
        ("LICENSE", "", Role.DOCS),
        ("CHANGELOG.rst", "rst", Role.DOCS),
        ("src/main.py", "python", Role.SOURCE),
        ("docs/conf.py", "python", Role.SOURCE),
        ("notes.md", "markdown", Role.OTHER),
        ("data.bin", "", Role.OTHER),
        ("mysetup.py", "python", Role.SOURCE),
    ],
)
def test_assign_role(rel: str, lang: str, expected: Role) -> None:
    assert assign_role(facts(rel), lang) is expected


@pytest.mark.unit
@pytest.mark.parametrize(
    ("rel", "lang", "expected"),
    [
        ("src/main.py", "python", True),
        ("manage.py", "python", True),
        ("pkg/__main__.py", "python", True),
        ("src/helpers.py", "python", False),
        ("src/index.ts", "typescript", True),
        ("server.js", "javascript", True),
        ("cmd/api/main.go", "go", True),
        ("src/main.rs", "rust", True),
        ("src/bin/tool.rs", "rust", True),
        ("src/lib.rs", "rust", False),
        ("src/main/java/com/acme/Application.java", "java", True),
        ("script/deploy.pl", "perl", True),
        ("lib/Foo.pm", "perl", False),
        ("main.py", "", False),
    ],
)
def test_is_entrypoint(rel: str, lang: str, expected: bool) -> None:  # noqa: FBT001
    assert is_entrypoint(facts(rel), lang) is expected


@pytest.mark.unit
def test_config_flag_is_independent_of_role(repo_builder: RepoBuilder) -> None:
    root = repo_builder.write({"tests/fixtures/package.json": "{}\n"})

    rec = classify(root, "tests/fixtures/package.json")

    assert rec.role is Role.TEST
    assert rec.is_config


@pytest.mark.unit
def test_classify_scenario_files(repo_builder: RepoBuilder) -> None:
    root = repo_builder.write({"README.md": "# Hi\n", "src/main.py": "a = 1\nb = 2\nprint(a + b)\n"})

    readme = classify(root, "README.md")
    main = classify(root, "src/main.py")

    assert readme.role is Role.DOCS
    assert readme.ext == "md"
    assert main.role is Role.SOURCE
    assert main.is_entry
    assert not main.is_config
    assert main.size == len("a = 1\nb = 2\nprint(a + b)\n")


@pytest.mark.unit
def test_role_hints(repo_builder: RepoBuilder) -> None:
    root = repo_builder.write(
        {
            "package.json": "{}",
            "src/main.py": "",
            "tests/test_x.py": "",
            "README.md": "",
            "src/util.py": "",
        },
    )

    assert role_hint(classify(root, "package.json")) == "Node.js package manifest"
    assert role_hint(classify(root, "src/main.py")) == "probable application entrypoint"
    assert role_hint(classify(root, "tests/test_x.py")) == "Python tests (pytest/unittest style)"
    assert role_hint(classify(root, "README.md")) == "Documentation / README-style content"
    assert role_hint(classify(root, "src/util.py")) == ""
