from __future__ import annotations

from pathlib import Path

import pytest

from repo_context.config import DEFAULT_MAX_BYTES, DEFAULT_MAX_LINES
from repo_context.exceptions import ConfigurationError
from repo_context.settings import RenderConfig, Settings, build_render_config, env_defaults, split_list


@pytest.mark.unit
def test_render_config_defaults() -> None:
    config = RenderConfig()

    assert config.max_bytes == DEFAULT_MAX_BYTES
    assert config.max_lines == DEFAULT_MAX_LINES
    assert config.chunking
    assert not config.line_numbers
    assert config.only_ext == frozenset()
    assert config.exclude == ()
    assert config.output_format == "markdown"
    assert not config.compress
    assert config.max_output == 0


@pytest.mark.unit
def test_extensions_are_normalized() -> None:
    config = RenderConfig(only_ext=[".PY", "ts,js", " ", "."])

    assert config.only_ext == frozenset({"py", "ts", "js"})


@pytest.mark.unit
def test_zero_lines_disables_chunking() -> None:
    assert not RenderConfig(max_lines=0).chunking


@pytest.mark.unit
@pytest.mark.parametrize(
    ("values", "field"),
    [
        ({"max_bytes": -1}, "max_bytes"),
        ({"max_lines": "many"}, "max_lines"),
        ({"output_format": "yaml"}, "output_format"),
        ({"only_ext": 42}, "only_ext"),
        ({"max_output": -5}, "max_output"),
        ({"max_bytes": True}, "max_bytes"),
        ({"max_lines": False}, "max_lines"),
    ],
)
def test_invalid_values_raise_configuration_error_naming_the_field(values: dict, field: str) -> None:
    with pytest.raises(ConfigurationError) as excinfo:
        build_render_config(**values)

    assert excinfo.value.field == field
    assert excinfo.value.code == "INVALID_CONFIG"
    assert field in excinfo.value.message


@pytest.mark.unit
def test_build_render_config_ignores_unset_values() -> None:
    config = build_render_config(max_bytes=None, max_lines=10, compress=None)

    assert config.max_bytes == DEFAULT_MAX_BYTES
    assert config.max_lines == 10


@pytest.mark.unit
def test_split_list() -> None:
    assert split_list(None) == []
    assert split_list("a, b,,c") == ["a", "b", "c"]
    assert split_list(["a,b", "c"]) == ["a", "b", "c"]
    with pytest.raises(ValueError, match="expected a string"):
        split_list([1])


@pytest.mark.unit
def test_settings_defaults() -> None:
    settings = Settings(output=Path("out.md"))

    assert settings.repo.resolve() == Path.cwd().resolve()
    assert settings.output == Path("out.md")
    assert settings.format == "markdown"
    assert settings.git_url == ""


@pytest.mark.unit
def test_settings_render_config() -> None:
    settings = Settings(format="json", only_ext=["py"], exclude=["*.log"], max_lines=0, compress=True)

    config = settings.render_config()

    assert config.output_format == "json"
    assert config.only_ext == frozenset({"py"})
    assert config.exclude == ("*.log",)
    assert not config.chunking
    assert config.compress


@pytest.mark.unit
def test_env_defaults_reads_prefixed_variables() -> None:
    environ = {
        "REPO_DUMP_MAX_BYTES": "1000",
        "REPO_DUMP_LINE_NUMBERS": "yes",
        "REPO_DUMP_COMPRESS": "off",
        "REPO_DUMP_ONLY_EXT": "py, md",
        "REPO_DUMP_EXCLUDE": "",
        "UNRELATED": "x",
    }

    values = env_defaults(environ)

    assert values == {"max_bytes": "1000", "line_numbers": True, "compress": False, "only_ext": ["py", "md"]}
    assert Settings(**values).max_bytes == 1000
