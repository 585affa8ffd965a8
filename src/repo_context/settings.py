from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from repo_context.config import DEFAULT_MAX_BYTES, DEFAULT_MAX_LINES
from repo_context.exceptions import ConfigurationError

ENV_FILE = find_dotenv(usecwd=True)

OutputFormat = Literal["markdown", "json"]

ENV_PREFIX = "REPO_DUMP_"
# env suffix -> Settings field
ENV_FIELDS: dict[str, str] = {
    "MAX_BYTES": "max_bytes",
    "MAX_LINES": "max_lines",
    "LINE_NUMBERS": "line_numbers",
    "ONLY_EXT": "only_ext",
    "EXCLUDE": "exclude",
    "FORMAT": "format",
    "COMPRESS": "compress",
    "MAX_OUTPUT": "max_output",
}


def split_list(value: Any) -> list[str]:  # noqa: ANN401
    """Split comma separated values, flattening lists and dropping blanks."""
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, (list, tuple)):
        msg = f"expected a string or a list of strings, got {type(value).__name__}"
        raise ValueError(msg)  # noqa: TRY004
    out: list[str] = []
    for item in value:
        if not isinstance(item, str):
            msg = f"expected a string, got {type(item).__name__}"
            raise ValueError(msg)  # noqa: TRY004
        out.extend(part.strip() for part in item.split(",") if part.strip())
    return out


class RenderConfig(BaseModel):
    """Engine parameters for one analysis."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    max_bytes: int = Field(
        default=DEFAULT_MAX_BYTES,
        ge=0,
        description="Files above are listed but their content is omitted.",
    )
    max_lines: int = Field(
        default=DEFAULT_MAX_LINES,
        ge=0,
        description="Max lines per fenced chunk (0 disables chunking).",
    )
    line_numbers: bool = Field(default=False, description="Prefix emitted lines with line numbers.")
    only_ext: frozenset[str] = Field(
        default_factory=frozenset,
        description="Extension allow-list (empty keeps every extension).",
    )
    exclude: tuple[str, ...] = Field(default=(), description="Extra ignore glob patterns.")
    output_format: OutputFormat = Field(default="markdown", description="Output format.")
    compress: bool = Field(default=False, description="Structure only, no file contents.")
    max_output: int = Field(default=0, ge=0, description="Output byte ceiling (0 = unlimited).")

    @field_validator("max_bytes", "max_lines", "max_output", mode="before")
    @classmethod
    def _reject_booleans(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, bool):
            msg = "expected an integer, got bool"
            raise ValueError(msg)  # noqa: TRY004
        return value

    @field_validator("only_ext", mode="before")
    @classmethod
    def _normalize_extensions(cls, value: Any) -> frozenset[str]:  # noqa: ANN401
        if isinstance(value, (set, frozenset)):
            value = sorted(value)
        return frozenset(ext.lower().lstrip(".") for ext in split_list(value) if ext.strip(". "))

    @field_validator("exclude", mode="before")
    @classmethod
    def _normalize_excludes(cls, value: Any) -> tuple[str, ...]:  # noqa: ANN401
        return tuple(split_list(value))

    @property
    def chunking(self) -> bool:
        return self.max_lines > 0


def validated(model: type[BaseModel], **values: Any) -> Any:  # noqa: ANN401
    """Build a pydantic model, turning the first validation error into a `ConfigurationError`.

    Args:
        model (type[BaseModel]): the model class to build
        **values: the raw field values

    Raises:
        ConfigurationError: naming the offending field

    Returns:
        Any: the validated model instance
    """
    try:
        return model(**values)
    except ValidationError as e:
        err = e.errors()[0]
        field = ".".join(str(p) for p in err["loc"] if not isinstance(p, int)) or model.__name__
        raise ConfigurationError(field=field, reason=err["msg"]) from e


def build_render_config(**values: Any) -> RenderConfig:  # noqa: ANN401
    """Validate engine parameters before any traversal happens."""
    return validated(RenderConfig, **{k: v for k, v in values.items() if v is not None})


class Settings(BaseModel):
    """Configuration settings for the repo-context command line."""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    repo: Path = Field(default_factory=Path.cwd, description="Repository root.")
    git_url: str = Field(default="", description="Clone this repository instead of using repo.")
    output: Path | None = Field(default=None, description="Output file (stdout when unset).")
    format: OutputFormat = Field(default="markdown", description="Output format.")
    log_file: str = Field(default="", description="Log file path.")

    compress: bool = Field(default=False, description="Metadata only, no file contents.")
    max_bytes: int = Field(default=DEFAULT_MAX_BYTES, description="Per-file byte ceiling.")
    max_lines: int = Field(default=DEFAULT_MAX_LINES, description="Lines per chunk, 0 = no chunking.")
    line_numbers: bool = Field(default=False, description="Prefix lines with numbers.")
    only_ext: list[str] = Field(default_factory=list, description="Extension allow-list.")
    exclude: list[str] = Field(default_factory=list, description="Extra exclude globs.")
    max_output: int = Field(default=0, description="Total output byte ceiling, 0 = unlimited.")

    def render_config(self) -> RenderConfig:
        """Engine configuration derived from these settings."""
        return build_render_config(
            max_bytes=self.max_bytes,
            max_lines=self.max_lines,
            line_numbers=self.line_numbers,
            only_ext=self.only_ext,
            exclude=self.exclude,
            output_format=self.format,
            compress=self.compress,
            max_output=self.max_output,
        )


def env_defaults(environ: dict[str, str] | None = None) -> dict[str, Any]:
    """Read `REPO_DUMP_*` variables into Settings field values.

    A `.env` file found from the working directory is loaded first; variables
    already set in the environment win over it.

    Args:
        environ (dict[str, str] | None): environment to read, defaults to `os.environ`

    Returns:
        dict[str, Any]: raw field values keyed by Settings field name
    """
    if environ is None:
        if ENV_FILE:
            load_dotenv(ENV_FILE, override=False)
        environ = dict(os.environ)
    out: dict[str, Any] = {}
    for suffix, field in ENV_FIELDS.items():
        raw = environ.get(ENV_PREFIX + suffix)
        if raw is None or raw == "":
            continue
        if field in {"only_ext", "exclude"}:
            out[field] = split_list(raw)
        elif field in {"line_numbers", "compress"}:
            out[field] = raw.strip().lower() not in {"0", "false", "no", "off"}
        else:
            out[field] = raw.strip()
    return out
