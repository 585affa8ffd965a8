"""Repository analysis entry point.

`analyze_repository` runs the whole pipeline in one synchronous pass:
ignore rules -> walk -> classify -> aggregate -> render -> truncate.
"""

from __future__ import annotations

import subprocess  # noqa: S404
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, ConfigDict, Field

from repo_context.classifier import classify_all
from repo_context.exceptions import ConfigurationError, GitCommandError, InvalidPathError, RepoContextError
from repo_context.file_manipulation import walk_repo
from repo_context.ignore import build_ignore_rules
from repo_context.logging import logger
from repo_context.output_construction import render
from repo_context.settings import RenderConfig, build_render_config
from repo_context.stats import aggregate

if TYPE_CHECKING:
    from collections.abc import Iterator


class AnalysisRequest(BaseModel):
    """Parameters of one analysis, as accepted by the tool wrapper.

    Values are validated lazily by `render_config` so a bad parameter is
    reported as an `INVALID_CONFIG` result naming the field.
    """

    model_config = ConfigDict(extra="ignore")

    path: str | None = None
    git_url: str | None = None
    compress: Any = None
    output_format: Any = None
    include_extensions: Any = None
    exclude_patterns: Any = None
    max_file_size: Any = None
    max_lines_per_chunk: Any = None
    include_line_numbers: Any = None
    max_total_output_bytes: Any = None

    def render_config(self) -> RenderConfig:
        """Validate the engine parameters of this request.

        Raises:
            ConfigurationError: naming the offending request field
        """
        values = {engine: getattr(self, name) for name, engine in REQUEST_FIELDS.items()}
        try:
            return build_render_config(**values)
        except ConfigurationError as e:
            name = next((n for n, engine in REQUEST_FIELDS.items() if engine == e.field), e.field)
            raise ConfigurationError(field=name, reason=e.reason) from e


# request field -> RenderConfig field
REQUEST_FIELDS: dict[str, str] = {
    "max_file_size": "max_bytes",
    "max_lines_per_chunk": "max_lines",
    "include_line_numbers": "line_numbers",
    "include_extensions": "only_ext",
    "exclude_patterns": "exclude",
    "output_format": "output_format",
    "compress": "compress",
    "max_total_output_bytes": "max_output",
}


class LanguageMeta(BaseModel):
    file_count: int
    bytes: int
    roles: dict[str, int]


class AnalysisMetadata(BaseModel):
    root_path: str
    total_files: int
    total_dirs: int
    total_bytes: int
    approx_tokens: int
    languages: dict[str, LanguageMeta] = Field(default_factory=dict)
    key_files: list[str] = Field(default_factory=list)
    cloned: bool = False


class AnalysisError(BaseModel):
    code: str
    message: str
    details: str | None = None


class AnalysisResult(BaseModel):
    """Outcome of an analysis: metadata + content on success, an error otherwise."""

    success: bool
    error: AnalysisError | None = None
    metadata: AnalysisMetadata | None = None
    content: str | None = None
    truncated: bool = False

    @classmethod
    def failure(cls, exc: RepoContextError) -> AnalysisResult:
        return cls(success=False, error=AnalysisError(code=exc.code, message=exc.message, details=exc.details))


@contextmanager
def cloned_repository(git_url: str) -> Iterator[Path]:
    """Shallow-clone a repository into a temporary directory owned by this context.

    The directory is removed when the `with` block exits, whether it
    completes, raises or is interrupted.

    Args:
        git_url (str): the repository URL

    Raises:
        GitCommandError: if `git clone` exits with a non-zero status

    Yields:
        Path: the absolute path of the cloned working tree
    """
    with tempfile.TemporaryDirectory(prefix="repo-context-", ignore_cleanup_errors=True) as tmp:
        target = Path(tmp) / "repo"
        cmd = ["git", "clone", "--depth", "1", "--quiet", git_url, str(target)]
        logger.info("clone_started", url=git_url)
        try:
            proc = subprocess.run(cmd, text=True, capture_output=True, check=False)  # noqa: S603
        except FileNotFoundError as e:
            raise GitCommandError(command=" ".join(cmd), returncode=127, stdout="", stderr=str(e)) from e
        if proc.returncode != 0:
            logger.warning("clone_failed", url=git_url, returncode=proc.returncode)
            raise GitCommandError(
                command=" ".join(cmd),
                returncode=proc.returncode,
                stdout=proc.stdout,
                stderr=proc.stderr,
            )
        yield target.resolve()


def analyze_directory(root: Path, config: RenderConfig, *, cloned: bool = False) -> AnalysisResult:
    """Analyze a local directory.

    Args:
        root (Path): the directory to analyze
        config (RenderConfig): validated engine parameters
        cloned (bool): whether `root` is a fresh clone, reported in the metadata

    Raises:
        InvalidPathError: if `root` is missing or is not a directory

    Returns:
        AnalysisResult: the successful result
    """
    if not root.is_dir():
        raise InvalidPathError(path=root)
    root = root.resolve()
    rules = build_ignore_rules(root, config.exclude)
    walk = walk_repo(root, rules, config.only_ext)
    records = classify_all(root, walk.files)
    stats = aggregate(walk, records)
    content, truncated = render(str(root), walk, stats, config)

    metadata = AnalysisMetadata(
        root_path=str(root),
        total_files=stats.file_count,
        total_dirs=stats.dir_count,
        total_bytes=stats.total_bytes,
        approx_tokens=stats.approx_tokens,
        languages={
            lang_id: LanguageMeta(file_count=lang.count, bytes=lang.bytes, roles=lang.role_counts())
            for lang_id, lang in stats.languages.items()
        },
        key_files=list(stats.key_files),
        cloned=cloned,
    )
    logger.info(
        "analysis_complete",
        root=str(root),
        files=stats.file_count,
        dirs=stats.dir_count,
        bytes=stats.total_bytes,
        truncated=truncated,
    )
    return AnalysisResult(success=True, metadata=metadata, content=content, truncated=truncated)


def analyze_repository(request: AnalysisRequest) -> AnalysisResult:
    """Analyze a local path or a remote repository.

    Configuration is validated before anything is cloned or walked. Domain
    errors (bad path, failed clone, bad configuration) become a failure
    result; anything else propagates.

    Args:
        request (AnalysisRequest): what to analyze and how

    Returns:
        AnalysisResult: the analysis outcome
    """
    try:
        config = request.render_config()
        if request.git_url:
            with cloned_repository(request.git_url) as root:
                return analyze_directory(root, config, cloned=True)
        return analyze_directory(Path(request.path or "."), config)
    except RepoContextError as e:
        return AnalysisResult.failure(e)


__all__ = [
    "AnalysisRequest",
    "AnalysisResult",
    "analyze_directory",
    "analyze_repository",
    "cloned_repository",
]
