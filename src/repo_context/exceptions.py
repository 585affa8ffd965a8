from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class RepoContextError(Exception):
    """Base exception for errors in the repo_context module."""

    code = "REPO_CONTEXT_ERROR"

    @property
    def message(self) -> str:
        """Human readable description of the failure."""
        return self.code

    @property
    def details(self) -> str | None:
        """Optional extra information surfaced next to the message."""
        return None

    def __str__(self) -> str:
        return self.message


@dataclass(frozen=True)
class InvalidPathError(RepoContextError):
    """Raised when the analysis root is missing or is not a directory."""

    path: Path | str
    code = "INVALID_PATH"

    @property
    def message(self) -> str:
        return f"Path '{self.path}' not found or is not a directory"


@dataclass(frozen=True)
class GitCommandError(RepoContextError):
    """Raised when a git command fails."""

    command: str
    returncode: int
    stdout: str
    stderr: str
    code = "GIT_CLONE_FAILED"

    @property
    def message(self) -> str:
        return "git clone failed"

    @property
    def details(self) -> str | None:
        detail = f"Exit code: {self.returncode}"
        if self.stderr.strip():
            detail += f" ({self.stderr.strip()})"
        return detail


@dataclass(frozen=True)
class ConfigurationError(RepoContextError):
    """Raised when an engine parameter has the wrong type or range."""

    field: str
    reason: str
    code = "INVALID_CONFIG"

    @property
    def message(self) -> str:
        return f"Invalid value for '{self.field}': {self.reason}"
