"""repo-context: dump a repository as LLM-ready context.

Usage
-----
Run `repo-context --help` for full options. Common examples:
    - Markdown report of the current directory on stdout:
        repo-context .

    - Structure only, as JSON, written to a file:
        repo-context ./project --compress --format json --output context.json

    - Python files only, numbered lines, 400-line chunks:
        repo-context ./project --only-ext py --line-numbers --max-lines 400

    - Shallow clone of a remote repository, capped at 1 MB of output:
        repo-context --git-url https://github.com/git-fixtures/basic.git --max-output-bytes 1000000

Every option also has a `REPO_DUMP_*` environment variable (see
`repo_context.settings.ENV_FIELDS`); flags win over the environment.
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from repo_context import __version__
from repo_context.analysis import analyze_directory, cloned_repository
from repo_context.exceptions import ConfigurationError, RepoContextError
from repo_context.logging import reset_logging, setup_logging
from repo_context.settings import Settings, env_defaults, split_list, validated

if TYPE_CHECKING:
    from collections.abc import Sequence

    from repo_context.analysis import AnalysisResult

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="repo-context",
        description="Dump a repository (overview, languages, tree, contents) for LLM consumption.",
    )
    p.add_argument("repo", nargs="?", default=None, help="Repository root (default: current directory).")
    p.add_argument("--git-url", type=str, default=None, help="Shallow-clone and analyze this repository.")
    p.add_argument("--output", type=str, default=None, help="Output file (default: stdout).")
    p.add_argument("--format", choices=["markdown", "json"], default=None, help="Output format.")
    p.add_argument(
        "--compress",
        action="store_true",
        default=None,
        help="Structure only: list files instead of dumping their contents.",
    )
    p.add_argument("--max-bytes", type=int, default=None, help="Omit contents of files larger than this.")
    p.add_argument("--max-lines", type=int, default=None, help="Lines per chunk (0 disables chunking).")
    p.add_argument("--line-numbers", action="store_true", default=None, help="Prefix lines with numbers.")
    p.add_argument(
        "--only-ext",
        action="append",
        default=None,
        help="Comma list of extensions to keep, e.g. py,ts (repeatable).",
    )
    p.add_argument(
        "--exclude",
        action="append",
        default=None,
        help="Extra ignore glob, comma lists accepted (repeatable).",
    )
    p.add_argument("--max-output-bytes", type=int, default=None, help="Truncate output at this many bytes.")
    p.add_argument("--log-file", type=str, default=None, help="Log file path.")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def parse_args(argv: Sequence[str] | None = None, environ: dict[str, str] | None = None) -> Settings:
    """Parse command line flags on top of `REPO_DUMP_*` environment defaults.

    Args:
        argv (Sequence[str] | None): the arguments, defaults to `sys.argv[1:]`
        environ (dict[str, str] | None): environment to read defaults from

    Raises:
        ConfigurationError: if a flag or variable has an invalid value

    Returns:
        Settings: the merged settings
    """
    args = build_parser().parse_args(argv)
    values = env_defaults(environ)
    flags = {
        "repo": args.repo,
        "git_url": args.git_url,
        "output": args.output,
        "format": args.format,
        "compress": args.compress,
        "max_bytes": args.max_bytes,
        "max_lines": args.max_lines,
        "line_numbers": args.line_numbers,
        "only_ext": split_list(args.only_ext) if args.only_ext else None,
        "exclude": split_list(args.exclude) if args.exclude else None,
        "max_output": args.max_output_bytes,
        "log_file": args.log_file,
    }
    values.update({k: v for k, v in flags.items() if v is not None})
    return validated(Settings, **values)


def run(settings: Settings) -> AnalysisResult:
    """Run one analysis described by CLI settings.

    Raises:
        RepoContextError: on an invalid path, configuration or failed clone
    """
    config = settings.render_config()
    if settings.git_url:
        with cloned_repository(settings.git_url) as root:
            return analyze_directory(root, config, cloned=True)
    return analyze_directory(settings.repo, config)


def main(argv: Sequence[str] | None = None) -> int:
    try:
        settings = parse_args(argv)
    except ConfigurationError as e:
        print(f"error: {e.code}: {e.message}", file=sys.stderr)
        return EXIT_BAD_CONFIG
    if settings.log_file:
        reset_logging()
        setup_logging(settings.log_file)

    try:
        result = run(settings)
    except ConfigurationError as e:
        print(f"error: {e.code}: {e.message}", file=sys.stderr)
        return EXIT_BAD_CONFIG
    except RepoContextError as e:
        detail = f" ({e.details})" if e.details else ""
        print(f"error: {e.code}: {e.message}{detail}", file=sys.stderr)
        return EXIT_FAILURE

    content = result.content or ""
    if settings.output:
        out_path = Path(settings.output)
        out_path.write_text(content, encoding="utf-8")
        meta = result.metadata
        files = meta.total_files if meta else 0
        print(f"Wrote {out_path} format={settings.format} files={files} truncated={result.truncated}")
    else:
        sys.stdout.write(content)
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
