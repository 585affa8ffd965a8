from __future__ import annotations

import io
import json
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from repo_context.classifier import role_hint
from repo_context.config import Role
from repo_context.file_manipulation import open_text
from repo_context.logging import logger
from repo_context.stats import approx_tokens, sorted_extensions, sorted_languages

if TYPE_CHECKING:
    from collections.abc import Iterable

    from repo_context.config import FileRecord
    from repo_context.file_manipulation import WalkResult
    from repo_context.settings import RenderConfig
    from repo_context.stats import RepoStats

EMPTY_CONTENT = "# No files found matching criteria.\n"
BINARY_NOTICE = "[[ BINARY FILE - CONTENT OMITTED ]]"
OPEN_ERROR_NOTICE = "[[ ERROR: cannot open file ]]"
FILE_START = "=== FILE START: {rel} ==="
FILE_END = "=== FILE END: {rel} ==="
CHUNK_HEADER = "--- CHUNK {chunk} of {rel} ---"


def too_large_notice(max_bytes: int) -> str:
    return f"[[ FILE TOO LARGE (> {max_bytes} bytes) - CONTENT OMITTED ]]"


def truncation_notice(max_output: int) -> str:
    return f"\n\n[[ OUTPUT TRUNCATED - exceeded {max_output} bytes ]]\n"


# ------------------------------ Markdown ------------------------------------


def render_overview(root: str, stats: RepoStats) -> str:
    """Render the `REPO OVERVIEW` block."""
    out = io.StringIO()
    out.write("### REPO OVERVIEW\n\n")
    out.write(f"Root: {root}\n")
    out.write(f"Dirs: {stats.dir_count}\n")
    out.write(f"Files (included by filters): {stats.file_count}\n")
    out.write(f"Approx total bytes: {stats.total_bytes}\n")
    out.write(f"Approx tokens (~4 chars/token): {stats.approx_tokens}\n\n")

    if stats.key_files:
        out.write("Key docs / entrypoints / configs:\n")
        for rel in sorted(stats.key_files):
            rec = stats.records[rel]
            tag = str(rec.role)
            if rec.is_entry:
                tag += ", entrypoint"
            if rec.is_config:
                tag += ", config"
            out.write(f"- {rel} [{tag}]\n")
        out.write("\n")

    if stats.ext_count:
        out.write("By extension:\n")
        for ext, count in sorted_extensions(stats):
            out.write(f"- {ext}: {count}\n")
        out.write("\n")
    return out.getvalue()


def render_languages(stats: RepoStats) -> str:
    """Render the `LANGUAGE OVERVIEW` block."""
    out = io.StringIO()
    out.write("### LANGUAGE OVERVIEW\n\n")
    for lang_id, lang in sorted_languages(stats):
        out.write(f"- {lang.name} ({lang_id}): {lang.count} files, ~{approx_tokens(lang.bytes)} tokens\n")
        roles = lang.role_counts()
        if roles:
            out.write("  Roles: " + ", ".join(f"{r}={c}" for r, c in roles.items()) + "\n")
        if lang.entries:
            out.write("  Entry-point files:\n")
            out.writelines(f"    - {p}\n" for p in lang.entries)
        if lang.configs:
            out.write("  Config files:\n")
            out.writelines(f"    - {p}\n" for p in lang.configs)
        out.write("\n")
    return out.getvalue()


def build_tree_lines(walk: WalkResult) -> list[str]:
    """Indent each retained path by its depth, suffixing directories with `/`.

    Args:
        walk (WalkResult): the walk whose sorted paths are rendered

    Returns:
        list[str]: one line per retained path, in sorted order
    """
    lines: list[str] = []
    for rel in walk.paths:
        parts = rel.split("/")
        slash = "/" if walk.is_dir(rel) else ""
        lines.append("  " * (len(parts) - 1) + parts[-1] + slash)
    return lines


def render_tree(walk: WalkResult) -> str:
    """Render the `REPO TREE` block."""
    return "### REPO TREE\n\n" + "".join(f"{line}\n" for line in build_tree_lines(walk))


def render_file_list(records: Iterable[FileRecord]) -> str:
    """Render the compressed `FILE LIST` block; no file is opened."""
    out = io.StringIO()
    out.write("\n### FILE LIST\n")
    out.write("# Compressed mode: metadata only (no contents).\n\n")
    for rec in records:
        kind = "text" if rec.is_text else "binary"
        out.write(f"- {rec.rel} [{rec.lang_name}, {rec.role}, {rec.size} bytes, {kind}]\n")
    return out.getvalue()


def write_file_body(out: io.StringIO, rec: FileRecord, config: RenderConfig) -> None:
    """Stream one text file into `out` as fenced, optionally chunked blocks.

    Line numbers run over the whole file and are not reset per chunk.

    Raises:
        OSError: if the file cannot be opened
    """
    fence = f"{rec.lang_id.replace(' ', '_')}:{rec.rel}" if rec.lang_id else rec.rel
    chunk = 1
    line_in_chunk = 0
    line_no = 0
    with open_text(rec.path) as fh:
        out.write("\n")
        if config.chunking:
            out.write(CHUNK_HEADER.format(chunk=chunk, rel=rec.rel) + "\n")
        out.write(f"```{fence}\n")
        line = ""
        for line in fh:
            line_no += 1
            if config.chunking:
                line_in_chunk += 1
                if line_in_chunk > config.max_lines:
                    chunk += 1
                    line_in_chunk = 1
                    out.write("```\n\n")
                    out.write(CHUNK_HEADER.format(chunk=chunk, rel=rec.rel) + "\n")
                    out.write(f"```{fence}\n")
            if config.line_numbers:
                out.write(f"{line_no:5d}| {line}")
            else:
                out.write(line)
        if line and not line.endswith("\n"):
            out.write("\n")
    out.write("```\n")


def render_file_section(rec: FileRecord, config: RenderConfig) -> str:
    """Render one file's `FILE START` .. `FILE END` section."""
    out = io.StringIO()
    out.write("\n" + FILE_START.format(rel=rec.rel) + "\n")
    out.write(f"Size: {rec.size} bytes | Text: {'yes' if rec.is_text else 'no'}\n")
    out.write(f"Language: {rec.lang_name} ({rec.lang_id}) | Role: {rec.role}\n")
    hint = role_hint(rec)
    if hint:
        out.write(f"Hints: {hint}\n")
    out.write("Chunks: " + (f"up to {config.max_lines} lines" if config.chunking else "single") + "\n")

    if not rec.is_text:
        out.write(BINARY_NOTICE + "\n")
    elif rec.is_too_big(config.max_bytes):
        out.write(too_large_notice(config.max_bytes) + "\n")
    else:
        body = io.StringIO()
        try:
            write_file_body(body, rec, config)
        except OSError as e:
            logger.warning("file_open_failed", path=rec.rel, error=str(e))
            out.write(OPEN_ERROR_NOTICE + "\n")
        else:
            out.write(body.getvalue())
    out.write(FILE_END.format(rel=rec.rel) + "\n")
    return out.getvalue()


def render_file_contents(records: Iterable[FileRecord], config: RenderConfig) -> str:
    """Render the full `FILE CONTENTS` block."""
    out = io.StringIO()
    out.write("\n### FILE CONTENTS\n")
    out.write("# Files wrapped in markers and code fences for LLM consumption.\n\n")
    for rec in records:
        out.write(render_file_section(rec, config))
    return out.getvalue()


def build_markdown(root: str, walk: WalkResult, stats: RepoStats, config: RenderConfig) -> str:
    """Build the markdown report of a repository.

    The report has an overview, a language breakdown, the tree of every
    retained path and then either the compressed file list or the full file
    contents. Files are always rendered in the walk's sorted order.

    Args:
        root (str): the analysis root, as shown in the overview
        walk (WalkResult): the sorted walk
        stats (RepoStats): aggregated statistics of the walk's files
        config (RenderConfig): rendering parameters

    Returns:
        str: the markdown report
    """
    if not walk.files:
        return EMPTY_CONTENT
    records = [stats.records[rel] for rel in walk.files]
    out = io.StringIO()
    out.write("# Repository Context Dump\n\n")
    out.write(render_overview(root, stats))
    out.write(render_languages(stats))
    out.write(render_tree(walk))
    if config.compress:
        out.write(render_file_list(records))
    else:
        out.write(render_file_contents(records, config))
    return out.getvalue()


# ------------------------------ JSON ----------------------------------------


class JsonStatistics(BaseModel):
    total_files: int
    total_dirs: int
    total_bytes: int
    approx_tokens: int


class JsonLanguage(BaseModel):
    name: str
    file_count: int
    bytes: int
    roles: dict[str, int]
    entries: list[str]
    configs: list[str]


class JsonFile(BaseModel):
    path: str
    size: int
    is_text: bool
    language: str
    lang_id: str
    role: Role
    is_config: bool
    is_entry: bool
    content: str | None = Field(default=None, description="Inlined text, omitted when not included")
    error: str | None = Field(default=None, description="Set when the content could not be read")


class JsonDocument(BaseModel):
    """Structured report, serialized with the standard `json` encoder."""

    root: str
    statistics: JsonStatistics
    languages: dict[str, JsonLanguage]
    key_files: list[str]
    tree: list[str]
    files: list[JsonFile]


def json_file_entry(rec: FileRecord, config: RenderConfig) -> JsonFile:
    """Describe one file, inlining its content when it is included."""
    entry = JsonFile(
        path=rec.rel,
        size=rec.size,
        is_text=rec.is_text,
        language=rec.lang_name,
        lang_id=rec.lang_id,
        role=rec.role,
        is_config=rec.is_config,
        is_entry=rec.is_entry,
    )
    if config.compress or not rec.is_text or rec.is_too_big(config.max_bytes):
        return entry
    try:
        with open_text(rec.path) as fh:
            content = fh.read()
    except OSError as e:
        logger.warning("file_open_failed", path=rec.rel, error=str(e))
        return entry.model_copy(update={"error": "cannot open file"})
    return entry.model_copy(update={"content": content})


def build_json_document(root: str, walk: WalkResult, stats: RepoStats, config: RenderConfig) -> JsonDocument:
    """Assemble the typed structured report."""
    return JsonDocument(
        root=root,
        statistics=JsonStatistics(
            total_files=stats.file_count,
            total_dirs=stats.dir_count,
            total_bytes=stats.total_bytes,
            approx_tokens=stats.approx_tokens,
        ),
        languages={
            lang_id: JsonLanguage(
                name=lang.name,
                file_count=lang.count,
                bytes=lang.bytes,
                roles=lang.role_counts(),
                entries=list(lang.entries),
                configs=list(lang.configs),
            )
            for lang_id, lang in stats.languages.items()
        },
        key_files=list(stats.key_files),
        tree=list(walk.paths),
        files=[json_file_entry(stats.records[rel], config) for rel in walk.files],
    )


def build_json(root: str, walk: WalkResult, stats: RepoStats, config: RenderConfig) -> str:
    """Serialize the structured report with sorted keys for deterministic output."""
    doc = build_json_document(root, walk, stats, config)
    return json.dumps(doc.model_dump(mode="json", exclude_none=True), indent=2, sort_keys=True, ensure_ascii=False) + "\n"


# ------------------------------ Truncation ----------------------------------


def truncate_output(content: str, max_output: int) -> tuple[str, bool]:
    """Cut the assembled output to a byte ceiling.

    The size is measured in UTF-8 bytes. When the ceiling is exceeded, the
    content is cut to exactly `max_output` bytes (a cut may fall mid-line; a
    multi-byte character split by the cut is dropped) and a notice is appended.

    Args:
        content (str): the full output
        max_output (int): the byte ceiling, 0 for unlimited

    Returns:
        tuple[str, bool]: the possibly truncated content and whether it was cut
    """
    raw = content.encode("utf-8")
    if max_output <= 0 or len(raw) <= max_output:
        return content, False
    logger.info("output_truncated", size=len(raw), max_output=max_output)
    head = raw[:max_output].decode("utf-8", errors="ignore")
    return head + truncation_notice(max_output), True


def render(root: str, walk: WalkResult, stats: RepoStats, config: RenderConfig) -> tuple[str, bool]:
    """Render in the configured format and apply the output ceiling."""
    if config.output_format == "json":
        content = build_json(root, walk, stats, config)
    else:
        content = build_markdown(root, walk, stats, config)
    return truncate_output(content, config.max_output)
