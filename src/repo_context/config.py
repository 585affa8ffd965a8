from __future__ import annotations

from enum import StrEnum, auto
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_MAX_BYTES = 300_000
DEFAULT_MAX_LINES = 1200
CHARS_PER_TOKEN = 4


class Role(StrEnum):
    """Category a file plays in the repository.

    Exactly one role is assigned per file; see `classifier.ROLE_RULES` for
    the order in which they are tried.
    """

    SOURCE = auto()
    TEST = auto()
    CONFIG = auto()
    DOCS = auto()
    OTHER = auto()


# Display order of role counts in the language overview.
ROLE_ORDER: tuple[Role, ...] = (Role.SOURCE, Role.TEST, Role.CONFIG, Role.DOCS, Role.OTHER)

PRUNE_DIRS: frozenset[str] = frozenset(
    {
        ".git",
        ".svn",
        ".hg",
        ".bzr",
        "node_modules",
        "dist",
        "build",
        "target",
        "venv",
        ".venv",
        "__pycache__",
        ".cache",
        ".next",
        ".nuxt",
        "coverage",
        ".pytest_cache",
        ".mypy_cache",
    },
)

EXT2LANG: dict[str, str] = {
    "bash": "bash",
    "c": "c",
    "cc": "cpp",
    "cfg": "ini",
    "cjs": "javascript",
    "clj": "clojure",
    "cljs": "clojure",
    "cpp": "cpp",
    "cs": "csharp",
    "css": "css",
    "cxx": "cpp",
    "dart": "dart",
    "dockerfile": "dockerfile",
    "erb": "ruby",
    "erl": "erlang",
    "ex": "elixir",
    "exs": "elixir",
    "fish": "fish",
    "fs": "fsharp",
    "go": "go",
    "gql": "graphql",
    "graphql": "graphql",
    "h": "c",
    "hh": "cpp",
    "hpp": "cpp",
    "hrl": "erlang",
    "hs": "haskell",
    "htm": "html",
    "html": "html",
    "hxx": "cpp",
    "ini": "ini",
    "java": "java",
    "js": "javascript",
    "json": "json",
    "jsonc": "json",
    "jsx": "jsx",
    "kt": "kotlin",
    "kts": "kotlin",
    "less": "less",
    "lhs": "haskell",
    "lua": "lua",
    "makefile": "makefile",
    "markdown": "markdown",
    "md": "markdown",
    "mjs": "javascript",
    "nim": "nim",
    "php": "php",
    "pl": "perl",
    "pm": "perl",
    "proto": "protobuf",
    "ps1": "powershell",
    "psm1": "powershell",
    "py": "python",
    "pyi": "python",
    "pyw": "python",
    "r": "r",
    "rake": "ruby",
    "rb": "ruby",
    "rs": "rust",
    "rst": "rst",
    "sass": "sass",
    "sc": "scala",
    "scala": "scala",
    "scss": "scss",
    "sh": "bash",
    "sql": "sql",
    "svelte": "svelte",
    "swift": "swift",
    "t": "perl",
    "tf": "terraform",
    "tfvars": "terraform",
    "toml": "toml",
    "ts": "typescript",
    "tsx": "tsx",
    "v": "v",
    "vue": "vue",
    "xhtml": "html",
    "xml": "xml",
    "xsl": "xml",
    "yaml": "yaml",
    "yml": "yaml",
    "zig": "zig",
    "zsh": "zsh",
}

FILENAME2LANG: dict[str, str] = {
    "brewfile": "ruby",
    "cmakelists.txt": "cmake",
    "dockerfile": "dockerfile",
    "gemfile": "ruby",
    "gnumakefile": "makefile",
    "justfile": "makefile",
    "makefile": "makefile",
    "procfile": "yaml",
    "rakefile": "ruby",
    "vagrantfile": "ruby",
}

SHEBANG2LANG: dict[str, str] = {
    "bash": "bash",
    "fish": "fish",
    "lua": "lua",
    "node": "javascript",
    "nodejs": "javascript",
    "perl": "perl",
    "php": "php",
    "pwsh": "powershell",
    "python": "python",
    "python2": "python",
    "python3": "python",
    "rscript": "r",
    "ruby": "ruby",
    "sh": "bash",
    "zsh": "zsh",
}

LANG_NAMES: dict[str, str] = {
    "bash": "Shell (bash)",
    "c": "C",
    "clojure": "Clojure",
    "cmake": "CMake",
    "cpp": "C++",
    "csharp": "C#",
    "css": "CSS",
    "dart": "Dart",
    "dockerfile": "Dockerfile",
    "dockerignore": "Docker Ignore",
    "editorconfig": "EditorConfig",
    "elixir": "Elixir",
    "erlang": "Erlang",
    "fish": "Fish",
    "fsharp": "F#",
    "gitignore": "Git Ignore",
    "go": "Go",
    "graphql": "GraphQL",
    "haskell": "Haskell",
    "html": "HTML",
    "ini": "INI",
    "java": "Java",
    "javascript": "JavaScript",
    "json": "JSON",
    "jsx": "JavaScript (JSX)",
    "kotlin": "Kotlin",
    "less": "Less",
    "lua": "Lua",
    "makefile": "Makefile",
    "markdown": "Markdown",
    "nim": "Nim",
    "perl": "Perl",
    "php": "PHP",
    "powershell": "PowerShell",
    "protobuf": "Protocol Buffers",
    "python": "Python",
    "r": "R",
    "rst": "reStructuredText",
    "ruby": "Ruby",
    "rust": "Rust",
    "sass": "Sass",
    "scala": "Scala",
    "scss": "SCSS",
    "sql": "SQL",
    "svelte": "Svelte",
    "swift": "Swift",
    "terraform": "Terraform",
    "text": "Text / other",
    "toml": "TOML",
    "tsx": "TypeScript (TSX)",
    "typescript": "TypeScript",
    "v": "V",
    "vue": "Vue",
    "xml": "XML",
    "yaml": "YAML",
    "zig": "Zig",
    "zsh": "Shell (zsh)",
}

CONFIG_FILENAMES: frozenset[str] = frozenset(
    name.lower()
    for name in (
        "package.json",
        "package-lock.json",
        "yarn.lock",
        "pnpm-lock.yaml",
        "tsconfig.json",
        "jsconfig.json",
        "webpack.config.js",
        "webpack.config.ts",
        "vite.config.js",
        "vite.config.ts",
        "vite.config.mjs",
        "rollup.config.js",
        "rollup.config.ts",
        "rollup.config.mjs",
        "babel.config.js",
        "babel.config.cjs",
        "babel.config.mjs",
        "babel.config.json",
        "jest.config.js",
        "jest.config.ts",
        "jest.config.mjs",
        "jest.config.json",
        "vitest.config.js",
        "vitest.config.ts",
        "vitest.config.mjs",
        "eslint.config.js",
        "eslint.config.mjs",
        ".eslintrc",
        ".eslintrc.js",
        ".eslintrc.json",
        "prettier.config.js",
        ".prettierrc",
        ".prettierrc.js",
        ".prettierrc.json",
        "pyproject.toml",
        "setup.py",
        "setup.cfg",
        "requirements.txt",
        "Pipfile",
        "Pipfile.lock",
        "poetry.lock",
        "tox.ini",
        "pytest.ini",
        "Cargo.toml",
        "Cargo.lock",
        "go.mod",
        "go.sum",
        "Makefile",
        "GNUmakefile",
        "CMakeLists.txt",
        "pom.xml",
        "build.gradle",
        "build.gradle.kts",
        "settings.gradle",
        "settings.gradle.kts",
        "composer.json",
        "composer.lock",
        "Gemfile",
        "Gemfile.lock",
        "Rakefile",
        "Dockerfile",
        "docker-compose.yml",
        "docker-compose.yaml",
        ".env.example",
        ".env.sample",
        "renovate.json",
        ".renovaterc",
        ".gitlab-ci.yml",
        ".travis.yml",
        "azure-pipelines.yml",
    )
)

PROSE_EXTENSIONS: frozenset[str] = frozenset({"md", "txt", "rst"})
DOCS_DIR_EXTENSIONS: frozenset[str] = frozenset({"md", "rst", "txt", "adoc", "html"})
DOC_STEMS: frozenset[str] = frozenset(
    {
        "readme",
        "changelog",
        "changes",
        "history",
        "license",
        "copying",
        "contributing",
        "authors",
        "code_of_conduct",
    },
)


def lang_display_name(lang_id: str) -> str:
    """Human readable name for a language id, falling back to the capitalized id.

    Args:
        lang_id (str): the language id, e.g. "python" or a raw extension

    Returns:
        str: the display name, e.g. "Python"
    """
    key = lang_id or "text"
    return LANG_NAMES.get(key, key[:1].upper() + key[1:])


class FileRecord(BaseModel):
    """Classified metadata for one retained file.

    Attributes:
        rel: Path relative to the analysis root, with POSIX separators.
        path: Absolute path to the file on disk.
        size: File size in bytes.
        is_text: Heuristic indicator for text files.
        ext: Lowercased extension without the dot (may be empty).
        lang_key: Language resolved by the detection cascade (empty if none).
        lang_id: Language id used for grouping and fences.
        lang_name: Human readable language name.
        role: The single role assigned to the file.
        is_config: Whether the file is a build / package / CI manifest.
        is_entry: Whether the path looks like a program entrypoint.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    rel: str = Field(..., description="File path relative to the analysis root")
    path: Path = Field(..., description="Absolute file path")
    size: int = Field(..., ge=0, description="File size in bytes")
    is_text: bool = Field(..., description="Heuristic text/binary flag")
    ext: str = Field("", description="Lowercased extension without dot")
    lang_key: str = Field("", description="Resolved language, empty when unresolved")
    lang_id: str = Field(..., description="Language id")
    lang_name: str = Field(..., description="Language display name")
    role: Role = Field(..., description="File role")
    is_config: bool = Field(default=False, description="Build/package/CI manifest")
    is_entry: bool = Field(default=False, description="Probable entrypoint")

    def is_too_big(self, max_bytes: int) -> bool:
        """Determine if the file exceeds the per-file byte ceiling."""
        return self.size > max_bytes
