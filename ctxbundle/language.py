"""
Language detection for fenced code blocks in the context document.
"""

import os


# ── Extension → fence tag mapping ──

EXTENSION_MAP = {
    ".py": "python",
    ".pyi": "python",
    ".js": "javascript",
    ".mjs": "javascript",
    ".cjs": "javascript",
    ".jsx": "jsx",
    ".ts": "typescript",
    ".tsx": "tsx",
    ".html": "html",
    ".htm": "html",
    ".css": "css",
    ".scss": "scss",
    ".less": "less",
    ".json": "json",
    ".vue": "vue",
    ".svelte": "svelte",
    ".go": "go",
    ".rs": "rust",
    ".java": "java",
    ".kt": "kotlin",
    ".scala": "scala",
    ".rb": "ruby",
    ".php": "php",
    ".cs": "csharp",
    ".c": "c",
    ".h": "cpp",
    ".cpp": "cpp",
    ".hpp": "cpp",
    ".swift": "swift",
    ".lua": "lua",
    ".r": "r",
    ".sh": "bash",
    ".bash": "bash",
    ".zsh": "bash",
    ".bat": "batch",
    ".ps1": "powershell",
    ".sql": "sql",
    ".graphql": "graphql",
    ".yaml": "yaml",
    ".yml": "yaml",
    ".toml": "toml",
    ".ini": "ini",
    ".xml": "xml",
    ".md": "markdown",
    ".txt": "text",
    ".dockerfile": "dockerfile",
}

# Files recognised by their full name rather than extension
FILENAME_MAP = {
    "dockerfile": "dockerfile",
    "makefile": "makefile",
}


def fence_language(path: str) -> str:
    """Return the fence tag for *path*, or ``""`` when unknown."""
    name = os.path.basename(path.replace("\\", "/"))
    by_name = FILENAME_MAP.get(name.lower())
    if by_name:
        return by_name
    _, ext = os.path.splitext(name)
    return EXTENSION_MAP.get(ext.lower(), "")
