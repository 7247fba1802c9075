"""Static project structure analysis."""

from __future__ import annotations

from pathlib import Path

DEPENDENCY_DIRS = frozenset({"node_modules", "__pycache__", "venv", "site-packages"})

MAIN_FEATURES = """- GitHub repository integration
- AI-powered chat interface
- Vector store for efficient code search
- API routes for various functionalities
- Admin tools for database management"""


def render_tree(root: Path, max_depth: int = 2) -> str:
    """Indented listing of ``root`` down to ``max_depth`` levels below it."""
    lines: list[str] = []
    _walk(root, 0, max_depth, lines)
    return "".join(lines)


def _walk(directory: Path, level: int, max_depth: int, lines: list[str]) -> None:
    if level > max_depth:
        return
    try:
        entries = sorted(directory.iterdir(), key=lambda entry: entry.name)
    except OSError:
        return
    indent = "  " * level
    for entry in entries:
        if entry.name.startswith(".") or entry.name in DEPENDENCY_DIRS:
            continue
        if entry.is_dir():
            lines.append(f"{indent}- {entry.name}/\n")
            _walk(entry, level + 1, max_depth, lines)
        else:
            lines.append(f"{indent}- {entry.name}\n")


def analyze_project(question: str, root: Path, max_depth: int = 2) -> str:
    return (
        f"Code analysis for: {question}\n"
        "\n"
        "Project Structure:\n"
        f"{render_tree(root, max_depth)}\n"
        "Main Features:\n"
        f"{MAIN_FEATURES}\n"
        "\n"
        "Complexity: Medium (estimated)\n"
        "Architecture: FastAPI application with API routes"
    )


__all__ = ["render_tree", "analyze_project", "MAIN_FEATURES", "DEPENDENCY_DIRS"]
