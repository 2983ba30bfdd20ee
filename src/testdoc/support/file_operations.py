"""
Safe file I/O operations.
"""
from pathlib import Path


def write_document(path: Path, content: str) -> None:
    """Write content to file, replacing it and creating parent directories if needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        f.write(content)


def append_document(path: Path, content: str) -> None:
    """Append content to file, creating it (and its parents) when missing."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.write(content)
