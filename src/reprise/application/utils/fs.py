import os
import tempfile
from collections.abc import Iterator
from pathlib import Path

IGNORED_DIRS = {".git", ".obsidian", ".trash", ".reprise", "node_modules"}


def atomic_write_text(path: Path, text: str) -> None:
    """Write via a sibling temp file and rename, so readers never see a partial file."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def iter_markdown_files(root: Path) -> Iterator[Path]:
    """Yield markdown files under `root` (or `root` itself if it is a file), sorted."""
    if root.is_file():
        if root.suffix.lower() == ".md":
            yield root
        return
    if not root.is_dir():
        return

    for path in sorted(root.rglob("*.md")):
        if any(part in IGNORED_DIRS for part in path.relative_to(root).parts):
            continue
        if path.is_file():
            yield path
