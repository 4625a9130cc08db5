from __future__ import annotations

from pathlib import Path


JPEG_EXTS = {".jpg", ".jpeg", ".jpe"}


def is_jpeg(path: Path) -> bool:
    return path.suffix.lower() in JPEG_EXTS


def find_jpegs(root: Path) -> list[Path]:
    """
    All JPEG files under `root` (recursively), sorted by path.
    Hidden files such as macOS "._" resource forks are skipped.
    """
    return sorted(
        p for p in root.rglob("*") if p.is_file() and is_jpeg(p) and not p.name.startswith(".")
    )
