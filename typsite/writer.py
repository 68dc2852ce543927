"""Filesystem writes for the output tree."""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import List

from .errors import IoError


def reset_dir(path: Path) -> None:
    """Delete ``path`` if present and recreate it empty."""
    if path.exists():
        try:
            shutil.rmtree(path)
        except OSError as exc:
            raise IoError(path, exc) from exc
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IoError(path, exc) from exc


def ensure_parent(path: Path) -> None:
    parent = path.parent
    try:
        parent.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise IoError(parent, exc) from exc


def write_text(path: Path, content: str) -> Path:
    """Write ``content`` to ``path``, creating parent directories first."""
    ensure_parent(path)
    try:
        path.write_text(content, encoding="utf-8")
    except OSError as exc:
        raise IoError(path, exc) from exc
    return path


def copy_tree(src_dir: Path, dest_dir: Path) -> List[Path]:
    """Copy every file under ``src_dir`` into ``dest_dir``. Return the copied paths.

    Stops at the first failing entry; files copied before it stay in place.
    """
    copied: List[Path] = []
    for src in sorted(src_dir.rglob("*")):
        rel = src.relative_to(src_dir)
        dst = dest_dir / rel
        if src.is_dir():
            try:
                dst.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                raise IoError(dst, exc) from exc
            continue
        ensure_parent(dst)
        try:
            shutil.copy2(src, dst)
        except OSError as exc:
            raise IoError(dst, exc) from exc
        copied.append(dst)
    return copied


__all__ = ["copy_tree", "ensure_parent", "reset_dir", "write_text"]
