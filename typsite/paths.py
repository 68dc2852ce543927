"""Source discovery, output-path mapping and project root lookup."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator, List

from .errors import NoRootFound
from .models import BuildTarget, SourceFile

INDEX_STEM = "_index"

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    "__pycache__",
}


def find_root(start: Path | None = None, *, marker: str = "content") -> Path:
    """Walk up from ``start`` to the first directory containing ``marker``."""
    current = (start or Path.cwd()).expanduser().resolve()
    for candidate in (current, *current.parents):
        if (candidate / marker).is_dir():
            return candidate
    raise NoRootFound(current)


def discover_sources(content_dir: Path, extension: str) -> List[SourceFile]:
    """Return every source file under ``content_dir`` with the given extension, sorted."""
    suffix = f".{extension.lstrip('.')}"
    sources = [
        SourceFile(
            path=path,
            relative=path.relative_to(content_dir),
            extension=suffix,
        )
        for path in _iter_files(content_dir)
        if path.suffix == suffix
    ]
    sources.sort(key=lambda source: source.relative.as_posix())
    return sources


def output_path_for(relative: Path, output_dir: Path) -> Path:
    """Apply the index rule: ``D/_index.ext`` -> ``D/index.html``, else ``.ext`` -> ``.html``."""
    if relative.stem == INDEX_STEM:
        return output_dir / relative.parent / "index.html"
    return output_dir / relative.with_suffix(".html")


def build_target(source: SourceFile, output_dir: Path) -> BuildTarget:
    return BuildTarget(source=source, output=output_path_for(source.relative, output_dir))


def _iter_files(root: Path) -> Iterator[Path]:
    if not root.is_dir():
        return
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(name for name in dirnames if name not in _EXCLUDED_DIRS)
        current_dir = Path(dirpath)
        for filename in sorted(filenames):
            yield current_dir / filename


__all__ = [
    "INDEX_STEM",
    "build_target",
    "discover_sources",
    "find_root",
    "output_path_for",
]
