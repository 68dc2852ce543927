"""Starter files for `typsite init`."""

from __future__ import annotations

from pathlib import Path
from typing import List

from .errors import IoError

INDEX_CONTENT = """
= Welcome to typsite!
This is your first page. Edit `content/index.typ` to change this content.

== Adding More Pages
Create new `.typ` files in the `content/` directory. For example,
`content/about.typ` will be available at `/about.html`, and
`content/blog/_index.typ` at `/blog/`.

== Styling
Edit the default styles in `static/style.css`. Everything under `static/` is
copied into the site as-is.

== Development Mode
Run `typsite dev` and the page reloads automatically whenever you save a file
under `content/`, `static/` or `lib/`.
"""

STYLE_CONTENT = """
body {
    font-family: system-ui, sans-serif;
    max-width: 42rem;
    margin: 3rem auto;
    padding: 0 1rem;
    line-height: 1.6;
    color: #333;
}
h1, h2, h3 {
    font-weight: 600;
    color: #111;
}
a {
    color: #0077cc;
    text-decoration: none;
}
a:hover {
    text-decoration: underline;
}
"""

_STARTER_FILES = {
    Path("content") / "index.typ": INDEX_CONTENT,
    Path("static") / "style.css": STYLE_CONTENT,
}


def init_project(directory: Path) -> List[Path]:
    """Create a new project in ``directory``. Return the files written."""
    directory = directory.expanduser().resolve()
    existing = [directory / rel for rel in _STARTER_FILES if (directory / rel).exists()]
    if existing:
        raise FileExistsError(
            f"{existing[0]} already exists; refusing to overwrite an existing project"
        )

    written: List[Path] = []
    for rel, content in _STARTER_FILES.items():
        path = directory / rel
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        except OSError as exc:
            raise IoError(path, exc) from exc
        written.append(path)
    return written


__all__ = ["init_project"]
