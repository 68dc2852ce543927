"""Error taxonomy shared by the build pipeline and the dev server."""

from __future__ import annotations

from pathlib import Path
from typing import List, Sequence


class TypsiteError(Exception):
    """Base class for errors raised by typsite."""


class IoError(TypsiteError):
    """A filesystem operation on ``path`` failed."""

    def __init__(self, path: Path, cause: OSError) -> None:
        self.path = Path(path)
        self.cause = cause
        super().__init__(f"IO error at {self.path}: {cause}")


class _DiagnosticError(TypsiteError):
    stage = "compilation"

    def __init__(self, path: Path, diagnostics: Sequence[str]) -> None:
        self.path = Path(path)
        self.diagnostics: List[str] = list(diagnostics)
        super().__init__(
            f"{self.stage} failed for {self.path}:\n{format_diagnostics(self.diagnostics)}"
        )


class CompileError(_DiagnosticError):
    """The Typst source failed to compile."""

    stage = "typst compilation"


class ExportError(_DiagnosticError):
    """A compiled document could not be exported to HTML."""

    stage = "HTML export"


class NoRootFound(TypsiteError):
    """No directory containing ``content/`` was found above the start path."""

    def __init__(self, start: Path | None = None) -> None:
        self.start = start
        message = "no content/ directory found"
        if start is not None:
            message += f" in {start} or any parent directory"
        super().__init__(message)


def format_diagnostics(diagnostics: Sequence[str]) -> str:
    return "\n".join(f"  - {diagnostic}" for diagnostic in diagnostics)


__all__ = [
    "CompileError",
    "ExportError",
    "IoError",
    "NoRootFound",
    "TypsiteError",
    "format_diagnostics",
]
