"""Adapter around the Typst compiler."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Protocol, Sequence

from .errors import CompileError, ExportError, IoError
from .logging import get_logger

# Notices the Typst HTML backend emits for nearly every document.
SUPPRESSED_WARNINGS = (
    "html export is under active development",
    "was ignored during HTML export",
)


@dataclass
class Diagnostic:
    """A compiler message with optional hints."""

    message: str
    hints: List[str] = field(default_factory=list)

    def render(self) -> str:
        text = self.message
        for hint in self.hints:
            text += f" (hint: {hint})"
        return text


@dataclass
class CompileResult:
    html: str
    warnings: List[Diagnostic] = field(default_factory=list)


class CompilationFailed(Exception):
    """Raised by compiler backends with the fatal diagnostics of a run."""

    def __init__(self, diagnostics: Sequence[Diagnostic], *, stage: str = "compile") -> None:
        self.diagnostics = list(diagnostics)
        self.stage = stage
        super().__init__("; ".join(d.render() for d in self.diagnostics))


class Compiler(Protocol):
    def compile(self, source: str, root: Path) -> CompileResult:
        """Compile Typst ``source`` to HTML, resolving imports against ``root``."""
        ...


class TypstCompiler:
    """Compiles Typst sources to HTML with the ``typst`` Python bindings."""

    def compile(self, source: str, root: Path) -> CompileResult:
        import typst

        try:
            output, raw_warnings = typst.compile_with_warnings(
                source.encode("utf-8"),
                root=str(root),
                format="html",
            )
        except typst.TypstError as exc:
            raise CompilationFailed([_diagnostic_from(exc)]) from exc

        try:
            html = output.decode("utf-8") if isinstance(output, bytes) else str(output)
        except UnicodeDecodeError as exc:
            raise CompilationFailed(
                [Diagnostic(f"HTML output is not valid UTF-8: {exc}")], stage="export"
            ) from exc
        return CompileResult(
            html=html,
            warnings=[_diagnostic_from(warning) for warning in raw_warnings],
        )


class CompilerAdapter:
    """Turns a source file into HTML text, mapping compiler failures to typsite errors."""

    def __init__(self, compiler: Compiler | None = None) -> None:
        self.compiler = compiler or TypstCompiler()
        self.logger = get_logger("compiler")

    def compile_file(self, path: Path, root: Path) -> str:
        try:
            source = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise IoError(path, exc) from exc

        try:
            result = self.compiler.compile(source, root)
        except CompilationFailed as exc:
            diagnostics = [diagnostic.render() for diagnostic in exc.diagnostics]
            if exc.stage == "export":
                raise ExportError(path, diagnostics) from exc
            raise CompileError(path, diagnostics) from exc

        for warning in result.warnings:
            if _is_suppressed(warning):
                continue
            self.logger.warning("%s: %s", path, warning.render())
        return result.html


def _is_suppressed(warning: Diagnostic) -> bool:
    return any(marker in warning.message for marker in SUPPRESSED_WARNINGS)


def _diagnostic_from(raw: object) -> Diagnostic:
    message = getattr(raw, "message", None) or str(raw)
    hints = getattr(raw, "hints", None) or []
    return Diagnostic(message=str(message), hints=[str(hint) for hint in hints])


__all__ = [
    "CompilationFailed",
    "CompileResult",
    "Compiler",
    "CompilerAdapter",
    "Diagnostic",
    "SUPPRESSED_WARNINGS",
    "TypstCompiler",
]
