"""Core data models shared across typsite components."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List


@dataclass(frozen=True)
class SourceFile:
    """A source document discovered during a build pass."""

    path: Path
    relative: Path
    extension: str


@dataclass(frozen=True)
class BuildTarget:
    """Maps one source file to the HTML file it produces."""

    source: SourceFile
    output: Path


@dataclass
class BuildFailure:
    """A file (or the output directory) that could not be produced."""

    path: Path
    error: Exception

    def __str__(self) -> str:
        return str(self.error)


@dataclass
class BuildReport:
    """Outcome of one build pass."""

    successes: List[Path] = field(default_factory=list)
    failures: List[BuildFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def processed(self) -> int:
        return len(self.successes) + len(self.failures)


@dataclass(frozen=True)
class ChangeEvent:
    """A filesystem notification from a watched directory."""

    path: str
    kind: str


@dataclass(frozen=True)
class ReloadSignal:
    """Published after a build pass: the served output changed."""


RELOAD = ReloadSignal()
