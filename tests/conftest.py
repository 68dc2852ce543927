from __future__ import annotations

from pathlib import Path

import pytest

from tests._fixtures.site_builder import FakeCompiler, SiteBuilder
from typsite.orchestrator import Orchestrator


@pytest.fixture
def site(tmp_path: Path) -> SiteBuilder:
    """Provide a project skeleton rooted at the pytest tmp_path."""
    return SiteBuilder(tmp_path)


@pytest.fixture
def fake_compiler() -> FakeCompiler:
    return FakeCompiler()


@pytest.fixture
def orchestrator(fake_compiler: FakeCompiler) -> Orchestrator:
    return Orchestrator(compiler=fake_compiler)
