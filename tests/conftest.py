"""Shared test fixtures for the sandbox verifier.

Provides settings, boundaries and a real symlinked sandbox tree used
across unit and integration tests.
"""

import os
from collections.abc import Generator
from dataclasses import dataclass
from pathlib import Path

import pytest

from sandbox_verifier.boundary import Boundary, resolve_boundary
from sandbox_verifier.probes.base import ProbeContext
from sandbox_verifier.settings import Settings, get_settings

# =============================================================================
# ENVIRONMENT
# =============================================================================


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> Generator[None, None, None]:
    """Run every test without an ambient source-tree signal or overrides."""
    monkeypatch.delenv("BUILD_WORKSPACE_DIRECTORY", raising=False)
    for key in list(os.environ):
        if key.startswith("SANDBOX_VERIFY_"):
            monkeypatch.delenv(key, raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# =============================================================================
# SETTINGS
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Provide settings with safe defaults and no .env file."""
    return Settings(_env_file=None, probe_timeout_seconds=5.0)


# =============================================================================
# BOUNDARIES
# =============================================================================


@pytest.fixture
def run_boundary() -> Boundary:
    """Run-mode boundary with a fixed source tree."""
    return resolve_boundary("/home/user/src")


@pytest.fixture
def test_boundary() -> Boundary:
    """Test-mode boundary using the runfiles landmark only."""
    return resolve_boundary(None, landmarks=(".runfiles/",))


@pytest.fixture
def make_context():
    """Factory for probe contexts."""

    def _make(boundary: Boundary | None = None, **kwargs) -> ProbeContext:
        return ProbeContext(boundary=boundary or resolve_boundary(None), **kwargs)

    return _make


# =============================================================================
# SYMLINKED SANDBOX
# =============================================================================


@dataclass
class SandboxTree:
    """A source tree and a runfiles-style sandbox of symlinks into it."""

    source: Path  # real files
    sandbox: Path  # real directories, files symlinked into source
    linked: Path  # sandbox directory that is itself a symlink into source

    def sandboxed(self, name: str) -> Path:
        return self.sandbox / name

    def real(self, name: str) -> Path:
        return self.source / "proj" / name


@pytest.fixture
def sandbox_tree(tmp_path: Path) -> SandboxTree:
    """Build a source tree plus a symlink-farm sandbox under tmp_path.

    Layout:
        src/proj/{entry,dep,plugin}.py
        exec/root/bin.runfiles/_main/proj/{entry,dep,plugin}.py -> src/proj/...
        exec/root/linked.runfiles/_main/proj -> src/proj
    """
    base = Path(os.path.realpath(tmp_path))
    source = base / "src"
    project = source / "proj"
    project.mkdir(parents=True)
    (project / "entry.py").write_text("ENTRY = __file__\n", encoding="utf-8")
    (project / "dep.py").write_text("DEP = __file__\n", encoding="utf-8")
    (project / "plugin.py").write_text(
        "from pathlib import Path\n\nPLUGIN_URL = Path(__file__).absolute().as_uri()\n",
        encoding="utf-8",
    )

    sandbox = base / "exec" / "root" / "bin.runfiles" / "_main" / "proj"
    sandbox.mkdir(parents=True)
    for name in ("entry.py", "dep.py", "plugin.py"):
        (sandbox / name).symlink_to(project / name)

    linked_parent = base / "exec" / "root" / "linked.runfiles" / "_main"
    linked_parent.mkdir(parents=True)
    linked = linked_parent / "proj"
    linked.symlink_to(project, target_is_directory=True)

    return SandboxTree(source=source, sandbox=sandbox, linked=linked)


# =============================================================================
# MARKERS
# =============================================================================


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "unit: Unit tests (fast, isolated)")
    config.addinivalue_line("markers", "integration: Integration tests (real filesystem and subprocesses)")
