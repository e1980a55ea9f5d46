"""Built-in scenarios.

One scenario per observed failure mode. All of them probe the fixture
modules under ``sandbox_verifier/fixtures``, so running the verifier
from inside a sandbox checks how that sandbox's copy of the fixtures
resolves.
"""

from __future__ import annotations

import importlib
import os
from collections.abc import Callable

from sandbox_verifier.probes import (
    CwdCanonicalizationProbe,
    DynamicImportProbe,
    ExternalToolProbe,
    ImportTracer,
    SelfIdentityProbe,
    ShellRealpathProbe,
    StaticImportProbe,
)
from sandbox_verifier.scenario import Scenario

# Lexical location only; resolving it here would hide the escapes under test
FIXTURES_DIR = os.path.join(os.path.dirname(os.path.abspath(__file__)), "fixtures")
FIXTURES_PACKAGE = "sandbox_verifier.fixtures"


# =============================================================================
# SCENARIO BUILDERS
# =============================================================================


def _dirname_escape() -> Scenario:
    """Module directory and canonical cwd, the inputs of root discovery."""
    return Scenario(
        name="dirname-escape",
        description="Module directory derived from its URL, and realpath(cwd)",
        probes=(
            SelfIdentityProbe(module=f"{FIXTURES_PACKAGE}.entry"),
            CwdCanonicalizationProbe(),
        ),
        issues=("aspect-build/rules_js#1669",),
    )


def _static_import() -> Scenario:
    """Entry module and its statically imported dependency."""
    return Scenario(
        name="static-import",
        description="Loader-assigned paths of an entry module and its static dependency",
        probes=(
            SelfIdentityProbe(module=f"{FIXTURES_PACKAGE}.entry"),
            StaticImportProbe(f"{FIXTURES_PACKAGE}.dep"),
        ),
        issues=("aspect-build/rules_js#362",),
    )


def _dynamic_import() -> Scenario:
    """Plugin loaded by path at runtime, as plugin systems and test runners do.

    The plugin path is the one the runner module computes from its own
    location, so the check sees exactly what a runner would load.
    """
    runner = importlib.import_module(f"{FIXTURES_PACKAGE}.runner")
    return Scenario(
        name="dynamic-import",
        description="Runner directory and a plugin loaded by file path at runtime",
        probes=(
            SelfIdentityProbe(module=f"{FIXTURES_PACKAGE}.runner"),
            DynamicImportProbe(runner.PLUGIN_PATH),
        ),
        issues=("aspect-build/rules_js#353", "aspect-build/rules_js#915"),
    )


def _project_root() -> Scenario:
    """Project root as dev servers compute it, checked against ground truth."""
    return Scenario(
        name="project-root",
        description="Config directory, realpath(cwd) and out-of-process realpath of cwd",
        probes=(
            SelfIdentityProbe(module=f"{FIXTURES_PACKAGE}.entry"),
            CwdCanonicalizationProbe(),
            ShellRealpathProbe(),
        ),
        issues=("aspect-build/rules_js#1669",),
    )


def _bundler() -> Scenario:
    """Files an embedded tool loads while processing an entry point."""
    return Scenario(
        name="bundler",
        description="Paths the import system resolves while a tool loads an app",
        probes=(
            ExternalToolProbe(
                ImportTracer(),
                [os.path.join(FIXTURES_DIR, "bundle", "app.py")],
            ),
        ),
    )


def _test_runner() -> Scenario:
    """Test runner that switches to its config directory before loading files."""
    return Scenario(
        name="test-runner",
        description="Runner root, realpath(cwd), then tool loads from the runner directory",
        probes=(
            SelfIdentityProbe(module=f"{FIXTURES_PACKAGE}.entry"),
            CwdCanonicalizationProbe(),
            # Deliberate cwd change, scoped to this probe
            ExternalToolProbe(
                ImportTracer(),
                [os.path.join(FIXTURES_DIR, "bundle", "app.py")],
                workdir=FIXTURES_DIR,
            ),
        ),
        issues=("aspect-build/rules_js#979",),
    )


# Scenario registry, in declaration order
_SCENARIOS: dict[str, Callable[[], Scenario]] = {
    "dirname-escape": _dirname_escape,
    "static-import": _static_import,
    "dynamic-import": _dynamic_import,
    "project-root": _project_root,
    "bundler": _bundler,
    "test-runner": _test_runner,
}


def list_scenarios() -> list[str]:
    """Names of the built-in scenarios in declaration order."""
    return list(_SCENARIOS)


def get_scenario(name: str) -> Scenario:
    """Build a built-in scenario by name.

    Args:
        name: Scenario name

    Returns:
        Freshly built Scenario

    Raises:
        ValueError: If the scenario name is unknown
    """
    if name not in _SCENARIOS:
        available = ", ".join(_SCENARIOS)
        msg = f"Unknown scenario '{name}'. Available: {available}"
        raise ValueError(msg)

    return _SCENARIOS[name]()


def get_all_scenarios() -> list[Scenario]:
    """Build every built-in scenario."""
    return [build() for build in _SCENARIOS.values()]


__all__ = [
    "FIXTURES_DIR",
    "FIXTURES_PACKAGE",
    "get_all_scenarios",
    "get_scenario",
    "list_scenarios",
]
