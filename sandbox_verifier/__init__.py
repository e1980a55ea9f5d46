"""Sandbox boundary verifier.

Detects path resolution that escapes a symlinked sandbox into the real
source tree. A run resolves the boundary once, exercises each resolution
strategy in order, classifies every observed path and aggregates the
result into a verdict.

Usage:
    from sandbox_verifier import boundary_from_environment, get_scenario, run_scenario

    verdict = run_scenario(get_scenario("dirname-escape"), boundary_from_environment())
    raise SystemExit(verdict.exit_code)
"""

from sandbox_verifier.boundary import (
    Boundary,
    ExecutionMode,
    boundary_from_environment,
    resolve_boundary,
)
from sandbox_verifier.classifier import Classification, ClassifiedPath, classify, classify_all
from sandbox_verifier.exceptions import (
    BoundaryUndetermined,
    ClassificationAmbiguous,
    ConfigurationError,
    ProbeUnavailable,
    VerifierError,
)
from sandbox_verifier.probes import ObservedPath, PathOrigin, ProbeContext, Strategy
from sandbox_verifier.scenario import Scenario, run_probes, run_scenario, run_scenarios
from sandbox_verifier.scenarios import get_scenario, list_scenarios
from sandbox_verifier.verdict import EvidenceEntry, Outcome, ScenarioVerdict, aggregate

__version__ = "0.1.0"

__all__ = [
    # Boundary
    "Boundary",
    "ExecutionMode",
    "boundary_from_environment",
    "resolve_boundary",
    # Probes
    "ObservedPath",
    "PathOrigin",
    "ProbeContext",
    "Strategy",
    # Classification
    "Classification",
    "ClassifiedPath",
    "classify",
    "classify_all",
    # Verdict
    "EvidenceEntry",
    "Outcome",
    "ScenarioVerdict",
    "aggregate",
    # Scenarios
    "Scenario",
    "get_scenario",
    "list_scenarios",
    "run_probes",
    "run_scenario",
    "run_scenarios",
    # Errors
    "BoundaryUndetermined",
    "ClassificationAmbiguous",
    "ConfigurationError",
    "ProbeUnavailable",
    "VerifierError",
]
