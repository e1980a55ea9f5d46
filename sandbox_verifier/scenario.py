"""Scenario runner.

Runs a scenario's probes strictly in declaration order, classifies every
observation and aggregates the result. Later probes may depend on side
effects of earlier ones, so nothing here runs in parallel. Each run owns
its boundary, observations and verdict; nothing is shared across runs.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from sandbox_verifier.boundary import Boundary
from sandbox_verifier.classifier import Classification, ClassifiedPath, classify
from sandbox_verifier.exceptions import ProbeUnavailable
from sandbox_verifier.probes.base import (
    ObservedPath,
    PathOrigin,
    ProbeContext,
    ResolutionProbe,
    Strategy,
    as_observations,
)
from sandbox_verifier.settings import Settings, get_settings
from sandbox_verifier.verdict import ScenarioVerdict, aggregate

logger = logging.getLogger(__name__)

# Origin recorded when a probe fails before producing anything
_UNAVAILABLE_ORIGINS: dict[Strategy, PathOrigin] = {
    Strategy.SELF_IDENTITY: PathOrigin.MODULE_URL,
    Strategy.CWD_CANONICALIZATION: PathOrigin.OS_CANONICALIZE,
    Strategy.STATIC_IMPORT: PathOrigin.MODULE_LOADER,
    Strategy.DYNAMIC_IMPORT: PathOrigin.MODULE_LOADER,
    Strategy.EXTERNAL_TOOL: PathOrigin.TOOL_INTERNAL,
    Strategy.SHELL_REALPATH: PathOrigin.SHELL_SUBPROCESS,
}


@dataclass(frozen=True, slots=True)
class Scenario:
    """A named, ordered list of probes.

    Attributes:
        name: Scenario identifier
        description: One-line summary of the failure mode
        probes: Probes in the order they must run
        issues: Upstream issue references shown in reports
    """

    name: str
    description: str
    probes: tuple[ResolutionProbe, ...]
    issues: tuple[str, ...] = field(default_factory=tuple)


def _run_probe(probe: ResolutionProbe, context: ProbeContext) -> tuple[ObservedPath, ...]:
    try:
        return as_observations(probe.probe(context))
    except ProbeUnavailable as e:
        logger.warning("%s probe unavailable: %s", probe.strategy, e)
        origin = _UNAVAILABLE_ORIGINS.get(probe.strategy, PathOrigin.SUPPLIED)
        return (ObservedPath.unavailable(probe.strategy, origin, str(e)),)


def run_probes(
    probes: Iterable[ResolutionProbe],
    boundary: Boundary,
    *,
    settings: Settings | None = None,
) -> list[ClassifiedPath]:
    """Run probes in order and classify each observation.

    Args:
        probes: Probes in invocation order
        boundary: Boundary of this run
        settings: Settings supplying subprocess timeout and oracle command

    Returns:
        Classifications in invocation order
    """
    settings = settings or get_settings()
    observed: tuple[ObservedPath, ...] = ()
    classified: list[ClassifiedPath] = []

    for probe in probes:
        context = ProbeContext(
            boundary=boundary,
            timeout=settings.probe_timeout_seconds,
            realpath_command=settings.realpath_command,
            observed=observed,
        )
        results = _run_probe(probe, context)
        observed = observed + results
        for item in results:
            result = classify(boundary, item)
            if result.classification is Classification.ESCAPED:
                logger.warning("ESCAPED %s", result.evidence)
            elif result.classification is Classification.INDETERMINATE:
                logger.warning("INDETERMINATE %s", result.evidence)
            classified.append(result)

    return classified


def run_scenario(
    scenario: Scenario,
    boundary: Boundary,
    *,
    settings: Settings | None = None,
) -> ScenarioVerdict:
    """Run one scenario and return its verdict."""
    logger.info("Running scenario %s against %s", scenario.name, boundary.describe())
    classified = run_probes(scenario.probes, boundary, settings=settings)
    verdict = aggregate(classified, scenario=scenario.name, boundary=boundary)
    logger.info(
        "Scenario %s: %s (%d path(s), %d escaped, %d indeterminate)",
        scenario.name,
        verdict.outcome,
        len(verdict.entries),
        len(verdict.escaped),
        len(verdict.indeterminate),
    )
    return verdict


def run_scenarios(
    scenarios: Sequence[Scenario],
    boundary: Boundary,
    *,
    settings: Settings | None = None,
) -> list[ScenarioVerdict]:
    """Run scenarios one after another, returning verdicts in order."""
    return [run_scenario(s, boundary, settings=settings) for s in scenarios]
