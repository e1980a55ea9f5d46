"""Verdict aggregation.

Folds per-path classifications into one scenario outcome. A single
escaped path is enough to reproduce the bug; indeterminate entries are
surfaced as warnings but never decide the outcome on their own.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sandbox_verifier.boundary import Boundary, ExecutionMode
from sandbox_verifier.classifier import Classification, ClassifiedPath


class Outcome(StrEnum):
    """Scenario-level result."""

    BUG_REPRODUCED = "bug_reproduced"
    NO_ESCAPE = "no_escape"


class EvidenceEntry(BaseModel):
    """One classified observation as it appears in a verdict."""

    model_config = ConfigDict(frozen=True)

    strategy: str = Field(..., description="Strategy that produced the path")
    label: str = Field(default="", description="What was probed")
    path: str | None = Field(default=None, description="Observed path, None if unusable")
    origin: str = Field(..., description="How the path was obtained")
    classification: Classification
    evidence: str = Field(..., description="Why the classification was made")
    matched: str | None = Field(default=None, description="Deciding boundary or landmark")
    detail: str = Field(default="", description="Extra probe context")
    notes: tuple[str, ...] = Field(
        default=(),
        description="Advisories that do not affect classification",
    )

    @classmethod
    def from_classified(cls, item: ClassifiedPath) -> EvidenceEntry:
        observed = item.observed
        return cls(
            strategy=str(observed.strategy),
            label=observed.label,
            path=observed.path,
            origin=str(observed.origin),
            classification=item.classification,
            evidence=item.evidence,
            matched=item.matched,
            detail=observed.detail,
            notes=observed.notes,
        )


class ScenarioVerdict(BaseModel):
    """Immutable result of one scenario run.

    Entries keep probe invocation order so repeated runs render
    identically.
    """

    model_config = ConfigDict(frozen=True)

    scenario: str
    mode: ExecutionMode
    boundary: str = Field(..., description="Human-readable boundary description")
    outcome: Outcome
    entries: tuple[EvidenceEntry, ...] = ()

    @model_validator(mode="after")
    def _outcome_matches_entries(self) -> ScenarioVerdict:
        has_escape = any(e.classification is Classification.ESCAPED for e in self.entries)
        if self.outcome is Outcome.BUG_REPRODUCED and not has_escape:
            raise ValueError("bug_reproduced verdict requires at least one escaped entry")
        if self.outcome is Outcome.NO_ESCAPE and has_escape:
            raise ValueError("no_escape verdict cannot contain escaped entries")
        return self

    @property
    def escaped(self) -> list[EvidenceEntry]:
        return [e for e in self.entries if e.classification is Classification.ESCAPED]

    @property
    def indeterminate(self) -> list[EvidenceEntry]:
        return [e for e in self.entries if e.classification is Classification.INDETERMINATE]

    @property
    def has_warnings(self) -> bool:
        return bool(self.indeterminate)

    @property
    def offending_strategies(self) -> list[str]:
        """Strategies with at least one escaped path, first occurrence order."""
        return list(dict.fromkeys(e.strategy for e in self.escaped))

    @property
    def exit_code(self) -> int:
        """Process exit code: 1 when the bug reproduced, else 0."""
        return 1 if self.outcome is Outcome.BUG_REPRODUCED else 0


def aggregate(
    classified: Iterable[ClassifiedPath],
    *,
    scenario: str,
    boundary: Boundary,
) -> ScenarioVerdict:
    """Combine classifications into a scenario verdict.

    Args:
        classified: Classifications in probe invocation order
        scenario: Scenario name
        boundary: Boundary the paths were classified against

    Returns:
        BUG_REPRODUCED if any entry escaped, otherwise NO_ESCAPE
    """
    entries = tuple(EvidenceEntry.from_classified(item) for item in classified)
    escaped = any(e.classification is Classification.ESCAPED for e in entries)
    return ScenarioVerdict(
        scenario=scenario,
        mode=boundary.mode,
        boundary=boundary.describe(),
        outcome=Outcome.BUG_REPRODUCED if escaped else Outcome.NO_ESCAPE,
        entries=entries,
    )


__all__ = ["EvidenceEntry", "Outcome", "ScenarioVerdict", "aggregate"]
