"""Escape classification.

Decides, for one observed path, whether it stayed inside the sandbox.
Run mode: a path escaped iff it equals or descends from the source tree.
Test mode: a path escaped iff none of the landmarks appear in it.
Descendancy is decided component by component, so ``/src2/file`` is not
inside ``/src``.
"""

from __future__ import annotations

import os
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from pathlib import PurePath

from sandbox_verifier.boundary import Boundary, ExecutionMode, normalize_path
from sandbox_verifier.exceptions import ClassificationAmbiguous
from sandbox_verifier.probes.base import ObservedPath


class Classification(StrEnum):
    """Outcome of comparing one path to the boundary."""

    CONTAINED = "contained"
    ESCAPED = "escaped"
    INDETERMINATE = "indeterminate"


@dataclass(frozen=True, slots=True)
class ClassifiedPath:
    """An observation together with the decision and its evidence.

    Attributes:
        observed: The classified observation
        classification: CONTAINED, ESCAPED or INDETERMINATE
        evidence: Why the decision was made
        matched: Boundary directory or landmark that decided, if any
    """

    observed: ObservedPath
    classification: Classification
    evidence: str
    matched: str | None = None

    def __post_init__(self) -> None:
        if self.classification is Classification.ESCAPED and not self.evidence.strip():
            raise ValueError("an escaped classification must carry evidence")


def is_within(path: str, directory: str) -> bool:
    """Return True if ``path`` equals ``directory`` or lies beneath it.

    Both arguments must be absolute; comparison is lexical and
    component-wise.
    """
    path_parts = PurePath(normalize_path(path)).parts
    dir_parts = PurePath(normalize_path(directory)).parts
    return path_parts[: len(dir_parts)] == dir_parts


def _find_landmark(path: str, landmarks: Iterable[str]) -> str | None:
    # Trailing separator lets a directory that is itself a landmark root match
    haystack = normalize_path(path).rstrip(os.sep) + os.sep
    for landmark in landmarks:
        if landmark in haystack:
            return landmark
    return None


def classify(boundary: Boundary, observed: ObservedPath) -> ClassifiedPath:
    """Classify one observed path against the boundary.

    Args:
        boundary: Boundary of the current run
        observed: Observation to classify

    Returns:
        ClassifiedPath with evidence

    Raises:
        ClassificationAmbiguous: If the observed path is not absolute
    """
    if observed.path is None:
        reason = observed.detail or "probe produced no usable path"
        return ClassifiedPath(
            observed=observed,
            classification=Classification.INDETERMINATE,
            evidence=f"{observed.strategy}: {reason}",
        )

    path = observed.path
    if not path or "\x00" in path or not os.path.isabs(path):
        raise ClassificationAmbiguous(
            f"{observed.strategy} produced a non-absolute path {path!r}",
            path=path,
        )

    if boundary.mode is ExecutionMode.RUN:
        source_tree = boundary.source_tree or ""
        if is_within(path, source_tree):
            return ClassifiedPath(
                observed=observed,
                classification=Classification.ESCAPED,
                evidence=f"{observed.strategy}: {path} is inside source tree {source_tree}",
                matched=source_tree,
            )
        return ClassifiedPath(
            observed=observed,
            classification=Classification.CONTAINED,
            evidence=f"{path} is outside source tree {source_tree}",
        )

    landmark = _find_landmark(path, boundary.landmarks)
    if landmark is None:
        expected = " or ".join(repr(item) for item in boundary.landmarks)
        return ClassifiedPath(
            observed=observed,
            classification=Classification.ESCAPED,
            evidence=f"{observed.strategy}: {path} does not contain {expected}",
        )
    return ClassifiedPath(
        observed=observed,
        classification=Classification.CONTAINED,
        evidence=f"{path} contains landmark {landmark!r}",
        matched=landmark,
    )


def classify_all(boundary: Boundary, observed: Iterable[ObservedPath]) -> list[ClassifiedPath]:
    """Classify each observation independently, preserving order."""
    return [classify(boundary, item) for item in observed]


__all__ = [
    "Classification",
    "ClassifiedPath",
    "classify",
    "classify_all",
    "is_within",
]
