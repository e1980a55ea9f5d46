"""Boundary resolution for a scenario run.

Derives the expected sandbox boundary from a single environment signal.
When the signal carries an authoritative source tree (run mode), that
directory is the forbidden region. Without it (test mode), the only
available invariant is structural: every legitimate path passes through a
landmark segment the isolation mechanism inserts, such as ``.runfiles/``.

This module performs no filesystem I/O; the boundary is pure derivation.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum

from sandbox_verifier.exceptions import BoundaryUndetermined
from sandbox_verifier.settings import DEFAULT_LANDMARKS, Settings, get_settings

logger = logging.getLogger(__name__)


class ExecutionMode(StrEnum):
    """How the boundary was established."""

    RUN = "run"  # authoritative source tree supplied
    TEST = "test"  # landmark-only structural check


def normalize_path(path: str) -> str:
    """Lexically normalize an absolute path.

    Collapses duplicate separators, ``.`` and ``..`` segments and trailing
    separators without touching the filesystem, so symlinks are never
    followed here.
    """
    normalized = os.path.normpath(path)
    # POSIX keeps a leading "//" as implementation-defined; treat it as "/"
    if normalized.startswith("//"):
        normalized = "/" + normalized.lstrip("/")
    return normalized


@dataclass(frozen=True, slots=True)
class Boundary:
    """Immutable sandbox boundary owned by one scenario run.

    Attributes:
        mode: Execution mode the boundary was derived for
        source_tree: Normalized forbidden directory (run mode only)
        landmarks: Segments marking contained paths (test mode only)
    """

    mode: ExecutionMode
    source_tree: str | None = None
    landmarks: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.mode is ExecutionMode.RUN and not self.source_tree:
            raise ValueError("run-mode boundary requires a source tree")
        if self.mode is ExecutionMode.TEST and not self.landmarks:
            raise ValueError("test-mode boundary requires at least one landmark")

    def describe(self) -> str:
        """Human-readable summary for reports and logs."""
        if self.mode is ExecutionMode.RUN:
            return f"source tree {self.source_tree}"
        return "landmark " + " or ".join(repr(item) for item in self.landmarks)


def resolve_boundary(
    signal: str | None,
    *,
    landmarks: Iterable[str] = DEFAULT_LANDMARKS,
) -> Boundary:
    """Derive the boundary from the environment signal value.

    Args:
        signal: Value of the source-tree variable, or None when unset.
            An empty value is treated as unset.
        landmarks: Landmarks used when no source tree is supplied

    Returns:
        Boundary for run mode (signal present) or test mode (absent)

    Raises:
        BoundaryUndetermined: If the signal is present but not a usable
            absolute directory path
    """
    if not signal:
        marks = tuple(landmarks)
        if not marks or any(not item for item in marks):
            raise BoundaryUndetermined("test mode requires non-empty landmarks")
        return Boundary(mode=ExecutionMode.TEST, landmarks=marks)

    if "\x00" in signal:
        raise BoundaryUndetermined("source tree contains a NUL byte", signal=signal)
    if not os.path.isabs(signal):
        raise BoundaryUndetermined(
            f"source tree must be an absolute path, got {signal!r}",
            signal=signal,
        )

    return Boundary(mode=ExecutionMode.RUN, source_tree=normalize_path(signal))


def boundary_from_environment(
    environ: Mapping[str, str] | None = None,
    settings: Settings | None = None,
) -> Boundary:
    """Read the environment signal once and resolve the boundary.

    Args:
        environ: Environment mapping (defaults to os.environ)
        settings: Settings naming the signal variable and landmarks

    Returns:
        Resolved Boundary
    """
    settings = settings or get_settings()
    environ = os.environ if environ is None else environ
    signal = environ.get(settings.source_tree_env)
    boundary = resolve_boundary(signal, landmarks=settings.sandbox_landmarks)
    logger.debug(
        "%s=%r selects %s mode (%s)",
        settings.source_tree_env,
        signal,
        boundary.mode,
        boundary.describe(),
    )
    return boundary
