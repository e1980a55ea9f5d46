"""Shared types for resolution probes.

A probe is anything with a ``strategy`` attribute and a
``probe(context)`` method returning one or more ObservedPath records.
Probes hold no state between invocations and never inherit behaviour
from each other; the scenario runner only relies on this capability.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Protocol, runtime_checkable

from sandbox_verifier.boundary import Boundary


class Strategy(StrEnum):
    """Resolution strategies a probe can exercise."""

    SELF_IDENTITY = "self-identity"
    CWD_CANONICALIZATION = "cwd-canonicalization"
    STATIC_IMPORT = "static-import"
    DYNAMIC_IMPORT = "dynamic-import"
    EXTERNAL_TOOL = "external-tool"
    SHELL_REALPATH = "shell-realpath"
    SUPPLIED = "supplied"


class PathOrigin(StrEnum):
    """How an observed path was obtained."""

    MODULE_URL = "module-url"
    OS_CANONICALIZE = "os-canonicalize"
    MODULE_LOADER = "module-loader"
    SHELL_SUBPROCESS = "shell-subprocess"
    TOOL_INTERNAL = "tool-internal"
    SUPPLIED = "supplied"


@dataclass(frozen=True, slots=True)
class ObservedPath:
    """One path produced by one probe invocation.

    Attributes:
        strategy: Strategy that produced the path
        path: Raw path string, or None when no usable path was produced
        origin: Mechanism the path came from
        label: What was probed (module name, file, target)
        detail: Extra context, e.g. the error when path is None
        resolved_from: Input path a canonicalizing probe resolved
        notes: Advisories that do not affect classification
    """

    strategy: Strategy
    path: str | None
    origin: PathOrigin
    label: str = ""
    detail: str = ""
    resolved_from: str = ""
    notes: tuple[str, ...] = ()

    @property
    def usable(self) -> bool:
        return self.path is not None

    @classmethod
    def unavailable(
        cls,
        strategy: Strategy,
        origin: PathOrigin,
        reason: str,
        *,
        label: str = "",
    ) -> ObservedPath:
        """Build a record for a probe that could not observe anything."""
        return cls(strategy=strategy, path=None, origin=origin, label=label, detail=reason)


@dataclass(frozen=True, slots=True)
class ProbeContext:
    """Read-only inputs handed to each probe.

    Attributes:
        boundary: Boundary of the current run
        timeout: Per-subprocess timeout in seconds
        realpath_command: External canonicalizer for the shell oracle
        observed: Everything earlier probes of this run produced, in order
    """

    boundary: Boundary
    timeout: float = 10.0
    realpath_command: str = "realpath"
    observed: tuple[ObservedPath, ...] = field(default_factory=tuple)


@runtime_checkable
class ResolutionProbe(Protocol):
    """Capability every resolution strategy implements."""

    strategy: Strategy

    def probe(self, context: ProbeContext) -> ObservedPath | Sequence[ObservedPath]: ...


def as_observations(result: ObservedPath | Sequence[ObservedPath]) -> tuple[ObservedPath, ...]:
    """Normalize a probe result to a tuple."""
    if isinstance(result, ObservedPath):
        return (result,)
    return tuple(result)
