"""Pass-through probe for caller-supplied paths."""

from __future__ import annotations

import os
from collections.abc import Sequence

from sandbox_verifier.probes.base import ObservedPath, PathOrigin, ProbeContext, Strategy


class SuppliedPathProbe:
    """Report paths exactly as given, for classifying paths gathered elsewhere."""

    strategy = Strategy.SUPPLIED

    def __init__(self, paths: Sequence[str | os.PathLike[str]]) -> None:
        self.paths = [os.fspath(p) for p in paths]

    def probe(self, context: ProbeContext) -> list[ObservedPath]:
        return [
            ObservedPath(strategy=self.strategy, path=p, origin=PathOrigin.SUPPLIED, label=p)
            for p in self.paths
        ]
