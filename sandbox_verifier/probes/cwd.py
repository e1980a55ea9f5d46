"""Working-directory canonicalization probe.

Tools commonly derive their project root from ``realpath(cwd)``. When
the working directory sits in a symlinked sandbox that call can walk
straight back into the source tree.
"""

from __future__ import annotations

import logging
import os
from contextlib import contextmanager
from typing import TYPE_CHECKING

from sandbox_verifier.exceptions import ProbeUnavailable
from sandbox_verifier.probes.base import ObservedPath, PathOrigin, ProbeContext, Strategy

if TYPE_CHECKING:
    from collections.abc import Generator

logger = logging.getLogger(__name__)

# Captured at import so later patching of os.path.realpath cannot hide an escape
_native_realpath = os.path.realpath


def logical_cwd() -> str:
    """Return the working directory as the user reached it.

    Like a shell, prefers ``$PWD`` when it names the same directory as the
    kernel's view, since ``os.getcwd()`` already has symlinks resolved.
    """
    try:
        physical = os.getcwd()
    except OSError as e:
        raise ProbeUnavailable(
            f"working directory is unavailable: {e}",
            strategy=Strategy.CWD_CANONICALIZATION,
        ) from e

    pwd = os.environ.get("PWD")
    if pwd and os.path.isabs(pwd):
        try:
            if os.path.samefile(pwd, physical):
                return pwd
        except OSError:
            logger.debug("PWD=%s is stale, using %s", pwd, physical)
    return physical


@contextmanager
def working_directory(path: str | os.PathLike[str]) -> Generator[str, None, None]:
    """Temporarily change the working directory.

    ``$PWD`` is updated alongside so the logical path survives. Both are
    restored on every exit path, including probe failures.

    Args:
        path: Directory to switch to

    Yields:
        The absolute (unresolved) directory now in effect
    """
    target = os.path.abspath(os.fspath(path))
    previous = os.getcwd()
    previous_pwd = os.environ.get("PWD")
    os.chdir(target)
    os.environ["PWD"] = target
    logger.debug("chdir %s -> %s", previous_pwd or previous, target)
    try:
        yield target
    finally:
        os.chdir(previous)
        if previous_pwd is None:
            os.environ.pop("PWD", None)
        else:
            os.environ["PWD"] = previous_pwd


class CwdCanonicalizationProbe:
    """Canonicalize the current working directory with the native realpath."""

    strategy = Strategy.CWD_CANONICALIZATION

    def probe(self, context: ProbeContext) -> ObservedPath:
        raw = logical_cwd()
        try:
            resolved = _native_realpath(raw, strict=True)
            detail = f"realpath({raw})"
        except OSError as e:
            # Same policy as the tools being modelled: fall back to the raw value
            resolved = raw
            detail = f"realpath({raw}) failed ({e}); using raw cwd"
            logger.debug(detail)

        logger.debug("cwd %s canonicalizes to %s", raw, resolved)
        return ObservedPath(
            strategy=self.strategy,
            path=resolved,
            origin=PathOrigin.OS_CANONICALIZE,
            label="cwd",
            detail=detail,
            resolved_from=raw,
        )
