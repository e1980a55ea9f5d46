"""Shell-level ground truth.

Canonicalizes paths in a separate process with the system ``realpath``
command. Nothing patched inside this interpreter can influence the
answer, so the boundary comparison holds whether or not the embedding
environment intercepts filesystem calls.
"""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Sequence

from sandbox_verifier.probes.base import ObservedPath, PathOrigin, ProbeContext, Strategy
from sandbox_verifier.probes.cwd import logical_cwd

logger = logging.getLogger(__name__)


def shell_realpath(target: str, *, command: str, timeout: float) -> tuple[str | None, str]:
    """Run the external canonicalizer on one path.

    Returns:
        (resolved path or None, detail). None covers spawn failure,
        timeout, non-zero exit, empty or multi-line output.
    """
    try:
        completed = subprocess.run(  # noqa: S603
            [command, target],
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        return None, f"{command} timed out after {timeout}s"
    except OSError as e:
        return None, f"{command} could not be started: {e}"

    if completed.returncode != 0:
        reason = completed.stderr.strip() or "no error output"
        return None, f"{command} exited with {completed.returncode}: {reason}"

    lines = [line for line in completed.stdout.splitlines() if line.strip()]
    if len(lines) != 1:
        return None, f"{command} printed {len(lines)} lines, expected 1"
    return lines[0].strip(), f"{command} {target}"


class ShellRealpathProbe:
    """Ground-truth canonicalization of paths, one subprocess per target.

    Args:
        targets: Paths to canonicalize; defaults to the logical working
            directory at probe time
        from_observed: Canonicalize every usable path earlier probes in
            the run produced instead of ``targets``
    """

    strategy = Strategy.SHELL_REALPATH

    def __init__(
        self,
        targets: Sequence[str | os.PathLike[str]] | None = None,
        *,
        from_observed: bool = False,
    ) -> None:
        if targets is not None and from_observed:
            raise ValueError("pass targets or from_observed, not both")
        self.targets = [os.fspath(t) for t in targets] if targets is not None else None
        self.from_observed = from_observed

    def _targets(self, context: ProbeContext) -> list[str]:
        if self.from_observed:
            return [o.path for o in context.observed if o.path is not None]
        if self.targets is not None:
            return list(self.targets)
        return [logical_cwd()]

    def probe(self, context: ProbeContext) -> list[ObservedPath]:
        observed: list[ObservedPath] = []
        for target in self._targets(context):
            resolved, detail = shell_realpath(
                target,
                command=context.realpath_command,
                timeout=context.timeout,
            )
            if resolved is None:
                logger.warning("ground truth unavailable for %s: %s", target, detail)
                observed.append(
                    ObservedPath.unavailable(
                        self.strategy,
                        PathOrigin.SHELL_SUBPROCESS,
                        detail,
                        label=target,
                    )
                )
                continue

            if resolved != target:
                detail = f"{detail} (differs from input)"
            notes = tuple(in_process_mismatches(context.observed, target, resolved))
            logger.debug("realpath %s -> %s", target, resolved)
            observed.append(
                ObservedPath(
                    strategy=self.strategy,
                    path=resolved,
                    origin=PathOrigin.SHELL_SUBPROCESS,
                    label=target,
                    detail=detail,
                    resolved_from=target,
                    notes=notes,
                )
            )
        return observed


def in_process_mismatches(
    observed: Sequence[ObservedPath],
    target: str,
    resolved: str,
) -> list[str]:
    """Compare in-process canonicalizations of ``target`` with the shell's answer.

    A different in-process answer means the canonicalizer was patched, or
    followed only some of the symlinks. Either way its results cannot be
    taken at face value, so each disagreement is logged and described.
    """
    mismatches: list[str] = []
    for item in observed:
        if item.origin is not PathOrigin.OS_CANONICALIZE or item.resolved_from != target:
            continue
        if item.path is None or item.path == resolved:
            continue
        if item.path == target:
            kind = "left the path unresolved (canonicalization looks patched)"
        else:
            kind = "resolved it differently (symlinks only partly followed)"
        message = f"in-process {item.strategy} gave {item.path}, {kind}"
        logger.warning("%s: shell realpath of %s is %s", message, target, resolved)
        mismatches.append(message)
    return mismatches
