"""External-tool resolution probe.

Third-party tools resolve files with their own machinery. The verifier
treats each tool as a black box: it registers a hook that is called once
per file the tool loads and asserts only on the paths reported there.
The hook observes; it never changes how the tool resolves anything.
"""

from __future__ import annotations

import importlib.abc
import importlib.machinery
import logging
import os
import re
import runpy
import subprocess
import sys
import sysconfig
from collections.abc import Callable, Mapping, Sequence
from pathlib import PurePath
from typing import Protocol

from sandbox_verifier.boundary import normalize_path
from sandbox_verifier.exceptions import ProbeUnavailable
from sandbox_verifier.probes.base import ObservedPath, PathOrigin, ProbeContext, Strategy
from sandbox_verifier.probes.cwd import logical_cwd, working_directory

logger = logging.getLogger(__name__)

LoadHook = Callable[[str], None]


class ResolvingTool(Protocol):
    """A tool that loads files and reports each one through ``on_load``."""

    name: str

    def run(self, entries: Sequence[str], on_load: LoadHook, *, timeout: float) -> None: ...


# =============================================================================
# IN-PROCESS: PYTHON IMPORT SYSTEM
# =============================================================================


def _interpreter_roots() -> tuple[str, ...]:
    """Directories holding the running interpreter's standard library."""
    paths = sysconfig.get_paths()
    roots = {os.path.normpath(paths[key]) for key in ("stdlib", "platstdlib") if paths.get(key)}
    return tuple(sorted(roots))


def _under(path: str, root: str) -> bool:
    path_parts = PurePath(normalize_path(path)).parts
    root_parts = PurePath(normalize_path(root)).parts
    return path_parts[: len(root_parts)] == root_parts


class _RecordingFinder(importlib.abc.MetaPathFinder):
    """Meta path finder that reports what the path finder would load.

    Always returns None, so the real finders still do the import.
    """

    def __init__(self, on_load: LoadHook) -> None:
        self._on_load = on_load

    def find_spec(self, fullname, path, target=None):  # type: ignore[no-untyped-def]
        spec = importlib.machinery.PathFinder.find_spec(fullname, path)
        if spec is not None and spec.has_location and spec.origin:
            self._on_load(spec.origin)
        return None


class ImportTracer:
    """Run entry scripts and trace every module file the import system finds.

    Modules first imported during the run are dropped from ``sys.modules``
    afterwards, so the process looks the same to later probes and a
    repeated run traces the same files.

    Args:
        pattern: Only report module files whose path matches this regex
        exclude: Directories whose modules are never reported; defaults
            to the interpreter's standard library, which lives outside
            any sandbox
    """

    name = "python-import"

    def __init__(
        self,
        *,
        pattern: str | None = None,
        exclude: Sequence[str | os.PathLike[str]] | None = None,
    ) -> None:
        self.pattern = re.compile(pattern) if pattern is not None else None
        if exclude is None:
            self.exclude = _interpreter_roots()
        else:
            self.exclude = tuple(os.fspath(root) for root in exclude)

    def wants(self, origin: str) -> bool:
        """Whether a module file found during tracing counts as a load."""
        if any(_under(origin, root) for root in self.exclude):
            return False
        return self.pattern is None or self.pattern.search(origin) is not None

    def run(self, entries: Sequence[str], on_load: LoadHook, *, timeout: float) -> None:
        def record(origin: str) -> None:
            if self.wants(origin):
                on_load(origin)

        finder = _RecordingFinder(record)
        loaded_before = set(sys.modules)
        sys.meta_path.insert(0, finder)
        try:
            for entry in entries:
                if not os.path.isabs(entry):
                    entry = os.path.normpath(os.path.join(logical_cwd(), entry))
                on_load(entry)
                self._run_entry(entry)
        finally:
            sys.meta_path.remove(finder)
            for module_name in set(sys.modules) - loaded_before:
                del sys.modules[module_name]

    def _run_entry(self, entry: str) -> None:
        try:
            runpy.run_path(entry, run_name="__sandbox_probe__")
        except SystemExit as e:
            # A clean exit still means every load so far happened
            if e.code in (None, 0):
                logger.debug("%s exited cleanly while running %s", self.name, entry)
                return
            raise ProbeUnavailable(
                f"{self.name} failed on {entry}: exited with {e.code}",
                strategy=Strategy.EXTERNAL_TOOL,
            ) from e
        except Exception as e:
            raise ProbeUnavailable(
                f"{self.name} failed on {entry}: {type(e).__name__}: {e}",
                strategy=Strategy.EXTERNAL_TOOL,
            ) from e


# =============================================================================
# OUT-OF-PROCESS: COMMAND-LINE TOOLS
# =============================================================================


class CommandTool:
    """Run an external command that prints one resolved path per line.

    Entries are appended to ``argv``. Relative lines are anchored to the
    working directory the command ran in. ``timeout`` overrides the
    per-subprocess timeout of the run for slow tools.
    """

    def __init__(
        self,
        argv: Sequence[str],
        *,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
        name: str | None = None,
    ) -> None:
        if not argv:
            raise ValueError("CommandTool needs a command")
        self.argv = list(argv)
        self.env = dict(env) if env is not None else None
        self.timeout = timeout
        self.name = name or os.path.basename(self.argv[0])

    def run(self, entries: Sequence[str], on_load: LoadHook, *, timeout: float) -> None:
        cmd = [*self.argv, *entries]
        if self.timeout is not None:
            timeout = self.timeout
        environment = None
        if self.env is not None:
            environment = {**os.environ, **self.env}
        try:
            completed = subprocess.run(  # noqa: S603
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                env=environment,
                check=False,
            )
        except FileNotFoundError as e:
            raise ProbeUnavailable(f"{self.name} not found: {e}", strategy=Strategy.EXTERNAL_TOOL) from e
        except subprocess.TimeoutExpired as e:
            raise ProbeUnavailable(
                f"{self.name} timed out after {timeout}s",
                strategy=Strategy.EXTERNAL_TOOL,
            ) from e
        except OSError as e:
            raise ProbeUnavailable(f"{self.name} failed to start: {e}", strategy=Strategy.EXTERNAL_TOOL) from e

        if completed.returncode != 0:
            stderr = completed.stderr.strip().splitlines()
            reason = stderr[-1] if stderr else "no output"
            raise ProbeUnavailable(
                f"{self.name} exited with {completed.returncode}: {reason}",
                strategy=Strategy.EXTERNAL_TOOL,
            )

        base = logical_cwd()
        for line in completed.stdout.splitlines():
            line = line.strip()
            if not line:
                continue
            if not os.path.isabs(line):
                line = os.path.normpath(os.path.join(base, line))
            on_load(line)


# =============================================================================
# PROBE
# =============================================================================


class ExternalToolProbe:
    """Capture the paths a tool resolves while loading ``entries``.

    Args:
        tool: Tool to run
        entries: Entry files handed to the tool
        workdir: If set, the tool runs with this working directory; the
            original directory is restored afterwards
    """

    strategy = Strategy.EXTERNAL_TOOL

    def __init__(
        self,
        tool: ResolvingTool,
        entries: Sequence[str | os.PathLike[str]],
        *,
        workdir: str | os.PathLike[str] | None = None,
    ) -> None:
        self.tool = tool
        self.entries = [os.fspath(entry) for entry in entries]
        self.workdir = os.fspath(workdir) if workdir is not None else None

    def _run(self, context: ProbeContext) -> list[str]:
        reported: list[str] = []
        self.tool.run(self.entries, reported.append, timeout=context.timeout)
        return reported

    def probe(self, context: ProbeContext) -> list[ObservedPath]:
        if self.workdir is not None:
            with working_directory(self.workdir):
                reported = self._run(context)
        else:
            reported = self._run(context)

        logger.debug("%s reported %d path(s)", self.tool.name, len(reported))
        detail = f"cwd={self.workdir}" if self.workdir else ""
        return [
            ObservedPath(
                strategy=self.strategy,
                path=path,
                origin=PathOrigin.TOOL_INTERNAL,
                label=self.tool.name,
                detail=detail,
            )
            for path in reported
        ]
