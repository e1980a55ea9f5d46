"""Static and dynamic import resolution probes.

A statically declared dependency is found by the finder machinery
walking ``sys.path``; a dynamically loaded one is handed to the loader
as a file path at runtime, the way plugin systems and test runners load
user files. The two can disagree, so both are probed.
"""

from __future__ import annotations

import importlib
import importlib.util
import logging
import os
import sys
from collections.abc import Sequence

from sandbox_verifier.exceptions import ProbeUnavailable
from sandbox_verifier.probes.base import ObservedPath, PathOrigin, ProbeContext, Strategy
from sandbox_verifier.probes.cwd import logical_cwd
from sandbox_verifier.probes.identity import url_to_path

logger = logging.getLogger(__name__)


class StaticImportProbe:
    """Import modules by name and read back where the loader found them."""

    strategy = Strategy.STATIC_IMPORT

    def __init__(self, *module_names: str) -> None:
        if not module_names:
            raise ValueError("StaticImportProbe needs at least one module name")
        self.module_names = module_names

    def probe(self, context: ProbeContext) -> list[ObservedPath]:
        observed: list[ObservedPath] = []
        for name in self.module_names:
            try:
                module = importlib.import_module(name)
            except ImportError as e:
                raise ProbeUnavailable(f"cannot import {name}: {e}", strategy=self.strategy) from e

            spec = module.__spec__
            origin = spec.origin if spec is not None and spec.has_location else None
            if not origin:
                observed.append(
                    ObservedPath.unavailable(
                        self.strategy,
                        PathOrigin.MODULE_LOADER,
                        f"{name} has no file location",
                        label=name,
                    )
                )
                continue

            logger.debug("static import %s -> %s", name, origin)
            observed.append(
                ObservedPath(
                    strategy=self.strategy,
                    path=origin,
                    origin=PathOrigin.MODULE_LOADER,
                    label=name,
                )
            )
        return observed


class DynamicImportProbe:
    """Load a module from a file path at runtime.

    The module is registered in ``sys.modules`` only while it executes;
    any previous entry under the same name is put back afterwards so the
    probe can run again with the same result.

    Args:
        path: File to load; relative paths are joined to ``relative_to``
            (or the logical working directory) without resolving symlinks
        relative_to: Base directory for a relative ``path``
        module_name: Name to load under (derived from the file name if omitted)
        identity_attrs: Module attributes holding the module's own view of
            its location (a path or a ``file://`` URL), reported as well
    """

    strategy = Strategy.DYNAMIC_IMPORT

    def __init__(
        self,
        path: str | os.PathLike[str],
        *,
        relative_to: str | os.PathLike[str] | None = None,
        module_name: str | None = None,
        identity_attrs: Sequence[str] = ("PLUGIN_URL",),
    ) -> None:
        self.path = os.fspath(path)
        self.relative_to = os.fspath(relative_to) if relative_to is not None else None
        self.module_name = module_name
        self.identity_attrs = tuple(identity_attrs)

    def _target(self) -> str:
        if os.path.isabs(self.path):
            return os.path.normpath(self.path)
        base = self.relative_to or logical_cwd()
        return os.path.normpath(os.path.join(base, self.path))

    def probe(self, context: ProbeContext) -> list[ObservedPath]:
        target = self._target()
        stem = os.path.splitext(os.path.basename(target))[0]
        name = self.module_name or f"_sandbox_probe_{stem}"

        spec = importlib.util.spec_from_file_location(name, target)
        if spec is None or spec.loader is None:
            raise ProbeUnavailable(f"no loader for {target}", strategy=self.strategy)

        module = importlib.util.module_from_spec(spec)
        previous = sys.modules.get(name)
        sys.modules[name] = module
        try:
            spec.loader.exec_module(module)
        except SystemExit as e:
            raise ProbeUnavailable(
                f"cannot load {target}: exited with {e.code}", strategy=self.strategy
            ) from e
        except Exception as e:
            raise ProbeUnavailable(
                f"cannot load {target}: {type(e).__name__}: {e}", strategy=self.strategy
            ) from e
        finally:
            if previous is None:
                sys.modules.pop(name, None)
            else:
                sys.modules[name] = previous

        resolved = getattr(module, "__file__", None) or target
        logger.debug("dynamic import %s -> %s", target, resolved)
        observed = [
            ObservedPath(
                strategy=self.strategy,
                path=resolved,
                origin=PathOrigin.MODULE_LOADER,
                label=os.path.basename(target),
                detail=f"loaded from {target}",
            )
        ]

        for attr in self.identity_attrs:
            value = getattr(module, attr, None)
            if not isinstance(value, str) or not value:
                continue
            path = url_to_path(value) if value.startswith("file:") else value
            observed.append(
                ObservedPath(
                    strategy=self.strategy,
                    path=path,
                    origin=PathOrigin.MODULE_URL,
                    label=f"{os.path.basename(target)}:{attr}",
                    detail=value,
                )
            )
        return observed
