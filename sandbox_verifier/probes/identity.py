"""Self-identity resolution probe.

Measures the directory a module computes for itself from its own
identity. The path goes through the same conversion code in the wild
uses: module URL -> filesystem path -> directory.
"""

from __future__ import annotations

import importlib
import logging
import os
from pathlib import Path
from urllib.parse import urlsplit
from urllib.request import url2pathname

from sandbox_verifier.exceptions import ProbeUnavailable
from sandbox_verifier.probes.base import ObservedPath, PathOrigin, ProbeContext, Strategy

logger = logging.getLogger(__name__)


def module_url(module_name: str) -> str:
    """Return the ``file://`` URL a module is loaded from.

    Raises:
        ProbeUnavailable: If the module cannot be imported or has no file
    """
    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise ProbeUnavailable(
            f"cannot import {module_name}: {e}",
            strategy=Strategy.SELF_IDENTITY,
        ) from e

    spec = getattr(module, "__spec__", None)
    origin = spec.origin if spec is not None and spec.has_location else None
    origin = origin or getattr(module, "__file__", None)
    if not origin:
        raise ProbeUnavailable(
            f"{module_name} has no file location",
            strategy=Strategy.SELF_IDENTITY,
        )
    # as_uri() keeps the path verbatim; it does not resolve symlinks
    return Path(os.path.abspath(origin)).as_uri()


def url_to_path(url: str) -> str:
    """Convert a ``file://`` URL to a filesystem path.

    Raises:
        ProbeUnavailable: For any other URL scheme or a remote host
    """
    parts = urlsplit(url)
    if parts.scheme != "file":
        raise ProbeUnavailable(
            f"not a file URL: {url}",
            strategy=Strategy.SELF_IDENTITY,
        )
    if parts.netloc not in ("", "localhost"):
        raise ProbeUnavailable(
            f"file URL names a remote host: {url}",
            strategy=Strategy.SELF_IDENTITY,
        )
    return url2pathname(parts.path)


class SelfIdentityProbe:
    """Resolve a module's own file and directory from its URL.

    Exactly one of ``module`` or ``url`` must be given.

    Usage:
        SelfIdentityProbe(module="sandbox_verifier.fixtures.entry")
        SelfIdentityProbe(url="file:///exec/root/.runfiles/_main/proj/entry.py")
    """

    strategy = Strategy.SELF_IDENTITY

    def __init__(self, *, module: str | None = None, url: str | None = None) -> None:
        if (module is None) == (url is None):
            raise ValueError("SelfIdentityProbe needs exactly one of module or url")
        self.module = module
        self.url = url

    def probe(self, context: ProbeContext) -> list[ObservedPath]:
        label = self.module or self.url or ""
        url = self.url if self.url is not None else module_url(self.module or "")
        filename = url_to_path(url)
        dirname = os.path.dirname(filename)
        logger.debug("self-identity of %s: file=%s dir=%s", label, filename, dirname)
        return [
            ObservedPath(
                strategy=self.strategy,
                path=filename,
                origin=PathOrigin.MODULE_URL,
                label=f"{label} (file)",
                detail=url,
            ),
            ObservedPath(
                strategy=self.strategy,
                path=dirname,
                origin=PathOrigin.MODULE_URL,
                label=f"{label} (dir)",
                detail=url,
            ),
        ]
