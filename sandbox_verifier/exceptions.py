"""Sandbox verifier exception hierarchy.

Base exceptions for every verifier layer with correlation ID support.

Usage:
    from sandbox_verifier.exceptions import BoundaryUndetermined, ProbeUnavailable

    try:
        boundary = boundary_from_environment()
    except BoundaryUndetermined as e:
        logger.error("No usable boundary (%s): %s", e.correlation_id, e)
"""

import uuid


class VerifierError(Exception):
    """Base exception for all verifier errors.

    Carries a correlation_id for tracing errors across layers.
    """

    def __init__(self, message: str, *, correlation_id: str | None = None):
        self.correlation_id = correlation_id or str(uuid.uuid4())
        super().__init__(message)


class ProbeUnavailable(VerifierError):
    """A resolution strategy could not execute.

    Recovered locally: the scenario runner turns it into an
    INDETERMINATE observation and moves on to the next probe.
    """

    def __init__(self, message: str, *, strategy: str | None = None, **kwargs):
        self.strategy = strategy
        super().__init__(message, **kwargs)


class BoundaryUndetermined(VerifierError):
    """The environment signal is present but cannot be used as a boundary.

    Fatal: no probe runs and no partial verdict is produced.
    """

    def __init__(self, message: str, *, signal: str | None = None, **kwargs):
        self.signal = signal
        super().__init__(message, **kwargs)


class ClassificationAmbiguous(VerifierError):
    """A path reached the classifier that cannot be compared to the boundary.

    Probes must always yield absolute paths, so this is a contract
    violation and is never recovered.
    """

    def __init__(self, message: str, *, path: str | None = None, **kwargs):
        self.path = path
        super().__init__(message, **kwargs)


class ConfigurationError(VerifierError):
    """Errors from verifier configuration."""

    pass
