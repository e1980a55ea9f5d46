"""Resolution probes.

Each probe exercises one path-resolution strategy and reports the paths
it observed. Probes are independent implementations of the
ResolutionProbe capability; the scenario runner iterates them in order.
"""

from sandbox_verifier.probes.base import (
    ObservedPath,
    PathOrigin,
    ProbeContext,
    ResolutionProbe,
    Strategy,
    as_observations,
)
from sandbox_verifier.probes.cwd import CwdCanonicalizationProbe, logical_cwd, working_directory
from sandbox_verifier.probes.identity import SelfIdentityProbe, module_url, url_to_path
from sandbox_verifier.probes.imports import DynamicImportProbe, StaticImportProbe
from sandbox_verifier.probes.oracle import ShellRealpathProbe, in_process_mismatches, shell_realpath
from sandbox_verifier.probes.supplied import SuppliedPathProbe
from sandbox_verifier.probes.tool import CommandTool, ExternalToolProbe, ImportTracer, ResolvingTool

__all__ = [
    # Shared types
    "ObservedPath",
    "PathOrigin",
    "ProbeContext",
    "ResolutionProbe",
    "Strategy",
    "as_observations",
    # Strategies
    "CwdCanonicalizationProbe",
    "DynamicImportProbe",
    "ExternalToolProbe",
    "SelfIdentityProbe",
    "ShellRealpathProbe",
    "StaticImportProbe",
    "SuppliedPathProbe",
    # External tools
    "CommandTool",
    "ImportTracer",
    "ResolvingTool",
    # Helpers
    "in_process_mismatches",
    "logical_cwd",
    "module_url",
    "shell_realpath",
    "url_to_path",
    "working_directory",
]
