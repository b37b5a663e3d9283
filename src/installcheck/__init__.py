"""Cross-platform installation verifier for command-line tools."""

from installcheck.core.result import (
    ExecutableNotFound,
    ExecutableNotRunnable,
    InvocationTimeout,
    MarkerNotPresent,
    Outcome,
    VerificationError,
    VerificationResult,
)
from installcheck.verifier import InstallationVerifier, resolve_executable

__all__ = [
    "ExecutableNotFound",
    "ExecutableNotRunnable",
    "InstallationVerifier",
    "InvocationTimeout",
    "MarkerNotPresent",
    "Outcome",
    "VerificationError",
    "VerificationResult",
    "resolve_executable",
]
