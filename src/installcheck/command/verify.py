"""Verify command - check one executable against a marker."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import CliPositionalArg

from installcheck.verifier import InstallationVerifier

if TYPE_CHECKING:
    from installcheck.core.config import State


class VerifyCommand(BaseModel):
    """Run EXECUTABLE with its version argument and require MARKER in
    the output.

    Exits 0 when the marker is found, 1 when the executable is
    missing, cannot be started, times out, or prints something else.
    """

    executable: CliPositionalArg[str] = Field(
        description="Path to the executable, or a command name on PATH"
    )
    marker: CliPositionalArg[str] = Field(
        min_length=1,
        description="Substring the version output must contain",
    )
    version_args: list[str] | None = Field(
        default=None,
        alias="version-args",
        description=(
            "Arguments for the version query "
            "(default: config.verify.version_args, i.e. --version)"
        ),
    )
    timeout: int | None = Field(
        default=None,
        description="Timeout in seconds (default: config.verify.timeout)",
    )

    def run_workflow(self, state: State) -> int:
        """Run the check and record it on state.runtime.verify.

        Returns:
            Exit code (0=verified, 1=not verified)
        """
        defaults = state.config.verify
        verify_state = state.runtime.verify
        verify_state.status = "running"

        verifier = InstallationVerifier(
            version_args=(
                defaults.version_args
                if self.version_args is None
                else self.version_args
            ),
            timeout=defaults.timeout if self.timeout is None else self.timeout,
            workdir=defaults.workdir,
            encoding=defaults.encoding,
            shell=defaults.shell,
        )
        verify_state.record(verifier.verify(self.executable, self.marker))
        return verify_state.finish()
