"""Targets command - check every configured target."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, Field

from installcheck.core.log import logger
from installcheck.core.result import (
    ExecutableNotFound,
    VerificationResult,
)
from installcheck.verifier import InstallationVerifier

if TYPE_CHECKING:
    from installcheck.core.config import State, TargetConfig, VerifyConfig


def make_verifier(
    target: TargetConfig, defaults: VerifyConfig
) -> InstallationVerifier:
    """Build a verifier from a target, falling back to verify defaults."""
    return InstallationVerifier(
        version_args=(
            defaults.version_args
            if target.version_args is None
            else target.version_args
        ),
        timeout=defaults.timeout if target.timeout is None else target.timeout,
        workdir=defaults.workdir,
        encoding=defaults.encoding,
        shell=defaults.shell,
    )


class TargetsCommand(BaseModel):
    """Verify the targets defined under config.targets.

    Each target is checked once, independently of the others. Exits
    0 only when every selected target verifies.
    """

    only: list[str] = Field(
        default_factory=list,
        description="Check only these target names (default: all)",
    )

    def run_workflow(self, state: State) -> int:
        """Check the selected targets in configuration order.

        Returns:
            Exit code (0=all verified, 1=otherwise)
        """
        targets = state.config.targets
        verify_state = state.runtime.verify
        verify_state.status = "running"

        names = self.only or list(targets)
        if not names:
            logger.error("No targets configured under config.targets")
            return verify_state.finish()

        for name in names:
            target = targets.get(name)
            if target is None:
                message = f"Target '{name}' not defined in config"
                logger.error("{message}", message=message)
                verify_state.record(
                    VerificationResult(
                        executable=name,
                        marker="",
                        outcome=ExecutableNotFound.outcome,
                        message=message,
                    )
                )
                continue

            logger.debug("Checking target {name}", name=name)
            verifier = make_verifier(target, state.config.verify)
            verify_state.record(
                verifier.verify(target.executable, target.marker)
            )

        exit_code = verify_state.finish()
        passed = sum(r.verified for r in verify_state.results)
        summary = logger.info if exit_code == 0 else logger.error
        summary(
            "{passed}/{total} targets verified",
            passed=passed,
            total=len(verify_state.results),
        )
        return exit_code
