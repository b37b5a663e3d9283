"""Installation verifier: run a version query and look for a marker."""

from __future__ import annotations

import os
import shutil
import time
from collections.abc import Sequence
from pathlib import Path

from invoke.exceptions import CommandTimedOut

from installcheck.core.log import logger
from installcheck.core.result import (
    ExecutableNotFound,
    ExecutableNotRunnable,
    InvocationTimeout,
    MarkerNotPresent,
    Outcome,
    VerificationError,
    VerificationResult,
)
from installcheck.core.runner import Runner, is_windows

# Shell exit statuses meaning the command itself never started
# (126 not executable, 127 not found, 9009 cmd.exe "not recognized")
NOT_RUNNABLE_EXITS = frozenset({126, 127, 9009})


def _has_directory(text: str) -> bool:
    return os.sep in text or bool(os.altsep and os.altsep in text)


def resolve_executable(
    executable: str | os.PathLike, cwd: Path | None = None
) -> Path:
    """Resolve a path or a PATH command name to a runnable file.

    Relative paths with a directory part are taken relative to cwd
    when one is given. On Windows PATHEXT is honoured, so
    `bin\\tool` finds `bin\\tool.exe`.

    Raises:
        ExecutableNotFound: Nothing exists under that name.
        ExecutableNotRunnable: It exists but is a directory or lacks
            execute permission.
    """
    text = os.fspath(executable)
    if not text:
        raise ExecutableNotFound("no executable given")

    if _has_directory(text):
        candidate = Path(text).expanduser()
        if cwd and not candidate.is_absolute():
            candidate = Path(cwd) / candidate
        candidate = candidate.absolute()
        found = shutil.which(str(candidate))
        if found:
            return Path(found)
        if candidate.is_dir():
            raise ExecutableNotRunnable(f"{candidate} is a directory")
        if candidate.exists():
            raise ExecutableNotRunnable(f"{candidate} is not executable")
        raise ExecutableNotFound(f"{candidate} does not exist")

    found = shutil.which(text)
    if found is None:
        raise ExecutableNotFound(f"'{text}' was not found on PATH")
    return Path(found)


class InstallationVerifier:
    """Run an executable's version query and check for a marker substring.

    One invocation per check, no retries and no state kept between
    checks.
    """

    def __init__(
        self,
        version_args: Sequence[str] = ("--version",),
        timeout: int | None = 60,
        workdir: Path | None = None,
        encoding: str | None = "utf-8",
        shell: str | None = None,
        env: dict[str, str] | None = None,
    ):
        """Initialize verifier.

        Args:
            version_args: Arguments that make the executable print
                its version
            timeout: Seconds to wait for the executable; None or 0
                waits forever
            workdir: Working directory for the invocation and base
                for relative executable paths
            encoding: Encoding of the executable's output
            shell: Shell used to launch the command (invoke's
                default when None)
            env: Extra environment variables
        """
        self.version_args = list(version_args)
        self.timeout = timeout or None
        self.workdir = Path(workdir).resolve() if workdir else None
        self.env = env
        self.runner = Runner(encoding=encoding, shell=shell)

    def verify(
        self, executable: str | os.PathLike, marker: str
    ) -> VerificationResult:
        """Check an installation and log one status line.

        Failures come back as a result whose outcome says what went
        wrong; only an empty marker raises.
        """
        try:
            result = self.check(executable, marker)
        except VerificationError as e:
            result = e.result
            logger.error(
                "{message}",
                message=result.message,
                outcome=result.outcome.value,
                returncode=result.returncode,
            )
            if result.outcome is Outcome.MARKER_MISSING:
                logger.debug("Version output: {output}", output=result.output)
        else:
            logger.info(
                "{message}",
                message=result.message,
                returncode=result.returncode,
            )
        return result

    def check(
        self, executable: str | os.PathLike, marker: str
    ) -> VerificationResult:
        """Check an installation, raising on failure.

        Returns:
            The verified VerificationResult

        Raises:
            ValueError: If marker is empty
            ExecutableNotFound: The executable does not exist
            ExecutableNotRunnable: The executable could not be started
            InvocationTimeout: The version query exceeded the timeout
            MarkerNotPresent: The output does not contain the marker
        """
        if not marker:
            raise ValueError("marker must be a non-empty string")

        name = os.fspath(executable)
        started = time.monotonic()

        def fail(error_cls, message, **fields):
            result = VerificationResult(
                executable=name,
                marker=marker,
                outcome=error_cls.outcome,
                message=message,
                duration=time.monotonic() - started,
                **fields,
            )
            return error_cls(message, result)

        try:
            path = resolve_executable(executable, self.workdir)
        except VerificationError as e:
            raise fail(type(e), f"{name} could not be run: {e}") from e

        command = [str(path), *self.version_args]
        try:
            run = self.runner.execute(
                command,
                cwd=self.workdir,
                timeout=self.timeout,
                env=self.env,
                log_level="spew",
            )
        except CommandTimedOut as e:
            raise fail(
                InvocationTimeout,
                f"{name} could not be run: no exit within {e.timeout}s",
                command=command,
                resolved_path=path,
                output=e.result.stdout + e.result.stderr,
            ) from e
        except OSError as e:
            raise fail(
                ExecutableNotRunnable,
                f"{name} could not be run: {e}",
                command=command,
                resolved_path=path,
            ) from e

        output = run.stdout + run.stderr
        fields = {
            "command": command,
            "resolved_path": path,
            "returncode": run.exited,
            "output": output,
        }

        if marker in output:
            return VerificationResult(
                executable=name,
                marker=marker,
                outcome=Outcome.VERIFIED,
                message=f"{name} is installed: version output contains {marker!r}",
                duration=time.monotonic() - started,
                **fields,
            )
        if run.exited in NOT_RUNNABLE_EXITS:
            shell = "cmd.exe" if is_windows() else "shell"
            raise fail(
                ExecutableNotRunnable,
                f"{name} could not be run: {shell} exit status {run.exited}",
                **fields,
            )
        raise fail(
            MarkerNotPresent,
            f"{name} ran but its version output does not contain {marker!r}",
            **fields,
        )
