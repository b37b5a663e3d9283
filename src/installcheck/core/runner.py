"""Command execution using the invoke library."""

from __future__ import annotations

import contextlib
import os
import platform
import shlex
import signal
import subprocess
from collections.abc import Sequence
from pathlib import Path

from invoke import Config, Context, Result
from invoke.runners import Local

from installcheck.core.log import logger


def is_windows() -> bool:
    return platform.system() == "Windows"


def build_command(argv: Sequence[str | os.PathLike]) -> str:
    """Join argv into one command line quoted for the local shell."""
    args = [os.fspath(a) for a in argv]
    if is_windows():
        return subprocess.list2cmdline(args)
    return shlex.join(args)


class SafeLocal(Local):
    """invoke's local runner that kills the whole process tree.

    invoke's Local.kill() sends SIGKILL to the direct child only. A
    wrapper script's children keep the output pipes open, and invoke
    waits for EOF on them, so a timeout would not end the command.
    On POSIX the child therefore starts in its own session and the
    whole process group is killed. Windows has no signal.SIGKILL;
    there `taskkill /T` ends the tree.
    """

    def start(self, command: str, shell: str, env: dict) -> None:
        if self.using_pty or is_windows():
            super().start(command, shell, env)
            return
        self.process = subprocess.Popen(
            command,
            shell=True,
            executable=shell,
            env=env,
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            stdin=subprocess.PIPE,
            start_new_session=True,
        )

    def kill(self) -> None:
        pid = self.pid if self.using_pty else self.process.pid
        if is_windows():
            subprocess.run(
                ["taskkill", "/T", "/F", "/PID", str(pid)],
                capture_output=True,
                check=False,
            )
            return
        with contextlib.suppress(ProcessLookupError):
            os.killpg(os.getpgid(pid), signal.SIGKILL)


class Runner(Context):
    """invoke.Context that runs commands with captured output.

    Output is hidden from the console and returned on the Result,
    and non-zero exits never raise. A timeout raises invoke's
    CommandTimedOut, whose .result holds the output captured so far.
    """

    def __init__(self, encoding: str | None = None, shell: str | None = None):
        run = {}
        if encoding:
            run["encoding"] = encoding
        if shell:
            run["shell"] = shell
        super().__init__(
            config=Config(
                overrides={"runners": {"local": SafeLocal}, "run": run}
            )
        )

    def execute(
        self,
        command: str | Sequence[str | os.PathLike],
        cwd: Path | None = None,
        timeout: int | None = None,
        env: dict[str, str] | None = None,
        log_level: str | None = None,
    ) -> Result:
        """Run a command and return its invoke Result.

        Args:
            command: Command line, or an argv list to be quoted
            cwd: Working directory
            timeout: Seconds before the command's process tree is
                killed; falsy disables the timeout
            env: Extra environment variables (added to os.environ)
            log_level: When set, log every output line at this level

        Returns:
            invoke.Result with stdout, stderr and exited

        Raises:
            invoke.exceptions.CommandTimedOut: The timeout elapsed
        """
        if not isinstance(command, str):
            command = build_command(command)

        kwargs = {
            "hide": True,
            "warn": True,
            "in_stream": False,
        }
        if timeout:
            kwargs["timeout"] = timeout
        if env:
            kwargs["env"] = env

        logger.spew("Running {command}", command=command, cwd=str(cwd or ""))
        if cwd:
            with self.cd(str(cwd)):
                result = self.run(command, **kwargs)
        else:
            result = self.run(command, **kwargs)

        logger.spew(
            "Command finished {command}",
            command=command,
            exited=result.exited,
        )

        if log_level:
            for line in (result.stdout + result.stderr).splitlines():
                logger.log(log_level, "{line}", line=line.rstrip())

        return result
