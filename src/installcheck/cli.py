#!/usr/bin/env python3
"""installcheck CLI - verify that installed tools report the expected version."""

import contextlib
import sys

from pydantic_settings import CliApp, CliSubCommand, get_subcommand

from installcheck.command.targets import TargetsCommand
from installcheck.command.verify import VerifyCommand
from installcheck.core.config import State
from installcheck.core.log import logger


class CliState(State):
    """Verify command-line tool installations by their version output.

    An executable counts as installed when running it with its
    version argument prints a text containing the expected marker.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.verify.timeout 30)
    2. installcheck.yaml in the current directory, then the user
       config directory, then the package defaults
    3. .env file
    4. Environment variables
       (INSTALLCHECK_CONFIG__VERIFY__TIMEOUT=30)
    """

    verify: CliSubCommand[VerifyCommand]
    targets: CliSubCommand[TargetsCommand]

    def cli_cmd(self):
        """Dispatch to the active subcommand, or show help if none."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            # argparse exits 0 after --help; a missing command is an error
            with contextlib.suppress(SystemExit):
                CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closing the logger flushes file and OTLP sinks
        with logger:
            exit_code = subcommand.run_workflow(self)
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
