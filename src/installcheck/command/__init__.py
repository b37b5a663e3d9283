"""CLI command modules for installcheck."""

from installcheck.command.targets import TargetsCommand
from installcheck.command.verify import VerifyCommand

__all__ = ["TargetsCommand", "VerifyCommand"]
