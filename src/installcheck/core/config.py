"""Application state and configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any

import platformdirs
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from installcheck.core.base import BaseConfig, BaseState
from installcheck.core.log import Logger
from installcheck.core.result import VerificationResult
from installcheck.core.yaml_settings import YamlWithIncludesSettingsSource

# Modules reachable from {module.attr} templates in YAML values,
# e.g. {platformdirs.user_log_dir} or {os.getcwd}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================

class VerifyConfig(BaseConfig):
    """Defaults for every version-query invocation."""

    version_args: list[str] = Field(
        default_factory=lambda: ["--version"],
        description="Arguments that make the executable print its version",
    )
    timeout: int | None = Field(
        default=60,
        description="Seconds before the invocation is abandoned (0 or null disables)",
    )
    encoding: str = Field(
        default="utf-8",
        description="Encoding used to decode the executable's output",
    )
    workdir: Path | None = Field(
        default=None,
        description="Working directory for the invocation",
    )
    shell: str | None = Field(
        default=None,
        description=(
            "Shell used to launch the executable, e.g. bash on Windows "
            "runners (invoke's platform default when unset)"
        ),
    )


class TargetConfig(BaseConfig):
    """A named executable and the marker its version output must contain."""

    executable: str = Field(
        description="Path to the executable, or a command name on PATH"
    )
    marker: str = Field(
        min_length=1,
        description="Substring expected in the version output",
    )
    version_args: list[str] | None = Field(
        default=None,
        description="Overrides verify.version_args for this target",
    )
    timeout: int | None = Field(
        default=None,
        description="Overrides verify.timeout for this target",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger | None = Field(
        default=None,
        description="Logger sinks and levels",
    )
    verify: VerifyConfig = Field(
        default_factory=VerifyConfig,
        description="Invocation defaults",
    )
    targets: dict[str, TargetConfig] = Field(
        default_factory=dict,
        description="Named targets checked by the 'targets' command",
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / "installcheck"
        ),
        description=(
            "Root directory for log files "
            "(supports {platformdirs.*} templates)"
        ),
    )

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Install the global logger from the loaded sink config."""
        from installcheck.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger()

        setup_logger(
            log_root=self.log_root,
            run_name="installcheck",
            level=self.logger.level,
            console=self.logger.console,
            otlp=self.logger.otlp,
            file=self.logger.file,
            logfire=self.logger.logfire,
        )
        return self

    def close(self):
        """Close the global logger, then any other closeable sections."""
        from installcheck.core.log import logger
        logger.close()
        super().close()


# ============================================================
# RUNTIME STATE (mutated while commands run)
# ============================================================

class VerifyState(BaseState):
    """Results collected by the verify and targets commands."""

    results: list[VerificationResult] = Field(default_factory=list)
    status: str = Field(
        default="pending",
        description="pending, running, verified, failed",
    )

    def record(self, result: VerificationResult) -> None:
        self.results.append(result)

    def finish(self) -> int:
        """Set the final status and return the process exit code."""
        ok = bool(self.results) and all(r.verified for r in self.results)
        self.status = "verified" if ok else "failed"
        return 0 if ok else 1


class Runtime(BaseModel):
    """Runtime state, one section per command family."""

    verify: VerifyState = Field(default_factory=VerifyState)


# ============================================================
# STATE (config + runtime combined)
# ============================================================

class State(BaseSettings):
    """Configuration plus runtime state; the object every command receives.

    Being a BaseSettings, it loads from YAML files, the environment
    (INSTALLCHECK_ prefix, __ between nested keys) and the command
    line, validating everything on load.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates while commands run)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to merge over the defaults. "
            "Use --include on the command line or include: in YAML."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="installcheck.yaml",
        env_file=".env",
        env_prefix="INSTALLCHECK_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore',
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority: init/CLI > YAML (with includes) > .env > env > secrets."""
        return (
            init_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            dotenv_settings,
            env_settings,
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Expand {config.*} and {module.attr} templates in every
        string and Path value."""
        self._substitute_recursive(self)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            new = self._substitute_string(value)
            return value if new == value else new
        if isinstance(value, Path):
            new = self._substitute_string(str(value))
            return value if new == str(value) else Path(new)
        if isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
        return value

    def _substitute_string(self, value: str) -> str:
        """Replace {dotted.path} references; unknown ones stay as written.

        Callables are called the way platformdirs expects, e.g.
        "{platformdirs.user_log_dir}" -> "~/.local/state/installcheck/log".
        """
        def replace_template(match):
            parts = match.group(1).split(".")
            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)
                if callable(obj):
                    if obj.__module__.startswith('platformdirs'):
                        obj = obj('installcheck', appauthor=False)
                    else:
                        obj = obj()
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z_][a-z._]*)\}', replace_template, value)


__all__ = [
    "Config",
    "State",
    "TargetConfig",
    "VerifyConfig",
    "VerifyState",
]
