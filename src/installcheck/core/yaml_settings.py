"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from installcheck.core.log import logger

CONFIG_FILENAME = "installcheck.yaml"
DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"


def cli_includes(argv: list[str]) -> list[str]:
    """Collect the values of every `--include FILE` in argv."""
    includes = []
    args = iter(argv[1:])
    for arg in args:
        if arg == "--include":
            value = next(args, None)
            if value is not None:
                includes.append(value)
        elif arg.startswith("--include="):
            includes.append(arg.split("=", 1)[1])
    return includes


def deep_merge(base: dict, override: dict) -> dict:
    """Return base with override merged in; nested dicts merge, the rest is replaced."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


# Module-level alias: _read_files' `deep_merge` parameter shadows the function.
_deep_merge = deep_merge


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source layering defaults, user, project and
    CLI-included files.

    Priority, lowest first:
        package defaults < user config < ./installcheck.yaml < --include

    Any file may carry an `include:` key (string or list) naming
    further files relative to itself; included data sits below the
    including file's own keys.
    """

    def __init__(self, settings_cls: type[BaseSettings]):
        includes = cli_includes(sys.argv)
        super().__init__(settings_cls, includes or None)

    def _read_files(self, files, deep_merge: bool = True):  # noqa: ARG002
        files_to_load = [
            DEFAULTS_FILE,
            Path(user_config_dir("installcheck", appauthor=False))
            / CONFIG_FILENAME,
            Path(CONFIG_FILENAME),
        ]
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        result = {}
        for file_path in files_to_load:
            if file_path.is_file():
                logger.debug(
                    "Loading configuration {file}", file=str(file_path)
                )
                data = self._load_file_recursive(file_path, set())
                result = _deep_merge(result, data)
            else:
                logger.spew(
                    "Configuration file not found (skipping) {file}",
                    file=str(file_path),
                )
        return result

    def _load_file_recursive(self, filepath: Path, visited: set[Path]) -> dict:
        """Load one YAML file with its include: directives resolved.

        Raises:
            ValueError: If a file includes itself, directly or not.
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited.add(filepath)

        with open(filepath, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        for inc in includes:
            inc_path = Path(inc).expanduser()
            if not inc_path.is_absolute():
                inc_path = filepath.parent / inc_path
            inc_data = self._load_file_recursive(inc_path, visited.copy())
            data = deep_merge(inc_data, data)

        return data
