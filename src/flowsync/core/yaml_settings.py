"""YAML configuration loading with include directive support."""

from __future__ import annotations

import os
import sys
from collections.abc import Sequence
from pathlib import Path

import yaml
from platformdirs import user_config_dir
from pydantic_settings import BaseSettings, YamlConfigSettingsSource

from flowsync.core.log import logger

DEFAULTS_FILE = Path(__file__).parent.parent / "defaults" / "default.yaml"
CONFIG_NAME = "flowsync.yaml"


def cli_includes(argv: Sequence[str]) -> list[str]:
    """Collect the values of every --include option in argv.

    Both "--include FILE" and "--include=FILE" are accepted.
    """
    includes = []
    i = 1
    while i < len(argv):
        arg = argv[i]
        if arg == "--include" and i + 1 < len(argv):
            includes.append(argv[i + 1])
            i += 1
        elif arg.startswith("--include="):
            includes.append(arg.split("=", 1)[1])
        i += 1
    return includes


def deep_merge(base: dict, override: dict) -> dict:
    """Return base with override merged in; override wins on leaves."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(result.get(key), dict) and isinstance(value, dict):
            result[key] = deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def config_search_path() -> list[Path]:
    """Package defaults, then user config, then project config."""
    return [
        DEFAULTS_FILE,
        Path(user_config_dir("flowsync", appauthor=False)) / CONFIG_NAME,
        Path(CONFIG_NAME),
    ]


class YamlWithIncludesSettingsSource(YamlConfigSettingsSource):
    """YAML settings source with include: directives and --include.

    Files are deep-merged in increasing priority:
        package defaults < user config < project config < CLI includes
    Each file may pull in others with a top-level include: key (string
    or list, relative to the including file). The including file wins
    over what it includes.
    """

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file=None,
        argv: Sequence[str] | None = None,
    ):
        self.explicit_file = yaml_file
        includes = cli_includes(sys.argv if argv is None else argv)
        super().__init__(settings_cls, includes or None)

    def _read_files(self, files, **_kwargs):
        files_to_load = config_search_path()
        if self.explicit_file:
            files_to_load.append(Path(self.explicit_file))
        if files:
            if isinstance(files, (str, os.PathLike)):
                files = [files]
            files_to_load.extend(Path(f).expanduser() for f in files)

        result = {}
        for file_path in files_to_load:
            if not file_path.is_file():
                logger.debug(
                    "Configuration file not found (skipping)",
                    file=str(file_path),
                )
                continue
            with logger.span("Configuration loading", file=str(file_path)):
                data = self._load_file_recursive(file_path, set())
            result = deep_merge(result, data)
        return result

    def _load_file_recursive(
        self, filepath: Path, visited: set[Path]
    ) -> dict:
        """Load one file with its include: directives resolved.

        Raises:
            ValueError: If an include cycle is detected
        """
        filepath = filepath.resolve()
        if filepath in visited:
            raise ValueError(f"Circular include: {filepath}")
        visited = visited | {filepath}

        with open(filepath) as f:
            data = yaml.safe_load(f) or {}

        includes = data.pop("include", None) or []
        if isinstance(includes, str):
            includes = [includes]

        merged: dict = {}
        for inc in includes:
            inc_path = Path(inc).expanduser()
            if not inc_path.is_absolute():
                inc_path = filepath.parent / inc_path
            merged = deep_merge(
                merged, self._load_file_recursive(inc_path, visited)
            )
        return deep_merge(merged, data)
