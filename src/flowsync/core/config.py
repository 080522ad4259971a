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

from flowsync.core.base import BaseConfig
from flowsync.core.log import Logger
from flowsync.core.yaml_settings import YamlWithIncludesSettingsSource

# Modules reachable from YAML templates, e.g. {platformdirs.user_log_dir}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}


class GitConfig(BaseConfig):
    """Repository and remote settings."""

    remote: str = Field(
        default="origin",
        description="Remote that upstream branches are fetched from",
    )
    default_base: str = Field(
        default="develop",
        description="Base branch used by prepare when --base is omitted",
    )
    workdir: Path | None = Field(
        default=None,
        description=(
            "Repository working directory (default: current directory)"
        ),
    )
    conflict_indicators: list[str] = Field(
        default_factory=lambda: ["conflict"],
        description=(
            "Case-insensitive substrings of merge/rebase output that "
            "mark a failure as a conflict"
        ),
    )
    timeout: int | None = Field(
        default=None,
        description="Per-command timeout in seconds (None: no limit)",
    )
    stash_message: str = Field(
        default="Auto-stash by flowsync",
        description="Message for stashes created before a branch switch",
    )


class ResolveConfig(BaseConfig):
    """Parameters of the conflict classification rules."""

    import_prefixes: list[str] = Field(
        default_factory=lambda: ["import", "require", "from", "#include"],
        description="Line prefixes that mark an import statement",
    )
    max_addition_lines: int = Field(
        default=5,
        description=(
            "Largest non-blank line count per side for combining "
            "two additions"
        ),
    )
    deletion_indicators: list[str] = Field(
        default_factory=lambda: ["delete", "-"],
        description=(
            "Substrings that block combining additions (either side)"
        ),
    )
    analysis_preview_blocks: int = Field(
        default=3,
        description="Blocks listed per file in analysis reports",
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Console and run log settings"
    )
    git: GitConfig = Field(
        default_factory=GitConfig,
        description="Repository and remote settings",
    )
    resolve: ResolveConfig = Field(
        default_factory=ResolveConfig,
        description="Conflict classification settings",
    )
    log_level: str = Field(
        default="info",
        alias="log-level",
        description=(
            "Console log level: 'spew', 'trace', 'debug', 'info', "
            "'warn', 'error', 'fatal'"
        ),
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / "flowsync"
        ),
        description=(
            "Root directory for all log files "
            "(supports {platformdirs.*} templates)"
        ),
    )

    model_config = {"populate_by_name": True}

    @model_validator(mode='after')
    def _setup_logger(self) -> Config:
        """Configure the global logger once the config has loaded."""
        from flowsync.core.log import setup_logger

        if self.logger is None:
            self.logger = Logger(level=self.log_level)

        setup_logger(
            log_root=self.log_root,
            run_name="run",
            console=self.logger.console,
            file=self.logger.file,
            level=self.logger.level,
        )
        return self

    def close(self):
        """Close the global logger, then the remaining children."""
        from flowsync.core.log import logger
        if logger is not None:
            logger.close()

        super().close()


class State(BaseSettings):
    """Settings for one invocation.

    Sources, highest priority first: init arguments (including the CLI),
    environment variables (FLOWSYNC_CONFIG__GIT__REMOTE=upstream), .env,
    YAML files (with include support), file secrets.
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file="flowsync.yaml",
        env_file=".env",
        env_prefix="FLOWSYNC_",
        env_nested_delimiter="__",
        cli_parse_args=True,
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        extra='ignore'
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
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> State:
        """Expand {config.x.y} and {platformdirs.*} templates.

        Walks every string, Path, dict value and list item in the
        state tree.
        """
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
            return self._substitute_string(value)
        if isinstance(value, Path):
            return Path(self._substitute_string(str(value)))
        if isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
        return value

    def _substitute_string(self, value: str) -> str:
        """Replace {field.path} templates with actual field values.

        Examples:
            "{config.git.workdir}/.flowsync" -> "/home/user/repo/.flowsync"
            "{platformdirs.user_log_dir}" -> "~/.local/state/flowsync/log"

        Unknown references are left as written.
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
                    obj = obj('flowsync', appauthor=False)
                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        return re.sub(r'\{([a-z._]+)\}', replace_template, value)


__all__ = [
    "Config",
    "GitConfig",
    "ResolveConfig",
    "State",
    "BaseConfig",
]
