"""Configuration model for verdocs publish runs.

Provides a Pydantic v2 model describing where documentation is published
and how it is generated. Every field has a working default, so a bare
``verdocs publish v1.2.3`` inside a repository needs no configuration.

Key Concepts:
    PublishConfig: Branch/remote names, reserved root entries, generator
        and installer commands, commit message templates.
    Override precedence: keyword overrides > ``VERDOCS_*`` environment
        variables > YAML file (``.verdocs.yml``) > field defaults.

Architecture Decisions:
    - Pydantic v2 (not dataclass): validation of reserved names at load
      time, ``model_dump_json()`` for ``verdocs publish --json``.
    - from_env() classmethod: explicit env-var parsing, same shape as the
      YAML keys.
    - Commands are argument lists with ``{source}``, ``{output}`` and
      ``{version}`` placeholders, never shell strings.

Tags:
    config, settings, pydantic, environment, yaml
"""

from __future__ import annotations

import os
import shlex
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator, model_validator

from verdocs.core.errors import ConfigError
from verdocs.publish.version import try_parse_label

DEFAULT_CONFIG_FILE = ".verdocs.yml"


class PublishConfig(BaseModel):
    """Settings for one publish run.

    Example::

        config = PublishConfig(
            branch="gh-pages",
            generator_command=["pdoc", "-o", "{output}", "mypackage"],
        )
    """

    # Publish branch
    branch: str = Field(default="gh-pages", description="Branch receiving the documentation")
    remote: str = Field(default="origin", description="Remote consulted when the branch is not local")

    # Reserved root entries
    latest_dir: str = Field(default="latest", description="Directory holding the latest redirect")
    site_config: str | None = Field(
        default="_config.yml",
        description="Static-host configuration file preserved at the branch root",
    )
    seed_site_config: bool = Field(
        default=True,
        description="Write site_config into the initial commit of a new branch",
    )
    landing_pages: list[str] = Field(
        default_factory=lambda: ["index.html", "index.md"],
        description="Files that count as an existing landing page",
    )
    landing_page: str = Field(default="index.md", description="Name of the synthesized landing page")
    site_title: str = Field(default="API Documentation", description="Heading of the landing page")
    versions_data_file: str | None = Field(
        default=None,
        description="Optional YAML list of published versions (e.g. _data/versions.yml)",
    )

    # Source tree
    custom_docs_dir: str = Field(default="docs", description="Source directory copied to the branch root")
    carry_files: list[str] = Field(
        default_factory=list,
        description="Files copied from the repository root into the source copy when missing",
    )

    # External tools
    generator_command: list[str] = Field(
        default_factory=lambda: ["mkdocs", "build", "--site-dir", "{output}"],
        description="Documentation generator command; run inside the source copy",
    )
    install_command: list[str] = Field(
        default_factory=list,
        description="Dependency installer run once before generation (empty: skipped)",
    )
    generator_timeout: float | None = Field(
        default=None,
        description="Seconds before the generator is abandoned (None: no limit)",
    )

    # Commits
    commit_message: str = Field(default="Add {version} docs")
    initial_commit_message: str = Field(default="Initial {branch} commit")

    # Logging
    log_level: str = Field(default="INFO")
    json_logs: bool | None = Field(default=None, description="None: JSON when stderr is not a tty")

    @field_validator("generator_command")
    @classmethod
    def _generator_required(cls, value: list[str]) -> list[str]:
        if not value:
            raise ValueError("generator_command must not be empty")
        return value

    @field_validator("commit_message")
    @classmethod
    def _commit_message_has_version(cls, value: str) -> str:
        if "{version}" not in value:
            raise ValueError("commit_message must contain the {version} placeholder")
        return value

    @model_validator(mode="after")
    def _reserved_names(self) -> PublishConfig:
        if try_parse_label(self.latest_dir) is not None:
            raise ValueError(f"latest_dir {self.latest_dir!r} collides with version directory names")
        for name in (self.latest_dir, self.site_config, self.landing_page):
            if name is not None and ("/" in name or name in ("", ".", "..", ".git")):
                raise ValueError(f"{name!r} is not a valid root entry name")
        return self

    # ------------------------------------------------------------------
    # Derived values
    # ------------------------------------------------------------------

    def reserved_root_entries(self) -> set[str]:
        """Root entries that reconciliation must never delete."""
        reserved = {self.latest_dir}
        if self.site_config:
            reserved.add(self.site_config)
        return reserved

    def format_initial_commit_message(self) -> str:
        return self.initial_commit_message.format(branch=self.branch)

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def from_yaml(cls, yaml_path: Path, **overrides: Any) -> PublishConfig:
        """Load configuration from a YAML file.

        Raises:
            ConfigError: If the file cannot be read, parsed or validated.
        """
        try:
            with open(yaml_path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as exc:
            raise ConfigError(f"Cannot read config file {yaml_path}: {exc}", cause=exc) from exc
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {yaml_path} must contain a mapping")
        data.update(overrides)
        return cls._validated(data, source=str(yaml_path))

    @classmethod
    def from_env(cls, base: dict[str, Any] | None = None, **overrides: Any) -> PublishConfig:
        """Create config from VERDOCS_* environment variables."""
        env_map = {
            "branch": "VERDOCS_BRANCH",
            "remote": "VERDOCS_REMOTE",
            "latest_dir": "VERDOCS_LATEST_DIR",
            "custom_docs_dir": "VERDOCS_CUSTOM_DOCS_DIR",
            "site_title": "VERDOCS_SITE_TITLE",
            "versions_data_file": "VERDOCS_VERSIONS_DATA_FILE",
            "generator_command": "VERDOCS_GENERATOR_COMMAND",
            "install_command": "VERDOCS_INSTALL_COMMAND",
            "generator_timeout": "VERDOCS_GENERATOR_TIMEOUT",
            "log_level": "VERDOCS_LOG_LEVEL",
            "json_logs": "VERDOCS_JSON_LOGS",
        }
        values: dict[str, Any] = dict(base or {})
        for field_name, env_var in env_map.items():
            env_val = os.environ.get(env_var)
            if env_val is None:
                continue
            if field_name in ("generator_command", "install_command"):
                values[field_name] = shlex.split(env_val)
            elif field_name == "generator_timeout":
                try:
                    values[field_name] = float(env_val) if env_val else None
                except ValueError as exc:
                    raise ConfigError(
                        f"{env_var} must be a number of seconds, got {env_val!r}", cause=exc
                    ) from exc
            elif field_name == "json_logs":
                values[field_name] = env_val.lower() in ("true", "1", "yes")
            else:
                values[field_name] = env_val
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls._validated(values, source="environment")

    @classmethod
    def load(cls, path: Path | None = None, *, repo_root: Path | None = None, **overrides: Any) -> PublishConfig:
        """Resolve the effective configuration.

        Reads ``path`` if given, else ``<repo_root>/.verdocs.yml`` when it
        exists, then applies environment variables and ``overrides``.
        """
        base: dict[str, Any] = {}
        if path is None and repo_root is not None and (repo_root / DEFAULT_CONFIG_FILE).is_file():
            path = repo_root / DEFAULT_CONFIG_FILE
        if path is not None:
            base = cls.from_yaml(path).model_dump(exclude_unset=True)
        return cls.from_env(base, **overrides)

    @classmethod
    def _validated(cls, data: dict[str, Any], *, source: str) -> PublishConfig:
        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigError(f"Invalid configuration ({source}): {exc}", cause=exc) from exc


__all__ = ["PublishConfig", "DEFAULT_CONFIG_FILE"]
