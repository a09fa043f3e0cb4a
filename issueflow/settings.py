"""Settings resolution: built-in defaults < .env < config.toml < environment < keyword overrides."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
from pydantic_settings import BaseSettings, SettingsConfigDict

from issueflow.errors import ConfigurationError

CONFIG_PATH = Path.home() / ".config" / "issueflow" / "config.toml"


class IssueflowSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ISSUEFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Repository
    project_root: Path | None = None  # main worktree; resolved from git when unset
    trunk_branch: str = "main"
    issue_number: int | None = None  # post-merge only

    # Parameter Store
    parameter_root: str = "/family-tree"

    # Issue board
    status_field_name: str = "Status"
    project_items_limit: int = 100
    issue_labels_limit: int = 10
    priority_label_prefix: str = "priority"
    default_label: str = "no-label"
    close_comment: str = "✅ Development complete, merged"

    # Translation
    translate_endpoint: str = "https://translation.googleapis.com/language/translate/v2"
    translate_source_lang: str = "ja"
    translate_target_lang: str = "en"

    # Environment model
    web_port_base: int = 3000
    api_port_base: int = 4000
    max_issue_number: int = 999  # web ports must stay below api_port_base
    database_name_prefix: str = "family_tree_"
    database_slug_max_length: int = 50
    database_host: str = "db"
    database_port: int = 5432
    database_admin_database: str = "postgres"

    # AWS CLI profile
    aws_profile_prefix: str = "family-tree-worktree"
    aws_reference_profile: str = "family-tree-dev"
    aws_source_profile: str = "default"

    # Containers
    database_service: str = "db"
    db_ready_attempts: int = 30
    db_ready_interval: float = 2.0
    migrate_command: str = "npx prisma migrate deploy"

    # Editor
    editor_command: str = "code"

    @property
    def development_path(self) -> str:
        return f"{self.parameter_root}/development"

    def worktree_parameter_path(self, issue_number: int) -> str:
        return f"{self.parameter_root}/worktree/{issue_number}"


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/issueflow/config.toml, returning an empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    with CONFIG_PATH.open() as fh:
        return tomlkit.load(fh)


def _toml_defaults(config: Mapping) -> dict:
    # Only top-level scalars; tables are reserved for future per-repo sections.
    return {k: v for k, v in config.items() if not isinstance(v, Mapping)}


def get_settings(**overrides) -> IssueflowSettings:
    """Return settings with config.toml values as defaults under env vars.

    Keyword overrides win over everything (the CLI uses this for arguments).
    """
    defaults = _toml_defaults(_load_toml())
    for name in list(defaults):
        # env vars and .env must still beat the TOML file
        if f"ISSUEFLOW_{name.upper()}" in os.environ:
            defaults.pop(name)
    defaults.update({k: v for k, v in overrides.items() if v is not None})
    return IssueflowSettings(**defaults)


def require_aws_environment() -> str:
    """Check the aws-vault session and region before any AWS call. Returns the region."""
    if not os.environ.get("AWS_VAULT"):
        raise ConfigurationError("AWS_VAULT is not set. Run this command through aws-vault exec.")
    region = os.environ.get("AWS_REGION")
    if not region:
        raise ConfigurationError("AWS_REGION is not set.")
    return region
