"""Shared pydantic models — the contract between components and the workflows."""

from pathlib import Path

from pydantic import BaseModel, ConfigDict, SecretStr


class Issue(BaseModel):
    model_config = ConfigDict(frozen=True)

    number: int
    title: str
    labels: list[str] = []
    label: str  # first non-priority label, or the default label
    status_option_id: str | None = None
    project_item_id: str  # board item node ID, not the issue number


class BoardConfig(BaseModel):
    """Project board IDs read from Parameter Store."""

    model_config = ConfigDict(frozen=True)

    project_id: str
    status_field_id: str
    todo_option_id: str
    in_progress_option_id: str
    in_review_option_id: str


class DatabaseCredentials(BaseModel):
    model_config = ConfigDict(frozen=True)

    admin_user: str
    admin_password: SecretStr
    user: str
    user_password: SecretStr


class EnvironmentParameters(BaseModel):
    """Everything derived from (issue number, label, slug, credentials)."""

    model_config = ConfigDict(frozen=True)

    issue_number: int
    label: str
    slug: str
    branch_name: str
    worktree_path: Path
    web_port: int
    api_port: int
    app_name: str
    database_name: str
    database_url: SecretStr
    database_admin_url: SecretStr
    aws_profile_name: str


class WorktreeInfo(BaseModel):
    """A worktree as reported by ``git worktree list``."""

    model_config = ConfigDict(frozen=True)

    issue_number: int
    path: Path
    branch: str


class RegistrationResult(BaseModel):
    """Outcome of a bulk put/delete against Parameter Store."""

    model_config = ConfigDict(frozen=True)

    success_count: int
    error_count: int

    @property
    def total(self) -> int:
        return self.success_count + self.error_count
