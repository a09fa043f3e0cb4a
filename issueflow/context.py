"""Stage-typed workflow contexts.

Each pipeline step takes one stage and returns the next, which subclasses it
and adds the fields that step produced. A step that needs ``environment``
simply declares ``WorktreeContext`` as its input, so it cannot be called
before the worktree step has run. Contexts are frozen; ``advance`` builds a
new one instead of mutating.
"""

from pathlib import Path
from typing import TypeVar

from pydantic import BaseModel, ConfigDict, SecretStr

from issueflow.models import (
    BoardConfig,
    DatabaseCredentials,
    EnvironmentParameters,
    Issue,
    RegistrationResult,
    WorktreeInfo,
)
from issueflow.parameters import ParameterStore
from issueflow.settings import IssueflowSettings
from issueflow.tracker import IssueTracker

S = TypeVar("S", bound="StageContext")


class StageContext(BaseModel):
    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    settings: IssueflowSettings
    project_root: Path
    parameter_store: ParameterStore
    tracker: IssueTracker
    board: BoardConfig
    credentials: DatabaseCredentials

    def advance(self, stage: type[S], **fields) -> S:
        """Build the next stage from this one plus the new fields."""
        return stage(**dict(self), **fields)


# ---------------------------------------------------------------------------
# start-issue
# ---------------------------------------------------------------------------


class InitializedContext(StageContext):
    translate_api_key: SecretStr
    log_level: str


class IssueContext(InitializedContext):
    issue: Issue


class SlugContext(IssueContext):
    slug: str


class WorktreeContext(SlugContext):
    environment: EnvironmentParameters


class RegisteredContext(WorktreeContext):
    registration: RegistrationResult


class ProfileContext(RegisteredContext):
    aws_profile: str


class DatabaseContext(ProfileContext):
    database: str


class PromptContext(DatabaseContext):
    prompt_path: Path


class EditorContext(PromptContext):
    editor_pid: int


# ---------------------------------------------------------------------------
# post-merge
# ---------------------------------------------------------------------------


class TeardownContext(StageContext):
    issue_number: int
    worktree: WorktreeInfo
    environment: EnvironmentParameters


class ParametersDeletedContext(TeardownContext):
    deleted_parameters: RegistrationResult
