"""Tests for stage-typed workflow contexts and the step pipeline."""

from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pydantic import SecretStr, ValidationError

from issueflow.context import InitializedContext, IssueContext, SlugContext
from issueflow.errors import ConfigurationError, WorkflowError
from issueflow.models import BoardConfig, DatabaseCredentials, Issue
from issueflow.parameters import ParameterStore
from issueflow.settings import IssueflowSettings
from issueflow.tracker import IssueTracker
from issueflow.workflows.common import Pipeline, load_board


@pytest.fixture
def initialized(
    settings: IssueflowSettings, project_root: Path, board: BoardConfig, credentials: DatabaseCredentials
) -> InitializedContext:
    return InitializedContext(
        settings=settings,
        project_root=project_root,
        parameter_store=ParameterStore(MagicMock(), settings),
        tracker=IssueTracker(board, settings),
        board=board,
        credentials=credentials,
        translate_api_key=SecretStr("translate-key"),
        log_level="info",
    )


class TestAdvance:
    def test_carries_fields_forward(self, initialized: InitializedContext, issue: Issue) -> None:
        fetched = initialized.advance(IssueContext, issue=issue)
        slugged = fetched.advance(SlugContext, slug="add-login")

        assert isinstance(slugged, SlugContext)
        assert slugged.issue == issue
        assert slugged.slug == "add-login"
        assert slugged.tracker is initialized.tracker
        assert slugged.parameter_store is initialized.parameter_store
        assert slugged.log_level == "info"

    def test_missing_stage_field(self, initialized: InitializedContext) -> None:
        with pytest.raises(ValidationError):
            initialized.advance(SlugContext, slug="add-login")

    def test_frozen(self, initialized: InitializedContext) -> None:
        with pytest.raises(ValidationError):
            initialized.log_level = "debug"


class TestPipeline:
    def test_tags_workflow_error(self) -> None:
        pipeline = Pipeline("start-issue", 2)
        with pytest.raises(ConfigurationError) as exc_info:
            with pipeline.step("Load configuration"):
                raise ConfigurationError("AWS_VAULT is not set")
        assert exc_info.value.step == "Load configuration"
        assert pipeline.index == 1

    def test_keeps_existing_tag(self) -> None:
        with pytest.raises(WorkflowError) as exc_info:
            with Pipeline("post-merge", 1).step("Outer"):
                raise WorkflowError("boom", step="Inner")
        assert exc_info.value.step == "Inner"

    def test_wraps_unexpected_errors(self) -> None:
        with pytest.raises(WorkflowError) as exc_info:
            with Pipeline("post-merge", 1).step("Remove worktree"):
                raise OSError("disk full")
        assert exc_info.value.step == "Remove worktree"
        assert str(exc_info.value) == "OSError: disk full"


def test_load_board_reports_missing_key(board: BoardConfig) -> None:
    parameters = {
        "GITHUB_PROJECT_ID": board.project_id,
        "GITHUB_STATUS_FIELD_ID": board.status_field_id,
        "GITHUB_TODO_STATUS_ID": board.todo_option_id,
        "GITHUB_INPROGRESS_STATUS_ID": board.in_progress_option_id,
    }
    with pytest.raises(WorkflowError, match="GITHUB_INREVIEW_STATUS_ID"):
        load_board(parameters, "/family-tree/development")
