"""Tests for the typer CLI."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from typer.testing import CliRunner

from issueflow.errors import IssueNotFoundError
from issueflow.main import app, post_merge_main, start_issue_main
from issueflow.settings import IssueflowSettings

runner = CliRunner()


class TestStartIssue:
    def test_success(self, settings: IssueflowSettings) -> None:
        with patch("issueflow.main.get_settings", return_value=settings), patch(
            "issueflow.workflows.start_issue.run", new_callable=AsyncMock
        ) as mock_run:
            result = runner.invoke(app, ["start-issue"])

        assert result.exit_code == 0
        mock_run.assert_awaited_once_with(settings)

    def test_failure_exits_non_zero(self, settings: IssueflowSettings) -> None:
        error = IssueNotFoundError("opt_todo")
        error.step = "Fetch top-priority issue"
        with patch("issueflow.main.get_settings", return_value=settings), patch(
            "issueflow.workflows.start_issue.run", new_callable=AsyncMock, side_effect=error
        ):
            result = runner.invoke(app, ["start-issue"])

        assert result.exit_code == 1
        assert "No issue found" in result.output


class TestPostMerge:
    def test_explicit_issue_number(self, settings: IssueflowSettings) -> None:
        resolved = settings.model_copy(update={"issue_number": 42})
        with patch("issueflow.main.get_settings", return_value=resolved) as mock_settings, patch(
            "issueflow.workflows.post_merge.run", new_callable=AsyncMock
        ) as mock_run:
            result = runner.invoke(app, ["post-merge", "42"])

        assert result.exit_code == 0
        mock_settings.assert_called_once_with(issue_number=42)
        mock_run.assert_awaited_once_with(resolved, 42)

    def test_unresolvable_issue_number(self, settings: IssueflowSettings) -> None:
        with patch("issueflow.main.get_settings", return_value=settings), patch(
            "issueflow.runner.run", return_value="main"
        ), patch("issueflow.workflows.post_merge.run", new_callable=AsyncMock) as mock_run:
            result = runner.invoke(app, ["post-merge"])

        assert result.exit_code == 1
        mock_run.assert_not_awaited()


class TestShowEnv:
    def test_prints_identifiers(self, settings: IssueflowSettings, project_root: Path) -> None:
        with patch("issueflow.main.get_settings", return_value=settings):
            result = runner.invoke(app, ["show-env", "42", "add-login", "--project-root", str(project_root)])

        assert result.exit_code == 0
        assert "feature/42-add-login" in result.output
        assert "3042" in result.output
        assert "4042" in result.output
        assert "family_tree_add_login" in result.output
        assert "family-tree-worktree-42" in result.output

    def test_label_option(self, settings: IssueflowSettings, project_root: Path) -> None:
        with patch("issueflow.main.get_settings", return_value=settings):
            result = runner.invoke(
                app, ["show-env", "7", "fix-header", "-l", "bug", "--project-root", str(project_root)]
            )

        assert result.exit_code == 0
        assert "bug/7-fix-header" in result.output


def test_config_show(settings: IssueflowSettings) -> None:
    with patch("issueflow.main.get_settings", return_value=settings):
        result = runner.invoke(app, ["config-show"])

    assert result.exit_code == 0
    assert "trunk_branch" in result.output
    assert "parameter_root" in result.output


class TestConsoleScripts:
    def test_start_issue_exit_codes(self, settings: IssueflowSettings, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "argv", ["start-issue"])
        with patch("issueflow.main.get_settings", return_value=settings), patch(
            "issueflow.workflows.start_issue.run", new_callable=AsyncMock
        ) as mock_run:
            with pytest.raises(SystemExit) as exc_info:
                start_issue_main()
        assert exc_info.value.code == 0
        mock_run.assert_awaited_once_with(settings)

        with patch("issueflow.main.get_settings", return_value=settings), patch(
            "issueflow.workflows.start_issue.run", new_callable=AsyncMock, side_effect=IssueNotFoundError("opt_todo")
        ):
            with pytest.raises(SystemExit) as exc_info:
                start_issue_main()
        assert exc_info.value.code == 1

    def test_post_merge_takes_issue_number(self, settings: IssueflowSettings, monkeypatch: pytest.MonkeyPatch) -> None:
        resolved = settings.model_copy(update={"issue_number": 42})
        monkeypatch.setattr(sys, "argv", ["post-merge", "42"])
        with patch("issueflow.main.get_settings", return_value=resolved) as mock_settings, patch(
            "issueflow.workflows.post_merge.run", new_callable=AsyncMock
        ) as mock_run:
            with pytest.raises(SystemExit) as exc_info:
                post_merge_main()

        assert exc_info.value.code == 0
        mock_settings.assert_called_once_with(issue_number=42)
        mock_run.assert_awaited_once_with(resolved, 42)

    def test_post_merge_failure(self, settings: IssueflowSettings, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(sys, "argv", ["post-merge"])
        with patch("issueflow.main.get_settings", return_value=settings), patch(
            "issueflow.runner.run", return_value="main"
        ):
            with pytest.raises(SystemExit) as exc_info:
                post_merge_main()
        assert exc_info.value.code == 1


def test_show_env_rejects_out_of_range_issue(settings: IssueflowSettings, project_root: Path) -> None:
    with patch("issueflow.main.get_settings", return_value=settings):
        result = runner.invoke(app, ["show-env", "1042", "add-login", "--project-root", str(project_root)])

    assert result.exit_code == 1
