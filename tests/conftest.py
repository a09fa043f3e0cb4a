"""Shared test fixtures."""

import subprocess
from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from pydantic import SecretStr

import issueflow.settings as settings_module
from issueflow.models import BoardConfig, DatabaseCredentials, Issue
from issueflow.settings import IssueflowSettings


@pytest.fixture(autouse=True)
def reset_lru_cache():
    """Clear the config.toml cache before each test."""
    settings_module._load_toml.cache_clear()
    yield
    settings_module._load_toml.cache_clear()


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    root = tmp_path / "family-tree"
    root.mkdir()
    return root


@pytest.fixture
def settings(project_root: Path) -> IssueflowSettings:
    return IssueflowSettings(_env_file=None, project_root=project_root, db_ready_interval=0)  # type: ignore[call-arg]


@pytest.fixture
def board() -> BoardConfig:
    return BoardConfig(
        project_id="PVT_kwHOA",
        status_field_id="PVTSSF_status",
        todo_option_id="opt_todo",
        in_progress_option_id="opt_doing",
        in_review_option_id="opt_review",
    )


@pytest.fixture
def credentials() -> DatabaseCredentials:
    return DatabaseCredentials(
        admin_user="admin_user",
        admin_password=SecretStr("admin-pass"),
        user="app_user",
        user_password=SecretStr("user-pass"),
    )


@pytest.fixture
def issue() -> Issue:
    return Issue(
        number=42,
        title="ユーザー登録機能の追加",
        labels=["priority:high", "feature"],
        label="feature",
        status_option_id="opt_todo",
        project_item_id="PVTI_item42",
    )


@pytest.fixture
def development_parameters() -> dict[str, str]:
    """Kebab-case names under /family-tree/development."""
    return {
        "github-project-id": "PVT_kwHOA",
        "github-project-number": "3",
        "github-status-field-id": "PVTSSF_status",
        "github-todo-status-id": "opt_todo",
        "github-inprogress-status-id": "opt_doing",
        "github-inreview-status-id": "opt_review",
        "google-translate-api-key": "translate-key",
        "database-admin-user": "admin_user",
        "database-admin-password": "admin-pass",
        "database-user": "app_user",
        "database-user-password": "user-pass",
        "log-level": "debug",
    }


def ssm_pages(path: str, values: dict[str, str]) -> list[dict]:
    return [{"Parameters": [{"Name": f"{path}/{key}", "Value": value} for key, value in values.items()]}]


@pytest.fixture
def ssm_client_factory() -> Callable[[list[dict]], MagicMock]:
    """Build a MagicMock SSM client whose get_parameters_by_path paginator yields pages."""

    def _make(pages: list[dict]) -> MagicMock:
        client = MagicMock()
        client.get_paginator.return_value.paginate.return_value = pages
        return client

    return _make


def completed(stdout: str = "", returncode: int = 0, stderr: str = "") -> subprocess.CompletedProcess:
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)
