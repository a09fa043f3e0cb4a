"""Pieces shared by start-issue and post-merge."""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from pathlib import Path

from pydantic import SecretStr

from issueflow.errors import WorkflowError
from issueflow.git import find_repo_root
from issueflow.log import log
from issueflow.models import BoardConfig, DatabaseCredentials
from issueflow.parameters import get_required
from issueflow.settings import IssueflowSettings


def load_board(parameters: Mapping[str, str], path: str) -> BoardConfig:
    return BoardConfig(
        project_id=get_required(parameters, "GITHUB_PROJECT_ID", path),
        status_field_id=get_required(parameters, "GITHUB_STATUS_FIELD_ID", path),
        todo_option_id=get_required(parameters, "GITHUB_TODO_STATUS_ID", path),
        in_progress_option_id=get_required(parameters, "GITHUB_INPROGRESS_STATUS_ID", path),
        in_review_option_id=get_required(parameters, "GITHUB_INREVIEW_STATUS_ID", path),
    )


def load_credentials(parameters: Mapping[str, str], path: str) -> DatabaseCredentials:
    return DatabaseCredentials(
        admin_user=get_required(parameters, "DATABASE_ADMIN_USER", path),
        admin_password=SecretStr(get_required(parameters, "DATABASE_ADMIN_PASSWORD", path)),
        user=get_required(parameters, "DATABASE_USER", path),
        user_password=SecretStr(get_required(parameters, "DATABASE_USER_PASSWORD", path)),
    )


def resolve_project_root(settings: IssueflowSettings) -> Path:
    return settings.project_root.resolve() if settings.project_root else find_repo_root()


class Pipeline:
    """Numbers and logs steps, and tags an escaping error with the step name.

    There is no rollback: an error leaves earlier steps applied and is re-raised.
    """

    def __init__(self, name: str, total: int) -> None:
        self.name = name
        self.total = total
        self.index = 0

    @contextmanager
    def step(self, title: str) -> Iterator[None]:
        self.index += 1
        log(f"Step {self.index}/{self.total}: {title}")
        try:
            yield
        except WorkflowError as exc:
            if exc.step is None:
                exc.step = title
            raise
        except Exception as exc:
            raise WorkflowError(f"{type(exc).__name__}: {exc}", step=title) from exc
