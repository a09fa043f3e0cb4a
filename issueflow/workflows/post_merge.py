"""post-merge: tear down everything start-issue created for one issue.

The worktree listing, not a stored record, tells us the branch; the
environment model then recomputes the same database name and profile
name start-issue used. Every step checks before it deletes, so the whole
pipeline can be re-run after a partial failure.
"""

import re
from pathlib import Path
from typing import Any, TypeVar

from issueflow.aws_profile import AwsProfileManager
from issueflow.container import ContainerManager
from issueflow.context import ParametersDeletedContext, TeardownContext
from issueflow.database import DatabaseProvisioner
from issueflow.environment import build_environment, parse_branch_name
from issueflow.errors import ConfigurationError, GitOperationError
from issueflow.git import GitWorktreeManager
from issueflow.log import log
from issueflow.parameters import ParameterStore, create_ssm_client
from issueflow.settings import IssueflowSettings
from issueflow.tracker import IssueTracker
from issueflow.workflows.common import Pipeline, load_board, load_credentials, resolve_project_root

STEPS = 8

T = TypeVar("T", bound=TeardownContext)

_BRANCH_ISSUE = re.compile(r"^[^/]+/(\d+)-")


def resolve_issue_number(settings: IssueflowSettings, cwd: Path | None = None) -> int:
    """Issue number from settings (argument or env), else from the current ``label/n-slug`` branch."""
    if settings.issue_number is not None:
        return settings.issue_number
    try:
        branch = GitWorktreeManager(cwd or Path.cwd()).current_branch()
    except GitOperationError as exc:
        raise ConfigurationError("No issue number given and the current branch is unknown") from exc
    match = _BRANCH_ISSUE.match(branch)
    if not match:
        raise ConfigurationError(
            f"No issue number given and branch '{branch}' does not look like <label>/<n>-<slug>. "
            "Pass ISSUE_NUMBER or set ISSUEFLOW_ISSUE_NUMBER."
        )
    return int(match.group(1))


async def initialize(settings: IssueflowSettings, issue_number: int, ssm_client: Any = None) -> TeardownContext:
    store = ParameterStore(ssm_client or create_ssm_client(), settings)
    path = store.development_path
    parameters = await store.get_parameter_map(path)

    board = load_board(parameters, path)
    credentials = load_credentials(parameters, path)
    project_root = resolve_project_root(settings)

    worktree = GitWorktreeManager(project_root).get_worktree_info(issue_number)
    label, slug = parse_branch_name(worktree.branch, issue_number)
    environment = build_environment(settings, project_root, issue_number, label, slug, credentials)

    return TeardownContext(
        settings=settings,
        project_root=project_root,
        parameter_store=store,
        tracker=IssueTracker(board, settings, cwd=project_root),
        board=board,
        credentials=credentials,
        issue_number=issue_number,
        worktree=worktree,
        environment=environment,
    )


def merge_trunk(ctx: T) -> T:
    GitWorktreeManager(ctx.project_root).merge_to_trunk(ctx.settings.trunk_branch)
    return ctx


def drop_database(ctx: T) -> T:
    DatabaseProvisioner(ctx.settings, ctx.credentials.admin_user).delete(
        ctx.environment.database_name, ctx.credentials.admin_password.get_secret_value()
    )
    return ctx


async def delete_parameters(ctx: TeardownContext) -> ParametersDeletedContext:
    result = await ctx.parameter_store.delete_parameters_by_path(ctx.issue_number)
    return ctx.advance(ParametersDeletedContext, deleted_parameters=result)


def delete_aws_profile(ctx: T) -> T:
    AwsProfileManager(ctx.settings).delete(ctx.issue_number)
    return ctx


def cleanup_container(ctx: T) -> T:
    ContainerManager().cleanup(ctx.environment.app_name)
    return ctx


def remove_worktree(ctx: T) -> T:
    git = GitWorktreeManager(ctx.project_root)
    git.remove_worktree(ctx.worktree.path)
    git.remove_local_branch(ctx.worktree.branch)
    git.remove_remote_branch(ctx.worktree.branch)
    return ctx


def close_issue(ctx: T) -> T:
    ctx.tracker.close_issue(ctx.issue_number)
    return ctx


async def run(settings: IssueflowSettings, issue_number: int, *, ssm_client: Any = None) -> ParametersDeletedContext:
    log(f"Starting post-merge for issue #{issue_number}")
    pipeline = Pipeline("post-merge", STEPS)

    with pipeline.step("Load configuration and worktree"):
        ctx = await initialize(settings, issue_number, ssm_client)
    with pipeline.step(f"Update {settings.trunk_branch}"):
        ctx = merge_trunk(ctx)
    with pipeline.step("Drop database"):
        ctx = drop_database(ctx)
    with pipeline.step("Delete worktree parameters"):
        cleaned = await delete_parameters(ctx)
    with pipeline.step("Delete AWS profile"):
        cleaned = delete_aws_profile(cleaned)
    with pipeline.step("Remove container and image"):
        cleaned = cleanup_container(cleaned)
    with pipeline.step("Remove worktree and branches"):
        cleaned = remove_worktree(cleaned)
    with pipeline.step("Close issue"):
        cleaned = close_issue(cleaned)

    log("✓ post-merge completed")
    return cleaned
