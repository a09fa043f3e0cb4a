"""issueflow CLI — start-issue and post-merge workflows."""

import asyncio
from pathlib import Path
from typing import Annotated

import typer
from pydantic import SecretStr
from rich import print as rprint
from rich.table import Table

from issueflow.environment import build_environment
from issueflow.errors import ConfigurationError
from issueflow.log import log_error
from issueflow.models import DatabaseCredentials
from issueflow.settings import get_settings
from issueflow.workflows import post_merge, start_issue

app = typer.Typer(help="issueflow: per-issue worktree environments from a GitHub Projects board", no_args_is_help=True)


def _fail(exc: BaseException, *, traceback: bool = True) -> typer.Exit:
    log_error(exc, traceback=traceback)
    return typer.Exit(1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("start-issue")
def start_issue_cmd() -> None:
    """Pick the top Todo issue and provision its worktree, database and AWS profile."""
    try:
        settings = get_settings()
        asyncio.run(start_issue.run(settings))
    except Exception as exc:
        raise _fail(exc) from exc


@app.command("post-merge")
def post_merge_cmd(
    issue_number: Annotated[
        int | None,
        typer.Argument(help="Issue number (default: ISSUEFLOW_ISSUE_NUMBER or the current branch)"),
    ] = None,
) -> None:
    """Tear down the worktree environment of a merged issue and close it."""
    try:
        settings = get_settings(issue_number=issue_number)
        number = post_merge.resolve_issue_number(settings)
        asyncio.run(post_merge.run(settings, number))
    except Exception as exc:
        raise _fail(exc) from exc


@app.command("show-env")
def show_env(
    issue_number: Annotated[int, typer.Argument(help="Issue number")],
    slug: Annotated[str, typer.Argument(help="Slug of the translated title")],
    label: Annotated[str, typer.Option("--label", "-l", help="Issue type label")] = "feature",
    project_root: Annotated[
        Path,
        typer.Option("--project-root", help="Main worktree the environment is relative to"),
    ] = Path("."),
) -> None:
    """Print the identifiers an issue gets, without touching any external system."""
    settings = get_settings()
    # URLs are not shown, so the credentials only need to be well-formed
    credentials = DatabaseCredentials(
        admin_user="admin", admin_password=SecretStr(""), user="user", user_password=SecretStr("")
    )
    try:
        env = build_environment(settings, project_root.resolve(), issue_number, label, slug, credentials)
    except ConfigurationError as exc:
        raise _fail(exc, traceback=False) from exc

    table = Table(title=f"#{issue_number}: {slug}")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Branch", env.branch_name)
    table.add_row("Worktree", str(env.worktree_path))
    table.add_row("Web port", str(env.web_port))
    table.add_row("API port", str(env.api_port))
    table.add_row("App name", env.app_name)
    table.add_row("Database", env.database_name)
    table.add_row("AWS profile", env.aws_profile_name)
    table.add_row("Parameter path", settings.worktree_parameter_path(issue_number))

    rprint(table)


@app.command("config-show")
def config_show() -> None:
    """Show resolved settings."""
    settings = get_settings()

    table = Table(title="issueflow configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    for name, value in settings.model_dump().items():
        table.add_row(name, "[dim](not set)[/dim]" if value is None else str(value))

    rprint(table)


# ---------------------------------------------------------------------------
# Console scripts
# ---------------------------------------------------------------------------


def start_issue_main() -> None:
    typer.run(start_issue_cmd)


def post_merge_main() -> None:
    typer.run(post_merge_cmd)
