"""Deterministic per-issue identifiers.

Everything here is a pure function of the issue number, label, slug,
credentials and settings. start-issue and post-merge both call
``build_environment`` and must get identical ports, database name and
branch name, so nothing in this module may read the clock, the network
or the filesystem.
"""

from pathlib import Path

from pydantic import SecretStr

from issueflow.errors import ConfigurationError, GitOperationError
from issueflow.models import DatabaseCredentials, EnvironmentParameters
from issueflow.settings import IssueflowSettings

MAX_PORT = 65535


def web_port(issue_number: int, base: int = 3000) -> int:
    return base + issue_number


def api_port(issue_number: int, base: int = 4000) -> int:
    return base + issue_number


def check_issue_number(issue_number: int, settings: IssueflowSettings) -> None:
    """Reject issue numbers whose ports would overlap another issue's or leave the TCP range."""
    if not 1 <= issue_number <= settings.max_issue_number:
        raise ConfigurationError(
            f"Issue #{issue_number} is outside the supported range 1-{settings.max_issue_number}"
        )
    web = web_port(issue_number, settings.web_port_base)
    api = api_port(issue_number, settings.api_port_base)
    if web >= settings.api_port_base or api > MAX_PORT:
        raise ConfigurationError(
            f"Issue #{issue_number} maps to ports {web}/{api}, which collide with the API port range "
            f"or exceed {MAX_PORT}; check web_port_base, api_port_base and max_issue_number"
        )


def truncate_slug(slug: str, max_length: int = 50) -> str:
    """Cut slug at the last hyphen at or before max_length, or hard-cut if there is none."""
    if len(slug) <= max_length:
        return slug
    cut = slug.rfind("-", 0, max_length + 1)
    if cut > 0:
        return slug[:cut]
    return slug[:max_length]


def database_name(slug: str, prefix: str = "family_tree_", max_length: int = 50) -> str:
    return prefix + truncate_slug(slug, max_length).replace("-", "_")


def branch_name(label: str, issue_number: int, slug: str) -> str:
    return f"{label}/{issue_number}-{slug}"


def worktree_path(project_root: Path, label: str, issue_number: int, slug: str) -> Path:
    """Worktrees live beside the main checkout: ``<root>/../<label>/<n>-<slug>``."""
    return (project_root.parent / label / f"{issue_number}-{slug}").resolve()


def app_name(slug: str) -> str:
    return f"app-{slug}"


def aws_profile_name(issue_number: int, prefix: str = "family-tree-worktree") -> str:
    return f"{prefix}-{issue_number}"


def database_url(user: str, password: str, database: str, host: str = "db", port: int = 5432) -> str:
    return f"postgresql://{user}:{password}@{host}:{port}/{database}"


def parse_branch_name(branch: str, issue_number: int) -> tuple[str, str]:
    """Recover (label, slug) from ``{label}/{n}-{slug}``."""
    label, sep, rest = branch.partition("/")
    prefix = f"{issue_number}-"
    if not sep or not rest.startswith(prefix) or len(rest) == len(prefix):
        raise GitOperationError(f"Branch '{branch}' does not match <label>/{issue_number}-<slug>")
    return label, rest[len(prefix) :]


def build_environment(
    settings: IssueflowSettings,
    project_root: Path,
    issue_number: int,
    label: str,
    slug: str,
    credentials: DatabaseCredentials,
) -> EnvironmentParameters:
    check_issue_number(issue_number, settings)
    db_name = database_name(slug, settings.database_name_prefix, settings.database_slug_max_length)
    return EnvironmentParameters(
        issue_number=issue_number,
        label=label,
        slug=slug,
        branch_name=branch_name(label, issue_number, slug),
        worktree_path=worktree_path(project_root, label, issue_number, slug),
        web_port=web_port(issue_number, settings.web_port_base),
        api_port=api_port(issue_number, settings.api_port_base),
        app_name=app_name(slug),
        database_name=db_name,
        database_url=SecretStr(
            database_url(
                credentials.user,
                credentials.user_password.get_secret_value(),
                db_name,
                settings.database_host,
                settings.database_port,
            )
        ),
        database_admin_url=SecretStr(
            database_url(
                credentials.admin_user,
                credentials.admin_password.get_secret_value(),
                settings.database_admin_database,
                settings.database_host,
                settings.database_port,
            )
        ),
        aws_profile_name=aws_profile_name(issue_number, settings.aws_profile_prefix),
    )


def worktree_parameters(
    environment: EnvironmentParameters, credentials: DatabaseCredentials, log_level: str
) -> dict[str, str]:
    """Per-issue parameters registered under ``worktree/{n}``, keyed in kebab-case."""
    return {
        "issue-number": str(environment.issue_number),
        "branch-name": environment.branch_name,
        "web-port": str(environment.web_port),
        "api-port": str(environment.api_port),
        "app-name": environment.app_name,
        "database-name": environment.database_name,
        "database-url": environment.database_url.get_secret_value(),
        "database-admin-url": environment.database_admin_url.get_secret_value(),
        "log-level": log_level,
        "database-admin-user": credentials.admin_user,
        "database-admin-password": credentials.admin_password.get_secret_value(),
        "database-user": credentials.user,
        "database-user-password": credentials.user_password.get_secret_value(),
    }
