"""start-issue: turn the top Todo issue into a ready-to-code worktree."""

from typing import Any

from issueflow import artifacts, runner
from issueflow.aws_profile import AwsProfileManager
from issueflow.context import (
    DatabaseContext,
    EditorContext,
    InitializedContext,
    IssueContext,
    ProfileContext,
    PromptContext,
    RegisteredContext,
    SlugContext,
    WorktreeContext,
)
from issueflow.database import DatabaseProvisioner
from issueflow.environment import build_environment, worktree_parameters
from issueflow.git import GitWorktreeManager
from issueflow.log import log
from issueflow.parameters import ParameterStore, create_ssm_client, get_required
from issueflow.settings import IssueflowSettings
from issueflow.tracker import IssueTracker
from issueflow.translation import Translator
from issueflow.workflows.common import Pipeline, load_board, load_credentials, resolve_project_root

STEPS = 10


async def initialize(settings: IssueflowSettings, ssm_client: Any = None) -> InitializedContext:
    """Load shared configuration from Parameter Store and build the service handles."""
    store = ParameterStore(ssm_client or create_ssm_client(), settings)
    path = store.development_path
    parameters = await store.get_parameter_map(path)

    board = load_board(parameters, path)
    project_root = resolve_project_root(settings)
    return InitializedContext(
        settings=settings,
        project_root=project_root,
        parameter_store=store,
        tracker=IssueTracker(board, settings, cwd=project_root),
        board=board,
        credentials=load_credentials(parameters, path),
        translate_api_key=get_required(parameters, "GOOGLE_TRANSLATE_API_KEY", path),
        log_level=get_required(parameters, "LOG_LEVEL", path),
    )


def fetch_issue(ctx: InitializedContext) -> IssueContext:
    issue = ctx.tracker.fetch_top_priority_issue()
    log(f"✓ Issue #{issue.number}: {issue.title}")
    log(f"✓ Label: {issue.label}")
    return ctx.advance(IssueContext, issue=issue)


def move_to_in_progress(ctx: IssueContext) -> IssueContext:
    ctx.tracker.assign_and_move_to_in_progress(ctx.issue.number, ctx.issue.project_item_id)
    return ctx


async def generate_slug(ctx: IssueContext, translator: Translator | None = None) -> SlugContext:
    translator = translator or Translator(ctx.translate_api_key.get_secret_value(), ctx.settings)
    slug = await translator.generate_slug(ctx.issue.title)
    log(f"✓ Slug: {slug}")
    return ctx.advance(SlugContext, slug=slug)


def create_worktree(ctx: SlugContext) -> WorktreeContext:
    environment = build_environment(
        ctx.settings, ctx.project_root, ctx.issue.number, ctx.issue.label, ctx.slug, ctx.credentials
    )
    GitWorktreeManager(ctx.project_root).create_worktree(environment.branch_name, environment.worktree_path)
    artifacts.copy_local_settings(ctx.project_root, environment.worktree_path)
    artifacts.write_compose_override(
        ctx.project_root, environment.worktree_path, environment.web_port, environment.api_port
    )
    return ctx.advance(WorktreeContext, environment=environment)


async def register_parameters(ctx: WorktreeContext) -> RegisteredContext:
    registration = await ctx.parameter_store.put_parameters(
        ctx.issue.number, worktree_parameters(ctx.environment, ctx.credentials, ctx.log_level)
    )
    return ctx.advance(RegisteredContext, registration=registration)


def create_aws_profile(ctx: RegisteredContext) -> ProfileContext:
    name = AwsProfileManager(ctx.settings).create(ctx.issue.number)
    return ctx.advance(ProfileContext, aws_profile=name)


def setup_database(ctx: ProfileContext) -> DatabaseContext:
    provisioner = DatabaseProvisioner(ctx.settings, ctx.credentials.admin_user)
    admin_password = ctx.credentials.admin_password.get_secret_value()
    provisioner.wait_until_ready()
    provisioner.create(ctx.environment.database_name, admin_password)
    provisioner.run_migrations(
        ctx.environment.worktree_path,
        ctx.environment.database_url.get_secret_value(),
        ctx.aws_profile,
    )
    return ctx.advance(DatabaseContext, database=ctx.environment.database_name)


def prompt_values(ctx: DatabaseContext) -> dict[str, str]:
    return {
        "ISSUE_NUMBER": str(ctx.issue.number),
        "ISSUE_TITLE": ctx.issue.title,
        "ISSUE_LABEL": ctx.issue.label,
        "BRANCH_NAME": ctx.environment.branch_name,
        "WORKTREE_PATH": str(ctx.environment.worktree_path),
        "WEB_PORT": str(ctx.environment.web_port),
        "API_PORT": str(ctx.environment.api_port),
        "DATABASE_NAME": ctx.environment.database_name,
        "AWS_PROFILE_NAME": ctx.aws_profile,
        "PROJECT_ID": ctx.board.project_id,
        "STATUS_FIELD_ID": ctx.board.status_field_id,
        "IN_REVIEW_OPTION_ID": ctx.board.in_review_option_id,
    }


def generate_prompt(ctx: DatabaseContext) -> PromptContext:
    path = artifacts.write_prompt(ctx.project_root, prompt_values(ctx))
    return ctx.advance(PromptContext, prompt_path=path)


def open_editor(ctx: PromptContext) -> EditorContext:
    pid = runner.spawn([ctx.settings.editor_command, str(ctx.environment.worktree_path)])
    log(f"✓ Issue #{ctx.issue.number} is ready at {ctx.environment.worktree_path}")
    return ctx.advance(EditorContext, editor_pid=pid)


async def run(
    settings: IssueflowSettings,
    *,
    ssm_client: Any = None,
    translator: Translator | None = None,
) -> EditorContext:
    log("Starting start-issue")
    pipeline = Pipeline("start-issue", STEPS)

    with pipeline.step("Load configuration"):
        initialized = await initialize(settings, ssm_client)
    with pipeline.step("Fetch top-priority issue"):
        fetched = fetch_issue(initialized)
    with pipeline.step("Move issue to In progress"):
        fetched = move_to_in_progress(fetched)
    with pipeline.step("Generate slug from title"):
        slugged = await generate_slug(fetched, translator)
    with pipeline.step("Create worktree"):
        worktree = create_worktree(slugged)
    with pipeline.step("Register worktree parameters"):
        registered = await register_parameters(worktree)
    with pipeline.step("Create AWS profile"):
        profiled = create_aws_profile(registered)
    with pipeline.step("Create database and run migrations"):
        provisioned = setup_database(profiled)
    with pipeline.step("Generate prompt file"):
        prompted = generate_prompt(provisioned)
    with pipeline.step("Open editor"):
        done = open_editor(prompted)

    log("✓ start-issue completed")
    return done
