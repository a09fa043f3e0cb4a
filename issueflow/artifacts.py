"""Files written for a new worktree: local agent settings, prompt, compose override."""

import shutil
from pathlib import Path

from issueflow.errors import WorkflowError
from issueflow.log import log

LOCAL_SETTINGS = Path(".claude/settings.local.json")
PROMPT_TEMPLATE = Path(".claude/templates/worktree-prompt.md")
PROMPT_OUTPUT = Path(".claude/tmp/generated-worktree-prompt.md")
COMPOSE_OVERRIDE_TEMPLATE = Path("docker-compose.override.yml.example")
COMPOSE_OVERRIDE = Path("docker-compose.override.yml")


def render_template(template: str, values: dict[str, str]) -> str:
    """Replace each ``{{NAME}}`` with values[NAME], verbatim. Unknown placeholders are left alone."""
    for name, value in values.items():
        template = template.replace("{{" + name + "}}", value)
    return template


def copy_local_settings(project_root: Path, worktree_path: Path) -> Path | None:
    source = project_root / LOCAL_SETTINGS
    if not source.exists():
        log(f"ℹ No {LOCAL_SETTINGS} to copy")
        return None
    target = worktree_path / LOCAL_SETTINGS
    target.parent.mkdir(parents=True, exist_ok=True)
    shutil.copyfile(source, target)
    log(f"✓ Copied {LOCAL_SETTINGS} into the worktree")
    return target


def write_prompt(project_root: Path, values: dict[str, str]) -> Path:
    template_path = project_root / PROMPT_TEMPLATE
    if not template_path.exists():
        raise WorkflowError(f"Prompt template not found: {template_path}")
    output = project_root / PROMPT_OUTPUT
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(render_template(template_path.read_text(encoding="utf-8"), values), encoding="utf-8")
    log(f"✓ Wrote prompt {output}")
    return output


def write_compose_override(project_root: Path, worktree_path: Path, web_port: int, api_port: int) -> Path | None:
    """Remap the example's 3000/4000 host ports to the issue's ports."""
    template_path = project_root / COMPOSE_OVERRIDE_TEMPLATE
    if not template_path.exists():
        return None
    content = (
        template_path.read_text(encoding="utf-8")
        .replace('"3000:3000"', f'"{web_port}:3000"')
        .replace('"4000:4000"', f'"{api_port}:4000"')
    )
    output = worktree_path / COMPOSE_OVERRIDE
    output.write_text(content, encoding="utf-8")
    log(f"✓ Wrote {COMPOSE_OVERRIDE} (web {web_port}, api {api_port})")
    return output
