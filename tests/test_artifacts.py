"""Tests for the files written into a new worktree."""

from pathlib import Path

import pytest

from issueflow.artifacts import (
    COMPOSE_OVERRIDE,
    COMPOSE_OVERRIDE_TEMPLATE,
    LOCAL_SETTINGS,
    PROMPT_OUTPUT,
    PROMPT_TEMPLATE,
    copy_local_settings,
    render_template,
    write_compose_override,
    write_prompt,
)
from issueflow.errors import WorkflowError


def test_render_template() -> None:
    template = "Issue #{{ISSUE_NUMBER}} on {{BRANCH_NAME}} ({{UNKNOWN}})"
    assert render_template(template, {"ISSUE_NUMBER": "42", "BRANCH_NAME": "feature/42-add-login"}) == (
        "Issue #42 on feature/42-add-login ({{UNKNOWN}})"
    )


def test_render_template_values_verbatim() -> None:
    assert render_template("{{TITLE}}", {"TITLE": "a {{B}} & <c>"}) == "a {{B}} & <c>"


class TestLocalSettings:
    def test_copied(self, tmp_path: Path) -> None:
        root, worktree = tmp_path / "root", tmp_path / "wt"
        (root / LOCAL_SETTINGS).parent.mkdir(parents=True)
        (root / LOCAL_SETTINGS).write_text('{"permissions": {}}', encoding="utf-8")
        worktree.mkdir()

        target = copy_local_settings(root, worktree)

        assert target == worktree / LOCAL_SETTINGS
        assert target.read_text(encoding="utf-8") == '{"permissions": {}}'

    def test_missing_source_skipped(self, tmp_path: Path) -> None:
        assert copy_local_settings(tmp_path, tmp_path / "wt") is None


class TestPrompt:
    def test_written(self, tmp_path: Path) -> None:
        (tmp_path / PROMPT_TEMPLATE).parent.mkdir(parents=True)
        (tmp_path / PROMPT_TEMPLATE).write_text("Work on #{{ISSUE_NUMBER}}\n", encoding="utf-8")

        output = write_prompt(tmp_path, {"ISSUE_NUMBER": "42"})

        assert output == tmp_path / PROMPT_OUTPUT
        assert output.read_text(encoding="utf-8") == "Work on #42\n"

    def test_missing_template(self, tmp_path: Path) -> None:
        with pytest.raises(WorkflowError, match="Prompt template not found"):
            write_prompt(tmp_path, {})


class TestComposeOverride:
    def test_ports_remapped(self, tmp_path: Path) -> None:
        root, worktree = tmp_path / "root", tmp_path / "wt"
        root.mkdir()
        worktree.mkdir()
        (root / COMPOSE_OVERRIDE_TEMPLATE).write_text(
            'services:\n  web:\n    ports:\n      - "3000:3000"\n  api:\n    ports:\n      - "4000:4000"\n',
            encoding="utf-8",
        )

        output = write_compose_override(root, worktree, 3042, 4042)

        content = (worktree / COMPOSE_OVERRIDE).read_text(encoding="utf-8")
        assert output == worktree / COMPOSE_OVERRIDE
        assert '"3042:3000"' in content
        assert '"4042:4000"' in content

    def test_no_template(self, tmp_path: Path) -> None:
        assert write_compose_override(tmp_path, tmp_path, 3042, 4042) is None
