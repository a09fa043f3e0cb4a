"""Per-issue AWS CLI profiles in ~/.aws/config.

A worktree profile assumes the same role as the reference profile, sourced
from ``default``. Both operations are safe to repeat.
"""

import os
from pathlib import Path

from issueflow import runner
from issueflow.errors import AwsProfileConfigError, CommandError
from issueflow.environment import aws_profile_name
from issueflow.log import log
from issueflow.settings import IssueflowSettings


def default_config_path() -> Path:
    override = os.environ.get("AWS_CONFIG_FILE")
    return Path(override).expanduser() if override else Path.home() / ".aws" / "config"


def _header(name: str) -> str:
    return f"[profile {name}]"


def has_profile(content: str, name: str) -> bool:
    header = _header(name)
    return any(line.strip() == header for line in content.splitlines())


def remove_profile_block(content: str, name: str) -> str:
    """Drop ``[profile name]`` and its lines up to the next section header."""
    header = _header(name)
    kept: list[str] = []
    skipping = False
    for line in content.split("\n"):
        if line.strip() == header:
            skipping = True
            continue
        if skipping and line.startswith("["):
            skipping = False
        if not skipping:
            kept.append(line)

    while kept and not kept[-1].strip():
        kept.pop()
    return "\n".join(kept) + ("\n" if kept else "")


class AwsProfileManager:
    def __init__(self, settings: IssueflowSettings, config_path: Path | None = None) -> None:
        self._settings = settings
        self.config_path = config_path or default_config_path()

    def profile_name(self, issue_number: int) -> str:
        return aws_profile_name(issue_number, self._settings.aws_profile_prefix)

    def _read_config(self) -> str:
        if not self.config_path.exists():
            raise AwsProfileConfigError(f"AWS config file not found: {self.config_path}")
        return self.config_path.read_text(encoding="utf-8")

    def _reference_role_arn(self) -> str:
        reference = self._settings.aws_reference_profile
        try:
            role_arn = runner.run(["aws", "configure", "get", f"profile.{reference}.role_arn"])
        except CommandError as exc:
            raise AwsProfileConfigError(f'role_arn not found for AWS profile "{reference}"') from exc
        if not role_arn:
            raise AwsProfileConfigError(f'role_arn not found for AWS profile "{reference}"')
        return role_arn

    def create(self, issue_number: int) -> str:
        name = self.profile_name(issue_number)
        content = self._read_config()
        if has_profile(content, name):
            log(f"ℹ AWS profile {name} already exists")
            return name

        role_arn = self._reference_role_arn()
        block = "\n".join(
            [
                "",
                _header(name),
                f"role_arn = {role_arn}",
                f"source_profile = {self._settings.aws_source_profile}",
                "",
            ]
        )
        if content and not content.endswith("\n"):
            block = "\n" + block
        with self.config_path.open("a", encoding="utf-8") as fh:
            fh.write(block)
        log(f"✓ Created AWS profile {name}")
        return name

    def delete(self, issue_number: int) -> None:
        name = self.profile_name(issue_number)
        content = self._read_config()
        if not has_profile(content, name):
            log(f"ℹ AWS profile {name} does not exist")
            return
        self.config_path.write_text(remove_profile_block(content, name), encoding="utf-8")
        log(f"✓ Deleted AWS profile {name}")
