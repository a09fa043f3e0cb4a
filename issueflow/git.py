"""Worktree and branch management."""

from pathlib import Path

from issueflow import runner
from issueflow.errors import CommandError, GitOperationError
from issueflow.log import log
from issueflow.models import WorktreeInfo


def parse_worktree_list(listing: str, issue_number: int) -> WorktreeInfo:
    """Find the worktree for issue_number in ``git worktree list`` output.

    Lines look like ``/path/feat/42-add-thing  abc1234 [feat/42-add-thing]``.
    """
    marker = f"/{issue_number}-"
    for line in listing.splitlines():
        parts = line.split()
        if not parts or marker not in parts[0]:
            continue
        # detached and bare worktrees show "(detached HEAD)" / "(bare)" instead of "[branch]"
        if len(parts) < 3 or not parts[2].startswith("["):
            state = " ".join(parts[1:]) or "no branch"
            raise GitOperationError(
                f"Worktree {parts[0]} for issue #{issue_number} is not on a branch ({state}); "
                "check out its branch and re-run"
            )
        return WorktreeInfo(issue_number=issue_number, path=Path(parts[0]), branch=parts[2].strip("[]"))
    raise GitOperationError(f"No worktree found for issue #{issue_number}")


class GitWorktreeManager:
    def __init__(self, repo_root: Path, remote: str = "origin") -> None:
        self.repo_root = repo_root
        self.remote = remote

    def _git(self, *args: str) -> str:
        return runner.run(["git", *args], cwd=self.repo_root)

    def branch_exists(self, name: str) -> bool:
        return runner.succeeds(["git", "show-ref", "--verify", "--quiet", f"refs/heads/{name}"], cwd=self.repo_root)

    def remote_branch_exists(self, name: str) -> bool:
        return runner.succeeds(
            ["git", "ls-remote", "--exit-code", "--heads", self.remote, name],
            cwd=self.repo_root,
        )

    def create_worktree(self, branch: str, path: Path) -> None:
        """Create path on a new branch. Never reuses an existing branch or directory."""
        if self.branch_exists(branch):
            raise GitOperationError(f"Branch already exists: {branch}")
        if path.exists():
            raise GitOperationError(f"Worktree path already exists: {path}")

        path.parent.mkdir(parents=True, exist_ok=True)
        try:
            self._git("worktree", "add", str(path), "-b", branch)
        except CommandError as exc:
            raise GitOperationError(f"Failed to create worktree {path}: {exc.stderr or exc}") from exc
        log(f"✓ Created worktree {path} on {branch}")

    def list_worktrees(self) -> str:
        try:
            return self._git("worktree", "list")
        except CommandError as exc:
            raise GitOperationError(f"Failed to list worktrees: {exc.stderr or exc}") from exc

    def get_worktree_info(self, issue_number: int) -> WorktreeInfo:
        info = parse_worktree_list(self.list_worktrees(), issue_number)
        log(f"Worktree path: {info.path}")
        log(f"Branch: {info.branch}")
        return info

    def remove_worktree(self, path: Path) -> None:
        known = {Path(line.split()[0]) for line in self.list_worktrees().splitlines() if line.strip()}
        if path not in known:
            log(f"ℹ Worktree is already gone: {path}")
            return
        log(f"Removing worktree {path}")
        try:
            self._git("worktree", "remove", str(path))
        except CommandError as exc:
            raise GitOperationError(f"Failed to remove worktree {path}: {exc.stderr or exc}") from exc
        log(f"✓ Removed worktree {path}")

    def remove_local_branch(self, name: str) -> None:
        if not self.branch_exists(name):
            log(f"ℹ Local branch does not exist: {name}")
            return
        try:
            self._git("branch", "-d", name)
        except CommandError as exc:
            raise GitOperationError(f"Failed to delete local branch {name}: {exc.stderr or exc}") from exc
        log(f"✓ Deleted local branch {name}")

    def remove_remote_branch(self, name: str) -> None:
        if not self.remote_branch_exists(name):
            log(f"ℹ Remote branch does not exist: {name}")
            return
        try:
            self._git("push", self.remote, "--delete", name)
        except CommandError as exc:
            raise GitOperationError(f"Failed to delete remote branch {name}: {exc.stderr or exc}") from exc
        log(f"✓ Deleted remote branch {name}")

    def merge_to_trunk(self, trunk: str = "main") -> None:
        """Check out trunk in the main worktree and fast-forward it from the remote."""
        log(f"Updating {trunk}")
        try:
            self._git("checkout", trunk)
            self._git("pull", self.remote, trunk)
        except CommandError as exc:
            raise GitOperationError(f"Failed to update {trunk}: {exc.stderr or exc}") from exc
        log(f"✓ {trunk} is up to date")

    def current_branch(self) -> str:
        try:
            return self._git("symbolic-ref", "--short", "HEAD")
        except CommandError as exc:
            raise GitOperationError(f"Could not determine the current branch: {exc.stderr or exc}") from exc


def find_repo_root(cwd: Path | None = None) -> Path:
    """Top level of the main worktree, even when called from a linked worktree."""
    try:
        common = runner.run(["git", "rev-parse", "--path-format=absolute", "--git-common-dir"], cwd=cwd)
    except CommandError as exc:
        raise GitOperationError("Not inside a git repository") from exc
    return Path(common).parent
