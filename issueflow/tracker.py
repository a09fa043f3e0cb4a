"""GitHub Projects (v2) board and issue operations via the gh CLI."""

import json
from pathlib import Path
from typing import Any

from issueflow import runner
from issueflow.errors import CommandError, GitHubApiError, GitHubGraphQLError, IssueNotFoundError
from issueflow.log import log
from issueflow.models import BoardConfig, Issue
from issueflow.settings import IssueflowSettings

_FETCH_PROJECT_ISSUES = """
query($projectId: ID!, $statusField: String!, $itemsLimit: Int!, $labelsLimit: Int!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      items(first: $itemsLimit) {
        nodes {
          id
          fieldValueByName(name: $statusField) {
            ... on ProjectV2ItemFieldSingleSelectValue {
              optionId
            }
          }
          content {
            ... on Issue {
              number
              title
              labels(first: $labelsLimit) {
                nodes { name }
              }
            }
          }
        }
      }
    }
  }
}
"""

_FETCH_STATUS_FIELD_ID = """
query($projectId: ID!, $statusField: String!) {
  node(id: $projectId) {
    ... on ProjectV2 {
      field(name: $statusField) {
        ... on ProjectV2SingleSelectField {
          id
        }
      }
    }
  }
}
"""

_UPDATE_ITEM_STATUS = """
mutation($projectId: ID!, $itemId: ID!, $fieldId: ID!, $optionId: String!) {
  updateProjectV2ItemFieldValue(
    input: {
      projectId: $projectId
      itemId: $itemId
      fieldId: $fieldId
      value: { singleSelectOptionId: $optionId }
    }
  ) {
    projectV2Item { id }
  }
}
"""


def _dig(data: Any, path: str) -> Any:
    """Follow a dotted path through nested dicts; None if any hop is missing or null."""
    current = data
    for key in path.split("."):
        if not isinstance(current, dict) or current.get(key) is None:
            return None
        current = current[key]
    return current


def extract_label(labels: list[str], priority_prefix: str = "priority", default: str = "no-label") -> str:
    """First label that is not a priority label, in the order GitHub returned them."""
    for name in labels:
        if not name.startswith(priority_prefix):
            return name
    return default


class IssueTracker:
    def __init__(self, board: BoardConfig, settings: IssueflowSettings, cwd: Path | None = None) -> None:
        self.board = board
        self._settings = settings
        self._cwd = cwd

    # ------------------------------------------------------------------
    # GraphQL executor
    # ------------------------------------------------------------------

    def _graphql(self, operation: str, query: str, variables: dict[str, str | int], expected: list[str]) -> dict:
        args = ["gh", "api", "graphql", "-f", f"query={query}"]
        for name, value in variables.items():
            # -F lets gh send ints as ints; -f always sends a string
            flag = "-F" if isinstance(value, int) else "-f"
            args += [flag, f"{name}={value}"]

        try:
            output = runner.run(args, cwd=self._cwd)
        except CommandError as exc:
            raise GitHubApiError(f"GraphQL {operation} failed: {exc.stderr or exc}") from exc

        try:
            data = json.loads(output)
        except json.JSONDecodeError as exc:
            raise GitHubGraphQLError(operation, expected) from exc

        if isinstance(data, dict) and data.get("errors"):
            messages = "; ".join(str(e.get("message", e)) for e in data["errors"])
            raise GitHubApiError(f"GraphQL {operation} returned errors: {messages}")

        for path in expected:
            if _dig(data, path) is None:
                raise GitHubGraphQLError(operation, expected)
        return data

    def _gh(self, args: list[str], action: str) -> str:
        try:
            return runner.run(["gh", *args], cwd=self._cwd)
        except CommandError as exc:
            raise GitHubApiError(f"{action} failed: {exc.stderr or exc}") from exc

    # ------------------------------------------------------------------
    # Board
    # ------------------------------------------------------------------

    def _issue_from_item(self, item: dict) -> Issue:
        content = item["content"]
        labels = [label["name"] for label in (_dig(content, "labels.nodes") or [])]
        return Issue(
            number=content["number"],
            title=content["title"],
            labels=labels,
            label=extract_label(labels, self._settings.priority_label_prefix, self._settings.default_label),
            status_option_id=_dig(item, "fieldValueByName.optionId"),
            project_item_id=item["id"],
        )

    def fetch_top_priority_issue(self) -> Issue:
        """First Todo issue in board order."""
        operation = "fetchProjectIssues"
        data = self._graphql(
            operation,
            _FETCH_PROJECT_ISSUES,
            {
                "projectId": self.board.project_id,
                "statusField": self._settings.status_field_name,
                "itemsLimit": self._settings.project_items_limit,
                "labelsLimit": self._settings.issue_labels_limit,
            },
            ["data.node.items.nodes"],
        )
        nodes = _dig(data, "data.node.items.nodes")
        if not isinstance(nodes, list):
            raise GitHubGraphQLError(operation, ["data.node.items.nodes"])

        for item in nodes:
            if _dig(item, "fieldValueByName.optionId") != self.board.todo_option_id:
                continue
            # draft items and pull requests carry no issue number
            if _dig(item, "content.number") is None or "id" not in item:
                continue
            return self._issue_from_item(item)

        raise IssueNotFoundError(self.board.todo_option_id)

    def fetch_status_field_id(self) -> str:
        data = self._graphql(
            "fetchStatusFieldId",
            _FETCH_STATUS_FIELD_ID,
            {"projectId": self.board.project_id, "statusField": self._settings.status_field_name},
            ["data.node.field.id"],
        )
        return _dig(data, "data.node.field.id")

    def move_to_status(self, project_item_id: str, option_id: str, field_id: str | None = None) -> None:
        """Set the board's single-select status field on one item."""
        self._graphql(
            "updateProjectItemStatus",
            _UPDATE_ITEM_STATUS,
            {
                "projectId": self.board.project_id,
                "itemId": project_item_id,
                "fieldId": field_id or self.board.status_field_id,
                "optionId": option_id,
            },
            ["data.updateProjectV2ItemFieldValue.projectV2Item.id"],
        )

    # ------------------------------------------------------------------
    # Issues
    # ------------------------------------------------------------------

    def current_user(self) -> str:
        login = self._gh(["api", "user", "--jq", ".login"], "Fetching the authenticated user")
        if not login:
            raise GitHubApiError("gh api user returned an empty login")
        return login

    def assign_and_move_to_in_progress(self, issue_number: int, project_item_id: str) -> None:
        login = self.current_user()
        self._gh(["issue", "edit", str(issue_number), "--add-assignee", login], f"Assigning #{issue_number}")
        log(f"✓ Assigned #{issue_number} to {login}")

        field_id = self.fetch_status_field_id()
        self.move_to_status(project_item_id, self.board.in_progress_option_id, field_id)
        log(f"✓ Moved #{issue_number} to In progress")

    def close_issue(self, issue_number: int) -> None:
        """Close the issue unless it is already closed."""
        state = self._gh(
            ["issue", "view", str(issue_number), "--json", "state", "-q", ".state"],
            f"Reading state of #{issue_number}",
        )
        if state == "CLOSED":
            log(f"ℹ Issue #{issue_number} is already closed")
            return
        self._gh(
            ["issue", "close", str(issue_number), "--comment", self._settings.close_comment],
            f"Closing #{issue_number}",
        )
        log(f"✓ Closed issue #{issue_number}")
