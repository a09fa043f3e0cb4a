"""Error taxonomy shared by every component and both workflows."""


class WorkflowError(Exception):
    """Base for all issueflow failures.

    ``step`` is filled in by the workflow runner when the error escapes a
    pipeline step, so the CLI can report which step failed.
    """

    def __init__(self, message: str, step: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.step = step

    def __str__(self) -> str:
        return self.message


class ConfigurationError(WorkflowError):
    pass


class CommandError(WorkflowError):
    def __init__(self, args: list[str], returncode: int, stderr: str) -> None:
        self.args_list = list(args)
        self.returncode = returncode
        self.stderr = stderr.strip()
        detail = f": {self.stderr}" if self.stderr else ""
        super().__init__(f"`{' '.join(self.args_list)}` exited with {returncode}{detail}")


class ParameterStoreError(WorkflowError):
    pass


class ParametersEmptyError(ParameterStoreError):
    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"No parameters found in Parameter Store under {path}")


class ParameterNotFoundError(ParameterStoreError):
    def __init__(self, key: str, path: str) -> None:
        self.key = key
        self.path = path
        super().__init__(f"Required parameter {key} not found ({path})")


class TranslationError(WorkflowError):
    pass


class GitHubApiError(WorkflowError):
    pass


class IssueNotFoundError(GitHubApiError):
    def __init__(self, status_option_id: str) -> None:
        self.status_option_id = status_option_id
        super().__init__(f"No issue found in the Todo column (status option {status_option_id})")


class GitHubGraphQLError(GitHubApiError):
    def __init__(self, operation: str, expected_fields: list[str]) -> None:
        self.operation = operation
        self.expected_fields = list(expected_fields)
        super().__init__(
            f"Malformed GraphQL response (operation: {operation}, expected: {', '.join(self.expected_fields)})"
        )


class AwsProfileConfigError(WorkflowError):
    pass


class DatabaseError(WorkflowError):
    pass


class DockerError(WorkflowError):
    pass


class GitOperationError(WorkflowError):
    pass
