"""AWS SSM Parameter Store client.

Shared configuration lives under ``{root}/development`` and per-issue state
under ``{root}/worktree/{n}``. Names map to upper-snake keys by dropping the
path prefix and replacing ``-`` with ``_``; ``to_parameter_name`` reverses it.

boto3 is blocking, so calls run in worker threads. Bulk puts and deletes fan
out with ``asyncio.gather`` and report counts instead of raising.
"""

import asyncio
import re
from collections.abc import Mapping
from typing import Any

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from issueflow.errors import ParameterNotFoundError, ParametersEmptyError, ParameterStoreError
from issueflow.log import log
from issueflow.models import RegistrationResult
from issueflow.settings import IssueflowSettings, require_aws_environment

SECRET_KEYWORDS = ("secret", "password", "url")

_KEBAB_KEY = re.compile(r"^[a-z0-9]+(-[a-z0-9]+)*$")


def create_ssm_client() -> Any:
    region = require_aws_environment()
    return boto3.client("ssm", region_name=region)


def to_env_name(name: str, base_path: str) -> str:
    """``/root/development/database-user`` -> ``DATABASE_USER``."""
    prefix = f"{base_path}/"
    if not name.startswith(prefix):
        raise ParameterStoreError(f"Parameter {name} is not under {base_path}")
    return name[len(prefix) :].upper().replace("-", "_")


def to_parameter_name(env_name: str, base_path: str) -> str:
    """``DATABASE_USER`` -> ``/root/development/database-user``."""
    return f"{base_path}/{env_name.lower().replace('_', '-')}"


def classify(key: str) -> str:
    """SSM parameter type for key: SecureString for secrets, passwords and URLs."""
    lowered = key.lower()
    return "SecureString" if any(word in lowered for word in SECRET_KEYWORDS) else "String"


def get_required(parameters: Mapping[str, str], key: str, path: str) -> str:
    value = parameters.get(key)
    if not value:
        raise ParameterNotFoundError(key, path)
    return value


def _error_message(exc: Exception) -> str:
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Message") or str(exc)
    return str(exc)


class ParameterStore:
    def __init__(self, client: Any, settings: IssueflowSettings) -> None:
        self._client = client
        self._settings = settings

    @property
    def development_path(self) -> str:
        return self._settings.development_path

    def worktree_path(self, issue_number: int) -> str:
        return self._settings.worktree_parameter_path(issue_number)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _list_by_path(self, path: str) -> list[dict]:
        paginator = self._client.get_paginator("get_parameters_by_path")
        parameters: list[dict] = []
        try:
            for page in paginator.paginate(Path=path, Recursive=True, WithDecryption=True):
                parameters.extend(page.get("Parameters", []))
        except (BotoCoreError, ClientError) as exc:
            raise ParameterStoreError(f"Failed to read Parameter Store ({path}): {_error_message(exc)}") from exc
        return parameters

    async def list_parameters(self, path: str) -> list[dict]:
        return await asyncio.to_thread(self._list_by_path, path)

    async def get_parameter_map(self, path: str) -> dict[str, str]:
        """Every parameter under path as ``{UPPER_SNAKE_KEY: value}``.

        An empty path is a configuration error: callers always need specific keys.
        """
        parameters = await self.list_parameters(path)
        if not parameters:
            raise ParametersEmptyError(path)

        result: dict[str, str] = {}
        for parameter in parameters:
            name = parameter.get("Name")
            value = parameter.get("Value")
            if not name:
                raise ParameterStoreError(f"Parameter without a name under {path}")
            if not value:
                raise ParameterStoreError(f"Parameter {name} has an empty value")
            result[to_env_name(name, path)] = value

        log(f"✓ Loaded {len(result)} parameters from {path}")
        return result

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def _put_one(self, name: str, value: str, parameter_type: str) -> None:
        self._client.put_parameter(Name=name, Value=value, Type=parameter_type, Overwrite=True)

    async def _put_single(self, key: str, name: str, value: str) -> bool:
        parameter_type = classify(key)
        try:
            await asyncio.to_thread(self._put_one, name, value, parameter_type)
        except (BotoCoreError, ClientError) as exc:
            log(f"  ✗ Failed to register {key}: {_error_message(exc)}")
            return False
        log(f"  ✓ Registered {key} ({parameter_type})")
        return True

    async def put_parameters(self, issue_number: int, parameters: Mapping[str, str]) -> RegistrationResult:
        """Write each kebab-case key under ``worktree/{n}``.

        Puts are independent: a failed put is logged and counted, never raised.
        Re-running the step registers whatever is missing.
        """
        invalid = [key for key in parameters if not _KEBAB_KEY.match(key)]
        if invalid:
            raise ParameterStoreError(f"Invalid parameter keys: {', '.join(invalid)}")

        prefix = self.worktree_path(issue_number)
        log(f"Registering {len(parameters)} parameters under {prefix}")
        results = await asyncio.gather(
            *[self._put_single(key, f"{prefix}/{key}", str(value)) for key, value in parameters.items()]
        )
        result = RegistrationResult(success_count=sum(results), error_count=len(results) - sum(results))
        log(f"Parameter Store registration: {result.success_count} succeeded, {result.error_count} failed")
        return result

    async def _delete_single(self, name: str) -> bool:
        try:
            await asyncio.to_thread(self._client.delete_parameter, Name=name)
        except (BotoCoreError, ClientError) as exc:
            log(f"  ✗ Failed to delete {name}: {_error_message(exc)}")
            return False
        return True

    async def delete_parameters_by_path(self, issue_number: int) -> RegistrationResult:
        """Delete everything under ``worktree/{n}``. An empty path is nothing to do."""
        prefix = self.worktree_path(issue_number)
        log(f"Cleaning up Parameter Store: {prefix}")

        parameters = await self.list_parameters(prefix)
        if not parameters:
            log("ℹ No parameters to delete")
            return RegistrationResult(success_count=0, error_count=0)

        results = await asyncio.gather(*[self._delete_single(p["Name"]) for p in parameters])
        result = RegistrationResult(success_count=sum(results), error_count=len(results) - sum(results))
        log(f"✓ Parameter Store cleanup: {result.success_count}/{result.total} deleted")
        return result
