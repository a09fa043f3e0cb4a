"""Logical Postgres databases inside the shared ``db`` service container."""

import re
import shlex
import time
from pathlib import Path

from issueflow import runner
from issueflow.errors import CommandError, DatabaseError
from issueflow.log import log
from issueflow.settings import IssueflowSettings

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")


def _check_identifier(name: str) -> str:
    if not _IDENTIFIER.match(name):
        raise DatabaseError(f"Invalid database name: {name!r}")
    return name


class DatabaseProvisioner:
    def __init__(self, settings: IssueflowSettings, admin_user: str) -> None:
        self._settings = settings
        self._admin_user = admin_user

    def _psql(self, sql: str, admin_password: str) -> None:
        # PGPASSWORD travels in the child environment; docker exec -e NAME copies it in
        runner.run(
            [
                "docker",
                "exec",
                "-e",
                "PGPASSWORD",
                self._settings.database_service,
                "psql",
                "-U",
                self._admin_user,
                "-d",
                self._settings.database_admin_database,
                "-v",
                "ON_ERROR_STOP=1",
                "-c",
                sql,
            ],
            env={"PGPASSWORD": admin_password},
        )

    def create(self, name: str, admin_password: str) -> None:
        _check_identifier(name)
        try:
            self._psql(f"CREATE DATABASE {name};", admin_password)
        except CommandError as exc:
            # names derive from the slug alone, so two issues with the same title share one
            if "already exists" in exc.stderr:
                raise DatabaseError(
                    f"Database {name} already exists; another worktree with the same slug may be using it"
                ) from exc
            raise DatabaseError(f"Failed to create database {name}: {exc.stderr or exc}") from exc
        log(f"✓ Created database {name}")

    def delete(self, name: str, admin_password: str) -> None:
        _check_identifier(name)
        try:
            self._psql(f"DROP DATABASE IF EXISTS {name};", admin_password)
        except CommandError as exc:
            raise DatabaseError(f"Failed to drop database {name}: {exc.stderr or exc}") from exc
        log(f"✓ Dropped database {name} (if it existed)")

    def is_ready(self, name: str | None = None) -> bool:
        return runner.succeeds(
            [
                "docker",
                "exec",
                self._settings.database_service,
                "pg_isready",
                "-U",
                self._admin_user,
                "-d",
                name or self._settings.database_admin_database,
            ]
        )

    def wait_until_ready(self, name: str | None = None) -> None:
        """Poll pg_isready on a fixed interval; give up after db_ready_attempts."""
        attempts = self._settings.db_ready_attempts
        for attempt in range(1, attempts + 1):
            if self.is_ready(name):
                log(f"✓ Database is accepting connections (attempt {attempt})")
                return
            if attempt < attempts:
                time.sleep(self._settings.db_ready_interval)
        raise DatabaseError(f"Database did not become ready after {attempts} attempts")

    def run_migrations(self, worktree_path: Path, database_url: str, aws_profile: str) -> None:
        log("Running migrations")
        try:
            runner.run(
                shlex.split(self._settings.migrate_command),
                cwd=worktree_path,
                env={"DATABASE_URL": database_url, "AWS_PROFILE": aws_profile},
            )
        except CommandError as exc:
            raise DatabaseError(f"Migrations failed: {exc.stderr or exc}") from exc
        log("✓ Migrations applied")
