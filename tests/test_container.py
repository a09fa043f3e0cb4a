"""Tests for container and image cleanup."""

from unittest.mock import patch

import pytest

from issueflow.container import ContainerManager
from issueflow.errors import CommandError, DockerError


class TestCleanup:
    def test_running_container_and_image(self) -> None:
        with patch("issueflow.runner.succeeds", return_value=True), patch(
            "issueflow.runner.run", side_effect=["true", "", "", ""]
        ) as mock_run:
            ContainerManager().cleanup("app-add-login")

        assert [c.args[0] for c in mock_run.call_args_list] == [
            ["docker", "container", "inspect", "-f", "{{.State.Running}}", "app-add-login"],
            ["docker", "stop", "app-add-login"],
            ["docker", "rm", "app-add-login"],
            ["docker", "rmi", "app-add-login"],
        ]

    def test_stopped_container(self) -> None:
        with patch("issueflow.runner.succeeds", return_value=True), patch(
            "issueflow.runner.run", side_effect=["false", "", ""]
        ) as mock_run:
            ContainerManager().cleanup("app-add-login")

        assert ["docker", "stop", "app-add-login"] not in [c.args[0] for c in mock_run.call_args_list]

    def test_nothing_exists_is_noop(self) -> None:
        with patch("issueflow.runner.succeeds", return_value=False), patch(
            "issueflow.runner.run", side_effect=CommandError(["docker"], 1, "No such container")
        ) as mock_run:
            ContainerManager().cleanup("app-add-login")

        # only the running-state probe
        assert mock_run.call_count == 1

    def test_rm_failure(self) -> None:
        with patch("issueflow.runner.succeeds", return_value=True), patch(
            "issueflow.runner.run", side_effect=["false", CommandError(["docker"], 1, "container is in use")]
        ):
            with pytest.raises(DockerError, match="in use"):
                ContainerManager().cleanup("app-add-login")
