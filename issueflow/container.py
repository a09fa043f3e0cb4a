"""Stop and remove a worktree's app container and image."""

from issueflow import runner
from issueflow.errors import CommandError, DockerError
from issueflow.log import log


class ContainerManager:
    def container_exists(self, name: str) -> bool:
        return runner.succeeds(["docker", "container", "inspect", name])

    def container_running(self, name: str) -> bool:
        try:
            state = runner.run(["docker", "container", "inspect", "-f", "{{.State.Running}}", name])
        except CommandError:
            return False
        return state == "true"

    def image_exists(self, name: str) -> bool:
        return runner.succeeds(["docker", "image", "inspect", name])

    def _docker(self, args: list[str], action: str) -> None:
        try:
            runner.run(["docker", *args])
        except CommandError as exc:
            raise DockerError(f"{action} failed: {exc.stderr or exc}") from exc

    def stop(self, name: str) -> None:
        if not self.container_running(name):
            log(f"ℹ Container is not running: {name}")
            return
        self._docker(["stop", name], f"Stopping container {name}")
        log(f"✓ Stopped container {name}")

    def remove(self, name: str) -> None:
        if not self.container_exists(name):
            log(f"ℹ Container does not exist: {name}")
            return
        self._docker(["rm", name], f"Removing container {name}")
        log(f"✓ Removed container {name}")

    def remove_image(self, name: str) -> None:
        if not self.image_exists(name):
            log(f"ℹ Image does not exist: {name}")
            return
        self._docker(["rmi", name], f"Removing image {name}")
        log(f"✓ Removed image {name}")

    def cleanup(self, name: str) -> None:
        self.stop(name)
        self.remove(name)
        self.remove_image(name)
