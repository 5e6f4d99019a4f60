"""Test doubles for the Docker SDK and the programs run inside containers."""

import threading
from pathlib import Path
from typing import Callable


Program = Callable[[Path], None]


def program(
    stdout: str = "",
    stderr: str = "",
    exit_code: int | None = 0,
) -> Program:
    """Build a fake program that writes the artifacts run.sh would produce."""

    def _run(workspace: Path) -> None:
        (workspace / "stdout.txt").write_text(stdout)
        (workspace / "stderr.txt").write_text(stderr)
        if exit_code is not None:
            (workspace / "exit_code.txt").write_text(f"{exit_code}\n")

    return _run


def echo_program(workspace: Path) -> None:
    """Behaves like ``print(input())``."""
    line = (workspace / "input.txt").read_text().splitlines()[0]
    (workspace / "stdout.txt").write_text(line + "\n")
    (workspace / "exit_code.txt").write_text("0\n")


class FakeContainer:
    """Stands in for ``docker.models.containers.Container``."""

    def __init__(
        self,
        workspace: Path,
        behaviour: Program | None = None,
        hang: bool = False,
        status_code: int = 0,
        start_error: Exception | None = None,
        remove_error: Exception | None = None,
    ):
        self.workspace = workspace
        self.behaviour = behaviour
        self.hang = hang
        self.status_code = status_code
        self.start_error = start_error
        self.remove_error = remove_error
        self.calls: list[str] = []
        self._stopped = threading.Event()

    def start(self):
        self.calls.append("start")
        if self.start_error:
            raise self.start_error

    def wait(self):
        self.calls.append("wait")
        if self.hang:
            self._stopped.wait(timeout=5)
            return {"StatusCode": 137}
        if self.behaviour:
            self.behaviour(self.workspace)
        return {"StatusCode": self.status_code}

    def kill(self):
        self.calls.append("kill")
        self._stopped.set()

    def remove(self, force=False):
        self.calls.append("remove")
        self._stopped.set()
        if self.remove_error:
            raise self.remove_error


class FakeContainers:
    def __init__(self, factory: Callable[[Path], FakeContainer], create_error: Exception | None = None):
        self.factory = factory
        self.create_error = create_error
        self.created: list[FakeContainer] = []
        self.create_kwargs: list[dict] = []

    def create(self, **kwargs):
        self.create_kwargs.append(kwargs)
        if self.create_error:
            raise self.create_error
        workspace = Path(next(iter(kwargs["volumes"])))
        container = self.factory(workspace)
        self.created.append(container)
        return container


class FakeImages:
    def __init__(self, missing: Exception | None = None):
        self.missing = missing
        self.requested: list[str] = []

    def get(self, image):
        self.requested.append(image)
        if self.missing:
            raise self.missing
        return object()


class FakeDockerClient:
    def __init__(self, containers: FakeContainers | None = None, images: FakeImages | None = None):
        self.containers = containers or FakeContainers(lambda ws: FakeContainer(ws, program()))
        self.images = images or FakeImages()
        self.ping_error: Exception | None = None
        self.closed = False

    def ping(self):
        if self.ping_error:
            raise self.ping_error
        return True

    def close(self):
        self.closed = True


