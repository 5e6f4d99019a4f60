"""
Docker-based sandbox manager for running submitted programs.

Lifecycle per ``run()``:
  1. Write the test input into the bind-mounted workspace
  2. Create an ephemeral container (no network, capped memory/CPU)
  3. Start it and race ``container.wait`` against a wall-clock timer
  4. Kill the container if the timer wins
  5. Read stdout / stderr / exit code from the workspace files
  6. Force-remove the container (always, exactly once)

All Docker SDK calls are synchronous and wrapped with ``asyncio.to_thread``
to keep the event loop responsive.
"""

from __future__ import annotations

import asyncio
import time
from typing import TYPE_CHECKING

import docker
from docker.errors import DockerException, ImageNotFound
from structlog import get_logger

from judge.sandbox.errors import SandboxUnavailable
from judge.sandbox.models import (
    ExecutionContext,
    RawRunOutcome,
    RuntimeHealth,
    RuntimeStatus,
)
from judge.sandbox.security import is_valid_image
from judge.sandbox.workspace import RUN_SCRIPT, SandboxWorkspace

if TYPE_CHECKING:
    from judge.config import SandboxConfig

logger = get_logger()

CONTAINER_LABEL = "judge.context"


class DockerSandboxManager:
    """
    Runs one untrusted program per call inside a throw-away container.

    The manager is long-lived (created once per process) and shared by
    concurrent gradings; it holds no per-run state.
    """

    def __init__(self, config: "SandboxConfig", workspace: SandboxWorkspace) -> None:
        self._config = config
        self._workspace = workspace
        self._client: docker.DockerClient | None = None
        self._connect_lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Connect to the Docker daemon."""
        await self._connect()

    async def shutdown(self) -> None:
        """Release Docker client resources."""
        if self._client:
            await self._drop_client()
            logger.info("Docker sandbox manager shut down")

    async def _connect(self) -> docker.DockerClient:
        async with self._connect_lock:
            if self._client is not None:
                return self._client
            self._client = await self._open_client()
            logger.info("Docker daemon connected")
            return self._client

    async def _open_client(self) -> docker.DockerClient:
        def _open() -> docker.DockerClient:
            if self._config.docker_base_url:
                client = docker.DockerClient(base_url=self._config.docker_base_url)
            else:
                client = docker.from_env()
            client.ping()
            return client

        try:
            return await asyncio.to_thread(_open)
        except (DockerException, OSError) as exc:
            logger.error("Cannot connect to Docker", error=str(exc))
            raise SandboxUnavailable(
                "Docker is not available. Install and start Docker to enable code execution."
            ) from exc

    async def _drop_client(self) -> None:
        client, self._client = self._client, None
        if client is not None:
            try:
                await asyncio.to_thread(client.close)
            except Exception as exc:  # noqa: BLE001
                logger.debug("Closing stale Docker client failed", error=str(exc))

    # ------------------------------------------------------------------
    # Health probe
    # ------------------------------------------------------------------

    async def probe(self, image: str) -> RuntimeHealth:
        """Report whether *image* is ready to run submissions."""
        try:
            client = await self._connect()
            await asyncio.to_thread(client.ping)
        except (SandboxUnavailable, DockerException, OSError):
            await self._drop_client()
            return RuntimeHealth(
                docker_available=False,
                image_exists=False,
                status=RuntimeStatus.RUNTIME_UNAVAILABLE,
            )

        image_exists = False
        if is_valid_image(image):
            try:
                await asyncio.to_thread(client.images.get, image)
                image_exists = True
            except ImageNotFound:
                logger.info("Runtime image missing", image=image)
            except DockerException as exc:
                logger.warning("Image inspection failed", image=image, error=str(exc))

        return RuntimeHealth(
            docker_available=True,
            image_exists=image_exists,
            status=RuntimeStatus.READY if image_exists else RuntimeStatus.IMAGE_MISSING,
        )

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    async def run(
        self,
        ctx: ExecutionContext,
        stdin: str,
        time_limit: float,
    ) -> RawRunOutcome:
        """
        Run the context's program once against *stdin*.

        Raises:
            SandboxUnavailable: Docker could not be reached or refused to
                create, start or wait on the container.
            WorkspaceError: The per-case input or the run artifacts could not
                be written or read.
        """
        client = await self._connect()
        await asyncio.to_thread(self._workspace.write_test_input, ctx, stdin)

        container = None
        try:
            try:
                container = await asyncio.to_thread(self._create_container, client, ctx)
                start_time = time.monotonic()
                await asyncio.to_thread(container.start)
            except (DockerException, OSError) as exc:
                logger.error(
                    "Container creation failed",
                    image=ctx.runtime.container_image,
                    error=str(exc),
                )
                raise SandboxUnavailable(f"Cannot start sandbox container: {exc}") from exc

            status_code = await self._race(container, time_limit)
            if status_code is None:
                logger.info(
                    "Container exceeded time limit",
                    context_id=str(ctx.id),
                    time_limit=time_limit,
                )
                return RawRunOutcome(
                    stdout="",
                    stderr="",
                    exit_code=None,
                    timed_out=True,
                    host_elapsed_ms=int(round(time_limit * 1000)),
                )

            elapsed_ms = int(round((time.monotonic() - start_time) * 1000))

            # --- retrieve artifacts (race resolved, container stopped) ---
            stdout, stderr, exit_code = await asyncio.to_thread(
                self._workspace.read_outputs, ctx
            )
            if exit_code is None:
                # Launcher died before recording $?; stderr is the only evidence
                exit_code = 1 if stderr.strip() else 0
                logger.warning(
                    "Exit code artifact missing",
                    context_id=str(ctx.id),
                    container_status=status_code,
                    inferred_exit_code=exit_code,
                )

            return RawRunOutcome(
                stdout=stdout,
                stderr=stderr,
                exit_code=exit_code,
                timed_out=False,
                host_elapsed_ms=elapsed_ms,
            )
        finally:
            if container is not None:
                await self._safe_remove(container)

    async def _race(self, container, time_limit: float) -> int | None:  # noqa: ANN001
        """
        Wait for *container* to exit or *time_limit* to pass, whichever first.

        Returns the container status code, or ``None`` if the timer won (the
        container has then been killed).
        """
        wait_task = asyncio.create_task(asyncio.to_thread(container.wait))
        timer = asyncio.create_task(asyncio.sleep(time_limit))
        try:
            done, _ = await asyncio.wait(
                {wait_task, timer}, return_when=asyncio.FIRST_COMPLETED
            )
        finally:
            timer.cancel()
            if not wait_task.done():
                # The blocked wait() thread returns once the container is gone
                wait_task.cancel()

        if wait_task in done:
            try:
                exit_info = wait_task.result()
            except (DockerException, OSError) as exc:
                raise SandboxUnavailable(f"Lost track of sandbox container: {exc}") from exc
            return exit_info.get("StatusCode", -1)

        await self._safe_kill(container)
        return None

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _create_container(self, client: docker.DockerClient, ctx: ExecutionContext):  # noqa: ANN201
        """Create (but don't start) the sandbox container."""
        runtime = ctx.runtime
        workdir = self._config.container_workdir
        return client.containers.create(
            image=runtime.container_image,
            command=["sh", f"{workdir}/{RUN_SCRIPT}"],
            working_dir=workdir,
            tty=False,
            volumes={str(ctx.workspace): {"bind": workdir, "mode": "rw"}},
            labels={CONTAINER_LABEL: str(ctx.id)},
            # Resource limits
            mem_limit=f"{int(runtime.memory_limit_mb)}m",
            nano_cpus=int(runtime.cpu_limit_cores * 1e9),
            pids_limit=self._config.pids_limit,
            # Network isolation
            network_disabled=True,
            # Security hardening
            security_opt=["no-new-privileges"],
        )

    @staticmethod
    async def _safe_kill(container) -> None:  # noqa: ANN001
        try:
            await asyncio.to_thread(container.kill)
        except Exception as exc:  # noqa: BLE001
            # Already exited between the timer firing and the kill
            logger.debug("Container kill failed", error=str(exc))

    @staticmethod
    async def _safe_remove(container) -> None:  # noqa: ANN001
        try:
            await asyncio.to_thread(container.remove, force=True)
        except Exception as exc:  # noqa: BLE001
            logger.warning("Container removal failed", error=str(exc))
