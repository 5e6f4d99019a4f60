"""
Disposable per-submission workspace.

Layout of a workspace directory (bind-mounted at the container workdir)::

    exec-<uuid>/
        <file_name>      submitted source, written once
        cmd.sh           the runtime's run command
        run.sh           launcher: redirects I/O and records the exit code
        input.txt        stdin of the current test case
        stdout.txt       captured stdout
        stderr.txt       captured stderr
        exit_code.txt    exit status of cmd.sh (absent if it never finished)

All methods are synchronous; async callers wrap them with ``asyncio.to_thread``.
"""

from __future__ import annotations

import os
import shutil
import uuid
from pathlib import Path

from structlog import get_logger

from judge.sandbox.errors import WorkspaceError
from judge.sandbox.models import ExecutionContext, RuntimeConfig
from judge.sandbox.security import validate_runtime_config

logger = get_logger()

INPUT_FILE = "input.txt"
STDOUT_FILE = "stdout.txt"
STDERR_FILE = "stderr.txt"
EXIT_CODE_FILE = "exit_code.txt"
COMMAND_SCRIPT = "cmd.sh"
RUN_SCRIPT = "run.sh"

TRUNCATION_MARKER = "\n...[Output Truncated]"
DEFAULT_MAX_BYTES = 2 * 1024 * 1024

_RUN_SCRIPT_BODY = f"""#!/bin/sh
sh {COMMAND_SCRIPT} < {INPUT_FILE} > {STDOUT_FILE} 2> {STDERR_FILE}
echo $? > {EXIT_CODE_FILE}
"""


def read_capped(path: Path, max_bytes: int = DEFAULT_MAX_BYTES) -> str:
    """
    Read at most *max_bytes* bytes of *path* as text.

    If the file is longer, the prefix is returned with ``TRUNCATION_MARKER``
    appended once. A missing file reads as an empty string.
    """
    try:
        with open(path, "rb") as fh:
            data = fh.read(max_bytes + 1)
    except FileNotFoundError:
        return ""

    if len(data) > max_bytes:
        return data[:max_bytes].decode("utf-8", errors="replace") + TRUNCATION_MARKER
    return data.decode("utf-8", errors="replace")


class SandboxWorkspace:
    """Allocates, fills and removes workspace directories under *root*."""

    def __init__(self, root: str | Path, max_output_bytes: int = DEFAULT_MAX_BYTES) -> None:
        self.root = Path(root)
        self.max_output_bytes = max_output_bytes

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def prepare(self, source_code: str, runtime: RuntimeConfig) -> ExecutionContext:
        """Validate *runtime* and create a workspace holding *source_code*."""
        validate_runtime_config(runtime)

        context_id = uuid.uuid4()
        workspace = self.root / f"exec-{context_id}"
        try:
            workspace.mkdir(parents=False, exist_ok=False)
            # The container user is not the host user
            os.chmod(workspace, 0o777)

            source_path = workspace / runtime.file_name
            source_path.write_text(source_code, encoding="utf-8")
            os.chmod(source_path, 0o666)

            self._write_script(workspace / COMMAND_SCRIPT, runtime.run_command)
            self._write_script(workspace / RUN_SCRIPT, _RUN_SCRIPT_BODY)
        except OSError as exc:
            logger.error("Workspace preparation failed", path=str(workspace), error=str(exc))
            shutil.rmtree(workspace, ignore_errors=True)
            raise WorkspaceError(f"Cannot prepare workspace {workspace}: {exc}") from exc

        logger.debug("Workspace prepared", path=str(workspace), file_name=runtime.file_name)
        return ExecutionContext(id=context_id, workspace=workspace, runtime=runtime)

    def destroy(self, ctx: ExecutionContext) -> None:
        """Remove the workspace. Never raises."""
        try:
            if ctx.workspace.exists():
                shutil.rmtree(ctx.workspace)
            logger.debug("Workspace removed", path=str(ctx.workspace))
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to cleanup workspace", path=str(ctx.workspace), error=str(exc))

    # ------------------------------------------------------------------
    # Per test case
    # ------------------------------------------------------------------

    def write_test_input(self, ctx: ExecutionContext, stdin: str) -> None:
        """Write the next test case's input and reset the output artifacts."""
        try:
            ctx.artifact(INPUT_FILE).write_text(stdin, encoding="utf-8")
            os.chmod(ctx.artifact(INPUT_FILE), 0o666)

            for name in (STDOUT_FILE, STDERR_FILE):
                path = ctx.artifact(name)
                path.write_bytes(b"")
                os.chmod(path, 0o666)

            # A stale exit code from the previous case would be read as this one's
            ctx.artifact(EXIT_CODE_FILE).unlink(missing_ok=True)
        except OSError as exc:
            logger.error("Writing test input failed", path=str(ctx.workspace), error=str(exc))
            raise WorkspaceError(f"Cannot write test input in {ctx.workspace}: {exc}") from exc

    def read_outputs(self, ctx: ExecutionContext) -> tuple[str, str, int | None]:
        """Return ``(stdout, stderr, exit_code)``; exit code is None if never recorded."""
        try:
            stdout = read_capped(ctx.artifact(STDOUT_FILE), self.max_output_bytes)
            stderr = read_capped(ctx.artifact(STDERR_FILE), self.max_output_bytes)

            exit_path = ctx.artifact(EXIT_CODE_FILE)
            if not exit_path.exists():
                return stdout, stderr, None
            raw = read_capped(exit_path, 64).strip()
        except OSError as exc:
            logger.error("Reading run artifacts failed", path=str(ctx.workspace), error=str(exc))
            raise WorkspaceError(f"Cannot read run artifacts in {ctx.workspace}: {exc}") from exc

        try:
            exit_code = int(raw)
        except ValueError:
            logger.warning("Corrupt exit code artifact", content=raw[:32])
            exit_code = 1
        return stdout, stderr, exit_code

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _write_script(path: Path, body: str) -> None:
        path.write_text(body, encoding="utf-8")
        os.chmod(path, 0o755)
