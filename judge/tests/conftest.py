import pytest

from judge.config import SandboxConfig
from judge.sandbox.models import RuntimeConfig
from judge.sandbox.workspace import SandboxWorkspace


@pytest.fixture
def python_runtime() -> RuntimeConfig:
    return RuntimeConfig(
        language="python",
        file_name="main.py",
        container_image="python:3.12-alpine",
        run_command="python3 main.py",
        memory_limit_mb=256,
        cpu_limit_cores=0.5,
    )


@pytest.fixture
def sandbox_config(tmp_path) -> SandboxConfig:
    root = tmp_path / "workspaces"
    root.mkdir()
    return SandboxConfig(workspace_root=str(root), max_output_bytes=1024)


@pytest.fixture
def workspace(sandbox_config) -> SandboxWorkspace:
    return SandboxWorkspace(
        root=sandbox_config.workspace_root,
        max_output_bytes=sandbox_config.max_output_bytes,
    )
