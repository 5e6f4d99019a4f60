"""Tests for the per-submission workspace."""

import errno
import stat
from dataclasses import replace
from pathlib import Path
from unittest.mock import patch

import pytest

from judge.sandbox.errors import InvalidConfiguration, WorkspaceError
from judge.sandbox.workspace import (
    TRUNCATION_MARKER,
    SandboxWorkspace,
    read_capped,
)


def _mode(path):
    return stat.S_IMODE(path.stat().st_mode)


class TestPrepare:
    def test_writes_source_and_launcher(self, workspace, python_runtime):
        ctx = workspace.prepare("print(input())", python_runtime)

        assert ctx.workspace.parent == workspace.root
        assert ctx.workspace.name.startswith("exec-")
        assert (ctx.workspace / "main.py").read_text() == "print(input())"
        assert (ctx.workspace / "cmd.sh").read_text() == "python3 main.py"
        run_sh = (ctx.workspace / "run.sh").read_text()
        assert "sh cmd.sh < input.txt > stdout.txt 2> stderr.txt" in run_sh
        assert "echo $? > exit_code.txt" in run_sh
        assert ctx.runtime is python_runtime

    def test_directory_is_world_writable(self, workspace, python_runtime):
        ctx = workspace.prepare("x = 1", python_runtime)
        assert _mode(ctx.workspace) == 0o777

    def test_each_context_gets_its_own_directory(self, workspace, python_runtime):
        a = workspace.prepare("a", python_runtime)
        b = workspace.prepare("b", python_runtime)
        assert a.workspace != b.workspace
        assert a.id != b.id

    def test_invalid_runtime_allocates_nothing(self, workspace, python_runtime):
        with pytest.raises(InvalidConfiguration):
            workspace.prepare("x", replace(python_runtime, file_name="../../etc/passwd"))
        assert list(workspace.root.iterdir()) == []

    def test_filesystem_failure_raises_workspace_error(self, tmp_path, python_runtime):
        broken = SandboxWorkspace(root=tmp_path / "does-not-exist")
        with pytest.raises(WorkspaceError):
            broken.prepare("x", python_runtime)


class TestWriteTestInput:
    def test_resets_artifacts_between_cases(self, workspace, python_runtime):
        ctx = workspace.prepare("x", python_runtime)
        (ctx.workspace / "stdout.txt").write_text("old output")
        (ctx.workspace / "stderr.txt").write_text("old error")
        (ctx.workspace / "exit_code.txt").write_text("3")

        workspace.write_test_input(ctx, "42\n")

        assert (ctx.workspace / "input.txt").read_text() == "42\n"
        assert (ctx.workspace / "stdout.txt").read_text() == ""
        assert (ctx.workspace / "stderr.txt").read_text() == ""
        assert not (ctx.workspace / "exit_code.txt").exists()
        assert _mode(ctx.workspace / "stdout.txt") == 0o666

    def test_disk_full_raises_workspace_error(self, workspace, python_runtime):
        ctx = workspace.prepare("x", python_runtime)
        real_write_text = Path.write_text

        def write_text(path, *args, **kwargs):
            if path.name == "input.txt":
                raise OSError(errno.ENOSPC, "No space left on device")
            return real_write_text(path, *args, **kwargs)

        with patch.object(Path, "write_text", write_text):
            with pytest.raises(WorkspaceError):
                workspace.write_test_input(ctx, "42\n")


class TestReadCapped:
    def test_small_file_is_returned_verbatim(self, tmp_path):
        path = tmp_path / "out.txt"
        path.write_text("hello\n")
        assert read_capped(path, 100) == "hello\n"

    def test_file_at_exact_cap_is_not_marked(self, tmp_path):
        path = tmp_path / "out.txt"
        path.write_bytes(b"a" * 100)
        assert read_capped(path, 100) == "a" * 100

    def test_oversized_file_is_truncated_with_single_marker(self, tmp_path):
        path = tmp_path / "out.txt"
        path.write_bytes(b"x" * 5000)

        text = read_capped(path, 1024)

        assert text.endswith(TRUNCATION_MARKER)
        assert text.count(TRUNCATION_MARKER) == 1
        assert len(text) - len(TRUNCATION_MARKER) == 1024

    def test_missing_file_reads_empty(self, tmp_path):
        assert read_capped(tmp_path / "nope.txt", 10) == ""

    def test_invalid_utf8_is_replaced(self, tmp_path):
        path = tmp_path / "out.txt"
        path.write_bytes(b"ok\xff")
        assert read_capped(path, 10) == "ok�"


class TestReadOutputs:
    def test_parses_exit_code(self, workspace, python_runtime):
        ctx = workspace.prepare("x", python_runtime)
        workspace.write_test_input(ctx, "")
        (ctx.workspace / "stdout.txt").write_text("out")
        (ctx.workspace / "exit_code.txt").write_text("2\n")

        assert workspace.read_outputs(ctx) == ("out", "", 2)

    def test_missing_exit_code_is_none(self, workspace, python_runtime):
        ctx = workspace.prepare("x", python_runtime)
        workspace.write_test_input(ctx, "")
        assert workspace.read_outputs(ctx)[2] is None

    def test_corrupt_exit_code_counts_as_failure(self, workspace, python_runtime):
        ctx = workspace.prepare("x", python_runtime)
        workspace.write_test_input(ctx, "")
        (ctx.workspace / "exit_code.txt").write_text("garbage")
        assert workspace.read_outputs(ctx)[2] == 1

    def test_outputs_are_capped(self, workspace, python_runtime):
        ctx = workspace.prepare("x", python_runtime)
        workspace.write_test_input(ctx, "")
        (ctx.workspace / "stdout.txt").write_bytes(b"y" * 10_000)
        (ctx.workspace / "stderr.txt").write_bytes(b"z" * 10_000)

        stdout, stderr, _ = workspace.read_outputs(ctx)

        assert stdout.endswith(TRUNCATION_MARKER)
        assert stderr.endswith(TRUNCATION_MARKER)

    def test_unreadable_artifact_raises_workspace_error(self, workspace, python_runtime):
        ctx = workspace.prepare("x", python_runtime)
        workspace.write_test_input(ctx, "")
        (ctx.workspace / "stdout.txt").unlink()
        (ctx.workspace / "stdout.txt").mkdir()

        with pytest.raises(WorkspaceError):
            workspace.read_outputs(ctx)


class TestDestroy:
    def test_removes_directory(self, workspace, python_runtime):
        ctx = workspace.prepare("x", python_runtime)
        workspace.destroy(ctx)
        assert not ctx.workspace.exists()

    def test_is_idempotent(self, workspace, python_runtime):
        ctx = workspace.prepare("x", python_runtime)
        workspace.destroy(ctx)
        workspace.destroy(ctx)

    def test_never_raises(self, workspace, python_runtime):
        ctx = workspace.prepare("x", python_runtime)
        with patch("judge.sandbox.workspace.shutil.rmtree", side_effect=OSError("busy")):
            workspace.destroy(ctx)
