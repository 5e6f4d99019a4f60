"""Tests for the HTTP routes (executor and registry overridden)."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from judge.main import app
from judge.sandbox.errors import SandboxUnavailable
from judge.sandbox.models import (
    ExecutionResult,
    RunCaseResult,
    RunReport,
    RuntimeHealth,
    RuntimeStatus,
    Verdict,
)
from judge.services.judge_service import get_executor, get_runtime_registry


@pytest.fixture
def executor():
    ex = MagicMock()
    ex.run_code = AsyncMock()
    ex.probe = AsyncMock()
    return ex


@pytest.fixture
def registry(python_runtime):
    reg = MagicMock()
    reg.lookup = AsyncMock(side_effect=lambda lang: python_runtime if lang == "python" else None)
    return reg


@pytest.fixture
def client(executor, registry):
    app.dependency_overrides[get_executor] = lambda: executor
    app.dependency_overrides[get_runtime_registry] = lambda: registry
    yield TestClient(app)
    app.dependency_overrides.clear()


def run_body(**overrides):
    body = {
        "code": "print(input())",
        "language": "python",
        "test_cases": [{"input": "hi", "expected_output": "hi"}],
    }
    body.update(overrides)
    return body


class TestRunEndpoint:
    def test_returns_results(self, client, executor, python_runtime):
        executor.run_code.return_value = RunReport(
            overall_status=Verdict.WRONG_ANSWER,
            results=[
                RunCaseResult(
                    result=ExecutionResult(Verdict.WRONG_ANSWER, "ho", 14),
                    input="hi",
                    expected_output="hi",
                )
            ],
        )

        response = client.post("/api/v1/run/", json=run_body())

        assert response.status_code == 200
        data = response.json()
        assert data["overall_status"] == "WRONG_ANSWER"
        assert data["results"] == [
            {
                "status": "WRONG_ANSWER",
                "stdout": "ho",
                "execution_time": 14,
                "input": "hi",
                "expected_output": "hi",
            }
        ]
        kwargs = executor.run_code.await_args.kwargs
        assert kwargs["runtime"] is python_runtime
        assert kwargs["test_cases"][0].input == "hi"

    def test_expected_output_is_optional(self, client, executor):
        executor.run_code.return_value = RunReport(overall_status=Verdict.ACCEPTED, results=[])

        response = client.post("/api/v1/run/", json=run_body(test_cases=[{"input": "1"}]))

        assert response.status_code == 200
        assert executor.run_code.await_args.kwargs["test_cases"][0].expected_output is None

    def test_unknown_language(self, client, executor):
        response = client.post("/api/v1/run/", json=run_body(language="cobol"))

        assert response.status_code == 404
        assert "cobol" in response.json()["detail"]
        executor.run_code.assert_not_awaited()

    def test_sandbox_unavailable(self, client, executor):
        executor.run_code.side_effect = SandboxUnavailable("Docker daemon unreachable")

        response = client.post("/api/v1/run/", json=run_body())

        assert response.status_code == 503

    def test_requires_at_least_one_case(self, client):
        response = client.post("/api/v1/run/", json=run_body(test_cases=[]))
        assert response.status_code == 422


class TestRuntimeHealthEndpoint:
    def test_reports_probe_result(self, client, executor):
        executor.probe.return_value = RuntimeHealth(
            docker_available=True, image_exists=False, status=RuntimeStatus.IMAGE_MISSING
        )

        response = client.get("/api/v1/runtimes/health", params={"image": "python:9"})

        assert response.status_code == 200
        assert response.json() == {
            "docker_available": True,
            "image_exists": False,
            "status": "IMAGE_MISSING",
        }
        executor.probe.assert_awaited_once_with("python:9")

    def test_image_is_required(self, client):
        assert client.get("/api/v1/runtimes/health").status_code == 422

    def test_sandbox_error_maps_to_503(self, client, executor):
        executor.probe.side_effect = SandboxUnavailable("daemon restarting")

        response = client.get("/api/v1/runtimes/health", params={"image": "python:3"})

        assert response.status_code == 503
        assert response.json()["code"] == "SANDBOX_ERROR"


def test_health_check(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"
