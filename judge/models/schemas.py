"""
Request / response schemas for the judge HTTP API.
"""

from typing import Any

from pydantic import BaseModel, Field

from judge.sandbox.models import (
    RunReport,
    RuntimeHealth,
    RuntimeStatus,
    TestCase,
    Verdict,
)


# ---------------------------------------------------------------
# Run mode
# ---------------------------------------------------------------

class RunTestCase(BaseModel):
    """A caller-supplied case for an ad hoc run."""

    input: str = Field(default="", description="Text fed to stdin")
    expected_output: str | None = Field(
        default=None, description="Expected stdout; omit to just see the output"
    )

    def to_test_case(self) -> TestCase:
        return TestCase(input=self.input, expected_output=self.expected_output)


class RunRequest(BaseModel):
    """Run code against a handful of cases without creating a submission."""

    code: str = Field(description="Source code")
    language: str = Field(min_length=1, description="Language of a registered runtime")
    test_cases: list[RunTestCase] = Field(
        min_length=1, max_length=20, description="Cases to run"
    )


class RunCaseResponse(BaseModel):
    """Result of one case."""

    status: Verdict
    stdout: str
    execution_time: int = Field(description="Wall-clock milliseconds")
    input: str
    expected_output: str | None = None


class RunResponse(BaseModel):
    """Results of an ad hoc run."""

    overall_status: Verdict
    results: list[RunCaseResponse]

    @classmethod
    def from_report(cls, report: RunReport) -> "RunResponse":
        return cls(
            overall_status=report.overall_status,
            results=[
                RunCaseResponse(
                    status=r.result.status,
                    stdout=r.result.stdout,
                    execution_time=r.result.execution_time_ms,
                    input=r.input,
                    expected_output=r.expected_output,
                )
                for r in report.results
            ],
        )


# ---------------------------------------------------------------
# Runtime health
# ---------------------------------------------------------------

class RuntimeHealthResponse(BaseModel):
    """Health of a runtime's container image."""

    docker_available: bool
    image_exists: bool
    status: RuntimeStatus

    @classmethod
    def from_health(cls, health: RuntimeHealth) -> "RuntimeHealthResponse":
        return cls(
            docker_available=health.docker_available,
            image_exists=health.image_exists,
            status=health.status,
        )


class ErrorResponse(BaseModel):
    """Error response."""

    error: str = Field(description="Error message")
    code: str = Field(description="Error code")
    details: dict[str, Any] | None = Field(default=None)
