"""Data models for the grading sandbox."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from uuid import UUID


class Verdict(str, Enum):
    """Outcome of one graded test case (or a whole submission)."""

    ACCEPTED = "ACCEPTED"
    WRONG_ANSWER = "WRONG_ANSWER"
    TIME_LIMIT_EXCEEDED = "TIME_LIMIT_EXCEEDED"
    RUNTIME_ERROR = "RUNTIME_ERROR"
    COMPILATION_ERROR = "COMPILATION_ERROR"

    @property
    def severity(self) -> int:
        """Higher is worse."""
        return _SEVERITY[self]


_SEVERITY = {
    Verdict.ACCEPTED: 0,
    Verdict.WRONG_ANSWER: 1,
    Verdict.TIME_LIMIT_EXCEEDED: 2,
    Verdict.RUNTIME_ERROR: 3,
    Verdict.COMPILATION_ERROR: 4,
}


class SubmissionStatus(str, Enum):
    """Lifecycle status of a persisted submission."""

    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    ACCEPTED = "ACCEPTED"
    WRONG_ANSWER = "WRONG_ANSWER"
    TIME_LIMIT_EXCEEDED = "TIME_LIMIT_EXCEEDED"
    RUNTIME_ERROR = "RUNTIME_ERROR"
    COMPILATION_ERROR = "COMPILATION_ERROR"
    SYSTEM_ERROR = "SYSTEM_ERROR"

    @classmethod
    def from_verdict(cls, verdict: Verdict) -> "SubmissionStatus":
        return cls(verdict.value)


class RuntimeStatus(str, Enum):
    """Health of a runtime's container image."""

    READY = "READY"
    IMAGE_MISSING = "IMAGE_MISSING"
    RUNTIME_UNAVAILABLE = "RUNTIME_UNAVAILABLE"


@dataclass(frozen=True)
class RuntimeConfig:
    """Admin-defined description of how to run one language."""

    file_name: str
    container_image: str
    run_command: str
    memory_limit_mb: int
    cpu_limit_cores: float
    language: str | None = None
    # Overrides the default compiler-diagnostic markers when set
    compile_error_markers: tuple[str, ...] | None = None


@dataclass
class ExecutionContext:
    """Exclusive workspace for one submission's grading run."""

    id: UUID
    workspace: Path
    runtime: RuntimeConfig

    def artifact(self, name: str) -> Path:
        return self.workspace / name


@dataclass(frozen=True)
class TestCase:
    """A single input/expected-output pair."""

    __test__ = False  # not a pytest class

    input: str
    expected_output: str | None = None
    is_sample: bool = False
    id: UUID | None = None


@dataclass(frozen=True)
class RawRunOutcome:
    """Unclassified result of running a program once."""

    stdout: str
    stderr: str
    exit_code: int | None
    timed_out: bool
    host_elapsed_ms: int


@dataclass(frozen=True)
class ExecutionResult:
    """Classified result of one test case."""

    status: Verdict
    stdout: str
    execution_time_ms: int


@dataclass(frozen=True)
class RunCaseResult:
    """Run-mode result, echoing the case it came from."""

    result: ExecutionResult
    input: str
    expected_output: str | None = None


@dataclass
class RunReport:
    """Results of an ad hoc run plus the worst-of verdict."""

    overall_status: Verdict
    results: list[RunCaseResult] = field(default_factory=list)


@dataclass(frozen=True)
class RuntimeHealth:
    """Answer of the runtime health probe."""

    docker_available: bool
    image_exists: bool
    status: RuntimeStatus


@dataclass
class SubmissionBundle:
    """Everything the orchestrator needs to grade one submission."""

    submission_id: UUID
    code: str
    language: str
    time_limit_seconds: float
    test_cases: list[TestCase] = field(default_factory=list)
