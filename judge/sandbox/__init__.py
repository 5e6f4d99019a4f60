"""Docker-based sandbox for grading submitted code."""

from judge.sandbox.classifier import aggregate_verdict, classify
from judge.sandbox.errors import (
    InvalidConfiguration,
    RuntimeMissing,
    SandboxError,
    SandboxUnavailable,
    WorkspaceError,
)
from judge.sandbox.executor import CodeExecutor
from judge.sandbox.models import (
    ExecutionContext,
    ExecutionResult,
    RawRunOutcome,
    RuntimeConfig,
    SubmissionStatus,
    TestCase,
    Verdict,
)

__all__ = [
    "CodeExecutor",
    "ExecutionContext",
    "ExecutionResult",
    "InvalidConfiguration",
    "RawRunOutcome",
    "RuntimeConfig",
    "RuntimeMissing",
    "SandboxError",
    "SandboxUnavailable",
    "SubmissionStatus",
    "TestCase",
    "Verdict",
    "WorkspaceError",
    "aggregate_verdict",
    "classify",
]
