"""Services module."""

from .grading_service import GradingService
from .judge_service import (
    get_executor,
    get_grading_service,
    get_runtime_registry,
    grade_submission_job,
    judge_lifespan,
    judge_runtime,
)

__all__ = [
    "GradingService",
    "get_executor",
    "get_grading_service",
    "get_runtime_registry",
    "grade_submission_job",
    "judge_lifespan",
    "judge_runtime",
]
