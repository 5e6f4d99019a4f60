"""Database module — async SQLAlchemy persistence layer."""

from .engine import init_db, close_db, get_session_factory
from .models import (
    Base,
    ProblemModel,
    RuntimeModel,
    SubmissionModel,
    SubmissionTestCaseResultModel,
    TestCaseModel,
)
from .repository import SubmissionRepository
from .runtime_repository import RuntimeRepository

__all__ = [
    "init_db",
    "close_db",
    "get_session_factory",
    "Base",
    "ProblemModel",
    "RuntimeModel",
    "SubmissionModel",
    "SubmissionTestCaseResultModel",
    "TestCaseModel",
    "SubmissionRepository",
    "RuntimeRepository",
]
