"""
Judge service wiring: dependency injection, lifecycle management and the
grading job entry point.
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator
from uuid import UUID

from fastapi import FastAPI
from structlog import get_logger

from judge.config import get_settings
from judge.database import (
    RuntimeRepository,
    SubmissionRepository,
    close_db,
    init_db,
)
from judge.sandbox.errors import SandboxUnavailable
from judge.sandbox.executor import CodeExecutor
from judge.services.grading_service import GradingService

logger = get_logger()

# Process-wide instances
_executor: CodeExecutor | None = None
_runtime_repo: RuntimeRepository | None = None
_grading_service: GradingService | None = None


async def get_executor() -> CodeExecutor:
    """Get the executor instance for dependency injection."""
    if _executor is None:
        raise RuntimeError("Executor not initialized. Use judge_runtime.")
    return _executor


async def get_runtime_registry() -> RuntimeRepository:
    """Get the runtime registry for dependency injection."""
    if _runtime_repo is None:
        raise RuntimeError("Runtime registry not initialized. Use judge_runtime.")
    return _runtime_repo


async def get_grading_service() -> GradingService:
    if _grading_service is None:
        raise RuntimeError("Grading service not initialized. Use judge_runtime.")
    return _grading_service


@asynccontextmanager
async def judge_runtime(database_url: str | None = None) -> AsyncGenerator[None, None]:
    """Set up database, Docker and the grading service for this process."""
    global _executor, _runtime_repo, _grading_service

    settings = get_settings()
    logger.info("Initializing judge...")

    sf = await init_db(database_url)
    _runtime_repo = RuntimeRepository(
        sf,
        default_memory_limit_mb=settings.sandbox.default_memory_limit_mb,
        default_cpu_limit_cores=settings.sandbox.default_cpu_limit_cores,
    )
    submissions = SubmissionRepository(
        sf, default_time_limit=settings.sandbox.default_time_limit
    )

    _executor = CodeExecutor(settings.sandbox)
    try:
        await _executor.initialize()
    except SandboxUnavailable as e:
        # The manager reconnects on first use
        logger.warning("Docker unavailable at startup", error=str(e))

    _grading_service = GradingService(submissions, _runtime_repo, _executor)
    logger.info("Judge started successfully")

    try:
        yield
    finally:
        logger.info("Shutting down judge...")
        await _executor.shutdown()
        _executor = None
        _runtime_repo = None
        _grading_service = None
        await close_db()
        logger.info("Judge stopped")


@asynccontextmanager
async def judge_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage judge lifecycle for the API process."""
    async with judge_runtime():
        yield


async def grade_submission_job(submission_id: UUID | str) -> str | None:
    """
    Job entry point: grade one submission.

    Called by the job queue inside a ``judge_runtime()`` context. Returns the
    terminal status value. ``SandboxUnavailable`` / ``WorkspaceError``
    propagate so the queue can retry the submission.
    """
    if not isinstance(submission_id, UUID):
        submission_id = UUID(str(submission_id))

    service = await get_grading_service()
    status = await service.grade(submission_id)
    return status.value if status is not None else None
