"""
GradingService — drives one submission from PENDING to a terminal status.

Usage (inside a job worker)::

    service = GradingService(submission_repo, runtime_repo, executor)
    status = await service.grade(submission_id)

Per submission:
  1. load the submission and look up its runtime
  2. mark it PROCESSING
  3. prepare one workspace for the whole submission
  4. run every test case in order, persisting each result immediately
  5. persist the worst verdict as the terminal status
  6. release the workspace, whatever happened above
"""

from __future__ import annotations

from typing import Protocol
from uuid import UUID

from structlog import get_logger

from judge.sandbox.classifier import worse
from judge.sandbox.errors import RuntimeMissing, SandboxUnavailable, WorkspaceError
from judge.sandbox.executor import CodeExecutor
from judge.sandbox.models import (
    ExecutionContext,
    ExecutionResult,
    RuntimeConfig,
    SubmissionBundle,
    SubmissionStatus,
    TestCase,
    Verdict,
)

logger = get_logger()


class SubmissionStore(Protocol):
    async def load(self, submission_id: UUID) -> SubmissionBundle | None: ...

    async def set_status(self, submission_id: UUID, status: SubmissionStatus) -> None: ...

    async def append_test_result(
        self, submission_id: UUID, test_case: TestCase, result: ExecutionResult
    ) -> None: ...


class RuntimeRegistry(Protocol):
    async def lookup(self, language: str) -> RuntimeConfig | None: ...


class GradingService:
    """
    Stateless orchestrator; safe to share between concurrent gradings.

    Infrastructure failures (``SandboxUnavailable``, ``WorkspaceError``) mark
    the submission SYSTEM_ERROR and are re-raised so the job system can retry.
    Every other failure marks SYSTEM_ERROR and is logged, not re-raised.
    """

    def __init__(
        self,
        store: SubmissionStore,
        registry: RuntimeRegistry,
        executor: CodeExecutor,
    ):
        self._store = store
        self._registry = registry
        self._executor = executor

    async def grade(self, submission_id: UUID) -> SubmissionStatus | None:
        """Grade *submission_id*; returns the terminal status written (None if unknown)."""
        log = logger.bind(submission_id=str(submission_id))
        log.info("Starting grading")

        ctx: ExecutionContext | None = None
        try:
            bundle = await self._store.load(submission_id)
            if bundle is None:
                log.error("Submission not found")
                return None

            runtime = await self._registry.lookup(bundle.language)
            if runtime is None:
                raise RuntimeMissing(bundle.language)

            await self._store.set_status(submission_id, SubmissionStatus.PROCESSING)

            ctx = await self._executor.prepare(bundle.code, runtime)

            worst = Verdict.ACCEPTED
            for test_case in bundle.test_cases:
                result = await self._executor.execute_test_case(
                    ctx, test_case, bundle.time_limit_seconds
                )
                await self._store.append_test_result(submission_id, test_case, result)
                worst = worse(worst, result.status)

            final = SubmissionStatus.from_verdict(worst)
            await self._store.set_status(submission_id, final)
            log.info(
                "Grading finished",
                status=final.value,
                test_cases=len(bundle.test_cases),
            )
            return final

        except RuntimeMissing as exc:
            log.error("Runtime not found", language=exc.language)
            await self._mark_failed(submission_id)
            return SubmissionStatus.SYSTEM_ERROR

        except (SandboxUnavailable, WorkspaceError) as exc:
            log.error("Sandbox infrastructure failure", error=str(exc))
            await self._mark_failed(submission_id)
            raise

        except Exception as exc:  # noqa: BLE001
            log.exception("Critical error while grading", error=str(exc))
            await self._mark_failed(submission_id)
            return SubmissionStatus.SYSTEM_ERROR

        finally:
            if ctx is not None:
                await self._executor.release(ctx)

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    async def _mark_failed(self, submission_id: UUID) -> None:
        # Must not mask the error that got us here
        try:
            await self._store.set_status(submission_id, SubmissionStatus.SYSTEM_ERROR)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "Failed to mark submission as SYSTEM_ERROR",
                submission_id=str(submission_id),
                error=str(exc),
            )
