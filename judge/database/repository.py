"""
Async repository for submissions and their per-test-case results.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from judge.database.models import (
    SubmissionModel,
    SubmissionTestCaseResultModel,
    TestCaseModel,
)
from judge.sandbox.models import (
    ExecutionResult,
    SubmissionBundle,
    SubmissionStatus,
    TestCase,
)

logger = get_logger()


class SubmissionRepository:
    """
    Submission store used by the grading service.

    Converts between SQLAlchemy ORM models and the sandbox's dataclasses.
    Every write commits immediately so observers see progress mid-grading.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        default_time_limit: float = 1.0,
    ):
        self._sf = session_factory
        self._default_time_limit = default_time_limit

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def load(self, submission_id: UUID) -> SubmissionBundle | None:
        """Load code, language, time limit and ordered test cases."""
        async with self._sf() as db:
            result = await db.execute(
                select(SubmissionModel).where(SubmissionModel.id == submission_id)
            )
            row = result.scalar_one_or_none()
            if row is None:
                return None

            problem = row.problem
            cases = sorted(
                problem.test_cases,
                key=lambda tc: (tc.order_index, tc.created_at, str(tc.id)),
            )
            return SubmissionBundle(
                submission_id=row.id,
                code=row.code,
                language=row.language,
                time_limit_seconds=problem.time_limit or self._default_time_limit,
                test_cases=[self._to_test_case(tc) for tc in cases],
            )

    async def get_status(self, submission_id: UUID) -> SubmissionStatus | None:
        async with self._sf() as db:
            result = await db.execute(
                select(SubmissionModel.status).where(SubmissionModel.id == submission_id)
            )
            status = result.scalar_one_or_none()
            return SubmissionStatus(status) if status is not None else None

    async def list_results(self, submission_id: UUID) -> list[SubmissionTestCaseResultModel]:
        async with self._sf() as db:
            result = await db.execute(
                select(SubmissionTestCaseResultModel)
                .where(SubmissionTestCaseResultModel.submission_id == submission_id)
                .order_by(SubmissionTestCaseResultModel.created_at)
            )
            return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    async def set_status(self, submission_id: UUID, status: SubmissionStatus) -> None:
        async with self._sf() as db:
            await db.execute(
                update(SubmissionModel)
                .where(SubmissionModel.id == submission_id)
                .values(status=status.value)
            )
            await db.commit()
        logger.debug("Submission status updated", submission_id=str(submission_id), status=status.value)

    async def append_test_result(
        self,
        submission_id: UUID,
        test_case: TestCase,
        result: ExecutionResult,
    ) -> None:
        """Persist one test case's result together with its input and expected output."""
        async with self._sf() as db:
            db.add(
                SubmissionTestCaseResultModel(
                    submission_id=submission_id,
                    test_case_id=test_case.id,
                    status=result.status.value,
                    stdout=result.stdout,
                    execution_time=result.execution_time_ms,
                    input=test_case.input,
                    expected_output=test_case.expected_output,
                )
            )
            await db.commit()

    # ------------------------------------------------------------------
    # Conversion helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _to_test_case(model: TestCaseModel) -> TestCase:
        return TestCase(
            id=model.id,
            input=model.input,
            expected_output=model.expected_output,
            is_sample=model.is_sample,
        )
