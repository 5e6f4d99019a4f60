"""
High-level grading engine interface.

Orchestrates: workspace preparation → Docker sandbox → verdict classification.
This is the single entry point consumed by the grading service and the
ad hoc run endpoint.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable

from structlog import get_logger

from judge.config import SandboxConfig, get_settings
from judge.sandbox.classifier import COMPILE_ERROR_MARKERS, aggregate_verdict, classify
from judge.sandbox.errors import InvalidConfiguration
from judge.sandbox.manager import DockerSandboxManager
from judge.sandbox.models import (
    ExecutionContext,
    ExecutionResult,
    RunCaseResult,
    RunReport,
    RuntimeConfig,
    RuntimeHealth,
    TestCase,
)
from judge.sandbox.workspace import SandboxWorkspace

logger = get_logger()


class CodeExecutor:
    """
    Facade over the workspace, the container manager and the classifier.

    Usage::

        executor = CodeExecutor()
        await executor.initialize()
        report = await executor.run_code("print(input())", runtime, [TestCase("hi", "hi")])
        await executor.shutdown()
    """

    def __init__(
        self,
        config: SandboxConfig | None = None,
        manager: DockerSandboxManager | None = None,
        workspace: SandboxWorkspace | None = None,
    ) -> None:
        self._config = config or get_settings().sandbox
        self._workspace = workspace or SandboxWorkspace(
            root=self._config.workspace_root,
            max_output_bytes=self._config.max_output_bytes,
        )
        self._manager = manager or DockerSandboxManager(
            config=self._config, workspace=self._workspace
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def initialize(self) -> None:
        """Connect the container manager."""
        await self._manager.initialize()
        logger.info("CodeExecutor initialized")

    async def shutdown(self) -> None:
        """Release resources."""
        await self._manager.shutdown()
        logger.info("CodeExecutor shut down")

    # ------------------------------------------------------------------
    # Building blocks used by the grading service
    # ------------------------------------------------------------------

    async def prepare(self, code: str, runtime: RuntimeConfig) -> ExecutionContext:
        """Validate *runtime* and allocate a workspace holding *code*."""
        return await asyncio.to_thread(self._workspace.prepare, code, runtime)

    async def release(self, ctx: ExecutionContext) -> None:
        """Remove the workspace (best effort, never raises)."""
        await asyncio.to_thread(self._workspace.destroy, ctx)

    async def execute_test_case(
        self,
        ctx: ExecutionContext,
        test_case: TestCase,
        time_limit: float,
    ) -> ExecutionResult:
        """Run *test_case* in a fresh container and classify the outcome."""
        outcome = await self._manager.run(ctx, test_case.input, time_limit)
        markers = ctx.runtime.compile_error_markers or COMPILE_ERROR_MARKERS
        result = classify(outcome, test_case.expected_output, markers)

        logger.info(
            "Test case executed",
            context_id=str(ctx.id),
            test_case_id=str(test_case.id) if test_case.id else None,
            status=result.status.value,
            exit_code=outcome.exit_code,
            duration_ms=result.execution_time_ms,
        )
        return result

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def run_code(
        self,
        code: str,
        runtime: RuntimeConfig,
        test_cases: Iterable[TestCase],
        time_limit: float | None = None,
    ) -> RunReport:
        """
        Run *code* against caller-supplied cases without persisting anything.

        Args:
            code: Submitted source code.
            runtime: How to execute the language.
            test_cases: Cases to run; ``expected_output`` may be omitted.
            time_limit: Seconds per case (defaults to the run-mode limit).

        Returns:
            ``RunReport`` with one result per case and the worst-of verdict.
        """
        if time_limit is None:
            time_limit = self._config.run_time_limit
        elif time_limit <= 0:
            raise InvalidConfiguration(f"Invalid time limit: {time_limit}")
        results: list[RunCaseResult] = []

        ctx = await self.prepare(code, runtime)
        try:
            for case in test_cases:
                result = await self.execute_test_case(ctx, case, time_limit)
                results.append(
                    RunCaseResult(
                        result=result,
                        input=case.input,
                        expected_output=case.expected_output,
                    )
                )
        finally:
            await self.release(ctx)

        overall = aggregate_verdict(r.result.status for r in results)
        logger.info(
            "Ad hoc run finished",
            language=runtime.language,
            cases=len(results),
            overall_status=overall.value,
        )
        return RunReport(overall_status=overall, results=results)

    async def probe(self, image: str) -> RuntimeHealth:
        """Check that the container runtime is reachable and *image* exists."""
        return await self._manager.probe(image)
