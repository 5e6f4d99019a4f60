"""
Ad hoc run API routes.
"""

from fastapi import APIRouter, Depends, HTTPException
from structlog import get_logger

from judge.database import RuntimeRepository
from judge.models.schemas import ErrorResponse, RunRequest, RunResponse
from judge.sandbox.errors import (
    InvalidConfiguration,
    RuntimeMissing,
    SandboxUnavailable,
    WorkspaceError,
)
from judge.sandbox.executor import CodeExecutor
from judge.services.judge_service import get_executor, get_runtime_registry

logger = get_logger()
router = APIRouter(prefix="/run", tags=["run"])


@router.post(
    "/",
    response_model=RunResponse,
    responses={
        400: {"model": ErrorResponse},
        404: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    summary="Run code",
    description="Run code against caller-supplied test cases without creating a submission"
)
async def run_code(
    request: RunRequest,
    executor: CodeExecutor = Depends(get_executor),
    registry: RuntimeRepository = Depends(get_runtime_registry),
) -> RunResponse:
    """
    Run code in the sandbox and return per-case results.

    - **code**: Source code
    - **language**: Language of a registered runtime
    - **test_cases**: Inputs, optionally with expected outputs
    """
    try:
        runtime = await registry.lookup(request.language)
        if runtime is None:
            raise RuntimeMissing(request.language)

        report = await executor.run_code(
            code=request.code,
            runtime=runtime,
            test_cases=[tc.to_test_case() for tc in request.test_cases],
        )
        return RunResponse.from_report(report)
    except RuntimeMissing as e:
        raise HTTPException(status_code=404, detail=str(e))
    except InvalidConfiguration as e:
        raise HTTPException(status_code=400, detail=str(e))
    except (SandboxUnavailable, WorkspaceError) as e:
        logger.error("Run failed: sandbox unavailable", error=str(e))
        raise HTTPException(status_code=503, detail=str(e))
