"""
Runtime health API routes (administrative).
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Query
from structlog import get_logger

from judge.models.schemas import RuntimeHealthResponse
from judge.sandbox.executor import CodeExecutor
from judge.services.judge_service import get_executor

logger = get_logger()
router = APIRouter(prefix="/runtimes", tags=["runtimes"])


@router.get(
    "/health",
    response_model=RuntimeHealthResponse,
    summary="Check a runtime image",
    description="Report whether Docker is reachable and the image is present locally"
)
async def runtime_health(
    image: Annotated[str, Query(min_length=1, max_length=255, description="Image reference")],
    executor: CodeExecutor = Depends(get_executor),
) -> RuntimeHealthResponse:
    """Warn operators before a broken runtime is assigned to live submissions."""
    health = await executor.probe(image)
    logger.info("Runtime probed", image=image, status=health.status.value)
    return RuntimeHealthResponse.from_health(health)
