"""
Sandbox Judge HTTP API.

Serves ad hoc runs and runtime health checks. Graded submissions are driven
by the job worker (``judge.worker`` / ``grade_submission_job``), which shares
the same executor and database wiring.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from judge.api import run_router, runtimes_router
from judge.config import get_settings
from judge.log import configure_logging
from judge.models.schemas import ErrorResponse
from judge.sandbox.errors import SandboxError
from judge.services import judge_lifespan

settings = get_settings()
configure_logging(settings)

logger = structlog.get_logger()


app = FastAPI(
    title=settings.app_name,
    description="""
Runs submitted programs against test cases in isolated Docker containers.

- one container per test case, no network, capped memory and CPU
- wall-clock limit enforced by the judge; the container is killed on expiry
- verdicts: ACCEPTED, WRONG_ANSWER, TIME_LIMIT_EXCEEDED, RUNTIME_ERROR, COMPILATION_ERROR
    """,
    version=settings.app_version,
    lifespan=judge_lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.server.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


def _error(status_code: int, error: str, code: str, exc: Exception) -> JSONResponse:
    body = ErrorResponse(
        error=error,
        code=code,
        details={"message": str(exc)} if settings.debug else None,
    )
    return JSONResponse(status_code=status_code, content=body.model_dump())


@app.exception_handler(SandboxError)
async def sandbox_error_handler(request: Request, exc: SandboxError) -> JSONResponse:
    """Sandbox failures that escaped a route."""
    logger.error("Sandbox error", path=request.url.path, error=str(exc))
    return _error(503, "Sandbox unavailable", "SANDBOX_ERROR", exc)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error(
        "Unhandled exception",
        path=request.url.path,
        method=request.method,
        error=str(exc),
        exc_info=True,
    )
    return _error(500, "Internal server error", "INTERNAL_ERROR", exc)


app.include_router(run_router, prefix="/api/v1")
app.include_router(runtimes_router, prefix="/api/v1")


@app.get("/health", tags=["health"])
async def health_check() -> dict:
    """Liveness of the API process (not of Docker; see /api/v1/runtimes/health)."""
    return {
        "status": "healthy",
        "version": settings.app_version,
        "environment": settings.environment,
    }


def main() -> None:
    import uvicorn

    uvicorn.run(
        "judge.main:app",
        host=settings.server.host,
        port=settings.server.port,
        workers=settings.server.workers,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
