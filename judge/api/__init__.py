"""API module."""

from .run import router as run_router
from .runtimes import router as runtimes_router

__all__ = ["run_router", "runtimes_router"]
