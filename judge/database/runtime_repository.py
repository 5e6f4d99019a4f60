"""
Async runtime registry backed by the ``runtimes`` table.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from structlog import get_logger

from judge.database.models import RuntimeModel
from judge.sandbox.models import RuntimeConfig

logger = get_logger()


class RuntimeRepository:
    """Looks up how to execute a language; fills in default limits."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        default_memory_limit_mb: int = 128,
        default_cpu_limit_cores: float = 0.5,
    ):
        self._sf = session_factory
        self._default_memory = default_memory_limit_mb
        self._default_cpu = default_cpu_limit_cores

    async def lookup(self, language: str) -> RuntimeConfig | None:
        """Return the runtime for *language*, or *None*."""
        async with self._sf() as db:
            stmt = select(RuntimeModel).where(RuntimeModel.language == language)
            row = (await db.execute(stmt)).scalar_one_or_none()
            if row is None:
                logger.debug("No runtime registered", language=language)
                return None
            return self._to_config(row)

    async def list_runtimes(self) -> list[RuntimeConfig]:
        async with self._sf() as db:
            rows = (
                await db.execute(select(RuntimeModel).order_by(RuntimeModel.language))
            ).scalars().all()
            return [self._to_config(r) for r in rows]

    def _to_config(self, model: RuntimeModel) -> RuntimeConfig:
        return RuntimeConfig(
            language=model.language,
            file_name=model.file_name,
            container_image=model.docker_image,
            run_command=model.run_command,
            memory_limit_mb=model.memory_limit or self._default_memory,
            cpu_limit_cores=model.cpu_limit or self._default_cpu,
        )
