"""Build record persistence for the pipeline.

The pipeline outlives the request-scoped session, so every write here opens
its own short session from the factory.
"""

import asyncio

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared.logging_config import get_logger
from shared.models import (
    BuildConfiguration,
    BuildOutput,
    BuildStatus,
    Framework,
    Styling,
    VerificationState,
)

logger = get_logger(__name__)


class BuildStore:
    """Writes build configuration and build output rows.

    Status moves only GENERATING -> COMPLETE or GENERATING -> FAILED: the
    terminal writes are conditional on the row still generating.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def upsert_config(
        self,
        project_id: str,
        framework: Framework,
        styling: Styling,
        include_typescript: bool,
    ) -> BuildConfiguration:
        async with self.session_maker() as session:
            result = await session.execute(
                select(BuildConfiguration).where(BuildConfiguration.project_id == project_id)
            )
            config = result.scalar_one_or_none()
            if config is None:
                config = BuildConfiguration(project_id=project_id)
                session.add(config)
            config.framework = framework.value
            config.styling = styling.value
            config.include_typescript = include_typescript
            await session.commit()
            await session.refresh(config)
            return config

    async def create_build(self, project_id: str, build_config_id: str) -> BuildOutput:
        async with self.session_maker() as session:
            build = BuildOutput(
                project_id=project_id,
                build_config_id=build_config_id,
                status=BuildStatus.GENERATING.value,
            )
            session.add(build)
            await session.commit()
            await session.refresh(build)
            logger.info("build_created", build_id=build.id, project_id=project_id)
            return build

    async def save_files(self, build_id: str, files: list[dict[str, str]]) -> None:
        async with self.session_maker() as session:
            await session.execute(
                update(BuildOutput).where(BuildOutput.id == build_id).values(files=files)
            )
            await session.commit()

    async def mark_complete(
        self,
        build_id: str,
        files: list[dict[str, str]],
        verification: VerificationState | None = None,
    ) -> bool:
        """Finalize a generating build. Returns False if it was already final."""
        if not files:
            raise ValueError("A complete build must contain at least one file")
        return await self._finalize(
            build_id,
            status=BuildStatus.COMPLETE.value,
            files=files,
            verification=verification.value if verification else None,
        )

    async def mark_failed(self, build_id: str, error: str) -> bool:
        return await self._finalize(build_id, status=BuildStatus.FAILED.value, error=error)

    async def record_verification(
        self,
        build_id: str,
        verification: VerificationState,
        files: list[dict[str, str]] | None = None,
    ) -> None:
        values: dict = {"verification": verification.value}
        if files:
            values["files"] = files
        async with self.session_maker() as session:
            await session.execute(
                update(BuildOutput).where(BuildOutput.id == build_id).values(**values)
            )
            await session.commit()

    async def _finalize(self, build_id: str, **values) -> bool:
        async with self.session_maker() as session:
            result = await session.execute(
                update(BuildOutput)
                .where(
                    BuildOutput.id == build_id,
                    BuildOutput.status == BuildStatus.GENERATING.value,
                )
                .values(**values)
            )
            await session.commit()
        finalized = result.rowcount == 1
        logger.info(
            "build_finalized" if finalized else "build_already_final",
            build_id=build_id,
            status=values["status"],
        )
        return finalized


class FileCheckpointer:
    """Fire-and-forget snapshots of a build's files while it streams.

    Writes are serialized and sequence-checked: a snapshot older than one
    already written, or than one still queued, is dropped.
    """

    def __init__(self, store: BuildStore, build_id: str):
        self.store = store
        self.build_id = build_id
        self._lock = asyncio.Lock()
        self._submitted = 0
        self._written = 0
        self._tasks: set[asyncio.Task] = set()

    @property
    def written_seq(self) -> int:
        return self._written

    def submit(self, files: list[dict[str, str]]) -> None:
        self._submitted += 1
        snapshot = [dict(f) for f in files]
        task = asyncio.create_task(self._write(self._submitted, snapshot))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _write(self, seq: int, files: list[dict[str, str]]) -> None:
        async with self._lock:
            if seq <= self._written or seq < self._submitted:
                return
            try:
                await self.store.save_files(self.build_id, files)
            except Exception as e:
                logger.warning(
                    "checkpoint_failed", build_id=self.build_id, seq=seq, error=str(e)
                )
                return
            self._written = seq

    async def drain(self) -> None:
        """Wait for queued snapshots before a final write."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks))
