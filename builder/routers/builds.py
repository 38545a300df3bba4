"""Build router: start builds (SSE), read the latest build, download it."""

from contextlib import aclosing
import io
import zipfile

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response, StreamingResponse
import redis.asyncio as redis
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from shared.models import BuildOutput, BuildStatus, Project

from ..config import Settings, get_settings
from ..database import get_async_session
from ..dependencies import get_build_store, get_pipeline, get_redis
from ..errors import BuildInProgress, NoCompleteBuild
from ..generation import BuildLease, BuildPipeline, BuildStore
from ..generation.prompts import build_system_prompt
from ..publishing import slugify
from ..queries import latest_build
from ..schemas import BuildOutputRead, BuildRequest, LatestBuildResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/projects/{project_id}/build", tags=["builds"])

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}


async def _get_project(db: AsyncSession, project_id: str) -> Project:
    project = await db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.post("")
async def start_build(
    project_id: str,
    build_in: BuildRequest,
    db: AsyncSession = Depends(get_async_session),
    store: BuildStore = Depends(get_build_store),
    pipeline: BuildPipeline = Depends(get_pipeline),
    redis_client: redis.Redis = Depends(get_redis),
    settings: Settings = Depends(get_settings),
) -> StreamingResponse:
    """Generate, verify and save a build, streaming progress as SSE frames."""
    project = await _get_project(db, project_id)

    lease = BuildLease(redis_client, project_id, settings.build_budget_seconds)
    if not await lease.acquire():
        raise BuildInProgress()

    try:
        config = await store.upsert_config(
            project_id, build_in.framework, build_in.styling, build_in.include_typescript
        )
        build = await store.create_build(project_id, config.id)
    except Exception:
        await lease.release()
        raise

    system_prompt = build_system_prompt(
        project.name,
        project.description,
        build_in.framework,
        build_in.styling,
        build_in.include_typescript,
        build_in.brief,
    )
    logger.info(
        "build_requested",
        project_id=project_id,
        build_id=build.id,
        framework=build_in.framework.value,
        styling=build_in.styling.value,
    )

    async def event_stream():
        try:
            async with aclosing(
                pipeline.run(build.id, project_id, build_in.framework, system_prompt)
            ) as events:
                async for event in events:
                    yield event.to_sse()
        finally:
            await lease.release()

    return StreamingResponse(
        event_stream(),
        media_type="text/event-stream",
        headers={**SSE_HEADERS, "X-Build-Id": build.id},
    )


@router.get("", response_model=LatestBuildResponse)
async def get_latest_build(
    project_id: str,
    db: AsyncSession = Depends(get_async_session),
) -> LatestBuildResponse:
    """Latest build of any status, with its configuration."""
    await _get_project(db, project_id)
    output = await latest_build(db, project_id)
    return LatestBuildResponse(
        output=BuildOutputRead.model_validate(output) if output else None
    )


@router.get("/download")
async def download_build(
    project_id: str,
    db: AsyncSession = Depends(get_async_session),
) -> Response:
    """Zip of the latest complete build.

    A generating build that already holds files (its request was killed
    before finishing) is promoted to complete so its work is not lost.
    """
    project = await _get_project(db, project_id)

    output = await latest_build(db, project_id, BuildStatus.COMPLETE)
    if output is None or not output.files:
        pending = await latest_build(db, project_id, BuildStatus.GENERATING)
        if pending is not None and pending.files:
            result = await db.execute(
                update(BuildOutput)
                .where(
                    BuildOutput.id == pending.id,
                    BuildOutput.status == BuildStatus.GENERATING.value,
                )
                .values(status=BuildStatus.COMPLETE.value)
            )
            await db.commit()
            if result.rowcount == 1:
                logger.warning("build_recovered", project_id=project_id, build_id=pending.id)
            output = pending

    if output is None or not output.files:
        raise NoCompleteBuild("No completed build found")

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w", zipfile.ZIP_DEFLATED) as archive:
        for item in output.files:
            archive.writestr(item["path"], item["content"])

    filename = f"{slugify(project.name) or 'project'}-project.zip"
    return Response(
        content=buffer.getvalue(),
        status_code=status.HTTP_200_OK,
        media_type="application/zip",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
