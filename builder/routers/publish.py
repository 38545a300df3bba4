"""Publish router."""

from fastapi import APIRouter, Depends

from ..dependencies import get_publish_manager
from ..publishing import PublishManager
from ..schemas import (
    PublishedSiteRead,
    PublishRequest,
    PublishStatus,
    SlugCheck,
    UnpublishResponse,
)

router = APIRouter(prefix="/projects/{project_id}/publish", tags=["publish"])


@router.post("", response_model=PublishedSiteRead)
async def publish_project(
    project_id: str,
    publish_in: PublishRequest | None = None,
    manager: PublishManager = Depends(get_publish_manager),
):
    """Publish (or republish) the latest complete build."""
    slug = publish_in.slug if publish_in else None
    return await manager.publish(project_id, slug=slug)


@router.get("", response_model=PublishStatus, response_model_exclude_none=True)
async def get_publish_status(
    project_id: str,
    manager: PublishManager = Depends(get_publish_manager),
) -> dict:
    return await manager.status(project_id)


@router.delete("", response_model=UnpublishResponse)
async def unpublish_project(
    project_id: str,
    manager: PublishManager = Depends(get_publish_manager),
) -> UnpublishResponse:
    """Detach the domain and mark the site deleted; the slug stays reserved."""
    await manager.unpublish(project_id)
    return UnpublishResponse()


@router.get("/check-slug", response_model=SlugCheck, response_model_exclude_none=True)
async def check_slug(
    project_id: str,
    slug: str | None = None,
    manager: PublishManager = Depends(get_publish_manager),
) -> dict:
    return await manager.check_slug(project_id, slug)
