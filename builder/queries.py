"""Shared read queries."""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from shared.models import BuildOutput, BuildStatus, PublishedSite


async def latest_build(
    db: AsyncSession, project_id: str, status: BuildStatus | None = None
) -> BuildOutput | None:
    """Most recent build of a project, optionally restricted to one status."""
    query = select(BuildOutput).where(BuildOutput.project_id == project_id)
    if status is not None:
        query = query.where(BuildOutput.status == status.value)
    query = query.order_by(BuildOutput.created_at.desc()).limit(1)
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def get_published_site(db: AsyncSession, project_id: str) -> PublishedSite | None:
    result = await db.execute(select(PublishedSite).where(PublishedSite.project_id == project_id))
    return result.scalar_one_or_none()


async def get_site_by_slug(db: AsyncSession, slug: str) -> PublishedSite | None:
    result = await db.execute(select(PublishedSite).where(PublishedSite.slug == slug))
    return result.scalar_one_or_none()
