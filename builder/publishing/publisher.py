"""Publishing a project's latest complete build under its slug subdomain."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from shared.clients import VercelAPIError, VercelClient, VercelDeploymentFailed
from shared.logging_config import get_logger
from shared.models import BuildStatus, Project, PublishedSite, PublishedSiteStatus
from shared.models.base import utcnow

from builder.errors import (
    InvalidSlug,
    NoCompleteBuild,
    NotPublished,
    ProjectNotFound,
    PublishError,
    PublishingUnavailable,
    SlugConflict,
    provider_error,
)
from builder.queries import get_published_site, get_site_by_slug, latest_build

from .deployer import deploy_files
from .slugs import is_valid_slug, normalize_slug, slugify, unique_slug

logger = get_logger(__name__)


@dataclass
class PublishSettings:
    publish_domain: str = "calypso.build"
    project_prefix: str = "calypso"
    poll_interval: float = 2.0
    poll_timeout: float = 90.0


class PublishManager:
    """Publishes, reports and unpublishes a project's site.

    There is at most one PublishedSite row per project. It is updated in
    place on republish so the hosting project and slug stay stable; unpublish
    only detaches the domain and marks the row deleted.
    """

    def __init__(
        self,
        db: AsyncSession,
        client: VercelClient | None,
        settings: PublishSettings | None = None,
    ):
        self.db = db
        self.client = client
        self.settings = settings or PublishSettings()

    def site_url(self, slug: str) -> str:
        return f"https://{self.domain(slug)}"

    def domain(self, slug: str) -> str:
        return f"{slug}.{self.settings.publish_domain}"

    async def publish(self, project_id: str, slug: str | None = None) -> PublishedSite:
        project = await self._get_project(project_id)
        build = await latest_build(self.db, project_id, BuildStatus.COMPLETE)
        if build is None or not build.files:
            raise NoCompleteBuild()

        candidate = await self._check_candidate(project_id, slug) if slug is not None else None
        site = await get_published_site(self.db, project_id)

        if (
            site is not None
            and site.status == PublishedSiteStatus.READY.value
            and site.build_output_id == build.id
        ):
            logger.info("publish_up_to_date", project_id=project_id, slug=site.slug)
            return site

        client = self._require_client()
        resolved = await self._resolve_slug(project, site, candidate)
        project_name = (
            site.vercel_project_name
            if site is not None
            else f"{self.settings.project_prefix}-{project_id[:8]}"
        )

        logger.info(
            "publish_started",
            project_id=project_id,
            build_id=build.id,
            slug=resolved,
            republish=site is not None,
        )
        try:
            deployment = await deploy_files(
                client,
                project_name,
                build.files,
                build.build_config.framework if build.build_config else None,
                poll_interval=self.settings.poll_interval,
                poll_timeout=self.settings.poll_timeout,
            )
            await self._assign_domain(client, deployment.vercel_project_id, self.domain(resolved))
        except VercelAPIError as e:
            raise provider_error(e) from e
        except VercelDeploymentFailed as e:
            raise PublishError("Publishing failed: the deployment ended with an error.") from e

        if site is None:
            site = PublishedSite(project_id=project_id, slug=resolved)
            self.db.add(site)
        site.build_output_id = build.id
        site.vercel_project_id = deployment.vercel_project_id
        site.vercel_project_name = project_name
        site.deployment_id = deployment.deployment_id
        site.url = self.site_url(resolved)
        site.status = PublishedSiteStatus.READY.value
        site.published_at = utcnow()
        await self.db.commit()
        await self.db.refresh(site)

        logger.info(
            "publish_completed",
            project_id=project_id,
            slug=site.slug,
            deployment_id=site.deployment_id,
        )
        return site

    async def status(self, project_id: str) -> dict:
        await self._get_project(project_id)
        site = await get_published_site(self.db, project_id)
        if site is None or not site.is_live:
            return {"published": False}

        latest = await latest_build(self.db, project_id, BuildStatus.COMPLETE)
        return {
            "published": True,
            "url": site.url,
            "slug": site.slug,
            "status": site.status,
            "published_at": site.published_at,
            "is_stale": latest is not None and latest.id != site.build_output_id,
        }

    async def unpublish(self, project_id: str) -> PublishedSite:
        await self._get_project(project_id)
        site = await get_published_site(self.db, project_id)
        if site is None or not site.is_live:
            raise NotPublished()

        client = self._require_client()
        try:
            removed = await client.remove_project_domain(
                site.vercel_project_id, self.domain(site.slug)
            )
        except VercelAPIError as e:
            raise provider_error(e) from e

        site.status = PublishedSiteStatus.DELETED.value
        await self.db.commit()
        await self.db.refresh(site)
        logger.info(
            "site_unpublished", project_id=project_id, slug=site.slug, domain_removed=removed
        )
        return site

    async def check_slug(self, project_id: str, raw: str | None) -> dict:
        await self._get_project(project_id)
        slug = normalize_slug(raw or "")
        if not is_valid_slug(slug):
            return {"available": False, "reason": InvalidSlug.default_message}
        owner = await get_site_by_slug(self.db, slug)
        return {"available": owner is None or owner.project_id == project_id}

    async def _get_project(self, project_id: str) -> Project:
        project = await self.db.get(Project, project_id)
        if project is None:
            raise ProjectNotFound()
        return project

    def _require_client(self) -> VercelClient:
        if self.client is None:
            logger.error("publish_token_missing")
            raise PublishingUnavailable()
        return self.client

    async def _check_candidate(self, project_id: str, raw: str) -> str:
        candidate = normalize_slug(raw)
        if not is_valid_slug(candidate):
            raise InvalidSlug()
        owner = await get_site_by_slug(self.db, candidate)
        if owner is not None and owner.project_id != project_id:
            logger.info("slug_conflict", project_id=project_id, slug=candidate)
            raise SlugConflict()
        return candidate

    async def _resolve_slug(
        self, project: Project, site: PublishedSite | None, candidate: str | None
    ) -> str:
        if site is not None:
            return site.slug
        if candidate is not None:
            return candidate

        async def is_taken(slug: str) -> bool:
            owner = await get_site_by_slug(self.db, slug)
            return owner is not None and owner.project_id != project.id

        return await unique_slug(slugify(project.name), project.id, is_taken)

    @staticmethod
    async def _assign_domain(client: VercelClient, vercel_project_id: str, domain: str) -> None:
        try:
            added = await client.add_project_domain(vercel_project_id, domain)
        except VercelAPIError as e:
            if e.is_auth_error:
                raise
            # The site still serves on its vercel.app address
            logger.warning("domain_assignment_failed", domain=domain, error=e.message)
            return
        logger.info("domain_assigned", domain=domain, newly_added=added)
