"""Token-gated preview deployments."""

from dataclasses import dataclass
import secrets

import httpx
from sqlalchemy.ext.asyncio import AsyncSession

from shared.clients import VercelAPIError, VercelClient, VercelDeploymentFailed
from shared.logging_config import get_logger
from shared.models import BuildOutput, BuildStatus, Project

from builder.errors import (
    NoCompleteBuild,
    ProjectNotFound,
    PublishError,
    PublishingUnavailable,
    provider_error,
)
from builder.queries import get_published_site, latest_build

from .deployer import deploy_files
from .publisher import PublishSettings
from .scripts import inject_preview_scripts, make_banner_script, make_gate_script

logger = get_logger(__name__)


@dataclass
class PreviewSettings(PublishSettings):
    app_url: str = "https://calypso.build"
    status_api_origin: str = "https://calypso.build"
    reachability_timeout: float = 10.0


async def is_reachable(url: str, timeout: float = 10.0) -> bool:
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            resp = await client.head(url)
    except httpx.HTTPError as e:
        logger.info("preview_unreachable", url=url, error=str(e))
        return False
    return resp.is_success


class PreviewManager:
    """Creates or reuses a private preview of the latest complete build.

    Every new preview gets a fresh, randomly named hosting project and a
    random access token; the gate script refuses to render without it.
    """

    def __init__(
        self,
        db: AsyncSession,
        client: VercelClient | None,
        settings: PreviewSettings | None = None,
    ):
        self.db = db
        self.client = client
        self.settings = settings or PreviewSettings()

    async def create(self, project_id: str) -> dict:
        build = await self._latest_complete(project_id)

        if build.preview_url and build.preview_token:
            if await is_reachable(build.preview_url, self.settings.reachability_timeout):
                logger.info("preview_reused", project_id=project_id, build_id=build.id)
                return self._describe(build)
            logger.info("preview_cleared", project_id=project_id, build_id=build.id)
            build.preview_url = None
            build.preview_token = None
            build.preview_deployment_id = None
            build.preview_vercel_project_id = None
            await self.db.commit()

        if self.client is None:
            logger.error("preview_token_missing")
            raise PublishingUnavailable("Preview is not available right now.")

        token = secrets.token_hex(32)
        domain = f"pv-{secrets.token_hex(8)}.{self.settings.publish_domain}"
        project_name = (
            f"{self.settings.project_prefix}-pv-{project_id[:8]}-{secrets.token_hex(4)}"
        )
        files = inject_preview_scripts(
            build.files,
            make_gate_script(token),
            make_banner_script(project_id, self.settings.app_url, self.settings.status_api_origin),
        )

        logger.info("preview_started", project_id=project_id, build_id=build.id, domain=domain)
        try:
            deployment = await deploy_files(
                self.client,
                project_name,
                files,
                build.build_config.framework if build.build_config else None,
                poll_interval=self.settings.poll_interval,
                poll_timeout=self.settings.poll_timeout,
            )
        except VercelAPIError as e:
            raise provider_error(e) from e
        except VercelDeploymentFailed as e:
            raise PublishError("Preview deployment failed.") from e

        try:
            await self.client.add_project_domain(deployment.vercel_project_id, domain)
        except VercelAPIError as e:
            if e.is_auth_error:
                raise provider_error(e) from e
            logger.warning("preview_domain_failed", domain=domain, error=e.message)

        build.preview_url = f"https://{domain}"
        build.preview_token = token
        build.preview_deployment_id = deployment.deployment_id
        build.preview_vercel_project_id = deployment.vercel_project_id
        await self.db.commit()

        logger.info("preview_created", project_id=project_id, build_id=build.id)
        return self._describe(build)

    async def current(self, project_id: str) -> dict:
        await self._get_project(project_id)
        build = await latest_build(self.db, project_id, BuildStatus.COMPLETE)
        if build is None or not (build.preview_url and build.preview_token):
            return {"ready": False}
        return self._describe(build)

    async def status_for_token(self, project_id: str, token: str) -> dict | None:
        """Publish state for the banner; None when the token does not match."""
        build = await latest_build(self.db, project_id, BuildStatus.COMPLETE)
        if build is None or not build.preview_token:
            return None
        if not secrets.compare_digest(build.preview_token, token):
            return None

        site = await get_published_site(self.db, project_id)
        if site is None or not site.is_live:
            return {"published": False}
        return {
            "published": True,
            "isStale": site.build_output_id != build.id,
            "url": site.url,
        }

    async def _get_project(self, project_id: str) -> Project:
        project = await self.db.get(Project, project_id)
        if project is None:
            raise ProjectNotFound()
        return project

    async def _latest_complete(self, project_id: str) -> BuildOutput:
        await self._get_project(project_id)
        build = await latest_build(self.db, project_id, BuildStatus.COMPLETE)
        if build is None or not build.files:
            raise NoCompleteBuild("No completed build found.")
        return build

    @staticmethod
    def _describe(build: BuildOutput) -> dict:
        return {"url": build.preview_url, "token": build.preview_token, "ready": True}
