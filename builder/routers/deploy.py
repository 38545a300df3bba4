"""Direct deploy to the caller's own Vercel account."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from shared.clients import VercelAPIError, VercelClient
from shared.models import BuildStatus, Project

from ..database import get_async_session
from ..errors import InvalidProviderToken, NoCompleteBuild, provider_error
from ..publishing import deploy_files, slugify
from ..queries import latest_build
from ..schemas import DirectDeployRequest, DirectDeployResponse

logger = structlog.get_logger()

router = APIRouter(prefix="/projects/{project_id}/deploy", tags=["deploy"])


@router.post("/vercel", response_model=DirectDeployResponse)
async def deploy_to_vercel(
    project_id: str,
    deploy_in: DirectDeployRequest,
    db: AsyncSession = Depends(get_async_session),
) -> DirectDeployResponse:
    """Deploy the latest complete build with a user-supplied token.

    Nothing is persisted: the deployment belongs to the user's account.
    """
    if not deploy_in.token.strip():
        raise HTTPException(status_code=400, detail="Vercel access token is required")

    project = await db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")

    build = await latest_build(db, project_id, BuildStatus.COMPLETE)
    if build is None or not build.files:
        raise NoCompleteBuild()

    name = slugify(project.name) or "project"
    client = VercelClient(token=deploy_in.token.strip())
    try:
        deployment = await deploy_files(
            client,
            name,
            build.files,
            build.build_config.framework if build.build_config else None,
            target=None,
            wait=False,
        )
    except VercelAPIError as e:
        raise provider_error(e, auth_error=InvalidProviderToken) from e
    finally:
        await client.close()

    logger.info(
        "direct_deploy_created", project_id=project_id, deployment_id=deployment.deployment_id
    )
    # Vercel may omit the deployment host; the project alias always exists
    host = deployment.url or f"{name}.vercel.app"
    return DirectDeployResponse(url=f"https://{host}", deployment_id=deployment.deployment_id)
