"""Upload + deploy sequence shared by publish, preview and direct deploy."""

from dataclasses import dataclass

from shared.clients import VercelClient
from shared.logging_config import get_logger
from shared.models import Framework

logger = get_logger(__name__)

VERCEL_FRAMEWORKS = {
    Framework.NEXTJS.value: "nextjs",
    Framework.VITE_REACT.value: "vite",
}


def vercel_framework(framework: str | None) -> str | None:
    """Vercel framework preset; static projects deploy without one."""
    return VERCEL_FRAMEWORKS.get(framework or "")


@dataclass
class Deployment:
    deployment_id: str
    vercel_project_id: str
    url: str | None
    ready_state: str | None = None


async def deploy_files(
    client: VercelClient,
    name: str,
    files: list[dict[str, str]],
    framework: str | None,
    *,
    target: str | None = "production",
    wait: bool = True,
    poll_interval: float = 2.0,
    poll_timeout: float = 90.0,
) -> Deployment:
    """Upload files, create a deployment and (optionally) wait for READY.

    Raises VercelAPIError on provider errors and VercelDeploymentFailed if
    the deployment ends in ERROR. A polling timeout is not an error.
    """
    refs = await client.upload_files(files)
    payload = await client.create_deployment(name, refs, vercel_framework(framework), target=target)
    deployment = Deployment(
        deployment_id=payload["id"],
        vercel_project_id=payload.get("projectId") or name,
        url=payload.get("url"),
        ready_state=payload.get("readyState"),
    )
    if wait:
        deployment.ready_state = await client.wait_for_ready(
            deployment.deployment_id, timeout=poll_timeout, poll_interval=poll_interval
        )
    logger.info(
        "deployment_finished",
        name=name,
        deployment_id=deployment.deployment_id,
        ready_state=deployment.ready_state,
    )
    return deployment
