"""Vercel REST API client.

Covers the subset of the deployment protocol the builder needs:
content-addressed file upload, deployment creation and status polling,
and project domain management.
"""

import asyncio
from dataclasses import asdict, dataclass
import hashlib
from http import HTTPStatus
from typing import Any

import httpx

from shared.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_BASE_URL = "https://api.vercel.com"


class VercelAPIError(Exception):
    """Non-success response from the Vercel API."""

    def __init__(self, status_code: int, message: str):
        super().__init__(message)
        self.status_code = status_code
        self.message = message

    @property
    def is_auth_error(self) -> bool:
        return self.status_code in (HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN)


class VercelDeploymentFailed(Exception):
    """Deployment reached a terminal error state."""

    def __init__(self, deployment_id: str, ready_state: str):
        super().__init__(f"Deployment {deployment_id} finished with state {ready_state}")
        self.deployment_id = deployment_id
        self.ready_state = ready_state


@dataclass(frozen=True)
class FileRef:
    """Reference to an uploaded file inside a deployment."""

    file: str
    sha: str
    size: int


def file_digest(content: bytes) -> str:
    """SHA-1 digest Vercel uses to address uploaded files."""
    return hashlib.sha1(content).hexdigest()  # noqa: S324


class VercelClient:
    """Client for the Vercel API."""

    READY = "READY"
    FAILED_STATES = frozenset({"ERROR", "CANCELED"})

    def __init__(
        self,
        token: str,
        team_id: str | None = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
    ) -> None:
        if not token:
            raise ValueError("Vercel token is required")
        self.token = token
        self.team_id = team_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                headers={"Authorization": f"Bearer {self.token}"},
                timeout=self.timeout,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def _params(self) -> dict[str, str]:
        return {"teamId": self.team_id} if self.team_id else {}

    @staticmethod
    def _error_message(resp: httpx.Response) -> str:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
        return resp.text or f"Vercel API error {resp.status_code}"

    async def _request(
        self,
        method: str,
        path: str,
        tolerated: tuple[int, ...] = (),
        **kwargs: Any,
    ) -> httpx.Response:
        client = await self._get_client()
        resp = await client.request(method, path, params=self._params(), **kwargs)
        if resp.is_success or resp.status_code in tolerated:
            return resp
        message = self._error_message(resp)
        logger.warning(
            "vercel_api_error",
            method=method,
            path=path,
            status_code=resp.status_code,
            error=message,
        )
        raise VercelAPIError(resp.status_code, message)

    async def upload_file(self, content: bytes) -> str:
        """Upload file content, returning its digest.

        A 409 means content with this digest is already stored.
        """
        sha = file_digest(content)
        await self._request(
            "POST",
            "/v2/files",
            tolerated=(HTTPStatus.CONFLICT,),
            content=content,
            headers={
                "Content-Type": "application/octet-stream",
                "x-vercel-digest": sha,
            },
        )
        return sha

    async def upload_files(self, files: list[dict[str, str]]) -> list[FileRef]:
        """Upload a file set, skipping content already uploaded in this call."""
        refs: list[FileRef] = []
        uploaded: set[str] = set()
        for item in files:
            content = item["content"].encode("utf-8")
            sha = file_digest(content)
            if sha not in uploaded:
                await self.upload_file(content)
                uploaded.add(sha)
            refs.append(FileRef(file=item["path"], sha=sha, size=len(content)))
        logger.info("vercel_files_uploaded", files=len(refs), unique=len(uploaded))
        return refs

    async def create_deployment(
        self,
        name: str,
        files: list[FileRef],
        framework: str | None,
        target: str | None = "production",
    ) -> dict[str, Any]:
        """Create a deployment from previously uploaded files.

        Without a target Vercel creates a preview deployment.
        """
        payload: dict[str, Any] = {
            "name": name,
            "files": [asdict(ref) for ref in files],
            "projectSettings": {"framework": framework},
        }
        if target:
            payload["target"] = target
        resp = await self._request("POST", "/v13/deployments", json=payload)
        deployment = resp.json()
        logger.info(
            "vercel_deployment_created",
            name=name,
            deployment_id=deployment.get("id"),
            project_id=deployment.get("projectId"),
        )
        return deployment

    async def get_deployment(self, deployment_id: str) -> dict[str, Any]:
        resp = await self._request("GET", f"/v13/deployments/{deployment_id}")
        return resp.json()

    async def wait_for_ready(
        self, deployment_id: str, timeout: float = 90.0, poll_interval: float = 2.0
    ) -> str:
        """Poll a deployment until READY, a failure state, or timeout.

        Returns the last observed readyState ("READY" or whatever it was when
        the timeout hit). Raises VercelDeploymentFailed on ERROR/CANCELED.
        """
        loop = asyncio.get_running_loop()
        start_time = loop.time()
        state = "UNKNOWN"

        while loop.time() - start_time < timeout:
            await asyncio.sleep(poll_interval)
            try:
                deployment = await self.get_deployment(deployment_id)
            except VercelAPIError as e:
                if e.is_auth_error:
                    raise
                # Transient status errors; keep polling
                continue

            state = deployment.get("readyState", state)
            if state == self.READY:
                return state
            if state in self.FAILED_STATES:
                raise VercelDeploymentFailed(deployment_id, state)

        logger.warning(
            "vercel_deployment_poll_timeout",
            deployment_id=deployment_id,
            last_state=state,
            timeout=timeout,
        )
        return state

    async def add_project_domain(self, project_id: str, domain: str) -> bool:
        """Attach a domain to a project.

        Returns False when the domain was already assigned (409).
        """
        resp = await self._request(
            "POST",
            f"/v10/projects/{project_id}/domains",
            tolerated=(HTTPStatus.CONFLICT,),
            json={"name": domain},
        )
        return resp.status_code != HTTPStatus.CONFLICT

    async def remove_project_domain(self, project_id: str, domain: str) -> bool:
        """Detach a domain. Returns False when it was not attached (404)."""
        resp = await self._request(
            "DELETE",
            f"/v9/projects/{project_id}/domains/{domain}",
            tolerated=(HTTPStatus.NOT_FOUND,),
        )
        return resp.status_code != HTTPStatus.NOT_FOUND
