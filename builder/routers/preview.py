"""Preview router.

The status endpoint is public: it is called cross-origin by the banner
script inside preview deployments and authenticated by the preview token.
"""

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse, Response

from ..dependencies import get_preview_manager
from ..publishing import PreviewManager
from ..schemas import PreviewRead

router = APIRouter(prefix="/projects/{project_id}/preview", tags=["preview"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


@router.post("", response_model=PreviewRead, response_model_exclude_none=True)
async def create_preview(
    project_id: str,
    manager: PreviewManager = Depends(get_preview_manager),
) -> dict:
    """Create a preview of the latest complete build, or reuse a live one."""
    return await manager.create(project_id)


@router.get("", response_model=PreviewRead, response_model_exclude_none=True)
async def get_preview(
    project_id: str,
    manager: PreviewManager = Depends(get_preview_manager),
) -> dict:
    return await manager.current(project_id)


@router.get("/status")
async def preview_status(
    project_id: str,
    token: str | None = None,
    manager: PreviewManager = Depends(get_preview_manager),
) -> JSONResponse:
    if not token:
        return JSONResponse(
            {"error": "Missing token"},
            status_code=status.HTTP_401_UNAUTHORIZED,
            headers=CORS_HEADERS,
        )
    state = await manager.status_for_token(project_id, token)
    if state is None:
        return JSONResponse(
            {"error": "Invalid token"},
            status_code=status.HTTP_403_FORBIDDEN,
            headers=CORS_HEADERS,
        )
    return JSONResponse(state, headers=CORS_HEADERS)


@router.options("/status")
async def preview_status_options(project_id: str) -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers=CORS_HEADERS)
