"""Projects router.

Projects are owned by the authoring app; this service keeps the minimal
record it needs to derive slugs and prompts.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from shared.models import Project

from ..database import get_async_session
from ..schemas import ProjectCreate, ProjectRead

logger = structlog.get_logger()

router = APIRouter(prefix="/projects", tags=["projects"])


@router.post("/", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    project_in: ProjectCreate,
    db: AsyncSession = Depends(get_async_session),
) -> Project:
    """Create a new project."""
    if project_in.id and await db.get(Project, project_in.id):
        logger.warning("project_creation_failed_duplicate", project_id=project_in.id)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Project with this ID already exists",
        )

    project = Project(name=project_in.name, description=project_in.description)
    if project_in.id:
        project.id = project_in.id
    db.add(project)
    await db.commit()
    await db.refresh(project)

    logger.info("project_created", project_id=project.id, name=project.name)
    return project


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: str,
    db: AsyncSession = Depends(get_async_session),
) -> Project:
    """Get project by ID."""
    project = await db.get(Project, project_id)
    if not project:
        raise HTTPException(status_code=404, detail="Project not found")
    return project


@router.get("/", response_model=list[ProjectRead])
async def list_projects(db: AsyncSession = Depends(get_async_session)) -> list[Project]:
    """List projects."""
    result = await db.execute(select(Project).order_by(Project.created_at))
    return list(result.scalars().all())
