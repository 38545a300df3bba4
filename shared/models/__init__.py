"""Database models package."""

from .base import Base
from .build import (
    BuildConfiguration,
    BuildOutput,
    BuildStatus,
    Framework,
    Styling,
    VerificationState,
)
from .project import Project
from .published_site import PublishedSite, PublishedSiteStatus

__all__ = [
    "Base",
    "BuildConfiguration",
    "BuildOutput",
    "BuildStatus",
    "Framework",
    "Project",
    "PublishedSite",
    "PublishedSiteStatus",
    "Styling",
    "VerificationState",
]
