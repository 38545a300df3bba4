"""API schemas."""

from .build import (
    BuildConfigRead,
    BuildOutputRead,
    BuildRequest,
    FeatureBrief,
    FlowBrief,
    FlowStep,
    GenerationBrief,
    LatestBuildResponse,
    PageBrief,
    PageSection,
    StyleGuide,
)
from .preview import PreviewRead
from .project import ProjectCreate, ProjectRead
from .publish import (
    DirectDeployRequest,
    DirectDeployResponse,
    PublishedSiteRead,
    PublishRequest,
    PublishStatus,
    SlugCheck,
    UnpublishResponse,
)

__all__ = [
    "BuildConfigRead",
    "BuildOutputRead",
    "BuildRequest",
    "DirectDeployRequest",
    "DirectDeployResponse",
    "FeatureBrief",
    "FlowBrief",
    "FlowStep",
    "GenerationBrief",
    "LatestBuildResponse",
    "PageBrief",
    "PageSection",
    "PreviewRead",
    "ProjectCreate",
    "ProjectRead",
    "PublishRequest",
    "PublishStatus",
    "PublishedSiteRead",
    "SlugCheck",
    "StyleGuide",
    "UnpublishResponse",
]
