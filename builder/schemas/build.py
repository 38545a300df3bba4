"""Build request and build output schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from shared.models import Framework, Styling


class FeatureBrief(BaseModel):
    title: str
    description: str = ""


class FlowStep(BaseModel):
    title: str
    description: str = ""


class FlowBrief(BaseModel):
    title: str
    steps: list[FlowStep] = []


class PageSection(BaseModel):
    name: str
    description: str = ""


class PageBrief(BaseModel):
    title: str
    description: str | None = None
    contents: list[PageSection] = []
    design_html: str | None = None


class StyleGuide(BaseModel):
    html: str | None = None
    fonts: dict[str, str] | None = None
    colors: dict[str, str] | None = None


class GenerationBrief(BaseModel):
    """Project specification assembled by the authoring app."""

    features: list[FeatureBrief] = []
    flows: list[FlowBrief] = []
    pages: list[PageBrief] = []
    style_guide: StyleGuide | None = None


class BuildRequest(BaseModel):
    """Schema for starting a build."""

    framework: Framework
    styling: Styling
    include_typescript: bool = True
    brief: GenerationBrief = Field(default_factory=GenerationBrief)


class BuildConfigRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    framework: str
    styling: str
    include_typescript: bool


class BuildOutputRead(BaseModel):
    """Schema for reading a build output."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    project_id: str
    status: str
    files: list[dict[str, str]] | None = None
    error: str | None = None
    verification: str | None = None
    preview_url: str | None = None
    created_at: datetime
    build_config: BuildConfigRead | None = None


class LatestBuildResponse(BaseModel):
    output: BuildOutputRead | None = None
