"""Publish schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class PublishRequest(BaseModel):
    slug: str | None = None


class PublishedSiteRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    url: str
    slug: str
    deployment_id: str
    status: str
    published_at: datetime


class PublishStatus(BaseModel):
    published: bool
    url: str | None = None
    slug: str | None = None
    status: str | None = None
    published_at: datetime | None = None
    is_stale: bool | None = None


class SlugCheck(BaseModel):
    available: bool
    reason: str | None = None


class UnpublishResponse(BaseModel):
    success: bool = True


class DirectDeployRequest(BaseModel):
    """One-off deploy to the caller's own Vercel account."""

    token: str


class DirectDeployResponse(BaseModel):
    url: str
    deployment_id: str
