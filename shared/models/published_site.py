"""Published site model."""

from datetime import datetime
from enum import Enum

from sqlalchemy import DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_id, utcnow


class PublishedSiteStatus(str, Enum):
    """Published site status."""

    READY = "ready"
    DELETED = "deleted"  # domain detached, Vercel project and slug kept for reuse


class PublishedSite(Base):
    """Public deployment of a project under `https://<slug>.<publish-domain>`.

    At most one row per project. The row is updated, not recreated, on
    republish so the Vercel project identity stays stable.
    """

    __tablename__ = "published_sites"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), unique=True
    )
    build_output_id: Mapped[str] = mapped_column(String(36), ForeignKey("build_outputs.id"))
    slug: Mapped[str] = mapped_column(String(63), unique=True)

    vercel_project_id: Mapped[str] = mapped_column(String(255))
    vercel_project_name: Mapped[str] = mapped_column(String(255))
    deployment_id: Mapped[str] = mapped_column(String(255))

    url: Mapped[str] = mapped_column(String(512))
    status: Mapped[str] = mapped_column(String(20), default=PublishedSiteStatus.READY.value)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    @property
    def is_live(self) -> bool:
        return self.status != PublishedSiteStatus.DELETED.value
