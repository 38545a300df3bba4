"""Build configuration and build output models."""

from enum import Enum

from sqlalchemy import JSON, Boolean, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base, new_id


class Framework(str, Enum):
    """Target framework of a generated project."""

    NEXTJS = "nextjs"
    VITE_REACT = "vite_react"
    HTML = "html"  # static, no build step


class Styling(str, Enum):
    """Styling approach requested for a generated project."""

    TAILWIND = "tailwind"
    CSS = "css"
    SCSS = "scss"


class BuildStatus(str, Enum):
    """Build output lifecycle status.

    Transitions only GENERATING -> COMPLETE or GENERATING -> FAILED.
    """

    GENERATING = "generating"
    COMPLETE = "complete"
    FAILED = "failed"


class VerificationState(str, Enum):
    """Outcome of the verify/repair stage for a complete build."""

    PASSED = "passed"
    SKIPPED = "skipped"  # static project, deadline reached or sandbox unavailable
    UNRESOLVED = "unresolved"  # delivered with build errors still present


class BuildConfiguration(Base):
    """One per project, upserted on every build request."""

    __tablename__ = "build_configs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), unique=True
    )
    framework: Mapped[str] = mapped_column(String(20), default=Framework.NEXTJS.value)
    styling: Mapped[str] = mapped_column(String(20), default=Styling.TAILWIND.value)
    include_typescript: Mapped[bool] = mapped_column(Boolean, default=True)


class BuildOutput(Base):
    """Result of a single build action.

    `files` is an ordered list of {"path", "content"} dicts and is always
    replaced as a whole, never appended to in place.
    """

    __tablename__ = "build_outputs"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    project_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("projects.id", ondelete="CASCADE"), index=True
    )
    build_config_id: Mapped[str] = mapped_column(String(36), ForeignKey("build_configs.id"))
    status: Mapped[str] = mapped_column(
        String(20), default=BuildStatus.GENERATING.value, index=True
    )
    files: Mapped[list | None] = mapped_column(JSON, nullable=True)
    error: Mapped[str | None] = mapped_column(Text, nullable=True)
    verification: Mapped[str | None] = mapped_column(String(20), nullable=True)

    # Token-gated preview deployment of this build
    preview_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    preview_token: Mapped[str | None] = mapped_column(String(128), nullable=True)
    preview_deployment_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    preview_vercel_project_id: Mapped[str | None] = mapped_column(String(255), nullable=True)

    build_config: Mapped[BuildConfiguration] = relationship(lazy="selectin")
