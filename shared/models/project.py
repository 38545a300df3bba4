"""Project model."""

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, new_id


class Project(Base):
    """Project model - the authoring record a build is generated for.

    Features, flows, pages and designs live with the authoring tool; only the
    name (used for the publish slug) and description are kept here.
    """

    __tablename__ = "projects"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
