"""Preview schemas."""

from pydantic import BaseModel


class PreviewRead(BaseModel):
    ready: bool
    url: str | None = None
    token: str | None = None
