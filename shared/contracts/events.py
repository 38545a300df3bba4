"""Build progress events streamed to clients.

Each event serializes to one Server-Sent Events frame:
    data: {"type": "file_start", "path": "app/page.tsx"}\\n\\n

Clients treat `file_complete` as authoritative and discard any `file_chunk`
text buffered for the same path.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class BuildEvent(BaseModel):
    """Base event for build progress updates."""

    model_config = ConfigDict(populate_by_name=True)

    type: str

    def to_sse(self) -> str:
        """Render as a Server-Sent Events data frame."""
        return f"data: {self.model_dump_json(by_alias=True, exclude_none=True)}\n\n"


class FileStart(BuildEvent):
    type: Literal["file_start"] = "file_start"
    path: str


class FileChunk(BuildEvent):
    type: Literal["file_chunk"] = "file_chunk"
    path: str
    text: str


class FileComplete(BuildEvent):
    type: Literal["file_complete"] = "file_complete"
    path: str
    content: str


class Verify(BuildEvent):
    type: Literal["verify"] = "verify"
    message: str
    iteration: int | None = None


class VerifyFailed(BuildEvent):
    type: Literal["verify_failed"] = "verify_failed"
    errors: str
    iteration: int
    max_iterations: int = Field(alias="maxIterations")


class Fixing(BuildEvent):
    type: Literal["fixing"] = "fixing"
    iteration: int


class Done(BuildEvent):
    type: Literal["done"] = "done"
    build_id: str = Field(alias="buildId")
    files: list[dict[str, str]]
    file_count: int = Field(alias="fileCount")
    verification: str | None = None


class Error(BuildEvent):
    type: Literal["error"] = "error"
    message: str
