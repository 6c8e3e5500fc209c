"""
Models for upload service.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from conmanager.services.upload._config import PART_ENDPOINT


class UploadInitResult(BaseModel):
    """
    Upload session created by ``fileupload/init``.

    Extra server-assigned fields are kept and available as attributes.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    uuid: str
    filename: str | None = None
    media_id: Any = Field(default=None, alias="mediaId")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


class UploadChunk(BaseModel):
    """One part upload: ``length`` bytes written at ``offset``."""

    uuid: str
    offset: int = 0
    length: int = 0

    @property
    def endpoint(self) -> str:
        return PART_ENDPOINT.format(uuid=self.uuid, offset=self.offset)


class TransferStats(BaseModel):
    """Statistics from an upload."""

    bytes_transferred: int = 0
    parts_count: int = 0
    chunks_count: int = 0
