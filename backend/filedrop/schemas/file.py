"""File record and response schemas."""
from datetime import datetime
from pydantic import Field
from filedrop.schemas.base import CamelModel, FrozenCamelModel

FILE_ID_PATTERN = r"^[0-9a-f]{32}$"


class FileRecord(FrozenCamelModel):
    """Metadata for one stored upload. The blob on disk is named by `id`."""
    id: str = Field(pattern=FILE_ID_PATTERN)
    name: str
    size: int = Field(ge=0)
    uploaded_at: datetime
    expires_at: datetime


class FilesResponse(CamelModel):
    files: list[FileRecord]


class InfoResponse(CamelModel):
    ip: str
    port: int


class HealthResponse(CamelModel):
    status: str = "ok"
    files: int = 0
