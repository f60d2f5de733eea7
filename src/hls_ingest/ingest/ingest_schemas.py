"""Response schemas for the upload endpoint."""

from pydantic import BaseModel


class UploadResponse(BaseModel):
    id: str
    hls_url: str
