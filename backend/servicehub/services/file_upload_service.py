from __future__ import annotations

from typing import IO

from ..domain.responses import ResponseBody
from ..domain.schemas import FileUploadResponse
from .storage_gateway import StorageGateway


class FileUploadService:
    def __init__(self, *, storage: StorageGateway):
        self.storage = storage

    def save_file(
        self,
        user_id: str,
        file_name: str | None,
        content: bytes | IO[bytes],
        *,
        content_type: str | None = None,
    ) -> ResponseBody[FileUploadResponse]:
        url = self.storage.upload(str(user_id), file_name, content, content_type=content_type)
        return ResponseBody(data=FileUploadResponse(url=url), message="File uploaded successfully")
