from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile

from ..registry import ComponentRegistry
from ..services.file_upload_service import FileUploadService
from .deps import current_user_id, get_registry_dep

router = APIRouter(tags=["uploads"])


@router.post("")
def upload_file(
    file: UploadFile = File(...),
    user_id: str = Depends(current_user_id),
    registry: ComponentRegistry = Depends(get_registry_dep),
):
    svc = registry.get(FileUploadService)
    return svc.save_file(user_id, file.filename, file.file, content_type=file.content_type).to_dict()
