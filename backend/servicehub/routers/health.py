from __future__ import annotations

from fastapi import APIRouter

from ..settings import get_settings

router = APIRouter()


@router.get("/", tags=["health"])
def health():
    s = get_settings()
    return {
        "message": "ServiceHub API",
        "version": "1.0.0",
        "status": "running",
        "environment": s.normalized_environment,
        "dynamodb": "configured" if s.ddb_table_name else "missing",
        "assetsBucket": "configured" if s.assets_bucket_name else "missing",
        "listingNotifyMode": s.normalized_notify_mode,
    }
