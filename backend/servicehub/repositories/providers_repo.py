from __future__ import annotations

from typing import Any

from ..db.dynamodb.table import DynamoTable
from ..domain.models import Provider
from .base_repository import ProvidersRepository


def provider_key(provider_id: str) -> dict[str, str]:
    pid = str(provider_id or "").strip()
    if not pid:
        raise ValueError("provider_id is required")
    return {"pk": f"USER#{pid}", "sk": "PROFILE"}


def provider_from_item(item: dict[str, Any]) -> Provider:
    return Provider(
        id=str(item.get("userId") or ""),
        username=str(item.get("username") or item.get("email") or ""),
        email=str(item.get("email") or "") or None,
    )


class DynamoProvidersRepository(ProvidersRepository):
    def __init__(self, table: DynamoTable):
        self._table = table

    def find_provider(self, provider_id: str) -> Provider | None:
        if not str(provider_id or "").strip():
            return None
        item = self._table.get_item(key=provider_key(provider_id))
        return provider_from_item(item) if item else None
