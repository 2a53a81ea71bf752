from __future__ import annotations

from decimal import Decimal
from typing import Any

from boto3.dynamodb.conditions import Key

from ..db.dynamodb.errors import DdbConflict
from ..db.dynamodb.table import DynamoTable
from ..domain.models import Listing, ListingFields, now_iso
from ..observability.logging import get_logger
from .base_repository import ListingsRepository

log = get_logger("listings_repo")


def listing_key(listing_id: str) -> dict[str, str]:
    lid = str(listing_id or "").strip()
    if not lid:
        raise ValueError("listing_id is required")
    return {"pk": f"SERVICE#{lid}", "sk": "PROFILE"}


def provider_index_pk(provider_id: str) -> str:
    return f"PROVIDER#{provider_id}"


def listing_to_item(listing: Listing) -> dict[str, Any]:
    return {
        **listing_key(listing.id),
        "entityType": "Service",
        "serviceId": listing.id,
        "name": listing.name,
        "description": listing.description,
        "perHourRate": Decimal(str(listing.per_hour_rate)),
        "type": listing.type,
        "providerId": listing.provider_id,
        "createdAt": listing.created_at,
        "updatedAt": listing.created_at,
        # GSI1: a provider's listings in insertion order
        "gsi1pk": provider_index_pk(listing.provider_id),
        "gsi1sk": f"{listing.created_at}#{listing.id}",
    }


def listing_from_item(item: dict[str, Any]) -> Listing:
    return Listing(
        id=str(item.get("serviceId") or ""),
        name=str(item.get("name") or ""),
        description=str(item.get("description") or ""),
        per_hour_rate=Decimal(str(item.get("perHourRate") or 0)),
        type=str(item.get("type") or ""),
        provider_id=str(item.get("providerId") or ""),
        created_at=str(item.get("createdAt") or ""),
    )


class DynamoListingsRepository(ListingsRepository):
    def __init__(self, table: DynamoTable):
        self._table = table

    def save(self, listing: Listing) -> Listing:
        self._table.put_item(item=listing_to_item(listing), condition_expression="attribute_not_exists(pk)")
        return listing

    def find_by_id(self, listing_id: str) -> Listing | None:
        if not str(listing_id or "").strip():
            return None
        item = self._table.get_item(key=listing_key(listing_id))
        return listing_from_item(item) if item else None

    def find_by_provider(self, provider_id: str) -> list[Listing]:
        items = self._table.query_all(
            index_name="GSI1",
            key_condition_expression=Key("gsi1pk").eq(provider_index_pk(provider_id)),
            scan_index_forward=True,
        )
        return [listing_from_item(it) for it in items]

    def delete(self, listing_id: str) -> None:
        self._table.delete_item(key=listing_key(listing_id))

    def conditional_update(self, listing_id: str, owner_id: str, fields: ListingFields) -> bool:
        try:
            self._table.update_item(
                key=listing_key(listing_id),
                update_expression="SET #n = :n, description = :d, perHourRate = :r, #t = :t, updatedAt = :u",
                expression_attribute_names={"#n": "name", "#t": "type"},
                expression_attribute_values={
                    ":n": fields.name,
                    ":d": fields.description,
                    ":r": Decimal(str(fields.per_hour_rate)),
                    ":t": fields.type,
                    ":u": now_iso(),
                    ":owner": str(owner_id),
                },
                condition_expression="attribute_exists(pk) AND providerId = :owner",
            )
        except DdbConflict:
            log.info("listing_update_no_match", listing_id=listing_id, owner_id=str(owner_id))
            return False
        return True
