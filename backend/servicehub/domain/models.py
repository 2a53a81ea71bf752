from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def new_listing_id() -> str:
    return "svc_" + uuid.uuid4().hex[:20]


@dataclass(frozen=True, slots=True)
class Provider:
    id: str
    username: str
    email: str | None = None


@dataclass(slots=True)
class Listing:
    name: str
    description: str
    per_hour_rate: Decimal
    type: str
    # Set once at creation. Updates never touch it.
    provider_id: str
    id: str = field(default_factory=new_listing_id)
    created_at: str = field(default_factory=now_iso)


@dataclass(frozen=True, slots=True)
class ListingFields:
    """The descriptive fields an update rewrites."""

    name: str
    description: str
    per_hour_rate: Decimal
    type: str
