from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from typing import Any

from boto3.dynamodb.conditions import Key

from ..db.dynamodb.errors import DdbConflict
from ..db.dynamodb.table import DynamoTable
from ..domain.models import now_iso

PENDING_PK = "OUTBOX#PENDING"
PROCESSING_PK = "OUTBOX#PROCESSING"


def outbox_key(event_id: str) -> dict[str, str]:
    eid = str(event_id or "").strip()
    if not eid:
        raise ValueError("event_id is required")
    return {"pk": f"OUTBOX#{eid}", "sk": "PROFILE"}


def _public(item: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in item.items() if k not in ("pk", "sk")}


def _iso_at(ts: float) -> str:
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat().replace("+00:00", "Z")


def backoff_seconds(attempts: int) -> int:
    # Exponential, capped at 5 minutes.
    return min(300, int(2 ** min(10, max(1, attempts))))


class OutboxRepository:
    """
    Durable queue of side effects (SNS publishes) that must not block or
    roll back the write that produced them.
    """

    def __init__(self, table: DynamoTable, *, max_attempts: int = 8):
        self._table = table
        self._max_attempts = max(1, int(max_attempts))

    def enqueue(self, *, event_type: str, payload: dict[str, Any], dedupe_key: str | None = None) -> dict[str, Any]:
        """
        Best-effort dedupe: when dedupe_key is given it becomes the event id,
        so a retried enqueue collapses onto the existing event.
        """
        et = str(event_type or "").strip()
        if not et:
            raise ValueError("event_type is required")
        eid = str(dedupe_key or "").strip() or ("evt_" + uuid.uuid4().hex[:18])

        now = now_iso()
        item: dict[str, Any] = {
            **outbox_key(eid),
            "entityType": "OutboxEvent",
            "eventId": eid,
            "eventType": et,
            "status": "pending",
            "attempts": 0,
            "maxAttempts": self._max_attempts,
            "nextAttemptAt": now,
            "createdAt": now,
            "updatedAt": now,
            "payload": payload if isinstance(payload, dict) else {},
            "gsi1pk": PENDING_PK,
            "gsi1sk": f"{now}#{eid}",
        }
        try:
            self._table.put_item(item=item, condition_expression="attribute_not_exists(pk)")
        except DdbConflict:
            existing = self._table.get_item(key=outbox_key(eid)) or {}
            return _public(existing)
        return _public(item)

    def list_pending(self, *, limit: int = 50) -> list[dict[str, Any]]:
        """Pending events whose next attempt is due, oldest first."""
        now = now_iso()
        return self._table.query_all(
            index_name="GSI1",
            # "~" sorts after every "#<event id>" suffix written at `now`.
            key_condition_expression=Key("gsi1pk").eq(PENDING_PK) & Key("gsi1sk").lte(f"{now}~"),
            scan_index_forward=True,
            limit=max(1, min(200, int(limit or 50))),
        )

    def claim(self, *, event_id: str) -> dict[str, Any] | None:
        """
        Atomically move an event from pending to processing.

        Returns None when another worker got there first.
        """
        now = now_iso()
        try:
            return self._table.update_item(
                key=outbox_key(event_id),
                update_expression="SET #s = :s, lockedAt = :l, updatedAt = :u, gsi1pk = :gpk, gsi1sk = :gsk",
                expression_attribute_names={"#s": "status"},
                expression_attribute_values={
                    ":s": "processing",
                    ":l": now,
                    ":u": now,
                    ":gpk": PROCESSING_PK,
                    ":gsk": f"{now}#{event_id}",
                    ":pending": "pending",
                },
                condition_expression="#s = :pending",
            )
        except DdbConflict:
            return None

    def release_stale(self, *, older_than_seconds: int = 900, limit: int = 50) -> int:
        """
        Put events back to pending whose claim is older than
        ``older_than_seconds``; their worker died or lost its connection
        before it could mark them. Returns how many were released.
        """
        cutoff = _iso_at(time.time() - max(0, int(older_than_seconds)))
        stale = self._table.query_all(
            index_name="GSI1",
            key_condition_expression=Key("gsi1pk").eq(PROCESSING_PK) & Key("gsi1sk").lte(f"{cutoff}~"),
            scan_index_forward=True,
            limit=max(1, min(200, int(limit or 50))),
        )
        released = 0
        for it in stale:
            eid = str(it.get("eventId") or "").strip()
            if not eid:
                continue
            now = now_iso()
            try:
                self._table.update_item(
                    key=outbox_key(eid),
                    update_expression=(
                        "SET #s = :s, lastError = :e, updatedAt = :u, gsi1pk = :gpk, gsi1sk = :gsk REMOVE lockedAt"
                    ),
                    expression_attribute_names={"#s": "status"},
                    expression_attribute_values={
                        ":s": "pending",
                        ":e": "claim_expired",
                        ":u": now,
                        ":gpk": PENDING_PK,
                        ":gsk": f"{now}#{eid}",
                        ":processing": "processing",
                    },
                    condition_expression="#s = :processing",
                )
            except DdbConflict:
                # Finished (or released) by someone else in the meantime.
                continue
            released += 1
        return released

    def mark_done(self, *, event_id: str, result: dict[str, Any] | None = None) -> dict[str, Any] | None:
        return self._table.update_item(
            key=outbox_key(event_id),
            update_expression="SET #s = :s, updatedAt = :u, #r = :r REMOVE gsi1pk, gsi1sk",
            expression_attribute_names={"#s": "status", "#r": "result"},
            expression_attribute_values={":s": "done", ":u": now_iso(), ":r": result or {}},
        )

    def mark_retry(self, *, event_id: str, error: str) -> dict[str, Any] | None:
        """
        Put a processing event back to pending with backoff, or fail it once
        it has used up its attempts.
        """
        raw = self._table.get_item(key=outbox_key(event_id)) or {}
        attempts = int(raw.get("attempts") or 0) + 1
        max_attempts = int(raw.get("maxAttempts") or self._max_attempts)
        now = now_iso()
        err = str(error or "")[:800]

        if attempts >= max_attempts:
            return self._table.update_item(
                key=outbox_key(event_id),
                update_expression="SET #s = :s, attempts = :a, lastError = :e, updatedAt = :u REMOVE gsi1pk, gsi1sk",
                expression_attribute_names={"#s": "status"},
                expression_attribute_values={":s": "failed", ":a": attempts, ":e": err, ":u": now},
            )

        next_at = _iso_at(time.time() + backoff_seconds(attempts))
        return self._table.update_item(
            key=outbox_key(event_id),
            update_expression=(
                "SET #s = :s, attempts = :a, lastError = :e, nextAttemptAt = :n, updatedAt = :u, "
                "gsi1pk = :gpk, gsi1sk = :gsk"
            ),
            expression_attribute_names={"#s": "status"},
            expression_attribute_values={
                ":s": "pending",
                ":a": attempts,
                ":e": err,
                ":n": next_at,
                ":u": now,
                ":gpk": PENDING_PK,
                ":gsk": f"{next_at}#{event_id}",
            },
        )
