from __future__ import annotations

from typing import Any

from ..errors import ExternalServiceError
from ..observability.logging import configure_logging, get_logger
from ..repositories.outbox_repo import OutboxRepository
from ..services.listing_manager import LISTING_CREATED_EVENT
from ..services.notification_publisher import NotificationPublisher

log = get_logger("outbox_worker")

# A claim older than this belongs to a worker that never finished the event.
STALE_CLAIM_SECONDS = 15 * 60


class OutboxWorker:
    """
    Drains pending outbox events. Safe to run from cron / a scheduled task;
    concurrent workers are kept apart by the conditional claim.
    """

    def __init__(
        self,
        *,
        outbox: OutboxRepository,
        publisher: NotificationPublisher,
        stale_claim_seconds: int = STALE_CLAIM_SECONDS,
    ):
        self._outbox = outbox
        self.publisher = publisher
        self._stale_claim_seconds = max(0, int(stale_claim_seconds))

    def dispatch_event(self, event: dict[str, Any]) -> dict[str, Any]:
        et = str(event.get("eventType") or "").strip()
        payload_raw = event.get("payload")
        payload: dict[str, Any] = payload_raw if isinstance(payload_raw, dict) else {}

        if et == LISTING_CREATED_EVENT:
            message_id = self.publisher.publish_new_listing(
                listing_name=str(payload.get("name") or ""),
                provider_name=str(payload.get("providerName") or ""),
            )
            return {"ok": True, "messageId": message_id}

        return {"ok": False, "error": "unknown_event_type", "eventType": et}

    def _release_stale(self) -> int:
        try:
            released = self._outbox.release_stale(older_than_seconds=self._stale_claim_seconds)
        except Exception as e:  # noqa: BLE001
            log.warning("outbox_release_stale_failed", error_type=type(e).__name__, error=str(e))
            return 0
        if released:
            log.info("outbox_stale_claims_released", released=released)
        return released

    def _retry_later(self, event_id: str, error: str) -> None:
        try:
            self._outbox.mark_retry(event_id=event_id, error=error)
        except Exception as e:  # noqa: BLE001
            # Left in processing; a later run releases it once the claim goes stale.
            log.error("outbox_mark_retry_failed", event_id=event_id, error_type=type(e).__name__, error=str(e))

    def run_once(self, *, limit: int = 30) -> dict[str, Any]:
        lim = max(1, min(100, int(limit or 30)))
        released = self._release_stale()
        scanned = 0
        processed = 0
        failed = 0

        for it in self._outbox.list_pending(limit=lim):
            scanned += 1
            eid = str(it.get("eventId") or "").strip()
            if not eid:
                continue
            try:
                claimed = self._outbox.claim(event_id=eid)
            except Exception as e:  # noqa: BLE001
                failed += 1
                log.warning("outbox_claim_failed", event_id=eid, error_type=type(e).__name__, error=str(e))
                continue
            if not claimed:
                continue

            try:
                res = self.dispatch_event(claimed)
                if res.get("ok"):
                    self._outbox.mark_done(event_id=eid, result=res)
                    processed += 1
                    continue
                error = str(res.get("error") or "dispatch_failed")
            except ExternalServiceError as e:
                log.warning("outbox_dispatch_failed", event_id=eid, error=str(e), error_code=e.error_code)
                error = str(e) or "dispatch_failed"
            except Exception as e:  # noqa: BLE001
                log.warning("outbox_event_failed", event_id=eid, error_type=type(e).__name__, error=str(e))
                error = str(e) or type(e).__name__
            failed += 1
            self._retry_later(eid, error)

        out = {"ok": True, "released": released, "scanned": scanned, "processed": processed, "failed": failed}
        log.info("outbox_run_once_done", **out)
        return out


def main() -> None:
    from ..registry import get_registry
    from ..settings import get_settings

    settings = get_settings()
    configure_logging(level=settings.log_level, environment=settings.normalized_environment)
    get_registry().get(OutboxWorker).run_once(limit=30)


if __name__ == "__main__":
    main()
