from __future__ import annotations

from fakes import ACCOUNT_ID, REGION, FakeSns, InMemoryOutbox, client_error

from servicehub.db.dynamodb.errors import DdbThrottled, DdbTransportError

from servicehub.services.listing_manager import LISTING_CREATED_EVENT
from servicehub.services.notification_publisher import NotificationPublisher
from servicehub.services.topic_resolver import TopicResolver
from servicehub.workers.outbox_worker import OutboxWorker


def _worker(sns: FakeSns, outbox: InMemoryOutbox, **kwargs) -> OutboxWorker:
    resolver = TopicResolver(sns=sns, region=REGION, account_id=ACCOUNT_ID)
    publisher = NotificationPublisher(sns=sns, topic_resolver=resolver, topic_name="ServiceHubAllUsers")
    return OutboxWorker(outbox=outbox, publisher=publisher, **kwargs)


def _enqueue_listing(outbox: InMemoryOutbox, listing_id: str = "svc_1") -> str:
    ev = outbox.enqueue(
        event_type=LISTING_CREATED_EVENT,
        payload={"listingId": listing_id, "name": "Tutoring", "providerId": "7", "providerName": "alice"},
        dedupe_key=f"listing_created_{listing_id}",
    )
    return ev["eventId"]


def test_pending_event_is_published_and_marked_done():
    sns, outbox = FakeSns(), InMemoryOutbox()
    eid = _enqueue_listing(outbox)

    out = _worker(sns, outbox).run_once()

    assert out == {"ok": True, "released": 0, "scanned": 1, "processed": 1, "failed": 0}
    (sent,) = sns.published
    assert sent["Subject"] == "ServiceHub - Tutoring"
    assert sent["Message"] == "New service added by alice: Tutoring. Check it out now!"
    assert outbox.events[eid]["status"] == "done"
    assert outbox.events[eid]["result"]["messageId"] == "msg-1"


def test_publish_failure_goes_back_to_pending_then_fails():
    sns, outbox = FakeSns(), InMemoryOutbox(max_attempts=2)
    sns.fail_publish_with = client_error("InternalError", "Publish")
    eid = _enqueue_listing(outbox)
    worker = _worker(sns, outbox)

    first = worker.run_once()
    assert first["failed"] == 1
    assert outbox.events[eid]["status"] == "pending"
    assert outbox.events[eid]["attempts"] == 1

    worker.run_once()
    assert outbox.events[eid]["status"] == "failed"
    assert "InternalError" in outbox.events[eid]["lastError"]


def test_retry_succeeds_once_sns_recovers():
    sns, outbox = FakeSns(), InMemoryOutbox()
    sns.fail_publish_with = client_error("InternalError", "Publish")
    eid = _enqueue_listing(outbox)
    worker = _worker(sns, outbox)

    worker.run_once()
    sns.fail_publish_with = None
    worker.run_once()

    assert outbox.events[eid]["status"] == "done"
    assert len(sns.published) == 1


def test_unknown_event_type_is_retried_not_published():
    sns, outbox = FakeSns(), InMemoryOutbox(max_attempts=1)
    ev = outbox.enqueue(event_type="mystery", payload={})

    out = _worker(sns, outbox).run_once()

    assert out["failed"] == 1
    assert sns.published == []
    assert outbox.events[ev["eventId"]]["status"] == "failed"
    assert outbox.events[ev["eventId"]]["lastError"] == "unknown_event_type"


def test_done_events_are_not_rescanned():
    sns, outbox = FakeSns(), InMemoryOutbox()
    _enqueue_listing(outbox)
    worker = _worker(sns, outbox)

    worker.run_once()
    second = worker.run_once()

    assert second["scanned"] == 0
    assert len(sns.published) == 1


def test_mark_done_failure_does_not_strand_later_events():
    sns, outbox = FakeSns(), InMemoryOutbox()
    first = _enqueue_listing(outbox, "svc_1")
    second = _enqueue_listing(outbox, "svc_2")
    outbox.mark_done_errors[first] = DdbThrottled(message="DynamoDB UpdateItem failed", operation="UpdateItem")

    out = _worker(sns, outbox).run_once()

    assert (out["processed"], out["failed"]) == (1, 1)
    assert len(sns.published) == 2
    assert outbox.events[second]["status"] == "done"
    # Published but not recorded, so it is retried (at-least-once).
    assert outbox.events[first]["status"] == "pending"
    assert outbox.events[first]["attempts"] == 1


def test_claim_failure_skips_only_that_event():
    sns, outbox = FakeSns(), InMemoryOutbox()
    first = _enqueue_listing(outbox, "svc_1")
    second = _enqueue_listing(outbox, "svc_2")
    outbox.claim_errors[first] = DdbTransportError(message="DynamoDB UpdateItem could not be sent")

    out = _worker(sns, outbox).run_once()

    assert (out["processed"], out["failed"]) == (1, 1)
    assert outbox.events[first]["status"] == "pending"
    assert outbox.events[second]["status"] == "done"


def test_event_left_processing_is_released_on_a_later_run():
    sns, outbox = FakeSns(), InMemoryOutbox()
    eid = _enqueue_listing(outbox)
    outbox.mark_done_errors[eid] = DdbThrottled(message="DynamoDB UpdateItem failed", operation="UpdateItem")
    outbox.mark_retry_errors[eid] = DdbThrottled(message="DynamoDB GetItem failed", operation="GetItem")
    worker = _worker(sns, outbox, stale_claim_seconds=0)

    first = worker.run_once()
    assert first["failed"] == 1
    assert outbox.events[eid]["status"] == "processing"

    second = worker.run_once()
    assert second["released"] == 1
    assert outbox.events[eid]["status"] == "done"
