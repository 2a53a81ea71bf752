from __future__ import annotations

import pytest

from servicehub.errors import FatalInitializationError
from servicehub.registry import SNS_CLIENT
from servicehub.services.file_upload_service import FileUploadService
from servicehub.services.listing_manager import ListingManager
from servicehub.services.notification_publisher import NotificationPublisher
from servicehub.services.storage_gateway import StorageGateway
from servicehub.services.subscription_service import SubscriptionService
from servicehub.services.topic_resolver import TopicResolver
from servicehub.workers.outbox_worker import OutboxWorker


def test_nothing_is_built_until_requested(make_registry):
    reg = make_registry()
    assert not reg.is_constructed(ListingManager)
    assert not reg.is_constructed(TopicResolver)


def test_topic_resolver_is_shared_by_publisher_and_subscriptions(make_registry):
    reg = make_registry()

    publisher = reg.get(NotificationPublisher)
    subscriptions = reg.get(SubscriptionService)

    assert publisher.topic_resolver is subscriptions.topic_resolver
    assert reg.get(TopicResolver) is publisher.topic_resolver


def test_listing_manager_and_worker_share_publisher(make_registry, fake_sns):
    reg = make_registry()

    manager = reg.get(ListingManager)
    worker = reg.get(OutboxWorker)

    assert manager.publisher is reg.get(NotificationPublisher)
    assert worker.publisher is manager.publisher
    assert reg.get(SNS_CLIENT) is fake_sns


def test_upload_service_wraps_the_gateway(make_registry):
    reg = make_registry()
    assert reg.get(FileUploadService).storage is reg.get(StorageGateway)


def test_notify_mode_and_owner_policy_come_from_settings(make_registry):
    reg = make_registry(LISTING_NOTIFY_MODE="inline", STRICT_OWNER_UPDATE="false")
    manager = reg.get(ListingManager)
    assert manager.notify_mode == "inline"
    assert manager.strict_owner_update is False


def test_unknown_notify_mode_falls_back_to_outbox(make_registry):
    reg = make_registry(LISTING_NOTIFY_MODE="carrier-pigeon")
    assert reg.get(ListingManager).notify_mode == "outbox"


@pytest.mark.parametrize("component", [NotificationPublisher, SubscriptionService])
def test_blank_topic_name_fails_at_construction(make_registry, fake_sns, component):
    reg = make_registry(NOTIFICATION_TOPIC_NAME="  ")

    with pytest.raises(FatalInitializationError) as ei:
        reg.get(component)

    assert ei.value.component == component.__name__
    assert fake_sns.create_calls == []
