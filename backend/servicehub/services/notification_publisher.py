from __future__ import annotations

from typing import Any

from ..domain.models import Listing, Provider
from ..observability.logging import get_logger
from .sns_calls import sns_call
from .topic_resolver import TopicResolver

log = get_logger("notification_publisher")

# SNS rejects subjects longer than 100 characters.
MAX_SUBJECT_LEN = 100


def listing_created_subject(listing_name: str) -> str:
    return f"ServiceHub - {listing_name}"[:MAX_SUBJECT_LEN]


def listing_created_message(*, provider_name: str, listing_name: str) -> str:
    return f"New service added by {provider_name}: {listing_name}. Check it out now!"


class NotificationPublisher:
    def __init__(self, *, sns: Any, topic_resolver: TopicResolver, topic_name: str):
        if not str(topic_name or "").strip():
            raise ValueError("topic_name is required")
        self._sns = sns
        self.topic_resolver = topic_resolver
        self._topic_name = topic_name.strip()

    def publish_listing_created(self, listing: Listing, provider: Provider) -> str:
        return self.publish_new_listing(listing_name=listing.name, provider_name=provider.username)

    def publish_new_listing(self, *, listing_name: str, provider_name: str) -> str:
        """Publish to the all-users topic. Returns the SNS MessageId."""
        topic_arn = self.topic_resolver.resolve_or_create(self._topic_name)
        resp = sns_call(
            "Publish",
            lambda: self._sns.publish(
                TopicArn=topic_arn,
                Message=listing_created_message(provider_name=provider_name, listing_name=listing_name),
                Subject=listing_created_subject(listing_name),
            ),
        )
        message_id = str(resp.get("MessageId") or "")
        log.info("listing_notification_published", topic_arn=topic_arn, message_id=message_id)
        return message_id
