from __future__ import annotations

from typing import Any

from ..domain.responses import ResponseBody
from ..errors import InvalidInput
from ..observability.logging import get_logger
from .sns_calls import sns_call
from .topic_resolver import TopicResolver

log = get_logger("subscription_service")


class SubscriptionService:
    """Signs users up for new-listing emails on the all-users topic."""

    def __init__(self, *, sns: Any, topic_resolver: TopicResolver, topic_name: str):
        if not str(topic_name or "").strip():
            raise ValueError("topic_name is required")
        self._sns = sns
        self.topic_resolver = topic_resolver
        self._topic_name = topic_name.strip()

    def subscribe_email(self, email: str) -> ResponseBody[str]:
        addr = str(email or "").strip()
        if "@" not in addr:
            raise InvalidInput(message="A valid email address is required", operation="subscribe")

        topic_arn = self.topic_resolver.resolve_or_create(self._topic_name)
        resp = sns_call(
            "Subscribe",
            lambda: self._sns.subscribe(TopicArn=topic_arn, Protocol="email", Endpoint=addr),
        )
        # Pending until the user confirms from their inbox.
        arn = str(resp.get("SubscriptionArn") or "pending confirmation")
        log.info("email_subscribed", topic_arn=topic_arn, email=addr)
        return ResponseBody(data=arn, message="Subscription requested, confirmation email sent")
