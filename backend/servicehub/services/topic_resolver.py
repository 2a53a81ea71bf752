from __future__ import annotations

from typing import Any

from ..errors import InvalidInput
from ..observability.logging import get_logger
from .sns_calls import sns_call

log = get_logger("topic_resolver")


def topic_arn_prefix(*, region: str, account_id: str | None, partition: str = "aws") -> str:
    return f"arn:{partition}:sns:{region}:{account_id or ''}:"


class TopicResolver:
    """
    Find-or-create an SNS topic by name.

    Idempotent but not atomic: two first-time callers racing can both miss
    the topic and both create it. SNS CreateTopic returns the existing ARN
    for a same-name topic with the same attributes, so in practice the race
    converges; callers must still only assume at least one topic exists.
    """

    def __init__(self, *, sns: Any, region: str, account_id: str | None):
        self._sns = sns
        self._prefix = topic_arn_prefix(region=region, account_id=account_id)

    def expected_arn(self, name: str) -> str:
        return self._prefix + name

    def _find(self, expected: str) -> str | None:
        def _op():
            paginator = self._sns.get_paginator("list_topics")
            for page in paginator.paginate():
                for topic in page.get("Topics") or []:
                    arn = str(topic.get("TopicArn") or "")
                    if arn == expected:
                        return arn
            return None

        return sns_call("ListTopics", _op)

    def resolve_or_create(self, name: str) -> str:
        topic_name = str(name or "").strip()
        if not topic_name:
            raise InvalidInput(message="topic name is required", operation="resolve_topic")

        found = self._find(self.expected_arn(topic_name))
        if found:
            return found

        resp = sns_call("CreateTopic", lambda: self._sns.create_topic(Name=topic_name))
        arn = str(resp.get("TopicArn") or "")
        log.info("topic_created", topic_name=topic_name, topic_arn=arn)
        return arn
