from __future__ import annotations

import pytest
from fakes import ACCOUNT_ID, REGION, FakeSns, client_error

from servicehub.errors import ExternalServiceError, InvalidInput
from servicehub.services.topic_resolver import TopicResolver, topic_arn_prefix


def _resolver(sns: FakeSns) -> TopicResolver:
    return TopicResolver(sns=sns, region=REGION, account_id=ACCOUNT_ID)


def test_arn_prefix_uses_region_and_account():
    assert topic_arn_prefix(region="ca-central-1", account_id="111") == "arn:aws:sns:ca-central-1:111:"


def test_creates_topic_when_missing():
    sns = FakeSns()
    arn = _resolver(sns).resolve_or_create("ServiceHubAllUsers")

    assert arn == f"arn:aws:sns:{REGION}:{ACCOUNT_ID}:ServiceHubAllUsers"
    assert sns.create_calls == ["ServiceHubAllUsers"]


def test_two_sequential_calls_create_once_and_agree():
    sns = FakeSns()
    resolver = _resolver(sns)

    first = resolver.resolve_or_create("ServiceHubAllUsers")
    second = resolver.resolve_or_create("ServiceHubAllUsers")

    assert first == second
    assert sns.create_calls == ["ServiceHubAllUsers"]
    assert sns.list_calls == 2


def test_finds_existing_topic_on_a_later_page():
    sns = FakeSns(page_size=2)
    sns.topic_arns = [
        sns.arn_for("Other1"),
        sns.arn_for("Other2"),
        sns.arn_for("Other3"),
        sns.arn_for("ServiceHubAllUsers"),
    ]

    arn = _resolver(sns).resolve_or_create("ServiceHubAllUsers")

    assert arn == sns.arn_for("ServiceHubAllUsers")
    assert sns.create_calls == []


def test_same_name_in_another_account_does_not_match():
    sns = FakeSns()
    sns.topic_arns = [f"arn:aws:sns:{REGION}:999999999999:ServiceHubAllUsers"]

    _resolver(sns).resolve_or_create("ServiceHubAllUsers")

    assert sns.create_calls == ["ServiceHubAllUsers"]


def test_list_failure_surfaces_as_external_service_error():
    sns = FakeSns()
    sns.fail_list_with = client_error("AuthorizationError", "ListTopics")

    with pytest.raises(ExternalServiceError) as ei:
        _resolver(sns).resolve_or_create("ServiceHubAllUsers")

    assert ei.value.error_code == "AuthorizationError"
    assert ei.value.operation == "ListTopics"
    assert sns.create_calls == []


@pytest.mark.parametrize("name", ["", "  ", None])
def test_blank_name_is_invalid_input_before_any_sns_call(name):
    sns = FakeSns()

    with pytest.raises(InvalidInput) as ei:
        _resolver(sns).resolve_or_create(name)

    assert ei.value.operation == "resolve_topic"
    assert sns.list_calls == 0
    assert sns.create_calls == []
