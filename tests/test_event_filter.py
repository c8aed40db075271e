from __future__ import annotations

import pytest

from utils.event_filter import branch_ref, filter_push_event, is_integration_push
from utils.release_models import PushEvent


def _payload(ref: str = "refs/heads/develop") -> dict:
    return {
        "ref": ref,
        "repository": {"name": "shop", "full_name": "acme/shop", "owner": {"login": "acme"}},
        "commits": [{"id": "abc"}],
    }


def test_branch_ref() -> None:
    assert branch_ref("develop") == "refs/heads/develop"


@pytest.mark.parametrize(
    "ref,expected",
    [
        ("refs/heads/develop", True),
        ("refs/heads/main", False),
        ("refs/heads/develop-2", False),
        ("refs/tags/develop", False),
        ("develop", False),
        (None, False),
        (42, False),
    ],
)
def test_is_integration_push(ref, expected: bool) -> None:
    assert is_integration_push(ref, "develop") is expected


def test_is_integration_push_respects_configured_branch() -> None:
    assert is_integration_push("refs/heads/next", "next") is True
    assert is_integration_push("refs/heads/develop", "next") is False
    assert is_integration_push("refs/heads/develop", "") is False


def test_filter_push_event_accepts_integration_push() -> None:
    event = filter_push_event(_payload(), "develop")
    assert event is not None
    assert event.repository.owner == "acme"
    assert event.repository.name == "shop"
    assert event.repository.full_name == "acme/shop"


def test_filter_push_event_rejects_other_branch() -> None:
    assert filter_push_event(_payload("refs/heads/feature/x"), "develop") is None


@pytest.mark.parametrize(
    "payload",
    [
        None,
        "push",
        [],
        {},
        {"ref": "refs/heads/develop"},
        {"ref": "refs/heads/develop", "repository": {"name": "shop"}},
        {"ref": "refs/heads/develop", "repository": {"name": "shop", "owner": None}},
        {"ref": "refs/heads/develop", "repository": {"name": "", "owner": {"login": "acme"}}},
        {"ref": 7, "repository": {"name": "shop", "owner": {"login": "acme"}}},
    ],
)
def test_filter_push_event_never_raises_on_malformed_payload(payload) -> None:
    assert filter_push_event(payload, "develop") is None


def test_push_event_falls_back_to_owner_name() -> None:
    event = PushEvent.from_payload(
        {"ref": "refs/heads/develop", "repository": {"name": "shop", "owner": {"name": "acme"}}}
    )
    assert event is not None
    assert event.repository.owner == "acme"
