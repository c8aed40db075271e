#!/usr/bin/env python3
"""Push event filter: only pushes to the integration branch go downstream."""

from __future__ import annotations

import logging
from typing import Any, Optional

from utils.release_models import PushEvent


logger = logging.getLogger(__name__)

HEADS_PREFIX = "refs/heads/"


def branch_ref(branch: str) -> str:
    return f"{HEADS_PREFIX}{branch}"


def is_integration_push(ref: Any, integration_branch: str) -> bool:
    """Return True if the pushed ref is the integration branch.

    Never raises; a missing or non-string ref means "do not process".
    """
    if not isinstance(ref, str) or not integration_branch:
        return False
    return ref == branch_ref(integration_branch)


def filter_push_event(payload: Any, integration_branch: str) -> Optional[PushEvent]:
    """Parse a push payload and keep it only if it targets the integration branch.

    Args:
        payload: Decoded push webhook payload
        integration_branch: Configured integration branch name

    Returns:
        The parsed PushEvent, or None if there is nothing to do
    """
    event = PushEvent.from_payload(payload)
    if event is None:
        logger.debug("Ignoring malformed push payload")
        return None
    if not is_integration_push(event.ref, integration_branch):
        logger.debug(f"Ignoring push to {event.ref} on {event.repository.full_name}")
        return None
    return event
