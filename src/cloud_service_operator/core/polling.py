"""Bounded polling of a remote resource until it leaves a transient state."""

from __future__ import annotations

import logging
import time
from typing import Callable

from .models import LifecycleClass, RemoteResource, RetryPolicy

logger = logging.getLogger(__name__)


def poll_until_settled(
    fetch: Callable[[], RemoteResource],
    classify: Callable[[RemoteResource], LifecycleClass],
    policy: RetryPolicy,
    sleep: Callable[[float], None] = time.sleep,
) -> RemoteResource:
    """Fetch a resource repeatedly until the policy stops asking for retries.

    Blocks the calling thread between attempts. Errors raised by ``fetch``
    propagate unchanged. When the attempt budget runs out the last snapshot is
    returned as is, still in its retry state.

    Args:
        fetch: Reads a fresh snapshot from the provider
        classify: Maps a snapshot to its lifecycle class
        policy: Attempt budget, spacing and retry predicate
        sleep: Sleep function

    Returns:
        The last snapshot read
    """
    attempts = max(policy.attempts, 1)
    resource = fetch()
    for attempt in range(1, attempts):
        lifecycle = classify(resource)
        if not policy.should_retry(lifecycle):
            return resource
        delay = policy.next_delay(attempt)
        logger.debug(
            f"Resource {resource.identifier} is {resource.lifecycle_state}, "
            f"retrying in {delay}s (attempt {attempt}/{attempts})"
        )
        sleep(delay)
        resource = fetch()
    return resource
