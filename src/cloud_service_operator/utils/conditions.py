"""Utilities for managing the status condition history."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from ..constants import (
    COND_ACTIVE,
    COND_FAILED,
    COND_PROVISIONING,
    COND_UPDATING,
    REASON_ACTIVE,
    REASON_PROVISIONING,
    REASON_UPDATE_REQUESTED,
)


def latest_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
) -> dict[str, Any] | None:
    """Return the most recent condition of the given type, if any."""
    for cond in reversed(conditions):
        if cond.get("type") == condition_type:
            return cond
    return None


def merge_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
) -> list[dict[str, Any]]:
    """Merge an observed condition into the ordered condition history.

    Existing entries are never modified. A new entry is appended when no
    condition of this type exists yet, when its status or message changed, or
    when another condition type has been recorded since. Otherwise the list is
    returned as is, so repeated reconciles of a converged resource neither grow
    the history nor touch timestamps.

    Args:
        conditions: Existing condition history
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message

    Returns:
        The condition history including the merged condition
    """
    existing = latest_condition(conditions, condition_type)
    if (
        existing is not None
        and existing is conditions[-1]
        and existing.get("status") == status
        and existing.get("message") == message
    ):
        return conditions

    conditions.append(
        {
            "type": condition_type,
            "status": status,
            "reason": reason,
            "message": message,
            "lastTransitionTime": datetime.now(timezone.utc).isoformat(),
        }
    )
    return conditions


def set_provisioning_condition(
    conditions: list[dict[str, Any]],
    message: str,
    reason: str = REASON_PROVISIONING,
) -> list[dict[str, Any]]:
    """Record that convergence is still in progress."""
    return merge_condition(conditions, COND_PROVISIONING, "True", reason, message)


def set_active_condition(
    conditions: list[dict[str, Any]],
    message: str,
    reason: str = REASON_ACTIVE,
) -> list[dict[str, Any]]:
    """Record that the resource has converged."""
    return merge_condition(conditions, COND_ACTIVE, "True", reason, message)


def set_updating_condition(
    conditions: list[dict[str, Any]],
    message: str,
    reason: str = REASON_UPDATE_REQUESTED,
) -> list[dict[str, Any]]:
    """Record that a change was sent to an existing resource."""
    return merge_condition(conditions, COND_UPDATING, "True", reason, message)


def set_failed_condition(
    conditions: list[dict[str, Any]],
    message: str,
    reason: str,
) -> list[dict[str, Any]]:
    """Record a failure."""
    return merge_condition(conditions, COND_FAILED, "False", reason, message)


def current_condition_type(conditions: list[dict[str, Any]]) -> str | None:
    """Type of the most recently recorded condition."""
    if not conditions:
        return None
    return conditions[-1].get("type")
