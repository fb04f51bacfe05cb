"""Kubernetes events about custom resources, posted through kopf."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    API_GROUP_VERSION,
    EVENT_REASON_DELETE_FAILED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_RESOURCE_ACTIVE,
    EVENT_REASON_RESOURCE_DELETED,
    EVENT_REASON_RESOURCE_FAILED,
    EVENT_REASON_RESOURCE_PROVISIONING,
    EVENT_REASON_VALIDATE_FAILED,
    EVENT_REASON_VALIDATE_SUCCEEDED,
)

# Kubernetes rejects event messages longer than this
MAX_MESSAGE_LENGTH = 1024


def emit_event(
    kind: str,
    meta: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Post an event about the custom resource of ``kind`` described by ``meta``.

    Args:
        kind: Custom resource kind, used for the event's involved object
        meta: Resource metadata
        reason: Event reason
        message: Event message, truncated to what the API server accepts
        type_: Event type (Normal or Warning)
    """
    if len(message) > MAX_MESSAGE_LENGTH:
        message = message[: MAX_MESSAGE_LENGTH - 3] + "..."
    body = {"apiVersion": API_GROUP_VERSION, "kind": kind, "metadata": meta}
    kopf.event(body, reason=reason, message=message, type=type_)


def emit_reconcile_started(kind: str, meta: dict[str, Any]) -> None:
    emit_event(kind, meta, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_failed(kind: str, meta: dict[str, Any], message: str) -> None:
    emit_event(kind, meta, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_validate_succeeded(kind: str, meta: dict[str, Any]) -> None:
    emit_event(kind, meta, EVENT_REASON_VALIDATE_SUCCEEDED, "Validation succeeded")


def emit_validate_failed(kind: str, meta: dict[str, Any], message: str) -> None:
    emit_event(kind, meta, EVENT_REASON_VALIDATE_FAILED, message, type_="Warning")


def emit_resource_active(kind: str, meta: dict[str, Any], message: str) -> None:
    """The remote resource reached a converged state."""
    emit_event(kind, meta, EVENT_REASON_RESOURCE_ACTIVE, message)


def emit_resource_provisioning(kind: str, meta: dict[str, Any], message: str) -> None:
    """The remote resource is still in a transient state."""
    emit_event(kind, meta, EVENT_REASON_RESOURCE_PROVISIONING, message)


def emit_resource_failed(kind: str, meta: dict[str, Any], message: str) -> None:
    """The remote resource failed, or the provider rejected the request."""
    emit_event(kind, meta, EVENT_REASON_RESOURCE_FAILED, message, type_="Warning")


def emit_resource_deleted(kind: str, meta: dict[str, Any], identifier: str) -> None:
    emit_event(kind, meta, EVENT_REASON_RESOURCE_DELETED, f"{kind} {identifier} deleted")


def emit_delete_failed(kind: str, meta: dict[str, Any], message: str) -> None:
    emit_event(kind, meta, EVENT_REASON_DELETE_FAILED, message, type_="Warning")
