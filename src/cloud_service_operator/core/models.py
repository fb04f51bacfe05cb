"""Data model shared by the reconciliation and deletion engines."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..constants import DEFAULT_POLL_ATTEMPTS, DEFAULT_POLL_DELAY_SECONDS


class LifecycleClass(str, Enum):
    """Coarse classification of a provider lifecycle state."""

    TRANSIENT = "Transient"
    TERMINAL_OK = "TerminalOk"
    TERMINAL_FAILED = "TerminalFailed"


@dataclass(frozen=True)
class RemoteResource:
    """Snapshot of a provider-side resource at one point in time."""

    identifier: str
    lifecycle_state: str
    display_name: str | None = None
    attributes: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class SecretRef:
    """Location of the Secret holding a resource's connection details."""

    name: str
    namespace: str


@dataclass
class OSOKStatus:
    """Persisted status record of one custom resource.

    Only the reconciliation and deletion engines mutate it. ``conditions`` holds
    Kubernetes-style condition dicts in the order they were observed.
    """

    identifier: str = ""
    created_at: str | None = None
    message: str = ""
    conditions: list[dict[str, Any]] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> OSOKStatus:
        """Build a status record from the ``status`` block of a custom resource."""
        data = data or {}
        return cls(
            identifier=data.get("id") or "",
            created_at=data.get("createdAt"),
            message=data.get("message") or "",
            conditions=[dict(cond) for cond in data.get("conditions") or []],
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for a status patch."""
        return {
            "id": self.identifier,
            "createdAt": self.created_at,
            "message": self.message,
            "conditions": [dict(cond) for cond in self.conditions],
        }


@dataclass(frozen=True)
class ReconcileOutcome:
    """Result of one reconcile invocation.

    ``requeue_after`` is a non-error hint, in seconds, for the next invocation.
    """

    succeeded: bool
    requeue_after: float | None = None
    error: Exception | None = None


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded poll policy used after a synchronous create.

    The poll keeps re-reading the resource while its lifecycle class is in
    ``retry_on``, at most ``attempts`` times, ``delay`` seconds apart.
    """

    attempts: int = DEFAULT_POLL_ATTEMPTS
    delay: float = DEFAULT_POLL_DELAY_SECONDS
    retry_on: frozenset[LifecycleClass] = frozenset({LifecycleClass.TRANSIENT})

    def should_retry(self, lifecycle: LifecycleClass) -> bool:
        return lifecycle in self.retry_on

    def next_delay(self, attempt: int) -> float:
        return self.delay


class SpecMismatchError(TypeError):
    """Raised when an engine is handed a spec its adapter does not manage."""
