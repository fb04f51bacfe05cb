"""Resource adapter interface shared by every resource kind."""

from __future__ import annotations

import logging
from typing import Any, Protocol

from ..core.models import LifecycleClass, RemoteResource, RetryPolicy

logger = logging.getLogger(__name__)


class ResourceAdapter(Protocol):
    """Protocol defining the operations the engines need for one resource kind."""

    kind: str
    spec_type: type
    post_create_poll: RetryPolicy | None

    def bound_identifier(self, spec: Any) -> str | None:
        """Provider identifier the spec is explicitly bound to, if any."""
        ...

    def display_name(self, spec: Any) -> str | None:
        """Name used to discover the resource when no identifier is bound."""
        ...

    def lookup_identifier_by_name(self, spec: Any) -> str | None:
        """Identifier of the first transient or converged resource with the spec's name."""
        ...

    def get(self, identifier: str) -> RemoteResource:
        """Read a fresh snapshot of the resource."""
        ...

    def create(self, spec: Any) -> RemoteResource | None:
        """Create the resource.

        Returns None when the provider accepted the request but the new
        resource cannot be read yet.
        """
        ...

    def update(self, current: RemoteResource, spec: Any) -> bool:
        """Converge mutable fields. Returns whether a change was sent; a no-op returns False."""
        ...

    def delete(self, identifier: str) -> None:
        """Delete the resource. Raises NotFoundError when it is already gone."""
        ...

    def classify_lifecycle(self, resource: RemoteResource) -> LifecycleClass:
        """Map the resource's lifecycle state to a lifecycle class."""
        ...

    def connection_details(self, resource: RemoteResource) -> dict[str, str]:
        """Connection details to publish in a Secret, empty when none."""
        ...


class CredentialClient(Protocol):
    """Protocol for the store that holds connection Secrets."""

    def create_secret(self, name: str, namespace: str, data: dict[str, str]) -> bool:
        """Create the Secret. Returns False if it already existed."""
        ...

    def delete_secret(self, name: str, namespace: str) -> bool:
        """Delete the Secret. Returns False if it did not exist."""
        ...


class BaseAdapter:
    """Common adapter behavior driven by per-kind lifecycle state tables."""

    kind: str = ""
    spec_type: type = object
    post_create_poll: RetryPolicy | None = None

    transient_states: frozenset[str] = frozenset()
    ok_states: frozenset[str] = frozenset()
    failed_states: frozenset[str] = frozenset()

    def bound_identifier(self, spec: Any) -> str | None:
        identifier = getattr(spec, "id", None)
        if identifier is None or not str(identifier).strip():
            return None
        return str(identifier).strip()

    def display_name(self, spec: Any) -> str | None:
        return getattr(spec, "display_name", None)

    def list_by_name(self, spec: Any) -> list[RemoteResource]:
        """List provider resources matching the spec's display name."""
        raise NotImplementedError

    def lookup_identifier_by_name(self, spec: Any) -> str | None:
        """Find a live resource carrying the spec's display name.

        Resources in a terminal failed state are skipped so that a failed
        resource with the same name never blocks recreation. When several
        match, the first one returned by the provider wins.
        """
        name = self.display_name(spec)
        if not name:
            return None

        for resource in self.list_by_name(spec):
            lifecycle = self.classify_lifecycle(resource)
            if lifecycle is LifecycleClass.TERMINAL_FAILED:
                logger.debug(f"Skipping {self.kind} {resource.identifier} in state {resource.lifecycle_state}")
                continue
            logger.debug(f"{self.kind} {name} exists with identifier {resource.identifier}")
            return resource.identifier

        logger.debug(f"{self.kind} {name} does not exist")
        return None

    def classify_lifecycle(self, resource: RemoteResource) -> LifecycleClass:
        state = resource.lifecycle_state
        if state in self.ok_states:
            return LifecycleClass.TERMINAL_OK
        if state in self.failed_states:
            return LifecycleClass.TERMINAL_FAILED
        if state not in self.transient_states:
            logger.warning(f"Unknown {self.kind} lifecycle state {state!r}, treating it as transient")
        return LifecycleClass.TRANSIENT

    def connection_details(self, resource: RemoteResource) -> dict[str, str]:
        return {}
