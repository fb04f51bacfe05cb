"""Reconciliation state machine shared by every resource kind."""

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable

from ..constants import (
    NOT_VISIBLE_REQUEUE_SECONDS,
    REASON_ACTIVE,
    REASON_AWAITING_VISIBILITY,
    REASON_BAD_REQUEST,
    REASON_BOUND,
    REASON_CREATE_FAILED,
    REASON_TERMINAL_STATE,
)
from ..services.base import CredentialClient, ResourceAdapter
from ..services.errors import BadRequestError, NotFoundError
from ..utils.conditions import (
    set_active_condition,
    set_failed_condition,
    set_provisioning_condition,
    set_updating_condition,
)
from ..utils.errors import sanitize_exception
from .models import (
    LifecycleClass,
    OSOKStatus,
    ReconcileOutcome,
    RemoteResource,
    SecretRef,
    SpecMismatchError,
)
from .polling import poll_until_settled

logger = logging.getLogger(__name__)


class ReconciliationEngine:
    """Drives one resource kind toward its declared spec.

    Each call to :meth:`reconcile` reads ground truth from the adapter, mutates
    the given status record in place and returns an outcome for the caller's
    scheduler. Nothing is cached between calls.
    """

    def __init__(
        self,
        adapter: ResourceAdapter,
        credentials: CredentialClient | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.adapter = adapter
        self.credentials = credentials
        self.sleep = sleep

    @property
    def kind(self) -> str:
        return self.adapter.kind

    def reconcile(
        self,
        spec: Any,
        status: OSOKStatus,
        secret_ref: SecretRef | None = None,
    ) -> ReconcileOutcome:
        """Run one reconciliation step.

        Args:
            spec: Typed spec of the adapter's kind
            status: Status record, mutated in place
            secret_ref: Where to publish connection details, if the kind has any

        Returns:
            The reconcile outcome

        Raises:
            SpecMismatchError: If the spec is not of the adapter's spec type
        """
        if not isinstance(spec, self.adapter.spec_type):
            raise SpecMismatchError(
                f"{self.kind} adapter cannot reconcile a {type(spec).__name__}"
            )

        identifier = self.adapter.bound_identifier(spec)
        if identifier:
            return self._reconcile_bound(spec, status, identifier, secret_ref)
        return self._reconcile_unbound(spec, status, secret_ref)

    def _reconcile_bound(
        self,
        spec: Any,
        status: OSOKStatus,
        identifier: str,
        secret_ref: SecretRef | None,
    ) -> ReconcileOutcome:
        try:
            resource = self.adapter.get(identifier)
        except Exception as e:
            logger.error(f"Error while getting existing {self.kind} {identifier}: {sanitize_exception(e)}")
            return ReconcileOutcome(succeeded=False, error=e)

        try:
            updated = self.adapter.update(resource, spec)
        except Exception as e:
            logger.error(f"Error while updating {self.kind} {identifier}: {sanitize_exception(e)}")
            return ReconcileOutcome(succeeded=False, error=e)

        if updated:
            message = f"{self.kind} {resource.display_name or identifier} update requested"
            logger.info(message)
            set_updating_condition(status.conditions, message)

        return self._converged(status, resource, REASON_BOUND, secret_ref)

    def _reconcile_unbound(
        self,
        spec: Any,
        status: OSOKStatus,
        secret_ref: SecretRef | None,
    ) -> ReconcileOutcome:
        try:
            identifier = self.adapter.lookup_identifier_by_name(spec)
        except Exception as e:
            logger.error(f"Error while looking up {self.kind} by name: {sanitize_exception(e)}")
            return ReconcileOutcome(succeeded=False, error=e)

        if identifier is None and status.identifier:
            # Name listings can lag behind a create recorded by an earlier pass
            recorded = self._read_recorded(status.identifier)
            if isinstance(recorded, ReconcileOutcome):
                return recorded
            if recorded is not None:
                return self._apply_snapshot(status, recorded, secret_ref)

        if identifier is None:
            try:
                created = self.adapter.create(spec)
            except Exception as e:
                return self._create_failed(status, e)

            if created is not None:
                status.identifier = created.identifier
            resource = self._read_after_create(spec, created)
            if isinstance(resource, ReconcileOutcome):
                return resource
            if resource is None:
                return self._not_yet_visible(spec, status)
        else:
            logger.info(f"Getting existing {self.kind} {identifier}")
            try:
                resource = self.adapter.get(identifier)
            except Exception as e:
                logger.error(f"Error while getting {self.kind} {identifier}: {sanitize_exception(e)}")
                return ReconcileOutcome(succeeded=False, error=e)

        return self._apply_snapshot(status, resource, secret_ref)

    def _read_recorded(self, identifier: str) -> RemoteResource | ReconcileOutcome | None:
        """Re-read the resource this record already points at.

        Returns None when it is gone or failed, so a fresh create may follow.
        """
        logger.info(f"Getting recorded {self.kind} {identifier}")
        try:
            resource = self.adapter.get(identifier)
        except NotFoundError:
            logger.info(f"Recorded {self.kind} {identifier} no longer exists")
            return None
        except Exception as e:
            logger.error(f"Error while getting recorded {self.kind} {identifier}: {sanitize_exception(e)}")
            return ReconcileOutcome(succeeded=False, error=e)

        if self.adapter.classify_lifecycle(resource) is LifecycleClass.TERMINAL_FAILED:
            return None
        return resource

    def _read_after_create(
        self,
        spec: Any,
        created: RemoteResource | None,
    ) -> RemoteResource | ReconcileOutcome | None:
        """Obtain a snapshot of a freshly created resource.

        Returns None while the resource is not visible to the provider's read
        path yet, or an outcome when reading failed.
        """
        try:
            if created is None:
                identifier = self.adapter.lookup_identifier_by_name(spec)
                if identifier is None:
                    return None
                return self.adapter.get(identifier)

            policy = self.adapter.post_create_poll
            if policy is None:
                return created

            logger.info(f"Waiting for {self.kind} {created.identifier} to leave {created.lifecycle_state}")
            return poll_until_settled(
                lambda: self.adapter.get(created.identifier),
                self.adapter.classify_lifecycle,
                policy,
                sleep=self.sleep,
            )
        except NotFoundError:
            return None
        except Exception as e:
            logger.error(f"Error while getting {self.kind} after create: {sanitize_exception(e)}")
            return ReconcileOutcome(succeeded=False, error=e)

    def _apply_snapshot(
        self,
        status: OSOKStatus,
        resource: RemoteResource,
        secret_ref: SecretRef | None,
    ) -> ReconcileOutcome:
        lifecycle = self.adapter.classify_lifecycle(resource)
        status.identifier = resource.identifier
        message = self._describe(resource)

        if lifecycle is LifecycleClass.TRANSIENT:
            logger.info(message)
            set_provisioning_condition(status.conditions, message)
            return ReconcileOutcome(succeeded=False)

        if lifecycle is LifecycleClass.TERMINAL_FAILED:
            logger.info(message)
            set_failed_condition(status.conditions, message, REASON_TERMINAL_STATE)
            return ReconcileOutcome(succeeded=False)

        return self._converged(status, resource, None, secret_ref)

    def _converged(
        self,
        status: OSOKStatus,
        resource: RemoteResource,
        reason: str | None,
        secret_ref: SecretRef | None,
    ) -> ReconcileOutcome:
        status.identifier = resource.identifier
        status.message = ""
        if status.created_at is None:
            status.created_at = datetime.now(timezone.utc).isoformat()

        message = self._describe(resource)
        set_active_condition(status.conditions, message, reason or REASON_ACTIVE)
        logger.info(message)

        details = self.adapter.connection_details(resource)
        if details and self.credentials is not None and secret_ref is not None:
            try:
                created = self.credentials.create_secret(secret_ref.name, secret_ref.namespace, details)
            except Exception as e:
                logger.error(f"Failed to write connection secret {secret_ref.namespace}/{secret_ref.name}: {sanitize_exception(e)}")
                return ReconcileOutcome(succeeded=False, error=e)
            if created:
                logger.info(f"Created connection secret {secret_ref.namespace}/{secret_ref.name}")

        return ReconcileOutcome(succeeded=True)

    def _create_failed(self, status: OSOKStatus, error: Exception) -> ReconcileOutcome:
        message = sanitize_exception(error)
        if isinstance(error, BadRequestError):
            set_failed_condition(status.conditions, message, REASON_BAD_REQUEST)
            status.message = error.code
            logger.error(f"Create {self.kind} bad request: {message}")
        else:
            set_failed_condition(status.conditions, message, REASON_CREATE_FAILED)
            logger.error(f"Create {self.kind} failed: {message}")
        return ReconcileOutcome(succeeded=False, error=error)

    def _not_yet_visible(self, spec: Any, status: OSOKStatus) -> ReconcileOutcome:
        name = self.adapter.display_name(spec) or ""
        message = f"{self.kind} {name} creation accepted, waiting for it to become visible"
        logger.info(message)
        set_provisioning_condition(status.conditions, message, REASON_AWAITING_VISIBILITY)
        return ReconcileOutcome(succeeded=False, requeue_after=NOT_VISIBLE_REQUEUE_SECONDS)

    def _describe(self, resource: RemoteResource) -> str:
        name = resource.display_name or resource.identifier
        return f"{self.kind} {name} is {resource.lifecycle_state}"
