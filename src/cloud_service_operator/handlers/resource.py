"""Generic handler that binds one resource kind to the reconciliation core."""

from __future__ import annotations

import threading
import time
from typing import Any, Callable

import kopf

from .. import metrics
from ..builders.specs import build_spec
from ..constants import API_GROUP_VERSION, COND_FAILED, COND_PROVISIONING
from ..core.deletion import DeletionEngine
from ..core.engine import ReconciliationEngine
from ..core.models import OSOKStatus, SecretRef
from ..services.aws import ADAPTERS
from ..services.base import CredentialClient, ResourceAdapter
from ..services.errors import BadRequestError
from ..utils.conditions import current_condition_type
from ..utils.errors import sanitize_exception
from ..utils.events import (
    emit_delete_failed,
    emit_resource_active,
    emit_resource_deleted,
    emit_resource_failed,
    emit_resource_provisioning,
    emit_validate_succeeded,
)
from ..utils.secrets import KubernetesCredentialClient
from .base import BaseHandler
from .shared import drift_check_interval, get_core_api, requeue_delay, retry_backoff


class ResourceHandler(BaseHandler):
    """Reconciles and deletes custom resources of one kind.

    The handler converts the custom resource into a typed spec and status
    record, runs the engines and maps their outcome onto kopf's retry
    signals. Adapters are built per invocation so that ``spec.region`` applies.

    ``adapter_factory`` receives the typed spec, or the raw spec mapping when
    a resource being deleted no longer validates.
    """

    def __init__(
        self,
        kind: str,
        adapter_factory: Callable[[Any], ResourceAdapter] | None = None,
        credentials_factory: Callable[[], CredentialClient] | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        super().__init__(kind)
        self.adapter_factory = adapter_factory or self._default_adapter
        self.credentials_factory = credentials_factory or self._default_credentials
        self.sleep = sleep
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def _default_adapter(self, spec: Any) -> ResourceAdapter:
        adapter_cls = ADAPTERS[self.kind]
        if isinstance(spec, dict):
            return adapter_cls.from_raw_spec(spec)
        return adapter_cls.from_spec(spec)

    @staticmethod
    def _lock_key(meta: dict[str, Any]) -> str:
        return meta.get("uid") or f"{meta.get('namespace')}/{meta.get('name')}"

    def lock_for(self, meta: dict[str, Any]) -> threading.Lock:
        """Lock serializing provider work on one custom resource."""
        with self._locks_guard:
            return self._locks.setdefault(self._lock_key(meta), threading.Lock())

    def forget_lock(self, meta: dict[str, Any]) -> None:
        with self._locks_guard:
            self._locks.pop(self._lock_key(meta), None)

    def _default_credentials(self) -> CredentialClient:
        return KubernetesCredentialClient(api=get_core_api(), kind=self.kind)

    def _secret_ref(self, spec: Any, meta: dict[str, Any]) -> SecretRef | None:
        """Connection secret location for kinds that publish connection details."""
        if spec is None or not hasattr(spec, "connection_secret_name"):
            return None
        name = spec.connection_secret_name or f"{meta.get('name')}-connection"
        return SecretRef(name=name, namespace=meta.get("namespace", "default"))

    def _credentials_for(self, secret_ref: SecretRef | None) -> CredentialClient | None:
        return self.credentials_factory() if secret_ref is not None else None

    def reconcile(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Run one reconciliation step and patch the resulting status.

        Raises:
            ValueError: If the spec is invalid
            kopf.PermanentError: If the provider rejected the request as invalid
            kopf.TemporaryError: If the resource has not converged yet
        """
        try:
            typed_spec = build_spec(self.kind, spec)
        except ValueError as e:
            self.handle_validation_error(meta, str(e))
        emit_validate_succeeded(self.kind, meta)

        osok_status = OSOKStatus.from_dict(status)
        conditions_before = len(osok_status.conditions)
        secret_ref = self._secret_ref(typed_spec, meta)
        engine = ReconciliationEngine(
            self.adapter_factory(typed_spec),
            credentials=self._credentials_for(secret_ref),
            sleep=self.sleep,
        )
        outcome = engine.reconcile(typed_spec, osok_status, secret_ref)

        self.update_resource_status(patch, meta, ready=outcome.succeeded, status_data=osok_status.to_dict())
        latest = osok_status.conditions[-1] if osok_status.conditions else {}
        message = latest.get("message", "")
        # Events are only emitted when a new condition was recorded
        changed = len(osok_status.conditions) != conditions_before

        if outcome.succeeded:
            self.log_info(meta, message, event="reconcile", reason="Active", identifier=osok_status.identifier)
            if changed:
                emit_resource_active(self.kind, meta, message)
            return

        if outcome.error is not None:
            error_msg = self.handle_reconciliation_error(meta, outcome.error)
            if isinstance(outcome.error, BadRequestError):
                emit_resource_failed(self.kind, meta, error_msg)
                raise kopf.PermanentError(error_msg) from outcome.error
            raise kopf.TemporaryError(error_msg) from outcome.error

        condition_type = current_condition_type(osok_status.conditions)
        if condition_type == COND_FAILED:
            self.log_warning(meta, message, event="reconcile", reason="TerminalState")
            if changed:
                emit_resource_failed(self.kind, meta, message)
        elif condition_type == COND_PROVISIONING:
            self.log_info(meta, message, event="reconcile", reason="Provisioning")
            if changed:
                emit_resource_provisioning(self.kind, meta, message)

        delay = outcome.requeue_after if outcome.requeue_after is not None else requeue_delay()
        raise kopf.TemporaryError(message or f"{self.kind} has not converged yet", delay=delay)

    def delete(
        self,
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
    ) -> None:
        """Delete the bound remote resource and release the finalizer once done.

        Raises:
            kopf.TemporaryError: If deletion has to be retried
        """
        try:
            typed_spec = build_spec(self.kind, spec)
        except ValueError as e:
            # A spec edited into an invalid shape must not block deletion
            self.log_warning(meta, f"Deleting with an invalid spec: {e}", event="deletion", reason="InvalidSpec")
            typed_spec = None

        osok_status = OSOKStatus.from_dict(status)
        secret_ref = self._secret_ref(typed_spec, meta)
        identifier = osok_status.identifier
        self.log_info(meta, f"{self.kind} is being deleted", event="deletion", reason="Deletion", identifier=identifier)

        adapter = self.adapter_factory(typed_spec if typed_spec is not None else dict(spec or {}))
        engine = DeletionEngine(adapter, credentials=self._credentials_for(secret_ref))
        done, error = engine.delete(osok_status, secret_ref)
        patch.status.update(osok_status.to_dict())

        if done:
            metrics.delete_total.labels(kind=self.kind, result="success").inc()
            if identifier:
                emit_resource_deleted(self.kind, meta, identifier)
            self.log_info(meta, f"{self.kind} deleted", event="deletion", reason="Deleted", identifier=identifier)
            self.remove_finalizer(meta, patch)
            self.forget_lock(meta)
            return

        metrics.delete_total.labels(kind=self.kind, result="failed").inc()
        error_msg = sanitize_exception(error) if error is not None else "deletion not confirmed"
        self.log_error(meta, f"Failed to delete {self.kind} {identifier}", error=error, reason="DeleteFailed")
        emit_delete_failed(self.kind, meta, error_msg)
        raise kopf.TemporaryError(error_msg, delay=requeue_delay())


def drift_check_allowed(status: dict[str, Any], **_: Any) -> bool:
    """Drift checks start once a reconcile has recorded a remote identifier."""
    return bool((status or {}).get("id"))


def register_handlers(handler: ResourceHandler) -> None:
    """Register kopf handlers for the handler's kind."""
    kind = handler.kind

    def reconcile(
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        **kwargs: Any,
    ) -> None:
        handler.ensure_finalizer(meta, patch)
        with handler.lock_for(meta):
            handler.reconcile_with_metrics(meta, lambda: handler.reconcile(spec, meta, status, patch))

    def drift_check(
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        **kwargs: Any,
    ) -> None:
        lock = handler.lock_for(meta)
        if not lock.acquire(blocking=False):
            handler.log_info(meta, "Reconcile in progress, skipping drift check", event="drift", reason="Busy")
            return
        try:
            handler.reconcile_with_metrics(meta, lambda: handler.reconcile(spec, meta, status, patch))
        finally:
            lock.release()

    def delete(
        spec: dict[str, Any],
        meta: dict[str, Any],
        status: dict[str, Any],
        patch: kopf.Patch,
        **kwargs: Any,
    ) -> None:
        with handler.lock_for(meta):
            handler.delete(spec, meta, status, patch)

    backoff = retry_backoff()
    kopf.on.create(API_GROUP_VERSION, kind, id=f"{kind}-reconcile", backoff=backoff)(reconcile)
    kopf.on.update(API_GROUP_VERSION, kind, id=f"{kind}-reconcile", backoff=backoff)(reconcile)
    kopf.on.resume(API_GROUP_VERSION, kind, id=f"{kind}-reconcile", backoff=backoff)(reconcile)
    kopf.timer(
        API_GROUP_VERSION,
        kind,
        id=f"{kind}-drift",
        interval=drift_check_interval(),
        idle=10,
        when=drift_check_allowed,
    )(drift_check)
    kopf.on.delete(API_GROUP_VERSION, kind, id=f"{kind}-delete", backoff=backoff)(delete)
