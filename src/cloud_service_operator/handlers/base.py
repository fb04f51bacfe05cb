"""Base handler class with common functionality for all resource handlers."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable

import kopf

from .. import metrics
from ..constants import CONTROLLER_NAME, FINALIZER
from ..logging import log_resource_event
from ..utils.errors import sanitize_exception
from ..utils.events import emit_reconcile_failed, emit_reconcile_started, emit_validate_failed


class BaseHandler:
    """Logging, metrics and finalizer bookkeeping shared by every kind.

    Subclasses implement the kopf-facing operations; this class only knows the
    resource kind it reports under.
    """

    def __init__(self, kind: str):
        self.kind = kind
        self.logger = logging.getLogger(__name__)

    def _get_resource_context(self, meta: dict[str, Any]) -> dict[str, Any]:
        return {
            "name": meta.get("name", "unknown"),
            "namespace": meta.get("namespace", "default"),
            "uid": meta.get("uid", "unknown"),
        }

    def _count(self, result: str) -> None:
        metrics.reconcile_total.labels(kind=self.kind, result=result).inc()

    def _log(self, level: int, meta: dict[str, Any], message: str, event: str, reason: str, **fields: Any) -> None:
        ctx = self._get_resource_context(meta)
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=self.kind,
            resource_name=ctx["name"],
            namespace=ctx["namespace"],
            uid=ctx["uid"],
            event=event,
            reason=reason,
            message=message,
            level=level,
            **fields,
        )

    def log_info(self, meta: dict[str, Any], message: str, event: str = "info", reason: str = "Info", **fields: Any) -> None:
        self._log(logging.INFO, meta, message, event, reason, **fields)

    def log_warning(
        self, meta: dict[str, Any], message: str, event: str = "warning", reason: str = "Warning", **fields: Any
    ) -> None:
        self._log(logging.WARNING, meta, message, event, reason, **fields)

    def log_error(
        self,
        meta: dict[str, Any],
        message: str,
        error: Exception | None = None,
        event: str = "error",
        reason: str = "Error",
        **fields: Any,
    ) -> None:
        """Log at error level, attaching the sanitized ``error`` and its type when given."""
        if error is not None:
            fields = {**fields, "error": sanitize_exception(error), "error_type": type(error).__name__}
        self._log(logging.ERROR, meta, message, event, reason, **fields)

    def handle_validation_error(self, meta: dict[str, Any], error_msg: str) -> None:
        """Report an invalid spec and abort the handler.

        Raises:
            ValueError: Always, carrying ``error_msg``
        """
        self.log_error(meta, error_msg, reason="ValidationFailed")
        emit_validate_failed(self.kind, meta, error_msg)
        self._count("failed")
        raise ValueError(error_msg)

    def handle_reconciliation_error(
        self,
        meta: dict[str, Any],
        error: Exception,
        reason: str = "ReconciliationFailed",
    ) -> str:
        """Log, count and announce a failed reconciliation.

        Returns:
            The sanitized error message
        """
        sanitized_error = sanitize_exception(error)
        self.log_error(meta, f"Reconciliation failed: {sanitized_error}", error=error, reason=reason)
        emit_reconcile_failed(self.kind, meta, f"Reconciliation failed: {sanitized_error}")
        metrics.error_total.labels(kind=self.kind, error_type=type(error).__name__).inc()
        return sanitized_error

    def ensure_finalizer(self, meta: dict[str, Any], patch: kopf.Patch) -> None:
        finalizers = list(meta.get("finalizers", []))
        if FINALIZER not in finalizers:
            patch.metadata["finalizers"] = finalizers + [FINALIZER]

    def remove_finalizer(self, meta: dict[str, Any], patch: kopf.Patch) -> None:
        finalizers = [f for f in meta.get("finalizers", []) if f != FINALIZER]
        if len(finalizers) != len(meta.get("finalizers", [])):
            patch.metadata["finalizers"] = finalizers or None

    def reconcile_with_metrics(self, meta: dict[str, Any], reconcile_fn: Callable[[], None]) -> None:
        """Run ``reconcile_fn`` under the reconcile counters and duration histogram.

        kopf retry signals pass through untouched; anything else is counted
        as an error before it propagates.
        """
        emit_reconcile_started(self.kind, meta)
        self._count("started")

        start_time = time.time()
        try:
            reconcile_fn()
        except kopf.TemporaryError:
            self._count("requeued")
            raise
        except kopf.PermanentError:
            self._count("failed")
            raise
        except Exception as e:
            metrics.error_total.labels(kind=self.kind, error_type=type(e).__name__).inc()
            self.log_error(meta, "Reconciliation failed", error=e, reason="ReconciliationFailed")
            emit_reconcile_failed(self.kind, meta, f"Reconciliation failed: {sanitize_exception(e)}")
            self._count("error")
            raise
        else:
            self._count("success")
        finally:
            metrics.reconcile_duration_seconds.labels(kind=self.kind).observe(time.time() - start_time)

    def update_resource_status(
        self,
        patch: kopf.Patch,
        meta: dict[str, Any],
        ready: bool,
        status_data: dict[str, Any] | None = None,
    ) -> None:
        """Patch ``status_data`` into the status together with ``observedGeneration``."""
        metrics.resource_status_total.labels(kind=self.kind, status="ready" if ready else "not_ready").inc()
        patch.status.update({"observedGeneration": meta.get("generation", 0), **(status_data or {})})
