"""Tests for base handler functionality."""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock, patch

import kopf
import pytest

from cloud_service_operator.constants import FINALIZER
from cloud_service_operator.handlers.base import BaseHandler


class TestFinalizers:
    """Test cases for finalizer management."""

    def test_ensure_finalizer_adds_when_missing(self):
        """Test that finalizer is added when not present."""
        handler = BaseHandler(kind="Vpc")
        patch_obj = kopf.Patch()

        handler.ensure_finalizer({"finalizers": ["other"]}, patch_obj)

        assert patch_obj.metadata["finalizers"] == ["other", FINALIZER]

    def test_ensure_finalizer_no_duplicate(self):
        """Test that a present finalizer produces no patch."""
        handler = BaseHandler(kind="Vpc")
        patch_obj = kopf.Patch()

        handler.ensure_finalizer({"finalizers": [FINALIZER]}, patch_obj)

        assert "finalizers" not in patch_obj.metadata

    def test_ensure_finalizer_does_not_mutate_meta(self):
        """Test that the metadata mapping is left as received."""
        handler = BaseHandler(kind="Vpc")
        meta = {"finalizers": []}

        handler.ensure_finalizer(meta, kopf.Patch())

        assert meta["finalizers"] == []

    def test_remove_finalizer(self):
        """Test that only our finalizer is removed."""
        handler = BaseHandler(kind="Vpc")
        patch_obj = kopf.Patch()

        handler.remove_finalizer({"finalizers": [FINALIZER, "other"]}, patch_obj)

        assert patch_obj.metadata["finalizers"] == ["other"]

    def test_remove_finalizer_sets_none_when_empty(self):
        """Test that finalizers is set to None when last finalizer is removed."""
        handler = BaseHandler(kind="Vpc")
        patch_obj = kopf.Patch()

        handler.remove_finalizer({"finalizers": [FINALIZER]}, patch_obj)

        assert patch_obj.metadata["finalizers"] is None


class TestStructuredLogging:
    """Test cases for the structured log helpers."""

    def test_log_error_includes_sanitized_error(self, caplog):
        """Test that errors are logged as sanitized JSON fields."""
        handler = BaseHandler(kind="Vpc")
        meta = {"name": "net", "namespace": "apps", "uid": "u-1"}

        with caplog.at_level(logging.ERROR):
            handler.log_error(meta, "failed", error=RuntimeError("arn:aws:iam::123456789012:user/x denied"))

        record = json.loads(caplog.records[-1].getMessage())
        assert record["controller"] == "cloud-service-operator"
        assert record["resource"] == "Vpc"
        assert record["name"] == "net"
        assert record["error_type"] == "RuntimeError"
        assert "123456789012" not in record["error"]
        assert caplog.records[-1].levelno == logging.ERROR

    def test_log_warning_level(self, caplog):
        """Test that warnings are logged at warning level."""
        handler = BaseHandler(kind="Vpc")

        with caplog.at_level(logging.WARNING):
            handler.log_warning({}, "careful")

        assert caplog.records[-1].levelno == logging.WARNING


class TestReconcileWithMetrics:
    """Test cases for reconcile_with_metrics."""

    @patch("cloud_service_operator.handlers.base.emit_reconcile_started")
    @patch("cloud_service_operator.handlers.base.metrics")
    def test_success(self, mock_metrics, mock_emit_started):
        """Test successful reconciliation is counted and timed."""
        handler = BaseHandler(kind="Vpc")
        reconcile_fn = MagicMock()

        handler.reconcile_with_metrics({"name": "net"}, reconcile_fn)

        reconcile_fn.assert_called_once()
        mock_emit_started.assert_called_once()
        mock_metrics.reconcile_total.labels.assert_any_call(kind="Vpc", result="success")
        mock_metrics.reconcile_duration_seconds.labels.assert_called_once_with(kind="Vpc")

    @patch("cloud_service_operator.handlers.base.emit_reconcile_started")
    @patch("cloud_service_operator.handlers.base.metrics")
    def test_temporary_error_is_requeue(self, mock_metrics, mock_emit_started):
        """Test that kopf retry signals propagate as requeues, not errors."""
        handler = BaseHandler(kind="Vpc")

        with pytest.raises(kopf.TemporaryError):
            handler.reconcile_with_metrics({}, MagicMock(side_effect=kopf.TemporaryError("later", delay=30)))

        mock_metrics.reconcile_total.labels.assert_any_call(kind="Vpc", result="requeued")
        mock_metrics.error_total.labels.assert_not_called()

    @patch("cloud_service_operator.handlers.base.emit_reconcile_failed")
    @patch("cloud_service_operator.handlers.base.emit_reconcile_started")
    @patch("cloud_service_operator.handlers.base.metrics")
    def test_unexpected_error(self, mock_metrics, mock_emit_started, mock_emit_failed):
        """Test that unexpected errors are counted and re-raised."""
        handler = BaseHandler(kind="Vpc")

        with pytest.raises(RuntimeError):
            handler.reconcile_with_metrics({}, MagicMock(side_effect=RuntimeError("boom")))

        mock_metrics.error_total.labels.assert_called_once_with(kind="Vpc", error_type="RuntimeError")
        mock_metrics.reconcile_total.labels.assert_any_call(kind="Vpc", result="error")
        mock_emit_failed.assert_called_once()


class TestValidationAndStatus:
    """Test cases for validation errors and status updates."""

    @patch("cloud_service_operator.handlers.base.emit_validate_failed")
    @patch("cloud_service_operator.handlers.base.metrics")
    def test_handle_validation_error(self, mock_metrics, mock_emit):
        """Test that validation errors raise ValueError and emit an event."""
        handler = BaseHandler(kind="Vpc")

        with pytest.raises(ValueError, match="cidrBlock is required"):
            handler.handle_validation_error({}, "cidrBlock is required")

        mock_emit.assert_called_once_with("Vpc", {}, "cidrBlock is required")

    @patch("cloud_service_operator.handlers.base.metrics")
    def test_update_resource_status(self, mock_metrics):
        """Test that status updates carry observedGeneration."""
        handler = BaseHandler(kind="Vpc")
        patch_obj = kopf.Patch()

        handler.update_resource_status(patch_obj, {"generation": 3}, ready=True, status_data={"id": "vpc-1"})

        assert patch_obj.status["observedGeneration"] == 3
        assert patch_obj.status["id"] == "vpc-1"
        mock_metrics.resource_status_total.labels.assert_called_once_with(kind="Vpc", status="ready")
