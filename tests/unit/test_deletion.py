"""Tests for the deletion engine."""

from __future__ import annotations

from unittest.mock import MagicMock

from cloud_service_operator.constants import COND_TERMINATING
from cloud_service_operator.core.deletion import DeletionEngine
from cloud_service_operator.core.models import OSOKStatus, SecretRef
from cloud_service_operator.services.errors import ConflictError, NotFoundError


def _adapter() -> MagicMock:
    adapter = MagicMock()
    adapter.kind = "Widget"
    return adapter


class TestDeletionEngine:
    """Test cases for DeletionEngine.delete."""

    def test_empty_identifier_is_noop(self):
        """Test that deleting a never-bound resource succeeds without provider calls."""
        adapter = _adapter()

        done, error = DeletionEngine(adapter).delete(OSOKStatus())

        assert done is True
        assert error is None
        adapter.delete.assert_not_called()

    def test_delete_success_clears_identifier(self):
        """Test that a confirmed delete clears the identifier."""
        adapter = _adapter()
        status = OSOKStatus(identifier="w-1")

        done, error = DeletionEngine(adapter).delete(status)

        assert (done, error) == (True, None)
        adapter.delete.assert_called_once_with("w-1")
        assert status.identifier == ""

    def test_not_found_is_success(self):
        """Test that a resource that is already gone counts as deleted."""
        adapter = _adapter()
        adapter.delete.side_effect = NotFoundError("gone", code="InvalidVpcID.NotFound")

        done, error = DeletionEngine(adapter).delete(OSOKStatus(identifier="w-1"))

        assert (done, error) == (True, None)

    def test_other_error_is_not_done(self):
        """Test that other errors keep the object around for a retry."""
        adapter = _adapter()
        failure = ConflictError("has dependencies", code="DependencyViolation")
        adapter.delete.side_effect = failure
        status = OSOKStatus(identifier="w-1")

        done, error = DeletionEngine(adapter).delete(status)

        assert done is False
        assert error is failure
        assert status.identifier == "w-1"
        assert status.conditions[-1]["type"] == COND_TERMINATING

    def test_secret_deleted_after_primary(self):
        """Test that the connection secret is removed once the resource is gone."""
        adapter = _adapter()
        credentials = MagicMock()

        done, _ = DeletionEngine(adapter, credentials).delete(
            OSOKStatus(identifier="db-1"), SecretRef("db-conn", "ns")
        )

        assert done is True
        credentials.delete_secret.assert_called_once_with("db-conn", "ns")

    def test_secret_failure_does_not_block(self):
        """Test that a failing secret cleanup is only logged."""
        adapter = _adapter()
        credentials = MagicMock()
        credentials.delete_secret.side_effect = RuntimeError("forbidden")

        done, error = DeletionEngine(adapter, credentials).delete(
            OSOKStatus(identifier="db-1"), SecretRef("db-conn", "ns")
        )

        assert (done, error) == (True, None)

    def test_secret_kept_when_primary_fails(self):
        """Test that the secret survives a failed primary delete."""
        adapter = _adapter()
        adapter.delete.side_effect = RuntimeError("timeout")
        credentials = MagicMock()

        DeletionEngine(adapter, credentials).delete(OSOKStatus(identifier="db-1"), SecretRef("db-conn", "ns"))

        credentials.delete_secret.assert_not_called()
