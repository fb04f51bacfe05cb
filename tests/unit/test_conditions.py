"""Tests for the status condition history."""

from __future__ import annotations

from cloud_service_operator.constants import (
    COND_ACTIVE,
    COND_FAILED,
    COND_PROVISIONING,
    COND_UPDATING,
    REASON_ACTIVE,
    REASON_BOUND,
    REASON_UPDATE_REQUESTED,
)
from cloud_service_operator.utils.conditions import (
    current_condition_type,
    latest_condition,
    merge_condition,
    set_active_condition,
    set_failed_condition,
    set_provisioning_condition,
    set_updating_condition,
)


class TestMergeCondition:
    """Test cases for merge_condition."""

    def test_appends_when_type_absent(self):
        """Test that a new condition is appended when none of its type exists."""
        conditions: list = []

        result = merge_condition(conditions, COND_ACTIVE, "True", REASON_ACTIVE, "Vpc net is available")

        assert result is conditions
        assert len(conditions) == 1
        cond = conditions[0]
        assert cond["type"] == COND_ACTIVE
        assert cond["status"] == "True"
        assert cond["reason"] == REASON_ACTIVE
        assert cond["message"] == "Vpc net is available"
        assert "lastTransitionTime" in cond

    def test_unchanged_condition_is_not_appended(self):
        """Test that the same status and message leave the list untouched."""
        conditions: list = []
        merge_condition(conditions, COND_ACTIVE, "True", REASON_ACTIVE, "ready")
        snapshot = [dict(c) for c in conditions]

        merge_condition(conditions, COND_ACTIVE, "True", REASON_ACTIVE, "ready")

        assert conditions == snapshot

    def test_changed_message_appends_and_keeps_history(self):
        """Test that a changed message appends a new entry without mutating the old one."""
        conditions: list = []
        merge_condition(conditions, COND_PROVISIONING, "True", "Provisioning", "is pending")
        first = dict(conditions[0])

        merge_condition(conditions, COND_PROVISIONING, "True", "Provisioning", "still pending")

        assert len(conditions) == 2
        assert conditions[0] == first
        assert conditions[1]["message"] == "still pending"

    def test_changed_status_appends(self):
        """Test that a changed status appends a new entry."""
        conditions: list = []
        merge_condition(conditions, COND_FAILED, "False", "CreateFailed", "boom")
        merge_condition(conditions, COND_FAILED, "Unknown", "CreateFailed", "boom")

        assert [c["status"] for c in conditions] == ["False", "Unknown"]

    def test_appends_when_other_type_recorded_since(self):
        """Test that a returning condition type is appended again so the tail reflects current state."""
        conditions: list = []
        merge_condition(conditions, COND_ACTIVE, "True", REASON_ACTIVE, "ready")
        merge_condition(conditions, COND_PROVISIONING, "True", "Provisioning", "updating")

        merge_condition(conditions, COND_ACTIVE, "True", REASON_ACTIVE, "ready")

        assert [c["type"] for c in conditions] == [COND_ACTIVE, COND_PROVISIONING, COND_ACTIVE]


class TestConditionHelpers:
    """Test cases for the condition helper functions."""

    def test_set_active_condition(self):
        """Test recording an Active condition with a custom reason."""
        conditions = set_active_condition([], "bound", reason=REASON_BOUND)
        assert conditions[-1]["type"] == COND_ACTIVE
        assert conditions[-1]["status"] == "True"
        assert conditions[-1]["reason"] == REASON_BOUND

    def test_set_provisioning_condition(self):
        """Test recording a Provisioning condition."""
        conditions = set_provisioning_condition([], "pending")
        assert conditions[-1]["type"] == COND_PROVISIONING
        assert conditions[-1]["status"] == "True"

    def test_set_failed_condition(self):
        """Test that Failed conditions carry status False."""
        conditions = set_failed_condition([], "bad", "BadRequest")
        assert conditions[-1]["type"] == COND_FAILED
        assert conditions[-1]["status"] == "False"
        assert conditions[-1]["reason"] == "BadRequest"

    def test_set_updating_condition(self):
        """Test recording an Updating condition."""
        conditions = set_updating_condition([], "resize requested")
        assert conditions[-1]["type"] == COND_UPDATING
        assert conditions[-1]["status"] == "True"
        assert conditions[-1]["reason"] == REASON_UPDATE_REQUESTED

    def test_latest_condition(self):
        """Test finding the most recent condition of a type."""
        conditions = [
            {"type": COND_ACTIVE, "message": "old"},
            {"type": COND_FAILED, "message": "x"},
            {"type": COND_ACTIVE, "message": "new"},
        ]
        assert latest_condition(conditions, COND_ACTIVE)["message"] == "new"
        assert latest_condition(conditions, COND_PROVISIONING) is None

    def test_current_condition_type(self):
        """Test reading the type of the last recorded condition."""
        assert current_condition_type([]) is None
        assert current_condition_type([{"type": COND_ACTIVE}, {"type": COND_FAILED}]) == COND_FAILED
