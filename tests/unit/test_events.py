"""Tests for Kubernetes event utilities."""

from __future__ import annotations

from unittest.mock import patch

from rollouts_manager.utils.events import (
    emit_event,
    emit_object_changes,
    emit_reconcile_failed,
    emit_reconcile_started,
    emit_reconcile_succeeded,
    emit_resources_deleted,
    emit_scope_invalid,
)

BODY = {
    "apiVersion": "argoproj.io/v1alpha1",
    "kind": "RolloutManager",
    "metadata": {"name": "rollouts", "namespace": "argo-rollouts", "uid": "uid-1"},
}


class TestEmitEvent:
    """Test cases for emit_event function."""

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_emit_event_normal(self, mock_event):
        """Test emitting normal event."""
        emit_event(BODY, "TestReason", "Test message")

        mock_event.assert_called_once_with(
            BODY,
            reason="TestReason",
            message="Test message",
            type="Normal",
        )

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_emit_event_warning(self, mock_event):
        """Test emitting warning event."""
        emit_event(BODY, "TestReason", "Test message", type_="Warning")

        assert mock_event.call_args.kwargs["type"] == "Warning"


class TestReconcileEvents:
    """Test cases for the reconcile lifecycle events."""

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_started(self, mock_event):
        emit_reconcile_started(BODY)
        assert mock_event.call_args.kwargs["reason"] == "ReconcileStarted"

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_succeeded_mentions_phase(self, mock_event):
        emit_reconcile_succeeded(BODY, "Available")
        kwargs = mock_event.call_args.kwargs
        assert kwargs["reason"] == "ReconcileSucceeded"
        assert "Available" in kwargs["message"]

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_failed_is_warning(self, mock_event):
        emit_reconcile_failed(BODY, "Reconciliation failed: boom")
        kwargs = mock_event.call_args.kwargs
        assert kwargs["type"] == "Warning"
        assert kwargs["message"] == "Reconciliation failed: boom"

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_scope_invalid_is_warning(self, mock_event):
        emit_scope_invalid(BODY, "only one cluster-scoped instance")
        kwargs = mock_event.call_args.kwargs
        assert kwargs["reason"] == "ScopeInvalid"
        assert kwargs["type"] == "Warning"

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_resources_deleted_lists_names(self, mock_event):
        emit_resources_deleted(BODY, ["ClusterRole/argo-rollouts", "ClusterRoleBinding/argo-rollouts"])
        message = mock_event.call_args.kwargs["message"]
        assert message == "Deleted ClusterRole/argo-rollouts, ClusterRoleBinding/argo-rollouts"


class TestObjectChangeEvents:
    """Test cases for per-object change events."""

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_only_written_objects_reported(self, mock_event):
        emit_object_changes(BODY, {
            "ServiceAccount/argo-rollouts": "unchanged",
            "Secret/argo-rollouts-notification-secret": "skipped",
            "Deployment/argo-rollouts": "recreated",
            "ConfigMap/argo-rollouts-config": "created",
            "Role/argo-rollouts": "deleted",
        })

        calls = [(c.kwargs["reason"], c.kwargs["message"]) for c in mock_event.call_args_list]
        assert calls == [
            ("ObjectCreated", "Created ConfigMap/argo-rollouts-config"),
            ("ObjectUpdated", "Recreated Deployment/argo-rollouts"),
            ("ObjectDeleted", "Deleted Role/argo-rollouts"),
        ]

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_nothing_written(self, mock_event):
        emit_object_changes(BODY, {"Service/argo-rollouts-metrics": "unchanged"})
        mock_event.assert_not_called()
