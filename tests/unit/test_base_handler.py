"""Tests for base handler functionality."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import kopf
import pytest
from kubernetes.client.exceptions import ApiException

from rollouts_manager.handlers.base import CONFLICT_RETRY_DELAY, BaseHandler
from rollouts_manager.utils.errors import DuplicateArgumentError, ReconcileCancelled


def _body() -> dict:
    return {
        "apiVersion": "argoproj.io/v1alpha1",
        "kind": "RolloutManager",
        "metadata": {"name": "rollouts", "namespace": "argo-rollouts", "uid": "uid-1"},
    }


class TestBaseHandler:
    """Test cases for BaseHandler class."""

    def test_init(self):
        """Test handler initialization."""
        handler = BaseHandler(kind="TestKind")
        assert handler.kind == "TestKind"
        assert handler.logger is not None

    def test_resource_context_defaults(self):
        """Missing metadata fields fall back to placeholders."""
        handler = BaseHandler(kind="TestKind")
        assert handler._get_resource_context({}) == {
            "name": "unknown",
            "namespace": "default",
            "uid": "unknown",
        }

    @patch("rollouts_manager.handlers.base.log_resource_event")
    def test_log_error_sanitizes(self, mock_log):
        """Errors are logged with the sensitive parts redacted."""
        handler = BaseHandler(kind="TestKind")

        handler.log_error(_body()["metadata"], "boom", error=ValueError("token: abc123"))

        kwargs = mock_log.call_args.kwargs
        assert kwargs["error"] == "token: [REDACTED]"
        assert kwargs["error_type"] == "ValueError"
        assert kwargs["resource_name"] == "rollouts"


class TestTranslateError:
    """Mapping engine errors onto kopf retry semantics."""

    def test_synthesis_error_is_permanent(self):
        handler = BaseHandler(kind="TestKind")
        translated = handler.translate_error(DuplicateArgumentError("--namespaced"))
        assert isinstance(translated, kopf.PermanentError)

    def test_conflict_is_retried_quickly(self):
        handler = BaseHandler(kind="TestKind")
        translated = handler.translate_error(ApiException(status=409, reason="Conflict"))
        assert isinstance(translated, kopf.TemporaryError)
        assert translated.delay == CONFLICT_RETRY_DELAY

    def test_cancellation_is_retried_quickly(self):
        handler = BaseHandler(kind="TestKind")
        translated = handler.translate_error(ReconcileCancelled("deadline exceeded"))
        assert isinstance(translated, kopf.TemporaryError)

    def test_other_errors_unchanged(self):
        handler = BaseHandler(kind="TestKind")
        error = ApiException(status=500, reason="Internal")
        assert handler.translate_error(error) is error


class TestReconcileWithMetrics:
    """Test cases for reconcile_with_metrics."""

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_success_returns_result(self, mock_event):
        """The wrapped function's result is returned and a start event emitted."""
        handler = BaseHandler(kind="TestKind")

        result = handler.reconcile_with_metrics(_body(), lambda: "done")

        assert result == "done"
        assert mock_event.call_args_list[0].kwargs["reason"] == "ReconcileStarted"

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_synthesis_error_becomes_permanent(self, mock_event):
        handler = BaseHandler(kind="TestKind")
        fn = MagicMock(side_effect=DuplicateArgumentError("--leader-elect"))

        with pytest.raises(kopf.PermanentError) as exc_info:
            handler.reconcile_with_metrics(_body(), fn)

        assert "--leader-elect" in str(exc_info.value)
        reasons = [c.kwargs["reason"] for c in mock_event.call_args_list]
        assert reasons == ["ReconcileStarted", "ReconcileFailed"]
        assert mock_event.call_args_list[-1].kwargs["type"] == "Warning"

    @patch("rollouts_manager.utils.events.kopf.event")
    def test_api_error_propagates_unchanged(self, mock_event):
        handler = BaseHandler(kind="TestKind")
        error = ApiException(status=500, reason="Internal")

        with pytest.raises(ApiException) as exc_info:
            handler.reconcile_with_metrics(_body(), MagicMock(side_effect=error))

        assert exc_info.value is error
