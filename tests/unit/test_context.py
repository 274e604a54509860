"""Tests for correlation ID context and structured logging."""

from __future__ import annotations

import json
import logging
from unittest.mock import MagicMock

from rollouts_manager.logging import log_object_event, log_resource_event
from rollouts_manager.utils.context import (
    get_context_dict,
    get_correlation_id,
    new_correlation_id,
    with_correlation_id,
)


class TestCorrelationId:
    """Test cases for correlation ID propagation."""

    def test_unset_by_default(self):
        assert get_correlation_id() is None
        assert "correlation_id" not in get_context_dict()

    def test_scoped(self):
        with with_correlation_id("abc123") as corr_id:
            assert corr_id == "abc123"
            assert get_correlation_id() == "abc123"
            assert get_context_dict()["correlation_id"] == "abc123"
        assert get_correlation_id() is None

    def test_nested(self):
        with with_correlation_id("outer"):
            with with_correlation_id("inner"):
                assert get_correlation_id() == "inner"
            assert get_correlation_id() == "outer"

    def test_new_ids_unique(self):
        ids = {new_correlation_id() for _ in range(20)}
        assert len(ids) == 20
        assert all(len(i) == 12 for i in ids)

    def test_additional(self):
        assert get_context_dict({"k": "v"})["k"] == "v"


class TestStructuredLogging:
    """Test cases for the JSON log helpers."""

    def test_resource_event_is_json(self):
        logger = MagicMock(spec=logging.Logger)

        with with_correlation_id("corr"):
            log_resource_event(
                logger, controller="c", resource_kind="Deployment", resource_name="d",
                namespace="ns", uid="u", event="update", reason="Updated", message="m", field="replicas",
            )

        level, payload = logger.log.call_args[0]
        data = json.loads(payload)
        assert level == logging.INFO
        assert data["resource"] == "Deployment"
        assert data["field"] == "replicas"
        assert data["correlation_id"] == "corr"

    def test_sensitive_extras_redacted(self):
        logger = MagicMock(spec=logging.Logger)

        log_resource_event(
            logger, controller="c", resource_kind="Secret", resource_name="s",
            namespace="ns", uid="u", event="e", reason="r", message="m", token="abc",
        )

        data = json.loads(logger.log.call_args[0][1])
        assert data["token"] == "[REDACTED]"

    def test_object_event(self):
        logger = MagicMock(spec=logging.Logger)
        obj = {"kind": "ConfigMap", "metadata": {"name": "cm", "namespace": "ns", "uid": "u"}}

        log_object_event(logger, obj, "create", "Created", "Created ConfigMap", level=logging.WARNING)

        level, payload = logger.log.call_args[0]
        data = json.loads(payload)
        assert level == logging.WARNING
        assert (data["resource"], data["name"], data["namespace"]) == ("ConfigMap", "cm", "ns")
