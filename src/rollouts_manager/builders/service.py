"""Builders for the metrics Service and its ServiceMonitor."""

from __future__ import annotations

from typing import Any

from ..constants import (
    DEFAULT_METRICS_SERVICE_NAME,
    DEFAULT_RESOURCE_NAME,
    KIND_SERVICE,
    KIND_SERVICE_MONITOR,
    LABEL_COMPONENT,
    LABEL_NAME,
    METRICS_PORT,
    MONITORING_API_GROUP,
    MONITORING_API_VERSION,
    SELECTOR_KEY,
)
from ..models import RolloutManager
from .metadata import build_metadata


def build_metrics_service(cr: RolloutManager) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": KIND_SERVICE,
        "metadata": build_metadata(
            cr,
            DEFAULT_METRICS_SERVICE_NAME,
            labels={LABEL_NAME: DEFAULT_METRICS_SERVICE_NAME, LABEL_COMPONENT: "server"},
        ),
        "spec": {
            "ports": [
                {
                    "name": "metrics",
                    "port": METRICS_PORT,
                    "protocol": "TCP",
                    "targetPort": METRICS_PORT,
                }
            ],
            "selector": {SELECTOR_KEY: DEFAULT_RESOURCE_NAME},
        },
    }


def build_service_monitor(cr: RolloutManager) -> dict[str, Any]:
    """ServiceMonitor scraping the metrics Service (Prometheus Operator)."""
    return {
        "apiVersion": f"{MONITORING_API_GROUP}/{MONITORING_API_VERSION}",
        "kind": KIND_SERVICE_MONITOR,
        "metadata": build_metadata(cr, DEFAULT_RESOURCE_NAME),
        "spec": {
            "selector": {"matchLabels": {LABEL_NAME: DEFAULT_METRICS_SERVICE_NAME}},
            "endpoints": [{"port": "metrics"}],
        },
    }
