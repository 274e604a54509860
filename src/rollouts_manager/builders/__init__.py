"""Desired-state builders for objects owned by a RolloutManager."""

from .config import build_notification_secret, build_plugin_config_map
from .deployment import build_deployment
from .rbac import (
    build_aggregate_cluster_role,
    build_role,
    build_role_binding,
    build_service_account,
)
from .service import build_metrics_service, build_service_monitor

__all__ = [
    "build_aggregate_cluster_role",
    "build_deployment",
    "build_metrics_service",
    "build_notification_secret",
    "build_plugin_config_map",
    "build_role",
    "build_role_binding",
    "build_service_account",
    "build_service_monitor",
]
