"""Per-kind reconcilers for objects owned by a RolloutManager."""

from .base import CREATED, DELETED, RECREATED, SKIPPED, UNCHANGED, UPDATED, ObjectReconciler
from .config import ConfigMapReconciler, SecretReconciler
from .deployment import DeploymentReconciler
from .rbac import RoleBindingReconciler, RoleReconciler, ServiceAccountReconciler, cleanup_stale_scope
from .service import ServiceMonitorReconciler, ServiceReconciler

__all__ = [
    "CREATED",
    "DELETED",
    "RECREATED",
    "SKIPPED",
    "UNCHANGED",
    "UPDATED",
    "ConfigMapReconciler",
    "DeploymentReconciler",
    "ObjectReconciler",
    "RoleBindingReconciler",
    "RoleReconciler",
    "SecretReconciler",
    "ServiceAccountReconciler",
    "ServiceMonitorReconciler",
    "ServiceReconciler",
    "cleanup_stale_scope",
]
