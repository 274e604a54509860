"""Reconcilers for the metrics Service and ServiceMonitor."""

from __future__ import annotations

from .base import ObjectReconciler


class ServiceReconciler(ObjectReconciler):
    # clusterIP and other allocated fields stay as the server set them
    managed_fields = (("spec", "ports"), ("spec", "selector"))


class ServiceMonitorReconciler(ObjectReconciler):
    """Only manages a ServiceMonitor that this RolloutManager created."""

    managed_fields = (("spec", "selector"), ("spec", "endpoints"))
    adopt_foreign = False
