"""Handler for the RolloutManager CRD."""

from __future__ import annotations

import threading
from typing import Any

import kopf

from .. import metrics
from ..config import OperatorConfig
from ..constants import (
    API_GROUP_VERSION,
    DEFAULT_RESOURCE_NAME,
    KIND_ROLLOUT_MANAGER,
    LABEL_PART_OF,
)
from ..controller import ReconcileResult, RolloutManagerReconciler
from ..utils.context import new_correlation_id, with_correlation_id
from ..utils.events import (
    emit_object_changes,
    emit_reconcile_succeeded,
    emit_resources_deleted,
    emit_scope_invalid,
)
from .base import BaseHandler


class RolloutManagerHandler(BaseHandler):
    """Handler for RolloutManager resources.

    Passes over the same RolloutManager never overlap: the RolloutManager
    handlers and the owned-Deployment watch share one lock per instance.
    """

    def __init__(self):
        """Initialize RolloutManager handler."""
        super().__init__(KIND_ROLLOUT_MANAGER)
        self.controller: RolloutManagerReconciler | None = None
        self._locks: dict[tuple[str, str], threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def configure(self, controller: RolloutManagerReconciler) -> None:
        """Attach the reconciler built at operator startup."""
        self.controller = controller

    def _require_controller(self) -> RolloutManagerReconciler:
        if self.controller is None:
            raise kopf.TemporaryError("Operator is still starting up", delay=5)
        return self.controller

    def instance_lock(self, namespace: str, name: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks.setdefault((namespace, name), threading.Lock())

    def reconcile(self, body: dict[str, Any]) -> ReconcileResult:
        """Reconcile a RolloutManager and report the outcome.

        Raises:
            kopf.TemporaryError: When the pass asks to be requeued
        """
        result = self.run_pass(body)
        if result.requeue_after:
            raise kopf.TemporaryError(
                f"Controller is {result.phase}, checking again", delay=result.requeue_after
            )
        return result

    def run_pass(self, body: dict[str, Any]) -> ReconcileResult:
        """Run one serialized pass with metrics, events and error translation."""
        controller = self._require_controller()
        meta = body.get("metadata") or {}
        namespace = meta.get("namespace", "")
        name = meta.get("name", "")

        with self.instance_lock(namespace, name), with_correlation_id(new_correlation_id()):
            result = self.reconcile_with_metrics(body, lambda: controller.reconcile(namespace, name))

            if not result.found:
                return result
            emit_object_changes(body, result.outcomes)
            if not result.scope.ok:
                metrics.reconcile_total.labels(kind=self.kind, result="failed").inc()
                self.log_warning(meta, result.scope.message, reason=result.scope.reason)
                emit_scope_invalid(body, result.scope.message)
                return result

            self.log_info(meta, "Reconciliation succeeded", reason="Reconciled", phase=result.phase)
            if not result.requeue_after:
                emit_reconcile_succeeded(body, result.phase or "")
        return result

    def reconcile_owner(self, owner_references: list[dict[str, Any]], namespace: str) -> None:
        """Reconcile the RolloutManager that owns a changed object.

        A pending outcome is not retried here; the RolloutManager's own
        handler already requeues it.
        """
        for ref in owner_references:
            if ref.get("kind") != KIND_ROLLOUT_MANAGER:
                continue
            owner = {
                "apiVersion": ref.get("apiVersion", API_GROUP_VERSION),
                "kind": KIND_ROLLOUT_MANAGER,
                "metadata": {"name": ref.get("name", ""), "namespace": namespace, "uid": ref.get("uid", "")},
            }
            self.run_pass(owner)

    def delete(self, body: dict[str, Any]) -> None:
        """Remove the cluster-scoped objects garbage collection cannot reach."""
        controller = self._require_controller()
        meta = body.get("metadata") or {}
        with self.instance_lock(meta.get("namespace", ""), meta.get("name", "")), \
                with_correlation_id(new_correlation_id()):
            self.log_info(meta, "RolloutManager is being deleted", event="deletion", reason="Deletion")
            deleted = controller.delete_cluster_resources(body)
            if deleted:
                emit_resources_deleted(body, deleted)


# Global handler instance
_handler = RolloutManagerHandler()

_DRIFT_CHECK_INTERVAL = OperatorConfig.from_env().drift_check_interval_seconds


def configure_controller(controller: RolloutManagerReconciler) -> None:
    _handler.configure(controller)


@kopf.on.create(API_GROUP_VERSION, KIND_ROLLOUT_MANAGER)
@kopf.on.update(API_GROUP_VERSION, KIND_ROLLOUT_MANAGER)
@kopf.on.resume(API_GROUP_VERSION, KIND_ROLLOUT_MANAGER)
@kopf.timer(API_GROUP_VERSION, KIND_ROLLOUT_MANAGER, interval=_DRIFT_CHECK_INTERVAL)
def handle_rollout_manager(
    body: kopf.Body,
    **kwargs: Any,
) -> None:
    """Handle RolloutManager resource reconciliation."""
    _handler.reconcile(dict(body))


@kopf.on.delete(API_GROUP_VERSION, KIND_ROLLOUT_MANAGER)
def handle_rollout_manager_delete(
    body: kopf.Body,
    **kwargs: Any,
) -> None:
    """Handle RolloutManager resource deletion."""
    _handler.delete(dict(body))


@kopf.on.event("apps", "v1", "deployments", labels={LABEL_PART_OF: DEFAULT_RESOURCE_NAME})
def handle_owned_deployment_event(
    meta: kopf.Meta,
    namespace: str | None,
    **kwargs: Any,
) -> None:
    """Re-reconcile the owning RolloutManager when its Deployment changes."""
    _handler.reconcile_owner(list(meta.get("ownerReferences") or []), namespace or "")
