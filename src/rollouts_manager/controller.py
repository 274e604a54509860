"""Top-level reconciliation of a RolloutManager."""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any

from kubernetes.client.exceptions import ApiException

from . import metrics
from .builders import (
    build_aggregate_cluster_role,
    build_deployment,
    build_metrics_service,
    build_notification_secret,
    build_plugin_config_map,
    build_role,
    build_role_binding,
    build_service_account,
    build_service_monitor,
)
from .builders.rbac import aggregate_cluster_role_name
from .config import OperatorConfig
from .constants import (
    AGGREGATION_TYPES,
    DEFAULT_RESOURCE_NAME,
    KIND_CLUSTER_ROLE,
    KIND_CLUSTER_ROLE_BINDING,
    KIND_DEPLOYMENT,
    KIND_ROLLOUT_MANAGER,
    PHASE_FAILURE,
    PHASE_PENDING,
    REASON_ERROR_OCCURRED,
)
from .gateway import Deadline
from .logging import CONTROLLER_NAME, log_resource_event
from .models import RolloutManager
from .reconcilers import (
    ConfigMapReconciler,
    DeploymentReconciler,
    ObjectReconciler,
    RoleBindingReconciler,
    RoleReconciler,
    SecretReconciler,
    ServiceAccountReconciler,
    ServiceMonitorReconciler,
    ServiceReconciler,
    cleanup_stale_scope,
)
from .scope import SCOPE_OK, ScopeResult, check_scope
from .status import build_status, controller_phase
from .tracing import trace_span
from .utils.errors import ReconcileCancelled, sanitize_exception


@dataclass(frozen=True)
class ReconcileResult:
    """Outcome of one reconcile pass.

    ``found`` is False when the RolloutManager no longer exists. A non-None
    ``requeue_after`` asks the caller to run the pass again after that many
    seconds.
    """

    found: bool = True
    phase: str | None = None
    scope: ScopeResult = SCOPE_OK
    requeue_after: float | None = None
    outcomes: dict[str, str] = field(default_factory=dict)


class RolloutManagerReconciler:
    """Scope check, then owned objects in dependency order, then status."""

    def __init__(self, store: Any, config: OperatorConfig, logger: logging.Logger | None = None):
        self.store = store
        self.config = config
        self.logger = logger or logging.getLogger(__name__)

        self.service_accounts = ServiceAccountReconciler(store, self.logger)
        self.roles = RoleReconciler(store, self.logger)
        self.role_bindings = RoleBindingReconciler(store, self.logger)
        self.secrets = SecretReconciler(store, self.logger)
        self.config_maps = ConfigMapReconciler(store, self.logger)
        self.deployments = DeploymentReconciler(store, self.logger)
        self.services = ServiceReconciler(store, self.logger)
        self.service_monitors = ServiceMonitorReconciler(store, self.logger)

    def _log(self, cr: RolloutManager, event: str, reason: str, message: str,
             level: int = logging.INFO, **kwargs: Any) -> None:
        log_resource_event(
            self.logger,
            controller=CONTROLLER_NAME,
            resource_kind=KIND_ROLLOUT_MANAGER,
            resource_name=cr.name,
            namespace=cr.namespace,
            uid=cr.uid,
            event=event,
            reason=reason,
            message=message,
            level=level,
            **kwargs,
        )

    def desired_objects(self, cr: RolloutManager) -> list[tuple[ObjectReconciler, dict[str, Any]]]:
        """Desired owned objects in the order they are applied.

        Everything is built before anything is written, so a spec that
        cannot be synthesized causes no writes at all.

        Raises:
            SynthesisError: If the spec cannot be turned into objects
        """
        steps: list[tuple[ObjectReconciler, dict[str, Any]]] = [
            (self.service_accounts, build_service_account(cr)),
            (self.roles, build_role(cr)),
        ]
        steps.extend(
            (self.roles, build_aggregate_cluster_role(cr, aggregation_type))
            for aggregation_type in AGGREGATION_TYPES
        )
        steps.extend([
            (self.role_bindings, build_role_binding(cr)),
            (self.secrets, build_notification_secret(cr)),
            (self.config_maps, build_plugin_config_map(cr, self.config)),
            (self.deployments, build_deployment(cr, self.config)),
            (self.services, build_metrics_service(cr)),
        ])
        if self.config.service_monitor_supported:
            steps.append((self.service_monitors, build_service_monitor(cr)))
        return steps

    def reconcile(self, namespace: str, name: str, deadline: Deadline | None = None) -> ReconcileResult:
        """Run one reconcile pass for the named RolloutManager.

        Safe to call redundantly or out of order. Object store errors,
        synthesis errors and cancellation propagate; everything except
        cancellation is first recorded in the Reconciled condition.
        """
        if deadline is None:
            deadline = Deadline(self.config.reconcile_timeout_seconds)

        body = self.store.get(KIND_ROLLOUT_MANAGER, namespace, name, deadline)
        if body is None:
            self.logger.info(f"RolloutManager {namespace}/{name} not found, nothing to do")
            return ReconcileResult(found=False)
        cr = RolloutManager.from_dict(body)

        with trace_span(
            "reconcile_rollout_manager",
            kind=KIND_ROLLOUT_MANAGER,
            attributes={"rolloutmanager.name": name, "rolloutmanager.namespace": namespace},
        ):
            instances = [
                RolloutManager.from_dict(item)
                for item in self.store.list(KIND_ROLLOUT_MANAGER, deadline=deadline)
            ]
            scope = check_scope(cr, instances, self.config.namespace_scoped_only)
            if not scope.ok:
                return self._fail_scope(body, cr, scope, deadline)

            try:
                outcomes = self.reconcile_owned_objects(cr, deadline)
                deployment = self.store.get(KIND_DEPLOYMENT, cr.namespace, DEFAULT_RESOURCE_NAME, deadline)
                phase = controller_phase(deployment)
                self.write_status(body, build_status(cr.status, phase, success=True), deadline)
            except ReconcileCancelled:
                self._log(cr, "reconcile", "Cancelled", "Reconcile deadline exceeded", level=logging.WARNING)
                raise
            except Exception as e:
                self.record_error(body, cr, e, deadline)
                raise

        metrics.phase_total.labels(phase=phase).inc()
        self._log(cr, "reconcile", "Reconciled", f"RolloutManager reconciled, phase {phase}", phase=phase)
        requeue_after = self.config.pending_requeue_seconds if phase == PHASE_PENDING else None
        return ReconcileResult(phase=phase, requeue_after=requeue_after, outcomes=outcomes)

    def reconcile_owned_objects(self, cr: RolloutManager, deadline: Deadline) -> dict[str, str]:
        """Apply every owned object and drop RBAC left over from the other scope.

        Returns:
            Mapping of ``Kind/name`` to the step outcome
        """
        outcomes: dict[str, str] = {}
        for reconciler, desired in self.desired_objects(cr):
            key = f"{desired['kind']}/{desired['metadata']['name']}"
            with trace_span(f"reconcile_{desired['kind'].lower()}", kind=desired["kind"]):
                outcomes[key] = reconciler.reconcile(cr, desired, deadline)

        for kind in cleanup_stale_scope(self.store, cr, deadline, logger=self.logger):
            outcomes[f"{kind}/{DEFAULT_RESOURCE_NAME}"] = "deleted"
        return outcomes

    def _fail_scope(
        self,
        body: dict[str, Any],
        cr: RolloutManager,
        scope: ScopeResult,
        deadline: Deadline,
    ) -> ReconcileResult:
        metrics.scope_violations_total.labels(verdict=scope.verdict.value).inc()
        metrics.phase_total.labels(phase=PHASE_FAILURE).inc()
        self._log(cr, "scope_check", scope.reason, scope.message, level=logging.WARNING)
        status = build_status(cr.status, PHASE_FAILURE, success=False, reason=scope.reason, message=scope.message)
        self.write_status(body, status, deadline)
        return ReconcileResult(phase=PHASE_FAILURE, scope=scope)

    def record_error(self, body: dict[str, Any], cr: RolloutManager, error: Exception, deadline: Deadline) -> None:
        """Record a failed pass in the Reconciled condition, leaving phases alone."""
        message = sanitize_exception(error)
        self._log(
            cr, "reconcile", "ReconcileFailed", message, level=logging.ERROR,
            error_type=type(error).__name__,
        )
        status = build_status(cr.status, None, success=False, reason=REASON_ERROR_OCCURRED, message=message)
        try:
            self.write_status(body, status, deadline)
        except (ApiException, ReconcileCancelled) as status_error:
            self._log(
                cr, "status", "StatusWriteFailed",
                f"Could not record error in status: {sanitize_exception(status_error)}",
                level=logging.WARNING,
            )

    def write_status(self, body: dict[str, Any], status: dict[str, Any], deadline: Deadline) -> bool:
        """Write the status subresource in one call, only if it changed.

        Returns:
            True if a write was issued
        """
        if status == (body.get("status") or {}):
            return False
        updated = copy.deepcopy(body)
        updated["status"] = status
        self.store.update_status(updated, deadline)
        return True

    def delete_cluster_resources(self, body: dict[str, Any], deadline: Deadline | None = None) -> list[str]:
        """Delete the cluster-scoped objects of a RolloutManager being removed.

        Namespaced objects carry owner references and are garbage collected.
        The ClusterRole/ClusterRoleBinding are removed only when the binding
        grants to this instance's namespace; the aggregate ClusterRoles are
        removed once no other RolloutManager remains.

        Returns:
            ``Kind/name`` of each deleted object
        """
        if deadline is None:
            deadline = Deadline(self.config.reconcile_timeout_seconds)
        cr = RolloutManager.from_dict(body)
        deleted: list[str] = []

        if not cr.namespace_scoped:
            binding = self.store.get(KIND_CLUSTER_ROLE_BINDING, "", DEFAULT_RESOURCE_NAME, deadline)
            subjects = (binding or {}).get("subjects") or []
            if any(s.get("namespace") == cr.namespace for s in subjects):
                for kind in (KIND_CLUSTER_ROLE_BINDING, KIND_CLUSTER_ROLE):
                    if self.store.delete(kind, "", DEFAULT_RESOURCE_NAME, deadline):
                        deleted.append(f"{kind}/{DEFAULT_RESOURCE_NAME}")

        others = [
            item for item in self.store.list(KIND_ROLLOUT_MANAGER, deadline=deadline)
            if ((item.get("metadata") or {}).get("namespace"), (item.get("metadata") or {}).get("name"))
            != (cr.namespace, cr.name)
        ]
        if not others:
            for aggregation_type in AGGREGATION_TYPES:
                name = aggregate_cluster_role_name(aggregation_type)
                if self.store.delete(KIND_CLUSTER_ROLE, "", name, deadline):
                    deleted.append(f"{KIND_CLUSTER_ROLE}/{name}")

        if deleted:
            self._log(cr, "delete", "ClusterResourcesDeleted", f"Deleted {', '.join(deleted)}")
        return deleted
