"""Reconcilers for the ServiceAccount, roles and role bindings."""

from __future__ import annotations

from typing import Any

from ..constants import (
    DEFAULT_RESOURCE_NAME,
    KIND_CLUSTER_ROLE,
    KIND_CLUSTER_ROLE_BINDING,
    KIND_ROLE,
    KIND_ROLE_BINDING,
)
from ..gateway import Deadline
from ..logging import log_object_event
from ..models import RolloutManager
from ..utils.metadata import is_owned_by
from .base import ObjectReconciler


class ServiceAccountReconciler(ObjectReconciler):
    pass


class RoleReconciler(ObjectReconciler):
    """Role, ClusterRole and the aggregate ClusterRoles."""

    managed_fields = (("rules",),)


class RoleBindingReconciler(ObjectReconciler):
    """RoleBinding or ClusterRoleBinding; roleRef cannot be changed in place."""

    managed_fields = (("roleRef",), ("subjects",))
    recreate_fields = frozenset({"roleRef"})


def cleanup_stale_scope(store: Any, cr: RolloutManager, deadline: Deadline | None = None, logger: Any = None) -> list[str]:
    """Delete RBAC objects left behind by the instance's previous scope.

    A namespace-scoped instance removes the ClusterRole/ClusterRoleBinding
    whose binding grants to its own namespace's ServiceAccount. A
    cluster-scoped instance removes the Role/RoleBinding it owns in its
    namespace.

    Returns:
        Kinds of the objects that were deleted
    """
    deleted: list[str] = []
    if cr.namespace_scoped:
        binding = store.get(KIND_CLUSTER_ROLE_BINDING, "", DEFAULT_RESOURCE_NAME, deadline)
        if binding is None:
            return deleted
        subjects = binding.get("subjects") or []
        if not any(s.get("namespace") == cr.namespace for s in subjects):
            return deleted
        for kind in (KIND_CLUSTER_ROLE_BINDING, KIND_CLUSTER_ROLE):
            if store.delete(kind, "", DEFAULT_RESOURCE_NAME, deadline):
                deleted.append(kind)
    else:
        for kind in (KIND_ROLE_BINDING, KIND_ROLE):
            live = store.get(kind, cr.namespace, DEFAULT_RESOURCE_NAME, deadline)
            if live is not None and is_owned_by(live, cr.name):
                store.delete(kind, cr.namespace, DEFAULT_RESOURCE_NAME, deadline)
                deleted.append(kind)

    if logger is not None:
        for kind in deleted:
            log_object_event(
                logger,
                {"kind": kind, "metadata": {"name": DEFAULT_RESOURCE_NAME, "namespace": cr.namespace}},
                "delete", "StaleScope", f"Deleted {kind} left over from the previous scope",
            )
    return deleted
