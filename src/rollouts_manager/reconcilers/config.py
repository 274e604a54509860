"""Reconcilers for the notification Secret and the plugin ConfigMap."""

from __future__ import annotations

from typing import Any

from ..constants import (
    DEFAULT_RESOURCE_NAME,
    KIND_POD,
    KIND_SECRET,
    METRIC_PLUGINS_KEY,
    SELECTOR_KEY,
    TRAFFIC_ROUTER_PLUGINS_KEY,
)
from ..gateway import Deadline
from ..logging import log_object_event
from ..models import RolloutManager
from ..utils.metadata import is_owned_by
from .base import DELETED, SKIPPED, ObjectReconciler

_PLUGIN_KEYS = (TRAFFIC_ROUTER_PLUGINS_KEY, METRIC_PLUGINS_KEY)


class SecretReconciler(ObjectReconciler):
    """Notification Secret.

    When deployment is skipped, an existing Secret is deleted only if this
    RolloutManager owns it. A Secret owned by someone else is never touched.
    """

    managed_fields = (("type",),)
    recreate_fields = frozenset({"type"})
    adopt_foreign = False

    def reconcile(self, cr: RolloutManager, desired: dict[str, Any], deadline: Deadline | None = None) -> str:
        if not cr.spec.skip_notification_secret:
            return super().reconcile(cr, desired, deadline)

        live = self.fetch(desired, deadline)
        if live is None or not is_owned_by(live, cr.name):
            return SKIPPED
        meta = live["metadata"]
        self.store.delete(KIND_SECRET, meta.get("namespace", ""), meta["name"], deadline)
        log_object_event(self.logger, live, "delete", "SkipNotificationSecret", "Deleted notification Secret")
        return DELETED


class ConfigMapReconciler(ObjectReconciler):
    """Plugin ConfigMap; a content change restarts the controller pods."""

    def apply(self, body: dict[str, Any], target: dict[str, Any]) -> dict[str, Any]:
        body = super().apply(body, target)
        data = body.get("data") or {}
        data.update(target["data"])
        body["data"] = data
        return body

    def update(
        self,
        cr: RolloutManager,
        target: dict[str, Any],
        live: dict[str, Any],
        field: str,
        deadline: Deadline | None,
    ) -> str:
        live_data = live.get("data") or {}
        changed = any(live_data.get(key, "") != target["data"][key] for key in _PLUGIN_KEYS)
        outcome = super().update(cr, target, live, field, deadline)
        if changed:
            self.restart_pods(cr, deadline)
        return outcome

    def restart_pods(self, cr: RolloutManager, deadline: Deadline | None) -> int:
        """Delete running controller pods so they pick up the new plugin list.

        A pod that is already gone is ignored; any other error propagates.

        Returns:
            Number of pods deleted
        """
        pods = self.store.list(
            KIND_POD,
            namespace=cr.namespace,
            label_selector=f"{SELECTOR_KEY}={DEFAULT_RESOURCE_NAME}",
            deadline=deadline,
        )
        deleted = 0
        for pod in pods:
            meta = pod.get("metadata") or {}
            if self.store.delete(KIND_POD, cr.namespace, meta.get("name", ""), deadline):
                deleted += 1
        self.logger.info(f"Restarted {deleted} rollouts controller pod(s) in {cr.namespace} after plugin change")
        return deleted
