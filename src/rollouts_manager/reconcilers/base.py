"""Generic create / no-op / update flow shared by every owned kind."""

from __future__ import annotations

import copy
import logging
from typing import Any

from .. import metrics
from ..compare import diff, field_differs, normalize
from ..constants import CLUSTER_SCOPED_KINDS
from ..gateway import Deadline
from ..logging import log_object_event
from ..models import RolloutManager
from ..utils.errors import NormalizationError
from ..utils.metadata import build_owner_reference, is_owned_by, merge_string_map

# Outcomes of one object step
CREATED = "created"
UPDATED = "updated"
RECREATED = "recreated"
UNCHANGED = "unchanged"
DELETED = "deleted"
SKIPPED = "skipped"

UNNORMALIZABLE = "<unnormalizable>"


def get_path(obj: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def set_path(obj: dict[str, Any], keys: tuple[str, ...], value: Any) -> None:
    """Set a nested key, creating parents; None removes the key."""
    *parents, last = keys
    for key in parents:
        if not isinstance(obj.get(key), dict):
            obj[key] = {}
        obj = obj[key]
    if value is None:
        obj.pop(last, None)
    else:
        obj[last] = copy.deepcopy(value)


class ObjectReconciler:
    """Drive one owned object toward its desired form.

    Absent objects are created (with an owner reference when namespaced).
    Present objects are normalized and diffed against the desired form
    after merging in any labels/annotations someone else added; on a
    difference the managed fields are copied onto the live body and written
    back in a single update carrying the live resourceVersion.
    """

    # Paths copied from the desired object onto the live body on update
    managed_fields: tuple[tuple[str, ...], ...] = ()
    # Fields the API server treats as immutable; a diff on them recreates
    recreate_fields: frozenset[str] = frozenset()
    # Whether to take over a same-named object that has no owner reference to us
    adopt_foreign = True

    def __init__(self, store: Any, logger: logging.Logger | None = None):
        self.store = store
        self.logger = logger or logging.getLogger(__name__)

    def reconcile(self, cr: RolloutManager, desired: dict[str, Any], deadline: Deadline | None = None) -> str:
        """Bring the object described by ``desired`` in line.

        Returns:
            One of the outcome constants of this module
        """
        self.check_consistency(desired)
        live = self.fetch(desired, deadline)
        if live is None:
            return self.create(cr, desired, deadline)
        if not self.adopt_foreign and not is_owned_by(live, cr.name):
            log_object_event(
                self.logger, live, "skip", "NotOwned",
                f"{desired['kind']} exists but is not owned by RolloutManager {cr.name}, leaving it untouched",
            )
            return SKIPPED
        return self.sync(cr, desired, live, deadline)

    def fetch(self, desired: dict[str, Any], deadline: Deadline | None) -> dict[str, Any] | None:
        meta = desired["metadata"]
        return self.store.get(desired["kind"], meta.get("namespace", ""), meta["name"], deadline)

    def check_consistency(self, desired: dict[str, Any]) -> None:
        """Log loudly if the desired object is not already in normal form."""
        try:
            consistent = normalize(desired) == desired
        except NormalizationError as e:
            consistent = False
            self.logger.error(f"Normalizing desired {desired['kind']} failed: {e}")
        if not consistent:
            metrics.consistency_check_failures_total.labels(kind=desired["kind"]).inc()
            log_object_event(
                self.logger, desired, "consistency_check", "NormalFormMismatch",
                "Desired object changes under normalization", level=logging.ERROR,
            )

    def create(self, cr: RolloutManager, desired: dict[str, Any], deadline: Deadline | None) -> str:
        body = copy.deepcopy(desired)
        if desired["kind"] not in CLUSTER_SCOPED_KINDS:
            body["metadata"]["ownerReferences"] = [build_owner_reference(cr.name, cr.uid)]
        self.store.create(body, deadline)
        log_object_event(self.logger, body, "create", "Created", f"Created {desired['kind']}")
        return CREATED

    def merge_metadata(self, target: dict[str, Any], live: dict[str, Any]) -> None:
        """Keep labels/annotations added by others on the desired view."""
        for key in ("labels", "annotations"):
            target["metadata"][key] = merge_string_map(
                (live.get("metadata") or {}).get(key), target["metadata"].get(key)
            )

    def sync(
        self,
        cr: RolloutManager,
        desired: dict[str, Any],
        live: dict[str, Any],
        deadline: Deadline | None,
    ) -> str:
        target = copy.deepcopy(desired)
        self.merge_metadata(target, live)

        try:
            live_view = normalize(live)
        except NormalizationError as e:
            log_object_event(
                self.logger, live, "normalize", "NormalizationFailed",
                f"Cannot normalize live object, assuming it differs: {e}", level=logging.WARNING,
            )
            field = UNNORMALIZABLE
            live_view = live
        else:
            field = diff(target, live_view)
            if field is None:
                if target != live_view:
                    log_object_event(
                        self.logger, live, "consistency_check", "DiffMismatch",
                        "No differing field found but objects are not equal", level=logging.ERROR,
                    )
                return UNCHANGED

        metrics.drift_detected_total.labels(kind=desired["kind"], field=field).inc()
        log_object_event(
            self.logger, live, "drift", "DriftDetected",
            f"{desired['kind']} differs from desired state", field=field,
        )
        immutable = [name for name in sorted(self.recreate_fields) if field_differs(name, target, live_view)]
        if immutable:
            log_object_event(
                self.logger, live, "drift", "ImmutableFieldChanged",
                f"{desired['kind']} immutable field changed, recreating", field=immutable[0],
            )
            return self.recreate(cr, target, live, deadline)
        return self.update(cr, target, live, field, deadline)

    def apply(self, body: dict[str, Any], target: dict[str, Any]) -> dict[str, Any]:
        """Copy the managed fields of ``target`` onto a live ``body``."""
        for key in ("labels", "annotations"):
            body.setdefault("metadata", {})[key] = dict(target["metadata"][key])
        for keys in self.managed_fields:
            set_path(body, keys, get_path(target, keys))
        return body

    def update(
        self,
        cr: RolloutManager,
        target: dict[str, Any],
        live: dict[str, Any],
        field: str,
        deadline: Deadline | None,
    ) -> str:
        body = self.apply(copy.deepcopy(live), target)
        self.store.update(body, deadline)
        log_object_event(self.logger, body, "update", "Updated", f"Updated {target['kind']}", field=field)
        return UPDATED

    def recreate(
        self,
        cr: RolloutManager,
        target: dict[str, Any],
        live: dict[str, Any],
        deadline: Deadline | None,
    ) -> str:
        meta = live["metadata"]
        self.store.delete(target["kind"], meta.get("namespace", ""), meta["name"], deadline)
        log_object_event(self.logger, live, "delete", "Recreating", f"Deleted {target['kind']} to recreate it")
        self.create(cr, target, deadline)
        return RECREATED
