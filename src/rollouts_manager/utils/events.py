"""Utilities for emitting Kubernetes events."""

from __future__ import annotations

from typing import Any

import kopf

from ..constants import (
    EVENT_REASON_OBJECT_CREATED,
    EVENT_REASON_OBJECT_DELETED,
    EVENT_REASON_OBJECT_UPDATED,
    EVENT_REASON_RECONCILE_FAILED,
    EVENT_REASON_RECONCILE_STARTED,
    EVENT_REASON_RECONCILE_SUCCEEDED,
    EVENT_REASON_RESOURCES_DELETED,
    EVENT_REASON_SCOPE_INVALID,
)


def emit_event(
    body: dict[str, Any],
    reason: str,
    message: str,
    type_: str = "Normal",
) -> None:
    """Emit a Kubernetes event.

    Args:
        body: Resource body (or metadata carrying apiVersion/kind/uid)
        reason: Event reason
        message: Event message
        type_: Event type (Normal or Warning)
    """
    kopf.event(
        body,
        reason=reason,
        message=message,
        type=type_,
    )


def emit_reconcile_started(body: dict[str, Any]) -> None:
    """Emit reconcile started event."""
    emit_event(body, EVENT_REASON_RECONCILE_STARTED, "Reconciliation started")


def emit_reconcile_succeeded(body: dict[str, Any], phase: str) -> None:
    """Emit reconcile succeeded event."""
    emit_event(body, EVENT_REASON_RECONCILE_SUCCEEDED, f"Reconciliation succeeded, phase {phase}")


def emit_reconcile_failed(body: dict[str, Any], message: str) -> None:
    """Emit reconcile failed event."""
    emit_event(body, EVENT_REASON_RECONCILE_FAILED, message, type_="Warning")


def emit_scope_invalid(body: dict[str, Any], message: str) -> None:
    """Emit scope invariant violation event."""
    emit_event(body, EVENT_REASON_SCOPE_INVALID, message, type_="Warning")


def emit_resources_deleted(body: dict[str, Any], names: list[str]) -> None:
    """Emit cluster-scoped resources deleted event."""
    emit_event(body, EVENT_REASON_RESOURCES_DELETED, f"Deleted {', '.join(names)}")


_OBJECT_EVENT_REASONS = {
    "created": (EVENT_REASON_OBJECT_CREATED, "Created"),
    "updated": (EVENT_REASON_OBJECT_UPDATED, "Updated"),
    "recreated": (EVENT_REASON_OBJECT_UPDATED, "Recreated"),
    "deleted": (EVENT_REASON_OBJECT_DELETED, "Deleted"),
}


def emit_object_changes(body: dict[str, Any], outcomes: dict[str, str]) -> None:
    """Emit one event per owned object that was written during a pass.

    Args:
        body: RolloutManager body
        outcomes: Mapping of ``Kind/name`` to the reconciler outcome
    """
    for key in sorted(outcomes):
        reason = _OBJECT_EVENT_REASONS.get(outcomes[key])
        if reason is None:
            continue
        emit_event(body, reason[0], f"{reason[1]} {key}")
