"""Utilities for managing Kubernetes conditions."""

from __future__ import annotations

import copy
from datetime import datetime, timezone
from typing import Any

from ..constants import (
    COND_RECONCILED,
    REASON_ERROR_OCCURRED,
    REASON_SUCCESS,
)


def now_iso() -> str:
    """Return current UTC time in the RFC 3339 form used by Kubernetes."""
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def update_condition(
    conditions: list[dict[str, Any]],
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    now: str | None = None,
) -> list[dict[str, Any]]:
    """Update or add a condition to the conditions list.

    At most one condition per type is kept. The existing entry is replaced in
    place, and lastTransitionTime only moves when status, reason or message
    actually changed.

    Args:
        conditions: List of existing conditions (not modified)
        condition_type: Type of condition
        status: Status of condition ("True", "False", "Unknown")
        reason: Reason for the condition
        message: Human-readable message
        now: Timestamp to use for a transition (defaults to the current time)

    Returns:
        Updated list of conditions
    """
    result: list[dict[str, Any]] = []
    found = False

    for cond in conditions:
        if cond.get("type") != condition_type:
            result.append(copy.deepcopy(cond))
            continue
        if found:
            # Collapse duplicates written by older versions
            continue
        found = True
        unchanged = (
            cond.get("status") == status
            and cond.get("reason") == reason
            and cond.get("message", "") == message
        )
        if unchanged and cond.get("lastTransitionTime"):
            result.append(copy.deepcopy(cond))
        else:
            result.append(_make_condition(condition_type, status, reason, message, now))

    if not found:
        result.append(_make_condition(condition_type, status, reason, message, now))

    return result


def _make_condition(
    condition_type: str,
    status: str,
    reason: str,
    message: str,
    now: str | None,
) -> dict[str, Any]:
    return {
        "type": condition_type,
        "status": status,
        "reason": reason,
        "message": message,
        "lastTransitionTime": now or now_iso(),
    }


def set_reconciled_condition(
    conditions: list[dict[str, Any]],
    success: bool,
    reason: str | None = None,
    message: str = "",
) -> list[dict[str, Any]]:
    """Set the Reconciled condition."""
    if reason is None:
        reason = REASON_SUCCESS if success else REASON_ERROR_OCCURRED
    return update_condition(
        conditions,
        COND_RECONCILED,
        "True" if success else "False",
        reason,
        message,
    )
