"""Status phase derivation for a RolloutManager."""

from __future__ import annotations

import copy
from typing import Any

from .constants import (
    PHASE_AVAILABLE,
    PHASE_FAILURE,
    PHASE_PENDING,
    PHASE_UNKNOWN,
)
from .utils.conditions import set_reconciled_condition


def controller_phase(deployment: dict[str, Any] | None) -> str:
    """Phase of the rollouts controller from its Deployment.

    Absent Deployment is Failure. With a replica target set, the phase is
    Available once every replica is ready and Pending until then.
    """
    if deployment is None:
        return PHASE_FAILURE
    replicas = (deployment.get("spec") or {}).get("replicas")
    if replicas is None:
        return PHASE_UNKNOWN
    ready = (deployment.get("status") or {}).get("readyReplicas") or 0
    return PHASE_AVAILABLE if ready == replicas else PHASE_PENDING


def build_status(
    current: dict[str, Any],
    phase: str | None,
    success: bool,
    reason: str | None = None,
    message: str = "",
) -> dict[str, Any]:
    """New status from the current one.

    The RolloutManager phase mirrors the controller phase. A ``phase`` of
    None keeps the phases as they are and only updates the condition.
    """
    status = copy.deepcopy(current or {})
    if phase is not None:
        status["rolloutController"] = phase
        status["phase"] = phase
    else:
        status.setdefault("rolloutController", PHASE_UNKNOWN)
        status.setdefault("phase", PHASE_UNKNOWN)
    status["conditions"] = set_reconciled_condition(
        status.get("conditions") or [], success, reason=reason, message=message
    )
    return status
