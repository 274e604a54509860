"""Cluster-wide scope invariant across RolloutManager instances.

Either exactly one cluster-scoped RolloutManager exists, or any number of
namespace-scoped ones and no cluster-scoped one. The check lists every
instance and decides without a lock, so two cluster-scoped instances
created at the same moment may both pass until each next observes the
other; every reconcile re-runs the check, so the conflict surfaces on the
following pass.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Iterable

from .constants import (
    MSG_UNSUPPORTED_CLUSTER_SCOPED,
    MSG_UNSUPPORTED_CONFIGURATION,
    MSG_UNSUPPORTED_NAMESPACE_SCOPED,
    REASON_INVALID_SCOPE,
    REASON_MULTIPLE_CLUSTER_SCOPED,
)
from .models import RolloutManager


class ScopeVerdict(enum.Enum):
    OK = "OK"
    INVALID_SCOPE = "InvalidScope"
    MULTIPLE_CLUSTER_SCOPED = "MultipleClusterScoped"


@dataclass(frozen=True)
class ScopeResult:
    verdict: ScopeVerdict
    reason: str = ""
    message: str = ""

    @property
    def ok(self) -> bool:
        return self.verdict is ScopeVerdict.OK


SCOPE_OK = ScopeResult(ScopeVerdict.OK)


def check_scope(
    cr: RolloutManager,
    instances: Iterable[RolloutManager],
    namespace_scoped_only: bool,
) -> ScopeResult:
    """Decide whether ``cr`` may be reconciled.

    Args:
        cr: The instance being reconciled
        instances: Every RolloutManager on the cluster (may include ``cr``)
        namespace_scoped_only: Installation-wide scope mode

    Returns:
        ScopeResult with the verdict and, on failure, the condition
        reason/message to record on ``cr``
    """
    if namespace_scoped_only and not cr.namespace_scoped:
        return ScopeResult(ScopeVerdict.INVALID_SCOPE, REASON_INVALID_SCOPE, MSG_UNSUPPORTED_CLUSTER_SCOPED)
    if not namespace_scoped_only and cr.namespace_scoped:
        return ScopeResult(ScopeVerdict.INVALID_SCOPE, REASON_INVALID_SCOPE, MSG_UNSUPPORTED_NAMESPACE_SCOPED)

    others = [rm for rm in instances if (rm.namespace, rm.name) != (cr.namespace, cr.name)]
    if not others:
        return SCOPE_OK

    if not cr.namespace_scoped or any(not rm.namespace_scoped for rm in others):
        return ScopeResult(
            ScopeVerdict.MULTIPLE_CLUSTER_SCOPED,
            REASON_MULTIPLE_CLUSTER_SCOPED,
            MSG_UNSUPPORTED_CONFIGURATION,
        )
    return SCOPE_OK
