"""Reconciler for the rollouts controller Deployment."""

from __future__ import annotations

from typing import Any

from ..utils.metadata import merge_string_map
from .base import ObjectReconciler

_POD_SPEC = ("spec", "template", "spec")


class DeploymentReconciler(ObjectReconciler):
    """The selector is immutable, so a selector change deletes and recreates."""

    managed_fields = (
        ("spec", "replicas"),
        ("spec", "selector"),
        ("spec", "strategy"),
        ("spec", "template", "metadata", "labels"),
        ("spec", "template", "metadata", "annotations"),
        _POD_SPEC + ("serviceAccountName",),
        _POD_SPEC + ("containers",),
        _POD_SPEC + ("nodeSelector",),
        _POD_SPEC + ("tolerations",),
        _POD_SPEC + ("affinity",),
        _POD_SPEC + ("securityContext",),
        _POD_SPEC + ("volumes",),
    )
    recreate_fields = frozenset({"selector"})

    def merge_metadata(self, target: dict[str, Any], live: dict[str, Any]) -> None:
        super().merge_metadata(target, live)
        live_template = ((live.get("spec") or {}).get("template") or {}).get("metadata") or {}
        target_template = target["spec"]["template"]["metadata"]
        for key in ("labels", "annotations"):
            target_template[key] = merge_string_map(live_template.get(key), target_template.get(key))
