"""Object metadata shared by every synthesized object."""

from __future__ import annotations

from typing import Any

from ..models import RolloutManager
from ..utils.metadata import default_labels


def build_labels(cr: RolloutManager, overrides: dict[str, str] | None = None) -> dict[str, str]:
    """Default labels, then per-object overrides, then the CR's additional labels."""
    labels = default_labels()
    labels.update(overrides or {})
    labels.update(cr.spec.additional_labels)
    return labels


def build_metadata(
    cr: RolloutManager,
    name: str,
    namespaced: bool = True,
    labels: dict[str, str] | None = None,
) -> dict[str, Any]:
    """Build ``metadata`` for an owned object.

    Args:
        cr: Owning RolloutManager
        name: Object name
        namespaced: False for cluster-scoped kinds (no namespace key)
        labels: Labels overriding the defaults for this object

    Returns:
        Metadata dict in normal form (labels and annotations always present)
    """
    meta: dict[str, Any] = {"name": name}
    if namespaced:
        meta["namespace"] = cr.namespace
    meta["labels"] = build_labels(cr, labels)
    meta["annotations"] = dict(cr.spec.additional_annotations)
    return meta
