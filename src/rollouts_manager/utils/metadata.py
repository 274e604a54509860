"""Label/annotation merge policy and ownership helpers."""

from __future__ import annotations

from typing import Any, Mapping

from ..constants import (
    API_GROUP_VERSION,
    DEFAULT_RESOURCE_NAME,
    KIND_ROLLOUT_MANAGER,
    LABEL_COMPONENT,
    LABEL_NAME,
    LABEL_PART_OF,
)


def merge_string_map(
    live: Mapping[str, str] | None,
    desired: Mapping[str, str] | None,
) -> dict[str, str]:
    """Union of live and desired keys where desired values always win.

    Keys present only on the live object (added by someone else) are kept
    verbatim. Keys the operator manages are reset to the desired value.

    Args:
        live: Labels or annotations currently on the object
        desired: Labels or annotations the operator wants on the object

    Returns:
        New merged mapping (inputs are not modified)
    """
    merged = dict(live or {})
    merged.update(desired or {})
    return merged


def default_labels(name: str = DEFAULT_RESOURCE_NAME) -> dict[str, str]:
    """Labels put on every owned object."""
    return {
        LABEL_NAME: name,
        LABEL_PART_OF: DEFAULT_RESOURCE_NAME,
        LABEL_COMPONENT: DEFAULT_RESOURCE_NAME,
    }


def build_owner_reference(name: str, uid: str) -> dict[str, Any]:
    """Owner reference pointing at a RolloutManager."""
    return {
        "apiVersion": API_GROUP_VERSION,
        "kind": KIND_ROLLOUT_MANAGER,
        "name": name,
        "uid": uid,
        "controller": True,
        "blockOwnerDeletion": True,
    }


def is_owned_by(obj: dict[str, Any], owner_name: str) -> bool:
    """Whether ``obj`` carries an owner reference to the named RolloutManager."""
    for ref in (obj.get("metadata") or {}).get("ownerReferences") or []:
        if ref.get("kind") == KIND_ROLLOUT_MANAGER and ref.get("name") == owner_name:
            return True
    return False
