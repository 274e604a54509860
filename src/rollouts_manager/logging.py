"""Structured logging configuration for the Argo Rollouts Manager."""

import json
import logging
import os
import sys
from typing import Any

from .utils.context import get_context_dict
from .utils.errors import sanitize_dict

CONTROLLER_NAME = "argo-rollouts-manager"


def setup_structured_logging() -> None:
    """Configure structured JSON logging."""
    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def log_resource_event(
    logger: logging.Logger,
    controller: str,
    resource_kind: str,
    resource_name: str,
    namespace: str,
    uid: str,
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured resource event."""
    log_data = {
        "controller": controller,
        "resource": resource_kind,
        "name": resource_name,
        "namespace": namespace,
        "uid": uid,
        "event": event,
        "reason": reason,
        "message": message,
    }
    log_data.update(get_context_dict())
    log_data.update(sanitize_dict(kwargs))
    logger.log(level, json.dumps(log_data, default=str))


def log_object_event(
    logger: logging.Logger,
    obj: dict[str, Any],
    event: str,
    reason: str,
    message: str,
    level: int = logging.INFO,
    **kwargs: Any,
) -> None:
    """Log a structured event about a Kubernetes object given as a dict."""
    metadata = obj.get("metadata") or {}
    log_resource_event(
        logger,
        controller=CONTROLLER_NAME,
        resource_kind=obj.get("kind", "unknown"),
        resource_name=metadata.get("name", "unknown"),
        namespace=metadata.get("namespace", ""),
        uid=metadata.get("uid", ""),
        event=event,
        reason=reason,
        message=message,
        level=level,
        **kwargs,
    )
