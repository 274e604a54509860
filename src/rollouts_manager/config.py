"""Operator configuration derived from the process environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Mapping

from .constants import (
    DEFAULT_OPENSHIFT_ROUTE_PLUGIN_LOCATION,
    ENV_IMAGE,
    ENV_NAMESPACE_SCOPED,
    ENV_OPENSHIFT_ROUTE_PLUGIN_LOCATION,
    PROXY_ENV_KEYS,
)


def case_insensitive_getenv(environ: Mapping[str, str], key: str) -> tuple[str, str] | None:
    """Look up ``key`` in upper case first, then lower case.

    Returns:
        The (name, value) pair that was found, or None
    """
    for candidate in (key, key.lower()):
        value = environ.get(candidate)
        if value:
            return candidate, value
    return None


@dataclass(frozen=True)
class OperatorConfig:
    """Configuration shared by every reconcile pass.

    Built once at startup and passed to each component explicitly.
    """

    image_override: str = ""
    namespace_scoped_only: bool = False
    proxy_env: tuple[tuple[str, str], ...] = ()
    openshift_route_plugin_location: str = DEFAULT_OPENSHIFT_ROUTE_PLUGIN_LOCATION
    service_monitor_supported: bool = False
    metrics_port: int = 8080
    drift_check_interval_seconds: float = 300.0
    pending_requeue_seconds: float = 10.0
    reconcile_timeout_seconds: float = 60.0
    k8s_rate_limit_per_second: float = 10.0

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> "OperatorConfig":
        """Build configuration from environment variables.

        Args:
            environ: Mapping to read from (defaults to ``os.environ``)

        Returns:
            OperatorConfig instance
        """
        env = os.environ if environ is None else environ

        proxy_env = []
        for key in PROXY_ENV_KEYS:
            found = case_insensitive_getenv(env, key)
            if found is not None:
                proxy_env.append(found)

        return cls(
            image_override=env.get(ENV_IMAGE, ""),
            namespace_scoped_only=env.get(ENV_NAMESPACE_SCOPED, "").strip().lower() == "true",
            proxy_env=tuple(proxy_env),
            openshift_route_plugin_location=env.get(
                ENV_OPENSHIFT_ROUTE_PLUGIN_LOCATION, DEFAULT_OPENSHIFT_ROUTE_PLUGIN_LOCATION
            ),
            metrics_port=int(env.get("METRICS_PORT", "8080")),
            drift_check_interval_seconds=float(env.get("DRIFT_CHECK_INTERVAL_SECONDS", "300")),
            pending_requeue_seconds=float(env.get("PENDING_REQUEUE_SECONDS", "10")),
            reconcile_timeout_seconds=float(env.get("RECONCILE_TIMEOUT_SECONDS", "60")),
            k8s_rate_limit_per_second=float(env.get("K8S_RATE_LIMIT_PER_SECOND", "10.0")),
        )

    def with_capabilities(self, service_monitor_supported: bool) -> "OperatorConfig":
        """Return a copy carrying the result of the startup capability probe."""
        return replace(self, service_monitor_supported=service_monitor_supported)
