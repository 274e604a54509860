"""Object store gateway built on the official Kubernetes client.

Objects cross this boundary as plain camelCase dicts, the same shape the
API server serves as JSON. ``get`` returns None when the object does not
exist; every other API error propagates as ``ApiException``.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from kubernetes import client, config
from kubernetes.client.exceptions import ApiException

from . import metrics
from .constants import (
    API_GROUP,
    API_VERSION,
    KIND_CLUSTER_ROLE,
    KIND_CLUSTER_ROLE_BINDING,
    KIND_CONFIG_MAP,
    KIND_DEPLOYMENT,
    KIND_POD,
    KIND_ROLE,
    KIND_ROLE_BINDING,
    KIND_ROLLOUT_MANAGER,
    KIND_SECRET,
    KIND_SERVICE,
    KIND_SERVICE_ACCOUNT,
    KIND_SERVICE_MONITOR,
    MONITORING_API_GROUP,
    MONITORING_API_VERSION,
    PLURAL_ROLLOUT_MANAGER,
    SERVICE_MONITOR_CRD_NAME,
    SERVICE_MONITOR_PLURAL,
)
from .utils.errors import ReconcileCancelled
from .utils.rate_limit import Throttle

logger = logging.getLogger(__name__)


class Deadline:
    """Time budget shared by every object store call of one reconcile pass."""

    def __init__(self, timeout_seconds: float | None, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._expires_at = None if timeout_seconds is None else clock() + timeout_seconds

    @classmethod
    def never(cls) -> "Deadline":
        return cls(None)

    def remaining(self) -> float | None:
        """Seconds left, or None for an unbounded deadline."""
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        remaining = self.remaining()
        return remaining is not None and remaining <= 0

    def check(self) -> None:
        """Raise ReconcileCancelled if the budget is used up."""
        if self.expired:
            raise ReconcileCancelled("reconcile deadline exceeded")


@dataclass(frozen=True)
class _KindRoute:
    """How one kind maps onto the generated client's API groups."""

    api: str
    resource: str
    namespaced: bool = True
    group: str = ""
    version: str = ""
    plural: str = ""

    @property
    def custom(self) -> bool:
        return self.api == "custom"


_ROUTES: dict[str, _KindRoute] = {
    KIND_SERVICE_ACCOUNT: _KindRoute("core", "service_account"),
    KIND_SERVICE: _KindRoute("core", "service"),
    KIND_SECRET: _KindRoute("core", "secret"),
    KIND_CONFIG_MAP: _KindRoute("core", "config_map"),
    KIND_POD: _KindRoute("core", "pod"),
    KIND_DEPLOYMENT: _KindRoute("apps", "deployment"),
    KIND_ROLE: _KindRoute("rbac", "role"),
    KIND_ROLE_BINDING: _KindRoute("rbac", "role_binding"),
    KIND_CLUSTER_ROLE: _KindRoute("rbac", "cluster_role", namespaced=False),
    KIND_CLUSTER_ROLE_BINDING: _KindRoute("rbac", "cluster_role_binding", namespaced=False),
    KIND_ROLLOUT_MANAGER: _KindRoute(
        "custom", "rollout_manager", group=API_GROUP, version=API_VERSION, plural=PLURAL_ROLLOUT_MANAGER
    ),
    KIND_SERVICE_MONITOR: _KindRoute(
        "custom",
        "service_monitor",
        group=MONITORING_API_GROUP,
        version=MONITORING_API_VERSION,
        plural=SERVICE_MONITOR_PLURAL,
    ),
}


def load_kube_config() -> None:
    """Load in-cluster configuration, falling back to the local kubeconfig."""
    try:
        config.load_incluster_config()
    except config.ConfigException:
        config.load_kube_config()


class ObjectStore:
    """Get/List/Create/Update/Delete against the Kubernetes API server."""

    def __init__(self, api_client: client.ApiClient | None = None, rate_per_second: float = 10.0):
        self.api_client = api_client or client.ApiClient()
        self.core = client.CoreV1Api(self.api_client)
        self.apps = client.AppsV1Api(self.api_client)
        self.rbac = client.RbacAuthorizationV1Api(self.api_client)
        self.custom = client.CustomObjectsApi(self.api_client)
        self.extensions = client.ApiextensionsV1Api(self.api_client)
        self.throttle = Throttle(rate_per_second)

    def _route(self, kind: str) -> _KindRoute:
        try:
            return _ROUTES[kind]
        except KeyError:
            raise ValueError(f"unsupported kind {kind}") from None

    def _typed_method(self, route: _KindRoute, verb: str) -> Callable[..., Any]:
        scope = "namespaced_" if route.namespaced else ""
        return getattr(getattr(self, route.api), f"{verb}_{scope}{route.resource}")

    def _call(
        self,
        operation: str,
        func: Callable[..., Any],
        deadline: Deadline | None,
        **kwargs: Any,
    ) -> Any:
        """Issue one API call with throttling, deadline and metrics."""
        if deadline is not None:
            deadline.check()
            remaining = deadline.remaining()
            if remaining is not None:
                kwargs["_request_timeout"] = remaining
        self.throttle.wait()

        start_time = time.time()
        try:
            result = func(**kwargs)
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result="success").inc()
            return result
        except ApiException as e:
            result_label = "not_found" if e.status == 404 else "error"
            metrics.api_call_total.labels(api_type="k8s", operation=operation, result=result_label).inc()
            raise
        finally:
            duration = time.time() - start_time
            metrics.api_call_duration_seconds.labels(api_type="k8s", operation=operation).observe(duration)

    def _to_dict(self, obj: Any) -> dict[str, Any]:
        if isinstance(obj, dict):
            return obj
        return self.api_client.sanitize_for_serialization(obj)

    def _with_kind(self, kind: str, obj: dict[str, Any]) -> dict[str, Any]:
        # Typed reads leave apiVersion/kind unset
        obj.setdefault("kind", kind)
        return obj

    def get(
        self,
        kind: str,
        namespace: str,
        name: str,
        deadline: Deadline | None = None,
    ) -> dict[str, Any] | None:
        """Fetch an object, or None if it does not exist."""
        route = self._route(kind)
        try:
            if route.custom:
                obj = self._call(
                    f"get_{route.resource}",
                    self.custom.get_namespaced_custom_object,
                    deadline,
                    group=route.group,
                    version=route.version,
                    namespace=namespace,
                    plural=route.plural,
                    name=name,
                )
            elif route.namespaced:
                obj = self._call(
                    f"get_{route.resource}",
                    self._typed_method(route, "read"),
                    deadline,
                    name=name,
                    namespace=namespace,
                )
            else:
                obj = self._call(f"get_{route.resource}", self._typed_method(route, "read"), deadline, name=name)
        except ApiException as e:
            if e.status == 404:
                return None
            raise
        return self._with_kind(kind, self._to_dict(obj))

    def list(
        self,
        kind: str,
        namespace: str = "",
        label_selector: str | None = None,
        deadline: Deadline | None = None,
    ) -> list[dict[str, Any]]:
        """List objects of a kind; an empty namespace lists cluster-wide."""
        route = self._route(kind)
        kwargs: dict[str, Any] = {}
        if label_selector:
            kwargs["label_selector"] = label_selector

        if route.custom:
            if namespace:
                result = self._call(
                    f"list_{route.resource}",
                    self.custom.list_namespaced_custom_object,
                    deadline,
                    group=route.group,
                    version=route.version,
                    namespace=namespace,
                    plural=route.plural,
                    **kwargs,
                )
            else:
                result = self._call(
                    f"list_{route.resource}",
                    self.custom.list_cluster_custom_object,
                    deadline,
                    group=route.group,
                    version=route.version,
                    plural=route.plural,
                    **kwargs,
                )
            return [self._with_kind(kind, item) for item in result.get("items", [])]

        api = getattr(self, route.api)
        if not route.namespaced:
            func = getattr(api, f"list_{route.resource}")
        elif namespace:
            func = getattr(api, f"list_namespaced_{route.resource}")
            kwargs["namespace"] = namespace
        else:
            func = getattr(api, f"list_{route.resource}_for_all_namespaces")
        result = self._call(f"list_{route.resource}", func, deadline, **kwargs)
        return [self._with_kind(kind, self._to_dict(item)) for item in result.items]

    def create(self, obj: dict[str, Any], deadline: Deadline | None = None) -> dict[str, Any]:
        """Create an object; 409 AlreadyExists propagates."""
        kind = obj["kind"]
        route = self._route(kind)
        meta = obj.get("metadata") or {}
        metrics.resource_operations_total.labels(kind=kind, operation="create").inc()
        if route.custom:
            created = self._call(
                f"create_{route.resource}",
                self.custom.create_namespaced_custom_object,
                deadline,
                group=route.group,
                version=route.version,
                namespace=meta.get("namespace", ""),
                plural=route.plural,
                body=obj,
            )
        elif route.namespaced:
            created = self._call(
                f"create_{route.resource}",
                self._typed_method(route, "create"),
                deadline,
                namespace=meta.get("namespace", ""),
                body=obj,
            )
        else:
            created = self._call(f"create_{route.resource}", self._typed_method(route, "create"), deadline, body=obj)
        return self._with_kind(kind, self._to_dict(created))

    def update(self, obj: dict[str, Any], deadline: Deadline | None = None) -> dict[str, Any]:
        """Replace an object.

        The body must carry the ``metadata.resourceVersion`` it was read at;
        a stale version is rejected by the server with 409 Conflict.
        """
        kind = obj["kind"]
        route = self._route(kind)
        meta = obj.get("metadata") or {}
        metrics.resource_operations_total.labels(kind=kind, operation="update").inc()
        if route.custom:
            updated = self._call(
                f"update_{route.resource}",
                self.custom.replace_namespaced_custom_object,
                deadline,
                group=route.group,
                version=route.version,
                namespace=meta.get("namespace", ""),
                plural=route.plural,
                name=meta["name"],
                body=obj,
            )
        elif route.namespaced:
            updated = self._call(
                f"update_{route.resource}",
                self._typed_method(route, "replace"),
                deadline,
                name=meta["name"],
                namespace=meta.get("namespace", ""),
                body=obj,
            )
        else:
            updated = self._call(
                f"update_{route.resource}",
                self._typed_method(route, "replace"),
                deadline,
                name=meta["name"],
                body=obj,
            )
        return self._with_kind(kind, self._to_dict(updated))

    def delete(
        self,
        kind: str,
        namespace: str,
        name: str,
        deadline: Deadline | None = None,
    ) -> bool:
        """Delete an object.

        Returns:
            False if the object was already gone, True otherwise
        """
        route = self._route(kind)
        metrics.resource_operations_total.labels(kind=kind, operation="delete").inc()
        try:
            if route.custom:
                self._call(
                    f"delete_{route.resource}",
                    self.custom.delete_namespaced_custom_object,
                    deadline,
                    group=route.group,
                    version=route.version,
                    namespace=namespace,
                    plural=route.plural,
                    name=name,
                )
            elif route.namespaced:
                self._call(
                    f"delete_{route.resource}",
                    self._typed_method(route, "delete"),
                    deadline,
                    name=name,
                    namespace=namespace,
                )
            else:
                self._call(f"delete_{route.resource}", self._typed_method(route, "delete"), deadline, name=name)
        except ApiException as e:
            if e.status == 404:
                return False
            raise
        return True

    def update_status(self, obj: dict[str, Any], deadline: Deadline | None = None) -> dict[str, Any]:
        """Write the status subresource of a RolloutManager."""
        meta = obj["metadata"]
        return self._call(
            "update_rollout_manager_status",
            self.custom.replace_namespaced_custom_object_status,
            deadline,
            group=API_GROUP,
            version=API_VERSION,
            namespace=meta["namespace"],
            plural=PLURAL_ROLLOUT_MANAGER,
            name=meta["name"],
            body=obj,
        )

    def service_monitor_supported(self) -> bool:
        """Probe once for the ServiceMonitor CRD."""
        try:
            self._call(
                "get_crd",
                self.extensions.read_custom_resource_definition,
                None,
                name=SERVICE_MONITOR_CRD_NAME,
            )
        except ApiException as e:
            if e.status == 404:
                logger.info(f"CRD {SERVICE_MONITOR_CRD_NAME} not found, ServiceMonitor support disabled")
                return False
            raise
        return True
