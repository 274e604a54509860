"""Shared fixtures: an in-memory object store mimicking the API server."""

from __future__ import annotations

import copy
import itertools
from typing import Any, Callable

import pytest
from kubernetes.client.exceptions import ApiException

from rollouts_manager.config import OperatorConfig
from rollouts_manager.constants import (
    API_GROUP_VERSION,
    CLUSTER_SCOPED_KINDS,
    KIND_DEPLOYMENT,
    KIND_POD,
    KIND_ROLLOUT_MANAGER,
    KIND_SERVICE,
)
from rollouts_manager.controller import RolloutManagerReconciler


def apply_server_defaults(obj: dict[str, Any]) -> None:
    """Fill in fields the API server defaults on write."""
    if obj["kind"] == KIND_DEPLOYMENT:
        spec = obj.setdefault("spec", {})
        spec.setdefault("replicas", 1)
        strategy = spec.setdefault("strategy", {"type": "RollingUpdate"})
        if strategy.get("type") == "RollingUpdate":
            strategy.setdefault("rollingUpdate", {"maxSurge": "25%", "maxUnavailable": "25%"})
        spec.setdefault("revisionHistoryLimit", 10)
        pod_spec = spec.setdefault("template", {}).setdefault("spec", {})
        pod_spec.setdefault("restartPolicy", "Always")
        pod_spec.setdefault("dnsPolicy", "ClusterFirst")
        pod_spec.setdefault("securityContext", {})
        for container in pod_spec.get("containers", []):
            container.setdefault("terminationMessagePath", "/dev/termination-log")
            for port in container.get("ports", []):
                port.setdefault("protocol", "TCP")
            for probe_key in ("livenessProbe", "readinessProbe"):
                http_get = (container.get(probe_key) or {}).get("httpGet")
                if http_get is not None:
                    http_get.setdefault("scheme", "HTTP")
    elif obj["kind"] == KIND_SERVICE:
        spec = obj.setdefault("spec", {})
        spec.setdefault("type", "ClusterIP")
        spec.setdefault("clusterIP", "10.0.0.10")
        spec.setdefault("sessionAffinity", "None")
        for port in spec.get("ports", []):
            port.setdefault("protocol", "TCP")
            port.setdefault("targetPort", port.get("port"))


class FakeObjectStore:
    """Implements the ObjectStore interface over dicts.

    Tracks resource versions, answers missing objects with None (get) or
    False (delete), rejects stale updates and duplicate creates with 409,
    and journals every write in ``writes``.
    """

    def __init__(self) -> None:
        self.objects: dict[tuple[str, str, str], dict[str, Any]] = {}
        self.writes: list[tuple[str, str, str, str]] = []
        self.fail_on: dict[tuple[str, str], ApiException] = {}
        self.service_monitor_crd = False
        self._versions = itertools.count(1)
        self._uids = itertools.count(1)

    def _key(self, kind: str, namespace: str, name: str) -> tuple[str, str, str]:
        return (kind, "" if kind in CLUSTER_SCOPED_KINDS else namespace, name)

    def _check_failure(self, operation: str, kind: str, deadline: Any = None) -> None:
        if deadline is not None:
            deadline.check()
        error = self.fail_on.get((operation, kind))
        if error is not None:
            raise error

    def _record(self, operation: str, obj_or_kind: Any, namespace: str = "", name: str = "") -> None:
        if isinstance(obj_or_kind, dict):
            meta = obj_or_kind["metadata"]
            self.writes.append((operation, obj_or_kind["kind"], meta.get("namespace", ""), meta["name"]))
        else:
            self.writes.append((operation, obj_or_kind, namespace, name))

    # Test helpers

    def put(self, obj: dict[str, Any]) -> dict[str, Any]:
        """Seed an object directly, bypassing the write journal."""
        obj = copy.deepcopy(obj)
        meta = obj.setdefault("metadata", {})
        meta.setdefault("uid", f"uid-{next(self._uids)}")
        meta["resourceVersion"] = str(next(self._versions))
        apply_server_defaults(obj)
        self.objects[self._key(obj["kind"], meta.get("namespace", ""), meta["name"])] = obj
        return copy.deepcopy(obj)

    def peek(self, kind: str, namespace: str, name: str) -> dict[str, Any] | None:
        obj = self.objects.get(self._key(kind, namespace, name))
        return copy.deepcopy(obj) if obj is not None else None

    def writes_for(self, kind: str) -> list[tuple[str, str, str, str]]:
        return [w for w in self.writes if w[1] == kind]

    def add_rollout_manager(
        self,
        name: str,
        namespace: str,
        spec: dict[str, Any] | None = None,
        status: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        body = {
            "apiVersion": API_GROUP_VERSION,
            "kind": KIND_ROLLOUT_MANAGER,
            "metadata": {"name": name, "namespace": namespace},
            "spec": spec or {},
        }
        if status is not None:
            body["status"] = status
        return self.put(body)

    def add_pod(self, name: str, namespace: str) -> dict[str, Any]:
        """Seed a rollouts controller pod."""
        return self.put({
            "apiVersion": "v1",
            "kind": KIND_POD,
            "metadata": {
                "name": name,
                "namespace": namespace,
                "labels": {"app.kubernetes.io/name": "argo-rollouts"},
            },
        })

    def set_ready_replicas(self, namespace: str, ready: int) -> None:
        obj = self.objects[self._key(KIND_DEPLOYMENT, namespace, "argo-rollouts")]
        obj.setdefault("status", {})["readyReplicas"] = ready

    # Gateway interface

    def get(self, kind: str, namespace: str, name: str, deadline: Any = None) -> dict[str, Any] | None:
        self._check_failure("get", kind, deadline)
        return self.peek(kind, namespace, name)

    def list(
        self,
        kind: str,
        namespace: str = "",
        label_selector: str | None = None,
        deadline: Any = None,
    ) -> list[dict[str, Any]]:
        self._check_failure("list", kind, deadline)
        wanted = {}
        if label_selector:
            for term in label_selector.split(","):
                key, _, value = term.partition("=")
                wanted[key] = value
        result = []
        for (obj_kind, obj_namespace, _), obj in sorted(self.objects.items()):
            if obj_kind != kind or (namespace and obj_namespace != namespace):
                continue
            labels = obj["metadata"].get("labels") or {}
            if all(labels.get(k) == v for k, v in wanted.items()):
                result.append(copy.deepcopy(obj))
        return result

    def create(self, obj: dict[str, Any], deadline: Any = None) -> dict[str, Any]:
        self._check_failure("create", obj["kind"], deadline)
        meta = obj["metadata"]
        key = self._key(obj["kind"], meta.get("namespace", ""), meta["name"])
        if key in self.objects:
            raise ApiException(status=409, reason="AlreadyExists")
        self._record("create", obj)
        return self.put(obj)

    def update(self, obj: dict[str, Any], deadline: Any = None) -> dict[str, Any]:
        self._check_failure("update", obj["kind"], deadline)
        meta = obj["metadata"]
        key = self._key(obj["kind"], meta.get("namespace", ""), meta["name"])
        current = self.objects.get(key)
        if current is None:
            raise ApiException(status=404, reason="NotFound")
        if meta.get("resourceVersion") != current["metadata"]["resourceVersion"]:
            raise ApiException(status=409, reason="Conflict")
        self._record("update", obj)
        updated = copy.deepcopy(obj)
        if "status" in current:
            updated["status"] = current["status"]
        return self.put(updated)

    def update_status(self, obj: dict[str, Any], deadline: Any = None) -> dict[str, Any]:
        self._check_failure("update_status", obj["kind"], deadline)
        meta = obj["metadata"]
        key = self._key(obj["kind"], meta.get("namespace", ""), meta["name"])
        current = self.objects.get(key)
        if current is None:
            raise ApiException(status=404, reason="NotFound")
        if meta.get("resourceVersion") != current["metadata"]["resourceVersion"]:
            raise ApiException(status=409, reason="Conflict")
        self._record("update_status", obj)
        current["status"] = copy.deepcopy(obj["status"])
        current["metadata"]["resourceVersion"] = str(next(self._versions))
        return copy.deepcopy(current)

    def delete(self, kind: str, namespace: str, name: str, deadline: Any = None) -> bool:
        self._check_failure("delete", kind, deadline)
        key = self._key(kind, namespace, name)
        if key not in self.objects:
            return False
        self._record("delete", kind, key[1], name)
        del self.objects[key]
        return True

    def service_monitor_supported(self) -> bool:
        return self.service_monitor_crd


@pytest.fixture
def store() -> FakeObjectStore:
    return FakeObjectStore()


@pytest.fixture
def config() -> OperatorConfig:
    return OperatorConfig()


@pytest.fixture
def reconciler(store: FakeObjectStore, config: OperatorConfig) -> RolloutManagerReconciler:
    return RolloutManagerReconciler(store, config)


@pytest.fixture
def as_served() -> Callable[[dict[str, Any]], dict[str, Any]]:
    """Return a function giving the object the API server would hand back after a write."""
    def serve(obj: dict[str, Any]) -> dict[str, Any]:
        served = copy.deepcopy(obj)
        served["metadata"].update({
            "uid": "abc",
            "resourceVersion": "42",
            "creationTimestamp": "2024-01-01T00:00:00Z",
            "managedFields": [{"manager": "kubectl"}],
            "ownerReferences": [{"kind": KIND_ROLLOUT_MANAGER, "name": "rollouts"}],
        })
        apply_server_defaults(served)
        served["status"] = {"observedGeneration": 1}
        return served

    return serve
