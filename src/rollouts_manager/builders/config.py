"""Builders for the notification Secret and the plugin ConfigMap."""

from __future__ import annotations

from typing import Any, Iterable

import yaml

from ..config import OperatorConfig
from ..constants import (
    DEFAULT_CONFIG_MAP_NAME,
    DEFAULT_NOTIFICATION_SECRET_NAME,
    KIND_CONFIG_MAP,
    KIND_SECRET,
    METRIC_PLUGINS_KEY,
    OPENSHIFT_ROUTE_PLUGIN_NAME,
    TRAFFIC_ROUTER_PLUGINS_KEY,
)
from ..models import PluginSpec, RolloutManager
from ..utils.errors import PluginLocationError, ReservedPluginError
from .metadata import build_metadata


def build_notification_secret(cr: RolloutManager) -> dict[str, Any]:
    return {
        "apiVersion": "v1",
        "kind": KIND_SECRET,
        "metadata": build_metadata(cr, DEFAULT_NOTIFICATION_SECRET_NAME),
        "type": "Opaque",
    }


def _user_plugins(plugins: Iterable[PluginSpec]) -> list[PluginSpec]:
    """Validate user plugins and drop repeated names (first occurrence wins)."""
    seen: set[str] = set()
    result = []
    for plugin in plugins:
        if plugin.name == OPENSHIFT_ROUTE_PLUGIN_NAME:
            raise ReservedPluginError(plugin.name)
        if not plugin.location:
            raise PluginLocationError(plugin.name)
        if plugin.name in seen:
            continue
        seen.add(plugin.name)
        result.append(plugin)
    return result


def dump_plugins(plugins: Iterable[PluginSpec]) -> str:
    return yaml.safe_dump([p.to_dict() for p in plugins], default_flow_style=False, sort_keys=False)


def build_plugin_config_map(cr: RolloutManager, config: OperatorConfig) -> dict[str, Any]:
    """ConfigMap listing the plugins the controller downloads at startup.

    The built-in route plugin always comes first and cannot be redefined.

    Raises:
        ReservedPluginError: If a user plugin reuses the built-in plugin's name
        PluginLocationError: If a plugin has no location
    """
    if not config.openshift_route_plugin_location:
        raise PluginLocationError(OPENSHIFT_ROUTE_PLUGIN_NAME)

    traffic = [PluginSpec(OPENSHIFT_ROUTE_PLUGIN_NAME, config.openshift_route_plugin_location)]
    traffic.extend(_user_plugins(cr.spec.traffic_management_plugins))
    metric = _user_plugins(cr.spec.metric_plugins)

    return {
        "apiVersion": "v1",
        "kind": KIND_CONFIG_MAP,
        "metadata": build_metadata(cr, DEFAULT_CONFIG_MAP_NAME),
        "data": {
            TRAFFIC_ROUTER_PLUGINS_KEY: dump_plugins(traffic),
            METRIC_PLUGINS_KEY: dump_plugins(metric),
        },
    }
