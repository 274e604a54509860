"""Main entry point for the Argo Rollouts Manager operator."""

from __future__ import annotations

import logging
from typing import Any

import kopf

from . import health, tracing
from . import logging as structured_logging
from .config import OperatorConfig
from .controller import RolloutManagerReconciler
from .gateway import ObjectStore, load_kube_config
from .handlers import rolloutmanager

logger = logging.getLogger(__name__)


def build_controller(config: OperatorConfig) -> RolloutManagerReconciler:
    """Connect to the API server, probe capabilities and build the reconciler."""
    load_kube_config()
    store = ObjectStore(rate_per_second=config.k8s_rate_limit_per_second)
    config = config.with_capabilities(service_monitor_supported=store.service_monitor_supported())
    logger.info(
        f"Operator configured: namespace_scoped_only={config.namespace_scoped_only}, "
        f"service_monitor_supported={config.service_monitor_supported}"
    )
    return RolloutManagerReconciler(store, config)


@kopf.on.startup()
def configure(settings: kopf.OperatorSettings, **_: Any) -> None:
    """Configure the operator."""
    # Set up structured JSON logging
    structured_logging.setup_structured_logging()
    tracing.initialize_tracing()

    # Use annotations so progress bookkeeping never competes with status writes
    settings.persistence.progress_storage = kopf.AnnotationsProgressStorage()
    settings.persistence.diffbase_storage = kopf.AnnotationsDiffBaseStorage()

    settings.posting.level = logging.INFO
    settings.networking.request_timeout = 30.0
    settings.execution.max_workers = 4

    config = OperatorConfig.from_env()
    rolloutmanager.configure_controller(build_controller(config))

    # Metrics and health check endpoints
    health.start_server(config.metrics_port)


def main() -> None:
    """Run the operator for all namespaces."""
    kopf.run(clusterwide=True)


if __name__ == "__main__":
    main()
