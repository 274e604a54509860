"""Constants for the Argo Rollouts Manager."""

# API Group
API_GROUP = "argoproj.io"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_ROLLOUT_MANAGER = "RolloutManager"
PLURAL_ROLLOUT_MANAGER = "rolloutmanagers"

KIND_SERVICE_ACCOUNT = "ServiceAccount"
KIND_ROLE = "Role"
KIND_CLUSTER_ROLE = "ClusterRole"
KIND_ROLE_BINDING = "RoleBinding"
KIND_CLUSTER_ROLE_BINDING = "ClusterRoleBinding"
KIND_DEPLOYMENT = "Deployment"
KIND_SERVICE = "Service"
KIND_SECRET = "Secret"
KIND_CONFIG_MAP = "ConfigMap"
KIND_POD = "Pod"
KIND_SERVICE_MONITOR = "ServiceMonitor"

CLUSTER_SCOPED_KINDS = frozenset({KIND_CLUSTER_ROLE, KIND_CLUSTER_ROLE_BINDING})

RBAC_API_GROUP = "rbac.authorization.k8s.io"
RBAC_API_VERSION = f"{RBAC_API_GROUP}/v1"

MONITORING_API_GROUP = "monitoring.coreos.com"
MONITORING_API_VERSION = "v1"
SERVICE_MONITOR_PLURAL = "servicemonitors"
SERVICE_MONITOR_CRD_NAME = f"{SERVICE_MONITOR_PLURAL}.{MONITORING_API_GROUP}"

# Owned object names
DEFAULT_RESOURCE_NAME = "argo-rollouts"
DEFAULT_METRICS_SERVICE_NAME = "argo-rollouts-metrics"
DEFAULT_NOTIFICATION_SECRET_NAME = "argo-rollouts-notification-secret"  # nosec
DEFAULT_CONFIG_MAP_NAME = "argo-rollouts-config"
AGGREGATION_TYPES = ("aggregate-to-admin", "aggregate-to-edit", "aggregate-to-view")

# Controller image
DEFAULT_IMAGE = "quay.io/argoproj/argo-rollouts"
DEFAULT_VERSION = "v1.6.6"

# Labels
LABEL_NAME = "app.kubernetes.io/name"
LABEL_PART_OF = "app.kubernetes.io/part-of"
LABEL_COMPONENT = "app.kubernetes.io/component"
SELECTOR_KEY = LABEL_NAME
LABEL_AGGREGATE_PREFIX = f"{RBAC_API_GROUP}/"
LABEL_OS = "kubernetes.io/os"
TOPOLOGY_ZONE_LABEL = "topology.kubernetes.io/zone"
HOSTNAME_LABEL = "kubernetes.io/hostname"

# Plugins
TRAFFIC_ROUTER_PLUGINS_KEY = "trafficRouterPlugins"
METRIC_PLUGINS_KEY = "metricProviderPlugins"
OPENSHIFT_ROUTE_PLUGIN_NAME = "argoproj-labs/openshift-route-plugin"
DEFAULT_OPENSHIFT_ROUTE_PLUGIN_LOCATION = (
    "https://github.com/argoproj-labs/rollouts-plugin-trafficrouter-openshift/releases/download/"
    "commit-2749e0ac96ba00ce6f4af19dc6d5358048227d77/rollouts-plugin-trafficrouter-openshift-linux-amd64"
)

# Container
CONTAINER_NAME = "argo-rollouts"
HEALTHZ_PORT = 8080
METRICS_PORT = 8090
PLUGIN_BIN_VOLUME = "plugin-bin"
PLUGIN_BIN_MOUNT_PATH = "/home/argo-rollouts/plugin-bin"
TMP_VOLUME = "tmp"
TMP_MOUNT_PATH = "/tmp"  # nosec

# Command-line flags
ARG_NAMESPACED = "--namespaced"
ARG_LEADER_ELECT = "--leader-elect"

# Environment variables
ENV_IMAGE = "ARGO_ROLLOUTS_IMAGE"
ENV_NAMESPACE_SCOPED = "NAMESPACE_SCOPED_ARGO_ROLLOUTS"
ENV_OPENSHIFT_ROUTE_PLUGIN_LOCATION = "OPENSHIFT_ROUTE_PLUGIN_LOCATION"
PROXY_ENV_KEYS = ("HTTP_PROXY", "HTTPS_PROXY", "NO_PROXY")

# Phases
PHASE_UNKNOWN = "Unknown"
PHASE_PENDING = "Pending"
PHASE_AVAILABLE = "Available"
PHASE_FAILURE = "Failure"

# Condition Types
COND_RECONCILED = "Reconciled"

# Condition Reasons
REASON_SUCCESS = "Success"
REASON_ERROR_OCCURRED = "ErrorOccurred"
REASON_MULTIPLE_CLUSTER_SCOPED = "MultipleClusterScopedRolloutManager"
REASON_INVALID_SCOPE = "InvalidRolloutManagerScope"

# Condition Messages
MSG_UNSUPPORTED_CONFIGURATION = (
    "when there exists a cluster-scoped RolloutManager on the cluster, there may not exist another: "
    "only a single cluster-scoped RolloutManager is supported"
)
MSG_UNSUPPORTED_CLUSTER_SCOPED = (
    "when Subscription has environment variable NAMESPACE_SCOPED_ARGO_ROLLOUTS set to True, "
    "there may not exist any cluster-scoped RolloutManagers: in this case, only namespace-scoped "
    "RolloutManager resources are supported"
)
MSG_UNSUPPORTED_NAMESPACE_SCOPED = (
    "when Subscription has environment variable NAMESPACE_SCOPED_ARGO_ROLLOUTS set to False, "
    "there may not exist any namespace-scoped RolloutManagers: only a single cluster-scoped "
    "RolloutManager is supported"
)

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_RECONCILE_SUCCEEDED = "ReconcileSucceeded"
EVENT_REASON_SCOPE_INVALID = "ScopeInvalid"
EVENT_REASON_RESOURCES_DELETED = "ResourcesDeleted"
EVENT_REASON_OBJECT_CREATED = "ObjectCreated"
EVENT_REASON_OBJECT_UPDATED = "ObjectUpdated"
EVENT_REASON_OBJECT_DELETED = "ObjectDeleted"
