"""Constants for the IAM ServiceAccount Controller."""

# Controller identity
CONTROLLER_NAME = "iam-service-account-controller"

# Watched resource
KIND_SERVICE_ACCOUNT = "ServiceAccount"
SERVICE_ACCOUNT_PLURAL = "serviceaccounts"

# Annotations
ANNOTATION_ROLE_ARN = "eks.amazonaws.com/role-arn"

# IAM role tags
TAG_CLUSTER = "role.k8s.aws/cluster"
TAG_MANAGED_BY = "role.k8s.aws/managed-by"
TAG_STACK = "serviceaccount.k8s.aws/stack"

# Trust policy
POLICY_VERSION = "2012-10-17"
SUBJECT_PREFIX = "system:serviceaccount"

# Event types
EVENT_TYPE_NORMAL = "Normal"
EVENT_TYPE_WARNING = "Warning"

# Event reasons
EVENT_REASON_SYNCED = "Synced"
EVENT_REASON_SYNC_FAILED = "SyncFailed"
EVENT_REASON_SYNC_WARNING = "SyncWarning"

# Event messages
MESSAGE_RESOURCE_SYNCED = "Successfully synced with AWS IAM role"
MESSAGE_ROLE_CREATION_FAILED = "Failed to create AWS IAM role due to: {error}"
MESSAGE_UNMANAGED_ROLE = "AWS IAM role exists but is not managed by controller"

# Defaults
DEFAULT_REGION = "eu-west-1"
DEFAULT_ROLE_PREFIX = "k8s-sa"
DEFAULT_CLUSTER_NAME = "cluster"
DEFAULT_TOKEN_PATH = "/var/run/secrets/eks.amazonaws.com/serviceaccount/token"
DEFAULT_WORKER_THREADS = 2
DEFAULT_RESYNC_INTERVAL_SECONDS = 300
DEFAULT_METRICS_PORT = 8080
