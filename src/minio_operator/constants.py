"""Constants for the MinIO Operator."""

# API Group
API_GROUP = "minio.scc-digitalhub.github.io"
API_VERSION = "v1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_BUCKET = "Bucket"
KIND_POLICY = "Policy"
KIND_USER = "User"

# Resource Plurals
PLURAL_BUCKET = "buckets"
PLURAL_POLICY = "policies"
PLURAL_USER = "users"

# Finalizers
BUCKET_FINALIZER = f"{API_GROUP}/bucket-finalizer"
POLICY_FINALIZER = f"{API_GROUP}/policy-finalizer"
USER_FINALIZER = f"{API_GROUP}/user-finalizer"

# Controller name used in structured logs
CONTROLLER_NAME = "minio-operator"

# Account status values
ACCOUNT_ENABLED = "enabled"
ACCOUNT_DISABLED = "disabled"

# Event Reasons
EVENT_REASON_DELETING = "Deleting"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"

# Environment variables
ENV_ENDPOINT = "MINIO_ENDPOINT"
ENV_ACCESS_KEY = "MINIO_ACCESS_KEY_ID"
ENV_SECRET_KEY = "MINIO_SECRET_ACCESS_KEY"
ENV_USE_SSL = "MINIO_USE_SSL"
ENV_REGION = "MINIO_REGION"
ENV_REQUEST_TIMEOUT = "MINIO_REQUEST_TIMEOUT_SECONDS"
ENV_EMPTY_ON_DELETE = "MINIO_EMPTY_ON_DELETE"
ENV_MAX_DRAIN_ITERATIONS = "MAX_DRAIN_ITERATIONS"
ENV_STATUS_UPDATE_RETRIES = "STATUS_UPDATE_RETRIES"
ENV_MAX_REQUEUE_STEPS = "MAX_REQUEUE_STEPS"
ENV_DRIFT_CHECK_INTERVAL = "DRIFT_CHECK_INTERVAL_SECONDS"
ENV_METRICS_PORT = "METRICS_PORT"
ENV_LOG_LEVEL = "LOG_LEVEL"

# Bucket name pattern
BUCKET_NAME_PATTERN = r"^[a-z0-9]([a-z0-9.-]){1,61}[a-z0-9]$"

# Maximum number of keys accepted by a single DeleteObjects request
DELETE_BATCH_SIZE = 1000
