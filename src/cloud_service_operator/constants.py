"""Constants for the Cloud Service Operator."""

# API Group
API_GROUP = "services.cloud37.dev"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_VPC = "Vpc"
KIND_SUBNET = "Subnet"
KIND_INTERNET_GATEWAY = "InternetGateway"
KIND_NAT_GATEWAY = "NatGateway"
KIND_ROUTE_TABLE = "RouteTable"
KIND_SECURITY_GROUP = "SecurityGroup"
KIND_COMPUTE_INSTANCE = "ComputeInstance"
KIND_NOSQL_TABLE = "NoSQLTable"
KIND_DATABASE_INSTANCE = "DatabaseInstance"
KIND_DEVOPS_PROJECT = "DevOpsProject"

ALL_KINDS = (
    KIND_VPC,
    KIND_SUBNET,
    KIND_INTERNET_GATEWAY,
    KIND_NAT_GATEWAY,
    KIND_ROUTE_TABLE,
    KIND_SECURITY_GROUP,
    KIND_COMPUTE_INSTANCE,
    KIND_NOSQL_TABLE,
    KIND_DATABASE_INSTANCE,
    KIND_DEVOPS_PROJECT,
)

# Labels
LABEL_MANAGED_BY = f"{API_GROUP}/managed-by"
LABEL_RESOURCE_KIND = f"{API_GROUP}/resource-kind"

# Finalizers
FINALIZER = f"{API_GROUP}/finalizer"

# Field Manager
FIELD_MANAGER = "cloud-service-operator"
CONTROLLER_NAME = "cloud-service-operator"

# Condition Types
COND_PROVISIONING = "Provisioning"
COND_ACTIVE = "Active"
COND_FAILED = "Failed"
COND_UPDATING = "Updating"
COND_TERMINATING = "Terminating"

# Condition Reasons
REASON_PROVISIONING = "Provisioning"
REASON_ACTIVE = "Active"
REASON_BOUND = "Bound"
REASON_TERMINAL_STATE = "TerminalState"
REASON_CREATE_FAILED = "CreateFailed"
REASON_BAD_REQUEST = "BadRequest"
REASON_AWAITING_VISIBILITY = "AwaitingVisibility"
REASON_UPDATE_REQUESTED = "UpdateRequested"

# Requeue delay when a created resource is not yet visible to lookups
NOT_VISIBLE_REQUEUE_SECONDS = 30.0

# Bounded poll defaults for kinds that wait synchronously after create
DEFAULT_POLL_ATTEMPTS = 30
DEFAULT_POLL_DELAY_SECONDS = 60.0

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_VALIDATE_SUCCEEDED = "ValidateSucceeded"
EVENT_REASON_VALIDATE_FAILED = "ValidateFailed"
EVENT_REASON_RESOURCE_ACTIVE = "ResourceActive"
EVENT_REASON_RESOURCE_PROVISIONING = "ResourceProvisioning"
EVENT_REASON_RESOURCE_FAILED = "ResourceFailed"
EVENT_REASON_RESOURCE_DELETED = "ResourceDeleted"
EVENT_REASON_DELETE_FAILED = "DeleteFailed"
