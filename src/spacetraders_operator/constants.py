"""Constants for the SpaceTraders Operator."""

# API Group
API_GROUP = "spacetraders.hafer.dev"
API_VERSION = "v1alpha1"
API_GROUP_VERSION = f"{API_GROUP}/{API_VERSION}"

# Resource Kinds
KIND_AGENT = "Agent"
PLURAL_AGENTS = "agents"

# Starting factions accepted by the registration endpoint
FACTIONS = (
    "COSMIC",
    "VOID",
    "GALACTIC",
    "QUANTUM",
    "DOMINION",
    "ASTRO",
    "CORSAIRS",
    "OBSIDIAN",
    "AEGIS",
    "UNITED",
    "SOLITARY",
    "COBALT",
    "OMEGA",
    "ECHO",
    "LORDS",
    "CULT",
    "ANCIENTS",
    "SHADOW",
    "ETHEREAL",
)
SYMBOL_MIN_LENGTH = 3
SYMBOL_MAX_LENGTH = 14

# Labels
OPERATOR_NAME = "spacetraders-operator"
LABEL_NAME = "app.kubernetes.io/name"
LABEL_INSTANCE = "app.kubernetes.io/instance"
LABEL_PART_OF = "app.kubernetes.io/part-of"
LABEL_CREATED_BY = "app.kubernetes.io/created-by"
CREATED_BY = "controller-manager"

# Annotations
ANNOTATION_ACCOUNT_ID = f"{API_GROUP}/account-id"
ANNOTATION_STARTING_FACTION = f"{API_GROUP}/starting-faction"
ANNOTATION_RECONCILE_REQUESTED_AT = f"{API_GROUP}/reconcile-requested-at"

# Secret keys
SECRET_KEY_ACCESS_TOKEN = "access-token"

# Field Manager
FIELD_MANAGER = "spacetraders-operator"

# Condition Types
COND_REGISTERED = "Registered"

# Condition Statuses
STATUS_TRUE = "True"
STATUS_FALSE = "False"
STATUS_UNKNOWN = "Unknown"

# Condition Reasons
REASON_RECONCILING = "Reconciling"
REASON_REGISTERED = "Registered"
REASON_API_REJECTED = "Failed"
REASON_INFRASTRUCTURE_ERROR = "Error"
REASON_INVALID_SPEC = "InvalidSpec"

# Event Reasons
EVENT_REASON_RECONCILE_STARTED = "ReconcileStarted"
EVENT_REASON_RECONCILE_FAILED = "ReconcileFailed"
EVENT_REASON_AGENT_REGISTERED = "AgentRegistered"
EVENT_REASON_REGISTRATION_FAILED = "RegistrationFailed"
EVENT_REASON_SECRET_CREATED = "SecretCreated"
