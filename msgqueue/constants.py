"""
Application constants.
Centralized location for all constant values used across the application.
"""

from enum import StrEnum


class MessageState(StrEnum):
    """
    Message lifecycle states.

    State transitions:
    - VISIBLE -> LEASED (lease acquired, record re-keyed under its pop receipt)
    - LEASED -> VISIBLE (lease expired, the receipt key's time has passed)
    - LEASED -> DELETED (acknowledged with the current pop receipt)
    """

    VISIBLE = "visible"
    LEASED = "leased"
    DELETED = "deleted"


# Reserved store keys. Lowercase sorts after every Crockford base32 time
# prefix, so message scans never reach them.
METADATA_KEY = "metadata"
TOMBSTONE_KEY = "deleted"

# ULID layout
TIME_LENGTH = 10
RANDOM_LENGTH = 16
ID_LENGTH = TIME_LENGTH + RANDOM_LENGTH
MAX_TIME_MS = 2**48 - 1
MAX_RANDOM = 2**80 - 1

# Default values
DEFAULT_VISIBILITY_TIMEOUT_SECONDS = 30
DEFAULT_LEASE_LIMIT = 1

# Metrics names
METRIC_QUEUES_CREATED = "queues_created_total"
METRIC_QUEUES_DELETED = "queues_deleted_total"
METRIC_MESSAGES_ENQUEUED = "messages_enqueued_total"
METRIC_MESSAGES_LEASED = "messages_leased_total"
METRIC_MESSAGES_ACKNOWLEDGED = "messages_acknowledged_total"
METRIC_ACK_REJECTED = "acknowledgements_rejected_total"
METRIC_API_REQUESTS = "api_requests_total"
METRIC_API_LATENCY = "api_request_latency_seconds"

# Trace span names
SPAN_ENQUEUE = "enqueue_message"
SPAN_LEASE = "lease_messages"
SPAN_ACKNOWLEDGE = "acknowledge_message"
SPAN_DELETE_QUEUE = "delete_queue"
