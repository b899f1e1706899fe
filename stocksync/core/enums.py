"""
Shared enums and constants used across the application.
"""

from enum import Enum


class StyleStatus(str, Enum):
    """Lifecycle of a style in the storefront catalog"""
    DRAFT = "draft"
    PUBLISHED = "published"


class DecrementJobStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    DEAD_LETTER = "dead_letter"


class SyncRunStatus(str, Enum):
    COMPLETED = "completed"
    SKIPPED = "skipped"
    FAILED = "failed"


class WebhookDeliveryMode(str, Enum):
    ACK = "ack"          # decrement inline, acknowledge regardless of outcome
    DURABLE = "durable"  # persist each line item, retry until done or dead-lettered


SIMULATION_HOST = "simulation"
