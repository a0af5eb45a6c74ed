"""ORM models for the intake kernel."""

from intake_kernel.models.bonus_pool import BonusPool
from intake_kernel.models.client import Client
from intake_kernel.models.event_log import EventLogEntry
from intake_kernel.models.notification import Notification
from intake_kernel.models.platform_verification import PlatformVerification
from intake_kernel.models.task import Task
from intake_kernel.models.user import User

__all__ = [
    "BonusPool",
    "Client",
    "EventLogEntry",
    "Notification",
    "PlatformVerification",
    "Task",
    "User",
]
