"""Kernel services: event log, tasks, notifications, commission, transitions, platform gate."""

from intake_kernel.services.commission import BonusPoolBootstrapper
from intake_kernel.services.event_log_writer import EventLogWriter
from intake_kernel.services.notifications import NotificationDispatcher, NotificationStore
from intake_kernel.services.platform_gate import PlatformGateWorkflow
from intake_kernel.services.task_manager import TaskManager
from intake_kernel.services.transition_engine import TransitionEffects, TransitionEngine

__all__ = [
    "BonusPoolBootstrapper",
    "EventLogWriter",
    "NotificationDispatcher",
    "NotificationStore",
    "PlatformGateWorkflow",
    "TaskManager",
    "TransitionEffects",
    "TransitionEngine",
]
