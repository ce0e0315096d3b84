"""
Utility helpers for the file checker.
"""

from .instance_guard import InstanceLock, InstanceLockError, acquire_instance_lock
from .logging_setup import setup_logging
from .resource_monitor import ResourceMonitor

__all__ = [
    "InstanceLock",
    "InstanceLockError",
    "ResourceMonitor",
    "acquire_instance_lock",
    "setup_logging",
]
