"""
Models package.

Import all models here so they are registered with SQLAlchemy.
"""

from taskhub.models.user import User
from taskhub.models.task import Task, Priority, Status
from taskhub.models.audit_log import AuditLog, AuditAction
from taskhub.models.notification import Notification, NotificationType

__all__ = [
    "User",
    "Task",
    "Priority",
    "Status",
    "AuditLog",
    "AuditAction",
    "Notification",
    "NotificationType",
]
