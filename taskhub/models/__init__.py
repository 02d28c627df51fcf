# Importing every model registers it on Base.metadata (Alembic, create_all)
from taskhub.models.audit_log import AuditAction, AuditLogEntry
from taskhub.models.task import Task
from taskhub.models.user import Role, User

__all__ = ["AuditAction", "AuditLogEntry", "Role", "Task", "User"]
