"""
Repository for AuditLog database operations.
"""

from typing import Optional

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.models.audit_log import AuditAction, AuditLog


class AuditLogRepository:
    """Repository for AuditLog operations. Rows are never updated."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        action: AuditAction,
        task_id: str,
        user_id: str,
        field: Optional[str] = None,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
    ) -> AuditLog:
        """Append an audit entry."""
        entry = AuditLog(
            action=action,
            field=field,
            old_value=old_value,
            new_value=new_value,
            task_id=task_id,
            user_id=user_id,
        )
        self.db.add(entry)
        await self.db.flush()
        return entry

    async def find_by_task(self, task_id: str) -> list[AuditLog]:
        """Get all audit entries for a task, newest first."""
        result = await self.db.execute(
            select(AuditLog)
            .where(AuditLog.task_id == task_id)
            .order_by(AuditLog.created_at.desc())
        )
        return list(result.scalars().all())

    async def delete_for_task(self, task_id: str) -> int:
        """Remove every audit entry of a task. Returns the number removed."""
        result = await self.db.execute(
            delete(AuditLog)
            .where(AuditLog.task_id == task_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount
