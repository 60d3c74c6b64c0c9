"""
Task repository - database operations for Task.
"""

from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import and_, case, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.models.task import Priority, Status, Task
from taskhub.schemas.task import TaskFilterParams, TaskSortField
from taskhub.utils.time import utc_now

# Enum declaration order is the sort rank
_PRIORITY_RANK = case({p.value: i for i, p in enumerate(Priority)}, value=Task.priority)
_STATUS_RANK = case({s.value: i for i, s in enumerate(Status)}, value=Task.status)

_SORT_COLUMNS = {
    TaskSortField.DUE_DATE: Task.due_date,
    TaskSortField.CREATED_AT: Task.created_at,
    TaskSortField.PRIORITY: _PRIORITY_RANK,
    TaskSortField.STATUS: _STATUS_RANK,
}


def _overdue_condition():
    return and_(Task.due_date < utc_now(), Task.status != Status.COMPLETED)


def _involves_user(user_id: str):
    return or_(Task.assigned_to_id == user_id, Task.creator_id == user_id)


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, task_id: str) -> Optional[Task]:
        """
        Get a task by ID with creator and assignee loaded.

        populate_existing refreshes an already-loaded instance, so the
        assignee relationship and version reflect the last flush.
        """
        result = await self.db.execute(
            select(Task)
            .where(Task.id == task_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create(self, data: Dict[str, Any]) -> Task:
        """Create a new task and return it with relations."""
        task = Task(**data)
        self.db.add(task)
        await self.db.flush()
        return await self.get_by_id(task.id)

    async def update(self, task: Task, data: Dict[str, Any]) -> Task:
        """
        Apply changed fields in a single UPDATE.

        Raises sqlalchemy.orm.exc.StaleDataError when the row's version no
        longer matches the one this task was loaded with.
        """
        for field, value in data.items():
            setattr(task, field, value)
        await self.db.flush()
        return await self.get_by_id(task.id)

    async def delete(self, task: Task) -> None:
        """Delete a task row. Its audit entries must already be gone."""
        await self.db.delete(task)
        await self.db.flush()

    async def list(self, params: TaskFilterParams) -> Tuple[List[Task], int]:
        """Get one page of tasks matching the filters, plus the total count."""
        conditions = []
        if params.status:
            conditions.append(Task.status == params.status)
        if params.priority:
            conditions.append(Task.priority == params.priority)
        if params.assigned_to_id:
            conditions.append(Task.assigned_to_id == params.assigned_to_id)
        if params.creator_id:
            conditions.append(Task.creator_id == params.creator_id)
        if params.overdue:
            conditions.append(_overdue_condition())

        sort_column = _SORT_COLUMNS[params.sort_by]
        order = sort_column.asc() if params.sort_order == "asc" else sort_column.desc()

        query = (
            select(Task)
            .where(*conditions)
            .order_by(order, Task.id)
            .offset((params.page - 1) * params.limit)
            .limit(params.limit)
        )
        result = await self.db.execute(query)
        tasks = list(result.scalars().all())

        total = await self.count(*conditions)
        return tasks, total

    async def count(self, *conditions) -> int:
        result = await self.db.execute(
            select(func.count()).select_from(Task).where(*conditions)
        )
        return result.scalar_one()

    async def find_by_assignee(self, user_id: str) -> List[Task]:
        """Tasks assigned to a user, soonest due first."""
        result = await self.db.execute(
            select(Task)
            .where(Task.assigned_to_id == user_id)
            .order_by(Task.due_date.asc())
        )
        return list(result.scalars().all())

    async def find_by_creator(self, user_id: str) -> List[Task]:
        """Tasks created by a user, newest first."""
        result = await self.db.execute(
            select(Task)
            .where(Task.creator_id == user_id)
            .order_by(Task.created_at.desc())
        )
        return list(result.scalars().all())

    async def find_overdue(self, user_id: str) -> List[Task]:
        """Overdue tasks the user created or is assigned to."""
        result = await self.db.execute(
            select(Task)
            .where(_involves_user(user_id), _overdue_condition())
            .order_by(Task.due_date.asc())
        )
        return list(result.scalars().all())

    async def get_dashboard_stats(self, user_id: str) -> Dict[str, int]:
        """Counts shown on the dashboard."""
        return {
            "assigned": await self.count(Task.assigned_to_id == user_id),
            "created": await self.count(Task.creator_id == user_id),
            "overdue": await self.count(_involves_user(user_id), _overdue_condition()),
            "completed": await self.count(_involves_user(user_id), Task.status == Status.COMPLETED),
            "in_progress": await self.count(_involves_user(user_id), Task.status == Status.IN_PROGRESS),
        }
