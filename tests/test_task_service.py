"""TaskService mutations and their audit/notification side effects."""

from unittest.mock import AsyncMock

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm.exc import StaleDataError

from taskhub.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from taskhub.models.audit_log import AuditAction, AuditLog
from taskhub.models.notification import Notification, NotificationType
from taskhub.models.task import Priority, Status
from taskhub.repositories.task_repository import TaskRepository
from taskhub.schemas.task import TaskCreate, TaskFilterParams, TaskSortField, TaskUpdate
from taskhub.services.task_service import TaskService, compute_changes

pytestmark = [pytest.mark.db, pytest.mark.asyncio]


def new_task(**overrides) -> TaskCreate:
    payload = {
        "title": "Write report",
        "description": "Quarterly numbers",
        "dueDate": "2030-01-15T10:00:00Z",
    }
    payload.update(overrides)
    return TaskCreate.model_validate(payload)


async def audit_entries(db, task_id):
    result = await db.execute(
        select(AuditLog).where(AuditLog.task_id == task_id).order_by(AuditLog.created_at)
    )
    return list(result.scalars().all())


async def notifications_for(db, user_id):
    result = await db.execute(select(Notification).where(Notification.user_id == user_id))
    return list(result.scalars().all())


async def test_create_applies_defaults_and_writes_one_audit_entry(db, users):
    service = TaskService(db)

    result = await service.create_task(new_task(), creator_id="U1")
    await db.commit()

    task = result.task
    assert task.priority == Priority.MEDIUM
    assert task.status == Status.TODO
    assert task.creator_id == "U1"
    assert task.creator.name == "Alice"
    assert task.assigned_to is None
    assert result.notification is None

    entries = await audit_entries(db, task.id)
    assert len(entries) == 1
    assert entries[0].action == AuditAction.CREATE
    assert entries[0].field is None
    assert entries[0].user_id == "U1"


async def test_create_with_assignee_notifies_them(db, users):
    result = await TaskService(db).create_task(new_task(assignedToId="U2"), creator_id="U1")
    await db.commit()

    assert result.task.assigned_to.name == "Bob"
    assert result.notification is not None
    assert result.notification.user_id == "U2"
    assert result.notification.type == NotificationType.TASK_ASSIGNED
    assert result.notification.message == 'You have been assigned to task: "Write report"'
    assert result.notification.read is False


async def test_self_assignment_does_not_notify(db, users):
    result = await TaskService(db).create_task(new_task(assignedToId="U1"), creator_id="U1")
    await db.commit()

    assert result.notification is None
    assert await notifications_for(db, "U1") == []


async def test_create_with_unknown_assignee_is_rejected(db, users):
    with pytest.raises(ValidationError) as exc_info:
        await TaskService(db).create_task(new_task(assignedToId="nobody"), creator_id="U1")

    assert exc_info.value.errors == [{"field": "assignedToId", "message": "Assigned user not found"}]


async def test_update_unknown_task_raises_not_found(db, users):
    with pytest.raises(NotFoundError):
        await TaskService(db).update_task("missing", TaskUpdate(title="x"), actor_id="U1")


async def test_status_change_is_audited_as_status_change(db, users):
    service = TaskService(db)
    created = await service.create_task(new_task(), creator_id="U1")
    await db.commit()

    result = await service.update_task(created.task.id, TaskUpdate(status=Status.IN_PROGRESS), actor_id="U2")
    await db.commit()

    assert [(c.field, c.old_value, c.new_value) for c in result.changes] == [
        ("status", "TODO", "IN_PROGRESS"),
    ]
    assert result.assignee_changed is False
    assert result.task.status == Status.IN_PROGRESS

    entries = await audit_entries(db, created.task.id)
    status_entries = [e for e in entries if e.action == AuditAction.STATUS_CHANGE]
    assert len(status_entries) == 1
    assert status_entries[0].field == "status"
    assert status_entries[0].old_value == "TODO"
    assert status_entries[0].new_value == "IN_PROGRESS"
    assert status_entries[0].user_id == "U2"


async def test_changes_follow_fixed_field_order(db, users):
    service = TaskService(db)
    created = await service.create_task(new_task(), creator_id="U1")
    await db.commit()

    patch = TaskUpdate.model_validate({
        "assignedToId": "U2",
        "priority": "HIGH",
        "status": "REVIEW",
        "title": "Final report",
    })
    result = await service.update_task(created.task.id, patch, actor_id="U1")
    await db.commit()

    assert [c.field for c in result.changes] == ["title", "status", "priority", "assignedToId"]
    assert result.changes[3].old_value == "Unassigned"
    assert result.changes[3].new_value == "U2"

    actions = {e.field: e.action for e in await audit_entries(db, created.task.id) if e.field}
    assert actions == {
        "title": AuditAction.UPDATE,
        "status": AuditAction.STATUS_CHANGE,
        "priority": AuditAction.UPDATE,
        "assignedToId": AuditAction.UPDATE,
    }


async def test_untracked_fields_apply_without_change_records(db, users):
    service = TaskService(db)
    created = await service.create_task(new_task(), creator_id="U1")
    await db.commit()

    patch = TaskUpdate.model_validate({"description": "Revised", "dueDate": "2031-02-01"})
    result = await service.update_task(created.task.id, patch, actor_id="U1")
    await db.commit()

    assert result.changes == []
    assert result.task.description == "Revised"
    assert result.task.due_date.year == 2031
    assert len(await audit_entries(db, created.task.id)) == 1


async def test_unchanged_values_produce_no_changes(db, users):
    service = TaskService(db)
    created = await service.create_task(new_task(), creator_id="U1")
    await db.commit()

    result = await service.update_task(
        created.task.id,
        TaskUpdate(title="Write report", status=Status.TODO),
        actor_id="U1",
    )
    assert result.changes == []


async def test_unassign_renders_unassigned_and_does_not_notify(db, users):
    service = TaskService(db)
    created = await service.create_task(new_task(assignedToId="U2"), creator_id="U1")
    await db.commit()

    result = await service.update_task(
        created.task.id,
        TaskUpdate.model_validate({"assignedToId": None}),
        actor_id="U1",
    )
    await db.commit()

    assert [(c.field, c.old_value, c.new_value) for c in result.changes] == [
        ("assignedToId", "U2", "Unassigned"),
    ]
    assert result.assignee_changed is True
    assert result.new_assignee_id is None
    assert result.notification is None
    assert result.task.assigned_to_id is None


async def test_omitted_assignee_is_left_alone(db, users):
    service = TaskService(db)
    created = await service.create_task(new_task(assignedToId="U2"), creator_id="U1")
    await db.commit()

    result = await service.update_task(created.task.id, TaskUpdate(title="Renamed"), actor_id="U1")
    await db.commit()

    assert result.assignee_changed is False
    assert result.task.assigned_to_id == "U2"


async def test_end_to_end_assignment_flow(db, users):
    """U1 creates, U1 assigns to U2, U2 moves it along; U2 is notified once."""
    service = TaskService(db)

    created = await service.create_task(new_task(title="Ship release"), creator_id="U1")
    await db.commit()
    task_id = created.task.id

    assigned = await service.update_task(
        task_id, TaskUpdate.model_validate({"assignedToId": "U2"}), actor_id="U1"
    )
    await db.commit()
    assert assigned.assignee_changed is True
    assert assigned.new_assignee_id == "U2"
    assert assigned.notification.message == 'You have been assigned to task: "Ship release"'

    progressed = await service.update_task(task_id, TaskUpdate(status=Status.IN_PROGRESS), actor_id="U2")
    await db.commit()
    assert progressed.notification is None

    entries = await audit_entries(db, task_id)
    assert [e.action for e in entries].count(AuditAction.CREATE) == 1
    assert len(entries) == 3

    bob_notifications = await notifications_for(db, "U2")
    assert len(bob_notifications) == 1
    assert await notifications_for(db, "U1") == []

    logs = await service.get_task_audit_logs(task_id)
    assert {log.user.name for log in logs} == {"Alice", "Bob"}


async def test_assigned_high_priority_task_then_status_update(db, users):
    """Create HIGH for U2, then the creator moves it to IN_PROGRESS."""
    service = TaskService(db)

    created = await service.create_task(
        new_task(title="Fix login", priority="HIGH", assignedToId="U2"), creator_id="U1"
    )
    await db.commit()
    task_id = created.task.id

    stored = await service.get_task(task_id)
    assert stored.priority == Priority.HIGH
    assert stored.status == Status.TODO
    assert stored.assigned_to_id == "U2"

    updated = await service.update_task(task_id, TaskUpdate(status=Status.IN_PROGRESS), actor_id="U1")
    await db.commit()

    assert [(c.field, c.old_value, c.new_value) for c in updated.changes] == [
        ("status", "TODO", "IN_PROGRESS"),
    ]
    assert updated.assignee_changed is False
    assert updated.notification is None

    notifications = await notifications_for(db, "U2")
    assert len(notifications) == 1
    assert notifications[0].type == NotificationType.TASK_ASSIGNED
    assert notifications[0].message == 'You have been assigned to task: "Fix login"'
    assert await notifications_for(db, "U1") == []


async def test_non_creator_cannot_delete(db, users):
    service = TaskService(db)
    created = await service.create_task(new_task(), creator_id="U1")
    await db.commit()

    with pytest.raises(AuthorizationError):
        await service.delete_task(created.task.id, actor_id="U2")

    assert await service.get_task(created.task.id) is not None
    assert len(await audit_entries(db, created.task.id)) == 1


async def test_delete_removes_task_and_audit_trail(db, users):
    service = TaskService(db)
    created = await service.create_task(new_task(), creator_id="U1")
    await service.update_task(created.task.id, TaskUpdate(status=Status.REVIEW), actor_id="U1")
    await db.commit()
    task_id = created.task.id

    await service.delete_task(task_id, actor_id="U1")
    await db.commit()

    assert await service.get_task(task_id) is None
    assert await audit_entries(db, task_id) == []
    remaining = await db.execute(select(func.count()).select_from(AuditLog))
    assert remaining.scalar_one() == 0


async def test_delete_unknown_task_raises_not_found(db, users):
    with pytest.raises(NotFoundError):
        await TaskService(db).delete_task("missing", actor_id="U1")


async def test_audit_logs_of_unknown_task_raise_not_found(db, users):
    with pytest.raises(NotFoundError):
        await TaskService(db).get_task_audit_logs("missing")


async def test_stale_write_is_detected(session_maker, users):
    async with session_maker() as first, session_maker() as second:
        created = await TaskService(first).create_task(new_task(), creator_id="U1")
        await first.commit()
        task_id = created.task.id

        stale = await TaskRepository(second).get_by_id(task_id)

        await TaskService(first).update_task(task_id, TaskUpdate(title="Fresh"), actor_id="U1")
        await first.commit()

        with pytest.raises(StaleDataError):
            await TaskRepository(second).update(stale, {"title": "Stale"})
        await second.rollback()


async def test_stale_write_surfaces_as_conflict(db, users):
    service = TaskService(db)
    created = await service.create_task(new_task(), creator_id="U1")
    await db.commit()

    service.repository.update = AsyncMock(side_effect=StaleDataError("version mismatch"))
    with pytest.raises(ConflictError):
        await service.update_task(created.task.id, TaskUpdate(title="Other"), actor_id="U2")


async def test_delete_after_concurrent_update_raises_conflict(session_maker, users):
    async with session_maker() as first, session_maker() as second:
        created = await TaskService(first).create_task(new_task(), creator_id="U1")
        await first.commit()
        task_id = created.task.id

        deleter = TaskService(second)
        load = deleter.repository.get_by_id

        async def load_then_race(requested_id):
            loaded = await load(requested_id)
            await TaskService(first).update_task(task_id, TaskUpdate(title="Renamed"), actor_id="U1")
            await first.commit()
            return loaded

        deleter.repository.get_by_id = load_then_race

        with pytest.raises(ConflictError):
            await deleter.delete_task(task_id, actor_id="U1")
        await second.rollback()

    async with session_maker() as check:
        survivor = await TaskRepository(check).get_by_id(task_id)
        assert survivor is not None
        assert survivor.title == "Renamed"


async def test_version_increments_on_each_write(db, users):
    service = TaskService(db)
    created = await service.create_task(new_task(), creator_id="U1")
    await db.commit()
    first_version = created.task.version

    updated = await service.update_task(created.task.id, TaskUpdate(title="Again"), actor_id="U1")
    await db.commit()

    assert updated.task.version == first_version + 1


async def test_list_filters_sorts_and_paginates(db, users):
    service = TaskService(db)
    await service.create_task(new_task(title="Low", priority="LOW"), creator_id="U1")
    await service.create_task(new_task(title="Urgent", priority="URGENT", assignedToId="U2"), creator_id="U1")
    await service.create_task(new_task(title="High", priority="HIGH", status="COMPLETED"), creator_id="U2")
    await db.commit()

    tasks, total = await service.list_tasks(
        TaskFilterParams(sort_by=TaskSortField.PRIORITY, sort_order="desc")
    )
    assert total == 3
    assert [t.title for t in tasks] == ["Urgent", "High", "Low"]

    tasks, total = await service.list_tasks(TaskFilterParams(creator_id="U1", limit=1, page=2))
    assert total == 2
    assert len(tasks) == 1

    tasks, total = await service.list_tasks(TaskFilterParams(assigned_to_id="U2"))
    assert [t.title for t in tasks] == ["Urgent"]

    tasks, total = await service.list_tasks(TaskFilterParams(status=Status.COMPLETED))
    assert [t.title for t in tasks] == ["High"]


async def test_overdue_and_dashboard_stats(db, users):
    service = TaskService(db)
    await service.create_task(new_task(title="Late", dueDate="2001-01-01", assignedToId="U2"), creator_id="U1")
    await service.create_task(new_task(title="Late but done", dueDate="2001-01-01", status="COMPLETED"), creator_id="U1")
    await service.create_task(new_task(title="Future", status="IN_PROGRESS"), creator_id="U1")
    await db.commit()

    overdue = await service.get_overdue_tasks("U1")
    assert [t.title for t in overdue] == ["Late"]

    tasks, total = await service.list_tasks(TaskFilterParams(overdue=True))
    assert total == 1

    stats = await service.get_dashboard_stats("U1")
    assert stats == {
        "assigned": 0,
        "created": 3,
        "overdue": 1,
        "completed": 1,
        "in_progress": 1,
    }

    bob_stats = await service.get_dashboard_stats("U2")
    assert bob_stats["assigned"] == 1
    assert bob_stats["overdue"] == 1
    assert [t.title for t in await service.get_assigned_tasks("U2")] == ["Late"]


async def test_compute_changes_ignores_absent_fields(db, users):
    created = await TaskService(db).create_task(new_task(), creator_id="U1")

    assert compute_changes(created.task, {}) == []
    changes = compute_changes(created.task, {"priority": Priority.URGENT, "description": "ignored"})
    assert [(c.field, c.old_value, c.new_value) for c in changes] == [("priority", "MEDIUM", "URGENT")]
