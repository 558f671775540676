"""Task board service."""

from __future__ import annotations

import uuid
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from hrdesk.common.constants import TaskStatus
from hrdesk.common.exceptions import NotFoundException, ValidationException
from hrdesk.core_hr.models import Employee
from hrdesk.tasks.models import Task, TaskComment
from hrdesk.tasks.schemas import CommentCreate, CommentOut, TaskCreate, TaskOut

UNASSIGNED = "Unassigned"


def _name(first: Optional[str], last: Optional[str], fallback: str) -> str:
    if first is None:
        return fallback
    return f"{first} {last or ''}".strip()


def _task_out(task: Task, first: Optional[str], last: Optional[str]) -> TaskOut:
    return TaskOut(
        id=task.id,
        title=task.title,
        description=task.description,
        assigned_to=task.assigned_to,
        employee_name=_name(first, last, UNASSIGNED),
        status=task.status,
        priority=task.priority,
        due_date=task.due_date,
        created_at=task.created_at,
    )


class TaskService:

    @staticmethod
    async def list_tasks(
        db: AsyncSession, *, assigned_to: Optional[uuid.UUID] = None,
    ) -> list[TaskOut]:
        """Newest first, with the assignee's name or "Unassigned"."""
        assignee = aliased(Employee)
        query = (
            select(Task, assignee.first_name, assignee.last_name)
            .outerjoin(assignee, assignee.id == Task.assigned_to)
            .order_by(Task.created_at.desc())
        )
        if assigned_to is not None:
            query = query.where(Task.assigned_to == assigned_to)
        result = await db.execute(query)
        return [_task_out(t, first, last) for t, first, last in result.all()]

    @staticmethod
    async def _get(db: AsyncSession, task_id: uuid.UUID) -> Task:
        task = await db.get(Task, task_id)
        if task is None:
            raise NotFoundException("Task", task_id)
        return task

    @staticmethod
    async def create_task(db: AsyncSession, data: TaskCreate) -> TaskOut:
        title = data.title.strip()
        if not title:
            raise ValidationException({"title": ["Task title is required."]})

        first = last = None
        if data.assigned_to is not None:
            assignee = await db.get(Employee, data.assigned_to)
            if assignee is None:
                raise NotFoundException("Employee", data.assigned_to)
            first, last = assignee.first_name, assignee.last_name

        task = Task(
            title=title,
            description=data.description,
            assigned_to=data.assigned_to,
            priority=data.priority.value,
            due_date=data.due_date,
        )
        db.add(task)
        await db.flush()
        return _task_out(task, first, last)

    @staticmethod
    async def update_status(
        db: AsyncSession, task_id: uuid.UUID, status: TaskStatus,
    ) -> Task:
        task = await TaskService._get(db, task_id)
        task.status = status.value
        await db.flush()
        return task

    @staticmethod
    async def delete_task(db: AsyncSession, task_id: uuid.UUID) -> None:
        task = await TaskService._get(db, task_id)
        await db.execute(delete(TaskComment).where(TaskComment.task_id == task_id))
        await db.delete(task)
        await db.flush()

    # ── Comments ──────────────────────────────────────────────────────

    @staticmethod
    async def list_comments(db: AsyncSession, task_id: uuid.UUID) -> list[CommentOut]:
        await TaskService._get(db, task_id)
        result = await db.execute(
            select(TaskComment, Employee.first_name, Employee.last_name)
            .outerjoin(Employee, Employee.id == TaskComment.employee_id)
            .where(TaskComment.task_id == task_id)
            .order_by(TaskComment.created_at.asc())
        )
        return [
            CommentOut(
                id=c.id,
                task_id=c.task_id,
                employee_id=c.employee_id,
                employee_name=_name(first, last, "Unknown"),
                content=c.content,
                created_at=c.created_at,
            )
            for c, first, last in result.all()
        ]

    @staticmethod
    async def add_comment(
        db: AsyncSession, task_id: uuid.UUID, author: Employee, data: CommentCreate,
    ) -> CommentOut:
        await TaskService._get(db, task_id)
        content = data.content.strip()
        if not content:
            raise ValidationException({"content": ["Comment cannot be empty."]})

        comment = TaskComment(task_id=task_id, employee_id=author.id, content=content)
        db.add(comment)
        await db.flush()
        return CommentOut(
            id=comment.id,
            task_id=task_id,
            employee_id=author.id,
            employee_name=author.display_name,
            content=comment.content,
            created_at=comment.created_at,
        )
