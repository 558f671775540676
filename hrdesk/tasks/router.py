"""Task board router: tasks and their comments."""


import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from hrdesk.auth.dependencies import get_current_user
from hrdesk.core_hr.models import Employee
from hrdesk.database import get_db
from hrdesk.tasks.schemas import (
    CommentCreate,
    CommentOut,
    TaskCreate,
    TaskOut,
    TaskStatusUpdate,
)
from hrdesk.tasks.service import TaskService

router = APIRouter(prefix="", tags=["tasks"])


@router.get("", response_model=list[TaskOut])
async def list_tasks(
    mine: bool = Query(False, description="Only tasks assigned to me"),
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.list_tasks(db, assigned_to=employee.id if mine else None)


@router.post("", response_model=TaskOut, status_code=201)
async def create_task(
    body: TaskCreate,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.create_task(db, body)


@router.put("/{task_id}/status")
async def update_task_status(
    task_id: uuid.UUID,
    body: TaskStatusUpdate,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    task = await TaskService.update_status(db, task_id, body.status)
    return {"data": {"id": str(task.id), "status": task.status}}


@router.delete("/{task_id}", status_code=204)
async def delete_task(
    task_id: uuid.UUID,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    await TaskService.delete_task(db, task_id)


@router.get("/{task_id}/comments", response_model=list[CommentOut])
async def list_comments(
    task_id: uuid.UUID,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.list_comments(db, task_id)


@router.post("/{task_id}/comments", response_model=CommentOut, status_code=201)
async def add_comment(
    task_id: uuid.UUID,
    body: CommentCreate,
    employee: Employee = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await TaskService.add_comment(db, task_id, employee, body)
