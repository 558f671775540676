"""Task board schemas."""


import uuid
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, Field

from hrdesk.common.constants import TaskPriority, TaskStatus


class TaskCreate(BaseModel):
    # Blank titles are rejected by the service with a field error
    title: str = ""
    description: Optional[str] = None
    assigned_to: Optional[uuid.UUID] = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Optional[date] = None


class TaskStatusUpdate(BaseModel):
    status: TaskStatus


class TaskOut(BaseModel):
    id: uuid.UUID
    title: str
    description: Optional[str] = None
    assigned_to: Optional[uuid.UUID] = None
    employee_name: str
    status: str
    priority: str
    due_date: Optional[date] = None
    created_at: datetime


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)


class CommentOut(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    employee_id: uuid.UUID
    employee_name: str
    content: str
    created_at: datetime
