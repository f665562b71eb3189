from typing import Annotated, Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from tasktracker.database import get_db
from tasktracker.models.task import TaskPriority, TaskStatus
from tasktracker.models.user import User
from tasktracker.routers.deps import get_current_user
from tasktracker.schemas.task import TaskCreate, TaskUpdate
from tasktracker.services import task_service

router = APIRouter(prefix="/tasks", tags=["tasks"])

# largest value an INTEGER primary key holds on every supported store
MAX_ID = 2**31 - 1

TaskId = Annotated[int, Path(ge=1, le=MAX_ID, description="Task ID must be a positive integer")]


@router.post("", status_code=201)
def create_task(task: TaskCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    created = task_service.create_task(db, user.id, task)
    return {"success": True, "message": "Task created successfully", "data": {"task": created}}


@router.get("")
def list_tasks(
    page: int = Query(1, ge=1, le=MAX_ID),
    limit: int = Query(10, ge=1, le=100),
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    search: Optional[str] = Query(None, description="Search by title or description"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    result = task_service.get_tasks(
        db, user.id, page=page, limit=limit, status=status, priority=priority, search=search
    )
    return {"success": True, "data": result}


@router.get("/{task_id}")
def get_task(task_id: TaskId, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    task = task_service.get_task_by_id(db, user.id, task_id)
    return {"success": True, "data": {"task": task}}


@router.put("/{task_id}")
def update_task(
    changes: TaskUpdate,
    task_id: TaskId,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    task = task_service.update_task(db, user.id, task_id, changes)
    return {"success": True, "message": "Task updated successfully", "data": {"task": task}}


@router.delete("/{task_id}")
def delete_task(task_id: TaskId, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    task_service.delete_task(db, user.id, task_id)
    return {"success": True, "message": "Task deleted successfully"}
