"""Task CRUD scoped to the owning user.

A task that does not exist and a task owned by someone else are reported
the same way (NotFound), so callers cannot discover other users' ids.
"""
import logging
from math import ceil
from typing import Optional

from sqlalchemy import case, delete as sa_delete, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from sqlalchemy.orm.exc import StaleDataError

from tasktracker.database import transaction
from tasktracker.errors import NotFound, StoreError
from tasktracker.models.task import PRIORITY_RANK, Tag, Task, TaskPriority, TaskStatus, TaskTag
from tasktracker.schemas.task import TaskCreate, TaskUpdate

logger = logging.getLogger(__name__)


def format_task(task: Task) -> dict:
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "dueDate": task.due_date,
        "createdAt": task.created_at,
        "updatedAt": task.updated_at,
        "tags": [
            {"id": link.tag.id, "name": link.tag.name, "color": link.tag.color}
            for link in task.tag_links
        ],
    }


def _upsert_tag(db: Session, name: str) -> Tag:
    tag = db.query(Tag).filter(Tag.name == name).first()
    if tag is None:
        tag = Tag(name=name)
        db.add(tag)
        db.flush()
    return tag


def _owned_task(db: Session, user_id: int, task_id: int) -> Task:
    task = db.query(Task).filter(Task.id == task_id, Task.user_id == user_id).first()
    if task is None:
        raise NotFound()
    return task


def create_task(db: Session, user_id: int, data: TaskCreate) -> dict:
    try:
        # task, new tags and links land together or not at all
        with transaction(db):
            task = Task(
                user_id=user_id,
                title=data.title,
                description=data.description,
                status=data.status or TaskStatus.PENDING,
                priority=data.priority or TaskPriority.MEDIUM,
                due_date=data.due_date,
            )
            db.add(task)
            # dict.fromkeys drops repeated names but keeps their order
            for name in dict.fromkeys(data.tags or []):
                task.tag_links.append(TaskTag(tag=_upsert_tag(db, name)))
    except SQLAlchemyError as e:
        logger.error("Error creating task for user %s: %s", user_id, e)
        raise StoreError() from e
    except Exception as e:
        logger.error("Error creating task for user %s: %s", user_id, e)
        raise

    logger.info("Task created: %s for user: %s", task.id, user_id)
    return format_task(task)


def get_tasks(
    db: Session,
    user_id: int,
    page: int = 1,
    limit: int = 10,
    status: Optional[TaskStatus] = None,
    priority: Optional[TaskPriority] = None,
    search: Optional[str] = None,
) -> dict:
    query = db.query(Task).filter(Task.user_id == user_id)
    if status:
        query = query.filter(Task.status == status)
    if priority:
        query = query.filter(Task.priority == priority)
    if search:
        query = query.filter(
            or_(
                Task.title.icontains(search, autoescape=True),
                Task.description.icontains(search, autoescape=True),
            )
        )

    priority_rank = case({p.value: rank for p, rank in PRIORITY_RANK.items()}, value=Task.priority)
    skip = (page - 1) * limit
    try:
        total = query.count()
        tasks = (
            query.order_by(
                priority_rank.desc(),
                # tasks without a due date go last
                Task.due_date.is_(None),
                Task.due_date.asc(),
                Task.created_at.desc(),
                Task.id.desc(),
            )
            .offset(skip)
            .limit(limit)
            .all()
        )
    except SQLAlchemyError as e:
        logger.error("Error fetching tasks for user %s: %s", user_id, e)
        raise StoreError() from e

    return {
        "tasks": [format_task(t) for t in tasks],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "pages": ceil(total / limit),
        },
    }


def get_task_by_id(db: Session, user_id: int, task_id: int) -> dict:
    try:
        return format_task(_owned_task(db, user_id, task_id))
    except NotFound:
        logger.warning("Task %s not found for user %s", task_id, user_id)
        raise
    except SQLAlchemyError as e:
        logger.error("Error fetching task %s: %s", task_id, e)
        raise StoreError() from e


def update_task(db: Session, user_id: int, task_id: int, data: TaskUpdate) -> dict:
    """Apply only the fields the client sent. Tags are left untouched.

    The ownership check and the UPDATE are separate statements; a task
    deleted in between surfaces as NotFound.
    """
    try:
        task = _owned_task(db, user_id, task_id)
        with transaction(db):
            for field, value in data.changes().items():
                setattr(task, field, value)
    except (NotFound, StaleDataError):
        logger.warning("Task %s not found for user %s", task_id, user_id)
        raise NotFound()
    except SQLAlchemyError as e:
        logger.error("Error updating task %s: %s", task_id, e)
        raise StoreError() from e

    logger.info("Task updated: %s by user: %s", task_id, user_id)
    return format_task(task)


def delete_task(db: Session, user_id: int, task_id: int) -> None:
    """Delete an owned task and its tag links; Tag rows stay.

    The DELETE is conditional on id and owner, so a task removed by a
    concurrent request after the ownership check still reports NotFound.
    """
    try:
        _owned_task(db, user_id, task_id)
        with transaction(db):
            db.execute(sa_delete(TaskTag).where(TaskTag.task_id == task_id))
            result = db.execute(sa_delete(Task).where(Task.id == task_id, Task.user_id == user_id))
            if result.rowcount == 0:
                raise NotFound()
    except (NotFound, StaleDataError):
        logger.warning("Task %s not found for user %s", task_id, user_id)
        raise NotFound()
    except SQLAlchemyError as e:
        logger.error("Error deleting task %s: %s", task_id, e)
        raise StoreError() from e

    logger.info("Task deleted: %s by user: %s", task_id, user_id)
