from datetime import datetime, UTC
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tasktracker.models.task import TaskPriority, TaskStatus

TITLE_MAX = 200
DESCRIPTION_MAX = 1000
TAG_MAX = 50


def _clean_title(v: str) -> str:
    v = v.strip()
    if not 1 <= len(v) <= TITLE_MAX:
        raise ValueError("Title is required and must be less than 200 characters")
    return v


def _clean_description(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    v = v.strip()
    if len(v) > DESCRIPTION_MAX:
        raise ValueError("Description must be less than 1000 characters")
    return v


def _to_utc(v: Optional[datetime]) -> Optional[datetime]:
    if v is not None and v.tzinfo is not None:
        v = v.astimezone(UTC)
    return v


class TaskCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")
    tags: Optional[List[str]] = None

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v):
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def description_length(cls, v):
        return _clean_description(v)

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, v):
        return _to_utc(v)

    @field_validator("tags")
    @classmethod
    def tag_names(cls, v):
        if v is None:
            return v
        cleaned = []
        for name in v:
            name = name.strip()
            if not 1 <= len(name) <= TAG_MAX:
                raise ValueError("Each tag must be between 1 and 50 characters")
            cleaned.append(name)
        return cleaned


class TaskUpdate(BaseModel):
    """Partial update; only fields present in the request body are applied."""

    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    due_date: Optional[datetime] = Field(default=None, alias="dueDate")

    @field_validator("title")
    @classmethod
    def title_not_empty(cls, v):
        if v is None:
            raise ValueError("Title must be between 1 and 200 characters")
        return _clean_title(v)

    @field_validator("description")
    @classmethod
    def description_length(cls, v):
        return _clean_description(v)

    @field_validator("due_date")
    @classmethod
    def due_date_utc(cls, v):
        return _to_utc(v)

    @field_validator("status", "priority")
    @classmethod
    def not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)
