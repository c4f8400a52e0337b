"""Data models for the volunteer-coordination records.

The models are implemented using :mod:`pydantic` so that they provide
runtime validation and convenient conversion to and from dictionaries.
Field names are snake_case; the camelCase spreadsheet headers live in
:mod:`volunteer_sheets.core.layouts`.

An ``id`` of ``0`` means "not stored yet"; stores assign the real id on
create.
"""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class Record(BaseModel):
    """Common base: every stored record has an integer id."""

    model_config = ConfigDict(extra="forbid")

    id: int = 0


class ProjectStatus(StrEnum):
    AVAILABLE = "available"
    IN_PROGRESS = "in_progress"
    WAITING = "waiting"
    COMPLETED = "completed"


class User(Record):
    """A volunteer account.

    Attributes
    ----------
    username, email, full_name:
        The only fields the Users sheet has columns for.
    permissions, metadata:
        Carried by the application's user type but not persisted by the
        spreadsheet backend. Stores log a warning when a non-empty value
        would be dropped.

    """

    username: str = ""
    email: str | None = None
    full_name: str = ""
    permissions: list[str] = Field(default_factory=list)
    metadata: dict[str, Any] = Field(default_factory=dict)


class Project(Record):
    title: str = ""
    description: str = ""
    status: ProjectStatus = ProjectStatus.AVAILABLE
    assignee_id: int | None = None
    assignee_name: str | None = None
    color: str = "blue"


class Message(Record):
    """A chat message. Replies share the ``thread_id`` of their root."""

    sender: str = ""
    content: str = ""
    timestamp: datetime | None = None
    parent_id: int | None = None
    thread_id: int | None = None
    reply_count: int = 0
    committee: str = "general"


class WeeklyReport(Record):
    week_ending: str = ""
    sandwich_count: int = 0
    notes: str | None = None
    submitted_by: str = ""
    submitted_at: datetime | None = None


class SandwichCollection(Record):
    """A logged collection.

    ``id`` is derived from the row position and is never written to the
    sheet. ``group_collections`` is free text (often a JSON blob) kept as-is.
    """

    collection_date: str = ""
    host_name: str = ""
    individual_sandwiches: int = 0
    group_collections: str = ""
    submitted_at: datetime | None = None


class MeetingMinutes(Record):
    title: str = ""
    date: str = ""
    summary: str = ""
    color: str = "blue"


class DriveLink(Record):
    title: str = ""
    description: str = ""
    url: str = ""
    icon: str = ""
    icon_color: str = ""


class ProjectTask(Record):
    project_id: int = 0
    title: str = ""
    description: str = ""
    status: str = "pending"
    order: int = 0
    assignee_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class TaskCompletion(Record):
    task_id: int = 0
    user_id: str = ""
    completed_at: datetime | None = None


class ProjectComment(Record):
    project_id: int = 0
    user_id: str = ""
    content: str = ""
    created_at: datetime | None = None
