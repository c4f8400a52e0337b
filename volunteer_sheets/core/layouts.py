"""Declared column layout of every sheet in the spreadsheet.

The header strings match the legacy spreadsheet exactly, including the
human-readable headers of ``SandwichCollections``, which is the one sheet
without a stored id column.
"""

from __future__ import annotations

from dataclasses import dataclass

from .codec import Column, Kind
from .models import (
    DriveLink,
    MeetingMinutes,
    Message,
    Project,
    ProjectComment,
    ProjectTask,
    Record,
    SandwichCollection,
    TaskCompletion,
    User,
    WeeklyReport,
)


@dataclass(frozen=True)
class SheetLayout:
    name: str
    model: type[Record]
    columns: tuple[Column, ...]
    # False when ids are derived from row position instead of column A
    keyed: bool = True

    @property
    def headers(self) -> list[str]:
        return [c.header for c in self.columns]


def _id() -> Column:
    return Column("id", "id", Kind.KEY)


USERS = SheetLayout(
    "Users",
    User,
    (
        _id(),
        Column("username", "username"),
        Column("email", "email", Kind.OPTIONAL_TEXT),
        Column("fullName", "full_name"),
    ),
)

PROJECTS = SheetLayout(
    "Projects",
    Project,
    (
        _id(),
        Column("title", "title"),
        Column("description", "description"),
        Column("status", "status", Kind.STATUS),
        Column("assigneeId", "assignee_id", Kind.OPTIONAL_INTEGER),
        Column("assigneeName", "assignee_name", Kind.OPTIONAL_TEXT),
        Column("color", "color"),
    ),
)

MESSAGES = SheetLayout(
    "Messages",
    Message,
    (
        _id(),
        Column("sender", "sender"),
        Column("content", "content"),
        Column("timestamp", "timestamp", Kind.TIMESTAMP),
        Column("parentId", "parent_id", Kind.OPTIONAL_INTEGER),
        Column("threadId", "thread_id", Kind.OPTIONAL_INTEGER),
        Column("replyCount", "reply_count", Kind.INTEGER),
        Column("committee", "committee"),
    ),
)

WEEKLY_REPORTS = SheetLayout(
    "WeeklyReports",
    WeeklyReport,
    (
        _id(),
        Column("weekEnding", "week_ending"),
        Column("sandwichCount", "sandwich_count", Kind.INTEGER),
        Column("notes", "notes", Kind.OPTIONAL_TEXT),
        Column("submittedBy", "submitted_by"),
        Column("submittedAt", "submitted_at", Kind.TIMESTAMP),
    ),
)

SANDWICH_COLLECTIONS = SheetLayout(
    "SandwichCollections",
    SandwichCollection,
    (
        Column("Date Collected", "collection_date"),
        Column("Host Group", "host_name"),
        Column("Solo Sandwiches", "individual_sandwiches", Kind.INTEGER),
        Column("Group Contributors", "group_collections"),
        Column("Logged At", "submitted_at", Kind.TIMESTAMP),
    ),
    keyed=False,
)

MEETING_MINUTES = SheetLayout(
    "MeetingMinutes",
    MeetingMinutes,
    (
        _id(),
        Column("title", "title"),
        Column("date", "date"),
        Column("summary", "summary"),
        Column("color", "color"),
    ),
)

DRIVE_LINKS = SheetLayout(
    "DriveLinks",
    DriveLink,
    (
        _id(),
        Column("title", "title"),
        Column("description", "description"),
        Column("url", "url"),
        Column("icon", "icon"),
        Column("iconColor", "icon_color"),
    ),
)

PROJECT_TASKS = SheetLayout(
    "ProjectTasks",
    ProjectTask,
    (
        _id(),
        Column("projectId", "project_id", Kind.INTEGER),
        Column("title", "title"),
        Column("description", "description"),
        Column("status", "status"),
        Column("order", "order", Kind.INTEGER),
        Column("assigneeId", "assignee_id", Kind.OPTIONAL_TEXT),
        Column("createdAt", "created_at", Kind.TIMESTAMP),
        Column("updatedAt", "updated_at", Kind.TIMESTAMP),
    ),
)

TASK_COMPLETIONS = SheetLayout(
    "TaskCompletions",
    TaskCompletion,
    (
        _id(),
        Column("taskId", "task_id", Kind.INTEGER),
        Column("userId", "user_id"),
        Column("completedAt", "completed_at", Kind.TIMESTAMP),
    ),
)

PROJECT_COMMENTS = SheetLayout(
    "ProjectComments",
    ProjectComment,
    (
        _id(),
        Column("projectId", "project_id", Kind.INTEGER),
        Column("userId", "user_id"),
        Column("content", "content"),
        Column("createdAt", "created_at", Kind.TIMESTAMP),
    ),
)

# Order matters: missing sheets are created in this order.
ALL_LAYOUTS: tuple[SheetLayout, ...] = (
    USERS,
    PROJECTS,
    MESSAGES,
    WEEKLY_REPORTS,
    SANDWICH_COLLECTIONS,
    MEETING_MINUTES,
    DRIVE_LINKS,
    PROJECT_TASKS,
    TASK_COMPLETIONS,
    PROJECT_COMMENTS,
)
