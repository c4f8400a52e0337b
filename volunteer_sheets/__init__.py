"""Spreadsheet-backed storage for the volunteer-coordination app.

This module exposes the storage facade, the domain models and the two
spreadsheet clients so that consumers of the package can simply import
them from ``volunteer_sheets``.
"""

from .adapters.google_sheets import GoogleSheetsClient, ServiceAccountAuth
from .adapters.local import LocalSheetsClient
from .core.models import (
    DriveLink,
    MeetingMinutes,
    Message,
    Project,
    ProjectComment,
    ProjectStatus,
    ProjectTask,
    SandwichCollection,
    TaskCompletion,
    User,
    WeeklyReport,
)
from .core.storage import SheetsStorage

__all__ = [
    "DriveLink",
    "GoogleSheetsClient",
    "LocalSheetsClient",
    "MeetingMinutes",
    "Message",
    "Project",
    "ProjectComment",
    "ProjectStatus",
    "ProjectTask",
    "SandwichCollection",
    "ServiceAccountAuth",
    "SheetsStorage",
    "TaskCompletion",
    "User",
    "WeeklyReport",
]
