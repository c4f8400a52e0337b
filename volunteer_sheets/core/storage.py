"""Spreadsheet-backed storage facade.

:class:`SheetsStorage` wires one :class:`~volunteer_sheets.core.sheet.SheetHandle`
and one store per sheet around a single injected client, and exposes flat
methods named like the application's storage interface so it can stand in
wherever the SQL-backed storage is used.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Mapping
from typing import Any, TypeVar

import httpx

from ..adapters.base import SheetsClient
from ..data.store import (
    DriveLinkStore,
    EntityStore,
    MeetingMinutesStore,
    MessageStore,
    ProjectCommentStore,
    ProjectStore,
    ProjectTaskStore,
    SandwichCollectionStore,
    TaskCompletionStore,
    UserStore,
    WeeklyReportStore,
)
from ..exceptions import SheetsAPIError, SheetsPermissionError
from . import layouts
from .codec import RowCodec
from .layouts import SheetLayout
from .models import (
    DriveLink,
    MeetingMinutes,
    Message,
    Project,
    ProjectComment,
    ProjectTask,
    SandwichCollection,
    TaskCompletion,
    User,
    WeeklyReport,
)
from .sheet import SheetHandle

log = logging.getLogger(__name__)

S = TypeVar("S", bound=EntityStore)


class SheetsStorage:
    """All entity stores of one spreadsheet behind one object.

    The client is constructed by the caller and shared by every store; the
    storage never creates or closes it.
    """

    def __init__(self, client: SheetsClient, *, timestamp_fallback: str = "none") -> None:
        self.client = client
        self.timestamp_fallback = timestamp_fallback
        self.sheets: dict[str, SheetHandle] = {}
        self.stores: dict[str, EntityStore] = {}
        self._ready = False
        self._ready_lock = asyncio.Lock()

        self.users = self._store(UserStore, layouts.USERS)
        self.projects = self._store(ProjectStore, layouts.PROJECTS)
        self.messages = self._store(MessageStore, layouts.MESSAGES)
        self.weekly_reports = self._store(WeeklyReportStore, layouts.WEEKLY_REPORTS)
        self.sandwich_collections = self._store(
            SandwichCollectionStore, layouts.SANDWICH_COLLECTIONS
        )
        self.meeting_minutes = self._store(MeetingMinutesStore, layouts.MEETING_MINUTES)
        self.drive_links = self._store(DriveLinkStore, layouts.DRIVE_LINKS)
        self.project_tasks = self._store(ProjectTaskStore, layouts.PROJECT_TASKS)
        self.task_completions = self._store(TaskCompletionStore, layouts.TASK_COMPLETIONS)
        self.project_comments = self._store(ProjectCommentStore, layouts.PROJECT_COMMENTS)

    def _store(self, store_cls: type[S], layout: SheetLayout) -> S:
        sheet = SheetHandle(self.client, layout)
        self.sheets[layout.name] = sheet
        codec = RowCodec(layout.model, layout.columns, timestamp_fallback=self.timestamp_fallback)
        store = store_cls(sheet, codec, self.ensure_worksheets)
        self.stores[layout.name] = store
        return store

    # ------------------------------------------------------------------
    # Worksheet initialisation
    async def ensure_worksheets(self) -> None:
        """Create missing sheets and their header rows.

        Runs against the spreadsheet once per storage instance; later calls
        return immediately. Any client failure is reported as
        :class:`SheetsPermissionError`.
        """
        if self._ready:
            return
        async with self._ready_lock:
            if self._ready:
                return
            try:
                created = await self._create_missing_sheets()
            except (httpx.HTTPError, SheetsAPIError) as exc:
                log.exception("Google Sheets access error")
                raise SheetsPermissionError() from exc
            if created:
                log.info("Created worksheets: %s", ", ".join(created))
            self._ready = True

    async def _create_missing_sheets(self) -> list[str]:
        metadata = await self.client.get_spreadsheet()
        existing = {s["properties"]["title"] for s in metadata.get("sheets", [])}
        missing = [name for name in self.sheets if name not in existing]
        if not missing:
            return []
        await self.client.batch_update(
            [{"addSheet": {"properties": {"title": name}}} for name in missing]
        )
        for name in missing:
            await self.sheets[name].write_header()
        return missing

    # ------------------------------------------------------------------
    # Users
    async def get_user(self, user_id: int) -> User | None:
        return await self.users.get(user_id)

    async def get_user_by_username(self, username: str) -> User | None:
        return await self.users.get_by_username(username)

    async def get_user_by_email(self, email: str) -> User | None:
        return await self.users.get_by_email(email)

    async def create_user(self, user: User) -> User:
        return await self.users.create(user)

    async def upsert_user(self, user: User) -> User:
        return await self.users.upsert(user)

    async def update_user(self, user_id: int, changes: Mapping[str, Any]) -> User | None:
        return await self.users.update(user_id, changes)

    # ------------------------------------------------------------------
    # Projects
    async def get_all_projects(self) -> list[Project]:
        return await self.projects.get_all()

    async def get_project(self, project_id: int) -> Project | None:
        return await self.projects.get(project_id)

    async def create_project(self, project: Project) -> Project:
        return await self.projects.create(project)

    async def update_project(self, project_id: int, changes: Mapping[str, Any]) -> Project | None:
        return await self.projects.update(project_id, changes)

    async def delete_project(self, project_id: int) -> bool:
        return await self.projects.delete(project_id)

    # ------------------------------------------------------------------
    # Messages
    async def get_all_messages(self) -> list[Message]:
        return await self.messages.get_all()

    async def get_recent_messages(self, limit: int) -> list[Message]:
        return await self.messages.get_recent(limit)

    async def get_messages_by_committee(self, committee: str) -> list[Message]:
        return await self.messages.get_by_committee(committee)

    async def get_thread_messages(self, thread_id: int) -> list[Message]:
        return await self.messages.get_thread(thread_id)

    async def create_message(self, message: Message) -> Message:
        return await self.messages.create(message)

    async def create_reply(self, message: Message, parent_id: int) -> Message:
        return await self.messages.create_reply(message, parent_id)

    async def update_reply_count(self, message_id: int) -> Message | None:
        return await self.messages.update_reply_count(message_id)

    async def delete_message(self, message_id: int) -> bool:
        return await self.messages.delete(message_id)

    # ------------------------------------------------------------------
    # Weekly reports
    async def get_all_weekly_reports(self) -> list[WeeklyReport]:
        return await self.weekly_reports.get_all()

    async def create_weekly_report(self, report: WeeklyReport) -> WeeklyReport:
        return await self.weekly_reports.create(report)

    # ------------------------------------------------------------------
    # Sandwich collections
    async def get_all_sandwich_collections(self) -> list[SandwichCollection]:
        return await self.sandwich_collections.get_all()

    async def create_sandwich_collection(
        self, collection: SandwichCollection
    ) -> SandwichCollection:
        return await self.sandwich_collections.create(collection)

    async def update_sandwich_collection(
        self, collection_id: int, changes: Mapping[str, Any]
    ) -> SandwichCollection | None:
        return await self.sandwich_collections.update(collection_id, changes)

    async def delete_sandwich_collection(self, collection_id: int) -> bool:
        return await self.sandwich_collections.delete(collection_id)

    # ------------------------------------------------------------------
    # Meeting minutes and drive links
    async def get_all_meeting_minutes(self) -> list[MeetingMinutes]:
        return await self.meeting_minutes.get_all()

    async def get_recent_meeting_minutes(self, limit: int) -> list[MeetingMinutes]:
        return await self.meeting_minutes.get_recent(limit)

    async def create_meeting_minutes(self, minutes: MeetingMinutes) -> MeetingMinutes:
        return await self.meeting_minutes.create(minutes)

    async def get_all_drive_links(self) -> list[DriveLink]:
        return await self.drive_links.get_all()

    async def create_drive_link(self, link: DriveLink) -> DriveLink:
        return await self.drive_links.create(link)

    # ------------------------------------------------------------------
    # Project tasks
    async def get_project_tasks(self, project_id: int) -> list[ProjectTask]:
        return await self.project_tasks.get_for_project(project_id)

    async def get_project_task(self, task_id: int) -> ProjectTask | None:
        return await self.project_tasks.get(task_id)

    async def create_project_task(self, task: ProjectTask) -> ProjectTask:
        return await self.project_tasks.create(task)

    async def update_project_task(
        self, task_id: int, changes: Mapping[str, Any]
    ) -> ProjectTask | None:
        return await self.project_tasks.update(task_id, changes)

    async def update_task_status(self, task_id: int, status: str) -> bool:
        return await self.project_tasks.update_status(task_id, status)

    async def delete_project_task(self, task_id: int) -> bool:
        return await self.project_tasks.delete(task_id)

    # ------------------------------------------------------------------
    # Task completions
    async def create_task_completion(self, completion: TaskCompletion) -> TaskCompletion:
        return await self.task_completions.create(completion)

    async def get_task_completions(self, task_id: int) -> list[TaskCompletion]:
        return await self.task_completions.get_for_task(task_id)

    async def remove_task_completion(self, task_id: int, user_id: str) -> bool:
        return await self.task_completions.remove(task_id, user_id)

    # ------------------------------------------------------------------
    # Project comments
    async def get_project_comments(self, project_id: int) -> list[ProjectComment]:
        return await self.project_comments.get_for_project(project_id)

    async def create_project_comment(self, comment: ProjectComment) -> ProjectComment:
        return await self.project_comments.create(comment)

    async def delete_project_comment(self, comment_id: int) -> bool:
        return await self.project_comments.delete(comment_id)
