"""Typed CRUD stores, one per sheet.

Every store follows the same contract:

* ``get_all()`` lists live records in sheet order; blank rows are skipped.
* ``get(id)`` returns ``None`` when the record does not exist.
* ``create(record)`` assigns a fresh id and writes a new row.
* ``update(id, changes)`` merges ``changes`` over the stored record and
  rewrites its row; ``None`` when the record does not exist.
* ``delete(id)`` clears the record's row; ``False`` when it does not exist.

Deletion always clears the row in place, so rows never move and
row-derived ids (sandwich collections) stay stable. On sheets with an id
column the cleared row keeps the id negated in column A: listings skip keys
<= 0, while the id allocator still counts it, so a deleted id is never
handed out again even when it was the highest one.

Writes hold the sheet's lock and re-read the target row right before
overwriting it; if the row no longer matches what was read a
:class:`~volunteer_sheets.exceptions.ConcurrentModificationError` is
raised instead of clobbering another writer's change.
"""

from __future__ import annotations

import datetime
import logging
from collections.abc import Awaitable, Callable, Iterator, Mapping
from contextlib import contextmanager
from datetime import UTC
from typing import Any, Generic, TypeVar

import httpx

from ..adapters.base import Row
from ..core.codec import Decoded, RowCodec, is_blank, parse_int
from ..core.models import (
    DriveLink,
    MeetingMinutes,
    Message,
    Project,
    ProjectComment,
    ProjectStatus,
    ProjectTask,
    Record,
    SandwichCollection,
    TaskCompletion,
    User,
    WeeklyReport,
)
from ..core.sheet import IdAllocator, SheetHandle
from ..exceptions import (
    ConcurrentModificationError,
    InvalidInputError,
    MessageNotFoundError,
    SheetsAPIError,
)

log = logging.getLogger(__name__)

R = TypeVar("R", bound=Record)

Ready = Callable[[], Awaitable[None]]


def _now() -> datetime.datetime:
    return datetime.datetime.now(tz=UTC)


class EntityStore(Generic[R]):
    """CRUD over one sheet for records of a single model."""

    def __init__(self, sheet: SheetHandle, codec: RowCodec[R], ready: Ready) -> None:
        self.sheet = sheet
        self.codec = codec
        self.ids = IdAllocator(sheet)
        self._ready = ready

    # ------------------------------------------------------------------
    # Internal helpers
    @contextmanager
    def _reporting(self, action: str) -> Iterator[None]:
        try:
            yield
        except (httpx.HTTPError, SheetsAPIError):
            log.exception("Error %s on sheet %s", action, self.sheet.name)
            raise

    def _key(self, row_number: int, row: Row) -> int:
        return (parse_int(row[0]) or 0) if row else 0

    def _decode(self, row_number: int, row: Row) -> R:
        decoded: Decoded[R] = self.codec.decode(row)
        if not decoded.clean:
            log.warning(
                "Row %d of %s used defaults for %s",
                row_number,
                self.sheet.name,
                ", ".join(decoded.defaulted),
            )
        return decoded.record

    async def _rows(self) -> list[tuple[int, Row]]:
        """Data rows paired with their 1-based row number."""
        values = await self.sheet.read_rows()
        return list(enumerate(values[1:], start=2))

    def _find(self, rows: list[tuple[int, Row]], record_id: int) -> tuple[int, Row] | None:
        if record_id <= 0:
            return None
        return next(
            ((n, row) for n, row in rows if self._key(n, row) == record_id),
            None,
        )

    async def _verify(self, row_number: int, snapshot: Row) -> None:
        current = await self.sheet.read_row(row_number)
        if self.sheet.normalize(current) != self.sheet.normalize(snapshot):
            raise ConcurrentModificationError(self.sheet.name, row_number)

    def _warn_dropped(self, record: R) -> None:
        dropped = self.codec.dropped_fields(record)
        if dropped:
            log.warning(
                "%s cannot store %s; values for record %d were not saved",
                self.sheet.name,
                ", ".join(dropped),
                record.id,
            )

    async def _allocate_id(self) -> int:
        return await self.ids.next_id()

    async def _write_new(self, record: R) -> None:
        await self.sheet.append_row(self.codec.encode(record))

    def _cleared_row(self, record_id: int) -> list[Any]:
        return [-record_id] + [""] * (self.sheet.width - 1)

    def _prepare_new(self, record: R) -> R:
        """Fill in defaults of a record that already carries its new id."""
        return record

    def _prepare_changes(self, current: R, changes: dict[str, Any]) -> dict[str, Any]:
        return changes

    def _check_fields(self, changes: Mapping[str, Any]) -> None:
        unknown = set(changes) - set(self.codec.model.model_fields)
        if unknown:
            raise InvalidInputError(
                f"Unknown field(s) for {self.sheet.name}: {', '.join(sorted(unknown))}"
            )

    # ------------------------------------------------------------------
    # Public operations
    async def get_all(self) -> list[R]:
        await self._ready()
        with self._reporting("listing records"):
            rows = await self._rows()
        return [self._decode(n, row) for n, row in rows if self._key(n, row) > 0]

    async def get(self, record_id: int) -> R | None:
        return next((r for r in await self.get_all() if r.id == record_id), None)

    async def create(self, record: R) -> R:
        await self._ready()
        async with self.sheet.lock:
            with self._reporting("creating record"):
                new_id = await self._allocate_id()
                stored = self._prepare_new(record.model_copy(update={"id": new_id}))
                self._warn_dropped(stored)
                await self._write_new(stored)
        log.debug("Created %s %d", self.sheet.name, stored.id)
        return stored

    async def update(self, record_id: int, changes: Mapping[str, Any]) -> R | None:
        self._check_fields(changes)
        await self._ready()
        async with self.sheet.lock:
            with self._reporting("updating record"):
                found = self._find(await self._rows(), record_id)
                if found is None:
                    return None
                row_number, row = found
                current = self._decode(row_number, row)
                merged_changes = self._prepare_changes(current, dict(changes))
                merged = self.codec.model.model_validate(
                    {**current.model_dump(), **merged_changes, "id": current.id}
                )
                self._warn_dropped(merged)
                await self._verify(row_number, row)
                await self.sheet.write_row(row_number, self.codec.encode(merged))
        return merged

    async def delete(self, record_id: int) -> bool:
        await self._ready()
        async with self.sheet.lock:
            with self._reporting("deleting record"):
                found = self._find(await self._rows(), record_id)
                if found is None:
                    return False
                row_number, row = found
                await self._verify(row_number, row)
                await self.sheet.write_row(row_number, self._cleared_row(record_id))
        log.info("Deleted %s %d (row %d cleared)", self.sheet.name, record_id, row_number)
        return True

    async def filter(self, predicate: Callable[[R], bool]) -> list[R]:
        return [r for r in await self.get_all() if predicate(r)]


# ----------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------
class UserStore(EntityStore[User]):
    async def get_by_username(self, username: str) -> User | None:
        return next((u for u in await self.get_all() if u.username == username), None)

    async def get_by_email(self, email: str) -> User | None:
        return next((u for u in await self.get_all() if u.email == email), None)

    async def upsert(self, user: User) -> User:
        """Update the user matching ``user.id`` or ``user.email``, else create it.

        Only non-empty incoming values overwrite what is stored.
        """
        existing = next(
            (
                u
                for u in await self.get_all()
                if (user.id and u.id == user.id) or (user.email and u.email == user.email)
            ),
            None,
        )
        if existing is not None:
            changes = {
                name: getattr(user, name)
                for name in ("username", "email", "full_name")
                if getattr(user, name)
            }
            updated = await self.update(existing.id, changes)
            if updated is not None:
                return updated
        return await self.create(user)


# ----------------------------------------------------------------------
# Projects
# ----------------------------------------------------------------------
class ProjectStore(EntityStore[Project]):
    def _prepare_changes(self, current: Project, changes: dict[str, Any]) -> dict[str, Any]:
        # An explicit status always wins over the assignee-driven transition.
        if "status" in changes or "assignee_name" not in changes:
            return changes
        name = changes["assignee_name"]
        if name and name.strip() and current.status is ProjectStatus.AVAILABLE:
            changes["status"] = ProjectStatus.IN_PROGRESS
        elif not name and current.status is ProjectStatus.IN_PROGRESS:
            changes["status"] = ProjectStatus.AVAILABLE
        return changes


# ----------------------------------------------------------------------
# Messages
# ----------------------------------------------------------------------
def _timestamp_key(message: Message) -> datetime.datetime:
    return message.timestamp or datetime.datetime.min.replace(tzinfo=UTC)


class MessageStore(EntityStore[Message]):
    def _prepare_new(self, record: Message) -> Message:
        return record.model_copy(
            update={
                "timestamp": record.timestamp or _now(),
                "thread_id": record.thread_id or record.id,
                "reply_count": 0,
            }
        )

    async def get_recent(self, limit: int) -> list[Message]:
        if limit <= 0:
            return []
        return (await self.get_all())[-limit:]

    async def get_by_committee(self, committee: str) -> list[Message]:
        """Messages of ``committee``, newest first."""
        messages = await self.filter(lambda m: m.committee == committee)
        return sorted(messages, key=_timestamp_key, reverse=True)

    async def get_thread(self, thread_id: int) -> list[Message]:
        """Messages of a thread, oldest first."""
        messages = await self.filter(lambda m: m.thread_id == thread_id)
        return sorted(messages, key=_timestamp_key)

    async def create_reply(self, message: Message, parent_id: int) -> Message:
        parent = await self.get(parent_id)
        if parent is None:
            raise MessageNotFoundError(parent_id)
        root_id = parent.thread_id or parent.id
        reply = await self.create(
            message.model_copy(update={"parent_id": parent.id, "thread_id": root_id})
        )
        await self.update_reply_count(root_id)
        return reply

    async def update_reply_count(self, message_id: int) -> Message | None:
        """Store on ``message_id`` how many other messages share its thread."""
        messages = await self.get_all()
        message = next((m for m in messages if m.id == message_id), None)
        if message is None:
            return None
        count = sum(1 for m in messages if m.thread_id == message.thread_id and m.id != message.id)
        return await self.update(message_id, {"reply_count": count})


# ----------------------------------------------------------------------
# Reports and collections
# ----------------------------------------------------------------------
class WeeklyReportStore(EntityStore[WeeklyReport]):
    def _prepare_new(self, record: WeeklyReport) -> WeeklyReport:
        return record.model_copy(update={"submitted_at": record.submitted_at or _now()})


class SandwichCollectionStore(EntityStore[SandwichCollection]):
    """Collections have no id column; the id is the row position.

    With header in row 1, the record in row ``n`` has id ``n - 1``. Because
    deletes only blank rows, ids of the remaining records do not shift.
    New rows are written to an explicit row rather than appended, so a
    blank row left by a delete never changes where they land.

    Deleting the last collection frees its position: the next create gets
    the same id, so a stale id may then refer to a different collection.
    """

    def _key(self, row_number: int, row: Row) -> int:
        return 0 if is_blank(row) else row_number - 1

    def _cleared_row(self, record_id: int) -> list[Any]:
        return [""] * self.sheet.width

    def _decode(self, row_number: int, row: Row) -> SandwichCollection:
        record = super()._decode(row_number, row)
        return record.model_copy(update={"id": row_number - 1})

    async def _allocate_id(self) -> int:
        # the row after the last one holding data; trailing blanks are trimmed
        return len(await self.sheet.read_rows())

    async def _write_new(self, record: SandwichCollection) -> None:
        await self.sheet.write_row(record.id + 1, self.codec.encode(record))

    def _prepare_new(self, record: SandwichCollection) -> SandwichCollection:
        return record.model_copy(update={"submitted_at": record.submitted_at or _now()})


class MeetingMinutesStore(EntityStore[MeetingMinutes]):
    async def get_recent(self, limit: int) -> list[MeetingMinutes]:
        if limit <= 0:
            return []
        return (await self.get_all())[-limit:]


class DriveLinkStore(EntityStore[DriveLink]):
    pass


# ----------------------------------------------------------------------
# Project tasks, completions and comments
# ----------------------------------------------------------------------
class ProjectTaskStore(EntityStore[ProjectTask]):
    def _prepare_new(self, record: ProjectTask) -> ProjectTask:
        now = _now()
        return record.model_copy(
            update={"created_at": record.created_at or now, "updated_at": now}
        )

    def _prepare_changes(self, current: ProjectTask, changes: dict[str, Any]) -> dict[str, Any]:
        changes.setdefault("updated_at", _now())
        return changes

    async def get_for_project(self, project_id: int) -> list[ProjectTask]:
        return await self.filter(lambda t: t.project_id == project_id)

    async def update_status(self, task_id: int, status: str) -> bool:
        return await self.update(task_id, {"status": status}) is not None


class TaskCompletionStore(EntityStore[TaskCompletion]):
    def _prepare_new(self, record: TaskCompletion) -> TaskCompletion:
        return record.model_copy(update={"completed_at": record.completed_at or _now()})

    async def get_for_task(self, task_id: int) -> list[TaskCompletion]:
        return await self.filter(lambda c: c.task_id == task_id)

    async def remove(self, task_id: int, user_id: str) -> bool:
        """Delete the completion of ``task_id`` by ``user_id``."""
        match = next(
            (c for c in await self.get_for_task(task_id) if c.user_id == user_id),
            None,
        )
        if match is None:
            return False
        return await self.delete(match.id)


class ProjectCommentStore(EntityStore[ProjectComment]):
    def _prepare_new(self, record: ProjectComment) -> ProjectComment:
        return record.model_copy(update={"created_at": record.created_at or _now()})

    async def get_for_project(self, project_id: int) -> list[ProjectComment]:
        return await self.filter(lambda c: c.project_id == project_id)
