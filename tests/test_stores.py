import asyncio
import datetime
import logging
from datetime import UTC

import pytest

from volunteer_sheets.adapters.local import LocalSheetsClient
from volunteer_sheets.core.codec import is_blank
from volunteer_sheets.core.models import (
    DriveLink,
    MeetingMinutes,
    Message,
    ProjectComment,
    ProjectTask,
    SandwichCollection,
    TaskCompletion,
    User,
    WeeklyReport,
)
from volunteer_sheets.core.storage import SheetsStorage
from volunteer_sheets.exceptions import InvalidInputError, MessageNotFoundError


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def storage(tmp_path):
    return SheetsStorage(LocalSheetsClient(tmp_path / "sheet.json"))


# ----------------------------------------------------------------------
# Users
# ----------------------------------------------------------------------
def test_user_lookups(storage):
    async def scenario():
        await storage.create_user(User(username="jane", email="jane@example.org", full_name="Jane Doe"))
        await storage.create_user(User(username="sam", full_name="Sam Roe"))
        return (
            await storage.get_user_by_username("sam"),
            await storage.get_user_by_email("jane@example.org"),
            await storage.get_user_by_username("nobody"),
        )

    sam, jane, nobody = run(scenario())
    assert sam.id == 2 and sam.email is None
    assert jane.id == 1 and jane.full_name == "Jane Doe"
    assert nobody is None


def test_upsert_updates_by_email_and_keeps_blank_fields(storage):
    async def scenario():
        await storage.create_user(User(username="jane", email="jane@example.org", full_name="Jane Doe"))
        updated = await storage.upsert_user(User(email="jane@example.org", full_name="Jane Smith"))
        created = await storage.upsert_user(User(username="new", email="new@example.org"))
        return updated, created, await storage.users.get_all()

    updated, created, users = run(scenario())
    assert updated.id == 1
    assert updated.username == "jane"
    assert updated.full_name == "Jane Smith"
    assert created.id == 2
    assert len(users) == 2


def test_user_fields_without_columns_are_logged(storage, caplog):
    user = User(username="admin", permissions=["manage_users"], metadata={"team": "core"})
    with caplog.at_level(logging.WARNING, logger="volunteer_sheets"):
        stored = run(storage.create_user(user))
    assert "permissions, metadata" in caplog.text
    # the returned record still carries them; the sheet does not
    assert stored.permissions == ["manage_users"]
    assert run(storage.get_user(stored.id)).permissions == []


def test_update_rejects_unknown_fields(storage):
    async def scenario():
        user = await storage.create_user(User(username="jane"))
        await storage.update_user(user.id, {"nickname": "JJ"})

    with pytest.raises(InvalidInputError):
        run(scenario())


def test_update_user_changes_only_given_fields(storage):
    async def scenario():
        user = await storage.create_user(User(username="jane", email="jane@example.org"))
        return await storage.update_user(user.id, {"full_name": "Jane Doe"})

    updated = run(scenario())
    assert updated.username == "jane"
    assert updated.email == "jane@example.org"
    assert updated.full_name == "Jane Doe"


# ----------------------------------------------------------------------
# Messages
# ----------------------------------------------------------------------
def at(minute: int) -> datetime.datetime:
    return datetime.datetime(2024, 6, 1, 12, minute, tzinfo=UTC)


def test_message_defaults_and_queries(storage):
    async def scenario():
        first = await storage.create_message(Message(sender="a", content="1", timestamp=at(5)))
        await storage.create_message(Message(sender="b", content="2", timestamp=at(1), committee="hosts"))
        await storage.create_message(Message(sender="c", content="3", timestamp=at(9), committee="hosts"))
        return (
            first,
            await storage.get_recent_messages(2),
            await storage.get_messages_by_committee("hosts"),
            await storage.get_recent_messages(0),
        )

    first, recent, hosts, none = run(scenario())
    assert first.thread_id == first.id == 1
    assert first.committee == "general"
    assert first.reply_count == 0
    assert [m.id for m in recent] == [2, 3]
    assert [m.id for m in hosts] == [3, 2]
    assert none == []


def test_thread_is_oldest_first(storage):
    async def scenario():
        root = await storage.create_message(Message(sender="a", content="root", timestamp=at(1)))
        late = Message(sender="b", content="late", timestamp=at(30))
        early = Message(sender="c", content="early", timestamp=at(10))
        await storage.create_reply(late, root.id)
        await storage.create_reply(early, root.id)
        return await storage.get_thread_messages(root.id)

    thread = run(scenario())
    assert [m.content for m in thread] == ["root", "early", "late"]


def test_reply_to_missing_parent(storage):
    with pytest.raises(MessageNotFoundError):
        run(storage.create_reply(Message(sender="a", content="?"), 42))


def test_delete_message_clears_row_in_place(storage):
    async def scenario():
        for i in range(3):
            await storage.create_message(Message(sender="a", content=str(i)))
        deleted = await storage.delete_message(1)
        rows = await storage.client.get_values("Messages!A:H")
        return deleted, rows, await storage.get_all_messages()

    deleted, rows, messages = run(scenario())
    assert deleted is True
    assert len(rows) == 4
    assert rows[1] == ["-1"]
    assert [m.id for m in messages] == [2, 3]


# ----------------------------------------------------------------------
# Reports, collections, minutes, links
# ----------------------------------------------------------------------
def test_weekly_report_gets_submission_time(storage):
    before = datetime.datetime.now(tz=UTC)
    report = run(storage.create_weekly_report(WeeklyReport(week_ending="2024-06-07", sandwich_count=350, submitted_by="Ann")))
    assert report.id == 1
    assert report.submitted_at >= before
    assert report.notes is None

    stored = run(storage.get_all_weekly_reports())
    assert stored == [report]


def test_sandwich_collection_ids_follow_rows(storage):
    async def scenario():
        for host in ("North", "South", "East"):
            await storage.create_sandwich_collection(
                SandwichCollection(collection_date="2024-06-01", host_name=host, individual_sandwiches=10)
            )
        assert await storage.delete_sandwich_collection(2) is True
        updated = await storage.update_sandwich_collection(3, {"individual_sandwiches": 25})
        missing = await storage.update_sandwich_collection(2, {"individual_sandwiches": 1})
        return updated, missing, await storage.get_all_sandwich_collections()

    updated, missing, collections = run(scenario())
    assert missing is None
    assert updated.id == 3 and updated.host_name == "East"
    assert [(c.id, c.host_name, c.individual_sandwiches) for c in collections] == [
        (1, "North", 10),
        (3, "East", 25),
    ]


def test_sandwich_collection_create_returns_position(storage):
    async def scenario():
        first = await storage.create_sandwich_collection(SandwichCollection(host_name="North"))
        second = await storage.create_sandwich_collection(SandwichCollection(host_name="South"))
        return first, second, await storage.client.get_values("SandwichCollections!A3:E3")

    first, second, row = run(scenario())
    assert (first.id, second.id) == (1, 2)
    assert row[0][1] == "South"


class TableAppendClient(LocalSheetsClient):
    """Appends into the first blank row, as Sheets does when a gap ends the table."""

    async def append_values(self, range_, values):
        rows = self._sheets[range_.partition("!")[0]]["rows"]
        gap = next((i for i in range(1, len(rows)) if is_blank(rows[i])), None)
        if gap is None:
            return await super().append_values(range_, values)
        rows[gap:gap] = [list(v) for v in values]
        self._save()


def test_sandwich_collection_create_after_middle_delete(tmp_path):
    storage = SheetsStorage(TableAppendClient(tmp_path / "sheet.json"))

    async def scenario():
        for host in ("North", "South", "East"):
            await storage.create_sandwich_collection(SandwichCollection(host_name=host))
        await storage.delete_sandwich_collection(2)
        created = await storage.create_sandwich_collection(SandwichCollection(host_name="West"))
        return created, await storage.get_all_sandwich_collections()

    created, collections = run(scenario())
    assert created.id == 4
    assert [(c.id, c.host_name) for c in collections] == [
        (1, "North"),
        (3, "East"),
        (4, "West"),
    ]


def test_sandwich_collection_last_position_is_reused(storage):
    async def scenario():
        for host in ("North", "South", "East"):
            await storage.create_sandwich_collection(SandwichCollection(host_name=host))
        await storage.delete_sandwich_collection(3)
        created = await storage.create_sandwich_collection(SandwichCollection(host_name="West"))
        return created, await storage.get_all_sandwich_collections()

    created, collections = run(scenario())
    assert created.id == 3
    assert [(c.id, c.host_name) for c in collections] == [(1, "North"), (2, "South"), (3, "West")]


def test_meeting_minutes_and_drive_links(storage):
    async def scenario():
        for title in ("Jan", "Feb", "Mar"):
            await storage.create_meeting_minutes(MeetingMinutes(title=title, date="2024-01-01", summary="..."))
        link = await storage.create_drive_link(
            DriveLink(title="Schedule", url="https://drive.example/schedule", icon="calendar", icon_color="green")
        )
        return (
            await storage.get_recent_meeting_minutes(2),
            await storage.get_all_meeting_minutes(),
            link,
            await storage.get_all_drive_links(),
        )

    recent, minutes, link, links = run(scenario())
    assert [m.title for m in recent] == ["Feb", "Mar"]
    assert all(m.color == "blue" for m in minutes)
    assert links == [link]


# ----------------------------------------------------------------------
# Tasks, completions and comments
# ----------------------------------------------------------------------
def test_project_tasks(storage):
    async def scenario():
        task = await storage.create_project_task(ProjectTask(project_id=1, title="Buy bread", order=1))
        await storage.create_project_task(ProjectTask(project_id=2, title="Other project"))
        await storage.create_project_task(ProjectTask(project_id=1, title="Make sandwiches", order=2))
        assert await storage.update_task_status(task.id, "completed") is True
        assert await storage.update_task_status(99, "completed") is False
        return task, await storage.get_project_task(task.id), await storage.get_project_tasks(1)

    task, reloaded, tasks = run(scenario())
    assert task.created_at is not None and task.created_at == task.updated_at
    assert reloaded.status == "completed"
    assert reloaded.created_at == task.created_at
    assert reloaded.updated_at >= task.updated_at
    assert [t.title for t in tasks] == ["Buy bread", "Make sandwiches"]


def test_project_task_keeps_given_creation_time(storage):
    created_at = datetime.datetime(2024, 1, 15, 9, 30, tzinfo=UTC)
    task = run(storage.create_project_task(ProjectTask(project_id=1, title="Imported", created_at=created_at)))
    assert task.created_at == created_at
    assert task.updated_at > created_at
    assert run(storage.get_project_task(task.id)).created_at == created_at


def test_delete_project_task(storage):
    async def scenario():
        task = await storage.create_project_task(ProjectTask(project_id=1, title="Buy bread"))
        deleted = await storage.delete_project_task(task.id)
        again = await storage.delete_project_task(task.id)
        return deleted, again, await storage.get_project_tasks(1)

    assert run(scenario()) == (True, False, [])


def test_task_completions(storage):
    async def scenario():
        await storage.create_task_completion(TaskCompletion(task_id=1, user_id="u1"))
        await storage.create_task_completion(TaskCompletion(task_id=1, user_id="u2"))
        await storage.create_task_completion(TaskCompletion(task_id=2, user_id="u1"))
        removed = await storage.remove_task_completion(1, "u1")
        not_there = await storage.remove_task_completion(1, "u9")
        return removed, not_there, await storage.get_task_completions(1)

    removed, not_there, completions = run(scenario())
    assert removed is True and not_there is False
    assert [(c.id, c.user_id) for c in completions] == [(2, "u2")]
    assert completions[0].completed_at is not None


def test_project_comments(storage):
    async def scenario():
        first = await storage.create_project_comment(ProjectComment(project_id=3, user_id="u1", content="On it"))
        await storage.create_project_comment(ProjectComment(project_id=4, user_id="u2", content="Elsewhere"))
        await storage.delete_project_comment(first.id)
        await storage.create_project_comment(ProjectComment(project_id=3, user_id="u2", content="Thanks"))
        return await storage.get_project_comments(3)

    comments = run(scenario())
    assert [(c.id, c.content) for c in comments] == [(3, "Thanks")]
    assert comments[0].created_at is not None


def test_malformed_rows_are_logged(storage, caplog):
    async def scenario():
        await storage.ensure_worksheets()
        await storage.client.append_values("WeeklyReports!A:F", [[1, "2024-06-07", "lots", "", "Ann", "yesterday"]])
        return await storage.get_all_weekly_reports()

    with caplog.at_level(logging.WARNING, logger="volunteer_sheets"):
        reports = run(scenario())
    assert reports[0].sandwich_count == 0
    assert reports[0].submitted_at is None
    assert "sandwich_count, submitted_at" in caplog.text
