"""Unit tests for EndOfDayMigrator (local-midnight todo migration)."""

import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from bson import ObjectId

from journal.services.eod import EndOfDayMigrator


# ─────────────────────────────────────────────────────────────────
# In-memory collaborators
# ─────────────────────────────────────────────────────────────────


class FakeUserService:
    def __init__(self, users):
        self.users = {user["_id"]: user for user in users}
        self.guard_writes = 0

    async def iter_users(self, batch_size=500):
        for user in list(self.users.values()):
            yield user

    async def set_last_entry_date(self, user_id, date_str):
        stats = self.users[user_id]["profile"].setdefault("diaryStats", {})
        if stats.get("lastEntryDate") == date_str:
            return False
        stats["lastEntryDate"] = date_str
        self.guard_writes += 1
        return True

    async def adjust_entry_count(self, user_id, delta):
        stats = self.users[user_id]["profile"].setdefault("diaryStats", {})
        stats["totalEntries"] = stats.get("totalEntries", 0) + delta


class FakeTodoService:
    """Only todos that exist at the clock time are visible."""

    def __init__(self, todos, clock):
        self.todos = todos
        self.clock = clock
        self.queries = []

    async def find_created_in_range(self, user_id, start, end):
        self.queries.append((user_id, start, end))
        now = self.clock()
        found = [
            todo for todo in self.todos
            if todo["userId"] == user_id
            and todo["createdAt"] <= now
            and start <= todo["createdAt"] < end
        ]
        return sorted(found, key=lambda todo: todo["createdAt"])


class FakeDiaryService:
    def __init__(self, fail_for=None):
        self.entries = {}
        self.fail_for = fail_for or set()

    async def append_todos_to_day(self, user_id, date, todo_ids):
        if user_id in self.fail_for:
            raise RuntimeError("write failed")
        entry = self.entries.setdefault((user_id, date), {"todoIds": [], "entryCounted": False})
        for todo_id in todo_ids:
            if todo_id not in entry["todoIds"]:
                entry["todoIds"].append(todo_id)

    async def claim_entry_count(self, user_id, date):
        entry = self.entries.get((user_id, date))
        if not entry or entry.get("entryCounted") is not False:
            return False
        entry["entryCounted"] = True
        return True


def make_user(tz=None, last_entry_date=None, email="alice@example.com"):
    settings = {"timezone": tz} if tz else {}
    return {
        "_id": ObjectId(),
        "email": email,
        "profile": {
            "settings": settings,
            "diaryStats": {"totalEntries": 0, "lastEntryDate": last_entry_date},
        },
    }


def make_todo(user, created_at):
    return {"_id": ObjectId(), "userId": user["_id"], "createdAt": created_at}


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


# 2025-03-11 00:00 in Asia/Kolkata (UTC+05:30), closing the local day 2025-03-10
KOLKATA_MIDNIGHT = utc(2025, 3, 10, 18, 30)
# 2025-03-11 00:00 UTC, closing 2025-03-10
UTC_MIDNIGHT = utc(2025, 3, 11, 0, 0)


def build(users, todos, clock_time, diary=None):
    clock = {"now": clock_time}
    user_service = FakeUserService(users)
    todo_service = FakeTodoService(todos, clock=lambda: clock["now"])
    diary_service = diary or FakeDiaryService()
    migrator = EndOfDayMigrator(
        user_service=user_service,
        todo_service=todo_service,
        diary_service=diary_service,
        clock=lambda: clock["now"],
    )
    return migrator, user_service, todo_service, diary_service


# ─────────────────────────────────────────────────────────────────
# run_migration_cycle
# ─────────────────────────────────────────────────────────────────


class TestMigrationCycle:
    @pytest.mark.asyncio
    async def test_kolkata_midnight_moves_the_days_todos(self):
        user = make_user(tz="Asia/Kolkata")
        # 08:30, 10:30 and 15:30 local on 2025-03-10
        todos = [
            make_todo(user, utc(2025, 3, 10, 3, 0)),
            make_todo(user, utc(2025, 3, 10, 5, 0)),
            make_todo(user, utc(2025, 3, 10, 10, 0)),
        ]
        migrator, users, _, diary = build([user], todos, KOLKATA_MIDNIGHT)

        results = await migrator.run_migration_cycle()

        entry = diary.entries[(user["_id"], "2025-03-10")]
        assert entry["todoIds"] == [todo["_id"] for todo in todos]
        assert user["profile"]["diaryStats"]["lastEntryDate"] == "2025-03-11"
        assert user["profile"]["diaryStats"]["totalEntries"] == 1
        assert results["usersMigrated"] == 1
        assert results["todosMoved"] == 3
        assert results["errors"] == []

    @pytest.mark.asyncio
    async def test_second_cycle_same_midnight_changes_nothing(self):
        user = make_user(tz="Asia/Kolkata")
        todos = [make_todo(user, utc(2025, 3, 10, 3, 0)) for _ in range(3)]
        migrator, users, _, diary = build([user], todos, KOLKATA_MIDNIGHT)

        await migrator.run_migration_cycle()
        results = await migrator.run_migration_cycle()

        assert len(diary.entries) == 1
        assert len(diary.entries[(user["_id"], "2025-03-10")]["todoIds"]) == 3
        assert user["profile"]["diaryStats"]["lastEntryDate"] == "2025-03-11"
        assert user["profile"]["diaryStats"]["totalEntries"] == 1
        assert users.guard_writes == 1
        assert results["skipped"] == 1
        assert results["todosMoved"] == 0

    @pytest.mark.asyncio
    async def test_midday_todo_lands_in_its_days_entry_at_next_midnight(self):
        user = make_user(tz="Asia/Kolkata")
        # 14:00 local on 2025-03-11
        todo = make_todo(user, utc(2025, 3, 11, 8, 30))
        clock = {"now": KOLKATA_MIDNIGHT}
        diary = FakeDiaryService()
        migrator = EndOfDayMigrator(
            user_service=FakeUserService([user]),
            todo_service=FakeTodoService([todo], clock=lambda: clock["now"]),
            diary_service=diary,
            clock=lambda: clock["now"],
        )

        # Every local midnight from 2025-03-10 to 2025-03-16
        for offset in range(-1, 6):
            clock["now"] = KOLKATA_MIDNIGHT + timedelta(days=offset)
            await migrator.run_migration_cycle()

        holding = [key for key, entry in diary.entries.items() if todo["_id"] in entry["todoIds"]]
        assert holding == [(user["_id"], "2025-03-11")]
        assert user["profile"]["diaryStats"]["lastEntryDate"] == "2025-03-16"

    @pytest.mark.asyncio
    async def test_not_midnight_is_skipped(self):
        user = make_user(tz="Asia/Kolkata")
        todos = [make_todo(user, utc(2025, 3, 10, 3, 0))]
        migrator, users, todo_service, diary = build([user], todos, utc(2025, 3, 10, 18, 31))

        results = await migrator.run_migration_cycle()

        assert diary.entries == {}
        assert todo_service.queries == []
        assert user["profile"]["diaryStats"]["lastEntryDate"] is None
        assert results["skipped"] == 1

    @pytest.mark.asyncio
    async def test_no_todos_still_advances_guard_without_entry(self):
        user = make_user(tz="Asia/Kolkata")
        migrator, _, _, diary = build([user], [], KOLKATA_MIDNIGHT)

        results = await migrator.run_migration_cycle()

        assert diary.entries == {}
        assert user["profile"]["diaryStats"]["lastEntryDate"] == "2025-03-11"
        assert user["profile"]["diaryStats"]["totalEntries"] == 0
        assert results["usersMigrated"] == 1
        assert results["todosMoved"] == 0

    @pytest.mark.asyncio
    async def test_missing_timezone_defaults_to_utc(self):
        user = make_user(tz=None)
        todo = make_todo(user, utc(2025, 3, 10, 9, 0))
        migrator, _, _, diary = build([user], [todo], UTC_MIDNIGHT)

        await migrator.run_migration_cycle()

        assert diary.entries[(user["_id"], "2025-03-10")]["todoIds"] == [todo["_id"]]
        assert user["profile"]["diaryStats"]["lastEntryDate"] == "2025-03-11"

    @pytest.mark.asyncio
    async def test_unknown_timezone_falls_back_to_utc(self):
        user = make_user(tz="Mars/Olympus_Mons")
        migrator, _, _, _ = build([user], [], UTC_MIDNIGHT)

        await migrator.run_migration_cycle()

        assert user["profile"]["diaryStats"]["lastEntryDate"] == "2025-03-11"

    @pytest.mark.asyncio
    async def test_selection_window_is_the_local_day_that_ended(self):
        user = make_user(tz="Asia/Kolkata")
        # 00:30 local on the 10th, still the 9th in UTC
        early_local = make_todo(user, utc(2025, 3, 9, 19, 0))
        # 23:30 local on the 10th
        late_local = make_todo(user, utc(2025, 3, 10, 18, 0))
        # 23:30 local on the 9th
        previous_local_day = make_todo(user, utc(2025, 3, 9, 18, 0))
        migrator, _, todo_service, diary = build(
            [user], [late_local, previous_local_day, early_local], KOLKATA_MIDNIGHT,
        )

        await migrator.run_migration_cycle()

        assert diary.entries[(user["_id"], "2025-03-10")]["todoIds"] == [
            early_local["_id"], late_local["_id"],
        ]
        _, start, end = todo_service.queries[0]
        assert start == utc(2025, 3, 9, 18, 30)
        assert end == utc(2025, 3, 10, 18, 30)
        assert end <= KOLKATA_MIDNIGHT

    @pytest.mark.asyncio
    async def test_only_users_at_local_midnight_are_migrated(self):
        kolkata = make_user(tz="Asia/Kolkata", email="k@example.com")
        london = make_user(tz="Europe/London", email="l@example.com")
        todos = [make_todo(kolkata, utc(2025, 3, 10, 3, 0)), make_todo(london, utc(2025, 3, 10, 12, 0))]
        migrator, _, _, diary = build([kolkata, london], todos, KOLKATA_MIDNIGHT)

        results = await migrator.run_migration_cycle()

        assert list(diary.entries) == [(kolkata["_id"], "2025-03-10")]
        assert london["profile"]["diaryStats"]["lastEntryDate"] is None
        assert results["usersScanned"] == 2
        assert results["usersMigrated"] == 1
        assert results["skipped"] == 1

    @pytest.mark.asyncio
    async def test_failure_for_one_user_does_not_stop_the_batch(self):
        failing = make_user(tz="UTC", email="fail@example.com")
        healthy = make_user(tz="UTC", email="ok@example.com")
        todos = [make_todo(failing, utc(2025, 3, 10, 9, 0)), make_todo(healthy, utc(2025, 3, 10, 9, 0))]
        diary = FakeDiaryService(fail_for={failing["_id"]})
        migrator, _, _, _ = build([failing, healthy], todos, UTC_MIDNIGHT, diary=diary)

        results = await migrator.run_migration_cycle()

        assert len(results["errors"]) == 1
        assert str(failing["_id"]) in results["errors"][0]
        # Guard not advanced, so the next cycle retries the same day
        assert failing["profile"]["diaryStats"]["lastEntryDate"] is None
        assert healthy["profile"]["diaryStats"]["lastEntryDate"] == "2025-03-11"
        assert (healthy["_id"], "2025-03-10") in diary.entries

    @pytest.mark.asyncio
    async def test_retry_after_failed_guard_write_does_not_duplicate_todos(self):
        user = make_user(tz="UTC")
        todos = [make_todo(user, utc(2025, 3, 10, 9, 0)), make_todo(user, utc(2025, 3, 10, 10, 0))]
        migrator, users, _, diary = build([user], todos, UTC_MIDNIGHT)

        original = users.set_last_entry_date

        async def crash_once(*args, **kwargs):
            users.set_last_entry_date = original
            raise RuntimeError("connection reset")

        users.set_last_entry_date = crash_once

        first = await migrator.run_migration_cycle()
        second = await migrator.run_migration_cycle()

        assert len(first["errors"]) == 1
        assert second["errors"] == []
        assert diary.entries[(user["_id"], "2025-03-10")]["todoIds"] == [todo["_id"] for todo in todos]
        assert user["profile"]["diaryStats"]["lastEntryDate"] == "2025-03-11"
        assert user["profile"]["diaryStats"]["totalEntries"] == 1

    @pytest.mark.asyncio
    async def test_retry_after_crash_before_counting_still_counts_entry(self):
        user = make_user(tz="UTC")
        todos = [make_todo(user, utc(2025, 3, 10, 9, 0))]
        migrator, _, _, diary = build([user], todos, UTC_MIDNIGHT)

        original = diary.claim_entry_count

        async def crash_once(*args, **kwargs):
            diary.claim_entry_count = original
            raise RuntimeError("connection reset")

        diary.claim_entry_count = crash_once

        first = await migrator.run_migration_cycle()
        second = await migrator.run_migration_cycle()

        assert len(first["errors"]) == 1
        assert second["errors"] == []
        assert user["profile"]["diaryStats"]["totalEntries"] == 1
        assert len(diary.entries[(user["_id"], "2025-03-10")]["todoIds"]) == 1

    @pytest.mark.asyncio
    async def test_existing_manual_entry_is_not_counted_again(self):
        user = make_user(tz="UTC")
        todos = [make_todo(user, utc(2025, 3, 10, 9, 0))]
        diary = FakeDiaryService()
        # Written through the API earlier that day, already counted there
        diary.entries[(user["_id"], "2025-03-10")] = {"todoIds": []}
        migrator, _, _, _ = build([user], todos, UTC_MIDNIGHT, diary=diary)

        await migrator.run_migration_cycle()

        assert diary.entries[(user["_id"], "2025-03-10")]["todoIds"] == [todos[0]["_id"]]
        assert user["profile"]["diaryStats"]["totalEntries"] == 0

    @pytest.mark.asyncio
    async def test_legacy_datetime_guard_is_respected(self):
        user = make_user(tz="UTC", last_entry_date=utc(2025, 3, 11))
        migrator, users, todo_service, _ = build([user], [], UTC_MIDNIGHT)

        results = await migrator.run_migration_cycle()

        assert todo_service.queries == []
        assert users.guard_writes == 0
        assert results["skipped"] == 1

    @pytest.mark.asyncio
    async def test_overlapping_cycle_is_skipped(self):
        user = make_user(tz="UTC")
        release = asyncio.Event()
        migrator, users, _, _ = build([user], [], UTC_MIDNIGHT)

        async def slow_iter(batch_size=500):
            await release.wait()
            yield user

        users.iter_users = slow_iter

        first = asyncio.create_task(migrator.run_migration_cycle())
        await asyncio.sleep(0)
        second = await migrator.run_migration_cycle()
        release.set()
        first_results = await first

        assert second["cycleSkipped"] is True
        assert second["usersScanned"] == 0
        assert first_results["usersScanned"] == 1


# ─────────────────────────────────────────────────────────────────
# migrate_user
# ─────────────────────────────────────────────────────────────────


class TestMigrateUser:
    @pytest.mark.asyncio
    async def test_lost_race_counts_entry_once(self):
        user = make_user(tz="UTC")
        todos = [make_todo(user, utc(2025, 3, 10, 9, 0))]
        migrator, users, _, diary = build([user], todos, UTC_MIDNIGHT)

        async def lost_race(user_id, date_str):
            return False

        users.set_last_entry_date = lost_race

        assert await migrator.migrate_user(user) is None
        assert await migrator.migrate_user(user) is None
        assert user["profile"]["diaryStats"]["totalEntries"] == 1
        assert len(diary.entries[(user["_id"], "2025-03-10")]["todoIds"]) == 1

    @pytest.mark.asyncio
    async def test_explicit_now_overrides_clock(self):
        user = make_user(tz="Asia/Kolkata")
        migrator, _, _, _ = build([user], [], utc(2025, 3, 10, 12, 0))

        moved = await migrator.migrate_user(user, now=KOLKATA_MIDNIGHT)

        assert moved == 0
        assert user["profile"]["diaryStats"]["lastEntryDate"] == "2025-03-11"
