# tests/test_store.py
import asyncio
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from hr_api.aggregator import EventAggregator
from hr_api.database import Database
from hr_api.errors import ConflictFailure
from hr_api.models import Event
from hr_api.schemas import EventCreate
from hr_api.store import MAX_EVENTS, EventFilter, SqlEventStore

T0 = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def report(message="x is not a function", **overrides):
    data = {
        "title": "TypeError: x",
        "message": message,
        "stack": "TypeError: x\n at foo (/app/src/bar.js:10:5)",
    }
    data.update(overrides)
    return EventCreate(**data)


async def count_rows(session):
    return await session.scalar(select(func.count()).select_from(Event))


@pytest.mark.asyncio
async def test_increment_missing_returns_none(session, project):
    store = SqlEventStore(session)
    assert await store.increment(project.id, "0" * 16, T0) is None


@pytest.mark.asyncio
async def test_create_then_increment(session, project):
    store = SqlEventStore(session)
    created = await store.create(project.id, "abc", report(metadata={"k": "v"}), T0)
    assert created.count == 1

    updated = await store.increment(project.id, "abc", T0 + timedelta(minutes=5))
    assert updated.id == created.id
    assert updated.count == 2
    assert updated.last_seen > updated.first_seen
    assert updated.meta == {"k": "v"}


@pytest.mark.asyncio
async def test_duplicate_create_raises_conflict(database, project):
    # Dua session terpisah, seperti dua request yang berbalapan
    async with database.session() as first, database.session() as second:
        await SqlEventStore(first).create(project.id, "dup", report(), T0)
        with pytest.raises(ConflictFailure):
            await SqlEventStore(second).create(project.id, "dup", report(), T0)

    async with database.session() as s:
        assert await count_rows(s) == 1


@pytest.mark.asyncio
async def test_aggregator_over_sql_store(session, project):
    store = SqlEventStore(session)
    other = await store.create_project("Other", "other-key")
    aggregator = EventAggregator(store)

    for i in range(3):
        await aggregator.ingest(project.id, report(title=f"title {i}"))
    await aggregator.ingest(other.id, report())

    rows = (await session.execute(select(Event).order_by(Event.project_id))).scalars().all()
    assert len(rows) == 2
    by_project = {e.project_id: e for e in rows}
    assert by_project[project.id].count == 3
    assert by_project[project.id].title == "title 0"
    assert by_project[other.id].count == 1


@pytest.mark.asyncio
async def test_duplicate_project_api_key_conflicts(session, project):
    with pytest.raises(ConflictFailure):
        await SqlEventStore(session).create_project("Again", project.api_key)


@pytest.fixture
def clock():
    ticks = iter(T0 + timedelta(hours=h) for h in range(1000))
    return lambda: next(ticks)


@pytest.mark.asyncio
async def test_list_filters(session, project, clock):
    store = SqlEventStore(session)
    other = await store.create_project("Other", "other-key")
    aggregator = EventAggregator(store, clock=clock)

    await aggregator.ingest(project.id, report("Database timeout", environment="production"))  # T0
    await aggregator.ingest(project.id, report("Cannot read NAME", environment="staging"))  # T0+1h
    await aggregator.ingest(other.id, report("Database timeout", environment="production"))  # T0+2h
    await aggregator.ingest(project.id, report("x 100% broken", title="Quota", environment="production"))  # T0+3h

    async def messages(**kwargs):
        return [e.message for e in await store.list(EventFilter(**kwargs))]

    assert len(await messages()) == 4
    assert set(await messages(project_id=other.id)) == {"Database timeout"}
    assert len(await messages(environment="staging")) == 1
    # Pencarian case-insensitive di title ATAU message
    assert await messages(search="name") == ["Cannot read NAME"]
    assert await messages(search="quota") == ["x 100% broken"]
    assert await messages(search="100%") == ["x 100% broken"]
    assert await messages(search="10%") == []
    # Rentang waktu tertutup terhadap created_at
    window = await messages(date_from=T0 + timedelta(hours=1), date_to=T0 + timedelta(hours=2))
    assert sorted(window) == ["Cannot read NAME", "Database timeout"]
    assert len(await messages(project_id=project.id, environment="production", search="database")) == 1


@pytest.mark.asyncio
async def test_list_orders_by_last_seen(session, project, clock):
    store = SqlEventStore(session)
    aggregator = EventAggregator(store, clock=clock)

    await aggregator.ingest(project.id, report("old"))
    await aggregator.ingest(project.id, report("new"))
    await aggregator.ingest(project.id, report("old"))  # "old" terlihat lagi paling akhir

    assert [e.message for e in await store.list(EventFilter())] == ["old", "new"]


@pytest.mark.asyncio
async def test_list_is_capped(session, project, clock):
    store = SqlEventStore(session)
    aggregator = EventAggregator(store, clock=clock)
    for i in range(MAX_EVENTS + 5):
        await aggregator.ingest(project.id, report(f"error {i}", stack=""))

    events = await store.list(EventFilter(project_id=project.id))
    assert len(events) == MAX_EVENTS
    assert events[0].message == f"error {MAX_EVENTS + 4}"


@pytest.mark.asyncio
async def test_seed_is_repeatable(database):
    from hr_api.seed import SAMPLE_API_KEY, SAMPLE_EVENTS, SAMPLE_OCCURRENCES, seed

    first = await seed(database)
    second = await seed(database)
    assert first.id == second.id
    assert first.api_key == SAMPLE_API_KEY

    async with database.session() as s:
        events = (await s.execute(select(Event))).scalars().all()
    assert len(events) == len(SAMPLE_EVENTS)
    # Seed kedua tidak menambah count event demo
    assert sorted(e.count for e in events) == [1, 3]
    assert {e.title: e.count for e in events if e.count > 1} == SAMPLE_OCCURRENCES


@pytest.mark.asyncio
async def test_concurrent_first_occurrence_on_sqlite(tmp_path):
    """10 request paralel, session terpisah, fingerprint baru -> satu baris, count 10"""
    # Tiap session punya koneksi sendiri; writer yang kalah menunggu lock file
    database = Database(
        f"sqlite+aiosqlite:///{tmp_path / 'events.db'}", connect_args={"timeout": 30}
    )
    await database.create_all()
    try:
        async with database.session() as s:
            project = await SqlEventStore(s).create_project("Race", "race-key")

        async def ingest_once():
            async with database.session() as s:
                event = await EventAggregator(SqlEventStore(s)).ingest(project.id, report())
                return event.id

        ids = await asyncio.gather(*(ingest_once() for _ in range(10)))

        async with database.session() as s:
            rows = (await s.execute(select(Event))).scalars().all()
        assert len(rows) == 1
        assert rows[0].count == 10
        assert set(ids) == {rows[0].id}
    finally:
        await database.dispose()
