# hr_api/store.py
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Protocol

from sqlalchemy import select, update, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hr_api.errors import ConflictFailure, StoreUnavailable
from hr_api.models import Event, Project
from hr_api.schemas import EventCreate

logger = logging.getLogger(__name__)

MAX_EVENTS = 100  # Batas hasil listing, tanpa pagination lanjutan


@dataclass
class EventFilter:
    """Filter listing event. Semua field opsional, digabung dengan AND."""

    project_id: Optional[str] = None
    environment: Optional[str] = None
    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    search: Optional[str] = None


class EventStore(Protocol):
    async def find_project_by_api_key(self, api_key: str) -> Optional[Project]: ...

    async def increment(self, project_id: str, fingerprint: str, now: datetime) -> Optional[Event]: ...

    async def create(self, project_id: str, fingerprint: str, report: EventCreate, now: datetime) -> Event: ...

    async def get(self, event_id: str) -> Optional[Event]: ...

    async def list(self, filters: EventFilter) -> List[Event]: ...


def build_event_query(filters: EventFilter):
    """Menerjemahkan EventFilter menjadi query SQLAlchemy."""
    query = select(Event).options(selectinload(Event.project))
    if filters.project_id:
        query = query.where(Event.project_id == filters.project_id)
    if filters.environment:
        query = query.where(Event.environment == filters.environment)
    if filters.date_from:
        query = query.where(Event.created_at >= filters.date_from)
    if filters.date_to:
        query = query.where(Event.created_at <= filters.date_to)
    if filters.search:
        query = query.where(or_(
            Event.title.icontains(filters.search, autoescape=True),
            Event.message.icontains(filters.search, autoescape=True),
        ))
    return query.order_by(Event.last_seen.desc()).limit(MAX_EVENTS)


class SqlEventStore:
    """EventStore di atas satu AsyncSession. Setiap operasi tulis = satu transaksi."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_project_by_api_key(self, api_key: str) -> Optional[Project]:
        try:
            result = await self.session.execute(
                select(Project).where(Project.api_key == api_key)
            )
        except SQLAlchemyError as e:
            raise StoreUnavailable() from e
        return result.scalar_one_or_none()

    async def increment(self, project_id: str, fingerprint: str, now: datetime) -> Optional[Event]:
        """
        Atomic update: count + 1 dan last_seen = now dalam satu statement.
        Return None jika agregat belum ada (rowcount == 0).
        """
        stmt = (
            update(Event)
            .where(Event.project_id == project_id, Event.fingerprint == fingerprint)
            .values(count=Event.count + 1, last_seen=now)
            .execution_options(synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            if result.rowcount == 0:
                # Tidak ada yang berubah; commit (bukan rollback) agar objek lain di session tidak expired
                await self.session.commit()
                return None

            found = await self.session.execute(
                select(Event)
                .where(Event.project_id == project_id, Event.fingerprint == fingerprint)
                .execution_options(populate_existing=True)
            )
            event = found.scalar_one()
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreUnavailable() from e
        return event

    async def create(self, project_id: str, fingerprint: str, report: EventCreate, now: datetime) -> Event:
        event = Event(
            project_id=project_id,
            title=report.title,
            message=report.message,
            stack=report.stack,
            fingerprint=fingerprint,
            environment=report.environment,
            url=report.url,
            user_agent=report.user_agent,
            meta=report.metadata,
            count=1,
            first_seen=now,
            last_seen=now,
            created_at=now,
        )
        self.session.add(event)
        try:
            await self.session.commit()
        except IntegrityError as e:
            # Constraint uq_project_fingerprint: request lain sudah membuat agregatnya
            await self.session.rollback()
            raise ConflictFailure("Event with this fingerprint already exists") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreUnavailable() from e
        return event

    async def get(self, event_id: str) -> Optional[Event]:
        try:
            return await self.session.get(Event, event_id, options=[selectinload(Event.project)])
        except SQLAlchemyError as e:
            raise StoreUnavailable() from e

    async def list(self, filters: EventFilter) -> List[Event]:
        try:
            result = await self.session.execute(build_event_query(filters))
        except SQLAlchemyError as e:
            raise StoreUnavailable() from e
        return list(result.scalars().all())

    async def create_project(self, name: str, api_key: str) -> Project:
        project = Project(name=name, api_key=api_key)
        self.session.add(project)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise ConflictFailure("Project with this API key already exists") from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            raise StoreUnavailable() from e
        logger.info("[PROJECT] provisioned %s (%s)", project.name, project.id)
        return project
