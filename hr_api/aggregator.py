# hr_api/aggregator.py
import logging
from datetime import datetime
from typing import Callable

from hr_api.errors import AuthenticationFailure, ConflictFailure, NotFound
from hr_api.fingerprint import fingerprint
from hr_api.models import Event, Project, utcnow
from hr_api.schemas import EventCreate
from hr_api.store import EventFilter, EventStore

logger = logging.getLogger(__name__)


class CredentialResolver:
    def __init__(self, store: EventStore):
        self.store = store

    async def resolve(self, api_key: str) -> Project:
        """Mencari project berdasarkan API key. Gagal = AuthenticationFailure."""
        if not api_key:
            raise AuthenticationFailure("API key is required")

        project = await self.store.find_project_by_api_key(api_key)
        if project is None:
            logger.warning("[REJECTED] unknown API key")
            raise AuthenticationFailure("Invalid API key")
        return project


class EventAggregator:
    """
    Deduplikasi event berdasarkan fingerprint.

    Alur ingest:
      1. Coba increment agregat yang sudah ada (satu UPDATE atomik).
      2. Jika belum ada, buat agregat baru dengan count = 1.
      3. Jika create bentrok dengan constraint unik (request lain menang
         duluan), ulangi sebagai increment satu kali.
    """

    def __init__(self, store: EventStore, clock: Callable[[], datetime] = utcnow):
        self.store = store
        self.clock = clock
        self.credentials = CredentialResolver(store)

    async def submit(self, api_key: str, report: EventCreate) -> Event:
        # Autentikasi dulu, sebelum fingerprint dihitung
        project = await self.credentials.resolve(api_key)
        return await self.ingest(project.id, report)

    async def ingest(self, project_id: str, report: EventCreate) -> Event:
        fp = fingerprint(report.title, report.message, report.stack or "")
        now = self.clock()

        if report.release:
            logger.debug("release %s reported for fingerprint %s", report.release, fp)

        event = await self.store.increment(project_id, fp, now)
        if event is not None:
            logger.info("[DUPLICATE] %s/%s count=%d", project_id, fp, event.count)
            return event

        try:
            event = await self.store.create(project_id, fp, report, now)
            logger.info("[NEW EVENT] %s/%s", project_id, fp)
            return event
        except ConflictFailure:
            logger.info("[CONFLICT RETRY] %s/%s created concurrently, incrementing", project_id, fp)

        event = await self.store.increment(project_id, fp, now)
        if event is None:
            raise ConflictFailure(f"Could not record event with fingerprint {fp}")
        return event

    async def get(self, event_id: str) -> Event:
        event = await self.store.get(event_id)
        if event is None:
            raise NotFound("Event not found")
        return event

    async def list(self, filters: EventFilter):
        return await self.store.list(filters)
