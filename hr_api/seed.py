# hr_api/seed.py
"""
Provisioning project contoh + beberapa event demo.

Hanya project yang idempotent: jika project contoh sudah ada, event demo
tidak di-ingest lagi sehingga count-nya tetap (3 dan 1).
"""
import asyncio
import logging

from hr_api.aggregator import EventAggregator
from hr_api.config import Settings, configure_logging
from hr_api.database import Database
from hr_api.schemas import EventCreate
from hr_api.store import SqlEventStore

logger = logging.getLogger(__name__)

SAMPLE_API_KEY = "sample-api-key-12345"
SAMPLE_PROJECT_NAME = "Sample Web App"

# Berapa kali tiap event demo di-ingest (berdasarkan title)
SAMPLE_OCCURRENCES = {
    "TypeError: Cannot read property of undefined": 3,
}

SAMPLE_EVENTS = [
    EventCreate(
        title="TypeError: Cannot read property of undefined",
        message="Cannot read property 'name' of undefined",
        stack=(
            "TypeError: Cannot read property 'name' of undefined\n"
            "    at UserProfile.render (UserProfile.js:45:12)\n"
            "    at ReactDOM.render (react-dom.js:1234:56)"
        ),
        environment="production",
        url="https://example.com/profile",
        user_agent="Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36",
        metadata={"userId": "user123", "component": "UserProfile"},
    ),
    EventCreate(
        title="Network Error: Failed to fetch",
        message="Failed to fetch user data",
        stack=(
            "Error: Failed to fetch\n"
            "    at fetchUserData (api.js:23:8)\n"
            "    at loadUserProfile (profile.js:12:15)"
        ),
        environment="production",
        url="https://example.com/dashboard",
        user_agent="Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36",
        metadata={"endpoint": "/api/users", "statusCode": 500},
    ),
]


async def seed(database: Database):
    await database.create_all()

    async with database.session() as session:
        store = SqlEventStore(session)
        project = await store.find_project_by_api_key(SAMPLE_API_KEY)
        if project is not None:
            logger.info("Sample project already exists (%s), skipping sample events", project.id)
            return project

        project = await store.create_project(SAMPLE_PROJECT_NAME, SAMPLE_API_KEY)
        project_id, project_name = project.id, project.name

        # Lewat aggregator supaya fingerprint dihitung dengan cara yang sama
        aggregator = EventAggregator(store)
        for report in SAMPLE_EVENTS:
            for _ in range(SAMPLE_OCCURRENCES.get(report.title, 1)):
                await aggregator.ingest(project_id, report)

    logger.info("Seed completed: project %s, %d sample events", project_name, len(SAMPLE_EVENTS))
    return project


async def main():
    settings = Settings.from_env()
    configure_logging(settings.log_level)
    database = Database(settings.database_url)
    try:
        await seed(database)
    finally:
        await database.dispose()


def run():
    asyncio.run(main())


if __name__ == "__main__":
    run()
