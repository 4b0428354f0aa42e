# hr_api/database.py
from contextlib import asynccontextmanager

from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Database:
    """
    Handle koneksi DB yang dibuat secara eksplisit (bukan singleton global).
    Dibuat sekali oleh app factory, lalu di-inject ke route lewat get_db.
    """

    def __init__(self, url: str, **engine_kwargs):
        self.url = url
        self.engine = create_async_engine(url, echo=False, **engine_kwargs)
        # Session factory untuk interaksi DB
        self.session_factory = async_sessionmaker(
            bind=self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def create_all(self):
        # Buat tabel jika belum ada
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def dispose(self):
        await self.engine.dispose()

    @asynccontextmanager
    async def session(self):
        async with self.session_factory() as session:
            yield session


# Dependency Injection untuk FastAPI
async def get_db(request: Request):
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session
