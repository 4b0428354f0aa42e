# hr_api/main.py
import logging
import secrets
from contextlib import asynccontextmanager
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, FastAPI, Header, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy.ext.asyncio import AsyncSession

from hr_api.aggregator import EventAggregator
from hr_api.auth import AuthService, TokenService, current_user, get_auth_service, require_role
from hr_api.config import Settings, configure_logging
from hr_api.database import Database, get_db
from hr_api.errors import ServiceError, ValidationFailure
from hr_api.models import Role, User
from hr_api.people import PeopleService
from hr_api.schemas import (
    EventCreate, EventDetail, EventResponse, LoginRequest, PaginatedPeople, PersonCreate,
    PersonResponse, PersonUpdate, ProjectCreate, ProjectResponse, RegisterRequest,
    TokenResponse, UserProfile,
)
from hr_api.store import EventFilter, SqlEventStore

logger = logging.getLogger(__name__)


# --- DEPENDENCIES ---

def get_aggregator(db: AsyncSession = Depends(get_db)) -> EventAggregator:
    return EventAggregator(SqlEventStore(db))


def get_people(db: AsyncSession = Depends(get_db)) -> PeopleService:
    return PeopleService(db)


# --- API ENDPOINTS: EVENTS ---

events = APIRouter(prefix="/events", tags=["Events"])


@events.post("", response_model=EventResponse, status_code=status.HTTP_202_ACCEPTED)
async def create_event(
    report: EventCreate,
    x_api_key: Optional[str] = Header(None),
    aggregator: EventAggregator = Depends(get_aggregator),
):
    """Menerima error event dari aplikasi client (auth via header X-API-Key)."""
    return await aggregator.submit(x_api_key, report)


@events.get("", response_model=List[EventDetail])
async def get_events(
    project_id: Optional[str] = Query(None, alias="projectId"),
    environment: Optional[str] = None,
    date_from: Optional[datetime] = Query(None, alias="from"),
    date_to: Optional[datetime] = Query(None, alias="to"),
    search: Optional[str] = None,
    aggregator: EventAggregator = Depends(get_aggregator),
    user: User = Depends(current_user),
):
    if date_from and date_to and date_from > date_to:
        raise ValidationFailure("'from' must not be after 'to'")
    filters = EventFilter(
        project_id=project_id,
        environment=environment,
        date_from=date_from,
        date_to=date_to,
        search=search,
    )
    return await aggregator.list(filters)


@events.get("/{event_id}", response_model=EventDetail)
async def get_event(
    event_id: str,
    aggregator: EventAggregator = Depends(get_aggregator),
    user: User = Depends(current_user),
):
    return await aggregator.get(event_id)


# --- API ENDPOINTS: PROJECTS ---

projects = APIRouter(prefix="/projects", tags=["Projects"])


@projects.post("", response_model=ProjectResponse, status_code=status.HTTP_201_CREATED)
async def create_project(
    data: ProjectCreate,
    db: AsyncSession = Depends(get_db),
    user: User = Depends(require_role(Role.ADMIN)),
):
    api_key = data.api_key or secrets.token_urlsafe(24)
    return await SqlEventStore(db).create_project(data.name, api_key)


# --- API ENDPOINTS: AUTH ---

auth = APIRouter(prefix="/auth", tags=["Auth"])


@auth.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, service: AuthService = Depends(get_auth_service)):
    return TokenResponse(access_token=await service.register(data))


@auth.post("/login", response_model=TokenResponse)
async def login(data: LoginRequest, service: AuthService = Depends(get_auth_service)):
    return TokenResponse(access_token=await service.login(data))


@auth.get("/me", response_model=UserProfile)
async def me(user: User = Depends(current_user)):
    return user


# --- API ENDPOINTS: PEOPLE ---

people = APIRouter(prefix="/people", tags=["People"], dependencies=[Depends(current_user)])


@people.get("", response_model=PaginatedPeople)
async def list_people(
    q: Optional[str] = None,
    page: int = 1,
    page_size: int = Query(10, alias="pageSize"),
    service: PeopleService = Depends(get_people),
):
    total, items = await service.list(q, page, page_size)
    return PaginatedPeople(
        page=page,
        page_size=page_size,
        total=total,
        items=[PersonResponse.model_validate(p) for p in items],
    )


@people.get("/{person_id}", response_model=PersonResponse)
async def get_person(person_id: str, service: PeopleService = Depends(get_people)):
    return await service.get(person_id)


@people.post("", response_model=PersonResponse, status_code=status.HTTP_201_CREATED)
async def create_person(data: PersonCreate, service: PeopleService = Depends(get_people)):
    return await service.create(data)


@people.patch("/{person_id}", response_model=PersonResponse)
async def update_person(person_id: str, data: PersonUpdate, service: PeopleService = Depends(get_people)):
    return await service.update(person_id, data)


@people.delete("/{person_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_person(person_id: str, service: PeopleService = Depends(get_people)):
    await service.delete(person_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# --- ERROR HANDLING ---

async def service_error_handler(request: Request, exc: ServiceError):
    if exc.status_code >= 500:
        logger.error("[ERROR] %s %s: %s", request.method, request.url.path, exc.__cause__ or exc)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.kind.value, "detail": exc.detail},
    )


# --- APP FACTORY ---

def create_app(settings: Settings = None, database: Database = None) -> FastAPI:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    database = database or Database(settings.database_url)
    if settings.uses_default_secret:
        logger.warning("JWT_SECRET is not set; tokens are signed with the default secret and can be forged")

    @asynccontextmanager
    async def lifecycle(app: FastAPI):
        # Buat tabel di database saat startup
        await database.create_all()
        logger.info("Application ready on port %d", settings.port)
        yield
        await database.dispose()

    app = FastAPI(title="HR API", version="1.0", lifespan=lifecycle)
    app.state.settings = settings
    app.state.database = database
    app.state.tokens = TokenService(settings.jwt_secret, settings.jwt_expires_minutes)

    if settings.cors_origin:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=[o.strip() for o in settings.cors_origin.split(",")],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

    app.add_exception_handler(ServiceError, service_error_handler)
    for router in (events, projects, auth, people):
        app.include_router(router, prefix=settings.api_prefix)
    return app


def run():
    import uvicorn

    settings = Settings.from_env()
    uvicorn.run(create_app(settings), host="0.0.0.0", port=settings.port)


if __name__ == "__main__":
    run()
