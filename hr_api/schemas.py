# hr_api/schemas.py
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from hr_api.models import Role


class ApiModel(BaseModel):
    # JSON di wire memakai camelCase, atribut Python tetap snake_case
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# --- EVENTS ---

class EventCreate(ApiModel):
    model_config = ConfigDict(extra="forbid")

    title: str = Field(min_length=1)
    message: str = Field(min_length=1)
    stack: Optional[str] = None
    release: Optional[str] = None
    environment: Optional[str] = Field(
        default=None, validation_alias=AliasChoices("environment", "env")
    )
    url: Optional[str] = None
    user_agent: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class EventResponse(ApiModel):
    id: str
    project_id: str
    title: str
    message: str
    stack: Optional[str] = None
    fingerprint: str
    environment: Optional[str] = None
    url: Optional[str] = None
    user_agent: Optional[str] = None
    # Kolom ORM bernama `meta` (lihat models.Event)
    metadata: Optional[Dict[str, Any]] = Field(
        default=None, validation_alias=AliasChoices("meta", "metadata")
    )
    count: int
    first_seen: datetime
    last_seen: datetime
    created_at: datetime


class ProjectSummary(ApiModel):
    name: str


class EventDetail(EventResponse):
    """Event untuk listing/detail, disertai nama project-nya"""

    project: ProjectSummary


# --- PROJECTS ---

class ProjectCreate(ApiModel):
    name: str = Field(min_length=1)
    api_key: Optional[str] = Field(default=None, min_length=1)


class ProjectResponse(ApiModel):
    id: str
    name: str
    api_key: str
    created_at: datetime


# --- PEOPLE ---

class PersonCreate(ApiModel):
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    position: Optional[str] = None
    department: Optional[str] = None
    start_date: Optional[datetime] = None
    manager_id: Optional[str] = None


class PersonUpdate(ApiModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    email: Optional[EmailStr] = None
    position: Optional[str] = None
    department: Optional[str] = None
    start_date: Optional[datetime] = None
    manager_id: Optional[str] = None

    @field_validator("first_name", "last_name", "email")
    @classmethod
    def not_null(cls, value):
        # Boleh tidak dikirim, tapi kolom ini NOT NULL jadi tidak boleh null
        if value is None:
            raise ValueError("must not be null")
        return value


class PersonResponse(ApiModel):
    id: str
    first_name: str
    last_name: str
    email: str
    position: Optional[str] = None
    department: Optional[str] = None
    start_date: Optional[datetime] = None
    manager_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class PaginatedPeople(ApiModel):
    page: int
    page_size: int
    total: int
    items: List[PersonResponse]


# --- AUTH ---

class RegisterRequest(ApiModel):
    email: EmailStr
    password: str = Field(min_length=8)
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)


class LoginRequest(ApiModel):
    email: EmailStr
    password: str


class TokenResponse(ApiModel):
    access_token: str


class UserProfile(ApiModel):
    id: str
    email: str
    role: Role
    first_name: str
    last_name: str
