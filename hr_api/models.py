# hr_api/models.py
import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, Integer, DateTime, JSON, Text, Enum, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from hr_api.database import Base


def _new_id():
    return str(uuid.uuid4())


def utcnow():
    return datetime.now(timezone.utc)


class Role(str, enum.Enum):
    ADMIN = "ADMIN"
    HR = "HR"
    EMPLOYEE = "EMPLOYEE"


class Project(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, default=_new_id)
    api_key = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    events = relationship("Event", back_populates="project")


class Event(Base):
    """Satu agregat error: satu fingerprint, terlihat `count` kali."""

    __tablename__ = "events"

    id = Column(String, primary_key=True, default=_new_id)
    project_id = Column(String, ForeignKey("projects.id"), nullable=False, index=True)
    title = Column(String, nullable=False)
    message = Column(Text, nullable=False)
    stack = Column(Text)
    fingerprint = Column(String(16), nullable=False)
    environment = Column(String, index=True)
    url = Column(String)
    user_agent = Column(String)
    # "metadata" dipakai oleh declarative Base, jadi atributnya diberi nama lain
    meta = Column("metadata", JSON)
    count = Column(Integer, nullable=False, default=1)
    first_seen = Column(DateTime(timezone=True), nullable=False)
    last_seen = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)

    project = relationship("Project", back_populates="events")

    # Dedup store persisten: satu fingerprint per project di level DATABASE
    __table_args__ = (
        UniqueConstraint('project_id', 'fingerprint', name='uq_project_fingerprint'),
    )


class User(Base):
    __tablename__ = "users"

    id = Column(String, primary_key=True, default=_new_id)
    email = Column(String, unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    role = Column(Enum(Role, name="user_role"), nullable=False, default=Role.HR)
    created_at = Column(DateTime(timezone=True), default=utcnow)


class Person(Base):
    __tablename__ = "people"

    id = Column(String, primary_key=True, default=_new_id)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=False, index=True)
    position = Column(String)
    department = Column(String)
    start_date = Column(DateTime(timezone=True))
    manager_id = Column(String, ForeignKey("people.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
