# hr_api/people.py
import logging

from sqlalchemy import select, func, or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from hr_api.errors import ConflictFailure, NotFound, ValidationFailure
from hr_api.models import Person
from hr_api.schemas import PersonCreate, PersonUpdate

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class PeopleService:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def list(self, q: str = None, page: int = 1, page_size: int = 10):
        """Return (total, items) untuk satu halaman, terbaru lebih dulu."""
        if page < 1:
            raise ValidationFailure("page must be >= 1")
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValidationFailure(f"pageSize must be between 1 and {MAX_PAGE_SIZE}")

        conditions = []
        if q:
            conditions.append(or_(
                Person.first_name.icontains(q, autoescape=True),
                Person.last_name.icontains(q, autoescape=True),
                Person.email.icontains(q, autoescape=True),
            ))

        total = await self.session.scalar(
            select(func.count()).select_from(Person).where(*conditions)
        )
        result = await self.session.execute(
            select(Person)
            .where(*conditions)
            .order_by(Person.created_at.desc(), Person.id)
            .offset((page - 1) * page_size)
            .limit(page_size)
        )
        return total, list(result.scalars().all())

    async def get(self, person_id: str) -> Person:
        person = await self.session.get(Person, person_id)
        if person is None:
            raise NotFound("Person not found")
        return person

    async def create(self, data: PersonCreate) -> Person:
        if data.manager_id:
            await self._check_manager(data.manager_id)

        person = Person(**data.model_dump())
        self.session.add(person)
        await self._commit()
        logger.info("[PERSON] created %s", person.id)
        return person

    async def update(self, person_id: str, data: PersonUpdate) -> Person:
        person = await self.get(person_id)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("manager_id"):
            if changes["manager_id"] == person_id:
                raise ValidationFailure("A person cannot be their own manager")
            await self._check_manager(changes["manager_id"])

        for field, value in changes.items():
            setattr(person, field, value)
        await self._commit()
        return person

    async def delete(self, person_id: str):
        person = await self.get(person_id)
        await self.session.delete(person)
        await self.session.commit()
        logger.info("[PERSON] deleted %s", person_id)

    async def _check_manager(self, manager_id: str):
        if await self.session.get(Person, manager_id) is None:
            raise ValidationFailure("managerId does not reference an existing person")

    async def _commit(self):
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            # Hanya unique constraint pada email yang berarti konflik
            message = str(e.orig).lower()
            if "unique" in message and "email" in message:
                raise ConflictFailure("Person with this email already exists") from e
            raise ValidationFailure("Invalid person data") from e
