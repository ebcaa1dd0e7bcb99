"""Student roster lookups used by the recognition flow."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smartattend.db import models
from smartattend.services.attendance import AttendanceEntry, AttendanceService

logger = logging.getLogger(__name__)


class DuplicateStudentError(RuntimeError):
    """Raised when a roll number is already taken."""


@dataclass(frozen=True, slots=True)
class StudentProfile:
    """Read-only view of a student as seen by recognition consumers."""

    student_id: str
    name: str
    email: str | None = None
    section: str | None = None

    @classmethod
    def from_model(cls, student: models.Student) -> "StudentProfile":
        return cls(
            student_id=student.roll_number,
            name=student.name,
            email=student.email,
            section=student.section,
        )


class StudentDirectory:
    """Looks up students by the id the descriptor store knows them by."""

    async def get(self, student_id: str) -> StudentProfile | None:
        raise NotImplementedError

    async def set_face_registered(self, student_id: str, registered: bool) -> bool:
        """Record whether the student has enrolled faces. Returns False for unknown ids."""

        raise NotImplementedError

    async def attendance(self, student_id: str) -> list[AttendanceEntry] | None:
        """Attendance history in time order, or ``None`` for unknown ids."""

        raise NotImplementedError


class RosterService:
    """Facade over student rows."""

    async def register_student(
        self,
        session: AsyncSession,
        *,
        roll_number: str,
        name: str,
        email: str | None = None,
        section: str | None = None,
    ) -> models.Student:
        """Create a student, rejecting roll numbers that differ only by case."""

        if await self.get_by_roll(session, roll_number) is not None:
            raise DuplicateStudentError(f"Roll number {roll_number!r} already exists.")

        student = models.Student(
            roll_number=roll_number,
            name=name,
            email=email,
            section=section,
            face_registered=False,
        )
        session.add(student)
        await session.commit()
        await session.refresh(student)
        logger.info("Registered student %s (%s)", student.roll_number, student.name)
        return student

    async def get_by_roll(self, session: AsyncSession, roll_number: str) -> models.Student | None:
        stmt = select(models.Student).where(func.lower(models.Student.roll_number) == roll_number.lower())
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_section(self, session: AsyncSession, section: str) -> list[models.Student]:
        stmt = select(models.Student).where(models.Student.section == section).order_by(models.Student.id)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def mark_face_registered(
        self,
        session: AsyncSession,
        *,
        student: models.Student,
        registered: bool = True,
    ) -> None:
        """Flag whether the student currently has descriptors enrolled."""

        student.face_registered = registered
        await session.commit()


class SqlStudentDirectory(StudentDirectory):
    """Directory backed by the ``students`` table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory
        self._roster = RosterService()
        self._attendance = AttendanceService()

    async def get(self, student_id: str) -> StudentProfile | None:
        async with self._session_factory() as session:
            student = await self._roster.get_by_roll(session, student_id)
        if student is None:
            return None
        return StudentProfile.from_model(student)

    async def set_face_registered(self, student_id: str, registered: bool) -> bool:
        async with self._session_factory() as session:
            student = await self._roster.get_by_roll(session, student_id)
            if student is None:
                return False
            await self._roster.mark_face_registered(session, student=student, registered=registered)
        return True

    async def attendance(self, student_id: str) -> list[AttendanceEntry] | None:
        async with self._session_factory() as session:
            student = await self._roster.get_by_roll(session, student_id)
            if student is None:
                return None
            records = await self._attendance.list_for_student(session, student=student)
        return [AttendanceEntry.from_model(record) for record in records]
