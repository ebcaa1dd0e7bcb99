"""Persistence of attendance marks produced by recognition."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from smartattend.db import models

logger = logging.getLogger(__name__)

PERIODS = range(1, 9)


@dataclass(frozen=True, slots=True)
class AttendanceEntry:
    """Read-only view of one attendance mark."""

    subject: str
    period: int
    present: bool
    timestamp: datetime

    @classmethod
    def from_model(cls, record: models.AttendanceRecord) -> "AttendanceEntry":
        return cls(
            subject=record.subject,
            period=record.period,
            present=record.present,
            timestamp=record.timestamp,
        )


class AttendanceService:
    """Writes and queries attendance records."""

    async def mark_present(
        self,
        session: AsyncSession,
        *,
        student: models.Student,
        subject: str,
        period: int = 1,
        timestamp: datetime | None = None,
    ) -> models.AttendanceRecord:
        """Persist a present mark for the student."""

        record = await self._add(session, student, subject, period, True, timestamp)
        logger.info("Attendance marked for %s (%s)", student.name, student.roll_number)
        return record

    async def record_absent(
        self,
        session: AsyncSession,
        *,
        student: models.Student,
        subject: str,
        period: int = 1,
        timestamp: datetime | None = None,
    ) -> models.AttendanceRecord:
        """Persist an absent mark for the student."""

        return await self._add(session, student, subject, period, False, timestamp)

    async def list_for_student(
        self,
        session: AsyncSession,
        *,
        student: models.Student,
    ) -> list[models.AttendanceRecord]:
        stmt = (
            select(models.AttendanceRecord)
            .where(models.AttendanceRecord.student_id == student.id)
            .order_by(models.AttendanceRecord.timestamp, models.AttendanceRecord.id)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def was_marked(
        self,
        session: AsyncSession,
        *,
        student: models.Student,
        since: datetime,
    ) -> bool:
        """Return True if the student already has a present mark at or after ``since``."""

        stmt = (
            select(models.AttendanceRecord.id)
            .where(
                models.AttendanceRecord.student_id == student.id,
                models.AttendanceRecord.present.is_(True),
                models.AttendanceRecord.timestamp >= since,
            )
            .limit(1)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def _add(
        self,
        session: AsyncSession,
        student: models.Student,
        subject: str,
        period: int,
        present: bool,
        timestamp: datetime | None,
    ) -> models.AttendanceRecord:
        if period not in PERIODS:
            raise ValueError(f"Period must be between 1 and 8, got {period}.")

        record = models.AttendanceRecord(
            student_id=student.id,
            subject=subject,
            period=period,
            present=present,
            timestamp=timestamp or models.utcnow(),
        )
        session.add(record)
        await session.commit()
        await session.refresh(record)
        return record
