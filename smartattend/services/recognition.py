"""Timer-driven recognition loop and the attendance callback it feeds."""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Iterable

import numpy as np
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from smartattend.config.settings import get_settings
from smartattend.db import models
from smartattend.face.descriptor import MatchResult
from smartattend.face.matcher import Matcher
from smartattend.services.attendance import AttendanceService
from smartattend.services.roster import RosterService

logger = logging.getLogger(__name__)

FrameSource = Callable[[], Awaitable[Iterable[float] | np.ndarray | None]]
MatchCallback = Callable[[MatchResult], Awaitable[None]]


class RecognitionLoop:
    """
    Every ``interval`` seconds grabs one descriptor, matches it once and reports
    students the first time they are recognised in the current session.
    """

    def __init__(
        self,
        matcher: Matcher,
        frame_source: FrameSource,
        on_match: MatchCallback,
        *,
        interval: float | None = None,
        threshold: float | None = None,
    ) -> None:
        settings = get_settings()
        self._matcher = matcher
        self._frame_source = frame_source
        self._on_match = on_match
        self.interval = settings.recognition_interval if interval is None else interval
        self.threshold = settings.match_threshold if threshold is None else threshold
        self._seen: set[str] = set()

    @property
    def seen(self) -> frozenset[str]:
        """Students already reported in this session."""

        return frozenset(self._seen)

    def reset_session(self) -> None:
        self._seen.clear()

    async def tick(self) -> MatchResult | None:
        """Run a single capture-and-match cycle."""

        descriptor = await self._frame_source()
        if descriptor is None:
            return None

        result = self._matcher.match(descriptor, self.threshold)
        if result is None:
            return None

        if result.student_id in self._seen:
            logger.debug("Student %s already reported this session", result.student_id)
            return result

        logger.info("Student detected: %s (confidence %.3f)", result.student_id, result.confidence)
        # A failed callback leaves the student unseen so the next frame retries.
        await self._on_match(result)
        self._seen.add(result.student_id)
        return result

    async def run(self, stop_event: asyncio.Event) -> None:
        """Repeat ``tick`` until ``stop_event`` is set."""

        logger.info("Recognition loop started (interval=%.2fs, threshold=%.2f)", self.interval, self.threshold)
        while not stop_event.is_set():
            try:
                await self.tick()
            except Exception:  # noqa: BLE001 - one failed frame must not end the session
                logger.exception("Recognition cycle failed")
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                continue
        logger.info("Recognition loop stopped")


class AttendanceRecorder:
    """Match callback that stores a present mark for the recognised student."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        *,
        subject: str,
        period: int = 1,
        section: str | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._roster = RosterService()
        self._attendance = AttendanceService()
        self.subject = subject
        self.period = period
        self.section = section
        self.started_at = models.utcnow()

    async def __call__(self, result: MatchResult) -> None:
        async with self._session_factory() as session:
            student = await self._roster.get_by_roll(session, result.student_id)
            if student is None:
                logger.warning("Student not found in roster: %s", result.student_id)
                return
            if await self._attendance.was_marked(session, student=student, since=self.started_at):
                logger.debug("Student %s already marked present", result.student_id)
                return
            await self._attendance.mark_present(
                session,
                student=student,
                subject=self.subject,
                period=self.period,
            )

    async def finish(self) -> int:
        """Mark everyone in ``section`` not seen since the recorder started as absent."""

        if self.section is None:
            return 0

        absent = 0
        async with self._session_factory() as session:
            for student in await self._roster.list_section(session, self.section):
                if await self._attendance.was_marked(session, student=student, since=self.started_at):
                    continue
                await self._attendance.record_absent(
                    session,
                    student=student,
                    subject=self.subject,
                    period=self.period,
                )
                absent += 1

        logger.info("Session closed for section %s: %d absent", self.section, absent)
        return absent
