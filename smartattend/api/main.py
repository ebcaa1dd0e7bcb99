"""FastAPI entrypoint and HTTP routes."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, HTTPException, Request, status

from smartattend import __version__
from smartattend.api.auth import InternalAuthDependency
from smartattend.api.schemas import (
    AttendanceItem,
    AttendanceResponse,
    DebugResponse,
    DescriptorPayload,
    EnrollResponse,
    MatchBody,
    MatchRequest,
    MatchResponse,
    StudentInfo,
)
from smartattend.config.settings import get_settings
from smartattend.face import DescriptorStore, EuclideanMatcher, InvalidDescriptorError
from smartattend.services.descriptors import DescriptorArchive, SqlDescriptorArchive
from smartattend.services.roster import SqlStudentDirectory, StudentDirectory

logger = logging.getLogger(__name__)


def create_app(
    store: DescriptorStore | None = None,
    directory: StudentDirectory | None = None,
    *,
    archive: DescriptorArchive | None = None,
    with_database: bool = True,
) -> FastAPI:
    """Initialise the FastAPI application around one descriptor store."""

    settings = get_settings()

    if with_database:
        from smartattend.db.session import AsyncSessionFactory  # noqa: WPS433

        if directory is None:
            directory = SqlStudentDirectory(AsyncSessionFactory)
        if archive is None:
            archive = SqlDescriptorArchive(AsyncSessionFactory)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if with_database:
            from smartattend.db.session import init_db  # noqa: WPS433

            await init_db()
        if archive is not None:
            await archive.restore(app.state.store)
        yield

    app = FastAPI(
        title="SmartAttend API",
        version=__version__,
        docs_url="/docs" if settings.environment != "prod" else None,
        redoc_url="/redoc" if settings.environment != "prod" else None,
        lifespan=lifespan,
    )
    app.state.store = store if store is not None else DescriptorStore()
    app.state.matcher = EuclideanMatcher(app.state.store)
    app.state.directory = directory
    app.state.archive = archive

    async def enrollment_changed(request: Request, student_id: str, registered: bool) -> None:
        lookup: StudentDirectory | None = request.app.state.directory
        if lookup is not None and not await lookup.set_face_registered(student_id, registered):
            logger.warning("Student %s is missing from the roster", student_id)
        saved: DescriptorArchive | None = request.app.state.archive
        if saved is not None:
            await saved.save(request.app.state.store)

    @app.get("/health", tags=["system"])
    async def health_check() -> dict[str, str]:
        """Simple health endpoint used for readiness probes."""

        return {"status": "ok"}

    @app.get("/debug", tags=["system"], response_model=DebugResponse)
    async def debug_info(request: Request) -> DebugResponse:
        return DebugResponse(**request.app.state.store.debug_info())

    @app.post(
        "/students/{student_id}/descriptors",
        tags=["enrollment"],
        response_model=EnrollResponse,
        dependencies=[InternalAuthDependency],
    )
    async def enroll(student_id: str, payload: DescriptorPayload, request: Request) -> EnrollResponse:
        """Add one captured descriptor to the student's enrollment samples."""

        try:
            samples = request.app.state.store.enroll(student_id, payload.descriptor)
        except InvalidDescriptorError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
        await enrollment_changed(request, student_id, registered=True)
        return EnrollResponse(student_id=student_id, samples=samples)

    @app.delete(
        "/students/{student_id}/descriptors",
        tags=["enrollment"],
        status_code=status.HTTP_204_NO_CONTENT,
        dependencies=[InternalAuthDependency],
    )
    async def clear(student_id: str, request: Request) -> None:
        if not request.app.state.store.clear(student_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student has no enrolled faces.")
        await enrollment_changed(request, student_id, registered=False)

    @app.get(
        "/students/{student_id}/attendance",
        tags=["attendance"],
        response_model=AttendanceResponse,
        dependencies=[InternalAuthDependency],
    )
    async def attendance(student_id: str, request: Request) -> AttendanceResponse:
        """Attendance history of one student, oldest first."""

        lookup: StudentDirectory | None = request.app.state.directory
        entries = await lookup.attendance(student_id) if lookup is not None else None
        if entries is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Student not found.")
        return AttendanceResponse(
            student_id=student_id,
            records=[
                AttendanceItem(
                    subject=entry.subject,
                    period=entry.period,
                    present=entry.present,
                    timestamp=entry.timestamp,
                )
                for entry in entries
            ],
        )

    @app.post("/match", tags=["recognition"], response_model=MatchResponse)
    async def match(payload: MatchRequest, request: Request) -> MatchResponse:
        """Classify one descriptor against the enrolled students."""

        threshold = settings.match_threshold if payload.threshold is None else payload.threshold
        try:
            result = request.app.state.matcher.match(payload.descriptor, threshold)
        except InvalidDescriptorError as exc:
            raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
        if result is None:
            return MatchResponse(match=None)

        student_info = None
        lookup: StudentDirectory | None = request.app.state.directory
        if lookup is not None:
            profile = await lookup.get(result.student_id)
            if profile is None:
                logger.warning("Matched student %s is missing from the roster", result.student_id)
            else:
                student_info = StudentInfo(name=profile.name, email=profile.email, section=profile.section)

        return MatchResponse(
            match=MatchBody(student_id=result.student_id, confidence=result.confidence, student=student_info),
        )

    return app


app = create_app()
