"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class DescriptorPayload(BaseModel):
    descriptor: list[float]


class MatchRequest(DescriptorPayload):
    threshold: float | None = Field(default=None, ge=0.0, le=1.0)


class EnrollResponse(BaseModel):
    student_id: str
    samples: int


class StudentInfo(BaseModel):
    name: str
    email: str | None = None
    section: str | None = None


class MatchBody(BaseModel):
    student_id: str
    confidence: float
    student: StudentInfo | None = None


class MatchResponse(BaseModel):
    match: MatchBody | None


class DebugResponse(BaseModel):
    registered_students: list[str]
    total_descriptors: int
    dimension: int | None


class AttendanceItem(BaseModel):
    subject: str
    period: int
    present: bool
    timestamp: datetime


class AttendanceResponse(BaseModel):
    student_id: str
    records: list[AttendanceItem]
