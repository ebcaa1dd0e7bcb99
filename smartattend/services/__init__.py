"""Roster, attendance, descriptor archive and recognition services."""

from .attendance import AttendanceEntry, AttendanceService
from .descriptors import DescriptorArchive, SqlDescriptorArchive
from .recognition import AttendanceRecorder, RecognitionLoop
from .roster import DuplicateStudentError, RosterService, SqlStudentDirectory, StudentDirectory, StudentProfile

__all__ = [
    "AttendanceEntry",
    "AttendanceRecorder",
    "AttendanceService",
    "DescriptorArchive",
    "DuplicateStudentError",
    "RecognitionLoop",
    "RosterService",
    "SqlDescriptorArchive",
    "SqlStudentDirectory",
    "StudentDirectory",
    "StudentProfile",
]
