"""스케줄 도메인 예외 클래스 모듈.

Scheduling domain exception classes module.
Every error raised by the services belongs to one closed ``ErrorKind``
and carries the entity it concerns and a short reason. The HTTP status is
derived from the kind, so the classification is made where the error is
raised rather than by inspecting message text later.

Usage:
    from schedulehub.utils.exceptions import NotFoundError, ValidationError
    raise NotFoundError("Shift not found", entity="shift")
    raise ValidationError("Shift already clocked in", entity="shift", reason="already_clocked_in")
"""

import enum
import re
from collections.abc import Iterator
from contextlib import contextmanager

from fastapi import HTTPException, status
from sqlalchemy.exc import IntegrityError


class ErrorKind(str, enum.Enum):
    """오류 분류 — Closed set of error kinds."""

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    VALIDATION = "validation"
    CONFLICT = "conflict"


# 분류별 HTTP 상태 코드 — HTTP status code per kind
_STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.FORBIDDEN: status.HTTP_403_FORBIDDEN,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
}


class ScheduleHubError(HTTPException):
    """도메인 예외 기본 클래스.

    Base domain exception. Subclasses fix ``kind``; the status code follows.

    Args:
        detail: 오류 메시지 (Human-readable message)
        entity: 관련 엔티티 이름 (Entity the error concerns, e.g. "shift")
        reason: 기계가 읽을 수 있는 사유 코드 (Machine-readable reason code)
    """

    kind: ErrorKind = ErrorKind.VALIDATION

    def __init__(self, detail: str, entity: str | None = None, reason: str | None = None) -> None:
        super().__init__(status_code=_STATUS_BY_KIND[self.kind], detail=detail)
        self.entity: str | None = entity
        self.reason: str | None = reason

    def __str__(self) -> str:
        return str(self.detail)


class NotFoundError(ScheduleHubError):
    """404 Not Found — 참조한 스케줄/시프트/교대/템플릿이 없을 때 사용.

    Raised when a referenced schedule, shift, trade or template does not exist
    within the caller's organization.
    """

    kind = ErrorKind.NOT_FOUND

    def __init__(self, detail: str = "Resource not found", entity: str | None = None, reason: str | None = "not_found") -> None:
        super().__init__(detail, entity, reason)


class ForbiddenError(ScheduleHubError):
    """403 Forbidden — 행위자가 해당 상태 전이를 수행할 수 없을 때 사용.

    Raised when the acting worker or manager may not perform the specific
    transition (e.g. a worker responding to a trade addressed to someone else).
    """

    kind = ErrorKind.FORBIDDEN

    def __init__(self, detail: str = "Insufficient permissions", entity: str | None = None, reason: str | None = "forbidden") -> None:
        super().__init__(detail, entity, reason)


class ValidationError(ScheduleHubError):
    """400 Bad Request — 잘못된 입력 또는 허용되지 않는 상태 전이.

    Raised for malformed or out-of-range input and for state transitions the
    current state does not allow.
    """

    kind = ErrorKind.VALIDATION

    def __init__(self, detail: str = "Bad request", entity: str | None = None, reason: str | None = "invalid") -> None:
        super().__init__(detail, entity, reason)


class ConflictError(ScheduleHubError):
    """409 Conflict — 근무 시간 중복 등 충돌.

    Raised when a change would double-book a worker or conflict with a
    published schedule.
    """

    kind = ErrorKind.CONFLICT

    def __init__(self, detail: str = "Conflict", entity: str | None = None, reason: str | None = "conflict", conflicts: list | None = None) -> None:
        super().__init__(detail, entity, reason)
        self.conflicts: list = conflicts or []


# 중복 근무 트리거 메시지 패턴 — Overlap trigger message patterns
_OVERLAP_MARKER: str = "already has a shift"
_EMPLOYEE_PATTERN = re.compile(r"Employee ([0-9a-fA-F-]+)")
_WINDOW_PATTERN = re.compile(r"from (\d{2}:\d{2}(?::\d{2})?) to (\d{2}:\d{2}(?::\d{2})?) on (\d{4}-\d{2}-\d{2})")


def is_overlap_violation(error: IntegrityError) -> bool:
    """무결성 오류가 중복 근무 제약 위반인지 확인합니다.

    Return True when ``error`` was raised by the overlapping-shift trigger.
    """
    return _OVERLAP_MARKER in str(error.orig if error.orig is not None else error)


def overlap_conflict(error: IntegrityError) -> ConflictError:
    """중복 근무 제약 위반을 도메인 예외로 변환합니다.

    Translate an overlapping-shift constraint violation into a ``ConflictError``
    whose message starts with "Cannot create overlapping shift:".

    Args:
        error: 저장소가 발생시킨 무결성 오류 (IntegrityError from the datastore)

    Returns:
        ConflictError: 설명이 포함된 충돌 예외 (Descriptive conflict error)
    """
    message: str = str(error.orig if error.orig is not None else error)
    employee = _EMPLOYEE_PATTERN.search(message)
    window = _WINDOW_PATTERN.search(message)

    if employee and window:
        start_time, end_time, work_date = window.groups()
        detail = (
            f"Cannot create overlapping shift: Employee {employee.group(1)} already has a shift "
            f"from {start_time} to {end_time} on {work_date}"
        )
    else:
        detail = "Cannot create overlapping shift: Schedule conflict detected"
    return ConflictError(detail, entity="shift", reason="overlapping_shift")


@contextmanager
def overlap_guard() -> Iterator[None]:
    """중복 근무 제약 위반을 ConflictError로 변환하는 컨텍스트.

    Context that re-raises overlapping-shift violations as ``ConflictError``;
    any other ``IntegrityError`` propagates unchanged.

    Usage:
        with overlap_guard():
            async with unit_of_work(db):
                ...
    """
    try:
        yield
    except IntegrityError as exc:
        if is_overlap_violation(exc):
            raise overlap_conflict(exc) from exc
        raise
