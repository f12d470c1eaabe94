"""시프트 관련 Pydantic 요청/응답 스키마 정의.

Shift Pydantic request/response schema definitions.
Covers manual shift creation, assignment changes, clock in/out and the
time-tracking result returned on clock-out.
"""

from datetime import date, datetime

from pydantic import BaseModel


class ShiftCreate(BaseModel):
    """시프트 직접 생성 요청 스키마.

    Manual shift creation request schema (manager).

    Attributes:
        shift_date: 근무 날짜 "YYYY-MM-DD" (Shift date)
        start_time: 시작 시각 "HH:MM" (Start time)
        end_time: 종료 시각 "HH:MM" (End time; at or before start means overnight)
    """

    schedule_id: str | None = None  # 소속 스케줄 UUID (Owning schedule, optional)
    template_id: str | None = None
    station_id: str | None = None
    role_id: str | None = None
    employee_id: str | None = None  # 배정할 작업자 UUID, 미배정이면 None (Assigned worker)
    shift_date: str
    start_time: str
    end_time: str
    break_minutes: int = 0
    notes: str | None = None


class ShiftAssignRequest(BaseModel):
    """작업자 배정 요청 스키마 — Assign worker request."""

    employee_id: str


class ShiftCancelRequest(BaseModel):
    """시프트 취소 요청 스키마 — Cancel shift request."""

    reason: str | None = None


class ClockInRequest(BaseModel):
    """출근 요청 스키마 — 시각 생략 시 현재 시각 (Defaults to now)."""

    clock_in_time: datetime | None = None


class ClockOutRequest(BaseModel):
    """퇴근 요청 스키마.

    Clock-out request schema.

    Attributes:
        clock_out_time: 퇴근 시각, 생략 시 현재 (Clock-out time, defaults to now)
        actual_break_minutes: 실제 휴게 시간, 생략 시 예정 휴게 시간
            (Break taken; defaults to the scheduled break)
    """

    clock_out_time: datetime | None = None
    actual_break_minutes: int | None = None


class ShiftResponse(BaseModel):
    """시프트 응답 스키마 — Shift response schema."""

    id: str
    schedule_id: str | None = None
    template_id: str | None = None
    station_id: str | None = None
    role_id: str | None = None
    employee_id: str | None = None
    shift_date: date
    start_time: str  # "HH:MM"
    end_time: str  # "HH:MM"
    break_minutes: int = 0
    actual_break_minutes: int | None = None
    clock_in_time: datetime | None = None
    clock_out_time: datetime | None = None
    status: str
    actual_hours: float | None = None
    shift_type: str = "regular"
    notes: str | None = None
    cancellation_reason: str | None = None


class TimeTrackingResponse(BaseModel):
    """근무 시간 계산 결과 스키마.

    Time-tracking breakdown computed at clock-out.
    ``regular_hours + overtime_hours == worked_hours``.
    """

    worked_hours: float
    regular_hours: float
    overtime_hours: float
    baseline_hours: float  # 정규 근무 기준 시간 (Regular-hours baseline applied)
    break_minutes: int


class PayrollIntegrationResponse(BaseModel):
    """급여 연동 결과 스키마 — Payroll collaborator acknowledgement."""

    time_entry_id: str | None = None
    success: bool


class ClockOutResponse(BaseModel):
    """퇴근 응답 스키마.

    Clock-out response. ``payroll_integration`` is None when the payroll
    collaborator could not be notified.
    """

    shift: ShiftResponse
    time_tracking: TimeTrackingResponse
    payroll_integration: PayrollIntegrationResponse | None = None
