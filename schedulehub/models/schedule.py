"""스케줄, 시프트, 교대 요청 SQLAlchemy ORM 모델 정의.

Schedule, shift and shift-trade SQLAlchemy ORM model definitions.
A schedule groups the shifts generated for a date range; each shift is one
worker slot at one station on one date; a shift trade swaps the workers of
two shifts after the responding worker and a manager agree.

Tables:
    - schedules: 스케줄 (Schedules — draft until published)
    - shifts: 시프트 (Shift instances and their time tracking)
    - shift_trades: 교대 요청 (Peer-to-peer shift trade requests)

The datastore refuses to hold two non-cancelled shifts for one worker whose
windows overlap on the same date. The guard is a trigger attached to the
``shifts`` table when it is created, in a PostgreSQL and a SQLite flavour.
"""

import uuid
from datetime import date, datetime, time, timezone
from decimal import Decimal

from sqlalchemy import DDL, CheckConstraint, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text, Time, Uuid, event
from sqlalchemy.orm import Mapped, mapped_column

from schedulehub.database import Base
from schedulehub.models.status import ScheduleStatus, ShiftStatus, TradeStatus


class Schedule(Base):
    """스케줄 모델 — 기간 단위 근무 스케줄.

    Schedule model — Work schedule covering ``start_date``..``end_date``.

    Status Flow:
        draft → published → (unpublish) draft

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        organization_id: 소속 조직 (Tenant scope)
        schedule_name: 스케줄 이름, 최대 100자 (Name, at most 100 characters)
        description: 설명 (Optional description)
        start_date: 시작일 (First date covered)
        end_date: 종료일, 시작일보다 이후 (Last date covered, strictly after start)
        status: 상태 — draft / published
        published_at: 게시 일시 (Publication timestamp)
        published_by: 게시자 (User who published)
        created_by: 작성자 (Creator)
        updated_by: 수정자 (Last updater)
    """

    __tablename__ = "schedules"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    schedule_name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=ScheduleStatus.DRAFT.value)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    published_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_schedules_org_dates", "organization_id", "start_date", "end_date"),
        CheckConstraint("end_date > start_date", name="ck_schedules_date_range"),
    )


class Shift(Base):
    """시프트 모델 — 한 작업자 슬롯의 근무 인스턴스.

    Shift model — One worker slot on one date, with its time tracking.

    Status Flow:
        scheduled → in_progress (clock in) → completed (clock out)
        scheduled | in_progress → cancelled

    Attributes:
        schedule_id: 소속 스케줄 FK, 직접 생성 시 선택 (Owning schedule)
        template_id: 생성 원본 템플릿 (Template it was generated from)
        station_id: 스테이션 (Station staffed, optional)
        role_id: 역할 (Role required)
        employee_id: 배정된 작업자, 미배정 시 NULL (Assigned worker, NULL when open)
        shift_date: 근무 날짜 (Date the shift starts on)
        start_time / end_time: 예정 시간대 (Scheduled window)
        break_minutes: 예정 휴게 시간 (Scheduled break)
        actual_break_minutes: 실제 휴게 시간 (Break actually taken)
        clock_in_time / clock_out_time: 출퇴근 시각 (Clock events, clock-out never before clock-in)
        actual_hours: 실제 근무 시간 (Worked hours, 2 decimals)
        shift_type: regular / partial (Partial when trimmed to the worker's availability)
    """

    __tablename__ = "shifts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    schedule_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("schedules.id", ondelete="CASCADE"), nullable=True)
    template_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("shift_templates.id", ondelete="SET NULL"), nullable=True)
    station_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("stations.id", ondelete="SET NULL"), nullable=True)
    role_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True)
    employee_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("workers.id", ondelete="SET NULL"), nullable=True)
    shift_date: Mapped[date] = mapped_column(Date, nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    break_minutes: Mapped[int] = mapped_column(Integer, default=0)
    actual_break_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    clock_in_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    clock_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    status: Mapped[str] = mapped_column(String(20), default=ShiftStatus.SCHEDULED.value)
    actual_hours: Mapped[Decimal | None] = mapped_column(Numeric(6, 2), nullable=True)
    shift_type: Mapped[str] = mapped_column(String(20), default="regular")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancellation_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    updated_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_shifts_org_date", "organization_id", "shift_date"),
        Index("ix_shifts_employee_date", "employee_id", "shift_date"),
        Index("ix_shifts_schedule", "schedule_id"),
        CheckConstraint(
            "clock_out_time IS NULL OR clock_in_time IS NULL OR clock_out_time >= clock_in_time",
            name="ck_shifts_clock_order",
        ),
    )


class ShiftTrade(Base):
    """교대 요청 모델.

    Shift trade model — Request by the worker of ``from_shift_id`` to swap
    with the worker of ``to_shift_id``.

    Status Flow:
        pending → accepted → approved | manager_rejected
        pending → rejected | cancelled
        pending | accepted → expired (reported once past expires_at)
    """

    __tablename__ = "shift_trades"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    from_shift_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False)
    to_shift_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("shifts.id", ondelete="CASCADE"), nullable=False)
    requesting_worker_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    responding_worker_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=TradeStatus.PENDING.value)
    requested_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    responded_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    approved_by: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    approved_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    manager_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), onupdate=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        Index("ix_shift_trades_requester_status", "requesting_worker_id", "status"),
        Index("ix_shift_trades_responder_status", "responding_worker_id", "status"),
    )


# ---------------------------------------------------------------------------
# 중복 근무 방지 트리거 — Overlapping shift guard
# ---------------------------------------------------------------------------
# 같은 작업자, 같은 날짜, 취소되지 않은 시프트끼리 [start, end) 구간이 겹치면 거부
# Rejects a non-cancelled shift whose [start, end) window overlaps another
# non-cancelled shift of the same worker on the same date. An end at or before
# the start runs into the next day.

PG_OVERLAP_FUNCTION_SQL: str = """
CREATE OR REPLACE FUNCTION prevent_overlapping_shifts() RETURNS trigger AS $$
DECLARE
    existing RECORD;
BEGIN
    IF NEW.employee_id IS NULL OR NEW.status = 'cancelled' THEN
        RETURN NEW;
    END IF;
    SELECT s.start_time, s.end_time INTO existing
    FROM shifts s
    WHERE s.employee_id = NEW.employee_id
      AND s.shift_date = NEW.shift_date
      AND s.status <> 'cancelled'
      AND s.id <> NEW.id
      AND (s.start_time - time '00:00')
          < (NEW.end_time - time '00:00')
            + CASE WHEN NEW.end_time <= NEW.start_time THEN interval '24 hours' ELSE interval '0' END
      AND (NEW.start_time - time '00:00')
          < (s.end_time - time '00:00')
            + CASE WHEN s.end_time <= s.start_time THEN interval '24 hours' ELSE interval '0' END
    LIMIT 1;
    IF FOUND THEN
        RAISE EXCEPTION 'Employee %% already has a shift from %% to %% on %%',
            NEW.employee_id, existing.start_time, existing.end_time, NEW.shift_date
            USING ERRCODE = 'check_violation';
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""

PG_OVERLAP_TRIGGER_SQL: str = """
CREATE TRIGGER trg_prevent_overlapping_shifts
BEFORE INSERT OR UPDATE OF employee_id, shift_date, start_time, end_time, status ON shifts
FOR EACH ROW EXECUTE FUNCTION prevent_overlapping_shifts()
"""


def _sqlite_minutes(column: str) -> str:
    """SQLite TIME 문자열(HH:MM:SS)을 자정 기준 분으로 — Minutes from midnight."""
    return f"(CAST(substr({column}, 1, 2) AS INTEGER) * 60 + CAST(substr({column}, 4, 2) AS INTEGER))"


def _sqlite_window_end(alias: str) -> str:
    return (
        f"({_sqlite_minutes(alias + '.end_time')} "
        f"+ CASE WHEN {alias}.end_time <= {alias}.start_time THEN 1440 ELSE 0 END)"
    )


_SQLITE_OVERLAP_TRIGGER_SQL: str = """
CREATE TRIGGER trg_prevent_overlapping_shifts_{event}
BEFORE {event_sql} ON shifts
FOR EACH ROW WHEN NEW.employee_id IS NOT NULL AND NEW.status <> 'cancelled'
BEGIN
    SELECT RAISE(ABORT, 'Employee already has a shift overlapping this time window')
    WHERE EXISTS (
        SELECT 1 FROM shifts s
        WHERE s.employee_id = NEW.employee_id
          AND s.shift_date = NEW.shift_date
          AND s.status <> 'cancelled'
          AND s.id <> NEW.id
          AND {s_start} < {new_end}
          AND {new_start} < {s_end}
    );
END
"""


def _sqlite_overlap_trigger(event_name: str, event_sql: str) -> str:
    return _SQLITE_OVERLAP_TRIGGER_SQL.format(
        event=event_name,
        event_sql=event_sql,
        s_start=_sqlite_minutes("s.start_time"),
        s_end=_sqlite_window_end("s"),
        new_start=_sqlite_minutes("NEW.start_time"),
        new_end=_sqlite_window_end("NEW"),
    )


event.listen(Shift.__table__, "after_create", DDL(PG_OVERLAP_FUNCTION_SQL).execute_if(dialect="postgresql"))
event.listen(Shift.__table__, "after_create", DDL(PG_OVERLAP_TRIGGER_SQL).execute_if(dialect="postgresql"))
event.listen(
    Shift.__table__,
    "after_create",
    DDL(_sqlite_overlap_trigger("insert", "INSERT")).execute_if(dialect="sqlite"),
)
event.listen(
    Shift.__table__,
    "after_create",
    DDL(_sqlite_overlap_trigger("update", "UPDATE")).execute_if(dialect="sqlite"),
)
