"""작업자 디렉터리 SQLAlchemy ORM 모델 정의.

Worker directory SQLAlchemy ORM model definitions.
These rows are owned by the HR system; the scheduling engine only reads them
to decide who may be placed on a shift.

Tables:
    - workers: 작업자 (Schedulable workers with employment type)
    - roles: 직무 역할 (Job roles a shift template requires)
    - worker_roles: 작업자-역할 매핑 (Worker role holdings, soft-removed via removed_date)
    - worker_availability: 근무 가능 시간 (Recurring or one-time availability windows)
"""

import uuid
from datetime import date, datetime, time, timezone

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, String, Time, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from schedulehub.database import Base


class Worker(Base):
    """작업자 모델 — 스케줄 배정 대상 직원.

    Worker model — An employee who can be placed on shifts.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        organization_id: 소속 조직 (Tenant scope)
        first_name: 이름 (First name)
        last_name: 성 (Last name)
        employment_type: 고용 유형 — full_time / part_time / … (Employment type)
        employment_status: 재직 상태 — active / terminated / … (Employment status)
        is_schedulable: 스케줄 배정 가능 여부 (Whether the worker may be scheduled)
    """

    __tablename__ = "workers"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    # 고용 유형 — 초과근무 기준 시간 결정 (Drives the overtime baseline)
    employment_type: Mapped[str] = mapped_column(String(30), default="full_time")
    employment_status: Mapped[str] = mapped_column(String(30), default="active")
    is_schedulable: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class Role(Base):
    """직무 역할 모델 — Job role required by templates and station requirements."""

    __tablename__ = "roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    role_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class WorkerRole(Base):
    """작업자-역할 매핑 — removed_date가 설정되면 더 이상 보유하지 않음.

    Worker role holding. A set ``removed_date`` means the role was taken away.
    """

    __tablename__ = "worker_roles"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    worker_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False)
    removed_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        Index("ix_worker_roles_role", "role_id", "worker_id"),
    )


class WorkerAvailability(Base):
    """근무 가능 시간 모델.

    Worker availability window.

    Types:
        - recurring: 매주 day_of_week (ISO 1=월 … 7=일)에 반복 (Weekly on ISO day_of_week)
        - one_time: specific_date 하루만 적용 (Only on specific_date)

    priority가 "unavailable"이면 해당 시간대에 배정 불가.
    A priority of "unavailable" blocks the window instead of offering it.
    """

    __tablename__ = "worker_availability"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    worker_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("workers.id", ondelete="CASCADE"), nullable=False)
    availability_type: Mapped[str] = mapped_column(String(20), default="recurring")
    day_of_week: Mapped[int | None] = mapped_column(Integer, nullable=True)
    specific_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    # 유효 기간 — Effective period (open-ended when NULL)
    effective_from: Mapped[date | None] = mapped_column(Date, nullable=True)
    effective_to: Mapped[date | None] = mapped_column(Date, nullable=True)
    # 우선순위 — preferred / available / unavailable
    priority: Mapped[str] = mapped_column(String(20), default="available")

    __table_args__ = (
        Index("ix_worker_availability_worker", "worker_id"),
    )
