"""시프트 템플릿 SQLAlchemy ORM 모델 정의.

Shift template SQLAlchemy ORM model definitions.
Templates are reusable shift definitions; schedule generation materializes
them into concrete shifts. The scheduling engine treats them as read-only.

Tables:
    - shift_templates: 시프트 템플릿 (Reusable shift definitions)
    - shift_template_stations: 템플릿-스테이션 연결 (Stations a template staffs, ordered)
"""

import uuid
from datetime import datetime, time, timezone

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, Integer, String, Time, UniqueConstraint, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schedulehub.database import Base


class ShiftTemplate(Base):
    """시프트 템플릿 모델.

    Shift template model.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        organization_id: 소속 조직 (Tenant scope)
        template_name: 템플릿 이름 (Display name)
        start_time: 시작 시각 (Start wall-clock time)
        end_time: 종료 시각, start 이하이면 다음날 (End time; at or before start means next day)
        break_duration_minutes: 휴게 시간(분) (Scheduled break in minutes)
        is_overnight: 자정 넘김 여부 (Runs past midnight)
        required_workers: 필요 인원 (Workers needed per station per day)
        days_of_week: 적용 요일 ISO 1–7 (Weekdays the template normally applies to)
        role_id: 필요 역할 FK (Role the workers must hold)
        is_active: 활성 여부 (Inactive templates resolve as not found)
        station_links: 연결된 스테이션 (Linked stations in stored order)
    """

    __tablename__ = "shift_templates"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    template_name: Mapped[str] = mapped_column(String(100), nullable=False)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time] = mapped_column(Time, nullable=False)
    break_duration_minutes: Mapped[int] = mapped_column(Integer, default=0)
    is_overnight: Mapped[bool] = mapped_column(Boolean, default=False)
    required_workers: Mapped[int] = mapped_column(Integer, default=1)
    # ISO 요일 배열 — ISO weekday list, e.g. [1, 2, 3, 4, 5]
    days_of_week: Mapped[list[int] | None] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=True, default=None
    )
    role_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, ForeignKey("roles.id", ondelete="SET NULL"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    station_links = relationship(
        "ShiftTemplateStation",
        cascade="all, delete-orphan",
        order_by="ShiftTemplateStation.sort_order",
        lazy="selectin",
    )

    @property
    def station_ids(self) -> list[uuid.UUID]:
        return [link.station_id for link in self.station_links]


class ShiftTemplateStation(Base):
    """템플릿-스테이션 연결 — Template-to-station link."""

    __tablename__ = "shift_template_stations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    template_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("shift_templates.id", ondelete="CASCADE"), nullable=False)
    station_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("stations.id", ondelete="CASCADE"), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)

    __table_args__ = (
        UniqueConstraint("template_id", "station_id", name="uq_shift_template_station"),
    )
