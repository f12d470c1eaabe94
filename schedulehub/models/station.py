"""스테이션 SQLAlchemy ORM 모델 정의.

Station SQLAlchemy ORM model definitions.
A station is a physical or logical work area; its role requirements state
how many workers of each role it needs per day.

Tables:
    - stations: 스테이션 (Work stations)
    - station_role_requirements: 역할별 필요 인원 (Per-role staffing requirement)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from schedulehub.database import Base


class Station(Base):
    """스테이션 모델 — Work station.

    Attributes:
        id: 고유 식별자 UUID (Unique identifier)
        organization_id: 소속 조직 (Tenant scope)
        station_name: 스테이션 이름 (Display name, used for ordering)
        is_active: 활성 여부 (Inactive stations are excluded from coverage)
        requirements: 역할별 필요 인원 목록 (Role requirements)
    """

    __tablename__ = "stations"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, index=True)
    station_name: Mapped[str] = mapped_column(String(100), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))

    requirements = relationship(
        "StationRoleRequirement",
        back_populates="station",
        cascade="all, delete-orphan",
        lazy="selectin",
    )


class StationRoleRequirement(Base):
    """스테이션 역할 요구사항 — min_workers 이상, max_workers 이하 배치.

    Station role requirement. ``max_workers`` may be NULL, meaning the
    requirement is exactly ``min_workers``.
    """

    __tablename__ = "station_role_requirements"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    station_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("stations.id", ondelete="CASCADE"), nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(Uuid, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False)
    min_workers: Mapped[int] = mapped_column(Integer, default=1)
    max_workers: Mapped[int | None] = mapped_column(Integer, nullable=True)
    priority: Mapped[str] = mapped_column(String(20), default="normal")

    station = relationship("Station", back_populates="requirements")

    __table_args__ = (
        UniqueConstraint("station_id", "role_id", name="uq_station_role_requirement"),
    )
