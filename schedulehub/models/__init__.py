"""SQLAlchemy ORM 모델 패키지 — 모든 도메인 모델의 중앙 임포트 지점.

SQLAlchemy ORM models package — Central import point for all domain models.
Importing from this package ensures all models are registered with the
SQLAlchemy metadata, which is required for Alembic migrations, test schema
creation and relationship resolution.

Modules:
    worker: 작업자, 역할, 역할 보유, 근무 가능 시간 (Worker, Role, WorkerRole, WorkerAvailability)
    station: 스테이션 및 역할별 필요 인원 (Station and StationRoleRequirement)
    template: 시프트 템플릿 및 스테이션 연결 (ShiftTemplate and ShiftTemplateStation)
    schedule: 스케줄, 시프트, 교대 요청 (Schedule, Shift, ShiftTrade)
    status: 상태 열거형 및 전이표 (Status enums and transition tables)
"""

from schedulehub.models.worker import Worker, Role, WorkerRole, WorkerAvailability
from schedulehub.models.station import Station, StationRoleRequirement
from schedulehub.models.template import ShiftTemplate, ShiftTemplateStation
from schedulehub.models.schedule import Schedule, Shift, ShiftTrade
from schedulehub.models.status import ScheduleStatus, ShiftStatus, TradeStatus

__all__ = [
    "Worker", "Role", "WorkerRole", "WorkerAvailability",
    "Station", "StationRoleRequirement",
    "ShiftTemplate", "ShiftTemplateStation",
    "Schedule", "Shift", "ShiftTrade",
    "ScheduleStatus", "ShiftStatus", "TradeStatus",
]
