"""스테이션 커버리지 서비스 — 날짜별 스테이션 인력 충원율 분석.

Station Coverage Service — Staffing level of every active station on one date,
status bands, organization roll-ups and critical periods.
"""

import logging
from datetime import date, datetime, time, timedelta, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.config import settings
from schedulehub.models.schedule import Shift
from schedulehub.models.station import Station
from schedulehub.models.worker import Worker
from schedulehub.repositories.shift_repository import shift_repository
from schedulehub.repositories.station_repository import station_repository
from schedulehub.utils.date_utils import format_time, parse_date_only

logger = logging.getLogger(__name__)

# 표준 근무 시간대 (시작 시, 종료 시) — Standard periods as (start hour, end hour)
STANDARD_PERIODS: tuple[tuple[str, int, int], ...] = (
    ("Morning", 6, 14),
    ("Afternoon", 14, 22),
    ("Night", 22, 6),
)

_STATUS_ORDER: dict[str, int] = {"critical": 0, "warning": 1, "optimal": 2}


def _round_half_up(value: float) -> int:
    return int(Decimal(str(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def coverage_status(percentage: int, required: int) -> str:
    """충원율 등급 — optimal / warning / critical.

    A station that requires nobody is optimal.
    """
    if required == 0 or percentage >= settings.COVERAGE_OPTIMAL_THRESHOLD:
        return "optimal"
    if percentage >= settings.COVERAGE_WARNING_THRESHOLD:
        return "warning"
    return "critical"


class CoverageService:
    """스테이션 커버리지 서비스 — Station coverage service."""

    @staticmethod
    def _station_entry(station: Station, staffed: list[tuple[Shift, Worker | None]]) -> dict[str, Any]:
        """스테이션 하나의 커버리지 항목 — Coverage entry for one station."""
        required: int = sum(max(req.min_workers, req.max_workers or req.min_workers) for req in station.requirements)
        minimum: int = sum(req.min_workers for req in station.requirements)
        current: int = len(staffed)
        percentage: int = _round_half_up(current / required * 100) if required else 0

        return {
            "station_id": str(station.id),
            "station_name": station.station_name,
            "required_staffing": required,
            "minimum_staffing": minimum,
            "current_staffing": current,
            "coverage_percentage": percentage,
            "unfilled_slots": max(0, required - current),
            "status": coverage_status(percentage, required),
            "shifts": [
                {
                    "id": str(shift.id),
                    "employee_id": str(shift.employee_id) if shift.employee_id else None,
                    "employee_name": worker.full_name if worker is not None else "Unassigned",
                    "role_id": str(shift.role_id) if shift.role_id else None,
                    "start_time": format_time(shift.start_time),
                    "end_time": format_time(shift.end_time),
                    "status": shift.status,
                }
                for shift, worker in staffed
            ],
        }

    @staticmethod
    def _critical_periods(station_coverage: list[dict[str, Any]], report_date: date) -> list[dict[str, Any]]:
        """위험 시간대를 식별합니다.

        Flag each standard period when enough stations are below optimal.
        Severity is critical once enough of them are critical.
        """
        affected: list[dict[str, Any]] = [entry for entry in station_coverage if entry["status"] != "optimal"]
        if len(affected) < settings.CRITICAL_PERIOD_MIN_AFFECTED_STATIONS:
            return []

        critical_count: int = sum(1 for entry in affected if entry["status"] == "critical")
        severity: str = "critical" if critical_count >= settings.CRITICAL_PERIOD_CRITICAL_THRESHOLD else "warning"

        periods: list[dict[str, Any]] = []
        for name, start_hour, end_hour in STANDARD_PERIODS:
            start = datetime.combine(report_date, time(start_hour), tzinfo=timezone.utc)
            end_date = report_date + timedelta(days=1) if end_hour < start_hour else report_date
            end = datetime.combine(end_date, time(end_hour), tzinfo=timezone.utc)
            periods.append({
                "name": name,
                "start_time": start,
                "end_time": end,
                "affected_stations": [entry["station_name"] for entry in affected],
                "severity": severity,
            })
        return periods

    async def get_station_coverage_stats(
        self,
        db: AsyncSession,
        organization_id: UUID,
        report_date: str | date | None = None,
    ) -> dict[str, Any]:
        """날짜별 스테이션 커버리지 보고서를 생성합니다.

        Build the coverage report for ``report_date`` (today, UTC, when omitted).

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            organization_id: 조직 UUID (Organization UUID)
            report_date: 대상 날짜 "YYYY-MM-DD" (Target date)

        Returns:
            dict[str, Any]: 커버리지 보고서 (Coverage report)
        """
        target: date = parse_date_only(report_date) if report_date else datetime.now(timezone.utc).date()

        stations: Sequence[Station] = await station_repository.get_active(db, organization_id)
        by_station: dict[UUID, list[tuple[Shift, Worker | None]]] = {}
        for shift, worker in await shift_repository.get_staffed_on_date(db, organization_id, target):
            by_station.setdefault(shift.station_id, []).append((shift, worker))

        station_coverage = [self._station_entry(station, by_station.get(station.id, [])) for station in stations]
        station_coverage.sort(key=lambda entry: (_STATUS_ORDER[entry["status"]], entry["station_name"]))

        total: int = len(station_coverage)
        counts: dict[str, int] = {status: 0 for status in _STATUS_ORDER}
        for entry in station_coverage:
            counts[entry["status"]] += 1
        overall: int = _round_half_up(sum(entry["coverage_percentage"] for entry in station_coverage) / total) if total else 0

        logger.debug(
            "Coverage for organization %s on %s: %s stations, %s critical",
            organization_id, target, total, counts["critical"],
        )
        return {
            "date": target,
            "total_stations": total,
            "optimal_stations": counts["optimal"],
            "warning_stations": counts["warning"],
            "critical_stations": counts["critical"],
            "overall_coverage_percentage": overall,
            "station_coverage": station_coverage,
            "critical_periods": self._critical_periods(station_coverage, target),
        }


# 싱글턴 인스턴스 — Singleton instance
coverage_service: CoverageService = CoverageService()
