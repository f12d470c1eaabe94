"""스테이션 커버리지 테스트."""

from datetime import date, datetime, timezone

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.models.station import Station
from schedulehub.schemas.shift import ShiftCreate
from schedulehub.services.coverage_service import coverage_service, coverage_status
from schedulehub.services.shift_service import shift_service
from schedulehub.utils.exceptions import ValidationError
from tests.conftest import add, make_station


async def staff(db: AsyncSession, org_id, manager_id, station_id, worker_id=None, shift_date="2025-01-20"):
    shift = await shift_service.create_shift(
        db,
        ShiftCreate(
            station_id=str(station_id),
            employee_id=str(worker_id) if worker_id else None,
            shift_date=shift_date,
            start_time="09:00",
            end_time="17:00",
        ),
        org_id,
        manager_id,
    )
    return shift.id


class TestCoverageStatus:
    """충원율 등급 테스트."""

    @pytest.mark.parametrize(
        "percentage,required,expected",
        [
            (100, 4, "optimal"),
            (90, 10, "optimal"),
            (89, 10, "warning"),
            (50, 4, "warning"),
            (49, 4, "critical"),
            (0, 2, "critical"),
            (0, 0, "optimal"),
        ],
    )
    def test_bands(self, percentage, required, expected):
        assert coverage_status(percentage, required) == expected


class TestStationCoverageReport:
    """날짜별 커버리지 보고서 테스트."""

    async def test_report_statuses_and_ordering(
        self, db: AsyncSession, org_id, manager_id, cook_role, cooks, grill
    ):
        """Prep 3/4 → 75% warning, Grill 0/2 → critical, Dish 요구 없음 → optimal."""
        prep = await make_station(db, org_id, "Prep", [(cook_role, 4, None)])
        await make_station(db, org_id, "Dish")
        prep_id = prep.id
        for worker in cooks:
            await staff(db, org_id, manager_id, prep_id, worker.id)
        # 다른 날짜와 취소된 시프트는 제외
        await staff(db, org_id, manager_id, prep_id, shift_date="2025-01-21")
        cancelled = await staff(db, org_id, manager_id, prep_id)
        await shift_service.cancel_shift(db, cancelled, org_id, manager_id)

        report = await coverage_service.get_station_coverage_stats(db, org_id, "2025-01-20")
        assert report["date"] == date(2025, 1, 20)
        assert report["total_stations"] == 3
        assert (report["optimal_stations"], report["warning_stations"], report["critical_stations"]) == (1, 1, 1)
        assert [entry["station_name"] for entry in report["station_coverage"]] == ["Grill", "Prep", "Dish"]

        grill_entry, prep_entry, dish_entry = report["station_coverage"]
        assert prep_entry["required_staffing"] == 4
        assert prep_entry["current_staffing"] == 3
        assert prep_entry["coverage_percentage"] == 75
        assert prep_entry["unfilled_slots"] == 1
        assert prep_entry["status"] == "warning"
        assert sorted(s["employee_name"] for s in prep_entry["shifts"]) == [
            "Alice Adams", "Bob Brown", "Carol Clark",
        ]

        assert grill_entry["coverage_percentage"] == 0
        assert grill_entry["status"] == "critical"
        assert dish_entry["required_staffing"] == 0
        assert dish_entry["status"] == "optimal"

        assert report["overall_coverage_percentage"] == 25

    async def test_critical_periods(self, db: AsyncSession, org_id, manager_id, cook_role, grill):
        """비최적 스테이션 2곳 이상이면 세 표준 시간대 모두 표시."""
        await make_station(db, org_id, "Prep", [(cook_role, 4, None)])

        report = await coverage_service.get_station_coverage_stats(db, org_id, "2025-01-20")
        periods = report["critical_periods"]
        assert [p["name"] for p in periods] == ["Morning", "Afternoon", "Night"]
        assert all(p["severity"] == "critical" for p in periods)
        assert all(sorted(p["affected_stations"]) == ["Grill", "Prep"] for p in periods)

        night = periods[2]
        assert night["start_time"] == datetime(2025, 1, 20, 22, tzinfo=timezone.utc)
        assert night["end_time"] == datetime(2025, 1, 21, 6, tzinfo=timezone.utc)

    async def test_single_weak_station_is_not_a_critical_period(self, db: AsyncSession, org_id, grill):
        report = await coverage_service.get_station_coverage_stats(db, org_id, "2025-01-20")
        assert report["critical_stations"] == 1
        assert report["critical_periods"] == []

    async def test_percentage_rounds_half_up(self, db: AsyncSession, org_id, manager_id, cook_role, cooks):
        """1/8 = 12.5% → 13%."""
        line = await make_station(db, org_id, "Line", [(cook_role, 8, None)])
        await staff(db, org_id, manager_id, line.id, cooks[0].id)

        report = await coverage_service.get_station_coverage_stats(db, org_id, "2025-01-20")
        assert report["station_coverage"][0]["coverage_percentage"] == 13

    async def test_max_workers_raise_the_target(self, db: AsyncSession, org_id, manager_id, cook_role, cooks):
        line = await make_station(db, org_id, "Line", [(cook_role, 1, 2)])
        await staff(db, org_id, manager_id, line.id, cooks[0].id)

        entry = (await coverage_service.get_station_coverage_stats(db, org_id, "2025-01-20"))["station_coverage"][0]
        assert entry["required_staffing"] == 2
        assert entry["minimum_staffing"] == 1
        assert entry["coverage_percentage"] == 50

    async def test_inactive_stations_are_ignored(self, db: AsyncSession, org_id):
        await add(db, Station(organization_id=org_id, station_name="Closed", is_active=False))

        report = await coverage_service.get_station_coverage_stats(db, org_id, "2025-01-20")
        assert report["total_stations"] == 0
        assert report["overall_coverage_percentage"] == 0
        assert report["critical_periods"] == []

    async def test_malformed_date(self, db: AsyncSession, org_id):
        with pytest.raises(ValidationError):
            await coverage_service.get_station_coverage_stats(db, org_id, "20-01-2025")
