"""스테이션 커버리지 Pydantic 응답 스키마 정의.

Station coverage Pydantic response schema definitions.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field


class CoverageShift(BaseModel):
    """스테이션에 배치된 시프트 요약 — Shift staffed at a station."""

    id: str
    employee_id: str | None = None
    employee_name: str = "Unassigned"
    role_id: str | None = None
    start_time: str
    end_time: str
    status: str


class StationCoverage(BaseModel):
    """스테이션별 커버리지.

    Per-station coverage.

    Attributes:
        required_staffing: Σ max(min_workers, max_workers 또는 min_workers)
        minimum_staffing: Σ min_workers
        current_staffing: 취소되지 않은 시프트 수 (Non-cancelled shifts on the date)
        coverage_percentage: round(current / required * 100), required 0이면 0
        status: optimal / warning / critical
    """

    station_id: str
    station_name: str
    required_staffing: int
    minimum_staffing: int
    current_staffing: int
    coverage_percentage: int
    unfilled_slots: int
    status: str
    shifts: list[CoverageShift] = Field(default_factory=list)


class CriticalPeriod(BaseModel):
    """위험 시간대 — Time window with several understaffed stations."""

    name: str
    start_time: datetime
    end_time: datetime
    affected_stations: list[str]
    severity: str


class CoverageReport(BaseModel):
    """스테이션 커버리지 보고서 — Coverage report for one date."""

    date: date
    total_stations: int
    optimal_stations: int
    warning_stations: int
    critical_stations: int
    overall_coverage_percentage: int
    station_coverage: list[StationCoverage] = Field(default_factory=list)
    critical_periods: list[CriticalPeriod] = Field(default_factory=list)
