"""스케줄 자동 생성 테스트.

Schedule auto-generation tests — template resolution, day mapping, worker
eligibility, coverage accounting and the no-overlap guarantee.
"""

import logging
import uuid
from datetime import date, time

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.models.worker import Role, WorkerAvailability
from schedulehub.repositories.shift_repository import shift_repository
from schedulehub.schemas.schedule import ScheduleAutoGenerate
from schedulehub.schemas.shift import ShiftCreate
from schedulehub.services.schedule_service import schedule_service
from schedulehub.services.shift_service import shift_service
from schedulehub.utils.date_utils import window_minutes, windows_overlap
from schedulehub.utils.exceptions import ConflictError, ValidationError
from tests.conftest import add, make_template, make_worker


def request(**overrides) -> ScheduleAutoGenerate:
    data = {
        "schedule_name": "Week 4",
        "start_date": "2025-01-20",
        "end_date": "2025-01-26",
    }
    data.update(overrides)
    return ScheduleAutoGenerate(**data)


def assert_no_overlaps(shifts) -> None:
    """같은 작업자·같은 날짜의 시프트가 겹치지 않는지 확인합니다."""
    assigned = [s for s in shifts if s.employee_id is not None]
    for i, first in enumerate(assigned):
        for second in assigned[i + 1:]:
            if first.employee_id == second.employee_id and first.shift_date == second.shift_date:
                assert not windows_overlap(
                    window_minutes(first.start_time, first.end_time),
                    window_minutes(second.start_time, second.end_time),
                )


class TestDayMapping:
    """요일 매핑 테스트."""

    async def test_mapping_limits_generation_to_mapped_weekday(
        self, db: AsyncSession, org_id, manager_id, cooks, day_template
    ):
        """월요일에만 매핑된 템플릿은 2025-01-20에만 시프트를 생성."""
        template_id = str(day_template.id)
        grill_id = day_template.station_ids[0]
        adams, brown = cooks[0].id, cooks[1].id

        result = await schedule_service.auto_generate_schedule(
            db, request(template_day_mapping={"1": [template_id]}), org_id, manager_id
        )
        summary = result["generation_summary"]
        assert summary["total_shifts_requested"] == 2
        assert summary["shifts_generated"] == 2
        assert summary["partial_coverage"] == 0
        assert summary["no_coverage"] == 0
        assert summary["template_results"][0]["days_applied"] == [1]
        assert result["schedule"]["status"] == "draft"
        assert result["schedule"]["shift_count"] == 2

        schedule, shifts = await schedule_service.get_schedule(db, uuid.UUID(result["schedule"]["id"]), org_id)
        assert {s.shift_date for s in shifts} == {date(2025, 1, 20)}
        assert {s.employee_id for s in shifts} == {adams, brown}
        assert all(s.station_id == grill_id for s in shifts)
        assert all(s.notes == "Auto-generated from template: Day Cook" for s in shifts)
        assert all(s.status == "scheduled" and s.shift_type == "regular" for s in shifts)

    async def test_without_mapping_all_weekdays_apply(
        self, db: AsyncSession, org_id, manager_id, cooks, day_template
    ):
        """매핑이 없으면 기간 내 모든 요일에 적용."""
        result = await schedule_service.auto_generate_schedule(
            db, request(template_ids=[str(day_template.id)]), org_id, manager_id
        )
        summary = result["generation_summary"]
        assert summary["total_shifts_requested"] == 14
        assert summary["shifts_generated"] == 14
        assert summary["template_results"][0]["days_applied"] == [1, 2, 3, 4, 5, 6, 7]

    async def test_mapped_day_outside_template_days_warns(
        self, db: AsyncSession, org_id, manager_id, cooks, day_template
    ):
        """템플릿 요일 밖 매핑은 경고와 함께 적용."""
        result = await schedule_service.auto_generate_schedule(
            db, request(template_day_mapping={"3": [str(day_template.id)]}), org_id, manager_id
        )
        summary = result["generation_summary"]
        assert summary["shifts_generated"] == 2
        assert any("outside its configured days" in w for w in summary["warnings"])

    async def test_invalid_weekday_key(self, db: AsyncSession, org_id, manager_id, day_template):
        """요일 키는 1–7만 허용."""
        with pytest.raises(ValidationError):
            await schedule_service.auto_generate_schedule(
                db, request(template_day_mapping={"8": [str(day_template.id)]}), org_id, manager_id
            )


class TestTemplateResolution:
    """템플릿 해석 테스트."""

    async def test_missing_template_is_skipped_with_warning(
        self, db: AsyncSession, org_id, manager_id, cooks, day_template
    ):
        """존재하지 않는 템플릿은 경고 후 건너뜀."""
        missing = str(uuid.uuid4())
        result = await schedule_service.auto_generate_schedule(
            db,
            request(template_ids=[str(day_template.id), missing], template_day_mapping={"1": [str(day_template.id)]}),
            org_id,
            manager_id,
        )
        summary = result["generation_summary"]
        processing = summary["template_processing"]
        assert processing["total_requested"] == 2
        assert processing["valid_templates"] == 1
        assert processing["missing_templates"] == 1
        assert processing["processed_templates"] == [str(day_template.id)]
        assert f"Template {missing} not found or inactive" in summary["warnings"]
        assert summary["shifts_generated"] == 2

    async def test_inactive_template_counts_as_missing(
        self, db: AsyncSession, org_id, manager_id, cook_role, cooks
    ):
        """비활성 템플릿만 있으면 실패하고 스케줄도 남지 않음."""
        inactive = await make_template(
            db, org_id, "Old", cook_role, time(9, 0), time(17, 0), is_active=False
        )
        inactive_id = str(inactive.id)

        with pytest.raises(ValidationError) as exc_info:
            await schedule_service.auto_generate_schedule(db, request(template_ids=[inactive_id]), org_id, manager_id)
        assert str(exc_info.value).startswith("No valid templates found")
        assert inactive_id in str(exc_info.value)

        listing = await schedule_service.list_schedules(db, org_id)
        assert listing["total"] == 0

    async def test_requires_templates(self, db: AsyncSession, org_id, manager_id):
        """template_ids와 매핑이 모두 없으면 실패."""
        with pytest.raises(ValidationError):
            await schedule_service.auto_generate_schedule(db, request(), org_id, manager_id)


class TestScheduleHeaderValidation:
    """스케줄 이름/기간 검증 테스트."""

    async def test_end_must_be_after_start(self, db: AsyncSession, org_id, manager_id, day_template):
        with pytest.raises(ValidationError, match="End date must be after start date"):
            await schedule_service.auto_generate_schedule(
                db,
                request(start_date="2025-01-20", end_date="2025-01-20", template_ids=[str(day_template.id)]),
                org_id,
                manager_id,
            )

    async def test_malformed_start_date(self, db: AsyncSession, org_id, manager_id, day_template):
        with pytest.raises(ValidationError, match="Start date must be in YYYY-MM-DD format"):
            await schedule_service.auto_generate_schedule(
                db, request(start_date="01/20/2025", template_ids=[str(day_template.id)]), org_id, manager_id
            )

    async def test_name_too_long(self, db: AsyncSession, org_id, manager_id, day_template):
        with pytest.raises(ValidationError):
            await schedule_service.auto_generate_schedule(
                db, request(schedule_name="x" * 101, template_ids=[str(day_template.id)]), org_id, manager_id
            )


class TestCoverageAccounting:
    """충원 집계 테스트 — requested = generated + partial + no_coverage."""

    async def test_partial_coverage_when_too_few_workers(
        self, db: AsyncSession, org_id, manager_id, cook_role, cooks, grill
    ):
        """필요 4명, 가능 3명 → 생성 3, 부족 1."""
        template = await make_template(
            db, org_id, "Rush", cook_role, time(9, 0), time(17, 0), required_workers=4, stations=[grill]
        )
        result = await schedule_service.auto_generate_schedule(
            db, request(template_day_mapping={"1": [str(template.id)]}), org_id, manager_id
        )
        summary = result["generation_summary"]
        assert summary["total_shifts_requested"] == 4
        assert summary["shifts_generated"] == 3
        assert summary["partial_coverage"] == 1
        assert summary["no_coverage"] == 0
        assert any(w.startswith("Partial coverage on 2025-01-20") for w in summary["warnings"])

    async def test_no_coverage_when_nobody_holds_role(
        self, db: AsyncSession, org_id, manager_id, cooks, grill
    ):
        """역할 보유자가 없으면 전부 no_coverage."""
        server_role = await add(db, Role(organization_id=org_id, role_name="Server"))
        template = await make_template(
            db, org_id, "Floor", server_role, time(9, 0), time(17, 0), required_workers=2, stations=[grill]
        )
        result = await schedule_service.auto_generate_schedule(
            db, request(template_day_mapping={"1": [str(template.id)], "2": [str(template.id)]}), org_id, manager_id
        )
        summary = result["generation_summary"]
        assert summary["total_shifts_requested"] == 4
        assert summary["shifts_generated"] == 0
        assert summary["no_coverage"] == 4
        assert sum(1 for w in summary["warnings"] if w.startswith("No workers available")) == 2
        assert (
            summary["total_shifts_requested"]
            == summary["shifts_generated"] + summary["partial_coverage"] + summary["no_coverage"]
        )

    async def test_template_without_station(self, db: AsyncSession, org_id, manager_id, cook_role, cooks):
        """스테이션 없는 템플릿은 경고 후 스테이션 없이 생성."""
        template = await make_template(db, org_id, "Floater", cook_role, time(9, 0), time(17, 0))
        result = await schedule_service.auto_generate_schedule(
            db, request(template_day_mapping={"1": [str(template.id)]}), org_id, manager_id
        )
        summary = result["generation_summary"]
        assert summary["shifts_generated"] == 1
        assert any("has no stations assigned" in w for w in summary["warnings"])

        _, shifts = await schedule_service.get_schedule(db, uuid.UUID(result["schedule"]["id"]), org_id)
        assert shifts[0].station_id is None


class TestEligibility:
    """작업자 배정 자격 테스트."""

    async def test_partial_availability_requires_flag(
        self, db: AsyncSession, org_id, manager_id, cook_role, grill
    ):
        """12:00–20:00만 가능한 작업자는 allow_partial_time일 때만 단축 배정."""
        dave = await make_worker(
            db, org_id, "Dave", "Davis", cook_role, availability=[(1, time(12, 0), time(20, 0))]
        )
        dave_id = dave.id
        template = await make_template(
            db, org_id, "Day", cook_role, time(9, 0), time(17, 0), stations=[grill]
        )
        mapping = {"1": [str(template.id)]}

        strict = await schedule_service.auto_generate_schedule(
            db, request(template_day_mapping=mapping), org_id, manager_id
        )
        assert strict["generation_summary"]["no_coverage"] == 1

        relaxed = await schedule_service.auto_generate_schedule(
            db, request(schedule_name="Week 4b", template_day_mapping=mapping, allow_partial_time=True),
            org_id,
            manager_id,
        )
        assert relaxed["generation_summary"]["shifts_generated"] == 1
        _, shifts = await schedule_service.get_schedule(db, uuid.UUID(relaxed["schedule"]["id"]), org_id)
        assert shifts[0].employee_id == dave_id
        assert shifts[0].shift_type == "partial"
        assert (shifts[0].start_time, shifts[0].end_time) == (time(12, 0), time(17, 0))

    async def test_unavailable_window_excludes_worker(
        self, db: AsyncSession, org_id, manager_id, cooks, day_template
    ):
        """unavailable 시간대가 겹치면 제외."""
        adams, brown, clark = (w.id for w in cooks)
        await add(db, WorkerAvailability(
            organization_id=org_id,
            worker_id=adams,
            availability_type="one_time",
            specific_date=date(2025, 1, 20),
            start_time=time(10, 0),
            end_time=time(11, 0),
            priority="unavailable",
        ))
        result = await schedule_service.auto_generate_schedule(
            db, request(template_day_mapping={"1": [str(day_template.id)]}), org_id, manager_id
        )
        _, shifts = await schedule_service.get_schedule(db, uuid.UUID(result["schedule"]["id"]), org_id)
        assert {s.employee_id for s in shifts} == {brown, clark}

    async def test_committed_shift_excludes_worker(
        self, db: AsyncSession, org_id, manager_id, cooks, day_template
    ):
        """이미 겹치는 시프트가 있는 작업자는 제외."""
        adams, brown, clark = (w.id for w in cooks)
        await shift_service.create_shift(
            db,
            ShiftCreate(employee_id=str(adams), shift_date="2025-01-20", start_time="07:00", end_time="10:00"),
            org_id,
            manager_id,
        )
        result = await schedule_service.auto_generate_schedule(
            db, request(template_day_mapping={"1": [str(day_template.id)]}), org_id, manager_id
        )
        _, shifts = await schedule_service.get_schedule(db, uuid.UUID(result["schedule"]["id"]), org_id)
        assert {s.employee_id for s in shifts} == {brown, clark}

    async def test_overlapping_templates_never_double_book(
        self, db: AsyncSession, org_id, manager_id, cook_role, cooks, grill, caplog
    ):
        """겹치는 두 템플릿이 같은 작업자를 중복 배정하지 않음."""
        caplog.set_level(logging.INFO, logger="schedulehub.services.schedule_service")
        early = await make_template(
            db, org_id, "Early", cook_role, time(9, 0), time(13, 0), required_workers=2, stations=[grill]
        )
        late = await make_template(
            db, org_id, "Late", cook_role, time(12, 0), time(16, 0), required_workers=2, stations=[grill]
        )
        result = await schedule_service.auto_generate_schedule(
            db,
            request(template_ids=[str(early.id), str(late.id)], template_day_mapping={"1": [str(early.id), str(late.id)]}),
            org_id,
            manager_id,
        )
        summary = result["generation_summary"]
        assert summary["total_shifts_requested"] == 4
        assert summary["shifts_generated"] == 3
        assert summary["partial_coverage"] == 1
        assert "3/4 shifts (1 partial, 0 uncovered, 3 tracked placements)" in caplog.text

        _, shifts = await schedule_service.get_schedule(db, uuid.UUID(result["schedule"]["id"]), org_id)
        assert_no_overlaps(shifts)


class TestGenerationRollback:
    """생성 중 저장 오류 시 전체 롤백 테스트."""

    async def test_overlap_violation_rolls_back_whole_schedule(
        self, db: AsyncSession, org_id, manager_id, cooks, day_template, monkeypatch
    ):
        """확정 시프트 조회를 비워 트리거 충돌을 유도 → 스케줄과 생성된 시프트 모두 롤백."""
        adams, brown = cooks[0].id, cooks[1].id
        mapping = {"1": [str(day_template.id)]}
        await shift_service.create_shift(
            db,
            ShiftCreate(employee_id=str(brown), shift_date="2025-01-20", start_time="10:00", end_time="12:00"),
            org_id,
            manager_id,
        )

        async def no_committed_shifts(*args, **kwargs):
            return []

        monkeypatch.setattr(shift_repository, "get_active_for_workers_on_date", no_committed_shifts)

        with pytest.raises(ConflictError) as exc_info:
            await schedule_service.auto_generate_schedule(db, request(template_day_mapping=mapping), org_id, manager_id)
        assert str(exc_info.value).startswith("Cannot create overlapping shift:")

        assert (await schedule_service.list_schedules(db, org_id))["total"] == 0
        assert await shift_service.get_worker_shifts(db, org_id, adams, "2025-01-20", "2025-01-26") == []
        remaining = await shift_service.get_worker_shifts(db, org_id, brown, "2025-01-20", "2025-01-26")
        assert [(s.start_time, s.schedule_id) for s in remaining] == [(time(10, 0), None)]
