"""스케줄 게시 테스트 — 게시/게시 취소, 게시된 스케줄 간 충돌 검사."""

import uuid

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.schemas.schedule import ScheduleCreate
from schedulehub.schemas.shift import ShiftCreate
from schedulehub.services.schedule_service import get_overlap_type, schedule_service
from schedulehub.services.shift_service import shift_service
from schedulehub.utils.exceptions import ConflictError, NotFoundError, ValidationError


async def new_schedule(db: AsyncSession, org_id, manager_id, name: str) -> uuid.UUID:
    schedule = await schedule_service.create_schedule(
        db, ScheduleCreate(schedule_name=name, start_date="2025-01-20", end_date="2025-01-26"), org_id, manager_id
    )
    return schedule.id


async def add_shift(
    db: AsyncSession, org_id, manager_id, schedule_id, worker_id, start: str, end: str, shift_date: str = "2025-01-20"
) -> uuid.UUID:
    shift = await shift_service.create_shift(
        db,
        ShiftCreate(
            schedule_id=str(schedule_id),
            employee_id=str(worker_id),
            shift_date=shift_date,
            start_time=start,
            end_time=end,
        ),
        org_id,
        manager_id,
    )
    return shift.id


class TestOverlapType:
    """겹침 유형 분류 테스트."""

    def test_classification(self):
        assert get_overlap_type((540, 1020), (600, 900)) == "complete_overlap"
        assert get_overlap_type((600, 900), (540, 1020)) == "contained_by"
        assert get_overlap_type((480, 600), (540, 1020)) == "partial_end"
        assert get_overlap_type((900, 1200), (540, 1020)) == "partial_start"
        assert get_overlap_type((1020, 1200), (540, 1020)) == "adjacent"


class TestPublication:
    """게시 상태 전이 테스트."""

    async def test_publish_and_unpublish(self, db: AsyncSession, org_id, manager_id):
        """draft → published → draft."""
        schedule_id = await new_schedule(db, org_id, manager_id, "Week 4")

        published = await schedule_service.publish_schedule(db, schedule_id, org_id, manager_id)
        assert published.status == "published"
        assert published.published_by == manager_id
        assert published.published_at is not None

        draft = await schedule_service.unpublish_schedule(db, schedule_id, org_id, manager_id)
        assert draft.status == "draft"
        assert draft.published_at is None
        assert draft.published_by is None

    async def test_double_publish_rejected(self, db: AsyncSession, org_id, manager_id):
        """이미 게시된 스케줄은 다시 게시할 수 없음."""
        schedule_id = await new_schedule(db, org_id, manager_id, "Week 4")
        await schedule_service.publish_schedule(db, schedule_id, org_id, manager_id)

        with pytest.raises(ValidationError, match="Schedule is already published"):
            await schedule_service.publish_schedule(db, schedule_id, org_id, manager_id)

    async def test_unpublish_draft_rejected(self, db: AsyncSession, org_id, manager_id):
        schedule_id = await new_schedule(db, org_id, manager_id, "Week 4")
        with pytest.raises(ValidationError, match="Schedule is not published"):
            await schedule_service.unpublish_schedule(db, schedule_id, org_id, manager_id)

    async def test_unknown_schedule(self, db: AsyncSession, org_id, manager_id):
        with pytest.raises(NotFoundError):
            await schedule_service.publish_schedule(db, uuid.uuid4(), org_id, manager_id)

    async def test_other_organization_cannot_see_schedule(self, db: AsyncSession, org_id, manager_id):
        """다른 조직의 스케줄은 조회되지 않음."""
        schedule_id = await new_schedule(db, org_id, manager_id, "Week 4")
        with pytest.raises(NotFoundError, match="Schedule not found"):
            await schedule_service.get_schedule(db, schedule_id, uuid.uuid4())


class TestPublicationConflicts:
    """게시된 스케줄 간 이중 배정 검사 테스트."""

    async def test_overnight_spill_blocks_publication(self, db: AsyncSession, org_id, manager_id, cooks):
        """게시된 월요일 야간 시프트가 화요일 새벽 초안 시프트를 포함 → 게시 불가."""
        adams = cooks[0].id
        night_id = await new_schedule(db, org_id, manager_id, "Nights")
        late_id = await new_schedule(db, org_id, manager_id, "Late")
        night_shift = await add_shift(db, org_id, manager_id, night_id, adams, "22:00", "06:00")
        late_shift = await add_shift(db, org_id, manager_id, late_id, adams, "01:00", "04:00", "2025-01-21")
        await schedule_service.publish_schedule(db, night_id, org_id, manager_id)

        validation = await schedule_service.validate_schedule_for_publication(db, late_id, org_id)
        assert validation["can_publish"] is False
        assert len(validation["conflicts"]) == 1
        conflict = validation["conflicts"][0]
        assert conflict["shift_id"] == str(late_shift)
        assert conflict["conflicting_shift_id"] == str(night_shift)
        assert conflict["conflicting_schedule_id"] == str(night_id)
        assert conflict["conflicting_schedule_name"] == "Nights"
        assert conflict["shift_date"].isoformat() == "2025-01-21"
        assert conflict["conflict_shift_date"].isoformat() == "2025-01-20"
        assert (conflict["start_time"], conflict["end_time"]) == ("01:00", "04:00")
        assert (conflict["conflict_start_time"], conflict["conflict_end_time"]) == ("22:00", "06:00")
        assert conflict["overlap_type"] == "contained_by"

        with pytest.raises(ConflictError) as exc_info:
            await schedule_service.publish_schedule(db, late_id, org_id, manager_id)
        assert str(exc_info.value).startswith("Cannot publish schedule: 1 shift conflicts detected")
        assert len(exc_info.value.conflicts) == 1

        schedule, _ = await schedule_service.get_schedule(db, late_id, org_id)
        assert schedule.status == "draft"

    async def test_unpublished_schedules_do_not_conflict(self, db: AsyncSession, org_id, manager_id, cooks):
        """초안끼리는 충돌로 보지 않음."""
        adams = cooks[0].id
        night_id = await new_schedule(db, org_id, manager_id, "Nights")
        late_id = await new_schedule(db, org_id, manager_id, "Late")
        await add_shift(db, org_id, manager_id, night_id, adams, "22:00", "06:00")
        await add_shift(db, org_id, manager_id, late_id, adams, "01:00", "04:00", "2025-01-21")

        validation = await schedule_service.validate_schedule_for_publication(db, late_id, org_id)
        assert validation == {"can_publish": True, "conflicts": []}

    async def test_new_shift_against_published_schedule(self, db: AsyncSession, org_id, manager_id, cooks):
        """게시된 스케줄과 겹치는 시프트는 생성 단계에서 거부."""
        adams = cooks[0].id
        night_id = await new_schedule(db, org_id, manager_id, "Nights")
        late_id = await new_schedule(db, org_id, manager_id, "Late")
        await add_shift(db, org_id, manager_id, night_id, adams, "22:00", "06:00")
        await schedule_service.publish_schedule(db, night_id, org_id, manager_id)

        with pytest.raises(ConflictError, match="Shift conflicts with published schedule 'Nights'"):
            await add_shift(db, org_id, manager_id, late_id, adams, "01:00", "04:00", "2025-01-21")

        # 야간 시프트가 끝난 뒤의 화요일 시프트는 허용
        await add_shift(db, org_id, manager_id, late_id, adams, "06:00", "10:00", "2025-01-21")

    async def test_same_date_overnight_overlap_refused_at_storage(self, db: AsyncSession, org_id, manager_id, cooks):
        """같은 날짜의 겹침은 스케줄이 달라도 저장 단계에서 거부."""
        adams = cooks[0].id
        night_id = await new_schedule(db, org_id, manager_id, "Nights")
        late_id = await new_schedule(db, org_id, manager_id, "Late")
        await add_shift(db, org_id, manager_id, night_id, adams, "22:00", "06:00")

        with pytest.raises(ConflictError, match="Cannot create overlapping shift:"):
            await add_shift(db, org_id, manager_id, late_id, adams, "23:00", "02:00")

    async def test_far_dates_do_not_conflict(self, db: AsyncSession, org_id, manager_id, cooks):
        adams = cooks[0].id
        night_id = await new_schedule(db, org_id, manager_id, "Nights")
        late_id = await new_schedule(db, org_id, manager_id, "Late")
        await add_shift(db, org_id, manager_id, night_id, adams, "22:00", "06:00")
        await schedule_service.publish_schedule(db, night_id, org_id, manager_id)
        await add_shift(db, org_id, manager_id, late_id, adams, "01:00", "04:00", "2025-01-22")

        validation = await schedule_service.validate_schedule_for_publication(db, late_id, org_id)
        assert validation == {"can_publish": True, "conflicts": []}

    async def test_listing_counts_shifts(self, db: AsyncSession, org_id, manager_id, cooks):
        """목록 응답의 shift_count와 상태 필터."""
        adams = cooks[0].id
        night_id = await new_schedule(db, org_id, manager_id, "Nights")
        await new_schedule(db, org_id, manager_id, "Empty")
        await add_shift(db, org_id, manager_id, night_id, adams, "22:00", "06:00")
        await schedule_service.publish_schedule(db, night_id, org_id, manager_id)

        listing = await schedule_service.list_schedules(db, org_id)
        assert listing["total"] == 2

        published = await schedule_service.list_schedules(db, org_id, status="published")
        assert published["total"] == 1
        assert published["items"][0]["id"] == str(night_id)
        assert published["items"][0]["shift_count"] == 1

        with pytest.raises(ValidationError):
            await schedule_service.list_schedules(db, org_id, status="archived")
