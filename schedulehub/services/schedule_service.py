"""스케줄 서비스 — 스케줄 생성, 자동 생성, 게시 비즈니스 로직.

Schedule Service — Business logic for schedules.
Handles schedule creation, automatic generation of shifts from templates,
listing, publication checks against other published schedules, and
publish/unpublish transitions.

Generation walks the resolved templates in order; for each template its
weekdays ascending, each weekday's dates ascending and the template's
stations in stored order. Every (station, date) needs ``required_workers``
workers. Candidates are role holders whose availability covers the template
window, who hold no overlapping committed shift on that date, and who were not
placed on an overlapping shift earlier in the same call.
"""

import logging
from dataclasses import dataclass
from datetime import date, time, timedelta
from typing import Any, Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.database import unit_of_work
from schedulehub.models.schedule import Schedule, Shift
from schedulehub.models.status import ScheduleStatus, ShiftStatus
from schedulehub.models.template import ShiftTemplate
from schedulehub.models.worker import Worker, WorkerAvailability
from schedulehub.repositories.schedule_repository import schedule_repository
from schedulehub.repositories.shift_repository import shift_repository
from schedulehub.repositories.worker_repository import worker_repository
from schedulehub.schemas.schedule import ScheduleAutoGenerate, ScheduleCreate
from schedulehub.services.shift_service import shift_service
from schedulehub.services.template_service import template_service
from schedulehub.utils.conflict_tracker import SessionConflictTracker
from schedulehub.utils.date_utils import (
    dated_window_minutes,
    dates_for_weekday,
    format_time,
    minutes_to_time,
    parse_date_only,
    utc_now,
    validate_date_range,
    window_minutes,
    windows_overlap,
)
from schedulehub.utils.exceptions import ConflictError, NotFoundError, ValidationError, overlap_guard
from schedulehub.utils.validators import parse_uuid

logger = logging.getLogger(__name__)

MAX_SCHEDULE_NAME_LENGTH: int = 100
ALL_WEEKDAYS: tuple[int, ...] = (1, 2, 3, 4, 5, 6, 7)


@dataclass
class Candidate:
    """배정 후보 작업자 — Eligible worker and the window they would work."""

    worker: Worker
    start_time: time
    end_time: time
    coverage_percentage: float

    @property
    def is_partial(self) -> bool:
        return self.coverage_percentage < 100


def get_overlap_type(first: tuple[int, int], second: tuple[int, int]) -> str:
    """두 근무 구간의 겹침 유형을 분류합니다.

    Classify how ``first`` overlaps ``second`` (minute windows).

    Returns:
        str: complete_overlap / contained_by / partial_end / partial_start / adjacent
    """
    start1, end1 = first
    start2, end2 = second
    if start1 <= start2 and end1 >= end2:
        return "complete_overlap"
    if start2 <= start1 and end2 >= end1:
        return "contained_by"
    if start1 < end2 and end1 > start2:
        return "partial_end" if start1 < start2 else "partial_start"
    return "adjacent"


class ScheduleService:
    """스케줄 서비스.

    Schedule service handling creation, auto-generation, listing and
    publication.
    """

    # === 검증 (Validation) ===

    @staticmethod
    def _validate_header(data: ScheduleCreate) -> tuple[str, date, date]:
        """스케줄 이름과 기간을 검증합니다 — Validate name and period."""
        name: str = (data.schedule_name or "").strip()
        if not name:
            raise ValidationError("Schedule name is required", entity="schedule")
        if len(name) > MAX_SCHEDULE_NAME_LENGTH:
            raise ValidationError(
                f"Schedule name must be at most {MAX_SCHEDULE_NAME_LENGTH} characters", entity="schedule"
            )
        start_date, end_date = validate_date_range(data.start_date, data.end_date)
        return name, start_date, end_date

    @staticmethod
    def _parse_day_mapping(mapping: dict[str, list[str]] | None) -> dict[int, list[UUID]]:
        """요일 매핑을 검증합니다.

        Validate ``template_day_mapping``: keys are ISO weekdays "1"–"7" and
        values are lists of template UUIDs.

        Raises:
            ValidationError: 잘못된 요일 키 또는 ID (Malformed weekday key or id)
        """
        parsed: dict[int, list[UUID]] = {}
        for key, template_ids in (mapping or {}).items():
            try:
                weekday = int(str(key))
            except ValueError:
                raise ValidationError(f"Invalid weekday key: {key}. Expected 1-7", entity="schedule")
            if weekday not in ALL_WEEKDAYS or str(key).strip() != str(weekday):
                raise ValidationError(f"Invalid weekday key: {key}. Expected 1-7", entity="schedule")
            if weekday in parsed:
                raise ValidationError(f"Duplicate weekday key: {key}", entity="schedule")
            parsed[weekday] = [parse_uuid(value, "template_id") for value in template_ids]
        return parsed

    @staticmethod
    def _requested_template_ids(template_ids: list[UUID] | None, day_mapping: dict[int, list[UUID]]) -> list[UUID]:
        """해석할 템플릿 ID 순서 — Requested ids in resolution order, without duplicates."""
        ordered: list[UUID] = []
        if template_ids is not None:
            source: list[UUID] = template_ids
        else:
            source = [tid for weekday in sorted(day_mapping) for tid in day_mapping[weekday]]
        for template_id in source:
            if template_id not in ordered:
                ordered.append(template_id)
        return ordered

    # === 응답 (Responses) ===

    @staticmethod
    def build_response(schedule: Schedule, shift_count: int = 0) -> dict[str, Any]:
        """스케줄 응답 딕셔너리를 생성합니다 — Build the schedule response dict."""
        return {
            "id": str(schedule.id),
            "schedule_name": schedule.schedule_name,
            "description": schedule.description,
            "start_date": schedule.start_date,
            "end_date": schedule.end_date,
            "status": schedule.status,
            "published_at": schedule.published_at,
            "published_by": str(schedule.published_by) if schedule.published_by else None,
            "created_by": str(schedule.created_by) if schedule.created_by else None,
            "created_at": schedule.created_at,
            "shift_count": shift_count,
        }

    async def describe_schedule(self, db: AsyncSession, schedule: Schedule) -> dict[str, Any]:
        """시프트 수를 포함한 스케줄 응답 — Response dict with the stored shift count."""
        counts = await schedule_repository.count_shifts(db, [schedule.id])
        return self.build_response(schedule, counts.get(schedule.id, 0))

    # === 생성 (Creation) ===

    async def create_schedule(
        self,
        db: AsyncSession,
        data: ScheduleCreate,
        organization_id: UUID,
        user_id: UUID,
    ) -> Schedule:
        """빈 초안 스케줄을 생성합니다.

        Create an empty draft schedule.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 스케줄 생성 데이터 (Schedule creation data)
            organization_id: 조직 UUID (Organization UUID)
            user_id: 작성자 UUID (Creator)

        Returns:
            Schedule: 생성된 스케줄 (Created schedule)

        Raises:
            ValidationError: 이름 또는 기간이 유효하지 않을 때 (Invalid name or period)
        """
        name, start_date, end_date = self._validate_header(data)
        async with unit_of_work(db):
            schedule: Schedule = await schedule_repository.create(
                db,
                {
                    "organization_id": organization_id,
                    "schedule_name": name,
                    "description": data.description,
                    "start_date": start_date,
                    "end_date": end_date,
                    "status": ScheduleStatus.DRAFT.value,
                    "created_by": user_id,
                    "updated_by": user_id,
                },
            )
        logger.info("Schedule %s created for organization %s", schedule.id, organization_id)
        return schedule

    async def auto_generate_schedule(
        self,
        db: AsyncSession,
        data: ScheduleAutoGenerate,
        organization_id: UUID,
        user_id: UUID,
    ) -> dict[str, Any]:
        """템플릿으로부터 스케줄과 시프트를 자동 생성합니다.

        Create a schedule and materialize its shifts from templates in one
        transaction. Missing or inactive templates are skipped with a warning;
        when none resolve the whole generation fails and nothing is kept.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            data: 자동 생성 요청 (Auto-generation request)
            organization_id: 조직 UUID (Organization UUID)
            user_id: 요청 사용자 UUID (Acting manager)

        Returns:
            dict[str, Any]: {schedule, generation_summary}

        Raises:
            ValidationError: 입력 오류 또는 유효한 템플릿 없음 (Invalid input or no valid template)
            ConflictError: 중복 근무 제약 위반 (Overlapping shift constraint violated)
        """
        name, start_date, end_date = self._validate_header(data)
        template_ids: list[UUID] | None = (
            [parse_uuid(value, "template_id") for value in data.template_ids] if data.template_ids is not None else None
        )
        day_mapping: dict[int, list[UUID]] = self._parse_day_mapping(data.template_day_mapping)
        if not template_ids and not day_mapping:
            raise ValidationError("Either template_ids or template_day_mapping must be provided", entity="schedule")

        requested_ids: list[UUID] = self._requested_template_ids(template_ids or None, day_mapping)
        summary: dict[str, Any] = {
            "total_shifts_requested": 0,
            "shifts_generated": 0,
            "partial_coverage": 0,
            "no_coverage": 0,
            "warnings": [],
            "template_processing": {
                "total_requested": len(requested_ids),
                "valid_templates": 0,
                "missing_templates": 0,
                "processed_templates": [],
            },
            "template_results": [],
        }
        # 요청마다 새 추적기 — Fresh tracker per call
        tracker = SessionConflictTracker()

        with overlap_guard():
            async with unit_of_work(db):
                schedule: Schedule = await schedule_repository.create(
                    db,
                    {
                        "organization_id": organization_id,
                        "schedule_name": name,
                        "description": data.description,
                        "start_date": start_date,
                        "end_date": end_date,
                        "status": ScheduleStatus.DRAFT.value,
                        "created_by": user_id,
                        "updated_by": user_id,
                    },
                )

                templates, missing = await template_service.resolve(db, requested_ids, organization_id)
                for template_id in missing:
                    summary["warnings"].append(f"Template {template_id} not found or inactive")
                if not templates:
                    raise ValidationError(
                        "No valid templates found. Missing or inactive templates: "
                        + ", ".join(str(template_id) for template_id in missing),
                        entity="shift_template",
                        reason="no_valid_templates",
                    )

                processing = summary["template_processing"]
                processing["valid_templates"] = len(templates)
                processing["missing_templates"] = len(missing)
                processing["processed_templates"] = [str(template.id) for template in templates]

                plan = self._plan_days(templates, day_mapping, summary["warnings"])

                for template in templates:
                    weekdays: list[int] = plan[template.id]
                    if not weekdays:
                        continue
                    result = await self._generate_for_template(
                        db, schedule, template, weekdays, organization_id, user_id,
                        data.allow_partial_time, tracker, summary["warnings"],
                    )
                    summary["template_results"].append(result)
                    summary["total_shifts_requested"] += result["shifts_requested"]
                    summary["shifts_generated"] += result["shifts_generated"]
                    summary["partial_coverage"] += result["partial_coverage"]
                    summary["no_coverage"] += result["no_coverage"]

        logger.info(
            "Schedule %s auto-generated: %s/%s shifts (%s partial, %s uncovered, %s tracked placements)",
            schedule.id,
            summary["shifts_generated"],
            summary["total_shifts_requested"],
            summary["partial_coverage"],
            summary["no_coverage"],
            tracker.count(),
        )
        return {
            "schedule": self.build_response(schedule, summary["shifts_generated"]),
            "generation_summary": summary,
        }

    @staticmethod
    def _plan_days(
        templates: Sequence[ShiftTemplate],
        day_mapping: dict[int, list[UUID]],
        warnings: list[str],
    ) -> dict[UUID, list[int]]:
        """템플릿별 적용 요일을 결정합니다.

        Decide the weekdays each resolved template applies to. Without a mapping
        every template applies to all seven weekdays. With one, only the mapped
        weekdays apply; unresolved references, unmapped templates and weekdays
        outside a template's own ``days_of_week`` are reported as warnings.
        """
        resolved_ids: set[UUID] = {template.id for template in templates}
        if not day_mapping:
            return {template.id: list(ALL_WEEKDAYS) for template in templates}

        for weekday in sorted(day_mapping):
            for template_id in day_mapping[weekday]:
                if template_id not in resolved_ids:
                    warnings.append(f"Day {weekday}: Template {template_id} was skipped (not found or inactive)")

        plan: dict[UUID, list[int]] = {}
        for template in templates:
            weekdays = [weekday for weekday in sorted(day_mapping) if template.id in day_mapping[weekday]]
            if not weekdays:
                warnings.append(f"Template {template.template_name} is not mapped to any day and was skipped")
            configured: set[int] = set(template.days_of_week or [])
            for weekday in weekdays:
                if configured and weekday not in configured:
                    warnings.append(
                        f"Template {template.template_name} is mapped to day {weekday} "
                        f"which is outside its configured days {sorted(configured)}"
                    )
            plan[template.id] = weekdays
        return plan

    async def _generate_for_template(
        self,
        db: AsyncSession,
        schedule: Schedule,
        template: ShiftTemplate,
        weekdays: list[int],
        organization_id: UUID,
        user_id: UUID,
        allow_partial_time: bool,
        tracker: SessionConflictTracker,
        warnings: list[str],
    ) -> dict[str, Any]:
        """한 템플릿의 시프트를 생성합니다 — Materialize one template's shifts."""
        result: dict[str, Any] = {
            "template_id": str(template.id),
            "template_name": template.template_name,
            "days_applied": weekdays,
            "shifts_requested": 0,
            "shifts_generated": 0,
            "partial_coverage": 0,
            "no_coverage": 0,
        }
        station_ids: list[UUID | None] = list(template.station_ids)
        if not station_ids:
            warnings.append(
                f"Template {template.template_name} has no stations assigned. "
                "Shifts will be created without station assignment."
            )
            station_ids = [None]

        required: int = max(template.required_workers or 0, 0)
        candidates_pool: Sequence[Worker] = await worker_repository.get_role_candidates(
            db, organization_id, template.role_id
        )
        availability = await worker_repository.get_availability_map(
            db, organization_id, [worker.id for worker in candidates_pool]
        )

        for weekday in weekdays:
            for shift_date in dates_for_weekday(schedule.start_date, schedule.end_date, weekday):
                for station_id in station_ids:
                    result["shifts_requested"] += required
                    if required == 0:
                        continue

                    candidates = await self._find_candidates(
                        db, organization_id, candidates_pool, availability, template, shift_date,
                        allow_partial_time, tracker,
                    )
                    chosen = candidates[:required]
                    station_label = f" at station {station_id}" if station_id else " (no station)"

                    for candidate in chosen:
                        notes = f"Auto-generated from template: {template.template_name}"
                        if candidate.is_partial:
                            notes += (
                                f" (Partial coverage: {round(candidate.coverage_percentage)}% - "
                                f"{format_time(candidate.start_time)}-{format_time(candidate.end_time)})"
                            )
                        await shift_repository.create(
                            db,
                            {
                                "organization_id": organization_id,
                                "schedule_id": schedule.id,
                                "template_id": template.id,
                                "station_id": station_id,
                                "role_id": template.role_id,
                                "employee_id": candidate.worker.id,
                                "shift_date": shift_date,
                                "start_time": candidate.start_time,
                                "end_time": candidate.end_time,
                                "break_minutes": template.break_duration_minutes or 0,
                                "status": ShiftStatus.SCHEDULED.value,
                                "shift_type": "partial" if candidate.is_partial else "regular",
                                "notes": notes,
                                "created_by": user_id,
                                "updated_by": user_id,
                            },
                        )
                        tracker.add(candidate.worker.id, shift_date, candidate.start_time, candidate.end_time)

                    filled: int = len(chosen)
                    result["shifts_generated"] += filled
                    if filled == 0:
                        result["no_coverage"] += required
                        warnings.append(
                            f"No workers available for role {template.role_id}{station_label} on "
                            f"{shift_date.isoformat()} {format_time(template.start_time)}-"
                            f"{format_time(template.end_time)} (template: {template.template_name})"
                        )
                    elif filled < required:
                        result["partial_coverage"] += required - filled
                        warnings.append(
                            f"Partial coverage on {shift_date.isoformat()} for {template.template_name}"
                            f"{station_label}: {filled}/{required} workers assigned for role {template.role_id}"
                        )
        return result

    async def _find_candidates(
        self,
        db: AsyncSession,
        organization_id: UUID,
        workers: Sequence[Worker],
        availability: dict[UUID, list[WorkerAvailability]],
        template: ShiftTemplate,
        shift_date: date,
        allow_partial_time: bool,
        tracker: SessionConflictTracker,
    ) -> list[Candidate]:
        """해당 날짜·시간대에 배정 가능한 작업자를 찾습니다.

        Find workers who can take ``template`` on ``shift_date``, ranked by
        coverage percentage, then last name, first name and id.
        """
        template_window = window_minutes(template.start_time, template.end_time)
        template_length: int = template_window[1] - template_window[0]

        covered: list[Candidate] = []
        for worker in workers:
            window = self._available_window(availability.get(worker.id, []), shift_date, template_window, allow_partial_time)
            if window is None:
                continue
            overlap_start, overlap_end = window
            coverage = (overlap_end - overlap_start) / template_length * 100 if template_length else 100.0
            covered.append(Candidate(worker, minutes_to_time(overlap_start), minutes_to_time(overlap_end), coverage))

        committed = await shift_repository.get_active_for_workers_on_date(
            db, organization_id, [candidate.worker.id for candidate in covered], shift_date
        )
        busy: dict[UUID, list[tuple[int, int]]] = {}
        for shift in committed:
            busy.setdefault(shift.employee_id, []).append(window_minutes(shift.start_time, shift.end_time))

        eligible: list[Candidate] = []
        for candidate in covered:
            window = window_minutes(candidate.start_time, candidate.end_time)
            if any(windows_overlap(window, other) for other in busy.get(candidate.worker.id, [])):
                continue
            if tracker.has_conflict(candidate.worker.id, shift_date, candidate.start_time, candidate.end_time):
                continue
            eligible.append(candidate)

        # 정렬 안정성 유지 — workers arrive in name order; sort by coverage only
        eligible.sort(key=lambda candidate: -candidate.coverage_percentage)
        return eligible

    @staticmethod
    def _available_window(
        rows: list[WorkerAvailability],
        shift_date: date,
        template_window: tuple[int, int],
        allow_partial_time: bool,
    ) -> tuple[int, int] | None:
        """근무 가능 시간과 템플릿 시간대의 겹침 구간.

        The part of ``template_window`` the worker can work on ``shift_date``:
        the whole window when an applicable availability covers it, otherwise
        (only with ``allow_partial_time``) the largest overlap. An applicable
        ``unavailable`` row overlapping the window excludes the worker.
        """
        applicable: list[WorkerAvailability] = []
        for row in rows:
            if row.availability_type == "one_time":
                if row.specific_date != shift_date:
                    continue
            elif row.day_of_week != shift_date.isoweekday():
                continue
            if row.effective_from is not None and row.effective_from > shift_date:
                continue
            if row.effective_to is not None and row.effective_to < shift_date:
                continue
            applicable.append(row)

        best: tuple[int, int] | None = None
        for row in applicable:
            window = window_minutes(row.start_time, row.end_time)
            if row.priority == "unavailable":
                if windows_overlap(window, template_window):
                    return None
                continue
            if window[0] <= template_window[0] and window[1] >= template_window[1]:
                best = template_window
                continue
            if allow_partial_time and windows_overlap(window, template_window):
                overlap = (max(window[0], template_window[0]), min(window[1], template_window[1]))
                if best is None or overlap[1] - overlap[0] > best[1] - best[0]:
                    best = overlap
        return best

    # === 조회 (Reads) ===

    async def get_schedule(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        organization_id: UUID,
    ) -> tuple[Schedule, Sequence[Shift]]:
        """스케줄과 시프트를 조회합니다.

        Get a schedule with its shifts.

        Raises:
            NotFoundError: 스케줄이 없을 때 (When schedule not found)
        """
        schedule: Schedule | None = await schedule_repository.get_by_id(db, schedule_id, organization_id)
        if schedule is None:
            raise NotFoundError("Schedule not found", entity="schedule")
        shifts = await shift_repository.get_by_schedule(db, schedule_id, organization_id)
        return schedule, shifts

    async def list_schedules(
        self,
        db: AsyncSession,
        organization_id: UUID,
        status: str | None = None,
        date_from: str | None = None,
        date_to: str | None = None,
        page: int = 1,
        per_page: int = 20,
    ) -> dict[str, Any]:
        """스케줄 목록을 페이지네이션하여 조회합니다 — Paginated schedule list."""
        if status is not None and status not in {s.value for s in ScheduleStatus}:
            raise ValidationError(f"Invalid schedule status: {status}", entity="schedule")
        if page < 1 or per_page < 1 or per_page > 100:
            raise ValidationError("page must be >= 1 and per_page between 1 and 100", entity="schedule")

        schedules, total = await schedule_repository.get_by_filters(
            db,
            organization_id,
            status=status,
            date_from=parse_date_only(date_from) if date_from else None,
            date_to=parse_date_only(date_to) if date_to else None,
            page=page,
            per_page=per_page,
        )
        counts = await schedule_repository.count_shifts(db, [schedule.id for schedule in schedules])
        return {
            "items": [self.build_response(schedule, counts.get(schedule.id, 0)) for schedule in schedules],
            "total": total,
            "page": page,
            "per_page": per_page,
        }

    # === 게시 (Publication) ===

    async def validate_schedule_for_publication(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        organization_id: UUID,
    ) -> dict[str, Any]:
        """다른 게시된 스케줄과의 충돌을 검사합니다.

        Find shifts of this schedule that overlap a shift of the same worker in
        another published schedule, including overnight shifts of the
        neighbouring dates.

        Returns:
            dict[str, Any]: {can_publish, conflicts}
        """
        schedule: Schedule | None = await schedule_repository.get_by_id(db, schedule_id, organization_id)
        if schedule is None:
            raise NotFoundError("Schedule not found", entity="schedule")

        conflicts: list[dict[str, Any]] = []
        for shift, other, other_schedule in await shift_repository.get_cross_schedule_pairs(
            db,
            schedule_id,
            organization_id,
            schedule.start_date - timedelta(days=1),
            schedule.end_date + timedelta(days=1),
        ):
            # 전후일 야간 시프트까지 같은 축에서 비교
            if abs((other.shift_date - shift.shift_date).days) > 1:
                continue
            own = window_minutes(shift.start_time, shift.end_time)
            theirs = dated_window_minutes(shift.shift_date, other.shift_date, other.start_time, other.end_time)
            if not windows_overlap(own, theirs):
                continue
            conflicts.append({
                "shift_id": str(shift.id),
                "employee_id": str(shift.employee_id),
                "shift_date": shift.shift_date,
                "start_time": format_time(shift.start_time),
                "end_time": format_time(shift.end_time),
                "conflicting_shift_id": str(other.id),
                "conflicting_schedule_id": str(other_schedule.id),
                "conflicting_schedule_name": other_schedule.schedule_name,
                "conflict_shift_date": other.shift_date,
                "conflict_start_time": format_time(other.start_time),
                "conflict_end_time": format_time(other.end_time),
                "overlap_type": get_overlap_type(own, theirs),
            })
        return {"can_publish": not conflicts, "conflicts": conflicts}

    async def publish_schedule(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> Schedule:
        """스케줄을 게시합니다 (draft → published).

        Publish a schedule after checking it against other published schedules.

        Raises:
            NotFoundError: 스케줄이 없을 때 (Schedule not found)
            ValidationError: 이미 게시됨 (Already published)
            ConflictError: 다른 게시된 스케줄과 충돌 (Conflicts with published schedules)
        """
        async with unit_of_work(db):
            schedule: Schedule | None = await schedule_repository.get_by_id(db, schedule_id, organization_id)
            if schedule is None:
                raise NotFoundError("Schedule not found", entity="schedule")
            if schedule.status == ScheduleStatus.PUBLISHED.value:
                raise ValidationError("Schedule is already published", entity="schedule", reason="already_published")

            validation = await self.validate_schedule_for_publication(db, schedule_id, organization_id)
            if not validation["can_publish"]:
                raise ConflictError(
                    f"Cannot publish schedule: {len(validation['conflicts'])} shift conflicts detected "
                    "with published schedules. Workers cannot be double-booked.",
                    entity="schedule",
                    reason="publication_conflict",
                    conflicts=validation["conflicts"],
                )

            schedule = await schedule_repository.update(
                db,
                schedule,
                {
                    "status": ScheduleStatus.PUBLISHED.value,
                    "published_at": utc_now(),
                    "published_by": user_id,
                    "updated_by": user_id,
                },
            )
        logger.info("Schedule %s published by %s", schedule.id, user_id)
        return schedule

    async def unpublish_schedule(
        self,
        db: AsyncSession,
        schedule_id: UUID,
        organization_id: UUID,
        user_id: UUID,
    ) -> Schedule:
        """게시를 취소합니다 (published → draft) — Return a published schedule to draft."""
        async with unit_of_work(db):
            schedule: Schedule | None = await schedule_repository.get_by_id(db, schedule_id, organization_id)
            if schedule is None:
                raise NotFoundError("Schedule not found", entity="schedule")
            if schedule.status != ScheduleStatus.PUBLISHED.value:
                raise ValidationError("Schedule is not published", entity="schedule", reason="not_published")
            schedule = await schedule_repository.update(
                db,
                schedule,
                {
                    "status": ScheduleStatus.DRAFT.value,
                    "published_at": None,
                    "published_by": None,
                    "updated_by": user_id,
                },
            )
        logger.info("Schedule %s unpublished by %s", schedule.id, user_id)
        return schedule

    def build_detail_response(self, schedule: Schedule, shifts: Sequence[Shift]) -> dict[str, Any]:
        """시프트 포함 상세 응답 — Schedule detail response with shifts."""
        response = self.build_response(schedule, len(shifts))
        response["shifts"] = [shift_service.build_response(shift) for shift in shifts]
        return response


# 싱글턴 인스턴스 — Singleton instance
schedule_service: ScheduleService = ScheduleService()
