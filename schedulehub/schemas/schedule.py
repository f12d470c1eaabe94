"""스케줄 관련 Pydantic 요청/응답 스키마 정의.

Schedule Pydantic request/response schema definitions.
Dates are accepted as strings and validated by the service, which enforces
the strict ``YYYY-MM-DD`` form and the 1900–2100 year range.
"""

from datetime import date, datetime

from pydantic import BaseModel, Field

from schedulehub.schemas.shift import ShiftResponse


class ScheduleCreate(BaseModel):
    """스케줄 생성 요청 스키마.

    Schedule creation request schema.

    Attributes:
        schedule_name: 스케줄 이름, 최대 100자 (Schedule name, at most 100 characters)
        description: 설명 (Optional description)
        start_date: 시작일 "YYYY-MM-DD" (Start date)
        end_date: 종료일 "YYYY-MM-DD", 시작일 이후 (End date, strictly after start)
    """

    schedule_name: str
    description: str | None = None
    start_date: str
    end_date: str


class ScheduleAutoGenerate(ScheduleCreate):
    """스케줄 자동 생성 요청 스키마.

    Auto-generation request schema.

    Attributes:
        template_ids: 사용할 템플릿 UUID 목록 (Templates to apply, in priority order)
        template_day_mapping: ISO 요일("1"–"7") → 템플릿 UUID 목록
            (ISO weekday → template ids applied on that weekday)
        allow_partial_time: 부분 가용 작업자 허용 (Accept workers whose availability only partly covers a shift)
    """

    template_ids: list[str] | None = None
    template_day_mapping: dict[str, list[str]] | None = None
    allow_partial_time: bool = False


class ScheduleResponse(BaseModel):
    """스케줄 응답 스키마 — Schedule response schema."""

    id: str
    schedule_name: str
    description: str | None = None
    start_date: date
    end_date: date
    status: str
    published_at: datetime | None = None
    published_by: str | None = None
    created_by: str | None = None
    created_at: datetime | None = None
    shift_count: int = 0


class ScheduleDetailResponse(ScheduleResponse):
    """시프트 목록을 포함한 스케줄 상세 — Schedule with its shifts."""

    shifts: list[ShiftResponse] = Field(default_factory=list)


class TemplateProcessing(BaseModel):
    """템플릿 해석 결과 — Template resolution counts."""

    total_requested: int = 0
    valid_templates: int = 0
    missing_templates: int = 0
    processed_templates: list[str] = Field(default_factory=list)


class TemplateResult(BaseModel):
    """템플릿별 생성 결과 — Per-template generation counts."""

    template_id: str
    template_name: str
    days_applied: list[int] = Field(default_factory=list)
    shifts_requested: int = 0
    shifts_generated: int = 0
    partial_coverage: int = 0
    no_coverage: int = 0


class GenerationSummary(BaseModel):
    """자동 생성 요약.

    Generation summary. Every requested worker slot is counted exactly once:
    ``total_shifts_requested == shifts_generated + partial_coverage + no_coverage``.
    """

    total_shifts_requested: int = 0
    shifts_generated: int = 0
    partial_coverage: int = 0
    no_coverage: int = 0
    warnings: list[str] = Field(default_factory=list)
    template_processing: TemplateProcessing = Field(default_factory=TemplateProcessing)
    template_results: list[TemplateResult] = Field(default_factory=list)


class AutoGenerateResponse(BaseModel):
    """자동 생성 응답 — Auto-generation response."""

    schedule: ScheduleResponse
    generation_summary: GenerationSummary


class PublicationConflict(BaseModel):
    """게시 충돌 항목.

    One shift that overlaps a shift of the same worker in another published
    schedule.

    Attributes:
        overlap_type: complete_overlap / contained_by / partial_start / partial_end / adjacent
    """

    shift_id: str
    employee_id: str
    shift_date: date
    start_time: str
    end_time: str
    conflicting_shift_id: str
    conflicting_schedule_id: str
    conflicting_schedule_name: str
    conflict_shift_date: date
    conflict_start_time: str
    conflict_end_time: str
    overlap_type: str


class PublicationValidation(BaseModel):
    """게시 가능 여부 검증 결과 — Publication check result."""

    can_publish: bool
    conflicts: list[PublicationConflict] = Field(default_factory=list)
