"""날짜 및 시각 파싱 유틸리티 모듈.

Date and time parsing utility module.
Schedule dates are calendar dates with no time component and must be given in
strict ``YYYY-MM-DD`` form; shift times are wall-clock ``HH:MM`` values. Shift
windows whose end is not after their start run overnight into the next day.
"""

import re
from datetime import date, datetime, time, timedelta, timezone

from schedulehub.utils.exceptions import ValidationError

_DATE_PATTERN = re.compile(r"^(\d{4})-(\d{2})-(\d{2})$")
_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)(?::([0-5]\d))?$")

MIN_YEAR: int = 1900
MAX_YEAR: int = 2100
MINUTES_PER_DAY: int = 24 * 60


def parse_date_only(value: str | date | None) -> date:
    """``YYYY-MM-DD`` 문자열을 날짜로 변환합니다.

    Parse a strict ``YYYY-MM-DD`` string into a ``date``.
    ``datetime`` values are reduced to their date part; ``date`` values pass through.

    Args:
        value: 날짜 문자열 또는 날짜 객체 (Date string or date object)

    Returns:
        date: 변환된 날짜 (Parsed calendar date)

    Raises:
        ValidationError: 형식 오류, 연/월/일 범위 오류, 존재하지 않는 날짜
            (Malformed input, out-of-range year/month/day, or impossible date)
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str):
        raise ValidationError(f"Invalid date format: {value}. Expected YYYY-MM-DD", entity="date")

    match = _DATE_PATTERN.match(value)
    if match is None:
        raise ValidationError(f"Invalid date format: {value}. Expected YYYY-MM-DD", entity="date")

    year, month, day = (int(part) for part in match.groups())
    if year < MIN_YEAR or year > MAX_YEAR:
        raise ValidationError(f"Year {year} out of valid range ({MIN_YEAR}-{MAX_YEAR})", entity="date")
    if month < 1 or month > 12:
        raise ValidationError(f"Month {month} out of valid range (01-12)", entity="date")
    if day < 1 or day > 31:
        raise ValidationError(f"Day {day} out of valid range (01-31)", entity="date")

    try:
        return date(year, month, day)
    except ValueError:
        raise ValidationError(f"Invalid date: {value} (e.g., Feb 30 doesn't exist)", entity="date")


def validate_date_range(start_value: str | date, end_value: str | date) -> tuple[date, date]:
    """스케줄 기간을 검증하고 날짜 쌍을 반환합니다.

    Validate a schedule period. Both ends must be well-formed dates and the end
    date must be strictly after the start date.

    Returns:
        tuple[date, date]: (시작일, 종료일) (Start and end dates)
    """
    if isinstance(start_value, str) and not _DATE_PATTERN.match(start_value):
        raise ValidationError("Start date must be in YYYY-MM-DD format", entity="schedule")
    if isinstance(end_value, str) and not _DATE_PATTERN.match(end_value):
        raise ValidationError("End date must be in YYYY-MM-DD format", entity="schedule")

    start_date: date = parse_date_only(start_value)
    end_date: date = parse_date_only(end_value)
    if end_date <= start_date:
        raise ValidationError("End date must be after start date", entity="schedule", reason="invalid_range")
    return start_date, end_date


def parse_time(value: str | time) -> time:
    """``HH:MM`` 또는 ``HH:MM:SS`` 문자열을 시각으로 변환합니다.

    Parse an ``HH:MM`` (or ``HH:MM:SS``) wall-clock string.
    """
    if isinstance(value, time):
        return value
    match = _TIME_PATTERN.match(value or "")
    if match is None:
        raise ValidationError(f"Invalid time format: {value}. Expected HH:MM", entity="time")
    hour, minute, second = match.groups()
    return time(int(hour), int(minute), int(second or 0))


def format_time(value: time) -> str:
    """시각을 ``HH:MM``으로 표시 — Render a time as ``HH:MM``."""
    return value.strftime("%H:%M")


def time_to_minutes(value: time) -> int:
    return value.hour * 60 + value.minute


def window_minutes(start_time: time, end_time: time) -> tuple[int, int]:
    """근무 시간대를 자정 기준 분 구간으로 변환합니다.

    Convert a shift window to ``(start, end)`` minutes from midnight of the
    shift date. An end at or before the start is taken as the next day.
    """
    start: int = time_to_minutes(start_time)
    end: int = time_to_minutes(end_time)
    if end <= start:
        end += MINUTES_PER_DAY
    return start, end


def dated_window_minutes(reference: date, shift_date: date, start_time: time, end_time: time) -> tuple[int, int]:
    """기준일 자정 기준 분 구간 — Window in minutes from midnight of ``reference``.

    Places shifts of neighbouring dates on one axis, so a night shift that runs
    past midnight can be compared with an early shift of the next day.
    """
    start, end = window_minutes(start_time, end_time)
    offset: int = (shift_date - reference).days * MINUTES_PER_DAY
    return start + offset, end + offset


def windows_overlap(a: tuple[int, int], b: tuple[int, int]) -> bool:
    """두 반개구간 [start, end)의 겹침 여부 — Half-open interval overlap."""
    return a[0] < b[1] and b[0] < a[1]


def window_hours(start_time: time, end_time: time) -> float:
    """근무 시간대 길이(시간) — Scheduled duration of a window in hours."""
    start, end = window_minutes(start_time, end_time)
    return (end - start) / 60


def minutes_to_time(minutes: int) -> time:
    """자정 기준 분을 시각으로 변환 (24시간 초과분은 다음날로 감음).

    Convert minutes from midnight back to a wall-clock time, wrapping past 24h.
    """
    minutes %= MINUTES_PER_DAY
    return time(minutes // 60, minutes % 60)


def dates_for_weekday(start_date: date, end_date: date, iso_weekday: int) -> list[date]:
    """기간 내 특정 ISO 요일(1=월 … 7=일)의 날짜 목록.

    All dates in the inclusive range falling on the ISO weekday (1=Mon … 7=Sun).
    """
    offset: int = (iso_weekday - start_date.isoweekday()) % 7
    first: date = start_date + timedelta(days=offset)
    result: list[date] = []
    while first <= end_date:
        result.append(first)
        first += timedelta(days=7)
    return result


def as_utc(value: datetime | None) -> datetime | None:
    """UTC 기준 aware datetime으로 정규화 (naive는 UTC로 간주).

    Normalize to an aware UTC datetime; naive values are taken as UTC.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
