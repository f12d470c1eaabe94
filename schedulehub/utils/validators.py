"""입력 식별자 검증 유틸리티 — Identifier validation helpers."""

from uuid import UUID

from schedulehub.utils.exceptions import ValidationError


def parse_uuid(value: str | UUID, field: str) -> UUID:
    """문자열을 UUID로 변환합니다. 형식 오류는 ValidationError.

    Parse ``value`` as a UUID, raising ``ValidationError`` naming ``field``.
    """
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid {field}: {value}", entity=field, reason="invalid_id")


def parse_optional_uuid(value: str | UUID | None, field: str) -> UUID | None:
    if value is None or value == "":
        return None
    return parse_uuid(value, field)
