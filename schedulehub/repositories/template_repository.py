"""시프트 템플릿 레포지토리 — 템플릿 카탈로그 조회 담당.

Shift Template Repository — Read access to the template catalog.
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.models.template import ShiftTemplate
from schedulehub.repositories.base import BaseRepository


class TemplateRepository(BaseRepository[ShiftTemplate]):
    """시프트 템플릿 레포지토리.

    Extends:
        BaseRepository[ShiftTemplate]
    """

    def __init__(self) -> None:
        super().__init__(ShiftTemplate)

    async def get_active_by_id(
        self,
        db: AsyncSession,
        template_id: UUID,
        organization_id: UUID,
    ) -> ShiftTemplate | None:
        """조직의 활성 템플릿을 조회합니다. 비활성 템플릿은 None.

        Return the organization's active template, or None when it is missing
        or inactive. Station links load with the template.
        """
        result = await db.execute(
            select(ShiftTemplate).where(
                ShiftTemplate.id == template_id,
                ShiftTemplate.organization_id == organization_id,
                ShiftTemplate.is_active.is_(True),
            )
        )
        return result.scalar_one_or_none()


# 싱글턴 인스턴스 — Singleton instance
template_repository: TemplateRepository = TemplateRepository()
