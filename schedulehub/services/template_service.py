"""시프트 템플릿 카탈로그 서비스 — 템플릿 조회 및 해석.

Shift Template Catalog Service — Looks templates up by id for schedule
generation. Missing and inactive templates are reported, not raised, so a
generation request can continue with the templates that did resolve.
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from schedulehub.models.template import ShiftTemplate
from schedulehub.repositories.template_repository import template_repository

logger = logging.getLogger(__name__)


class TemplateService:
    """템플릿 카탈로그 서비스 — Template catalog read contract."""

    async def get_by_id(
        self,
        db: AsyncSession,
        template_id: UUID,
        organization_id: UUID,
    ) -> ShiftTemplate | None:
        """활성 템플릿을 조회합니다 — Active template or None."""
        return await template_repository.get_active_by_id(db, template_id, organization_id)

    async def resolve(
        self,
        db: AsyncSession,
        template_ids: list[UUID],
        organization_id: UUID,
    ) -> tuple[list[ShiftTemplate], list[UUID]]:
        """템플릿 ID 목록을 순서대로 해석합니다.

        Resolve ``template_ids`` in order, dropping duplicates.

        Args:
            db: 비동기 데이터베이스 세션 (Async database session)
            template_ids: 해석할 템플릿 UUID 목록 (Template ids in priority order)
            organization_id: 조직 UUID (Organization UUID)

        Returns:
            tuple[list[ShiftTemplate], list[UUID]]: (해석된 템플릿, 찾지 못한 ID)
                (Resolved templates in order, ids that did not resolve)
        """
        resolved: list[ShiftTemplate] = []
        missing: list[UUID] = []
        seen: set[UUID] = set()

        for template_id in template_ids:
            if template_id in seen:
                continue
            seen.add(template_id)

            template = await self.get_by_id(db, template_id, organization_id)
            if template is None:
                logger.warning("Template %s not found or inactive for organization %s", template_id, organization_id)
                missing.append(template_id)
            else:
                resolved.append(template)

        return resolved, missing


# 싱글턴 인스턴스 — Singleton instance
template_service: TemplateService = TemplateService()
