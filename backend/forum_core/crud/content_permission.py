import logging
import uuid
from collections.abc import Collection

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ValidationError
from ..models.content_permission import ContentPermission
from ..permissions.values import PermissionValue

logger = logging.getLogger(__name__)


class ContentPermissionRepository:
    """Stored PermissionSet rows: explicit ALLOW/DENY per (entity, role)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_values(
        self,
        kind: str,
        entity_id: uuid.UUID,
        permission: str,
        role_ids: Collection[uuid.UUID],
    ) -> list[PermissionValue]:
        if not role_ids:
            return []
        result = await self.session.execute(
            select(ContentPermission.value).where(
                ContentPermission.content_type == kind,
                ContentPermission.content_id == entity_id,
                ContentPermission.permission == permission,
                ContentPermission.role_id.in_(list(role_ids)),
            )
        )
        return [PermissionValue(value) for value in result.scalars().all()]

    async def get_entry(
        self,
        kind: str,
        entity_id: uuid.UUID,
        role_id: uuid.UUID,
        permission: str,
    ) -> ContentPermission | None:
        result = await self.session.execute(
            select(ContentPermission).where(
                ContentPermission.content_type == kind,
                ContentPermission.content_id == entity_id,
                ContentPermission.role_id == role_id,
                ContentPermission.permission == permission,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_entity(self, kind: str, entity_id: uuid.UUID) -> list[ContentPermission]:
        result = await self.session.execute(
            select(ContentPermission)
            .where(
                ContentPermission.content_type == kind,
                ContentPermission.content_id == entity_id,
            )
            .order_by(ContentPermission.permission.asc())
        )
        return list(result.scalars().all())

    async def set_value(
        self,
        kind: str,
        entity_id: uuid.UUID,
        role_id: uuid.UUID,
        permission: str,
        value: PermissionValue,
    ) -> ContentPermission | None:
        """Store an explicit value; UNSET removes the row instead."""
        if not permission:
            raise ValidationError("Permission name must not be empty")
        if not value.is_set:
            await self.clear_value(kind, entity_id, role_id, permission)
            return None

        entry = await self.get_entry(kind, entity_id, role_id, permission)
        if entry is None:
            entry = ContentPermission(
                content_type=kind,
                content_id=entity_id,
                role_id=role_id,
                permission=permission,
                value=value.value,
            )
            self.session.add(entry)
        else:
            entry.value = value.value
        await self.session.flush()
        logger.debug(
            "operation=content_permission:set kind=%s id=%s role_id=%s permission=%s value=%s",
            kind,
            entity_id,
            role_id,
            permission,
            value.value,
        )
        return entry

    async def clear_value(
        self,
        kind: str,
        entity_id: uuid.UUID,
        role_id: uuid.UUID,
        permission: str,
    ) -> bool:
        entry = await self.get_entry(kind, entity_id, role_id, permission)
        if entry is None:
            return False
        await self.session.delete(entry)
        await self.session.flush()
        return True

    async def remove_all_for_entity(self, kind: str, entity_id: uuid.UUID) -> int:
        result = await self.session.execute(
            delete(ContentPermission).where(
                ContentPermission.content_type == kind,
                ContentPermission.content_id == entity_id,
            )
        )
        return result.rowcount or 0
