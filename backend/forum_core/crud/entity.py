"""
Identity lookups over every model that takes part in permission inheritance.

The permission resolver walks parent references through this gateway, so
forums and topics stay independently loadable by (kind, id).
"""
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import NotFoundError, ValidationError
from ..models.forum import Forum
from ..models.mixins import InheritPermissionable
from ..models.topic import Topic

ENTITY_MODELS: dict[str, type[InheritPermissionable]] = {
    Forum.permission_kind: Forum,
    Topic.permission_kind: Topic,
}


def model_for_kind(kind: str) -> type[InheritPermissionable]:
    model = ENTITY_MODELS.get(kind)
    if model is None:
        raise ValidationError(
            f"Unknown entity kind '{kind}'",
            details={"kind": kind, "known": sorted(ENTITY_MODELS)},
        )
    return model


class EntityGateway:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find_by_id(self, kind: str, entity_id: uuid.UUID) -> InheritPermissionable:
        model = model_for_kind(kind)
        entity = await self.session.get(model, entity_id)
        if entity is None:
            raise NotFoundError(
                f"{kind.capitalize()} not found",
                details={"kind": kind, "id": str(entity_id)},
            )
        return entity

    async def find_children_of(
        self,
        kind: str,
        parent_id: uuid.UUID | None,
    ) -> list[InheritPermissionable]:
        """Entities of ``kind`` whose parent reference points at ``parent_id``.

        ``None`` lists the roots of that kind.
        """
        model = model_for_kind(kind)
        if model.parent_key is None:
            return []
        parent_column = getattr(model, model.parent_key)
        condition = parent_column.is_(None) if parent_id is None else parent_column == parent_id
        result = await self.session.execute(
            select(model).where(condition).order_by(model.created_at.asc())
        )
        return list(result.scalars().all())
