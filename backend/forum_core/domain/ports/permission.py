from __future__ import annotations

import uuid
from collections.abc import Collection
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from ...permissions.values import PermissionValue


class PermissionEntity(Protocol):
    id: uuid.UUID
    permission_kind: str

    def parent_reference(self) -> tuple[str, uuid.UUID] | None:
        ...


class EntityLookup(Protocol):
    async def find_by_id(self, kind: str, entity_id: uuid.UUID) -> PermissionEntity:
        ...


class PermissionValueSource(Protocol):
    async def get_values(
        self,
        kind: str,
        entity_id: uuid.UUID,
        permission: str,
        role_ids: Collection[uuid.UUID],
    ) -> list[PermissionValue]:
        ...
