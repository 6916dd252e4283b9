import uuid
from collections.abc import Collection

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError
from ..models.permission import Permission
from ..models.role import Role
from ..models.role_permission import RolePermission


class PermissionRepository:
    """Global role permissions, e.g. ``user.view_all_online``."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str, description: str | None = None) -> Permission:
        if await self.get_by_name(name) is not None:
            raise ConflictError(f"Permission '{name}' already exists", details={"name": name})
        permission = Permission(name=name, description=description)
        self.session.add(permission)
        await self.session.flush()
        await self.session.refresh(permission)
        return permission

    async def get_by_name(self, name: str) -> Permission | None:
        result = await self.session.execute(
            select(Permission).where(Permission.name == name)
        )
        return result.scalar_one_or_none()

    async def list_all(self) -> list[Permission]:
        result = await self.session.execute(select(Permission).order_by(Permission.name))
        return list(result.scalars().all())

    async def grant_to_role(self, role_id: uuid.UUID, permission_id: uuid.UUID) -> RolePermission:
        role_permission = RolePermission(role_id=role_id, permission_id=permission_id)
        try:
            async with self.session.begin_nested():
                self.session.add(role_permission)
        except IntegrityError as exc:
            raise ConflictError(
                "Permission is already granted to this role",
                details={"role_id": str(role_id), "permission_id": str(permission_id)},
            ) from exc
        await self.session.refresh(role_permission)
        return role_permission

    async def get_role_permissions(self, role_ids: Collection[uuid.UUID]) -> list[Permission]:
        if not role_ids:
            return []
        result = await self.session.execute(
            select(Permission)
            .join(RolePermission, RolePermission.permission_id == Permission.id)
            .join(Role, Role.id == RolePermission.role_id)
            .where(RolePermission.role_id.in_(list(role_ids)))
            .where(Role.is_active)
            .distinct()
        )
        return list(result.scalars().all())
