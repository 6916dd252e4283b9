import uuid

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, NotFoundError
from ..models.role import Role
from ..models.user_role import UserRole


class RoleRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, name: str, display_name: str, description: str | None = None) -> Role:
        if await self.get_by_name(name) is not None:
            raise ConflictError(f"Role '{name}' already exists", details={"name": name})
        role = Role(
            name=name,
            display_name=display_name,
            description=description,
        )
        self.session.add(role)
        await self.session.flush()
        await self.session.refresh(role)
        return role

    async def get_by_id(self, role_id: uuid.UUID) -> Role | None:
        return await self.session.get(Role, role_id)

    async def get_by_name(self, name: str) -> Role | None:
        result = await self.session.execute(
            select(Role).where(Role.name == name)
        )
        return result.scalar_one_or_none()

    async def require_by_name(self, name: str) -> Role:
        role = await self.get_by_name(name)
        if role is None:
            raise NotFoundError(f"Role '{name}' not found", details={"name": name})
        return role

    async def list_all(self, include_inactive: bool = False) -> list[Role]:
        query = select(Role).order_by(Role.created_at.asc())
        if not include_inactive:
            query = query.where(Role.is_active)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def assign_to_user(self, user_id: uuid.UUID, role_id: uuid.UUID) -> UserRole:
        user_role = UserRole(user_id=user_id, role_id=role_id)
        try:
            async with self.session.begin_nested():
                self.session.add(user_role)
        except IntegrityError as exc:
            raise ConflictError(
                "Role is already assigned to this user",
                details={"user_id": str(user_id), "role_id": str(role_id)},
            ) from exc
        await self.session.refresh(user_role)
        return user_role

    async def remove_from_user(self, user_id: uuid.UUID, role_id: uuid.UUID) -> None:
        result = await self.session.execute(
            select(UserRole).where(
                UserRole.user_id == user_id,
                UserRole.role_id == role_id
            )
        )
        user_role = result.scalar_one_or_none()
        if user_role:
            await self.session.delete(user_role)
            await self.session.flush()

    async def detach_user(self, user_id: uuid.UUID) -> int:
        result = await self.session.execute(
            delete(UserRole).where(UserRole.user_id == user_id)
        )
        return result.rowcount or 0

    async def get_user_roles(self, user_id: uuid.UUID) -> list[Role]:
        result = await self.session.execute(
            select(Role)
            .join(UserRole, UserRole.role_id == Role.id)
            .where(UserRole.user_id == user_id)
            .where(Role.is_active)
        )
        return list(result.scalars().all())
