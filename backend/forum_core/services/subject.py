from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..crud.role import RoleRepository
from ..models.user import User
from ..permissions.values import Subject


async def build_subject(
    session: AsyncSession,
    user: User | None,
    guest_role_name: str | None = None,
) -> Subject:
    """Turn the authenticated user (or ``None`` for guests) into a Subject."""
    roles = RoleRepository(session)
    if user is None:
        guest_role = await roles.get_by_name(guest_role_name or get_settings().guest_role_name)
        if guest_role is None or not guest_role.is_active:
            return Subject()
        return Subject(role_ids=frozenset({guest_role.id}))

    user_roles = await roles.get_user_roles(user.id)
    return Subject(user_id=user.id, role_ids=frozenset(role.id for role in user_roles))
