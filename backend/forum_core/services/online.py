from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..crud.pagination import Page
from ..crud.user import UserRepository
from ..models.user import User
from ..permissions.values import Subject
from .permission_service import PermissionService

VIEW_ALL_ONLINE_PERMISSION = "user.view_all_online"


async def list_online_users(
    session: AsyncSession,
    subject: Subject,
    *,
    order_by: str = "last_visit",
    order_dir: str = "desc",
    num: int = 20,
    page: int = 1,
    settings: Settings | None = None,
) -> Page[User]:
    settings = settings or get_settings()
    permissions = PermissionService(session, settings)
    include_hidden = await permissions.has_global_permission(
        subject, VIEW_ALL_ONLINE_PERMISSION
    )
    return await UserRepository(session).online(
        minutes=settings.online_minutes,
        order_by=order_by,
        order_dir=order_dir,
        num=num,
        page=page,
        include_hidden=include_hidden,
        viewer_id=subject.user_id,
        setting_name=settings.online_setting_name,
    )
