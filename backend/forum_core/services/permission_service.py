import logging
import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from ..config import Settings, get_settings
from ..crud.content_permission import ContentPermissionRepository
from ..crud.entity import EntityGateway
from ..crud.permission import PermissionRepository
from ..domain.ports.permission import PermissionEntity
from ..errors import PermissionError
from ..permissions.overrides import VIEWABLE_PERMISSION, OverrideRegistry, default_registry
from ..permissions.resolver import PermissionResolver
from ..permissions.values import PermissionValue, Subject

logger = logging.getLogger(__name__)


class PermissionService:
    """Entry point for permission checks made by request handlers.

    Content permissions (per forum/topic) go through the inheritance
    resolver; global permissions come straight from the subject's roles.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings: Settings | None = None,
        registry: OverrideRegistry | None = None,
    ):
        self.session = session
        self.gateway = EntityGateway(session)
        self.permission_repo = PermissionRepository(session)
        self.resolver = PermissionResolver.from_settings(
            self.gateway,
            ContentPermissionRepository(session),
            registry or default_registry(),
            settings or get_settings(),
        )

    async def resolve(
        self, entity: PermissionEntity, permission_name: str, subject: Subject
    ) -> PermissionValue:
        return await self.resolver.resolve(entity, permission_name, subject)

    async def can(
        self, entity: PermissionEntity, permission_name: str, subject: Subject
    ) -> bool:
        return await self.resolver.is_allowed(entity, permission_name, subject)

    async def require(
        self, entity: PermissionEntity, permission_name: str, subject: Subject
    ) -> None:
        """Raise PermissionError unless ``subject`` holds the permission.

        Raises:
            PermissionError: The permission resolves to DENY.
        """
        if await self.can(entity, permission_name, subject):
            return
        logger.warning(
            "permission_denied kind=%s id=%s permission=%s user_id=%s",
            entity.permission_kind,
            entity.id,
            permission_name,
            subject.user_id,
        )
        raise PermissionError(
            f"Permission denied: {permission_name} required",
            details={
                "kind": entity.permission_kind,
                "id": str(entity.id),
                "permission": permission_name,
            },
        )

    async def has_global_permission(self, subject: Subject, permission_name: str) -> bool:
        permissions = await self.permission_repo.get_role_permissions(subject.role_ids)
        return any(permission.name == permission_name for permission in permissions)

    async def viewable_children(
        self,
        kind: str,
        parent_id: uuid.UUID | None,
        subject: Subject,
    ) -> list[PermissionEntity]:
        children = await self.gateway.find_children_of(kind, parent_id)
        return [
            child
            for child in children
            if await self.can(child, VIEWABLE_PERMISSION, subject)
        ]
