from collections.abc import AsyncGenerator
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .config import Settings, get_settings
from .crud.entity import EntityGateway
from .crud.forum import ForumRepository
from .crud.poll import PollRepository
from .crud.topic import TopicRepository
from .crud.user import UserRepository
from .database import get_session
from .permissions.overrides import OverrideRegistry, default_registry
from .services.permission_service import PermissionService


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async for session in get_session():
        yield session


@lru_cache
def get_override_registry() -> OverrideRegistry:
    return default_registry()


def get_app_settings() -> Settings:
    return get_settings()


def get_entity_gateway(db: AsyncSession = Depends(get_db)) -> EntityGateway:
    return EntityGateway(db)


def get_user_repository(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


def get_forum_repository(db: AsyncSession = Depends(get_db)) -> ForumRepository:
    return ForumRepository(db)


def get_topic_repository(db: AsyncSession = Depends(get_db)) -> TopicRepository:
    return TopicRepository(db)


def get_poll_repository(db: AsyncSession = Depends(get_db)) -> PollRepository:
    return PollRepository(db)


def get_permission_service(
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_app_settings),
    registry: OverrideRegistry = Depends(get_override_registry),
) -> PermissionService:
    return PermissionService(db, settings, registry)
