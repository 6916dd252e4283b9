import logging
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import atomic
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.forum import Forum
from ..models.topic import Topic
from ..schemas.base import parse_fields
from ..schemas.forum import ForumCreate, ForumUpdate
from ..utils.text import slugify
from .content_permission import ContentPermissionRepository

logger = logging.getLogger(__name__)


class ForumRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, forum_id: uuid.UUID) -> Forum:
        forum = await self.session.get(Forum, forum_id)
        if forum is None:
            raise NotFoundError("Forum not found", details={"id": str(forum_id)})
        return forum

    async def list_children(self, parent_id: uuid.UUID | None = None) -> list[Forum]:
        query = select(Forum)
        if parent_id is None:
            query = query.where(Forum.parent_id.is_(None))
        else:
            query = query.where(Forum.parent_id == parent_id)
        result = await self.session.execute(
            query.order_by(Forum.sort_order.asc(), Forum.created_at.asc())
        )
        return list(result.scalars().all())

    async def create(self, fields: Mapping[str, Any]) -> Forum:
        data = parse_fields(ForumCreate, fields)
        if data.parent_id is not None:
            await self.find(data.parent_id)
        values = data.model_dump()
        forum_id = uuid.uuid4()
        values["slug"] = data.slug or slugify(data.title) or forum_id.hex[:8]
        forum = Forum(id=forum_id, **values)
        self.session.add(forum)
        await self.session.flush()
        await self.session.refresh(forum)
        return forum

    async def update(self, forum: Forum, fields: Mapping[str, Any]) -> Forum:
        changes = parse_fields(ForumUpdate, fields).model_dump(exclude_unset=True)
        if "parent_id" in changes and changes["parent_id"] != forum.parent_id:
            await self._ensure_not_descendant(forum, changes["parent_id"])
        if changes.get("title") and "slug" not in changes:
            changes["slug"] = slugify(changes["title"]) or forum.id.hex[:8]
        for key, value in changes.items():
            setattr(forum, key, value)
        await self.session.flush()
        await self.session.refresh(forum)
        return forum

    async def delete(self, forum: Forum) -> bool:
        """Delete an empty forum.

        Raises:
            ConflictError: The forum still holds sub-forums or topics.
        """
        children = await self._count(select(func.count()).where(Forum.parent_id == forum.id))
        topics = await self._count(select(func.count()).where(Topic.forum_id == forum.id))
        if children or topics:
            raise ConflictError(
                "Forum still contains sub-forums or topics",
                details={"id": str(forum.id), "forums": children, "topics": topics},
            )

        forum_id = forum.id
        async with atomic(self.session):
            permissions = await ContentPermissionRepository(self.session).remove_all_for_entity(
                Forum.permission_kind, forum_id
            )
            await self.session.delete(forum)
            await self.session.flush()

        logger.info("operation=forum:delete forum_id=%s permissions=%s", forum_id, permissions)
        return True

    async def _ensure_not_descendant(self, forum: Forum, new_parent_id: uuid.UUID | None) -> None:
        # Re-parenting below itself would break the containment tree
        seen: set[uuid.UUID] = set()
        current_id = new_parent_id
        while current_id is not None:
            if current_id == forum.id:
                raise ValidationError(
                    "A forum cannot be moved below itself",
                    details={"id": str(forum.id), "parent_id": str(new_parent_id)},
                )
            if current_id in seen:
                break
            seen.add(current_id)
            current_id = (await self.find(current_id)).parent_id

    async def _count(self, query) -> int:
        return (await self.session.execute(query)).scalar() or 0
