import logging
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import atomic
from ..errors import NotFoundError
from ..models.forum import Forum
from ..models.poll import Poll
from ..models.post import Post
from ..models.topic import Topic
from ..models.user import User
from ..schemas.base import parse_fields
from ..schemas.forum import TopicCreate, TopicUpdate
from ..utils.text import slugify
from .content_permission import ContentPermissionRepository
from .pagination import Page, order_clause, paginate
from .poll_vote import PollVoteRepository

logger = logging.getLogger(__name__)

TOPIC_SORT_FIELDS = frozenset({"created_at", "updated_at", "title", "views"})


class TopicRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def find(self, topic_id: uuid.UUID) -> Topic:
        topic = await self.session.get(Topic, topic_id)
        if topic is None:
            raise NotFoundError("Topic not found", details={"id": str(topic_id)})
        return topic

    async def list_for_forum(
        self,
        forum_id: uuid.UUID,
        sort_by: str = "created_at",
        sort_dir: str = "asc",
        per_page: int = 20,
        page: int = 1,
    ) -> Page[Topic]:
        query = (
            select(Topic)
            .where(Topic.forum_id == forum_id)
            .order_by(order_clause(Topic, sort_by, sort_dir, TOPIC_SORT_FIELDS))
        )
        return await paginate(self.session, query, page=page, per_page=per_page)

    async def create(self, fields: Mapping[str, Any], author: User | None = None) -> Topic:
        data = parse_fields(TopicCreate, fields)
        if await self.session.get(Forum, data.forum_id) is None:
            raise NotFoundError("Forum not found", details={"id": str(data.forum_id)})
        topic_id = uuid.uuid4()
        topic = Topic(
            id=topic_id,
            forum_id=data.forum_id,
            title=data.title,
            slug=data.slug or slugify(data.title) or topic_id.hex[:8],
            user_id=author.id if author is not None else None,
            username=author.name if author is not None else "",
        )
        self.session.add(topic)
        await self.session.flush()
        await self.session.refresh(topic)
        return topic

    async def update(self, topic: Topic, fields: Mapping[str, Any]) -> Topic:
        changes = parse_fields(TopicUpdate, fields).model_dump(exclude_unset=True)
        if changes.get("title") and "slug" not in changes:
            changes["slug"] = slugify(changes["title"]) or topic.id.hex[:8]
        for key, value in changes.items():
            setattr(topic, key, value)
        await self.session.flush()
        await self.session.refresh(topic)
        return topic

    async def delete(self, topic: Topic) -> bool:
        """Delete a topic with its posts, poll and votes in one transaction."""
        topic_id = topic.id
        async with atomic(self.session):
            poll_id = (
                await self.session.execute(select(Poll.id).where(Poll.topic_id == topic_id))
            ).scalar_one_or_none()
            votes = 0
            if poll_id is not None:
                votes = await PollVoteRepository(self.session).remove_all_by_poll(poll_id)
                await self.session.execute(delete(Poll).where(Poll.id == poll_id))
            posts = await self.session.execute(delete(Post).where(Post.topic_id == topic_id))
            await ContentPermissionRepository(self.session).remove_all_for_entity(
                Topic.permission_kind, topic_id
            )
            await self.session.delete(topic)
            await self.session.flush()

        logger.info(
            "operation=topic:delete topic_id=%s posts=%s poll_id=%s votes=%s",
            topic_id,
            posts.rowcount,
            poll_id,
            votes,
        )
        return True
