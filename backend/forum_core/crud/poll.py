import logging
import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from ..database import atomic
from ..errors import ConflictError, NotFoundError, ValidationError
from ..models.poll import Poll
from ..models.topic import Topic
from ..schemas.base import parse_fields
from ..schemas.poll import PollCreate, PollUpdate
from .poll_vote import PollVoteRepository

logger = logging.getLogger(__name__)


class PollRepository:
    def __init__(
        self,
        session: AsyncSession,
        poll_vote_repository: PollVoteRepository | None = None,
    ):
        self.session = session
        self.poll_vote_repository = poll_vote_repository or PollVoteRepository(session)

    async def find(self, poll_id: uuid.UUID) -> Poll:
        result = await self.session.execute(
            select(Poll)
            .options(selectinload(Poll.author), selectinload(Poll.topic))
            .where(Poll.id == poll_id)
        )
        poll = result.scalar_one_or_none()
        if poll is None:
            raise NotFoundError("Poll not found", details={"id": str(poll_id)})
        return poll

    async def get_for_topic(self, topic_id: uuid.UUID) -> Poll | None:
        result = await self.session.execute(
            select(Poll).options(selectinload(Poll.author)).where(Poll.topic_id == topic_id)
        )
        return result.scalar_one_or_none()

    async def create(self, fields: Mapping[str, Any], author_id: uuid.UUID | None = None) -> Poll:
        """Attach a poll to a topic; guests are stored with a NULL author."""
        data = parse_fields(PollCreate, fields)
        if await self.session.get(Topic, data.topic_id) is None:
            raise NotFoundError("Topic not found", details={"id": str(data.topic_id)})
        if await self.get_for_topic(data.topic_id) is not None:
            raise ConflictError(
                "Topic already has a poll", details={"topic_id": str(data.topic_id)}
            )
        poll = Poll(user_id=author_id, **data.model_dump())
        self.session.add(poll)
        await self.session.flush()
        await self.session.refresh(poll)
        return poll

    async def edit(self, poll: Poll, fields: Mapping[str, Any]) -> Poll:
        changes = parse_fields(PollUpdate, fields).model_dump(exclude_unset=True)
        options = changes.get("options", poll.options)
        max_options = changes.get("max_options", poll.max_options)
        if max_options > len(options):
            raise ValidationError(
                "max_options cannot exceed the number of options",
                details={"max_options": max_options, "options": len(options)},
            )
        for key, value in changes.items():
            setattr(poll, key, value)
        await self.session.flush()
        await self.session.refresh(poll)
        return poll

    async def remove(self, poll: Poll) -> bool:
        """Delete a poll and all of its votes as one unit of work."""
        poll_id = poll.id
        async with atomic(self.session):
            votes = await self.poll_vote_repository.remove_all_by_poll(poll_id)
            await self.session.delete(poll)
            await self.session.flush()

        logger.info("operation=poll:remove poll_id=%s votes=%s", poll_id, votes)
        return True
