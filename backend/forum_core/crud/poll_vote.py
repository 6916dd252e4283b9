import uuid
from collections.abc import Mapping
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import ConflictError, ValidationError
from ..models.poll import Poll
from ..models.poll_vote import PollVote
from ..schemas.base import parse_fields
from ..schemas.poll import PollVoteCreate


class PollVoteRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(
        self,
        poll: Poll,
        fields: Mapping[str, Any],
        user_id: uuid.UUID | None = None,
    ) -> PollVote:
        data = parse_fields(PollVoteCreate, fields)
        choices = sorted(set(data.vote))
        if any(choice < 0 or choice >= len(poll.options) for choice in choices):
            raise ValidationError(
                "Vote refers to an unknown option",
                details={"vote": data.vote, "options": len(poll.options)},
            )
        if not poll.is_multiple and len(choices) > 1:
            raise ValidationError("This poll accepts a single option")
        if poll.is_multiple and poll.max_options and len(choices) > poll.max_options:
            raise ValidationError(
                f"At most {poll.max_options} options can be chosen",
                details={"max_options": poll.max_options},
            )
        if poll.is_closed:
            raise ConflictError("Poll is closed", details={"poll_id": str(poll.id)})
        if user_id is not None and await self.find_for_user(poll.id, user_id) is not None:
            raise ConflictError(
                "User has already voted in this poll",
                details={"poll_id": str(poll.id), "user_id": str(user_id)},
            )

        vote = PollVote(poll_id=poll.id, user_id=user_id, vote=choices)
        self.session.add(vote)
        await self.session.flush()
        await self.session.refresh(vote)
        return vote

    async def find_for_user(self, poll_id: uuid.UUID, user_id: uuid.UUID) -> PollVote | None:
        result = await self.session.execute(
            select(PollVote).where(PollVote.poll_id == poll_id, PollVote.user_id == user_id)
        )
        return result.scalars().first()

    async def list_for_poll(self, poll_id: uuid.UUID) -> list[PollVote]:
        result = await self.session.execute(
            select(PollVote)
            .where(PollVote.poll_id == poll_id)
            .order_by(PollVote.created_at.asc())
        )
        return list(result.scalars().all())

    async def remove_all_by_poll(self, poll_id: uuid.UUID) -> int:
        result = await self.session.execute(
            delete(PollVote).where(PollVote.poll_id == poll_id)
        )
        return result.rowcount or 0
