import logging
import uuid
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from sqlalchemy import and_, delete, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import atomic
from ..errors import ConflictError, NotFoundError
from ..models.conversation import ConversationUser
from ..models.poll import Poll
from ..models.poll_vote import PollVote
from ..models.post import Post
from ..models.setting import Setting, SettingValue
from ..models.topic import Topic
from ..models.user import User
from ..models.user_role import UserRole
from ..schemas.base import parse_fields
from ..schemas.user import UserCreate, UserUpdate
from .pagination import Page, order_clause, paginate
from .role import RoleRepository

logger = logging.getLogger(__name__)

USER_SORT_FIELDS = frozenset({"created_at", "updated_at", "name", "email", "last_visit"})
LOGOUT_PAGE = "auth/logout"
SHOW_ONLINE_SETTING = "user.showonline"
# Setting values are stored as text and compared lowercased
TRUE_SETTING_VALUES = ("1", "true")


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def all(
        self,
        sort_by: str = "created_at",
        sort_dir: str = "asc",
        per_page: int = 10,
        page: int = 1,
    ) -> Page[User]:
        query = select(User).order_by(order_clause(User, sort_by, sort_dir, USER_SORT_FIELDS))
        return await paginate(self.session, query, page=page, per_page=per_page)

    async def search(
        self,
        username: str = "",
        email: str = "",
        role_id: uuid.UUID | None = None,
        sort_by: str = "created_at",
        sort_dir: str = "asc",
        per_page: int = 10,
        page: int = 1,
    ) -> Page[User]:
        """Substring search on name and email, optionally limited to one role."""
        query = select(User)
        if username:
            query = query.where(User.name.contains(username, autoescape=True))
        if email:
            query = query.where(User.email.contains(email, autoescape=True))
        if role_id is not None:
            query = query.join(UserRole, UserRole.user_id == User.id).where(
                UserRole.role_id == role_id
            )
        query = query.order_by(order_clause(User, sort_by, sort_dir, USER_SORT_FIELDS))
        return await paginate(self.session, query, page=page, per_page=per_page)

    async def online(
        self,
        minutes: int = 15,
        order_by: str = "last_visit",
        order_dir: str = "desc",
        num: int = 20,
        page: int = 1,
        *,
        include_hidden: bool = False,
        viewer_id: uuid.UUID | None = None,
        setting_name: str = SHOW_ONLINE_SETTING,
    ) -> Page[User]:
        """Users active within ``minutes`` who did not log out since.

        Unless ``include_hidden`` is set, users who turned off the online
        setting are left out; an unset value counts as visible and the viewer
        always sees their own row. ``num <= 0`` returns every match.
        """
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=minutes)
        query = select(User).where(
            User.last_visit >= cutoff,
            or_(User.last_page.is_(None), User.last_page != LOGOUT_PAGE),
        )

        if not include_hidden:
            setting_id = await self._setting_id(setting_name)
            if setting_id is None:
                logger.warning(
                    "online_setting_missing setting=%s action=show_all", setting_name
                )
            else:
                query = query.outerjoin(
                    SettingValue,
                    and_(
                        SettingValue.user_id == User.id,
                        SettingValue.setting_id == setting_id,
                    ),
                )
                visible = [
                    func.lower(SettingValue.value).in_(TRUE_SETTING_VALUES),
                    SettingValue.value.is_(None),
                ]
                if viewer_id is not None:
                    visible.append(User.id == viewer_id)
                query = query.where(or_(*visible))

        query = query.order_by(order_clause(User, order_by, order_dir, USER_SORT_FIELDS))
        return await paginate(self.session, query, page=page, per_page=num)

    async def find(self, user_id: uuid.UUID) -> User:
        user = await self.session.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found", details={"id": str(user_id)})
        return user

    async def find_by_username(self, username: str) -> User:
        result = await self.session.execute(select(User).where(User.name == username))
        user = result.scalar_one_or_none()
        if user is None:
            raise NotFoundError("User not found", details={"name": username})
        return user

    async def create(self, fields: Mapping[str, Any]) -> User:
        data = parse_fields(UserCreate, fields)
        await self._ensure_unique(name=data.name, email=data.email)
        user = User(**data.model_dump())
        self.session.add(user)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def update(self, user: User, fields: Mapping[str, Any]) -> User:
        changes = parse_fields(UserUpdate, fields).model_dump(exclude_unset=True)
        await self._ensure_unique(
            name=changes.get("name") if changes.get("name") != user.name else None,
            email=changes.get("email") if changes.get("email") != user.email else None,
        )
        for key, value in changes.items():
            setattr(user, key, value)
        await self.session.flush()
        await self.session.refresh(user)
        return user

    async def delete(self, user_id: uuid.UUID) -> bool:
        """Delete a user and detach everything that pointed at them.

        Topics and posts survive with a NULL author and an empty username.
        All steps share one transaction.
        """
        user = await self.find(user_id)
        async with atomic(self.session):
            conversations = await self.session.execute(
                delete(ConversationUser).where(ConversationUser.user_id == user_id)
            )
            topics = await self.session.execute(
                update(Topic)
                .where(Topic.user_id == user_id)
                .values(user_id=None, username="")
            )
            posts = await self.session.execute(
                update(Post)
                .where(Post.user_id == user_id)
                .values(user_id=None, username="")
            )
            polls = await self.session.execute(
                update(Poll).where(Poll.user_id == user_id).values(user_id=None)
            )
            votes = await self.session.execute(
                update(PollVote).where(PollVote.user_id == user_id).values(user_id=None)
            )
            settings = await self.session.execute(
                delete(SettingValue).where(SettingValue.user_id == user_id)
            )
            roles = await RoleRepository(self.session).detach_user(user_id)
            await self.session.delete(user)
            await self.session.flush()

        logger.info(
            "operation=user:delete user_id=%s conversations=%s topics=%s posts=%s "
            "polls=%s votes=%s settings=%s roles=%s",
            user_id,
            conversations.rowcount,
            topics.rowcount,
            posts.rowcount,
            polls.rowcount,
            votes.rowcount,
            settings.rowcount,
            roles,
        )
        return True

    async def _setting_id(self, name: str) -> uuid.UUID | None:
        result = await self.session.execute(select(Setting.id).where(Setting.name == name))
        return result.scalar_one_or_none()

    async def _ensure_unique(self, *, name: str | None, email: str | None) -> None:
        if name is not None:
            taken = await self.session.execute(select(User.id).where(User.name == name))
            if taken.first() is not None:
                raise ConflictError("Username is already taken", details={"name": name})
        if email is not None:
            taken = await self.session.execute(select(User.id).where(User.email == email))
            if taken.first() is not None:
                raise ConflictError("Email is already registered", details={"email": email})
