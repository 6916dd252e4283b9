from .base import Base
from .user import User
from .role import Role
from .user_role import UserRole
from .permission import Permission
from .role_permission import RolePermission
from .content_permission import ContentPermission
from .forum import Forum
from .topic import Topic
from .post import Post
from .poll import Poll
from .poll_vote import PollVote
from .conversation import Conversation, ConversationUser
from .setting import Setting, SettingValue

__all__ = [
    "Base",
    "User",
    "Role",
    "UserRole",
    "Permission",
    "RolePermission",
    "ContentPermission",
    "Forum",
    "Topic",
    "Post",
    "Poll",
    "PollVote",
    "Conversation",
    "ConversationUser",
    "Setting",
    "SettingValue",
]
