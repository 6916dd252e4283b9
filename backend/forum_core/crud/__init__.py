from .content_permission import ContentPermissionRepository
from .entity import EntityGateway
from .forum import ForumRepository
from .pagination import Page
from .permission import PermissionRepository
from .poll import PollRepository
from .poll_vote import PollVoteRepository
from .role import RoleRepository
from .topic import TopicRepository
from .user import UserRepository

__all__ = [
    "ContentPermissionRepository",
    "EntityGateway",
    "ForumRepository",
    "Page",
    "PermissionRepository",
    "PollRepository",
    "PollVoteRepository",
    "RoleRepository",
    "TopicRepository",
    "UserRepository",
]
