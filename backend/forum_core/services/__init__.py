from .online import list_online_users
from .permission_service import PermissionService
from .subject import build_subject

__all__ = ["PermissionService", "build_subject", "list_online_users"]
