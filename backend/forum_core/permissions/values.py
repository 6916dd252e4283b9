import enum
import uuid
from dataclasses import dataclass, field


class PermissionValue(str, enum.Enum):
    """Explicit ternary permission value.

    UNSET is never stored; it stands for "no row at this level".
    """

    ALLOW = "allow"
    DENY = "deny"
    UNSET = "unset"

    @property
    def is_set(self) -> bool:
        return self is not PermissionValue.UNSET

    @classmethod
    def combine(cls, values: list["PermissionValue"]) -> "PermissionValue":
        """Merge the values of every role a subject holds.

        Any grant wins, then any denial; no explicit value stays UNSET.
        """
        if cls.ALLOW in values:
            return cls.ALLOW
        if cls.DENY in values:
            return cls.DENY
        return cls.UNSET


@dataclass(frozen=True)
class Subject:
    """The acting principal: an authenticated user or a guest."""

    user_id: uuid.UUID | None = None
    role_ids: frozenset[uuid.UUID] = field(default_factory=frozenset)

    @property
    def is_guest(self) -> bool:
        return self.user_id is None
