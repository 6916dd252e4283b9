"""
Permission-hierarchy participation for content models.

A model opts in by declaring its kind tag and, when it lives inside another
entity, the kind of that container and the column holding its id. The
parent is referenced by identity only and loaded through the gateway.
"""
import uuid
from typing import ClassVar


ParentReference = tuple[str, uuid.UUID]


class InheritPermissionable:
    permission_kind: ClassVar[str]
    parent_kind: ClassVar[str | None] = None
    parent_key: ClassVar[str | None] = None

    def parent_reference(self) -> ParentReference | None:
        if self.parent_kind is None or self.parent_key is None:
            return None
        parent_id = getattr(self, self.parent_key)
        if parent_id is None:
            return None
        return self.parent_kind, parent_id
