import uuid
from datetime import datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    UniqueConstraint,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class ContentPermission(Base):
    """
    One explicit permission value for a role on a single forum entity.

    A row means "on content (type, id), members of role R are allowed/denied
    permission P". No row means the value is unset for that role.
    """

    __tablename__ = "content_permissions"
    __table_args__ = (
        UniqueConstraint(
            "content_type",
            "content_id",
            "role_id",
            "permission",
            name="uq_content_permissions_entry",
        ),
        CheckConstraint("value IN ('allow', 'deny')", name="value_allowed"),
        Index("ix_content_permissions_lookup", "content_type", "content_id", "permission"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    content_type: Mapped[str] = mapped_column(String(50), nullable=False)
    content_id: Mapped[uuid.UUID] = mapped_column(Uuid(as_uuid=True), nullable=False)
    role_id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        ForeignKey("roles.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    permission: Mapped[str] = mapped_column(String(100), nullable=False)
    value: Mapped[str] = mapped_column(String(10), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return (
            f"<ContentPermission({self.content_type}={self.content_id}, "
            f"role={self.role_id}, perm={self.permission!r}, value={self.value})>"
        )
