"""Create forum core tables

Revision ID: 0001
Revises:
Create Date: 2026-10-17 09:00:00.000000

Users, roles and global role permissions, the forum/topic containment tree
with per-role content permissions, posts, polls with votes, conversations
and per-user settings.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str | None = '0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name, sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False
    )


def upgrade() -> None:
    """Apply schema changes."""
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255)),
        sa.Column("last_visit", sa.DateTime(timezone=True)),
        sa.Column("last_page", sa.String(255)),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_users_name", "users", ["name"], unique=True)
    op.create_index("ix_users_email", "users", ["email"], unique=True)
    op.create_index("ix_users_last_visit", "users", ["last_visit"])

    op.create_table(
        "roles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("display_name", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _timestamp("created_at"),
    )
    op.create_index("ix_roles_name", "roles", ["name"], unique=True)

    op.create_table(
        "user_roles",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("role_id", sa.Uuid(), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
        _timestamp("granted_at"),
        sa.UniqueConstraint("user_id", "role_id", name="uq_user_roles_user_id_role_id"),
    )
    op.create_index("ix_user_roles_user_id", "user_roles", ["user_id"])
    op.create_index("ix_user_roles_role_id", "user_roles", ["role_id"])

    op.create_table(
        "permissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("description", sa.Text()),
        _timestamp("created_at"),
    )
    op.create_index("ix_permissions_name", "permissions", ["name"], unique=True)

    op.create_table(
        "role_permissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("role_id", sa.Uuid(), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "permission_id",
            sa.Uuid(),
            sa.ForeignKey("permissions.id", ondelete="CASCADE"),
            nullable=False,
        ),
        _timestamp("created_at"),
        sa.UniqueConstraint(
            "role_id", "permission_id", name="uq_role_permissions_role_id_permission_id"
        ),
    )
    op.create_index("ix_role_permissions_role_id", "role_permissions", ["role_id"])
    op.create_index("ix_role_permissions_permission_id", "role_permissions", ["permission_id"])

    op.create_table(
        "forums",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("parent_id", sa.Uuid(), sa.ForeignKey("forums.id", ondelete="RESTRICT")),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("description", sa.Text()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_forums_parent_id", "forums", ["parent_id"])
    op.create_index("ix_forums_slug", "forums", ["slug"])

    op.create_table(
        "topics",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "forum_id", sa.Uuid(), sa.ForeignKey("forums.id", ondelete="RESTRICT"), nullable=False
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("username", sa.String(100), nullable=False, server_default=""),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("slug", sa.String(255), nullable=False),
        sa.Column("views", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("closed", sa.Boolean(), nullable=False, server_default=sa.false()),
        _timestamp("created_at"),
        _timestamp("updated_at"),
    )
    op.create_index("ix_topics_forum_id", "topics", ["forum_id"])
    op.create_index("ix_topics_user_id", "topics", ["user_id"])
    op.create_index("ix_topics_slug", "topics", ["slug"])

    op.create_table(
        "posts",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "topic_id", sa.Uuid(), sa.ForeignKey("topics.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("username", sa.String(100), nullable=False, server_default=""),
        sa.Column("content", sa.Text(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_posts_topic_id", "posts", ["topic_id"])
    op.create_index("ix_posts_user_id", "posts", ["user_id"])

    op.create_table(
        "content_permissions",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("content_type", sa.String(50), nullable=False),
        sa.Column("content_id", sa.Uuid(), nullable=False),
        sa.Column("role_id", sa.Uuid(), sa.ForeignKey("roles.id", ondelete="CASCADE"), nullable=False),
        sa.Column("permission", sa.String(100), nullable=False),
        sa.Column("value", sa.String(10), nullable=False),
        _timestamp("created_at"),
        sa.UniqueConstraint(
            "content_type",
            "content_id",
            "role_id",
            "permission",
            name="uq_content_permissions_entry",
        ),
        sa.CheckConstraint(
            "value IN ('allow', 'deny')", name="ck_content_permissions_value_allowed"
        ),
    )
    op.create_index("ix_content_permissions_role_id", "content_permissions", ["role_id"])
    op.create_index(
        "ix_content_permissions_lookup",
        "content_permissions",
        ["content_type", "content_id", "permission"],
    )

    op.create_table(
        "polls",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "topic_id", sa.Uuid(), sa.ForeignKey("topics.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("question", sa.String(255), nullable=False),
        sa.Column("options", sa.JSON(), nullable=False),
        sa.Column("is_closed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_multiple", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("max_options", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("end_at", sa.DateTime(timezone=True)),
        _timestamp("created_at"),
        sa.UniqueConstraint("topic_id", name="uq_polls_topic_id"),
        sa.CheckConstraint("max_options >= 0", name="ck_polls_max_options_nonnegative"),
    )
    op.create_index("ix_polls_user_id", "polls", ["user_id"])

    op.create_table(
        "poll_votes",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "poll_id", sa.Uuid(), sa.ForeignKey("polls.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="SET NULL")),
        sa.Column("vote", sa.JSON(), nullable=False),
        _timestamp("created_at"),
    )
    op.create_index("ix_poll_votes_poll_id", "poll_votes", ["poll_id"])
    op.create_index("ix_poll_votes_user_id", "poll_votes", ["user_id"])

    op.create_table(
        "conversations",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("title", sa.String(255), nullable=False),
        _timestamp("created_at"),
    )

    op.create_table(
        "conversation_users",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "conversation_id",
            sa.Uuid(),
            sa.ForeignKey("conversations.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        _timestamp("joined_at"),
        sa.UniqueConstraint(
            "conversation_id", "user_id", name="uq_conversation_users_conversation_id_user_id"
        ),
    )
    op.create_index(
        "ix_conversation_users_conversation_id", "conversation_users", ["conversation_id"]
    )
    op.create_index("ix_conversation_users_user_id", "conversation_users", ["user_id"])

    op.create_table(
        "settings",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("value", sa.String(255)),
    )
    op.create_index("ix_settings_name", "settings", ["name"], unique=True)

    op.create_table(
        "setting_values",
        sa.Column("id", sa.Uuid(), primary_key=True),
        sa.Column(
            "setting_id", sa.Uuid(), sa.ForeignKey("settings.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("user_id", sa.Uuid(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("value", sa.String(255)),
        sa.UniqueConstraint(
            "setting_id", "user_id", name="uq_setting_values_setting_id_user_id"
        ),
    )
    op.create_index("ix_setting_values_setting_id", "setting_values", ["setting_id"])
    op.create_index("ix_setting_values_user_id", "setting_values", ["user_id"])


def downgrade() -> None:
    """Revert schema changes."""
    for table in (
        "setting_values",
        "settings",
        "conversation_users",
        "conversations",
        "poll_votes",
        "polls",
        "content_permissions",
        "posts",
        "topics",
        "forums",
        "role_permissions",
        "permissions",
        "user_roles",
        "roles",
        "users",
    ):
        op.drop_table(table)
