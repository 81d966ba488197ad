"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-18 09:00:00.000000

"""
from __future__ import annotations

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create accounts, ideas, tags, likes and refresh sessions."""
    op.create_table(
        "user_account",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=True),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar", sa.String(length=500), nullable=True),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column("is_email_verified", sa.Boolean(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("last_login_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("role IN ('user', 'moderator', 'admin')", name="ck_user_account_role"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_user_account_email", "user_account", ["email"], unique=True)
    op.create_index("ix_user_account_deleted_at", "user_account", ["deleted_at"])

    op.create_table(
        "idea",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("author_id", sa.Integer(), nullable=True),
        sa.Column("anonymous_fingerprint", sa.String(length=64), nullable=True),
        sa.Column("author_type", sa.String(length=16), nullable=False),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False),
        sa.Column("view_count", sa.Integer(), nullable=False),
        sa.Column("like_count", sa.Integer(), nullable=False),
        sa.Column("trending_score", sa.Float(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(author_id IS NULL) <> (anonymous_fingerprint IS NULL)",
            name="ck_idea_single_author",
        ),
        sa.CheckConstraint("like_count >= 0", name="ck_idea_like_count"),
        sa.CheckConstraint("view_count >= 0", name="ck_idea_view_count"),
        sa.ForeignKeyConstraint(["author_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_idea_author_id", "idea", ["author_id"])
    op.create_index("ix_idea_anonymous_fingerprint", "idea", ["anonymous_fingerprint"])
    op.create_index("ix_idea_created_at", "idea", ["created_at"])
    op.create_index("ix_idea_like_count", "idea", ["like_count"])
    op.create_index("ix_idea_public_created", "idea", ["is_public", "created_at"])

    op.create_table(
        "idea_tag",
        sa.Column("idea_id", sa.Integer(), nullable=False),
        sa.Column("tag", sa.String(length=50), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(["idea_id"], ["idea.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("idea_id", "tag"),
    )
    op.create_index("ix_idea_tag_tag", "idea_tag", ["tag"])

    op.create_table(
        "idea_like",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("idea_id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=True),
        sa.Column("fingerprint", sa.String(length=64), nullable=True),
        sa.Column("ip_address", sa.String(length=64), nullable=True),
        sa.Column("user_agent", sa.String(length=512), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "(user_id IS NULL) <> (fingerprint IS NULL)",
            name="ck_idea_like_single_identity",
        ),
        sa.ForeignKeyConstraint(["idea_id"], ["idea.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_idea_like_idea_id", "idea_like", ["idea_id"])
    op.create_index("ix_idea_like_user_id", "idea_like", ["user_id"])
    op.create_index("ix_idea_like_created_at", "idea_like", ["created_at"])
    op.create_index(
        "uq_idea_like_user",
        "idea_like",
        ["idea_id", "user_id"],
        unique=True,
        sqlite_where=sa.text("user_id IS NOT NULL"),
        postgresql_where=sa.text("user_id IS NOT NULL"),
    )
    op.create_index(
        "uq_idea_like_fingerprint",
        "idea_like",
        ["idea_id", "fingerprint"],
        unique=True,
        sqlite_where=sa.text("fingerprint IS NOT NULL"),
        postgresql_where=sa.text("fingerprint IS NOT NULL"),
    )

    op.create_table(
        "refresh_token",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("token_hash", sa.String(length=64), nullable=False),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["user_account.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token_hash"),
    )
    op.create_index("ix_refresh_token_user_id", "refresh_token", ["user_id"])


def downgrade() -> None:
    """Drop every table created by :func:`upgrade`."""
    op.drop_index("ix_refresh_token_user_id", table_name="refresh_token")
    op.drop_table("refresh_token")
    op.drop_index("uq_idea_like_fingerprint", table_name="idea_like")
    op.drop_index("uq_idea_like_user", table_name="idea_like")
    op.drop_index("ix_idea_like_created_at", table_name="idea_like")
    op.drop_index("ix_idea_like_user_id", table_name="idea_like")
    op.drop_index("ix_idea_like_idea_id", table_name="idea_like")
    op.drop_table("idea_like")
    op.drop_index("ix_idea_tag_tag", table_name="idea_tag")
    op.drop_table("idea_tag")
    op.drop_index("ix_idea_public_created", table_name="idea")
    op.drop_index("ix_idea_like_count", table_name="idea")
    op.drop_index("ix_idea_created_at", table_name="idea")
    op.drop_index("ix_idea_anonymous_fingerprint", table_name="idea")
    op.drop_index("ix_idea_author_id", table_name="idea")
    op.drop_table("idea")
    op.drop_index("ix_user_account_deleted_at", table_name="user_account")
    op.drop_index("ix_user_account_email", table_name="user_account")
    op.drop_table("user_account")
