"""create realtime tables

Revision ID: 20261019_01
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "20261019_01"
down_revision = None
branch_labels = None
depends_on = None


FRIEND_REQUEST_STATUS = sa.Enum("pending", "accepted", "rejected", name="friend_request_status")
MESSAGE_STATUS = sa.Enum("sent", "delivered", "read", name="message_status")


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("full_name", sa.String(length=255), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("avatar_url", sa.String(length=1024), nullable=False),
        sa.Column("bio", sa.String(length=512), nullable=False),
        sa.Column("is_online", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("last_seen", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("email", name="uq_users_email"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_users_full_name", "users", ["full_name"])

    op.create_table(
        "user_friends",
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column("friend_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "courses",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("receiver_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("brief_content", sa.String(length=255), nullable=False),
        sa.Column("is_seen", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("request_status", FRIEND_REQUEST_STATUS, nullable=False, server_default="pending"),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_notifications_receiver", "notifications", ["receiver_id", "sent_at"])
    op.create_index(
        "ix_notifications_pair", "notifications", ["sender_id", "receiver_id", "request_status"]
    )

    op.create_table(
        "chat_rooms",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("room_key", sa.String(length=128), nullable=False),
        sa.Column("user_a_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("user_b_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("user_a_id", "user_b_id", name="uq_chat_room_pair"),
        sa.UniqueConstraint("room_key", name="uq_chat_room_key"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "chat_messages",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "chat_room_id", sa.Integer(), sa.ForeignKey("chat_rooms.id", ondelete="CASCADE"), nullable=False
        ),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("receiver_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("image_url", sa.String(length=1024), nullable=True),
        sa.Column("status", MESSAGE_STATUS, nullable=False, server_default="sent"),
        sa.Column("sent_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("delivered_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("read_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_chat_messages_room", "chat_messages", ["chat_room_id", "created_at"])
    op.create_index("ix_chat_messages_unread", "chat_messages", ["receiver_id", "sender_id", "status"])

    op.create_table(
        "feedback_rooms",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column("course_id", sa.Integer(), sa.ForeignKey("courses.id", ondelete="CASCADE"), nullable=False),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            nullable=False,
        ),
        sa.UniqueConstraint("course_id", name="uq_feedback_room_course"),
        mysql_charset="utf8mb4",
    )

    op.create_table(
        "feedback_messages",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "feedback_room_id",
            sa.Integer(),
            sa.ForeignKey("feedback_rooms.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("sender_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_edited", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("edited_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("edit_window_ends_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("likes", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_feedback_messages_room", "feedback_messages", ["feedback_room_id", "created_at"])

    op.create_table(
        "feedback_message_likes",
        sa.Column("id", sa.Integer(), primary_key=True, nullable=False),
        sa.Column(
            "message_id",
            sa.Integer(),
            sa.ForeignKey("feedback_messages.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.UniqueConstraint("message_id", "user_id", name="uq_feedback_message_like"),
        mysql_charset="utf8mb4",
    )
    op.create_index("ix_feedback_message_likes_message", "feedback_message_likes", ["message_id"])


def downgrade() -> None:
    op.drop_index("ix_feedback_message_likes_message", table_name="feedback_message_likes")
    op.drop_table("feedback_message_likes")
    op.drop_index("ix_feedback_messages_room", table_name="feedback_messages")
    op.drop_table("feedback_messages")
    op.drop_table("feedback_rooms")
    op.drop_index("ix_chat_messages_unread", table_name="chat_messages")
    op.drop_index("ix_chat_messages_room", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_table("chat_rooms")
    op.drop_index("ix_notifications_pair", table_name="notifications")
    op.drop_index("ix_notifications_receiver", table_name="notifications")
    op.drop_table("notifications")
    op.drop_table("courses")
    op.drop_table("user_friends")
    op.drop_index("ix_users_full_name", table_name="users")
    op.drop_table("users")
    FRIEND_REQUEST_STATUS.drop(op.get_bind(), checkfirst=True)
    MESSAGE_STATUS.drop(op.get_bind(), checkfirst=True)
