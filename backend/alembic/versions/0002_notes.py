"""create notes and note shares

Revision ID: 0002_notes
Revises: 0001_users
Create Date: 2026-10-02 09:30:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0002_notes"
down_revision = "0001_users"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "notes",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=True),
        sa.Column("encrypted_content", sa.Text(), nullable=True),
        sa.Column("is_encrypted", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("is_draft", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("public_share_id", sa.String(length=50), nullable=True),
        sa.Column("tags", sa.Text(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.Column("published_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("auto_saved_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_notes_user", ondelete="CASCADE"),
    )
    op.create_index("ix_notes_user_id", "notes", ["user_id"])
    op.create_index(
        "ux_notes_public_share_id",
        "notes",
        ["public_share_id"],
        unique=True,
        mssql_where=sa.text("public_share_id IS NOT NULL"),
        sqlite_where=sa.text("public_share_id IS NOT NULL"),
        postgresql_where=sa.text("public_share_id IS NOT NULL"),
    )
    op.create_index("ix_notes_is_draft", "notes", ["is_draft"])
    op.create_index("ix_notes_is_public", "notes", ["is_public"])
    op.create_index("ix_notes_created_at", "notes", ["created_at"])
    op.create_index("ix_notes_user_updated", "notes", ["user_id", "updated_at"])

    op.create_table(
        "note_shares",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("note_id", sa.Integer(), nullable=False),
        sa.Column("shared_with_user_id", sa.Integer(), nullable=True),
        sa.Column("permission", sa.String(length=20), nullable=True, server_default="read"),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.func.current_timestamp(),
        ),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], name="fk_note_shares_note", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["shared_with_user_id"], ["users.id"], name="fk_note_shares_user"
        ),
    )
    op.create_index("ix_note_shares_note_id", "note_shares", ["note_id"])
    op.create_index("ix_note_shares_shared_with_user_id", "note_shares", ["shared_with_user_id"])


def downgrade() -> None:
    op.drop_index("ix_note_shares_shared_with_user_id", table_name="note_shares")
    op.drop_index("ix_note_shares_note_id", table_name="note_shares")
    op.drop_table("note_shares")
    op.drop_index("ix_notes_user_updated", table_name="notes")
    op.drop_index("ix_notes_created_at", table_name="notes")
    op.drop_index("ix_notes_is_public", table_name="notes")
    op.drop_index("ix_notes_is_draft", table_name="notes")
    op.drop_index("ux_notes_public_share_id", table_name="notes")
    op.drop_index("ix_notes_user_id", table_name="notes")
    op.drop_table("notes")
