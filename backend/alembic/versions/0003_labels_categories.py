"""create labels, categories and note links

Revision ID: 0003_labels_categories
Revises: 0002_notes
Create Date: 2026-10-03 14:05:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "0003_labels_categories"
down_revision = "0002_notes"
branch_labels = None
depends_on = None


def _timestamp(name: str) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.current_timestamp(),
    )


def upgrade() -> None:
    op.create_table(
        "labels",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False, server_default="#667eea"),
        sa.Column("icon", sa.String(length=50), nullable=False, server_default="🏷️"),
        sa.Column("description", sa.Text(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_labels_user", ondelete="CASCADE"),
        sa.UniqueConstraint("user_id", "name", name="ux_labels_user_name"),
    )
    op.create_index("ix_labels_user_id", "labels", ["user_id"])
    op.create_index("ix_labels_name", "labels", ["name"])

    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("color", sa.String(length=7), nullable=False, server_default="#28a745"),
        sa.Column("icon", sa.String(length=50), nullable=False, server_default="📁"),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("parent_category_id", sa.Integer(), nullable=True),
        _timestamp("created_at"),
        _timestamp("updated_at"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], name="fk_categories_user", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["parent_category_id"], ["categories.id"], name="fk_categories_parent"
        ),
        sa.UniqueConstraint("user_id", "name", name="ux_categories_user_name"),
    )
    op.create_index("ix_categories_user_id", "categories", ["user_id"])
    op.create_index("ix_categories_name", "categories", ["name"])
    op.create_index("ix_categories_parent_category_id", "categories", ["parent_category_id"])

    op.create_table(
        "note_labels",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("note_id", sa.Integer(), nullable=False),
        sa.Column("label_id", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], name="fk_note_labels_note", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["label_id"], ["labels.id"], name="fk_note_labels_label"),
        sa.UniqueConstraint("note_id", "label_id", name="ux_note_labels_pair"),
    )
    op.create_index("ix_note_labels_note_id", "note_labels", ["note_id"])
    op.create_index("ix_note_labels_label_id", "note_labels", ["label_id"])

    op.create_table(
        "note_categories",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("note_id", sa.Integer(), nullable=False),
        sa.Column("category_id", sa.Integer(), nullable=False),
        _timestamp("created_at"),
        sa.ForeignKeyConstraint(["note_id"], ["notes.id"], name="fk_note_categories_note", ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["category_id"], ["categories.id"], name="fk_note_categories_category"
        ),
        sa.UniqueConstraint("note_id", "category_id", name="ux_note_categories_pair"),
    )
    op.create_index("ix_note_categories_note_id", "note_categories", ["note_id"])
    op.create_index("ix_note_categories_category_id", "note_categories", ["category_id"])


def downgrade() -> None:
    op.drop_index("ix_note_categories_category_id", table_name="note_categories")
    op.drop_index("ix_note_categories_note_id", table_name="note_categories")
    op.drop_table("note_categories")
    op.drop_index("ix_note_labels_label_id", table_name="note_labels")
    op.drop_index("ix_note_labels_note_id", table_name="note_labels")
    op.drop_table("note_labels")
    op.drop_index("ix_categories_parent_category_id", table_name="categories")
    op.drop_index("ix_categories_name", table_name="categories")
    op.drop_index("ix_categories_user_id", table_name="categories")
    op.drop_table("categories")
    op.drop_index("ix_labels_name", table_name="labels")
    op.drop_index("ix_labels_user_id", table_name="labels")
    op.drop_table("labels")
