"""Create photos, lists and items tables

Revision ID: 001
Revises: None
Create Date: 2024-03-15 00:00:00.000000+00:00

What:  Initial schema.

    photos ──< lists ──< items
      (ON DELETE SET NULL)  (ON DELETE CASCADE)

Rollback: downgrade() drops all three tables (destructive).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "photos",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "file_path",
            sa.String(512),
            nullable=False,
            comment="Location of the stored image file",
        ),
        sa.Column(
            "timestamp",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
            comment="Capture time (UTC)",
        ),
        sa.Column(
            "ocr_status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'PENDING'"),
            comment="OCR progress: PENDING, PROCESSING, COMPLETED, FAILED",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.CheckConstraint("length(file_path) > 0", name="ck_photos_file_path_not_empty"),
        sa.CheckConstraint(
            "ocr_status IN ('PENDING', 'PROCESSING', 'COMPLETED', 'FAILED')",
            name="ocr_status",
        ),
    )
    op.create_index("idx_photos_ocr_status", "photos", ["ocr_status"])
    op.create_index("idx_photos_timestamp", "photos", ["timestamp"])

    op.create_table(
        "lists",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column(
            "photo_id",
            sa.Integer(),
            nullable=True,
            comment="Source photo; NULL once the photo is deleted",
        ),
        sa.Column(
            "name",
            sa.String(100),
            nullable=False,
            comment="Display name, defaults to the creation time",
        ),
        sa.Column(
            "created_date",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
            comment="When the list was created (UTC)",
        ),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["photo_id"], ["photos.id"], ondelete="SET NULL"),
    )
    op.create_index("idx_lists_photo_id", "lists", ["photo_id"])
    op.create_index("idx_lists_created_date", "lists", ["created_date"])

    op.create_table(
        "items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("list_id", sa.Integer(), nullable=False),
        sa.Column("text", sa.String(200), nullable=False),
        sa.Column(
            "is_checked",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        sa.Column("position", sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["list_id"], ["lists.id"], ondelete="CASCADE"),
        sa.CheckConstraint(
            "length(text) >= 2 AND length(text) <= 200",
            name="ck_items_text_length",
        ),
        sa.CheckConstraint("position >= 0", name="ck_items_position_non_negative"),
    )
    op.create_index("idx_items_list_id", "items", ["list_id"])
    op.create_index("idx_items_list_id_position", "items", ["list_id", "position"])


def downgrade() -> None:
    """Drop all tables, children first. All data is lost."""
    op.drop_index("idx_items_list_id_position", table_name="items")
    op.drop_index("idx_items_list_id", table_name="items")
    op.drop_table("items")

    op.drop_index("idx_lists_created_date", table_name="lists")
    op.drop_index("idx_lists_photo_id", table_name="lists")
    op.drop_table("lists")

    op.drop_index("idx_photos_timestamp", table_name="photos")
    op.drop_index("idx_photos_ocr_status", table_name="photos")
    op.drop_table("photos")
