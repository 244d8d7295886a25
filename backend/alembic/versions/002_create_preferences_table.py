"""Create preferences table

Revision ID: 002
Revises: 001
Create Date: 2024-04-02 00:00:00.000000+00:00

What:  Key/value table holding the privacy-consent flag and the weekly
       OCR usage counter.

Rollback: downgrade() drops the table; consent must be given again and the
          usage count restarts at zero.
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "preferences",
        sa.Column("key", sa.String(64), nullable=False),
        sa.Column("value", sa.String(255), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )


def downgrade() -> None:
    op.drop_table("preferences")
