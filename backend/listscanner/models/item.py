"""
List Scanner Backend — Item SQLAlchemy Model
=============================================

What:  ORM model for the `items` table: one checkable line of a list.

Constraints:
    - list_id is required and cascades on list deletion
    - text is 2-200 characters (normalized by the parser / repositories
      before it gets here; the CHECK is the last line of defense)
    - position is non-negative; display order within a list. Values are
      gap tolerant and are not unique-constrained so a reorder can be
      written one row at a time.
"""

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, CheckConstraint, ForeignKey, Index, Integer, String, false
from sqlalchemy.orm import Mapped, mapped_column, relationship

from listscanner.database import Base

if TYPE_CHECKING:
    from listscanner.models.shopping_list import ShoppingList

MIN_ITEM_LENGTH = 2
MAX_ITEM_LENGTH = 200


class Item(Base):
    """A single entry on a shopping list."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    list_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("lists.id", ondelete="CASCADE"),
        nullable=False,
    )

    text: Mapped[str] = mapped_column(
        String(MAX_ITEM_LENGTH),
        nullable=False,
    )

    is_checked: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        server_default=false(),
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
    )

    shopping_list: Mapped["ShoppingList"] = relationship(back_populates="items", lazy="raise")

    __table_args__ = (
        CheckConstraint(
            f"length(text) >= {MIN_ITEM_LENGTH} AND length(text) <= {MAX_ITEM_LENGTH}",
            name="ck_items_text_length",
        ),
        CheckConstraint("position >= 0", name="ck_items_position_non_negative"),
        Index("idx_items_list_id", "list_id"),
        Index("idx_items_list_id_position", "list_id", "position"),
    )

    def __repr__(self) -> str:
        return (
            f"<Item(id={self.id}, list_id={self.list_id}, position={self.position}, "
            f"is_checked={self.is_checked})>"
        )
