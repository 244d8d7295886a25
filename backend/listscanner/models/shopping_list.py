"""
List Scanner Backend — ShoppingList SQLAlchemy Model
=====================================================

What:  ORM model for the `lists` table.

Referential rules:
    - photo_id → photos.id ON DELETE SET NULL: the list survives its
      source photo.
    - items.list_id → lists.id ON DELETE CASCADE: the list owns its items
      (declared on Item; `passive_deletes` lets the database do the work).

Query Patterns:
    - All lists, newest first: ORDER BY created_date DESC
      → idx_lists_created_date
    - List for a photo: WHERE photo_id = :id → idx_lists_photo_id
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from listscanner.database import Base

if TYPE_CHECKING:
    from listscanner.models.item import Item


class ShoppingList(Base):
    """A named shopping list, optionally created from a photo."""

    __tablename__ = "lists"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
    )

    photo_id: Mapped[Optional[int]] = mapped_column(
        Integer,
        ForeignKey("photos.id", ondelete="SET NULL"),
        nullable=True,
        comment="Source photo; NULL once the photo is deleted",
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Display name, defaults to the creation time",
    )

    created_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        comment="When the list was created (UTC)",
    )

    items: Mapped[List["Item"]] = relationship(
        back_populates="shopping_list",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Item.position",
        lazy="raise",
    )

    __table_args__ = (
        Index("idx_lists_photo_id", "photo_id"),
        Index("idx_lists_created_date", "created_date"),
    )

    def __repr__(self) -> str:
        return f"<ShoppingList(id={self.id}, name='{self.name}', photo_id={self.photo_id})>"
