"""
List Scanner Backend — ORM Models
==================================

Importing this package registers every table with `Base.metadata`
(used by `create_schema()` and Alembic autogenerate).

    photos ──< lists ──< items
      (SET NULL)   (CASCADE)

    preferences (key/value, standalone)
"""

from listscanner.models.item import Item
from listscanner.models.list_with_counts import ListWithCounts
from listscanner.models.photo import OcrStatus, Photo
from listscanner.models.preference import Preference
from listscanner.models.shopping_list import ShoppingList

__all__ = ["Item", "ListWithCounts", "OcrStatus", "Photo", "Preference", "ShoppingList"]
