"""
List Scanner Backend — Lists Overview Read Model
=================================================

What:  One row of the lists overview: a ShoppingList joined with its item
       counts and the file path of its source photo.
Who:   Produced by ListDao.observe_all_with_counts(); serialized by
       schemas.shopping_list.ListWithCountsResponse.

Not a table: built from
    lists LEFT JOIN items LEFT JOIN photos GROUP BY lists.id
"""

from dataclasses import dataclass
from typing import Optional

from listscanner.models.shopping_list import ShoppingList


@dataclass(frozen=True)
class ListWithCounts:
    shopping_list: ShoppingList
    item_count: int
    checked_count: int
    photo_file_path: Optional[str]

    @property
    def unchecked_count(self) -> int:
        return self.item_count - self.checked_count
