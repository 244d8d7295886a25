"""
List Scanner Backend — Shopping List Schemas
=============================================

Request bodies are validated here; text normalization of items happens in
the repositories, so an item request only enforces presence and a sane
upper bound on raw length.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from listscanner.models.list_with_counts import ListWithCounts


class ShoppingListResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    photo_id: Optional[int]
    name: str
    created_date: datetime


class ListSummaryResponse(ShoppingListResponse):
    """One row of the lists overview."""

    item_count: int
    checked_count: int
    unchecked_count: int
    photo_file_path: Optional[str] = None

    @classmethod
    def from_counts(cls, row: ListWithCounts) -> "ListSummaryResponse":
        shopping_list = row.shopping_list
        return cls(
            id=shopping_list.id,
            photo_id=shopping_list.photo_id,
            name=shopping_list.name,
            created_date=shopping_list.created_date,
            item_count=row.item_count,
            checked_count=row.checked_count,
            unchecked_count=row.unchecked_count,
            photo_file_path=row.photo_file_path,
        )


class ListOverviewResponse(BaseModel):
    lists: List[ListSummaryResponse]


class CreateListFromTextRequest(BaseModel):
    """
    Text to turn into a list, e.g. pasted from another app or produced by an
    OCR engine running on the client.
    """

    text: str = Field(max_length=20_000, description="Raw text, one item per line")
    photo_id: Optional[int] = Field(default=None, description="Source photo, if any")


class CreateListResponse(BaseModel):
    message: str = Field(default="List created successfully")
    list_id: int


class RenameListRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("List name cannot be blank")
        return v.strip()
