"""
List Scanner Backend — Item Schemas
====================================
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class ItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    list_id: int
    text: str
    is_checked: bool
    position: int


class ItemListResponse(BaseModel):
    items: List[ItemResponse]


class AddItemRequest(BaseModel):
    text: str = Field(max_length=1_000, description="Item text; trimmed and capped at 200 characters")


class UpdateItemRequest(BaseModel):
    """Partial update: any combination of text and checked state."""

    text: Optional[str] = Field(default=None, max_length=1_000)
    is_checked: Optional[bool] = None

    @model_validator(mode="after")
    def require_a_change(self) -> "UpdateItemRequest":
        if self.text is None and self.is_checked is None:
            raise ValueError("Provide text and/or is_checked")
        return self


class ReorderItemsRequest(BaseModel):
    item_ids: List[int] = Field(description="Every item id of the list, in the new order")
