"""
List Scanner Backend — Item Route Handlers
===========================================

What:  Edit (text and/or checked state) and delete a single item.
"""

from fastapi import APIRouter, Depends

from listscanner.exceptions import NotFoundError
from listscanner.result import unwrap
from listscanner.routes.dependencies import AppServices, get_services
from listscanner.schemas.common import ErrorResponse
from listscanner.schemas.item import ItemResponse, UpdateItemRequest

router = APIRouter(prefix="/api/items", tags=["Items"])


@router.patch(
    "/{item_id}",
    response_model=ItemResponse,
    responses={
        400: {"description": "Item text too short", "model": ErrorResponse},
        404: {"description": "Item not found", "model": ErrorResponse},
    },
    summary="Edit an item",
)
async def update_item(
    item_id: int,
    body: UpdateItemRequest,
    services: AppServices = Depends(get_services),
) -> ItemResponse:
    edited = unwrap(
        await services.items.edit_item(item_id, text=body.text, is_checked=body.is_checked)
    )
    if not edited:
        raise NotFoundError(resource="item", resource_id=str(item_id))

    item = unwrap(await services.items.get_item_by_id(item_id))
    if item is None:
        raise NotFoundError(resource="item", resource_id=str(item_id))
    return ItemResponse.model_validate(item)


@router.post(
    "/{item_id}/toggle",
    response_model=ItemResponse,
    responses={404: {"description": "Item not found", "model": ErrorResponse}},
    summary="Flip an item's checked state",
)
async def toggle_item(item_id: int, services: AppServices = Depends(get_services)) -> ItemResponse:
    if unwrap(await services.items.toggle_item_checked(item_id)) is None:
        raise NotFoundError(resource="item", resource_id=str(item_id))
    return ItemResponse.model_validate(unwrap(await services.items.get_item_by_id(item_id)))


@router.delete(
    "/{item_id}",
    status_code=204,
    responses={404: {"description": "Item not found", "model": ErrorResponse}},
    summary="Delete an item",
)
async def delete_item(item_id: int, services: AppServices = Depends(get_services)) -> None:
    if not unwrap(await services.items.delete_item(item_id)):
        raise NotFoundError(resource="item", resource_id=str(item_id))
