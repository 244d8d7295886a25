"""
List Scanner Backend — Shopping List Route Handlers
====================================================

What:  Lists overview, list detail/rename/delete, list creation from text
       and the items of a list (read, append, reorder).
"""

import logging

from fastapi import APIRouter, Depends

from listscanner.exceptions import NotFoundError
from listscanner.models.shopping_list import ShoppingList
from listscanner.result import unwrap
from listscanner.routes.dependencies import AppServices, get_services
from listscanner.schemas.common import ErrorResponse
from listscanner.schemas.item import AddItemRequest, ItemListResponse, ItemResponse, ReorderItemsRequest
from listscanner.schemas.shopping_list import (
    CreateListFromTextRequest,
    CreateListResponse,
    ListOverviewResponse,
    ListSummaryResponse,
    RenameListRequest,
    ShoppingListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/lists", tags=["Lists"])


async def _get_list_or_404(services: AppServices, list_id: int) -> ShoppingList:
    shopping_list = unwrap(await services.lists.get_list_by_id(list_id))
    if shopping_list is None:
        raise NotFoundError(resource="list", resource_id=str(list_id))
    return shopping_list


@router.post(
    "/from-text",
    status_code=201,
    response_model=CreateListResponse,
    responses={
        422: {"description": "No list items detected", "model": ErrorResponse},
        500: {"description": "List could not be created", "model": ErrorResponse},
    },
    summary="Create a list from recognized text",
)
async def create_list_from_text(
    body: CreateListFromTextRequest,
    services: AppServices = Depends(get_services),
) -> CreateListResponse:
    if body.photo_id is not None:
        photo = unwrap(await services.photos.get_photo_by_id(body.photo_id))
        if photo is None:
            raise NotFoundError(resource="photo", resource_id=str(body.photo_id))

    list_id = unwrap(await services.list_creation.create_list_from_text(body.photo_id, body.text))
    return CreateListResponse(list_id=list_id)


@router.get(
    "",
    response_model=ListOverviewResponse,
    summary="All lists with item counts, newest first",
)
async def list_lists(services: AppServices = Depends(get_services)) -> ListOverviewResponse:
    rows = unwrap(await services.lists.get_all_lists_with_counts())
    return ListOverviewResponse(lists=[ListSummaryResponse.from_counts(row) for row in rows])


@router.get(
    "/{list_id}",
    response_model=ShoppingListResponse,
    responses={404: {"description": "List not found", "model": ErrorResponse}},
    summary="Get a list",
)
async def get_list(list_id: int, services: AppServices = Depends(get_services)) -> ShoppingListResponse:
    return ShoppingListResponse.model_validate(await _get_list_or_404(services, list_id))


@router.patch(
    "/{list_id}",
    response_model=ShoppingListResponse,
    responses={404: {"description": "List not found", "model": ErrorResponse}},
    summary="Rename a list",
)
async def rename_list(
    list_id: int,
    body: RenameListRequest,
    services: AppServices = Depends(get_services),
) -> ShoppingListResponse:
    renamed = unwrap(await services.lists.rename_list(list_id, body.name))
    if not renamed:
        raise NotFoundError(resource="list", resource_id=str(list_id))
    return ShoppingListResponse.model_validate(await _get_list_or_404(services, list_id))


@router.delete(
    "/{list_id}",
    status_code=204,
    responses={404: {"description": "List not found", "model": ErrorResponse}},
    summary="Delete a list and its items",
    description="The source photo, if any, goes back to PENDING so it can be scanned again.",
)
async def delete_list(list_id: int, services: AppServices = Depends(get_services)) -> None:
    deleted = unwrap(await services.lists.delete_list_and_reset_photo(list_id))
    if not deleted:
        raise NotFoundError(resource="list", resource_id=str(list_id))


@router.get(
    "/{list_id}/items",
    response_model=ItemListResponse,
    responses={404: {"description": "List not found", "model": ErrorResponse}},
    summary="Items of a list in display order",
)
async def list_items(list_id: int, services: AppServices = Depends(get_services)) -> ItemListResponse:
    await _get_list_or_404(services, list_id)
    items = unwrap(await services.items.get_items_for_list(list_id))
    return ItemListResponse(items=[ItemResponse.model_validate(item) for item in items])


@router.post(
    "/{list_id}/items",
    status_code=201,
    response_model=ItemResponse,
    responses={
        400: {"description": "Item text too short", "model": ErrorResponse},
        404: {"description": "List not found", "model": ErrorResponse},
    },
    summary="Append an item to a list",
)
async def add_item(
    list_id: int,
    body: AddItemRequest,
    services: AppServices = Depends(get_services),
) -> ItemResponse:
    await _get_list_or_404(services, list_id)
    item_id = unwrap(await services.items.add_item(list_id, body.text))
    item = unwrap(await services.items.get_item_by_id(item_id))
    return ItemResponse.model_validate(item)


@router.put(
    "/{list_id}/items/order",
    response_model=ItemListResponse,
    responses={
        400: {"description": "Order does not match the list's items", "model": ErrorResponse},
        404: {"description": "List not found", "model": ErrorResponse},
    },
    summary="Reorder the items of a list",
)
async def reorder_items(
    list_id: int,
    body: ReorderItemsRequest,
    services: AppServices = Depends(get_services),
) -> ItemListResponse:
    await _get_list_or_404(services, list_id)
    unwrap(await services.items.reorder_items(list_id, body.item_ids))
    items = unwrap(await services.items.get_items_for_list(list_id))
    return ItemListResponse(items=[ItemResponse.model_validate(item) for item in items])
