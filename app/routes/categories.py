# app/routes/categories.py
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Query, status

from app.deps.security import require_staff
from app.deps.services import get_category_service
from app.errors import NotFoundError
from app.schemas import ApiResponse, CategoryCreate, CategoryRead, CategoryUpdate
from app.services.categories import CategoryService

router = APIRouter(prefix="/categories", tags=["Categories"])


def _not_found(category_id: str) -> NotFoundError:
    return NotFoundError(f"Category with id {category_id} not found")


@router.get(
    "",
    response_model=ApiResponse[List[CategoryRead]],
    response_model_exclude_none=True,
)
async def list_categories(
    sort_by: Optional[Literal["name"]] = Query(default=None, alias="sortBy"),
    order: Literal["asc", "desc"] = Query(default="asc"),
    service: CategoryService = Depends(get_category_service),
):
    categories = await service.list_categories(sort_by=sort_by, order=order)
    return ApiResponse(message="Get all categories", data=categories, count=len(categories))


@router.get("/{id}", response_model=ApiResponse[CategoryRead], response_model_exclude_none=True)
async def get_category(id: str, service: CategoryService = Depends(get_category_service)):
    category = await service.get_category(id)
    if category is None:
        raise _not_found(id)
    return ApiResponse(message="Category found", data=category)


@router.post(
    "",
    response_model=ApiResponse[CategoryRead],
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_staff)],
)
async def create_category(
    payload: CategoryCreate, service: CategoryService = Depends(get_category_service)
):
    category = await service.create_category(payload)
    return ApiResponse(message="Category created successfully", data=category)


@router.put(
    "/{id}",
    response_model=ApiResponse[CategoryRead],
    response_model_exclude_none=True,
    dependencies=[Depends(require_staff)],
)
async def update_category(
    id: str,
    payload: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
):
    category = await service.update_category(id, payload)
    if category is None:
        raise _not_found(id)
    return ApiResponse(message="Category updated successfully", data=category)


@router.delete(
    "/{id}",
    response_model=ApiResponse,
    response_model_exclude_none=True,
    dependencies=[Depends(require_staff)],
)
async def delete_category(id: str, service: CategoryService = Depends(get_category_service)):
    if not await service.delete_category(id):
        raise _not_found(id)
    return ApiResponse(message="Category deleted successfully")
