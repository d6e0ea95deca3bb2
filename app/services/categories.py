from __future__ import annotations

from typing import Literal, Optional

from app.errors import repository_failures
from app.repositories import CategoryRepository
from app.schemas import CategoryCreate, CategoryRead, CategoryUpdate
from app.utils import SortOrder, sort_records

CategorySortField = Literal["name"]


class CategoryService:
    def __init__(self, repository: CategoryRepository) -> None:
        self._repository = repository

    async def list_categories(
        self,
        *,
        sort_by: Optional[CategorySortField] = None,
        order: SortOrder = "asc",
    ) -> list[CategoryRead]:
        with repository_failures("Failed to retrieve categories"):
            categories = await self._repository.find_all()
        if sort_by:
            categories = sort_records(categories, sort_by, order)
        return categories

    async def get_category(self, category_id: str) -> Optional[CategoryRead]:
        with repository_failures(f"Failed to retrieve category with id {category_id}"):
            return await self._repository.find_by_id(category_id)

    async def create_category(self, payload: CategoryCreate) -> CategoryRead:
        data = {"name": payload.name, "description": payload.description or ""}
        with repository_failures("Failed to create category"):
            return await self._repository.create(data)

    async def update_category(
        self, category_id: str, payload: CategoryUpdate
    ) -> Optional[CategoryRead]:
        with repository_failures(f"Failed to update category with id {category_id}"):
            return await self._repository.update(category_id, payload.changes())

    async def delete_category(self, category_id: str) -> bool:
        with repository_failures(f"Failed to delete category with id {category_id}"):
            return await self._repository.delete(category_id)
