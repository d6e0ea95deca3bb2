from app.repositories.base import DocumentRepository
from app.schemas import CategoryRead

CATEGORIES_COLLECTION = "categories"


class CategoryRepository(DocumentRepository[CategoryRead]):
    collection = CATEGORIES_COLLECTION
    model = CategoryRead
