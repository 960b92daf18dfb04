"""
Category lifecycle: create, rename and delete categories.

Deletion is split into ensure_deletable() and remove() so a caller with a
transactional store can run both inside one session. delete() simply runs the
two steps back to back, which is not atomic: a product inserted between them
will be left pointing at a deleted category.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo import ReturnDocument

from database import create_document, get_documents
from errors import AlreadyExists, NotFound, StillReferenced, ValidationFailed
from schemas import Category
from utils import slugify, to_object_id
from validators import validate_category_name

logger = logging.getLogger(__name__)


class CategoryManager:
    def __init__(self, database):
        self.database = database
        self.collection = database["category"]
        self.products = database["product"]

    def create(self, name: Optional[str]) -> Dict[str, Any]:
        error = validate_category_name(name)
        if error:
            raise ValidationFailed(error)
        trimmed = name.strip()
        if self.collection.find_one({"name": trimmed}):
            raise AlreadyExists("Category Already Exists")
        category = Category(name=trimmed, slug=slugify(trimmed))
        category_id = create_document("category", category, self.database)
        logger.info("Created category %s (%s)", trimmed, category_id)
        return self.collection.find_one({"_id": ObjectId(category_id)})

    def update(self, category_id: str, name: Optional[str]) -> Dict[str, Any]:
        error = validate_category_name(name)
        if error:
            raise ValidationFailed(error)
        trimmed = name.strip()
        updated = self.collection.find_one_and_update(
            {"_id": to_object_id(category_id)},
            {"$set": {"name": trimmed, "slug": slugify(trimmed), "updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFound("Category not found")
        logger.info("Updated category %s", category_id)
        return updated

    def ensure_deletable(self, category_id: str) -> None:
        if self.products.find_one({"category": to_object_id(category_id)}, {"_id": 1}):
            raise StillReferenced("Cannot delete category with associated products")

    def remove(self, category_id: str) -> None:
        result = self.collection.delete_one({"_id": to_object_id(category_id)})
        if result.deleted_count == 0:
            raise NotFound("Category not found")
        logger.info("Deleted category %s", category_id)

    def delete(self, category_id: str) -> None:
        self.ensure_deletable(category_id)
        self.remove(category_id)

    def list_all(self) -> List[Dict[str, Any]]:
        return get_documents("category", database=self.database)

    def get_by_slug(self, slug: str) -> Optional[Dict[str, Any]]:
        return self.collection.find_one({"slug": slug})
