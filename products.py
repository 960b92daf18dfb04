"""
Product lifecycle and catalog queries.

ProductManager owns create/update/delete for products along with the read-only
listing, search and filter operations. The query builders at the top of the
module are pure functions: given request parameters they return the Mongo
filter that will be issued, which keeps them easy to test in isolation.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from pymongo import ReturnDocument

from database import create_document
from errors import NotFound, StillReferenced, ValidationFailed
from schemas import PhotoUpload, Product, ProductFields, ProductPhoto
from utils import slugify, to_object_id
from validators import parse_non_negative_number, validate_product_fields

logger = logging.getLogger(__name__)

PER_PAGE = 6
RELATED_LIMIT = 3
LISTING_LIMIT = 12

WITHOUT_PHOTO = {"photo": 0}

_TRUE_STRINGS = {"1", "true", "yes", "on"}


# Query builders

def build_filter_query(checked: Optional[Sequence[str]], radio: Optional[Sequence[float]]) -> Dict[str, Any]:
    """AND of the category set and the price range; a missing dimension is unconstrained."""
    query: Dict[str, Any] = {}
    if checked:
        query["category"] = {"$in": [to_object_id(c) for c in checked]}
    if radio and len(radio) == 2:
        query["price"] = {"$gte": radio[0], "$lte": radio[1]}
    return query


def build_related_query(product_id: str, category_id: str) -> Dict[str, Any]:
    return {
        "category": to_object_id(category_id),
        "_id": {"$ne": to_object_id(product_id)},
    }


def build_search_query(keyword: str) -> Dict[str, Any]:
    pattern = re.escape(keyword)
    return {
        "$or": [
            {"name": {"$regex": pattern, "$options": "i"}},
            {"description": {"$regex": pattern, "$options": "i"}},
        ]
    }


def page_window(page: Any) -> Tuple[int, int]:
    """Return (skip, limit) for a 1-indexed page; anything unusable means page 1."""
    try:
        number = int(page)
    except (TypeError, ValueError):
        number = 1
    if number < 1:
        number = 1
    return (number - 1) * PER_PAGE, PER_PAGE


def _parse_shipping(value: Any) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in _TRUE_STRINGS


def _as_quantity(value: float):
    return int(value) if value.is_integer() else value


class ProductManager:
    def __init__(self, database):
        self.database = database
        self.collection = database["product"]
        self.categories = database["category"]
        self.orders = database["order"]

    # Writes

    def _validated_record(self, fields: ProductFields, photo: Optional[PhotoUpload], photo_required: bool) -> Dict[str, Any]:
        error = validate_product_fields(
            fields,
            photo_size=photo.size if photo is not None else None,
            photo_required=photo_required,
        )
        if error:
            raise ValidationFailed(error)

        category = self.categories.find_one({"_id": to_object_id(fields.category.strip())})
        if not category:
            raise NotFound("Category not found")

        name = fields.name.strip()
        record: Dict[str, Any] = {
            "name": name,
            "slug": slugify(name),
            "description": fields.description.strip(),
            "price": parse_non_negative_number(fields.price),
            "quantity": _as_quantity(parse_non_negative_number(fields.quantity)),
            "category": category["_id"],
        }
        shipping = _parse_shipping(fields.shipping)
        if shipping is not None:
            record["shipping"] = shipping
        return record

    def create(self, fields: ProductFields, photo: Optional[PhotoUpload]) -> Dict[str, Any]:
        record = self._validated_record(fields, photo, photo_required=True)
        product = Product(
            **record,
            photo=ProductPhoto(data=photo.data, content_type=photo.content_type),
        )
        product_id = create_document("product", product, self.database)
        logger.info("Created product %s (%s)", record["name"], product_id)
        return self.collection.find_one({"_id": ObjectId(product_id)}, WITHOUT_PHOTO)

    def update(self, product_id: str, fields: ProductFields, photo: Optional[PhotoUpload] = None) -> Dict[str, Any]:
        record = self._validated_record(fields, photo, photo_required=False)
        record["updated_at"] = datetime.now(timezone.utc)
        oid = to_object_id(product_id)
        updated = self.collection.find_one_and_update(
            {"_id": oid},
            {"$set": record},
            projection=WITHOUT_PHOTO,
            return_document=ReturnDocument.AFTER,
        )
        if not updated:
            raise NotFound("Product not found")
        if photo is not None:
            self.collection.update_one(
                {"_id": oid},
                {"$set": {"photo": {"data": photo.data, "content_type": photo.content_type}}},
            )
        logger.info("Updated product %s", product_id)
        return updated

    def ensure_deletable(self, product_id: str) -> None:
        if self.orders.find_one({"products": to_object_id(product_id)}, {"_id": 1}):
            raise StillReferenced("Cannot delete product associated with orders")

    def remove(self, product_id: str) -> None:
        result = self.collection.delete_one({"_id": to_object_id(product_id)})
        if result.deleted_count == 0:
            raise NotFound("Product not found")
        logger.info("Deleted product %s", product_id)

    def delete(self, product_id: str) -> None:
        self.ensure_deletable(product_id)
        self.remove(product_id)

    # Reads

    def _with_categories(self, products: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        ids = {p.get("category") for p in products if p.get("category") is not None}
        if not ids:
            return products
        by_id = {c["_id"]: c for c in self.categories.find({"_id": {"$in": list(ids)}})}
        for p in products:
            if p.get("category") in by_id:
                p["category"] = by_id[p["category"]]
        return products

    def list_recent(self) -> List[Dict[str, Any]]:
        cursor = self.collection.find({}, WITHOUT_PHOTO).sort("created_at", -1).limit(LISTING_LIMIT)
        return self._with_categories(list(cursor))

    def get_by_slug(self, slug: str) -> Dict[str, Any]:
        product = self.collection.find_one({"slug": slug}, WITHOUT_PHOTO)
        if not product:
            raise NotFound("Product not found")
        return self._with_categories([product])[0]

    def get_photo(self, product_id: str) -> Dict[str, Any]:
        doc = self.collection.find_one({"_id": to_object_id(product_id)}, {"photo": 1})
        photo = (doc or {}).get("photo") or {}
        if not photo.get("data"):
            raise NotFound("Photo not found")
        return photo

    def count(self) -> int:
        return self.collection.estimated_document_count()

    def list_page(self, page: Any = None) -> List[Dict[str, Any]]:
        skip, limit = page_window(page)
        cursor = self.collection.find({}, WITHOUT_PHOTO).sort("created_at", -1).skip(skip).limit(limit)
        return list(cursor)

    def filter(self, checked: Optional[Sequence[str]], radio: Optional[Sequence[float]]) -> List[Dict[str, Any]]:
        return list(self.collection.find(build_filter_query(checked, radio), WITHOUT_PHOTO))

    def search(self, keyword: str) -> List[Dict[str, Any]]:
        return list(self.collection.find(build_search_query(keyword), WITHOUT_PHOTO))

    def related(self, product_id: str, category_id: str) -> List[Dict[str, Any]]:
        cursor = self.collection.find(build_related_query(product_id, category_id), WITHOUT_PHOTO).limit(RELATED_LIMIT)
        return self._with_categories(list(cursor))

    def by_category_slug(self, slug: str) -> Tuple[Optional[Dict[str, Any]], List[Dict[str, Any]]]:
        category = self.categories.find_one({"slug": slug})
        if not category:
            return None, []
        products = list(self.collection.find({"category": category["_id"]}, WITHOUT_PHOTO))
        return category, self._with_categories(products)
