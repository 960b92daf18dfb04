"""
User accounts and orders: registration, login, password reset, profile updates,
order listing and order status changes.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from bson import ObjectId
from email_validator import EmailNotValidError, validate_email
from pydantic import ValidationError
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from database import create_document
from errors import ApiError, NotFound, ValidationFailed
from schemas import ForgotPasswordRequest, ProfileUpdateRequest, RegisterRequest, User
from security import create_token, hash_password, verify_password
from utils import to_object_id
from validators import validate_password_reset, validate_profile_password, validate_registration

logger = logging.getLogger(__name__)

PRIVATE_USER_FIELDS = ("password_hash", "answer")


def public_user(user: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not user:
        return user
    return {k: v for k, v in user.items() if k not in PRIVATE_USER_FIELDS}


def canonical_email(email: str) -> Optional[str]:
    """Normalized address used for storage and every lookup, or None when malformed."""
    try:
        return validate_email(email.strip(), check_deliverability=False).normalized
    except EmailNotValidError:
        return None


class AccountManager:
    def __init__(self, database):
        self.database = database
        self.users = database["user"]
        self.orders = database["order"]
        self.products = database["product"]

    # Auth

    def register(self, payload: RegisterRequest) -> Dict[str, Any]:
        error = validate_registration(payload)
        if error:
            raise ValidationFailed(error)
        email = canonical_email(payload.email)
        if email is None:
            raise ValidationFailed("Email is invalid")
        if self.users.find_one({"email": email}):
            # Reported with 200 and success=false, as the client expects
            raise ApiError("Already registered, please log in", status_code=200)
        try:
            user = User(
                name=payload.name.strip(),
                email=email,
                password_hash=hash_password(payload.password),
                phone=payload.phone,
                address=payload.address,
                answer=payload.answer,
            )
        except ValidationError:
            raise ValidationFailed("Email is invalid")
        try:
            user_id = create_document("user", user, self.database)
        except DuplicateKeyError:
            raise ApiError("Already registered, please log in", status_code=200)
        logger.info("Registered user %s", user_id)
        return public_user(self.users.find_one({"_id": ObjectId(user_id)}))

    def login(self, email: Optional[str], password: Optional[str]) -> Tuple[Dict[str, Any], str]:
        if not email or not password:
            raise NotFound("Invalid email or password")
        email = canonical_email(email)
        user = self.users.find_one({"email": email}) if email else None
        if not user:
            raise NotFound("Email is not registered")
        if not verify_password(password, user.get("password_hash", "")):
            raise ApiError("Invalid password", status_code=200)
        return public_user(user), create_token(user)

    def forgot_password(self, payload: ForgotPasswordRequest) -> None:
        error = validate_password_reset(payload)
        if error:
            raise ValidationFailed(error)
        email = canonical_email(payload.email)
        user = self.users.find_one({"email": email, "answer": payload.answer}) if email else None
        if not user:
            raise NotFound("Wrong email or answer")
        self.users.update_one(
            {"_id": user["_id"]},
            {"$set": {"password_hash": hash_password(payload.newPassword), "updated_at": datetime.now(timezone.utc)}},
        )
        logger.info("Password reset for user %s", user["_id"])

    # Profile

    def update_profile(self, user_id: Any, update: ProfileUpdateRequest) -> Dict[str, Any]:
        """
        Apply a partial profile update.

        Absent or empty fields fall back to the stored values. The password is
        only rehashed when a new one of sufficient length is supplied; all four
        fields are written back either way.
        """
        user = self.users.find_one({"_id": to_object_id(user_id)})
        if not user:
            raise NotFound("User not found")
        error = validate_profile_password(update.password)
        if error:
            raise ValidationFailed(error)

        password_hash = hash_password(update.password) if update.password else user.get("password_hash")
        changes = {
            "name": update.name or user.get("name"),
            "password_hash": password_hash,
            "phone": update.phone or user.get("phone"),
            "address": update.address or user.get("address"),
        }
        updated = self.users.find_one_and_update(
            {"_id": user["_id"]},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        logger.info("Updated profile for user %s", user["_id"])
        return public_user(updated)

    # Orders

    def _populate(self, orders: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        product_ids = {pid for o in orders for pid in o.get("products", [])}
        buyer_ids = {o.get("buyer") for o in orders if o.get("buyer") is not None}
        products = {}
        if product_ids:
            products = {p["_id"]: p for p in self.products.find({"_id": {"$in": list(product_ids)}}, {"photo": 0})}
        buyers = {}
        if buyer_ids:
            buyers = {u["_id"]: u for u in self.users.find({"_id": {"$in": list(buyer_ids)}}, {"name": 1})}
        for o in orders:
            o["products"] = [products[pid] for pid in o.get("products", []) if pid in products]
            o["buyer"] = buyers.get(o.get("buyer"))
        return orders

    def list_orders(self, buyer_id: Any = None) -> List[Dict[str, Any]]:
        """Orders for one buyer, or every order (newest first) when buyer_id is None."""
        if buyer_id is not None:
            cursor = self.orders.find({"buyer": to_object_id(buyer_id)})
        else:
            cursor = self.orders.find({}).sort("created_at", -1)
        return self._populate(list(cursor))

    def update_order_status(self, order_id: str, status: str) -> Optional[Dict[str, Any]]:
        # No transition rules: any label replaces the current one
        updated = self.orders.find_one_and_update(
            {"_id": to_object_id(order_id)},
            {"$set": {"status": status, "updated_at": datetime.now(timezone.utc)}},
            return_document=ReturnDocument.AFTER,
        )
        logger.info("Order %s status set to %r", order_id, status)
        return updated
