"""
Request validation rules.

Each validator returns None when the payload is acceptable, otherwise the
message for the first failing field. Fields are always checked in the same
order so the reported error is deterministic.
"""
import math
from typing import Any, Optional

from schemas import ForgotPasswordRequest, ProductFields, RegisterRequest

MAX_PHOTO_BYTES = 1_000_000
MIN_PASSWORD_LENGTH = 6

PRICE_ERROR = "Price is Required and must be a non-negative number"
QUANTITY_ERROR = "Quantity is Required and must be a non-negative number"


def is_blank(value: Any) -> bool:
    return value is None or not str(value).strip()


def parse_non_negative_number(raw: Any) -> Optional[float]:
    """Parse a form or JSON value as a finite number >= 0, or return None."""
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        raw = raw.strip()
        if not raw:
            return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(value) or value < 0:
        return None
    return value


def validate_category_name(name: Optional[str]) -> Optional[str]:
    if is_blank(name):
        return "Name is required"
    return None


def validate_product_fields(fields: ProductFields, photo_size: Optional[int] = None, photo_required: bool = True) -> Optional[str]:
    if is_blank(fields.name):
        return "Name is Required"
    if is_blank(fields.description):
        return "Description is Required"
    if parse_non_negative_number(fields.price) is None:
        return PRICE_ERROR
    if is_blank(fields.category):
        return "Category is Required"
    if parse_non_negative_number(fields.quantity) is None:
        return QUANTITY_ERROR
    if photo_size is None:
        if photo_required:
            return "Photo is Required"
    elif photo_size > MAX_PHOTO_BYTES:
        return "Photo should be less than 1mb"
    return None


def validate_profile_password(password: Optional[str]) -> Optional[str]:
    # An empty password means "keep the current one"
    if password and len(password) < MIN_PASSWORD_LENGTH:
        return f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    return None


_REGISTRATION_FIELDS = (
    ("name", "Name is required"),
    ("email", "Email is required"),
    ("password", "Password is required"),
    ("phone", "Phone number is required"),
    ("address", "Address is required"),
    ("answer", "Answer is required"),
)

_RESET_FIELDS = (
    ("email", "Email is required"),
    ("answer", "Answer is required"),
    ("newPassword", "New password is required"),
)


def validate_registration(payload: RegisterRequest) -> Optional[str]:
    for field, message in _REGISTRATION_FIELDS:
        if is_blank(getattr(payload, field)):
            return message
    return None


def validate_password_reset(payload: ForgotPasswordRequest) -> Optional[str]:
    for field, message in _RESET_FIELDS:
        if is_blank(getattr(payload, field)):
            return message
    return None
