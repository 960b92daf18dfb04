import pytest

from schemas import ForgotPasswordRequest, ProductFields, RegisterRequest
from validators import (
    MAX_PHOTO_BYTES,
    PRICE_ERROR,
    QUANTITY_ERROR,
    parse_non_negative_number,
    validate_category_name,
    validate_password_reset,
    validate_product_fields,
    validate_profile_password,
    validate_registration,
)


def fields(**overrides):
    data = dict(
        name="Test Product",
        description="A test product",
        price="29.99",
        category="cat123",
        quantity="10",
        shipping="true",
    )
    data.update(overrides)
    return ProductFields(**data)


@pytest.mark.parametrize("name", [None, "", "   ", "\t\n"])
def test_category_name_required(name):
    assert validate_category_name(name) == "Name is required"


def test_category_name_ok():
    assert validate_category_name("  Books ") is None


def test_valid_product_passes():
    assert validate_product_fields(fields(), photo_size=500_000) is None


@pytest.mark.parametrize(
    "overrides, expected",
    [
        ({"name": None}, "Name is Required"),
        ({"name": "   "}, "Name is Required"),
        ({"description": None}, "Description is Required"),
        ({"description": "  "}, "Description is Required"),
        ({"price": None}, PRICE_ERROR),
        ({"price": ""}, PRICE_ERROR),
        ({"price": "abc"}, PRICE_ERROR),
        ({"price": "-1"}, PRICE_ERROR),
        ({"price": -0.01}, PRICE_ERROR),
        ({"category": None}, "Category is Required"),
        ({"category": " "}, "Category is Required"),
        ({"quantity": None}, QUANTITY_ERROR),
        ({"quantity": "ten"}, QUANTITY_ERROR),
        ({"quantity": "-1"}, QUANTITY_ERROR),
    ],
)
def test_product_field_errors(overrides, expected):
    assert validate_product_fields(fields(**overrides), photo_size=10) == expected


def test_product_errors_follow_field_order():
    bad = fields(name="", description="", price="-5", category="", quantity="x")
    assert validate_product_fields(bad, photo_size=None) == "Name is Required"
    bad = fields(price="-5", quantity="x")
    assert validate_product_fields(bad, photo_size=None) == PRICE_ERROR
    bad = fields(category=None, quantity="x")
    assert validate_product_fields(bad, photo_size=None) == "Category is Required"


@pytest.mark.parametrize(
    "price, quantity, ok",
    [
        ("-1", "0", False),
        ("0", "-1", False),
        ("0", "0", True),
        ("-1", "-1", False),
    ],
)
def test_price_quantity_boundaries(price, quantity, ok):
    result = validate_product_fields(fields(price=price, quantity=quantity), photo_size=1)
    assert (result is None) is ok


def test_photo_required_on_create_only():
    assert validate_product_fields(fields(), photo_size=None) == "Photo is Required"
    assert validate_product_fields(fields(), photo_size=None, photo_required=False) is None


def test_photo_size_limit_is_inclusive():
    assert validate_product_fields(fields(), photo_size=MAX_PHOTO_BYTES) is None
    assert validate_product_fields(fields(), photo_size=MAX_PHOTO_BYTES - 1) is None
    assert validate_product_fields(fields(), photo_size=MAX_PHOTO_BYTES + 1) == "Photo should be less than 1mb"
    assert (
        validate_product_fields(fields(), photo_size=MAX_PHOTO_BYTES + 1, photo_required=False)
        == "Photo should be less than 1mb"
    )


@pytest.mark.parametrize(
    "raw, expected",
    [
        ("29.99", 29.99),
        (" 5 ", 5.0),
        ("0", 0.0),
        (0, 0.0),
        (12, 12.0),
        ("1e2", 100.0),
        ("nan", None),
        ("inf", None),
        ("", None),
        (True, None),
        (None, None),
        ([], None),
    ],
)
def test_parse_non_negative_number(raw, expected):
    assert parse_non_negative_number(raw) == expected


@pytest.mark.parametrize("password", [None, "", "123456", "a much longer password"])
def test_profile_password_accepted(password):
    assert validate_profile_password(password) is None


@pytest.mark.parametrize("password", ["1", "12345"])
def test_profile_password_too_short(password):
    assert validate_profile_password(password) == "Password must be at least 6 characters long"


def test_registration_reports_first_missing_field():
    full = dict(name="John", email="j@e.com", password="pw", phone="1", address="a", answer="b")
    assert validate_registration(RegisterRequest(**full)) is None
    expected = [
        ("name", "Name is required"),
        ("email", "Email is required"),
        ("password", "Password is required"),
        ("phone", "Phone number is required"),
        ("address", "Address is required"),
        ("answer", "Answer is required"),
    ]
    for field, message in expected:
        payload = dict(full)
        payload.pop(field)
        assert validate_registration(RegisterRequest(**payload)) == message
    assert validate_registration(RegisterRequest()) == "Name is required"


def test_password_reset_validation():
    assert validate_password_reset(ForgotPasswordRequest(answer="blue", newPassword="x")) == "Email is required"
    assert validate_password_reset(ForgotPasswordRequest(email="a@b.c", newPassword="x")) == "Answer is required"
    assert validate_password_reset(ForgotPasswordRequest(email="a@b.c", answer="blue")) == "New password is required"
    assert validate_password_reset(ForgotPasswordRequest(email="a@b.c", answer="blue", newPassword="x")) is None
