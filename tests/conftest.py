import mongomock
import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from database import create_document, ensure_indexes, get_db
from main import app
from schemas import Category, Order, Product, ProductPhoto, User
from security import create_token, hash_password

PASSWORD = "secret123"
PASSWORD_HASH = hash_password(PASSWORD)


@pytest.fixture
def mongo():
    client = mongomock.MongoClient()
    database = client["store_test"]
    ensure_indexes(database)
    yield database
    client.close()


@pytest.fixture
def client(mongo):
    app.dependency_overrides[get_db] = lambda: mongo
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def make_user(mongo, role=0, **overrides):
    data = dict(
        name="John Doe",
        email="john@example.com",
        password_hash=PASSWORD_HASH,
        phone="123456789",
        address="123 Street",
        answer="blue",
        role=role,
    )
    data.update(overrides)
    user_id = create_document("user", User(**data), mongo)
    return mongo["user"].find_one({"_id": ObjectId(user_id)})


def make_category(mongo, name="Electronics", slug=None):
    category_id = create_document("category", Category(name=name, slug=slug or name.lower()), mongo)
    return mongo["category"].find_one({"_id": ObjectId(category_id)})


def make_product(mongo, category, name="Laptop", price=100.0, **overrides):
    data = dict(
        name=name,
        slug=name.lower().replace(" ", "-"),
        description=f"{name} description",
        price=price,
        quantity=5,
        category=category["_id"],
        photo=ProductPhoto(data=b"img", content_type="image/png"),
    )
    data.update(overrides)
    product_id = create_document("product", Product(**data), mongo)
    return mongo["product"].find_one({"_id": ObjectId(product_id)})


def make_order(mongo, buyer, products, status="Not Process"):
    order = Order(products=[p["_id"] for p in products], buyer=buyer["_id"], status=status)
    order_id = create_document("order", order, mongo)
    return mongo["order"].find_one({"_id": ObjectId(order_id)})


@pytest.fixture
def admin(mongo):
    return make_user(mongo, role=1, name="Admin", email="admin@example.com")


@pytest.fixture
def customer(mongo):
    return make_user(mongo)


@pytest.fixture
def admin_headers(admin):
    return {"Authorization": create_token(admin)}


@pytest.fixture
def customer_headers(customer):
    return {"Authorization": f"Bearer {create_token(customer)}"}


@pytest.fixture
def category(mongo):
    return make_category(mongo)
