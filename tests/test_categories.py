import pytest
from bson import ObjectId

from categories import CategoryManager
from conftest import make_category, make_product
from errors import AlreadyExists, NotFound, StillReferenced, ValidationFailed


@pytest.fixture
def manager(mongo):
    return CategoryManager(mongo)


def test_create_trims_and_slugs(manager, mongo):
    created = manager.create("  Home Office ")
    assert created["name"] == "Home Office"
    assert created["slug"] == "home-office"
    assert mongo["category"].count_documents({}) == 1


def test_padded_and_plain_names_store_the_same_values(manager, mongo):
    padded = manager.create(" Books ")
    mongo["category"].delete_many({})
    plain = manager.create("Books")
    assert (padded["name"], padded["slug"]) == (plain["name"], plain["slug"]) == ("Books", "books")


@pytest.mark.parametrize("duplicate", ["Electronics", " Electronics  "])
def test_duplicate_name_is_rejected(manager, mongo, duplicate):
    manager.create("Electronics")
    with pytest.raises(AlreadyExists) as exc:
        manager.create(duplicate)
    assert exc.value.message == "Category Already Exists"
    assert exc.value.status_code == 409
    assert mongo["category"].count_documents({}) == 1


@pytest.mark.parametrize("name", [None, "", "   "])
def test_blank_name_never_touches_storage(manager, mongo, name):
    with pytest.raises(ValidationFailed) as exc:
        manager.create(name)
    assert exc.value.message == "Name is required"
    assert mongo["category"].count_documents({}) == 0


def test_update_rederives_slug(manager, category):
    updated = manager.update(str(category["_id"]), "  Gadgets & Toys ")
    assert updated["name"] == "Gadgets & Toys"
    assert updated["slug"] == "gadgets-toys"


def test_update_validates_before_lookup(manager):
    with pytest.raises(ValidationFailed):
        manager.update(str(ObjectId()), " ")


@pytest.mark.parametrize("category_id", [lambda: str(ObjectId()), lambda: "not-an-id"])
def test_update_unknown_category(manager, category_id):
    with pytest.raises(NotFound) as exc:
        manager.update(category_id(), "Books")
    assert exc.value.message == "Category not found"


def test_delete_blocked_while_products_reference_it(manager, mongo, category):
    product = make_product(mongo, category)
    with pytest.raises(StillReferenced) as exc:
        manager.delete(str(category["_id"]))
    assert exc.value.message == "Cannot delete category with associated products"
    assert exc.value.status_code == 400
    assert mongo["category"].find_one({"_id": category["_id"]}) == category
    assert mongo["product"].find_one({"_id": product["_id"]}) == product


def test_delete_unreferenced_category(manager, mongo, category):
    manager.delete(str(category["_id"]))
    assert mongo["category"].count_documents({}) == 0


def test_delete_unknown_category(manager):
    with pytest.raises(NotFound) as exc:
        manager.delete(str(ObjectId()))
    assert exc.value.message == "Category not found"


def test_check_and_remove_are_separate_steps(manager, mongo, category):
    manager.ensure_deletable(str(category["_id"]))
    assert mongo["category"].count_documents({}) == 1
    manager.remove(str(category["_id"]))
    assert mongo["category"].count_documents({}) == 0


def test_list_and_get_by_slug(manager, mongo):
    make_category(mongo, "Books")
    make_category(mongo, "Music")
    assert {c["name"] for c in manager.list_all()} == {"Books", "Music"}
    assert manager.get_by_slug("music")["name"] == "Music"
    assert manager.get_by_slug("missing") is None
