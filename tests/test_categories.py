import pytest
from bson import ObjectId

import categories
from errors import HasChildren, HasProducts, InvalidHierarchy, NotFound
from schemas import Category, Product, User


def test_category_cannot_be_its_own_parent(db, make_category):
    a = make_category("A")
    with pytest.raises(InvalidHierarchy):
        categories.validate_reparent(db, a, a)
    with pytest.raises(InvalidHierarchy):
        categories.validate_reparent(db, a, str(a))


def test_reparent_under_own_descendant_is_a_cycle(db, make_category):
    a = make_category("A")
    b = make_category("B", parent=a)
    c = make_category("C", parent=b)

    with pytest.raises(InvalidHierarchy, match="Circular"):
        categories.validate_reparent(db, a, c)
    with pytest.raises(InvalidHierarchy):
        categories.validate_reparent(db, b, c)


def test_valid_moves_pass(db, make_category):
    a = make_category("A")
    b = make_category("B", parent=a)
    c = make_category("C", parent=b)
    other = make_category("Other")

    categories.validate_reparent(db, c, a)
    categories.validate_reparent(db, a, other)
    categories.validate_reparent(db, b, None)


def test_unknown_parent_is_not_found(db, make_category):
    a = make_category("A")
    with pytest.raises(NotFound):
        categories.validate_reparent(db, a, ObjectId())


def test_walk_over_already_cyclic_tree_is_bounded(db, make_category):
    x_id, y_id = ObjectId(), ObjectId()
    db["category"].insert_many([
        {"_id": x_id, "name": "X", "parent": y_id},
        {"_id": y_id, "name": "Y", "parent": x_id},
    ])
    z = make_category("Z")

    with pytest.raises(InvalidHierarchy, match="cyclic"):
        categories.validate_reparent(db, z, x_id)


def test_deletion_blocked_by_subcategories(db, make_category):
    electronics = make_category("Electronics")
    make_category("Smartphones", parent=electronics)

    with pytest.raises(HasChildren):
        categories.validate_deletion(db, electronics)


def test_deletion_blocked_by_products(db, make_category, make_product):
    shoes = make_category("Shoes")
    make_product("Sneaker", category=shoes)

    with pytest.raises(HasProducts):
        categories.validate_deletion(db, shoes)


def test_empty_leaf_can_be_deleted(db, make_category):
    parent = make_category("Parent")
    leaf = make_category("Leaf", parent=parent)
    categories.validate_deletion(db, leaf)


def test_subcategory_ids(db, make_category):
    parent = make_category("Parent")
    kids = {make_category("K1", parent=parent), make_category("K2", parent=parent)}
    make_category("Unrelated")

    assert set(categories.subcategory_ids(db, parent)) == kids


@pytest.mark.parametrize("name,slug", [
    ("Home & Kitchen", "home-kitchen"),
    ("  Sports -- Outdoors ", "sports-outdoors"),
    ("T-Shirts", "t-shirts"),
])
def test_slugify(name, slug):
    assert categories.slugify(name) == slug


def test_stored_documents_match_their_models(db, make_category, make_product):
    parent = make_category("Parent")
    child = make_category("Child", parent=parent)
    pid = make_product("Lamp", category=child, description="Desk lamp")
    uid = db["user"].insert_one({"name": "Jane", "email": "jane@example.com", "wishlist": [pid]}).inserted_id

    stored_category = db["category"].find_one({"_id": child})
    stored_product = db["product"].find_one({"_id": pid})
    stored_user = db["user"].find_one({"_id": uid})

    assert Category(**stored_category).parent == parent
    assert Product(**stored_product).category == child
    assert User(**stored_user).wishlist == [pid]
