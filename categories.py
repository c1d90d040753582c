"""
Category tree rules

Categories form a tree through their `parent` reference. Before a parent is
stored the ancestor chain of the proposed parent is walked one lookup at a
time; a category may never become its own ancestor. Categories that still
have children or products cannot be deleted.
"""
import re
import logging
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.database import Database

import config
from errors import HasChildren, HasProducts, InvalidHierarchy, NotFound

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "-", name.lower())
    return slug.strip("-")


def _oid(value, label: str = "Category") -> ObjectId:
    if isinstance(value, ObjectId):
        return value
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise NotFound(f"{label} not found: {value}")


def fetch_category(db: Database, category_id) -> dict:
    cat = db["category"].find_one({"_id": _oid(category_id)})
    if not cat:
        raise NotFound(f"Category not found: {category_id}")
    return cat


def validate_reparent(db: Database, category_id, proposed_parent_id) -> None:
    """Raise InvalidHierarchy if `proposed_parent_id` cannot become the parent of `category_id`.

    A None parent (move to the root) is always allowed. The walk is bounded by
    the number of stored categories so an already corrupted tree cannot loop
    forever.
    """
    if proposed_parent_id is None:
        return
    target = str(category_id)
    if str(proposed_parent_id) == target:
        logger.warning("Rejected self-parent for category %s", target)
        raise InvalidHierarchy("Category cannot be its own parent")

    node: Optional[dict] = fetch_category(db, proposed_parent_id)
    limit = min(db["category"].count_documents({}) + 1, config.MAX_CATEGORY_DEPTH)
    hops = 0
    while node is not None:
        if str(node["_id"]) == target:
            logger.warning("Rejected reparent of %s under %s: cycle", target, proposed_parent_id)
            raise InvalidHierarchy("Circular reference detected in category hierarchy")
        parent = node.get("parent")
        if parent is None:
            return
        hops += 1
        if hops > limit:
            logger.error("Ancestor walk from %s exceeded %d hops", proposed_parent_id, limit)
            raise InvalidHierarchy("Category hierarchy is too deep or already cyclic")
        node = db["category"].find_one({"_id": parent})


def validate_deletion(db: Database, category_id) -> None:
    oid = _oid(category_id)
    if db["category"].find_one({"parent": oid}, {"_id": 1}):
        logger.warning("Refused to delete category %s: has subcategories", category_id)
        raise HasChildren(str(category_id))
    if db["product"].find_one({"category": oid}, {"_id": 1}):
        logger.warning("Refused to delete category %s: has products", category_id)
        raise HasProducts(str(category_id))


def subcategory_ids(db: Database, category_id) -> List[ObjectId]:
    return [c["_id"] for c in db["category"].find({"parent": _oid(category_id)}, {"_id": 1})]
