"""
Address book and wishlist helpers.

A user's address book always has exactly one default address when it is not
empty. Every mutation below ends with normalize_default_address.
"""
import logging
from typing import List

from bson import ObjectId
from pymongo.database import Database

from database import now
from errors import NotFound, ShopError
from inventory import fetch_product
from schemas import Address, AddressUpdate

logger = logging.getLogger(__name__)


def normalize_default_address(addresses: List[dict]) -> List[dict]:
    seen_default = False
    for addr in addresses:
        if addr.get("is_default") and not seen_default:
            seen_default = True
        else:
            addr["is_default"] = False
    if addresses and not seen_default:
        addresses[0]["is_default"] = True
    return addresses


def _find(addresses: List[dict], address_id: str) -> dict:
    for addr in addresses:
        if str(addr.get("_id")) == str(address_id):
            return addr
    raise NotFound("Address not found")


def add_address(addresses: List[dict], body: Address) -> List[dict]:
    new = {"_id": ObjectId(), **body.model_dump()}
    if new["is_default"]:
        for addr in addresses:
            addr["is_default"] = False
    addresses.append(new)
    return normalize_default_address(addresses)


def update_address(addresses: List[dict], address_id: str, body: AddressUpdate) -> List[dict]:
    target = _find(addresses, address_id)
    changes = body.model_dump(exclude_none=True)
    is_default = changes.pop("is_default", None)
    target.update({k: v for k, v in changes.items() if v})
    if is_default:
        for addr in addresses:
            addr["is_default"] = addr is target
    elif is_default is False:
        target["is_default"] = False
    return normalize_default_address(addresses)


def delete_address(addresses: List[dict], address_id: str) -> List[dict]:
    target = _find(addresses, address_id)
    remaining = [a for a in addresses if a is not target]
    return normalize_default_address(remaining)


def save_addresses(db: Database, user: dict, addresses: List[dict]) -> List[dict]:
    db["user"].update_one({"_id": user["_id"]}, {"$set": {"addresses": addresses, "updated_at": now()}})
    return addresses


def add_to_wishlist(db: Database, user: dict, product_id: str) -> List[ObjectId]:
    product = fetch_product(db, product_id)
    wishlist = list(user.get("wishlist") or [])
    if product["_id"] in wishlist:
        raise ShopError("Product already in wishlist")
    wishlist.append(product["_id"])
    db["user"].update_one({"_id": user["_id"]}, {"$set": {"wishlist": wishlist, "updated_at": now()}})
    return wishlist


def remove_from_wishlist(db: Database, user: dict, product_id: str) -> List[ObjectId]:
    wishlist = [p for p in user.get("wishlist") or [] if str(p) != product_id]
    db["user"].update_one({"_id": user["_id"]}, {"$set": {"wishlist": wishlist, "updated_at": now()}})
    return wishlist


def wishlist_products(db: Database, user: dict) -> List[dict]:
    ids = list(user.get("wishlist") or [])
    if not ids:
        return []
    by_id = {p["_id"]: p for p in db["product"].find({"_id": {"$in": ids}})}
    return [by_id[i] for i in ids if i in by_id]
