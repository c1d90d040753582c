"""
Stock ledger

Reserve debits the stock counters an order needs, release credits them back
when the order is cancelled. A counter is either the product's own `stock`
or the `stock` of one named variant of that product.

Every counter write is a compare-and-swap on the product document: the
update only matches if the counter still holds the value that was read.
A failed reservation gives back whatever it had already taken and
re-raises the error that stopped it.
"""
import logging
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.database import Database

import config
from database import now
from errors import InsufficientStock, NotFound, StockConflict
from schemas import StockLine

logger = logging.getLogger(__name__)


def fetch_product(db: Database, product_id) -> dict:
    try:
        oid = product_id if isinstance(product_id, ObjectId) else ObjectId(product_id)
    except (InvalidId, TypeError):
        raise NotFound(f"Product not found: {product_id}")
    product = db["product"].find_one({"_id": oid})
    if not product:
        raise NotFound(f"Product not found: {product_id}")
    return product


def find_variant(product: dict, name: str) -> dict:
    for v in product.get("variants") or []:
        if v.get("name") == name:
            return v
    raise NotFound(f"Variant not found: {name}")


def available_stock(product: dict, variant: Optional[str] = None) -> int:
    if variant:
        return int(find_variant(product, variant).get("stock", 0))
    return int(product.get("stock", 0))


def _swap(db: Database, product: dict, variant: Optional[str], new_value: int) -> bool:
    if variant:
        names = [v.get("name") for v in product.get("variants") or []]
        path = f"variants.{names.index(variant)}"
        current = find_variant(product, variant).get("stock")
        match = {"_id": product["_id"], f"{path}.name": variant, f"{path}.stock": current}
        change = {"$set": {f"{path}.stock": new_value, "updated_at": now()}}
    else:
        match = {"_id": product["_id"], "stock": product.get("stock")}
        change = {"$set": {"stock": new_value, "updated_at": now()}}
    return db["product"].update_one(match, change).matched_count == 1


def adjust_stock(db: Database, product_id, variant: Optional[str], delta: int, allow_negative: bool = False) -> int:
    """Add `delta` to one counter and return the new value.

    Re-reads and retries when another writer got there first. Raises
    InsufficientStock if a debit would take the counter below zero (unless
    `allow_negative`), StockConflict when every attempt lost the race.
    """
    for attempt in range(config.STOCK_CAS_ATTEMPTS):
        product = fetch_product(db, product_id)
        current = available_stock(product, variant)
        new_value = current + delta
        if new_value < 0 and not allow_negative:
            raise InsufficientStock(str(product["_id"]), -delta, current, variant, product.get("name"))
        if _swap(db, product, variant, new_value):
            return new_value
        logger.warning("Stock for product %s changed during update (attempt %d)", product_id, attempt + 1)
    raise StockConflict(str(product_id))


def reserve(db: Database, items: Sequence[StockLine]) -> None:
    # Check everything first so a rejected order touches nothing.
    claimed: Dict[Tuple[ObjectId, Optional[str]], int] = {}
    for item in items:
        product = fetch_product(db, item.product_id)
        available = available_stock(product, item.variant)
        key = (product["_id"], item.variant)
        already = claimed.get(key, 0)
        if item.quantity + already > available:
            raise InsufficientStock(str(product["_id"]), item.quantity, available - already, item.variant, product.get("name"))
        claimed[key] = already + item.quantity

    applied: List[StockLine] = []
    try:
        for item in items:
            adjust_stock(db, item.product_id, item.variant, -item.quantity)
            applied.append(item)
    except Exception:
        logger.warning("Reservation failed after %d of %d items, giving stock back", len(applied), len(items))
        failed = release(db, list(reversed(applied)))
        if failed:
            logger.error("Could not give back stock for %d of %d reserved items", len(failed), len(applied))
        raise
    logger.info("Reserved stock for %d items", len(items))


def release(db: Database, items: Iterable[StockLine]) -> List[StockLine]:
    """Credit every line back and return the lines that could not be credited.

    Each line is attempted on its own, so one failure does not keep the rest
    from being restored. Lines whose product or variant no longer exists are
    skipped and do not count as failures.
    """
    count = 0
    failed: List[StockLine] = []
    for item in items:
        try:
            adjust_stock(db, item.product_id, item.variant, item.quantity, allow_negative=True)
        except NotFound as e:
            logger.warning("Skipping stock release for %s: %s", item.product_id, e.detail)
            continue
        except Exception:
            logger.exception("Stock release failed for %s (variant %s, quantity %d)", item.product_id, item.variant, item.quantity)
            failed.append(item)
            continue
        count += 1
    logger.info("Released stock for %d items", count)
    return failed
