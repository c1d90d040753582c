"""
Order placement and lifecycle.

    pending -> processing -> delivered
       |           |
       +-----------+------> cancelled

Prices are copied onto the order when it is placed, later catalog changes do
not touch existing orders. Status changes are conditional updates on the
status that was read, so two requests cannot both move the same order.
"""
import logging
from typing import List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo.database import Database

import config
import inventory
from database import now
from errors import InvalidTransition, NotFound, ShopError
from schemas import Order, OrderCreate, OrderItem, StockLine

logger = logging.getLogger(__name__)

TRANSITIONS = {
    "pending": {"processing", "cancelled"},
    "processing": {"delivered", "cancelled"},
    "delivered": set(),
    "cancelled": set(),
}


def check_transition(current: str, target: str) -> None:
    if target not in TRANSITIONS.get(current, set()):
        raise InvalidTransition(current, target)


def unit_price(product: dict, variant: Optional[str] = None) -> float:
    if variant:
        override = inventory.find_variant(product, variant).get("price")
        if override is not None:
            return round(float(override), 2)
    price = float(product.get("price", 0))
    discount = float(product.get("discount", 0) or 0)
    if discount > 0:
        price = price - price * discount / 100
    return round(price, 2)


def compute_totals(items: List[OrderItem]) -> dict:
    items_price = round(sum(i.price * i.quantity for i in items), 2)
    shipping = config.SHIPPING_FLAT
    if config.FREE_SHIPPING_THRESHOLD <= 0 or items_price >= config.FREE_SHIPPING_THRESHOLD:
        shipping = 0.0
    tax = round(items_price * config.TAX_RATE, 2)
    return {
        "items_price": items_price,
        "shipping_price": shipping,
        "tax_price": tax,
        "total_price": round(items_price + shipping + tax, 2),
    }


def fetch_order(db: Database, order_id) -> dict:
    try:
        oid = order_id if isinstance(order_id, ObjectId) else ObjectId(order_id)
    except (InvalidId, TypeError):
        raise NotFound("Order not found")
    order = db["order"].find_one({"_id": oid})
    if not order:
        raise NotFound("Order not found")
    return order


def stock_lines(order: dict) -> List[StockLine]:
    return [StockLine(product_id=i["product_id"], variant=i.get("variant"), quantity=i["quantity"]) for i in order.get("items", [])]


def place_order(db: Database, user: dict, body: OrderCreate) -> dict:
    if not body.items:
        raise ShopError("No order items")

    items: List[OrderItem] = []
    for line in body.items:
        product = inventory.fetch_product(db, line.product_id)
        images = product.get("images") or []
        items.append(OrderItem(
            product_id=str(product["_id"]),
            variant=line.variant,
            quantity=line.quantity,
            name=product.get("name", "Product"),
            price=unit_price(product, line.variant),
            image=images[0] if images else None,
        ))

    inventory.reserve(db, body.items)

    order = Order(
        user_id=str(user["_id"]),
        items=items,
        shipping_address=body.shipping_address,
        payment_method=body.payment_method,
        **compute_totals(items),
    )
    doc = {**order.model_dump(), "created_at": now(), "updated_at": now()}
    try:
        res = db["order"].insert_one(doc)
    except Exception:
        logger.exception("Could not store order for user %s, releasing stock", user["_id"])
        failed = inventory.release(db, body.items)
        if failed:
            logger.error("%d items of the unstored order still hold stock", len(failed))
        raise
    doc["_id"] = res.inserted_id
    logger.info("Order %s placed by user %s (%d items)", res.inserted_id, user["_id"], len(items))
    return doc


def _transition(db: Database, order: dict, target: str, changes: Optional[dict] = None, match: Optional[dict] = None) -> dict:
    current = order.get("status", "pending")
    check_transition(current, target)
    query = {"_id": order["_id"], "status": current, **(match or {})}
    update = {"status": target, "updated_at": now(), **(changes or {})}
    res = db["order"].update_one(query, {"$set": update})
    if res.matched_count == 0:
        latest = fetch_order(db, order["_id"])
        raise InvalidTransition(latest.get("status", current), target)
    logger.info("Order %s moved from %s to %s", order["_id"], current, target)
    return fetch_order(db, order["_id"])


def pay_order(db: Database, order: dict, payment_result: Optional[dict] = None) -> dict:
    return _transition(db, order, "processing", {"is_paid": True, "paid_at": now(), "payment_result": payment_result})


def deliver_order(db: Database, order: dict, tracking_number: Optional[str] = None) -> dict:
    changes = {"is_delivered": True, "delivered_at": now()}
    if tracking_number:
        changes["tracking_number"] = tracking_number
    return _transition(db, order, "delivered", changes)


def has_unreleased_stock(order: dict) -> bool:
    return order.get("status") == "cancelled" and not order.get("stock_released") and bool(order.get("unreleased_items"))


def _finish_release(db: Database, order_id, lines: List[StockLine]) -> dict:
    failed = inventory.release(db, lines)
    db["order"].update_one(
        {"_id": order_id},
        {"$set": {"stock_released": not failed, "unreleased_items": [f.model_dump() for f in failed], "updated_at": now()}},
    )
    if failed:
        logger.error("Order %s cancelled but %d items still hold stock, cancel again to retry", order_id, len(failed))
    return fetch_order(db, order_id)


def cancel_order(db: Database, order: dict) -> dict:
    """Cancel a pending or processing order and put its stock back.

    The cancelling request records every line as unreleased together with the
    status change, then credits them and keeps only the lines that failed.
    Cancelling an order that still has unreleased lines retries just those;
    any other repeated cancel is rejected, so stock comes back at most once.
    """
    if has_unreleased_stock(order):
        # claim the pending lines so two retries cannot both credit them
        claimed = db["order"].find_one_and_update(
            {"_id": order["_id"], "status": "cancelled", "stock_released": False, "unreleased_items": order["unreleased_items"]},
            {"$set": {"unreleased_items": []}},
        )
        if claimed is None:
            raise InvalidTransition("cancelled", "cancelled")
        logger.info("Retrying stock release for cancelled order %s", order["_id"])
        return _finish_release(db, order["_id"], [StockLine(**i) for i in claimed["unreleased_items"]])

    lines = stock_lines(order)
    _transition(db, order, "cancelled", {"stock_released": False, "unreleased_items": [l.model_dump() for l in lines]})
    return _finish_release(db, order["_id"], lines)


def update_status(db: Database, order: dict, status: str, tracking_number: Optional[str] = None, notes: Optional[str] = None) -> dict:
    current = order.get("status", "pending")
    if status == "cancelled" and (current != "cancelled" or has_unreleased_stock(order)):
        updated = cancel_order(db, order)
    elif status == current:
        # same status, only tracking and notes change
        updated = order
    elif status == "delivered":
        updated = deliver_order(db, order, tracking_number)
    elif status == "processing":
        updated = pay_order(db, order)
    else:
        # nothing moves back to pending
        raise InvalidTransition(current, status)
    extra = {}
    if tracking_number:
        extra["tracking_number"] = tracking_number
    if notes:
        extra["notes"] = notes
    if extra:
        db["order"].update_one({"_id": order["_id"]}, {"$set": {**extra, "updated_at": now()}})
        updated = fetch_order(db, order["_id"])
    return updated
