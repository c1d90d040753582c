"""
Domain errors

Raised by the catalog, inventory and order logic and turned into JSON
responses by the handler registered in main.py.
"""
from typing import Optional


class ShopError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class NotFound(ShopError):
    status_code = 404


class InsufficientStock(ShopError):
    def __init__(self, product_id: str, requested: int, available: int, variant: Optional[str] = None, name: Optional[str] = None):
        label = name or product_id
        if variant:
            label = f"{label} ({variant})"
        super().__init__(f"Not enough stock for {label}. Available: {available}")
        self.product_id = product_id
        self.variant = variant
        self.requested = requested
        self.available = available


class InvalidHierarchy(ShopError):
    pass


class HasChildren(ShopError):
    def __init__(self, category_id: str):
        super().__init__("Cannot delete category with subcategories. Please move or delete subcategories first.")
        self.category_id = category_id


class HasProducts(ShopError):
    def __init__(self, category_id: str):
        super().__init__("Cannot delete category with associated products. Please move or delete products first.")
        self.category_id = category_id


class InvalidTransition(ShopError):
    def __init__(self, current: str, target: str):
        super().__init__(f"Order cannot move from {current} to {target}")
        self.current = current
        self.target = target


class StockConflict(ShopError):
    status_code = 409

    def __init__(self, product_id: str):
        super().__init__(f"Stock for product {product_id} is changing too fast, please retry")
        self.product_id = product_id
