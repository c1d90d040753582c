"""
Database Schemas for E-commerce

Each Pydantic model in the first half represents a MongoDB collection.
Collection name is the lowercase of the class name. The second half holds
the request bodies accepted by the API.
"""
from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field, EmailStr, field_validator
from datetime import datetime

OrderStatus = Literal["pending", "processing", "delivered", "cancelled"]
Role = Literal["customer", "admin"]


def _unique_variant_names(variants):
    if variants:
        names = [v.name for v in variants]
        if len(names) != len(set(names)):
            raise ValueError("Variant names must be unique within a product")
    return variants


class Address(BaseModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str
    is_default: bool = False


class User(BaseModel):
    name: str
    email: EmailStr
    password_hash: Optional[str] = None
    role: Role = "customer"
    phone: Optional[str] = None
    avatar: str = ""
    addresses: List[Address] = []
    wishlist: List[Any] = []  # product ObjectIds
    is_email_verified: bool = False


class Category(BaseModel):
    name: str
    slug: str
    description: str = ""
    image: str = ""
    icon: str = ""
    parent: Optional[Any] = None  # ObjectId of the parent category
    featured: bool = False
    order: int = 0


class Variant(BaseModel):
    name: str
    color_code: Optional[str] = None
    size: Optional[str] = None
    sku: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    stock: int = Field(0, ge=0)
    images: List[str] = []


class Product(BaseModel):
    name: str
    slug: str
    description: str
    brand: str
    category: Any  # ObjectId of the category
    price: float = Field(0, ge=0)
    discount: float = Field(0, ge=0, le=100)
    features: List[str] = []
    specifications: Dict[str, str] = {}
    variants: List[Variant] = []
    stock: int = Field(0, ge=0)
    images: List[str] = []
    rating: float = 0
    num_reviews: int = 0
    featured: bool = False
    new_arrival: bool = False
    best_seller: bool = False

    @field_validator("variants")
    @classmethod
    def unique_variant_names(cls, v):
        return _unique_variant_names(v)


class Review(BaseModel):
    product_id: str
    user_id: str
    name: str
    rating: int = Field(..., ge=1, le=5)
    title: str
    comment: str
    created_at: Optional[datetime] = None


class StockLine(BaseModel):
    product_id: str
    variant: Optional[str] = None
    quantity: int = Field(..., gt=0)


class OrderItem(StockLine):
    name: str
    price: float = Field(..., ge=0)
    image: Optional[str] = None


class Order(BaseModel):
    user_id: str
    items: List[OrderItem]
    shipping_address: Address
    payment_method: str = "card"
    items_price: float = 0
    tax_price: float = 0
    shipping_price: float = 0
    total_price: float = 0
    status: OrderStatus = "pending"
    is_paid: bool = False
    paid_at: Optional[datetime] = None
    payment_result: Optional[dict] = None
    is_delivered: bool = False
    delivered_at: Optional[datetime] = None
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
    stock_released: bool = False
    unreleased_items: List[StockLine] = []


# Request bodies

class UserCreate(BaseModel):
    name: str
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    avatar: Optional[str] = None
    password: Optional[str] = Field(None, min_length=6)


class AdminUserUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[EmailStr] = None
    role: Optional[Role] = None
    is_email_verified: Optional[bool] = None


class AddressUpdate(BaseModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None
    is_default: Optional[bool] = None


class WishlistAdd(BaseModel):
    product_id: str


class CategoryCreate(BaseModel):
    name: str
    description: str = ""
    parent: Optional[str] = None
    image: str = ""
    icon: str = ""
    featured: bool = False
    order: int = 0


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    parent: Optional[str] = None
    image: Optional[str] = None
    icon: Optional[str] = None
    featured: Optional[bool] = None
    order: Optional[int] = None


class ProductCreate(BaseModel):
    name: str
    description: str
    brand: str
    category: str
    price: float = Field(..., ge=0)
    discount: float = Field(0, ge=0, le=100)
    stock: int = Field(0, ge=0)
    images: List[str] = []
    features: List[str] = []
    specifications: Dict[str, str] = {}
    variants: List[Variant] = []
    featured: bool = False
    new_arrival: bool = False
    best_seller: bool = False

    @field_validator("variants")
    @classmethod
    def unique_variant_names(cls, v):
        return _unique_variant_names(v)


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    discount: Optional[float] = Field(None, ge=0, le=100)
    stock: Optional[int] = Field(None, ge=0)
    images: Optional[List[str]] = None
    features: Optional[List[str]] = None
    specifications: Optional[Dict[str, str]] = None
    variants: Optional[List[Variant]] = None
    featured: Optional[bool] = None
    new_arrival: Optional[bool] = None
    best_seller: Optional[bool] = None

    @field_validator("variants")
    @classmethod
    def unique_variant_names(cls, v):
        return _unique_variant_names(v)


class ReviewCreate(BaseModel):
    rating: int = Field(..., ge=1, le=5)
    title: str
    comment: str


class OrderCreate(BaseModel):
    items: List[StockLine]
    shipping_address: Address
    payment_method: str = "card"


class PaymentResult(BaseModel):
    id: str
    status: str
    update_time: Optional[str] = None
    email_address: Optional[str] = None


class DeliverRequest(BaseModel):
    tracking_number: Optional[str] = None


class StatusUpdate(BaseModel):
    status: OrderStatus
    tracking_number: Optional[str] = None
    notes: Optional[str] = None
