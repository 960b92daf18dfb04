"""
Database Schemas for the store API

Each Pydantic model maps to a MongoDB collection (lowercased class name).

Collections:
- category
- product
- user
- order

Request models further down describe the payloads each route accepts. Their
fields are optional on purpose: presence is checked by validators.py so every
failure carries its own message instead of a generic 422.
"""
from typing import List, Optional, Union

from bson import ObjectId
from pydantic import BaseModel, ConfigDict, EmailStr, Field


class Category(BaseModel):
    """
    Categories collection schema
    Collection name: "category"
    """
    name: str = Field(..., min_length=1, description="Unique, trimmed display name")
    slug: str = Field(..., description="URL-safe name derived from the display name")


class ProductPhoto(BaseModel):
    data: bytes = Field(..., description="Raw image bytes, at most 1,000,000")
    content_type: str = Field(..., description="MIME type of the image")


class Product(BaseModel):
    """
    Products collection schema
    Collection name: "product"
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(..., min_length=1)
    slug: str
    description: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)
    quantity: Union[int, float] = Field(..., ge=0)
    category: ObjectId = Field(..., description="Reference to category._id")
    photo: Optional[ProductPhoto] = None
    shipping: Optional[bool] = None


class User(BaseModel):
    """
    Users collection schema
    Collection name: "user"
    """
    name: str = Field(..., description="Full name")
    email: EmailStr = Field(..., description="Email address")
    password_hash: str = Field(..., description="BCrypt password hash")
    phone: str
    address: str
    answer: str = Field(..., description="Security answer for password reset")
    role: int = Field(0, description="0 = customer, 1 = admin")


class Order(BaseModel):
    """
    Orders collection schema
    Collection name: "order"
    """
    model_config = ConfigDict(arbitrary_types_allowed=True)

    products: List[ObjectId] = Field(default_factory=list)
    payment: dict = Field(default_factory=dict)
    buyer: ObjectId
    status: str = Field("Not Process", description="Not Process | Processing | Shipped | deliverd | cancel")


# Request models

class CategoryRequest(BaseModel):
    name: Optional[str] = None


class ProductFields(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[Union[float, str]] = None
    category: Optional[str] = None
    quantity: Optional[Union[float, str]] = None
    shipping: Optional[Union[bool, str]] = None


class PhotoUpload(BaseModel):
    data: bytes
    content_type: str = "application/octet-stream"

    @property
    def size(self) -> int:
        return len(self.data)


class ProductFilters(BaseModel):
    checked: List[str] = Field(default_factory=list)
    radio: List[float] = Field(default_factory=list)


class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    answer: Optional[str] = None


class LoginRequest(BaseModel):
    email: Optional[str] = None
    password: Optional[str] = None


class ForgotPasswordRequest(BaseModel):
    email: Optional[str] = None
    answer: Optional[str] = None
    newPassword: Optional[str] = None


class ProfileUpdateRequest(BaseModel):
    name: Optional[str] = None
    password: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None


class OrderStatusRequest(BaseModel):
    status: str
