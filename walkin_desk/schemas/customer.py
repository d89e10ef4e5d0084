"""
Pydantic schemas for Customer.
"""
from pydantic import EmailStr, Field, field_validator
from typing import Optional

from walkin_desk.schemas.base import WireModel


class CustomerBase(WireModel):
    """Base customer schema with common fields."""
    name: str
    email: str
    phone: str
    address: Optional[str] = None


class CustomerCreate(CustomerBase):
    """Schema for registering a walk-in customer."""
    name: str = Field(min_length=2)
    email: EmailStr
    phone: str = Field(min_length=5)

    @field_validator("name", "phone", mode="before")
    @classmethod
    def strip_text(cls, value):
        return value.strip() if isinstance(value, str) else value


class Customer(CustomerBase):
    """Schema for customer responses."""
    user_id: int
    email: str = ""
    phone: str = ""


class GeneratedCredentials(WireModel):
    """Login issued to a customer account created at the desk."""
    username: str
    password: str


class RegisteredCustomer(WireModel):
    """A freshly created customer together with the credentials to hand over."""
    customer: Customer
    credentials: GeneratedCredentials
