"""Barbershop service catalog models.

All prices are stored in cents (integer) to avoid floating point issues.
$10.00 = 1000 cents.
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ServiceCreate(BaseModel):
    """Data required to add a service to a shop's catalog."""

    shop_id: UUID
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    duration_minutes: int = Field(..., ge=5)
    price_cents: int = Field(..., ge=0)
    category: str | None = Field(None, max_length=100)
    is_active: bool = True


class ServiceUpdate(BaseModel):
    """Data that can be updated on a service. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = Field(None, max_length=1000)
    duration_minutes: int | None = Field(None, ge=5)
    price_cents: int | None = Field(None, ge=0)
    category: str | None = Field(None, max_length=100)
    is_active: bool | None = None


class Service(BaseModel):
    """Full service entity as stored."""

    id: UUID
    shop_id: UUID
    name: str
    description: str | None = None
    duration_minutes: int
    price_cents: int
    category: str | None = None
    is_active: bool = True
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}

    @property
    def price_dollars(self) -> float:
        """Price in dollars for display."""
        return self.price_cents / 100
