"""Product DTOs (Pydantic v2, frozen).

Contracts between the DRF views and ``ProductService``:

- ``VariantInputDTO``: one color/size combination with its stock.
- ``CreateProductDTO``: product with prices and initial variants.
- ``UpdateProductDTO``: partial product update.
- ``SetStockDTO``: absolute stock for a staff restock.
"""

from __future__ import annotations

from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from modules.products.constants import NOT_APPLICABLE


def _non_negative_price(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is not None and v < 0:
        raise ValueError("Price cannot be negative.")
    return v


class VariantInputDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    color: str = NOT_APPLICABLE
    size: str = NOT_APPLICABLE
    stock: int = 0
    weight: Optional[Decimal] = None

    @field_validator("color", "size")
    @classmethod
    def blank_means_not_applicable(cls, v: str) -> str:
        return v.strip() or NOT_APPLICABLE

    @field_validator("stock")
    @classmethod
    def stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock cannot be negative.")
        return v


class CreateProductDTO(BaseModel):
    """Validates prices (``None`` or >= 0) and variant uniqueness."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(min_length=1)
    category_slug: str = Field(min_length=1)
    description: str = ""
    images: List[str] = Field(default_factory=list)
    price_ngn: Optional[Decimal] = None
    price_usd: Optional[Decimal] = None
    price_eur: Optional[Decimal] = None
    price_gbp: Optional[Decimal] = None
    size_mods: bool = False
    variants: List[VariantInputDTO] = Field(default_factory=list)

    @field_validator("price_ngn", "price_usd", "price_eur", "price_gbp")
    @classmethod
    def prices_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _non_negative_price(v)

    @model_validator(mode="after")
    def variants_must_be_unique(self):
        keys = [(v.color, v.size) for v in self.variants]
        if len(keys) != len(set(keys)):
            raise ValueError("Duplicate color/size combinations in variants.")
        return self


class UpdateProductDTO(BaseModel):
    """All fields optional; only supplied ones are applied."""

    model_config = ConfigDict(frozen=True)

    name: Optional[str] = None
    category_slug: Optional[str] = None
    description: Optional[str] = None
    images: Optional[List[str]] = None
    price_ngn: Optional[Decimal] = None
    price_usd: Optional[Decimal] = None
    price_eur: Optional[Decimal] = None
    price_gbp: Optional[Decimal] = None
    size_mods: Optional[bool] = None
    status: Optional[str] = None

    @field_validator("price_ngn", "price_usd", "price_eur", "price_gbp")
    @classmethod
    def prices_must_be_non_negative(cls, v: Optional[Decimal]) -> Optional[Decimal]:
        return _non_negative_price(v)


class SetStockDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    stock: int

    @field_validator("stock")
    @classmethod
    def stock_must_be_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("Stock cannot be negative.")
        return v
