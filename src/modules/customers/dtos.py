"""Customer DTOs (Pydantic v2, frozen).

- ``ContactDTO``: contact/address bundle sent with a checkout or sale;
  every field optional, callers decide what is required.
- ``CreateCustomerDTO`` / ``UpdateCustomerDTO``: back-office admin.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


def _strip(v: Any) -> Any:
    return v.strip() if isinstance(v, str) else v


class ContactDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    delivery_address: Optional[str] = None
    billing_address: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_missing(cls, v: Any) -> Any:
        v = _strip(v)
        return v or None

    def snapshot(self) -> Dict[str, Any]:
        """Guest-contact snapshot stored on the order (JSON-safe)."""
        data = self.model_dump(mode="json")
        return {key: value or "" for key, value in data.items()}

    @property
    def is_complete(self) -> bool:
        """Name, email and phone are all present."""
        return all((self.first_name, self.last_name, self.email, self.phone))


class CreateCustomerDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    phone: str = ""
    delivery_address: str = ""
    billing_address: str = ""
    country: str = ""
    state: str = ""
    user_id: Optional[int] = None

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        return v.strip().lower()


class UpdateCustomerDTO(BaseModel):
    """Only supplied fields are applied."""

    model_config = ConfigDict(frozen=True)

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[EmailStr] = None
    phone: Optional[str] = None
    delivery_address: Optional[str] = None
    billing_address: Optional[str] = None
    country: Optional[str] = None
    state: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: Optional[str]) -> Optional[str]:
        return v.strip().lower() if v else v
