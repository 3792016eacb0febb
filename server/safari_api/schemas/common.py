"""Shared Pydantic schemas: money and problem details."""

from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

SUPPORTED_CURRENCIES = ("USD", "TZS", "EUR", "GBP")


class Money(BaseModel):
    """Amount in minor units with its ISO 4217 currency."""

    amount: int = Field(..., ge=0, description="Amount in minor units (e.g., cents)")
    currency: str = Field(..., min_length=3, max_length=3, pattern=r"^[A-Z]{3}$", description="ISO 4217 currency code")


class PriceInput(BaseModel):
    """Price supplied by a client; the currency defaults to the service currency."""

    amount: int = Field(..., ge=0, description="Amount in minor units (e.g., cents)")
    currency: Optional[str] = Field(None, description=f"One of {', '.join(SUPPORTED_CURRENCIES)}")

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.upper()
        if v not in SUPPORTED_CURRENCIES:
            raise ValueError(f"Currency must be one of: {list(SUPPORTED_CURRENCIES)}")
        return v


class Violation(BaseModel):
    """One failed field of a rejected request."""

    path: str = Field(..., description="Dotted path to the invalid field")
    message: str = Field(..., description="Validation error message")


class Problem(BaseModel):
    """RFC 9457 Problem Details body for request validation failures."""

    type: str = Field(..., description="Problem type URI")
    title: str = Field(..., description="Short human-readable summary")
    status: int = Field(..., description="HTTP status code")
    detail: Optional[str] = Field(None, description="Human-readable explanation")
    instance: Optional[str] = Field(None, description="URI reference for this occurrence")
    violations: List[Violation] = Field(default_factory=list, description="Validation errors")
