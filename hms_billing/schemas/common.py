# hms_billing/schemas/common.py
from __future__ import annotations

from decimal import Decimal
from typing import Annotated, Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from hms_billing.services.billing_math import money2

T = TypeVar("T")


def _signed_money2(v: Any) -> Any:
    return money2(v, allow_negative=True)


# Non-negative currency, two decimal places; JSON as a plain number
Amount = Annotated[Decimal, BeforeValidator(money2),
                   PlainSerializer(float, return_type=float, when_used="json")]

# Currency that may legitimately be negative (balances)
SignedAmount = Annotated[Decimal, BeforeValidator(_signed_money2),
                         PlainSerializer(float,
                                         return_type=float,
                                         when_used="json")]


class CamelModel(BaseModel):
    """Python snake_case attributes, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel,
                              populate_by_name=True,
                              extra="ignore")


class ApiError(BaseModel):
    msg: str
    fields: Optional[Dict[str, str]] = None


class ApiResponse(BaseModel):
    status: bool
    data: Optional[Any] = None
    error: Optional[ApiError] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)


class PageOut(CamelModel, Generic[T]):
    rows: List[T]
    total_pages: int
    total_items: int
    page: int
    page_size: int
