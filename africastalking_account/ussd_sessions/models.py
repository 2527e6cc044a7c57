"""
USSD Session Models.

Typed, immutable view of one row of the provider's USSD session export.
"""

from __future__ import annotations

from datetime import date, timedelta, timezone, tzinfo
from decimal import Decimal
from typing import NewType, Optional

from pydantic import AwareDatetime, BaseModel, ConfigDict, Field

# Requests take plain calendar dates interpreted in UTC, responses render
# timestamps in UTC+1. The two must never be mixed up.
REQUEST_TZ = timezone.utc
RESPONSE_TZ = timezone(timedelta(hours=1))

NO_CURRENCY = "XXX"

# Status values are whatever the provider reports; the full set is unknown,
# so this stays an open tag rather than an Enum.
SessionStatus = NewType("SessionStatus", str)


class CurrencyValue(BaseModel):
    """An exact monetary amount in an ISO 4217 currency."""
    model_config = ConfigDict(frozen=True)

    currency: str = Field(..., pattern=r"^[A-Z]{3}$")
    amount: Decimal

    @classmethod
    def none(cls) -> "CurrencyValue":
        return cls(currency=NO_CURRENCY, amount=Decimal(0))


class Session(BaseModel):
    """
    One USSD session as reported by the provider.

    Field aliases are the provider's column names, in column order.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    started_at: AwareDatetime = Field(..., alias="Date")
    session_id: str = Field(..., alias="SessionId")
    service_code: str = Field(..., alias="ServiceCode")
    phone_number: str = Field(..., alias="PhoneNumber")
    hops: int = Field(..., alias="Hops", ge=0)
    duration: timedelta = Field(..., alias="Duration")
    cost: CurrencyValue = Field(..., alias="Cost")
    status: SessionStatus = Field(..., alias="Status")
    ussd_input: Optional[str] = Field(None, alias="Input")

    def request_date(self, tz: tzinfo = REQUEST_TZ) -> date:
        """Calendar date of the session as the export endpoint filters it."""
        return self.started_at.astimezone(tz).date()
