from __future__ import annotations

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from africastalking_account.ussd_sessions.models import RESPONSE_TZ, CurrencyValue, Session, SessionStatus


@pytest.fixture
def make_session():
    """Build a Session on ``day`` at ``hour`` (provider response timezone)."""

    def _make(day: date, session_id: str = "ATUid_1", hour: int = 12, minute: int = 0) -> Session:
        return Session(
            started_at=datetime(day.year, day.month, day.day, hour, minute, tzinfo=RESPONSE_TZ),
            session_id=session_id,
            service_code="*384*123#",
            phone_number="+254711000000",
            hops=2,
            duration=timedelta(seconds=30),
            cost=CurrencyValue(currency="KES", amount=Decimal("1.50")),
            status=SessionStatus("Success"),
            ussd_input="1*2",
        )

    return _make


@pytest.fixture
def provider_row():
    return [
        "June 1, 2021 3:05 PM",
        "ATUid_9f1c",
        "*384*123#",
        "+254711000000",
        "4",
        "90s",
        "KES 123.45",
        "Success",
        "1*2*3",
    ]


@pytest.fixture
def header_line():
    return "Date,Session Id,Service Code,Phone Number,Hops,Duration,Cost,Status,Input"
