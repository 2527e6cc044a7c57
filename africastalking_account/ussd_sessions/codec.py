"""Field codec between the provider's textual encodings and typed values.

The codec is deliberately asymmetric. Rows coming from the provider use its
own formats (``"June 1, 2021 3:05 PM"``, ``"90s"``, ``"None"``, ``"N/A"``);
exported rows use canonical ones (ISO instants, ISO durations, empty string
for absent input). ``decode_exported_row`` reads the canonical side back.
"""
from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence

from pydantic import ValidationError

from africastalking_account.ussd_sessions.errors import FormatError
from africastalking_account.ussd_sessions.models import (
    RESPONSE_TZ,
    CurrencyValue,
    Session,
    SessionStatus,
)

NO_COST = "None"
NO_INPUT = "N/A"

_DIGITS = re.compile(r"[0-9]+")
_DURATION_SECONDS = re.compile(r"([0-9]+)s")
_ISO_DURATION = re.compile(r"PT(?:([0-9]+)H)?(?:([0-9]+)M)?(?:([0-9]+)(?:\.([0-9]{1,6}))?S)?")
_WHITESPACE = re.compile(r"\s+")

# Month names are matched by hand: strptime's %B and %p follow LC_TIME.
_MONTHS = {
    name.lower(): number
    for number, name in enumerate(
        ["January", "February", "March", "April", "May", "June", "July",
         "August", "September", "October", "November", "December"],
        start=1,
    )
}
_PROVIDER_TIME = re.compile(r"([A-Za-z]+) ([0-9]{1,2}), ([0-9]{4}) ([0-9]{1,2}):([0-9]{1,2}) ([AaPp][Mm])")


# --- Date ---

def decode_date(text: str) -> datetime:
    """Parse ``"June 1, 2021 3:05 PM"`` (English, any process locale) at UTC+1."""
    match = _PROVIDER_TIME.fullmatch(text)
    if not match or match.group(1).lower() not in _MONTHS or not 1 <= int(match.group(4)) <= 12:
        raise FormatError("Date", text)
    month_name, day, year, hour, minute, meridiem = match.groups()
    hour_24 = int(hour) % 12 + (12 if meridiem.upper() == "PM" else 0)
    try:
        return datetime(
            int(year), _MONTHS[month_name.lower()], int(day), hour_24, int(minute), tzinfo=RESPONSE_TZ
        )
    except ValueError as exc:
        raise FormatError("Date", text) from exc


def encode_date(value: datetime) -> str:
    utc = value.astimezone(timezone.utc)
    text = utc.strftime("%Y-%m-%dT%H:%M:%S")
    if utc.microsecond % 1000:
        text += f".{utc.microsecond:06d}"
    elif utc.microsecond:
        text += f".{utc.microsecond // 1000:03d}"
    return text + "Z"


def decode_instant(text: str) -> datetime:
    if not text.endswith("Z"):
        raise FormatError("Date", text, "expected a UTC instant")
    try:
        parsed = datetime.fromisoformat(text[:-1])
    except ValueError as exc:
        raise FormatError("Date", text) from exc
    if parsed.tzinfo is not None:
        raise FormatError("Date", text, "expected a UTC instant")
    return parsed.replace(tzinfo=timezone.utc)


def encode_request_date(value: date) -> str:
    """Calendar date as the export endpoint expects it in query parameters."""
    return value.isoformat()


# --- Duration ---

def decode_duration(text: str) -> timedelta:
    match = _DURATION_SECONDS.fullmatch(text)
    if not match:
        raise FormatError("Duration", text, "expected <seconds>s")
    return timedelta(seconds=int(match.group(1)))


def encode_duration(value: timedelta) -> str:
    if value < timedelta(0):
        raise FormatError("Duration", value, "negative span")
    total = value.days * 86400 + value.seconds
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    text = "PT"
    if hours:
        text += f"{hours}H"
    if minutes:
        text += f"{minutes}M"
    if seconds or value.microseconds or not (hours or minutes):
        text += str(seconds)
        if value.microseconds:
            text += f".{value.microseconds:06d}".rstrip("0")
        text += "S"
    return text


def decode_iso_duration(text: str) -> timedelta:
    match = _ISO_DURATION.fullmatch(text)
    if not match or text == "PT":
        raise FormatError("Duration", text, "expected an ISO-8601 duration")
    hours, minutes, seconds, fraction = match.groups()
    return timedelta(
        hours=int(hours or 0),
        minutes=int(minutes or 0),
        seconds=int(seconds or 0),
        microseconds=int((fraction or "").ljust(6, "0")),
    )


# --- Cost ---

def decode_cost(text: str) -> CurrencyValue:
    if text == NO_COST:
        return CurrencyValue.none()
    parts = _WHITESPACE.split(text, maxsplit=1)
    if len(parts) != 2:
        raise FormatError("Cost", text, "expected '<currency> <amount>'")
    currency_code, raw_amount = parts
    try:
        amount = Decimal(raw_amount)
    except InvalidOperation as exc:
        raise FormatError("Cost", text, "amount is not a decimal") from exc
    if not amount.is_finite():
        raise FormatError("Cost", text, "amount is not a decimal")
    try:
        return CurrencyValue(currency=currency_code, amount=amount)
    except ValidationError as exc:
        raise FormatError("Cost", text, "unknown currency code") from exc


def encode_cost(value: CurrencyValue) -> str:
    return f"{value.currency} {value.amount}"


# --- Hops, Status, Input ---

def decode_hops(text: str) -> int:
    if not _DIGITS.fullmatch(text):
        raise FormatError("Hops", text, "expected a non-negative integer")
    return int(text)


def encode_hops(value: int) -> str:
    return str(value)


def decode_status(text: str) -> SessionStatus:
    return SessionStatus(text)


def encode_status(value: SessionStatus) -> str:
    return str(value)


def decode_input(text: str) -> Optional[str]:
    if text == NO_INPUT:
        return None
    return text


def encode_input(value: Optional[str]) -> str:
    # Absent input is written as an empty cell, never as "N/A".
    return "" if value is None else value


# --- Rows ---

def _check_width(row: Sequence[str]) -> None:
    if len(row) != len(Session.model_fields):
        raise FormatError("row", list(row), f"expected {len(Session.model_fields)} fields")


def decode_row(row: Sequence[str]) -> Session:
    """Build a Session from one provider CSV data row."""
    _check_width(row)
    started_at, session_id, service_code, phone_number, hops, duration, cost, status, ussd_input = row
    return Session(
        started_at=decode_date(started_at),
        session_id=session_id,
        service_code=service_code,
        phone_number=phone_number,
        hops=decode_hops(hops),
        duration=decode_duration(duration),
        cost=decode_cost(cost),
        status=decode_status(status),
        ussd_input=decode_input(ussd_input),
    )


def encode_session(session: Session) -> List[str]:
    """Encode a Session into export cells, in column order."""
    return [
        encode_date(session.started_at),
        session.session_id,
        session.service_code,
        session.phone_number,
        encode_hops(session.hops),
        encode_duration(session.duration),
        encode_cost(session.cost),
        encode_status(session.status),
        encode_input(session.ussd_input),
    ]


def decode_exported_row(row: Sequence[str]) -> Session:
    """Inverse of ``encode_session``."""
    _check_width(row)
    started_at, session_id, service_code, phone_number, hops, duration, cost, status, ussd_input = row
    return Session(
        started_at=decode_instant(started_at),
        session_id=session_id,
        service_code=service_code,
        phone_number=phone_number,
        hops=decode_hops(hops),
        duration=decode_iso_duration(duration),
        cost=decode_cost(cost),
        status=decode_status(status),
        ussd_input=ussd_input or None,
    )
