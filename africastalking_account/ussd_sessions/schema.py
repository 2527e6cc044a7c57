"""Fixed export column layout and header validation."""
from __future__ import annotations

import re
from typing import List, Sequence, Tuple

from africastalking_account.ussd_sessions.errors import SchemaMismatchError
from africastalking_account.ussd_sessions.models import Session

COLUMNS: Tuple[str, ...] = tuple(field.alias for field in Session.model_fields.values())

_WHITESPACE = re.compile(r"\s")


def normalise_header(header: Sequence[str]) -> List[str]:
    return [_WHITESPACE.sub("", token) for token in header]


def validate_header(header: Sequence[str], expected: Sequence[str] = COLUMNS) -> None:
    """
    Raise SchemaMismatchError unless ``header`` names exactly ``expected``.

    Whitespace inside header tokens is ignored ("Session Id" == "SessionId").
    Rows are decoded positionally, so a reordered header is rejected as well.
    """
    actual = normalise_header(header)
    expected_set, actual_set = set(expected), set(actual)
    only_in_expected = expected_set - actual_set
    only_in_actual = actual_set - expected_set
    common = expected_set & actual_set
    if only_in_expected or only_in_actual:
        raise SchemaMismatchError(only_in_expected, only_in_actual, common)
    if actual != list(expected):
        raise SchemaMismatchError((), (), common, message="Unexpected column order.")


def strip_header(rows: Sequence[Sequence[str]], expected: Sequence[str] = COLUMNS) -> List[Sequence[str]]:
    """Validate the header row and return the data rows.

    An empty response (no header at all) is legal and means "no data".
    """
    if not rows:
        return []
    validate_header(rows[0], expected)
    return list(rows[1:])
