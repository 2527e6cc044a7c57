from __future__ import annotations

import csv
import itertools
import logging
from pathlib import Path
from typing import Any, Iterable, Union

from africastalking_account.ussd_sessions.codec import encode_session
from africastalking_account.ussd_sessions.models import Session
from africastalking_account.ussd_sessions.schema import COLUMNS

logger = logging.getLogger(__name__)

_END = object()


def write_sessions(writer: Any, sessions: Iterable[Session]) -> int:
    """
    Write the header row, then one row per session, through a ``csv.writer``.

    Rows go out as the sessions arrive, so a failure mid-way leaves whatever
    the writer already flushed.
    """
    writer.writerow(COLUMNS)
    count = 0
    for session in sessions:
        writer.writerow(encode_session(session))
        count += 1
    return count


def export_to(path: Union[str, Path], sessions: Iterable[Session]) -> int:
    """
    Write ``sessions`` to ``path`` as UTF-8 CSV.

    The first session is pulled before the file is opened, so a failure on
    the first page leaves an existing export untouched.
    """
    remaining = iter(sessions)
    first = next(remaining, _END)
    if first is not _END:
        remaining = itertools.chain([first], remaining)
    with open(path, "w", newline="", encoding="utf-8") as f:
        count = write_sessions(csv.writer(f), remaining)
    logger.info("wrote %d sessions to %s", count, path)
    return count
