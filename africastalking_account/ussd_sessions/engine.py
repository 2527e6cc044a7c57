"""
Backward pagination over the USSD session export.

The export endpoint has no cursor: it answers a date window with at most
``page_size`` sessions, and when the window holds more it keeps the newest
and drops the oldest without saying so. Walking backwards one month at a
time, the oldest date of every page is therefore suspect. Sessions on that
date are withheld and re-requested as part of the next window, which starts
on that very date.

If the oldest date of a page is the window's own end date, a single day
fills the page by itself. One last request for just that day is made and
emitted as is; sessions beyond ``page_size`` on such a day cannot be
retrieved at all.
"""
from __future__ import annotations

import calendar
import logging
from datetime import date, datetime, tzinfo
from typing import Callable, Iterator, List, Optional, Tuple

from africastalking_account.ussd_sessions.models import REQUEST_TZ, Session

logger = logging.getLogger(__name__)

PageFetcher = Callable[[date, date], List[Session]]


def minus_months(value: date, months: int) -> date:
    """Calendar month arithmetic, clamping to the last day of shorter months."""
    index = value.year * 12 + (value.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    day = min(value.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def today(request_tz: tzinfo = REQUEST_TZ) -> date:
    return datetime.now(request_tz).date()


class BackwardPaginator:
    """
    Explicit state machine behind ``iter_sessions``.

    The only state carried from one step to the next is ``cursor`` (the end
    of the next window) and the sessions withheld on the previous page's
    oldest date.
    """

    def __init__(
        self,
        fetch_page: PageFetcher,
        end_date: Optional[date] = None,
        request_tz: tzinfo = REQUEST_TZ,
        page_size: Optional[int] = None,
    ):
        self.fetch_page = fetch_page
        self.request_tz = request_tz
        self.cursor = end_date or today(request_tz)
        self.page_size = page_size
        self.done = False
        self._withheld: List[Session] = []

    def step(self) -> Tuple[List[Session], bool]:
        """Fetch one window. Returns the sessions to emit and whether this was the last step."""
        if self.done:
            return [], True

        cursor = self.cursor
        sessions = self.fetch_page(minus_months(cursor, 1), cursor)
        if not sessions:
            # Nothing at or before the window; whatever was withheld for the
            # previous boundary date is the only copy there is.
            self.done = True
            withheld, self._withheld = self._withheld, []
            logger.debug("empty window ending %s, flushing %d withheld", cursor, len(withheld))
            return withheld, True

        earliest_date = sessions[-1].request_date(self.request_tz)
        if earliest_date >= cursor:
            self.done = True
            self._withheld = []
            logger.info("window collapsed onto %s, fetching that day alone", cursor)
            last = self.fetch_page(cursor, cursor)
            if self.page_size is not None and len(last) >= self.page_size:
                logger.warning(
                    "%s alone fills a page of %d sessions; older sessions on that day are lost",
                    cursor,
                    self.page_size,
                )
            return last, True

        safe = [s for s in sessions if s.request_date(self.request_tz) > earliest_date]
        self._withheld = [s for s in sessions if s.request_date(self.request_tz) == earliest_date]
        self.cursor = earliest_date
        logger.debug(
            "window ending %s: %d emitted, %d withheld on %s",
            cursor,
            len(safe),
            len(self._withheld),
            earliest_date,
        )
        return safe, False

    def __iter__(self) -> Iterator[Session]:
        while True:
            segment, last = self.step()
            yield from segment
            if last:
                return


def iter_sessions(
    fetch_page: PageFetcher,
    end_date: Optional[date] = None,
    request_tz: tzinfo = REQUEST_TZ,
    page_size: Optional[int] = None,
) -> Iterator[Session]:
    """
    Lazily yield every retained session up to and including ``end_date``,
    newest first, each exactly once.

    WARNING: consuming the iterator makes HTTP calls, one per window.
    """
    return iter(BackwardPaginator(fetch_page, end_date, request_tz, page_size))
