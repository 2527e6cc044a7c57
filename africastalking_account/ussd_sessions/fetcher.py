"""Page fetcher: one bounded export request per date window."""
from __future__ import annotations

import csv
import io
import logging
from datetime import date
from typing import List

import httpx

from africastalking_account.config.runtime_config import Settings
from africastalking_account.ussd_sessions.codec import decode_row, encode_request_date
from africastalking_account.ussd_sessions.errors import TransportError
from africastalking_account.ussd_sessions.models import Session
from africastalking_account.ussd_sessions.schema import strip_header

logger = logging.getLogger(__name__)

CLIENT_ID = "nest.account.dashboard"
PAGE_SIZE = 10000


def build_client(settings: Settings) -> httpx.Client:
    """HTTP client for the account API. Retries, if any, belong on its transport."""
    return httpx.Client(
        base_url=settings.base_url,
        headers={"X-Client-Id": CLIENT_ID},
        timeout=settings.http_timeout,
    )


def parse_export(body: str) -> List[Session]:
    rows = [row for row in csv.reader(io.StringIO(body)) if row]
    return [decode_row(row) for row in strip_header(rows)]


class SessionFetcher:
    """
    Retrieves sessions between two dates (both inclusive, request timezone),
    up to ``page_size`` of them.

    When a window holds more than ``page_size`` sessions the provider keeps
    the newest ones and silently drops the rest. Rows are assumed to arrive
    newest first; nothing here checks that.
    """

    def __init__(
        self,
        client: httpx.Client,
        app_id: str,
        access_token: str,
        page_size: int = PAGE_SIZE,
    ):
        self.client = client
        self.app_id = app_id
        self.access_token = access_token
        self.page_size = page_size
        self.requests_made = 0

    @property
    def path(self) -> str:
        return f"/apps/{self.app_id}/ussd/sessions/export"

    def fetch_page(self, start_date: date, end_date: date) -> List[Session]:
        params = {
            # `page` appears to be ignored when `count` is the full page size.
            "page": 0,
            "count": self.page_size,
            "startDate": encode_request_date(start_date),
            "endDate": encode_request_date(end_date),
        }
        headers = {
            "X-Client-Id": CLIENT_ID,
            "Authorization": f"Bearer {self.access_token}",
        }
        self.requests_made += 1
        logger.debug("GET %s %s..%s", self.path, params["startDate"], params["endDate"])
        try:
            response = self.client.get(self.path, params=params, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise TransportError(
                f"export request failed with HTTP {exc.response.status_code}",
                status_code=exc.response.status_code,
                url=self.path,
            ) from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"export request failed: {exc}", url=self.path) from exc

        sessions = parse_export(response.text)
        logger.debug("window %s..%s returned %d sessions", start_date, end_date, len(sessions))
        return sessions

    __call__ = fetch_page
