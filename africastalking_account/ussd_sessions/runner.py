"""CLI runner: export the full USSD session history to CSV."""
from __future__ import annotations

import argparse
import logging
import sys
from datetime import date
from pathlib import Path
from typing import List, Optional

from africastalking_account.config import runtime_config
from africastalking_account.identity.auth import login
from africastalking_account.ussd_sessions.engine import iter_sessions
from africastalking_account.ussd_sessions.errors import UssdExportError
from africastalking_account.ussd_sessions.export import export_to
from africastalking_account.ussd_sessions.fetcher import PAGE_SIZE, SessionFetcher, build_client

logger = logging.getLogger(__name__)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected YYYY-MM-DD, got {value!r}") from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Export all USSD sessions of an Africa's Talking app to CSV")
    parser.add_argument("output", type=Path, help="Destination CSV file")
    parser.add_argument("--end-date", type=_parse_date, default=None, help="Newest day to export (default: today, UTC)")
    parser.add_argument("--page-size", type=int, default=PAGE_SIZE, help="Sessions per export request")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log every request")
    return parser


def run(output: Path, end_date: Optional[date] = None, page_size: int = PAGE_SIZE) -> int:
    settings = runtime_config.get_settings().require()
    logger.debug("config: %s", runtime_config.config_snapshot())
    with build_client(settings) as client:
        token = login(client, settings.account_email, settings.account_password)
        fetcher = SessionFetcher(client, settings.app_id, token, page_size=page_size)
        count = export_to(output, iter_sessions(fetcher, end_date, page_size=page_size))
        logger.info("%d export requests made", fetcher.requests_made)
    return count


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    try:
        run(args.output, args.end_date, args.page_size)
    except UssdExportError as exc:
        logger.error("export failed: %s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
