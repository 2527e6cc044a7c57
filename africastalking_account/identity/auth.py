"""Account sign-in against the provider's dashboard API."""
from __future__ import annotations

import logging
from typing import Any, Dict

import httpx

from africastalking_account.ussd_sessions.errors import LoginError, TransportError
from africastalking_account.ussd_sessions.fetcher import CLIENT_ID

logger = logging.getLogger(__name__)

SIGNIN_PATH = "/auth/signin"
# Minutes east of UTC the dashboard claims to be in; matches the UTC+1 response timestamps.
TIME_OFFSET = 60


def login(client: httpx.Client, email: str, password: str) -> str:
    """Sign in and return the bearer access token."""
    body = {"email": email, "password": password, "timeOffset": TIME_OFFSET}
    try:
        response = client.post(
            SIGNIN_PATH,
            json=body,
            headers={"X-Client-Id": CLIENT_ID, "Accept": "application/json"},
        )
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise TransportError(
            f"sign-in failed with HTTP {exc.response.status_code}",
            status_code=exc.response.status_code,
            url=SIGNIN_PATH,
        ) from exc
    except httpx.HTTPError as exc:
        raise TransportError(f"sign-in failed: {exc}", url=SIGNIN_PATH) from exc

    try:
        payload: Dict[str, Any] = response.json()
    except ValueError as exc:
        raise LoginError("sign-in response is not JSON") from exc

    data = payload.get("data") if isinstance(payload, dict) else None
    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        raise LoginError("sign-in response carries no data.access_token")
    logger.info("signed in as %s", email)
    return token
