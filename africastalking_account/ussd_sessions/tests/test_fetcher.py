from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock

import httpx
import pytest

from africastalking_account.config.runtime_config import Settings
from africastalking_account.ussd_sessions.errors import FormatError, SchemaMismatchError, TransportError
from africastalking_account.ussd_sessions.fetcher import CLIENT_ID, SessionFetcher, build_client, parse_export


def _client_returning(text: str) -> MagicMock:
    mock_response = MagicMock()
    mock_response.text = text
    mock_response.raise_for_status.return_value = None
    client = MagicMock()
    client.get.return_value = mock_response
    return client


def test_fetch_page_request_shape(header_line) -> None:
    client = _client_returning(header_line + "\n")
    fetcher = SessionFetcher(client, app_id="app_42", access_token="tok", page_size=10000)

    assert fetcher.fetch_page(date(2021, 5, 1), date(2021, 6, 1)) == []

    client.get.assert_called_once_with(
        "/apps/app_42/ussd/sessions/export",
        params={"page": 0, "count": 10000, "startDate": "2021-05-01", "endDate": "2021-06-01"},
        headers={"X-Client-Id": "nest.account.dashboard", "Authorization": "Bearer tok"},
    )
    assert fetcher.requests_made == 1


def test_fetch_page_decodes_rows(header_line) -> None:
    body = "\r\n".join([
        header_line,
        '"June 1, 2021 3:05 PM",ATUid_1,*384*123#,+254711000000,4,90s,KES 123.45,Success,"1*2"',
        '"May 30, 2021 11:59 PM",ATUid_2,*384*123#,+254722000000,1,5s,None,Incomplete,N/A',
    ])
    fetcher = SessionFetcher(_client_returning(body), "app_42", "tok")

    sessions = fetcher(date(2021, 5, 1), date(2021, 6, 1))

    assert [s.session_id for s in sessions] == ["ATUid_1", "ATUid_2"]
    assert sessions[0].cost.amount == Decimal("123.45")
    assert sessions[1].cost.currency == "XXX"
    assert sessions[1].ussd_input is None
    assert sessions[1].status == "Incomplete"


def test_empty_body_means_no_data() -> None:
    assert parse_export("") == []


def test_schema_drift_is_fatal() -> None:
    body = "Date,SessionId,ServiceCode,PhoneNumber,Hops,Duration,Cost,Status\n"
    with pytest.raises(SchemaMismatchError) as exc_info:
        SessionFetcher(_client_returning(body), "app_42", "tok").fetch_page(date(2021, 5, 1), date(2021, 6, 1))
    assert exc_info.value.only_in_expected == {"Input"}


def test_malformed_row_is_fatal(header_line) -> None:
    body = header_line + '\n"June 1, 2021 3:05 PM",ATUid_1,*384#,+254711000000,4,90,None,Success,N/A\n'
    with pytest.raises(FormatError) as exc_info:
        parse_export(body)
    assert exc_info.value.field == "Duration"


def test_unquoted_date_splits_the_row(header_line) -> None:
    body = header_line + "\nJune 1, 2021 3:05 PM,ATUid_1,*384#,+254711000000,4,90s,None,Success,N/A\n"
    with pytest.raises(FormatError) as exc_info:
        parse_export(body)
    assert exc_info.value.field == "row"


def test_http_status_error_becomes_transport_error() -> None:
    request = httpx.Request("GET", "https://account.africastalking.com/api/v1/apps/app_42/ussd/sessions/export")
    client = _client_returning("")
    client.get.return_value.raise_for_status.side_effect = httpx.HTTPStatusError(
        "unauthorised", request=request, response=httpx.Response(401, request=request)
    )

    with pytest.raises(TransportError) as exc_info:
        SessionFetcher(client, "app_42", "tok").fetch_page(date(2021, 5, 1), date(2021, 6, 1))
    assert exc_info.value.status_code == 401
    assert client.get.call_count == 1


def test_network_error_becomes_transport_error() -> None:
    client = MagicMock()
    client.get.side_effect = httpx.ConnectTimeout("timed out")

    with pytest.raises(TransportError) as exc_info:
        SessionFetcher(client, "app_42", "tok").fetch_page(date(2021, 5, 1), date(2021, 6, 1))
    assert exc_info.value.status_code is None
    assert isinstance(exc_info.value.__cause__, httpx.ConnectTimeout)


def test_build_client() -> None:
    settings = Settings(
        app_id="app_42",
        account_email="ops@example.com",
        account_password="secret",
        base_url="https://account.example.test/api/v1",
        http_timeout=12.5,
    )
    with build_client(settings) as client:
        assert str(client.base_url).startswith("https://account.example.test/api/v1")
        assert client.headers["X-Client-Id"] == CLIENT_ID
        assert client.timeout.read == 12.5
