# tests/test_execution_btcmarkets.py

from unittest.mock import Mock

import pytest
import requests

from core.btcmarkets_utils import sign_request
from core.credentials import Credentials
from core.exceptions import (
    ExecutionError,
    HttpStatusError,
    MissingCredentialsError,
    SigningError,
)
from core.execution_btcmarkets import BTCMarketsExecutionClient

API_KEY = "my-api-key"
PRIVATE_KEY = "c2VjcmV0"
TIMESTAMP = 1400000000000
ORDER_BODY = '{"currency":"AUD","instrument":"BTC","limit":10,"since":1}'


def make_response(status_code: int = 200, reason: str = "OK", text: str = '{"ok":true}') -> Mock:
    resp = Mock()
    resp.status_code = status_code
    resp.reason = reason
    resp.text = text
    return resp


def make_session(response=None, error=None) -> Mock:
    session = Mock()
    if error is not None:
        session.request.side_effect = error
    else:
        session.request.return_value = response
    return session


def make_executor(session, credentials=None) -> BTCMarketsExecutionClient:
    return BTCMarketsExecutionClient(
        credentials=credentials or Credentials(api_key=API_KEY, private_key=PRIVATE_KEY),
        session_factory=lambda: session,
        clock=lambda: TIMESTAMP,
    )


def test_get_request_headers_and_signature():
    resp = make_response(text='[{"balance":1}]')
    session = make_session(resp)

    body = make_executor(session).execute("/account/balance")

    assert body == '[{"balance":1}]'
    args, kwargs = session.request.call_args
    assert args == ("GET", "https://api.btcmarkets.net/account/balance")
    assert kwargs["data"] is None
    assert kwargs["headers"] == {
        "Accept": "*/*",
        "Accept-Charset": "UTF-8",
        "Content-Type": "application/json",
        "apikey": API_KEY,
        "timestamp": "1400000000000",
        "signature": (
            "4f6X4UJJf/BOKx4mBs3Gqt4u/FMj9MgN7qoyb0X+AnJRGQuT1AsG7xWcYW+YQVH3wiy7HPle4P8piv0ObWVkJw=="
        ),
    }


def test_post_sends_exactly_the_signed_bytes():
    session = make_session(make_response())

    make_executor(session).execute("/order/history", ORDER_BODY)

    args, kwargs = session.request.call_args
    assert args[0] == "POST"
    assert kwargs["data"] == ORDER_BODY.encode("utf-8")

    expected_sig = sign_request(PRIVATE_KEY, "/order/history\n1400000000000\n" + ORDER_BODY)
    assert kwargs["headers"]["signature"] == expected_sig
    assert kwargs["headers"]["timestamp"] == "1400000000000"


def test_prepare_builds_signed_request():
    executor = make_executor(make_session(make_response()))

    signed = executor.prepare("/order/open", ORDER_BODY)

    assert signed.method == "POST"
    assert signed.timestamp == "1400000000000"
    assert signed.string_to_sign == "/order/open\n1400000000000\n" + ORDER_BODY
    assert signed.signature == sign_request(PRIVATE_KEY, signed.string_to_sign)


def test_timeout_is_passed_to_transport():
    session = make_session(make_response())
    executor = BTCMarketsExecutionClient(
        Credentials(API_KEY, PRIVATE_KEY),
        timeout=(1.0, 2.0),
        session_factory=lambda: session,
        clock=lambda: TIMESTAMP,
    )

    executor.execute("/account/balance")

    assert session.request.call_args.kwargs["timeout"] == (1.0, 2.0)


def test_success_releases_response_and_session():
    resp = make_response()
    session = make_session(resp)

    make_executor(session).execute("/account/balance")

    resp.close.assert_called_once()
    session.close.assert_called_once()


def test_non_200_raises_http_status_error_and_releases_resources():
    resp = make_response(status_code=401, reason="Unauthorized", text='{"success":false}')
    session = make_session(resp)

    with pytest.raises(HttpStatusError) as exc_info:
        make_executor(session).execute("/order/history", ORDER_BODY)

    assert exc_info.value.status_code == 401
    assert exc_info.value.reason == "Unauthorized"
    assert exc_info.value.path == "/order/history"
    resp.close.assert_called_once()
    session.close.assert_called_once()


def test_transport_error_is_wrapped_and_session_closed():
    error = requests.ConnectionError("dns failure")
    session = make_session(error=error)

    with pytest.raises(ExecutionError) as exc_info:
        make_executor(session).execute("/account/balance")

    assert exc_info.value.__cause__ is error
    session.close.assert_called_once()


def test_timeout_error_is_not_retried():
    session = make_session(error=requests.Timeout("read timeout"))

    with pytest.raises(ExecutionError):
        make_executor(session).execute("/order/create", "{}")

    assert session.request.call_count == 1


@pytest.mark.parametrize(
    "credentials",
    [
        Credentials(),
        Credentials(api_key="abc"),
        Credentials(private_key=PRIVATE_KEY),
        Credentials(api_key="", private_key=PRIVATE_KEY),
    ],
)
def test_missing_credentials_abort_before_transport(credentials):
    factory = Mock()
    executor = BTCMarketsExecutionClient(credentials, session_factory=factory)

    with pytest.raises(MissingCredentialsError):
        executor.execute("/account/balance")

    factory.assert_not_called()


def test_invalid_private_key_aborts_before_transport():
    factory = Mock()
    executor = BTCMarketsExecutionClient(
        Credentials(api_key=API_KEY, private_key="not base64!!"),
        session_factory=factory,
    )

    with pytest.raises(SigningError):
        executor.execute("/order/history", ORDER_BODY)

    factory.assert_not_called()
