import threading
from typing import Generator
from unittest import mock
from unittest.mock import MagicMock

import aiohttp
import pytest
import requests
from aiohttp import ClientConnectionError
from aioresponses import aioresponses
from requests_mock import Mocker

import nest_network.http.client
from nest_network.http.client import NetworkService
from nest_network.http.entities import (
    BuildFailure,
    Failure,
    FormBody,
    JSONBody,
    RequestDescriptor,
    RequestMethod,
    Success,
)
from nest_network.http.errors import MalformedURLError, TransportError
from nest_network.http.utils.diagnostics import RequestDiagnostics

HOST = "https://api.example.com"


@pytest.fixture
def service() -> Generator[NetworkService, None, None]:
    network_service = NetworkService(max_workers=4)
    yield network_service
    network_service.close()


def test_auth_headers_when_no_token_set(service: NetworkService) -> None:
    # when
    result = service.auth_headers()

    # then
    assert result == {}


def test_auth_headers_when_token_set(service: NetworkService) -> None:
    # given
    service.bearer_token = "secret"

    # when
    result = service.auth_headers()

    # then
    assert result == {"Authorization": "Bearer secret"}


def test_auth_headers_when_per_call_token_given(service: NetworkService) -> None:
    # given
    service.configure_bearer_token("secret")

    # when
    result = service.auth_headers(bearer_token="other")

    # then
    assert result == {"Authorization": "Bearer other"}
    assert service.bearer_token == "secret"


def test_setting_bearer_token_with_context_manager(service: NetworkService) -> None:
    # given
    service.configure_bearer_token("outer")

    # when
    with service.use_bearer_token("inner") as configured_service:
        inner_token = configured_service.bearer_token

    # then
    assert inner_token == "inner"
    assert service.bearer_token == "outer"


def test_execute_sync_when_response_received(
    service: NetworkService, requests_mock: Mocker
) -> None:
    # given
    requests_mock.post(
        "https://api.example.com/items?dry_run=true", content=b"ok", status_code=201
    )
    service.bearer_token = "secret"
    descriptor = RequestDescriptor(
        host=HOST,
        endpoint="/items",
        query_string="?dry_run=true",
        method=RequestMethod.POST,
        body_encoding=FormBody(fields={"q": "a b"}),
    )

    # when
    result = service.execute_sync(descriptor)

    # then
    assert isinstance(result, Success)
    assert result.is_success is True
    assert result.data == b"ok"
    assert result.status_code == 201
    assert requests_mock.last_request.headers["Authorization"] == "Bearer secret"
    assert (
        requests_mock.last_request.headers["Content-Type"]
        == "application/x-www-form-urlencoded; charset=utf-8"
    )
    assert requests_mock.last_request.body == b"q=a%20b"


def test_execute_sync_does_not_interpret_error_status(
    service: NetworkService, requests_mock: Mocker
) -> None:
    # given
    requests_mock.get("https://api.example.com/items", status_code=503, content=b"busy")
    descriptor = RequestDescriptor(host=HOST, endpoint="items")

    # when
    result = service.execute_sync(descriptor)

    # then
    assert result == Success(
        data=b"busy", status_code=503, headers=result.headers
    ), "HTTP errors expected to be reported as success with raw bytes"
    assert requests_mock.call_count == 1, "No retries expected"


def test_execute_sync_when_transport_error_occurs(
    service: NetworkService, requests_mock: Mocker
) -> None:
    # given
    original_error = requests.ConnectionError("down")
    requests_mock.get("https://api.example.com/items", exc=original_error)
    descriptor = RequestDescriptor(host=HOST, endpoint="items")

    # when
    result = service.execute_sync(descriptor)

    # then
    assert isinstance(result, Failure)
    assert result.is_success is False
    assert isinstance(result.error, TransportError)
    assert result.error.original_error is original_error
    assert result.error.__cause__ is original_error
    assert result.error.method == "GET"
    assert result.error.url == "https://api.example.com/items"


def test_execute_sync_when_descriptor_is_malformed(
    service: NetworkService, requests_mock: Mocker
) -> None:
    # given
    descriptor = RequestDescriptor(host=HOST, endpoint="items/\udc80")

    # when
    result = service.execute_sync(descriptor)

    # then
    assert isinstance(result, BuildFailure)
    assert isinstance(result.error, MalformedURLError)
    assert requests_mock.call_count == 0, "Nothing expected to be sent"


def test_execute_invokes_callback_exactly_once_on_success(
    service: NetworkService, requests_mock: Mocker
) -> None:
    # given
    requests_mock.get("https://api.example.com/items", content=b"ok")
    callback_called = threading.Event()
    outcomes = []

    def callback(outcome) -> None:
        outcomes.append(outcome)
        callback_called.set()

    descriptor = RequestDescriptor(host=HOST, endpoint="items")

    # when
    future = service.execute(descriptor, on_complete=callback)
    result = future.result(timeout=5)

    # then
    assert result.data == b"ok"
    assert callback_called.wait(timeout=5)
    assert outcomes == [result]


def test_execute_invokes_callback_exactly_once_on_transport_error(
    service: NetworkService, requests_mock: Mocker
) -> None:
    # given
    requests_mock.get("https://api.example.com/items", exc=requests.Timeout("slow"))
    callback_called = threading.Event()
    outcomes = []

    def callback(outcome) -> None:
        outcomes.append(outcome)
        callback_called.set()

    descriptor = RequestDescriptor(host=HOST, endpoint="items")

    # when
    _ = service.execute(descriptor, on_complete=callback)

    # then
    assert callback_called.wait(timeout=5)
    assert len(outcomes) == 1
    assert isinstance(outcomes[0], Failure)


def test_execute_reports_build_failure_to_callback_on_calling_thread(
    service: NetworkService, requests_mock: Mocker
) -> None:
    # given
    calling_threads = []
    outcomes = []

    def callback(outcome) -> None:
        calling_threads.append(threading.current_thread())
        outcomes.append(outcome)

    descriptor = RequestDescriptor(host=HOST, endpoint="\udc80")

    # when
    future = service.execute(descriptor, on_complete=callback)

    # then
    assert future.done()
    assert isinstance(future.result(), BuildFailure)
    assert outcomes == [future.result()]
    assert calling_threads == [threading.current_thread()]
    assert requests_mock.call_count == 0


def test_execute_with_concurrent_descriptors_keeps_requests_apart(
    service: NetworkService, requests_mock: Mocker
) -> None:
    # given
    for index in range(20):
        requests_mock.put(
            f"https://api.example.com/items/{index}", content=str(index).encode()
        )
    descriptors = [
        RequestDescriptor(
            host=HOST,
            endpoint=f"items/{index}",
            method=RequestMethod.PUT,
            body_encoding=JSONBody(data=f'{{"index": {index}}}'.encode()),
        )
        for index in range(20)
    ]

    # when
    futures = [service.execute(descriptor) for descriptor in descriptors]
    results = [future.result(timeout=5) for future in futures]

    # then
    assert [r.data for r in results] == [str(i).encode() for i in range(20)]
    sent = {
        request.path: request.body for request in requests_mock.request_history
    }
    assert sent == {
        f"/items/{index}": f'{{"index": {index}}}'.encode() for index in range(20)
    }


def test_execute_sync_when_diagnostics_fail(requests_mock: Mocker) -> None:
    # given
    requests_mock.get("https://api.example.com/items", content=b"ok")
    diagnostics = MagicMock(spec=RequestDiagnostics)
    diagnostics.log_request.side_effect = RuntimeError("logging broken")
    diagnostics.log_response.side_effect = RuntimeError("logging broken")
    descriptor = RequestDescriptor(host=HOST, endpoint="items")

    # when
    with NetworkService(diagnostics=diagnostics) as service:
        result = service.execute_sync(descriptor)

    # then
    assert result.data == b"ok", "Diagnostics failures must not affect the outcome"
    diagnostics.log_request.assert_called_once()
    diagnostics.log_response.assert_called_once()


def test_execute_sync_when_transport_raises_unexpected_error() -> None:
    # given
    session = MagicMock(spec=requests.Session)
    original_error = UnicodeEncodeError(
        "latin-1", "Bearer tok\u20acn", 10, 11, "ordinal not in range(256)"
    )
    session.request.side_effect = original_error
    descriptor = RequestDescriptor(host=HOST, endpoint="items")

    # when
    with NetworkService(session=session, bearer_token="tok\u20acn") as service:
        result = service.execute_sync(descriptor)

    # then
    assert isinstance(result, Failure)
    assert result.error.original_error is original_error
    assert result.error.__cause__ is original_error


def test_execute_invokes_callback_once_on_unexpected_transport_error() -> None:
    # given
    session = MagicMock(spec=requests.Session)
    session.request.side_effect = UnicodeEncodeError(
        "latin-1", "Bearer tok\u20acn", 10, 11, "ordinal not in range(256)"
    )
    callback_called = threading.Event()
    outcomes = []

    def callback(outcome) -> None:
        outcomes.append(outcome)
        callback_called.set()

    descriptor = RequestDescriptor(host=HOST, endpoint="items")

    # when
    with NetworkService(session=session, bearer_token="tok\u20acn") as service:
        future = service.execute(descriptor, on_complete=callback)
        result = future.result(timeout=5)

    # then
    assert callback_called.wait(timeout=5)
    assert isinstance(result, Failure)
    assert outcomes == [result]


def test_execute_sync_logs_diagnostics_failure_as_warning(
    requests_mock: Mocker,
) -> None:
    # given
    requests_mock.get("https://api.example.com/items", content=b"ok")
    diagnostics = MagicMock(spec=RequestDiagnostics)
    diagnostics.log_request.side_effect = RuntimeError("logging broken")
    descriptor = RequestDescriptor(host=HOST, endpoint="items")

    # when
    with mock.patch.object(nest_network.http.client, "logger") as logger_mock:
        with NetworkService(diagnostics=diagnostics) as service:
            _ = service.execute_sync(descriptor)

    # then
    logger_mock.warning.assert_called_once_with(
        "Could not log request diagnostics.", exc_info=True
    )


def test_close_keeps_session_that_was_given() -> None:
    # given
    session = MagicMock(spec=requests.Session)

    # when
    with NetworkService(session=session) as service:
        assert service.session is session

    # then
    session.close.assert_not_called()


def test_close_closes_owned_session() -> None:
    # given
    service = NetworkService()
    service_session = service.session
    service_session.close = MagicMock()

    # when
    service.close()

    # then
    service_session.close.assert_called_once()


@pytest.mark.asyncio
async def test_execute_async_when_response_received() -> None:
    # given
    descriptor = RequestDescriptor(
        host=HOST,
        endpoint="items",
        method=RequestMethod.POST,
        body_encoding=JSONBody(data=b"{}"),
    )
    service = NetworkService(bearer_token="secret")

    with aioresponses() as m:
        m.post("https://api.example.com/items", body=b"ok", status=202)
        async with aiohttp.ClientSession() as session:
            # when
            result = await service.execute_async(descriptor, session=session)

    service.close()

    # then
    assert isinstance(result, Success)
    assert result.data == b"ok"
    assert result.status_code == 202


@pytest.mark.asyncio
async def test_execute_async_when_transport_error_occurs() -> None:
    # given
    descriptor = RequestDescriptor(host=HOST, endpoint="items")
    service = NetworkService()

    with aioresponses() as m:
        m.get("https://api.example.com/items", exception=ClientConnectionError())
        # when
        result = await service.execute_async(descriptor)

    service.close()

    # then
    assert isinstance(result, Failure)
    assert isinstance(result.error.original_error, ClientConnectionError)


@pytest.mark.asyncio
async def test_execute_async_when_descriptor_is_malformed() -> None:
    # given
    descriptor = RequestDescriptor(host=HOST, endpoint="\udc80")
    service = NetworkService()

    # when
    result = await service.execute_async(descriptor)

    service.close()

    # then
    assert isinstance(result, BuildFailure)


@pytest.mark.asyncio
async def test_execute_async_when_transport_raises_unexpected_error() -> None:
    # given
    descriptor = RequestDescriptor(host=HOST, endpoint="items")
    service = NetworkService()
    original_error = ValueError("invalid header value")

    with aioresponses() as m:
        m.get("https://api.example.com/items", exception=original_error)
        # when
        result = await service.execute_async(descriptor)

    service.close()

    # then
    assert isinstance(result, Failure)
    assert result.error.original_error is original_error
