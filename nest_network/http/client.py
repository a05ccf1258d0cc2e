import threading
from concurrent.futures import Future, ThreadPoolExecutor
from contextlib import contextmanager
from functools import partial
from typing import Callable, Dict, Generator, Optional

import aiohttp
import requests

from nest_network.config import (
    AUTHORIZATION_HEADER,
    DISPATCH_MAX_WORKERS,
    REQUEST_LOGGING,
    REQUEST_TIMEOUT,
    RESPONSE_DATA_LOGGING,
    RESPONSE_LOGGING,
)
from nest_network.http.entities import (
    BuildFailure,
    BuiltRequest,
    DispatchOutcome,
    Failure,
    RequestDescriptor,
    Success,
)
from nest_network.http.errors import MalformedURLError, TransportError
from nest_network.http.utils.diagnostics import RequestDiagnostics
from nest_network.http.utils.executors import (
    ASYNC_TRANSPORT_ERRORS,
    TRANSPORT_ERRORS,
    TransportResponse,
    make_request,
    make_request_async,
)
from nest_network.http.utils.request_building import build_request
from nest_network.utils.logging import get_logger

logger = get_logger("http.client")

CompletionCallback = Callable[[DispatchOutcome], None]


class NetworkService:
    """Dispatches request descriptors and reports exactly one outcome per call.

    The service owns a long-lived `requests.Session` (unless one is given) and
    a thread pool backing the non-blocking `execute(...)`. HTTP status codes
    are never interpreted: any response that arrives is a `Success`, only
    transport-level errors produce `Failure`, and descriptors that cannot be
    turned into a URL produce `BuildFailure` without touching the network.

    Example:
        >>> with NetworkService(bearer_token="secret") as service:
        ...     outcome = service.execute_sync(
        ...         RequestDescriptor(host="https://api.example.com", endpoint="items")
        ...     )
    """

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        bearer_token: Optional[str] = None,
        request_logging: bool = REQUEST_LOGGING,
        response_logging: bool = RESPONSE_LOGGING,
        response_data_logging: bool = RESPONSE_DATA_LOGGING,
        timeout: Optional[float] = REQUEST_TIMEOUT,
        max_workers: int = DISPATCH_MAX_WORKERS,
        diagnostics: Optional[RequestDiagnostics] = None,
    ):
        self.__owns_session = session is None
        self.__session = session if session is not None else requests.Session()
        self.__bearer_token = bearer_token
        self.__bearer_token_lock = threading.Lock()
        self.__timeout = timeout
        self.__executor = ThreadPoolExecutor(
            max_workers=max(max_workers, 1),
            thread_name_prefix="nest_network",
        )
        if diagnostics is None:
            diagnostics = RequestDiagnostics(
                request_logging=request_logging,
                response_logging=response_logging,
                response_data_logging=response_data_logging,
            )
        self.__diagnostics = diagnostics

    @property
    def session(self) -> requests.Session:
        return self.__session

    @property
    def timeout(self) -> Optional[float]:
        return self.__timeout

    @property
    def diagnostics(self) -> RequestDiagnostics:
        return self.__diagnostics

    @property
    def bearer_token(self) -> Optional[str]:
        with self.__bearer_token_lock:
            return self.__bearer_token

    @bearer_token.setter
    def bearer_token(self, value: Optional[str]) -> None:
        with self.__bearer_token_lock:
            self.__bearer_token = value

    def configure_bearer_token(self, bearer_token: Optional[str]) -> "NetworkService":
        self.bearer_token = bearer_token
        return self

    @contextmanager
    def use_bearer_token(
        self, bearer_token: Optional[str]
    ) -> Generator["NetworkService", None, None]:
        with self.__bearer_token_lock:
            previous_bearer_token = self.__bearer_token
            self.__bearer_token = bearer_token
        try:
            yield self
        finally:
            with self.__bearer_token_lock:
                self.__bearer_token = previous_bearer_token

    def auth_headers(self, bearer_token: Optional[str] = None) -> Dict[str, str]:
        if bearer_token is None:
            bearer_token = self.bearer_token
        if bearer_token is None:
            return {}
        return {AUTHORIZATION_HEADER: f"Bearer {bearer_token}"}

    def execute(
        self,
        descriptor: RequestDescriptor,
        on_complete: Optional[CompletionCallback] = None,
        bearer_token: Optional[str] = None,
    ) -> "Future[DispatchOutcome]":
        """Dispatch a request without blocking.

        The request is built on the calling thread. When building fails the
        returned future is already resolved with `BuildFailure` and
        `on_complete` runs on the calling thread; otherwise the transport call
        runs on the service thread pool and `on_complete` runs there. The
        callback is invoked exactly once, unless the future gets cancelled
        before the request starts.

        Args:
            descriptor: The request to dispatch.
            on_complete: Optional callback receiving the outcome.
            bearer_token: Token used for this call only, instead of the
                service-wide one.

        Returns:
            Future resolved with the outcome.
        """
        try:
            request = self._build(descriptor=descriptor, bearer_token=bearer_token)
        except MalformedURLError as error:
            future: "Future[DispatchOutcome]" = Future()
            _attach_completion_callback(future=future, on_complete=on_complete)
            future.set_result(_build_failure(error=error))
            return future
        future = self.__executor.submit(self._dispatch, request)
        _attach_completion_callback(future=future, on_complete=on_complete)
        return future

    def execute_sync(
        self,
        descriptor: RequestDescriptor,
        bearer_token: Optional[str] = None,
    ) -> DispatchOutcome:
        """Dispatch a request on the calling thread.

        Args:
            descriptor: The request to dispatch.
            bearer_token: Token used for this call only.

        Returns:
            The outcome.
        """
        try:
            request = self._build(descriptor=descriptor, bearer_token=bearer_token)
        except MalformedURLError as error:
            return _build_failure(error=error)
        return self._dispatch(request)

    async def execute_async(
        self,
        descriptor: RequestDescriptor,
        session: Optional[aiohttp.ClientSession] = None,
        bearer_token: Optional[str] = None,
    ) -> DispatchOutcome:
        """Dispatch a request with aiohttp.

        Args:
            descriptor: The request to dispatch.
            session: Session to send the request with. When not given, a
                session is opened for this call only.
            bearer_token: Token used for this call only.

        Returns:
            The outcome.
        """
        try:
            request = self._build(descriptor=descriptor, bearer_token=bearer_token)
        except MalformedURLError as error:
            return _build_failure(error=error)
        if session is not None:
            return await self._dispatch_async(request=request, session=session)
        async with aiohttp.ClientSession() as owned_session:
            return await self._dispatch_async(request=request, session=owned_session)

    def close(self) -> None:
        self.__executor.shutdown(wait=True)
        if self.__owns_session:
            self.__session.close()

    def __enter__(self) -> "NetworkService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def _build(
        self, descriptor: RequestDescriptor, bearer_token: Optional[str]
    ) -> BuiltRequest:
        return build_request(
            descriptor=descriptor,
            headers=self.auth_headers(bearer_token=bearer_token),
        )

    def _dispatch(self, request: BuiltRequest) -> DispatchOutcome:
        self._log_request(request=request)
        try:
            response = make_request(
                request=request,
                session=self.__session,
                timeout=self.__timeout,
            )
        except TRANSPORT_ERRORS as error:
            return self._transport_failure(request=request, error=error)
        except Exception as error:
            return self._unexpected_transport_failure(request=request, error=error)
        return self._success(response=response)

    async def _dispatch_async(
        self, request: BuiltRequest, session: aiohttp.ClientSession
    ) -> DispatchOutcome:
        self._log_request(request=request)
        try:
            response = await make_request_async(
                request=request,
                session=session,
                timeout=self.__timeout,
            )
        except ASYNC_TRANSPORT_ERRORS as error:
            return self._transport_failure(request=request, error=error)
        except Exception as error:
            return self._unexpected_transport_failure(request=request, error=error)
        return self._success(response=response)

    def _success(self, response: TransportResponse) -> Success:
        self._log_response(
            data=response.data,
            status_code=response.status_code,
            headers=response.headers,
        )
        return Success(
            data=response.data,
            status_code=response.status_code,
            headers=response.headers,
        )

    def _transport_failure(
        self, request: BuiltRequest, error: BaseException
    ) -> Failure:
        self._log_response(error=error)
        transport_error = TransportError(
            description=f"Error with server connection: {error}",
            method=request.method.value,
            url=request.url,
            original_error=error,
        )
        transport_error.__cause__ = error
        return Failure(error=transport_error)

    def _unexpected_transport_failure(
        self, request: BuiltRequest, error: Exception
    ) -> Failure:
        # e.g. http.client refusing a header value that is not latin-1
        logger.warning(
            f"Transport raised {type(error).__name__} for "
            f"{request.method.value} {request.url}",
            exc_info=True,
        )
        return self._transport_failure(request=request, error=error)

    def _log_request(self, request: BuiltRequest) -> None:
        try:
            self.__diagnostics.log_request(request)
        except Exception:
            logger.warning("Could not log request diagnostics.", exc_info=True)

    def _log_response(
        self,
        data: Optional[bytes] = None,
        status_code: Optional[int] = None,
        headers: Optional[Dict[str, str]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        try:
            self.__diagnostics.log_response(
                data=data, status_code=status_code, headers=headers, error=error
            )
        except Exception:
            logger.warning("Could not log response diagnostics.", exc_info=True)


def _build_failure(error: MalformedURLError) -> BuildFailure:
    logger.warning(f"Request not sent: {error}")
    return BuildFailure(error=error)


def _deliver_outcome(
    future: "Future[DispatchOutcome]", on_complete: CompletionCallback
) -> None:
    if future.cancelled():
        return None
    on_complete(future.result())


def _attach_completion_callback(
    future: "Future[DispatchOutcome]", on_complete: Optional[CompletionCallback]
) -> None:
    if on_complete is None:
        return None
    future.add_done_callback(partial(_deliver_outcome, on_complete=on_complete))
