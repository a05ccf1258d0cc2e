import asyncio
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import aiohttp
import requests

from nest_network.http.entities import BuiltRequest

TRANSPORT_ERRORS = (requests.RequestException,)
ASYNC_TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError)


@dataclass(frozen=True)
class TransportResponse:
    """Raw result of a request that reached the server.

    Attributes:
        data: The response body.
        status_code: The HTTP status code.
        headers: The response headers.
    """

    data: bytes
    status_code: int
    headers: Dict[str, str] = field(default_factory=dict)


def make_request(
    request: BuiltRequest,
    session: requests.Session,
    timeout: Optional[float] = None,
) -> TransportResponse:
    """Send a built request through a `requests` session.

    Args:
        request: The request to send.
        session: The session to send it with.
        timeout: Timeout in seconds, None for no timeout.

    Returns:
        The response, whatever its status code.

    Raises:
        requests.RequestException: On transport-level failure.
    """
    response = session.request(
        request.method.value,
        request.url,
        headers=request.headers,
        data=request.body,
        timeout=timeout,
    )
    return TransportResponse(
        data=response.content,
        status_code=response.status_code,
        headers=dict(response.headers),
    )


async def make_request_async(
    request: BuiltRequest,
    session: aiohttp.ClientSession,
    timeout: Optional[float] = None,
) -> TransportResponse:
    """Send a built request through an `aiohttp` session.

    Args:
        request: The request to send.
        session: The session to send it with.
        timeout: Total timeout in seconds, None for the session default.

    Returns:
        The response, whatever its status code.

    Raises:
        aiohttp.ClientError: On transport-level failure.
        asyncio.TimeoutError: When the timeout expires.
    """
    request_kwargs: Dict[str, Any] = {
        "headers": request.headers,
        "data": request.body,
    }
    if timeout is not None:
        request_kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)
    async with session.request(
        request.method.value, request.url, **request_kwargs
    ) as response:
        data = await response.read()
        return TransportResponse(
            data=data,
            status_code=response.status,
            headers=dict(response.headers),
        )
