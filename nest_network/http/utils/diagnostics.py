import logging
import re
from typing import Mapping, Optional

from nest_network.config import (
    AUTHORIZATION_HEADER,
    LOGGED_BODY_LIMIT,
    REQUEST_LOGGING,
    RESPONSE_DATA_LOGGING,
    RESPONSE_LOGGING,
)
from nest_network.http.entities import BuiltRequest
from nest_network.utils.logging import get_logger

BEARER_TOKEN_PATTERN = re.compile(r"^(Bearer\s+)(.+)$", re.IGNORECASE)
TOKEN_VALUE_GROUP = 2
MIN_TOKEN_LENGTH_TO_REVEAL_PREFIX = 8


class RequestDiagnostics:
    """Emits request and response details, each kind behind its own flag.

    Attributes:
        request_logging: Log built requests before they are sent.
        response_logging: Log transport results.
        response_data_logging: Include body content in both.
        body_limit: Number of request body bytes rendered.
    """

    def __init__(
        self,
        request_logging: bool = REQUEST_LOGGING,
        response_logging: bool = RESPONSE_LOGGING,
        response_data_logging: bool = RESPONSE_DATA_LOGGING,
        body_limit: int = LOGGED_BODY_LIMIT,
        logger: Optional[logging.Logger] = None,
    ):
        self.request_logging = request_logging
        self.response_logging = response_logging
        self.response_data_logging = response_data_logging
        self.body_limit = body_limit
        self._logger = logger or get_logger("http.diagnostics")

    def log_request(self, request: BuiltRequest) -> None:
        if not self.request_logging:
            return None
        self._logger.info(">>> Network Request >>>")
        self._log_detail(">>> URL:", request.url)
        self._log_detail(">>> Method:", request.method.value)
        for name, value in redact_headers(request.headers).items():
            self._log_detail(f">>> {name}:", value)
        if self.response_data_logging and request.body is not None:
            self._log_detail(">>> Data Length:", len(request.body))
            self._log_detail(">>> Data:", _render_body(request.body[: self.body_limit]))
        self._logger.info(">>> ............... >>>")

    def log_response(
        self,
        data: Optional[bytes],
        status_code: Optional[int],
        headers: Optional[Mapping[str, str]],
        error: Optional[BaseException],
    ) -> None:
        if not self.response_logging:
            return None
        self._logger.info("<<< Network Response <<<")
        if error is not None:
            self._log_detail("<<< Error:", error)
        if status_code is not None:
            self._log_detail("<<< Status Code:", status_code)
        for name, value in (headers or {}).items():
            self._log_detail(f"<<< {name}:", value)
        if data is not None:
            self._log_detail("<<< Data Length:", len(data))
            if self.response_data_logging:
                self._log_detail("<<< Data:", _render_body(data))
        self._logger.info("<<< ................ <<<")

    def _log_detail(self, prefix: str, value: object) -> None:
        if value is None:
            self._logger.info("%s nil", prefix)
            return None
        self._logger.info("%s %s", prefix, value)


def redact_headers(headers: Mapping[str, str]) -> Mapping[str, str]:
    """Mask bearer token in headers meant for logging.

    Args:
        headers: The request headers.

    Returns:
        Copy of the headers with the Authorization value masked.
    """
    return {
        name: (
            deduct_bearer_token(value)
            if name.lower() == AUTHORIZATION_HEADER.lower()
            else value
        )
        for name, value in headers.items()
    }


def deduct_bearer_token(value: str) -> str:
    """Mask the token of an Authorization header value.

    Args:
        value: The header value, e.g. `Bearer abcdefgh1234`.

    Returns:
        The value with the token masked, e.g. `Bearer ab***34`.
    """
    match = BEARER_TOKEN_PATTERN.match(value)
    if match is None:
        return "***"
    scheme = match.group(1)
    token = match.group(TOKEN_VALUE_GROUP)
    if len(token) < MIN_TOKEN_LENGTH_TO_REVEAL_PREFIX:
        return f"{scheme}***"
    return f"{scheme}{token[:2]}***{token[-2:]}"


def _render_body(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")
