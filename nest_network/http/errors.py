from typing import Any, Optional


class HTTPClientError(Exception):
    """Base class for HTTP client errors."""

    pass


class EncodingError(HTTPClientError):
    """Error for text that cannot be percent-encoded."""

    pass


class MalformedURLError(HTTPClientError):
    """Error for request descriptors whose endpoint or query cannot form a URL.

    Attributes:
        endpoint: The endpoint of the rejected descriptor.
        query_string: The query string of the rejected descriptor.
    """

    def __init__(self, description: str, endpoint: str, query_string: str):
        super().__init__(description)
        self.__endpoint = endpoint
        self.__query_string = query_string

    @property
    def endpoint(self) -> str:
        """The endpoint of the rejected descriptor."""
        return self.__endpoint

    @property
    def query_string(self) -> str:
        """The query string of the rejected descriptor."""
        return self.__query_string


class EncodableSerializationError(HTTPClientError):
    """Error for encodable objects that could not produce a request body.

    Never raised out of request building: the body degrades to empty bytes
    and this error is only reported through logging.
    """

    def __init__(self, description: str, value: Any):
        super().__init__(description)
        self.__value = value

    @property
    def value(self) -> Any:
        """The object that failed to serialize."""
        return self.__value


class TransportError(HTTPClientError):
    """Error for failures reported by the underlying HTTP transport.

    Attributes:
        description: The description of the error.
        method: The HTTP method of the failed request.
        url: The URL of the failed request.
        original_error: The exception raised by the transport.
    """

    def __init__(
        self,
        description: str,
        method: str,
        url: str,
        original_error: Optional[BaseException],
    ):
        super().__init__(description)
        self.__description = description
        self.__method = method
        self.__url = url
        self.__original_error = original_error

    @property
    def description(self) -> str:
        """The description of the error."""
        return self.__description

    @property
    def method(self) -> str:
        """The HTTP method of the failed request."""
        return self.__method

    @property
    def url(self) -> str:
        """The URL of the failed request."""
        return self.__url

    @property
    def original_error(self) -> Optional[BaseException]:
        """The exception raised by the transport."""
        return self.__original_error

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"description='{self.description}', "
            f"method='{self.method}', "
            f"url='{self.url}')"
        )

    def __str__(self) -> str:
        return self.__repr__()
