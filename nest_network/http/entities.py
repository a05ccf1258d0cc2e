from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import (
    Any,
    Dict,
    Mapping,
    Optional,
    Protocol,
    Tuple,
    Union,
    runtime_checkable,
)

from dataclasses_json import DataClassJsonMixin

from nest_network.http.errors import MalformedURLError, TransportError


class RequestMethod(str, Enum):
    """Enum for the request method.

    Attributes:
        GET: The GET method.
        POST: The POST method.
        PUT: The PUT method.
        DELETE: The DELETE method.
    """

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    DELETE = "DELETE"


@runtime_checkable
class NetworkEncodable(Protocol):
    """Anything able to turn itself into a request body.

    `to_bytes()` returns None (or raises) when serialization fails.
    """

    def to_bytes(self) -> Optional[bytes]: ...


class JSONEncodableMixin(DataClassJsonMixin):
    """Mixin making a dataclass usable as `EncodableObjectBody` value.

    Example:
        >>> @dataclass
        ... class Note(JSONEncodableMixin):
        ...     title: str
        >>> Note(title="hi").to_bytes()
        b'{"title": "hi"}'
    """

    def to_bytes(self) -> Optional[bytes]:
        return self.to_json().encode("utf-8")


@dataclass(frozen=True)
class MultipartFormElement:
    """Single part of a multipart form.

    Attributes:
        name: The form field name.
        data: The raw part content.
        file_name: The file name, present only for file parts.
        content_type: The content type of the part, if any.
    """

    name: str
    data: bytes
    file_name: Optional[str] = None
    content_type: Optional[str] = None

    @classmethod
    def from_value(cls, name: str, value: str) -> "MultipartFormElement":
        try:
            data = value.encode("utf-8")
        except UnicodeEncodeError:
            data = b""
        return cls(name=name, data=data)

    @classmethod
    def from_file(
        cls, name: str, file_name: str, content_type: str, data: bytes
    ) -> "MultipartFormElement":
        return cls(
            name=name, data=data, file_name=file_name, content_type=content_type
        )

    @property
    def is_file(self) -> bool:
        return self.file_name is not None


@dataclass(frozen=True)
class NoBody:
    pass


@dataclass(frozen=True)
class FormBody:
    fields: Mapping[str, Any]

    def __post_init__(self) -> None:
        object.__setattr__(self, "fields", MappingProxyType(dict(self.fields)))


@dataclass(frozen=True)
class MultipartFormBody:
    elements: Tuple[MultipartFormElement, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "elements", tuple(self.elements))


@dataclass(frozen=True)
class JSONBody:
    data: bytes


@dataclass(frozen=True)
class EncodableObjectBody:
    value: NetworkEncodable


BodyEncoding = Union[
    NoBody, FormBody, MultipartFormBody, JSONBody, EncodableObjectBody
]


@dataclass(frozen=True)
class RequestDescriptor:
    """Declarative description of a single HTTP request.

    Attributes:
        host: The base origin, e.g. `https://api.example.com`.
        endpoint: The path, with or without a leading `/`.
        query_string: Raw query string appended after the path. When not empty
            it must carry its own leading `?`.
        method: The HTTP method.
        body_encoding: How the request body is produced.
    """

    host: str
    endpoint: str
    query_string: str = ""
    method: RequestMethod = RequestMethod.GET
    body_encoding: BodyEncoding = field(default_factory=NoBody)


@dataclass(frozen=True)
class BuiltRequest:
    """Transport-ready request.

    Attributes:
        method: The HTTP method.
        url: The absolute URL.
        headers: The request headers.
        body: The request body, None when the request has none.
    """

    method: RequestMethod
    url: str
    headers: Dict[str, str]
    body: Optional[bytes]


@dataclass(frozen=True)
class Success:
    """Transport delivered a response. HTTP status is not interpreted."""

    data: bytes
    status_code: Optional[int] = None
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def is_success(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """Transport reported an error."""

    error: TransportError

    @property
    def is_success(self) -> bool:
        return False


@dataclass(frozen=True)
class BuildFailure:
    """Request could not be built, nothing was sent."""

    error: MalformedURLError

    @property
    def is_success(self) -> bool:
        return False


DispatchOutcome = Union[Success, Failure, BuildFailure]
