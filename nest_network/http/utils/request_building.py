from typing import Any, Dict, Mapping, Optional, Tuple

from requests.structures import CaseInsensitiveDict

from nest_network.config import (
    CONTENT_TYPE_HEADER,
    FORM_CONTENT_TYPE,
    JSON_CONTENT_TYPE,
    MULTIPART_CONTENT_TYPE,
)
from nest_network.http.entities import (
    BodyEncoding,
    BuiltRequest,
    EncodableObjectBody,
    FormBody,
    JSONBody,
    MultipartFormBody,
    NetworkEncodable,
    NoBody,
    RequestDescriptor,
)
from nest_network.http.errors import (
    EncodableSerializationError,
    EncodingError,
    MalformedURLError,
)
from nest_network.http.utils.multipart import encode_multipart_form, generate_boundary
from nest_network.http.utils.percent_encoding import (
    encode_form_value,
    encode_path,
    encode_query,
)
from nest_network.utils.logging import get_logger

logger = get_logger("http.utils.request_building")


def build_request(
    descriptor: RequestDescriptor,
    headers: Optional[Mapping[str, Any]] = None,
) -> BuiltRequest:
    """Turn a request descriptor into a transport-ready request.

    Args:
        descriptor: The request descriptor.
        headers: Extra headers. They override headers derived from the body
            encoding (names compared case-insensitively). Values are
            stringified.

    Returns:
        The built request.

    Raises:
        MalformedURLError: If the endpoint or query string cannot be encoded.
    """
    url = build_url(descriptor=descriptor)
    body, body_headers = encode_body(body_encoding=descriptor.body_encoding)
    return BuiltRequest(
        method=descriptor.method,
        url=url,
        headers=merge_headers(body_headers, headers or {}),
        body=body,
    )


def build_url(descriptor: RequestDescriptor) -> str:
    """Compose the absolute URL of a request descriptor.

    Host and endpoint are joined with exactly one `/` (the endpoint may or
    may not start with one). The encoded query string is appended verbatim.

    Args:
        descriptor: The request descriptor.

    Returns:
        The URL.

    Raises:
        MalformedURLError: If the endpoint or query string cannot be encoded.
    """
    try:
        encoded_endpoint = encode_path(descriptor.endpoint)
        encoded_query = encode_query(descriptor.query_string)
    except EncodingError as error:
        raise MalformedURLError(
            f"Could not build URL for endpoint {descriptor.endpoint!r}: {error}",
            endpoint=descriptor.endpoint,
            query_string=descriptor.query_string,
        ) from error
    if encoded_endpoint.startswith("/"):
        return f"{descriptor.host}{encoded_endpoint}{encoded_query}"
    return f"{descriptor.host}/{encoded_endpoint}{encoded_query}"


def encode_body(
    body_encoding: BodyEncoding,
) -> Tuple[Optional[bytes], Dict[str, str]]:
    """Produce request body and the headers describing it.

    Args:
        body_encoding: The body encoding variant.

    Returns:
        Tuple of body (None for no body) and headers.
    """
    if isinstance(body_encoding, NoBody):
        return None, {}
    if isinstance(body_encoding, FormBody):
        return (
            encode_form_fields(fields=body_encoding.fields),
            {CONTENT_TYPE_HEADER: FORM_CONTENT_TYPE},
        )
    if isinstance(body_encoding, JSONBody):
        return body_encoding.data, {CONTENT_TYPE_HEADER: JSON_CONTENT_TYPE}
    if isinstance(body_encoding, EncodableObjectBody):
        return (
            serialise_encodable(value=body_encoding.value),
            {CONTENT_TYPE_HEADER: JSON_CONTENT_TYPE},
        )
    if isinstance(body_encoding, MultipartFormBody):
        boundary = generate_boundary()
        return (
            encode_multipart_form(elements=body_encoding.elements, boundary=boundary),
            {CONTENT_TYPE_HEADER: f"{MULTIPART_CONTENT_TYPE}; boundary={boundary}"},
        )
    raise TypeError(f"Unsupported body encoding: {type(body_encoding).__name__}")


def encode_form_fields(fields: Mapping[str, Any]) -> bytes:
    """Encode form fields as `key=value&key=value`, keeping field order.

    Fields whose name or value cannot be encoded as UTF-8 are left out.

    Args:
        fields: Field names mapped to stringifiable values.

    Returns:
        The URL-encoded body.
    """
    encoded_fields = []
    for name, value in fields.items():
        if not _is_utf8_encodable(str(name)):
            logger.warning(f"Skipping form field with unencodable name {name!r}")
            continue
        try:
            encoded_value = encode_form_value(str(value))
        except EncodingError as error:
            logger.warning(f"Skipping form field {name!r}: {error}")
            continue
        encoded_fields.append(f"{name}={encoded_value}")
    return "&".join(encoded_fields).encode("utf-8")


def serialise_encodable(value: NetworkEncodable) -> bytes:
    """Serialise an encodable object, falling back to empty body on failure.

    Args:
        value: The object to serialise.

    Returns:
        The serialised object, or empty bytes if it reported failure.
    """
    try:
        data = value.to_bytes()
    except Exception as error:
        _report_serialisation_failure(
            EncodableSerializationError(
                f"{type(value).__name__}.to_bytes() raised: {error}", value=value
            )
        )
        return b""
    if data is None:
        _report_serialisation_failure(
            EncodableSerializationError(
                f"{type(value).__name__}.to_bytes() returned no data", value=value
            )
        )
        return b""
    return data


def merge_headers(*headers: Mapping[str, Any]) -> Dict[str, str]:
    """Merge header mappings, later ones taking precedence.

    Args:
        *headers: Header mappings in increasing precedence.

    Returns:
        The merged headers. On name collision the last name spelling and
        value win.
    """
    merged = CaseInsensitiveDict()
    for mapping in headers:
        for name, value in mapping.items():
            merged[name] = str(value)
    return dict(merged.items())


def _is_utf8_encodable(text: str) -> bool:
    try:
        text.encode("utf-8")
    except UnicodeEncodeError:
        return False
    return True


def _report_serialisation_failure(error: EncodableSerializationError) -> None:
    logger.warning(f"Sending empty body. {error}")
