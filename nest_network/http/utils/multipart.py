import uuid
from typing import Optional, Sequence

from nest_network.config import MULTIPART_BOUNDARY_PREFIX
from nest_network.http.entities import MultipartFormElement

LINE_BREAK = b"\r\n"


def generate_boundary(prefix: Optional[str] = None) -> str:
    """Generate a fresh multipart boundary token.

    Args:
        prefix: Literal put in front of the random part. Defaults to the
            configured `MULTIPART_BOUNDARY_PREFIX`.

    Returns:
        The boundary, e.g. `Boundary-3F2504E04F8911D39A0C0305E82C3301`.
    """
    if prefix is None:
        prefix = MULTIPART_BOUNDARY_PREFIX
    return prefix + uuid.uuid4().hex.upper()


def encode_multipart_form(
    elements: Sequence[MultipartFormElement], boundary: str
) -> bytes:
    """Serialise form elements into a multipart/form-data body.

    Element data is embedded verbatim (no base64, no line wrapping), so the
    boundary must not occur inside any element's data. This is not checked.
    Part names, file names and content types that cannot be encoded as UTF-8
    (lone surrogates) have the offending characters replaced with `?`.

    Args:
        elements: The form elements, emitted in the given order.
        boundary: The boundary token, without leading dashes.

    Returns:
        The body, ending with `CRLF--boundary--` and no trailing line break.
    """
    delimiter = _encode_text(f"--{boundary}")
    body = bytearray()
    for element in elements:
        body += delimiter + LINE_BREAK
        body += _content_disposition(element=element) + LINE_BREAK
        if element.content_type is not None:
            body += _encode_text(f'Content-Type: "{element.content_type}"')
            body += LINE_BREAK
        body += LINE_BREAK
        body += element.data
    body += LINE_BREAK + delimiter + b"--"
    return bytes(body)


def _content_disposition(element: MultipartFormElement) -> bytes:
    line = f'Content-Disposition: form-data; name="{element.name}"'
    if element.is_file:
        line = f'{line}; filename="{element.file_name}"'
    return _encode_text(line)


def _encode_text(text: str) -> bytes:
    return text.encode("utf-8", errors="replace")
