from urllib.parse import quote

from nest_network.http.errors import EncodingError

# ASCII alphanumerics and "-._~" are always kept by `quote(...)`
PATH_SAFE_CHARACTERS = "/!$&'()*+,;=:@"
QUERY_SAFE_CHARACTERS = PATH_SAFE_CHARACTERS + "?"
FORM_VALUE_SAFE_CHARACTERS = "/?"


def encode_path(value: str) -> str:
    """Percent-encode text for use as URL path.

    Args:
        value: The raw path.

    Returns:
        The path with every character outside the path-safe set escaped.

    Raises:
        EncodingError: If the text cannot be represented as UTF-8.
    """
    return _percent_encode(value=value, safe=PATH_SAFE_CHARACTERS)


def encode_query(value: str) -> str:
    """Percent-encode text for use as URL query.

    Query delimiters (`?`, `&`, `=`) are kept, so a whole raw query string
    can be passed through.

    Args:
        value: The raw query string.

    Returns:
        The query string with unsafe characters escaped.

    Raises:
        EncodingError: If the text cannot be represented as UTF-8.
    """
    return _percent_encode(value=value, safe=QUERY_SAFE_CHARACTERS)


def encode_form_value(value: str) -> str:
    """Percent-encode a single value of URL-encoded form body.

    Args:
        value: The raw value.

    Returns:
        The value with everything outside alphanumerics and `-._~/?` escaped.

    Raises:
        EncodingError: If the text cannot be represented as UTF-8.
    """
    return _percent_encode(value=value, safe=FORM_VALUE_SAFE_CHARACTERS)


def _percent_encode(value: str, safe: str) -> str:
    try:
        return quote(value, safe=safe, encoding="utf-8", errors="strict")
    except UnicodeEncodeError as error:
        raise EncodingError(f"Could not percent-encode text: {error}") from error
