"""URL string checks shared by the contributor and resource validators."""

from urllib.parse import quote, quote_plus, urlsplit

# Characters that may stay unescaped inside a single URL path segment
# (on top of letters, digits and "_.-~")
PATH_SEGMENT_SAFE_CHARS = "$&+:=@"


def is_request_uri(value: str) -> bool:
    """Return True if value parses as an absolute URL (scheme and host)"""
    if not value or any(c.isspace() for c in value):
        return False
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return bool(parts.scheme) and bool(parts.netloc)


def is_url(value: str) -> bool:
    """Return True if value parses as either a relative or absolute URL"""
    if any(c.isspace() for c in value):
        return False
    try:
        urlsplit(value)
    except ValueError:
        return False
    return True


def is_relative_url(value: str) -> bool:
    """Relative URLs have neither a scheme nor a host"""
    try:
        parts = urlsplit(value)
    except ValueError:
        return False
    return not parts.scheme and not parts.netloc


def is_path_segment_safe(value: str) -> bool:
    """True if the value can be used as-is as a URL path segment"""
    return quote(value, safe=PATH_SEGMENT_SAFE_CHARS) == value


def is_query_safe(value: str) -> bool:
    """True if the value can be placed in a URL query string without escaping"""
    return quote_plus(value, safe="") == value
