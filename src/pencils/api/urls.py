"""
URL composition: resource paths, identifiers, suffix and query string.
"""
from typing import Mapping, Optional, Union
from urllib.parse import urlencode, urlsplit, urlunsplit

Identifier = Union[int, str]


def render_id(identifier: Identifier) -> str:
    """Render an identifier as a path segment (ints in decimal, strings as-is)."""
    # bool is an int subclass; True/False as ids is always a caller bug
    if isinstance(identifier, bool):
        raise TypeError(f"Identifier must be int or str, got bool: {identifier!r}")
    if isinstance(identifier, int):
        return str(identifier)
    if isinstance(identifier, str):
        return identifier
    raise TypeError(f"Identifier must be int or str, got {type(identifier).__name__}")


def join_path(path: str, segment: str) -> str:
    if not segment:
        return path
    if not path:
        return segment.lstrip("/")
    return f"{path.rstrip('/')}/{segment.lstrip('/')}"


def encode_query(values: Optional[Mapping[str, object]]) -> str:
    """Form-encode query values with keys sorted, for byte-stable output."""
    if not values:
        return ""
    return urlencode(sorted((str(k), str(v)) for k, v in values.items()))


def validate_base_url(base_url: str) -> str:
    parts = urlsplit(base_url)
    if not parts.scheme or not parts.netloc:
        raise ValueError(f"Base url must include scheme and host: {base_url!r}")
    return base_url


def build_url(base_url: str,
              path: str = "",
              suffix: str = "",
              query: Optional[Mapping[str, object]] = None) -> str:
    """
    Compose the request url.

    The base url keeps its own path prefix and query string, the suffix goes
    on the final segment only, and an empty path resolves to the base url alone.
    """
    parts = urlsplit(base_url)
    url_path = parts.path
    if path:
        url_path = join_path(parts.path or "/", path)
        if suffix:
            url_path = url_path.rstrip("/") + suffix
    qs = "&".join(q for q in (parts.query, encode_query(query)) if q)
    return urlunsplit((parts.scheme, parts.netloc, url_path, qs, parts.fragment))
