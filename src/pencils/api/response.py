import logging
from typing import Any, Optional

import requests
from pydantic import BaseModel, ValidationError
from requests.structures import CaseInsensitiveDict

from pencils.api.errors import DecodeError

logger = logging.getLogger(__name__)

RETRIES_HEADER = "X-Total-Retries"


class ApiResponse:
    """Result of one verb call: the raw response plus decode bookkeeping."""

    def __init__(self, raw: requests.Response, retries: int = 0, target: Any = None):
        self.raw = raw
        self.retries = retries
        self.target = target
        self.decode_error: Optional[DecodeError] = None
        self.headers = CaseInsensitiveDict(raw.headers)
        self.headers[RETRIES_HEADER] = str(retries)

    @property
    def status_code(self) -> int:
        return self.raw.status_code

    @property
    def ok(self) -> bool:
        return self.raw.status_code < 400

    @property
    def content(self) -> bytes:
        return self.raw.content

    @property
    def text(self) -> str:
        return self.raw.text

    def json(self) -> Any:
        return self.raw.json()

    def __repr__(self) -> str:
        return f"<ApiResponse [{self.status_code}] retries={self.retries}>"


def should_decode(raw: requests.Response) -> bool:
    """Only successful responses carrying a body are decoded."""
    if raw.status_code >= 400:
        logger.warning(f"HTTP {raw.status_code} for {raw.url}, body left undecoded")
        return False
    if raw.status_code == 204 or not raw.content:
        logger.debug(f"No content for {raw.url} ({raw.status_code})")
        return False
    return True


def _find_attr(target: Any, key: str) -> Optional[str]:
    # exact match first, then case-insensitive against existing attributes
    attrs = vars(target)
    if key in attrs:
        return key
    lowered = key.lower()
    for name in attrs:
        if name.lower() == lowered:
            return name
    return None


def assign(target: Any, data: Any) -> None:
    """Copy decoded JSON into a caller-supplied target."""
    if target is None:
        return
    if isinstance(target, dict):
        if not isinstance(data, dict):
            raise TypeError(f"cannot decode {type(data).__name__} into dict")
        target.update(data)
    elif isinstance(target, list):
        if not isinstance(data, list):
            raise TypeError(f"cannot decode {type(data).__name__} into list")
        target[:] = data
    elif isinstance(target, BaseModel):
        if not isinstance(data, dict):
            raise TypeError(f"cannot decode {type(data).__name__} into {type(target).__name__}")
        # fields absent from the body keep their current values
        parsed = type(target).model_validate({**target.model_dump(by_alias=True), **data})
        for name in type(target).model_fields:
            setattr(target, name, getattr(parsed, name))
    elif hasattr(target, "__dict__"):
        if not isinstance(data, dict):
            raise TypeError(f"cannot decode {type(data).__name__} into {type(target).__name__}")
        for key, value in data.items():
            name = _find_attr(target, key)
            if name is not None:
                setattr(target, name, value)
    else:
        raise TypeError(f"unsupported decode target: {type(target).__name__}")


def decode_into(response: ApiResponse, target: Any) -> ApiResponse:
    """
    Decode the response body into target, in place.

    Error statuses (>= 400) and empty/204 responses leave target untouched,
    and without a target the body is left for the caller to read.
    A malformed body raises DecodeError; the response stays attached to it.
    """
    raw = response.raw
    if not should_decode(raw) or target is None:
        return response

    try:
        data = raw.json()
        assign(target, data)
    except (ValueError, TypeError, ValidationError) as e:
        # requests' JSONDecodeError is a ValueError
        logger.error(f"Invalid JSON response from {raw.url}: {raw.text[:200]}...")
        err = DecodeError(f"Invalid JSON response: {e}", response=response)
        response.decode_error = err
        raise err from e
    return response
