"""
Chainable REST resources.

    api = Api("https://api.github.com", BasicAuth("user", "token"), retries=2)
    user = {}
    api.res("users").id("bndr", user).get()

Every chained call returns a new Resource; the ClientConfig underneath is
shared and never mutated.
"""
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Mapping, Optional, Tuple

import requests

from pencils.api import client, urls
from pencils.api.response import ApiResponse, decode_into
from pencils.api.schemas import BasicAuth, ClientConfig
from pencils.settings import get_settings

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Resource:
    config: ClientConfig
    url: str = ""  # accumulated path, relative to the base url
    target: Any = field(default=None, compare=False)
    query: Tuple[Tuple[str, str], ...] = ()
    headers: Tuple[Tuple[str, str], ...] = ()

    # ---- building ----

    def res(self, name: Optional[str] = None, target: Any = None) -> "Resource":
        """Append a resource segment. With no name, the current path is kept."""
        path = urls.join_path(self.url, name) if name else self.url
        return replace(self, url=path, target=self._pick(target))

    def id(self, identifier: urls.Identifier, target: Any = None) -> "Resource":
        """Append an identifier segment (int or str)."""
        path = urls.join_path(self.url, urls.render_id(identifier))
        return replace(self, url=path, target=self._pick(target))

    def set_query(self, values: Mapping[str, Any]) -> "Resource":
        merged = dict(self.query)
        merged.update({str(k): str(v) for k, v in values.items()})
        return replace(self, query=tuple(merged.items()))

    def set_header(self, key: str, value: str) -> "Resource":
        merged = dict(self.headers)
        merged[key] = value
        return replace(self, headers=tuple(merged.items()))

    def _pick(self, target: Any) -> Any:
        return self.target if target is None else target

    @property
    def query_string(self) -> str:
        return urls.encode_query(dict(self.query))

    @property
    def full_url(self) -> str:
        return self._url_for(None)

    def _url_for(self, query: Optional[Mapping[str, Any]]) -> str:
        values: Dict[str, Any] = dict(self.query)
        if query:
            values.update(query)
        return urls.build_url(self.config.base_url, self.url, self.config.suffix, values)

    # ---- verbs ----

    def get(self, query: Optional[Mapping[str, Any]] = None) -> ApiResponse:
        return self._do("GET", query=query)

    def post(self, payload: Any = None) -> ApiResponse:
        return self._do("POST", payload=payload)

    def put(self, payload: Any = None) -> ApiResponse:
        return self._do("PUT", payload=payload)

    def patch(self, payload: Any = None) -> ApiResponse:
        return self._do("PATCH", payload=payload)

    def delete(self) -> ApiResponse:
        return self._do("DELETE")

    def head(self) -> ApiResponse:
        return self._do("HEAD")

    def options(self) -> ApiResponse:
        return self._do("OPTIONS")

    def _do(self, method: str, query: Optional[Mapping[str, Any]] = None, payload: Any = None) -> ApiResponse:
        url = self._url_for(query)
        raw, retries = client.send(self.config, method, url, payload=payload, headers=dict(self.headers))
        response = ApiResponse(raw, retries=retries, target=self.target)
        if method == "HEAD":
            return response
        return decode_into(response, self.target)


def _split_options(options: Tuple[Any, ...]) -> Dict[str, Any]:
    """Dispatch positional Api options by type."""
    found: Dict[str, Any] = {}
    for opt in options:
        if opt is None:
            continue
        if isinstance(opt, BasicAuth):
            key = "auth"
        elif isinstance(opt, bool):
            raise ValueError(f"Unsupported Api option: {opt!r}")
        elif isinstance(opt, int):
            key = "retries"
        elif isinstance(opt, str):
            key = "suffix"
        elif isinstance(opt, requests.Session):
            key = "session"
        else:
            raise ValueError(f"Unsupported Api option of type {type(opt).__name__}")
        found[key] = opt
    return found


def Api(base_url: str, *options: Any, **config: Any) -> Resource:
    """
    Create the root Resource for an API.

    Positional options are dispatched by type: BasicAuth -> auth, str -> path
    suffix, int -> retry budget, requests.Session -> session. Keyword options
    (auth, suffix, retries, timeout, retry_delay, deadline, headers, session,
    verify) take precedence; anything unset falls back to Settings.
    """
    opts = _split_options(options)
    opts.update(config)

    unknown = set(opts) - {"auth", "suffix", "retries", "timeout", "retry_delay",
                           "deadline", "headers", "session", "verify"}
    if unknown:
        raise ValueError(f"Unknown Api option(s): {sorted(unknown)}")

    cfg = get_settings()
    retries = opts.get("retries", cfg.retry_budget)
    if retries < 0:
        raise ValueError(f"Retry budget must be >= 0, got {retries}")
    deadline = opts.get("deadline", cfg.deadline_seconds)
    if deadline is not None and deadline <= 0:
        raise ValueError(f"Deadline must be positive, got {deadline}")

    headers = dict(opts.get("headers") or {})
    # a caller-owned session is left as is; headers then travel per request
    session = opts.get("session")
    if session is None:
        session = client.make_session(headers)

    config_obj = ClientConfig(
        base_url=urls.validate_base_url(base_url),
        auth=opts.get("auth"),
        suffix=opts.get("suffix", ""),
        retries=retries,
        timeout=opts.get("timeout", cfg.http_timeout_seconds),
        retry_delay=opts.get("retry_delay", cfg.retry_delay_seconds),
        deadline=deadline,
        headers=headers,
        verify=client.resolve_verify(opts.get("verify", cfg.verify_ssl)),
        session=session,
    )
    logger.debug(f"Api created for {config_obj.base_url} (retries={retries}, suffix={config_obj.suffix!r})")
    return Resource(config=config_obj)
