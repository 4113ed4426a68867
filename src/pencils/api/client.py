import logging
import time
from typing import Any, Dict, Optional, Tuple

import certifi  # Provides Mozilla's CA bundle for SSL certificate verification
import requests
import urllib3
from requests.adapters import HTTPAdapter
from requests.auth import HTTPBasicAuth
from tenacity import (
    RetryCallState,
    Retrying,
    before_sleep_log,
    retry_if_exception_type,
    stop_after_attempt,
    stop_before_delay,
    wait_fixed,
)
from urllib3.util.retry import Retry

from pencils.api.schemas import BasicAuth, ClientConfig

logger = logging.getLogger(__name__)

# Failures where the round trip never completed. HTTP error statuses are not here.
TRANSPORT_ERRORS = (
    requests.ConnectionError,
    requests.Timeout,
    requests.exceptions.ChunkedEncodingError,  # connection reset mid-body
    requests.exceptions.ContentDecodingError,
)


def resolve_verify(verify: Any) -> Any:
    """Map the verify switch onto what requests expects."""
    if verify is False:
        urllib3.disable_warnings(urllib3.exceptions.InsecureRequestWarning)
        return False
    if verify is True:
        return certifi.where()
    return verify  # explicit CA bundle path


def make_session(headers: Optional[Dict[str, str]] = None) -> requests.Session:
    """
    Initializes a requests.Session with:
        - JSON accept header
        - HTTPAdapter with urllib3 retries disabled; tenacity drives retries in send()
    """
    session = requests.Session()

    # Connect/read failures must surface here so every attempt is counted
    adapter = HTTPAdapter(max_retries=Retry(total=0, read=False))
    session.mount("https://", adapter)
    session.mount("http://", adapter)

    session.headers.update({"Accept": "application/json"})
    if headers:
        session.headers.update(headers)
    return session


def auth_for(config: ClientConfig) -> Optional[HTTPBasicAuth]:
    auth: Optional[BasicAuth] = config.auth
    if auth is None:
        return None
    return HTTPBasicAuth(auth.username, auth.password)


def _attempt_timeout(config: ClientConfig, state: RetryCallState) -> float:
    """Per-attempt timeout, clamped to what is left of the deadline."""
    if config.deadline is None:
        return config.timeout
    remaining = config.deadline - (time.monotonic() - state.start_time)
    return max(min(config.timeout, remaining), 0.001)


def send(config: ClientConfig,
         method: str,
         url: str,
         payload: Any = None,
         headers: Optional[Dict[str, str]] = None) -> Tuple[requests.Response, int]:
    """
    Issue one request, retrying transport failures up to config.retries times.

    Returns the response and the number of retries spent. Attempts run one
    after another; once the budget (or the cumulative deadline) is spent the
    last transport error is re-raised as is.
    """
    kwargs: Dict[str, Any] = {
        "headers": {**config.headers, **(headers or {})} or None,
        "auth": auth_for(config),
        "verify": config.verify,
    }
    if payload is not None:
        kwargs["json"] = payload

    stop = stop_after_attempt(config.retries + 1)
    if config.deadline is not None:
        # also counts the upcoming wait, so a long retry_delay cannot overrun
        stop = stop | stop_before_delay(config.deadline)

    retrying = Retrying(
        stop=stop,
        wait=wait_fixed(config.retry_delay),
        retry=retry_if_exception_type(TRANSPORT_ERRORS),
        reraise=True,
        before_sleep=before_sleep_log(logger, logging.WARNING),
    )

    attempts = 0
    try:
        for attempt in retrying:
            with attempt:
                attempts = attempt.retry_state.attempt_number
                timeout = _attempt_timeout(config, attempt.retry_state)
                logger.debug(f"{method} {url} (attempt {attempts}/{config.retries + 1})")
                resp = config.session.request(method, url, timeout=timeout, **kwargs)
    except TRANSPORT_ERRORS as e:
        logger.error(f"{method} {url} gave up after {attempts} attempt(s): {e}")
        raise

    if attempts > 1:
        logger.info(f"{method} {url} succeeded after {attempts - 1} retries")
    return resp, attempts - 1
