import argparse
import json
import logging
import sys
from typing import Dict, List, Optional

from pencils import logging_setup
from pencils.api import Api, BasicAuth
from pencils.api.client import TRANSPORT_ERRORS

logger = logging.getLogger(__name__)

METHODS = ("GET", "POST", "PUT", "PATCH", "DELETE", "HEAD", "OPTIONS")


def _parse_query(pairs: List[str]) -> Dict[str, str]:
    query = {}
    for pair in pairs:
        key, sep, value = pair.partition("=")
        if not sep:
            raise argparse.ArgumentTypeError(f"Query parameter must be key=value: {pair!r}")
        query[key] = value
    return query


def _parse_auth(value: Optional[str]) -> Optional[BasicAuth]:
    if not value:
        return None
    username, _, password = value.partition(":")
    return BasicAuth(username, password)


def main(argv: Optional[List[str]] = None) -> int:
    p = argparse.ArgumentParser(description="Issue a single REST call")
    p.add_argument("base_url", help="API base url, e.g. https://api.github.com")
    p.add_argument("segments", nargs="*", help="Path segments appended in order, e.g. users bndr")
    p.add_argument("-X", "--method", default="GET", type=str.upper, choices=METHODS, help="HTTP verb")
    p.add_argument("-q", "--query", action="append", default=[], help="Query parameter key=value (repeatable)")
    p.add_argument("-d", "--data", help="JSON payload for POST/PUT/PATCH")
    p.add_argument("-u", "--user", help="Basic auth credentials user:password")
    p.add_argument("--suffix", default="", help="Path suffix for the final segment, e.g. .json")
    p.add_argument("--retries", type=int, help="Retry budget for transport failures")
    p.add_argument("--timeout", type=float, help="Per-attempt timeout in seconds")
    p.add_argument("--log_level", default="WARNING", help="Logging level (DEBUG, INFO, WARNING, ERROR)")

    a = p.parse_args(argv)

    # Initialize logging
    logging_setup.setup_logging(a.log_level)

    try:
        query = _parse_query(a.query)
        payload = json.loads(a.data) if a.data else None
    except (argparse.ArgumentTypeError, ValueError) as e:
        p.error(str(e))

    config = {}
    if a.retries is not None:
        config["retries"] = a.retries
    if a.timeout is not None:
        config["timeout"] = a.timeout

    try:
        resource = Api(a.base_url, _parse_auth(a.user), a.suffix or None, **config)
    except ValueError as e:
        p.error(str(e))
    for segment in a.segments:
        resource = resource.res(segment)

    try:
        if a.method == "GET":
            resp = resource.get(query)
        else:
            if query:
                resource = resource.set_query(query)
            if a.method in ("POST", "PUT", "PATCH"):
                resp = getattr(resource, a.method.lower())(payload)
            else:
                resp = getattr(resource, a.method.lower())()
    except TRANSPORT_ERRORS as e:
        logger.error(f"Request failed: {e}")
        return 2

    print(f"{resp.status_code} {resp.raw.reason} (retries={resp.retries})", file=sys.stderr)
    if resp.content:
        print(resp.text)
    return 0 if resp.ok else 1


if __name__ == "__main__":
    sys.exit(main())
