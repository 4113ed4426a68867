"""
Per-test local HTTP server.

Each test gets its own server and route table. A route handler receives the
recorded request and returns (status, body, headers), DROP to close the connection
without answering, or TRUNCATE to cut the body short.
"""
import json
import threading
import time
from dataclasses import dataclass, field
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Callable, Dict, List
from urllib.parse import parse_qs, urlsplit

import pytest

from pencils import Api

DROP = object()
TRUNCATE = object()  # promise 100 bytes, send 5, hang up


@dataclass
class RecordedRequest:
    method: str
    path: str
    query: str
    headers: Dict[str, str]
    body: bytes = b""

    @property
    def params(self) -> Dict[str, str]:
        return {k: v[0] for k, v in parse_qs(self.query).items()}

    def json(self):
        return json.loads(self.body)


@dataclass
class LocalServer:
    url: str = ""
    routes: Dict[str, Callable] = field(default_factory=dict)
    requests: List[RecordedRequest] = field(default_factory=list)

    def route(self, path: str, handler: Callable = None, *, status: int = 200, body=None, headers=None):
        """Register a handler, or a fixed response for path."""
        if handler is None:
            def handler(req, status=status, body=body, headers=headers):
                return status, body, headers or {}
        self.routes[path] = handler

    def hits(self, path: str) -> int:
        return sum(1 for r in self.requests if r.path == path)


class _QuietServer(ThreadingHTTPServer):
    daemon_threads = True

    def handle_error(self, request, client_address):
        # clients that timed out leave broken pipes behind
        pass


def _make_handler(server: LocalServer):
    class Handler(BaseHTTPRequestHandler):
        def _dispatch(self):
            length = int(self.headers.get("Content-Length") or 0)
            body = self.rfile.read(length) if length else b""
            parts = urlsplit(self.path)
            req = RecordedRequest(self.command, parts.path, parts.query, dict(self.headers), body)
            server.requests.append(req)

            handler = server.routes.get(parts.path)
            if handler is None:
                result = (404, {"message": "Not Found"}, {})
            else:
                result = handler(req)
            if result is DROP:
                return
            if result is TRUNCATE:
                self.send_response(200)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", "100")
                self.end_headers()
                self.wfile.write(b'{"Tes')
                return

            status, payload, headers = result
            if isinstance(payload, (dict, list)):
                payload = json.dumps(payload)
            if isinstance(payload, str):
                payload = payload.encode("utf-8")

            self.send_response(status)
            for key, value in (headers or {}).items():
                self.send_header(key, value)
            if status != 204:
                if "Content-Type" not in (headers or {}):
                    self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(payload or b"")))
            self.end_headers()
            if payload and status != 204 and self.command != "HEAD":
                self.wfile.write(payload)

        do_GET = do_POST = do_PUT = do_PATCH = do_DELETE = do_HEAD = do_OPTIONS = _dispatch

        def log_message(self, format, *args):
            pass

    return Handler


@pytest.fixture
def server():
    srv = LocalServer()
    httpd = _QuietServer(("127.0.0.1", 0), _make_handler(srv))
    srv.url = f"http://127.0.0.1:{httpd.server_address[1]}"
    thread = threading.Thread(target=httpd.serve_forever, daemon=True)
    thread.start()
    try:
        yield srv
    finally:
        httpd.shutdown()
        httpd.server_close()


@pytest.fixture
def api(server):
    """Root resource for the test server, no retries and no delays."""
    return Api(server.url, retries=0, retry_delay=0, timeout=2.0)


def _scripted(*steps, latency: float = 0.5, body=None):
    """
    Route handler replaying one step per attempt: "ok", "drop", "truncate" or "slow".

    "slow" sleeps past a short client timeout before answering.
    Steps past the end of the script answer "ok".
    """
    body = body if body is not None else {"Test": "Okay"}
    calls = {"n": 0}
    lock = threading.Lock()

    def handler(req):
        with lock:
            n = calls["n"]
            calls["n"] += 1
        step = steps[n] if n < len(steps) else "ok"
        if step == "drop":
            return DROP
        if step == "truncate":
            return TRUNCATE
        if step == "slow":
            time.sleep(latency)
        return 200, body, {}

    return handler


@pytest.fixture
def scripted():
    return _scripted
