from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer

import pytest

REPO_BODY = b'{"stargazers_count": 5, "archived": false, "topics": ["x"]}'


def _handler_for(body: bytes, byte_delay: float) -> type[BaseHTTPRequestHandler]:
    class _TrickleHandler(BaseHTTPRequestHandler):
        def do_GET(self) -> None:
            self.send_response(200)
            self.send_header("Content-Type", "application/json")
            self.send_header("Content-Length", str(len(body)))
            self.end_headers()
            try:
                if not byte_delay:
                    self.wfile.write(body)
                    return
                for index in range(len(body)):
                    self.wfile.write(body[index : index + 1])
                    self.wfile.flush()
                    time.sleep(byte_delay)
            except OSError:
                pass  # client gave up

        def log_message(self, format: str, *args: object) -> None:
            pass

    return _TrickleHandler


@pytest.fixture
def trickle_server(monkeypatch: pytest.MonkeyPatch) -> Iterator[Callable[..., str]]:
    """Start local HTTP servers that send a JSON body one byte at a time.

    Yields a factory ``start(byte_delay, body=REPO_BODY) -> base_url``.
    """
    for var in ("HTTP_PROXY", "http_proxy", "HTTPS_PROXY", "https_proxy", "ALL_PROXY", "all_proxy"):
        monkeypatch.delenv(var, raising=False)
    servers: list[ThreadingHTTPServer] = []

    def start(byte_delay: float, body: bytes = REPO_BODY) -> str:
        server = ThreadingHTTPServer(("127.0.0.1", 0), _handler_for(body, byte_delay))
        server.daemon_threads = True
        threading.Thread(target=server.serve_forever, daemon=True).start()
        servers.append(server)
        host, port = server.server_address[:2]
        return f"http://{host}:{port}"

    yield start

    for server in servers:
        server.shutdown()
        server.server_close()
