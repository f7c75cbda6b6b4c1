from __future__ import annotations
import json
import threading
import time
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Dict, List, Tuple, Union

import pytest

# method -> (status, body), ("hang", seconds) or ("drip", (size, interval))
Route = Tuple[Union[int, str], Union[bytes, str, dict, float, int]]


class RpcStub:
    """Threaded HTTP server answering JSON-RPC methods from a route table."""

    def __init__(self) -> None:
        self.routes: Dict[str, Route] = {}
        self.requests: List[bytes] = []
        stub = self

        class Handler(BaseHTTPRequestHandler):
            def do_POST(self):
                length = int(self.headers.get("Content-Length", 0))
                raw = self.rfile.read(length)
                stub.requests.append(raw)
                try:
                    method = json.loads(raw)["method"]
                except (ValueError, KeyError):
                    method = None
                status, body = stub.routes.get(method, (404, b"not found"))
                if status == "hang":
                    time.sleep(float(body))
                    return
                if status == "drip":
                    size, interval = body
                    self.send_response(200)
                    self.send_header("Content-Type", "application/json")
                    self.send_header("Content-Length", str(size))
                    self.end_headers()
                    try:
                        for _ in range(size):
                            time.sleep(interval)
                            self.wfile.write(b" ")
                            self.wfile.flush()
                    except OSError:
                        pass
                    return
                if isinstance(body, dict):
                    body = json.dumps(body)
                if isinstance(body, str):
                    body = body.encode()
                self.send_response(status)
                self.send_header("Content-Type", "application/json")
                self.send_header("Content-Length", str(len(body)))
                self.end_headers()
                self.wfile.write(body)

            def log_message(self, fmt, *args):
                pass

        self.server = ThreadingHTTPServer(("127.0.0.1", 0), Handler)
        self.server.daemon_threads = True
        self.thread = threading.Thread(target=self.server.serve_forever, name="rpc-stub", daemon=True)

    @property
    def url(self) -> str:
        host, port = self.server.server_address[:2]
        return f"http://{host}:{port}"

    def route(self, method: str, body, status: int = 200) -> None:
        self.routes[method] = (status, body)

    def hang(self, method: str, seconds: float) -> None:
        self.routes[method] = ("hang", seconds)

    def drip(self, method: str, size: int, interval: float) -> None:
        """Send headers at once, then one body byte every ``interval`` seconds."""
        self.routes[method] = ("drip", (size, interval))

    def start(self) -> "RpcStub":
        self.thread.start()
        return self

    def stop(self) -> None:
        self.server.shutdown()
        self.server.server_close()


@pytest.fixture
def rpc_stub():
    stub = RpcStub().start()
    try:
        yield stub
    finally:
        stub.stop()


@pytest.fixture
def closed_port_url():
    """URL of a local port nothing listens on."""
    import socket
    with socket.socket() as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return f"http://127.0.0.1:{port}"
