"""Single-shot JSON-RPC calls against a node endpoint.

Every call is one POST bounded by a timeout, with no retry. Failures come
back as typed :class:`~chain_exporter.types.RpcError` values alongside the
result rather than being raised, so collectors can decide which sentinel
sample to emit.
"""
from __future__ import annotations

import http.client
import json
import logging
import socket
import time
from typing import Any, Dict, Optional, Tuple, Union
from urllib import request, error as urlerror

from .types import (
    RpcDecodeError,
    RpcError,
    RpcRequestError,
    RpcResultError,
    RpcStatusError,
    RpcTimeoutError,
    RpcTransportError,
)

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

DEFAULT_TIMEOUT = 3.0
READ_CHUNK = 65536

RequestId = Union[int, str]


def build_payload(method: str, request_id: RequestId = 1) -> bytes:
    body = {"jsonrpc": "2.0", "method": method, "params": [], "id": request_id}
    return json.dumps(body, separators=(",", ":")).encode()


def jsonrpc_call(
    url: str,
    method: str,
    timeout: float = DEFAULT_TIMEOUT,
    request_id: RequestId = 1,
) -> Tuple[Optional[Dict[str, Any]], Optional[RpcError]]:
    """POST ``method`` to ``url`` and return ``(envelope, error)``.

    Exactly one of the two is ``None``. The response body is read in full
    and closed before decoding.
    """
    try:
        req = request.Request(
            url,
            data=build_payload(method, request_id),
            headers={"Content-Type": "application/json", "Accept": "application/json"},
            method="POST",
        )
    except ValueError as e:
        return None, RpcRequestError(method, url, f"bad request: {e}")

    deadline = time.monotonic() + timeout
    try:
        with request.urlopen(req, timeout=timeout) as resp:
            raw = _read_body(resp, deadline)
    except urlerror.HTTPError as e:
        e.close()
        return None, RpcStatusError(method, url, e.code, str(e.reason or ""))
    except socket.timeout:
        return None, RpcTimeoutError(method, url, timeout)
    except urlerror.URLError as e:
        reason = getattr(e, "reason", e)
        if isinstance(reason, socket.timeout):
            return None, RpcTimeoutError(method, url, timeout)
        return None, RpcTransportError(method, url, f"connection error: {reason}")
    except (OSError, http.client.HTTPException) as e:
        return None, RpcTransportError(method, url, f"transport error: {e!r}")

    logger.debug(f"rpc {method} answered {len(raw)} bytes from {url}")
    return decode_envelope(raw, method, url)


def _read_body(resp, deadline: float) -> bytes:
    """Read the whole body, giving up once ``deadline`` passes.

    Each read gets only the time left, so a node dripping bytes cannot
    stretch the call past its budget.
    """
    chunks = []
    while True:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise socket.timeout("deadline exceeded while reading body")
        sock = getattr(getattr(resp.fp, "raw", None), "_sock", None)
        if sock is not None:
            sock.settimeout(remaining)
        chunk = resp.read1(READ_CHUNK)
        if not chunk:
            return b"".join(chunks)
        chunks.append(chunk)


def decode_envelope(raw: bytes, method: str, url: str) -> Tuple[Optional[Dict[str, Any]], Optional[RpcError]]:
    try:
        data = json.loads(raw.decode())
    except (UnicodeDecodeError, ValueError) as e:
        return None, RpcDecodeError(method, url, f"undecodable body: {e}")
    if not isinstance(data, dict):
        return None, RpcDecodeError(method, url, f"expected a JSON object, got {type(data).__name__}")
    # Ontology nodes answer "error": 0 on success.
    err = data.get("error")
    if err is not None and (isinstance(err, bool) or err != 0):
        return None, RpcResultError(method, url, f"error: {err}")
    return data, None


def _lookup(envelope: Dict[str, Any], method: str, url: str, path: Tuple[str, ...]) -> Tuple[Any, Optional[RpcResultError]]:
    node: Any = envelope
    walked = []
    for key in path:
        walked.append(key)
        if not isinstance(node, dict) or key not in node:
            return None, RpcResultError(method, url, f"missing field {'.'.join(walked)}")
        node = node[key]
    return node, None


def extract_uint(envelope: Dict[str, Any], method: str, url: str, *path: str) -> Tuple[Optional[int], Optional[RpcResultError]]:
    """Positive integer at ``path``; zero counts as missing."""
    value, err = _lookup(envelope, method, url, path)
    if err is not None:
        return None, err
    dotted = ".".join(path)
    if isinstance(value, bool) or not isinstance(value, int):
        return None, RpcResultError(method, url, f"field {dotted} is not an integer: {value!r}")
    if value <= 0:
        return None, RpcResultError(method, url, f"field {dotted} is not positive: {value}")
    return value, None


def extract_str(envelope: Dict[str, Any], method: str, url: str, *path: str) -> Tuple[Optional[str], Optional[RpcResultError]]:
    """Non-empty string at ``path``."""
    value, err = _lookup(envelope, method, url, path)
    if err is not None:
        return None, err
    dotted = ".".join(path)
    if not isinstance(value, str) or not value.strip():
        return None, RpcResultError(method, url, f"field {dotted} is not a non-empty string: {value!r}")
    return value, None
