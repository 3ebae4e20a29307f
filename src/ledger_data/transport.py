from __future__ import annotations

import asyncio
import base64
import itertools
import json
import urllib.error
import urllib.request
from collections.abc import Mapping
from typing import Any, Protocol

import websockets
from websockets.exceptions import InvalidHandshake, WebSocketException

from ledger_data.errors import (
    ErrorKind,
    LedgerReadError,
    NotFoundError,
    RateLimitedError,
    classify_error,
    classify_message,
    error_for_kind,
)

READ_METHOD = "getAccountState"
DEFAULT_COMMITMENT = "confirmed"

_request_ids = itertools.count(1)


class LedgerReader(Protocol):
    async def read(self, key: bytes) -> Mapping[str, Any]: ...


def build_request(key: bytes, *, commitment: str = DEFAULT_COMMITMENT) -> dict[str, object]:
    return {
        "jsonrpc": "2.0",
        "id": next(_request_ids),
        "method": READ_METHOD,
        "params": [
            base64.b64encode(key).decode("ascii"),
            {"commitment": commitment, "encoding": "jsonParsed"},
        ],
    }


def parse_response(raw: bytes | str) -> Mapping[str, Any]:
    try:
        text = raw if isinstance(raw, str) else raw.decode("utf-8")
        data = json.loads(text)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise LedgerReadError(f"malformed rpc response: {exc}") from exc
    if not isinstance(data, Mapping):
        raise LedgerReadError("rpc response is not an object")
    error = data.get("error")
    if error is not None:
        raise _rpc_error(error)
    result = data.get("result")
    if not isinstance(result, Mapping) or "value" not in result:
        raise LedgerReadError("rpc response is missing result.value")
    value = result["value"]
    if value is None:
        raise NotFoundError("could not find account")
    if not isinstance(value, Mapping):
        raise LedgerReadError("result.value is not an object")
    return value


def _rpc_error(error: object) -> Exception:
    if not isinstance(error, Mapping):
        return error_for_kind(classify_message(str(error)), str(error))
    message = str(error.get("message", ""))
    if error.get("code") == 429:
        return RateLimitedError(message or "429 Too many requests")
    return error_for_kind(classify_message(message), message or "rpc error")


class HttpLedgerReader:
    def __init__(
        self, *, endpoint: str, timeout_ms: int, commitment: str = DEFAULT_COMMITMENT
    ) -> None:
        self._endpoint = endpoint
        self._timeout_ms = timeout_ms
        self._commitment = commitment

    async def read(self, key: bytes) -> Mapping[str, Any]:
        return await asyncio.to_thread(self._read_blocking, key)

    def _read_blocking(self, key: bytes) -> Mapping[str, Any]:
        body = json.dumps(build_request(key, commitment=self._commitment)).encode("utf-8")
        request = urllib.request.Request(
            self._endpoint,
            data=body,
            method="POST",
            headers={"Content-Type": "application/json"},
        )
        try:
            with urllib.request.urlopen(request, timeout=self._timeout_ms / 1000) as response:
                raw_payload = response.read()
        except urllib.error.HTTPError as exc:
            if exc.code == 429:
                raise RateLimitedError(f"429 Too many requests from {self._endpoint}") from exc
            raise LedgerReadError(f"http {exc.code} from {self._endpoint}") from exc
        except OSError as exc:
            raise LedgerReadError(f"transport failure: {exc}") from exc
        return parse_response(raw_payload)


class WebSocketLedgerReader:
    def __init__(
        self, *, endpoint: str, timeout_ms: int, commitment: str = DEFAULT_COMMITMENT
    ) -> None:
        self._endpoint = endpoint
        self._timeout_ms = timeout_ms
        self._commitment = commitment

    async def read(self, key: bytes) -> Mapping[str, Any]:
        request = json.dumps(build_request(key, commitment=self._commitment))
        timeout_s = self._timeout_ms / 1000
        try:
            async with websockets.connect(
                self._endpoint,
                open_timeout=timeout_s,
                ping_interval=None,
                close_timeout=1,
            ) as websocket:
                await websocket.send(request)
                try:
                    message = await asyncio.wait_for(websocket.recv(), timeout=timeout_s)
                except asyncio.TimeoutError as exc:
                    raise LedgerReadError("read timeout") from exc
        except InvalidHandshake as exc:
            if _handshake_status(exc) == 429:
                raise RateLimitedError(f"429 Too many requests from {self._endpoint}") from exc
            raise LedgerReadError(f"handshake failed: {exc}") from exc
        except (WebSocketException, OSError, asyncio.TimeoutError) as exc:
            raise LedgerReadError(f"transport failure: {exc}") from exc
        return parse_response(message)


def _handshake_status(exc: Exception) -> int | None:
    response = getattr(exc, "response", None)
    status = getattr(response, "status_code", None)
    if status is None:
        status = getattr(exc, "status_code", None)
    if status is None and classify_error(exc) is ErrorKind.RATE_LIMITED:
        return 429
    return status


def build_reader(endpoint: str, timeout_ms: int) -> LedgerReader:
    if endpoint.startswith(("ws://", "wss://")):
        return WebSocketLedgerReader(endpoint=endpoint, timeout_ms=timeout_ms)
    if endpoint.startswith(("http://", "https://")):
        return HttpLedgerReader(endpoint=endpoint, timeout_ms=timeout_ms)
    raise ValueError(f"unsupported ledger endpoint: {endpoint}")
