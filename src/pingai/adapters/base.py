"""Shared httpx plumbing for protocol adapters: request dispatch, error mapping, SSE decoding."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator

import httpx

from pingai import __version__
from pingai.core.exceptions import (
    AdapterError,
    AdapterTimeout,
    DecodeError,
    NetworkFailure,
    ProtocolError,
)
from pingai.core.schema import ChatMessage, CheckConfig, ProtocolKind
from pingai.core.timing import DETAIL_LIMIT, Stopwatch, TokenUsage, truncate
from pingai.protocols.adapter import StreamResponse

log = logging.getLogger(__name__)

MESSAGE_LIMIT = 120


@dataclass
class StreamFrame:
    """Decoded content of one SSE data line."""

    text: str = ""
    usage: TokenUsage | None = None
    done: bool = False


def iter_sse_events(lines: Iterable[str]) -> Iterator[tuple[str, str]]:
    """Yield (event, data) for every ``data:`` line as soon as it arrives.

    Frames are emitted per data line rather than per blank-line boundary so the
    first content chunk is observed without waiting for the event terminator.
    The event name resets at each blank line; comments and id/retry fields are
    ignored.
    """
    event = ""
    for raw in lines:
        line = raw.rstrip("\r")
        if line == "":
            event = ""
            continue
        if line.startswith(":"):
            continue
        if line.startswith("event:"):
            event = line.split(":", 1)[1].strip()
            continue
        if line.startswith("data:"):
            yield event, line.split(":", 1)[1].lstrip()


def _join_url(base_url: str, path: str) -> str:
    return f"{base_url.rstrip('/')}/{path.lstrip('/')}"


class HttpAdapter:
    """Base class for adapters: owns one httpx.Client and maps transport errors.

    Subclasses provide auth placement, error-body parsing, and the request
    envelopes; ``chat_stream`` is implemented here on top of
    ``_stream_request`` and ``_decode_frame``.
    """

    kind: ProtocolKind

    def __init__(self, *, transport: httpx.BaseTransport | None = None) -> None:
        self._client = httpx.Client(
            transport=transport,
            follow_redirects=True,
            headers={"User-Agent": f"pingai/{__version__}"},
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> HttpAdapter:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    # -- subclass hooks -----------------------------------------------------

    def _headers(self, config: CheckConfig) -> dict[str, str]:
        return {"Accept": "application/json", "Content-Type": "application/json"}

    def _params(self, config: CheckConfig) -> dict[str, str]:
        return {}

    def _error_message(self, payload: Any) -> str | None:
        """Extract the provider's error message from a decoded body, if any."""
        if isinstance(payload, dict):
            err = payload.get("error")
            if isinstance(err, dict):
                msg = err.get("message")
                return str(msg) if msg else json.dumps(err)[:MESSAGE_LIMIT]
            if isinstance(err, str) and err:
                return err
        return None

    def _stream_request(
        self, config: CheckConfig, messages: list[ChatMessage]
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        """Return (url, extra query params, JSON body) for a streaming completion."""
        raise NotImplementedError

    def _decode_frame(self, event: str, payload: Any) -> StreamFrame | None:
        raise NotImplementedError

    # -- request helpers ----------------------------------------------------

    def _url(self, config: CheckConfig, path: str) -> str:
        return _join_url(config.normalized_base_url(), path)

    def _request(
        self,
        method: str,
        url: str,
        config: CheckConfig,
        *,
        timeout: float,
        body: dict[str, Any] | None = None,
        params: dict[str, str] | None = None,
    ) -> httpx.Response:
        query = {**self._params(config), **(params or {})}
        log.debug("%s %s %s", self.kind.value, method, url)
        try:
            return self._client.request(
                method,
                url,
                headers=self._headers(config),
                params=query or None,
                json=body,
                timeout=timeout,
            )
        except httpx.TimeoutException as e:
            raise AdapterTimeout(f"timeout after {timeout:g}s", f"{type(e).__name__}: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkFailure("network unreachable", f"{type(e).__name__}: {e}") from e

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if 200 <= resp.status_code < 300:
            return
        text = resp.text
        provider_msg = None
        try:
            provider_msg = self._error_message(json.loads(text))
        except ValueError:
            pass
        message = f"HTTP {resp.status_code}"
        if provider_msg:
            message = f"{message}: {truncate(provider_msg, MESSAGE_LIMIT)}"
        raise ProtocolError(message, truncate(text, DETAIL_LIMIT), status_code=resp.status_code)

    def _decode_json(self, resp: httpx.Response) -> Any:
        """Check status, parse JSON, and reject provider error bodies sent with 2xx."""
        self._raise_for_status(resp)
        try:
            payload = resp.json()
        except ValueError as e:
            raise DecodeError("invalid JSON response", truncate(resp.text, DETAIL_LIMIT)) from e
        provider_msg = self._error_message(payload)
        if provider_msg:
            raise ProtocolError(
                truncate(provider_msg, MESSAGE_LIMIT),
                truncate(resp.text, DETAIL_LIMIT),
                status_code=resp.status_code,
            )
        return payload

    # -- streaming ----------------------------------------------------------

    def chat_stream(self, config: CheckConfig, messages: list[ChatMessage], *, timeout: float) -> StreamResponse:
        """Stream a completion, timing the first content chunk and the full stream.

        ``timeout`` bounds each network read and the stream as a whole.
        """
        url, extra_params, body = self._stream_request(config, messages)
        params = {**self._params(config), **extra_params}
        headers = {**self._headers(config), "Accept": "text/event-stream"}
        budget_ms = timeout * 1000.0
        parts: list[str] = []
        chunks = 0
        usage = TokenUsage()

        log.debug("%s POST %s (stream)", self.kind.value, url)
        watch = Stopwatch()

        def bounded(lines: Iterable[str]) -> Iterator[str]:
            # Deadline applies to every raw line, SSE comments included.
            for line in lines:
                if watch.elapsed_ms() > budget_ms:
                    raise AdapterTimeout(f"stream exceeded {timeout:g}s", f"{chunks} chunk(s) received")
                yield line

        try:
            with self._client.stream(
                "POST", url, headers=headers, params=params or None, json=body, timeout=timeout
            ) as resp:
                if not 200 <= resp.status_code < 300:
                    resp.read()
                    self._raise_for_status(resp)
                for event, data in iter_sse_events(bounded(resp.iter_lines())):
                    if data == "[DONE]":
                        break
                    try:
                        payload = json.loads(data)
                    except ValueError:
                        log.debug("%s: skipping undecodable stream frame: %s", self.kind.value, truncate(data, 80))
                        continue
                    frame = self._decode_frame(event, payload)
                    if frame is None:
                        continue
                    if frame.text:
                        watch.mark_first()
                        parts.append(frame.text)
                        chunks += 1
                    if frame.usage is not None and frame.usage.reported:
                        usage = frame.usage
                    if frame.done:
                        break
        except AdapterError:
            raise
        except httpx.TimeoutException as e:
            raise AdapterTimeout(f"timeout after {timeout:g}s", f"{type(e).__name__}: {e}") from e
        except httpx.HTTPError as e:
            raise NetworkFailure("network unreachable", f"{type(e).__name__}: {e}") from e

        latency = watch.elapsed_ms()
        log.debug("%s stream finished: %d chunk(s) in %.1fms", self.kind.value, chunks, latency)
        return StreamResponse(
            content="".join(parts),
            chunks=chunks,
            ttft_ms=watch.first_ms,
            latency_ms=latency,
            usage=usage,
        )
