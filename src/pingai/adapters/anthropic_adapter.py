"""Anthropic Messages API adapter.

Auth via ``x-api-key`` plus a pinned ``anthropic-version`` header. Streaming
uses named SSE events; text arrives in ``content_block_delta`` and usage is
split between ``message_start`` (input) and ``message_delta`` (output).
"""

from __future__ import annotations

from typing import Any

from pingai.adapters.base import MESSAGE_LIMIT, HttpAdapter, StreamFrame
from pingai.core.exceptions import DecodeError, ListingUnsupported, ProtocolError
from pingai.core.schema import ChatMessage, CheckConfig, ProtocolKind
from pingai.core.timing import DETAIL_LIMIT, TokenUsage, truncate
from pingai.protocols.adapter import ChatResponse, PingResult

ANTHROPIC_VERSION = "2023-06-01"
MAX_TOKENS = 256


class AnthropicAdapter(HttpAdapter):
    """Adapter for /messages and /models."""

    kind = ProtocolKind.ANTHROPIC

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._stream_input_tokens = 0

    def _headers(self, config: CheckConfig) -> dict[str, str]:
        headers = super()._headers(config)
        headers["x-api-key"] = config.api_key
        headers["anthropic-version"] = ANTHROPIC_VERSION
        return headers

    def _error_message(self, payload: Any) -> str | None:
        # {"type": "error", "error": {"type": "authentication_error", "message": "..."}}
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            err = payload["error"]
            msg = str(err.get("message") or "")
            kind = str(err.get("type") or "")
            if kind and msg:
                return f"{kind}: {msg}"
            return msg or kind or None
        return None

    @staticmethod
    def _body(config: CheckConfig, messages: list[ChatMessage]) -> dict[str, Any]:
        return {
            "model": config.model,
            "max_tokens": MAX_TOKENS,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
        }

    def ping(self, config: CheckConfig, *, timeout: float) -> PingResult:
        resp = self._request("GET", self._url(config, "/models"), config, timeout=timeout)
        return PingResult(status_code=resp.status_code)

    def chat(self, config: CheckConfig, messages: list[ChatMessage], *, timeout: float) -> ChatResponse:
        resp = self._request(
            "POST", self._url(config, "/messages"), config, timeout=timeout, body=self._body(config, messages)
        )
        payload = self._decode_json(resp)
        content = payload.get("content") if isinstance(payload, dict) else None
        if not isinstance(content, list):
            raise DecodeError("missing 'content' in response", truncate(resp.text, DETAIL_LIMIT))
        text = "".join(
            str(block.get("text") or "")
            for block in content
            if isinstance(block, dict) and block.get("type", "text") == "text"
        )
        u = payload.get("usage")
        usage = TokenUsage.from_counts(u.get("input_tokens"), u.get("output_tokens")) if isinstance(u, dict) else TokenUsage()
        return ChatResponse(content=text, usage=usage)

    def _stream_request(
        self, config: CheckConfig, messages: list[ChatMessage]
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        self._stream_input_tokens = 0
        body = self._body(config, messages)
        body["stream"] = True
        return self._url(config, "/messages"), {}, body

    def _decode_frame(self, event: str, payload: Any) -> StreamFrame | None:
        if not isinstance(payload, dict):
            return None
        kind = str(payload.get("type") or event)
        if kind == "error":
            msg = self._error_message(payload) or "stream error"
            raise ProtocolError(truncate(msg, MESSAGE_LIMIT), truncate(str(payload), DETAIL_LIMIT))
        if kind == "message_start":
            message = payload.get("message")
            u = message.get("usage") if isinstance(message, dict) else None
            if isinstance(u, dict) and isinstance(u.get("input_tokens"), int):
                self._stream_input_tokens = u["input_tokens"]
            return None
        if kind == "content_block_delta":
            delta = payload.get("delta")
            if isinstance(delta, dict):
                return StreamFrame(text=str(delta.get("text") or ""))
            return None
        if kind == "message_delta":
            u = payload.get("usage")
            if isinstance(u, dict):
                return StreamFrame(usage=TokenUsage.from_counts(self._stream_input_tokens, u.get("output_tokens")))
            return None
        if kind == "message_stop":
            return StreamFrame(done=True)
        return None

    def list_models(self, config: CheckConfig, *, timeout: float) -> list[str]:
        resp = self._request("GET", self._url(config, "/models"), config, timeout=timeout)
        if resp.status_code in {404, 405}:
            raise ListingUnsupported(
                f"model listing not supported (HTTP {resp.status_code})", truncate(resp.text, DETAIL_LIMIT)
            )
        payload = self._decode_json(resp)
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise DecodeError("missing 'data' in model list", truncate(resp.text, DETAIL_LIMIT))
        return [str(row["id"]).strip() for row in data if isinstance(row, dict) and row.get("id")]
