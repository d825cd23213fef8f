"""OpenAI-style adapter (OpenAI and the many OpenAI-compatible gateways).

Auth via ``Authorization: Bearer``; expects base_url to include the version
segment (e.g. https://api.openai.com/v1).
"""

from __future__ import annotations

from typing import Any

from pingai.adapters.base import MESSAGE_LIMIT, HttpAdapter, StreamFrame
from pingai.core.exceptions import DecodeError, ListingUnsupported, ProtocolError
from pingai.core.schema import ChatMessage, CheckConfig, ProtocolKind
from pingai.core.timing import DETAIL_LIMIT, TokenUsage, truncate
from pingai.protocols.adapter import ChatResponse, PingResult


def _content_text(content: Any) -> str:
    # Some gateways return content as a list of typed parts.
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        return "".join(str(p.get("text") or "") for p in content if isinstance(p, dict))
    return ""


def _usage(payload: dict[str, Any]) -> TokenUsage:
    u = payload.get("usage")
    if not isinstance(u, dict):
        return TokenUsage()
    return TokenUsage.from_counts(u.get("prompt_tokens"), u.get("completion_tokens"))


class OpenAIAdapter(HttpAdapter):
    """Adapter for /chat/completions and /models."""

    kind = ProtocolKind.OPENAI

    def _headers(self, config: CheckConfig) -> dict[str, str]:
        headers = super()._headers(config)
        headers["Authorization"] = f"Bearer {config.api_key}"
        return headers

    @staticmethod
    def _messages(messages: list[ChatMessage]) -> list[dict[str, str]]:
        return [{"role": m.role, "content": m.content} for m in messages]

    def ping(self, config: CheckConfig, *, timeout: float) -> PingResult:
        resp = self._request("GET", self._url(config, "/models"), config, timeout=timeout)
        return PingResult(status_code=resp.status_code)

    def chat(self, config: CheckConfig, messages: list[ChatMessage], *, timeout: float) -> ChatResponse:
        body = {"model": config.model, "messages": self._messages(messages)}
        resp = self._request("POST", self._url(config, "/chat/completions"), config, timeout=timeout, body=body)
        payload = self._decode_json(resp)
        if not isinstance(payload, dict):
            raise DecodeError("unexpected response shape", truncate(resp.text, DETAIL_LIMIT))
        choices = payload.get("choices")
        if not isinstance(choices, list) or not choices:
            raise DecodeError("empty choices", truncate(resp.text, DETAIL_LIMIT))
        first = choices[0] if isinstance(choices[0], dict) else {}
        message = first.get("message") if isinstance(first.get("message"), dict) else {}
        return ChatResponse(content=_content_text(message.get("content")), usage=_usage(payload))

    def _stream_request(
        self, config: CheckConfig, messages: list[ChatMessage]
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        body = {
            "model": config.model,
            "messages": self._messages(messages),
            "stream": True,
            "stream_options": {"include_usage": True},
        }
        return self._url(config, "/chat/completions"), {}, body

    def _decode_frame(self, event: str, payload: Any) -> StreamFrame | None:
        if not isinstance(payload, dict):
            return None
        err = self._error_message(payload)
        if err:
            raise ProtocolError(truncate(err, MESSAGE_LIMIT), truncate(str(payload), DETAIL_LIMIT))
        text = ""
        choices = payload.get("choices")
        if isinstance(choices, list) and choices and isinstance(choices[0], dict):
            delta = choices[0].get("delta")
            if isinstance(delta, dict):
                text = _content_text(delta.get("content"))
        usage = _usage(payload)
        return StreamFrame(text=text, usage=usage if usage.reported else None)

    def list_models(self, config: CheckConfig, *, timeout: float) -> list[str]:
        resp = self._request("GET", self._url(config, "/models"), config, timeout=timeout)
        if resp.status_code in {404, 405}:
            raise ListingUnsupported(f"model listing not supported (HTTP {resp.status_code})", truncate(resp.text, DETAIL_LIMIT))
        payload = self._decode_json(resp)
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            raise DecodeError("missing 'data' in model list", truncate(resp.text, DETAIL_LIMIT))
        out: list[str] = []
        for row in data:
            if not isinstance(row, dict):
                continue
            mid = str(row.get("id") or "").strip()
            if mid:
                out.append(mid)
        return out
