"""Google Gemini (generativelanguage) adapter.

The API key travels as the ``key`` query parameter; assistant turns use the
``model`` role and text lives in ``parts``. Streaming uses
``:streamGenerateContent?alt=sse`` where every data frame is a full partial
response.
"""

from __future__ import annotations

from typing import Any

from pingai.adapters.base import MESSAGE_LIMIT, HttpAdapter, StreamFrame
from pingai.core.exceptions import DecodeError, ListingUnsupported, ProtocolError
from pingai.core.schema import ChatMessage, CheckConfig, ProtocolKind
from pingai.core.timing import DETAIL_LIMIT, TokenUsage, truncate
from pingai.protocols.adapter import ChatResponse, PingResult


def _model_path(model: str) -> str:
    m = (model or "").strip()
    if m.startswith("models/"):
        m = m[len("models/"):]
    return f"/models/{m}"


def _candidate_text(payload: dict[str, Any]) -> str | None:
    """Text of the first candidate, or None when there is no candidate at all."""
    cands = payload.get("candidates")
    if not isinstance(cands, list) or not cands:
        return None
    first = cands[0] if isinstance(cands[0], dict) else {}
    content = first.get("content")
    parts = content.get("parts") if isinstance(content, dict) else None
    if not isinstance(parts, list):
        return ""
    return "".join(str(p.get("text") or "") for p in parts if isinstance(p, dict))


def _usage(payload: dict[str, Any]) -> TokenUsage:
    um = payload.get("usageMetadata")
    if not isinstance(um, dict):
        return TokenUsage()
    return TokenUsage.from_counts(um.get("promptTokenCount"), um.get("candidatesTokenCount"))


class GeminiAdapter(HttpAdapter):
    """Adapter for models/{model}:generateContent and /models."""

    kind = ProtocolKind.GEMINI

    def _params(self, config: CheckConfig) -> dict[str, str]:
        return {"key": config.api_key}

    def _error_message(self, payload: Any) -> str | None:
        # {"error": {"code": 400, "message": "...", "status": "INVALID_ARGUMENT"}}, sometimes wrapped in a list
        if isinstance(payload, list) and payload:
            return self._error_message(payload[0])
        if isinstance(payload, dict) and isinstance(payload.get("error"), dict):
            err = payload["error"]
            msg = str(err.get("message") or "")
            status = str(err.get("status") or "")
            if status and msg:
                return f"{status}: {msg}"
            return msg or status or None
        return None

    @staticmethod
    def _contents(messages: list[ChatMessage]) -> list[dict[str, Any]]:
        return [
            {"role": "model" if m.role == "assistant" else m.role, "parts": [{"text": m.content}]}
            for m in messages
        ]

    def ping(self, config: CheckConfig, *, timeout: float) -> PingResult:
        resp = self._request("GET", self._url(config, "/models"), config, timeout=timeout)
        return PingResult(status_code=resp.status_code)

    def chat(self, config: CheckConfig, messages: list[ChatMessage], *, timeout: float) -> ChatResponse:
        url = self._url(config, f"{_model_path(config.model)}:generateContent")
        resp = self._request("POST", url, config, timeout=timeout, body={"contents": self._contents(messages)})
        payload = self._decode_json(resp)
        if not isinstance(payload, dict):
            raise DecodeError("unexpected response shape", truncate(resp.text, DETAIL_LIMIT))
        text = _candidate_text(payload)
        if text is None:
            feedback = payload.get("promptFeedback")
            if isinstance(feedback, dict) and feedback.get("blockReason"):
                raise ProtocolError(f"prompt blocked: {feedback['blockReason']}", truncate(resp.text, DETAIL_LIMIT))
            raise DecodeError("empty candidates", truncate(resp.text, DETAIL_LIMIT))
        return ChatResponse(content=text, usage=_usage(payload))

    def _stream_request(
        self, config: CheckConfig, messages: list[ChatMessage]
    ) -> tuple[str, dict[str, str], dict[str, Any]]:
        url = self._url(config, f"{_model_path(config.model)}:streamGenerateContent")
        return url, {"alt": "sse"}, {"contents": self._contents(messages)}

    def _decode_frame(self, event: str, payload: Any) -> StreamFrame | None:
        if not isinstance(payload, dict):
            return None
        err = self._error_message(payload)
        if err:
            raise ProtocolError(truncate(err, MESSAGE_LIMIT), truncate(str(payload), DETAIL_LIMIT))
        usage = _usage(payload)
        return StreamFrame(text=_candidate_text(payload) or "", usage=usage if usage.reported else None)

    def list_models(self, config: CheckConfig, *, timeout: float) -> list[str]:
        resp = self._request("GET", self._url(config, "/models"), config, timeout=timeout, params={"pageSize": "1000"})
        if resp.status_code in {404, 405}:
            raise ListingUnsupported(
                f"model listing not supported (HTTP {resp.status_code})", truncate(resp.text, DETAIL_LIMIT)
            )
        payload = self._decode_json(resp)
        rows = payload.get("models", []) if isinstance(payload, dict) else None
        if not isinstance(rows, list):
            raise DecodeError("missing 'models' in model list", truncate(resp.text, DETAIL_LIMIT))
        out: list[str] = []
        for row in rows:
            name = str(row.get("name") or "").strip() if isinstance(row, dict) else ""
            if name:
                # "models/gemini-1.5-pro" -> "gemini-1.5-pro"
                out.append(name.rsplit("/", 1)[-1])
        return out
