"""Check orchestrator: runs the ordered battery against one provider configuration."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable

import httpx

from pingai.core.config import PromptConfigModel, TimeoutConfigModel
from pingai.core.exceptions import AdapterError, ListingUnsupported
from pingai.core.registry import ComponentRegistry, default_registry
from pingai.core.schema import (
    ChatMessage,
    CheckConfig,
    CheckItemKind,
    CheckResult,
    CheckStatus,
    FullCheckResult,
)
from pingai.core.timing import DETAIL_LIMIT, Stopwatch, TokenUsage, now_string, truncate

if TYPE_CHECKING:
    from pingai.protocols import ProtocolAdapter

log = logging.getLogger(__name__)

REPLY_PREVIEW = 60
SKIPPED_CHAT_UNAVAILABLE = "skipped: chat unavailable"


def _user(content: str) -> ChatMessage:
    return ChatMessage(role="user", content=content)


def _failed(item: CheckItemKind, error: AdapterError, latency_ms: float, prefix: str = "") -> CheckResult:
    message = f"{prefix}{error.message}" if prefix else error.message
    return CheckResult(
        item=item,
        status=CheckStatus.FAILED,
        latency_ms=latency_ms,
        message=message,
        detail=truncate(error.detail, DETAIL_LIMIT),
    )


def _usage_note(usage: TokenUsage) -> str:
    return "" if usage.reported else " (usage not reported)"


class CheckOrchestrator:
    """Run connectivity, chat, stream, models and multi-turn checks for one config.

    Items run sequentially against one adapter built for the run. Every item
    is attempted; adapter failures become failed results and never abort the
    run. Safe to share across threads: no per-run state lives on the instance.
    """

    def __init__(
        self,
        registry: ComponentRegistry | None = None,
        *,
        timeouts: TimeoutConfigModel | None = None,
        prompts: PromptConfigModel | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._registry = registry or default_registry()
        self._timeouts = timeouts or TimeoutConfigModel()
        self._prompts = prompts or PromptConfigModel()
        self._transport = transport

    @property
    def registry(self) -> ComponentRegistry:
        return self._registry

    @property
    def timeouts(self) -> TimeoutConfigModel:
        return self._timeouts

    def run(self, config: CheckConfig) -> FullCheckResult:
        """Run the full battery. Raises ConfigurationError before any I/O if config is invalid."""
        kind = config.protocol_kind()
        base_url = config.normalized_base_url()
        adapter = self._make_adapter(kind)

        label = config.provider_name or config.provider_id or base_url
        log.info("Checking %s (%s, model=%s)", label, kind.value, config.model or "-")
        start_time = now_string()
        watch = Stopwatch()
        model_list: list[str] = []
        try:
            connectivity = self._guard(CheckItemKind.CONNECTIVITY, self._check_connectivity, adapter, config)
            chat = self._guard(CheckItemKind.CHAT, self._check_chat, adapter, config)
            stream = self._guard(CheckItemKind.STREAM, self._check_stream, adapter, config)
            models = self._guard(CheckItemKind.MODELS, self._check_models, adapter, config, model_list)
            if chat.status == CheckStatus.FAILED:
                multi_turn = CheckResult(
                    item=CheckItemKind.MULTI_TURN,
                    status=CheckStatus.FAILED,
                    message=SKIPPED_CHAT_UNAVAILABLE,
                    detail=chat.message,
                )
            else:
                multi_turn = self._guard(CheckItemKind.MULTI_TURN, self._check_multi_turn, adapter, config)
        finally:
            adapter.close()
        total = watch.elapsed_ms()
        end_time = now_string()

        result = FullCheckResult(
            unit_id=config.provider_id,
            provider_id=config.provider_id,
            provider_name=config.provider_name,
            base_url=config.base_url,
            model=config.model,
            protocol=kind.value,
            results=[connectivity, chat, stream, models, multi_turn],
            model_list=model_list if models.status != CheckStatus.FAILED else [],
            start_time=start_time,
            end_time=end_time,
            total_latency_ms=total,
        )
        log.info("Finished %s: %s in %.0fms", label, result.overall_status().value, total)
        return result

    def _make_adapter(self, kind: Any) -> ProtocolAdapter:
        if self._transport is not None:
            return self._registry.get_adapter(kind, transport=self._transport)
        return self._registry.get_adapter(kind)

    def _guard(self, item: CheckItemKind, fn: Callable[..., CheckResult], *args: Any) -> CheckResult:
        """Run one item; adapter errors and unexpected faults both become failed results."""
        watch = Stopwatch()
        try:
            result = fn(*args)
        except AdapterError as e:
            result = _failed(item, e, watch.elapsed_ms())
        except Exception as e:
            log.exception("Unexpected error during %s check", item.value)
            result = CheckResult(
                item=item,
                status=CheckStatus.FAILED,
                latency_ms=watch.elapsed_ms(),
                message="internal error",
                detail=truncate(f"{type(e).__name__}: {e}", DETAIL_LIMIT),
            )
        log.debug("%s: %s %s", item.value, result.status.value, result.message)
        return result

    # -- items ----------------------------------------------------------------

    def _check_connectivity(self, adapter: ProtocolAdapter, config: CheckConfig) -> CheckResult:
        watch = Stopwatch()
        code = adapter.ping(config, timeout=self._timeouts.ping).status_code
        latency = watch.elapsed_ms()
        item = CheckItemKind.CONNECTIVITY
        if 200 <= code < 300:
            return CheckResult(item=item, status=CheckStatus.SUCCESS, latency_ms=latency, message=f"reachable (HTTP {code})")
        if code in {401, 403}:
            return CheckResult(
                item=item,
                status=CheckStatus.WARNING,
                latency_ms=latency,
                message=f"reachable, authentication failed (HTTP {code})",
            )
        if 400 <= code < 500:
            return CheckResult(item=item, status=CheckStatus.WARNING, latency_ms=latency, message=f"reachable (HTTP {code})")
        if code >= 500:
            return CheckResult(item=item, status=CheckStatus.FAILED, latency_ms=latency, message=f"server error (HTTP {code})")
        return CheckResult(item=item, status=CheckStatus.WARNING, latency_ms=latency, message=f"unexpected status (HTTP {code})")

    def _check_chat(self, adapter: ProtocolAdapter, config: CheckConfig) -> CheckResult:
        watch = Stopwatch()
        resp = adapter.chat(config, [_user(self._prompts.chat)], timeout=self._timeouts.chat)
        latency = watch.elapsed_ms()
        reply = resp.content.strip()
        status = CheckStatus.SUCCESS if reply else CheckStatus.WARNING
        message = f"reply: {truncate(reply, REPLY_PREVIEW)}" if reply else "empty reply"
        return CheckResult(
            item=CheckItemKind.CHAT,
            status=status,
            latency_ms=latency,
            message=message + _usage_note(resp.usage),
            tokens_in=resp.usage.input_tokens,
            tokens_out=resp.usage.output_tokens,
        )

    def _check_stream(self, adapter: ProtocolAdapter, config: CheckConfig) -> CheckResult:
        resp = adapter.chat_stream(config, [_user(self._prompts.stream)], timeout=self._timeouts.stream)
        if resp.chunks == 0:
            return CheckResult(
                item=CheckItemKind.STREAM,
                status=CheckStatus.WARNING,
                latency_ms=resp.latency_ms,
                message="stream completed without content chunks",
                tokens_in=resp.usage.input_tokens,
                tokens_out=resp.usage.output_tokens,
            )
        return CheckResult(
            item=CheckItemKind.STREAM,
            status=CheckStatus.SUCCESS,
            latency_ms=resp.latency_ms,
            ttft_ms=resp.ttft_ms,
            message=f"streamed {resp.chunks} chunk(s)",
            tokens_in=resp.usage.input_tokens,
            tokens_out=resp.usage.output_tokens,
        )

    def _check_models(self, adapter: ProtocolAdapter, config: CheckConfig, sink: list[str]) -> CheckResult:
        watch = Stopwatch()
        item = CheckItemKind.MODELS
        try:
            models = adapter.list_models(config, timeout=self._timeouts.models)
        except ListingUnsupported as e:
            return CheckResult(
                item=item,
                status=CheckStatus.WARNING,
                latency_ms=watch.elapsed_ms(),
                message=e.message,
                detail=truncate(e.detail, DETAIL_LIMIT),
            )
        latency = watch.elapsed_ms()
        sink.extend(models)
        if not models:
            return CheckResult(item=item, status=CheckStatus.WARNING, latency_ms=latency, message="no models listed")
        return CheckResult(item=item, status=CheckStatus.SUCCESS, latency_ms=latency, message=f"{len(models)} model(s) listed")

    def _check_multi_turn(self, adapter: ProtocolAdapter, config: CheckConfig) -> CheckResult:
        item = CheckItemKind.MULTI_TURN
        timeout = self._timeouts.multi_turn
        first = _user(self._prompts.multi_turn_first)
        watch = Stopwatch()

        try:
            round1 = adapter.chat(config, [first], timeout=timeout)
        except AdapterError as e:
            return _failed(item, e, watch.elapsed_ms(), prefix="round 1 failed: ")

        history = [first, ChatMessage(role="assistant", content=round1.content), _user(self._prompts.multi_turn_followup)]
        try:
            round2 = adapter.chat(config, history, timeout=timeout)
        except AdapterError as e:
            return _failed(item, e, watch.elapsed_ms(), prefix="round 2 failed: ")

        latency = watch.elapsed_ms()
        usage = round1.usage.add(round2.usage)
        reply = round2.content.strip()
        if not reply:
            status, message = CheckStatus.WARNING, "empty reply in round 2"
        elif self._prompts.remembered_token in reply:
            status, message = CheckStatus.SUCCESS, "context retained"
        else:
            status, message = CheckStatus.SUCCESS, f"reply received, recall not confirmed: {truncate(reply, REPLY_PREVIEW)}"
        return CheckResult(
            item=item,
            status=status,
            latency_ms=latency,
            message=message,
            tokens_in=usage.input_tokens,
            tokens_out=usage.output_tokens,
        )
