"""CLI entry point for PingAI."""

from __future__ import annotations

import contextlib
from pathlib import Path
from typing import Any, Callable, Iterator

import click
import httpx

from pingai import __version__
from pingai.core.batch import BatchRunner
from pingai.core.checker import CheckOrchestrator
from pingai.core.config import ConfigManager
from pingai.core.exceptions import ConfigurationError, RegistryError
from pingai.core.registry import ComponentRegistry, default_registry
from pingai.core.run_log import configure_logging, run_log_context
from pingai.core.schema import CheckConfig, CheckStatus, FullCheckResult
from pingai.history import HistoryStore
from pingai.protocols import ConfigSource, HistorySink


def _transport() -> httpx.BaseTransport | None:
    """HTTP transport for adapters; None means the real network. Used so tests can override."""
    return None


def _load_config(project_root: Path | None = None) -> tuple[ConfigManager, ComponentRegistry]:
    """Load .env + YAML config and build the component registry."""
    config = ConfigManager(project_root=project_root)
    try:
        config.load()
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e
    return config, default_registry()


def _orchestrator(config: ConfigManager, registry: ComponentRegistry) -> CheckOrchestrator:
    return CheckOrchestrator(
        registry,
        timeouts=config.config.timeouts,
        prompts=config.config.prompts,
        transport=_transport(),
    )


@contextlib.contextmanager
def _logging(config: ConfigManager, verbose: bool, log_file: Path | None) -> Iterator[None]:
    configure_logging(config.config.log_level, verbose=verbose)
    if log_file is None:
        yield
        return
    with run_log_context(log_file.resolve(), verbose=verbose):
        yield


def _common_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    """--verbose and --log-file, shared by every command."""
    fn = click.option("--log-file", type=click.Path(path_type=Path), help="Also write the log to this file.")(fn)
    fn = click.option("--verbose", "-v", is_flag=True, help="Debug logging (request URLs, per-item outcomes).")(fn)
    return fn


def _output_options(fn: Callable[..., Any]) -> Callable[..., Any]:
    fn = click.option("--no-history", is_flag=True, help="Do not record results in the history file.")(fn)
    fn = click.option("--report", "report_path", type=click.Path(path_type=Path), help="Write the report to this file.")(fn)
    fn = click.option(
        "--format", "fmt", type=click.Choice(["text", "json"]), default="text", show_default=True,
        help="Output format.",
    )(fn)
    return fn


def _resolve_configs(source: ConfigSource, provider_ids: list[str]) -> list[CheckConfig]:
    try:
        return [source.get_check_config(pid) for pid in provider_ids]
    except ConfigurationError as e:
        raise click.UsageError(str(e)) from e


def _record(sink: HistorySink, results: list[FullCheckResult]) -> None:
    for r in results:
        if not r.cancelled:
            sink.save(r)


def _emit(
    results: list[FullCheckResult],
    *,
    config: ConfigManager,
    registry: ComponentRegistry,
    fmt: str,
    report_path: Path | None,
    no_history: bool,
) -> None:
    """Print, export and record results; exit 1 if any item failed."""
    try:
        reporter = registry.get_reporter(fmt)
    except RegistryError as e:
        raise click.UsageError(str(e)) from e
    rendered = reporter.render(results)
    click.echo(rendered, nl=not rendered.endswith("\n"))
    if report_path is not None:
        written = reporter.export(results, report_path)
        click.echo(f"Report written to {written}", err=True)
    if not no_history:
        _record(HistoryStore(config.history_path), results)
    if any(r.overall_status() == CheckStatus.FAILED for r in results):
        raise SystemExit(1)


@click.group()
@click.version_option(version=__version__)
def main() -> None:
    """PingAI: check reachability, chat, streaming and model listing of LLM APIs."""
    pass


@main.command()
@click.option("--provider", "provider_id", required=True, help="Provider id (see 'pingai providers list').")
@click.option("--api-key", help="API key (default: saved config, .env or <PROVIDER>_API_KEY).")
@click.option("--base-url", help="Override the provider's base URL.")
@click.option("--model", help="Override the provider's default model.")
@click.option("--protocol", type=click.Choice(["openai", "anthropic", "gemini"], case_sensitive=False), help="Override the wire protocol.")
@_output_options
@_common_options
def check(
    provider_id: str,
    api_key: str | None,
    base_url: str | None,
    model: str | None,
    protocol: str | None,
    fmt: str,
    report_path: Path | None,
    no_history: bool,
    verbose: bool,
    log_file: Path | None,
) -> None:
    """Run the full check battery against one provider."""
    config, registry = _load_config()
    with _logging(config, verbose, log_file):
        try:
            check_config = config.get_check_config(
                provider_id, api_key=api_key, base_url=base_url, model=model, protocol=protocol
            )
            result = _orchestrator(config, registry).run(check_config)
        except ConfigurationError as e:
            raise click.UsageError(str(e)) from e
        _emit([result], config=config, registry=registry, fmt=fmt, report_path=report_path, no_history=no_history)


@main.command()
@click.option("--provider", "provider_ids", multiple=True, help="Provider id; repeatable. Default: every visible provider with a key.")
@click.option("--workers", type=click.IntRange(min=1), help="Concurrent checks (default: batch.max_workers).")
@_output_options
@_common_options
def batch(
    provider_ids: tuple[str, ...],
    workers: int | None,
    fmt: str,
    report_path: Path | None,
    no_history: bool,
    verbose: bool,
    log_file: Path | None,
) -> None:
    """Check several providers concurrently."""
    config, registry = _load_config()
    with _logging(config, verbose, log_file):
        ids = list(provider_ids)
        if not ids:
            ids = [p.id for p in config.catalog().list(visible_only=True) if config.api_key_for(p.id)]
        if not ids:
            raise click.UsageError("No providers to check: pass --provider or configure API keys.")
        configs = _resolve_configs(config, ids)
        runner = BatchRunner(_orchestrator(config, registry), max_workers=workers or config.config.batch.max_workers)
        results = runner.run_configs(configs)
        _emit(results, config=config, registry=registry, fmt=fmt, report_path=report_path, no_history=no_history)


def _read_keys_file(path: Path) -> list[str]:
    """One key per line; blank lines and '#' comments are ignored."""
    keys: list[str] = []
    for line in path.read_text(encoding="utf-8").splitlines():
        line = line.split("#", 1)[0].strip()
        if line:
            keys.append(line)
    return keys


@main.command()
@click.option("--provider", "provider_id", required=True, help="Provider id whose endpoint is checked.")
@click.option("--key", "keys", multiple=True, help="API key; repeatable.")
@click.option("--keys-file", type=click.Path(path_type=Path, exists=True, dir_okay=False), help="File with one API key per line.")
@click.option("--base-url", help="Override the provider's base URL.")
@click.option("--model", help="Override the provider's default model.")
@click.option("--workers", type=click.IntRange(min=1), help="Concurrent checks (default: batch.max_workers).")
@_output_options
@_common_options
def keys(
    provider_id: str,
    keys: tuple[str, ...],
    keys_file: Path | None,
    base_url: str | None,
    model: str | None,
    workers: int | None,
    fmt: str,
    report_path: Path | None,
    no_history: bool,
    verbose: bool,
    log_file: Path | None,
) -> None:
    """Check one provider endpoint with several API keys."""
    config, registry = _load_config()
    with _logging(config, verbose, log_file):
        api_keys = list(keys)
        if keys_file is not None:
            api_keys.extend(_read_keys_file(keys_file))
        if not api_keys:
            raise click.UsageError("Pass at least one --key or a --keys-file.")
        try:
            base = config.get_check_config(provider_id, api_key="", base_url=base_url, model=model)
        except ConfigurationError as e:
            raise click.UsageError(str(e)) from e
        runner = BatchRunner(_orchestrator(config, registry), max_workers=workers or config.config.batch.max_workers)
        results = runner.run_keys(base, api_keys)
        _emit(results, config=config, registry=registry, fmt=fmt, report_path=report_path, no_history=no_history)


@main.group()
def providers() -> None:
    """Inspect known providers."""
    pass


@providers.command("list")
@click.option("--all", "show_all", is_flag=True, help="Include hidden providers.")
@_common_options
def providers_list(show_all: bool, verbose: bool, log_file: Path | None) -> None:
    """List builtin and custom providers with their defaults."""
    config, _ = _load_config()
    with _logging(config, verbose, log_file):
        catalog = config.catalog()
        for p in catalog.list(visible_only=not show_all):
            key = "key set" if config.api_key_for(p.id) else "no key"
            flags = [p.protocol, key]
            if not p.builtin:
                flags.append("custom")
            if catalog.is_hidden(p.id):
                flags.append("hidden")
            click.echo(f"  {p.id:<12s} {p.name:<20s} {p.default_model or '-':<28s} [{', '.join(flags)}]")
            if verbose:
                click.echo(f"    {p.base_url}")


@main.group()
def history() -> None:
    """Browse or prune stored check results."""
    pass


@history.command("list")
@click.option("--limit", type=click.IntRange(min=1), default=20, show_default=True)
@click.option("--offset", type=click.IntRange(min=0), default=0, show_default=True)
@_common_options
def history_list(limit: int, offset: int, verbose: bool, log_file: Path | None) -> None:
    """Show stored results, newest first."""
    config, _ = _load_config()
    with _logging(config, verbose, log_file):
        page = HistoryStore(config.history_path).list(limit=limit, offset=offset)
        if not page.items:
            click.echo("No history.")
            return
        for rec in page.items:
            r = rec.result
            click.echo(
                f"  #{rec.id:<5d} {rec.created_at}  {rec.status.value:<8s} "
                f"{r.provider_name or r.provider_id} ({r.model or '-'}) {r.total_latency_ms:.0f}ms"
            )
        shown_to = offset + len(page.items)
        click.echo(f"Showing {offset + 1}-{shown_to} of {page.total}.")


@history.command("delete")
@click.argument("record_ids", nargs=-1, required=True, type=int)
@_common_options
def history_delete(record_ids: tuple[int, ...], verbose: bool, log_file: Path | None) -> None:
    """Delete history records by id."""
    config, _ = _load_config()
    with _logging(config, verbose, log_file):
        removed = HistoryStore(config.history_path).delete_many(record_ids)
        click.echo(f"Deleted {removed} record(s).")


@history.command("clear")
@click.option("--yes", is_flag=True, help="Do not ask for confirmation.")
@_common_options
def history_clear(yes: bool, verbose: bool, log_file: Path | None) -> None:
    """Delete all history records."""
    config, _ = _load_config()
    with _logging(config, verbose, log_file):
        if not yes and not click.confirm("Delete all history?", default=False):
            click.echo("Aborted.")
            return
        removed = HistoryStore(config.history_path).clear()
        click.echo(f"Deleted {removed} record(s).")


if __name__ == "__main__":
    main()
