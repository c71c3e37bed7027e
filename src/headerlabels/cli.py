"""headerlabels command-line interface."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path
from typing import Annotated, NoReturn

import typer

from . import __version__
from .config import Config, ConfigError, load_config, resolve_config_path
from .headers import extract_header
from .labels import LabelError
from .logging import configure_logging
from .mailbox import MaildirMailbox, MaildirMessage
from .maildir import MaildirError
from .runner import Tagger, build_query, label_term
from .scheduler import Scheduler
from .tokenizer import tokenize
from .types import MaildirAccount, RunMetrics

app = typer.Typer(help="Label notification mail from a header-embedded label list.")
LOGGER = logging.getLogger(__name__)
COUNT_PAGE_SIZE = 1000


@dataclass
class CLIState:
    """Stores shared CLI options."""

    config_path: Path | None
    dry_run: bool = False
    verbose: bool = False


@app.callback()
def _headerlabels(
    ctx: typer.Context,
    config: Annotated[
        Path | None,
        typer.Option(
            "-c",
            "--config",
            help="Config file (env HEADERLABELS_CONFIG or ~/.config/headerlabels/config.yaml).",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            help="Log label decisions without creating or attaching labels.",
        ),
    ] = False,
    verbose: Annotated[
        bool,
        typer.Option("-v", "--verbose", help="Log at debug level regardless of config."),
    ] = False,
) -> None:
    """Capture global CLI options."""

    resolved = config.expanduser() if config else None
    ctx.obj = CLIState(config_path=resolved, dry_run=dry_run, verbose=verbose)


@app.command()
def run(
    ctx: typer.Context,
    account: Annotated[
        str | None,
        typer.Option("-a", "--account", help="Account to process (omit for all accounts)."),
    ] = None,
) -> None:
    """Label unprocessed threads and mark finished ones as processed."""

    state = _state(ctx)
    config = _load_environment(state)
    _run_accounts(config, state, account, Tagger.run, "run")


@app.command()
def reconcile(
    ctx: typer.Context,
    account: Annotated[
        str | None,
        typer.Option("-a", "--account", help="Account to reconcile (omit for all accounts)."),
    ] = None,
) -> None:
    """Re-apply labels to processed threads after a policy change."""

    state = _state(ctx)
    config = _load_environment(state)
    _run_accounts(config, state, account, Tagger.reconcile, "reconcile")


@app.command()
def classify(
    ctx: typer.Context,
    message: Annotated[Path, typer.Argument(..., help="Path to .eml message file.")],
) -> None:
    """Show the labels a single message would receive, without changing anything."""

    state = _state(ctx)
    config = _load_config(state.config_path)
    message_path = message.expanduser()
    if not message_path.is_file():
        typer.secho(f"Message file not found: {message_path}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from None

    classifier = config.build_classifier()
    header_name = config.labeling.header
    try:
        value = extract_header(MaildirMessage(message_path), header_name)
    except Exception as exc:
        typer.secho(f"Failed to parse message: {exc}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from exc

    result = classifier.classify_header(value)
    typer.echo(f"Message: {message_path}")
    typer.echo(f"{header_name}: {value if value is not None else '(absent)'}")
    typer.echo(f"Tokens: {', '.join(tokenize(value, config.labeling.delimiters)) or '(none)'}")
    typer.echo("Labels:")
    for label in result.labels if result else ():
        typer.echo(f"  - {label}")
    if result is not None:
        typer.echo(f"has_category_label: {result.has_category_label}")
        typer.echo(f"has_allowed_category: {result.has_allowed_category}")
        typer.echo(f"has_other_category: {result.has_other_category}")
        typer.echo(f"has_needs_category_flag: {result.has_needs_category_flag}")
    typer.echo(f"Mark processed: {classifier.should_mark_processed(result)}")


@app.command()
def daemon(ctx: typer.Context) -> None:
    """Run the primary pass and reconciliation periodically until interrupted."""

    state = _state(ctx)
    config = _load_environment(state)
    scheduler = Scheduler()
    for account in config.maildirs:
        tagger = _build_tagger(account, config, dry_run=state.dry_run)
        scheduler.every(config.schedule.interval, f"{account.name}:run", tagger.run)
        scheduler.every(
            config.schedule.reconcile_interval,
            f"{account.name}:reconcile",
            tagger.reconcile,
        )
    LOGGER.info(
        "Daemon started for %s account(s); run every %ss, reconcile every %ss.",
        len(config.maildirs),
        config.schedule.interval,
        config.schedule.reconcile_interval,
    )
    scheduler.run()


@app.command()
def status(ctx: typer.Context) -> None:
    """Display configuration and processed/pending thread counts."""

    state = _state(ctx)
    config = _load_config(state.config_path)
    labeling = config.labeling

    typer.echo("→ headerlabels Status")
    typer.echo(f"Version: {__version__}")
    typer.echo(f"Config path: {resolve_config_path(state.config_path)}")
    typer.echo(f"Root dir: {config.root_dir}")
    typer.echo(f"Header: {labeling.header}")
    typer.echo(f"Allow patterns: {len(labeling.allow)}")
    typer.echo(f"Processed label: {labeling.processed_label}")
    typer.echo(f"Fallback label: {labeling.fallback_label}")
    typer.echo("")
    typer.echo("Accounts:")
    for account in config.maildirs:
        mailbox = MaildirMailbox(account.path)
        marker = labeling.processed_label
        try:
            pending = _count(
                mailbox, build_query(config.query, label_term(marker, negated=True))
            )
            processed = _count(mailbox, build_query(config.query, label_term(marker)))
        except MaildirError as exc:
            typer.echo(f"  - {account.name}: {account.path} (unavailable: {exc})")
            continue
        typer.echo(f"  - {account.name}: {account.path} pending={pending} processed={processed}")


def _state(ctx: typer.Context) -> CLIState:
    state = ctx.obj
    if not isinstance(state, CLIState):
        raise RuntimeError("CLI state missing from context.")
    return state


def _load_environment(state: CLIState) -> Config:
    config = _load_config(state.config_path)
    try:
        configure_logging(
            config.logging,
            config.root_dir,
            level="debug" if state.verbose else None,
        )
    except ConfigError as exc:
        _config_failure(exc)
    return config


def _load_config(path: Path | None) -> Config:
    try:
        return load_config(path)
    except ConfigError as exc:
        _config_failure(exc)


def _config_failure(exc: ConfigError) -> NoReturn:
    typer.secho(f"Configuration error: {exc}", fg=typer.colors.RED, err=True)
    raise typer.Exit(2) from exc


def _build_tagger(account: MaildirAccount, config: Config, *, dry_run: bool) -> Tagger:
    mailbox = MaildirMailbox(account.path)
    return Tagger(
        mailbox,
        mailbox.keywords,
        config.build_classifier(),
        config.run_settings(dry_run=dry_run),
        name=account.name,
    )


def _run_accounts(
    config: Config,
    state: CLIState,
    requested: str | None,
    action: Callable[[Tagger], RunMetrics],
    verb: str,
) -> None:
    failed = False
    for account in _select_accounts(config, [requested] if requested else None):
        tagger = _build_tagger(account, config, dry_run=state.dry_run)
        try:
            metrics = action(tagger)
        except (LabelError, MaildirError) as exc:
            typer.secho(f"{account.name}: {verb} aborted: {exc}", fg=typer.colors.RED, err=True)
            failed = True
            continue
        typer.echo(_format_metrics(account.name, metrics))
        if metrics.failures:
            failed = True
    if failed:
        raise typer.Exit(1)


def _format_metrics(name: str, metrics: RunMetrics) -> str:
    line = (
        f"{name}: processed {metrics.processed} thread(s), "
        f"labeled {metrics.labeled}, skipped {metrics.skipped}, "
        f"marked {metrics.marked_processed}, failures {metrics.failures}."
    )
    if metrics.label_attachments:
        summary = ", ".join(
            f"{label}={count}" for label, count in sorted(metrics.label_attachments.items())
        )
        line = f"{line}\n  {summary}"
    return line


def _select_accounts(config: Config, requested: Iterable[str] | None) -> list[MaildirAccount]:
    if not requested:
        return list(config.maildirs)
    accounts = []
    known = {account.name: account for account in config.maildirs}
    for name in requested:
        try:
            accounts.append(known[name])
        except KeyError:
            typer.secho(f"Unknown account '{name}'.", fg=typer.colors.RED, err=True)
            raise typer.Exit(1) from None
    return accounts


def _count(mailbox: MaildirMailbox, query: str) -> int:
    total = 0
    offset = 0
    while True:
        page = mailbox.search(query, offset, COUNT_PAGE_SIZE)
        if not page:
            return total
        total += len(page)
        offset += len(page)


def main() -> None:  # pragma: no cover - delegated to Typer
    app()


__all__ = ["app", "main"]
