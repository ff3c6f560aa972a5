"""
Application entry point — wires dependencies and runs one audit.

Composition root: creates concrete adapters, injects them into the
pipeline, and renders the report.

This is the ONLY place where concrete classes are instantiated.
Everything else depends on Protocol interfaces.

Responsibilities:
  1. Load and validate configuration from environment
  2. Configure structlog (to stderr, so stdout carries only the report)
  3. Create the store adapter and the feed adapters
  4. Run the audit within a LoggingExecutionContext
  5. Print the JSON report, or a single descriptive error
  6. In quarantine mode, note any skipped store entries on stderr
"""

from __future__ import annotations

import json
import logging
import sys

import structlog
from railway import FailureDescription, LoggingExecutionContext

from revocation_audit import __version__
from revocation_audit.adapters.feeds import HttpCCADBFeed, HttpKintoFeed, HttpRevocationsFeed
from revocation_audit.adapters.store import LmdbRevocationStore
from revocation_audit.config import AppSettings
from revocation_audit.domain.models import RejectedEntry, Report
from revocation_audit.pipeline import Feeds, run_audit


def configure_structlog(log_level: str = "INFO") -> None:
    """Configure structlog for structured, human-readable logging on stderr."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.dev.set_exc_info,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper(), logging.INFO)
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


def _create_adapters(settings: AppSettings) -> tuple[LmdbRevocationStore, Feeds]:
    """Instantiate the store adapter and every configured feed adapter."""
    store = LmdbRevocationStore(
        path=settings.store.path,
        table=settings.store.table,
        map_size=settings.store.map_size,
        max_dbs=settings.store.max_dbs,
    )
    timeout = settings.http_timeout_seconds
    feeds = Feeds(
        kinto=HttpKintoFeed(settings.feeds.kinto_url, timeout=timeout),
        revocations=(
            HttpRevocationsFeed(settings.feeds.revocations_url, timeout=timeout)
            if settings.feeds.revocations_url
            else None
        ),
        ccadb=HttpCCADBFeed(settings.feeds.ccadb_url, timeout=timeout),
    )
    return store, feeds


def _print_report(report: Report) -> int:
    print(json.dumps(report.to_dict(), indent=2))  # noqa: T201
    return 0


def _print_error(error: FailureDescription) -> int:
    print(f"ERROR: {error.describe(cause=True)}", file=sys.stderr)  # noqa: T201
    return 1


def _print_skipped(skipped: list[RejectedEntry]) -> None:
    positions = ", ".join(str(entry.index) for entry in skipped)
    print(  # noqa: T201
        f"WARNING: skipped {len(skipped)} malformed store entries (positions {positions})",
        file=sys.stderr,
    )


def main() -> None:
    """Run one audit and print the report as JSON."""
    try:
        settings = AppSettings()
    except Exception as e:
        print(f"FATAL: Configuration error — {e}", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    configure_structlog(settings.log_level)
    log = structlog.get_logger()

    log.info(
        "app.starting",
        version=__version__,
        mode=str(settings.mode),
        store=str(settings.store.path),
        quarantine_malformed=settings.quarantine_malformed,
    )

    store, feeds = _create_adapters(settings)
    skipped: list[RejectedEntry] = []
    ctx = LoggingExecutionContext(operation="RevocationAudit")
    result = ctx.execute(
        lambda: run_audit(
            store,
            feeds,
            mode=settings.mode,
            quarantine_malformed=settings.quarantine_malformed,
            on_rejected=skipped.extend,
        )
    )
    if skipped:
        _print_skipped(skipped)

    exit_code = (
        result.peek(
            lambda report: log.info(
                "audit.complete",
                differences=report.total_differences(),
                skipped=len(skipped),
            )
        )
        .peek_failure(lambda err: log.error("audit.failed", code=err.code.value, error=err.message))
        .either(on_success=_print_report, on_failure=_print_error)
    )
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
