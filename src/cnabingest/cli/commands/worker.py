"""Long-running worker commands."""

import dataclasses
import logging
import signal
import threading

import click

from cnabingest.cli.error_handling import handle_domain_error
from cnabingest.domain.ingestion import IngestionOrchestrator
from cnabingest.domain.reporting import LoggingReporter
from cnabingest.messaging.dlq_worker import NotificationDlqWorker
from cnabingest.messaging.factories import (
    create_notification_channel,
    create_queue,
    create_storage,
)
from cnabingest.messaging.worker import QueueWorker

logger = logging.getLogger(__name__)


def install_stop_handlers(stop_event: threading.Event) -> None:
    """Set stop_event on SIGINT or SIGTERM."""

    def _stop(signum, frame):
        logger.info("Received %s; finishing in-flight work", signal.Signals(signum).name)
        stop_event.set()

    signal.signal(signal.SIGINT, _stop)
    signal.signal(signal.SIGTERM, _stop)


@click.command("worker")
@click.option("--queue-url", envvar="CNAB_QUEUE_URL", help="Processing queue URL")
@click.option("--bucket", envvar="CNAB_BUCKET", help="S3 bucket holding uploaded files")
@click.option("--storage-dir", envvar="CNAB_STORAGE_DIR", help="Local directory used instead of S3")
@click.option(
    "--empty-queue-delay",
    type=float,
    envvar="CNAB_EMPTY_QUEUE_DELAY",
    help="Seconds to wait after an empty receive",
)
@click.option("--once", is_flag=True, help="Handle a single batch and exit")
@click.pass_context
def worker(
    ctx,
    queue_url: str | None,
    bucket: str | None,
    storage_dir: str | None,
    empty_queue_delay: float | None,
    once: bool,
):
    """Consume the processing queue until interrupted."""
    db = ctx.obj["db"]
    settings = dataclasses.replace(
        ctx.obj["settings"], queue_url=queue_url, bucket=bucket, storage_dir=storage_dir
    )
    if empty_queue_delay is not None:
        settings = dataclasses.replace(settings, empty_queue_delay=empty_queue_delay)

    reporter = LoggingReporter()
    try:
        storage = create_storage(settings)
        queue = create_queue(settings.queue_url, settings, "CNAB_QUEUE_URL")
        notifier = create_notification_channel(settings, reporter)
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    orchestrator = IngestionOrchestrator(db, storage, reporter=reporter, notifier=notifier)
    stop_event = threading.Event()
    queue_worker = QueueWorker(
        queue,
        orchestrator,
        reporter=reporter,
        stop_event=stop_event,
        empty_queue_delay=settings.empty_queue_delay,
    )

    if once:
        summary = queue_worker.run_once()
        click.echo(
            f"Received {summary.received}, deleted {summary.deleted}, retained {summary.retained}"
        )
        return

    install_stop_handlers(stop_event)
    queue_worker.run(stop_event)


@click.command("dlq-worker")
@click.option(
    "--dlq-url", envvar="CNAB_NOTIFICATION_DLQ_URL", help="Notification dead-letter queue URL"
)
@click.option(
    "--interval", type=float, envvar="CNAB_DLQ_INTERVAL", help="Seconds between retry cycles"
)
@click.option("--once", is_flag=True, help="Run a single cycle and exit")
@click.pass_context
def dlq_worker(ctx, dlq_url: str | None, interval: float | None, once: bool):
    """Retry dead-lettered notifications periodically."""
    settings = dataclasses.replace(ctx.obj["settings"], notification_dlq_url=dlq_url)
    if interval is not None:
        settings = dataclasses.replace(settings, dlq_interval=interval)

    reporter = LoggingReporter()
    try:
        queue = create_queue(
            settings.notification_dlq_url, settings, "CNAB_NOTIFICATION_DLQ_URL"
        )
    except ValueError as e:
        handle_domain_error(ctx, e)
        return

    # Retries read from the DLQ and never publish back to it
    channel = create_notification_channel(
        dataclasses.replace(settings, notification_dlq_url=None), reporter
    )
    dlq = NotificationDlqWorker(queue, channel, reporter=reporter, interval=settings.dlq_interval)

    if once:
        summary = dlq.run_cycle()
        click.echo(f"Succeeded {summary.success}, failed {summary.failure}")
        return

    stop_event = threading.Event()
    install_stop_handlers(stop_event)
    dlq.run(stop_event)


def register_commands(cli):
    """Register worker commands with CLI."""
    cli.add_command(worker)
    cli.add_command(dlq_worker)
