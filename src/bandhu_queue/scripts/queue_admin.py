"""Command-line maintenance for the message queue."""
from __future__ import annotations

import argparse
import json
import sys

from bandhu_queue.core.logging import configure_logging
from bandhu_queue.core.settings import settings
from bandhu_queue.db.session import SessionLocal
from bandhu_queue.services.queue_service import QueueError, QueueService


def run_init(queue: QueueService, args: argparse.Namespace) -> None:
    result = queue.initialize()
    if not result.success:
        raise QueueError(f"initialization failed: {result.error}")
    if result.created:
        print(f"[queue] created tables: {', '.join(result.created)}")
    else:
        print("[queue] tables already exist")


def run_process(queue: QueueService, args: argparse.Namespace) -> None:
    result = queue.process_next_batch(
        batch_size=args.batch_size,
        processor_id=args.processor_id,
        message_types=args.message_types or None,
    )
    if not result.success:
        raise QueueError(f"batch failed: {result.error}")
    print(f"[queue] processed {result.processed_count} message(s)")


def run_cleanup(queue: QueueService, args: argparse.Namespace) -> None:
    result = queue.cleanup_processed_messages(older_than=args.older_than)
    if not result.success:
        raise QueueError(f"cleanup failed: {result.error}")
    print(f"[queue] deleted {result.deleted_count} ledger record(s)")


def run_stats(queue: QueueService, args: argparse.Namespace) -> None:
    print(json.dumps(queue.get_stats(), indent=2, sort_keys=True))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Maintain the Retail Bandhu message queue")
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Create the queue tables if missing.")
    init_parser.set_defaults(handler=run_init)

    process_parser = subparsers.add_parser("process", help="Process one batch of messages.")
    process_parser.add_argument(
        "--batch-size",
        type=int,
        default=settings.queue_default_batch_size,
        help="Maximum number of messages to claim.",
    )
    process_parser.add_argument("--processor-id", default=None, help="Claim owner identifier.")
    process_parser.add_argument(
        "--type",
        dest="message_types",
        action="append",
        default=[],
        help="Only process this message type (repeatable).",
    )
    process_parser.set_defaults(handler=run_process)

    cleanup_parser = subparsers.add_parser("cleanup", help="Purge old processed records.")
    cleanup_parser.add_argument(
        "--older-than",
        type=int,
        default=settings.queue_retention_days,
        help="Retention window in days.",
    )
    cleanup_parser.set_defaults(handler=run_cleanup)

    stats_parser = subparsers.add_parser("stats", help="Print queue counts as JSON.")
    stats_parser.set_defaults(handler=run_stats)

    return parser


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    configure_logging()

    with SessionLocal() as db:
        try:
            args.handler(QueueService(db), args)
        except QueueError as exc:
            print(f"[queue] ERROR: {exc}", file=sys.stderr)
            sys.exit(1)


if __name__ == "__main__":
    main()
