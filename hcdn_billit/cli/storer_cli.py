"""
Command-line interface for the HCDN billit storer.

Classifies raw bills dumped by the scraper and publishes them to billit, or
writes the resulting Popolo records locally with --dry-run.

Usage:
    python -m hcdn_billit.cli.storer_cli --input bills.jsonl --store-url http://localhost:3000
    python -m hcdn_billit.cli.storer_cli --input bills.json --dry-run --output popolo.json
    python -m hcdn_billit.cli.storer_cli --help
"""

import argparse
import asyncio
import json
import logging
from collections import Counter
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from ..classification.classifier import classify
from ..config import PublishConfig, Settings, StoreConfig, settings
from ..models.raw_bill import RawBill
from ..orchestration.popolo_storer import PopoloStorer
from ..utils.hash_utils import compute_bill_hash

logger = logging.getLogger(__name__)


def configure_logging(config: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, config.app.log_level, logging.INFO),
        format=config.app.log_format
    )


def load_raw_bills(path: Path) -> List[Dict[str, Any]]:
    """
    Read raw bills from a JSON array or a JSON-lines file.

    Args:
        path: Input file written by the scraper

    Returns:
        List of raw bill mappings
    """
    text = path.read_text(encoding="utf-8").strip()
    if not text:
        return []
    if text.startswith("["):
        return json.loads(text)
    return [json.loads(line) for line in text.splitlines() if line.strip()]


def dry_run(
    raw_bills: List[Dict[str, Any]],
    today: Optional[date],
    output_file: Optional[str]
) -> int:
    """Classify bills without publishing; print a stage summary"""
    records = []
    stages: Counter = Counter()

    for data in raw_bills:
        try:
            bill = classify(RawBill.model_validate(data), today=today)
        except ValidationError as e:
            logger.error(f"Invalid raw bill {data.get('file')}: {e}")
            continue
        stages[bill.stage.name] += 1
        records.append({"hash": compute_bill_hash(bill), "bill": bill.to_popolo()})

    print("\n" + "=" * 60)
    print("DRY RUN - Stage summary")
    print("=" * 60)
    print(f"Bills classified: {len(records)} of {len(raw_bills)}")
    for stage, count in stages.most_common():
        print(f"  {stage}: {count}")

    if output_file:
        Path(output_file).write_text(
            json.dumps(records, ensure_ascii=False, indent=2),
            encoding="utf-8"
        )
        print(f"\nPopolo records written to {output_file}")

    return 0 if len(records) == len(raw_bills) else 1


async def publish(
    raw_bills: List[Dict[str, Any]],
    config: Settings,
    today: Optional[date]
) -> int:
    """Publish bills to billit through the storer"""
    start_time = datetime.utcnow()

    async with PopoloStorer.from_settings(config, today=today) as storer:
        for data in raw_bills:
            storer.store(data.get("file"), data, None, lambda: None)
        await storer.join()
        metrics = storer.metrics

    duration = (datetime.utcnow() - start_time).total_seconds()

    print("\n" + "=" * 60)
    print("RESULTS")
    print("=" * 60)
    print(f"Store: {config.store.base_url}")
    print(f"Duration: {duration:.2f}s")
    print(f"Bills read: {len(raw_bills)}")
    print(f"Bills queued: {metrics.enqueued}")
    print(f"Published: {metrics.published}")
    print(f"Failed: {metrics.failed}")
    for status, count in metrics.by_status.items():
        print(f"  {status.value}: {count}")

    return 0 if metrics.failed == 0 and metrics.enqueued == len(raw_bills) else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Classify HCDN bills and publish them to billit"
    )
    parser.add_argument(
        "--input",
        type=Path,
        required=True,
        help="Raw bills file (JSON array or JSON lines)"
    )
    parser.add_argument(
        "--store-url",
        type=str,
        help="Billit base URL (default: BILLIT_BASE_URL or settings)"
    )
    parser.add_argument(
        "--pool-size",
        type=int,
        help="Concurrent publishes (default: PUBLISH_POOL_SIZE or 2)"
    )
    parser.add_argument(
        "--retry",
        action="store_true",
        help="Retry connection failures and server errors"
    )
    parser.add_argument(
        "--today",
        type=date.fromisoformat,
        help="Current date for the expiry rule (YYYY-MM-DD)"
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Classify only; do not contact billit"
    )
    parser.add_argument(
        "--output",
        type=str,
        help="Write dry-run Popolo records to this JSON file"
    )
    return parser


def resolve_settings(args: argparse.Namespace) -> Settings:
    """
    Overlay command-line options on the environment settings.

    Raises:
        ValidationError: If an option is out of range (e.g. --pool-size 0)
    """
    store_update: Dict[str, Any] = {}
    if args.store_url is not None:
        store_update["base_url"] = args.store_url
    if args.retry:
        store_update["retry_enabled"] = True

    publish_update: Dict[str, Any] = {}
    if args.pool_size is not None:
        publish_update["pool_size"] = args.pool_size

    # Overrides are validated like environment values
    store = StoreConfig(**{**settings.store.model_dump(), **store_update})
    publish_config = PublishConfig(**{**settings.publish.model_dump(), **publish_update})
    return settings.model_copy(update={"store": store, "publish": publish_config})


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point"""
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = resolve_settings(args)
    except ValidationError as e:
        parser.error(f"invalid option: {e}")
    configure_logging(config)

    raw_bills = load_raw_bills(args.input)
    logger.info(f"Loaded {len(raw_bills)} raw bills from {args.input}")

    if args.dry_run:
        return dry_run(raw_bills, args.today, args.output)

    return asyncio.run(publish(raw_bills, config, args.today))


if __name__ == "__main__":
    raise SystemExit(main())
