#!/usr/bin/env python3
"""
Command-line entrypoint: run the OCR API or push one receipt through it.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

import uvicorn

from receipt_intake.core.config import get_settings
from receipt_intake.core.errors import IntakeError
from receipt_intake.services.amount_extractor import STRATEGIES
from receipt_intake.services.intake import (
    HttpTransactionStore,
    InMemoryTransactionStore,
    ReceiptIntakeWorkflow,
    SelectedFile,
)

logger = logging.getLogger(__name__)


def _serve(args) -> int:
    settings = get_settings()
    uvicorn.run(
        "receipt_intake.main:create_app",
        factory=True,
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


async def _scan(args) -> int:
    settings = get_settings()
    if args.api_url:
        settings = settings.model_copy(update={"api_base_url": args.api_url})

    if settings.transaction_store_url and not args.dry_run:
        store = HttpTransactionStore.from_settings(settings)
    else:
        store = InMemoryTransactionStore()

    workflow = ReceiptIntakeWorkflow.from_settings(
        settings,
        store,
        strategy=STRATEGIES[args.strategy],
    )
    try:
        workflow.select_file(SelectedFile.from_path(Path(args.file)))
        text = await workflow.submit()
    except IntakeError as exc:
        print(f"[ERROR] {exc.message}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"[ERROR] Cannot read {args.file}: {exc.strerror or exc}", file=sys.stderr)
        return 1

    print(text)
    amount = workflow.extracted_amount
    if amount is None:
        print("[INFO] No amount found")
        return 0

    result = await workflow.wait_for_persistence()
    persisted = isinstance(store, HttpTransactionStore) and result is not None and result.ok
    saved = "saved" if persisted else "not saved"
    print(f"[INFO] Amount: {amount.value:.2f} ({saved})")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Receipt OCR upload API and intake client",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Run the API on the configured host/port
  receipt-intake serve

  # OCR a receipt through a running API and record the expense
  receipt-intake scan ./receipt.jpg

  # Show the inferred amount without creating a transaction
  receipt-intake scan ./receipt.png --dry-run --strategy labelled
        """,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the OCR upload API")
    serve.add_argument("--host", help="Bind address (default: HOST env or 0.0.0.0)")
    serve.add_argument("--port", type=int, help="Port (default: PORT env or 5000)")

    scan = sub.add_parser("scan", help="Upload one receipt and infer its total")
    scan.add_argument("file", help="Receipt image (JPG or PNG)")
    scan.add_argument("--api-url", help="OCR API base URL (default: API_BASE_URL env)")
    scan.add_argument("--strategy", choices=sorted(STRATEGIES), default="max",
                      help="Amount selection strategy (default: max)")
    scan.add_argument("--dry-run", action="store_true",
                      help="Do not send the transaction to the store")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=get_settings().log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "serve":
        return _serve(args)
    return asyncio.run(_scan(args))


if __name__ == "__main__":
    sys.exit(main())
