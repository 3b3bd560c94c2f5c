#!/usr/bin/env python3
"""
DOOH Inventory Aggregation - Application Entry Point.

============================================================
COMPOSITION ROOT
============================================================
Builds the one long-lived inventory runtime:

- InventoryAggregationStore (explicit instance, no singleton)
- SourceFailureRegistry + SourceRefreshHandler
- Shared clock and configuration

and exposes a one-shot CLI that ingests a JSON feed file
and prints inventory statistics as JSON.

============================================================
USAGE
============================================================
    python app.py --feed batch.json
    python app.py --feed batch.json --log-level DEBUG --log-format json
    python app.py --feed batch.json --config store.yaml --show-screens

Environment (.env is loaded first):
    INVENTORY_FRESHNESS_WINDOW_SECONDS, INVENTORY_SWEEP_INTERVAL_SECONDS,
    INVENTORY_REJECT_SOFT_INVALID, RESILIENCE_*, LOG_LEVEL

============================================================
"""

import argparse
import asyncio
import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

from dotenv import load_dotenv

from core.clock import ClockFactory, ClockProtocol
from core.exceptions import InventoryException, NoConvertibleRecordsError
from inventory_ingestion.adapter import ScreenAdapter
from inventory_store.config import StoreConfig
from inventory_store.refresh import SourceRefreshHandler
from inventory_store.store import InventoryAggregationStore
from source_resilience.config import ResilienceConfig
from source_resilience.registry import SourceFailureRegistry


logger = logging.getLogger(__name__)


# ============================================================
# LOGGING
# ============================================================

def setup_logging(level: str = "INFO", log_format: str = "text") -> logging.Logger:
    """
    Set up process-wide logging.

    Args:
        level: Log level name
        log_format: Output format (json or text)

    Returns:
        The application logger
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps({
                "timestamp": "%(asctime)s",
                "level": "%(levelname)s",
                "logger": "%(name)s",
                "message": "%(message)s",
            })
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
        )

    # Logs go to stderr so stdout carries only the JSON result
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers = [handler]

    return logging.getLogger("inventory")


# ============================================================
# RUNTIME WIRING
# ============================================================

@dataclass
class InventoryRuntime:
    """Wired inventory components sharing one clock."""
    store: InventoryAggregationStore
    registry: SourceFailureRegistry
    refresh_handler: SourceRefreshHandler
    clock: ClockProtocol

    async def start(self) -> None:
        await self.store.start()

    async def shutdown(self) -> None:
        await self.store.shutdown()


def build_inventory_runtime(
    store_config: Optional[StoreConfig] = None,
    resilience_config: Optional[ResilienceConfig] = None,
    clock: Optional[ClockProtocol] = None,
) -> InventoryRuntime:
    """
    Build the inventory runtime.

    Args:
        store_config: Store settings (defaults to environment)
        resilience_config: Failure policy settings (defaults to environment)
        clock: Time source (defaults to the factory clock)
    """
    store_config = store_config or StoreConfig.from_env()
    resilience_config = resilience_config or ResilienceConfig.from_env()
    clock = clock or ClockFactory.get_clock()

    adapter = ScreenAdapter(clock=clock, reject_soft_invalid=store_config.reject_soft_invalid)
    store = InventoryAggregationStore(config=store_config, clock=clock, adapter=adapter)
    registry = SourceFailureRegistry(config=resilience_config, clock=clock)
    refresh_handler = SourceRefreshHandler(store, registry)

    return InventoryRuntime(
        store=store,
        registry=registry,
        refresh_handler=refresh_handler,
        clock=clock,
    )


# ============================================================
# FEED LOADING
# ============================================================

def load_feed(path: Path) -> List[Dict[str, Any]]:
    """
    Read a feed file.

    Accepts a JSON list of records or an object with a `records` list.
    """
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if isinstance(data, dict):
        data = data.get("records", [])
    if not isinstance(data, list):
        raise ValueError(f"Feed {path} must contain a list of records")
    return data


# ============================================================
# CLI
# ============================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="dooh-inventory",
        description="Ingest an SSP inventory feed into the canonical screen inventory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s --feed batch.json
  %(prog)s --feed batch.json --log-format json --log-level DEBUG
  %(prog)s --feed batch.json --config store.yaml --show-screens
        """,
    )

    parser.add_argument(
        "--feed", "-f",
        type=Path,
        required=True,
        help="JSON file with a list of SSP inventory records",
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="YAML file with `store` and `resilience` sections",
    )
    parser.add_argument(
        "--show-screens",
        action="store_true",
        help="Include the canonical screens in the output",
    )

    logging_group = parser.add_argument_group("Logging Options")
    logging_group.add_argument(
        "--log-level",
        type=str,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=os.getenv("LOG_LEVEL", "INFO").upper(),
        help="Log level (default: INFO)",
    )
    logging_group.add_argument(
        "--log-format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Log output format (default: text)",
    )

    return parser


async def run_application(args: argparse.Namespace) -> int:
    """
    Ingest the feed and print the result.

    Returns:
        Exit code
    """
    if args.config:
        store_config = StoreConfig.from_yaml(args.config)
        resilience_config = ResilienceConfig.from_yaml(args.config)
    else:
        store_config = StoreConfig.from_env()
        resilience_config = ResilienceConfig.from_env()

    runtime = build_inventory_runtime(store_config, resilience_config)
    await runtime.start()

    try:
        records = load_feed(args.feed)
        logger.info(f"Loaded {len(records)} records from {args.feed}")

        report = runtime.store.add_inventory(records)

        output: Dict[str, Any] = {
            "batch": report.to_dict(),
            "stats": runtime.store.get_stats().to_dict(),
            "integrity": runtime.store.validate_integrity().to_dict(),
        }
        if args.show_screens:
            output["screens"] = [screen.to_dict() for screen in runtime.store.get_all()]

        print(json.dumps(output, indent=2, ensure_ascii=False))
        return 0

    except NoConvertibleRecordsError as e:
        print(json.dumps({"error": e.to_dict()}, indent=2, default=str))
        return 1
    except (OSError, ValueError, InventoryException) as e:
        logger.error(f"Failed to ingest {args.feed}: {e}")
        return 1
    finally:
        await runtime.shutdown()


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point."""
    load_dotenv()

    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(args.log_level, args.log_format)

    return asyncio.run(run_application(args))


# ============================================================
# ENTRY POINT
# ============================================================

if __name__ == "__main__":
    sys.exit(main())
