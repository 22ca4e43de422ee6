#!/usr/bin/env python3
"""
Main entry point for the Couchbase Bootstrap tool.

Reads the configuration file given as the only positional argument (or the
environment when it is omitted), then provisions buckets and runs the
declared N1QL statements.
"""

import argparse
import json
import logging
import sys

from cb_bootstrap.bootstrap import bootstrap_config
from cb_bootstrap.config import load_config_from_env, load_config_from_file
from cb_bootstrap.errors import BootstrapError, BootstrapStageError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Bootstrap a Couchbase cluster with declarative configuration"
    )
    parser.add_argument(
        "config",
        nargs="?",
        help="Path to configuration file (YAML or JSON); defaults to CB_* environment variables",
    )
    parser.add_argument(
        "--no-wait",
        action="store_true",
        help="Don't wait for cluster to be ready",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=120,
        help="Timeout for waiting for cluster (seconds)",
    )
    parser.add_argument(
        "--output",
        "-o",
        choices=["json", "text"],
        default="text",
        help="Output format",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    return parser


def print_result(result, output: str) -> None:
    if output == "json":
        print(json.dumps(result, indent=2))
        return

    print("\n=== Bootstrap Complete ===\n")

    if result.get("pre_statements"):
        print(f"Pre-DDL statements ({len(result['pre_statements'])}):")
        for name in result["pre_statements"]:
            print(f"  ✓ {name}")

    if result.get("buckets"):
        print(f"\nBuckets ({len(result['buckets'])}):")
        for bucket in result["buckets"]:
            print(f"  - {bucket['name']} ({bucket['outcome']})")

    if result.get("post_statements"):
        print(f"\nPost-DDL statements ({len(result['post_statements'])}):")
        for name in result["post_statements"]:
            print(f"  ✓ {name}")


def main(argv=None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    try:
        if args.config:
            config = load_config_from_file(args.config)
        else:
            config = load_config_from_env()
    except BootstrapError as e:
        logger.error(f"Failed to read config: {e}")
        return 1

    try:
        result = bootstrap_config(
            config,
            wait_for_ready=not args.no_wait,
            ready_timeout=args.timeout,
        )
    except BootstrapStageError as e:
        logger.error(f"Bootstrap failed at stage '{e.stage}': {e.cause}")
        if args.verbose:
            logger.debug("Traceback:", exc_info=e)
        return 1
    except BootstrapError as e:
        logger.error(f"Bootstrap failed: {e}")
        return 1

    print_result(result, args.output)
    logger.info("Bootstrap completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())
