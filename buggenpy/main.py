#!/usr/bin/env python3
import argparse
import json
import os
import sys
from dataclasses import replace
from typing import List, Optional

from buggenpy.candidates import scan_repo
from buggenpy.config import (
    LOG_FORMATS,
    ConfigError,
    ScanConfig,
    parse_workers,
    read_scan_config,
)
from buggenpy.logger import configure_logging, get_logger

USAGE = "buggenpy [strategy] [repo-directory]"
STRATEGIES = ("rewrite-candidates",)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="buggenpy",
        usage=USAGE,
        description=(
            "Extract rewrite candidates from a Python repository: every function "
            "rendered as a signature, as a placeholder stub, and as its whole "
            "file with only that function stubbed out."
        ),
    )
    parser.add_argument("strategy", choices=STRATEGIES, help="Extraction strategy")
    parser.add_argument("repo_directory", help="Repository directory to scan")
    parser.add_argument(
        "--workers",
        type=parse_workers,
        help="Parse files in this many worker processes (default: 1)",
    )
    parser.add_argument(
        "--keep-docstrings",
        action="store_true",
        default=None,
        help="Keep a function's docstring in front of the placeholder",
    )
    parser.add_argument(
        "--no-ignore",
        action="store_true",
        help="Also scan ignored directories and ignore .gitignore files",
    )
    parser.add_argument(
        "--log-format", choices=LOG_FORMATS, help="Diagnostics format on stderr"
    )
    return parser


def resolve_config(args: argparse.Namespace, base: ScanConfig) -> ScanConfig:
    """Applies command line flags on top of the environment configuration."""
    config = base
    if args.workers is not None:
        config = replace(config, workers=args.workers)
    if args.keep_docstrings is not None:
        config = replace(config, keep_docstrings=args.keep_docstrings)
    if args.no_ignore:
        config = config.without_ignores()
    if args.log_format is not None:
        config = replace(config, log_format=args.log_format)
    return config


def main(argv: Optional[List[str]] = None):
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = resolve_config(args, read_scan_config())
    except ConfigError as e:
        parser.error(str(e))

    configure_logging(config.log_format)
    logger = get_logger()

    repo_dir = args.repo_directory
    if not os.path.exists(repo_dir):
        logger.error(f'Repo directory does not exist: "{repo_dir}"')
        sys.exit(1)

    candidates = scan_repo(repo_dir, config)
    logger.info("scan_complete", repo=repo_dir, candidates=len(candidates))

    print(json.dumps([c.to_dict() for c in candidates]))


if __name__ == "__main__":
    main()
