#!/usr/bin/env python3
"""
Service discovery from the command line.

Usage:
    find-company-services companies.json [--max-requests 100] [--no-headless]

Each active company in the directory is crawled in its own run, one after
the other. Results are appended to the dataset and printed as JSON.
"""

import argparse
import json
import sys
from typing import List, Optional

from service_scout.features.discovery.exceptions import CompanyDirectoryError
from service_scout.features.discovery.services.company_loader import CompanyLoader
from service_scout.features.discovery.services.crawl_orchestrator import discover_companies
from service_scout.features.discovery.services.page_automation import SeleniumPageAutomation
from service_scout.features.discovery.services.result_sink import JsonDatasetSink
from service_scout.platform.config import settings
from service_scout.platform.logger import get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="find-company-services",
        description="Discover other services a company operates by crawling its website",
    )
    parser.add_argument("companies_file", nargs="?", help="Path to the company directory JSON file")
    parser.add_argument(
        "--max-requests",
        type=int,
        default=settings.MAX_REQUESTS_PER_CRAWL,
        help="Request budget per company (default: %(default)s)",
    )
    parser.add_argument(
        "--headless",
        action=argparse.BooleanOptionalAction,
        default=settings.HEADLESS,
        help="Run Chrome without a window",
    )
    parser.add_argument("--dataset-dir", default=settings.DATASET_DIR, help="Dataset root directory")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    if not args.companies_file:
        logger.error("Please provide a path to the JSON file")
        return 1

    try:
        companies = CompanyLoader.load(args.companies_file)
    except CompanyDirectoryError as e:
        logger.error(f"Error processing companies: {e}")
        return 1

    sink = JsonDatasetSink(directory=args.dataset_dir)
    driver = SeleniumPageAutomation.build_driver(headless=args.headless)
    with SeleniumPageAutomation(driver=driver) as automation:
        records = discover_companies(companies, automation, sink=sink, max_requests=args.max_requests)

    print(json.dumps([record.model_dump(by_alias=True) for record in records], indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
