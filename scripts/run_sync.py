#!/usr/bin/env python3
"""CLI script to pull the remote CRM into the local database.

Usage:
    python scripts/run_sync.py
    python scripts/run_sync.py --init-db
    python scripts/run_sync.py --collection persons --collection notes

Reads API_TOKEN / COMPANY_DOMAIN (or the PIPEDRIVE_* equivalents) and
DATABASE_URL from the environment or the project's .env file.
"""

from __future__ import annotations

import argparse
import os
import sys

# Ensure project root is on sys.path so we can import src.crm_sync
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from dotenv import load_dotenv  # noqa: E402

# Load .env from project root
load_dotenv(os.path.join(os.path.dirname(__file__), "..", ".env"))


def run(collections: list[str], init: bool) -> int:
    """Run the requested collections (all of them when empty)."""
    import structlog

    from src.crm_sync.config import get_settings
    from src.crm_sync.core.database import close_db, get_sessionmaker, init_db
    from src.crm_sync.core.logging import configure_structlog
    from src.crm_sync.remote.client import ClientConfig, ConfigurationError, RemoteCRMClient
    from src.crm_sync.sync.orchestrator import SyncOrchestrator

    configure_structlog()
    logger = structlog.get_logger("run_sync")
    settings = get_settings()

    try:
        client_config = ClientConfig.from_settings(settings)
    except ConfigurationError as exc:
        logger.error("sync.configuration_error", error=str(exc))
        return 2

    if init:
        init_db()

    try:
        with RemoteCRMClient(client_config) as client, get_sessionmaker()() as session:
            orchestrator = SyncOrchestrator(session, client, settings)
            if collections:
                results = [orchestrator.sync_collection(name) for name in collections]
            else:
                results = orchestrator.sync_all().collections
    finally:
        close_db()

    for result in results:
        print(
            f"{result.collection.value:<14} processed={result.processed} "
            f"created={result.created} updated={result.updated} skipped={result.skipped}"
        )
    return 0


def main() -> None:
    from src.crm_sync.sync.schemas import RemoteCollection

    parser = argparse.ArgumentParser(description="Sync the remote CRM into the local database")
    parser.add_argument(
        "--collection",
        action="append",
        default=[],
        choices=[c.value for c in RemoteCollection],
        help="Only sync this collection (repeatable; runs in the order given)",
    )
    parser.add_argument(
        "--init-db",
        action="store_true",
        help="Create missing tables before syncing",
    )
    args = parser.parse_args()

    sys.exit(run(args.collection, args.init_db))


if __name__ == "__main__":
    main()
