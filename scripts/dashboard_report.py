#!/usr/bin/env python3
"""Print the AE dashboard and lead funnel metrics from the database.

Reads deals, leads, and users through SqlIntelligenceRepository using the
DATABASE_URL from the environment or .env, then prints the dashboard
snapshot (and optionally lead metrics and lead scores) as JSON.

Usage:
    python scripts/dashboard_report.py
    python scripts/dashboard_report.py --user-id user_ae_042 --leads
    python scripts/dashboard_report.py --init-db
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys

# Ensure project root is on sys.path so we can import src modules
sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

import structlog  # noqa: E402

from src.dealintel.core.database import close_db, get_session, init_db  # noqa: E402
from src.dealintel.core.logging import configure_structlog  # noqa: E402
from src.dealintel.repository.sql import SqlIntelligenceRepository  # noqa: E402
from src.dealintel.services.dashboard import DashboardService  # noqa: E402

logger = structlog.get_logger(__name__)


async def report(user_id: str | None, include_leads: bool, create_tables: bool) -> dict:
    """Build the report payload.

    Args:
        user_id: Deal owner; None uses DEFAULT_USER_ID.
        include_leads: Also compute lead metrics and lead scores.
        create_tables: Create missing tables before reading.

    Returns:
        JSON-serializable dict with ``dashboard`` and optional lead sections.
    """
    try:
        if create_tables:
            await init_db()
            logger.info("tables_created")

        service = DashboardService(SqlIntelligenceRepository(session_factory=get_session))
        snapshot = await service.get_dashboard(user_id)
        payload: dict = {"dashboard": snapshot.model_dump(mode="json")}

        if include_leads:
            metrics = await service.get_lead_metrics()
            scores = await service.score_leads()
            payload["lead_metrics"] = metrics.model_dump(mode="json")
            payload["lead_scores"] = [s.model_dump(mode="json") for s in scores]

        if snapshot.is_partial:
            logger.warning("report_partial", missing_deal_ids=snapshot.missing_deal_ids)
        return payload
    finally:
        await close_db()


def main() -> None:
    parser = argparse.ArgumentParser(description="Print the deal intelligence dashboard")
    parser.add_argument("--user-id", default=None, help="Deal owner (default: DEFAULT_USER_ID)")
    parser.add_argument("--leads", action="store_true", help="Include lead metrics and scores")
    parser.add_argument("--init-db", action="store_true", help="Create tables before reading")
    args = parser.parse_args()

    configure_structlog()
    payload = asyncio.run(report(args.user_id, args.leads, args.init_db))
    print(json.dumps(payload, indent=2))


if __name__ == "__main__":
    main()
