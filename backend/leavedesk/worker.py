"""On-demand balance repair.

Run with:  python -m leavedesk.worker
Sweeps every employee whose balances fall outside [0, cap] and clamps them,
the same pass the API runs once after startup.
"""

from __future__ import annotations

import asyncio
import logging

from leavedesk.config import get_settings
from leavedesk.db import dispose_engine, get_session_factory
from leavedesk.services.balance import run_balance_repair

logger = logging.getLogger(__name__)


async def run_repair_once() -> int:
    """Run one repair sweep. Returns the number of employees that failed."""
    logger.info("Balance repair worker started")
    try:
        result = await run_balance_repair(get_session_factory())
    finally:
        await dispose_engine()
    return result.errors


def main() -> None:
    """Entry point for the worker process."""
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    errors = asyncio.run(run_repair_once())
    raise SystemExit(1 if errors else 0)


if __name__ == "__main__":
    main()
