"""
InternHub Session Core Entry Point.

Bootstraps the dependency graph via constructor injection, restores the
persisted session (bounded wait), loads the profile and reports what the
home route resolves to.  Every subsystem is wired here; no module-level
globals.

Usage::

    python main.py
"""

from __future__ import annotations

import asyncio
import sys

from internhub.config import get_config
from internhub.database import DatabaseManager
from internhub.logger import StructuredLogger, get_logger
from internhub.routes import HOME_PATH
from internhub.services import create_services


async def run() -> None:
    """Wire dependencies, bootstrap the session and log the home decision."""
    logger: StructuredLogger = get_logger("main")
    logger.info("Starting InternHub session core...")

    # ------------------------------------------------------------------
    # 1. Configuration (from .env / environment variables)
    # ------------------------------------------------------------------
    config = get_config()

    # ------------------------------------------------------------------
    # 2. Database Manager (Supabase optional; demo accounts always work)
    # ------------------------------------------------------------------
    db = await DatabaseManager.create(
        supabase_url=config.SUPABASE_URL,
        supabase_key=config.SUPABASE_ANON_KEY.get_secret_value(),
        logger=StructuredLogger(name="database"),
    )

    # ------------------------------------------------------------------
    # 3. Service Container
    # ------------------------------------------------------------------
    services = create_services(db=db, config=config)
    session = services["session_manager"]
    profiles = services["profile_resolver"]
    gate = services["access_gate"]

    # ------------------------------------------------------------------
    # 4. Session bootstrap and home-route decision
    # ------------------------------------------------------------------
    async with session:
        await profiles.wait_until_idle()
        decision = gate.decide(session.state, HOME_PATH)
        logger.info(
            "Home route: %s",
            decision.view or decision.redirect_to,
            extra={
                "outcome": decision.outcome,
                "authenticated": session.is_authenticated,
                "role": session.state.role,
                "profile_loaded": profiles.profile is not None,
            },
        )
    profiles.unbind()


def main() -> None:
    """Application entry point."""
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        sys.exit(130)


if __name__ == "__main__":
    main()
