"""CLI entry point for creating the ledger database.

Creates every table and bootstraps the root domain for the configured
founder account.

Usage:
    python -m expenditures.cli.init_db
    expenditures-init-db

Exit Codes:
    0 - Success: Database ready
    1 - Failure: Error encountered; database state unchanged

Logging:
    LOG_LEVEL level logs to both stdout and LOG_FILE
"""

import logging
import sys

from dotenv import load_dotenv

from expenditures.services.colony_service import ColonyService
from expenditures.services.config import get_settings
from expenditures.services.context import LedgerContext
from expenditures.services.db import create_db_engine, init_db, make_session_factory
from expenditures.services.errors import LedgerError
from expenditures.services.logging import setup_server_logging

logger = logging.getLogger(__name__)


def main() -> int:
    """
    Main entry point for database initialization.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    load_dotenv()
    settings = get_settings()
    setup_server_logging(settings.log_file, settings.log_level)

    try:
        engine = create_db_engine(settings.database_url, echo=settings.database_echo)
        init_db(engine)
        logger.info(f"Tables created at {settings.database_url}")

        SessionLocal = make_session_factory(engine)
        db = SessionLocal()
        try:
            ctx = LedgerContext.from_settings(db, settings)
            if ctx.skills.domain_count() == 0:
                ColonyService(ctx).bootstrap(settings.founder_account)
            else:
                logger.info("Root domain already exists; skipping bootstrap")
        finally:
            db.close()
            engine.dispose()
        return 0

    except KeyboardInterrupt:
        logger.warning("Initialization interrupted by user")
        return 1
    except LedgerError as e:
        logger.error(f"Initialization failed [{e.code}]: {e.message}")
        return 1
    except Exception as e:
        logger.error(f"Initialization failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
