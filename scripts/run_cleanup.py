#!/usr/bin/env python
"""
Periodic purge of old AI debug log rows.

Run from cron; rows older than AI_DEBUG_LOG_RETENTION_DAYS are deleted.
"""
import logging

from sqlalchemy.exc import SQLAlchemyError

from recipe_manager.app.core.config import get_settings
from recipe_manager.app.db.session import SessionLocal
from recipe_manager.app.services import ai_debug_log_service

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("cleanup")


def run_cleanup():
    settings = get_settings()
    with SessionLocal() as db:
        try:
            purged = ai_debug_log_service.purge_older_than(db, settings.ai_debug_log_retention_days)
            if purged:
                logger.info("Deleted %s AI debug log rows older than %s days", purged, settings.ai_debug_log_retention_days)
        except SQLAlchemyError:
            logger.exception("Cleanup failed")


if __name__ == "__main__":
    run_cleanup()
