"""
Script to recreate the database from the models and reseed reference data.
Destroys every table: development databases only.
"""
import logging
import sys

from ravito.core.config import settings
from ravito.core.database import SessionLocal, drop_db, engine
from ravito.models.organization import Base
from ravito.services.seed import ADMIN_EMAIL, seed_demo

import ravito.models  # noqa: F401  registers every table

logger = logging.getLogger("recreate_db")


def recreate_db():
    if not settings.is_dev and "--force" not in sys.argv:
        logger.error("Refusing to drop tables with ENV=%s (use --force)", settings.env)
        return 1

    logger.info("Dropping existing tables...")
    drop_db()

    logger.info("Creating tables...")
    Base.metadata.create_all(bind=engine)

    logger.info("Seeding crate types, zones, catalog and admin...")
    with SessionLocal() as db:
        seed_demo(db)

    logger.info("Database recreated. Admin login: %s", ADMIN_EMAIL)
    return 0


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(message)s")
    sys.exit(recreate_db())
