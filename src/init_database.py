"""Initialize the parking marketplace database."""
import argparse

from src.infrastructure.persistence.database import init_db
from src.shared.utils import logger

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--no-seed", action="store_true", help="Create tables without demo data")
    args = parser.parse_args()

    logger.info("Initializing parking database...")
    init_db(seed=not args.no_seed)
    logger.info("Database initialization complete!")
