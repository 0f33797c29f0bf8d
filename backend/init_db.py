# init_db.py (in backend folder)

import argparse

from sqlalchemy import inspect

from vaultledger.core.config import Settings
from vaultledger.infra.database import build_engine, check_connection, init_db
from vaultledger.utils.logger import setup_logger


def main(argv=None):
    """Create (or with --drop, recreate) the ledger tables"""
    parser = argparse.ArgumentParser(description="Initialize the ledger database")
    parser.add_argument("--drop", action="store_true", help="drop all tables first")
    args = parser.parse_args(argv)

    settings = Settings.from_env()
    logger = setup_logger(settings.log_level)
    engine = build_engine(settings.database_url, echo=settings.echo_sql)

    if not check_connection(engine):
        return 1

    init_db(engine, drop=args.drop)

    inspector = inspect(engine)
    for table in inspector.get_table_names():
        columns = ", ".join(f"{c['name']}:{c['type']}" for c in inspector.get_columns(table))
        logger.info("%s -> %s", table, columns)

    engine.dispose()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
