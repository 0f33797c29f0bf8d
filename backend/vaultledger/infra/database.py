# vaultledger/infra/database.py

from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from vaultledger.models.base import Base
from vaultledger.utils.logger import get_logger

logger = get_logger(__name__)

# =========================
# ENGINE CONFIGURATION
# =========================

def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.
    SQLite gets a thread-shareable connection and no pool sizing.
    """
    if database_url.startswith("sqlite"):
        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False},
            echo=echo,
        )

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

        return engine

    return create_engine(
        database_url,
        pool_pre_ping=True,  # Check connections before using them
        pool_size=5,
        max_overflow=10,
        pool_recycle=3600,
        echo=echo,
    )


# =========================
# SESSION CONFIGURATION
# =========================

def build_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(
        autocommit=False,
        autoflush=False,
        expire_on_commit=False,
        bind=engine,
    )


@contextmanager
def session_scope(session_factory: sessionmaker):
    """
    One transaction per block: commit on success, roll back on any error.
    Usage:
        with session_scope(factory) as session:
            session.add(...)
    """
    session: Session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


# =========================
# DATABASE FUNCTIONS
# =========================

def init_db(engine: Engine, drop: bool = False) -> None:
    """Create all tables registered on Base (optionally dropping them first)"""
    # Import models here to register them with Base
    import vaultledger.models.ledger_models  # noqa: F401

    if drop:
        logger.warning("⚠️  Dropping all ledger tables")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.info("✅ Ledger tables ready: %s", sorted(Base.metadata.tables))


def check_connection(engine: Engine) -> bool:
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error("❌ Database connection failed: %s", e)
        return False
