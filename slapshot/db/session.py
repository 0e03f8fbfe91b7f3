from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from slapshot.core.config import settings


def configure_sqlite(engine: Engine) -> Engine:
    """
    Make SQLite behave like the production database for our purposes:
    enforce foreign keys and let SQLAlchemy own BEGIN so SAVEPOINTs work.

    Transactions open with BEGIN IMMEDIATE, taking the write lock up front.
    SQLite ignores SELECT ... FOR UPDATE, so this is what serializes two
    requests racing on the same rows; the loser waits for the winner to
    commit and then reads the committed state.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Stop pysqlite from emitting its own BEGIN/COMMIT
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


database_url = settings.DATABASE_URL

if database_url.startswith("sqlite"):
    engine = configure_sqlite(
        create_engine(database_url, connect_args={"check_same_thread": False}, echo=False)
    )
else:
    if "mysql" in database_url.lower() and "charset" not in database_url.lower():
        # Add charset parameter if not present for MySQL/MariaDB
        separator = "&" if "?" in database_url else "?"
        database_url = f"{database_url}{separator}charset=utf8mb4"

    # pool_recycle: Recycle connections after 1 hour (prevents MySQL timeouts)
    # pool_pre_ping: Test connections before use (prevents stale connections)
    engine = create_engine(
        database_url,
        pool_size=20,
        max_overflow=10,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=False,
        pool_timeout=30,
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


# Dependency for FastAPI
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
