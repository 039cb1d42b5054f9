# padel_league/db.py
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import DATABASE_URL

# Execution option marking a connection whose transaction only reads
READ_ONLY_OPTION = "padel_read_only"


def use_immediate_transactions(engine: Engine) -> Engine:
    """
    Make SQLite write transactions BEGIN IMMEDIATE so concurrent writers queue
    on the database lock instead of failing with a lock upgrade error.
    Transactions opened through begin_read() use a plain deferred BEGIN and
    do not wait behind writers.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        if conn.get_execution_options().get(READ_ONLY_OPTION):
            conn.exec_driver_sql("BEGIN")
        else:
            conn.exec_driver_sql("BEGIN IMMEDIATE")

    return engine


def begin_read(db: Session) -> None:
    """
    Open the session's next transaction as a read. No-op when a transaction
    is already running, since its connection has begun.
    """
    if not db.in_transaction():
        db.connection(execution_options={READ_ONLY_OPTION: True})


engine = create_engine(
    DATABASE_URL,
    connect_args={"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {},  # Required for SQLite
)
if engine.dialect.name == "sqlite":
    use_immediate_transactions(engine)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db():
    """Dependency for FastAPI routes to get a database session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
