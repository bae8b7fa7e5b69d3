from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# Execution option read by the "begin" hook below to choose the BEGIN mode
BEGIN_MODE_OPTION = "sqlite_begin_mode"


def create_store_engine(path: str, busy_timeout: float = 30.0) -> Engine:
    """
    Build an engine for a single-file SQLite store.

    pysqlite's implicit transaction handling is switched off so that every
    transaction starts with an explicit BEGIN: DEFERRED for readers and
    IMMEDIATE for writers, which serializes writers at the file level while
    WAL lets readers keep working on their own snapshot.

    A writer that finds the lock taken waits for it to be released.
    ``busy_timeout`` only caps that wait so a stuck writer cannot hang
    requests forever; past it the writer fails with "database is locked".
    """
    engine = create_engine(
        f"sqlite:///{path}",
        connect_args={'check_same_thread': False, 'timeout': busy_timeout},
    )

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        mode = conn.get_execution_options().get(BEGIN_MODE_OPTION, "DEFERRED")
        conn.exec_driver_sql(f"BEGIN {mode}")

    return engine
