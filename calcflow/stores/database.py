"""Database engine and transaction management."""
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from calcflow.stores.sql_models import Base
from calcflow.stores.sql_store import SqlStoreSession


def _sqlite_on_connect(dbapi_connection, connection_record):
    # Let SQLAlchemy emit BEGIN itself, see _sqlite_on_begin
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _sqlite_on_begin(conn):
    # Single writer: the read-modify-write of a chain must not interleave
    conn.exec_driver_sql("BEGIN IMMEDIATE")


class Database:
    """SQL storage: owns the engine and hands out transactional store sessions."""

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self.database_url = database_url
        self.engine = self._create_engine(database_url, echo)
        self.Session = sessionmaker(bind=self.engine, expire_on_commit=False)

    @staticmethod
    def _create_engine(database_url: str, echo: bool):
        url = make_url(database_url)
        if url.get_backend_name() != "sqlite":
            return create_engine(
                database_url,
                pool_pre_ping=True,      # ping before use so stale connections are replaced
                pool_recycle=3600,
                echo=echo,
            )

        connect_args = {"check_same_thread": False, "timeout": 30}
        if url.database in (None, "", ":memory:"):
            engine = create_engine(
                database_url, echo=echo, connect_args=connect_args, poolclass=StaticPool
            )
        else:
            Path(url.database).parent.mkdir(parents=True, exist_ok=True)
            engine = create_engine(database_url, echo=echo, connect_args=connect_args)

        event.listen(engine, "connect", _sqlite_on_connect)
        event.listen(engine, "begin", _sqlite_on_begin)
        return engine

    @contextmanager
    def transaction(self) -> Iterator[SqlStoreSession]:
        """Open a transaction, committed on success and rolled back on any error."""
        with self.Session.begin() as session:
            yield SqlStoreSession(session)

    def create_tables(self) -> None:
        """Create all tables that do not exist yet."""
        Base.metadata.create_all(self.engine)
        logger.info(f"Tables ready: {[t.name for t in Base.metadata.sorted_tables]}")

    def reset_tables(self) -> None:
        """Drop and recreate all tables. Every row is lost."""
        logger.warning("Dropping all tables")
        Base.metadata.drop_all(self.engine)
        Base.metadata.create_all(self.engine)
        logger.info("Tables recreated")

    def close(self) -> None:
        """Dispose of the connection pool."""
        self.engine.dispose()
        logger.info("Database connections closed")
