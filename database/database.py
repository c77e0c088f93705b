"""
Database connection and transaction management using raw PostgreSQL
One pooled connection per request; each booking request runs in one transaction
"""
import logging
import os
from contextlib import contextmanager
from pathlib import Path

import psycopg2
from psycopg2 import pool, extras, sql
from psycopg2.extensions import ISOLATION_LEVEL_READ_COMMITTED
from dotenv import load_dotenv

load_dotenv()

# uuid.UUID <-> uuid column adaptation for every connection in the process
extras.register_uuid()

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = 'postgresql://localhost/space'


class DatabaseManager:
    """
    Database manager with transaction support and connection pooling
    """

    def __init__(self, database_url=None, min_connections=None, max_connections=None):
        """
        Initialize database manager

        Args:
            database_url: libpq connection URL (defaults to DATABASE_URL env variable)
            min_connections: Connections opened eagerly by the pool
            max_connections: Upper bound on pooled connections
        """
        self.database_url = database_url or os.getenv('DATABASE_URL', DEFAULT_DATABASE_URL)
        min_connections = min_connections or int(os.getenv('DB_POOL_MIN', '5'))
        max_connections = max_connections or int(os.getenv('DB_POOL_MAX', '60'))

        try:
            self.connection_pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=min_connections,
                maxconn=max_connections,
                dsn=self.database_url
            )
        except psycopg2.Error as e:
            raise RuntimeError(f"Failed to create database connection pool: {e}") from e

    def get_connection(self):
        """Get a connection from the pool"""
        return self.connection_pool.getconn()

    def return_connection(self, conn):
        """Return a connection to the pool"""
        self.connection_pool.putconn(conn)

    def close_all_connections(self):
        """Close all connections in the pool"""
        if self.connection_pool:
            self.connection_pool.closeall()

    def ping(self) -> bool:
        """Check that the database answers a trivial query"""
        with self.get_cursor() as cursor:
            cursor.execute("SELECT 1 AS ok")
            return cursor.fetchone()['ok'] == 1

    def create_tables(self):
        """Create all database tables, functions and seed data from schema"""
        schema_file = Path(__file__).parent / 'schema.sql'

        if not schema_file.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_file}")

        schema_sql = schema_file.read_text()

        conn = self.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.execute(schema_sql)
            conn.commit()
        finally:
            self.return_connection(conn)

    def drop_tables(self):
        """Drop all tables and the week-lookup function (use with caution!)"""
        conn = self.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.execute("""
                    SELECT tablename FROM pg_tables
                    WHERE schemaname = 'public'
                """)
                tables = [row[0] for row in cursor.fetchall()]

                for table in tables:
                    cursor.execute(sql.SQL("DROP TABLE IF EXISTS {} CASCADE").format(
                        sql.Identifier(table)
                    ))
                cursor.execute("DROP FUNCTION IF EXISTS launch_in_same_week(TEXT, UUID, TIMESTAMPTZ)")
            conn.commit()
        finally:
            self.return_connection(conn)

    @contextmanager
    def get_cursor(self, isolation_level=None, cursor_factory=None):
        """
        Get a cursor with automatic connection management

        Args:
            isolation_level: Transaction isolation level
            cursor_factory: Cursor factory (defaults to RealDictCursor)

        Usage:
            with db.get_cursor() as cursor:
                cursor.execute("SELECT * FROM destinations")
                results = cursor.fetchall()
        """
        with self.transaction(isolation_level=isolation_level) as conn:
            cursor = conn.cursor(cursor_factory=cursor_factory or extras.RealDictCursor)
            try:
                yield cursor
            finally:
                cursor.close()

    @contextmanager
    def transaction(self, isolation_level=None, statement_timeout_ms=None):
        """
        Provide a transactional scope with a connection

        Commits when the block exits normally, rolls back on any exception
        (including timeouts and cancellation) so no partial state survives.

        Args:
            isolation_level: Transaction isolation level
            statement_timeout_ms: Per-statement timeout applied for this transaction only

        Usage:
            with db.transaction() as conn:
                with conn.cursor() as cursor:
                    cursor.execute("INSERT INTO bookings ...")
        """
        conn = self.get_connection()

        try:
            conn.set_isolation_level(isolation_level or ISOLATION_LEVEL_READ_COMMITTED)
            if statement_timeout_ms is not None:
                with conn.cursor() as cursor:
                    # SET LOCAL resets at COMMIT/ROLLBACK, pooled connections stay clean
                    cursor.execute("SELECT set_config('statement_timeout', %s, true)",
                                   (str(max(1, int(statement_timeout_ms))),))
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            self.return_connection(conn)


# Global database manager instance
_db_manager = None


def get_db_manager() -> DatabaseManager:
    """Get or create global database manager instance"""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager


def set_db_manager(db_manager: DatabaseManager | None) -> None:
    """Override the global database manager instance.

    Used by test fixtures so the application wiring operates on the test
    database. Passing ``None`` resets the singleton so the next
    ``get_db_manager`` call recreates it with default settings.
    """
    global _db_manager
    _db_manager = db_manager


def init_db():
    """Initialize database with tables"""
    db_manager = get_db_manager()
    db_manager.create_tables()
    logger.info("Database initialized successfully")


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    init_db()
