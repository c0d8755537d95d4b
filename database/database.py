"""
Database connection and transaction management using raw PostgreSQL
Seat counters are mutated with single conditional UPDATE statements
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

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = 'postgresql://localhost/seat_ledger'


class DatabaseManager:
    """
    Database manager with transaction support and connection pooling
    """

    def __init__(self, database_url=None, echo=False):
        """
        Initialize database manager

        Args:
            database_url: Database connection URL (defaults to env variable)
            echo: Whether to log SQL statements
        """
        self.database_url = database_url or os.getenv('DATABASE_URL', DEFAULT_DATABASE_URL)
        self.echo = echo or os.getenv('DB_ECHO', 'False').lower() == 'true'
        self.min_connections = int(os.getenv('DB_POOL_MIN', '2'))
        self.max_connections = int(os.getenv('DB_POOL_MAX', '40'))

        self.db_config = self._parse_database_url(self.database_url)

        try:
            self.connection_pool = pool.ThreadedConnectionPool(
                minconn=self.min_connections,
                maxconn=self.max_connections,
                **self.db_config
            )
        except psycopg2.Error as e:
            raise RuntimeError(f"Failed to create database connection pool: {e}") from e

        logger.info("Connection pool ready for database '%s' on %s:%s",
                    self.db_config['database'], self.db_config['host'], self.db_config['port'])

    def _parse_database_url(self, url):
        """Parse database URL into connection parameters"""
        if url.startswith('postgresql://') or url.startswith('postgres://'):
            url = url.replace('postgresql://', '').replace('postgres://', '')

            # user:password@host:port/database
            if '@' in url:
                auth, location = url.split('@', 1)
                if ':' in auth:
                    user, password = auth.split(':', 1)
                else:
                    user, password = auth, None
            else:
                user, password = None, None
                location = url

            if '/' in location:
                host_port, database = location.split('/', 1)
            else:
                host_port, database = location, 'seat_ledger'

            if ':' in host_port:
                host, port = host_port.split(':', 1)
                port = int(port)
            else:
                host, port = host_port or 'localhost', 5432

            config = {
                'database': database,
                'host': host,
                'port': port,
            }

            if user:
                config['user'] = user
            if password:
                config['password'] = password

            return config
        else:
            return {
                'database': 'seat_ledger',
                'host': 'localhost',
                'port': 5432,
            }

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

    def create_tables(self):
        """Create all database tables from schema"""
        schema_file = Path(__file__).parent / 'schema.sql'

        if not schema_file.exists():
            raise FileNotFoundError(f"Schema file not found: {schema_file}")

        with open(schema_file, 'r') as f:
            schema_sql = f.read()

        conn = self.get_connection()
        try:
            with conn.cursor() as cursor:
                cursor.execute(schema_sql)
            conn.commit()
        finally:
            self.return_connection(conn)
        logger.info("Schema applied from %s", schema_file.name)

    def drop_tables(self):
        """Drop all database tables and the booking reference sequence (use with caution!)"""
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
                cursor.execute("DROP SEQUENCE IF EXISTS booking_reference_seq")
            conn.commit()
        finally:
            self.return_connection(conn)
        logger.warning("Dropped %d tables", len(tables))

    def _log_statement(self, cursor):
        if self.echo and cursor.query:
            logger.debug("SQL: %s", cursor.query.decode('utf-8', errors='replace'))

    @contextmanager
    def get_cursor(self, isolation_level=None, cursor_factory=None):
        """
        Get a cursor with automatic connection management

        Args:
            isolation_level: Transaction isolation level
            cursor_factory: Cursor factory (defaults to RealDictCursor)

        Usage:
            with db.get_cursor() as cursor:
                cursor.execute("SELECT * FROM flights")
                results = cursor.fetchall()
        """
        conn = self.get_connection()
        conn.set_isolation_level(isolation_level or ISOLATION_LEVEL_READ_COMMITTED)

        cursor = conn.cursor(cursor_factory=cursor_factory or extras.RealDictCursor)

        try:
            yield cursor
            self._log_statement(cursor)
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cursor.close()
            self.return_connection(conn)

    @contextmanager
    def transaction(self, isolation_level=None):
        """
        Provide a transactional scope with a connection

        Args:
            isolation_level: Transaction isolation level

        Usage:
            with db.transaction() as conn:
                with conn.cursor() as cursor:
                    cursor.execute("INSERT INTO bookings ...")
        """
        conn = self.get_connection()
        conn.set_isolation_level(isolation_level or ISOLATION_LEVEL_READ_COMMITTED)

        try:
            yield conn
            conn.commit()
        except Exception:
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

    This is primarily used in test fixtures so that the repositories operate on
    the test database instead of the default one.
    Passing ``None`` resets the singleton so the next
    ``get_db_manager`` call recreates it with default settings.
    """
    global _db_manager
    _db_manager = db_manager


def init_db():
    """Initialize database with tables"""
    db_manager = get_db_manager()
    db_manager.create_tables()
    logger.info("Database initialized successfully")
