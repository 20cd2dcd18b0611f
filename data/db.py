import os
import queue
import sqlite3
import threading
from typing import Dict, Optional, Sequence

from core.exceptions import DatabaseError
from core.types import DatabaseResult

SCHEMA_FILE = os.path.join(os.path.dirname(__file__), 'database.sql')

class Database:
    """Handles all low-level interactions with the SQLite database."""

    # Connection pools per database file
    _pools: Dict[str, queue.Queue] = {}
    _locks: Dict[str, threading.Lock] = {}
    _registry_lock = threading.Lock()

    def __init__(self, db_file: str, pool_size: Optional[int] = None) -> None:
        """Initialize the database connection pool."""

        self.db_file = db_file
        self.pool_size = pool_size or self._calculate_pool_size()
        directory = os.path.dirname(self.db_file)
        if directory:
            os.makedirs(directory, exist_ok=True)

        # Ensure a pool exists for this database file
        with Database._registry_lock:
            if db_file not in Database._locks:
                Database._locks[db_file] = threading.Lock()
        self._ensure_pool()

    # Internal helpers -------------------------------------------------

    def _ensure_pool(self) -> None:
        """Create a connection pool for the database file if needed."""
        if self.db_file in Database._pools:
            return
        with Database._locks[self.db_file]:
            if self.db_file in Database._pools:
                return
            pool = queue.Queue(maxsize=self.pool_size)
            try:
                for _ in range(pool.maxsize):
                    pool.put(self._open_connection())
            except sqlite3.Error as e:
                raise DatabaseError(f"Failed to open database '{self.db_file}': {e}")
            Database._pools[self.db_file] = pool

    def _open_connection(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_file, check_same_thread=False, timeout=30)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys=ON")
        conn.execute("PRAGMA busy_timeout=30000")
        return conn

    def _get_from_pool(self) -> sqlite3.Connection:
        self._ensure_pool()
        return Database._pools[self.db_file].get()

    def _return_to_pool(self, conn: sqlite3.Connection) -> None:
        self._ensure_pool()
        Database._pools[self.db_file].put(conn)

    def _calculate_pool_size(self) -> int:
        """Determine an appropriate connection pool size."""
        cores = os.cpu_count() or 1
        # Provide multiple connections per core but avoid excessive handles
        return max(5, min(100, cores * 5))

    def initialize_schema(self) -> None:
        """Create tables and indexes if they do not exist yet."""
        with open(SCHEMA_FILE, 'r') as f:
            self.execute_script(f.read())

    def execute_query(self, query: str, params: Sequence = ()) -> DatabaseResult:
        """
        Executes a given SQL query (e.g., SELECT, INSERT, UPDATE, DELETE).
        For queries that modify data, this method handles commit and rollback.

        Args:
            query (str): The SQL query to execute.
            params (tuple): The parameters to substitute into the query.

        Returns:
            list: A list of rows for SELECT queries, otherwise an empty list.
        """
        conn = self._get_from_pool()
        try:
            cursor = conn.cursor()
            cursor.execute(query, tuple(params))

            if query.strip().upper().startswith("SELECT"):
                result: DatabaseResult = [dict(row) for row in cursor.fetchall()]
                return result
            else:
                conn.commit()
                return []
        except sqlite3.Error as e:
            conn.rollback()
            raise DatabaseError(f"Database query failed: {e}")
        finally:
            self._return_to_pool(conn)

    def execute_update(self, query: str, params: Sequence = ()) -> int:
        """Executes a data modifying query and returns the number of affected rows."""
        conn = self._get_from_pool()
        try:
            cursor = conn.cursor()
            cursor.execute(query, tuple(params))
            conn.commit()
            return cursor.rowcount
        except sqlite3.Error as e:
            conn.rollback()
            raise DatabaseError(f"Database update failed: {e}")
        finally:
            self._return_to_pool(conn)

    def execute_script(self, script: str) -> None:
        """
        Executes a multi-statement SQL script.

        Args:
            script (str): The SQL script to execute.
        """
        conn = self._get_from_pool()
        try:
            cursor = conn.cursor()
            cursor.executescript(script)
            conn.commit()
        except sqlite3.Error as e:
            conn.rollback()
            raise DatabaseError(f"Database script execution failed: {e}")
        finally:
            self._return_to_pool(conn)

    def get_connection(self):
        """
        Returns a context manager for database connections.
        Statements issued inside the block share one transaction.
        """
        class ConnectionContext:
            def __init__(self, db_instance):
                self.db = db_instance
                self.conn = None

            def __enter__(self):
                self.conn = self.db._get_from_pool()
                return self.conn

            def __exit__(self, exc_type, exc_val, exc_tb):
                if self.conn:
                    try:
                        if exc_type:
                            self.conn.rollback()
                        else:
                            self.conn.commit()
                    finally:
                        self.db._return_to_pool(self.conn)
                        self.conn = None
                if exc_type and issubclass(exc_type, sqlite3.Error):
                    raise DatabaseError(f"Database transaction failed: {exc_val}") from exc_val
                return False

        return ConnectionContext(self)

    def cleanup_pool(self) -> None:
        """Close all pooled connections for this database file."""
        with Database._locks[self.db_file]:
            pool = Database._pools.pop(self.db_file, None)
        if pool is None:
            return
        while not pool.empty():
            try:
                pool.get_nowait().close()
            except (queue.Empty, sqlite3.Error):
                break
