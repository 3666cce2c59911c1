#!/usr/bin/env python3
"""
Base Repository - Common database operations
"""
import psycopg2
from psycopg2.extras import RealDictCursor
from typing import Optional, Any
from contextlib import contextmanager

from config import DB_CONFIG


class BaseRepository:
    """Base class for repositories; every call degrades to a no-op without a DB"""

    def get_connection(self):
        """Create a new database connection, None if unreachable"""
        try:
            return psycopg2.connect(connect_timeout=3, **DB_CONFIG)
        except Exception as e:
            print(f"[DB] Connection error: {e}")
            return None

    @contextmanager
    def get_cursor(self, dict_cursor: bool = True):
        """Context manager for database cursor (yields None when offline)"""
        conn = self.get_connection()
        if not conn:
            yield None
            return

        try:
            cursor_factory = RealDictCursor if dict_cursor else None
            with conn.cursor(cursor_factory=cursor_factory) as cur:
                yield cur
                conn.commit()
        except Exception as e:
            conn.rollback()
            print(f"[DB] Error: {e}")
            raise
        finally:
            conn.close()

    def execute_query(self, query: str, params: tuple = None, fetch_one: bool = False) -> Optional[Any]:
        """Execute a SELECT and return one row or all rows"""
        with self.get_cursor() as cur:
            if cur is None:
                return None

            cur.execute(query, params)
            return cur.fetchone() if fetch_one else cur.fetchall()

    def execute_write(self, query: str, params: tuple = None) -> int:
        """Execute an INSERT/UPDATE/DELETE, return affected row count (0 when offline)"""
        with self.get_cursor() as cur:
            if cur is None:
                return 0

            cur.execute(query, params)
            return cur.rowcount

    @classmethod
    def check_db_available(cls) -> bool:
        """Check if database is available"""
        conn = cls().get_connection()
        if conn:
            conn.close()
            return True
        return False
