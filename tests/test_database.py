"""
Tests for DatabaseManager connection handling
Runs against a recording pool so no PostgreSQL server is needed
"""
from __future__ import annotations

import sys
from pathlib import Path

import psycopg2
import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from database.database import DatabaseManager


class FakeConnection:
    def __init__(self, fail_isolation=False):
        self.fail_isolation = fail_isolation
        self.commits = 0
        self.rollbacks = 0

    def set_isolation_level(self, level):
        if self.fail_isolation:
            raise psycopg2.OperationalError("server closed the connection unexpectedly")

    def commit(self):
        self.commits += 1

    def rollback(self):
        self.rollbacks += 1


class FakePool:
    def __init__(self, conn):
        self.conn = conn
        self.taken = 0
        self.returned = []

    def getconn(self):
        self.taken += 1
        return self.conn

    def putconn(self, conn):
        self.returned.append(conn)


def manager_with(conn: FakeConnection) -> DatabaseManager:
    manager = DatabaseManager.__new__(DatabaseManager)
    manager.connection_pool = FakePool(conn)
    return manager


class TestTransaction:
    """Test the transactional scope returns connections to the pool"""

    def test_commit_returns_connection(self):
        conn = FakeConnection()
        manager = manager_with(conn)

        with manager.transaction():
            pass

        assert conn.commits == 1
        assert manager.connection_pool.returned == [conn]

    def test_error_rolls_back_and_returns_connection(self):
        conn = FakeConnection()
        manager = manager_with(conn)

        with pytest.raises(RuntimeError):
            with manager.transaction():
                raise RuntimeError("boom")

        assert conn.rollbacks == 1
        assert conn.commits == 0
        assert manager.connection_pool.returned == [conn]

    def test_isolation_failure_returns_connection(self):
        """Test a connection that fails to configure is not leaked"""
        conn = FakeConnection(fail_isolation=True)
        manager = manager_with(conn)

        with pytest.raises(psycopg2.OperationalError):
            with manager.transaction():
                pytest.fail("transaction body must not run")

        assert manager.connection_pool.returned == [conn]
        assert conn.rollbacks == 1
