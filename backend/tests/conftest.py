import os
import sys

# Add the parent directory (backend) to the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import pytest
import sqlite3
import tempfile
from fastapi.testclient import TestClient

from main import app
from core.db_connector import SchemaIntrospector
from models.connection import ConnectionRequest

DEMO_DDL = [
    """
    CREATE TABLE customer (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        email       VARCHAR(50) NOT NULL,
        first_name  VARCHAR(20),
        is_active   BOOLEAN,
        age         INTEGER
    )""",
    """
    CREATE TABLE client_mapping (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id     INTEGER NOT NULL REFERENCES customer(id),
        hospital_code   VARCHAR(8) NOT NULL
    )""",
    """
    CREATE TABLE orders (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id INTEGER NOT NULL REFERENCES customer(id),
        total       NUMERIC(10, 2) NOT NULL,
        created_at  TIMESTAMP
    )""",
    """
    CREATE TABLE order_item (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        order_id    INTEGER NOT NULL REFERENCES orders(id),
        quantity    INTEGER NOT NULL
    )""",
    """
    CREATE TABLE audit_log (
        id          INTEGER PRIMARY KEY,
        message     TEXT
    )""",
]


class FakeSuggestionService:
    """Returns canned responses in order and records every prompt."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.prompts = []

    def complete(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError("unexpected suggestion request")
        reply = self.responses.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture(scope="session")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def temp_sqlite_db():
    fd, path = tempfile.mkstemp(suffix=".db")
    try:
        conn = sqlite3.connect(path)
        cur = conn.cursor()
        for stmt in DEMO_DDL:
            cur.execute(stmt)
        for i in range(1, 4):
            cur.execute(
                "INSERT INTO customer (email, first_name, is_active, age) VALUES (?, ?, ?, ?)",
                (f"customer{i}@example.com", f"Customer{i}", 1, 20 + i),
            )
        cur.execute("INSERT INTO orders (customer_id, total, created_at) VALUES (1, 99.5, '2024-01-01 10:00:00')")
        cur.execute("INSERT INTO order_item (order_id, quantity) VALUES (1, 2)")
        conn.commit()
        conn.close()
        yield path
    finally:
        os.close(fd)
        os.remove(path)


@pytest.fixture
def connection_request(temp_sqlite_db):
    return ConnectionRequest(db_type="sqlite", file_path=temp_sqlite_db)


@pytest.fixture
def introspector(connection_request):
    with SchemaIntrospector.from_request(connection_request) as insp:
        yield insp
