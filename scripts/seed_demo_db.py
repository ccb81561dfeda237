#!/usr/bin/env python3
"""
Seed a local SQLite database and a matching test-data template for Fillmore development.
Usage (from the repository root):
    python scripts/seed_demo_db.py
    fillmore generate --db-url sqlite:///scripts/demo.db --template testdata/testdata_template.json
Creates: scripts/demo.db, testdata/testdata_template.json
"""
import json
import sqlite3
import random
from datetime import datetime, timedelta
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
DB_PATH = Path(__file__).parent / "demo.db"
TEMPLATE_PATH = ROOT / "testdata" / "testdata_template.json"

DDL = [
    """
    CREATE TABLE IF NOT EXISTS customer (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        email       VARCHAR(50) NOT NULL,
        first_name  VARCHAR(30),
        last_name   VARCHAR(30),
        phone       VARCHAR(20),
        country     VARCHAR(40),
        is_active   BOOLEAN DEFAULT 1,
        created_at  TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
    """
    CREATE TABLE IF NOT EXISTS client_mapping (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id     INTEGER NOT NULL REFERENCES customer(id),
        hospital_code   VARCHAR(8) NOT NULL,
        system_name     VARCHAR(30)
    )""",
    """
    CREATE TABLE IF NOT EXISTS product (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        sku         VARCHAR(12) NOT NULL,
        name        VARCHAR(60) NOT NULL,
        price       NUMERIC(10, 2) NOT NULL CHECK (price BETWEEN 1 AND 500),
        category    VARCHAR(20) CHECK (category IN ('Electronics', 'Clothing', 'Books'))
    )""",
    """
    CREATE TABLE IF NOT EXISTS orders (
        id              INTEGER PRIMARY KEY AUTOINCREMENT,
        customer_id     INTEGER NOT NULL REFERENCES customer(id),
        status          VARCHAR(12) CHECK (status IN ('PENDING', 'SHIPPED', 'CANCELLED')),
        total_amount    NUMERIC(10, 2),
        created_at      TIMESTAMP DEFAULT CURRENT_TIMESTAMP
    )""",
    """
    CREATE TABLE IF NOT EXISTS order_item (
        id          INTEGER PRIMARY KEY AUTOINCREMENT,
        order_id    INTEGER NOT NULL REFERENCES orders(id),
        product_id  INTEGER NOT NULL REFERENCES product(id),
        quantity    INTEGER NOT NULL CHECK (quantity >= 1),
        unit_price  NUMERIC(10, 2) NOT NULL
    )""",
]

TEMPLATE = {
    "endpoints": {
        "GET /api/customer/{id}": {"path_params": {"id": None}},
        "POST /api/customer": {"body": None, "headers": {"Content-Type": "application/json"}},
        "PUT /api/customer/{id}": {"path_params": {"id": None}, "body": {"email": None, "is_active": True}},
        "POST /api/clients": {"body": {"customerId": None, "hospitalCode": None}},
        "GET /api/orders": {"query_params": {"status": None, "customer_id": None}},
        "POST /api/orders": {"body": {"customer_id": None, "items": [{"product_id": None, "quantity": None}]}},
        "DELETE /api/orders/{id}": {"path_params": {"id": None}},
    }
}

STATUSES = ["PENDING", "SHIPPED", "CANCELLED"]
CATEGORIES = ["Electronics", "Clothing", "Books"]
COUNTRIES = ["US", "UK", "DE", "IN", "JP"]

def seed():
    conn = sqlite3.connect(DB_PATH)
    cur  = conn.cursor()

    for stmt in DDL:
        cur.execute(stmt)

    # customer (50) + one client mapping each
    for i in range(1, 51):
        cur.execute("INSERT INTO customer(email, first_name, last_name, phone, country, created_at) VALUES (?,?,?,?,?,?)",
                    (f"user{i}@example.com", f"First{i}", f"Last{i}", f"+1-555-{i:04d}",
                     random.choice(COUNTRIES), datetime.now() - timedelta(days=random.randint(10, 730))))
        cur.execute("INSERT INTO client_mapping(customer_id, hospital_code, system_name) VALUES (?,?,?)",
                    (cur.lastrowid, f"H{i:05d}", "legacy"))

    # product (20)
    for i in range(1, 21):
        cur.execute("INSERT INTO product(sku, name, price, category) VALUES (?,?,?,?)",
                    (f"SKU-{i:04d}", f"Product {i}", round(random.uniform(1, 500), 2), random.choice(CATEGORIES)))

    # orders + order_item (100 orders)
    for _ in range(100):
        cur.execute("INSERT INTO orders(customer_id, status) VALUES (?,?)",
                    (random.randint(1, 50), random.choice(STATUSES)))
        order_id = cur.lastrowid
        total = 0.0
        for _ in range(random.randint(1, 4)):
            qty   = random.randint(1, 5)
            price = round(random.uniform(1, 500), 2)
            total += qty * price
            cur.execute("INSERT INTO order_item(order_id, product_id, quantity, unit_price) VALUES (?,?,?,?)",
                        (order_id, random.randint(1, 20), qty, price))
        cur.execute("UPDATE orders SET total_amount=? WHERE id=?", (round(total, 2), order_id))

    conn.commit()
    conn.close()

    TEMPLATE_PATH.parent.mkdir(parents=True, exist_ok=True)
    TEMPLATE_PATH.write_text(json.dumps(TEMPLATE, indent=2) + "\n", encoding="utf-8")

    print(f"Demo database seeded: {DB_PATH}")
    print("   Tables: customer, client_mapping, product, orders, order_item")
    print(f"Template written: {TEMPLATE_PATH}")

if __name__ == "__main__":
    seed()
