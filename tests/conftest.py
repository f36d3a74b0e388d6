# tests/conftest.py
import os
import threading
from datetime import datetime, time

# Settings are read at import time; keep the app away from a real Postgres
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_LEVEL"] = "WARNING"

import pytest
from fastapi.testclient import TestClient

from sales_analytics import models
from sales_analytics.database import Base, make_engine, make_session_factory
from sales_analytics.fetcher import AggregateFetcher, SqlAlchemyFetcher
from sales_analytics.main import app, get_fetcher
from sales_analytics.windows import bucket_key

def _as_datetime(value):
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)

class FakeFetcher(AggregateFetcher):
    """In-memory fetcher following the same contract as the SQL one."""

    def __init__(self):
        self.transactions = []
        self.items = []
        self.products = {}
        self.calls = []
        self.error = None
        self._lock = threading.Lock()

    def add_transaction(self, user_id, created_at, amount, method="cash"):
        self.transactions.append({
            "user_id": user_id,
            "created_at": created_at,
            "total_amount": amount,
            "payment_method": method,
        })

    def add_item(self, user_id, product_id, quantity, created_at):
        self.items.append({
            "user_id": user_id,
            "product_id": product_id,
            "quantity": quantity,
            "created_at": created_at,
        })

    def add_product(self, user_id, product_id, name):
        self.products[(user_id, product_id)] = name

    def _record(self, name):
        with self._lock:
            self.calls.append(name)
        if self.error is not None:
            raise self.error

    def _rows(self, column, key):
        if (column, key) == ("quantity", "product_id"):
            return self.items
        if (column, key) == ("total_amount", "payment_method"):
            return self.transactions
        raise ValueError(f"Unsupported grouping: {column} by {key}")

    def revenue_by_bucket(self, user_id, granularity, start, end):
        self._record("revenue_by_bucket")
        start, end = _as_datetime(start), _as_datetime(end)
        totals = {}
        for t in self.transactions:
            if t["user_id"] == user_id and start <= t["created_at"] < end:
                key = bucket_key(granularity, t["created_at"])
                totals[key] = totals.get(key, 0.0) + t["total_amount"]
        return sorted(totals.items())

    def sum_by_key(self, user_id, column, key, start, end, descending=True, limit=None):
        self._record("sum_by_key")
        start, end = _as_datetime(start), _as_datetime(end)
        totals = {}
        for row in self._rows(column, key):
            if row["user_id"] == user_id and start <= row["created_at"] < end:
                totals[row[key]] = totals.get(row[key], 0) + row[column]
        ordered = sorted(totals.items(), key=lambda kv: (-kv[1] if descending else kv[1], kv[0]))
        return ordered[:limit] if limit is not None else ordered

    def count_by_key(self, user_id, column, key, start, end):
        self._record("count_by_key")
        start, end = _as_datetime(start), _as_datetime(end)
        counts = {}
        for row in self._rows(column, key):
            if row["user_id"] == user_id and start <= row["created_at"] < end:
                counts[row[key]] = counts.get(row[key], 0) + 1
        return sorted(counts.items())

    def product_name(self, user_id, product_id):
        self._record("product_name")
        return self.products.get((user_id, product_id))

@pytest.fixture
def fake_fetcher():
    return FakeFetcher()

@pytest.fixture(scope="function")
def db_engine(tmp_path):
    """
    A fresh SQLite database file per test. A file (rather than ':memory:')
    lets the analytics thread pool open its own connections.
    """
    engine = make_engine(f"sqlite:///{tmp_path / 'analytics.db'}")
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()

@pytest.fixture(scope="function")
def session_factory(db_engine):
    return make_session_factory(db_engine)

@pytest.fixture(scope="function")
def seed_sale(session_factory):
    """
    Returns a helper that writes one transaction (and optionally its line
    items) straight into the test database.
    """
    counter = {"n": 0}

    def _seed(user_id, created_at, amount, items=(), method="cash"):
        counter["n"] += 1
        transaction_id = f"t{counter['n']}"
        with session_factory() as session:
            session.add(models.Transaction(
                id=transaction_id,
                user_id=user_id,
                total_amount=amount,
                payment_method=method,
                created_at=created_at,
            ))
            session.flush()
            for i, (product_id, quantity) in enumerate(items):
                session.add(models.TransactionItem(
                    id=f"{transaction_id}-{i}",
                    user_id=user_id,
                    transaction_id=transaction_id,
                    product_id=product_id,
                    quantity=quantity,
                    created_at=created_at,
                ))
            session.commit()
        return transaction_id

    return _seed

@pytest.fixture(scope="function")
def seed_product(session_factory):
    def _seed(user_id, product_id, name):
        with session_factory() as session:
            session.add(models.Product(id=product_id, user_id=user_id, name=name))
            session.commit()
    return _seed

@pytest.fixture(scope="function")
def sql_fetcher(session_factory):
    return SqlAlchemyFetcher(session_factory)

@pytest.fixture(scope="function")
def client(sql_fetcher):
    """
    Overrides the fetcher dependency so the API reads the test database.
    """
    def get_test_fetcher_override():
        yield sql_fetcher

    app.dependency_overrides[get_fetcher] = get_test_fetcher_override

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()
