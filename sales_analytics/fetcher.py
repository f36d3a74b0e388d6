# sales_analytics/fetcher.py
"""
Raw aggregate fetcher: the only part of the engine that talks to the datastore.

Every method returns sparse, grouped sums scoped to a single user. Buckets or
keys without rows are simply absent; gap-filling happens in the sequencer.
"""
import abc
import logging
import math
from contextlib import contextmanager
from datetime import date, datetime, time
from typing import Hashable, List, Optional, Tuple

from sqlalchemy import extract, func, select
from sqlalchemy.orm import sessionmaker

from .models import Product, Transaction, TransactionItem
from .windows import MONTH, WEEK, bucket_key, normalize_granularity

logger = logging.getLogger(__name__)

Row = Tuple[Hashable, float]

class AnalyticsError(Exception):
    """Base class for errors raised by the analytics engine."""

class FetchError(AnalyticsError):
    """The datastore could not be read. No partial data is ever attached."""

def to_finite(value) -> float:
    """Coerces a database total to a finite float; empty or invalid sums become 0."""
    if value is None:
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        logger.warning("Non-numeric aggregate %r treated as 0", value)
        return 0.0
    if not math.isfinite(number):
        logger.warning("Non-finite aggregate %r treated as 0", value)
        return 0.0
    return number

def _as_datetime(value) -> datetime:
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime.combine(value, time.min)
    raise TypeError(f"Expected a date or datetime bound, got {value!r}")

class AggregateFetcher(abc.ABC):
    """Datastore contract required by the analytics engine."""

    @abc.abstractmethod
    def revenue_by_bucket(self, user_id: str, granularity: str, start, end) -> List[Row]:
        """Sum of transaction totals per bucket key, for `start <= created_at < end`."""

    @abc.abstractmethod
    def sum_by_key(self, user_id: str, column: str, key: str, start, end,
                   descending: bool = True, limit: Optional[int] = None) -> List[Row]:
        """Sum of `column` grouped by `key`, ordered by the sum."""

    @abc.abstractmethod
    def count_by_key(self, user_id: str, column: str, key: str, start, end) -> List[Tuple[Hashable, int]]:
        """Number of rows carrying `column`, grouped by `key`."""

    @abc.abstractmethod
    def product_name(self, user_id: str, product_id) -> Optional[str]:
        """Display name of a product, or None when the record is gone."""

# (column, key) pairs that can be grouped, mapped to their model attributes
GROUPINGS = {
    ("quantity", "product_id"): (TransactionItem.quantity, TransactionItem.product_id),
    ("total_amount", "payment_method"): (Transaction.total_amount, Transaction.payment_method),
}

class SqlAlchemyFetcher(AggregateFetcher):
    """
    Fetcher backed by the SQLAlchemy models.

    Buckets are grouped on EXTRACT(year/month/day) so the same query runs on
    both SQLite and PostgreSQL. Each call opens its own session, which lets
    independent calls run on separate threads.
    """

    def __init__(self, session_factory: sessionmaker):
        self._session_factory = session_factory

    @contextmanager
    def _session(self, operation: str):
        try:
            with self._session_factory() as session:
                yield session
        except AnalyticsError:
            raise
        except Exception as e:
            logger.exception("Aggregate query '%s' failed", operation)
            raise FetchError(f"{operation} failed: {e}") from e

    def revenue_by_bucket(self, user_id, granularity, start, end):
        granularity = normalize_granularity(granularity)
        parts = [extract("year", Transaction.created_at).label("year")]
        if granularity in (MONTH, WEEK):
            parts.append(extract("month", Transaction.created_at).label("month"))
        if granularity == WEEK:
            parts.append(extract("day", Transaction.created_at).label("day"))

        stmt = (
            select(*parts, func.sum(Transaction.total_amount).label("total"))
            .where(
                Transaction.user_id == user_id,
                Transaction.created_at >= _as_datetime(start),
                Transaction.created_at < _as_datetime(end),
            )
            .group_by(*parts)
            .order_by(*parts)
        )

        with self._session("revenue_by_bucket") as session:
            rows = session.execute(stmt).all()
            return [
                (bucket_key(granularity, tuple(row[:-1])), to_finite(row[-1]))
                for row in rows
            ]

    def _grouping(self, column: str, key: str):
        try:
            return GROUPINGS[(column, key)]
        except KeyError:
            raise ValueError(f"Unsupported grouping: sum of '{column}' by '{key}'") from None

    def sum_by_key(self, user_id, column, key, start, end, descending=True, limit=None):
        value_col, key_col = self._grouping(column, key)
        model = key_col.class_
        total = func.sum(value_col).label("total")

        stmt = (
            select(key_col, total)
            .where(
                model.user_id == user_id,
                model.created_at >= _as_datetime(start),
                model.created_at < _as_datetime(end),
            )
            .group_by(key_col)
            .order_by(total.desc() if descending else total.asc(), key_col.asc())
        )
        if limit is not None:
            stmt = stmt.limit(limit)

        with self._session("sum_by_key") as session:
            return [(row[0], to_finite(row[1])) for row in session.execute(stmt).all()]

    def count_by_key(self, user_id, column, key, start, end):
        value_col, key_col = self._grouping(column, key)
        model = key_col.class_

        stmt = (
            select(key_col, func.count(value_col))
            .where(
                model.user_id == user_id,
                model.created_at >= _as_datetime(start),
                model.created_at < _as_datetime(end),
            )
            .group_by(key_col)
            .order_by(key_col.asc())
        )

        with self._session("count_by_key") as session:
            return [(row[0], int(row[1] or 0)) for row in session.execute(stmt).all()]

    def product_name(self, user_id, product_id):
        stmt = select(Product.name).where(Product.id == product_id, Product.user_id == user_id)
        with self._session("product_name") as session:
            return session.execute(stmt).scalar()
