# sales_analytics/service.py
"""
Engine facade shared by the HTTP API and the CLI.

The service is built from an AggregateFetcher and holds no other state, so
one instance can serve any number of requests. Any failure while reading
aggregates is raised as a single FetchError; callers never see partial data.
"""
import logging
from contextlib import contextmanager
from datetime import date, datetime, timedelta
from typing import List, Optional

from .comparator import ComparisonResult, compare_periods
from .fetcher import AggregateFetcher, AnalyticsError, FetchError
from .schemas import (
    BucketItem,
    GeneralAnalytics,
    PaymentBreakdown,
    PaymentMethodTotal,
    ProductSales,
    SalesAnalytics,
    SellerRanking,
)
from .sellers import ExtremeSeller, rank_sellers, select_extreme_sellers
from .sequencer import Bucket, fill_gaps, fill_values
from .windows import normalize_granularity, resolve_window

logger = logging.getLogger(__name__)

def assemble_sales(buckets: List[Bucket], comparison: ComparisonResult) -> SalesAnalytics:
    return SalesAnalytics(
        current_period=[BucketItem(value=b.value, label=b.label) for b in buckets],
        total_revenue=comparison.total_revenue,
        percentage_change=comparison.percentage_change,
        is_positive=comparison.is_positive,
    )

def assemble_seller(seller: Optional[ExtremeSeller]) -> Optional[ProductSales]:
    if seller is None:
        return None
    return ProductSales(name=seller.name, units_sold=seller.units_sold)

class AnalyticsService:
    def __init__(self, fetcher: AggregateFetcher, max_workers: int = 2):
        self.fetcher = fetcher
        self.max_workers = max_workers

    @contextmanager
    def _fetching(self, operation: str):
        try:
            yield
        except AnalyticsError:
            raise
        except Exception as e:
            logger.exception("Analytics operation '%s' failed", operation)
            raise FetchError(f"{operation} failed: {e}") from e

    def sales_analytics(self, user_id: str, granularity=None, today: Optional[date] = None) -> SalesAnalytics:
        """
        Revenue series for the current window plus the change against the
        window of equal length right before it.
        """
        spec = resolve_window(granularity, today)

        with self._fetching("sales_analytics"):
            # One grouped query covers both windows
            rows = self.fetcher.revenue_by_bucket(user_id, spec.granularity, spec.start, spec.end)

            buckets = fill_gaps(spec, spec.current, rows)
            previous = fill_values(spec, spec.comparison, rows)
            comparison = compare_periods([b.value for b in buckets], previous)

        logger.debug(
            "Sales analytics for user %s (%s): total=%s change=%s%%",
            user_id, spec.granularity, comparison.total_revenue, comparison.percentage_change,
        )
        return assemble_sales(buckets, comparison)

    def general_analytics(self, user_id: str, granularity=None, now: Optional[datetime] = None) -> GeneralAnalytics:
        """Best and worst seller within the granularity's trailing window."""
        with self._fetching("general_analytics"):
            sellers = select_extreme_sellers(
                self.fetcher, user_id, granularity, now=now, max_workers=self.max_workers
            )
        return GeneralAnalytics(
            top_product=assemble_seller(sellers.top),
            low_product=assemble_seller(sellers.low),
        )

    def ranked_sellers(self, user_id: str, granularity=None, descending: bool = True,
                       limit: int = 10, now: Optional[datetime] = None) -> SellerRanking:
        with self._fetching("ranked_sellers"):
            sellers = rank_sellers(
                self.fetcher, user_id, granularity, descending=descending, limit=limit, now=now
            )
        products = [assemble_seller(s) for s in sellers]
        return SellerRanking(
            granularity=normalize_granularity(granularity),
            count=len(products),
            products=products,
        )

    def payment_breakdown(self, user_id: str, days: int = 30, now: Optional[datetime] = None) -> PaymentBreakdown:
        """Revenue and transaction count per payment method over the last `days` days."""
        now = now or datetime.now()
        start = now - timedelta(days=days)

        with self._fetching("payment_breakdown"):
            totals = self.fetcher.sum_by_key(user_id, "total_amount", "payment_method", start, now)
            counts = dict(self.fetcher.count_by_key(user_id, "total_amount", "payment_method", start, now))

        return PaymentBreakdown(
            days=days,
            breakdown=[
                PaymentMethodTotal(
                    method=str(method),
                    total_amount=total,
                    transaction_count=counts.get(method, 0),
                )
                for method, total in totals
            ],
        )
