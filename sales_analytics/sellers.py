# sales_analytics/sellers.py
"""
Best- and worst-selling product selection over a trailing window.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from .fetcher import AggregateFetcher
from .windows import trailing_range

logger = logging.getLogger(__name__)

@dataclass(frozen=True)
class ExtremeSeller:
    name: Optional[str]
    units_sold: int

@dataclass(frozen=True)
class ExtremeSellers:
    top: Optional[ExtremeSeller]
    low: Optional[ExtremeSeller]

def _resolve(fetcher: AggregateFetcher, user_id: str, product_id, units) -> ExtremeSeller:
    return ExtremeSeller(name=fetcher.product_name(user_id, product_id), units_sold=int(units))

def pick_seller(fetcher: AggregateFetcher, user_id: str, start, end, descending: bool) -> Optional[ExtremeSeller]:
    """Returns the product with the highest (or lowest) units sold, or None without sales."""
    rows = fetcher.sum_by_key(
        user_id, "quantity", "product_id", start, end, descending=descending, limit=1
    )
    if not rows:
        return None
    product_id, units = rows[0]
    return _resolve(fetcher, user_id, product_id, units)

def select_extreme_sellers(
    fetcher: AggregateFetcher,
    user_id: str,
    granularity,
    now: Optional[datetime] = None,
    max_workers: int = 2,
) -> ExtremeSellers:
    """
    Selects the best and worst seller within the trailing window of the
    granularity (7, 30 or 365 days).

    The two lookups are independent and run concurrently. When a single
    product has sold, it is both the best and the worst seller. A failure in
    either lookup propagates; no half-filled result is returned.
    """
    start, end = trailing_range(granularity, now)

    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        top = pool.submit(pick_seller, fetcher, user_id, start, end, True)
        low = pool.submit(pick_seller, fetcher, user_id, start, end, False)
        result = ExtremeSellers(top=top.result(), low=low.result())

    logger.debug("Extreme sellers for user %s between %s and %s: %s", user_id, start, end, result)
    return result

def rank_sellers(
    fetcher: AggregateFetcher,
    user_id: str,
    granularity,
    descending: bool = True,
    limit: int = 10,
    now: Optional[datetime] = None,
) -> List[ExtremeSeller]:
    """Products ordered by units sold within the trailing window, at most `limit` of them."""
    start, end = trailing_range(granularity, now)
    rows = fetcher.sum_by_key(
        user_id, "quantity", "product_id", start, end, descending=descending, limit=limit
    )
    return [_resolve(fetcher, user_id, product_id, units) for product_id, units in rows]
