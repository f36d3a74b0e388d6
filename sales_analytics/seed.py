# sales_analytics/seed.py
"""
Demo data for local development and the CLI diagnostic tool.

Generates products, transactions and line items with Faker and appends them
to the database with pandas. This is the only code path that writes.
"""
import logging
import random
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Sequence

import pandas as pd
from faker import Faker
from sqlalchemy.engine import Engine

from .models import Base

logger = logging.getLogger(__name__)

PAYMENT_METHODS = ["cash", "card", "upi"]
TABLE_ORDER = ["products", "transactions", "transaction_items"]

def generate_demo_frames(
    rows: int,
    users: Sequence[str],
    products_per_user: int = 8,
    days: int = 730,
    seed: Optional[int] = None,
    now: Optional[datetime] = None,
) -> Dict[str, pd.DataFrame]:
    """
    Builds `rows` transactions spread across `users` over the last `days` days.

    Each transaction has one to three line items; its total is the sum of
    quantity times the product's price.
    """
    fake = Faker()
    rng = random.Random(seed)  # nosec B311
    if seed is not None:
        Faker.seed(seed)
    now = now or datetime.now()
    start = now - timedelta(days=days)

    products: List[dict] = []
    prices: Dict[str, float] = {}
    catalogue: Dict[str, List[str]] = {}
    for user_id in users:
        catalogue[user_id] = []
        for _ in range(products_per_user):
            product_id = fake.uuid4()
            products.append({
                "id": product_id,
                "user_id": user_id,
                "name": f"{fake.color_name()} {fake.word().title()}",
            })
            prices[product_id] = round(rng.uniform(5.0, 500.0), 2)
            catalogue[user_id].append(product_id)

    transactions: List[dict] = []
    items: List[dict] = []
    for _ in range(rows):
        user_id = rng.choice(list(users))
        transaction_id = fake.uuid4()
        created_at = fake.date_time_between(start_date=start, end_date=now)

        total = 0.0
        for product_id in rng.sample(catalogue[user_id], k=min(rng.randint(1, 3), products_per_user)):
            quantity = rng.randint(1, 5)
            total += quantity * prices[product_id]
            items.append({
                "id": fake.uuid4(),
                "user_id": user_id,
                "transaction_id": transaction_id,
                "product_id": product_id,
                "quantity": quantity,
                "created_at": created_at,
            })

        transactions.append({
            "id": transaction_id,
            "user_id": user_id,
            "total_amount": round(total, 2),
            "payment_method": rng.choice(PAYMENT_METHODS),
            "created_at": created_at,
        })

    return {
        "products": pd.DataFrame(products, columns=["id", "user_id", "name"]),
        "transactions": pd.DataFrame(
            transactions, columns=["id", "user_id", "total_amount", "payment_method", "created_at"]
        ),
        "transaction_items": pd.DataFrame(
            items, columns=["id", "user_id", "transaction_id", "product_id", "quantity", "created_at"]
        ),
    }

def load_frames(frames: Dict[str, pd.DataFrame], engine: Engine) -> Dict[str, int]:
    """
    Creates missing tables and appends each frame to its table.

    Returns the number of rows written per table.
    """
    Base.metadata.create_all(bind=engine)

    written = {}
    try:
        for table in TABLE_ORDER:
            frame = frames.get(table)
            if frame is None or frame.empty:
                written[table] = 0
                continue
            frame.to_sql(table, con=engine, if_exists="append", index=False)
            written[table] = len(frame)
    except Exception as e:
        raise Exception(f"An unexpected error occurred while loading demo data: {e}") from e

    logger.info("Loaded demo data: %s", written)
    return written
