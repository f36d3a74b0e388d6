# sales_analytics/models.py
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, Numeric, String

from .database import Base

# Tables are owned by the merchant backend; the analytics engine only reads them.

class Product(Base):
    __tablename__ = "products"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    name = Column(String, nullable=False)

class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_method = Column(String, nullable=False, default="cash")
    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_transactions_user_created", "user_id", "created_at"),
    )

class TransactionItem(Base):
    __tablename__ = "transaction_items"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False)
    transaction_id = Column(String, ForeignKey("transactions.id"), nullable=False)
    # Plain reference, the product row may be gone by the time we report on it
    product_id = Column(String, nullable=False)
    quantity = Column(Integer, nullable=False)
    created_at = Column(DateTime, nullable=False)

    __table_args__ = (
        Index("idx_transaction_items_user_created", "user_id", "created_at"),
    )
