"""
Order: immutable record promoted from a customer's draft once an address is captured.
Owns its own copy of the line items and address.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, Numeric, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from orderbot.db.base import Base


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=False)
    items = Column(JSON, nullable=False)  # [{"product_name": str, "quantity": int}]
    total_price = Column(Numeric(12, 2), nullable=False)
    address = Column(String(512), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    customer = relationship("Customer", backref="orders")
