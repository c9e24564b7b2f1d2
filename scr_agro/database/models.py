"""
Database Models - Backend Tables

Read models for the backend tables the admin dashboard reports on:

- orders: customer purchases
- products: catalog with stored stock and low-stock threshold
- stock_movements: inventory changes, each carrying the resulting quantity
- profiles: customer accounts

The backend owns these tables; this service only reads them.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import (
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """Base class for all database models"""
    pass


class OrderRow(Base):
    """Orders table"""
    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    order_number: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    user_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="pending")
    total: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    cancelled_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        Index("idx_orders_status", "status"),
        Index("idx_orders_created_at", "created_at"),
    )


class ProductRow(Base):
    """Products table"""
    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    stock_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)
    min_stock_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=10)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


class StockMovementRow(Base):
    """Stock movements table"""
    __tablename__ = "stock_movements"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    product_id: Mapped[str] = mapped_column(String(64), ForeignKey("products.id"), nullable=False)
    new_quantity: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_stock_movements_product_created", "product_id", "created_at"),
    )


class ProfileRow(Base):
    """Customer profiles table"""
    __tablename__ = "profiles"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())


WATCHED_TABLES = (
    OrderRow.__tablename__,
    ProductRow.__tablename__,
    StockMovementRow.__tablename__,
    ProfileRow.__tablename__,
)
