"""
Backend Read Queries

Read-only access to the backend tables. Rows are returned as reporting
records so callers can hand them straight to the reporting engine.
"""

from datetime import datetime, timezone
from typing import Iterable, List, Optional, Tuple

import structlog
from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from scr_agro.database.models import OrderRow, ProductRow, ProfileRow, StockMovementRow
from scr_agro.reporting.models import Order, Product, ReportSnapshot, StockMovement

logger = structlog.get_logger(__name__)


def order_from_row(row: OrderRow) -> Order:
    return Order(
        id=row.id,
        order_number=row.order_number,
        created_at=row.created_at,
        status=row.status,
        total=row.total,
        cancelled_at=row.cancelled_at,
    )


def product_from_row(row: ProductRow) -> Product:
    return Product(
        id=row.id,
        title=row.title,
        stock_quantity=row.stock_quantity,
        min_stock_level=row.min_stock_level,
        created_at=row.created_at,
    )


def movement_from_row(row: StockMovementRow) -> StockMovement:
    return StockMovement(
        product_id=row.product_id,
        new_quantity=row.new_quantity,
        created_at=row.created_at,
    )


async def fetch_orders(
    session: AsyncSession,
    statuses: Optional[Iterable[str]] = None,
    since: Optional[datetime] = None,
) -> List[Order]:
    """
    Fetch orders, newest first.

    Args:
        session: Database session
        statuses: Only orders in these statuses
        since: Only orders created at or after this time
    """
    conditions = []
    if statuses is not None:
        conditions.append(OrderRow.status.in_(list(statuses)))
    if since is not None:
        conditions.append(OrderRow.created_at >= since)

    query = select(OrderRow)
    if conditions:
        query = query.where(and_(*conditions))
    query = query.order_by(OrderRow.created_at.desc())

    result = await session.execute(query)
    return [order_from_row(row) for row in result.scalars().all()]


async def fetch_products(session: AsyncSession) -> List[Product]:
    """Fetch products, newest first"""
    result = await session.execute(select(ProductRow).order_by(ProductRow.created_at.desc()))
    return [product_from_row(row) for row in result.scalars().all()]


async def fetch_stock_movements(session: AsyncSession) -> List[StockMovement]:
    """Fetch stock movements, newest first"""
    result = await session.execute(
        select(StockMovementRow).order_by(StockMovementRow.created_at.desc())
    )
    return [movement_from_row(row) for row in result.scalars().all()]


async def count_orders(session: AsyncSession, statuses: Optional[Iterable[str]] = None) -> int:
    """Count orders, optionally restricted to a status set"""
    query = select(func.count(OrderRow.id))
    if statuses is not None:
        query = query.where(OrderRow.status.in_(list(statuses)))
    result = await session.execute(query)
    return result.scalar() or 0


async def count_profiles_since(session: AsyncSession, since: datetime) -> int:
    """Count customer profiles created at or after `since`"""
    result = await session.execute(
        select(func.count(ProfileRow.id)).where(ProfileRow.created_at >= since)
    )
    return result.scalar() or 0


async def begin_consistent_read(session: AsyncSession) -> None:
    """
    Pin the session's following reads to one REPEATABLE READ transaction.

    Only applies on Postgres and only before the session has started a
    transaction; SQLite serialises access on its own.
    """
    bind = session.bind
    if bind is not None and bind.dialect.name == "postgresql" and not session.in_transaction():
        await session.connection(execution_options={"isolation_level": "REPEATABLE READ"})


async def load_stock_snapshot(session: AsyncSession) -> Tuple[List[Product], List[StockMovement]]:
    """Products and stock movements read from the same snapshot"""
    await begin_consistent_read(session)
    products = await fetch_products(session)
    movements = await fetch_stock_movements(session)
    return products, movements


async def load_snapshot(session: AsyncSession) -> ReportSnapshot:
    """
    Read orders, products and stock movements as one consistent snapshot.

    A write landing between the queries is not half-observed. Call on a
    session that has not started a transaction yet.
    """
    await begin_consistent_read(session)
    orders = await fetch_orders(session)
    products, movements = await load_stock_snapshot(session)

    logger.debug(
        "Snapshot loaded",
        orders=len(orders),
        products=len(products),
        stock_movements=len(movements),
    )

    return ReportSnapshot(
        orders=tuple(orders),
        products=tuple(products),
        stock_movements=tuple(movements),
        captured_at=datetime.now(timezone.utc),
    )
