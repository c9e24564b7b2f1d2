"""
Low-Stock Derivation

Resolves each product's live stock from the stock-movement feed and flags
products at or below their minimum stock level.
"""

from typing import Dict, Iterable, List, Optional, Tuple

import structlog

from scr_agro.reporting.models import (
    AlertSeverity,
    MovementLike,
    ProductLike,
    StockAlert,
    StockMovement,
    as_movements,
    as_products,
)
from scr_agro.reporting.timeutils import sort_key

logger = structlog.get_logger(__name__)

DEFAULT_MIN_STOCK_LEVEL = 10
OUT_OF_STOCK_MESSAGE = "Out of stock"


def latest_movements(movements: Iterable[MovementLike]) -> Dict[str, StockMovement]:
    """
    Latest movement per product.

    The feed is folded without assuming any delivery order; on equal
    timestamps the record seen later in the feed wins. Movements without a
    timestamp are ignored.
    """
    latest: Dict[str, Tuple[float, StockMovement]] = {}
    for movement in as_movements(movements):
        if movement.created_at is None:
            continue
        key = sort_key(movement.created_at)
        current = latest.get(movement.product_id)
        if current is None or key >= current[0]:
            latest[movement.product_id] = (key, movement)
    return {product_id: movement for product_id, (_, movement) in latest.items()}


def resolve_actual_stock(
    products: Iterable[ProductLike],
    movements: Iterable[MovementLike],
) -> Dict[str, int]:
    """
    Live stock per product id.

    Uses the quantity of the latest movement for the product, falling back to
    the product's stored stock quantity when it has no movement.
    """
    latest = latest_movements(movements)
    actual: Dict[str, int] = {}
    for product in as_products(products):
        movement = latest.get(product.id)
        actual[product.id] = movement.new_quantity if movement is not None else product.stock_quantity
    return actual


def classify_stock(actual_stock: int, min_stock_level: int) -> Optional[AlertSeverity]:
    """Severity for a stock level, or None when the product is not low on stock"""
    if actual_stock > min_stock_level:
        return None
    if actual_stock == 0:
        return AlertSeverity.CRITICAL
    return AlertSeverity.WARNING


def stock_message(actual_stock: int, min_stock_level: int) -> str:
    if actual_stock == 0:
        return OUT_OF_STOCK_MESSAGE
    return f"Stock is {actual_stock} (min {min_stock_level})"


def derive_low_stock_alerts(
    products: Iterable[ProductLike],
    movements: Iterable[MovementLike],
    limit: Optional[int] = None,
    default_min_stock_level: int = DEFAULT_MIN_STOCK_LEVEL,
) -> List[StockAlert]:
    """
    Low-stock alerts in product feed order.

    Args:
        products: Product snapshot
        movements: Stock-movement snapshot
        limit: Keep only the first `limit` alerts
        default_min_stock_level: Threshold for products without one

    Returns:
        One alert per product whose live stock is at or below its minimum
    """
    product_list = as_products(products)
    actual = resolve_actual_stock(product_list, movements)

    alerts: List[StockAlert] = []
    for product in product_list:
        min_level = product.min_stock_level
        if min_level is None:
            min_level = default_min_stock_level
        stock = actual[product.id]

        severity = classify_stock(stock, min_level)
        if severity is None:
            continue

        alerts.append(
            StockAlert(
                product_id=product.id,
                title=product.title,
                message=stock_message(stock, min_level),
                severity=severity,
                actual_stock=stock,
                min_stock_level=min_level,
            )
        )

    logger.debug("Low stock derived", products=len(product_list), alerts=len(alerts))

    if limit is not None:
        return alerts[:limit]
    return alerts
