"""
Reporting Data Models

Input records are read-only snapshots of backend rows, parsed leniently with
Pydantic so that malformed fields degrade to documented defaults instead of
failing a whole report. Output records are frozen dataclasses that serialise
to plain dictionaries for the rendering layer.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from scr_agro.reporting.timeutils import parse_timestamp


# =============================================================================
# ENUMERATIONS
# =============================================================================

class BucketPolicy(str, Enum):
    """Time-bucketing policy for the revenue trend"""
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    HALF_YEARLY = "half-yearly"
    YEARLY = "yearly"


class AlertSeverity(str, Enum):
    """Alert severity levels"""
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"


class AlertType(str, Enum):
    """Alert feed entry types"""
    LOW_STOCK = "low_stock"
    PENDING_ORDER = "pending_order"


# =============================================================================
# INPUT RECORDS
# =============================================================================

def _to_float(value: Any) -> float:
    if value is None:
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _to_int(value: Any) -> int:
    if value is None:
        return 0
    try:
        return int(float(value))
    except (TypeError, ValueError):
        return 0


def _to_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


class _Record(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")


class Order(_Record):
    """One customer purchase as read from the orders table"""
    id: Optional[str] = None
    order_number: Optional[str] = Field(default=None, alias="orderNumber")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    status: str = "unknown"
    total: float = 0.0
    cancelled_at: Optional[datetime] = Field(default=None, alias="cancelledAt")

    @field_validator("id", "order_number", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Optional[str]:
        return _to_id(v)

    @field_validator("created_at", "cancelled_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: Any) -> Optional[datetime]:
        return parse_timestamp(v)

    @field_validator("status", mode="before")
    @classmethod
    def _coerce_status(cls, v: Any) -> str:
        if v is None or v == "":
            return "unknown"
        return str(v)

    @field_validator("total", mode="before")
    @classmethod
    def _coerce_total(cls, v: Any) -> float:
        return _to_float(v)


class Product(_Record):
    """Product row carrying its stored stock level and low-stock threshold"""
    id: str = Field(alias="productId")
    title: str = ""
    stock_quantity: int = Field(default=0, alias="stockQuantity")
    min_stock_level: Optional[int] = Field(default=None, alias="minStockLevel")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Optional[str]:
        return _to_id(v)

    @field_validator("title", mode="before")
    @classmethod
    def _coerce_title(cls, v: Any) -> str:
        return "" if v is None else str(v)

    @field_validator("stock_quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, v: Any) -> int:
        return _to_int(v)

    @field_validator("min_stock_level", mode="before")
    @classmethod
    def _coerce_min_level(cls, v: Any) -> Optional[int]:
        if v is None:
            return None
        return _to_int(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: Any) -> Optional[datetime]:
        return parse_timestamp(v)


class StockMovement(_Record):
    """Stock movement row; new_quantity is the product's stock after the movement"""
    product_id: str = Field(alias="productId")
    new_quantity: int = Field(default=0, alias="newQuantity")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    @field_validator("product_id", mode="before")
    @classmethod
    def _coerce_id(cls, v: Any) -> Optional[str]:
        return _to_id(v)

    @field_validator("new_quantity", mode="before")
    @classmethod
    def _coerce_quantity(cls, v: Any) -> int:
        return _to_int(v)

    @field_validator("created_at", mode="before")
    @classmethod
    def _coerce_timestamp(cls, v: Any) -> Optional[datetime]:
        return parse_timestamp(v)


OrderLike = Union[Order, Mapping[str, Any]]
ProductLike = Union[Product, Mapping[str, Any]]
MovementLike = Union[StockMovement, Mapping[str, Any]]


def as_orders(records: Iterable[OrderLike]) -> List[Order]:
    """Coerce raw rows into Order records, passing existing records through"""
    return [r if isinstance(r, Order) else Order.model_validate(r) for r in records]


def as_products(records: Iterable[ProductLike]) -> List[Product]:
    return [r if isinstance(r, Product) else Product.model_validate(r) for r in records]


def as_movements(records: Iterable[MovementLike]) -> List[StockMovement]:
    return [r if isinstance(r, StockMovement) else StockMovement.model_validate(r) for r in records]


@dataclass(frozen=True)
class ReportSnapshot:
    """
    Point-in-time materialization of the backend feeds.

    All three collections are captured together by the data collaborator;
    the engine reads a single snapshot per invocation.
    """
    orders: tuple = ()
    products: tuple = ()
    stock_movements: tuple = ()
    captured_at: Optional[datetime] = None

    @classmethod
    def from_records(
        cls,
        orders: Iterable[OrderLike] = (),
        products: Iterable[ProductLike] = (),
        stock_movements: Iterable[MovementLike] = (),
        captured_at: Optional[datetime] = None,
    ) -> "ReportSnapshot":
        return cls(
            orders=tuple(as_orders(orders)),
            products=tuple(as_products(products)),
            stock_movements=tuple(as_movements(stock_movements)),
            captured_at=captured_at,
        )


# =============================================================================
# OUTPUT RECORDS
# =============================================================================

class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class TimeBucket(_Serializable):
    """Revenue summed over one fixed time window"""
    label: str
    value: float = 0.0


@dataclass(frozen=True)
class OrderStats(_Serializable):
    """Summary statistics over a full order list"""
    total_orders: int
    total_revenue: float
    average_order_value: float
    status_counts: Dict[str, int] = field(default_factory=dict)
    delivered_orders_count: int = 0


@dataclass(frozen=True)
class StockAlert(_Serializable):
    """Low-stock alert for one product"""
    product_id: str
    title: str
    message: str
    severity: AlertSeverity
    actual_stock: int
    min_stock_level: int

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["severity"] = self.severity.value
        return data


@dataclass(frozen=True)
class TrendChart(_Serializable):
    """Line chart payload with the peak point highlighted"""
    title: str
    dataset_label: str
    labels: List[str]
    values: List[float]
    point_colors: List[str]
    point_radii: List[int]
    peak_index: Optional[int]


@dataclass(frozen=True)
class FeedAlert(_Serializable):
    """Entry of the combined alerts feed"""
    id: str
    type: AlertType
    title: str
    description: str
    severity: AlertSeverity
    timestamp: Optional[datetime]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "title": self.title,
            "description": self.description,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
        }


@dataclass(frozen=True)
class AlertSummary(_Serializable):
    """Alert counts by severity"""
    critical: int = 0
    warning: int = 0
    pending: int = 0
    total: int = 0


@dataclass(frozen=True)
class SalesReport:
    """Everything the analytics view renders for one snapshot and policy"""
    policy: BucketPolicy
    stats: OrderStats
    buckets: List[TimeBucket]
    chart: TrendChart
    peak_period: str
    peak_hour: Optional[int]
    low_stock: List[StockAlert]
    generated_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "policy": self.policy.value,
            "stats": self.stats.to_dict(),
            "buckets": [b.to_dict() for b in self.buckets],
            "chart": self.chart.to_dict(),
            "peak_period": self.peak_period,
            "peak_hour": self.peak_hour,
            "low_stock": [a.to_dict() for a in self.low_stock],
            "generated_at": self.generated_at.isoformat(),
        }
