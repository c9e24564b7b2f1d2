"""
Demo Data Generator

Generates reproducible agricultural store data for local development and
demos of the admin dashboard:
- Customer profiles
- Product catalog with low-stock thresholds
- Orders spread over the last three years
- Stock movements with running quantities
"""

import random
import uuid
from datetime import datetime, timedelta
from typing import List, Optional

import polars as pl
from faker import Faker

# =============================================================================
# CONFIGURATION
# =============================================================================

CATALOG = [
    ("Seeds", ["Paddy Seeds", "Wheat Seeds", "Maize Seeds", "Tomato Seeds", "Chilli Seeds"]),
    ("Fertilizers", ["Urea", "DAP", "Vermicompost", "Neem Cake", "Bio NPK"]),
    ("Produce", ["Organic Turmeric", "Jaggery", "Cold Pressed Groundnut Oil", "Millet Flour", "Raw Honey"]),
    ("Tools", ["Hand Weeder", "Pruning Shears", "Sprayer Pump", "Drip Kit", "Garden Hoe"]),
]

PACK_SIZES = ["250 g", "500 g", "1 kg", "5 kg", "10 kg", "1 L", "5 L"]

ORDER_STATUSES = [
    ("pending", 0.08),
    ("pending_payment", 0.04),
    ("processing", 0.08),
    ("paid", 0.15),
    ("shipped", 0.15),
    ("delivered", 0.35),
    ("completed", 0.10),
    ("cancelled", 0.05),
]

MOVEMENT_REASONS = ["restock", "sale", "adjustment", "return"]


class DemoDataGenerator:
    """
    Generate a consistent demo dataset.

    Example:
        generator = DemoDataGenerator(seed=42)
        products = generator.products(40)
        movements = generator.stock_movements(products)
    """

    def __init__(self, seed: int = 42, now: Optional[datetime] = None, locale: str = "en_IN"):
        self.random = random.Random(seed)
        self.fake = Faker(locale)
        self.fake.seed_instance(seed)
        self.now = now or datetime.now()

    def _uuid(self) -> str:
        return str(uuid.UUID(int=self.random.getrandbits(128), version=4))

    def _between(self, start: datetime, end: datetime) -> datetime:
        span = max((end - start).total_seconds(), 1)
        return start + timedelta(seconds=self.random.uniform(0, span))

    def profiles(self, n: int = 200) -> pl.DataFrame:
        """Generate n customer profiles, a few of them registered this week"""
        rows = []
        for _ in range(n):
            rows.append({
                "id": self._uuid(),
                "name": self.fake.name(),
                "email": self.fake.unique.email(),
                "created_at": self._between(self.now - timedelta(days=3 * 365), self.now),
            })
        return pl.DataFrame(rows)

    def products(self, n: int = 40) -> pl.DataFrame:
        """Generate n catalog products with stored stock and thresholds"""
        rows = []
        for _ in range(n):
            _, items = self.random.choice(CATALOG)
            min_level = self.random.choice([5, 10, 10, 15, 20])
            rows.append({
                "id": self._uuid(),
                "title": f"{self.random.choice(items)} {self.random.choice(PACK_SIZES)}",
                "stock_quantity": self.random.randint(0, 120),
                "min_stock_level": min_level,
                "created_at": self._between(self.now - timedelta(days=2 * 365), self.now),
            })
        return pl.DataFrame(rows)

    def orders(self, profiles: pl.DataFrame, n: int = 1500, years: int = 3) -> pl.DataFrame:
        """Generate n orders spread over the last `years` calendar years"""
        user_ids: List[str] = profiles["id"].to_list()
        start = datetime(self.now.year - years + 1, 1, 1)
        statuses = [s for s, _ in ORDER_STATUSES]
        weights = [w for _, w in ORDER_STATUSES]

        rows = []
        for index in range(n):
            created_at = self._between(start, self.now)
            status = self.random.choices(statuses, weights=weights)[0]
            cancelled_at = None
            if status == "cancelled":
                cancelled_at = created_at + timedelta(hours=self.random.randint(1, 48))
            rows.append({
                "id": self._uuid(),
                "order_number": f"SCR-{created_at:%Y%m}-{index + 1:05d}",
                "user_id": self.random.choice(user_ids) if user_ids else None,
                "status": status,
                "total": round(self.random.uniform(120, 4500), 2),
                "created_at": created_at,
                "cancelled_at": cancelled_at,
            })
        return pl.DataFrame(rows, schema_overrides={"cancelled_at": pl.Datetime})

    def stock_movements(self, products: pl.DataFrame, max_per_product: int = 6) -> pl.DataFrame:
        """
        Generate stock movements per product.

        Each movement records the product's quantity after it was applied, so
        the last movement of a product carries its live stock.
        """
        rows = []
        for product in products.to_dicts():
            quantity = product["stock_quantity"]
            moment = product["created_at"]
            for _ in range(self.random.randint(0, max_per_product)):
                reason = self.random.choice(MOVEMENT_REASONS)
                if reason == "restock":
                    quantity += self.random.randint(10, 80)
                elif reason == "sale":
                    quantity = max(0, quantity - self.random.randint(1, 25))
                else:
                    quantity = max(0, quantity + self.random.randint(-5, 5))
                moment = self._between(moment, self.now)
                rows.append({
                    "id": self._uuid(),
                    "product_id": product["id"],
                    "new_quantity": quantity,
                    "created_at": moment,
                })
        return pl.DataFrame(
            rows,
            schema={"id": pl.Utf8, "product_id": pl.Utf8, "new_quantity": pl.Int64, "created_at": pl.Datetime},
        )
