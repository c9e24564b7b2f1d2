"""
Demo Database Seeding

Loads generated demo data into the backend tables and installs the change
triggers the dashboard refresher listens to.

Usage:
    python -m scr_agro.ingestion.seed_db
"""

import asyncio
from typing import Any, Dict, List

import structlog
from sqlalchemy import insert

from scr_agro.config import get_settings
from scr_agro.config.logging import configure_logging
from scr_agro.data.generators import DemoDataGenerator
from scr_agro.database.connection import close_database, get_db, get_engine, init_database
from scr_agro.database.models import Base, OrderRow, ProductRow, ProfileRow, StockMovementRow
from scr_agro.database.notifications import install_change_triggers

logger = structlog.get_logger(__name__)

CHUNK_SIZE = 1000


async def execute_batch_insert(model: Any, records: List[Dict[str, Any]]) -> int:
    """Insert records in chunks using Core insert"""
    if not records:
        return 0

    async with get_db() as db:
        for i in range(0, len(records), CHUNK_SIZE):
            chunk = records[i:i + CHUNK_SIZE]
            await db.execute(insert(model), chunk)

    logger.info("Inserted records", table=model.__tablename__, count=len(records))
    return len(records)


async def seed_demo_data(generator: DemoDataGenerator, products: int = 40, orders: int = 1500) -> Dict[str, int]:
    """
    Generate and insert a demo dataset.

    Returns:
        Inserted row count per table
    """
    profiles_df = generator.profiles()
    products_df = generator.products(products)
    orders_df = generator.orders(profiles_df, n=orders)
    movements_df = generator.stock_movements(products_df)

    counts = {}
    counts["profiles"] = await execute_batch_insert(ProfileRow, profiles_df.to_dicts())
    counts["products"] = await execute_batch_insert(ProductRow, products_df.to_dicts())
    counts["orders"] = await execute_batch_insert(OrderRow, orders_df.to_dicts())
    counts["stock_movements"] = await execute_batch_insert(StockMovementRow, movements_df.to_dicts())
    return counts


async def main() -> None:
    configure_logging()
    settings = get_settings()

    logger.info("Starting database seeding...")
    await init_database()

    try:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
            await install_change_triggers(conn, settings.realtime.tables, settings.realtime.channel)

        counts = await seed_demo_data(DemoDataGenerator())
        logger.info("Database seeding completed", **counts)
    except Exception as e:
        logger.error("Seeding failed", error=str(e))
        raise
    finally:
        await close_database()


def cli() -> None:
    """Console entry point."""
    asyncio.run(main())


if __name__ == "__main__":
    cli()
