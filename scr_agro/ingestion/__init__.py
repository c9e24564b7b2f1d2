"""
Ingestion Module
"""
from .seed_db import execute_batch_insert, seed_demo_data

__all__ = [
    "execute_batch_insert",
    "seed_demo_data",
]
