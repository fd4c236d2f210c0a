#!/usr/bin/env python
# backend/servicebay/commands/seed.py
"""
Seed the catalog and loyalty rewards for a fresh installation.

Usage:
    python -m servicebay.commands.seed          # Create tables and seed an empty catalog
    python -m servicebay.commands.seed --check  # Report what is there, change nothing

Each table is seeded only while it is empty, so running this twice is safe.
"""

import argparse
from datetime import time
from decimal import Decimal
import logging
import sys
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from servicebay.database import SessionLocal, init_db
from servicebay.models import LoyaltyReward, Post, Service

# Configure logging
logging.basicConfig(
    level=logging.INFO, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

SEED_SERVICES: List[Dict[str, Any]] = [
    {
        "id": "1",
        "name": "Interior dry cleaning",
        "description": "Deep cleaning of seats, carpets and headliner",
        "price": Decimal("5000"),
        "duration_minutes": 180,
        "category": "Detailing",
    },
    {
        "id": "2",
        "name": "Body wash",
        "description": "Contact wash with active foam",
        "price": Decimal("800"),
        "duration_minutes": 30,
        "category": "Auto services",
    },
    {
        "id": "3",
        "name": "Polishing",
        "description": "Restorative body polishing",
        "price": Decimal("8000"),
        "duration_minutes": 240,
        "category": "Detailing",
    },
    {
        "id": "4",
        "name": "Headlight polishing",
        "description": "Restores headlight clarity",
        "price": Decimal("1500"),
        "duration_minutes": 45,
        "category": "Detailing",
    },
    {
        "id": "5",
        "name": "Wheel cleaning",
        "description": "Rims and tyres, brake dust removal",
        "price": Decimal("2000"),
        "duration_minutes": 60,
        "category": "Auto services",
    },
]

SEED_POSTS: List[Dict[str, Any]] = [
    {"id": "post_1", "name": "Post 1", "start_time": time(9, 0), "end_time": time(18, 0), "interval_minutes": 30},
    {"id": "post_2", "name": "Post 2", "start_time": time(9, 0), "end_time": time(18, 0), "interval_minutes": 30},
]

SEED_REWARDS: List[Dict[str, Any]] = [
    {"id": "r1", "name": "10% discount", "description": "On any service", "points_cost": 50, "sort_order": 1},
    {"id": "r2", "name": "Free body wash", "description": "One body wash", "points_cost": 100, "sort_order": 2},
    {"id": "r3", "name": "Tea/coffee", "description": "While you wait", "points_cost": 20, "sort_order": 3},
]


def seed(db: Session) -> Dict[str, int]:
    """Insert seed rows into empty tables; returns how many rows were added per table."""
    added = {"services": 0, "posts": 0, "rewards": 0}
    for key, model, rows in (
        ("services", Service, SEED_SERVICES),
        ("posts", Post, SEED_POSTS),
        ("rewards", LoyaltyReward, SEED_REWARDS),
    ):
        if db.query(model).count():
            logger.info(f"{key}: already populated, skipping")
            continue
        for row in rows:
            db.add(model(**row))
        added[key] = len(rows)
    db.commit()
    return added


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Seed the servicebay catalog")
    parser.add_argument("--check", action="store_true", help="Only report current row counts")
    args = parser.parse_args(argv)

    init_db()
    db = SessionLocal()
    try:
        if args.check:
            for name, model in (("services", Service), ("posts", Post), ("rewards", LoyaltyReward)):
                logger.info(f"{name}: {db.query(model).count()} rows")
            return 0
        added = seed(db)
        logger.info(f"Seed complete: {added}")
        return 0
    except Exception:
        db.rollback()
        logger.exception("Seeding failed")
        return 1
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
