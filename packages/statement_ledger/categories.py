"""Category reference data and name -> id lookups."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from db.models.ledger import Category

from .categorizer import CategoryIdResolver
from .logging_setup import get_logger
from .persistence import insert_for

logger = get_logger("statement_ledger.categories")

# Names match the categorizer's rule tables; "Other" is for manual use only.
DEFAULT_CATEGORIES: tuple[tuple[str, str], ...] = (
    ("Groceries", "Supermarkets and grocery stores"),
    ("Restaurants", "Restaurants, cafes, and food delivery"),
    ("Transportation", "Public transport, taxis, fuel"),
    ("Shopping", "Clothing, electronics, and general shopping"),
    ("Entertainment", "Movies, games, subscriptions"),
    ("Healthcare", "Medical expenses, pharmacies"),
    ("Utilities", "Electricity, water, internet, phone bills"),
    ("Travel", "Hotels, flights, travel agencies"),
    ("Education", "Courses, books, educational materials"),
    ("Sports", "Gyms, sports equipment, activities"),
    ("Home", "Furniture, home improvement, rent"),
    ("Beauty", "Salons, cosmetics, personal care"),
    ("Pets", "Pet food, vet services, pet supplies"),
    ("Gifts", "Gifts and donations"),
    ("Transfers", "Bank transfers and money transfers"),
    ("Cash", "Cash withdrawals and deposits"),
    ("Fees", "Bank fees and commissions"),
    ("Other", "Uncategorized transactions"),
)


def seed_default_categories(session: Session) -> int:
    """Insert any missing default categories; returns how many were added."""

    added = 0
    for name, description in DEFAULT_CATEGORIES:
        stmt = (
            insert_for(session, Category)
            .values(name=name, description=description)
            .on_conflict_do_nothing(index_elements=[Category.name])
        )
        added += session.execute(stmt).rowcount
    if added:
        logger.info("Seeded %d default categories", added)
    return added


def list_categories(session: Session) -> list[Category]:
    return list(session.scalars(select(Category).order_by(Category.name)))


def category_id_resolver(session: Session) -> CategoryIdResolver:
    """Return a memoized ``name -> id`` lookup bound to ``session``."""

    cache: dict[str, int | None] = {}

    def _resolve(name: str) -> int | None:
        if name not in cache:
            cache[name] = session.execute(
                select(Category.id).where(Category.name == name)
            ).scalar()
        return cache[name]

    return _resolve


__all__ = [
    "DEFAULT_CATEGORIES",
    "category_id_resolver",
    "list_categories",
    "seed_default_categories",
]
