"""
Billing ledger queries.

Every function runs exactly one statement on its own connection, so each
call is atomic on its own and nothing spans requests.
"""
import logging
from typing import Any, Dict, List

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.engine import Engine

from db.model import AppSettings, BillingEntry, SETTINGS_ROW_ID

logger = logging.getLogger(__name__)

entries = BillingEntry.__table__
app_settings = AppSettings.__table__

# Columns returned to clients for an entry row
ENTRY_COLUMNS = (
    entries.c.id,
    entries.c.category,
    entries.c.year,
    entries.c.month,
    entries.c.department,
    entries.c.amount,
    entries.c.data,
)


def _fetch_all(engine: Engine, stmt) -> List[Dict[str, Any]]:
    with engine.connect() as conn:
        return [dict(row) for row in conn.execute(stmt).mappings()]


def get_entries(engine: Engine, category: str, year: int, month: int) -> List[Dict[str, Any]]:
    """Entries for one category and period, ordered by department then id."""
    stmt = (
        select(*ENTRY_COLUMNS)
        .where(
            entries.c.category == category,
            entries.c.year == year,
            entries.c.month == month,
        )
        .order_by(entries.c.department, entries.c.id)
    )
    return _fetch_all(engine, stmt)


def get_entries_for_year(engine: Engine, category: str, year: int) -> List[Dict[str, Any]]:
    """All months of a category/year, for the printable yearly report."""
    stmt = (
        select(*ENTRY_COLUMNS)
        .where(entries.c.category == category, entries.c.year == year)
        .order_by(entries.c.month, entries.c.department, entries.c.id)
    )
    return _fetch_all(engine, stmt)


def get_yearly_totals(engine: Engine, year: int) -> Dict[str, float]:
    """Map each category with entries in ``year`` to its summed amount."""
    stmt = (
        select(entries.c.category, func.sum(entries.c.amount).label("total"))
        .where(entries.c.year == year)
        .group_by(entries.c.category)
    )
    return {row["category"]: float(row["total"] or 0) for row in _fetch_all(engine, stmt)}


def create_entry(
    engine: Engine,
    category: str,
    year: int,
    month: int,
    department: str,
    amount: float,
    data: Any,
) -> int:
    """Insert an entry and return its generated id."""
    stmt = insert(entries).values(
        category=category,
        year=year,
        month=month,
        department=department,
        amount=amount,
        data=data,
    )
    with engine.begin() as conn:
        result = conn.execute(stmt)
        new_id = result.inserted_primary_key[0]
    logger.info(f"Created billing entry {new_id} ({category} {year}-{month:02d}, {department})")
    return new_id


def update_entry(
    engine: Engine,
    entry_id: int,
    amount: float,
    data: Any,
    department: str,
    year: int,
    month: int,
) -> int:
    """
    Overwrite the mutable fields of an entry. The category never changes.

    Returns the number of rows touched; an unknown id touches none and is
    not treated as an error.
    """
    stmt = (
        update(entries)
        .where(entries.c.id == entry_id)
        .values(
            amount=amount,
            data=data,
            department=department,
            year=year,
            month=month,
            updated_at=func.now(),
        )
    )
    with engine.begin() as conn:
        rowcount = conn.execute(stmt).rowcount
    if not rowcount:
        logger.debug(f"Update matched no billing entry with id {entry_id}")
    return rowcount


def delete_entry(engine: Engine, entry_id: int) -> int:
    with engine.begin() as conn:
        rowcount = conn.execute(delete(entries).where(entries.c.id == entry_id)).rowcount
    if not rowcount:
        logger.debug(f"Delete matched no billing entry with id {entry_id}")
    return rowcount


def get_settings_row(engine: Engine) -> Dict[str, Any]:
    stmt = select(app_settings).where(app_settings.c.id == SETTINGS_ROW_ID)
    rows = _fetch_all(engine, stmt)
    return rows[0] if rows else {}


def save_settings(
    engine: Engine,
    prepared_by: str,
    prepared_title: str,
    checked_by: str,
    checked_title: str,
) -> None:
    """Overwrite all four sign-off fields of the singleton row."""
    stmt = (
        update(app_settings)
        .where(app_settings.c.id == SETTINGS_ROW_ID)
        .values(
            prepared_by=prepared_by,
            prepared_title=prepared_title,
            checked_by=checked_by,
            checked_title=checked_title,
            updated_at=func.now(),
        )
    )
    with engine.begin() as conn:
        conn.execute(stmt)


def ping(engine: Engine) -> None:
    with engine.connect() as conn:
        conn.execute(select(1))
