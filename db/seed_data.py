# db/seed_data.py
#
# Load billing entries from a CSV file:
#     python -m db.seed_data entries.csv
#
# Expected columns: category, year, month, department, amount, and an
# optional data column holding a JSON object per row.

import json
import logging
import sys
from typing import Any, Dict, List, Optional

import pandas as pd
from sqlalchemy import insert
from sqlalchemy.engine import Engine

from config import configure_logging, get_settings
from db.database import create_db_engine, ensure_schema
from db.model import BillingEntry
from utils.money import parse_amount

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["category", "year", "month", "department", "amount"]


def _parse_data(value: Any) -> Any:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return {}
    text = str(value).strip()
    return json.loads(text) if text else {}


def load_rows(df: pd.DataFrame) -> List[Dict[str, Any]]:
    """Turn a CSV frame into insertable entry rows."""
    df = df.rename(columns=lambda c: str(c).strip().lower())
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"CSV is missing columns: {', '.join(missing)}")

    data = df["data"] if "data" in df.columns else pd.Series([None] * len(df), index=df.index)

    rows = []
    for idx, row in df.iterrows():
        rows.append({
            "category": str(row["category"]).strip(),
            "year": int(row["year"]),
            "month": int(row["month"]),
            "department": str(row["department"]).strip(),
            "amount": parse_amount(row["amount"]),
            "data": _parse_data(data[idx]),
        })
    return rows


def seed_from_csv(path: str, engine: Optional[Engine] = None) -> int:
    """Insert every row of ``path`` and return how many were inserted."""
    engine = engine or create_db_engine()
    ensure_schema(engine)

    rows = load_rows(pd.read_csv(path))
    if not rows:
        return 0

    with engine.begin() as conn:
        conn.execute(insert(BillingEntry.__table__), rows)

    logger.info(f"Seeded {len(rows)} billing entries from {path}")
    return len(rows)


if __name__ == "__main__":
    configure_logging(get_settings())
    if len(sys.argv) != 2:
        print("usage: python -m db.seed_data <entries.csv>")
        sys.exit(2)
    count = seed_from_csv(sys.argv[1])
    print(f"✅ Seeded {count} billing entries")
