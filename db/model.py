# db/model.py

from sqlalchemy import JSON, Column, DateTime, Index, Integer, Numeric, Text, func, text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base

Base = declarative_base()

# JSONB on Postgres, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")


class BillingEntry(Base):
    __tablename__ = "billing_entries"
    __table_args__ = (
        Index("idx_billing_cat_year_month", "category", "year", "month"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    category = Column(Text, nullable=False)
    year = Column(Integer, nullable=False)
    month = Column(Integer, nullable=False)
    department = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2, asdecimal=False), nullable=False, server_default=text("0"))
    data = Column(JSONType, nullable=False, server_default=text("'{}'"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())


class AppSettings(Base):
    """Report sign-off metadata. Exactly one row, id 1."""

    __tablename__ = "app_settings"

    id = Column(Integer, primary_key=True, autoincrement=False, default=1)
    prepared_by = Column(Text, server_default=text("''"))
    prepared_title = Column(Text, server_default=text("''"))
    checked_by = Column(Text, server_default=text("''"))
    checked_title = Column(Text, server_default=text("''"))
    updated_at = Column(DateTime(timezone=True), server_default=func.now())


SETTINGS_ROW_ID = 1
