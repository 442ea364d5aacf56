"""
Standard type definitions for database models.

Provides consistent types for rate, money and structured fields across all models.
"""

from sqlalchemy import DECIMAL, JSON
from sqlalchemy.dialects.postgresql import JSONB

# Whole-percent interest rates (e.g. 6.5000 means 6.5%)
# Precision: 7 digits total, 4 after decimal point
# Range: 0.0000 to 999.9999
RatePercentType = DECIMAL(7, 4)

# Dollar amounts for loan balances and closing costs
# Precision: 14 digits total, 2 after decimal point
MoneyType = DECIMAL(14, 2)

# Structured metrics snapshots; JSONB on PostgreSQL, plain JSON elsewhere
JSONType = JSON().with_variant(JSONB(), "postgresql")
