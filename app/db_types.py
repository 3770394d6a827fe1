"""Database-agnostic type definitions for SQLAlchemy models.

This module provides type definitions that work with both SQLite and PostgreSQL.
"""
from decimal import Decimal

from sqlalchemy import Numeric, Uuid

# Native UUID on PostgreSQL, CHAR(32) on SQLite
UUIDType = Uuid

# Money columns: 12 digits, 2 decimal places
MoneyType = Numeric(12, 2, asdecimal=True)

# Percentage rates (0.00 - 100.00)
RateType = Numeric(5, 2, asdecimal=True)

# Quantities allow fractional units (e.g. 1.5 hours)
QuantityType = Numeric(12, 3, asdecimal=True)

ZERO = Decimal("0.00")
