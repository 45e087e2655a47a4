"""
Database models.
Import all models here to ensure they're registered with Base.
"""

from fx_catalog.models.currency import Currency
from fx_catalog.models.rate import Rate

__all__ = [
    "Currency",
    "Rate",
]
