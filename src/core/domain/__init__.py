"""
Domain models and value objects.

Contains fundamental domain entities: LineItem, Tax, Expense, Shipment, Totals.
"""

from src.core.domain.expense import CurrencySide, Expense
from src.core.domain.line_item import LineItem
from src.core.domain.shipment import SCHEMA_VERSION, SHIPMENT_FIELDS, Shipment
from src.core.domain.tax import Tax
from src.core.domain.totals import ExpenseLine, ItemCost, TaxLine, Totals

__all__ = [
    # Line items
    "LineItem",
    # Taxes
    "Tax",
    # Expenses
    "Expense",
    "CurrencySide",
    # Shipment record
    "Shipment",
    "SCHEMA_VERSION",
    "SHIPMENT_FIELDS",
    # Totals
    "Totals",
    "TaxLine",
    "ExpenseLine",
    "ItemCost",
]
