"""Simulation — пересчёт, синхронизация расходов и поверхность изменений отправки.

- AggregationEngine / recompute: полный пересчёт Totals в порядке зависимостей
- ExpenseSynchronizer: пара foreign/local «последнее поле побеждает»
- ShipmentEditor: атомарные операции add/update/remove
- Persistence & export: запись отправки и отчёт
"""

from .aggregation import AggregationEngine, RecomputeConfig, recompute
from .editor import ShipmentEditor
from .expense_sync import ExpenseSynchronizer, edit_expense_foreign, edit_expense_local
from .report import build_report, dump_shipment, load_and_recompute, load_shipment

__all__ = [
    "AggregationEngine",
    "RecomputeConfig",
    "recompute",
    "ShipmentEditor",
    "ExpenseSynchronizer",
    "edit_expense_foreign",
    "edit_expense_local",
    "build_report",
    "dump_shipment",
    "load_and_recompute",
    "load_shipment",
]
