"""
Shipment — Модель отправки (единица персистентности)

Immutable Pydantic модель. Содержит ТОЛЬКО исходные поля:
- Параметры отправки (курс, FOB, фрахт, ставка страховки, политика rateio)
- Товарные позиции (items)
- Налоги (taxes)
- Дополнительные расходы (expenses)
- Метаданные симуляции (name, supplier, notes) — в расчётах не участвуют

Totals никогда не хранятся в Shipment: они всегда пересчитываются
(см. src.simulation.aggregation.recompute), в том числе после загрузки.

Shipment эксклюзивно владеет своими позициями, налогами и расходами.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.core.exceptions import InvalidInput
from src.core.math.allocation import DEFAULT_ALLOCATION_METHOD, AllocationMethod
from src.core.math.currency import validate_rate
from src.core.math.taxation import validate_shipment_inputs

from .expense import Expense
from .line_item import LineItem
from .tax import Tax

SCHEMA_VERSION = "1"

# Поля уровня отправки, которые можно редактировать
SHIPMENT_FIELDS = frozenset(
    {
        "exchange_rate",
        "fob_foreign",
        "freight_foreign",
        "insurance_rate",
        "allocation_method",
        "name",
        "supplier",
        "notes",
    }
)


def _ensure_unique_ids(values: list[Any], kind: str) -> None:
    seen: set[str] = set()
    for value in values:
        if value.id in seen:
            raise ValueError(f"duplicate {kind} id: {value.id!r}")
        seen.add(value.id)


class Shipment(BaseModel):
    """
    Отправка импорта (симуляция).

    Immutable модель (frozen=True). Все изменения создают новый экземпляр
    (см. ShipmentEditor).
    """

    # Метаданные
    schema_version: str = Field(
        default=SCHEMA_VERSION, pattern="^1$", description="Версия схемы записи"
    )
    name: str = Field(default="", description="Название симуляции")
    supplier: str = Field(default="", description="Поставщик")
    notes: str = Field(default="", description="Заметки")

    # Параметры отправки
    exchange_rate: float = Field(..., gt=0, description="Курс: local за 1 foreign")
    fob_foreign: float = Field(default=0.0, ge=0, description="Стоимость FOB (foreign)")
    freight_foreign: float = Field(
        default=0.0, ge=0, description="Международный фрахт (foreign)"
    )
    insurance_rate: float = Field(
        default=0.0, ge=0, le=1, description="Ставка страховки (фракция FOB, 0-1)"
    )
    allocation_method: AllocationMethod = Field(
        default=DEFAULT_ALLOCATION_METHOD, description="Политика веса rateio"
    )

    # Состав
    items: list[LineItem] = Field(default_factory=list, description="Товарные позиции")
    taxes: list[Tax] = Field(default_factory=list, description="Налоги")
    expenses: list[Expense] = Field(
        default_factory=list, description="Дополнительные расходы"
    )

    model_config = {"frozen": True}

    @field_validator("items")
    @classmethod
    def validate_unique_items(cls, v: list[LineItem]) -> list[LineItem]:
        _ensure_unique_ids(v, "item")
        return v

    @field_validator("taxes")
    @classmethod
    def validate_unique_taxes(cls, v: list[Tax]) -> list[Tax]:
        _ensure_unique_ids(v, "tax")
        return v

    @field_validator("expenses")
    @classmethod
    def validate_unique_expenses(cls, v: list[Expense]) -> list[Expense]:
        _ensure_unique_ids(v, "expense")
        return v

    @classmethod
    def from_input(cls, **data: Any) -> "Shipment":
        """
        Создание отправки с типизированной проверкой параметров.

        Raises:
            InvalidRate: Если курс <= 0
            InvalidInput: Если FOB/фрахт отрицательные или страховка вне [0, 1]
        """
        validate_rate(data.get("exchange_rate", 0.0))
        validate_shipment_inputs(
            data.get("fob_foreign", 0.0),
            data.get("freight_foreign", 0.0),
            data.get("insurance_rate", 0.0),
        )
        method = data.get("allocation_method", DEFAULT_ALLOCATION_METHOD)
        try:
            AllocationMethod(method)
        except ValueError:
            raise InvalidInput(f"Unknown allocation method: {method!r}")
        return cls(**data)

    # -------------------------------------------------------------------------
    # Lookup

    def find_item(self, item_id: str) -> LineItem:
        """
        Raises:
            InvalidInput: Если позиция не найдена
        """
        for item in self.items:
            if item.id == item_id:
                return item
        raise InvalidInput(f"Unknown line item id: {item_id!r}")

    def find_tax(self, tax_id: str) -> Tax:
        for tax in self.taxes:
            if tax.id == tax_id:
                return tax
        raise InvalidInput(f"Unknown tax id: {tax_id!r}")

    def find_expense(self, expense_id: str) -> Expense:
        for expense in self.expenses:
            if expense.id == expense_id:
                return expense
        raise InvalidInput(f"Unknown expense id: {expense_id!r}")
