"""ShipmentEditor — поверхность изменений отправки для форм и персистентности.

Каждая операция (add/update/remove позиций, налогов, расходов; правка
параметров отправки) строит новую отправку-кандидата и выполняет полный
recompute.

Фиксация:
- Невалидный вход (InvalidQuantity, InvalidRate, ...) отклоняется до любых
  изменений: отправка и Totals остаются прежними.
- Валидная правка фиксируется в отправке всегда. Если recompute после неё
  не удался (DivisionByZero, ...), ошибка пробрасывается вызывающему, а
  последние успешные Totals сохраняются без изменений в last_totals, но
  помечаются устаревшими: totals бросает InconsistentState до следующего
  успешного recompute. Итоговая отправка не зависит от порядка правок.

Потоки: редактор не содержит блокировок. Вызывающий обязан сериализовать
изменения одной отправки (один писатель на Shipment).
"""

import logging
import uuid
from typing import Any

from src.core.domain.expense import Expense
from src.core.domain.line_item import LineItem
from src.core.domain.shipment import SHIPMENT_FIELDS, Shipment
from src.core.domain.tax import Tax
from src.core.domain.totals import Totals
from src.core.exceptions import InconsistentState, InvalidInput, LandedCostError
from src.simulation.aggregation import AggregationEngine, RecomputeConfig
from src.simulation.expense_sync import ExpenseSynchronizer

logger = logging.getLogger(__name__)

# Редактируемые поля сущностей (id не редактируется)
LINE_ITEM_FIELDS = frozenset(LineItem.model_fields) - {"id"}
TAX_FIELDS = frozenset(Tax.model_fields) - {"id"}
EXPENSE_FIELDS = frozenset({"name", "value_foreign", "value_local"})


def _new_id() -> str:
    return uuid.uuid4().hex[:12]


def _ensure_new_id(entries: list[Any], entity_id: str, kind: str) -> None:
    if any(entry.id == entity_id for entry in entries):
        raise InvalidInput(f"Duplicate {kind} id: {entity_id!r}")


def _replace(entries: list[Any], entity_id: str, new: Any) -> list[Any]:
    return [new if entry.id == entity_id else entry for entry in entries]


def _without(entries: list[Any], entity_id: str) -> list[Any]:
    return [entry for entry in entries if entry.id != entity_id]


class ShipmentEditor:
    """Единственный писатель одной отправки."""

    def __init__(self, shipment: Shipment, config: RecomputeConfig | None = None):
        """
        Args:
            shipment: исходная отправка (Totals ещё не рассчитаны)
            config: конфигурация пересчёта
        """
        self.engine = AggregationEngine(config)
        self.synchronizer = ExpenseSynchronizer(step=self.engine.config.money_step)
        self._shipment = shipment
        self._totals: Totals | None = None
        self._stale = False

    # -------------------------------------------------------------------------
    # State

    @property
    def shipment(self) -> Shipment:
        return self._shipment

    @property
    def totals(self) -> Totals:
        """Totals, соответствующие текущей отправке.

        Raises:
            InconsistentState: если recompute ещё ни разу не выполнялся успешно
                или последний recompute после правки не удался
        """
        if self._totals is None:
            raise InconsistentState("Totals read before any successful recompute")
        if self._stale:
            raise InconsistentState("Totals are stale: the last recompute failed")
        return self._totals

    @property
    def last_totals(self) -> Totals | None:
        """Totals последнего успешного пересчёта (могут быть устаревшими)."""
        return self._totals

    @property
    def has_totals(self) -> bool:
        return self._totals is not None and not self._stale

    @property
    def is_stale(self) -> bool:
        return self._stale

    def recompute(self) -> Totals:
        """Пересчёт текущей отправки без изменений."""
        return self._commit(self._shipment, "recompute", None)

    def load(self, shipment: Shipment) -> Totals:
        """Замена отправки целиком (например, после загрузки из хранилища)."""
        return self._commit(shipment, "load", None)

    def _commit(self, candidate: Shipment, operation: str, entity_id: str | None) -> Totals:
        self._shipment = candidate
        try:
            totals = self.engine.recompute(candidate)
        except LandedCostError as e:
            self._stale = True
            logger.warning(
                "%s(%s) committed, totals stale: %s: %s",
                operation, entity_id or "", type(e).__name__, e,
            )
            raise

        self._totals = totals
        self._stale = False
        logger.info("%s(%s) committed", operation, entity_id or "")
        return totals

    def _with(self, **update: Any) -> Shipment:
        data = self._shipment.model_dump()
        data.update(update)
        return Shipment.model_validate(data)

    # -------------------------------------------------------------------------
    # Shipment parameters

    def update_shipment(self, field: str, value: Any) -> Totals:
        """Правка параметра отправки (курс, FOB, фрахт, страховка, rateio, метаданные).

        Смена курса пересинхронизирует все расходы от их авторитетной стороны.
        """
        if field not in SHIPMENT_FIELDS:
            raise InvalidInput(f"Unknown shipment field: {field!r}")

        data = self._shipment.model_dump(exclude={"items", "taxes", "expenses"})
        data[field] = value
        Shipment.from_input(**data)

        update: dict[str, Any] = {field: value}
        if field == "exchange_rate":
            update["expenses"] = [
                self.synchronizer.resync(e, value).model_dump() for e in self._shipment.expenses
            ]
        return self._commit(self._with(**update), "update_shipment", field)

    # -------------------------------------------------------------------------
    # Line items

    def add_line_item(self, **fields: Any) -> Totals:
        """Добавление позиции (id генерируется, если не задан)."""
        fields.setdefault("id", _new_id())
        item = LineItem.from_input(**fields)
        _ensure_new_id(self._shipment.items, item.id, "line item")
        items = [i.model_dump() for i in self._shipment.items] + [item.model_dump()]
        return self._commit(self._with(items=items), "add_line_item", item.id)

    def update_line_item(self, item_id: str, field: str, value: Any) -> Totals:
        if field not in LINE_ITEM_FIELDS:
            raise InvalidInput(f"Unknown line item field: {field!r}")

        data = self._shipment.find_item(item_id).model_dump()
        data[field] = value
        item = LineItem.from_input(**data)
        items = _replace(list(self._shipment.items), item_id, item)
        return self._commit(
            self._with(items=[i.model_dump() for i in items]), "update_line_item", item_id
        )

    def remove_line_item(self, item_id: str) -> Totals:
        self._shipment.find_item(item_id)
        items = _without(list(self._shipment.items), item_id)
        return self._commit(
            self._with(items=[i.model_dump() for i in items]), "remove_line_item", item_id
        )

    # -------------------------------------------------------------------------
    # Taxes

    def add_tax(self, **fields: Any) -> Totals:
        fields.setdefault("id", _new_id())
        tax = Tax.from_input(**fields)
        _ensure_new_id(self._shipment.taxes, tax.id, "tax")
        taxes = [t.model_dump() for t in self._shipment.taxes] + [tax.model_dump()]
        return self._commit(self._with(taxes=taxes), "add_tax", tax.id)

    def update_tax(self, tax_id: str, field: str, value: Any) -> Totals:
        if field not in TAX_FIELDS:
            raise InvalidInput(f"Unknown tax field: {field!r}")

        data = self._shipment.find_tax(tax_id).model_dump()
        data[field] = value
        tax = Tax.from_input(**data)
        taxes = _replace(list(self._shipment.taxes), tax_id, tax)
        return self._commit(
            self._with(taxes=[t.model_dump() for t in taxes]), "update_tax", tax_id
        )

    def remove_tax(self, tax_id: str) -> Totals:
        self._shipment.find_tax(tax_id)
        taxes = _without(list(self._shipment.taxes), tax_id)
        return self._commit(
            self._with(taxes=[t.model_dump() for t in taxes]), "remove_tax", tax_id
        )

    # -------------------------------------------------------------------------
    # Expenses

    def add_expense(
        self,
        name: str,
        value_foreign: float | None = None,
        value_local: float | None = None,
        id: str | None = None,
    ) -> Totals:
        """Добавление расхода. Задаётся ровно одна сторона пары (по умолчанию foreign = 0)."""
        if value_foreign is not None and value_local is not None:
            raise InvalidInput("Specify either value_foreign or value_local, not both")

        rate = self._shipment.exchange_rate
        expense = Expense.from_input(id=id or _new_id(), name=name)
        _ensure_new_id(self._shipment.expenses, expense.id, "expense")
        if value_local is not None:
            expense = self.synchronizer.on_local_edit(expense, value_local, rate)
        else:
            expense = self.synchronizer.on_foreign_edit(expense, value_foreign or 0.0, rate)

        expenses = [e.model_dump() for e in self._shipment.expenses] + [expense.model_dump()]
        return self._commit(self._with(expenses=expenses), "add_expense", expense.id)

    def update_expense(self, expense_id: str, field: str, value: Any) -> Totals:
        """Правка расхода; правка суммы синхронизирует вторую сторону пары."""
        if field not in EXPENSE_FIELDS:
            raise InvalidInput(f"Unknown expense field: {field!r}")

        expense = self._shipment.find_expense(expense_id)
        rate = self._shipment.exchange_rate
        if field == "value_foreign":
            expense = self.synchronizer.on_foreign_edit(expense, value, rate)
        elif field == "value_local":
            expense = self.synchronizer.on_local_edit(expense, value, rate)
        else:
            data = expense.model_dump()
            data[field] = value
            expense = Expense.from_input(**data)

        expenses = _replace(list(self._shipment.expenses), expense_id, expense)
        return self._commit(
            self._with(expenses=[e.model_dump() for e in expenses]), "update_expense", expense_id
        )

    def edit_expense_foreign(self, expense_id: str, value: float) -> Totals:
        return self.update_expense(expense_id, "value_foreign", value)

    def edit_expense_local(self, expense_id: str, value: float) -> Totals:
        return self.update_expense(expense_id, "value_local", value)

    def remove_expense(self, expense_id: str) -> Totals:
        self._shipment.find_expense(expense_id)
        expenses = _without(list(self._shipment.expenses), expense_id)
        return self._commit(
            self._with(expenses=[e.model_dump() for e in expenses]), "remove_expense", expense_id
        )
