"""
Тесты для ShipmentEditor

Проверяет:
1. Каждая мутация выполняет полный recompute и возвращает Totals
2. Невалидный вход не меняет отправку; сбой recompute оставляет правку
   и помечает последние Totals устаревшими
3. InconsistentState до первого успешного recompute
4. Пересинхронизацию расходов при смене курса
5. Независимость итога от порядка правок
"""

import logging

import pytest

from src.core.domain import CurrencySide, Shipment
from src.core.exceptions import (
    DivisionByZero,
    InconsistentState,
    InvalidDimension,
    InvalidInput,
    InvalidPrice,
    InvalidQuantity,
    InvalidRate,
)
from src.core.math.allocation import AllocationMethod
from src.simulation.editor import ShipmentEditor


@pytest.fixture
def editor() -> ShipmentEditor:
    """Эталонная отправка, собранная через редактор"""
    editor = ShipmentEditor(
        Shipment(
            exchange_rate=5.5, fob_foreign=1000.0, freight_foreign=200.0, insurance_rate=0.0018
        )
    )
    editor.add_line_item(
        id="sku-1", name="Bomba", quantity=1, unit_price_foreign=1000.0,
        length_cm=30, width_cm=20, height_cm=15,
    )
    editor.add_tax(id="ii", name="II", rate_pct=14.4)
    editor.add_expense("Despachante", value_foreign=100.0, id="broker")
    return editor


# =============================================================================
# СОСТОЯНИЕ
# =============================================================================


class TestState:
    def test_totals_before_recompute(self) -> None:
        editor = ShipmentEditor(Shipment(exchange_rate=1.0))
        assert not editor.has_totals
        with pytest.raises(InconsistentState):
            editor.totals

    def test_failed_first_recompute_keeps_inconsistent_state(self) -> None:
        editor = ShipmentEditor(Shipment(exchange_rate=5.5, freight_foreign=200.0))
        with pytest.raises(DivisionByZero):
            editor.recompute()
        with pytest.raises(InconsistentState):
            editor.totals

    def test_reference_totals(self, editor: ShipmentEditor) -> None:
        assert editor.has_totals
        assert editor.totals.grand_landed_cost_local == pytest.approx(8111.73)

    def test_recompute_is_idempotent(self, editor: ShipmentEditor) -> None:
        before = editor.totals
        assert editor.recompute() == before

    def test_load_replaces_and_recomputes(self, editor: ShipmentEditor) -> None:
        replacement = editor.shipment.model_copy(update={"freight_foreign": 0.0})
        totals = editor.load(replacement)
        assert editor.shipment is replacement
        assert totals.freight_local == 0.0


# =============================================================================
# ТОВАРНЫЕ ПОЗИЦИИ
# =============================================================================


class TestLineItems:
    def test_add_generates_id(self, editor: ShipmentEditor) -> None:
        totals = editor.add_line_item(
            quantity=2, unit_price_foreign=10.0, length_cm=10, width_cm=10, height_cm=10
        )
        assert len(editor.shipment.items) == 2
        new_id = editor.shipment.items[-1].id
        assert len(new_id) == 12
        assert totals.item(new_id).total_volume_m3 == pytest.approx(0.002)
        assert totals is editor.totals

    def test_add_duplicate_id(self, editor: ShipmentEditor) -> None:
        with pytest.raises(InvalidInput, match="Duplicate"):
            editor.add_line_item(id="sku-1", quantity=1, unit_price_foreign=1.0)

    def test_update(self, editor: ShipmentEditor) -> None:
        totals = editor.update_line_item("sku-1", "quantity", 2)
        row = totals.item("sku-1")
        assert row.value_local == pytest.approx(11000.0)
        assert row.total_volume_m3 == pytest.approx(0.018)

    def test_update_unknown_field(self, editor: ShipmentEditor) -> None:
        with pytest.raises(InvalidInput):
            editor.update_line_item("sku-1", "id", "other")

    def test_update_unknown_id(self, editor: ShipmentEditor) -> None:
        with pytest.raises(InvalidInput):
            editor.update_line_item("nope", "quantity", 2)

    @pytest.mark.parametrize(
        "field, value, error",
        [
            ("quantity", -1, InvalidQuantity),
            ("quantity", 1.5, InvalidQuantity),
            ("unit_price_foreign", -10.0, InvalidPrice),
            ("height_cm", -1.0, InvalidDimension),
        ],
    )
    def test_invalid_update_rolls_back(
        self, editor: ShipmentEditor, field: str, value: float, error: type[Exception]
    ) -> None:
        shipment_before, totals_before = editor.shipment, editor.totals
        with pytest.raises(error):
            editor.update_line_item("sku-1", field, value)
        assert editor.shipment is shipment_before
        assert editor.totals is totals_before

    def test_remove_last_item_marks_totals_stale(
        self, editor: ShipmentEditor, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Без позиций фрахт некуда распределить: правка остаётся, Totals устаревают"""
        totals_before = editor.totals
        with caplog.at_level(logging.WARNING, logger="src.simulation.editor"):
            with pytest.raises(DivisionByZero):
                editor.remove_line_item("sku-1")

        assert editor.shipment.items == []
        assert editor.is_stale
        assert not editor.has_totals
        assert editor.last_totals is totals_before
        with pytest.raises(InconsistentState):
            editor.totals
        assert "totals stale" in caplog.text

    def test_successful_edit_clears_stale(self, editor: ShipmentEditor) -> None:
        with pytest.raises(DivisionByZero):
            editor.remove_line_item("sku-1")

        totals = editor.add_line_item(
            id="sku-1", name="Bomba", quantity=1, unit_price_foreign=1000.0,
            length_cm=30, width_cm=20, height_cm=15,
        )
        assert not editor.is_stale
        assert editor.totals is totals
        assert totals.grand_landed_cost_local == pytest.approx(8111.73)

    def test_remove(self, editor: ShipmentEditor) -> None:
        editor.add_line_item(id="sku-2", quantity=1, unit_price_foreign=1.0, length_cm=1,
                             width_cm=1, height_cm=1)
        totals = editor.remove_line_item("sku-2")
        assert [row.item_id for row in totals.items] == ["sku-1"]


# =============================================================================
# НАЛОГИ
# =============================================================================


class TestTaxes:
    def test_update_rate(self, editor: ShipmentEditor) -> None:
        totals = editor.update_tax("ii", "rate_pct", 0.0)
        assert totals.total_tax_local == 0.0

    def test_update_base_mode(self, editor: ShipmentEditor) -> None:
        """14.4% от FOB 1000 = 144.00 foreign = 792.00 local"""
        totals = editor.update_tax("ii", "base_mode", "fob")
        assert totals.taxes[0].amount_foreign == pytest.approx(144.0)
        assert totals.taxes[0].amount_local == pytest.approx(792.0)

    def test_invalid_rate_rolls_back(self, editor: ShipmentEditor) -> None:
        totals_before = editor.totals
        with pytest.raises(InvalidInput):
            editor.update_tax("ii", "rate_pct", -1.0)
        assert editor.totals is totals_before
        assert editor.shipment.find_tax("ii").rate_pct == 14.4

    def test_add_and_remove(self, editor: ShipmentEditor) -> None:
        totals = editor.add_tax(id="ipi", name="IPI", rate_pct=6.5, base_mode="fob")
        assert [line.tax_id for line in totals.taxes] == ["ii", "ipi"]
        totals = editor.remove_tax("ii")
        assert [line.tax_id for line in totals.taxes] == ["ipi"]

    def test_add_duplicate(self, editor: ShipmentEditor) -> None:
        with pytest.raises(InvalidInput):
            editor.add_tax(id="ii", name="II", rate_pct=1.0)


# =============================================================================
# РАСХОДЫ
# =============================================================================


class TestExpenses:
    def test_added_expense_synced(self, editor: ShipmentEditor) -> None:
        expense = editor.shipment.find_expense("broker")
        assert expense.value_local == 550.0
        assert expense.authoritative == CurrencySide.FOREIGN

    def test_add_local(self, editor: ShipmentEditor) -> None:
        editor.add_expense("Armazenagem", value_local=275.0, id="storage")
        expense = editor.shipment.find_expense("storage")
        assert expense.value_foreign == 50.0
        assert expense.authoritative == CurrencySide.LOCAL

    def test_add_both_sides_rejected(self, editor: ShipmentEditor) -> None:
        with pytest.raises(InvalidInput):
            editor.add_expense("x", value_foreign=1.0, value_local=5.5)

    def test_edit_local(self, editor: ShipmentEditor) -> None:
        totals = editor.edit_expense_local("broker", 600.0)
        expense = editor.shipment.find_expense("broker")
        assert expense.value_foreign == 109.09
        assert expense.authoritative == CurrencySide.LOCAL
        assert totals.expenses[0].value_local == 600.0

    def test_edit_foreign(self, editor: ShipmentEditor) -> None:
        editor.edit_expense_local("broker", 600.0)
        editor.edit_expense_foreign("broker", 200.0)
        expense = editor.shipment.find_expense("broker")
        assert expense.value_local == 1100.0
        assert expense.authoritative == CurrencySide.FOREIGN

    def test_rename(self, editor: ShipmentEditor) -> None:
        editor.update_expense("broker", "name", "Broker")
        assert editor.shipment.find_expense("broker").name == "Broker"

    def test_negative_rolls_back(self, editor: ShipmentEditor) -> None:
        with pytest.raises(InvalidInput):
            editor.edit_expense_foreign("broker", -1.0)
        assert editor.shipment.find_expense("broker").value_foreign == 100.0

    def test_remove(self, editor: ShipmentEditor) -> None:
        totals = editor.remove_expense("broker")
        assert totals.expenses == []
        assert totals.grand_landed_cost_local == pytest.approx(7561.73)


# =============================================================================
# ПАРАМЕТРЫ ОТПРАВКИ
# =============================================================================


class TestShipmentParameters:
    def test_exchange_rate_resyncs_expenses(self, editor: ShipmentEditor) -> None:
        editor.add_expense("Frete interno", value_local=600.0, id="truck")
        editor.update_shipment("exchange_rate", 6.0)

        broker = editor.shipment.find_expense("broker")
        truck = editor.shipment.find_expense("truck")
        assert broker.value_foreign == 100.0
        assert broker.value_local == 600.0
        assert truck.value_local == 600.0
        assert truck.value_foreign == 100.0
        assert editor.totals.exchange_rate == 6.0

    def test_invalid_exchange_rate_rolls_back(self, editor: ShipmentEditor) -> None:
        totals_before = editor.totals
        with pytest.raises(InvalidRate):
            editor.update_shipment("exchange_rate", 0.0)
        assert editor.shipment.exchange_rate == 5.5
        assert editor.totals is totals_before

    def test_invalid_insurance_rate(self, editor: ShipmentEditor) -> None:
        with pytest.raises(InvalidInput):
            editor.update_shipment("insurance_rate", 1.5)

    def test_unknown_field(self, editor: ShipmentEditor) -> None:
        with pytest.raises(InvalidInput):
            editor.update_shipment("items", [])

    def test_allocation_method(self, editor: ShipmentEditor) -> None:
        totals = editor.update_shipment("allocation_method", "value")
        assert totals.allocation_method == AllocationMethod.VALUE

    def test_metadata_does_not_change_totals(self, editor: ShipmentEditor) -> None:
        before = editor.totals
        after = editor.update_shipment("supplier", "Acme Ltd.")
        assert editor.shipment.supplier == "Acme Ltd."
        assert after == before

    def test_edit_order_independence(self) -> None:
        """Одинаковый набор правок в разном порядке даёт одинаковые Totals"""

        def build() -> ShipmentEditor:
            editor = ShipmentEditor(Shipment(exchange_rate=5.5))
            editor.add_line_item(id="a", quantity=3, unit_price_foreign=7.5, length_cm=10,
                                 width_cm=20, height_cm=30)
            editor.add_line_item(id="b", quantity=1, unit_price_foreign=99.0, length_cm=50,
                                 width_cm=40, height_cm=30)
            editor.add_tax(id="ii", name="II", rate_pct=14.4)
            return editor

        first = build()
        first.update_shipment("fob_foreign", 121.5)
        first.update_shipment("freight_foreign", 80.0)
        first.update_shipment("insurance_rate", 0.0018)

        second = build()
        second.update_shipment("insurance_rate", 0.0018)
        second.update_shipment("freight_foreign", 80.0)
        second.update_shipment("fob_foreign", 121.5)

        assert first.totals == second.totals

    def test_failed_recompute_does_not_drop_edit(self) -> None:
        """Правка, временно не дающая пересчитаться, сохраняется и учитывается позже"""
        item = dict(id="a", quantity=1, unit_price_foreign=100.0, length_cm=10, width_cm=10,
                    height_cm=10)

        first = ShipmentEditor(Shipment(exchange_rate=5.5))
        first.add_line_item(**item)
        first.update_shipment("freight_foreign", 200.0)

        second = ShipmentEditor(Shipment(exchange_rate=5.5))
        with pytest.raises(DivisionByZero):
            second.update_shipment("freight_foreign", 200.0)
        assert second.shipment.freight_foreign == 200.0
        second.add_line_item(**item)

        assert first.shipment == second.shipment
        assert first.totals == second.totals
        assert second.totals.item("a").freight_local == pytest.approx(1100.0)
