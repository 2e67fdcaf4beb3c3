"""
Тесты для AggregationEngine (полный пересчёт отправки)

Проверяет:
1. Сквозной сценарий: FOB 1000, фрахт 200, страховка 0.18%, II 14.4%, курс 5.5
2. Сохранение сумм распределённых категорий
3. Идемпотентность recompute
4. Монотонность налогов и итога по входам базы
5. Нулевой знаменатель (нет позиций, нулевой объём)
"""

import pytest

from src.core.domain import CurrencySide, Expense, LineItem, Shipment, Tax, Totals
from src.core.exceptions import DivisionByZero
from src.core.math.allocation import AllocationMethod
from src.simulation.aggregation import AggregationEngine, RecomputeConfig, recompute


@pytest.fixture
def reference_shipment() -> Shipment:
    """Одна позиция 30×20×15 см, FOB 1000, фрахт 200, II 14.4%, брокер 100 foreign"""
    return Shipment(
        name="Reference",
        exchange_rate=5.5,
        fob_foreign=1000.0,
        freight_foreign=200.0,
        insurance_rate=0.0018,
        items=[
            LineItem(
                id="sku-1", name="Bomba", quantity=1, unit_price_foreign=1000.0,
                length_cm=30, width_cm=20, height_cm=15,
            )
        ],
        taxes=[Tax(id="ii", name="II", rate_pct=14.4)],
        expenses=[Expense(id="broker", name="Despachante", value_foreign=100.0, value_local=550.0)],
    )


@pytest.fixture
def two_item_shipment() -> Shipment:
    """Курс 1.0: A 0.002 м³ / 20.0, B 0.009 м³ / 100.0; фрахт 110"""
    return Shipment(
        exchange_rate=1.0,
        fob_foreign=120.0,
        freight_foreign=110.0,
        items=[
            LineItem(
                id="A", quantity=2, unit_price_foreign=10.0,
                length_cm=10, width_cm=10, height_cm=10,
            ),
            LineItem(
                id="B", quantity=1, unit_price_foreign=100.0,
                length_cm=30, width_cm=20, height_cm=15,
            ),
        ],
    )


# =============================================================================
# СКВОЗНОЙ СЦЕНАРИЙ
# =============================================================================


class TestReferenceScenario:
    """Эталонная отправка с одной позицией"""

    @pytest.fixture
    def totals(self, reference_shipment: Shipment) -> Totals:
        return recompute(reference_shipment)

    def test_tax_base(self, totals: Totals) -> None:
        assert totals.tax_base_foreign == pytest.approx(1201.8)
        assert totals.insurance_foreign == pytest.approx(1.8)

    def test_tax_amount(self, totals: Totals) -> None:
        line = totals.taxes[0]
        assert line.tax_id == "ii"
        assert line.amount_foreign == pytest.approx(173.06)
        assert line.amount_local == pytest.approx(951.83)

    def test_local_amounts(self, totals: Totals) -> None:
        assert totals.freight_local == pytest.approx(1100.0)
        assert totals.insurance_local == pytest.approx(9.9)
        assert totals.total_expenses_local == pytest.approx(550.0)

    def test_single_item_absorbs_everything(self, totals: Totals) -> None:
        row = totals.item("sku-1")
        assert row.total_volume_m3 == pytest.approx(0.009)
        assert row.volume_share_pct == 100.0
        assert row.freight_local == pytest.approx(1100.0)
        assert row.tax_shares_local == pytest.approx({"ii": 951.83})
        assert row.expense_shares_local == pytest.approx({"broker": 550.0})

    def test_landed_cost(self, totals: Totals) -> None:
        """5500 + 1100 + 9.90 + 951.83 + 550 = 8111.73"""
        row = totals.item("sku-1")
        assert row.landed_cost_local == pytest.approx(8111.73)
        assert row.unit_landed_cost_local == pytest.approx(8111.73)
        assert totals.grand_landed_cost_local == pytest.approx(8111.73)
        assert totals.grand_landed_cost_foreign == pytest.approx(1474.86)

    def test_unknown_item(self, totals: Totals) -> None:
        with pytest.raises(KeyError):
            totals.item("nope")


# =============================================================================
# РАСПРЕДЕЛЕНИЕ МЕЖДУ ПОЗИЦИЯМИ
# =============================================================================


class TestMultiItem:
    """Две позиции, разные политики веса"""

    def test_volume_share(self, two_item_shipment: Shipment) -> None:
        totals = recompute(two_item_shipment)
        assert totals.item("A").volume_share_pct == pytest.approx(18.1818)
        assert totals.item("B").volume_share_pct == pytest.approx(81.8182)

    def test_volume_allocation(self, two_item_shipment: Shipment) -> None:
        totals = recompute(two_item_shipment)
        assert totals.item("A").freight_local == pytest.approx(20.0)
        assert totals.item("B").freight_local == pytest.approx(90.0)
        assert totals.item("A").landed_cost_local == pytest.approx(40.0)
        assert totals.item("B").landed_cost_local == pytest.approx(190.0)
        assert totals.item("A").unit_landed_cost_local == pytest.approx(20.0)

    def test_value_allocation(self, two_item_shipment: Shipment) -> None:
        shipment = two_item_shipment.model_copy(
            update={"allocation_method": AllocationMethod.VALUE}
        )
        totals = recompute(shipment)
        assert totals.allocation_method == AllocationMethod.VALUE
        assert totals.item("A").freight_local == pytest.approx(18.33)
        assert totals.item("B").freight_local == pytest.approx(91.67)

    def test_conservation(self, two_item_shipment: Shipment) -> None:
        shipment = two_item_shipment.model_copy(
            update={
                "insurance_rate": 0.0037,
                "taxes": [
                    Tax(id="ii", name="II", rate_pct=14.4),
                    Tax(id="ipi", name="IPI", rate_pct=6.5, base_mode="fob"),
                ],
                "expenses": [Expense(id="port", name="Porto", value_foreign=33.33, value_local=33.33)],
            }
        )
        totals = recompute(shipment)

        assert sum(r.freight_local for r in totals.items) == pytest.approx(totals.freight_local)
        assert sum(r.insurance_local for r in totals.items) == pytest.approx(
            totals.insurance_local
        )
        for line in totals.taxes:
            shares = [r.tax_shares_local[line.tax_id] for r in totals.items]
            assert sum(shares) == pytest.approx(line.amount_local)
        assert sum(r.expenses_local for r in totals.items) == pytest.approx(
            totals.total_expenses_local
        )
        assert sum(r.landed_cost_local for r in totals.items) == pytest.approx(
            totals.grand_landed_cost_local
        )

    def test_grand_total_decomposition(self, two_item_shipment: Shipment) -> None:
        totals = recompute(two_item_shipment)
        expected = (
            totals.total_value_local
            + totals.freight_local
            + totals.insurance_local
            + totals.total_tax_local
            + totals.total_expenses_local
        )
        assert totals.grand_landed_cost_local == pytest.approx(expected)

    def test_item_values_sum_to_total_value(self) -> None:
        """3 × 0.335 × 3.0 = 3.015 → 3.02; построчное округление дало бы 3 × 1.01 = 3.03"""
        shipment = Shipment(
            exchange_rate=3.0,
            items=[
                LineItem(id=key, quantity=1, unit_price_foreign=0.335) for key in ["a", "b", "c"]
            ],
        )
        totals = recompute(shipment)

        assert totals.total_value_local == pytest.approx(3.02)
        assert sum(r.value_local for r in totals.items) == pytest.approx(totals.total_value_local)
        assert sum(r.value_foreign for r in totals.items) == pytest.approx(
            totals.total_value_foreign
        )
        assert totals.grand_landed_cost_local == pytest.approx(totals.total_value_local)
        assert sum(r.landed_cost_local for r in totals.items) == pytest.approx(
            totals.grand_landed_cost_local
        )

    def test_landed_cost_foreign_sums_to_grand(self, two_item_shipment: Shipment) -> None:
        shipment = two_item_shipment.model_copy(
            update={"exchange_rate": 5.5, "taxes": [Tax(id="ii", name="II", rate_pct=14.4)]}
        )
        totals = recompute(shipment)
        assert sum(r.landed_cost_foreign for r in totals.items) == pytest.approx(
            totals.grand_landed_cost_foreign
        )


# =============================================================================
# СВОЙСТВА ПЕРЕСЧЁТА
# =============================================================================


class TestRecomputeProperties:
    def test_idempotent(self, reference_shipment: Shipment) -> None:
        assert recompute(reference_shipment) == recompute(reference_shipment)

    def test_expenses_resynced_at_current_rate(self, reference_shipment: Shipment) -> None:
        """Устаревшая local-сторона не влияет на итог"""
        stale = reference_shipment.model_copy(
            update={"expenses": [Expense(id="broker", name="x", value_foreign=100.0, value_local=1.0)]}
        )
        assert recompute(stale).expenses[0].value_local == pytest.approx(550.0)

    def test_local_authoritative_expense(self, reference_shipment: Shipment) -> None:
        expense = Expense(
            id="truck", name="Frete interno", value_foreign=109.09, value_local=600.0,
            authoritative=CurrencySide.LOCAL,
        )
        shipment = reference_shipment.model_copy(update={"expenses": [expense]})
        line = recompute(shipment).expenses[0]
        assert line.value_local == 600.0
        assert line.value_foreign == pytest.approx(109.09)

    @pytest.mark.parametrize("field", ["fob_foreign", "freight_foreign", "insurance_rate"])
    def test_monotonic_in_base_inputs(self, reference_shipment: Shipment, field: str) -> None:
        previous = recompute(reference_shipment)
        for factor in [1.5, 2.0, 4.0]:
            value = getattr(reference_shipment, field) * factor
            current = recompute(reference_shipment.model_copy(update={field: value}))
            assert current.total_tax_local >= previous.total_tax_local
            assert current.grand_landed_cost_local >= previous.grand_landed_cost_local
            previous = current

    def test_custom_money_step(self, reference_shipment: Shipment) -> None:
        totals = recompute(reference_shipment, RecomputeConfig(money_step=1.0))
        assert totals.taxes[0].amount_local == 952.0
        assert totals.insurance_local == 10.0
        assert totals.grand_landed_cost_local == 8112.0

    def test_engine_instance(self, reference_shipment: Shipment) -> None:
        engine = AggregationEngine()
        assert engine.recompute(reference_shipment) == recompute(reference_shipment)


# =============================================================================
# НУЛЕВОЙ ЗНАМЕНАТЕЛЬ
# =============================================================================


class TestZeroDenominator:
    def test_no_items_with_shared_costs(self, reference_shipment: Shipment) -> None:
        with pytest.raises(DivisionByZero):
            recompute(reference_shipment.model_copy(update={"items": []}))

    def test_no_items_nothing_to_allocate(self) -> None:
        shipment = Shipment(exchange_rate=5.5, taxes=[Tax(id="ii", name="II", rate_pct=14.4)])
        totals = recompute(shipment)
        assert totals.items == []
        assert totals.total_tax_local == 0.0
        assert totals.grand_landed_cost_local == 0.0

    def test_zero_volume_with_volume_method(self) -> None:
        shipment = Shipment(
            exchange_rate=1.0,
            freight_foreign=50.0,
            items=[LineItem(id="flat", quantity=1, unit_price_foreign=10.0)],
        )
        with pytest.raises(DivisionByZero):
            recompute(shipment)

        by_quantity = shipment.model_copy(update={"allocation_method": AllocationMethod.QUANTITY})
        totals = recompute(by_quantity)
        assert totals.item("flat").freight_local == 50.0
        assert totals.item("flat").volume_share_pct == 0.0
