"""AggregationEngine — полный пересчёт отправки в порядке зависимостей.

Пайплайн recompute(shipment) -> Totals:
1. Производные поля позиций (объём, стоимость)
2. Итоги позиций (суммарный объём и стоимость)
3. TaxBaseEngine → TaxEngine (базы и суммы налогов)
4. Расходы, синхронизированные по текущему курсу (ExpenseSynchronizer)
5. AllocationEngine по каждой категории общих расходов:
   фрахт, страховка, каждый налог, каждый расход
6. Себестоимость позиции = собственная стоимость + все распределённые доли
7. Общая себестоимость = Σ себестоимостей позиций

Пересчёт всегда полный (не инкрементальный) и является чистой функцией
Shipment: повторный вызов на неизменённой отправке даёт идентичные Totals.
Любой сбой на любом шаге прерывает пересчёт целиком — Totals не строятся
частично (что делать с прежними Totals, решает вызывающий, см. ShipmentEditor).

Каждый столбец позиции в сумме ровно равен своему итогу отправки: стоимость
позиций раскладывается из округлённой стоимости отправки, foreign-себестоимость
из округлённого foreign-итога.
"""

import logging
from dataclasses import dataclass

from src.core.domain.shipment import Shipment
from src.core.domain.totals import ExpenseLine, ItemCost, TaxLine, Totals
from src.core.math.allocation import (
    allocate,
    allocate_by_method,
    compute_weights,
    value_weight,
    volume_weight,
)
from src.core.math.currency import CurrencyConverter
from src.core.math.numerical_safeguards import MONEY_STEP, is_zero, round_to_step
from src.core.math.taxation import compute_bases, compute_tax_amounts
from src.simulation.expense_sync import ExpenseSynchronizer

logger = logging.getLogger(__name__)


def _landed_key(entry: tuple[str, float]) -> str:
    return entry[0]


def _landed_weight(entry: tuple[str, float]) -> float:
    return entry[1]


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class RecomputeConfig:
    """Конфигурация пересчёта.

    money_step — квант валюты для всех денежных итогов и долей rateio.
    share_decimals — знаков после запятой у доли объёма контейнера (%).
    """

    money_step: float = MONEY_STEP
    share_decimals: int = 4


# =============================================================================
# AGGREGATION ENGINE
# =============================================================================


class AggregationEngine:
    """Оркестратор полного пересчёта отправки."""

    def __init__(self, config: RecomputeConfig | None = None):
        """
        Args:
            config: конфигурация пересчёта (опционально, используется default)
        """
        self.config = config or RecomputeConfig()
        self.synchronizer = ExpenseSynchronizer(step=self.config.money_step)

    def _money(self, value: float) -> float:
        return round_to_step(value, self.config.money_step)

    def recompute(self, shipment: Shipment) -> Totals:
        """Полный пересчёт.

        Raises:
            InvalidRate, InvalidDimension, InvalidQuantity, InvalidPrice,
            InvalidInput: невалидные входы
            DivisionByZero: нулевой знаменатель веса при ненулевых общих расходах
        """
        money = self._money
        fx = CurrencyConverter(shipment.exchange_rate)
        items = list(shipment.items)

        # 1-2. Позиции и их итоги
        volumes = {item.id: item.total_volume_m3 for item in items}
        values = {item.id: item.total_value_foreign for item in items}
        total_volume = sum(volumes.values())
        total_value_foreign = sum(values.values())
        logger.debug(
            "recompute: %d items, volume=%.6f m3, value=%.2f",
            len(items), total_volume, total_value_foreign,
        )

        # 3. Налоговая база и налоги
        bases = compute_bases(
            shipment.fob_foreign, shipment.freight_foreign, shipment.insurance_rate
        )
        amounts = compute_tax_amounts(
            [(tax.rate_pct, tax.base_mode) for tax in shipment.taxes], bases
        )
        tax_lines = [
            TaxLine(
                tax_id=tax.id,
                name=tax.name,
                rate_pct=tax.rate_pct,
                base_mode=tax.base_mode,
                base_foreign=money(bases.for_mode(tax.base_mode)),
                amount_foreign=money(amount),
                amount_local=money(fx.to_local(amount)),
            )
            for tax, amount in zip(shipment.taxes, amounts)
        ]
        logger.debug(
            "recompute: base=%.4f, %d taxes", bases.fob_freight_insurance, len(tax_lines)
        )

        # 4. Расходы по текущему курсу
        expenses = []
        for expense in shipment.expenses:
            if not self.synchronizer.is_synchronized(expense, fx.rate):
                logger.debug(
                    "recompute: expense %s stale at rate %.6f, resynced", expense.id, fx.rate
                )
            expenses.append(self.synchronizer.resync(expense, fx.rate))
        expense_lines = [
            ExpenseLine(
                expense_id=e.id,
                name=e.name,
                value_foreign=money(e.value_foreign),
                value_local=money(e.value_local),
            )
            for e in expenses
        ]

        # 5. Rateio по каждой категории
        method = shipment.allocation_method
        step = self.config.money_step
        freight_local = money(fx.to_local(bases.freight))
        insurance_local = money(fx.to_local(bases.insurance))

        freight_shares = allocate_by_method(freight_local, items, method, step)
        insurance_shares = allocate_by_method(insurance_local, items, method, step)
        tax_shares = {
            line.tax_id: allocate_by_method(line.amount_local, items, method, step)
            for line in tax_lines
        }
        expense_shares = {
            line.expense_id: allocate_by_method(line.value_local, items, method, step)
            for line in expense_lines
        }

        # Σ value_local == total_value_local: итог округлён один раз и разложен по стоимости
        total_value_local = money(fx.to_local(total_value_foreign))
        value_foreign_shares = allocate(money(total_value_foreign), items, value_weight, step=step)
        value_local_shares = allocate(total_value_local, items, value_weight, step=step)

        if is_zero(total_volume):
            volume_shares = {item.id: 0.0 for item in items}
        else:
            volume_shares = compute_weights(items, volume_weight)

        # 6. Себестоимость позиций
        landed: dict[str, float] = {}
        for item in items:
            landed[item.id] = money(
                value_local_shares[item.id]
                + freight_shares[item.id]
                + insurance_shares[item.id]
                + sum(shares[item.id] for shares in tax_shares.values())
                + sum(shares[item.id] for shares in expense_shares.values())
            )

        # 7. Общая себестоимость; foreign-эквивалент раскладывается по local-себестоимости
        grand_local = money(sum(landed.values()))
        grand_foreign = money(fx.to_foreign(grand_local))
        landed_foreign = allocate(
            grand_foreign, list(landed.items()), _landed_weight, _landed_key, step=step
        )
        logger.debug("recompute: grand landed cost %.2f (local)", grand_local)

        item_costs = []
        for item in items:
            item_taxes = {tax_id: shares[item.id] for tax_id, shares in tax_shares.items()}
            item_expenses = {
                expense_id: shares[item.id] for expense_id, shares in expense_shares.items()
            }
            item_costs.append(
                ItemCost(
                    item_id=item.id,
                    name=item.name,
                    tariff_code=item.tariff_code,
                    quantity=item.quantity,
                    unit_volume_m3=item.unit_volume_m3,
                    total_volume_m3=volumes[item.id],
                    volume_share_pct=min(
                        round(100.0 * volume_shares[item.id], self.config.share_decimals), 100.0
                    ),
                    value_foreign=value_foreign_shares[item.id],
                    value_local=value_local_shares[item.id],
                    freight_local=freight_shares[item.id],
                    insurance_local=insurance_shares[item.id],
                    tax_shares_local=item_taxes,
                    expense_shares_local=item_expenses,
                    taxes_local=money(sum(item_taxes.values())),
                    expenses_local=money(sum(item_expenses.values())),
                    landed_cost_local=landed[item.id],
                    landed_cost_foreign=landed_foreign[item.id],
                    unit_landed_cost_local=money(landed[item.id] / item.quantity),
                )
            )

        return Totals(
            exchange_rate=fx.rate,
            allocation_method=shipment.allocation_method,
            total_volume_m3=total_volume,
            total_value_foreign=money(total_value_foreign),
            total_value_local=total_value_local,
            fob_foreign=money(bases.fob),
            fob_local=money(fx.to_local(bases.fob)),
            freight_foreign=money(bases.freight),
            freight_local=freight_local,
            insurance_foreign=money(bases.insurance),
            insurance_local=insurance_local,
            tax_base_foreign=money(bases.fob_freight_insurance),
            tax_base_local=money(fx.to_local(bases.fob_freight_insurance)),
            taxes=tax_lines,
            total_tax_foreign=money(sum(amounts)),
            total_tax_local=money(sum(line.amount_local for line in tax_lines)),
            expenses=expense_lines,
            total_expenses_foreign=money(sum(line.value_foreign for line in expense_lines)),
            total_expenses_local=money(sum(line.value_local for line in expense_lines)),
            items=item_costs,
            grand_landed_cost_local=grand_local,
            grand_landed_cost_foreign=grand_foreign,
        )


# Экземпляр по умолчанию
_DEFAULT_ENGINE = AggregationEngine()


def recompute(shipment: Shipment, config: RecomputeConfig | None = None) -> Totals:
    """Полный пересчёт отправки (единственная точка входа перед чтением Totals)."""
    engine = _DEFAULT_ENGINE if config is None else AggregationEngine(config)
    return engine.recompute(shipment)
