"""
Totals — Результат пересчёта отправки

Полностью производная immutable модель. Никогда не задаётся независимо и
никогда не кэшируется между изменениями: строится заново каждым recompute.

Денежные поля округлены до кванта валюты (MONEY_STEP). Суффиксы:
    *_foreign — иностранная валюта (валюта FOB)
    *_local   — локальная валюта (валюта импортёра)

Себестоимость позиции (landed cost) считается в локальной валюте:

    landed_cost_local = value_local + freight_local + insurance_local
                        + Σ tax_local + Σ expense_local
"""

from pydantic import BaseModel, Field

from src.core.math.allocation import AllocationMethod
from src.core.math.taxation import TaxBaseMode


# =============================================================================
# BREAKDOWN ROWS
# =============================================================================


class TaxLine(BaseModel):
    """Рассчитанный налог."""

    tax_id: str
    name: str
    rate_pct: float
    base_mode: TaxBaseMode
    base_foreign: float = Field(..., ge=0, description="База налога (foreign)")
    amount_foreign: float = Field(..., ge=0, description="Сумма налога (foreign)")
    amount_local: float = Field(..., ge=0, description="Сумма налога (local)")

    model_config = {"frozen": True}


class ExpenseLine(BaseModel):
    """Синхронизированный расход по текущему курсу."""

    expense_id: str
    name: str
    value_foreign: float = Field(..., ge=0)
    value_local: float = Field(..., ge=0)

    model_config = {"frozen": True}


class ItemCost(BaseModel):
    """
    Себестоимость товарной позиции.

    Распределённые доли (rateio) — в локальной валюте.
    """

    item_id: str
    name: str
    tariff_code: str
    quantity: int = Field(..., gt=0)

    # Объём и стоимость
    unit_volume_m3: float = Field(..., ge=0)
    total_volume_m3: float = Field(..., ge=0)
    volume_share_pct: float = Field(
        ..., ge=0, le=100, description="Доля объёма контейнера (%)"
    )
    value_foreign: float = Field(..., ge=0, description="Стоимость позиции (foreign)")
    value_local: float = Field(..., ge=0, description="Стоимость позиции (local)")

    # Доли общих расходов
    freight_local: float = Field(..., ge=0)
    insurance_local: float = Field(..., ge=0)
    tax_shares_local: dict[str, float] = Field(
        default_factory=dict, description="Доля каждого налога по tax_id"
    )
    expense_shares_local: dict[str, float] = Field(
        default_factory=dict, description="Доля каждого расхода по expense_id"
    )
    taxes_local: float = Field(..., ge=0, description="Сумма долей налогов")
    expenses_local: float = Field(..., ge=0, description="Сумма долей расходов")

    # Итог
    landed_cost_local: float = Field(..., ge=0)
    landed_cost_foreign: float = Field(..., ge=0)
    unit_landed_cost_local: float = Field(..., ge=0)

    model_config = {"frozen": True}


# =============================================================================
# TOTALS MODEL
# =============================================================================


class Totals(BaseModel):
    """
    Итоги отправки после полного пересчёта.

    Immutable модель (frozen=True).
    """

    # Контекст пересчёта
    exchange_rate: float = Field(..., gt=0)
    allocation_method: AllocationMethod

    # Товары
    total_volume_m3: float = Field(..., ge=0)
    total_value_foreign: float = Field(..., ge=0)
    total_value_local: float = Field(..., ge=0)

    # Отправка
    fob_foreign: float = Field(..., ge=0)
    fob_local: float = Field(..., ge=0)
    freight_foreign: float = Field(..., ge=0)
    freight_local: float = Field(..., ge=0)
    insurance_foreign: float = Field(..., ge=0)
    insurance_local: float = Field(..., ge=0)
    tax_base_foreign: float = Field(..., ge=0, description="FOB + фрахт + страховка")
    tax_base_local: float = Field(..., ge=0)

    # Налоги и расходы
    taxes: list[TaxLine] = Field(default_factory=list)
    total_tax_foreign: float = Field(..., ge=0)
    total_tax_local: float = Field(..., ge=0)
    expenses: list[ExpenseLine] = Field(default_factory=list)
    total_expenses_foreign: float = Field(..., ge=0)
    total_expenses_local: float = Field(..., ge=0)

    # Себестоимость
    items: list[ItemCost] = Field(default_factory=list)
    grand_landed_cost_local: float = Field(..., ge=0)
    grand_landed_cost_foreign: float = Field(..., ge=0)

    model_config = {"frozen": True}

    def item(self, item_id: str) -> ItemCost:
        """Себестоимость позиции по id."""
        for row in self.items:
            if row.item_id == item_id:
                return row
        raise KeyError(item_id)
