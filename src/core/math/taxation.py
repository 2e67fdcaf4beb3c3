"""
Taxation — Налоговая база отправки и суммы налогов

Налоговая база считается на уровне отправки (не по товарам):

    insurance     = fob * insurance_rate
    base (full)   = fob + freight + insurance

Каждый налог применяет свою ставку (в процентах) к базе, выбранной режимом
расчёта (TaxBaseMode):

    fob               → fob
    fob_frete         → fob + freight
    fob_frete_seguro  → fob + freight + insurance   (режим по умолчанию)

    amount = base * rate_pct / 100

Ставка может быть 0; верхняя граница ставки движком не ограничивается
(политика вызывающего). Движок не знает «идентичность» налога (имя,
защищённые налоги и т.п.) — только ставку и режим базы.

Все суммы в иностранной валюте (валюте FOB), без округления.
"""

from enum import Enum
from typing import Iterable, NamedTuple

from src.core.exceptions import InvalidInput
from src.core.math.numerical_safeguards import validate_in_range, validate_non_negative


# =============================================================================
# ENUMS
# =============================================================================


class TaxBaseMode(str, Enum):
    """Какой агрегат отправки является базой налога."""

    FOB = "fob"
    FOB_FREIGHT = "fob_frete"
    FOB_FREIGHT_INSURANCE = "fob_frete_seguro"


DEFAULT_TAX_BASE_MODE = TaxBaseMode.FOB_FREIGHT_INSURANCE


# =============================================================================
# RESULT TYPES
# =============================================================================


class TaxBases(NamedTuple):
    """Все агрегаты, к которым может применяться ставка налога."""

    fob: float
    freight: float
    insurance: float
    fob_freight: float
    fob_freight_insurance: float

    def for_mode(self, mode: TaxBaseMode) -> float:
        """База для заданного режима."""
        if mode == TaxBaseMode.FOB:
            return self.fob
        if mode == TaxBaseMode.FOB_FREIGHT:
            return self.fob_freight
        return self.fob_freight_insurance


# =============================================================================
# TAX BASE ENGINE
# =============================================================================


def validate_shipment_inputs(fob: float, freight: float, insurance_rate: float) -> None:
    """
    Raises:
        InvalidInput: Если fob/freight отрицательные или insurance_rate вне [0, 1]
    """
    validate_non_negative(fob, "fob", InvalidInput)
    validate_non_negative(freight, "freight", InvalidInput)
    validate_in_range(insurance_rate, "insurance_rate", 0.0, 1.0, InvalidInput)


def compute_insurance(fob: float, insurance_rate: float) -> float:
    """
    Страховка как доля FOB.

    Examples:
        >>> compute_insurance(1000.0, 0.0018)
        1.8
    """
    validate_non_negative(fob, "fob", InvalidInput)
    validate_in_range(insurance_rate, "insurance_rate", 0.0, 1.0, InvalidInput)
    return fob * insurance_rate


def compute_base(fob: float, freight: float, insurance_rate: float) -> float:
    """
    Полная налоговая база: fob + freight + fob * insurance_rate.

    Examples:
        >>> round(compute_base(1000.0, 200.0, 0.0018), 6)
        1201.8
    """
    return compute_bases(fob, freight, insurance_rate).fob_freight_insurance


def compute_bases(fob: float, freight: float, insurance_rate: float) -> TaxBases:
    """
    Все базы отправки за один проход.

    Args:
        fob: Стоимость FOB (foreign, >= 0)
        freight: Международный фрахт (foreign, >= 0)
        insurance_rate: Ставка страховки (доля, 0-1)

    Returns:
        TaxBases
    """
    validate_shipment_inputs(fob, freight, insurance_rate)

    insurance = fob * insurance_rate
    return TaxBases(
        fob=fob,
        freight=freight,
        insurance=insurance,
        fob_freight=fob + freight,
        fob_freight_insurance=fob + freight + insurance,
    )


# =============================================================================
# TAX ENGINE
# =============================================================================


def compute_tax_amount(rate_pct: float, base: float) -> float:
    """
    Сумма налога: base * rate_pct / 100.

    Raises:
        InvalidInput: Если ставка или база отрицательные

    Examples:
        >>> round(compute_tax_amount(14.4, 1201.8), 2)
        173.06
    """
    validate_non_negative(rate_pct, "rate_pct", InvalidInput)
    validate_non_negative(base, "base", InvalidInput)
    return base * (rate_pct / 100.0)


def compute_tax_amounts(
    taxes: Iterable[tuple[float, TaxBaseMode]],
    bases: TaxBases,
) -> list[float]:
    """
    Полный пересчёт сумм всех налогов.

    Args:
        taxes: Пары (rate_pct, base_mode) в порядке налогов отправки
        bases: Базы отправки (см. compute_bases)

    Returns:
        Список сумм в том же порядке
    """
    return [
        compute_tax_amount(rate_pct, bases.for_mode(TaxBaseMode(mode)))
        for rate_pct, mode in taxes
    ]
