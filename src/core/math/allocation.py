"""
Allocation — Пропорциональное распределение общих расходов (rateio)

Распределяет общую сумму (фрахт, страховка, каждый налог, каждый расход)
между товарными позициями пропорционально весу:

    share_i = total * weight_i / Σ weight

Политики веса (AllocationMethod):
- volume   — доля объёма (total_volume_m3)
- value    — доля стоимости (total_value_foreign)
- quantity — доля количества единиц (quantity)

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. Сохранение суммы: Σ share_i == round(total) ровно в квантах валюты.
   Все доли, кроме одной, округляются ВНИЗ до step; остаток целиком получает
   одна позиция-«поглотитель» — последняя по порядку среди позиций с
   максимальным весом. Остаток никогда не теряется и не дублируется, а доля
   поглотителя никогда не становится отрицательной.
2. Σ weight == 0 при total != 0 → DivisionByZero (никогда не NaN/Inf).
   Проверяется исходная сумма: 0.004 при step 0.01 — тоже ненулевая.
3. Σ weight == 0 при total == 0 → все доли 0 (нечего распределять).
4. Детерминизм: результат зависит только от входов и порядка позиций.
"""

from enum import Enum
from typing import Any, Callable, Final, Sequence

from src.core.exceptions import DivisionByZero, InvalidInput
from src.core.math.numerical_safeguards import (
    MONEY_STEP,
    floor_to_step,
    is_zero,
    round_to_step,
    validate_non_negative,
)

WeightFn = Callable[[Any], float]
KeyFn = Callable[[Any], str]


# =============================================================================
# ENUMS
# =============================================================================


class AllocationMethod(str, Enum):
    """Политика веса распределения."""

    VOLUME = "volume"
    VALUE = "value"
    QUANTITY = "quantity"


DEFAULT_ALLOCATION_METHOD: Final[AllocationMethod] = AllocationMethod.VOLUME


# =============================================================================
# WEIGHT FUNCTIONS
# =============================================================================


def volume_weight(item: Any) -> float:
    """Вес по объёму позиции (м³)."""
    return item.total_volume_m3


def value_weight(item: Any) -> float:
    """Вес по стоимости позиции (foreign)."""
    return item.total_value_foreign


def quantity_weight(item: Any) -> float:
    """Вес по количеству единиц."""
    return float(item.quantity)


_WEIGHT_FNS: Final[dict[AllocationMethod, WeightFn]] = {
    AllocationMethod.VOLUME: volume_weight,
    AllocationMethod.VALUE: value_weight,
    AllocationMethod.QUANTITY: quantity_weight,
}


def weight_fn_for(method: AllocationMethod | str) -> WeightFn:
    """
    Функция веса для политики.

    Raises:
        InvalidInput: Если политика неизвестна
    """
    try:
        return _WEIGHT_FNS[AllocationMethod(method)]
    except ValueError:
        raise InvalidInput(f"Unknown allocation method: {method!r}")


def _default_key(item: Any) -> str:
    return item.id


# =============================================================================
# WEIGHTS
# =============================================================================


def compute_weights(
    items: Sequence[Any],
    weight_fn: WeightFn,
    key_fn: KeyFn = _default_key,
) -> dict[str, float]:
    """
    Нормированные доли веса (сумма = 1).

    Raises:
        DivisionByZero: Если Σ weight == 0
        InvalidInput: Если какой-либо вес отрицательный
    """
    raw = _raw_weights(items, weight_fn, key_fn)
    denominator = sum(raw.values())

    if is_zero(denominator):
        raise DivisionByZero(
            f"Allocation weight denominator is zero ({len(items)} items)"
        )

    return {key: weight / denominator for key, weight in raw.items()}


def _raw_weights(
    items: Sequence[Any], weight_fn: WeightFn, key_fn: KeyFn
) -> dict[str, float]:
    raw: dict[str, float] = {}
    for item in items:
        key = key_fn(item)
        if key in raw:
            raise InvalidInput(f"Duplicate allocation key: {key!r}")
        weight = weight_fn(item)
        validate_non_negative(weight, f"weight[{key}]", InvalidInput)
        raw[key] = weight
    return raw


# =============================================================================
# ALLOCATION ENGINE
# =============================================================================


def allocate(
    shared_total: float,
    items: Sequence[Any],
    weight_fn: WeightFn,
    key_fn: KeyFn = _default_key,
    step: float = MONEY_STEP,
) -> dict[str, float]:
    """
    Распределение общей суммы между позициями.

    Args:
        shared_total: Общая сумма к распределению (>= 0)
        items: Позиции в порядке итерации
        weight_fn: Вес позиции (>= 0)
        key_fn: Идентификатор позиции (default: item.id)
        step: Квант валюты (default: MONEY_STEP)

    Returns:
        {item_id: share} в порядке items, Σ share == round(shared_total, step)

    Raises:
        DivisionByZero: Если Σ weight == 0 и shared_total != 0
        InvalidInput: Если shared_total или вес отрицательный

    Examples:
        >>> allocate(100.01, items, lambda i: 1.0)  # doctest: +SKIP
        {'a': 50.0, 'b': 50.01}
    """
    validate_non_negative(shared_total, "shared_total", InvalidInput)

    total = round_to_step(shared_total, step)
    raw = _raw_weights(items, weight_fn, key_fn)
    denominator = sum(raw.values())

    if is_zero(denominator):
        if is_zero(shared_total):
            return {key: 0.0 for key in raw}
        raise DivisionByZero(
            f"Cannot allocate {shared_total} across {len(raw)} items: "
            f"allocation weight denominator is zero"
        )

    # Поглотитель остатка: последняя позиция с максимальным весом
    max_weight = max(raw.values())
    absorber = [key for key, weight in raw.items() if weight == max_weight][-1]

    shares: dict[str, float] = {}
    allocated = 0.0
    for key, weight in raw.items():
        if key == absorber:
            shares[key] = 0.0  # placeholder, сохраняет порядок
            continue
        share = floor_to_step(total * weight / denominator, step)
        shares[key] = share
        allocated += share

    shares[absorber] = round_to_step(total - allocated, step)
    return shares


def allocate_by_method(
    shared_total: float,
    items: Sequence[Any],
    method: AllocationMethod | str,
    step: float = MONEY_STEP,
) -> dict[str, float]:
    """allocate() с функцией веса, выбранной по политике."""
    return allocate(shared_total, items, weight_fn_for(method), step=step)
