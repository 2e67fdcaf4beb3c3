"""
Numerical Safeguards — Безопасные числовые примитивы для денежных расчётов

Модуль обеспечивает численную устойчивость всех расчётов движка:
- Квант валюты и epsilon-параметры сравнений float
- Округление денежных сумм до кванта валюты (round half away from zero)
- Epsilon-сравнения float с учётом машинной точности
- Валидация входов (конечность, неотрицательность, положительность)

ТОЧНОСТЬ:
Все вычисления ведутся в IEEE-754 double (float). Относительная ошибка одной
операции ≤ 2^-53 (~1.1e-16). Для денежных сумм до 1e12 абсолютная ошибка
round-trip конверсии валют (x * rate / rate) не превышает ~1e-4 и всегда
меньше половины кванта валюты (MONEY_STEP / 2), поэтому после округления
до MONEY_STEP round-trip точен.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. NaN/Inf никогда не принимаются на вход (валидация до расчёта)
2. Float сравнения всегда учитывают толерантность
3. Все операции детерминированы и воспроизводимы
"""

import math
from typing import Final

# =============================================================================
# EPSILON-ПАРАМЕТРЫ
# =============================================================================

# Квант валюты (центы для 2-decimal валют)
MONEY_STEP: Final[float] = 0.01

# Epsilon для сравнения float (относительная толерантность)
EPS_FLOAT_COMPARE_REL: Final[float] = 1e-9

# Epsilon для сравнения float (абсолютная толерантность)
EPS_FLOAT_COMPARE_ABS: Final[float] = 1e-12


# =============================================================================
# ПРОВЕРКИ FLOAT
# =============================================================================


def is_valid_float(value: float) -> bool:
    """
    Проверка, является ли float валидным (не NaN, не Inf).

    Args:
        value: Проверяемое значение

    Returns:
        True если значение конечное
    """
    return math.isfinite(value)


def is_close(
    a: float,
    b: float,
    rel_tol: float = EPS_FLOAT_COMPARE_REL,
    abs_tol: float = EPS_FLOAT_COMPARE_ABS,
) -> bool:
    """
    Сравнение float с учётом машинной точности.

    Алгоритм:
        abs(a - b) <= max(rel_tol * max(abs(a), abs(b)), abs_tol)

    Examples:
        >>> is_close(1.0, 1.0 + 1e-10)
        True
        >>> is_close(550.0, 550.004, abs_tol=0.01)
        True
    """
    return math.isclose(a, b, rel_tol=rel_tol, abs_tol=abs_tol)


def is_zero(value: float, tol: float = EPS_FLOAT_COMPARE_ABS) -> bool:
    """True если abs(value) <= tol."""
    return abs(value) <= tol


# =============================================================================
# ОКРУГЛЕНИЕ И КВАНТОВАНИЕ
# =============================================================================


def round_to_step(value: float, step: float) -> float:
    """
    Округление значения до ближайшего кратного step.

    Стандартное математическое округление (round half away from zero),
    в отличие от банковского округления встроенного round().

    Args:
        value: Значение для округления
        step: Шаг квантования (> 0)

    Returns:
        Округлённое значение

    Examples:
        >>> round_to_step(1.23456789, 0.01)
        1.23
        >>> round_to_step(0.125, 0.01)
        0.13
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")

    # Малый сдвиг компенсирует представление вида 0.125 -> 12.4999999...
    ratio = value / step
    if ratio >= 0:
        steps = math.floor(ratio + 0.5 + EPS_FLOAT_COMPARE_REL)
    else:
        steps = math.ceil(ratio - 0.5 - EPS_FLOAT_COMPARE_REL)

    # Количество знаков шага, чтобы убрать хвосты вида 0.30000000000000004
    decimals = max(0, -math.floor(math.log10(step)))
    return round(steps * step, decimals)


def floor_to_step(value: float, step: float) -> float:
    """
    Округление вниз до кратного step (для неотрицательных значений).

    Допуск EPS_FLOAT_COMPARE_REL защищает от 0.29 / 0.01 = 28.999999999999996.

    Examples:
        >>> floor_to_step(50.005, 0.01)
        50.0
        >>> floor_to_step(0.29, 0.01)
        0.29
    """
    if step <= 0:
        raise ValueError(f"step must be positive, got {step}")

    steps = math.floor(value / step + EPS_FLOAT_COMPARE_REL)
    decimals = max(0, -math.floor(math.log10(step)))
    return round(steps * step, decimals)


def round_money(value: float, step: float = MONEY_STEP) -> float:
    """Округление денежной суммы до кванта валюты."""
    return round_to_step(value, step)


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_finite(value: float, name: str, error: type[Exception] = ValueError) -> None:
    """
    Валидация, что значение — конечное число.

    Args:
        value: Проверяемое значение
        name: Имя параметра (для сообщения об ошибке)
        error: Тип исключения (default: ValueError)

    Raises:
        error: Если value не число или NaN/Inf
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise error(f"{name} must be a number, got {value!r}")

    if not is_valid_float(value):
        raise error(f"{name} must be a valid float (not NaN/Inf), got {value}")


def validate_non_negative(
    value: float, name: str, error: type[Exception] = ValueError
) -> None:
    """
    Валидация, что значение неотрицательное.

    Raises:
        error: Если value < 0 или NaN/Inf
    """
    validate_finite(value, name, error)

    if value < 0:
        raise error(f"{name} must be non-negative, got {value}")


def validate_positive(value: float, name: str, error: type[Exception] = ValueError) -> None:
    """
    Валидация, что значение строго положительное.

    Raises:
        error: Если value <= 0 или NaN/Inf
    """
    validate_finite(value, name, error)

    if value <= 0:
        raise error(f"{name} must be positive, got {value}")


def validate_in_range(
    value: float,
    name: str,
    min_value: float | None = None,
    max_value: float | None = None,
    error: type[Exception] = ValueError,
) -> None:
    """
    Валидация, что значение в заданном диапазоне (границы включительно).

    Raises:
        error: Если value вне диапазона или NaN/Inf
    """
    validate_finite(value, name, error)

    if min_value is not None and value < min_value:
        raise error(f"{name} must be >= {min_value}, got {value}")

    if max_value is not None and value > max_value:
        raise error(f"{name} must be <= {max_value}, got {value}")
