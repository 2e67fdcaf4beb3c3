"""
Currency — Двунаправленная конверсия валют по курсу

Единственный допустимый способ преобразований между:
- foreign (валюта поставщика, например USD)
- local (валюта импортёра, например BRL)

Курс: количество local-единиц за 1 foreign-единицу (rate > 0).

    to_local(foreign, rate)  = foreign * rate
    to_foreign(local, rate)  = local / rate

ТОЧНОСТЬ:
Конверсия выполняется в float без промежуточного округления. Round-trip
to_foreign(to_local(x, rate), rate) отличается от x не более чем на
несколько ULP (относительная ошибка ~2.2e-16), что на порядки меньше
MONEY_STEP. Округление до кванта валюты — ответственность вызывающего
(см. numerical_safeguards.round_money).

ЗАПРЕЩЕНО конвертировать валюты в обход этого модуля.
"""

from src.core.exceptions import InvalidRate
from src.core.math.numerical_safeguards import is_valid_float, validate_positive


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_rate(rate: float) -> None:
    """
    Проверка курса обмена.

    Args:
        rate: Курс (local за 1 foreign)

    Raises:
        InvalidRate: Если rate <= 0 или NaN/Inf
    """
    validate_positive(rate, "exchange_rate", InvalidRate)


# =============================================================================
# КОНВЕРТЕРЫ
# =============================================================================


def to_local(foreign_amount: float, rate: float) -> float:
    """
    Конверсия: foreign → local

    Args:
        foreign_amount: Сумма в иностранной валюте
        rate: Курс (local за 1 foreign)

    Returns:
        Сумма в локальной валюте

    Raises:
        InvalidRate: Если rate <= 0

    Examples:
        >>> to_local(100.0, 5.5)
        550.0
    """
    validate_rate(rate)
    if not is_valid_float(foreign_amount):
        raise ValueError(f"foreign_amount must be finite, got {foreign_amount}")
    return foreign_amount * rate


def to_foreign(local_amount: float, rate: float) -> float:
    """
    Конверсия: local → foreign

    Args:
        local_amount: Сумма в локальной валюте
        rate: Курс (local за 1 foreign)

    Returns:
        Сумма в иностранной валюте

    Raises:
        InvalidRate: Если rate <= 0

    Examples:
        >>> round(to_foreign(600.0, 5.5), 2)
        109.09
    """
    validate_rate(rate)
    if not is_valid_float(local_amount):
        raise ValueError(f"local_amount must be finite, got {local_amount}")
    return local_amount / rate


class CurrencyConverter:
    """
    Конвертер, привязанный к одному курсу.

    Stateless по отношению к данным: хранит только курс, проверенный при
    создании. Удобен в пайплайне recompute, где курс фиксирован на весь проход.
    """

    def __init__(self, rate: float):
        validate_rate(rate)
        self.rate = rate

    def to_local(self, foreign_amount: float) -> float:
        return to_local(foreign_amount, self.rate)

    def to_foreign(self, local_amount: float) -> float:
        return to_foreign(local_amount, self.rate)
