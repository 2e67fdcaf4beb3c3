"""
Exceptions — Типизированные ошибки движка landed cost

Все ошибки локальные и синхронные. Движок никогда не глотает и не повторяет
ошибки: любой сбой прерывает текущий recompute целиком, вызывающий получает
конкретный тип ошибки.

Иерархия:
    LandedCostError
    ├── InvalidRate          (ValueError)        курс <= 0 или NaN/Inf
    ├── InvalidDimension     (ValueError)        отрицательный размер
    ├── InvalidQuantity      (ValueError)        количество не положительное целое
    ├── InvalidPrice         (ValueError)        отрицательная цена
    ├── InvalidInput         (ValueError)        прочие невалидные входы
    ├── DivisionByZero       (ZeroDivisionError) нулевой знаменатель веса rateio
    └── InconsistentState    (RuntimeError)      Totals прочитаны до recompute
"""


# =============================================================================
# BASE
# =============================================================================


class LandedCostError(Exception):
    """Базовый класс для всех ошибок движка."""

    pass


# =============================================================================
# INPUT ERRORS
# =============================================================================


class InvalidRate(LandedCostError, ValueError):
    """Курс обмена <= 0 или не является конечным числом."""

    pass


class InvalidDimension(LandedCostError, ValueError):
    """Отрицательный (или NaN/Inf) размер товара в сантиметрах."""

    pass


class InvalidQuantity(LandedCostError, ValueError):
    """Количество не является положительным целым числом."""

    pass


class InvalidPrice(LandedCostError, ValueError):
    """Отрицательная (или NaN/Inf) цена за единицу."""

    pass


class InvalidInput(LandedCostError, ValueError):
    """
    Прочие невалидные входные данные.

    Например: отрицательный FOB/frete, insurance_rate вне [0, 1],
    отрицательная ставка налога, неизвестное поле или id.
    """

    pass


# =============================================================================
# COMPUTATION ERRORS
# =============================================================================


class DivisionByZero(LandedCostError, ZeroDivisionError):
    """
    Знаменатель веса распределения (rateio) равен нулю.

    Возникает, когда ненулевые общие расходы нужно распределить, а суммарный
    объём/стоимость/количество товаров равен нулю (в т.ч. при отсутствии товаров).
    Никогда не подменяется NaN/Inf.
    """

    pass


class InconsistentState(LandedCostError, RuntimeError):
    """Производные поля (Totals) запрошены до первого успешного recompute."""

    pass
