"""
Volumetrics — Объём (CBM) и стоимость товарной позиции

Формулы:
    unit_volume_m3  = (length_cm * width_cm * height_cm) / 1_000_000
    total_volume_m3 = unit_volume_m3 * quantity
    total_value     = unit_price * quantity        (в иностранной валюте)

Все функции чистые. Производные поля LineItem вычисляются только здесь и
никогда не задаются независимо.
"""

from typing import Final

from src.core.exceptions import InvalidDimension, InvalidPrice, InvalidQuantity
from src.core.math.numerical_safeguards import validate_finite, validate_non_negative

# См³ в одном м³
CM3_PER_M3: Final[float] = 1_000_000.0


# =============================================================================
# ВАЛИДАЦИЯ
# =============================================================================


def validate_dimensions(length_cm: float, width_cm: float, height_cm: float) -> None:
    """
    Raises:
        InvalidDimension: Если любой размер отрицательный или NaN/Inf
    """
    validate_non_negative(length_cm, "length_cm", InvalidDimension)
    validate_non_negative(width_cm, "width_cm", InvalidDimension)
    validate_non_negative(height_cm, "height_cm", InvalidDimension)


def validate_quantity(quantity: int) -> None:
    """
    Raises:
        InvalidQuantity: Если quantity не целое или quantity <= 0
    """
    validate_finite(quantity, "quantity", InvalidQuantity)

    # 3.0 допустимо, 2.5 нет
    if isinstance(quantity, float) and not quantity.is_integer():
        raise InvalidQuantity(f"quantity must be an integer, got {quantity}")

    if quantity <= 0:
        raise InvalidQuantity(f"quantity must be a positive integer, got {quantity}")


def validate_unit_price(unit_price: float) -> None:
    """
    Raises:
        InvalidPrice: Если unit_price отрицательная или NaN/Inf
    """
    validate_non_negative(unit_price, "unit_price", InvalidPrice)


# =============================================================================
# VOLUME CALCULATOR
# =============================================================================


def unit_volume_m3(length_cm: float, width_cm: float, height_cm: float) -> float:
    """
    Объём одной единицы товара в м³.

    Examples:
        >>> unit_volume_m3(30, 20, 15)
        0.009
    """
    validate_dimensions(length_cm, width_cm, height_cm)
    return (length_cm * width_cm * height_cm) / CM3_PER_M3


def total_volume_m3(
    length_cm: float, width_cm: float, height_cm: float, quantity: int
) -> float:
    """
    Суммарный объём позиции в м³.

    Examples:
        >>> total_volume_m3(10, 10, 10, 2)
        0.002
    """
    validate_quantity(quantity)
    return unit_volume_m3(length_cm, width_cm, height_cm) * quantity


# =============================================================================
# VALUE CALCULATOR
# =============================================================================


def total_value(unit_price: float, quantity: int) -> float:
    """
    Суммарная стоимость позиции в иностранной валюте.

    Examples:
        >>> total_value(12.5, 4)
        50.0
    """
    validate_unit_price(unit_price)
    validate_quantity(quantity)
    return unit_price * quantity
