"""
LineItem — Модель товарной позиции отправки

Immutable Pydantic модель. Хранит только исходные поля; производные поля
(объём, стоимость) — чистые функции исходных и вычисляются через
src.core.math.volumetrics при каждом обращении, никогда не задаются напрямую.
Любое изменение позиции создаёт новый экземпляр.
"""

from typing import Any

from pydantic import BaseModel, Field

from src.core.math.volumetrics import (
    total_value,
    total_volume_m3,
    unit_volume_m3,
    validate_dimensions,
    validate_quantity,
    validate_unit_price,
)


# =============================================================================
# LINE ITEM MODEL
# =============================================================================


class LineItem(BaseModel):
    """
    Товарная позиция.

    Immutable модель (frozen=True).
    """

    # Идентификация
    id: str = Field(..., min_length=1, description="Идентификатор позиции")
    name: str = Field(default="", description="Наименование товара")
    tariff_code: str = Field(default="", description="Тарифный код (например, NCM/HS)")

    # Количество и цена
    quantity: int = Field(..., gt=0, description="Количество единиц (положительное целое)")
    unit_price_foreign: float = Field(
        ..., ge=0, description="Цена за единицу в иностранной валюте"
    )

    # Размеры единицы (см)
    length_cm: float = Field(default=0.0, ge=0, description="Длина единицы (см)")
    width_cm: float = Field(default=0.0, ge=0, description="Ширина единицы (см)")
    height_cm: float = Field(default=0.0, ge=0, description="Высота единицы (см)")

    model_config = {"frozen": True}

    @classmethod
    def from_input(cls, **data: Any) -> "LineItem":
        """
        Создание позиции с типизированной проверкой входов.

        Raises:
            InvalidQuantity, InvalidPrice, InvalidDimension
        """
        validate_quantity(data.get("quantity", 1))
        validate_unit_price(data.get("unit_price_foreign", 0.0))
        validate_dimensions(
            data.get("length_cm", 0.0),
            data.get("width_cm", 0.0),
            data.get("height_cm", 0.0),
        )
        return cls(**data)

    # -------------------------------------------------------------------------
    # Derived

    @property
    def unit_volume_m3(self) -> float:
        """Объём единицы (м³)."""
        return unit_volume_m3(self.length_cm, self.width_cm, self.height_cm)

    @property
    def total_volume_m3(self) -> float:
        """Суммарный объём позиции (м³)."""
        return total_volume_m3(self.length_cm, self.width_cm, self.height_cm, self.quantity)

    @property
    def total_value_foreign(self) -> float:
        """Суммарная стоимость позиции (foreign)."""
        return total_value(self.unit_price_foreign, self.quantity)
