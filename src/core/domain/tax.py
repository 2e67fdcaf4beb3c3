"""
Tax — Модель процентного налога на импорт

Сумма налога не хранится в модели: она производная (rate_pct / 100 * base)
и пересчитывается TaxEngine при каждом recompute.
"""

from typing import Any

from pydantic import BaseModel, Field

from src.core.exceptions import InvalidInput
from src.core.math.numerical_safeguards import validate_non_negative
from src.core.math.taxation import DEFAULT_TAX_BASE_MODE, TaxBaseMode


class Tax(BaseModel):
    """
    Налог отправки.

    Immutable модель (frozen=True).
    """

    id: str = Field(..., min_length=1, description="Идентификатор налога")
    name: str = Field(..., min_length=1, description="Наименование (например, 'II')")
    rate_pct: float = Field(..., ge=0, description="Ставка в процентах (14.4 = 14.4%)")
    base_mode: TaxBaseMode = Field(
        default=DEFAULT_TAX_BASE_MODE, description="Агрегат отправки, к которому применяется ставка"
    )

    model_config = {"frozen": True}

    @classmethod
    def from_input(cls, **data: Any) -> "Tax":
        """
        Raises:
            InvalidInput: Если ставка отрицательная или режим базы неизвестен
        """
        validate_non_negative(data.get("rate_pct", 0.0), "rate_pct", InvalidInput)
        mode = data.get("base_mode", DEFAULT_TAX_BASE_MODE)
        try:
            TaxBaseMode(mode)
        except ValueError:
            raise InvalidInput(f"Unknown tax base mode: {mode!r}")
        return cls(**data)
