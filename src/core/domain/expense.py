"""
Expense — Модель фиксированного дополнительного расхода

Расход хранится в обеих валютах. Инвариант:

    value_local ≈ value_foreign * exchange_rate   (в пределах кванта валюты)

Ровно одна сторона авторитетна — та, что редактировалась последней
(поле authoritative). Вторая всегда производная и поддерживается
ExpenseSynchronizer (src.simulation.expense_sync).
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from src.core.exceptions import InvalidInput
from src.core.math.numerical_safeguards import validate_non_negative


class CurrencySide(str, Enum):
    """Сторона пары foreign/local."""

    FOREIGN = "foreign"
    LOCAL = "local"


class Expense(BaseModel):
    """
    Дополнительный расход (таможенный брокер, терминал, доставка и т.п.).

    Immutable модель (frozen=True). Изменения только через ExpenseSynchronizer.
    """

    id: str = Field(..., min_length=1, description="Идентификатор расхода")
    name: str = Field(..., min_length=1, description="Наименование расхода")
    value_foreign: float = Field(default=0.0, ge=0, description="Сумма в иностранной валюте")
    value_local: float = Field(default=0.0, ge=0, description="Сумма в локальной валюте")
    authoritative: CurrencySide = Field(
        default=CurrencySide.FOREIGN, description="Сторона, отредактированная последней"
    )

    model_config = {"frozen": True}

    @classmethod
    def from_input(cls, **data: Any) -> "Expense":
        """
        Raises:
            InvalidInput: Если сумма отрицательная
        """
        validate_non_negative(data.get("value_foreign", 0.0), "value_foreign", InvalidInput)
        validate_non_negative(data.get("value_local", 0.0), "value_local", InvalidInput)
        return cls(**data)

    def authoritative_value(self) -> float:
        """Значение авторитетной стороны."""
        if self.authoritative == CurrencySide.FOREIGN:
            return self.value_foreign
        return self.value_local
