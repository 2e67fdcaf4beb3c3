"""ExpenseSynchronizer — синхронизация пары foreign/local у расхода.

Правило «последнее отредактированное поле побеждает»:
- on_foreign_edit: foreign авторитетен, local = round(to_local(foreign, rate))
- on_local_edit:   local авторитетен, foreign = round(to_foreign(local, rate))
- resync (смена курса): производная сторона пересчитывается из авторитетной

Производная сторона всегда вычисляется из авторитетной, а не из предыдущего
значения производной. Повторные правки одной пары не накапливают ошибку
округления и не порождают циклов обратной связи.

Точность: производная сторона округляется до кванта валюты (step, по умолчанию
0.01). Авторитетная сторона хранится как введена.
"""

import logging

from src.core.domain.expense import CurrencySide, Expense
from src.core.exceptions import InvalidInput
from src.core.math.currency import to_foreign, to_local, validate_rate
from src.core.math.numerical_safeguards import (
    MONEY_STEP,
    is_close,
    round_to_step,
    validate_non_negative,
)

logger = logging.getLogger(__name__)


class ExpenseSynchronizer:
    """Поддерживает инвариант value_local ≈ value_foreign * rate."""

    def __init__(self, step: float = MONEY_STEP):
        """
        Args:
            step: квант валюты для производной стороны (default 0.01)
        """
        self.step = step

    def on_foreign_edit(self, expense: Expense, new_foreign: float, rate: float) -> Expense:
        """Пользователь изменил сумму в иностранной валюте.

        Raises:
            InvalidRate: если rate <= 0
            InvalidInput: если new_foreign < 0
        """
        validate_rate(rate)
        validate_non_negative(new_foreign, "value_foreign", InvalidInput)

        local = round_to_step(to_local(new_foreign, rate), self.step)
        logger.debug(
            "expense %s: foreign edit %.4f -> local %.2f (rate %.6f)",
            expense.id, new_foreign, local, rate,
        )
        return expense.model_copy(
            update={
                "value_foreign": new_foreign,
                "value_local": local,
                "authoritative": CurrencySide.FOREIGN,
            }
        )

    def on_local_edit(self, expense: Expense, new_local: float, rate: float) -> Expense:
        """Пользователь изменил сумму в локальной валюте.

        Raises:
            InvalidRate: если rate <= 0
            InvalidInput: если new_local < 0
        """
        validate_rate(rate)
        validate_non_negative(new_local, "value_local", InvalidInput)

        foreign = round_to_step(to_foreign(new_local, rate), self.step)
        logger.debug(
            "expense %s: local edit %.4f -> foreign %.2f (rate %.6f)",
            expense.id, new_local, foreign, rate,
        )
        return expense.model_copy(
            update={
                "value_foreign": foreign,
                "value_local": new_local,
                "authoritative": CurrencySide.LOCAL,
            }
        )

    def resync(self, expense: Expense, rate: float) -> Expense:
        """Пересчёт производной стороны из авторитетной (например, после смены курса)."""
        if expense.authoritative == CurrencySide.FOREIGN:
            return self.on_foreign_edit(expense, expense.value_foreign, rate)
        return self.on_local_edit(expense, expense.value_local, rate)

    def is_synchronized(self, expense: Expense, rate: float) -> bool:
        """True если производная сторона равна пересчёту авторитетной (в пределах step/2)."""
        expected = self.resync(expense, rate)
        tol = self.step / 2
        return is_close(
            expected.value_foreign, expense.value_foreign, rel_tol=0.0, abs_tol=tol
        ) and is_close(expected.value_local, expense.value_local, rel_tol=0.0, abs_tol=tol)


# Экземпляр по умолчанию (квант 0.01)
_DEFAULT_SYNCHRONIZER = ExpenseSynchronizer()


def edit_expense_foreign(expense: Expense, value: float, rate: float) -> Expense:
    """Правка foreign-стороны расхода с синхронизацией local."""
    return _DEFAULT_SYNCHRONIZER.on_foreign_edit(expense, value, rate)


def edit_expense_local(expense: Expense, value: float, rate: float) -> Expense:
    """Правка local-стороны расхода с синхронизацией foreign."""
    return _DEFAULT_SYNCHRONIZER.on_local_edit(expense, value, rate)
