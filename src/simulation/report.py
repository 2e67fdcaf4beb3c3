"""Persistence & Export — запись отправки и экспортный отчёт.

Единица персистентности — запись Shipment со всеми исходными полями.
Totals никогда не сохраняются и никогда не читаются из хранилища: после
загрузки они всегда пересчитываются.

Экспортный отчёт строится только из свежепересчитанных Totals плюс исходные
поля отправки (разбивка по товарам, налогам, расходам и общий итог). Формат
файла (PDF, XLSX, ...) — ответственность внешнего экспортёра.
"""

import logging
from typing import Any, Final

import jsonschema

from src.core.contracts import validate_shipment_record, validate_shipment_report
from src.core.domain.shipment import Shipment
from src.core.domain.totals import Totals
from src.core.exceptions import (
    InvalidDimension,
    InvalidInput,
    InvalidPrice,
    InvalidQuantity,
    InvalidRate,
    LandedCostError,
)
from src.simulation.aggregation import RecomputeConfig, recompute

logger = logging.getLogger(__name__)

# Нарушение ограничения значения поля → типизированная ошибка движка
_FIELD_ERRORS: Final[dict[str, type[LandedCostError]]] = {
    "exchange_rate": InvalidRate,
    "quantity": InvalidQuantity,
    "unit_price_foreign": InvalidPrice,
    "length_cm": InvalidDimension,
    "width_cm": InvalidDimension,
    "height_cm": InvalidDimension,
    "fob_foreign": InvalidInput,
    "freight_foreign": InvalidInput,
    "insurance_rate": InvalidInput,
    "rate_pct": InvalidInput,
    "value_foreign": InvalidInput,
    "value_local": InvalidInput,
}

_VALUE_VALIDATORS: Final[frozenset[str]] = frozenset(
    {"type", "minimum", "exclusiveMinimum", "maximum", "exclusiveMaximum"}
)


def _typed_error(error: jsonschema.ValidationError) -> LandedCostError | None:
    if not error.path or error.validator not in _VALUE_VALIDATORS:
        return None
    field = error.path[-1]
    if field not in _FIELD_ERRORS:
        return None
    location = "/".join(str(part) for part in error.path)
    return _FIELD_ERRORS[field](f"{location}: {error.message}")


# =============================================================================
# PERSISTENCE
# =============================================================================


def dump_shipment(shipment: Shipment) -> dict[str, Any]:
    """Сериализация отправки в запись (JSON-совместимый dict)."""
    record = shipment.model_dump(mode="json")
    validate_shipment_record(record)
    return record


def load_shipment(record: dict[str, Any]) -> Shipment:
    """Загрузка отправки из записи.

    Нарушение ограничения числового поля поднимается той же типизированной
    ошибкой, что и при вводе (курс 0 → InvalidRate, размер -1 → InvalidDimension).

    Raises:
        InvalidRate, InvalidQuantity, InvalidPrice, InvalidDimension,
        InvalidInput: значение поля вне допустимого диапазона
        jsonschema.ValidationError: структурное нарушение контракта
            (нет обязательного поля, лишнее поле, неизвестное значение enum)
        pydantic.ValidationError: запись нарушает ограничения модели
    """
    try:
        validate_shipment_record(record)
    except jsonschema.ValidationError as e:
        typed = _typed_error(e)
        if typed is None:
            raise
        raise typed from e
    return Shipment.model_validate(record)


def load_and_recompute(
    record: dict[str, Any], config: RecomputeConfig | None = None
) -> tuple[Shipment, Totals]:
    """Загрузка записи с обязательным пересчётом Totals."""
    shipment = load_shipment(record)
    totals = recompute(shipment, config)
    logger.debug("loaded shipment %r: %d items", shipment.name, len(shipment.items))
    return shipment, totals


# =============================================================================
# EXPORT
# =============================================================================


def build_report(shipment: Shipment, config: RecomputeConfig | None = None) -> dict[str, Any]:
    """Экспортный отчёт из свежего пересчёта.

    Raises:
        LandedCostError: если пересчёт невозможен (см. recompute)
    """
    totals = recompute(shipment, config)
    prices = {item.id: item.unit_price_foreign for item in shipment.items}

    report = {
        "simulation": {
            "name": shipment.name,
            "supplier": shipment.supplier,
            "notes": shipment.notes,
        },
        "parameters": {
            "exchange_rate": shipment.exchange_rate,
            "fob_foreign": shipment.fob_foreign,
            "freight_foreign": shipment.freight_foreign,
            "insurance_rate": shipment.insurance_rate,
            "allocation_method": shipment.allocation_method.value,
        },
        "items": [
            {
                "item_id": row.item_id,
                "name": row.name,
                "tariff_code": row.tariff_code,
                "quantity": row.quantity,
                "unit_price_foreign": prices[row.item_id],
                "total_volume_m3": row.total_volume_m3,
                "volume_share_pct": row.volume_share_pct,
                "value_local": row.value_local,
                "freight_local": row.freight_local,
                "insurance_local": row.insurance_local,
                "taxes_local": row.taxes_local,
                "expenses_local": row.expenses_local,
                "landed_cost_local": row.landed_cost_local,
                "unit_landed_cost_local": row.unit_landed_cost_local,
            }
            for row in totals.items
        ],
        "taxes": [line.model_dump(mode="json") for line in totals.taxes],
        "expenses": [line.model_dump(mode="json") for line in totals.expenses],
        "summary": {
            "total_volume_m3": totals.total_volume_m3,
            "tax_base_foreign": totals.tax_base_foreign,
            "total_tax_local": totals.total_tax_local,
            "total_expenses_local": totals.total_expenses_local,
            "grand_landed_cost_local": totals.grand_landed_cost_local,
            "grand_landed_cost_foreign": totals.grand_landed_cost_foreign,
        },
    }
    validate_shipment_report(report)
    return report
