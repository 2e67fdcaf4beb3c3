"""
Contract Validation Module

Модуль для валидации JSON контрактов: запись отправки и экспортный отчёт.
"""

from .validators import (
    ContractValidator,
    SchemaLoader,
    ShipmentRecordValidator,
    ShipmentReportValidator,
    validate_shipment_record,
    validate_shipment_report,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "ShipmentRecordValidator",
    "ShipmentReportValidator",
    # Functions
    "validate_shipment_record",
    "validate_shipment_report",
]
