"""
Core math modules для landed cost engine

Математические примитивы: конверсия валют, объём, налоги, rateio.
Все функции чистые и детерминированные.
"""

# Numerical Safeguards
from src.core.math.numerical_safeguards import (
    # Epsilon constants
    EPS_FLOAT_COMPARE_ABS,
    EPS_FLOAT_COMPARE_REL,
    MONEY_STEP,
    # Comparisons
    is_close,
    is_valid_float,
    is_zero,
    # Rounding
    floor_to_step,
    round_money,
    round_to_step,
    # Validation
    validate_finite,
    validate_in_range,
    validate_non_negative,
    validate_positive,
)

# Currency
from src.core.math.currency import (
    CurrencyConverter,
    to_foreign,
    to_local,
    validate_rate,
)

# Volumetrics
from src.core.math.volumetrics import (
    CM3_PER_M3,
    total_value,
    total_volume_m3,
    unit_volume_m3,
    validate_dimensions,
    validate_quantity,
    validate_unit_price,
)

# Taxation
from src.core.math.taxation import (
    DEFAULT_TAX_BASE_MODE,
    TaxBaseMode,
    TaxBases,
    compute_base,
    compute_bases,
    compute_insurance,
    compute_tax_amount,
    compute_tax_amounts,
    validate_shipment_inputs,
)

# Allocation
from src.core.math.allocation import (
    DEFAULT_ALLOCATION_METHOD,
    AllocationMethod,
    allocate,
    allocate_by_method,
    compute_weights,
    quantity_weight,
    value_weight,
    volume_weight,
    weight_fn_for,
)

__all__ = [
    # Numerical Safeguards — Epsilon constants
    "EPS_FLOAT_COMPARE_ABS",
    "EPS_FLOAT_COMPARE_REL",
    "MONEY_STEP",
    # Numerical Safeguards — Comparisons
    "is_close",
    "is_valid_float",
    "is_zero",
    # Numerical Safeguards — Rounding
    "floor_to_step",
    "round_money",
    "round_to_step",
    # Numerical Safeguards — Validation
    "validate_finite",
    "validate_in_range",
    "validate_non_negative",
    "validate_positive",
    # Currency
    "CurrencyConverter",
    "to_foreign",
    "to_local",
    "validate_rate",
    # Volumetrics
    "CM3_PER_M3",
    "total_value",
    "total_volume_m3",
    "unit_volume_m3",
    "validate_dimensions",
    "validate_quantity",
    "validate_unit_price",
    # Taxation
    "DEFAULT_TAX_BASE_MODE",
    "TaxBaseMode",
    "TaxBases",
    "compute_base",
    "compute_bases",
    "compute_insurance",
    "compute_tax_amount",
    "compute_tax_amounts",
    "validate_shipment_inputs",
    # Allocation
    "DEFAULT_ALLOCATION_METHOD",
    "AllocationMethod",
    "allocate",
    "allocate_by_method",
    "compute_weights",
    "quantity_weight",
    "value_weight",
    "volume_weight",
    "weight_fn_for",
]
