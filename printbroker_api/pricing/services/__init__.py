from .calculator import (
    PricingResult,
    calculate_custom_pricing,
    calculate_standard_pricing,
    round_for_display,
)
from .catalog import DEFAULT_RATE_RULES, RateCatalog, RateRule, load_rate_catalog

__all__ = [
    "DEFAULT_RATE_RULES",
    "PricingResult",
    "RateCatalog",
    "RateRule",
    "calculate_custom_pricing",
    "calculate_standard_pricing",
    "load_rate_catalog",
    "round_for_display",
]
