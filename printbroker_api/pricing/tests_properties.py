"""
Chain-wide guarantees of the calculators, checked across the contract
rate catalog and a spread of quantities.
"""

from decimal import Decimal

import pytest

from pricing.services.calculator import (
    calculate_custom_pricing,
    calculate_standard_pricing,
    round_for_display,
)
from pricing.services.catalog import DEFAULT_RATE_RULES


SIZE_IDS = [row["size_id"] for row in DEFAULT_RATE_RULES]
QUANTITIES = [1, 250, 1000, 2500, 12_345, 100_000]
CENT = Decimal("0.01")

TOTAL_FIELDS = (
    "customer_total",
    "print_total",
    "paper_cost_total",
    "paper_charged_total",
    "impact_margin",
    "bradford_print_margin",
    "bradford_paper_margin",
    "bradford_total_margin",
    "bradford_total",
)
CPM_FIELDS = (
    "customer_cpm",
    "print_cpm",
    "paper_cost_cpm",
    "paper_charged_cpm",
    "impact_margin_cpm",
    "bradford_print_margin_cpm",
    "bradford_paper_margin_cpm",
    "bradford_total_margin_cpm",
    "bradford_total_cpm",
)


def _allocated(result):
    return (
        result.print_total
        + result.paper_charged_total
        + result.impact_margin
        + result.bradford_print_margin
    )


@pytest.mark.parametrize("size_id", SIZE_IDS)
@pytest.mark.parametrize("quantity", QUANTITIES)
def test_allocation_adds_up_to_customer_total(default_catalog, size_id, quantity):
    result = calculate_standard_pricing(size_id, quantity, default_catalog)
    assert result.customer_total == _allocated(result)
    assert result.customer_total == result.bradford_total + result.impact_margin
    assert result.bradford_paper_margin == result.paper_charged_total - result.paper_cost_total
    assert result.bradford_paper_margin > 0
    assert result.bradford_total_margin == result.bradford_print_margin + result.bradford_paper_margin


# size -> (broker margin, sub-broker paper margin, sub-broker total) per M
CONTRACT_CPMS = {
    "16.375x7.25": ("7.135", "3.0925", "60.425"),
    "17.5x8.5": ("9.08", "4.072", "71.92"),
    "22.125x9.75": ("7.41", "7.1485", "99.50"),
    "26x9.75": ("7.41", "11.961", "105.19"),
    "9x6": ("4.725", "2.05", "30.275"),
    "11x6": ("4.055", "2.69", "34.945"),
}


@pytest.mark.parametrize("size_id", SIZE_IDS)
def test_contract_cpms(default_catalog, size_id):
    impact, paper_margin, bradford_total = CONTRACT_CPMS[size_id]
    result = calculate_standard_pricing(size_id, 1000, default_catalog)
    assert result.impact_margin_cpm == Decimal(impact)
    assert result.bradford_print_margin_cpm == Decimal(impact)
    assert result.bradford_paper_margin_cpm == Decimal(paper_margin)
    assert result.bradford_total_cpm == Decimal(bradford_total)


@pytest.mark.parametrize("size_id", SIZE_IDS)
@pytest.mark.parametrize("quantity", QUANTITIES)
def test_manufacturer_paper_split_adds_up(default_catalog, size_id, quantity):
    result = calculate_standard_pricing(
        size_id, quantity, default_catalog, manufacturer_supplies_paper=True
    )
    assert result.customer_total == result.impact_margin + result.bradford_print_margin + result.jd_total
    assert result.customer_total == _allocated(result)
    assert result.impact_margin == result.bradford_print_margin


@pytest.mark.parametrize("size_id", SIZE_IDS)
@pytest.mark.parametrize("quantity", QUANTITIES)
def test_allocation_within_a_cent_after_rounding(default_catalog, size_id, quantity):
    rounded = round_for_display(calculate_standard_pricing(size_id, quantity, default_catalog))
    assert abs(rounded.customer_total - _allocated(rounded)) <= CENT


@pytest.mark.parametrize("custom_price", ["0", "1", "499.99", "950", "1000000"])
@pytest.mark.parametrize("custom_paper_cpm", [None, "0", "8", "25.5"])
def test_custom_allocation_adds_up(catalog, custom_price, custom_paper_cpm):
    result = calculate_custom_pricing(
        "TEST-MARKUP", 10_000, Decimal(custom_price), custom_paper_cpm, catalog=catalog
    )
    assert result.customer_total == Decimal(custom_price)
    assert result.customer_total == result.bradford_total + result.impact_margin
    assert result.customer_total == (
        result.print_total
        + result.paper_cost_total
        + result.bradford_paper_margin
        + result.bradford_print_margin
        + result.impact_margin
    )


@pytest.mark.parametrize("size_id", SIZE_IDS)
def test_repeat_calls_are_identical(default_catalog, size_id):
    assert calculate_standard_pricing(size_id, 7_500, default_catalog) == \
        calculate_standard_pricing(size_id, 7_500, default_catalog)
    assert calculate_custom_pricing(size_id, 7_500, "123.45", "9", default_catalog) == \
        calculate_custom_pricing(size_id, 7_500, "123.45", "9", default_catalog)


@pytest.mark.parametrize("size_id", SIZE_IDS)
def test_custom_without_overrides_matches_standard(default_catalog, size_id):
    standard = calculate_standard_pricing(size_id, 20_000, default_catalog)
    custom = calculate_custom_pricing(size_id, 20_000, catalog=default_catalog)
    assert custom == standard
    assert custom.is_custom_pricing is False


@pytest.mark.parametrize("size_id", SIZE_IDS)
@pytest.mark.parametrize("offset", [Decimal("-100"), Decimal("-0.01"), Decimal("0"), Decimal("0.01"), Decimal("100")])
def test_loss_detection(default_catalog, size_id, offset):
    standard = calculate_standard_pricing(size_id, 10_000, default_catalog)
    hard_cost = standard.print_total + standard.paper_cost_total
    price = hard_cost + offset
    result = calculate_custom_pricing(size_id, 10_000, price, catalog=default_catalog)
    if price < hard_cost:
        assert result.is_loss is True
        assert result.loss_amount == hard_cost - price
    else:
        assert result.is_loss is False
        assert result.loss_amount == 0


@pytest.mark.parametrize("size_id", SIZE_IDS)
def test_doubling_quantity_doubles_totals(default_catalog, size_id):
    single = calculate_standard_pricing(size_id, 6_250, default_catalog)
    double = calculate_standard_pricing(size_id, 12_500, default_catalog)
    for name in TOTAL_FIELDS:
        assert getattr(double, name) == getattr(single, name) * 2, name
    for name in CPM_FIELDS:
        assert getattr(double, name) == getattr(single, name), name


@pytest.mark.parametrize("size_id", SIZE_IDS)
def test_one_thousand_pieces(default_catalog, size_id):
    result = calculate_standard_pricing(size_id, 1000, default_catalog)
    for total, cpm in zip(TOTAL_FIELDS, CPM_FIELDS):
        assert getattr(result, total) == getattr(result, cpm), total


def test_concrete_scenario(catalog):
    result = calculate_standard_pricing("TEST-100", 10_000, catalog)
    assert round_for_display(result).customer_total == Decimal("1000.00")
    assert result.print_total == Decimal("400.00")
    assert result.customer_total - result.print_total - result.paper_charged_total == Decimal("600.00")
    assert result.impact_margin == Decimal("300.00")
    assert result.bradford_print_margin == Decimal("300.00")
    assert result.bradford_total == Decimal("700.00")
    assert result.is_loss is False


def test_concrete_loss_scenario(catalog):
    result = calculate_custom_pricing("TEST-100", 10_000, Decimal("350"), catalog=catalog)
    assert result.is_loss is True
    assert result.loss_amount == Decimal("50.00")
