# conftest.py - Shared pytest fixtures for all apps

import pytest
from decimal import Decimal

from pricing.services.catalog import RateCatalog, RateRule, load_rate_catalog


# =============================================================================
# Rate Rule Fixtures
# =============================================================================

@pytest.fixture
def plain_rule():
    """A size printed on customer stock: $100/M to the customer, $40/M print."""
    return RateRule(
        size_id="TEST-100",
        size_name="Test 100",
        base_cpm=Decimal("100"),
        print_cpm=Decimal("40"),
    )


@pytest.fixture
def markup_rule():
    """A size with paper at $10/M cost, charged at $12/M."""
    return RateRule(
        size_id="TEST-MARKUP",
        size_name="Test Markup",
        base_cpm=Decimal("100"),
        print_cpm=Decimal("40"),
        paper_weight_per_1000=Decimal("20"),
        paper_cost_per_lb=Decimal("0.5"),
        paper_charged_cpm=Decimal("12"),
        roll_size=Decimal("20"),
    )


# =============================================================================
# Catalog Fixtures
# =============================================================================

@pytest.fixture
def catalog(plain_rule, markup_rule):
    """Synthetic catalog with one paperless size and one marked-up paper size."""
    return RateCatalog([plain_rule, markup_rule])


@pytest.fixture
def default_catalog():
    """The configured contract-rate catalog."""
    return load_rate_catalog()
