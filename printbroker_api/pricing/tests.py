# pricing/tests.py

from decimal import Decimal

from django.test import SimpleTestCase

from pricing.exceptions import InvalidArgumentError, NotFoundError
from pricing.services.calculator import (
    calculate_custom_pricing,
    calculate_standard_pricing,
    round_for_display,
)
from pricing.services.catalog import RateCatalog, RateRule


def _catalog():
    return RateCatalog([
        RateRule(
            size_id="TEST-100",
            size_name="Test 100",
            base_cpm=Decimal("100"),
            print_cpm=Decimal("40"),
        ),
        RateRule(
            size_id="TEST-MARKUP",
            size_name="Test Markup",
            base_cpm=Decimal("100"),
            print_cpm=Decimal("40"),
            paper_weight_per_1000=Decimal("20"),
            paper_cost_per_lb=Decimal("0.5"),
            paper_charged_cpm=Decimal("12"),
        ),
    ])


# =============================================================================
# Standard Pricing
# =============================================================================


class StandardPricingTests(SimpleTestCase):
    """Tests for calculate_standard_pricing."""

    def setUp(self):
        self.catalog = _catalog()

    def test_concrete_breakdown_without_paper(self):
        """$100/M customer, $40/M print, 10,000 pieces."""
        result = calculate_standard_pricing("TEST-100", 10_000, self.catalog)
        self.assertEqual(result.customer_total, Decimal("1000"))
        self.assertEqual(result.print_total, Decimal("400"))
        self.assertEqual(result.paper_cost_total, Decimal("0"))
        self.assertEqual(result.paper_charged_total, Decimal("0"))
        self.assertEqual(result.impact_margin, Decimal("300"))
        self.assertEqual(result.bradford_print_margin, Decimal("300"))
        self.assertEqual(result.bradford_paper_margin, Decimal("0"))
        self.assertEqual(result.bradford_total, Decimal("700"))
        self.assertEqual(result.bradford_total_margin, Decimal("300"))
        self.assertFalse(result.is_loss)
        self.assertEqual(result.loss_amount, Decimal("0"))

    def test_standard_flags(self):
        result = calculate_standard_pricing("TEST-100", 10_000, self.catalog)
        self.assertFalse(result.is_custom_pricing)
        self.assertEqual(result.standard_customer_price, result.customer_total)

    def test_cpm_fields(self):
        result = calculate_standard_pricing("TEST-100", 10_000, self.catalog)
        self.assertEqual(result.customer_cpm, Decimal("100"))
        self.assertEqual(result.print_cpm, Decimal("40"))
        self.assertEqual(result.impact_margin_cpm, Decimal("30"))
        self.assertEqual(result.bradford_print_margin_cpm, Decimal("30"))
        self.assertEqual(result.bradford_total_cpm, Decimal("70"))

    def test_echoes_size_and_quantity(self):
        result = calculate_standard_pricing("TEST-100", 10_000, self.catalog)
        self.assertEqual(result.size_id, "TEST-100")
        self.assertEqual(result.size_name, "Test 100")
        self.assertEqual(result.quantity, 10_000)
        self.assertEqual(result.thousands, Decimal("10"))

    def test_fractional_thousands(self):
        result = calculate_standard_pricing("TEST-100", 12_500, self.catalog)
        self.assertEqual(result.thousands, Decimal("12.5"))
        self.assertEqual(result.customer_total, Decimal("1250"))
        self.assertEqual(result.print_total, Decimal("500"))
        self.assertEqual(result.impact_margin, Decimal("375"))

    def test_paper_markup_goes_to_sub_broker(self):
        """Paper at $10/M cost charged at $12/M: the $2/M stays with the sub-broker."""
        result = calculate_standard_pricing("TEST-MARKUP", 10_000, self.catalog)
        self.assertEqual(result.paper_cost_cpm, Decimal("10"))
        self.assertEqual(result.paper_charged_cpm, Decimal("12"))
        self.assertEqual(result.paper_cost_total, Decimal("100"))
        self.assertEqual(result.paper_charged_total, Decimal("120"))
        self.assertEqual(result.bradford_paper_margin, Decimal("20"))
        self.assertEqual(result.bradford_paper_margin_cpm, Decimal("2"))
        # residual = 1000 - 400 - 120
        self.assertEqual(result.impact_margin, Decimal("240"))
        self.assertEqual(result.bradford_print_margin, Decimal("240"))
        self.assertEqual(result.bradford_total, Decimal("760"))
        self.assertEqual(result.bradford_total_margin, Decimal("260"))

    def test_paper_markup_keeps_chain_balanced(self):
        result = calculate_standard_pricing("TEST-MARKUP", 10_000, self.catalog)
        self.assertEqual(result.customer_total, result.bradford_total + result.impact_margin)
        self.assertEqual(
            result.customer_total,
            result.print_total
            + result.paper_cost_total
            + result.bradford_paper_margin
            + result.bradford_print_margin
            + result.impact_margin,
        )

    def test_paper_weight(self):
        result = calculate_standard_pricing("TEST-MARKUP", 12_500, self.catalog)
        self.assertEqual(result.paper_weight_per_1000, Decimal("20"))
        self.assertEqual(result.paper_weight_total, Decimal("250"))

    def test_paper_weight_absent_without_paper(self):
        result = calculate_standard_pricing("TEST-100", 10_000, self.catalog)
        self.assertIsNone(result.paper_weight_per_1000)
        self.assertIsNone(result.paper_weight_total)

    def test_jd_total_is_print_total(self):
        result = calculate_standard_pricing("TEST-100", 10_000, self.catalog)
        self.assertEqual(result.jd_total, result.print_total)

    def test_one_thousand_totals_equal_cpms(self):
        result = calculate_standard_pricing("TEST-MARKUP", 1000, self.catalog)
        self.assertEqual(result.thousands, Decimal("1"))
        self.assertEqual(result.customer_total, result.customer_cpm)
        self.assertEqual(result.print_total, result.print_cpm)
        self.assertEqual(result.paper_cost_total, result.paper_cost_cpm)
        self.assertEqual(result.paper_charged_total, result.paper_charged_cpm)
        self.assertEqual(result.impact_margin, result.impact_margin_cpm)
        self.assertEqual(result.bradford_print_margin, result.bradford_print_margin_cpm)
        self.assertEqual(result.bradford_paper_margin, result.bradford_paper_margin_cpm)
        self.assertEqual(result.bradford_total_margin, result.bradford_total_margin_cpm)
        self.assertEqual(result.bradford_total, result.bradford_total_cpm)

    def test_default_catalog_used_when_none_given(self):
        result = calculate_standard_pricing("26x9.75", 10_000)
        self.assertEqual(result.customer_total, Decimal("1126.00"))
        self.assertEqual(result.print_total, Decimal("491.80"))
        self.assertEqual(result.paper_cost_total, Decimal("366.39"))
        self.assertEqual(result.paper_charged_total, Decimal("486.00"))
        self.assertEqual(result.bradford_paper_margin, Decimal("119.61"))
        # residual = 1126.00 - 491.80 - 486.00
        self.assertEqual(result.impact_margin, Decimal("74.10"))
        self.assertEqual(result.bradford_print_margin, Decimal("74.10"))
        self.assertEqual(result.bradford_total, Decimal("1051.90"))
        self.assertEqual(result.paper_weight_total, Decimal("542.8"))

    def test_contract_paper_markup(self):
        result = calculate_standard_pricing("16.375x7.25", 1000)
        self.assertEqual(result.paper_charged_cpm, Decimal("18.55"))
        self.assertEqual(result.impact_margin_cpm, Decimal("7.135"))
        self.assertEqual(result.bradford_paper_margin_cpm, Decimal("3.0925"))
        self.assertEqual(result.bradford_total_cpm, Decimal("60.425"))

    def test_hard_cost_total(self):
        result = calculate_standard_pricing("TEST-MARKUP", 10_000, self.catalog)
        self.assertEqual(result.hard_cost_total, Decimal("500"))


class StandardPricingValidationTests(SimpleTestCase):
    """Invalid input for calculate_standard_pricing."""

    def setUp(self):
        self.catalog = _catalog()

    def test_zero_quantity(self):
        with self.assertRaises(InvalidArgumentError):
            calculate_standard_pricing("TEST-100", 0, self.catalog)

    def test_negative_quantity(self):
        with self.assertRaises(InvalidArgumentError):
            calculate_standard_pricing("TEST-100", -5, self.catalog)

    def test_non_integer_quantities(self):
        for quantity in (10.5, 1000.0, "1000", None, True, Decimal("1000")):
            with self.subTest(quantity=quantity):
                with self.assertRaises(InvalidArgumentError):
                    calculate_standard_pricing("TEST-100", quantity, self.catalog)

    def test_unknown_size(self):
        with self.assertRaises(NotFoundError) as ctx:
            calculate_standard_pricing("99x99", 1000, self.catalog)
        self.assertEqual(ctx.exception.size_id, "99x99")
        self.assertIn("Invalid product size", str(ctx.exception))

    def test_error_hierarchy(self):
        """Callers catching builtin families still see pricing errors."""
        with self.assertRaises(LookupError):
            calculate_standard_pricing("99x99", 1000, self.catalog)
        with self.assertRaises(ValueError):
            calculate_standard_pricing("TEST-100", 0, self.catalog)


# =============================================================================
# Custom Pricing
# =============================================================================


class CustomPricingTests(SimpleTestCase):
    """Tests for calculate_custom_pricing."""

    def setUp(self):
        self.catalog = _catalog()

    def test_no_overrides_returns_standard(self):
        standard = calculate_standard_pricing("TEST-MARKUP", 10_000, self.catalog)
        custom = calculate_custom_pricing("TEST-MARKUP", 10_000, catalog=self.catalog)
        self.assertEqual(custom, standard)
        self.assertFalse(custom.is_custom_pricing)

    def test_custom_price_above_cost(self):
        result = calculate_custom_pricing(
            "TEST-100", 10_000, custom_price=Decimal("1200"), catalog=self.catalog
        )
        self.assertTrue(result.is_custom_pricing)
        self.assertEqual(result.customer_total, Decimal("1200"))
        self.assertEqual(result.customer_cpm, Decimal("120"))
        self.assertEqual(result.impact_margin, Decimal("400"))
        self.assertEqual(result.bradford_print_margin, Decimal("400"))
        self.assertEqual(result.bradford_total, Decimal("800"))
        self.assertEqual(result.standard_customer_price, Decimal("1000"))
        self.assertFalse(result.is_loss)
        self.assertEqual(result.loss_amount, Decimal("0"))

    def test_loss_scenario(self):
        """$350 against $400 of print is a $50 loss."""
        result = calculate_custom_pricing(
            "TEST-100", 10_000, custom_price=Decimal("350"), catalog=self.catalog
        )
        self.assertTrue(result.is_loss)
        self.assertEqual(result.loss_amount, Decimal("50"))
        self.assertEqual(result.impact_margin, Decimal("-25"))
        self.assertEqual(result.bradford_print_margin, Decimal("-25"))
        self.assertEqual(result.bradford_total, Decimal("375"))
        self.assertEqual(result.customer_total, result.bradford_total + result.impact_margin)

    def test_loss_measured_against_paper_cost_not_charge(self):
        """Hard cost is print + actual paper (400 + 100), ignoring the paper markup."""
        result = calculate_custom_pricing(
            "TEST-MARKUP", 10_000, custom_price=Decimal("450"), catalog=self.catalog
        )
        self.assertTrue(result.is_loss)
        self.assertEqual(result.loss_amount, Decimal("50"))
        self.assertEqual(result.impact_margin, Decimal("-35"))
        self.assertEqual(result.bradford_total, Decimal("485"))

    def test_negative_margin_without_loss(self):
        """Between hard cost and charged cost: margins go negative but it is not a loss."""
        result = calculate_custom_pricing(
            "TEST-MARKUP", 10_000, custom_price=Decimal("510"), catalog=self.catalog
        )
        self.assertFalse(result.is_loss)
        self.assertEqual(result.loss_amount, Decimal("0"))
        self.assertEqual(result.impact_margin, Decimal("-5"))
        self.assertEqual(result.bradford_total_margin, Decimal("15"))

    def test_price_exactly_at_hard_cost_is_not_loss(self):
        result = calculate_custom_pricing(
            "TEST-MARKUP", 10_000, custom_price=Decimal("500"), catalog=self.catalog
        )
        self.assertFalse(result.is_loss)

    def test_custom_paper_rate_below_cost(self):
        result = calculate_custom_pricing(
            "TEST-MARKUP", 10_000, custom_paper_cpm=Decimal("8"), catalog=self.catalog
        )
        self.assertTrue(result.is_custom_pricing)
        self.assertEqual(result.customer_total, Decimal("1000"))
        self.assertEqual(result.paper_charged_cpm, Decimal("8"))
        self.assertEqual(result.paper_charged_total, Decimal("80"))
        self.assertEqual(result.bradford_paper_margin, Decimal("-20"))
        # residual = 1000 - 400 - 80
        self.assertEqual(result.impact_margin, Decimal("260"))
        self.assertEqual(result.bradford_print_margin, Decimal("260"))
        self.assertEqual(result.bradford_total, Decimal("740"))
        self.assertEqual(result.bradford_total_margin, Decimal("240"))
        self.assertFalse(result.is_loss)

    def test_custom_paper_rate_at_cost_waives_markup(self):
        result = calculate_custom_pricing(
            "TEST-MARKUP", 10_000, custom_paper_cpm=Decimal("10"), catalog=self.catalog
        )
        self.assertEqual(result.bradford_paper_margin, Decimal("0"))
        self.assertEqual(result.impact_margin, Decimal("250"))

    def test_both_overrides(self):
        result = calculate_custom_pricing(
            "TEST-MARKUP",
            10_000,
            custom_price=Decimal("900"),
            custom_paper_cpm=Decimal("15"),
            catalog=self.catalog,
        )
        self.assertEqual(result.paper_charged_total, Decimal("150"))
        self.assertEqual(result.bradford_paper_margin, Decimal("50"))
        self.assertEqual(result.impact_margin, Decimal("175"))
        self.assertEqual(result.bradford_total, Decimal("725"))
        self.assertEqual(
            result.customer_total,
            result.print_total
            + result.paper_cost_total
            + result.bradford_paper_margin
            + result.bradford_print_margin
            + result.impact_margin,
        )

    def test_float_and_string_prices_accepted(self):
        from_float = calculate_custom_pricing(
            "TEST-100", 10_000, custom_price=350.0, catalog=self.catalog
        )
        from_str = calculate_custom_pricing(
            "TEST-100", 10_000, custom_price="350", catalog=self.catalog
        )
        self.assertEqual(from_float.loss_amount, Decimal("50"))
        self.assertEqual(from_str.loss_amount, Decimal("50"))

    def test_zero_price_is_flagged_not_rejected(self):
        result = calculate_custom_pricing(
            "TEST-100", 10_000, custom_price=0, catalog=self.catalog
        )
        self.assertTrue(result.is_loss)
        self.assertEqual(result.loss_amount, Decimal("400"))
        self.assertEqual(result.customer_cpm, Decimal("0"))

    def test_loss_is_logged(self):
        with self.assertLogs("pricing.services.calculator", level="WARNING") as logs:
            calculate_custom_pricing(
                "TEST-100", 10_000, custom_price=Decimal("350"), catalog=self.catalog
            )
        self.assertIn("Below-cost price", logs.output[0])


class CustomPricingValidationTests(SimpleTestCase):
    """Invalid input for calculate_custom_pricing."""

    def setUp(self):
        self.catalog = _catalog()

    def test_zero_and_negative_quantity(self):
        for quantity in (0, -5):
            with self.subTest(quantity=quantity):
                with self.assertRaises(InvalidArgumentError):
                    calculate_custom_pricing(
                        "TEST-100", quantity, custom_price=Decimal("100"), catalog=self.catalog
                    )

    def test_unknown_size(self):
        with self.assertRaises(NotFoundError):
            calculate_custom_pricing("99x99", 1000, custom_price=Decimal("100"), catalog=self.catalog)

    def test_negative_paper_rate(self):
        with self.assertRaises(InvalidArgumentError):
            calculate_custom_pricing(
                "TEST-MARKUP", 1000, custom_paper_cpm=Decimal("-0.01"), catalog=self.catalog
            )

    def test_negative_price(self):
        with self.assertRaises(InvalidArgumentError):
            calculate_custom_pricing(
                "TEST-100", 1000, custom_price=Decimal("-1"), catalog=self.catalog
            )

    def test_non_numeric_price(self):
        for price in ("abc", "NaN", True, [100]):
            with self.subTest(price=price):
                with self.assertRaises(InvalidArgumentError):
                    calculate_custom_pricing("TEST-100", 1000, custom_price=price, catalog=self.catalog)


# =============================================================================
# Manufacturer Supplies Paper
# =============================================================================


class ManufacturerSuppliesPaperTests(SimpleTestCase):
    """10% broker, 10% sub-broker, 80% manufacturer."""

    def setUp(self):
        self.catalog = _catalog()

    def test_thousand_dollar_split(self):
        """$1000 customer: $100 broker, $900 to sub-broker, $100 kept, $800 to manufacturer."""
        result = calculate_standard_pricing(
            "TEST-100", 10_000, self.catalog, manufacturer_supplies_paper=True
        )
        self.assertTrue(result.manufacturer_supplies_paper)
        self.assertEqual(result.customer_total, Decimal("1000"))
        self.assertEqual(result.impact_margin, Decimal("100"))
        self.assertEqual(result.bradford_total, Decimal("900"))
        self.assertEqual(result.bradford_print_margin, Decimal("100"))
        self.assertEqual(result.bradford_total_margin, Decimal("100"))
        self.assertEqual(result.jd_total, Decimal("800"))
        self.assertEqual(result.print_cpm, Decimal("80"))

    def test_no_paper_amounts(self):
        result = calculate_standard_pricing(
            "TEST-MARKUP", 10_000, self.catalog, manufacturer_supplies_paper=True
        )
        self.assertEqual(result.paper_cost_total, Decimal("0"))
        self.assertEqual(result.paper_charged_total, Decimal("0"))
        self.assertEqual(result.paper_charged_cpm, Decimal("0"))
        self.assertEqual(result.bradford_paper_margin, Decimal("0"))
        self.assertEqual(result.bradford_paper_margin_cpm, Decimal("0"))
        self.assertEqual(result.bradford_total_margin, result.bradford_print_margin)
        self.assertEqual(result.paper_weight_total, Decimal("200"))

    def test_chain_adds_up(self):
        result = calculate_standard_pricing(
            "16.375x7.25", 10_000, manufacturer_supplies_paper=True
        )
        self.assertEqual(result.customer_total, Decimal("675.60"))
        self.assertEqual(result.impact_margin, Decimal("67.56"))
        self.assertEqual(result.bradford_print_margin, Decimal("67.56"))
        self.assertEqual(result.jd_total, Decimal("540.48"))
        self.assertEqual(
            result.customer_total,
            result.impact_margin + result.bradford_print_margin + result.jd_total,
        )
        self.assertEqual(result.customer_total, result.bradford_total + result.impact_margin)

    def test_custom_price(self):
        result = calculate_custom_pricing(
            "TEST-100",
            10_000,
            custom_price=Decimal("1200"),
            catalog=self.catalog,
            manufacturer_supplies_paper=True,
        )
        self.assertTrue(result.is_custom_pricing)
        self.assertEqual(result.impact_margin, Decimal("120"))
        self.assertEqual(result.bradford_total, Decimal("1080"))
        self.assertEqual(result.jd_total, Decimal("960"))
        self.assertEqual(result.standard_customer_price, Decimal("1000"))

    def test_loss_against_catalog_cost(self):
        """Catalog print 400 + paper 100: a $450 job cannot cover production."""
        result = calculate_custom_pricing(
            "TEST-MARKUP",
            10_000,
            custom_price=Decimal("450"),
            catalog=self.catalog,
            manufacturer_supplies_paper=True,
        )
        self.assertTrue(result.is_loss)
        self.assertEqual(result.loss_amount, Decimal("50"))
        self.assertEqual(result.hard_cost_total, Decimal("500"))

    def test_no_overrides_matches_standard(self):
        standard = calculate_standard_pricing(
            "TEST-MARKUP", 10_000, self.catalog, manufacturer_supplies_paper=True
        )
        custom = calculate_custom_pricing(
            "TEST-MARKUP", 10_000, catalog=self.catalog, manufacturer_supplies_paper=True
        )
        self.assertEqual(custom, standard)

    def test_custom_paper_rate_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            calculate_custom_pricing(
                "TEST-MARKUP",
                10_000,
                custom_paper_cpm=Decimal("12"),
                catalog=self.catalog,
                manufacturer_supplies_paper=True,
            )

    def test_rounding_keeps_split(self):
        result = round_for_display(calculate_custom_pricing(
            "TEST-100",
            10_000,
            custom_price=Decimal("1000.05"),
            catalog=self.catalog,
            manufacturer_supplies_paper=True,
        ))
        self.assertEqual(result.impact_margin, Decimal("100.01"))
        self.assertEqual(result.jd_total, Decimal("800.04"))
        self.assertEqual(result.bradford_print_margin, Decimal("100.00"))
        self.assertEqual(result.customer_total, result.bradford_total + result.impact_margin)


# =============================================================================
# Display Rounding
# =============================================================================


class RoundForDisplayTests(SimpleTestCase):
    """Tests for round_for_display."""

    def test_half_cent_margin_rounding_keeps_chain_balanced(self):
        # 16.375x7.25 x 1,000: residual 14.27 splits into 7.135 each
        result = round_for_display(calculate_standard_pricing("16.375x7.25", 1000))
        self.assertEqual(result.customer_total, Decimal("67.56"))
        self.assertEqual(result.impact_margin, Decimal("7.14"))
        self.assertEqual(result.bradford_total, Decimal("60.42"))
        self.assertEqual(result.bradford_print_margin, Decimal("7.13"))
        self.assertEqual(result.paper_cost_total, Decimal("15.46"))
        self.assertEqual(result.bradford_paper_margin, Decimal("3.09"))
        self.assertEqual(result.customer_total, result.bradford_total + result.impact_margin)
        self.assertEqual(
            result.bradford_total,
            result.print_total + result.paper_charged_total + result.bradford_print_margin,
        )

    def test_rates_rounded_to_four_places(self):
        result = round_for_display(calculate_standard_pricing("16.375x7.25", 1000))
        self.assertEqual(result.paper_cost_cpm, Decimal("15.4575"))
        self.assertEqual(result.impact_margin_cpm, Decimal("7.1350"))
        self.assertEqual(str(result.customer_cpm), "67.5600")

    def test_repeating_customer_cpm(self):
        result = calculate_custom_pricing(
            "TEST-100", 3000, custom_price=Decimal("1000"), catalog=_catalog()
        )
        self.assertEqual(round_for_display(result).customer_cpm, Decimal("333.3333"))

    def test_does_not_touch_original(self):
        result = calculate_standard_pricing("16.375x7.25", 1000)
        round_for_display(result)
        self.assertEqual(result.impact_margin, Decimal("7.135"))

    def test_flags_preserved(self):
        result = calculate_custom_pricing(
            "TEST-100", 10_000, custom_price=Decimal("350.004"), catalog=_catalog()
        )
        rounded = round_for_display(result)
        self.assertTrue(rounded.is_loss)
        self.assertTrue(rounded.is_custom_pricing)
        self.assertEqual(rounded.loss_amount, Decimal("50.00"))
        self.assertEqual(rounded.standard_customer_price, Decimal("1000.00"))
