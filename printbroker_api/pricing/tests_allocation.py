"""
Tests for job fields, purchase-order legs and pricing validation.
"""

from decimal import Decimal

from django.test import SimpleTestCase

from pricing.exceptions import NotFoundError
from pricing.services.allocation import (
    BROKER,
    JOB_PRICING_FIELDS,
    MANUFACTURER,
    SUB_BROKER,
    build_purchase_order_legs,
    job_pricing_fields,
    sub_broker_base_cost,
    validate_pricing,
)
from pricing.services.calculator import calculate_custom_pricing, calculate_standard_pricing
from pricing.services.catalog import RateCatalog, RateRule


def _catalog():
    return RateCatalog([
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


class JobPricingFieldsTests(SimpleTestCase):

    def setUp(self):
        self.catalog = _catalog()

    def test_standard_job_needs_no_approval(self):
        result = calculate_standard_pricing("TEST-MARKUP", 10_000, self.catalog)
        fields = job_pricing_fields(result)
        self.assertFalse(fields["requires_approval"])
        self.assertEqual(fields["jd_total"], Decimal("400"))
        self.assertEqual(fields["bradford_total"], Decimal("760"))
        for name in JOB_PRICING_FIELDS:
            self.assertEqual(fields[name], getattr(result, name))

    def test_loss_requires_approval(self):
        result = calculate_custom_pricing(
            "TEST-MARKUP", 10_000, custom_price=Decimal("450"), catalog=self.catalog
        )
        fields = job_pricing_fields(result)
        self.assertTrue(fields["requires_approval"])
        self.assertEqual(fields["loss_amount"], Decimal("50"))


class PurchaseOrderLegTests(SimpleTestCase):

    def setUp(self):
        self.result = calculate_standard_pricing("TEST-MARKUP", 10_000, _catalog())
        self.broker_leg, self.sub_broker_leg = build_purchase_order_legs(self.result)

    def test_broker_leg(self):
        self.assertEqual(self.broker_leg.origin_company, BROKER)
        self.assertEqual(self.broker_leg.target_company, SUB_BROKER)
        self.assertEqual(self.broker_leg.original_amount, Decimal("1000"))
        self.assertEqual(self.broker_leg.vendor_amount, Decimal("760"))
        self.assertEqual(self.broker_leg.margin_amount, Decimal("240"))
        self.assertEqual(self.broker_leg.paper_amount, Decimal("0"))

    def test_sub_broker_leg(self):
        self.assertEqual(self.sub_broker_leg.origin_company, SUB_BROKER)
        self.assertEqual(self.sub_broker_leg.target_company, MANUFACTURER)
        self.assertEqual(self.sub_broker_leg.original_amount, Decimal("760"))
        self.assertEqual(self.sub_broker_leg.vendor_amount, Decimal("400"))
        self.assertEqual(self.sub_broker_leg.margin_amount, Decimal("260"))
        self.assertEqual(self.sub_broker_leg.paper_amount, Decimal("100"))

    def test_sub_broker_leg_accounts_for_every_dollar(self):
        leg = self.sub_broker_leg
        self.assertEqual(
            leg.original_amount, leg.vendor_amount + leg.paper_amount + leg.margin_amount
        )

    def test_broker_leg_margin_is_difference(self):
        leg = self.broker_leg
        self.assertEqual(leg.margin_amount, leg.original_amount - leg.vendor_amount)

    def test_manufacturer_supplies_paper(self):
        result = calculate_standard_pricing(
            "TEST-MARKUP", 10_000, _catalog(), manufacturer_supplies_paper=True
        )
        broker_leg, sub_broker_leg = build_purchase_order_legs(result)
        self.assertEqual(broker_leg.vendor_amount, Decimal("900"))
        self.assertEqual(broker_leg.margin_amount, Decimal("100"))
        self.assertEqual(sub_broker_leg.original_amount, Decimal("900"))
        self.assertEqual(sub_broker_leg.vendor_amount, Decimal("800"))
        self.assertEqual(sub_broker_leg.margin_amount, Decimal("100"))
        self.assertEqual(sub_broker_leg.paper_amount, Decimal("0"))
        self.assertTrue(job_pricing_fields(result)["manufacturer_supplies_paper"])


class ValidatePricingTests(SimpleTestCase):

    def setUp(self):
        self.catalog = _catalog()

    def test_standard_pricing_is_clean(self):
        validation = validate_pricing(calculate_standard_pricing("TEST-MARKUP", 10_000, self.catalog))
        self.assertTrue(validation.is_valid)
        self.assertEqual(validation.warnings, [])

    def test_loss_warns_but_stays_valid(self):
        result = calculate_custom_pricing(
            "TEST-MARKUP", 10_000, custom_price=Decimal("450"), catalog=self.catalog
        )
        validation = validate_pricing(result)
        self.assertTrue(validation.is_valid)
        self.assertEqual(len(validation.warnings), 3)
        self.assertIn("Broker margin is negative: -$35.00", validation.warnings)
        # -35 print margin share offset by the $20 paper markup
        self.assertIn("Sub-broker margin is negative: -$15.00", validation.warnings)
        self.assertTrue(validation.warnings[-1].startswith("Price is below print and paper cost by $50.00"))

    def test_negative_margins_without_loss(self):
        result = calculate_custom_pricing(
            "TEST-MARKUP", 10_000, custom_price=Decimal("510"), catalog=self.catalog
        )
        validation = validate_pricing(result)
        self.assertEqual(validation.warnings, ["Broker margin is negative: -$5.00"])

    def test_sub_broker_negative_margin(self):
        result = calculate_custom_pricing(
            "TEST-MARKUP",
            10_000,
            custom_price=Decimal("1000"),
            custom_paper_cpm=Decimal("0"),
            catalog=self.catalog,
        )
        # paper margin -100, print margin +300
        self.assertEqual(validate_pricing(result).warnings, [])

        result = calculate_custom_pricing(
            "TEST-MARKUP",
            10_000,
            custom_price=Decimal("500"),
            custom_paper_cpm=Decimal("0"),
            catalog=self.catalog,
        )
        # paper margin -100, print margin +50
        self.assertIn(
            "Sub-broker margin is negative: -$50.00", validate_pricing(result).warnings
        )

    def test_zero_price_is_an_error(self):
        result = calculate_custom_pricing(
            "TEST-MARKUP", 10_000, custom_price=Decimal("0"), catalog=self.catalog
        )
        validation = validate_pricing(result)
        self.assertFalse(validation.is_valid)
        self.assertEqual(validation.errors, ["Customer total must be greater than zero"])


class SubBrokerBaseCostTests(SimpleTestCase):

    def test_base_cost(self):
        cpm, description = sub_broker_base_cost("TEST-MARKUP", _catalog())
        self.assertEqual(cpm, Decimal("52"))
        self.assertEqual(description, "Print ($40.00) + Paper ($12.00)")

    def test_default_catalog(self):
        cpm, description = sub_broker_base_cost("26x9.75")
        self.assertEqual(cpm, Decimal("97.78"))
        self.assertEqual(description, "Print ($49.18) + Paper ($48.60)")

    def test_unknown_size(self):
        with self.assertRaises(NotFoundError):
            sub_broker_base_cost("99x99", _catalog())
