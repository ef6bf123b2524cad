"""
Tests for the pricing request/result serializers.
"""

from decimal import Decimal

from django.test import SimpleTestCase
from rest_framework.exceptions import ValidationError

from pricing.serializers import (
    MAX_QUANTITY,
    PricingRequestSerializer,
    PricingResultSerializer,
    RateRuleSerializer,
)
from pricing.services.calculator import calculate_custom_pricing, calculate_standard_pricing
from pricing.services.catalog import RateCatalog, RateRule, load_rate_catalog


def _catalog():
    return RateCatalog([
        RateRule(
            size_id="TEST-100",
            size_name="Test 100",
            base_cpm=Decimal("100"),
            print_cpm=Decimal("40"),
        ),
    ])


class PricingRequestSerializerTests(SimpleTestCase):

    def _serializer(self, data, catalog=None):
        return PricingRequestSerializer(data=data, context={"catalog": catalog or _catalog()})

    def test_standard_request(self):
        serializer = self._serializer({"size_id": "TEST-100", "quantity": 10000})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        result = serializer.calculate()
        self.assertEqual(result.customer_total, Decimal("1000"))
        self.assertFalse(result.is_custom_pricing)

    def test_custom_request(self):
        serializer = self._serializer({
            "size_id": "TEST-100",
            "quantity": "10000",
            "custom_price": "350.00",
        })
        self.assertTrue(serializer.is_valid(), serializer.errors)
        result = serializer.calculate()
        self.assertTrue(result.is_custom_pricing)
        self.assertTrue(result.is_loss)
        self.assertEqual(result.loss_amount, Decimal("50"))

    def test_null_overrides_mean_standard(self):
        serializer = self._serializer({
            "size_id": "TEST-100",
            "quantity": 10000,
            "custom_price": None,
            "custom_paper_cpm": None,
        })
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertFalse(serializer.calculate().is_custom_pricing)

    def test_unknown_size(self):
        serializer = self._serializer({"size_id": "99x99", "quantity": 1000})
        self.assertFalse(serializer.is_valid())
        self.assertEqual(serializer.errors["size_id"], ["Invalid product size."])

    def test_non_positive_quantity(self):
        for quantity in (0, -5):
            with self.subTest(quantity=quantity):
                serializer = self._serializer({"size_id": "TEST-100", "quantity": quantity})
                self.assertFalse(serializer.is_valid())
                self.assertIn("quantity", serializer.errors)

    def test_missing_fields(self):
        serializer = self._serializer({})
        self.assertFalse(serializer.is_valid())
        self.assertIn("size_id", serializer.errors)
        self.assertIn("quantity", serializer.errors)

    def test_negative_paper_rate(self):
        serializer = self._serializer({
            "size_id": "TEST-100",
            "quantity": 1000,
            "custom_paper_cpm": "-1",
        })
        self.assertFalse(serializer.is_valid())
        self.assertIn("custom_paper_cpm", serializer.errors)

    def test_unknown_fields_rejected(self):
        serializer = self._serializer({
            "size_id": "TEST-100",
            "quantity": 1000,
            "customerCPM": "120",
        })
        self.assertFalse(serializer.is_valid())
        self.assertIn("customerCPM", serializer.errors)

    def test_quantity_upper_bound(self):
        serializer = self._serializer({"size_id": "TEST-100", "quantity": MAX_QUANTITY + 1})
        self.assertFalse(serializer.is_valid())
        self.assertIn("quantity", serializer.errors)

        serializer = self._serializer({"size_id": "TEST-100", "quantity": MAX_QUANTITY})
        self.assertTrue(serializer.is_valid(), serializer.errors)

    def test_sub_cent_custom_price(self):
        serializer = self._serializer({
            "size_id": "TEST-100",
            "quantity": 10000,
            "custom_price": "350.004",
        })
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.calculate().customer_total, Decimal("350.004"))

    def test_manufacturer_supplies_paper(self):
        serializer = self._serializer({
            "size_id": "TEST-100",
            "quantity": 10000,
            "manufacturer_supplies_paper": True,
        })
        self.assertTrue(serializer.is_valid(), serializer.errors)
        result = serializer.calculate()
        self.assertTrue(result.manufacturer_supplies_paper)
        self.assertEqual(result.jd_total, Decimal("800"))

    def test_manufacturer_paper_with_custom_paper_rate(self):
        serializer = self._serializer({
            "size_id": "TEST-100",
            "quantity": 10000,
            "custom_paper_cpm": "5",
            "manufacturer_supplies_paper": True,
        })
        self.assertTrue(serializer.is_valid(), serializer.errors)
        with self.assertRaises(ValidationError) as ctx:
            serializer.calculate()
        self.assertIn("non_field_errors", ctx.exception.detail)

    def test_configured_catalog_when_no_context(self):
        serializer = PricingRequestSerializer(data={"size_id": "26x9.75", "quantity": 1000})
        self.assertTrue(serializer.is_valid(), serializer.errors)
        self.assertEqual(serializer.calculate().customer_total, Decimal("112.60"))


class PricingResultSerializerTests(SimpleTestCase):

    def test_rounded_breakdown(self):
        data = PricingResultSerializer(calculate_standard_pricing("26x9.75", 10_000)).data
        self.assertEqual(data["size_id"], "26x9.75")
        self.assertEqual(data["quantity"], 10_000)
        self.assertEqual(data["customer_total"], "1126.00")
        self.assertEqual(data["print_total"], "491.80")
        self.assertEqual(data["jd_total"], "491.80")
        self.assertEqual(data["paper_cost_total"], "366.39")
        self.assertEqual(data["paper_charged_total"], "486.00")
        self.assertEqual(data["impact_margin"], "74.10")
        self.assertEqual(data["bradford_print_margin"], "74.10")
        self.assertEqual(data["bradford_total"], "1051.90")
        self.assertEqual(data["customer_cpm"], "112.6000")
        self.assertEqual(data["paper_cost_cpm"], "36.6390")
        self.assertEqual(data["paper_weight_per_1000"], "54.2800")
        self.assertEqual(data["paper_weight_total"], "542.80")
        self.assertFalse(data["is_custom_pricing"])
        self.assertFalse(data["requires_approval"])
        self.assertEqual(data["warnings"], [])

    def test_loss_is_flagged_not_failed(self):
        result = calculate_custom_pricing(
            "TEST-100", 10_000, custom_price=Decimal("350"), catalog=_catalog()
        )
        data = PricingResultSerializer(result).data
        self.assertTrue(data["is_loss"])
        self.assertTrue(data["requires_approval"])
        self.assertEqual(data["loss_amount"], "50.00")
        self.assertEqual(data["standard_customer_price"], "1000.00")
        self.assertEqual(data["paper_weight_total"], None)
        self.assertTrue(any("Requires approval" in w for w in data["warnings"]))

    def test_largest_accepted_quantity_renders(self):
        data = PricingResultSerializer(calculate_standard_pricing("26x9.75", MAX_QUANTITY)).data
        self.assertEqual(data["customer_total"], "112600000.00")

    def test_very_large_totals_render(self):
        data = PricingResultSerializer(calculate_standard_pricing("26x9.75", 10**13)).data
        self.assertEqual(data["customer_total"], "1126000000000.00")
        self.assertEqual(data["customer_cpm"], "112.6000")

    def test_manufacturer_paper_flag(self):
        result = calculate_standard_pricing("TEST-100", 10_000, _catalog(), manufacturer_supplies_paper=True)
        data = PricingResultSerializer(result).data
        self.assertTrue(data["manufacturer_supplies_paper"])
        self.assertEqual(data["jd_total"], "800.00")
        self.assertEqual(data["impact_margin"], "100.00")
        self.assertEqual(data["bradford_total"], "900.00")


class RateRuleSerializerTests(SimpleTestCase):

    def test_size_list(self):
        data = RateRuleSerializer(load_rate_catalog().list_sizes(), many=True).data
        self.assertEqual(data[0]["size_id"], "16.375x7.25")
        self.assertEqual(data[0]["size_name"], "7 1/4 x 16 3/8")
        self.assertEqual(data[0]["paper_cost_cpm"], "15.4575")
        self.assertEqual(data[0]["paper_charged_cpm"], "18.5500")
        self.assertEqual(data[0]["roll_size"], "15.00")

    def test_size_without_paper(self):
        data = RateRuleSerializer(_catalog().get_rate_rule("TEST-100")).data
        self.assertIsNone(data["paper_weight_per_1000"])
        self.assertIsNone(data["roll_size"])
        self.assertEqual(data["paper_cost_cpm"], "0.0000")
