"""
Tests for the rate catalog.
"""

from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from pricing.exceptions import InvalidArgumentError, NotFoundError
from pricing.services.catalog import (
    DEFAULT_RATE_RULES,
    RateCatalog,
    RateRule,
    load_rate_catalog,
)


class RateRuleTests(SimpleTestCase):
    """Unit tests for RateRule."""

    def test_values_converted_to_decimal(self):
        rule = RateRule(
            size_id="9x6",
            size_name="6 x 9",
            base_cpm="35.00",
            print_cpm=10,
            paper_weight_per_1000=20,
            paper_cost_per_lb=0.675,
        )
        self.assertEqual(rule.base_cpm, Decimal("35.00"))
        self.assertEqual(rule.print_cpm, Decimal("10"))
        self.assertEqual(rule.paper_cost_per_lb, Decimal("0.675"))

    def test_paper_cost_cpm(self):
        rule = RateRule(
            size_id="26x9.75",
            size_name="9 3/4 x 26",
            base_cpm=Decimal("112.60"),
            print_cpm=Decimal("49.18"),
            paper_weight_per_1000=Decimal("54.28"),
            paper_cost_per_lb=Decimal("0.675"),
        )
        self.assertEqual(rule.paper_cost_cpm, Decimal("36.639"))
        self.assertEqual(rule.effective_paper_charged_cpm, Decimal("36.639"))
        self.assertEqual(rule.paper_markup_cpm, Decimal("0"))
        self.assertEqual(rule.sub_broker_base_cost_cpm, Decimal("85.819"))

    def test_paper_markup(self):
        rule = RateRule(
            size_id="M",
            size_name="M",
            base_cpm=Decimal("100"),
            print_cpm=Decimal("40"),
            paper_weight_per_1000=Decimal("20"),
            paper_cost_per_lb=Decimal("0.5"),
            paper_charged_cpm=Decimal("12"),
        )
        self.assertEqual(rule.paper_markup_cpm, Decimal("2"))
        self.assertEqual(rule.sub_broker_base_cost_cpm, Decimal("52"))

    def test_no_paper(self):
        rule = RateRule(size_id="P", size_name="P", base_cpm=Decimal("100"), print_cpm=Decimal("40"))
        self.assertFalse(rule.has_paper)
        self.assertEqual(rule.paper_cost_cpm, Decimal("0"))
        self.assertEqual(rule.effective_paper_charged_cpm, Decimal("0"))

    def test_size_name_defaults_to_id(self):
        rule = RateRule(size_id="P", size_name="", base_cpm=Decimal("100"), print_cpm=Decimal("40"))
        self.assertEqual(rule.size_name, "P")

    def test_base_must_exceed_print(self):
        with self.assertRaises(InvalidArgumentError):
            RateRule(size_id="X", size_name="X", base_cpm=Decimal("40"), print_cpm=Decimal("40"))

    def test_paper_fields_must_come_together(self):
        with self.assertRaises(InvalidArgumentError):
            RateRule(
                size_id="X",
                size_name="X",
                base_cpm=Decimal("100"),
                print_cpm=Decimal("40"),
                paper_weight_per_1000=Decimal("20"),
            )
        with self.assertRaises(InvalidArgumentError):
            RateRule(
                size_id="X",
                size_name="X",
                base_cpm=Decimal("100"),
                print_cpm=Decimal("40"),
                paper_cost_per_lb=Decimal("0.5"),
            )

    def test_paper_charge_requires_paper(self):
        with self.assertRaises(InvalidArgumentError):
            RateRule(
                size_id="X",
                size_name="X",
                base_cpm=Decimal("100"),
                print_cpm=Decimal("40"),
                paper_charged_cpm=Decimal("5"),
            )

    def test_negative_rate_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            RateRule(size_id="X", size_name="X", base_cpm=Decimal("100"), print_cpm=Decimal("-1"))

    def test_non_numeric_rate_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            RateRule(size_id="X", size_name="X", base_cpm="lots", print_cpm=Decimal("40"))

    def test_missing_size_id_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            RateRule(size_id="", size_name="X", base_cpm=Decimal("100"), print_cpm=Decimal("40"))

    def test_rules_are_immutable(self):
        rule = RateRule(size_id="P", size_name="P", base_cpm=Decimal("100"), print_cpm=Decimal("40"))
        with self.assertRaises(AttributeError):
            rule.base_cpm = Decimal("1")


class RateRuleFromDictTests(SimpleTestCase):
    """Building rules from settings data."""

    def test_from_dict(self):
        rule = RateRule.from_dict({"size_id": "P", "base_cpm": "100", "print_cpm": "40"})
        self.assertEqual(rule.size_name, "P")
        self.assertEqual(rule.base_cpm, Decimal("100"))

    def test_unknown_keys_rejected(self):
        with self.assertRaises(InvalidArgumentError) as ctx:
            RateRule.from_dict({
                "size_id": "P",
                "base_cpm": "100",
                "print_cpm": "40",
                "customerCPM": "100",
            })
        self.assertIn("customerCPM", str(ctx.exception))

    def test_missing_keys_rejected(self):
        with self.assertRaises(InvalidArgumentError) as ctx:
            RateRule.from_dict({"size_id": "P", "base_cpm": "100"})
        self.assertIn("print_cpm", str(ctx.exception))


class RateCatalogTests(SimpleTestCase):
    """Unit tests for RateCatalog."""

    def setUp(self):
        self.rules = [
            RateRule(size_id="B", size_name="B", base_cpm=Decimal("100"), print_cpm=Decimal("40")),
            RateRule(size_id="A", size_name="A", base_cpm=Decimal("50"), print_cpm=Decimal("20")),
        ]
        self.catalog = RateCatalog(self.rules)

    def test_get_rate_rule(self):
        self.assertIs(self.catalog.get_rate_rule("A"), self.rules[1])

    def test_unknown_size(self):
        with self.assertRaises(NotFoundError):
            self.catalog.get_rate_rule("Z")

    def test_unhashable_size(self):
        with self.assertRaises(NotFoundError):
            self.catalog.get_rate_rule(["A"])

    def test_list_sizes_keeps_declared_order(self):
        self.assertEqual([r.size_id for r in self.catalog.list_sizes()], ["B", "A"])
        self.assertEqual([r.size_id for r in self.catalog], ["B", "A"])

    def test_container_protocol(self):
        self.assertEqual(len(self.catalog), 2)
        self.assertIn("A", self.catalog)
        self.assertNotIn("Z", self.catalog)

    def test_duplicate_size_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            RateCatalog(self.rules + [self.rules[0]])

    def test_non_rule_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            RateCatalog([{"size_id": "A"}])

    def test_later_changes_to_source_list_ignored(self):
        self.rules.append(
            RateRule(size_id="C", size_name="C", base_cpm=Decimal("10"), print_cpm=Decimal("1"))
        )
        self.assertNotIn("C", self.catalog)

    def test_empty_catalog(self):
        catalog = RateCatalog([])
        self.assertEqual(len(catalog), 0)
        with self.assertRaises(NotFoundError):
            catalog.get_rate_rule("A")


class LoadRateCatalogTests(SimpleTestCase):
    """Tests for load_rate_catalog and the default contract rates."""

    def test_defaults(self):
        catalog = load_rate_catalog()
        self.assertEqual(
            [rule.size_id for rule in catalog.list_sizes()],
            [row["size_id"] for row in DEFAULT_RATE_RULES],
        )
        rule = catalog.get_rate_rule("26x9.75")
        self.assertEqual(rule.size_name, "9 3/4 x 26")
        self.assertEqual(rule.roll_size, Decimal("20"))
        self.assertEqual(rule.effective_paper_charged_cpm, Decimal("48.60"))
        self.assertEqual(rule.paper_markup_cpm, Decimal("11.961"))

    def test_default_rules_mark_up_paper(self):
        for rule in load_rate_catalog():
            with self.subTest(size=rule.size_id):
                self.assertGreater(rule.paper_markup_cpm, 0)

    def test_default_rules_price_above_cost(self):
        for rule in load_rate_catalog():
            with self.subTest(size=rule.size_id):
                self.assertGreater(rule.base_cpm, rule.sub_broker_base_cost_cpm)

    def test_each_call_builds_a_new_catalog(self):
        self.assertIsNot(load_rate_catalog(), load_rate_catalog())

    @override_settings(PRICING_RATE_RULES=[
        {"size_id": "X1", "size_name": "Custom", "base_cpm": "100", "print_cpm": "40"},
    ])
    def test_rules_from_settings(self):
        catalog = load_rate_catalog()
        self.assertEqual(len(catalog), 1)
        self.assertEqual(catalog.get_rate_rule("X1").size_name, "Custom")
        self.assertNotIn("26x9.75", catalog)

    @override_settings(PRICING_RATE_RULES=[
        {"size_id": "X1", "base_cpm": "100", "print_cpm": "40", "colour": "red"},
    ])
    def test_bad_settings_rejected(self):
        with self.assertRaises(InvalidArgumentError):
            load_rate_catalog()
