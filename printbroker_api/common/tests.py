# common/tests.py

from decimal import Decimal

from django.test import SimpleTestCase, override_settings

from common.money import format_money, quantize_money, quantize_rate, to_decimal


class ToDecimalTests(SimpleTestCase):

    def test_accepted_types(self):
        self.assertEqual(to_decimal(5), Decimal("5"))
        self.assertEqual(to_decimal(" 12.50 "), Decimal("12.50"))
        self.assertEqual(to_decimal(Decimal("1.1")), Decimal("1.1"))

    def test_float_keeps_its_printed_value(self):
        self.assertEqual(to_decimal(0.675), Decimal("0.675"))

    def test_rejected_values(self):
        for value in (None, True, False, "abc", "", "NaN", "Infinity", [1], object()):
            with self.subTest(value=value):
                with self.assertRaises(ValueError):
                    to_decimal(value)

    def test_field_name_in_message(self):
        with self.assertRaises(ValueError) as ctx:
            to_decimal("abc", "custom_price")
        self.assertIn("custom_price", str(ctx.exception))


class QuantizeTests(SimpleTestCase):

    def test_money_rounds_half_up(self):
        self.assertEqual(quantize_money(Decimal("133.905")), Decimal("133.91"))
        self.assertEqual(quantize_money(Decimal("0.005")), Decimal("0.01"))
        self.assertEqual(quantize_money(Decimal("-0.005")), Decimal("-0.01"))

    def test_rate_rounds_to_four_places(self):
        self.assertEqual(quantize_rate(Decimal("15.45755")), Decimal("15.4576"))
        self.assertEqual(str(quantize_rate(Decimal("36.639"))), "36.6390")


class FormatMoneyTests(SimpleTestCase):

    def test_format(self):
        self.assertEqual(format_money(Decimal("1234.5")), "$1,234.50")
        self.assertEqual(format_money(Decimal("0")), "$0.00")

    def test_negative(self):
        self.assertEqual(format_money(Decimal("-35")), "-$35.00")

    @override_settings(PRICING_CURRENCY_SYMBOL="USD ")
    def test_symbol_from_settings(self):
        self.assertEqual(format_money(Decimal("10")), "USD 10.00")
