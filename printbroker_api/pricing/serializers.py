# pricing/serializers.py
"""
Serializers at the edge of the pricing services.

Input is validated here before it reaches the calculators; pricing
errors ("cannot price") come back as ValidationError, while a below-cost
price is returned as a normal result with requires_approval set.
"""

from decimal import Decimal

from rest_framework import serializers

from .exceptions import PricingError
from .services.allocation import validate_pricing
from .services.calculator import calculate_custom_pricing, round_for_display
from .services.catalog import load_rate_catalog


MAX_QUANTITY = 1_000_000_000


def _money(**kwargs):
    return serializers.DecimalField(max_digits=24, decimal_places=2, **kwargs)


def _rate(**kwargs):
    return serializers.DecimalField(max_digits=24, decimal_places=4, **kwargs)


class RateRuleSerializer(serializers.Serializer):
    """Product size as shown in size pickers."""

    size_id = serializers.CharField()
    size_name = serializers.CharField()
    description = serializers.CharField()
    base_cpm = _rate()
    print_cpm = _rate()
    paper_weight_per_1000 = _rate(allow_null=True)
    paper_cost_per_lb = _rate(allow_null=True)
    paper_cost_cpm = _rate()
    paper_charged_cpm = _rate(source="effective_paper_charged_cpm")
    roll_size = serializers.DecimalField(max_digits=6, decimal_places=2, allow_null=True)


# =============================================================================
# PRICE CALCULATOR
# =============================================================================

class PricingRequestSerializer(serializers.Serializer):
    """
    Input for a job price.

    Pass the catalog in context as "catalog"; without it the configured
    catalog is loaded.
    """

    size_id = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1, max_value=MAX_QUANTITY)
    custom_price = serializers.DecimalField(
        max_digits=14, decimal_places=4, min_value=Decimal("0"), required=False, allow_null=True
    )
    custom_paper_cpm = serializers.DecimalField(
        max_digits=14, decimal_places=4, min_value=Decimal("0"), required=False, allow_null=True
    )
    manufacturer_supplies_paper = serializers.BooleanField(required=False, default=False)

    def get_catalog(self):
        catalog = self.context.get("catalog")
        if catalog is None:
            catalog = load_rate_catalog()
            self.context["catalog"] = catalog
        return catalog

    def validate_size_id(self, value):
        if value not in self.get_catalog():
            raise serializers.ValidationError("Invalid product size.")
        return value

    def validate(self, attrs):
        unknown = sorted(set(self.initial_data) - set(self.fields))
        if unknown:
            raise serializers.ValidationError(
                {name: "Unknown field." for name in unknown}
            )
        return attrs

    def calculate(self):
        """Run the calculator on validated data and return the PricingResult."""
        data = self.validated_data
        try:
            return calculate_custom_pricing(
                data["size_id"],
                data["quantity"],
                custom_price=data.get("custom_price"),
                custom_paper_cpm=data.get("custom_paper_cpm"),
                manufacturer_supplies_paper=data.get("manufacturer_supplies_paper", False),
                catalog=self.get_catalog(),
            )
        except PricingError as e:
            raise serializers.ValidationError({"non_field_errors": [str(e)]})


class PricingResultSerializer(serializers.Serializer):
    """
    Pricing breakdown for display: totals in cents, rates to 4 places.
    Rounding keeps the chain adding up to the customer total.
    """

    size_id = serializers.CharField()
    size_name = serializers.CharField()
    quantity = serializers.IntegerField()

    customer_cpm = _rate()
    print_cpm = _rate()
    paper_cost_cpm = _rate()
    paper_charged_cpm = _rate()
    impact_margin_cpm = _rate()
    bradford_print_margin_cpm = _rate()
    bradford_paper_margin_cpm = _rate()
    bradford_total_margin_cpm = _rate()
    bradford_total_cpm = _rate()

    customer_total = _money()
    print_total = _money()
    jd_total = _money()
    paper_cost_total = _money()
    paper_charged_total = _money()
    impact_margin = _money()
    bradford_print_margin = _money()
    bradford_paper_margin = _money()
    bradford_total_margin = _money()
    bradford_total = _money()

    paper_weight_per_1000 = _rate(allow_null=True)
    paper_weight_total = _money(allow_null=True)

    is_custom_pricing = serializers.BooleanField()
    standard_customer_price = _money()
    is_loss = serializers.BooleanField()
    loss_amount = _money()
    requires_approval = serializers.BooleanField(source="is_loss")
    manufacturer_supplies_paper = serializers.BooleanField()
    warnings = serializers.SerializerMethodField()

    def to_representation(self, instance):
        return super().to_representation(round_for_display(instance))

    def get_warnings(self, obj):
        return validate_pricing(obj).warnings
