"""
Helpers that turn a PricingResult into what the job and purchase-order
services persist: the job's pricing fields, one purchase order per leg
of the chain, and the warnings shown before a job is submitted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from common.money import ZERO, format_money

from .calculator import PricingResult
from .catalog import RateCatalog, load_rate_catalog


BROKER = "impact-direct"
SUB_BROKER = "bradford"
MANUFACTURER = "jd-graphic"

# PricingResult fields copied onto the job record
JOB_PRICING_FIELDS = (
    "size_id",
    "size_name",
    "quantity",
    "customer_cpm",
    "impact_margin_cpm",
    "bradford_total_cpm",
    "bradford_print_margin_cpm",
    "bradford_paper_margin_cpm",
    "bradford_total_margin_cpm",
    "print_cpm",
    "paper_cost_cpm",
    "paper_charged_cpm",
    "customer_total",
    "impact_margin",
    "bradford_total",
    "bradford_print_margin",
    "bradford_paper_margin",
    "bradford_total_margin",
    "paper_cost_total",
    "paper_charged_total",
    "paper_weight_per_1000",
    "paper_weight_total",
    "is_custom_pricing",
    "manufacturer_supplies_paper",
    "standard_customer_price",
    "is_loss",
    "loss_amount",
)


@dataclass(frozen=True)
class PurchaseOrderLeg:
    """
    One auto-generated purchase order.
    original_amount is what the origin company is paid for the job,
    vendor_amount what it pays the target company.
    """

    origin_company: str
    target_company: str
    original_amount: Decimal
    vendor_amount: Decimal
    margin_amount: Decimal
    paper_amount: Decimal = ZERO


@dataclass
class PricingValidation:
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def job_pricing_fields(result: PricingResult) -> dict:
    """Fields the job service stores verbatim, plus the approval flag."""
    data = {name: getattr(result, name) for name in JOB_PRICING_FIELDS}
    data["jd_total"] = result.jd_total
    data["requires_approval"] = result.is_loss
    return data


def build_purchase_order_legs(result: PricingResult) -> list[PurchaseOrderLeg]:
    """
    Broker -> sub-broker and sub-broker -> manufacturer purchase orders.

    The sub-broker leg keeps the paper cost separate: the sub-broker buys
    the paper itself, so its margin is the print margin share plus any
    paper markup, not everything between the two amounts.
    """
    return [
        PurchaseOrderLeg(
            origin_company=BROKER,
            target_company=SUB_BROKER,
            original_amount=result.customer_total,
            vendor_amount=result.bradford_total,
            margin_amount=result.impact_margin,
        ),
        PurchaseOrderLeg(
            origin_company=SUB_BROKER,
            target_company=MANUFACTURER,
            original_amount=result.bradford_total,
            vendor_amount=result.jd_total,
            margin_amount=result.bradford_total_margin,
            paper_amount=result.paper_cost_total,
        ),
    ]


def validate_pricing(result: PricingResult) -> PricingValidation:
    """
    Errors block submission; warnings are shown but the job can go ahead
    (a loss goes through the approval step instead).
    """
    validation = PricingValidation()

    if result.customer_total <= 0:
        validation.errors.append("Customer total must be greater than zero")

    if result.impact_margin < 0:
        validation.warnings.append(
            f"Broker margin is negative: {format_money(result.impact_margin)}"
        )
    if result.bradford_total_margin < 0:
        validation.warnings.append(
            f"Sub-broker margin is negative: {format_money(result.bradford_total_margin)}"
        )
    if result.is_loss:
        validation.warnings.append(
            f"Price is below print and paper cost by {format_money(result.loss_amount)}. "
            "Requires approval."
        )
    return validation


def sub_broker_base_cost(size_id: str, catalog: RateCatalog | None = None) -> tuple[Decimal, str]:
    """The sub-broker's per-thousand cost before the margin split, with a label."""
    if catalog is None:
        catalog = load_rate_catalog()
    rule = catalog.get_rate_rule(size_id)
    description = (
        f"Print ({format_money(rule.print_cpm)}) + "
        f"Paper ({format_money(rule.effective_paper_charged_cpm)})"
    )
    return rule.sub_broker_base_cost_cpm, description
