"""
Job pricing for the broker -> sub-broker -> manufacturer chain.

Money flow for one job:

    customer pays broker                      customer_total
    broker pays sub-broker                    bradford_total
    sub-broker pays manufacturer for print    print_total
    sub-broker buys paper                     paper_cost_total

The residual (customer price minus print and paper as charged) is split
50/50 between broker (impact_margin) and sub-broker
(bradford_print_margin). Any paper markup is kept by the sub-broker as
bradford_paper_margin, on top of its half of the residual.

When the manufacturer supplies the paper the split is by share of the
customer price instead: 10% broker, 10% sub-broker, 80% manufacturer.
The manufacturer's bill then covers print and paper, so the paper
amounts are zero and print_total is the manufacturer's 80%.

Everything is Decimal at full precision. Use round_for_display() to get
cent-rounded figures for invoices and screens.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from decimal import Decimal

from common.money import ZERO, quantize_money, quantize_rate, to_decimal

from ..exceptions import InvalidArgumentError
from .catalog import RateCatalog, RateRule, load_rate_catalog


logger = logging.getLogger(__name__)

THOUSAND = Decimal("1000")
TWO = Decimal("2")

# Shares of the customer price when the manufacturer supplies paper
BROKER_SHARE = Decimal("0.10")
SUB_BROKER_SHARE = Decimal("0.10")


@dataclass(frozen=True)
class PricingResult:
    size_id: str
    size_name: str
    quantity: int
    thousands: Decimal

    # Per thousand
    customer_cpm: Decimal
    print_cpm: Decimal
    paper_cost_cpm: Decimal
    paper_charged_cpm: Decimal
    impact_margin_cpm: Decimal
    bradford_print_margin_cpm: Decimal
    bradford_paper_margin_cpm: Decimal
    bradford_total_margin_cpm: Decimal
    bradford_total_cpm: Decimal

    # Job totals
    customer_total: Decimal
    print_total: Decimal
    paper_cost_total: Decimal
    paper_charged_total: Decimal
    impact_margin: Decimal
    bradford_print_margin: Decimal
    bradford_paper_margin: Decimal
    bradford_total_margin: Decimal
    bradford_total: Decimal

    # Paper usage, None for sizes without charged paper
    paper_weight_per_1000: Decimal | None
    paper_weight_total: Decimal | None

    is_custom_pricing: bool
    standard_customer_price: Decimal
    is_loss: bool
    loss_amount: Decimal
    # Catalog print plus actual paper cost: the floor below which a price loses money
    hard_cost_total: Decimal
    manufacturer_supplies_paper: bool = False

    @property
    def jd_total(self) -> Decimal:
        """What the manufacturer is paid."""
        return self.print_total

    @property
    def residual_margin(self) -> Decimal:
        return self.impact_margin + self.bradford_print_margin

    def as_dict(self) -> dict:
        return asdict(self)


def _validate_quantity(quantity) -> int:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        raise InvalidArgumentError(f"Quantity must be a whole number, got {quantity!r}")
    if quantity <= 0:
        raise InvalidArgumentError(f"Quantity must be greater than zero, got {quantity}")
    return quantity


def _non_negative(value, field: str) -> Decimal:
    try:
        amount = to_decimal(value, field)
    except ValueError as e:
        raise InvalidArgumentError(str(e)) from None
    if amount < 0:
        raise InvalidArgumentError(f"{field} cannot be negative, got {value!r}")
    return amount


def _allocate(
    rule: RateRule,
    quantity: int,
    customer_total: Decimal,
    paper_charged_cpm: Decimal,
    *,
    is_custom_pricing: bool,
    standard_customer_price: Decimal | None = None,
    manufacturer_supplies_paper: bool = False,
) -> PricingResult:
    """
    Split customer_total across the chain. CPM figures are derived from
    the full-precision totals, so a result is consistent whichever way
    the customer price was arrived at.
    """
    thousands = Decimal(quantity) / THOUSAND
    hard_cost = (rule.print_cpm + rule.paper_cost_cpm) * thousands

    if manufacturer_supplies_paper:
        impact_margin = customer_total * BROKER_SHARE
        bradford_print_margin = customer_total * SUB_BROKER_SHARE
        print_total = customer_total - impact_margin - bradford_print_margin
        print_cpm = print_total / thousands
        paper_cost_total = paper_charged_total = ZERO
        paper_cost_cpm = paper_charged_cpm = ZERO
    else:
        print_total = rule.print_cpm * thousands
        print_cpm = rule.print_cpm
        paper_cost_total = rule.paper_cost_cpm * thousands
        paper_cost_cpm = rule.paper_cost_cpm
        paper_charged_total = paper_charged_cpm * thousands

        residual = customer_total - print_total - paper_charged_total
        impact_margin = residual / TWO
        bradford_print_margin = residual / TWO

    bradford_paper_margin = paper_charged_total - paper_cost_total
    # paper_charged_total already carries the paper markup
    bradford_total = print_total + paper_charged_total + bradford_print_margin
    bradford_total_margin = bradford_print_margin + bradford_paper_margin

    if is_custom_pricing:
        is_loss = customer_total < hard_cost
        loss_amount = hard_cost - customer_total if is_loss else ZERO
    else:
        is_loss = False
        loss_amount = ZERO

    if rule.has_paper:
        paper_weight_per_1000 = rule.paper_weight_per_1000
        paper_weight_total = paper_weight_per_1000 * thousands
    else:
        paper_weight_per_1000 = None
        paper_weight_total = None

    return PricingResult(
        size_id=rule.size_id,
        size_name=rule.size_name,
        quantity=quantity,
        thousands=thousands,
        customer_cpm=customer_total / thousands,
        print_cpm=print_cpm,
        paper_cost_cpm=paper_cost_cpm,
        paper_charged_cpm=paper_charged_cpm,
        impact_margin_cpm=impact_margin / thousands,
        bradford_print_margin_cpm=bradford_print_margin / thousands,
        bradford_paper_margin_cpm=bradford_paper_margin / thousands,
        bradford_total_margin_cpm=bradford_total_margin / thousands,
        bradford_total_cpm=bradford_total / thousands,
        customer_total=customer_total,
        print_total=print_total,
        paper_cost_total=paper_cost_total,
        paper_charged_total=paper_charged_total,
        impact_margin=impact_margin,
        bradford_print_margin=bradford_print_margin,
        bradford_paper_margin=bradford_paper_margin,
        bradford_total_margin=bradford_total_margin,
        bradford_total=bradford_total,
        paper_weight_per_1000=paper_weight_per_1000,
        paper_weight_total=paper_weight_total,
        is_custom_pricing=is_custom_pricing,
        standard_customer_price=(
            customer_total if standard_customer_price is None else standard_customer_price
        ),
        is_loss=is_loss,
        loss_amount=loss_amount,
        hard_cost_total=hard_cost,
        manufacturer_supplies_paper=manufacturer_supplies_paper,
    )


def calculate_standard_pricing(
    size_id: str,
    quantity: int,
    catalog: RateCatalog | None = None,
    *,
    manufacturer_supplies_paper: bool = False,
) -> PricingResult:
    """
    Price a job at the catalog rates for its size.

    Raises NotFoundError for an unknown size and InvalidArgumentError for
    a quantity that is not a positive whole number.
    """
    _validate_quantity(quantity)
    if catalog is None:
        catalog = load_rate_catalog()
    rule = catalog.get_rate_rule(size_id)

    customer_total = rule.base_cpm * (Decimal(quantity) / THOUSAND)
    result = _allocate(
        rule,
        quantity,
        customer_total,
        rule.effective_paper_charged_cpm,
        is_custom_pricing=False,
        manufacturer_supplies_paper=manufacturer_supplies_paper,
    )
    logger.debug(
        "Standard pricing %s x %s: customer %s, sub-broker %s",
        size_id, quantity, result.customer_total, result.bradford_total,
    )
    return result


def calculate_custom_pricing(
    size_id: str,
    quantity: int,
    custom_price=None,
    custom_paper_cpm=None,
    catalog: RateCatalog | None = None,
    *,
    manufacturer_supplies_paper: bool = False,
) -> PricingResult:
    """
    Price a job at a negotiated customer total and/or paper rate.

    With neither override the standard result is returned as is. With an
    override, margins are re-split so the chain still adds up to the
    customer price. A price that does not cover print plus actual paper
    cost is flagged with is_loss/loss_amount and left for the caller to
    approve; it is never rejected here.

    With manufacturer_supplies_paper the sub-broker buys no paper, so a
    custom paper rate is rejected.
    """
    if manufacturer_supplies_paper and custom_paper_cpm is not None:
        raise InvalidArgumentError(
            "custom_paper_cpm does not apply when the manufacturer supplies paper"
        )
    if catalog is None:
        catalog = load_rate_catalog()
    standard = calculate_standard_pricing(
        size_id, quantity, catalog, manufacturer_supplies_paper=manufacturer_supplies_paper
    )

    if custom_price is None and custom_paper_cpm is None:
        return standard

    effective_price = (
        standard.customer_total
        if custom_price is None
        else _non_negative(custom_price, "custom_price")
    )
    paper_charged_cpm = (
        standard.paper_charged_cpm
        if custom_paper_cpm is None
        else _non_negative(custom_paper_cpm, "custom_paper_cpm")
    )

    result = _allocate(
        catalog.get_rate_rule(size_id),
        quantity,
        effective_price,
        paper_charged_cpm,
        is_custom_pricing=True,
        standard_customer_price=standard.customer_total,
        manufacturer_supplies_paper=manufacturer_supplies_paper,
    )
    if result.is_loss:
        logger.warning(
            "Below-cost price for %s x %s: %s against hard cost %s (loss %s)",
            size_id, quantity, result.customer_total,
            result.hard_cost_total, result.loss_amount,
        )
    else:
        logger.debug(
            "Custom pricing %s x %s: customer %s (standard %s)",
            size_id, quantity, result.customer_total, result.standard_customer_price,
        )
    return result


def round_for_display(result: PricingResult) -> PricingResult:
    """
    Round totals to cents and rates to 4 places for presentation.

    Independent amounts are rounded directly; dependent ones are derived
    from the rounded parts so the rounded figures still satisfy
    customer_total == bradford_total + impact_margin and
    bradford_total == print_total + paper_charged_total + bradford_print_margin.
    """
    customer_total = quantize_money(result.customer_total)
    print_total = quantize_money(result.print_total)
    paper_cost_total = quantize_money(result.paper_cost_total)
    paper_charged_total = quantize_money(result.paper_charged_total)
    impact_margin = quantize_money(result.impact_margin)

    bradford_total = customer_total - impact_margin
    bradford_print_margin = bradford_total - print_total - paper_charged_total
    bradford_paper_margin = paper_charged_total - paper_cost_total
    bradford_total_margin = bradford_print_margin + bradford_paper_margin

    weight_total = result.paper_weight_total
    return replace(
        result,
        customer_cpm=quantize_rate(result.customer_cpm),
        print_cpm=quantize_rate(result.print_cpm),
        paper_cost_cpm=quantize_rate(result.paper_cost_cpm),
        paper_charged_cpm=quantize_rate(result.paper_charged_cpm),
        impact_margin_cpm=quantize_rate(result.impact_margin_cpm),
        bradford_print_margin_cpm=quantize_rate(result.bradford_print_margin_cpm),
        bradford_paper_margin_cpm=quantize_rate(result.bradford_paper_margin_cpm),
        bradford_total_margin_cpm=quantize_rate(result.bradford_total_margin_cpm),
        bradford_total_cpm=quantize_rate(result.bradford_total_cpm),
        customer_total=customer_total,
        print_total=print_total,
        paper_cost_total=paper_cost_total,
        paper_charged_total=paper_charged_total,
        impact_margin=impact_margin,
        bradford_print_margin=bradford_print_margin,
        bradford_paper_margin=bradford_paper_margin,
        bradford_total_margin=bradford_total_margin,
        bradford_total=bradford_total,
        paper_weight_total=None if weight_total is None else quantize_money(weight_total),
        standard_customer_price=quantize_money(result.standard_customer_price),
        loss_amount=quantize_money(result.loss_amount),
        hard_cost_total=quantize_money(result.hard_cost_total),
    )
