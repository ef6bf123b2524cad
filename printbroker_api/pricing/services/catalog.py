"""
Rate catalog: per-size rate rules for third-party production.

All rates are CPM (price per thousand pieces). The catalog is built once
by the caller and passed to the calculators; it is never mutated after
construction.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Any, Iterable, Iterator

from django.conf import settings

from common.money import ZERO, to_decimal

from ..exceptions import InvalidArgumentError, NotFoundError


@dataclass(frozen=True)
class RateRule:
    """
    Contract rates for one product size.

    paper_weight_per_1000 and paper_cost_per_lb come as a pair; sizes
    printed on customer-supplied stock leave both empty. paper_charged_cpm
    is the sub-broker's negotiated paper charge; when empty, paper is
    passed through at cost.
    """

    size_id: str
    size_name: str
    base_cpm: Decimal
    print_cpm: Decimal
    paper_weight_per_1000: Decimal | None = None
    paper_cost_per_lb: Decimal | None = None
    roll_size: Decimal | None = None
    paper_charged_cpm: Decimal | None = None
    description: str = ""

    def __post_init__(self):
        if not self.size_id or not isinstance(self.size_id, str):
            raise InvalidArgumentError("Rate rule requires a size_id")
        if not self.size_name:
            object.__setattr__(self, "size_name", self.size_id)

        for name in (
            "base_cpm",
            "print_cpm",
            "paper_weight_per_1000",
            "paper_cost_per_lb",
            "roll_size",
            "paper_charged_cpm",
        ):
            value = getattr(self, name)
            if value is None:
                continue
            try:
                value = to_decimal(value, name)
            except ValueError as e:
                raise InvalidArgumentError(f"{self.size_id}: {e}") from None
            if value < 0:
                raise InvalidArgumentError(f"{self.size_id}: {name} cannot be negative")
            object.__setattr__(self, name, value)

        if (self.paper_weight_per_1000 is None) != (self.paper_cost_per_lb is None):
            raise InvalidArgumentError(
                f"{self.size_id}: paper weight and paper cost per lb must be set together"
            )
        if self.paper_charged_cpm is not None and not self.has_paper:
            raise InvalidArgumentError(
                f"{self.size_id}: paper_charged_cpm requires paper weight and cost"
            )
        if self.base_cpm <= self.print_cpm:
            raise InvalidArgumentError(
                f"{self.size_id}: base CPM {self.base_cpm} must exceed print CPM {self.print_cpm}"
            )

    @property
    def has_paper(self) -> bool:
        return self.paper_weight_per_1000 is not None

    @property
    def paper_cost_cpm(self) -> Decimal:
        """Actual paper cost per thousand (lbs per M x cost per lb)."""
        if not self.has_paper:
            return ZERO
        return self.paper_weight_per_1000 * self.paper_cost_per_lb

    @property
    def effective_paper_charged_cpm(self) -> Decimal:
        if self.paper_charged_cpm is None:
            return self.paper_cost_cpm
        return self.paper_charged_cpm

    @property
    def paper_markup_cpm(self) -> Decimal:
        return self.effective_paper_charged_cpm - self.paper_cost_cpm

    @property
    def sub_broker_base_cost_cpm(self) -> Decimal:
        """Manufacturer print plus paper as charged, before any margin split."""
        return self.print_cpm + self.effective_paper_charged_cpm

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RateRule":
        """Build a rule from settings data, rejecting unknown or missing keys."""
        allowed = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - allowed)
        if unknown:
            raise InvalidArgumentError(f"Unknown rate rule fields: {', '.join(unknown)}")
        missing = [name for name in ("size_id", "base_cpm", "print_cpm") if name not in data]
        if missing:
            raise InvalidArgumentError(f"Missing rate rule fields: {', '.join(missing)}")
        values = dict(data)
        values.setdefault("size_name", values["size_id"])
        return cls(**values)


class RateCatalog:
    """
    Read-only lookup of rate rules by size id.
    Iteration and list_sizes() keep the declared order.
    """

    def __init__(self, rules: Iterable[RateRule]):
        rules = tuple(rules)
        by_id: dict[str, RateRule] = {}
        for rule in rules:
            if not isinstance(rule, RateRule):
                raise InvalidArgumentError(f"Expected RateRule, got {type(rule).__name__}")
            if rule.size_id in by_id:
                raise InvalidArgumentError(f"Duplicate rate rule for size {rule.size_id!r}")
            by_id[rule.size_id] = rule
        self._rules = rules
        self._by_id = by_id

    def __repr__(self):
        return f"<RateCatalog: {len(self._rules)} sizes>"

    def __len__(self):
        return len(self._rules)

    def __iter__(self) -> Iterator[RateRule]:
        return iter(self._rules)

    def __contains__(self, size_id) -> bool:
        return size_id in self._by_id

    def get_rate_rule(self, size_id: str) -> RateRule:
        try:
            return self._by_id[size_id]
        except (KeyError, TypeError):
            raise NotFoundError(size_id) from None

    def list_sizes(self) -> tuple[RateRule, ...]:
        return self._rules

    @classmethod
    def from_dicts(cls, rows: Iterable[dict[str, Any]]) -> "RateCatalog":
        return cls(RateRule.from_dict(row) for row in rows)


# Contract rates per M: customer base, manufacturer print, paper bought and
# paper as charged by the sub-broker.
# All paper is bought at $0.675/lb.
DEFAULT_RATE_RULES = (
    {
        "size_id": "16.375x7.25",
        "size_name": "7 1/4 x 16 3/8",
        "base_cpm": "67.56",
        "print_cpm": "34.74",
        "paper_weight_per_1000": "22.90",
        "paper_cost_per_lb": "0.675",
        "roll_size": "15",
        "paper_charged_cpm": "18.55",
        "description": "Self Mailer - Coated Matte 7pt (98# Stock)",
    },
    {
        "size_id": "17.5x8.5",
        "size_name": "8 1/2 x 17 1/2",
        "base_cpm": "81.00",
        "print_cpm": "38.41",
        "paper_weight_per_1000": "30.16",
        "paper_cost_per_lb": "0.675",
        "roll_size": "18",
        "paper_charged_cpm": "24.43",
        "description": "Self Mailer - Coated Matte 7pt (98# Stock)",
    },
    {
        "size_id": "22.125x9.75",
        "size_name": "9 3/4 x 22 1/8",
        "base_cpm": "106.91",
        "print_cpm": "49.18",
        "paper_weight_per_1000": "52.98",
        "paper_cost_per_lb": "0.675",
        "roll_size": "20",
        "paper_charged_cpm": "42.91",
        "description": "Self Mailer - Coated Matte 7pt (98# Stock)",
    },
    {
        "size_id": "26x9.75",
        "size_name": "9 3/4 x 26",
        "base_cpm": "112.60",
        "print_cpm": "49.18",
        "paper_weight_per_1000": "54.28",
        "paper_cost_per_lb": "0.675",
        "roll_size": "20",
        "paper_charged_cpm": "48.60",
        "description": "Self Mailer - Coated Matte 7pt (98# Stock)",
    },
    {
        "size_id": "9x6",
        "size_name": "6 x 9",
        "base_cpm": "35.00",
        "print_cpm": "10.00",
        "paper_weight_per_1000": "20",
        "paper_cost_per_lb": "0.675",
        "roll_size": "20",
        "paper_charged_cpm": "15.55",
        "description": "Postcard - 9pt Cover Stock",
    },
    {
        "size_id": "11x6",
        "size_name": "6 x 11",
        "base_cpm": "39.00",
        "print_cpm": "12.00",
        "paper_weight_per_1000": "24",
        "paper_cost_per_lb": "0.675",
        "roll_size": "20",
        "paper_charged_cpm": "18.89",
        "description": "Postcard - 9pt Cover Stock",
    },
)


def load_rate_catalog() -> RateCatalog:
    """
    Build a catalog from settings.PRICING_RATE_RULES, falling back to the
    contract rates above. Each call returns a new catalog.
    """
    rows = getattr(settings, "PRICING_RATE_RULES", None) or DEFAULT_RATE_RULES
    return RateCatalog.from_dicts(rows)
