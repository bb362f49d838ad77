"""
Billing calculator: subtotals, tip and grand total from consumer groups.

    order_subtotal = Σ group_subtotal
    tip_amount     = tip_enabled ? order_subtotal × tip_rate : 0
    grand_total    = order_subtotal + tip_amount

Discounts are taken as stored; their range is enforced when applied.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from salon_api.services.billing.grouping import ConsumerGroup
from salon_api.services.billing.money import percent_of
from shared.config.settings import settings
from shared.utils.schemas import TotalsOutput


@dataclass(frozen=True, slots=True)
class Totals:
    subtotal_cents: int
    tip_enabled: bool
    tip_rate_percent: int
    tip_cents: int

    @property
    def grand_total_cents(self) -> int:
        return self.subtotal_cents + self.tip_cents

    def to_output(self) -> TotalsOutput:
        return TotalsOutput(
            subtotal_cents=self.subtotal_cents,
            tip_enabled=self.tip_enabled,
            tip_rate_percent=self.tip_rate_percent,
            tip_cents=self.tip_cents,
            grand_total_cents=self.grand_total_cents,
        )


def compute_tip(subtotal_cents: int, tip_enabled: bool, tip_rate_percent: int | None = None) -> int:
    if not tip_enabled:
        return 0
    rate = settings.tip_rate_percent if tip_rate_percent is None else tip_rate_percent
    return percent_of(subtotal_cents, rate)


def compute_totals(
    groups: Iterable[ConsumerGroup],
    tip_enabled: bool,
    tip_rate_percent: int | None = None,
) -> Totals:
    rate = settings.tip_rate_percent if tip_rate_percent is None else tip_rate_percent
    subtotal = sum(group.subtotal_cents for group in groups)
    return Totals(
        subtotal_cents=subtotal,
        tip_enabled=tip_enabled,
        tip_rate_percent=rate,
        tip_cents=compute_tip(subtotal, tip_enabled, rate),
    )
