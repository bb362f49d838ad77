"""
Billing math: line grouping and totals. Pure, no database access.
"""

from .money import discounted_amount_cents, settled_amount_cents, percent_of
from .grouping import (
    LineSnapshot,
    GroupedItem,
    ConsumerGroup,
    OrderGroups,
    group_lines,
    shared_group,
    group_for,
)
from .calculator import Totals, compute_totals, compute_tip

__all__ = [
    "discounted_amount_cents",
    "settled_amount_cents",
    "percent_of",
    "LineSnapshot",
    "GroupedItem",
    "ConsumerGroup",
    "OrderGroups",
    "group_lines",
    "shared_group",
    "group_for",
    "Totals",
    "compute_totals",
    "compute_tip",
]
