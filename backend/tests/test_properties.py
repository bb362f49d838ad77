"""
Property-based tests for the billing core (Hypothesis).

Only pure functions are exercised here, so no database fixtures are needed.
"""

from hypothesis import given, settings, strategies as st

from salon_api.models import SHARED, OccupantConsumer
from salon_api.services.billing import (
    LineSnapshot,
    compute_tip,
    compute_totals,
    discounted_amount_cents,
    group_lines,
    percent_of,
    settled_amount_cents,
)

prices = st.integers(min_value=0, max_value=50_000)
quantities = st.integers(min_value=0, max_value=20)
discounts = st.integers(min_value=0, max_value=100)
consumers = st.one_of(st.just(SHARED), st.builds(OccupantConsumer, st.integers(min_value=1, max_value=4)))


@st.composite
def line_lists(draw):
    """Lines with unique ids drawn from a small menu so merges happen."""
    count = draw(st.integers(min_value=0, max_value=12))
    ids = draw(st.lists(st.integers(min_value=1, max_value=10_000), min_size=count, max_size=count, unique=True))
    return [
        LineSnapshot(
            line_id=line_id,
            product_name=draw(st.sampled_from(["Cerveja", "Água", "Batata", "Suco"])),
            unit_price_cents=draw(prices),
            payable_quantity=draw(quantities),
            discount_percent=draw(discounts),
            consumer=draw(consumers),
        )
        for line_id in ids
    ]


occupant_lists = st.lists(st.integers(min_value=1, max_value=4), unique=True, max_size=4)


class TestGroupingProperties:
    @given(lines=line_lists(), occupant_ids=occupant_lists)
    @settings(max_examples=200)
    def test_group_subtotals_conserve_line_amounts(self, lines, occupant_ids):
        """Property: the groups add up to the sum of the eligible lines."""
        groups = group_lines(lines, occupant_ids)

        assert sum(g.subtotal_cents for g in groups) == sum(line.amount_cents for line in lines)

    @given(lines=line_lists(), occupant_ids=occupant_lists)
    def test_exactly_one_shared_group_last(self, lines, occupant_ids):
        groups = group_lines(lines, occupant_ids)

        assert [g.is_shared for g in groups].count(True) == 1
        assert groups[-1].is_shared

    @given(lines=line_lists(), occupant_ids=occupant_lists)
    def test_every_payable_line_lands_in_one_item(self, lines, occupant_ids):
        groups = group_lines(lines, occupant_ids)
        grouped_ids = [line_id for g in groups for item in g.items for line_id in item.line_ids]

        assert sorted(grouped_ids) == sorted(line.line_id for line in lines if line.payable_quantity > 0)

    @given(lines=line_lists(), occupant_ids=occupant_lists)
    def test_every_seated_occupant_has_a_group(self, lines, occupant_ids):
        groups = group_lines(lines, occupant_ids)
        consumers_in_groups = [g.consumer for g in groups]

        for customer_id in occupant_ids:
            assert OccupantConsumer(customer_id) in consumers_in_groups

    @given(lines=line_lists(), occupant_ids=occupant_lists)
    def test_representative_is_lowest_line_id(self, lines, occupant_ids):
        for group in group_lines(lines, occupant_ids):
            for item in group.items:
                assert item.line_id == min(item.line_ids)


class TestMoneyProperties:
    @given(price=prices, quantity=quantities, discount=discounts)
    def test_discounted_amount_bounded(self, price, quantity, discount):
        amount = discounted_amount_cents(price, quantity, discount)

        assert 0 <= amount <= price * quantity

    @given(
        price=prices,
        discount=discounts,
        parts=st.lists(st.integers(min_value=1, max_value=5), min_size=1, max_size=6),
    )
    @settings(max_examples=200)
    def test_partial_payments_sum_to_full_line(self, price, discount, parts):
        """Property: any split of a line into partial payments costs the whole line."""
        remaining = sum(parts)
        paid = 0
        for quantity in parts:
            paid += settled_amount_cents(price, remaining, quantity, discount)
            remaining -= quantity

        assert paid == discounted_amount_cents(price, sum(parts), discount)

    @given(subtotal=st.integers(min_value=0, max_value=10_000_000))
    def test_tip_is_ten_percent_when_enabled(self, subtotal):
        assert compute_tip(subtotal, tip_enabled=True) == percent_of(subtotal, 10)
        assert compute_tip(subtotal, tip_enabled=False) == 0

    @given(lines=line_lists(), occupant_ids=occupant_lists, tip_enabled=st.booleans())
    def test_grand_total_is_subtotal_plus_tip(self, lines, occupant_ids, tip_enabled):
        totals = compute_totals(group_lines(lines, occupant_ids), tip_enabled)

        assert totals.grand_total_cents == totals.subtotal_cents + totals.tip_cents
        assert totals.tip_cents >= 0
