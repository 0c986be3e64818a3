"""
Property-based tests using Hypothesis for calendar arithmetic and engine invariants.
"""

from decimal import Decimal

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from fineventlab.core.analyzer import analyze_event_dependencies
from fineventlab.core.conditions import EventHappened, NetworthIsAbove
from fineventlab.core.events import make_one_off, make_recurring
from fineventlab.core.local_date import LocalDate, month_range
from fineventlab.core.scenario import Scenario
from fineventlab.core.timeline import transform_to_timeline_data

local_dates = st.builds(
    LocalDate,
    year=st.integers(min_value=1990, max_value=2060),
    month=st.integers(min_value=1, max_value=12),
    day=st.integers(min_value=1, max_value=28),
)

amounts = st.decimals(
    min_value=Decimal("0"), max_value=Decimal("20000"), places=2, allow_nan=False
).map(float)

event_specs = st.lists(
    st.tuples(
        st.sampled_from(["income", "expense"]),
        st.sampled_from(["once", "monthly", "yearly"]),
        amounts,
        st.integers(min_value=0, max_value=23),
        st.sampled_from([None, "networth", "trigger"]),
    ),
    min_size=1,
    max_size=8,
)

START = LocalDate(2025, 1, 1)
END = LocalDate(2026, 12, 1)


def _build_scenario(specs):
    events = []
    for idx, (type_, freq, amount, offset, gate) in enumerate(specs):
        name = f"E{idx}"
        date = START.add_months(offset)
        conditions = []
        if gate == "networth":
            conditions.append(NetworthIsAbove(amount))
        elif gate == "trigger" and idx > 0:
            conditions.append(EventHappened(f"E{idx - 1}"))
        if freq == "once":
            events.append(make_one_off(name, amount, type_, date, conditions))
        else:
            events.append(make_recurring(name, amount, type_, freq, date, None, conditions))
    return Scenario("Generated", events)


class TestCalendarProperties:
    """Month arithmetic laws."""

    @given(d=local_dates, n=st.integers(min_value=-600, max_value=600))
    def test_add_months_inverse(self, d, n):
        assert d.add_months(n).add_months(-n) == d
        assert d.months_until(d.add_months(n)) == n

    @given(a=local_dates, b=local_dates)
    def test_month_range_is_dense_and_ordered(self, a, b):
        months = list(month_range(a, b))
        if a.month_key > b.month_key:
            assert months == []
            return
        assert len(months) == a.months_until(b) + 1
        keys = [m.month_key for m in months]
        assert keys == sorted(set(keys))
        assert keys[0] == a.month_key
        assert keys[-1] == b.month_key

    @given(d=local_dates)
    def test_month_key_ordering_matches_date_ordering(self, d):
        later = d.add_months(1)
        assert d < later
        assert d.month_key < later.month_key


class TestEngineProperties:
    """Invariants that hold for any generated scenario."""

    @settings(max_examples=50, deadline=None)
    @given(specs=event_specs, initial=amounts)
    def test_balance_is_running_sum(self, specs, initial):
        result = _build_scenario(specs).run(START, END, initial_balance=initial)

        assert len(result.months) == 24
        previous = initial
        for month in result.months:
            record = result.cashflow[month]
            assert record.net_amount == pytest.approx(
                sum(f.amount for f in record.fired_events)
            )
            assert result.balance[month] == pytest.approx(previous + record.net_amount)
            previous = result.balance[month]

    @settings(max_examples=50, deadline=None)
    @given(specs=event_specs)
    def test_fired_events_respect_recurrence_and_triggers(self, specs):
        scenario = _build_scenario(specs)
        result = scenario.run(START, END)

        fired_before: set[str] = set()
        for month in result.months:
            names = result.cashflow[month].fired_names()
            for name in names:
                event = scenario.get_event(name)
                for condition in event.unlocked_by:
                    if isinstance(condition, EventHappened):
                        assert condition.event_name in fired_before
            once_names = [
                n for n in names if scenario.get_event(n).frequency.value == "once"
            ]
            assert all(result.first_fired(n) == month for n in once_names)
            fired_before.update(names)

    @settings(max_examples=30, deadline=None)
    @given(specs=event_specs)
    def test_timeline_preserves_net_cashflow(self, specs):
        scenario = _build_scenario(specs)
        result = scenario.run(START, END)
        years = transform_to_timeline_data(analyze_event_dependencies(scenario, result))

        for year in years:
            expected = sum(
                r.net_amount
                for m, r in result.cashflow.items()
                if m.startswith(str(year.year))
            )
            assert year.net_cashflow == pytest.approx(expected)

    @settings(max_examples=30, deadline=None)
    @given(specs=event_specs, data=st.data())
    def test_cascade_removes_every_dependent(self, specs, data):
        scenario = _build_scenario(specs)
        target = data.draw(st.sampled_from(scenario.event_names()))
        reduced = scenario.without([target])

        remaining = set(reduced.event_names())
        assert target not in remaining
        for event in reduced.events:
            for condition in event.unlocked_by:
                if isinstance(condition, EventHappened):
                    assert condition.event_name in remaining

